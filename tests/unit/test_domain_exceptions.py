"""Tests for domain exceptions (error_code, message, details)."""

from sharebox.domain.exceptions import (
    BadRequestException,
    EntryNotFoundException,
    InternalErrorException,
    InvalidFilenameException,
    InvalidIdException,
    ShareboxException,
)
from sharebox.infrastructure.exceptions import (
    StorageException,
    StoragePermissionError,
    StorageReadError,
)


def test_sharebox_exception_default_error_code() -> None:
    """Base ShareboxException uses class name as error_code when not provided."""
    exc = ShareboxException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "ShareboxException"
    assert exc.details == {}


def test_sharebox_exception_to_dict() -> None:
    exc = ShareboxException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {
        "error": "CUSTOM",
        "message": "Oops",
        "details": {"key": "value"},
    }


def test_bad_request_exception() -> None:
    exc = BadRequestException()
    assert exc.error_code == "BAD_REQUEST"
    assert "multipart" in exc.message


def test_invalid_filename_exception_carries_filename() -> None:
    exc = InvalidFilenameException("README")
    assert exc.error_code == "INVALID_FILENAME"
    assert exc.details == {"filename": "README"}


def test_invalid_id_exception_carries_key() -> None:
    exc = InvalidIdException("abc")
    assert exc.error_code == "INVALID_ID"
    assert exc.details == {"file_key": "abc"}


def test_entry_not_found_exception() -> None:
    exc = EntryNotFoundException("cabc123")
    assert exc.error_code == "NOT_FOUND"
    assert exc.message == "File not found: cabc123"


def test_internal_error_exception_without_entry() -> None:
    exc = InternalErrorException("disk on fire")
    assert exc.error_code == "INTERNAL_ERROR"
    assert exc.details == {}


def test_internal_error_exception_with_entry() -> None:
    exc = InternalErrorException("disk on fire", entry_id="cabc123")
    assert exc.details == {"entry_id": "cabc123"}


def test_storage_errors_are_sharebox_exceptions() -> None:
    exc = StorageReadError("cabc123", "EIO")
    assert isinstance(exc, StorageException)
    assert isinstance(exc, ShareboxException)
    assert exc.error_code == "STORAGE_READ_ERROR"
    assert exc.details == {"entry_id": "cabc123", "reason": "EIO"}


def test_storage_permission_error() -> None:
    exc = StoragePermissionError("../etc", "path_validation")
    assert exc.error_code == "STORAGE_PERMISSION_ERROR"
    assert "path_validation" in exc.message


def test_status_codes() -> None:
    """Client errors declare a 4xx status; everything else is a 500."""
    assert BadRequestException().status_code == 400
    assert InvalidFilenameException("README").status_code == 400
    assert InvalidIdException("abc").status_code == 400
    assert EntryNotFoundException("cabc123").status_code == 404
    assert InternalErrorException("disk on fire").status_code == 500
    assert ShareboxException("Oops", error_code="CUSTOM").status_code == 500
    assert StorageReadError("cabc123", "EIO").status_code == 500
