"""Domain exceptions for the sharebox service.

Each exception carries a machine-readable error_code and the HTTP status
the exception handlers answer with. A 500 is an operator-facing fault; 4xx
statuses are ordinary client errors.
"""

from typing import Any


class ShareboxException(Exception):
    """Base exception for all sharebox errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        status_code: HTTP status; anything not declared as a client error is 500.
        details: Additional error context (e.g. entry_id, filename).
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body used for error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class BadRequestException(ShareboxException):
    """Raised when the upload request's Content-Type cannot be used."""

    status_code = 400

    def __init__(self, message: str = "Malformed multipart Content-Type") -> None:
        super().__init__(message, "BAD_REQUEST")


class InvalidFilenameException(ShareboxException):
    """Raised when an uploaded filename has no extension to build a URL from."""

    status_code = 400

    def __init__(self, filename: str) -> None:
        super().__init__(
            f"Filename must contain an extension: {filename!r}",
            "INVALID_FILENAME",
            {"filename": filename},
        )


class InvalidIdException(ShareboxException):
    """Raised when a requested file key has no extension to strip."""

    status_code = 400

    def __init__(self, file_key: str) -> None:
        super().__init__(
            f"File key must have the form <id>.<extension>: {file_key!r}",
            "INVALID_ID",
            {"file_key": file_key},
        )


class EntryNotFoundException(ShareboxException):
    """Raised when no finalized entry exists for the requested id."""

    status_code = 404

    def __init__(self, entry_id: str) -> None:
        super().__init__(
            f"File not found: {entry_id}",
            "NOT_FOUND",
            {"entry_id": entry_id},
        )


class InternalErrorException(ShareboxException):
    """Raised for storage or stream failures; the cause is kept in __cause__.

    The message is for logs only. Clients always receive a generic body.
    """

    def __init__(self, message: str, entry_id: str | None = None) -> None:
        details = {"entry_id": entry_id} if entry_id else {}
        super().__init__(message, "INTERNAL_ERROR", details)
