"""Infrastructure exceptions for storage backends.

Storage errors extend ShareboxException so they carry an error_code, but the
application services translate them to InternalErrorException before they
reach the presentation layer.
"""

from sharebox.domain.exceptions import ShareboxException


class StorageException(ShareboxException):
    """Base exception for storage operations."""


class StorageAllocationError(StorageException):
    """A new entry could not be reserved."""

    def __init__(self, entry_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to allocate entry: {entry_id}",
            "STORAGE_ALLOCATION_ERROR",
            {"entry_id": entry_id, "reason": reason},
        )


class StorageWriteError(StorageException):
    """Writing entry bytes failed."""

    def __init__(self, entry_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to write entry: {entry_id}",
            "STORAGE_WRITE_ERROR",
            {"entry_id": entry_id, "reason": reason},
        )


class StorageFinalizeError(StorageException):
    """Committing an entry failed."""

    def __init__(self, entry_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to finalize entry: {entry_id}",
            "STORAGE_FINALIZE_ERROR",
            {"entry_id": entry_id, "reason": reason},
        )


class StorageLookupError(StorageException):
    """Looking up an entry failed (not the same as not found)."""

    def __init__(self, entry_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to look up entry: {entry_id}",
            "STORAGE_LOOKUP_ERROR",
            {"entry_id": entry_id, "reason": reason},
        )


class StorageReadError(StorageException):
    """Reading entry bytes failed."""

    def __init__(self, entry_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to read entry: {entry_id}",
            "STORAGE_READ_ERROR",
            {"entry_id": entry_id, "reason": reason},
        )


class StoragePermissionError(StorageException):
    """Entry id resolves outside the storage root."""

    def __init__(self, entry_id: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {entry_id}",
            "STORAGE_PERMISSION_ERROR",
            {"entry_id": entry_id, "operation": operation},
        )
