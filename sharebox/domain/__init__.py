"""Domain layer: exceptions describing request-level failures.

No dependencies on infrastructure or presentation. Presentation maps these
to HTTP responses in sharebox.core.exception_handlers.
"""

from sharebox.domain.exceptions import (
    BadRequestException,
    EntryNotFoundException,
    InternalErrorException,
    InvalidFilenameException,
    InvalidIdException,
    ShareboxException,
)

__all__ = [
    "BadRequestException",
    "EntryNotFoundException",
    "InternalErrorException",
    "InvalidFilenameException",
    "InvalidIdException",
    "ShareboxException",
]
