"""File use cases: streaming upload and conditional download."""

from sharebox.application.use_cases.files.serve_file import FileDownloadService
from sharebox.application.use_cases.files.upload_file import (
    FileUploadService,
    UploadedFile,
)

__all__ = ["FileDownloadService", "FileUploadService", "UploadedFile"]
