"""sharebox: multipart file upload and retrieval service (ShareX compatible)."""

__version__ = "1.0.0"
