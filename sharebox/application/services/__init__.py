"""Application services: pure policies shared by the file use cases."""

from sharebox.application.services.disposition import (
    Disposition,
    build_content_disposition,
    decide_disposition,
)
from sharebox.application.services.naming import (
    build_file_url,
    split_extension,
    strip_extension,
)

__all__ = [
    "Disposition",
    "build_content_disposition",
    "build_file_url",
    "decide_disposition",
    "split_extension",
    "strip_extension",
]
