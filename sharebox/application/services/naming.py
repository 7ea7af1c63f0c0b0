"""File key helpers: extension split/strip and retrieval URL assembly.

Both directions use the last dot, so "archive.tar.gz" has extension ".gz"
and the key "<id>.gz" strips back to "<id>".
"""

from sharebox.domain.exceptions import InvalidFilenameException, InvalidIdException


def split_extension(filename: str) -> str:
    """Return the final dot-suffix of filename, including the dot.

    Raises:
        InvalidFilenameException: filename has no dot.
    """
    index = filename.rfind(".")
    if index < 0:
        raise InvalidFilenameException(filename)
    return filename[index:]


def strip_extension(file_key: str) -> str:
    """Return file_key without its final dot-suffix (the bare entry id).

    Raises:
        InvalidIdException: file_key has no dot or nothing before it.
    """
    index = file_key.rfind(".")
    if index <= 0:
        raise InvalidIdException(file_key)
    return file_key[:index]


def build_file_url(protocol_host: str, entry_id: str, filename: str) -> str:
    """Return <protocol_host><entry_id><extension> for an uploaded file."""
    return f"{protocol_host}{entry_id}{split_extension(filename)}"
