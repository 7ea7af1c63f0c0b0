"""Storage: local filesystem, S3-compatible and in-memory backends.

Factory creates the backend from sharebox.core.config. Implementations are
loaded lazily inside StorageFactory.create_storage() so that:
- Default (local) only requires aiofiles (main dependency).
- S3 backend only loads boto3 when used; install with the "storage" extra.

Implementations satisfy StorageProtocol (create_entry, load_entry, close) and
hand out StorageEntry objects (save, open_writer, update, open_reader).
"""

from sharebox.infrastructure.external.storage.factory import StorageFactory
from sharebox.infrastructure.external.storage.protocol import (
    ReadSource,
    StorageEntry,
    StorageProtocol,
    WriteSink,
)

__all__ = [
    "ReadSource",
    "StorageEntry",
    "StorageFactory",
    "StorageProtocol",
    "WriteSink",
]
