"""Storage protocols (DIP). Implementations: LocalStorage, S3Storage, MemoryStorage.

An entry moves through created -> populated -> finalized. Only finalized
entries are returned by load_entry(); everything before update() is private
to the request that created the entry.
"""

from typing import Protocol


class WriteSink(Protocol):
    """Exclusive byte sink bound to one entry's staged content."""

    async def write(self, data: bytes) -> None:
        """Append bytes to the staged content."""
        ...

    async def close(self) -> None:
        """Release the sink. Safe to call more than once."""
        ...

    async def __aenter__(self) -> "WriteSink": ...

    async def __aexit__(self, *exc_info: object) -> None: ...


class ReadSource(Protocol):
    """Exclusive byte source over a finalized entry's content."""

    async def read(self, size: int) -> bytes:
        """Return up to size bytes; b"" at end of stream."""
        ...

    async def close(self) -> None:
        """Release the source. Safe to call more than once."""
        ...

    async def __aenter__(self) -> "ReadSource": ...

    async def __aexit__(self, *exc_info: object) -> None: ...


class StorageEntry(Protocol):
    """Handle for one stored file and its metadata."""

    @property
    def id(self) -> str: ...

    @property
    def filename(self) -> str: ...

    @property
    def content_type(self) -> str: ...

    @property
    def etag(self) -> str:
        """Quoted cache validator; empty until the entry is finalized."""
        ...

    def set_filename(self, filename: str) -> None: ...

    def set_content_type(self, content_type: str) -> None: ...

    async def save(self) -> None:
        """Persist the initial (empty, invisible) state and reserve the id."""
        ...

    async def open_writer(self) -> WriteSink:
        """Open the staging sink. Raises StorageWriteError."""
        ...

    async def update(self) -> None:
        """Finalize: make content and metadata durable and resolvable by id."""
        ...

    async def open_reader(self) -> ReadSource:
        """Open a reader over finalized content. Raises StorageReadError."""
        ...

    async def discard(self) -> None:
        """Best-effort removal of an unfinalized reservation."""
        ...


class StorageProtocol(Protocol):
    """Protocol for storage backends (local filesystem, S3-compatible, memory)."""

    def create_entry(self) -> StorageEntry:
        """Allocate a new entry with a fresh id. Nothing is persisted yet."""
        ...

    async def load_entry(self, entry_id: str) -> StorageEntry | None:
        """Return the finalized entry or None. Raises StorageLookupError."""
        ...

    async def close(self) -> None:
        """Release backend resources at shutdown."""
        ...
