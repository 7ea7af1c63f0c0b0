"""MemoryStorage: dict-based storage for development and testing."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from sharebox.infrastructure.exceptions import (
    StorageAllocationError,
    StorageFinalizeError,
    StorageReadError,
    StorageWriteError,
)
from sharebox.shared.utils.generators import generate_cuid


@dataclass(frozen=True)
class _StoredObject:
    data: bytes
    filename: str
    content_type: str
    etag: str


class _MemoryWriteSink:
    def __init__(self, entry: MemoryEntry) -> None:
        self._entry = entry
        self.closed = False

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise StorageWriteError(self._entry.id, "write sink is closed")
        self._entry._buffer.extend(data)

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> _MemoryWriteSink:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class _MemoryReadSource:
    def __init__(self, entry_id: str, data: bytes) -> None:
        self._entry_id = entry_id
        self._view = memoryview(data)
        self._offset = 0
        self.closed = False

    async def read(self, size: int) -> bytes:
        if self.closed:
            raise StorageReadError(self._entry_id, "read source is closed")
        chunk = self._view[self._offset : self._offset + size]
        self._offset += len(chunk)
        return bytes(chunk)

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> _MemoryReadSource:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class MemoryEntry:
    """Entry whose bytes are staged in a bytearray until update()."""

    def __init__(
        self,
        storage: MemoryStorage,
        entry_id: str,
        stored: _StoredObject | None = None,
    ) -> None:
        self._storage = storage
        self._id = entry_id
        self._stored = stored
        self._filename = stored.filename if stored else ""
        self._content_type = stored.content_type if stored else ""
        self._buffer = bytearray()
        self._saved = stored is not None
        self._writer: _MemoryWriteSink | None = None

    @property
    def id(self) -> str:
        return self._id

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def content_type(self) -> str:
        return self._content_type

    @property
    def etag(self) -> str:
        return self._stored.etag if self._stored else ""

    def set_filename(self, filename: str) -> None:
        if self._stored is not None:
            raise StorageWriteError(self._id, "entry is finalized")
        self._filename = filename

    def set_content_type(self, content_type: str) -> None:
        if self._stored is not None:
            raise StorageWriteError(self._id, "entry is finalized")
        self._content_type = content_type

    async def save(self) -> None:
        self._storage._reserve(self._id)
        self._saved = True

    async def open_writer(self) -> _MemoryWriteSink:
        if not self._saved or self._stored is not None or self._writer is not None:
            raise StorageWriteError(self._id, "entry is not writable")
        self._writer = _MemoryWriteSink(self)
        return self._writer

    async def update(self) -> None:
        if self._stored is not None:
            raise StorageFinalizeError(self._id, "entry is already finalized")
        if not self._saved:
            raise StorageFinalizeError(self._id, "entry was not saved")
        data = bytes(self._buffer)
        self._stored = _StoredObject(
            data=data,
            filename=self._filename,
            content_type=self._content_type,
            etag=f'"{hashlib.sha256(data).hexdigest()}"',
        )
        self._storage._publish(self._id, self._stored)
        self._buffer = bytearray()

    async def open_reader(self) -> _MemoryReadSource:
        if self._stored is None:
            raise StorageReadError(self._id, "entry is not finalized")
        return _MemoryReadSource(self._id, self._stored.data)

    async def discard(self) -> None:
        if self._stored is None:
            self._storage._release(self._id)
            self._buffer = bytearray()


class MemoryStorage:
    """In-memory storage for development and testing. Not shared across processes."""

    def __init__(self) -> None:
        self._objects: dict[str, _StoredObject] = {}
        self._reserved: set[str] = set()

    def _reserve(self, entry_id: str) -> None:
        if entry_id in self._reserved or entry_id in self._objects:
            raise StorageAllocationError(entry_id, "id already in use")
        self._reserved.add(entry_id)

    def _publish(self, entry_id: str, stored: _StoredObject) -> None:
        self._reserved.discard(entry_id)
        self._objects[entry_id] = stored

    def _release(self, entry_id: str) -> None:
        self._reserved.discard(entry_id)

    @property
    def entry_count(self) -> int:
        """Number of finalized entries."""
        return len(self._objects)

    def create_entry(self) -> MemoryEntry:
        return MemoryEntry(self, generate_cuid())

    async def load_entry(self, entry_id: str) -> MemoryEntry | None:
        stored = self._objects.get(entry_id)
        if stored is None:
            return None
        return MemoryEntry(self, entry_id, stored)

    async def close(self) -> None:
        self._reserved.clear()
