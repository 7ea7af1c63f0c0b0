"""Unit tests for FileUploadService: streaming copy, metadata, failure cleanup."""

from collections.abc import AsyncIterator

import pytest

from sharebox.application.use_cases.files import FileUploadService
from sharebox.domain.exceptions import (
    BadRequestException,
    InternalErrorException,
    InvalidFilenameException,
)
from sharebox.infrastructure.exceptions import (
    StorageAllocationError,
    StorageFinalizeError,
    StorageWriteError,
)
from sharebox.infrastructure.external.storage.memory_storage import (
    MemoryEntry,
    MemoryStorage,
)

CONTENT_TYPE = "multipart/form-data; boundary=xyz"


def _body(*parts: tuple[str, str, bytes]) -> bytes:
    out = b""
    for filename, content_type, data in parts:
        out += (
            b"--xyz\r\n"
            + f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'.encode()
            + f"Content-Type: {content_type}\r\n\r\n".encode()
            + data
            + b"\r\n"
        )
    return out + b"--xyz--\r\n"


async def _stream(data: bytes, chunk_size: int = 100) -> AsyncIterator[bytes]:
    for i in range(0, len(data), chunk_size):
        yield data[i : i + chunk_size]


class _RecordingEntry(MemoryEntry):
    """Memory entry that records the size of every write."""

    writes: list[int]

    async def open_writer(self):
        writer = await super().open_writer()
        self.writes = []
        original = writer.write

        async def write(data: bytes) -> None:
            self.writes.append(len(data))
            await original(data)

        writer.write = write
        return writer


class _RecordingStorage(MemoryStorage):
    def __init__(self) -> None:
        super().__init__()
        self.created: list[_RecordingEntry] = []

    def create_entry(self) -> _RecordingEntry:
        entry = _RecordingEntry(self, f"c{len(self.created):024d}")
        self.created.append(entry)
        return entry


class _FailingEntry(MemoryEntry):
    fail_on = ""
    discarded = False

    async def save(self) -> None:
        if self.fail_on == "save":
            raise StorageAllocationError(self.id, "no space")
        await super().save()

    async def update(self) -> None:
        if self.fail_on == "update":
            raise StorageFinalizeError(self.id, "rename failed")
        await super().update()

    async def open_writer(self):
        if self.fail_on == "writer":
            raise StorageWriteError(self.id, "read-only")
        return await super().open_writer()

    async def discard(self) -> None:
        self.discarded = True
        await super().discard()


class _FailingStorage(MemoryStorage):
    def __init__(self, fail_on: str) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.last: _FailingEntry | None = None

    def create_entry(self) -> _FailingEntry:
        entry = _FailingEntry(self, "cfailing000000000000000000")
        entry.fail_on = self.fail_on
        self.last = entry
        return entry


def _service(storage: MemoryStorage, buffer_size: int = 16) -> FileUploadService:
    return FileUploadService(
        storage, protocol_host="https://x.test/get/", buffer_size=buffer_size
    )


async def test_upload_stores_bytes_and_metadata() -> None:
    storage = MemoryStorage()
    result = await _service(storage).upload(
        CONTENT_TYPE, _stream(_body(("photo.png", "image/png", b"pixels")))
    )
    assert result.url == f"https://x.test/get/{result.entry_id}.png"
    assert result.size == 6

    entry = await storage.load_entry(result.entry_id)
    assert entry is not None
    assert entry.filename == "photo.png"
    assert entry.content_type == "image/png"
    async with await entry.open_reader() as reader:
        assert await reader.read(100) == b"pixels"


async def test_writes_never_exceed_buffer_size() -> None:
    storage = _RecordingStorage()
    data = bytes(range(256)) * 4
    await _service(storage, buffer_size=16).upload(
        CONTENT_TYPE, _stream(_body(("a.bin", "application/octet-stream", data)), 333)
    )
    writes = storage.created[0].writes
    assert max(writes) <= 16
    assert sum(writes) == len(data)


async def test_later_parts_append_without_changing_metadata() -> None:
    storage = MemoryStorage()
    result = await _service(storage).upload(
        CONTENT_TYPE,
        _stream(
            _body(
                ("first.txt", "text/plain", b"one,"),
                ("second.csv", "text/csv", b"two"),
            )
        ),
    )
    entry = await storage.load_entry(result.entry_id)
    assert entry is not None
    assert entry.filename == "first.txt"
    assert entry.content_type == "text/plain"
    async with await entry.open_reader() as reader:
        assert await reader.read(100) == b"one,two"
    assert result.url.endswith(".txt")


async def test_bad_content_type_creates_no_entry() -> None:
    storage = _RecordingStorage()
    with pytest.raises(BadRequestException):
        await _service(storage).upload("text/plain", _stream(b""))
    assert storage.created == []


async def test_filename_without_extension_is_discarded() -> None:
    storage = _FailingStorage(fail_on="")
    with pytest.raises(InvalidFilenameException):
        await _service(storage).upload(
            CONTENT_TYPE, _stream(_body(("README", "text/plain", b"x")))
        )
    assert storage.last is not None and storage.last.discarded
    assert storage.entry_count == 0


async def test_truncated_body_is_internal_error_and_discarded() -> None:
    storage = _FailingStorage(fail_on="")
    body = _body(("a.txt", "text/plain", b"data"))[:-20]
    with pytest.raises(InternalErrorException) as exc_info:
        await _service(storage).upload(CONTENT_TYPE, _stream(body))
    assert exc_info.value.details == {"entry_id": storage.last.id}
    assert storage.last.discarded
    assert storage.entry_count == 0


async def test_empty_body_is_internal_error() -> None:
    storage = _FailingStorage(fail_on="")
    with pytest.raises(InternalErrorException):
        await _service(storage).upload(CONTENT_TYPE, _stream(b""))
    assert storage.entry_count == 0


@pytest.mark.parametrize("fail_on", ["save", "writer", "update"])
async def test_storage_failures_are_internal_errors(fail_on: str) -> None:
    storage = _FailingStorage(fail_on=fail_on)
    with pytest.raises(InternalErrorException) as exc_info:
        await _service(storage).upload(
            CONTENT_TYPE, _stream(_body(("a.txt", "text/plain", b"x")))
        )
    assert exc_info.value.__cause__ is not None
    assert storage.entry_count == 0
    assert storage.last.discarded is (fail_on != "save")
