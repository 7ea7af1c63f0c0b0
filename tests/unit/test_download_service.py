"""Unit tests for FileDownloadService: lookup, conditional GET, streaming."""

import logging

import pytest

from sharebox.application.use_cases.files import FileDownloadService
from sharebox.domain.exceptions import (
    EntryNotFoundException,
    InternalErrorException,
    InvalidIdException,
)
from sharebox.infrastructure.exceptions import StorageLookupError, StorageReadError
from sharebox.infrastructure.external.storage.memory_storage import MemoryStorage


async def _store(storage: MemoryStorage, data: bytes, content_type: str = "image/png") -> str:
    entry = storage.create_entry()
    await entry.save()
    entry.set_filename("photo.png")
    entry.set_content_type(content_type)
    async with await entry.open_writer() as writer:
        await writer.write(data)
    await entry.update()
    return entry.id


def _service(storage, buffer_size: int = 4) -> FileDownloadService:
    return FileDownloadService(
        storage, buffer_size=buffer_size, whitelist=["image/png"]
    )


class _BrokenLookupStorage(MemoryStorage):
    async def load_entry(self, entry_id: str):
        raise StorageLookupError(entry_id, "EIO")


class _FlakyReader:
    """Returns one chunk, then fails."""

    def __init__(self) -> None:
        self.calls = 0
        self.closed = False

    async def read(self, size: int) -> bytes:
        self.calls += 1
        if self.calls == 1:
            return b"abcd"[:size]
        raise StorageReadError("cflaky", "disk went away")

    async def close(self) -> None:
        self.closed = True


async def test_find_strips_extension() -> None:
    storage = MemoryStorage()
    entry_id = await _store(storage, b"x")
    entry = await _service(storage).find(f"{entry_id}.png")
    assert entry.id == entry_id


async def test_find_ignores_requested_extension() -> None:
    """The extension only addresses the entry; it is not checked against the file."""
    storage = MemoryStorage()
    entry_id = await _store(storage, b"x")
    entry = await _service(storage).find(f"{entry_id}.exe")
    assert entry.filename == "photo.png"


async def test_find_unknown_is_not_found() -> None:
    with pytest.raises(EntryNotFoundException):
        await _service(MemoryStorage()).find("cunknown00000000000000000.png")


async def test_find_without_dot_is_invalid_id() -> None:
    with pytest.raises(InvalidIdException):
        await _service(MemoryStorage()).find("cnodot")


async def test_lookup_error_is_internal_error() -> None:
    with pytest.raises(InternalErrorException) as exc_info:
        await _service(_BrokenLookupStorage()).find("cabc000000000000000000000.png")
    assert isinstance(exc_info.value.__cause__, StorageLookupError)


async def test_is_not_modified() -> None:
    storage = MemoryStorage()
    entry = await _service(storage).find(f"{await _store(storage, b'x')}.png")
    assert FileDownloadService.is_not_modified(entry, entry.etag)
    assert not FileDownloadService.is_not_modified(entry, None)
    assert not FileDownloadService.is_not_modified(entry, entry.etag.strip('"'))
    assert not FileDownloadService.is_not_modified(entry, "W/" + entry.etag)


async def test_response_headers() -> None:
    storage = MemoryStorage()
    svc = _service(storage)
    inline = await svc.find(f"{await _store(storage, b'x', 'IMAGE/PNG')}.png")
    attachment = await svc.find(f"{await _store(storage, b'x', 'text/html')}.png")

    headers = svc.response_headers(inline)
    assert headers["Content-Disposition"] == 'inline; filename="photo.png"'
    assert headers["Content-Type"] == "IMAGE/PNG"
    assert headers["ETag"] == inline.etag
    assert (
        svc.response_headers(attachment)["Content-Disposition"]
        == 'attachment; filename="photo.png"'
    )


async def test_stream_yields_buffer_sized_chunks_and_closes() -> None:
    storage = MemoryStorage()
    svc = _service(storage, buffer_size=4)
    entry = await svc.find(f"{await _store(storage, b'0123456789')}.png")
    reader = await svc.open(entry)
    chunks = [chunk async for chunk in svc.stream(entry, reader)]
    assert chunks == [b"0123", b"4567", b"89"]
    assert reader.closed


async def test_stream_read_failure_is_reported_and_raised(
    caplog: pytest.LogCaptureFixture,
) -> None:
    storage = MemoryStorage()
    svc = _service(storage)
    entry = await svc.find(f"{await _store(storage, b'x')}.png")
    reader = _FlakyReader()

    received: list[bytes] = []
    with caplog.at_level(logging.ERROR):
        with pytest.raises(InternalErrorException):
            async for chunk in svc.stream(entry, reader):
                received.append(chunk)

    assert received == [b"abcd"]
    assert reader.closed
    assert any("Internal fault" in r.getMessage() for r in caplog.records)
