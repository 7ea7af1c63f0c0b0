"""Local filesystem storage with path validation and atomic finalization."""

from __future__ import annotations

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from sharebox.infrastructure.exceptions import (
    StorageAllocationError,
    StorageFinalizeError,
    StorageLookupError,
    StoragePermissionError,
    StorageReadError,
    StorageWriteError,
)
from sharebox.shared.utils.generators import generate_cuid, is_valid_entry_id

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".tmp_"
META_SUFFIX = ".meta.json"


class _LocalWriteSink:
    """Writes into the entry's staging file and feeds the entry's digest."""

    def __init__(self, entry: LocalEntry, handle: Any) -> None:
        self._entry = entry
        self._file = handle
        self.closed = False

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise StorageWriteError(self._entry.id, "write sink is closed")
        try:
            await self._file.write(data)
        except OSError as e:
            raise StorageWriteError(self._entry.id, str(e)) from e
        self._entry._record_written(data)

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self._file.close()
        except OSError as e:
            raise StorageWriteError(self._entry.id, str(e)) from e

    async def __aenter__(self) -> _LocalWriteSink:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class _LocalReadSource:
    """Reads a finalized data file."""

    def __init__(self, entry_id: str, handle: Any) -> None:
        self._entry_id = entry_id
        self._file = handle
        self.closed = False

    async def read(self, size: int) -> bytes:
        if self.closed:
            raise StorageReadError(self._entry_id, "read source is closed")
        try:
            return await self._file.read(size)
        except OSError as e:
            raise StorageReadError(self._entry_id, str(e)) from e

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._file.close()

    async def __aenter__(self) -> _LocalReadSource:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class LocalEntry:
    """Entry stored as <root>/<id> plus a <root>/<id>.meta.json sidecar.

    Until update() the bytes live in <root>/.tmp_<id> and no sidecar exists,
    so load_entry() cannot see the entry.
    """

    def __init__(
        self,
        storage: LocalStorage,
        entry_id: str,
        *,
        filename: str = "",
        content_type: str = "",
        etag: str = "",
        size: int = 0,
        finalized: bool = False,
    ) -> None:
        self._storage = storage
        self._id = entry_id
        self._filename = filename
        self._content_type = content_type
        self._etag = etag
        self._size = size
        self._finalized = finalized
        self._saved = finalized
        self._digest = hashlib.sha256()
        self._writer: _LocalWriteSink | None = None

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
        return self._etag

    @property
    def size(self) -> int:
        return self._size

    def set_filename(self, filename: str) -> None:
        if self._finalized:
            raise StorageWriteError(self._id, "entry is finalized")
        self._filename = filename

    def set_content_type(self, content_type: str) -> None:
        if self._finalized:
            raise StorageWriteError(self._id, "entry is finalized")
        self._content_type = content_type

    def _record_written(self, data: bytes) -> None:
        self._digest.update(data)
        self._size += len(data)

    async def save(self) -> None:
        """Reserve the id by creating an empty staging file (exclusive create)."""
        staging = self._storage._staging_path(self._id)
        try:
            if await aiofiles.os.path.exists(self._storage._get_full_path(self._id)):
                raise StorageAllocationError(self._id, "id already in use")
            async with aiofiles.open(staging, "xb"):
                pass
            os.chmod(staging, 0o640)
        except FileExistsError as e:
            raise StorageAllocationError(self._id, "id already reserved") from e
        except OSError as e:
            raise StorageAllocationError(self._id, str(e)) from e
        self._saved = True

    async def open_writer(self) -> _LocalWriteSink:
        if not self._saved:
            raise StorageWriteError(self._id, "entry was not saved")
        if self._finalized or self._writer is not None:
            raise StorageWriteError(self._id, "entry is not writable")
        try:
            handle = await aiofiles.open(self._storage._staging_path(self._id), "wb")
        except OSError as e:
            raise StorageWriteError(self._id, str(e)) from e
        self._writer = _LocalWriteSink(self, handle)
        return self._writer

    async def update(self) -> None:
        """Move staged bytes into place, then publish the sidecar.

        If the sidecar cannot be written the data file goes back to its
        staging name, so discard() still removes it.
        """
        if self._finalized:
            raise StorageFinalizeError(self._id, "entry is already finalized")
        if not self._saved:
            raise StorageFinalizeError(self._id, "entry was not saved")
        staging = self._storage._staging_path(self._id)
        data_path = self._storage._get_full_path(self._id)
        moved = False
        try:
            if self._writer is not None:
                await self._writer.close()
            etag = f'"{self._digest.hexdigest()}"'
            await aiofiles.os.rename(staging, data_path)
            moved = True
            await self._storage._write_metadata(
                data_path,
                {
                    "id": self._id,
                    "filename": self._filename,
                    "content_type": self._content_type,
                    "sha256": self._digest.hexdigest(),
                    "etag": etag,
                    "size": self._size,
                },
            )
        except (OSError, StorageWriteError) as e:
            if moved:
                await self._unpublish(data_path, staging)
            raise StorageFinalizeError(self._id, str(e)) from e
        self._etag = etag
        self._finalized = True

    async def _unpublish(self, data_path: Path, staging: Path) -> None:
        try:
            await aiofiles.os.rename(data_path, staging)
        except OSError as e:
            logger.warning("Could not roll back data file for %s: %s", self._id, e)

    async def open_reader(self) -> _LocalReadSource:
        if not self._finalized:
            raise StorageReadError(self._id, "entry is not finalized")
        try:
            handle = await aiofiles.open(self._storage._get_full_path(self._id), "rb")
        except OSError as e:
            raise StorageReadError(self._id, str(e)) from e
        return _LocalReadSource(self._id, handle)

    async def discard(self) -> None:
        if self._finalized:
            return
        try:
            if self._writer is not None:
                await self._writer.close()
            await aiofiles.os.remove(self._storage._staging_path(self._id))
        except FileNotFoundError:
            pass
        except (OSError, StorageWriteError) as e:
            logger.warning("Could not discard staged entry %s: %s", self._id, e)


class LocalStorage:
    """Local filesystem storage with atomic finalization and path traversal protection.

    Paths are validated against storage_root. The sidecar is written to a
    temp file and renamed into place, so readers never see a half-written one.
    """

    def __init__(self, storage_root: str) -> None:
        """Initialize local storage.

        Args:
            storage_root: Base directory for all entries (created if missing).
        """
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, entry_id: str) -> Path:
        """Resolve and validate path under storage_root. Raises StoragePermissionError if traversal."""
        full_path = (self.storage_root / entry_id).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(entry_id, "path_validation") from e
        return full_path

    def _staging_path(self, entry_id: str) -> Path:
        return self._get_full_path(STAGING_PREFIX + entry_id)

    @staticmethod
    def _meta_path(data_path: Path) -> Path:
        return data_path.with_name(data_path.name + META_SUFFIX)

    async def _write_metadata(self, data_path: Path, metadata: dict[str, Any]) -> None:
        """Write JSON sidecar via temp file + rename."""
        meta_path = self._meta_path(data_path)
        tmp_path = meta_path.with_name(STAGING_PREFIX + meta_path.name)
        try:
            async with aiofiles.open(tmp_path, "w") as f:
                await f.write(json.dumps(metadata, indent=2))
            os.chmod(tmp_path, 0o640)
            await aiofiles.os.replace(tmp_path, meta_path)
        except OSError:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise

    async def _read_metadata(self, meta_path: Path) -> dict[str, Any]:
        async with aiofiles.open(meta_path, "r") as f:
            result = json.loads(await f.read())
        if not isinstance(result, dict):
            raise ValueError("metadata sidecar is not a JSON object")
        return result

    def create_entry(self) -> LocalEntry:
        return LocalEntry(self, generate_cuid())

    async def load_entry(self, entry_id: str) -> LocalEntry | None:
        """Return the finalized entry, or None when unknown or never finalized."""
        if not is_valid_entry_id(entry_id):
            return None
        try:
            meta_path = self._meta_path(self._get_full_path(entry_id))
            if not await aiofiles.os.path.exists(meta_path):
                return None
            meta = await self._read_metadata(meta_path)
            return LocalEntry(
                self,
                entry_id,
                filename=meta["filename"],
                content_type=meta["content_type"],
                etag=meta["etag"],
                size=int(meta.get("size", 0)),
                finalized=True,
            )
        except (OSError, ValueError, KeyError) as e:
            raise StorageLookupError(entry_id, str(e)) from e

    async def close(self) -> None:
        return None
