"""S3-compatible object storage (AWS S3, MinIO, etc.).

The object is only PUT at update(), so an unfinalized entry never exists in
the bucket and cannot be resolved by load_entry().
"""

from __future__ import annotations

import asyncio
import hashlib
import tempfile
from typing import Any
from urllib.parse import quote, unquote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sharebox.infrastructure.exceptions import (
    StorageAllocationError,
    StorageFinalizeError,
    StorageLookupError,
    StorageReadError,
    StorageWriteError,
)
from sharebox.shared.utils.generators import generate_cuid, is_valid_entry_id

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _is_missing(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _MISSING_CODES


class _S3WriteSink:
    """Spools bytes to a temp file (memory up to SPOOL_MAX_SIZE, then disk)."""

    def __init__(self, entry: S3Entry) -> None:
        self._entry = entry
        self.closed = False

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise StorageWriteError(self._entry.id, "write sink is closed")
        try:
            await asyncio.to_thread(self._entry._spool.write, data)
        except OSError as e:
            raise StorageWriteError(self._entry.id, str(e)) from e
        self._entry._digest.update(data)
        self._entry._size += len(data)

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> _S3WriteSink:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class _S3ReadSource:
    """Reads a botocore StreamingBody in caller-sized chunks."""

    def __init__(self, entry_id: str, body: Any) -> None:
        self._entry_id = entry_id
        self._body = body
        self.closed = False

    async def read(self, size: int) -> bytes:
        if self.closed:
            raise StorageReadError(self._entry_id, "read source is closed")
        try:
            return await asyncio.to_thread(self._body.read, size)
        except (BotoCoreError, OSError) as e:
            raise StorageReadError(self._entry_id, str(e)) from e

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await asyncio.to_thread(self._body.close)

    async def __aenter__(self) -> _S3ReadSource:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class S3Entry:
    """Entry stored as one object keyed by its id; metadata in object headers."""

    SPOOL_MAX_SIZE = 8 * 1024 * 1024  # 8MB

    def __init__(
        self,
        storage: S3Storage,
        entry_id: str,
        *,
        filename: str = "",
        content_type: str = "",
        etag: str = "",
        finalized: bool = False,
    ) -> None:
        self._storage = storage
        self._id = entry_id
        self._filename = filename
        self._content_type = content_type
        self._etag = etag
        self._finalized = finalized
        self._saved = finalized
        self._digest = hashlib.sha256()
        self._size = 0
        self._spool: Any = None
        self._writer: _S3WriteSink | None = None

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

    def set_filename(self, filename: str) -> None:
        if self._finalized:
            raise StorageWriteError(self._id, "entry is finalized")
        self._filename = filename

    def set_content_type(self, content_type: str) -> None:
        if self._finalized:
            raise StorageWriteError(self._id, "entry is finalized")
        self._content_type = content_type

    async def save(self) -> None:
        """Check the key is free. Nothing is written to the bucket yet."""
        client = self._storage._client
        bucket = self._storage.bucket

        def _check_free() -> None:
            try:
                client.head_object(Bucket=bucket, Key=self._id)
            except ClientError as e:
                if _is_missing(e):
                    return
                raise StorageAllocationError(self._id, str(e)) from e
            raise StorageAllocationError(self._id, "id already in use")

        try:
            await asyncio.to_thread(_check_free)
        except StorageAllocationError:
            raise
        except Exception as e:
            raise StorageAllocationError(self._id, str(e)) from e
        self._saved = True

    async def open_writer(self) -> _S3WriteSink:
        if not self._saved or self._finalized or self._writer is not None:
            raise StorageWriteError(self._id, "entry is not writable")
        try:
            self._spool = tempfile.SpooledTemporaryFile(max_size=self.SPOOL_MAX_SIZE)
        except OSError as e:
            raise StorageWriteError(self._id, str(e)) from e
        self._writer = _S3WriteSink(self)
        return self._writer

    async def update(self) -> None:
        if self._finalized:
            raise StorageFinalizeError(self._id, "entry is already finalized")
        if not self._saved:
            raise StorageFinalizeError(self._id, "entry was not saved")
        client = self._storage._client
        bucket = self._storage.bucket
        checksum = self._digest.hexdigest()
        spool = self._spool if self._spool is not None else tempfile.SpooledTemporaryFile()

        def _upload() -> None:
            spool.seek(0)
            client.upload_fileobj(
                Fileobj=spool,
                Bucket=bucket,
                Key=self._id,
                ExtraArgs={
                    "ContentType": self._content_type,
                    "ServerSideEncryption": "AES256",
                    "Metadata": {
                        "filename": quote(self._filename),
                        "sha256": checksum,
                    },
                },
            )

        try:
            await asyncio.to_thread(_upload)
        except Exception as e:
            raise StorageFinalizeError(self._id, str(e)) from e
        finally:
            spool.close()
            self._spool = None
        self._etag = f'"{checksum}"'
        self._finalized = True

    async def open_reader(self) -> _S3ReadSource:
        if not self._finalized:
            raise StorageReadError(self._id, "entry is not finalized")
        client = self._storage._client
        bucket = self._storage.bucket

        def _get() -> Any:
            return client.get_object(Bucket=bucket, Key=self._id)["Body"]

        try:
            body = await asyncio.to_thread(_get)
        except Exception as e:
            raise StorageReadError(self._id, str(e)) from e
        return _S3ReadSource(self._id, body)

    async def discard(self) -> None:
        if self._spool is not None:
            self._spool.close()
            self._spool = None


class S3Storage:
    """S3-compatible storage with server-side encryption.

    Uses boto3 (sync) via asyncio.to_thread for the async API. Compatible with
    AWS S3, MinIO, DigitalOcean Spaces.
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
    ) -> None:
        """Initialize S3 client.

        Args:
            bucket: Bucket name.
            region: AWS region.
            endpoint_url: Custom endpoint (MinIO/Spaces).
            access_key: Optional; uses env/IAM if not set.
            secret_key: Optional.
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
        self._client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            **extra,
        )

    def create_entry(self) -> S3Entry:
        return S3Entry(self, generate_cuid())

    async def load_entry(self, entry_id: str) -> S3Entry | None:
        """HEAD the object; a missing key means the entry was never finalized."""
        if not is_valid_entry_id(entry_id):
            return None

        def _head() -> dict[str, Any] | None:
            try:
                return self._client.head_object(Bucket=self.bucket, Key=entry_id)
            except ClientError as e:
                if _is_missing(e):
                    return None
                raise

        try:
            head = await asyncio.to_thread(_head)
        except Exception as e:
            raise StorageLookupError(entry_id, str(e)) from e
        if head is None:
            return None
        meta = head.get("Metadata") or {}
        checksum = meta.get("sha256")
        return S3Entry(
            self,
            entry_id,
            filename=unquote(meta.get("filename", "")),
            content_type=head.get("ContentType", "application/octet-stream"),
            etag=f'"{checksum}"' if checksum else head.get("ETag", ""),
            finalized=True,
        )

    async def close(self) -> None:
        await asyncio.to_thread(self._client.close)
