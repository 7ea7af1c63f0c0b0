"""Upload: stream one multipart file part into a new storage entry."""

from __future__ import annotations

from collections.abc import AsyncIterable
from dataclasses import dataclass

from sharebox.application.services.naming import build_file_url, split_extension
from sharebox.domain.exceptions import BadRequestException, InternalErrorException
from sharebox.infrastructure.exceptions import StorageException
from sharebox.infrastructure.external.storage.protocol import (
    StorageEntry,
    StorageProtocol,
    WriteSink,
)
from sharebox.infrastructure.multipart import (
    InvalidContentTypeError,
    MultipartError,
    MultipartPart,
    MultipartReader,
    parse_boundary,
)
from sharebox.shared.telemetry.logging import get_logger
from sharebox.shared.telemetry.tracing import add_span_attributes, traced

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    """Result of a successful upload."""

    entry_id: str
    filename: str
    content_type: str
    size: int
    url: str


class FileUploadService:
    """Single responsibility: turn a multipart request body into one finalized entry.

    The entry only becomes resolvable once update() succeeds. Every failure
    after allocation discards the entry, so no partial upload is ever served.
    """

    def __init__(
        self,
        storage: StorageProtocol,
        *,
        protocol_host: str,
        buffer_size: int,
    ) -> None:
        self.storage = storage
        self.protocol_host = protocol_host
        self.buffer_size = buffer_size

    @traced("files.upload")
    async def upload(
        self, content_type: str | None, body: AsyncIterable[bytes]
    ) -> UploadedFile:
        """Store the first file part of body and return its retrieval URL.

        Args:
            content_type: The request's Content-Type header value.
            body: The raw request body as an async byte stream.

        Raises:
            BadRequestException: Content-Type is not multipart or has no boundary.
            InvalidFilenameException: The part's filename has no extension.
            InternalErrorException: Storage or multipart stream failure.
        """
        try:
            boundary = parse_boundary(content_type)
        except InvalidContentTypeError as e:
            raise BadRequestException(str(e)) from e

        entry = self.storage.create_entry()
        try:
            await entry.save()
        except StorageException as e:
            raise InternalErrorException(
                f"Could not allocate entry: {e.message}", entry.id
            ) from e

        reader = MultipartReader(body, boundary)
        try:
            size = await self._receive(entry, reader)
            await entry.update()
        except (StorageException, MultipartError) as e:
            await entry.discard()
            raise InternalErrorException(f"Upload failed: {e}", entry.id) from e
        except Exception:
            await entry.discard()
            raise

        add_span_attributes(entry_id=entry.id, size=size)
        return UploadedFile(
            entry_id=entry.id,
            filename=entry.filename,
            content_type=entry.content_type,
            size=size,
            url=build_file_url(self.protocol_host, entry.id, entry.filename),
        )

    async def _receive(
        self, entry: StorageEntry, reader: MultipartReader
    ) -> int:
        """Copy every part into the entry's sink; metadata comes from the first.

        The sink is closed on every exit path before this returns.
        """
        async with await entry.open_writer() as writer:
            part = await reader.next_part()
            if part is None:
                raise MultipartError("multipart body contains no parts")
            filename = part.filename or ""
            split_extension(filename)  # reject before any bytes are stored
            entry.set_content_type(part.content_type)
            entry.set_filename(filename)

            size = await self._copy(part, writer)
            while (part := await reader.next_part()) is not None:
                logger.debug("Draining extra part %r into entry %s", part.name, entry.id)
                size += await self._copy(part, writer)
        return size

    async def _copy(self, part: MultipartPart, writer: WriteSink) -> int:
        """Write the part's bytes in chunks of at most buffer_size."""
        buffer = bytearray()
        written = 0
        async for chunk in part.iter_chunks():
            buffer += chunk
            while len(buffer) >= self.buffer_size:
                await writer.write(bytes(buffer[: self.buffer_size]))
                written += self.buffer_size
                del buffer[: self.buffer_size]
        if buffer:
            await writer.write(bytes(buffer))
            written += len(buffer)
        return written
