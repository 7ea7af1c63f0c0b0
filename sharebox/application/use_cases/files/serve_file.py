"""Download: resolve <id>.<ext> to a finalized entry and stream it back."""

from __future__ import annotations

from collections.abc import AsyncIterator

from sharebox.application.services.disposition import (
    build_content_disposition,
    decide_disposition,
)
from sharebox.application.services.naming import strip_extension
from sharebox.domain.exceptions import EntryNotFoundException, InternalErrorException
from sharebox.infrastructure.exceptions import StorageException, StorageReadError
from sharebox.infrastructure.external.storage.protocol import (
    ReadSource,
    StorageEntry,
    StorageProtocol,
)
from sharebox.shared.telemetry.logging import get_logger, report_fault
from sharebox.shared.telemetry.tracing import add_span_attributes, traced

logger = get_logger(__name__)


class FileDownloadService:
    """Lookup, conditional-GET and disposition policy for stored files."""

    def __init__(
        self,
        storage: StorageProtocol,
        *,
        buffer_size: int,
        whitelist: list[str],
    ) -> None:
        self.storage = storage
        self.buffer_size = buffer_size
        self.whitelist = whitelist

    @traced("files.find")
    async def find(self, file_key: str) -> StorageEntry:
        """Return the finalized entry addressed by file_key ("<id>.<ext>").

        Raises:
            InvalidIdException: file_key has no extension.
            EntryNotFoundException: No finalized entry with that id.
            InternalErrorException: Lookup failed.
        """
        entry_id = strip_extension(file_key)
        try:
            entry = await self.storage.load_entry(entry_id)
        except StorageException as e:
            raise InternalErrorException(
                f"Lookup failed: {e.message}", entry_id
            ) from e
        if entry is None:
            logger.debug("No finalized entry for %s", entry_id)
            raise EntryNotFoundException(entry_id)
        add_span_attributes(entry_id=entry_id)
        return entry

    @staticmethod
    def is_not_modified(entry: StorageEntry, if_none_match: str | None) -> bool:
        """Exact comparison against the stored ETag; a missing header never matches."""
        return if_none_match is not None and if_none_match == entry.etag

    def response_headers(self, entry: StorageEntry) -> dict[str, str]:
        disposition = decide_disposition(entry.content_type, self.whitelist)
        return {
            "Content-Disposition": build_content_disposition(
                disposition, entry.filename
            ),
            "Content-Type": entry.content_type,
            "ETag": entry.etag,
        }

    async def open(self, entry: StorageEntry) -> ReadSource:
        """Open a read source before the response starts, so failures are still a 500."""
        try:
            return await entry.open_reader()
        except StorageException as e:
            raise InternalErrorException(
                f"Could not open entry: {e.message}", entry.id
            ) from e

    async def stream(
        self, entry: StorageEntry, reader: ReadSource
    ) -> AsyncIterator[bytes]:
        """Yield chunks of at most buffer_size until the source reports end of data.

        A read failure is reported and re-raised; once headers are sent the
        server can only abort the connection. The reader is always closed.
        """
        try:
            while True:
                try:
                    chunk = await reader.read(self.buffer_size)
                except StorageReadError as e:
                    fault = InternalErrorException(
                        f"Read failed mid-stream: {e.message}", entry.id
                    )
                    fault.__cause__ = e
                    report_fault(logger, fault, entry_id=entry.id)
                    raise fault from e
                if not chunk:
                    break
                yield chunk
        finally:
            await reader.close()
