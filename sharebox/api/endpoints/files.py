"""File endpoints: streaming upload and conditional download.

Paths are not fixed here; build_file_router() in sharebox.api.router binds
these handlers to the configured upload and get paths.
"""

from fastapi import Depends, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from sharebox.api.dependencies import get_download_service, get_upload_service
from sharebox.application.use_cases.files import FileDownloadService, FileUploadService
from sharebox.infrastructure.external.storage.protocol import ReadSource
from sharebox.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ReaderStreamingResponse(StreamingResponse):
    """StreamingResponse that owns the read source behind its body.

    The body generator only closes the reader once it has started. The
    response start can fail first (client gone before the first chunk), so
    the reader is closed here whichever way the response ends.
    """

    def __init__(self, content, reader: ReadSource, **kwargs) -> None:
        super().__init__(content, **kwargs)
        self.reader = reader

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.reader.close()


async def upload_file(
    request: Request,
    upload_svc: FileUploadService = Depends(get_upload_service),
) -> PlainTextResponse:
    """Store the uploaded file and return its URL as plain text."""
    uploaded = await upload_svc.upload(
        request.headers.get("content-type"), request.stream()
    )
    logger.info(
        "Stored %s (%s, %d bytes) as %s",
        uploaded.filename,
        uploaded.content_type,
        uploaded.size,
        uploaded.entry_id,
    )
    return PlainTextResponse(uploaded.url, headers=dict(request.state.response_headers))


async def download_file(
    file_key: str,
    request: Request,
    download_svc: FileDownloadService = Depends(get_download_service),
) -> Response:
    """Stream a stored file; 304 when If-None-Match matches its ETag."""
    entry = await download_svc.find(file_key)
    headers = dict(request.state.response_headers)
    if download_svc.is_not_modified(entry, request.headers.get("if-none-match")):
        headers["ETag"] = entry.etag
        logger.debug("Not modified: %s", entry.id)
        return Response(status_code=304, headers=headers)

    reader = await download_svc.open(entry)
    headers.update(download_svc.response_headers(entry))
    return ReaderStreamingResponse(
        download_svc.stream(entry, reader),
        reader,
        status_code=200,
        headers=headers,
    )
