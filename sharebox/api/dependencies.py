"""Presentation-layer dependency injection (composition root).

Routes depend only on these providers. Settings, storage and the request
hook live on app.state, set by create_app() and the lifespan.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from starlette.datastructures import MutableHeaders

from sharebox.application.use_cases.files import FileDownloadService, FileUploadService
from sharebox.core.config import Settings, get_settings
from sharebox.domain.exceptions import InternalErrorException
from sharebox.infrastructure.external.storage import StorageFactory, StorageProtocol

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with (falls back to process settings)."""
    return getattr(request.app.state, "settings", None) or get_settings()


def resolve_storage(request: Request) -> StorageProtocol:
    """Return the app's storage backend, building it on first use.

    The lifespan normally builds it at startup; this covers servers and test
    transports that do not run lifespan events.
    """
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = StorageFactory.create_storage(get_app_settings(request))
        request.app.state.storage = storage
    return storage


def get_storage(request: Request) -> StorageProtocol:
    try:
        return resolve_storage(request)
    except Exception as e:
        raise InternalErrorException(f"Storage backend unavailable: {e}") from e


def apply_request_hook(request: Request) -> None:
    """Run the configured request hook before any handler logic.

    Headers the hook sets are kept on request.state and attached to whatever
    response the request ends with, errors included.
    """
    headers = MutableHeaders()
    request.state.response_headers = headers
    hook = getattr(request.app.state, "request_hook", None)
    if hook is not None:
        hook(request, headers)


def get_upload_service(
    request: Request,
    storage: StorageProtocol = Depends(get_storage),
) -> FileUploadService:
    settings = get_app_settings(request)
    return FileUploadService(
        storage,
        protocol_host=settings.protocol_host,
        buffer_size=settings.buffer_size,
    )


def get_download_service(
    request: Request,
    storage: StorageProtocol = Depends(get_storage),
) -> FileDownloadService:
    settings = get_app_settings(request)
    return FileDownloadService(
        storage,
        buffer_size=settings.buffer_size,
        whitelist=settings.content_type_whitelist,
    )
