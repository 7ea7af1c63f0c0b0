"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
No business logic here. See sharebox.core.lifespan and
sharebox.core.exception_handlers.

Settings are resolved inside create_app() and storage is built by the
lifespan, so importing this module never touches the filesystem.
"""

from fastapi import FastAPI

from sharebox.api import build_api_router
from sharebox.core.config import Settings, get_settings
from sharebox.core.exception_handlers import register_exception_handlers
from sharebox.core.hooks import RequestHook, cors_hook
from sharebox.core.lifespan import create_lifespan
from sharebox.infrastructure.external.storage import StorageProtocol
from sharebox.middleware import (
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)


def create_app(
    settings: Settings | None = None,
    storage: StorageProtocol | None = None,
    request_hook: RequestHook | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        settings: Settings to use; defaults to get_settings().
        storage: Storage backend; when None the lifespan builds one from settings.
        request_hook: Hook run before the file handlers. When None and
            allowed_origins is set, the CORS hook is installed.
    """
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage
    if request_hook is None and settings.allowed_origin_list:
        request_hook = cors_hook(settings.allowed_origin_list)
    app.state.request_hook = request_hook

    register_exception_handlers(app)

    # Last added = outermost: size limit -> request ID -> security headers -> app.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_upload_size)

    app.include_router(build_api_router(settings))
    return app


app = create_app()
