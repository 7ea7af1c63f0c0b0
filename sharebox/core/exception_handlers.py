"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to JSON error responses. Headers set by the request hook are
carried over, so CORS applies to errors too.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sharebox.core.config import get_settings
from sharebox.domain.exceptions import ShareboxException
from sharebox.middleware.request_size_limit import BODY_LIMIT_STATE_KEY
from sharebox.shared.telemetry.logging import report_fault

logger = logging.getLogger(__name__)

_GENERIC_INTERNAL_MESSAGE = "Internal server error"


def _hook_headers(request: Request) -> dict[str, str]:
    headers = getattr(request.state, "response_headers", None)
    return dict(headers) if headers is not None else {}


async def _sharebox_exception_handler(
    request: Request, exc: ShareboxException
) -> JSONResponse:
    """Return JSON from ShareboxException.to_dict(); internal errors are reported and masked.

    Errors without a client status (storage errors included) answer 500 with
    the generic body, so backend reasons never reach the client.
    """
    status = exc.status_code
    if status >= 500:
        if getattr(request.state, BODY_LIMIT_STATE_KEY, False):
            # The client already got a 413; the abandoned upload is not a fault.
            logger.info("Upload cut off at the body size limit: %s", exc)
        else:
            report_fault(logger, exc, path=request.url.path, **exc.details)
        content: dict[str, Any] = {
            "error": "INTERNAL_ERROR",
            "message": _GENERIC_INTERNAL_MESSAGE,
            "details": {},
        }
    else:
        content = exc.to_dict()
    return JSONResponse(
        status_code=status, content=content, headers=_hook_headers(request)
    )


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
        headers=_hook_headers(request),
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    headers = _hook_headers(request)
    if exc.headers:
        headers.update(exc.headers)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail, "details": {}},
        headers=headers,
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    report_fault(logger, exc, path=request.url.path)
    settings = getattr(request.app.state, "settings", None) or get_settings()
    detail: Any = str(exc) if settings.debug else _GENERIC_INTERNAL_MESSAGE
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": detail, "details": {}},
        headers=_hook_headers(request),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Handlers: ShareboxException (and subclasses), RequestValidationError,
    StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(ShareboxException, _sharebox_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
