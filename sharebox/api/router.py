"""Router assembly.

File routes take their paths from settings, so the router is built per app
rather than declared at import time.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from sharebox.api.dependencies import apply_request_hook
from sharebox.api.endpoints import files, health
from sharebox.core.config import Settings


def build_file_router(settings: Settings) -> APIRouter:
    """Upload and download routes under settings.mount_path."""
    router = APIRouter(
        prefix=settings.mount_path,
        tags=["files"],
        dependencies=[Depends(apply_request_hook)],
    )
    router.add_api_route(
        settings.upload_path,
        files.upload_file,
        methods=["POST"],
        response_class=PlainTextResponse,
        summary="Upload a file",
    )
    router.add_api_route(
        f"{settings.get_path}/{{file_key}}",
        files.download_file,
        methods=["GET"],
        summary="Download a file",
        responses={304: {"description": "Not modified"}},
    )
    return router


def build_api_router(settings: Settings) -> APIRouter:
    api_router = APIRouter()
    api_router.include_router(health.router, prefix="/health", tags=["health"])
    api_router.include_router(build_file_router(settings))
    return api_router
