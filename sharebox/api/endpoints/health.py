"""Health check endpoints for liveness and readiness checks."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sharebox.api.dependencies import get_app_settings, resolve_storage
from sharebox.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Storage backend unavailable", "model": ReadinessErrorResponse}},
)
async def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """Return 200 once the storage backend is built; 503 if it cannot be."""
    backend = get_app_settings(request).storage_backend.lower()
    try:
        resolve_storage(request)
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content=ReadinessErrorResponse(
                storage_backend=backend,
                message=f"Storage backend unavailable: {e}",
            ).model_dump(),
        )
    return ReadinessResponse(storage_backend=backend)
