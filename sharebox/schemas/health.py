"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class ReadinessResponse(BaseModel):
    """Response for GET /health/ready when ready."""

    status: str = Field(default="ok", description="Readiness status")
    storage_backend: str = Field(..., description="Configured storage backend")


class ReadinessErrorResponse(BaseModel):
    """Response for GET /health/ready when the storage backend cannot be built (503)."""

    status: str = Field(default="not_ready", description="Readiness status")
    storage_backend: str = Field(..., description="Configured storage backend")
    message: str = Field(..., description="Reason the backend is unavailable")
