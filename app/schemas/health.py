"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class ReadinessResponse(BaseModel):
    """Response for GET /health/ready when ready."""

    status: str = Field(default="ok", description="Readiness status")
    kv_store: str = Field(..., description="KV store backend in use")
    property_store: str = Field(..., description="Property store backend in use")


class ReadinessErrorResponse(BaseModel):
    """Response for GET /health/ready when a store does not respond (503)."""

    status: str = Field(default="not_ready", description="Readiness status")
    message: str = Field(..., description="Reason (e.g. store unavailable)")
