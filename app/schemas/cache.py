"""Cache administration API schemas."""

from pydantic import BaseModel, Field


class CacheVersionResponse(BaseModel):
    """Response for GET /cache/version."""

    version: str = Field(..., description="Master cache version token")


class VersionBumpResponse(BaseModel):
    """Response for POST /cache/version/bump and POST /cache/force-clean."""

    bumped: bool = Field(..., description="True if the new version was persisted")
    version: str = Field(..., description="Master cache version after the call")


class InvalidationResponse(BaseModel):
    """Response for POST /cache/invalidate/{source}."""

    source: str
    dependents: list[str] = Field(default_factory=list, description="Patterns invalidated (one hop)")


class CleanupResponse(BaseModel):
    """Response for POST /cache/cleanup."""

    cleaned: int = Field(..., description="Snapshot/history properties deleted or rewritten")


class StaffRefreshResponse(BaseModel):
    """Response for POST /sources/staff/refresh."""

    user_count: int = Field(..., description="Valid staff rows after the re-read")
