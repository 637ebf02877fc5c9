"""Pydantic request/response schemas for the API."""

from app.schemas.cache import (
    CacheVersionResponse,
    CleanupResponse,
    InvalidationResponse,
    StaffRefreshResponse,
    VersionBumpResponse,
)
from app.schemas.health import HealthResponse, ReadinessErrorResponse, ReadinessResponse
from app.schemas.user import (
    CacheClearResponse,
    RoleChangeHistoryItem,
    RoleChangeSweepResponse,
    RoleHistoryResponse,
    StateChangeResponse,
    UserContextResponse,
)

__all__ = [
    "CacheClearResponse",
    "CacheVersionResponse",
    "CleanupResponse",
    "HealthResponse",
    "InvalidationResponse",
    "ReadinessErrorResponse",
    "ReadinessResponse",
    "RoleChangeHistoryItem",
    "RoleChangeSweepResponse",
    "RoleHistoryResponse",
    "StaffRefreshResponse",
    "StateChangeResponse",
    "UserContextResponse",
    "VersionBumpResponse",
]
