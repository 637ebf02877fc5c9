"""User context and role history API schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StateChangeResponse(BaseModel):
    """One field-level delta since the previous context build."""

    model_config = ConfigDict(from_attributes=True)

    field: str
    old_value: Any = None
    new_value: Any = None


class UserContextResponse(BaseModel):
    """Response for GET /users/{email}/context."""

    model_config = ConfigDict(from_attributes=True)

    email: str
    name: str
    role: str
    year: int
    session_id: str
    is_new_user: bool
    role_change_detected: bool
    has_special_access: bool
    session_expires_at: int | None = None
    session_access_count: int = 1
    state_changes: list[StateChangeResponse] = Field(default_factory=list)


class CacheClearResponse(BaseModel):
    """Response for POST /users/{email}/cache/clear."""

    email: str
    targeted: bool = Field(..., description="False when the clear fell back to force clean")


class RoleChangeHistoryItem(BaseModel):
    """One recorded role change (newest first in lists)."""

    model_config = ConfigDict(from_attributes=True)

    old_role: str | None
    new_role: str
    timestamp: int
    session_id: str | None = None
    cache_version: str | None = None


class RoleHistoryResponse(BaseModel):
    """Response for GET /users/{email}/role-history."""

    email: str
    history: list[RoleChangeHistoryItem] = Field(default_factory=list)


class RoleChangeSweepResponse(BaseModel):
    """Response for POST /users/role-changes/check."""

    model_config = ConfigDict(from_attributes=True)

    total_users: int
    users_checked: int
    changes_detected: int
    role_changes: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[dict[str, str]] = Field(default_factory=list)
