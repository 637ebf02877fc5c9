"""Application DTOs (no storage dependency)."""

from app.application.dtos.cache import CacheEntry
from app.application.dtos.session import UserSession
from app.application.dtos.user import RoleChangeSweepResult, StaffUser, UserContext
from app.application.dtos.user_state import (
    RoleChangeHistoryEntry,
    StateChange,
    StateChangeResult,
    UserState,
)

__all__ = [
    "CacheEntry",
    "RoleChangeHistoryEntry",
    "RoleChangeSweepResult",
    "StaffUser",
    "StateChange",
    "StateChangeResult",
    "UserContext",
    "UserSession",
    "UserState",
]
