"""DTOs for staff users and per-request user context (no dependency on storage)."""

from dataclasses import asdict, dataclass, field
from typing import Any

from app.application.dtos.user_state import StateChange


@dataclass(frozen=True)
class StaffUser:
    """One valid row of the Staff sheet."""

    name: str
    email: str
    role: str
    year: int
    row_number: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "StaffUser":
        return cls(
            name=raw["name"],
            email=raw["email"],
            role=raw["role"],
            year=int(raw["year"]),
            row_number=int(raw["row_number"]),
        )


@dataclass(frozen=True)
class UserContext:
    """Per-request view of the current user plus state-change detection results."""

    email: str
    name: str
    role: str
    year: int
    session_id: str
    is_new_user: bool
    role_change_detected: bool
    has_special_access: bool = False
    session_expires_at: int | None = None
    session_access_count: int = 1
    state_changes: list[StateChange] = field(default_factory=list)


@dataclass
class RoleChangeSweepResult:
    """Summary of UserService.check_all_users_for_role_changes."""

    total_users: int = 0
    users_checked: int = 0
    changes_detected: int = 0
    role_changes: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)
