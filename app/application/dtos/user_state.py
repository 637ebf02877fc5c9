"""DTOs for per-user state snapshots, deltas and role change history."""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class UserState:
    """Observable user state captured once per context build.

    email and session_id identify the user/request and are never compared.
    """

    role: str
    year: int | None
    name: str
    email: str
    session_id: str | None = None
    timestamp: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "UserState":
        return cls(
            role=raw.get("role", ""),
            year=raw.get("year"),
            name=raw.get("name", ""),
            email=raw.get("email", ""),
            session_id=raw.get("session_id"),
            timestamp=raw.get("timestamp"),
        )


@dataclass(frozen=True)
class StateChange:
    """One field-level delta between the stored snapshot and current state."""

    field: str
    old_value: Any
    new_value: Any


@dataclass(frozen=True)
class StateChangeResult:
    """Result of StateChangeDetector.detect_changes."""

    has_changed: bool
    is_new_user: bool
    changes: list[StateChange] = field(default_factory=list)
    stored_state: UserState | None = None

    def change_for(self, field_name: str) -> StateChange | None:
        """Return the delta for field_name, or None."""
        for change in self.changes:
            if change.field == field_name:
                return change
        return None


@dataclass(frozen=True)
class RoleChangeHistoryEntry:
    """Append-only record of a detected role change (observational only)."""

    user_key: str
    old_role: str | None
    new_role: str
    timestamp: int
    session_id: str | None = None
    cache_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "RoleChangeHistoryEntry":
        return cls(
            user_key=raw["user_key"],
            old_role=raw.get("old_role"),
            new_role=raw["new_role"],
            timestamp=int(raw["timestamp"]),
            session_id=raw.get("session_id"),
            cache_version=raw.get("cache_version"),
        )
