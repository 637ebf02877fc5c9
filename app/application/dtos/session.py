"""DTO for per-user sessions kept in the property store."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class UserSession:
    """A user's session; times are epoch milliseconds.

    persisted is False for a session minted while the property store was
    unavailable; it is never written and lasts one request.
    """

    session_id: str
    user_key: str
    created_at: int
    last_accessed_at: int
    expires_at: int
    access_count: int = 1
    cache_version: str | None = None
    persisted: bool = True

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("persisted")
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "UserSession":
        return cls(
            session_id=raw["session_id"],
            user_key=raw["user_key"],
            created_at=int(raw["created_at"]),
            last_accessed_at=int(raw["last_accessed_at"]),
            expires_at=int(raw["expires_at"]),
            access_count=int(raw.get("access_count", 1)),
            cache_version=raw.get("cache_version"),
        )
