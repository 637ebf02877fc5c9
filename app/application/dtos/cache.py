"""DTOs for cached entries (envelope stored in the KV store)."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """Envelope around a cached payload. Replaced wholesale, never mutated.

    version is the master version current when the entry was written;
    timestamp is epoch milliseconds.
    """

    data: Any
    timestamp: int
    version: str
    base_key: str
    params: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "timestamp": self.timestamp,
            "version": self.version,
            "baseKey": self.base_key,
            "params": dict(self.params),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "CacheEntry":
        """Build from a decoded payload. Raises KeyError/TypeError when malformed."""
        return cls(
            data=raw["data"],
            timestamp=int(raw["timestamp"]),
            version=str(raw["version"]),
            base_key=str(raw["baseKey"]),
            params={str(k): str(v) for k, v in (raw.get("params") or {}).items()},
        )
