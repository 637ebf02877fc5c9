"""Store interfaces (ports) for the cache engine.

Protocols define the contracts of the shared key-value store (with TTL),
the durable property store, and the tabular data source (DIP). Adapters
raise StoreUnavailableError on backend failure; the cache services catch it.
"""

from __future__ import annotations

from typing import Any, Protocol


class IKeyValueStore(Protocol):
    """Shared KV store with per-entry TTL. Values are opaque strings."""

    async def get(self, key: str) -> str | None:
        """Return stored value or None when missing or expired."""

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value under key for ttl_seconds."""

    async def remove(self, key: str) -> None:
        """Remove key; no-op when missing."""

    async def remove_all(self) -> None:
        """Remove every key in the store."""


class IPropertyStore(Protocol):
    """Durable name -> string store (version token, hashes, snapshots)."""

    async def get(self, name: str) -> str | None:
        """Return property value or None."""

    async def set(self, name: str, value: str) -> None:
        """Create or overwrite property."""

    async def delete(self, name: str) -> None:
        """Delete property; no-op when missing."""

    async def list_all(self) -> dict[str, str]:
        """Return all properties."""


class ITabularDataSource(Protocol):
    """Read API over spreadsheet-like sheets (rows of cells, header row first)."""

    async def read_rows(self, sheet_name: str) -> list[list[Any]] | None:
        """Return all rows of sheet_name, or None when the sheet does not exist."""
