"""In-process KV and property stores.

Used when Redis is disabled (single-process development) and in tests.
Same contracts as the Redis adapters: values are strings, KV entries
expire after their TTL, properties never expire.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """Dict-backed KV store with lazy TTL expiry (implements IKeyValueStore)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize empty store.

        Args:
            clock: Seconds source used for expiry (injectable for tests).
        """
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache MISS: %s", key)
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            logger.debug("Cache EXPIRED: %s", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl_seconds)

    async def remove(self, key: str) -> None:
        self._entries.pop(key, None)
        logger.debug("Cache DELETE: %s", key)

    async def remove_all(self) -> None:
        self._entries.clear()
        logger.warning("Cache CLEARED: all keys deleted")

    def __len__(self) -> int:
        return len(self._entries)


class InMemoryPropertyStore:
    """Dict-backed durable property store (implements IPropertyStore)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._properties: dict[str, str] = dict(initial or {})

    async def get(self, name: str) -> str | None:
        return self._properties.get(name)

    async def set(self, name: str, value: str) -> None:
        self._properties[name] = value

    async def delete(self, name: str) -> None:
        self._properties.pop(name, None)

    async def list_all(self) -> dict[str, str]:
        return dict(self._properties)
