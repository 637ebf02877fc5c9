"""Versioned read-through cache over the KV store.

Entries are CacheEntry envelopes serialized as JSON under versioned keys.
Any store or decode failure is a miss, never an error.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from app.application.dtos.cache import CacheEntry
from app.application.interfaces.stores import IKeyValueStore
from app.application.services.cache_versioning import CacheVersioningService
from app.core.constants import DEFAULT_CACHE_TTL, MAX_CACHE_TTL
from app.domain.exceptions import CacheSerializationError, StoreUnavailableError
from app.shared.utils.datetime import now_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VersionedCache:
    """get/set of CacheEntry payloads keyed by CacheVersioningService.build_key."""

    def __init__(
        self,
        versioning: CacheVersioningService,
        kv_store: IKeyValueStore,
        default_ttl: int = DEFAULT_CACHE_TTL,
        max_ttl: int = MAX_CACHE_TTL,
    ) -> None:
        self.versioning = versioning
        self.kv_store = kv_store
        self.default_ttl = default_ttl
        self.max_ttl = max_ttl

    def effective_ttl(self, ttl: int | None) -> int:
        """Requested TTL (or default) capped at max_ttl, at least one second."""
        requested = self.default_ttl if ttl is None else ttl
        return max(1, min(requested, self.max_ttl))

    async def get_entry(
        self, base_key: str, params: Mapping[str, Any] | None = None
    ) -> CacheEntry | None:
        """Return the stored envelope for (base_key, params) or None on miss/failure."""
        key = await self.versioning.build_key(base_key, params)
        try:
            raw = await self.kv_store.get(key)
            if raw is None:
                return None
            try:
                return CacheEntry.from_dict(json.loads(raw))
            except (ValueError, TypeError, KeyError) as e:
                raise CacheSerializationError(key, str(e)) from e
        except CacheSerializationError as e:
            logger.warning("Discarding malformed cache entry %s: %s", key, e.details.get("reason"))
        except StoreUnavailableError as e:
            logger.warning("Cache get unavailable for %s: %s", base_key, e.details.get("reason"))
        except Exception:
            logger.exception("Cache get error for %s", base_key)
        return None

    async def get(self, base_key: str, params: Mapping[str, Any] | None = None) -> Any | None:
        """Return cached data for (base_key, params) or None."""
        entry = await self.get_entry(base_key, params)
        return entry.data if entry is not None else None

    async def set(
        self,
        base_key: str,
        params: Mapping[str, Any] | None,
        data: Any,
        ttl: int | None = None,
    ) -> bool:
        """Store data under the current version. Returns True on success."""
        key = await self.versioning.build_key(base_key, params)
        try:
            entry = CacheEntry(
                data=data,
                timestamp=now_ms(),
                version=await self.versioning.current_version(),
                base_key=base_key,
                params={str(k): str(v) for k, v in (params or {}).items()},
            )
            try:
                payload = json.dumps(entry.to_dict())
            except (TypeError, ValueError) as e:
                raise CacheSerializationError(key, str(e)) from e
            safe_ttl = self.effective_ttl(ttl)
            await self.kv_store.put(key, payload, safe_ttl)
            return True
        except CacheSerializationError as e:
            logger.warning("Not caching %s: %s", base_key, e.details.get("reason"))
        except StoreUnavailableError as e:
            logger.warning("Cache set unavailable for %s: %s", base_key, e.details.get("reason"))
        except Exception:
            logger.exception("Cache set error for %s", base_key)
        return False

    async def get_or_load(
        self,
        base_key: str,
        params: Mapping[str, Any] | None,
        loader: Callable[[], Awaitable[T | None]],
        ttl: int | None = None,
    ) -> T | Any | None:
        """Return cached data, else await loader and cache a non-None result."""
        cached = await self.get(base_key, params)
        if cached is not None:
            return cached
        result = await loader()
        if result is not None:
            await self.set(base_key, params, result, ttl=ttl)
        return result
