"""Dependency-driven selective cache invalidation.

Given a changed logical data source, removes the exact versioned keys that
depend on it, or bumps the master version when a dependent is a prefix
wildcard whose concrete keys cannot be enumerated. Callers that know which
instance changed (one user's role) use invalidate_for_key and never pay
for a global bump.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from app.application.interfaces.stores import IKeyValueStore
from app.application.services.cache_versioning import CacheVersioningService
from app.application.services.change_hash import ChangeHashDetector
from app.core.constants import (
    AVAILABLE_ROLES,
    CACHE_KEY_ROLE_SHEET,
    CACHE_KEY_STAFF_DATA,
    CACHE_KEY_USER,
)
from app.domain.exceptions import StoreUnavailableError
from app.domain.value_objects.cache import (
    DEFAULT_CACHE_DEPENDENCIES,
    DependencyMap,
    ExactPattern,
    PrefixPattern,
)
from app.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)


class CacheInvalidationEngine:
    """Walks the dependency map one hop and invalidates dependents.

    Never raises; a failed removal is logged and left to TTL expiry or the
    next version bump.
    """

    def __init__(
        self,
        versioning: CacheVersioningService,
        kv_store: IKeyValueStore,
        dependencies: DependencyMap | None = None,
        hash_detector: ChangeHashDetector | None = None,
    ) -> None:
        self.versioning = versioning
        self.kv_store = kv_store
        self.dependencies = dependencies or DependencyMap.from_config(DEFAULT_CACHE_DEPENDENCIES)
        self.hash_detector = hash_detector

    async def _remove(self, key: str) -> bool:
        try:
            await self.kv_store.remove(key)
            return True
        except StoreUnavailableError as e:
            logger.warning("Could not remove cache key %s: %s", key, e.details.get("reason"))
        except Exception:
            logger.exception("Unexpected error removing cache key %s", key)
        return False

    @traced("cache.invalidate")
    async def invalidate(self, changed_key: str) -> None:
        """Invalidate every cache that depends on changed_key (one hop).

        Exact dependents lose their zero-parameter key. A prefix dependent
        forces one master version bump; later prefix dependents in the same
        call are already covered by it.
        """
        try:
            dependents = self.dependencies.dependents_of(changed_key)
            if not dependents:
                logger.debug("No dependents registered for %s", changed_key)
                return
            bumped = False
            removed = 0
            for dependent in dependents:
                if isinstance(dependent, PrefixPattern):
                    if bumped:
                        continue
                    logger.info(
                        "Global invalidation for wildcard dependency %s of %s",
                        dependent,
                        changed_key,
                    )
                    bumped = await self.versioning.bump_version()
                elif isinstance(dependent, ExactPattern):
                    key = await self.versioning.build_key(dependent.name)
                    if await self._remove(key):
                        removed += 1
                        logger.info("Cleared dependent cache %s of %s", key, changed_key)
            add_span_attributes(removed=removed, bumped=bumped)
        except Exception:
            logger.exception("Error invalidating dependents of %s", changed_key)

    async def invalidate_for_key(
        self, base_key: str, params: Mapping[str, Any] | None = None
    ) -> None:
        """Remove only the entry for (base_key, params) under the current version."""
        try:
            key = await self.versioning.build_key(base_key, params)
            if await self._remove(key):
                logger.info("Targeted invalidation of %s", base_key)
        except Exception:
            logger.exception("Error in targeted invalidation of %s", base_key)

    @traced("cache.invalidate_for_user")
    async def invalidate_for_user(self, email: str, roles: Iterable[str | None] = ()) -> None:
        """Targeted clear after one user's role changed.

        Removes the user record, the role sheets of the given roles that
        are known roles, and the staff roster entry.
        """
        normalized = email.strip().lower()
        await self.invalidate_for_key(CACHE_KEY_USER, {"email": normalized})
        seen: set[str] = set()
        for role in roles:
            if role and role in AVAILABLE_ROLES and role not in seen:
                seen.add(role)
                await self.invalidate_for_key(CACHE_KEY_ROLE_SHEET, {"role": role})
        await self.invalidate_for_key(CACHE_KEY_STAFF_DATA)
        logger.info("Cleared caches for user (roles: %s)", sorted(seen))

    @traced("cache.force_clean_all")
    async def force_clean_all(self) -> bool:
        """Emergency path: bump the version, clear the KV store and stored hashes.

        Returns:
            True if the new master version was persisted.
        """
        bumped = await self.versioning.bump_version()
        if self.hash_detector is not None:
            await self.hash_detector.clear_stored_hashes()
        logger.warning("All caches force cleared (version bumped: %s)", bumped)
        return bumped
