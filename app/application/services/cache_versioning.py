"""Master cache version and versioned key construction.

The master version token "<CACHE_VERSION>_<epochMillis>" is embedded in
every cache key, so advancing it orphans every previously built key
without touching the KV store. One instance lives for one request: the
token is memoized on the instance, never on the module.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from app.application.interfaces.stores import IKeyValueStore, IPropertyStore
from app.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PARAM_SEP,
    CACHE_VERSION_MARKER,
    DEFAULT_CACHE_VERSION,
    PROPERTY_MASTER_CACHE_VERSION,
)
from app.domain.exceptions import StoreUnavailableError
from app.shared.telemetry.tracing import traced
from app.shared.utils.datetime import now_ms

logger = logging.getLogger(__name__)

# Escapes keep param names/values from forging separators ({"a": "x_b:y"} vs {"a": "x", "b": "y"}).
_KEY_ESCAPES = (("%", "%25"), (CACHE_KEY_SEP, "%5F"), (CACHE_PARAM_SEP, "%3A"))


def _escape_key_component(value: Any) -> str:
    text = str(value)
    for raw, escaped in _KEY_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def serialize_params(params: Mapping[str, Any] | None) -> str:
    """Render params as 'name:value' pairs in sorted name order joined by '_'."""
    if not params:
        return ""
    return CACHE_KEY_SEP.join(
        f"{_escape_key_component(name)}{CACHE_PARAM_SEP}{_escape_key_component(params[name])}"
        for name in sorted(params, key=str)
    )


class CacheVersioningService:
    """Owns MasterVersion reads/writes and per-key construction.

    No method raises: store failures degrade to an ephemeral version
    (a cold cache for this execution) or to a False result.
    """

    def __init__(
        self,
        properties: IPropertyStore,
        kv_store: IKeyValueStore,
        cache_version: str = DEFAULT_CACHE_VERSION,
    ) -> None:
        """Initialize for one request.

        Args:
            properties: Durable store holding MASTER_CACHE_VERSION.
            kv_store: KV store cleared eagerly on bump.
            cache_version: Base semantic tag (CACHE_VERSION setting).
        """
        self.properties = properties
        self.kv_store = kv_store
        self.cache_version = cache_version or DEFAULT_CACHE_VERSION
        self._version: str | None = None
        self._last_minted_ms = 0

    def _mint(self) -> str:
        """Return a new token; strictly increasing within this instance."""
        stamp = max(now_ms(), self._last_minted_ms + 1)
        self._last_minted_ms = stamp
        return f"{self.cache_version}_{stamp}"

    def _remember(self, version: str) -> None:
        """Memoize version and keep later mints strictly after its timestamp."""
        self._version = version
        _, _, stamp = version.rpartition("_")
        if stamp.isdigit():
            self._last_minted_ms = max(self._last_minted_ms, int(stamp))

    async def current_version(self) -> str:
        """Return the master version, minting and persisting it on first use.

        On property store failure returns a version valid for this execution
        only and leaves the memo empty so the next call retries the store.
        """
        if self._version is not None:
            return self._version
        try:
            version = await self.properties.get(PROPERTY_MASTER_CACHE_VERSION)
            if not version:
                version = self._mint()
                await self.properties.set(PROPERTY_MASTER_CACHE_VERSION, version)
                logger.info("Created master cache version %s", version)
            self._remember(version)
            return version
        except StoreUnavailableError as e:
            logger.warning("Master cache version unavailable (%s); using ephemeral version", e.details.get("reason"))
        except Exception:
            logger.exception("Unexpected error reading master cache version")
        self._version = None
        return self._mint()

    @traced("cache.bump_version")
    async def bump_version(self, clear_store: bool = True) -> bool:
        """Mint and persist a new master version, then clear the KV store.

        The clear only reclaims entries already unreachable under the new
        version (skip it with clear_store=False); its failure is logged and
        does not affect the result.

        Returns:
            True if the new version was persisted, False otherwise.
        """
        new_version = self._mint()
        try:
            await self.properties.set(PROPERTY_MASTER_CACHE_VERSION, new_version)
        except StoreUnavailableError as e:
            logger.error("Could not persist new master cache version: %s", e.details.get("reason"))
            self._version = None
            return False
        except Exception:
            logger.exception("Unexpected error persisting master cache version")
            self._version = None
            return False
        self._remember(new_version)
        logger.info("Master cache version incremented to %s", new_version)
        if not clear_store:
            return True
        try:
            await self.kv_store.remove_all()
        except StoreUnavailableError as e:
            logger.warning("KV clear after version bump failed: %s", e.details.get("reason"))
        except Exception:
            logger.exception("Unexpected error clearing KV store after version bump")
        return True

    async def build_key(self, base_key: str, params: Mapping[str, Any] | None = None) -> str:
        """Return '<base>_<sorted params>_v<version>' ('<base>_v<version>' without params).

        Identical (base_key, params) under the same version give the same key;
        param insertion order never matters. On internal failure returns a
        timestamped key that can only miss.
        """
        try:
            version = await self.current_version()
            param_string = serialize_params(params)
            version_part = f"{CACHE_VERSION_MARKER}{version}"
            if param_string:
                key = CACHE_KEY_SEP.join((base_key, param_string, version_part))
            else:
                key = CACHE_KEY_SEP.join((base_key, version_part))
            logger.debug("Generated cache key %s", key)
            return key
        except Exception:
            logger.exception("Error generating cache key for %s", base_key)
            return f"{base_key}{CACHE_KEY_SEP}{now_ms()}"
