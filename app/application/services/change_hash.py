"""Content-hash change detection for tabular data sources (canonical JSON + algorithm)."""

from __future__ import annotations

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from app.application.interfaces.stores import IPropertyStore
from app.core.constants import PROPERTY_SOURCE_HASH_PREFIX
from app.domain.exceptions import CacheSerializationError, StoreUnavailableError

logger = logging.getLogger(__name__)


class HashAlgorithm(ABC):
    """Abstract hash algorithm (OCP)."""

    @abstractmethod
    def hash(self, data: str) -> str:
        """Compute hash of input string."""
        ...


class SHA256Algorithm(HashAlgorithm):
    """SHA-256 implementation."""

    def hash(self, data: str) -> str:
        return hashlib.sha256(data.encode()).hexdigest()


def source_hash_property(source_name: str) -> str:
    """Property name of the stored digest for source_name."""
    return f"{PROPERTY_SOURCE_HASH_PREFIX}{source_name}"


class ChangeHashDetector:
    """Decides whether a re-read of a data source actually changed anything.

    Any failure reports "changed": over-invalidation costs one re-fetch,
    a missed change could serve stale role data.
    """

    def __init__(
        self,
        properties: IPropertyStore,
        algorithm: HashAlgorithm | None = None,
    ) -> None:
        self.properties = properties
        self.algorithm = algorithm or SHA256Algorithm()

    @staticmethod
    def canonical_json(data: Any) -> str:
        """Canonical JSON for deterministic hashing (dates and other scalars via str)."""
        return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)

    def digest(self, tabular_data: Any) -> str:
        """Return a fixed-length fingerprint of tabular_data.

        Raises:
            CacheSerializationError: If the input cannot be serialized.
        """
        try:
            serialized = self.canonical_json(tabular_data)
        except (TypeError, ValueError) as e:
            raise CacheSerializationError("digest", str(e)) from e
        return self.algorithm.hash(serialized)

    async def has_changed(self, source_name: str, tabular_data: Any) -> bool:
        """Compare tabular_data against the last stored digest for source_name.

        First observation stores the digest and reports True; equal digest
        reports False; a different digest is stored and reports True.
        """
        prop = source_hash_property(source_name)
        try:
            current = self.digest(tabular_data)
            stored = await self.properties.get(prop)
            if stored == current:
                return False
            await self.properties.set(prop, current)
            if stored is None:
                logger.debug("No stored hash for %s, recording %s", source_name, current)
            else:
                logger.info("Data change detected for %s (%s -> %s)", source_name, stored, current)
            return True
        except (CacheSerializationError, StoreUnavailableError) as e:
            logger.warning("Change detection failed for %s, assuming changed: %s", source_name, e.message)
            return True
        except Exception:
            logger.exception("Unexpected change detection error for %s, assuming changed", source_name)
            return True

    async def clear_stored_hashes(self) -> int:
        """Delete every stored source digest so each source next reads as changed.

        Returns:
            Number of digests deleted (0 when the store is unavailable).
        """
        try:
            names = [
                name
                for name in await self.properties.list_all()
                if name.startswith(PROPERTY_SOURCE_HASH_PREFIX)
            ]
            for name in names:
                await self.properties.delete(name)
        except StoreUnavailableError as e:
            logger.warning("Could not clear stored hashes: %s", e.message)
            return 0
        logger.info("Cleared %s stored source hashes", len(names))
        return len(names)
