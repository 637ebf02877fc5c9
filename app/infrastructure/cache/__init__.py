"""Cache infrastructure: KV and property store adapters.

Redis adapters for deployment, in-memory adapters for single-process
development and tests. Key format lives in CacheVersioningService.
"""

from app.infrastructure.cache.memory import InMemoryKeyValueStore, InMemoryPropertyStore
from app.infrastructure.cache.redis_cache import (
    RedisConnection,
    RedisKeyValueStore,
    RedisPropertyStore,
)

__all__ = [
    "InMemoryKeyValueStore",
    "InMemoryPropertyStore",
    "RedisConnection",
    "RedisKeyValueStore",
    "RedisPropertyStore",
]
