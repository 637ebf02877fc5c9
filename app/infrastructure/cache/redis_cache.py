"""Redis-backed key-value store and durable property store.

RedisKeyValueStore holds versioned cache entries (SETEX with TTL) under a
key prefix. RedisPropertyStore keeps version token, source hashes, user
snapshots, sessions and role history in one Redis hash without TTL, outside
that prefix, so clearing the cache never touches them. Both share a
connection and translate redis errors into StoreUnavailableError after one
reconnect attempt; the cache services above them decide how to degrade.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from typing import TypeVar

import redis.asyncio as redis

from app.core.config import get_settings
from app.domain.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def escape_glob(text: str) -> str:
    """Escape Redis MATCH glob metacharacters in text."""
    return _GLOB_SPECIAL.sub(r"\\\1", text)


class RedisConnection:
    """Async Redis connection shared by the KV and property stores.

    Uses app.core.config for connection settings. Call connect() at
    startup and disconnect() at shutdown.
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize connection holder.

        Args:
            redis_client: Optional Redis client for testing or DI; treated as connected.
        """
        self.redis = redis_client
        self.settings = get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password.get_secret_value() if self.settings.redis_password else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_keepalive=True,
                )
                await self.redis.ping()
                self._connected = True
                logger.info(
                    "Redis connected: %s:%s",
                    self.settings.redis_host,
                    self.settings.redis_port,
                )
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis connection failed: %s. Stores unavailable.", e)
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis disconnected")

    async def reconnect(self) -> bool:
        """Attempt to reconnect after a dropped connection. Returns True if reconnected."""
        if self.redis is not None:
            try:
                await self.redis.aclose()
            except redis.RedisError:
                logger.debug("Ignoring error while closing dropped Redis connection")
        self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def call(
        self,
        store: str,
        operation: str,
        command: Callable[[redis.Redis], Awaitable[T]],
    ) -> T:
        """Run command against the client, reconnecting once on connection loss.

        Raises:
            StoreUnavailableError: If Redis is unavailable or the command fails.
        """
        if not self.is_available() or self.redis is None:
            raise StoreUnavailableError(store, operation, "redis not connected")
        try:
            return await command(self.redis)
        except (redis.ConnectionError, redis.TimeoutError) as e:
            if await self.reconnect() and self.redis is not None:
                try:
                    return await command(self.redis)
                except redis.RedisError as retry_error:
                    raise StoreUnavailableError(store, operation, str(retry_error)) from retry_error
            raise StoreUnavailableError(store, operation, str(e)) from e
        except redis.RedisError as e:
            raise StoreUnavailableError(store, operation, str(e)) from e


class RedisKeyValueStore:
    """Shared KV cache with TTL (implements IKeyValueStore).

    Every key is stored under key_prefix so remove_all only reaches cache
    entries; the property hash and anything else in the same db survive it.
    """

    STORE = "kv"
    UNLINK_BATCH = 500

    def __init__(self, connection: RedisConnection, key_prefix: str | None = None) -> None:
        self.connection = connection
        self.key_prefix = get_settings().cache_key_prefix if key_prefix is None else key_prefix

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> str | None:
        value = await self.connection.call(self.STORE, "get", lambda r: r.get(self._key(key)))
        logger.debug("Cache %s: %s", "HIT" if value is not None else "MISS", key)
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        await self.connection.call(
            self.STORE, "put", lambda r: r.setex(self._key(key), ttl_seconds, value)
        )
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl_seconds)

    async def remove(self, key: str) -> None:
        await self.connection.call(self.STORE, "remove", lambda r: r.delete(self._key(key)))
        logger.debug("Cache DELETE: %s", key)

    async def _unlink_prefixed(self, client: redis.Redis) -> int:
        pattern = f"{escape_glob(self.key_prefix)}*"
        removed = 0
        batch: list[str] = []
        async for key in client.scan_iter(match=pattern, count=self.UNLINK_BATCH):
            batch.append(key)
            if len(batch) >= self.UNLINK_BATCH:
                removed += await client.unlink(*batch)
                batch.clear()
        if batch:
            removed += await client.unlink(*batch)
        return removed

    async def remove_all(self) -> None:
        """Delete every cache entry under key_prefix (SCAN + UNLINK, never FLUSHDB)."""
        removed = await self.connection.call(self.STORE, "remove_all", self._unlink_prefixed)
        logger.warning("Cache CLEARED: %s keys deleted under %r", removed, self.key_prefix)


class RedisPropertyStore:
    """Durable properties in one Redis hash (implements IPropertyStore).

    The hash has no TTL; durability follows the Redis persistence setup.
    """

    STORE = "property"

    def __init__(self, connection: RedisConnection, hash_key: str | None = None) -> None:
        self.connection = connection
        self.hash_key = hash_key or get_settings().property_store_key

    async def get(self, name: str) -> str | None:
        return await self.connection.call(
            self.STORE, "get", lambda r: r.hget(self.hash_key, name)
        )

    async def set(self, name: str, value: str) -> None:
        await self.connection.call(
            self.STORE, "set", lambda r: r.hset(self.hash_key, name, value)
        )

    async def delete(self, name: str) -> None:
        await self.connection.call(
            self.STORE, "delete", lambda r: r.hdel(self.hash_key, name)
        )

    async def list_all(self) -> dict[str, str]:
        result = await self.connection.call(
            self.STORE, "list_all", lambda r: r.hgetall(self.hash_key)
        )
        return dict(result or {})
