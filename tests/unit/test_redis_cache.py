"""Tests for the Redis store adapters.

Adapter calls are checked against an AsyncMock client; keyspace separation
is checked end to end against fakeredis.
"""

from unittest.mock import AsyncMock, MagicMock

import fakeredis
import pytest
import redis.asyncio as redis

from app.application.dtos.user_state import UserState
from app.application.services.cache_invalidation import CacheInvalidationEngine
from app.application.services.cache_versioning import CacheVersioningService
from app.application.services.change_hash import ChangeHashDetector
from app.application.services.state_change_detector import StateChangeDetector
from app.domain.exceptions import StoreUnavailableError
from app.infrastructure.cache.redis_cache import (
    RedisConnection,
    RedisKeyValueStore,
    RedisPropertyStore,
    escape_glob,
)

PREFIX = "observation_portal:cache:"


@pytest.fixture
def redis_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def connection(redis_client: AsyncMock) -> RedisConnection:
    return RedisConnection(redis_client=redis_client)


def _scan_result(*keys: str) -> MagicMock:
    async def scan_iter(**_kwargs):
        for key in keys:
            yield key

    return MagicMock(side_effect=scan_iter)


class TestRedisKeyValueStore:
    async def test_put_uses_setex_under_prefix(self, connection, redis_client) -> None:
        await RedisKeyValueStore(connection).put("k", "v", 300)
        redis_client.setex.assert_awaited_once_with(f"{PREFIX}k", 300, "v")

    async def test_get(self, connection, redis_client) -> None:
        redis_client.get.return_value = "v"
        assert await RedisKeyValueStore(connection).get("k") == "v"
        redis_client.get.assert_awaited_once_with(f"{PREFIX}k")

    async def test_remove(self, connection, redis_client) -> None:
        await RedisKeyValueStore(connection).remove("k")
        redis_client.delete.assert_awaited_once_with(f"{PREFIX}k")

    async def test_remove_all_unlinks_prefixed_keys_only(self, connection, redis_client) -> None:
        redis_client.scan_iter = _scan_result(f"{PREFIX}a", f"{PREFIX}b")
        redis_client.unlink.return_value = 2

        await RedisKeyValueStore(connection).remove_all()

        redis_client.scan_iter.assert_called_once_with(match=f"{PREFIX}*", count=500)
        redis_client.unlink.assert_awaited_once_with(f"{PREFIX}a", f"{PREFIX}b")
        redis_client.flushdb.assert_not_called()

    async def test_remove_all_batches(self, connection, redis_client) -> None:
        store = RedisKeyValueStore(connection)
        store.UNLINK_BATCH = 2
        redis_client.scan_iter = _scan_result("a", "b", "c")
        redis_client.unlink.return_value = 1

        await store.remove_all()

        assert redis_client.unlink.await_count == 2

    async def test_redis_error_translated(self, connection, redis_client) -> None:
        redis_client.get.side_effect = redis.ResponseError("WRONGTYPE")
        with pytest.raises(StoreUnavailableError) as exc_info:
            await RedisKeyValueStore(connection).get("k")
        assert exc_info.value.error_code == "STORE_UNAVAILABLE"
        assert exc_info.value.details["operation"] == "get"

    async def test_not_connected(self) -> None:
        with pytest.raises(StoreUnavailableError):
            await RedisKeyValueStore(RedisConnection()).get("k")


class TestEscapeGlob:
    def test_metacharacters_escaped(self) -> None:
        assert escape_glob("a*b?[c]") == r"a\*b\?\[c\]"

    def test_plain_prefix_unchanged(self) -> None:
        assert escape_glob(PREFIX) == PREFIX


class TestRedisPropertyStore:
    async def test_uses_one_hash(self, connection, redis_client) -> None:
        store = RedisPropertyStore(connection, hash_key="props")
        redis_client.hget.return_value = "1.0.0_1"
        redis_client.hgetall.return_value = {"MASTER_CACHE_VERSION": "1.0.0_1"}

        assert await store.get("MASTER_CACHE_VERSION") == "1.0.0_1"
        await store.set("SHEET_HASH_Staff", "abc")
        await store.delete("SHEET_HASH_Staff")
        assert await store.list_all() == {"MASTER_CACHE_VERSION": "1.0.0_1"}

        redis_client.hget.assert_awaited_once_with("props", "MASTER_CACHE_VERSION")
        redis_client.hset.assert_awaited_once_with("props", "SHEET_HASH_Staff", "abc")
        redis_client.hdel.assert_awaited_once_with("props", "SHEET_HASH_Staff")

    async def test_default_hash_key_from_settings(self, connection) -> None:
        assert RedisPropertyStore(connection).hash_key == "observation_portal:properties"


class TestSharedDatabase:
    """KV store and property hash in one Redis db: clearing the cache keeps properties."""

    @pytest.fixture
    async def fake_redis(self):
        client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
        yield client
        await client.aclose()

    @pytest.fixture
    def stores(self, fake_redis):
        connection = RedisConnection(redis_client=fake_redis)
        return RedisKeyValueStore(connection), RedisPropertyStore(connection)

    async def test_remove_all_keeps_property_hash_and_foreign_keys(self, fake_redis, stores) -> None:
        kv, properties = stores
        await kv.put("user_email:a@x.com_v1.0.0_1", "{}", 300)
        await properties.set("MASTER_CACHE_VERSION", "1.0.0_1")
        await fake_redis.set("other_app:key", "kept")

        await kv.remove_all()

        assert await kv.get("user_email:a@x.com_v1.0.0_1") is None
        assert await properties.get("MASTER_CACHE_VERSION") == "1.0.0_1"
        assert await fake_redis.get("other_app:key") == "kept"

    async def test_roster_change_keeps_snapshots_and_hashes(self, stores) -> None:
        kv, properties = stores
        versioning = CacheVersioningService(properties, kv, cache_version="1.0.0")
        hashes = ChangeHashDetector(properties)
        detector = StateChangeDetector(properties)
        engine = CacheInvalidationEngine(versioning, kv, hash_detector=hashes)
        staff = [["Name", "Email", "Role", "Year"], ["Ada", "a@x.com", "Teacher", 1]]
        ada = UserState(role="Teacher", year=1, name="Ada", email="a@x.com")

        await detector.detect_changes("a@x.com", ada)
        assert await hashes.has_changed("Staff", staff) is True
        old_version = await versioning.current_version()

        # user_* is a wildcard dependent of staff_data: this bumps and clears the KV store
        await engine.invalidate("staff_data")

        assert await versioning.current_version() != old_version
        assert await hashes.has_changed("Staff", staff) is False
        result = await detector.detect_changes(
            "a@x.com", UserState(role="Administrator", year=1, name="Ada", email="a@x.com")
        )
        assert result.is_new_user is False
        assert result.has_changed is True
        assert result.change_for("role").new_value == "Administrator"
