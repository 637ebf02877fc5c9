"""Tests for VersionedCache (CacheEntry envelopes under versioned keys)."""

from unittest.mock import AsyncMock

import pytest

from app.application.services.versioned_cache import VersionedCache
from app.domain.exceptions import StoreUnavailableError


class TestEffectiveTtl:
    @pytest.mark.parametrize(
        ("requested", "expected"),
        [(None, 300), (120, 120), (14_400, 600), (0, 1), (-5, 1)],
    )
    def test_capped_and_floored(self, versioned_cache: VersionedCache, requested, expected) -> None:
        assert versioned_cache.effective_ttl(requested) == expected


class TestGetSet:
    async def test_entry_envelope(self, versioned_cache: VersionedCache, versioning) -> None:
        assert await versioned_cache.set("user", {"email": "a@x.com"}, {"role": "Teacher"}) is True
        entry = await versioned_cache.get_entry("user", {"email": "a@x.com"})
        assert entry.data == {"role": "Teacher"}
        assert entry.base_key == "user"
        assert entry.params == {"email": "a@x.com"}
        assert entry.version == await versioning.current_version()

    async def test_miss(self, versioned_cache: VersionedCache) -> None:
        assert await versioned_cache.get("user", {"email": "nobody@x.com"}) is None

    async def test_set_uses_capped_ttl(self, versioning) -> None:
        kv = AsyncMock()
        cache = VersionedCache(versioning, kv, default_ttl=300, max_ttl=600)
        await cache.set("staff_data", None, [], ttl=14_400)
        key, _payload, ttl = kv.put.await_args.args
        assert key == await versioning.build_key("staff_data")
        assert ttl == 600

    async def test_malformed_entry_is_a_miss(self, versioned_cache, versioning, kv_store) -> None:
        await kv_store.put(await versioning.build_key("user", {"email": "a@x.com"}), "not json", 60)
        assert await versioned_cache.get("user", {"email": "a@x.com"}) is None

    async def test_store_failure_degrades(self, versioning) -> None:
        kv = AsyncMock()
        kv.get.side_effect = StoreUnavailableError("kv", "get", "down")
        kv.put.side_effect = StoreUnavailableError("kv", "put", "down")
        cache = VersionedCache(versioning, kv)
        assert await cache.get("user", {"email": "a@x.com"}) is None
        assert await cache.set("user", {"email": "a@x.com"}, {"role": "Teacher"}) is False

    async def test_unserializable_data_not_cached(self, versioned_cache) -> None:
        assert await versioned_cache.set("user", None, {"bad": object()}) is False

    async def test_bump_makes_entries_unreachable(self, versioned_cache, versioning) -> None:
        await versioned_cache.set("staff_data", None, ["row"])
        await versioning.bump_version(clear_store=False)
        assert await versioned_cache.get("staff_data") is None


class TestGetOrLoad:
    async def test_loads_once(self, versioned_cache: VersionedCache) -> None:
        loader = AsyncMock(return_value={"role": "Teacher"})
        assert await versioned_cache.get_or_load("user", {"email": "a@x.com"}, loader) == {"role": "Teacher"}
        assert await versioned_cache.get_or_load("user", {"email": "a@x.com"}, loader) == {"role": "Teacher"}
        loader.assert_awaited_once()

    async def test_none_result_not_cached(self, versioned_cache: VersionedCache) -> None:
        loader = AsyncMock(return_value=None)
        assert await versioned_cache.get_or_load("user", {"email": "a@x.com"}, loader) is None
        assert await versioned_cache.get_or_load("user", {"email": "a@x.com"}, loader) is None
        assert loader.await_count == 2
