"""Tests for the in-memory KV and property stores."""

from app.infrastructure.cache.memory import InMemoryKeyValueStore, InMemoryPropertyStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestInMemoryKeyValueStore:
    async def test_put_get_remove(self) -> None:
        store = InMemoryKeyValueStore()
        await store.put("k", "v", 60)
        assert await store.get("k") == "v"
        await store.remove("k")
        assert await store.get("k") is None
        await store.remove("k")

    async def test_entries_expire(self) -> None:
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)
        await store.put("k", "v", 60)
        clock.now += 59
        assert await store.get("k") == "v"
        clock.now += 1
        assert await store.get("k") is None
        assert len(store) == 0

    async def test_remove_all(self) -> None:
        store = InMemoryKeyValueStore()
        await store.put("a", "1", 60)
        await store.put("b", "2", 60)
        await store.remove_all()
        assert len(store) == 0


class TestInMemoryPropertyStore:
    async def test_crud(self) -> None:
        store = InMemoryPropertyStore({"x": "1"})
        await store.set("y", "2")
        assert await store.get("x") == "1"
        await store.delete("x")
        await store.delete("missing")
        assert await store.list_all() == {"y": "2"}

    async def test_list_all_is_a_copy(self) -> None:
        store = InMemoryPropertyStore({"x": "1"})
        snapshot = await store.list_all()
        snapshot["x"] = "changed"
        assert await store.get("x") == "1"
