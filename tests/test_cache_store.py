from unittest.mock import AsyncMock, MagicMock

import pytest
import redis

from warmerator import CacheStoreError, InMemoryCacheStore, RedisCacheStore
from warmerator.keys import CacheKeys


class TestInMemoryCacheStore:

    @pytest.fixture
    def clock(self):
        return [100.0]

    @pytest.fixture
    def mem(self, clock):
        return InMemoryCacheStore(clock=lambda: clock[0])

    @pytest.mark.asyncio
    async def test_entries_expire(self, mem, clock):
        await mem.set("a", "1", 10)
        assert await mem.get("a") == "1"
        clock[0] += 10
        assert await mem.get("a") is None

    @pytest.mark.asyncio
    async def test_set_if_absent(self, mem, clock):
        assert await mem.set_if_absent("lock", "x", 5)
        assert not await mem.set_if_absent("lock", "y", 5)
        clock[0] += 5
        assert await mem.set_if_absent("lock", "z", 5)
        assert await mem.get("lock") == "z"

    @pytest.mark.asyncio
    async def test_delete_if_equals(self, mem):
        await mem.set("lock", "mine", 5)
        assert not await mem.delete_if_equals("lock", "theirs")
        assert await mem.delete_if_equals("lock", "mine")
        assert await mem.get("lock") is None

    @pytest.mark.asyncio
    async def test_invalidate_and_guarded_set(self, mem):
        """A missing guard counts as generation zero"""
        assert await mem.set_if_equals("gen", "0", "all", "[]", 60)
        assert await mem.invalidate("gen") == 1
        assert not await mem.set_if_equals("gen", "0", "all", "[1]", 60)
        assert await mem.get("all") == "[]"
        assert await mem.set_if_equals("gen", "1", "all", "[1]", 60)
        assert await mem.get("all") == "[1]"

    @pytest.mark.asyncio
    async def test_invalidate_bumps_and_deletes_together(self, mem):
        await mem.set("all", "[]", 60)
        await mem.set("partial", "[]", 60)
        await mem.set("other", "x", 60)

        assert await mem.invalidate("gen", "all", "partial", "missing") == 1
        assert await mem.invalidate("gen", "all") == 2
        assert sorted(mem.keys()) == ["gen", "other"]

    @pytest.mark.asyncio
    async def test_delete_counts_live_keys(self, mem):
        await mem.set("a", "1", 10)
        await mem.set("b", "2", 10)
        assert await mem.delete("a", "b", "missing") == 2
        assert mem.keys() == []


class TestRedisCacheStore:

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.register_script.side_effect = lambda script: AsyncMock(return_value=1)
        return client

    @pytest.mark.asyncio
    async def test_set_if_absent_uses_nx_and_expiry(self, client):
        client.set = AsyncMock(return_value=True)
        store = RedisCacheStore(client)
        assert await store.set_if_absent("k", "v", 300)
        client.set.assert_awaited_once_with("k", "v", ex=300, nx=True)

    @pytest.mark.asyncio
    async def test_set_if_absent_rejected(self, client):
        client.set = AsyncMock(return_value=None)
        store = RedisCacheStore(client)
        assert await store.set_if_absent("k", "v", 300) is False

    @pytest.mark.asyncio
    async def test_compare_operations_run_scripts(self, client):
        store = RedisCacheStore(client)
        assert await store.delete_if_equals("lock", "value")
        store._delete_if_equals.assert_awaited_once_with(keys=["lock"], args=["value"])
        assert await store.set_if_equals("gen", "3", "all", "[]", 60)
        store._set_if_equals.assert_awaited_once_with(keys=["gen", "all"], args=["3", "[]", 60])

    @pytest.mark.asyncio
    async def test_invalidate_runs_one_script(self, client):
        """The generation bump and the deletes reach Redis as a single script call"""
        client.delete = AsyncMock()
        client.incr = AsyncMock()
        store = RedisCacheStore(client)
        store._invalidate.return_value = 4

        assert await store.invalidate("gen", "all", "partial") == 4
        store._invalidate.assert_awaited_once_with(keys=["gen", "all", "partial"])
        client.incr.assert_not_called()
        client.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_delete_skips_round_trip(self, client):
        client.delete = AsyncMock()
        store = RedisCacheStore(client)
        assert await store.delete() == 0
        client.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_redis_errors_are_wrapped(self, client):
        client.get = AsyncMock(side_effect=redis.ConnectionError("refused"))
        store = RedisCacheStore(client)
        with pytest.raises(CacheStoreError, match="get"):
            await store.get("k")


class TestCacheKeys:

    def test_default_keys(self):
        keys = CacheKeys()
        assert keys.all_complete == "design_library:all"
        assert keys.partial == "design_library:partial"
        assert keys.scan_cursor == "design_library:last_scan_position"
        assert keys.lock == "design_library:lock"

    def test_namespace_is_slugified(self):
        keys = CacheKeys("Design Library / Staging")
        assert keys.namespace == "design_library_staging"
        assert keys.collection_keys == (
            "design_library_staging:all",
            "design_library_staging:partial",
            "design_library_staging:last_scan_position",
        )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
