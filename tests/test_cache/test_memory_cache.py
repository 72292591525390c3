"""Tests for the in-process nonce store."""

from __future__ import annotations

import asyncio

import pytest

from wallet_auth.cache.memory import MemoryCache
from wallet_auth.config.settings import CacheConfig, CacheEngine
from wallet_auth.errors.definitions import StorageUnavailableError


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def cache(clock: FakeClock) -> MemoryCache:
    c = MemoryCache(CacheConfig(engine=CacheEngine.MEMORY, max_size=100), clock=clock)
    await c.connect()
    return c


class TestMemoryCache:
    async def test_set_get(self, cache: MemoryCache) -> None:
        await cache.set("key1", "value1")
        assert await cache.get("key1") == "value1"
        assert await cache.get("missing") is None

    async def test_delete(self, cache: MemoryCache) -> None:
        await cache.set("key1", "value1")
        await cache.delete("key1")
        await cache.delete("key1")  # absent key is fine
        assert await cache.get("key1") is None

    async def test_ttl_expiry_is_inclusive(self, cache: MemoryCache, clock: FakeClock) -> None:
        await cache.set("key1", "value1", ttl=60)
        clock.now += 59
        assert await cache.get("key1") == "value1"
        clock.now += 1
        assert await cache.get("key1") is None
        assert len(cache) == 0

    async def test_no_ttl_never_expires(self, cache: MemoryCache, clock: FakeClock) -> None:
        await cache.set("key1", "value1")
        clock.now += 10**9
        assert await cache.get("key1") == "value1"

    async def test_overwrite_resets_ttl(self, cache: MemoryCache, clock: FakeClock) -> None:
        await cache.set("key1", "a", ttl=10)
        clock.now += 9
        await cache.set("key1", "b", ttl=10)
        clock.now += 9
        assert await cache.get("key1") == "b"

    async def test_full_cache_refuses_new_keys(self, clock: FakeClock) -> None:
        cache = MemoryCache(CacheConfig(engine=CacheEngine.MEMORY, max_size=2), clock=clock)
        await cache.set("a", "1", ttl=60)
        await cache.set("b", "2", ttl=60)
        with pytest.raises(StorageUnavailableError):
            await cache.set("c", "3", ttl=60)
        # outstanding entries survive the flood
        assert await cache.get("a") == "1"
        assert await cache.get("b") == "2"
        await cache.set("a", "updated", ttl=60)
        assert await cache.get("a") == "updated"

    async def test_full_cache_makes_room_from_expired(self, clock: FakeClock) -> None:
        cache = MemoryCache(CacheConfig(engine=CacheEngine.MEMORY, max_size=2), clock=clock)
        await cache.set("a", "1", ttl=10)
        await cache.set("b", "2", ttl=60)
        clock.now += 10
        await cache.set("c", "3", ttl=60)
        assert len(cache) == 2
        assert await cache.get("a") is None
        assert await cache.get("c") == "3"

    async def test_ping_and_close(self, cache: MemoryCache) -> None:
        assert await cache.ping() is True
        await cache.set("a", "1")
        await cache.close()
        assert len(cache) == 0


class TestDeleteIfEqual:
    async def test_deletes_matching_value(self, cache: MemoryCache) -> None:
        await cache.set("k", "v", ttl=60)
        assert await cache.delete_if_equal("k", "v") is True
        assert await cache.get("k") is None

    async def test_second_delete_fails(self, cache: MemoryCache) -> None:
        await cache.set("k", "v")
        assert await cache.delete_if_equal("k", "v") is True
        assert await cache.delete_if_equal("k", "v") is False

    async def test_keeps_different_value(self, cache: MemoryCache) -> None:
        await cache.set("k", "v")
        assert await cache.delete_if_equal("k", "other") is False
        assert await cache.get("k") == "v"

    async def test_expired_is_not_deleted(self, cache: MemoryCache, clock: FakeClock) -> None:
        await cache.set("k", "v", ttl=60)
        clock.now += 61
        assert await cache.delete_if_equal("k", "v") is False

    async def test_concurrent_callers_single_winner(self, cache: MemoryCache) -> None:
        await cache.set("k", "v", ttl=60)
        results = await asyncio.gather(*(cache.delete_if_equal("k", "v") for _ in range(10)))
        assert results.count(True) == 1


class TestPurgeExpired:
    async def test_purges_only_stale_entries(self, cache: MemoryCache, clock: FakeClock) -> None:
        await cache.set("stale1", "x", ttl=30)
        await cache.set("stale2", "x", ttl=30)
        await cache.set("fresh", "x", ttl=120)
        await cache.set("forever", "x")
        clock.now += 60

        assert await cache.purge_expired() == 2
        assert len(cache) == 2
        assert await cache.get("fresh") == "x"
        assert await cache.get("forever") == "x"
        assert await cache.purge_expired() == 0
