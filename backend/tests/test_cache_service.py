"""Tests for the listing cache: key building and graceful degradation."""

from redis.exceptions import ConnectionError as RedisConnectionError

from dealheat.services.cache_service import CacheService, cache_key_for_deals, invalidate_deals_cache


class BrokenRedis:
    async def get(self, key):
        raise RedisConnectionError("connection refused")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("connection refused")

    async def delete(self, *keys):
        raise RedisConnectionError("connection refused")

    async def ping(self):
        raise RedisConnectionError("connection refused")


def test_cache_key_includes_filters():
    assert cache_key_for_deals(1, 12, "hot") == "deals:p1:l12:shot"
    key = cache_key_for_deals(2, 24, "newest", category_slug="gaming", shop_slug="steam", search="Switch")
    assert key == "deals:p2:l24:snewest:cgaming:shsteam:qswitch"


async def test_disabled_cache_is_a_noop():
    cache = CacheService("redis://localhost:6379/0", enabled=False)

    assert await cache.set("deals:p1", "{}") is False
    assert await cache.get("deals:p1") is None
    assert await cache.delete("deals:p1") is False
    assert await invalidate_deals_cache(cache) == 0
    assert await cache.health_check() is True


async def test_redis_errors_degrade_to_misses(monkeypatch):
    cache = CacheService("redis://localhost:6379/0")

    async def broken():
        return BrokenRedis()

    monkeypatch.setattr(cache, "_get_redis", broken)

    assert await cache.get("deals:p1") is None
    assert await cache.set("deals:p1", "{}", ttl=15) is False
    assert await cache.delete("deals:p1") is False
    assert await cache.health_check() is False
