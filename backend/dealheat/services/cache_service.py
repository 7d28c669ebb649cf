"""Redis caching service for anonymous deal listings.

Redis failures are logged and treated as cache misses; the API keeps
working against the database.
"""

from typing import Optional

import structlog
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from dealheat.config import settings

logger = structlog.get_logger(__name__)

DEALS_CACHE_PATTERN = "deals:*"


class CacheService:
    """Async Redis cache with TTL, pattern invalidation and health checking."""

    def __init__(self, redis_url: str, enabled: bool = True):
        """Initialize cache service.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")
            enabled: When False every call is a no-op miss
        """
        self.redis_url = redis_url
        self.enabled = enabled
        self._redis: Optional[Redis] = None
        self.logger = logger.bind(service="cache_service")

    async def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            self.logger.info("redis_connection_created", url=self.redis_url)

        return self._redis

    async def get(self, key: str) -> Optional[str]:
        """Get a value from cache, or None on miss or error."""
        if not self.enabled:
            return None
        try:
            redis = await self._get_redis()
            value = await redis.get(key)
            self.logger.debug("cache_hit" if value else "cache_miss", key=key)
            return value
        except RedisError as e:
            self.logger.error("cache_get_failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: str, ttl: int = 300) -> bool:
        """Set a value with a TTL in seconds. Returns False on error."""
        if not self.enabled:
            return False
        try:
            redis = await self._get_redis()
            await redis.set(key, value, ex=ttl)
            self.logger.debug("cache_set", key=key, ttl=ttl)
            return True
        except RedisError as e:
            self.logger.error("cache_set_failed", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        """Delete a single key. Returns True if it existed."""
        if not self.enabled:
            return False
        try:
            redis = await self._get_redis()
            return bool(await redis.delete(key))
        except RedisError as e:
            self.logger.error("cache_delete_failed", key=key, error=str(e))
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a pattern (e.g. "deals:*")."""
        if not self.enabled:
            return 0
        try:
            redis = await self._get_redis()
            keys = [key async for key in redis.scan_iter(match=pattern, count=100)]
            deleted = await redis.delete(*keys) if keys else 0
            self.logger.info("cache_pattern_delete", pattern=pattern, keys_deleted=deleted)
            return deleted
        except RedisError as e:
            self.logger.error("cache_pattern_delete_failed", pattern=pattern, error=str(e))
            return 0

    async def health_check(self) -> bool:
        """Ping Redis. A disabled cache reports healthy."""
        if not self.enabled:
            return True
        try:
            redis = await self._get_redis()
            await redis.ping()
            return True
        except (RedisError, OSError) as e:
            self.logger.error("redis_health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the Redis connection on shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("redis_connection_closed")


_cache_instance: Optional[CacheService] = None


def get_cache_service() -> CacheService:
    """Get or create the process-wide cache service."""
    global _cache_instance

    if _cache_instance is None:
        _cache_instance = CacheService(settings.REDIS_URL, enabled=settings.CACHE_ENABLED)
        logger.info("cache_service_initialized", enabled=settings.CACHE_ENABLED)

    return _cache_instance


async def get_cache() -> CacheService:
    """FastAPI dependency for the cache service."""
    return get_cache_service()


async def invalidate_deals_cache(cache: Optional[CacheService] = None) -> int:
    """Drop every cached deal listing. Call after moderation changes."""
    cache = cache or get_cache_service()
    deleted = await cache.delete_pattern(DEALS_CACHE_PATTERN)
    logger.info("deals_cache_invalidated", keys_deleted=deleted)
    return deleted


def cache_key_for_deals(
    page: int,
    limit: int,
    sort_by: str,
    category_slug: Optional[str] = None,
    shop_slug: Optional[str] = None,
    search: Optional[str] = None,
) -> str:
    """Cache key for an anonymous listing request."""
    parts = ["deals", f"p{page}", f"l{limit}", f"s{sort_by}"]

    if category_slug:
        parts.append(f"c{category_slug}")

    if shop_slug:
        parts.append(f"sh{shop_slug}")

    if search:
        parts.append(f"q{search.lower()}")

    return ":".join(parts)
