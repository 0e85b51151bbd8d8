"""Redis caching layer for public read-heavy payloads."""

import json
import logging
from typing import Any

import redis.asyncio as redis

from fansite.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class CacheService:
    """Best-effort async Redis cache. Failures are logged, never raised."""

    def __init__(self, enabled: bool | None = None):
        self._redis: redis.Redis | None = None
        self.enabled = settings.cache_enabled if enabled is None else enabled

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.close()
            self._redis = None

    async def get(self, key: str) -> Any | None:
        if not self.enabled:
            return None
        try:
            client = await self._get_redis()
            value = await client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Set value in cache; falls back to the configured TTL."""
        if not self.enabled:
            return False
        try:
            client = await self._get_redis()
            await client.setex(key, ttl or settings.cache_ttl_seconds, json.dumps(value, default=str))
            return True
        except Exception as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            client = await self._get_redis()
            await client.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return False

    async def flush_pattern(self, pattern: str) -> int:
        """Delete all keys matching a pattern. Returns count of deleted keys."""
        if not self.enabled:
            return 0
        try:
            client = await self._get_redis()
            deleted = 0
            async for key in client.scan_iter(match=pattern, count=500):
                await client.delete(key)
                deleted += 1
            return deleted
        except Exception as e:
            logger.warning(f"Cache flush_pattern error for {pattern}: {e}")
            return 0

    # Key patterns
    @staticmethod
    def arc_timeline_key(arc_id: int) -> str:
        return f"arc:timeline:{arc_id}"

    @staticmethod
    def tag_list_key(page: int, limit: int, sort: str | None, order: str) -> str:
        return f"tags:list:{page}:{limit}:{sort or '-'}:{order}"

    @staticmethod
    def stats_key() -> str:
        return "stats:landing"


_cache: CacheService | None = None


def get_cache() -> CacheService:
    """Get the singleton cache service."""
    global _cache
    if _cache is None:
        _cache = CacheService()
    return _cache
