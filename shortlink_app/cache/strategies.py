"""
Cache strategies for alias -> original URL lookups.

The cache is a non-authoritative accelerator in front of the store: every
backend must tolerate misses, and a failing backend degrades to a miss
rather than failing the request.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

import redis
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.

    All methods are async so the service awaits them uniformly, whether the
    backend does network I/O (Redis) or not.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache.

        Returns:
            Cached value or None on a miss (or backend failure)
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds, 0 means no expiry

        Returns:
            True if stored, False otherwise
        """
        pass


class RedisCache(CacheStrategy):
    """
    Redis-backed cache shared by every application instance.

    Values are stored as plain strings under the caller's key. The client
    is blocking, so every call runs in the thread pool and a slow Redis
    never stalls the event loop.
    """

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await run_in_threadpool(self.redis.get, key)
        except redis.RedisError as e:
            logger.warning("Redis get failed", extra={"key": key, "error": str(e)})
            return None
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        try:
            if ttl > 0:
                stored = await run_in_threadpool(self.redis.setex, key, ttl, value)
            else:
                stored = await run_in_threadpool(self.redis.set, key, value)
        except redis.RedisError as e:
            logger.warning("Redis set failed", extra={"key": key, "error": str(e)})
            return False
        return bool(stored)


class InMemoryCache(CacheStrategy):
    """
    Process-local dict cache for development and tests.

    Not shared between instances and lost on restart. TTL is ignored:
    aliases never change, so stale entries cannot exist.
    """

    def __init__(self):
        self._cache: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._cache.get(key)

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        self._cache[key] = value
        return True


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that stores nothing.

    Every lookup is a miss, so every redirect goes to the store.
    """

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        return True
