"""
Factory for creating cache instances from settings.
"""

from enum import Enum
import logging

import redis

from shortlink_app.config import Settings
from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """
    Builds the cache strategy selected by `cache_backend`.

    The instance is owned by the application (stored on `app.state`), so the
    factory keeps no state of its own.
    """

    @classmethod
    def create(cls, backend: CacheBackend, settings: Settings) -> CacheStrategy:
        """
        Create a cache instance.

        A Redis backend that cannot be reached at startup falls back to the
        in-memory cache with a warning.
        """
        if backend == CacheBackend.REDIS:
            return cls._create_redis(settings)

        if backend == CacheBackend.MEMORY:
            logger.info("In-memory cache initialized")
            return InMemoryCache()

        if backend == CacheBackend.NULL:
            logger.info("Cache disabled")
            return NullCache()

        raise ValueError(f"Unknown cache backend: {backend}")

    @staticmethod
    def _create_redis(settings: Settings) -> CacheStrategy:
        options = {
            "decode_responses": True,
            "socket_connect_timeout": 2,
            "socket_timeout": 2,
        }
        if settings.redis_password is not None:
            options["password"] = settings.redis_password
        if settings.redis_db is not None:
            options["db"] = settings.redis_db

        try:
            client = redis.from_url(settings.redis_url, **options)
            client.ping()
        except redis.RedisError as e:
            logger.warning(
                "Redis connection failed, falling back to in-memory cache",
                extra={"redis_url": settings.redis_url, "error": str(e)},
            )
            return InMemoryCache()

        logger.info("Redis cache initialized", extra={"redis_url": settings.redis_url})
        return RedisCache(client)
