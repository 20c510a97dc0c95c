"""Storage layer: TTL caches (memory or Redis)."""

from ivcrush.storage.cache import Cache, CacheEntry, MemoryCache, RedisCache, create_cache
from ivcrush.storage.redis import close_redis, get_redis, init_redis

__all__ = [
    "Cache",
    "CacheEntry",
    "MemoryCache",
    "RedisCache",
    "close_redis",
    "create_cache",
    "get_redis",
    "init_redis",
]
