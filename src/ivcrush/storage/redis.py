"""Optional shared Redis client for the provider caches.

Redis is never required: when ``IVCRUSH_REDIS_URL`` is unset, or the server
does not answer at startup, every cache stays in process memory.
"""

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ivcrush.core.logging import get_logger

logger = get_logger(__name__)

_redis: Redis | None = None


def get_redis() -> Redis | None:
    """The connected client, or None when running on memory caches."""
    return _redis


async def init_redis(redis_url: str | None) -> Redis | None:
    """Connect and ping. Returns None (memory caches) if Redis is unreachable."""
    global _redis
    if not redis_url:
        return None

    client = Redis.from_url(redis_url, decode_responses=False)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning("Redis unreachable, using memory caches", error=str(e))
        await client.aclose()
        return None

    _redis = client
    logger.info("Redis connected")
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        logger.info("Redis disconnected")
        _redis = None
