"""TTL caches for provider responses and assembled results.

Each cache instance is scoped to one provider or purpose and carries its own
TTL. Values must be JSON-serialisable (clients store ``model_dump(mode="json")``
payloads) so the in-memory and Redis backends are interchangeable.

Known limitations:
- No single-flight. Two concurrent misses on the same key both go upstream.
- ``MemoryCache`` never evicts. Stale entries stay until overwritten, so key
  cardinality (ticker x date) grows for the life of the process.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import orjson

from ivcrush.core.constants import CACHE_PREFIX
from ivcrush.core.logging import get_logger

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)


@runtime_checkable
class Cache(Protocol):
    """Key/value cache with a fixed per-instance TTL."""

    name: str
    ttl: float

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    fetched_at: float

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.fetched_at < ttl


class MemoryCache:
    """Process-lifetime cache: key -> (value, fetched_at).

    A value is returned iff ``now - fetched_at < ttl``. Reads and writes never
    await, so on a single event loop a TTL check cannot interleave with a write.
    """

    def __init__(
        self,
        name: str,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock(), self.ttl):
            return None
        return entry.value

    async def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache:
    """Redis-backed cache using native key expiry for the TTL."""

    def __init__(self, redis: Redis, name: str, ttl: float) -> None:
        self._redis = redis
        self.name = name
        self.ttl = ttl

    def _key(self, key: str) -> str:
        return f"{CACHE_PREFIX}:{self.name}:{key}"

    async def get(self, key: str) -> Any | None:
        cache_key = self._key(key)
        cached = await self._redis.get(cache_key)
        if not cached:
            return None
        try:
            return orjson.loads(cached)
        except orjson.JSONDecodeError:
            logger.warning("Corrupt cache entry, refetching", cache_key=cache_key)
            await self._redis.delete(cache_key)
            return None

    async def set(self, key: str, value: Any) -> None:
        await self._redis.set(self._key(key), orjson.dumps(value), ex=max(1, int(self.ttl)))


def create_cache(name: str, ttl: float, redis: Redis | None = None) -> Cache:
    """Create a cache for ``name``: Redis-backed when a client is given, else in-memory."""
    if redis is not None:
        return RedisCache(redis, name=name, ttl=ttl)
    return MemoryCache(name=name, ttl=ttl)
