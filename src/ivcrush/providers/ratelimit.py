"""Sliding-window rate limiter for provider REST calls."""

from __future__ import annotations

import asyncio

from ivcrush.core.constants import FINNHUB_RATE_LIMIT_CALLS_PER_MINUTE


class RateLimiter:
    """Sliding-window rate limiter for API calls.

    Ensures we don't exceed a provider's per-minute limit even with parallel
    enrichment calls. One instance per client, shared by all its endpoints.
    """

    def __init__(
        self,
        calls_per_minute: int = FINNHUB_RATE_LIMIT_CALLS_PER_MINUTE,
        window: float = 60.0,
    ) -> None:
        self._calls_per_minute = calls_per_minute
        self._window = window
        self._calls: list[float] = []
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Acquire permission to make an API call, waiting if necessary."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()

            # Drop calls that left the window
            self._calls = [t for t in self._calls if t > now - self._window]

            if len(self._calls) >= self._calls_per_minute:
                # Wait until the oldest call expires
                sleep_time = self._window - (now - self._calls[0]) + 0.1
                if sleep_time > 0:
                    await asyncio.sleep(sleep_time)
                    now = loop.time()
                    self._calls = [t for t in self._calls if t > now - self._window]

            self._calls.append(now)

    @property
    def in_window(self) -> int:
        return len(self._calls)
