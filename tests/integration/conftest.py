"""Shared fixtures for integration tests.

These fixtures provide a stateful mock of Redis that keeps what the caches
write, while real provider calls (Yahoo, Finnhub, FMP, ORATS, Alpha Vantage)
proceed over the network.
"""

from typing import Any
from unittest.mock import AsyncMock

import pytest


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
def mock_redis() -> Any:
    """Create mock Redis with stateful get/set/delete.

    Internal state attributes:
        _test_strings: Dict of key -> stored bytes
        _test_expiry: Dict of key -> ``ex`` seconds passed to set()
    """
    redis = AsyncMock()

    _test_strings: dict[str, bytes] = {}
    _test_expiry: dict[str, int | None] = {}

    redis._test_strings = _test_strings
    redis._test_expiry = _test_expiry

    async def mock_set(key: str, value: bytes, ex: int | None = None) -> bool:
        _test_strings[key] = value
        _test_expiry[key] = ex
        return True

    async def mock_get(key: str) -> bytes | None:
        return _test_strings.get(key)

    async def mock_delete(*keys: str) -> int:
        count = 0
        for key in keys:
            if _test_strings.pop(key, None) is not None:
                count += 1
        return count

    redis.set = mock_set
    redis.get = mock_get
    redis.delete = mock_delete
    redis.ping = AsyncMock(return_value=True)
    redis.aclose = AsyncMock()

    return redis


@pytest.fixture
def test_settings() -> Any:
    """Settings with real API keys from environment / .env.

    Keys that are missing simply leave their provider out; Yahoo needs none.
    """
    from ivcrush.config import get_settings

    get_settings.cache_clear()
    return get_settings()
