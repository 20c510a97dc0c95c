"""Pytest fixtures and configuration."""

from collections.abc import Iterator

import pytest

from ivcrush.config import get_settings


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip live-API tests by default unless -m integration is specified."""
    markexpr = config.getoption("-m", default="")
    if "integration" in markexpr:
        return

    skip_integration = pytest.mark.skip(
        reason="Hits live provider APIs - run with: pytest -m integration"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Drop the cached Settings so env changes in one test never leak into the next."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio for the integration tests' anyio marker."""
    return "asyncio"
