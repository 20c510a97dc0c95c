"""Abstract provider protocols for earnings data.

This module defines the capability interfaces (Protocols) that data providers
implement. The orchestrator holds an ordered list per capability and falls
back down the list, so swapping or adding a provider never changes consumer
code.

Provider Types:
- CalendarProvider: Earnings calendar for a date range
- HistoricalMovesProvider: Past earnings reactions for a ticker
- ImpliedMoveProvider: Market-implied earnings move from options data
- QuoteProvider: Price, name and market cap for a ticker

It also holds the HTTP status → error mapping shared by every client.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Protocol, runtime_checkable

import httpx
import orjson

from ivcrush.core.exceptions import (
    ProviderAuthError,
    ProviderMalformed,
    ProviderRateLimited,
    ProviderUnavailable,
)
from ivcrush.earnings.models import EarningsEntry, HistoricalMove, ImpliedMove, Quote


@runtime_checkable
class CalendarProvider(Protocol):
    """Protocol for earnings calendar sources."""

    name: str

    async def fetch_calendar(self, from_date: date, to_date: date) -> list[EarningsEntry]:
        """Get all earnings scheduled between two dates (inclusive).

        Raises:
            ProviderError subclass on auth, rate limit, transport or parse failure.
        """
        ...

    async def close(self) -> None: ...


@runtime_checkable
class HistoricalMovesProvider(Protocol):
    """Protocol for past earnings reactions, newest first."""

    name: str

    async def fetch_historical_moves(self, ticker: str) -> list[HistoricalMove]:
        """Get historical earnings moves for a ticker.

        Returns:
            Moves ordered newest-first, empty if the provider has none.
        """
        ...

    async def close(self) -> None: ...


@runtime_checkable
class ImpliedMoveProvider(Protocol):
    """Protocol for market-implied earnings move."""

    name: str

    async def fetch_implied_move(self, ticker: str, price: float) -> ImpliedMove | None:
        """Get the implied move for the nearest expiration, or None if unavailable."""
        ...

    async def close(self) -> None: ...


@runtime_checkable
class QuoteProvider(Protocol):
    """Protocol for price and company lookup."""

    name: str

    async def fetch_quote(self, ticker: str) -> Quote | None: ...

    async def close(self) -> None: ...


@runtime_checkable
class ProfileProvider(Protocol):
    """Protocol for company profile lookup (name, market cap, sector).

    Fills in what a price-only quote source leaves blank; ``price`` on the
    returned Quote is not meaningful.
    """

    name: str

    async def fetch_profile(self, ticker: str) -> Quote | None: ...

    async def close(self) -> None: ...


# =============================================================================
# Shared HTTP helpers
# =============================================================================


def check_response(provider: str, response: httpx.Response) -> None:
    """Translate a non-200 response into the provider error taxonomy."""
    status = response.status_code
    if status == 200:
        return
    if status in (401, 403):
        raise ProviderAuthError(provider, f"credentials rejected (HTTP {status})", status)
    if status == 429:
        raise ProviderRateLimited(provider, "rate limit exceeded", status)
    raise ProviderUnavailable(provider, f"HTTP {status}", status)


def parse_json(provider: str, response: httpx.Response) -> Any:
    """Decode a JSON body, raising ProviderMalformed instead of a decode error."""
    try:
        return orjson.loads(response.content)
    except orjson.JSONDecodeError as e:
        raise ProviderMalformed(provider, "JSON parse error", response.status_code) from e


async def get_json(
    provider: str,
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET ``url`` and return decoded JSON, mapping every failure to a ProviderError."""
    try:
        response = await client.get(url, params=params, headers=headers)
    except httpx.TimeoutException as e:
        raise ProviderUnavailable(provider, "timeout") from e
    except httpx.TransportError as e:
        raise ProviderUnavailable(provider, f"transport error: {e}") from e
    check_response(provider, response)
    return parse_json(provider, response)


def validate_ticker(ticker: str) -> str:
    """Normalise a ticker symbol; blank symbols are rejected."""
    symbol = ticker.strip().upper()
    if not symbol:
        raise ValueError("ticker must be non-empty")
    return symbol
