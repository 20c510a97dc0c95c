"""Finnhub API client: earnings calendar, EPS surprises and quotes.

Endpoints used:
    /calendar/earnings  -> fetch_calendar()          (primary calendar source)
    /stock/earnings     -> fetch_historical_moves()  (EPS-surprise proxy for moves)
    /quote              -> fetch_quote() price
    /stock/profile2     -> fetch_quote() / fetch_profile() name, market cap, industry

Rate limiting: Free tier = 60 calls/min across ALL endpoints.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Any

import httpx

from ivcrush.core.constants import (
    CALENDAR_CACHE_TTL_SECONDS,
    FINNHUB_API_URL,
    FINNHUB_SURPRISE_LIMIT,
    HISTORY_CACHE_TTL_SECONDS,
)
from ivcrush.core.exceptions import ProviderMalformed
from ivcrush.core.logging import get_logger
from ivcrush.earnings.models import EarningsEntry, HistoricalMove, Quote, Timing
from ivcrush.providers.base import get_json, validate_ticker
from ivcrush.providers.ratelimit import RateLimiter
from ivcrush.storage.cache import Cache, MemoryCache

logger = get_logger(__name__)

PROVIDER = "finnhub"

# Finnhub "hour" field. "dmh" (during market hours) is traded like AMC.
_TIMING_MAP: dict[str, Timing] = {
    "bmo": "BMO",
    "amc": "AMC",
    "dmh": "AMC",
}


class FinnhubClient:
    """Client for the Finnhub REST API.

    Implements CalendarProvider, HistoricalMovesProvider, QuoteProvider and
    ProfileProvider.
    Historical moves returned here are EPS surprise percentages, not price
    moves; the orchestrator tags them ``history_source="eps_surprise"``.

    Usage:
        client = FinnhubClient(api_key="...")
        entries = await client.fetch_calendar(date(2026, 2, 13), date(2026, 2, 13))
        await client.close()
    """

    name = PROVIDER

    def __init__(
        self,
        api_key: str,
        history_cache: Cache | None = None,
        quote_cache: Cache | None = None,
        rate_limiter: RateLimiter | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._history_cache = history_cache or MemoryCache(
            "finnhub_surprises", HISTORY_CACHE_TTL_SECONDS
        )
        self._quote_cache = quote_cache or MemoryCache("finnhub_quotes", CALENDAR_CACHE_TTL_SECONDS)
        self._rate_limiter = rate_limiter or RateLimiter()
        self._timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def _fetch(self, endpoint: str, params: dict[str, str | int]) -> Any:
        """Rate-limited GET against the Finnhub API."""
        await self._rate_limiter.acquire()
        return await get_json(
            PROVIDER,
            self._get_http_client(),
            f"{FINNHUB_API_URL}{endpoint}",
            params={**params, "token": self._api_key},
        )

    # ─────────────────────────────────────────────────────────────
    # CalendarProvider
    # ─────────────────────────────────────────────────────────────

    async def fetch_calendar(self, from_date: date, to_date: date) -> list[EarningsEntry]:
        """Get earnings calendar rows between two dates."""
        data = await self._fetch(
            "/calendar/earnings",
            {"from": from_date.isoformat(), "to": to_date.isoformat()},
        )
        rows = data.get("earningsCalendar") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise ProviderMalformed(PROVIDER, "response has no earningsCalendar")

        entries: list[EarningsEntry] = []
        for row in rows:
            if not isinstance(row, dict):
                logger.warning("Skipping malformed calendar row", provider=PROVIDER, row=repr(row))
                continue
            symbol = str(row.get("symbol") or "").strip()
            if not symbol or not row.get("date"):
                continue
            try:
                entries.append(
                    EarningsEntry(
                        ticker=symbol,
                        date=row["date"],
                        timing=map_timing(row.get("hour")),
                        eps_estimate=row.get("epsEstimate"),
                        eps_prior=row.get("epsActual"),
                        revenue_estimate=row.get("revenueEstimate"),
                        revenue_actual=row.get("revenueActual"),
                        quarter=row.get("quarter"),
                        year=row.get("year"),
                        source=PROVIDER,
                    )
                )
            except ValueError as e:
                logger.debug("Skipping unparseable calendar row", symbol=symbol, error=str(e))

        logger.debug(
            "Fetched Finnhub calendar",
            from_date=from_date.isoformat(),
            to_date=to_date.isoformat(),
            count=len(entries),
        )
        return entries

    # ─────────────────────────────────────────────────────────────
    # HistoricalMovesProvider (EPS surprise proxy)
    # ─────────────────────────────────────────────────────────────

    async def fetch_historical_moves(self, ticker: str) -> list[HistoricalMove]:
        """Get EPS surprise percentages as a stand-in for historical moves."""
        symbol = validate_ticker(ticker)
        cached = await self._history_cache.get(symbol)
        if cached is not None:
            return [HistoricalMove.model_validate(m) for m in cached]

        data = await self._fetch(
            "/stock/earnings", {"symbol": symbol, "limit": FINNHUB_SURPRISE_LIMIT}
        )
        if not isinstance(data, list):
            raise ProviderMalformed(PROVIDER, "stock/earnings did not return a list")

        moves: list[HistoricalMove] = []
        for row in data:
            try:
                moves.append(surprise_to_move(row))
            except (ValueError, TypeError, AttributeError) as e:
                logger.debug("Skipping unparseable surprise row", ticker=symbol, error=str(e))
        await self._history_cache.set(symbol, [m.model_dump(mode="json") for m in moves])
        return moves

    # ─────────────────────────────────────────────────────────────
    # QuoteProvider
    # ─────────────────────────────────────────────────────────────

    async def fetch_quote(self, ticker: str) -> Quote | None:
        """Get price (/quote) and company profile (/stock/profile2) concurrently."""
        symbol = validate_ticker(ticker)
        cached = await self._quote_cache.get(symbol)
        if cached is not None:
            return Quote.model_validate(cached)

        quote, profile = await asyncio.gather(
            self._fetch("/quote", {"symbol": symbol}),
            self._fetch("/stock/profile2", {"symbol": symbol}),
        )
        if not isinstance(quote, dict):
            raise ProviderMalformed(PROVIDER, "quote is not an object")

        try:
            price = float(quote.get("c") or 0)
        except (TypeError, ValueError) as e:
            raise ProviderMalformed(PROVIDER, f"unparseable quote price: {e}") from e
        result = profile_to_quote(symbol, profile).model_copy(update={"price": price})
        await self._quote_cache.set(symbol, result.model_dump(mode="json"))
        return result

    # ─────────────────────────────────────────────────────────────
    # ProfileProvider
    # ─────────────────────────────────────────────────────────────

    async def fetch_profile(self, ticker: str) -> Quote | None:
        """Company name, market cap and industry from /stock/profile2 (price left at 0)."""
        symbol = validate_ticker(ticker)
        cache_key = f"profile:{symbol}"
        cached = await self._quote_cache.get(cache_key)
        if cached is not None:
            return Quote.model_validate(cached)

        profile = await self._fetch("/stock/profile2", {"symbol": symbol})
        if not isinstance(profile, dict) or not profile:
            return None
        result = profile_to_quote(symbol, profile)
        await self._quote_cache.set(cache_key, result.model_dump(mode="json"))
        return result

    async def close(self) -> None:
        """Clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("FinnhubClient closed")


def map_timing(hour: str | None) -> Timing:
    """Map Finnhub's ``hour`` field; unknown or missing values are treated as AMC."""
    return _TIMING_MAP.get((hour or "").lower(), "AMC")


def profile_to_quote(symbol: str, profile: Any) -> Quote:
    """Map a /stock/profile2 body; anything that is not an object yields a bare Quote."""
    if not isinstance(profile, dict):
        return Quote(name=symbol)
    try:
        # Finnhub returns market cap in millions
        market_cap = float(profile.get("marketCapitalization") or 0) * 1_000_000
    except (TypeError, ValueError):
        market_cap = 0.0
    return Quote(
        name=str(profile.get("name") or symbol),
        market_cap=market_cap or None,
        sector=str(profile.get("finnhubIndustry") or ""),
    )


def surprise_to_move(row: dict[str, Any]) -> HistoricalMove:
    """Convert a /stock/earnings row into a HistoricalMove (|surprise %|, sign as direction)."""
    pct = float(row.get("surprisePercent") or 0)
    return HistoricalMove(
        quarter=f"Q{row.get('quarter')} {row.get('year')}",
        actual=abs(float(pct)),
        direction="up" if pct >= 0 else "down",
        date=row.get("period") or "",
    )
