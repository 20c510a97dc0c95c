"""ORATS Data API client: actual earnings moves and implied earnings move.

Endpoints used:
    /datav2/earnings        -> fetch_historical_moves()
    /datav2/smv/summaries   -> fetch_implied_move()

ORATS reports percentages as fractions (0.0523 = 5.23%).
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx

from ivcrush.core.constants import HISTORY_CACHE_TTL_SECONDS, ORATS_API_URL
from ivcrush.core.exceptions import ProviderMalformed
from ivcrush.core.logging import get_logger
from ivcrush.earnings.models import HistoricalMove, ImpliedMove
from ivcrush.providers.base import get_json, validate_ticker
from ivcrush.storage.cache import Cache, MemoryCache

logger = get_logger(__name__)

PROVIDER = "orats"


class OratsClient:
    """Client for the ORATS API.

    Implements HistoricalMovesProvider and ImpliedMoveProvider. Unlike the
    Finnhub EPS proxy, moves here are real stock price changes on the day
    after earnings.
    """

    name = PROVIDER

    def __init__(
        self,
        api_token: str,
        cache: Cache | None = None,
        history_limit: int = 20,
        timeout: float = 15.0,
    ) -> None:
        self._api_token = api_token
        self._cache = cache or MemoryCache("orats", HISTORY_CACHE_TTL_SECONDS)
        self._history_limit = history_limit
        self._timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def _fetch_rows(self, endpoint: str, symbol: str) -> list[dict[str, Any]]:
        data = await get_json(
            PROVIDER,
            self._get_http_client(),
            f"{ORATS_API_URL}{endpoint}",
            params={"token": self._api_token, "ticker": symbol},
        )
        rows = data.get("data") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise ProviderMalformed(PROVIDER, f"{endpoint} response has no data")
        return [r for r in rows if isinstance(r, dict)]

    async def fetch_historical_moves(self, ticker: str) -> list[HistoricalMove]:
        """Get actual earnings-day moves, newest first, up to ``history_limit``."""
        symbol = validate_ticker(ticker)
        cache_key = f"earnings:{symbol}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return [HistoricalMove.model_validate(m) for m in cached]

        moves: list[HistoricalMove] = []
        for row in await self._fetch_rows("/earnings", symbol):
            if row.get("stockPctChg1d") is None or not row.get("earnDate"):
                continue
            try:
                moves.append(earnings_row_to_move(row))
            except (ValueError, TypeError) as e:
                logger.debug("Skipping unparseable ORATS earnings row", ticker=symbol, error=str(e))

        # ISO dates sort chronologically as strings
        moves.sort(key=lambda m: m.date, reverse=True)
        moves = moves[: self._history_limit]
        await self._cache.set(cache_key, [m.model_dump(mode="json") for m in moves])
        logger.debug("ORATS earnings history", ticker=symbol, count=len(moves))
        return moves

    async def fetch_implied_move(self, ticker: str, price: float) -> ImpliedMove | None:
        """Get the pre-computed implied earnings move from SMV summaries."""
        symbol = validate_ticker(ticker)
        cache_key = f"smv:{symbol}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return ImpliedMove.model_validate(cached)

        rows = await self._fetch_rows("/smv/summaries", symbol)
        if not rows or rows[0].get("ernImpMove") is None:
            return None

        latest = rows[0]
        try:
            result = ImpliedMove(
                implied_move=_pct(latest["ernImpMove"]),
                iv=_pct(latest.get("atmIv") or 0),
                nearest_expiry=latest.get("nextErnDate"),
                source=PROVIDER,
            )
        except (ValueError, TypeError) as e:
            raise ProviderMalformed(PROVIDER, f"unparseable SMV summary: {e}") from e
        await self._cache.set(cache_key, result.model_dump(mode="json"))
        return result

    async def close(self) -> None:
        """Clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("OratsClient closed")


def _pct(fraction: float) -> float:
    return round(float(fraction) * 100, 2)


def earnings_row_to_move(row: dict[str, Any]) -> HistoricalMove:
    """Convert an ORATS /earnings row into a HistoricalMove."""
    change = _pct(row["stockPctChg1d"])
    earn_date = date.fromisoformat(str(row["earnDate"])[:10])
    quarter = (earn_date.month - 1) // 3 + 1
    implied = row.get("ernStraPct1")
    return HistoricalMove(
        quarter=f"Q{quarter} {earn_date.year}",
        actual=abs(change),
        direction="up" if change >= 0 else "down",
        date=earn_date.isoformat(),
        implied_at_time=_pct(implied) if implied is not None else None,
    )
