"""Yahoo Finance earnings history: actual stock price moves around earnings.

Approach:
1. Earnings dates from quoteSummary ``earningsHistory``
2. Five years of daily bars from the v8 chart endpoint
3. For each date, the largest-magnitude move among the open gap, the
   close-to-close move and the next-day open gap

Timing (BMO/AMC) is unknown for past reports, so taking the largest of the
three windows captures the reaction either way.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from ivcrush.core.calendar import MARKET_TZ
from ivcrush.core.constants import HISTORY_CACHE_TTL_SECONDS, YAHOO_QUERY1_URL
from ivcrush.core.logging import get_logger
from ivcrush.earnings.models import HistoricalMove
from ivcrush.providers.base import validate_ticker
from ivcrush.providers.yahoo.session import PROVIDER, YahooSession
from ivcrush.storage.cache import Cache, MemoryCache

logger = get_logger(__name__)

# Trading-day search window after an earnings date that fell on a closed day
LOOKAHEAD_DAYS = 3


@dataclass(frozen=True, slots=True)
class DailyBar:
    day: date
    open: float | None
    close: float | None


class YahooEarningsClient:
    """Historical earnings moves from Yahoo. Implements HistoricalMovesProvider."""

    name = PROVIDER

    def __init__(self, session: YahooSession, cache: Cache | None = None) -> None:
        self._session = session
        self._cache = cache or MemoryCache("yahoo_history", HISTORY_CACHE_TTL_SECONDS)

    async def fetch_historical_moves(self, ticker: str) -> list[HistoricalMove]:
        symbol = validate_ticker(ticker)
        cached = await self._cache.get(symbol)
        if cached is not None:
            return [HistoricalMove.model_validate(m) for m in cached]

        earnings_dates, bars = await asyncio.gather(
            self._fetch_earnings_dates(symbol),
            self._fetch_daily_bars(symbol),
        )
        if not earnings_dates or not bars:
            return []

        moves = compute_earnings_moves(earnings_dates, bars)
        await self._cache.set(symbol, [m.model_dump(mode="json") for m in moves])
        logger.debug("Yahoo earnings history", ticker=symbol, count=len(moves))
        return moves

    async def _fetch_earnings_dates(self, symbol: str) -> list[date]:
        data = await self._session.get_json(
            f"{YAHOO_QUERY1_URL}/v10/finance/quoteSummary/{symbol}",
            params={"modules": "earningsHistory,calendarEvents"},
        )
        results = (data.get("quoteSummary") or {}).get("result") if isinstance(data, dict) else None
        if not results:
            return []
        history = (results[0].get("earningsHistory") or {}).get("history") or []

        dates: list[date] = []
        for item in history:
            quarter = item.get("quarter") or {}
            if quarter.get("raw") is None or not quarter.get("fmt"):
                continue
            try:
                dates.append(date.fromisoformat(quarter["fmt"]))
            except ValueError:
                continue
        return dates

    async def _fetch_daily_bars(self, symbol: str) -> list[DailyBar]:
        data = await self._session.get_json(
            f"{YAHOO_QUERY1_URL}/v8/finance/chart/{symbol}",
            params={"interval": "1d", "range": "5y"},
        )
        results = (data.get("chart") or {}).get("result") if isinstance(data, dict) else None
        if not results:
            return []
        return parse_chart_bars(results[0])

    async def close(self) -> None:
        await self._session.close()


def parse_chart_bars(result: dict[str, Any]) -> list[DailyBar]:
    """Turn a chart ``result`` block into daily bars dated in market time."""
    timestamps = result.get("timestamp") or []
    quote = ((result.get("indicators") or {}).get("quote") or [{}])[0]
    opens = quote.get("open") or []
    closes = quote.get("close") or []

    bars = []
    for i, ts in enumerate(timestamps):
        bars.append(
            DailyBar(
                day=datetime.fromtimestamp(ts, tz=MARKET_TZ).date(),
                open=opens[i] if i < len(opens) else None,
                close=closes[i] if i < len(closes) else None,
            )
        )
    return bars


def compute_earnings_moves(
    earnings_dates: list[date], bars: list[DailyBar]
) -> list[HistoricalMove]:
    """Largest-magnitude earnings reaction per date, newest first.

    Dates with no trading day within LOOKAHEAD_DAYS, or with no prior bar,
    are skipped.
    """
    index = {bar.day: i for i, bar in enumerate(bars)}
    moves: list[HistoricalMove] = []

    for earnings_date in earnings_dates:
        idx = index.get(earnings_date)
        offset = 1
        while idx is None and offset <= LOOKAHEAD_DAYS:
            idx = index.get(earnings_date + timedelta(days=offset))
            offset += 1
        if idx is None or idx < 1:
            continue

        day_of = bars[idx]
        day_before = bars[idx - 1]
        if not day_of.close or not day_before.close:
            continue

        candidates = [(day_of.close - day_before.close) / day_before.close * 100]
        if day_of.open:
            candidates.insert(0, (day_of.open - day_before.close) / day_before.close * 100)
        if idx + 1 < len(bars) and bars[idx + 1].open:
            candidates.append((bars[idx + 1].open - day_of.close) / day_of.close * 100)

        best = 0.0
        for move in candidates:
            if abs(move) > abs(best):
                best = move

        quarter = (earnings_date.month - 1) // 3 + 1
        moves.append(
            HistoricalMove(
                quarter=f"Q{quarter} {earnings_date.year}",
                actual=round(abs(best), 1),
                direction="up" if best >= 0 else "down",
                date=earnings_date.isoformat(),
            )
        )

    moves.sort(key=lambda m: m.date, reverse=True)
    return moves
