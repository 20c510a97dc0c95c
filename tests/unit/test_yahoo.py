"""Tests for the Yahoo Finance providers (session, options, quote, earnings history)."""

from __future__ import annotations

from datetime import date
from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import orjson
import pytest

from ivcrush.core.constants import YAHOO_COOKIE_URL, YAHOO_CRUMB_URL
from ivcrush.core.exceptions import ProviderAuthError, ProviderUnavailable
from ivcrush.providers.yahoo import (
    YahooEarningsClient,
    YahooOptionsClient,
    YahooQuoteClient,
    YahooSession,
)
from ivcrush.providers.yahoo.earnings import DailyBar, compute_earnings_moves, parse_chart_bars

# 2026-02-13 and 2026-02-20 00:00 UTC
FEB_13 = 1770940800
FEB_20 = FEB_13 + 7 * 86400

CONTENT_URL = "https://query2.finance.yahoo.com/v7/finance/options/AAPL"


def _json(payload: Any, status: int = 200) -> httpx.Response:
    return httpx.Response(status, content=orjson.dumps(payload))


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class FakeYahoo:
    """Routes session requests: cookie, crumb, content."""

    def __init__(self, content: httpx.Response | None = None, cookie: bool = True) -> None:
        self.content = content or _json({"ok": True})
        self.cookie = cookie
        self.cookie_calls = 0

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        if url == YAHOO_COOKIE_URL:
            self.cookie_calls += 1
            headers = [("set-cookie", "A3=d=abc; Path=/"), ("set-cookie", "B=xyz; Path=/")]
            return httpx.Response(404, headers=headers if self.cookie else [])
        if url == YAHOO_CRUMB_URL:
            return httpx.Response(200, text="crumb123\n")
        return self.content


class TestYahooSession:
    @pytest.fixture()
    def clock(self):
        return FakeClock()

    @pytest.fixture()
    def session(self, clock):
        return YahooSession(ttl=600, clock=clock)

    async def test_attaches_cookie_and_crumb(self, session: YahooSession):
        fake = FakeYahoo()
        with patch.object(session, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(side_effect=fake.get)
            data = await session.get_json(CONTENT_URL, params={"date": FEB_13})

        assert data == {"ok": True}
        _, kwargs = mock_http.return_value.get.call_args
        assert kwargs["params"] == {"date": FEB_13, "crumb": "crumb123"}
        assert kwargs["headers"]["Cookie"] == "A3=d=abc; B=xyz"

    async def test_session_reused_within_ttl(self, session: YahooSession, clock: FakeClock):
        fake = FakeYahoo()
        with patch.object(session, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(side_effect=fake.get)
            await session.get_json(CONTENT_URL)
            clock.now = 599
            await session.get_json(CONTENT_URL)
            assert fake.cookie_calls == 1

            clock.now = 600
            await session.get_json(CONTENT_URL)
            assert fake.cookie_calls == 2

    async def test_auth_error_invalidates_session(self, session: YahooSession):
        fake = FakeYahoo(content=_json({}, status=401))
        with patch.object(session, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(side_effect=fake.get)
            with pytest.raises(ProviderAuthError):
                await session.get_json(CONTENT_URL)

            fake.content = _json({"ok": True})
            assert await session.get_json(CONTENT_URL) == {"ok": True}

        assert fake.cookie_calls == 2

    async def test_no_cookie_is_unavailable(self, session: YahooSession):
        fake = FakeYahoo(cookie=False)
        with patch.object(session, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(side_effect=fake.get)
            assert await session.get() is None
            with pytest.raises(ProviderUnavailable, match="session unavailable"):
                await session.get_json(CONTENT_URL)

    async def test_cookie_request_transport_error(self, session: YahooSession):
        with patch.object(session, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(side_effect=httpx.ConnectError("refused"))
            assert await session.get() is None


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


def _chain(expiration: int, calls: list[dict], puts: list[dict]) -> dict[str, Any]:
    return {
        "optionChain": {
            "result": [
                {
                    "underlyingSymbol": "AAPL",
                    "expirationDates": [FEB_13, FEB_20],
                    "options": [{"expirationDate": expiration, "calls": calls, "puts": puts}],
                }
            ],
            "error": None,
        }
    }


NEAR_CALLS = [
    {"strike": 180.0, "bid": 5.1, "ask": 5.3, "impliedVolatility": 0.62},
    {"strike": 185.0, "bid": 2.8, "ask": 3.0, "impliedVolatility": 0.58},
]
NEAR_PUTS = [
    {"strike": 180.0, "bid": 2.9, "ask": 3.1, "impliedVolatility": 0.58},
    {"strike": 185.0, "bid": 5.6, "ask": 5.9, "impliedVolatility": 0.55},
]


class TestYahooOptions:
    async def test_implied_move(self):
        session = AsyncMock()
        session.get_json.return_value = _chain(FEB_13, NEAR_CALLS, NEAR_PUTS)
        client = YahooOptionsClient(session)

        result = await client.fetch_implied_move("AAPL", 182.0)

        assert result is not None
        assert result.atm_strike == 180.0
        assert result.implied_move == 4.5
        assert result.iv == 60.0
        assert result.nearest_expiry == "2026-02-13"
        assert result.source == "yahoo"
        session.get_json.assert_awaited_once()

    async def test_refetches_nearest_expiration(self):
        async def get_json(url: str, params: dict | None = None) -> dict[str, Any]:
            if params and params.get("date") == FEB_13:
                return _chain(FEB_13, NEAR_CALLS, NEAR_PUTS)
            return _chain(FEB_20, [], [])

        session = AsyncMock()
        session.get_json.side_effect = get_json
        client = YahooOptionsClient(session)

        result = await client.fetch_implied_move("AAPL", 182.0)

        assert result is not None
        assert result.nearest_expiry == "2026-02-13"
        assert session.get_json.await_count == 2

    async def test_no_chain(self):
        session = AsyncMock()
        session.get_json.return_value = {"optionChain": {"result": [], "error": None}}
        client = YahooOptionsClient(session)

        assert await client.fetch_implied_move("AAPL", 182.0) is None

    async def test_zero_price(self):
        session = AsyncMock()
        client = YahooOptionsClient(session)

        assert await client.fetch_implied_move("AAPL", 0.0) is None
        session.get_json.assert_not_awaited()


# ---------------------------------------------------------------------------
# Quote
# ---------------------------------------------------------------------------


class TestYahooQuote:
    async def test_quote_from_chart_meta(self):
        session = AsyncMock()
        session.get_json.return_value = {
            "chart": {
                "result": [
                    {
                        "meta": {
                            "currency": "USD",
                            "symbol": "AAPL",
                            "exchangeName": "NMS",
                            "instrumentType": "EQUITY",
                            "regularMarketPrice": 182.5,
                            "chartPreviousClose": 180.1,
                            "longName": "Apple Inc.",
                            "shortName": "Apple Inc.",
                        }
                    }
                ]
            }
        }
        quote = await YahooQuoteClient(session).fetch_quote("AAPL")

        assert quote is not None
        assert quote.name == "Apple Inc."
        assert quote.price == 182.5
        # The chart meta carries no market cap or sector
        assert quote.market_cap is None
        assert quote.sector == ""

    async def test_falls_back_to_previous_close(self):
        session = AsyncMock()
        session.get_json.return_value = {
            "chart": {"result": [{"meta": {"shortName": "Deere", "previousClose": 410.0}}]}
        }
        quote = await YahooQuoteClient(session).fetch_quote("DE")

        assert quote is not None
        assert quote.name == "Deere"
        assert quote.price == 410.0
        assert quote.market_cap is None

    async def test_no_result(self):
        session = AsyncMock()
        session.get_json.return_value = {"chart": {"result": None, "error": {"code": "Not Found"}}}

        assert await YahooQuoteClient(session).fetch_quote("ZZZZ") is None


# ---------------------------------------------------------------------------
# Earnings history
# ---------------------------------------------------------------------------


def _bars(*rows: tuple[date, float, float]) -> list[DailyBar]:
    return [DailyBar(day=d, open=o, close=c) for d, o, c in rows]


class TestComputeEarningsMoves:
    def test_largest_window_wins(self):
        bars = _bars(
            (date(2025, 10, 29), 99.0, 100.0),
            (date(2025, 10, 30), 103.0, 98.0),  # gap +3%, close -2%
            (date(2025, 10, 31), 97.0, 97.5),  # next-day gap -1%
        )

        moves = compute_earnings_moves([date(2025, 10, 30)], bars)

        assert len(moves) == 1
        assert moves[0].actual == 3.0
        assert moves[0].direction == "up"
        assert moves[0].quarter == "Q4 2025"

    def test_after_close_reaction(self):
        bars = _bars(
            (date(2025, 7, 30), 50.0, 50.0),
            (date(2025, 7, 31), 50.0, 50.5),
            (date(2025, 8, 1), 46.0, 45.0),  # next-day gap -8.9%
        )

        moves = compute_earnings_moves([date(2025, 7, 31)], bars)

        assert moves[0].actual == 8.9
        assert moves[0].direction == "down"

    def test_weekend_date_rolls_forward(self):
        bars = _bars(
            (date(2025, 8, 1), 100.0, 100.0),
            (date(2025, 8, 4), 104.0, 105.0),
        )

        moves = compute_earnings_moves([date(2025, 8, 2)], bars)

        assert moves[0].actual == 5.0
        assert moves[0].date == "2025-08-02"

    def test_skips_dates_without_prior_bar(self):
        bars = _bars((date(2025, 8, 1), 100.0, 100.0))
        assert compute_earnings_moves([date(2025, 8, 1), date(2024, 1, 1)], bars) == []

    def test_newest_first(self):
        bars = _bars(
            (date(2025, 4, 30), 10.0, 10.0),
            (date(2025, 5, 1), 10.5, 10.5),
            (date(2025, 7, 30), 10.0, 10.0),
            (date(2025, 7, 31), 9.0, 9.0),
        )

        moves = compute_earnings_moves([date(2025, 5, 1), date(2025, 7, 31)], bars)

        assert [m.date for m in moves] == ["2025-07-31", "2025-05-01"]


class TestParseChartBars:
    def test_dates_in_market_time(self):
        # 2025-10-30 13:30 UTC is the 09:30 ET open
        result = {
            "timestamp": [1761831000],
            "indicators": {"quote": [{"open": [101.0], "close": [102.0]}]},
        }

        bars = parse_chart_bars(result)

        assert bars == [DailyBar(day=date(2025, 10, 30), open=101.0, close=102.0)]

    def test_missing_prices(self):
        result = {"timestamp": [1761831000], "indicators": {"quote": [{}]}}
        assert parse_chart_bars(result)[0].close is None


class TestYahooEarningsClient:
    async def test_history_cached(self):
        async def get_json(url: str, params: dict | None = None) -> dict[str, Any]:
            if "quoteSummary" in url:
                return {
                    "quoteSummary": {
                        "result": [
                            {
                                "earningsHistory": {
                                    "history": [
                                        {"quarter": {"raw": 1761782400, "fmt": "2025-10-30"}},
                                        {"quarter": {"raw": None, "fmt": None}},
                                    ]
                                }
                            }
                        ]
                    }
                }
            return {
                "chart": {
                    "result": [
                        {
                            "timestamp": [1761744600, 1761831000],
                            "indicators": {
                                "quote": [{"open": [99.0, 95.0], "close": [100.0, 96.0]}]
                            },
                        }
                    ]
                }
            }

        session = AsyncMock()
        session.get_json.side_effect = get_json
        client = YahooEarningsClient(session)

        first = await client.fetch_historical_moves("AAPL")
        second = await client.fetch_historical_moves("AAPL")

        assert [m.actual for m in first] == [5.0]
        assert first[0].direction == "down"
        assert second == first
        assert session.get_json.await_count == 2
