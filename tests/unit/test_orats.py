"""Tests for the ORATS provider."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import orjson
import pytest

from ivcrush.core.exceptions import ProviderMalformed
from ivcrush.providers.orats import OratsClient
from ivcrush.providers.orats.client import earnings_row_to_move

SAMPLE_EARNINGS = {
    "data": [
        {
            "ticker": "AAPL",
            "earnDate": "2025-05-01",
            "stockPctChg1d": -0.0375,
            "ernStraPct1": 0.041,
        },
        {"ticker": "AAPL", "earnDate": "2025-10-30", "stockPctChg1d": 0.0052},
        {"ticker": "AAPL", "earnDate": "2025-07-31", "stockPctChg1d": None},
        {"ticker": "AAPL", "earnDate": "2025-01-30", "stockPctChg1d": 0.021},
    ]
}

SAMPLE_SMV = {
    "data": [
        {"ticker": "AAPL", "ernImpMove": 0.0412, "atmIv": 0.3125, "nextErnDate": "2026-02-12"},
    ]
}


def _response(payload: Any, status: int = 200) -> httpx.Response:
    return httpx.Response(status, content=orjson.dumps(payload))


@pytest.fixture()
def client():
    return OratsClient(api_token="test_token", history_limit=2)


class TestEarningsRowToMove:
    def test_converts_fractions(self):
        move = earnings_row_to_move(SAMPLE_EARNINGS["data"][0])

        assert move.actual == 3.75
        assert move.direction == "down"
        assert move.quarter == "Q2 2025"
        assert move.date == "2025-05-01"
        assert move.implied_at_time == 4.1

    def test_timestamp_date(self):
        move = earnings_row_to_move({"earnDate": "2025-10-30T20:00:00Z", "stockPctChg1d": 0.01})

        assert move.date == "2025-10-30"
        assert move.implied_at_time is None


class TestFetchHistoricalMoves:
    async def test_sorted_filtered_limited(self, client: OratsClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(SAMPLE_EARNINGS))
            moves = await client.fetch_historical_moves("AAPL")

        # Newest first, null change dropped, capped at history_limit
        assert [m.date for m in moves] == ["2025-10-30", "2025-05-01"]
        assert moves[0].actual == 0.52

    async def test_cached(self, client: OratsClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(SAMPLE_EARNINGS))
            await client.fetch_historical_moves("AAPL")
            await client.fetch_historical_moves("AAPL")

        assert mock_http.return_value.get.await_count == 1

    async def test_missing_data(self, client: OratsClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response({"message": "nope"}))
            with pytest.raises(ProviderMalformed):
                await client.fetch_historical_moves("AAPL")

    async def test_skips_unparseable_rows(self, client: OratsClient):
        rows = [
            None,
            {"earnDate": "n/a", "stockPctChg1d": 0.05},
            {"earnDate": "2025-04-30", "stockPctChg1d": "big"},
            SAMPLE_EARNINGS["data"][1],
        ]
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response({"data": rows}))
            moves = await client.fetch_historical_moves("AAPL")

        assert [m.date for m in moves] == ["2025-10-30"]

    async def test_only_bad_rows_is_empty(self, client: OratsClient):
        payload = {"data": [{"earnDate": "n/a", "stockPctChg1d": 0.05}]}
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(payload))
            assert await client.fetch_historical_moves("AAPL") == []


class TestFetchImpliedMove:
    async def test_implied_move(self, client: OratsClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(SAMPLE_SMV))
            result = await client.fetch_implied_move("AAPL", 182.5)

        assert result is not None
        assert result.implied_move == 4.12
        assert result.iv == 31.25
        assert result.nearest_expiry == "2026-02-12"
        assert result.source == "orats"

    async def test_no_rows(self, client: OratsClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response({"data": []}))
            assert await client.fetch_implied_move("AAPL", 182.5) is None

    async def test_separate_cache_keys(self, client: OratsClient):
        async def get(url: str, **kwargs: Any) -> httpx.Response:
            return _response(SAMPLE_SMV if url.endswith("/smv/summaries") else SAMPLE_EARNINGS)

        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(side_effect=get)
            await client.fetch_historical_moves("AAPL")
            result = await client.fetch_implied_move("AAPL", 182.5)

        assert result is not None
        assert mock_http.return_value.get.await_count == 2

    async def test_unparseable_summary(self, client: OratsClient):
        payload = {"data": [{"ticker": "AAPL", "ernImpMove": "n/a"}]}
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(payload))
            with pytest.raises(ProviderMalformed):
                await client.fetch_implied_move("AAPL", 182.5)
