"""Tests for the Alpha Vantage options provider."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import orjson
import pytest

from ivcrush.core.exceptions import ProviderMalformed, ProviderRateLimited
from ivcrush.providers.alpha_vantage import AlphaVantageClient
from ivcrush.providers.alpha_vantage.client import check_body


def _contract(
    kind: str, strike: str, bid: str, ask: str, iv: str, expiration: str = "2026-02-13"
) -> dict[str, str]:
    return {
        "contractID": f"AAPL{expiration}{kind[0].upper()}{strike}",
        "symbol": "AAPL",
        "expiration": expiration,
        "strike": strike,
        "type": kind,
        "bid": bid,
        "ask": ask,
        "implied_volatility": iv,
    }


SAMPLE_CHAIN = {
    "endpoint": "Realtime Options",
    "message": "success",
    "data": [
        _contract("call", "180.00", "5.10", "5.30", "0.55"),
        _contract("put", "180.00", "2.90", "3.10", "0.51"),
        _contract("call", "185.00", "2.80", "3.00", "0.50"),
        _contract("put", "185.00", "5.60", "5.90", "0.49"),
        # Later expiration is ignored
        _contract("call", "180.00", "9.00", "9.40", "0.40", expiration="2026-02-20"),
        _contract("put", "180.00", "6.00", "6.40", "0.40", expiration="2026-02-20"),
    ],
}


def _response(payload: Any, status: int = 200) -> httpx.Response:
    return httpx.Response(status, content=orjson.dumps(payload))


@pytest.fixture()
def client():
    return AlphaVantageClient(api_key="test_key")


class TestCheckBody:
    def test_note_is_rate_limit(self):
        with pytest.raises(ProviderRateLimited):
            check_body({"Note": "Thank you for using Alpha Vantage! Our standard API rate limit"})

    def test_information_is_rate_limit(self):
        with pytest.raises(ProviderRateLimited):
            check_body({"Information": "premium endpoint"})

    def test_error_message_is_malformed(self):
        with pytest.raises(ProviderMalformed):
            check_body({"Error Message": "Invalid API call."})

    def test_non_object(self):
        with pytest.raises(ProviderMalformed):
            check_body([])

    def test_ok(self):
        check_body(SAMPLE_CHAIN)


class TestFetchImpliedMove:
    async def test_nearest_expiration_straddle(self, client: AlphaVantageClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(SAMPLE_CHAIN))
            result = await client.fetch_implied_move("AAPL", 182.0)

        assert result is not None
        assert result.atm_strike == 180.0
        assert result.straddle_price == 8.2  # 5.20 + 3.00
        assert result.implied_move == 4.5
        assert result.iv == 53.0
        assert result.nearest_expiry == "2026-02-13"
        assert result.source == "alpha_vantage"

    async def test_falls_back_to_historical_options(self, client: AlphaVantageClient):
        responses = [_response({"data": []}), _response(SAMPLE_CHAIN)]
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(side_effect=responses)
            result = await client.fetch_implied_move("AAPL", 182.0)

        assert result is not None
        calls = mock_http.return_value.get.call_args_list
        assert calls[0].kwargs["params"]["function"] == "REALTIME_OPTIONS"
        assert calls[1].kwargs["params"]["function"] == "HISTORICAL_OPTIONS"

    async def test_chain_cached(self, client: AlphaVantageClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response(SAMPLE_CHAIN))
            await client.fetch_implied_move("AAPL", 182.0)
            await client.fetch_implied_move("AAPL", 182.0)

        assert mock_http.return_value.get.await_count == 1

    async def test_rate_limit_note(self, client: AlphaVantageClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(
                return_value=_response({"Note": "25 requests per day"})
            )
            with pytest.raises(ProviderRateLimited):
                await client.fetch_implied_move("AAPL", 182.0)

    async def test_zero_price_skips_request(self, client: AlphaVantageClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock()
            assert await client.fetch_implied_move("AAPL", 0.0) is None

        mock_http.return_value.get.assert_not_awaited()

    async def test_empty_chain(self, client: AlphaVantageClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response({"data": []}))
            assert await client.fetch_implied_move("AAPL", 182.0) is None

    async def test_skips_malformed_contracts(self, client: AlphaVantageClient):
        rows = [None, "call", {"expiration": 20260206, "type": "call"}, *SAMPLE_CHAIN["data"]]
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response({"data": rows}))
            result = await client.fetch_implied_move("AAPL", 182.0)

        assert result is not None
        assert result.nearest_expiry == "2026-02-13"

    async def test_data_not_a_list(self, client: AlphaVantageClient):
        with patch.object(client, "_get_http_client") as mock_http:
            mock_http.return_value.get = AsyncMock(return_value=_response({"data": "none"}))
            with pytest.raises(ProviderMalformed):
                await client.fetch_implied_move("AAPL", 182.0)
