"""Alpha Vantage options chain client (implied move fallback).

Free tier: 25 calls/day, so every chain is cached for 24 hours.
Alpha Vantage reports quota and key problems inside a 200 response body:
``Note`` / ``Information`` for throttling, ``Error Message`` for bad requests.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx

from ivcrush.core.constants import ALPHA_VANTAGE_API_URL, HISTORY_CACHE_TTL_SECONDS
from ivcrush.core.exceptions import ProviderMalformed, ProviderRateLimited
from ivcrush.core.logging import get_logger
from ivcrush.earnings.models import ImpliedMove
from ivcrush.providers.base import get_json, validate_ticker
from ivcrush.providers.options import OptionContract, implied_move_from_chain, to_float
from ivcrush.storage.cache import Cache, MemoryCache

logger = get_logger(__name__)

PROVIDER = "alpha_vantage"


class AlphaVantageClient:
    """Implied move from Alpha Vantage option chains. Implements ImpliedMoveProvider.

    Tries REALTIME_OPTIONS first and falls back to today's HISTORICAL_OPTIONS
    snapshot when the realtime chain is empty (realtime is a premium feature).
    """

    name = PROVIDER

    def __init__(self, api_key: str, cache: Cache | None = None, timeout: float = 20.0) -> None:
        self._api_key = api_key
        self._cache = cache or MemoryCache("alpha_vantage", HISTORY_CACHE_TTL_SECONDS)
        self._timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def _query(self, function: str, **params: str) -> list[dict[str, Any]]:
        data = await get_json(
            PROVIDER,
            self._get_http_client(),
            ALPHA_VANTAGE_API_URL,
            params={"function": function, "apikey": self._api_key, **params},
        )
        check_body(data)
        rows = data.get("data") or []
        if not isinstance(rows, list):
            raise ProviderMalformed(PROVIDER, f"{function} data is not a list")
        return [r for r in rows if isinstance(r, dict)]

    async def fetch_option_chain(self, ticker: str) -> list[dict[str, Any]]:
        """Raw option contracts for a ticker (cached 24h)."""
        symbol = validate_ticker(ticker)
        cached = await self._cache.get(symbol)
        if cached is not None:
            return cached

        contracts = await self._query("REALTIME_OPTIONS", symbol=symbol, require_greeks="true")
        if not contracts:
            contracts = await self._query(
                "HISTORICAL_OPTIONS", symbol=symbol, date=date.today().isoformat()
            )
        if contracts:
            await self._cache.set(symbol, contracts)
        return contracts

    async def fetch_implied_move(self, ticker: str, price: float) -> ImpliedMove | None:
        """ATM straddle on the nearest expiration."""
        if price <= 0:
            return None

        contracts = await self.fetch_option_chain(ticker)
        expirations = sorted(
            {c["expiration"] for c in contracts if isinstance(c.get("expiration"), str)} - {""}
        )
        if not expirations:
            return None
        nearest = expirations[0]

        calls: list[OptionContract] = []
        puts: list[OptionContract] = []
        for raw in contracts:
            if raw.get("expiration") != nearest:
                continue
            contract = _to_contract(raw)
            if raw.get("type") == "call":
                calls.append(contract)
            elif raw.get("type") == "put":
                puts.append(contract)

        return implied_move_from_chain(calls, puts, price, PROVIDER, nearest_expiry=nearest)

    async def close(self) -> None:
        """Clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("AlphaVantageClient closed")


def check_body(data: Any) -> None:
    """Raise for Alpha Vantage's in-body error notices."""
    if not isinstance(data, dict):
        raise ProviderMalformed(PROVIDER, "response is not an object")
    for key in ("Note", "Information"):
        if key in data:
            raise ProviderRateLimited(PROVIDER, str(data[key]))
    if "Error Message" in data:
        raise ProviderMalformed(PROVIDER, str(data["Error Message"]))


def _to_contract(raw: dict[str, Any]) -> OptionContract:
    return OptionContract(
        strike=to_float(raw.get("strike")),
        bid=to_float(raw.get("bid")),
        ask=to_float(raw.get("ask")),
        iv=to_float(raw.get("implied_volatility")),
        expiration=raw.get("expiration", ""),
    )
