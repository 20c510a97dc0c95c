"""Yahoo Finance options chain: free implied move from the ATM straddle."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from ivcrush.core.constants import YAHOO_QUERY2_URL
from ivcrush.core.logging import get_logger
from ivcrush.earnings.models import ImpliedMove
from ivcrush.providers.base import validate_ticker
from ivcrush.providers.options import OptionContract, implied_move_from_chain, to_float
from ivcrush.providers.yahoo.session import PROVIDER, YahooSession

logger = get_logger(__name__)


class YahooOptionsClient:
    """Implied move from Yahoo's v7 options endpoint. Implements ImpliedMoveProvider.

    Uses the nearest listed expiration. Yahoo reports ``impliedVolatility``
    as a fraction per contract.
    """

    name = PROVIDER

    def __init__(self, session: YahooSession) -> None:
        self._session = session

    async def _fetch_chain(
        self, symbol: str, expiration: int | None = None
    ) -> dict[str, Any] | None:
        params = {"date": expiration} if expiration is not None else None
        data = await self._session.get_json(
            f"{YAHOO_QUERY2_URL}/v7/finance/options/{symbol}", params=params
        )
        results = (data.get("optionChain") or {}).get("result") if isinstance(data, dict) else None
        return results[0] if results else None

    async def fetch_implied_move(self, ticker: str, price: float) -> ImpliedMove | None:
        """Get the implied move for the nearest expiration, or None if no chain is listed."""
        if price <= 0:
            return None
        symbol = validate_ticker(ticker)

        chain = await self._fetch_chain(symbol)
        if chain is None:
            return None

        expirations = chain.get("expirationDates") or []
        if not expirations:
            return None
        nearest = expirations[0]

        options = chain.get("options") or [{}]
        if options[0].get("expirationDate") != nearest:
            chain = await self._fetch_chain(symbol, nearest)
            if chain is None:
                return None
            options = chain.get("options") or [{}]

        calls = [_to_contract(c) for c in options[0].get("calls", [])]
        puts = [_to_contract(p) for p in options[0].get("puts", [])]
        expiry = datetime.fromtimestamp(nearest, tz=UTC).date().isoformat()

        result = implied_move_from_chain(calls, puts, price, PROVIDER, nearest_expiry=expiry)
        if result is not None:
            logger.debug(
                "Yahoo implied move",
                ticker=symbol,
                implied_move=result.implied_move,
                expiry=expiry,
            )
        return result

    async def close(self) -> None:
        await self._session.close()


def _to_contract(raw: dict[str, Any]) -> OptionContract:
    return OptionContract(
        strike=to_float(raw.get("strike")),
        bid=to_float(raw.get("bid")),
        ask=to_float(raw.get("ask")),
        iv=to_float(raw.get("impliedVolatility")),
    )
