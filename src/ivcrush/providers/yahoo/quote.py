"""Yahoo Finance chart quote: name and price.

The v8 chart ``meta`` block has no sector and usually no market cap; the
orchestrator fills those from the profile provider.
"""

from __future__ import annotations

from ivcrush.core.constants import YAHOO_QUERY1_URL
from ivcrush.core.logging import get_logger
from ivcrush.earnings.models import Quote
from ivcrush.providers.base import validate_ticker
from ivcrush.providers.yahoo.session import PROVIDER, YahooSession

logger = get_logger(__name__)


class YahooQuoteClient:
    """Quote from the v8 chart ``meta`` block. Implements QuoteProvider."""

    name = PROVIDER

    def __init__(self, session: YahooSession) -> None:
        self._session = session

    async def fetch_quote(self, ticker: str) -> Quote | None:
        symbol = validate_ticker(ticker)
        data = await self._session.get_json(
            f"{YAHOO_QUERY1_URL}/v8/finance/chart/{symbol}",
            params={"interval": "1d", "range": "1d"},
        )
        results = (data.get("chart") or {}).get("result") if isinstance(data, dict) else None
        meta = results[0].get("meta") if results else None
        if not meta:
            logger.debug("No Yahoo chart meta", ticker=symbol)
            return None

        return Quote(
            name=meta.get("longName") or meta.get("shortName") or symbol,
            price=float(meta.get("regularMarketPrice") or meta.get("previousClose") or 0),
            market_cap=meta.get("marketCap") or None,
        )

    async def close(self) -> None:
        await self._session.close()
