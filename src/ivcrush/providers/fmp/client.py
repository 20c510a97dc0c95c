"""Financial Modeling Prep earnings calendar client (fallback calendar source).

Free tier: 250 calls/day.
- Earnings calendar: https://financialmodelingprep.com/api/v3/earning_calendar?from=&to=
"""

from __future__ import annotations

from datetime import date

import httpx

from ivcrush.core.constants import FMP_API_URL
from ivcrush.core.exceptions import ProviderMalformed
from ivcrush.core.logging import get_logger
from ivcrush.earnings.models import EarningsEntry, Timing
from ivcrush.providers.base import get_json

logger = get_logger(__name__)

PROVIDER = "fmp"


class FMPClient:
    """Client for the FMP earnings calendar. Implements CalendarProvider.

    Usage:
        client = FMPClient(api_key="...")
        entries = await client.fetch_calendar(date(2026, 2, 13), date(2026, 2, 13))
        await client.close()
    """

    name = PROVIDER

    def __init__(self, api_key: str, timeout: float = 10.0) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def fetch_calendar(self, from_date: date, to_date: date) -> list[EarningsEntry]:
        """Get earnings calendar rows between two dates.

        FMP rows look like: {date, symbol, eps, epsEstimated, time, revenue,
        revenueEstimated, fiscalDateEnding}; ``time`` is "bmo" or "amc".
        """
        data = await get_json(
            PROVIDER,
            self._get_http_client(),
            f"{FMP_API_URL}/earning_calendar",
            params={
                "from": from_date.isoformat(),
                "to": to_date.isoformat(),
                "apikey": self._api_key,
            },
        )
        if not isinstance(data, list):
            raise ProviderMalformed(PROVIDER, "earning_calendar returned unexpected format")

        entries: list[EarningsEntry] = []
        for row in data:
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
                        timing=map_timing(row.get("time")),
                        eps_estimate=row.get("epsEstimated"),
                        eps_prior=row.get("eps"),
                        revenue_estimate=row.get("revenueEstimated"),
                        revenue_actual=row.get("revenue"),
                        source=PROVIDER,
                    )
                )
            except ValueError as e:
                logger.debug("Skipping unparseable calendar row", symbol=symbol, error=str(e))

        logger.debug("Fetched FMP calendar", from_date=from_date.isoformat(), count=len(entries))
        return entries

    async def close(self) -> None:
        """Clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("FMPClient closed")


def map_timing(time: str | None) -> Timing:
    """FMP ``time`` is "bmo"/"amc"; anything else is treated as AMC."""
    return "BMO" if (time or "").lower() == "bmo" else "AMC"
