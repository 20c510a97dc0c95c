"""Finnhub provider: earnings calendar (primary), EPS surprises and quotes.

Requires FINNHUB_API_KEY. Free tier is limited to 60 calls/minute.
"""

from ivcrush.providers.finnhub.client import FinnhubClient

__all__ = [
    "FinnhubClient",
]
