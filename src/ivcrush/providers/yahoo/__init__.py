"""Yahoo Finance provider (no API key, cookie/crumb session).

- YahooSession: shared cookie/crumb session and HTTP client
- YahooOptionsClient: implied move from the ATM straddle
- YahooEarningsClient: actual price moves around past earnings
- YahooQuoteClient: name, price and market cap
"""

from ivcrush.providers.yahoo.earnings import YahooEarningsClient
from ivcrush.providers.yahoo.options import YahooOptionsClient
from ivcrush.providers.yahoo.quote import YahooQuoteClient
from ivcrush.providers.yahoo.session import YahooSession

__all__ = [
    "YahooEarningsClient",
    "YahooOptionsClient",
    "YahooQuoteClient",
    "YahooSession",
]
