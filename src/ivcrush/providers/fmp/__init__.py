"""FMP provider for the fallback earnings calendar.

Requires FMP_API_KEY.
"""

from ivcrush.providers.fmp.client import FMPClient

__all__ = [
    "FMPClient",
]
