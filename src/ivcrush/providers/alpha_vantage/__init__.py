"""Alpha Vantage provider: option chains for the implied move fallback.

Requires ALPHA_VANTAGE_API_KEY. Free tier is limited to 25 calls/day.
"""

from ivcrush.providers.alpha_vantage.client import AlphaVantageClient

__all__ = [
    "AlphaVantageClient",
]
