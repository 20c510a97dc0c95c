"""Third-party data providers for earnings, quotes and options data.

Each concrete client implements one or more capability protocols from
``providers.base``; ``providers.factory`` assembles them into ordered
fallback lists from settings.
"""

from ivcrush.providers.base import (
    CalendarProvider,
    HistoricalMovesProvider,
    ImpliedMoveProvider,
    QuoteProvider,
)
from ivcrush.providers.factory import ProviderSet, create_providers

__all__ = [
    "CalendarProvider",
    "HistoricalMovesProvider",
    "ImpliedMoveProvider",
    "ProviderSet",
    "QuoteProvider",
    "create_providers",
]
