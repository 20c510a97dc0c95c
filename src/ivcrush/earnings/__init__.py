"""Earnings domain models and the multi-source orchestrator.

The orchestrator lives in ``ivcrush.earnings.orchestrator``; it is not
re-exported here because the provider clients import these models.
"""

from ivcrush.earnings.models import (
    EarningsEntry,
    EarningsResult,
    EnrichedStock,
    HistoricalMove,
    ImpliedMove,
    NewsItem,
    Quote,
    Timing,
    TodaysPlays,
    parse_timing,
)

__all__ = [
    "EarningsEntry",
    "EarningsResult",
    "EnrichedStock",
    "HistoricalMove",
    "ImpliedMove",
    "NewsItem",
    "Quote",
    "Timing",
    "TodaysPlays",
    "parse_timing",
]
