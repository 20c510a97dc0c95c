"""Pydantic models for earnings calendar, historical moves and enriched stocks."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Timing = Literal["BMO", "AMC"]
Direction = Literal["up", "down"]
HistorySource = Literal["none", "eps_surprise", "yahoo", "orats"]
Sentiment = Literal["positive", "negative", "neutral"]

# Query-string spellings accepted for the timing filter
TIMING_ALIASES: dict[str, Timing] = {
    "bmo": "BMO",
    "before-open": "BMO",
    "amc": "AMC",
    "after-close": "AMC",
}


def parse_timing(value: str | None) -> Timing | None:
    """Normalise a timing filter (``BMO``, ``before-open``, ...); None/'' means all."""
    if not value or value.lower() == "all":
        return None
    timing = TIMING_ALIASES.get(value.strip().lower())
    if timing is None:
        raise ValueError(f"Unknown timing filter: {value!r}")
    return timing


class EarningsEntry(BaseModel):
    """A raw earnings calendar row as returned by a calendar provider."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    date: dt.date
    timing: Timing
    eps_estimate: float | None = None
    eps_prior: float | None = None
    revenue_estimate: float | None = None
    revenue_actual: float | None = None
    quarter: int | None = None
    year: int | None = None
    source: str


class HistoricalMove(BaseModel):
    """One past earnings reaction. ``actual`` is unsigned; ``direction`` carries the sign."""

    model_config = ConfigDict(frozen=True)

    quarter: str  # "Q3 2025"
    actual: float = Field(ge=0)
    direction: Direction
    date: str = ""
    implied_at_time: float | None = None  # ORATS only


class Quote(BaseModel):
    """Price and company snapshot from a quote provider."""

    name: str
    price: float = 0.0
    market_cap: float | None = None  # dollars
    sector: str = ""


class ImpliedMove(BaseModel):
    """Market-implied earnings move, usually from the ATM straddle."""

    implied_move: float  # percent of spot
    iv: float = 0.0  # percent
    nearest_expiry: str | None = None
    straddle_price: float | None = None
    atm_strike: float | None = None
    source: str


class NewsItem(BaseModel):
    headline: str
    sentiment: Sentiment = "neutral"


class EnrichedStock(BaseModel):
    """A calendar entry joined with quote, history and implied-move data.

    Built once per request cycle; identity is ``ticker + date``.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    company: str
    price: float
    market_cap: str = ""  # "2.85T", "740.2B", "" if unknown
    market_cap_value: float | None = None
    sector: str = ""
    date: dt.date
    timing: Timing
    implied_move: float = 0.0
    iv: float = 0.0
    iv_source: str = "none"  # "none" | "estimated" | provider name
    historical_moves: list[HistoricalMove] = Field(default_factory=list)
    history_source: HistorySource = "none"
    eps_estimate: float | None = None
    eps_prior: float | None = None
    revenue_estimate: str | None = None
    revenue_actual: str | None = None
    quarter: int | None = None
    year: int | None = None
    news: list[NewsItem] = Field(default_factory=list)
    has_weekly_options: bool = False


class EarningsResult(BaseModel):
    """Resolved earnings for one date and timing filter.

    ``source == "error"`` is the not-configured sentinel: callers check it
    rather than catching an exception.
    """

    date: dt.date
    timing: Timing | Literal["all"] = "all"
    source: str
    count: int = 0
    earnings: list[EnrichedStock] = Field(default_factory=list)
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.source == "error"


class TodaysPlays(BaseModel):
    """Tonight's AMC reporters plus the next trading day's BMO reporters."""

    today: dt.date
    next_trading_day: dt.date
    amc_earnings: list[EnrichedStock] = Field(default_factory=list)
    bmo_earnings: list[EnrichedStock] = Field(default_factory=list)
    sources: dict[str, str] = Field(default_factory=dict)
    amc_label: str = ""
    bmo_label: str = ""
