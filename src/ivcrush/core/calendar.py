"""US equity market calendar: holidays, half days, trading-day arithmetic.

NYSE/NASDAQ full-day closures for 2025-2027. Dates outside the table only
skip weekends.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

MARKET_TZ = ZoneInfo("America/New_York")

# Full-day closures (market does not open)
MARKET_HOLIDAYS: dict[date, str] = {
    # 2025
    date(2025, 1, 1): "New Year's Day",
    date(2025, 1, 20): "MLK Day",
    date(2025, 2, 17): "Presidents' Day",
    date(2025, 4, 18): "Good Friday",
    date(2025, 5, 26): "Memorial Day",
    date(2025, 6, 19): "Juneteenth",
    date(2025, 7, 4): "Independence Day",
    date(2025, 9, 1): "Labor Day",
    date(2025, 11, 27): "Thanksgiving",
    date(2025, 12, 25): "Christmas",
    # 2026
    date(2026, 1, 1): "New Year's Day",
    date(2026, 1, 19): "MLK Day",
    date(2026, 2, 16): "Presidents' Day",
    date(2026, 4, 3): "Good Friday",
    date(2026, 5, 25): "Memorial Day",
    date(2026, 6, 19): "Juneteenth",
    date(2026, 7, 3): "Independence Day (observed)",
    date(2026, 9, 7): "Labor Day",
    date(2026, 11, 26): "Thanksgiving",
    date(2026, 12, 25): "Christmas",
    # 2027
    date(2027, 1, 1): "New Year's Day",
    date(2027, 1, 18): "MLK Day",
    date(2027, 2, 15): "Presidents' Day",
    date(2027, 3, 26): "Good Friday",
    date(2027, 5, 31): "Memorial Day",
    date(2027, 6, 18): "Juneteenth (observed)",
    date(2027, 7, 5): "Independence Day (observed)",
    date(2027, 9, 6): "Labor Day",
    date(2027, 11, 25): "Thanksgiving",
    date(2027, 12, 24): "Christmas (observed)",
}

# Early close days (1pm ET)
HALF_DAYS: dict[date, str] = {
    date(2025, 7, 3): "Day before Independence Day",
    date(2025, 11, 28): "Day after Thanksgiving",
    date(2025, 12, 24): "Christmas Eve",
    date(2026, 11, 27): "Day after Thanksgiving",
    date(2026, 12, 24): "Christmas Eve",
    date(2027, 11, 26): "Day after Thanksgiving",
}


def market_today(now: datetime | None = None) -> date:
    """Current calendar date in New York."""
    if now is None:
        now = datetime.now(MARKET_TZ)
    elif now.tzinfo is not None:
        now = now.astimezone(MARKET_TZ)
    return now.date()


def is_trading_day(day: date) -> bool:
    return day.weekday() < 5 and day not in MARKET_HOLIDAYS


def is_half_day(day: date) -> bool:
    return day in HALF_DAYS


def next_trading_day(day: date) -> date:
    """First trading day strictly after ``day``."""
    nxt = day + timedelta(days=1)
    while not is_trading_day(nxt):
        nxt += timedelta(days=1)
    return nxt


def current_trading_day(day: date) -> date:
    """``day`` itself if the market opens, else the most recent trading day before it."""
    cur = day
    while not is_trading_day(cur):
        cur -= timedelta(days=1)
    return cur


def market_status(day: date) -> dict[str, object]:
    """Open / half-day / holiday status for a date."""
    if day.weekday() >= 5:
        return {"open": False, "half_day": False, "holiday": day.strftime("%A")}
    if day in MARKET_HOLIDAYS:
        return {"open": False, "half_day": False, "holiday": MARKET_HOLIDAYS[day]}
    if day in HALF_DAYS:
        return {"open": True, "half_day": True, "holiday": HALF_DAYS[day]}
    return {"open": True, "half_day": False, "holiday": None}


def day_name(day: date) -> str:
    return day.strftime("%A")
