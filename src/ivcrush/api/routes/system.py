"""System status and config endpoints."""

from datetime import date

from fastapi import APIRouter, Query

from ivcrush.core.calendar import market_status, market_today, next_trading_day
from ivcrush.core.dependencies import ProvidersDep, SettingsDep
from ivcrush.storage.redis import get_redis

router = APIRouter()


@router.get("/config")
async def system_config(settings: SettingsDep, providers: ProvidersDep) -> dict[str, object]:
    """Which providers are configured. Never echoes credentials."""
    return {
        "env": settings.env,
        "calendar_configured": settings.has_calendar_provider,
        "yahoo_enabled": settings.yahoo_enabled,
        "redis_enabled": get_redis() is not None,
        "providers": providers.names,
    }


@router.get("/market")
async def market(target_date: date | None = Query(default=None, alias="date")) -> dict[str, object]:
    """Open / holiday status for a date and the next trading day after it."""
    day = target_date or market_today()
    return {
        "date": day.isoformat(),
        **market_status(day),
        "next_trading_day": next_trading_day(day).isoformat(),
    }
