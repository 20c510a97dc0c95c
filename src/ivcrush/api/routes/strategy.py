"""Strategy recommendation endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from ivcrush.core.calendar import market_today
from ivcrush.core.dependencies import OrchestratorDep, ThresholdsDep
from ivcrush.earnings.models import EnrichedStock
from ivcrush.strategy.engine import recommend

router = APIRouter()


@router.post("")
async def recommend_for_stock(stock: EnrichedStock, thresholds: ThresholdsDep) -> dict[str, Any]:
    """Recommend a strategy for a caller-supplied stock snapshot."""
    return recommend(stock, thresholds).model_dump(mode="json")


@router.get("/{ticker}")
async def recommend_for_ticker(
    ticker: str,
    orchestrator: OrchestratorDep,
    thresholds: ThresholdsDep,
    target_date: date | None = Query(default=None, alias="date"),
) -> dict[str, Any]:
    """Recommend a strategy for a ticker reporting on ``date`` (default today)."""
    day = target_date or market_today()
    stock = await orchestrator.find_stock(ticker, day)
    if stock is None:
        raise HTTPException(
            status_code=404,
            detail=f"{ticker.upper()} is not reporting on {day.isoformat()}",
        )
    return recommend(stock, thresholds).model_dump(mode="json")
