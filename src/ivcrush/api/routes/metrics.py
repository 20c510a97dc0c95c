"""Derived metrics for a reporting ticker."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from ivcrush.analytics.metrics import (
    directional_bias,
    news_sentiment,
    predict_next_move,
    safe_zone,
)
from ivcrush.core.calendar import market_today
from ivcrush.core.dependencies import OrchestratorDep

router = APIRouter()


@router.get("/{ticker}")
async def get_metrics(
    ticker: str,
    orchestrator: OrchestratorDep,
    target_date: date | None = Query(default=None, alias="date"),
    confidence: float = Query(default=0.85, ge=0.5, le=0.99),
) -> dict[str, Any]:
    """Prediction, safe-zone bands and directional bias for one stock."""
    day = target_date or market_today()
    stock = await orchestrator.find_stock(ticker, day)
    if stock is None:
        raise HTTPException(
            status_code=404,
            detail=f"{ticker.upper()} is not reporting on {day.isoformat()}",
        )

    moves = stock.historical_moves
    return {
        "ticker": stock.ticker,
        "date": stock.date.isoformat(),
        "price": stock.price,
        "implied_move": stock.implied_move,
        "iv_source": stock.iv_source,
        "history_source": stock.history_source,
        "prediction": predict_next_move(moves, stock.implied_move).model_dump(mode="json"),
        "safe_zone": safe_zone(stock.price, stock.implied_move, moves, confidence).model_dump(
            mode="json"
        ),
        "bias": directional_bias(moves).model_dump(mode="json"),
        "news_sentiment": news_sentiment(stock.news),
    }
