"""Earnings calendar API endpoints (multi-provider, enriched)."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from ivcrush.core.calendar import market_today
from ivcrush.core.dependencies import OrchestratorDep
from ivcrush.earnings.models import EarningsResult, Timing, parse_timing

router = APIRouter()


def timing_query(value: str | None) -> Timing | None:
    """Parse the ``timing`` query param, answering 422 for unknown values."""
    try:
        return parse_timing(value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


def result_payload(result: EarningsResult) -> dict[str, Any]:
    payload = result.model_dump(mode="json")
    if payload["error"] is None:
        del payload["error"]
    return payload


@router.get("")
async def get_earnings(
    orchestrator: OrchestratorDep,
    target_date: date | None = Query(
        default=None,
        alias="date",
        description="Date to get earnings for (YYYY-MM-DD), defaults to today in New York",
    ),
    timing: str | None = Query(
        default=None,
        description="BMO / AMC (also before-open / after-close)",
    ),
) -> dict[str, Any]:
    """Get enriched earnings for a date.

    A ``source`` of ``"error"`` means no calendar provider is configured.
    """
    day = target_date or market_today()
    result = await orchestrator.resolve_earnings(day, timing_query(timing))
    return result_payload(result)
