"""Today's actionable plays: tonight's AMC and the next session's BMO reporters."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ivcrush.core.dependencies import OrchestratorDep

router = APIRouter()


@router.get("/today")
async def get_todays_plays(orchestrator: OrchestratorDep) -> dict[str, Any]:
    plays = await orchestrator.resolve_todays_plays()
    return {
        "today": plays.today.isoformat(),
        "nextTradingDay": plays.next_trading_day.isoformat(),
        "amcEarnings": [s.model_dump(mode="json") for s in plays.amc_earnings],
        "bmoEarnings": [s.model_dump(mode="json") for s in plays.bmo_earnings],
        "sources": plays.sources,
        "amcLabel": plays.amc_label,
        "bmoLabel": plays.bmo_label,
    }
