"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from ivcrush.config import Settings, get_settings
from ivcrush.earnings.orchestrator import EarningsOrchestrator
from ivcrush.providers.factory import ProviderSet
from ivcrush.strategy.thresholds import DEFAULT_THRESHOLDS, StrategyThresholds

# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]


async def get_orchestrator(request: Request) -> EarningsOrchestrator:
    """Get the EarningsOrchestrator from app.state (set during lifespan)."""
    orchestrator: EarningsOrchestrator | None = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Earnings service not ready")
    return orchestrator


async def get_providers(request: Request) -> ProviderSet:
    """Get the configured ProviderSet from app.state."""
    providers: ProviderSet | None = getattr(request.app.state, "providers", None)
    return providers or ProviderSet()


def get_thresholds() -> StrategyThresholds:
    """Strategy policy constants (overridable in tests)."""
    return DEFAULT_THRESHOLDS


# Annotated dependencies for use in route handlers
OrchestratorDep = Annotated[EarningsOrchestrator, Depends(get_orchestrator)]
ProvidersDep = Annotated[ProviderSet, Depends(get_providers)]
ThresholdsDep = Annotated[StrategyThresholds, Depends(get_thresholds)]
