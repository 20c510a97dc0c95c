"""Strategy recommendation models."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ivcrush.analytics.models import BiasLabel


class StrategyType(str, Enum):
    """Options structures the dashboard knows how to render."""

    short_strangle = "short_strangle"
    iron_condor = "iron_condor"
    wide_iron_condor = "wide_iron_condor"
    ultra_wide_condor = "ultra_wide_condor"
    naked_call = "naked_call"
    naked_put = "naked_put"
    bear_call_spread = "bear_call_spread"
    bull_put_spread = "bull_put_spread"
    skewed_strangle = "skewed_strangle"
    jade_lizard = "jade_lizard"
    twisted_sister = "twisted_sister"
    skip = "skip"

    @property
    def label(self) -> str:
        return STRATEGY_LABELS[self]


STRATEGY_LABELS: dict[StrategyType, str] = {
    StrategyType.short_strangle: "Short Strangle",
    StrategyType.iron_condor: "Iron Condor",
    StrategyType.wide_iron_condor: "Wide Iron Condor",
    StrategyType.ultra_wide_condor: "Ultra Wide Condor",
    StrategyType.naked_call: "Naked Call",
    StrategyType.naked_put: "Naked Put",
    StrategyType.bear_call_spread: "Bear Call Spread",
    StrategyType.bull_put_spread: "Bull Put Spread",
    StrategyType.skewed_strangle: "Skewed Strangle",
    StrategyType.jade_lizard: "Jade Lizard",
    StrategyType.twisted_sister: "Twisted Sister",
    StrategyType.skip: "Skip / No Trade",
}


class RiskLevel(str, Enum):
    low = "low"
    moderate = "moderate"
    high = "high"
    extreme = "extreme"
    unknown = "unknown"


class OptionLeg(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["sell", "buy"]
    instrument: Literal["call", "put"]
    strike: float
    qty: int = 1


class Sizing(BaseModel):
    """Position size as a percent of account (quarter-Kelly, capped)."""

    model_config = ConfigDict(frozen=True)

    account_pct: float
    kelly_full: float


class ExitRules(BaseModel):
    model_config = ConfigDict(frozen=True)

    profit_target: str = "50% of credit"
    stop_loss: str = "2x credit"
    time_exit: str = "10 AM ET next day"


class StrategyRecommendation(BaseModel):
    """Engine output for one stock. Computed fresh per call, never persisted."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    strategy: StrategyType
    strategy_name: str
    legs: list[OptionLeg] = Field(default_factory=list)
    confidence: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    reason: str
    rule: str  # name of the decision rule that fired

    # Statistics the decision was derived from
    crush_ratio: float = 0.0
    win_rate: float = 0.0
    bias: BiasLabel = "neutral"
    up_pct: int = 0
    down_pct: int = 0
    avg_up_mag: float = 0.0
    avg_down_mag: float = 0.0

    sizing: Sizing | None = None
    exit_rules: ExitRules | None = None

    @property
    def is_skip(self) -> bool:
        return self.strategy == StrategyType.skip
