"""Policy constants for the strategy engine.

Every number the decision rules compare against lives here so it can be
tuned (or overridden in tests) without touching the rule logic.
"""

from pydantic import BaseModel, ConfigDict


class StrategyThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Data sufficiency
    min_moves: int = 4
    bias_lookback: int = 8

    # Too risky: both conditions must hold
    risky_crush: float = 0.85
    risky_win_rate: float = 55.0

    # Directional bias shares (of the lookback window)
    strong_bias_share: float = 0.75
    moderate_bias_share: float = 0.60

    # Naked options under strong bias
    naked_crush: float = 1.3
    naked_win_rate: float = 70.0

    # Skewed strangle under moderate bias
    skewed_crush: float = 1.3

    # Neutral structures
    strangle_crush: float = 1.5
    strangle_win_rate: float = 85.0
    strangle_consistency: float = 0.3
    condor_crush: float = 1.2
    condor_win_rate: float = 70.0
    wide_condor_crush: float = 1.0
    wide_condor_win_rate: float = 60.0

    # Protective wing distance, percent beyond the short strike
    wing_pct: float = 3.0

    # Safe-zone confidence used for short strike placement
    zone_confidence: float = 0.85

    # Sizing
    max_account_pct: float = 5.0
    kelly_fraction: float = 0.25


DEFAULT_THRESHOLDS = StrategyThresholds()
