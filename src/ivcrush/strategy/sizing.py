"""Position sizing and exit rules for recommended trades."""

from ivcrush.strategy.models import ExitRules, RiskLevel, Sizing
from ivcrush.strategy.thresholds import DEFAULT_THRESHOLDS, StrategyThresholds

# Credit received per unit of risk. Tighter, undefined-risk structures
# collect more premium relative to the expected loss than wide condors.
REWARD_TO_RISK: dict[RiskLevel, float] = {
    RiskLevel.low: 0.35,
    RiskLevel.moderate: 0.5,
    RiskLevel.high: 0.75,
}

DEFAULT_EXIT_RULES = ExitRules()


def kelly_fraction(win_rate: float, reward_to_risk: float) -> float:
    """Full Kelly fraction ``p - (1 - p) / b``, floored at zero."""
    if reward_to_risk <= 0:
        return 0.0
    p = win_rate / 100
    return max(0.0, p - (1 - p) / reward_to_risk)


def position_size(
    win_rate: float,
    risk_level: RiskLevel,
    thresholds: StrategyThresholds = DEFAULT_THRESHOLDS,
) -> Sizing:
    """Fractional Kelly as a percent of account, capped at ``max_account_pct``."""
    full = kelly_fraction(win_rate, REWARD_TO_RISK.get(risk_level, 0.0)) * 100
    return Sizing(
        account_pct=round(min(thresholds.max_account_pct, full * thresholds.kelly_fraction), 1),
        kelly_full=round(full, 1),
    )
