"""Options strategy recommendation from implied vs. historical moves."""

from ivcrush.strategy.engine import RULES, recommend
from ivcrush.strategy.models import (
    STRATEGY_LABELS,
    ExitRules,
    OptionLeg,
    RiskLevel,
    Sizing,
    StrategyRecommendation,
    StrategyType,
)
from ivcrush.strategy.thresholds import DEFAULT_THRESHOLDS, StrategyThresholds

__all__ = [
    "DEFAULT_THRESHOLDS",
    "RULES",
    "STRATEGY_LABELS",
    "ExitRules",
    "OptionLeg",
    "RiskLevel",
    "Sizing",
    "StrategyRecommendation",
    "StrategyThresholds",
    "StrategyType",
    "recommend",
]
