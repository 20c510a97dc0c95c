"""Derived metrics over historical earnings moves."""

from ivcrush.analytics.metrics import (
    average_abs_move,
    directional_bias,
    historical_win_rate,
    iv_crush_ratio,
    max_abs_move,
    median_abs_move,
    news_sentiment,
    predict_next_move,
    safe_zone,
    std_dev_abs_move,
    trade_signal,
)
from ivcrush.analytics.models import DirectionalBias, MovePrediction, SafeZone, ZoneBand

__all__ = [
    "DirectionalBias",
    "MovePrediction",
    "SafeZone",
    "ZoneBand",
    "average_abs_move",
    "directional_bias",
    "historical_win_rate",
    "iv_crush_ratio",
    "max_abs_move",
    "median_abs_move",
    "news_sentiment",
    "predict_next_move",
    "safe_zone",
    "std_dev_abs_move",
    "trade_signal",
]
