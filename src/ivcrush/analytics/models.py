"""Result records for the derived-metrics library."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

BiasLabel = Literal["bullish", "bearish", "neutral"]
Signal = Literal["excellent", "good", "neutral", "risky"]


class DirectionalBias(BaseModel):
    model_config = ConfigDict(frozen=True)

    bullish: int  # up-move count in the lookback window
    bearish: int  # down-move count
    bias: BiasLabel
    avg_up_size: float
    avg_down_size: float

    @property
    def total(self) -> int:
        return self.bullish + self.bearish

    @property
    def up_share(self) -> float:
        return self.bullish / self.total if self.total else 0.0

    @property
    def down_share(self) -> float:
        return self.bearish / self.total if self.total else 0.0


class ZoneBand(BaseModel):
    """Symmetric strike band: ``price * (1 ± distance/100)``."""

    model_config = ConfigDict(frozen=True)

    high: float
    low: float
    distance: float  # percent
    win_rate: float  # percent of history inside the band


class SafeZone(BaseModel):
    model_config = ConfigDict(frozen=True)

    safe: ZoneBand
    conservative: ZoneBand
    aggressive: ZoneBand


class MovePrediction(BaseModel):
    """Summary statistics plus a recency-weighted estimate of the next move."""

    model_config = ConfigDict(frozen=True)

    predicted_range: float
    avg_move: float
    median_move: float
    std_dev: float
    implied_move: float
    crush_ratio: float
    win_rate: float
    bias: BiasLabel
    signal: Signal
