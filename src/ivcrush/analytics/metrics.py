"""Descriptive statistics over historical earnings moves.

Every function is pure. Moves are newest-first and ``actual`` is already
unsigned, but ``abs()`` is applied anyway so signed inputs give the same
answers. Percentages are expressed as 0-100.
"""

from __future__ import annotations

import math
import statistics
from collections.abc import Sequence

from ivcrush.analytics.models import (
    DirectionalBias,
    MovePrediction,
    SafeZone,
    Signal,
    ZoneBand,
)
from ivcrush.earnings.models import HistoricalMove, NewsItem

# Fixed by convention: the conservative band sits beyond the worst move on record
CONSERVATIVE_WIN_RATE = 95.0

PREDICTION_LOOKBACK = 8
PREDICTION_DECAY = 0.85


def _abs_moves(moves: Sequence[HistoricalMove]) -> list[float]:
    return [abs(m.actual) for m in moves]


def average_abs_move(moves: Sequence[HistoricalMove]) -> float:
    values = _abs_moves(moves)
    return sum(values) / len(values) if values else 0.0


def median_abs_move(moves: Sequence[HistoricalMove]) -> float:
    values = _abs_moves(moves)
    return statistics.median(values) if values else 0.0


def max_abs_move(moves: Sequence[HistoricalMove], last_n: int = 20) -> float:
    values = _abs_moves(moves[:last_n])
    return max(values) if values else 0.0


def std_dev_abs_move(moves: Sequence[HistoricalMove]) -> float:
    """Sample standard deviation (N-1). Zero with fewer than two points."""
    values = _abs_moves(moves)
    if len(values) < 2:
        return 0.0
    return statistics.stdev(values)


def iv_crush_ratio(implied_move: float, moves: Sequence[HistoricalMove]) -> float:
    """Implied move over average historical move. Above 1.0 the market overprices the move."""
    avg = average_abs_move(moves)
    if avg == 0:
        return 0.0
    return implied_move / avg


def historical_win_rate(implied_move: float, moves: Sequence[HistoricalMove]) -> float:
    """Percent of past moves strictly smaller than ``implied_move``."""
    if not moves:
        return 0.0
    wins = sum(1 for v in _abs_moves(moves) if v < implied_move)
    return wins / len(moves) * 100


def directional_bias(moves: Sequence[HistoricalMove], lookback: int = 8) -> DirectionalBias:
    recent = moves[:lookback]
    ups = [abs(m.actual) for m in recent if m.direction == "up"]
    downs = [abs(m.actual) for m in recent if m.direction == "down"]

    if len(ups) > len(downs):
        bias = "bullish"
    elif len(ups) < len(downs):
        bias = "bearish"
    else:
        bias = "neutral"

    return DirectionalBias(
        bullish=len(ups),
        bearish=len(downs),
        bias=bias,
        avg_up_size=round(sum(ups) / (len(ups) or 1), 2),
        avg_down_size=round(sum(downs) / (len(downs) or 1), 2),
    )


def _confidence_multiplier(confidence: float) -> float:
    if confidence >= 0.90:
        return 2.0
    if confidence >= 0.85:
        return 1.5
    return 1.0


def _band(price: float, distance: float, win_rate: float) -> ZoneBand:
    return ZoneBand(
        high=round(price * (1 + distance / 100), 2),
        low=round(price * (1 - distance / 100), 2),
        distance=round(distance, 2),
        win_rate=win_rate,
    )


def safe_zone(
    price: float,
    implied_move: float,
    moves: Sequence[HistoricalMove],
    confidence: float = 0.85,
) -> SafeZone:
    """Strike bands for selling premium.

    - safe: average move plus 1.0/1.5/2.0 standard deviations
    - conservative: 10% beyond the largest move on record
    - aggressive: 20% beyond the median move

    ``implied_move`` does not move the bands; it is accepted so callers can
    pass the same arguments they pass to the other metrics.
    """
    safe_distance = average_abs_move(moves) + _confidence_multiplier(confidence) * std_dev_abs_move(
        moves
    )
    conservative_distance = max_abs_move(moves) * 1.1
    aggressive_distance = median_abs_move(moves) * 1.2

    return SafeZone(
        safe=_band(price, safe_distance, historical_win_rate(safe_distance, moves)),
        conservative=_band(price, conservative_distance, CONSERVATIVE_WIN_RATE),
        aggressive=_band(
            price, aggressive_distance, historical_win_rate(aggressive_distance, moves)
        ),
    )


def trade_signal(implied_move: float, moves: Sequence[HistoricalMove]) -> Signal:
    crush = iv_crush_ratio(implied_move, moves)
    win = historical_win_rate(implied_move, moves)

    if crush >= 1.5 and win >= 85:
        return "excellent"
    if crush >= 1.2 and win >= 75:
        return "good"
    if crush >= 1.0 and win >= 60:
        return "neutral"
    return "risky"


def weighted_recent_move(moves: Sequence[HistoricalMove]) -> float:
    """Average of the last eight moves, each quarter weighted 0.85x the one after it."""
    recent = _abs_moves(moves[:PREDICTION_LOOKBACK])
    if not recent:
        return 0.0
    weights = [math.pow(PREDICTION_DECAY, i) for i in range(len(recent))]
    return sum(v * w for v, w in zip(recent, weights, strict=True)) / sum(weights)


def predict_next_move(moves: Sequence[HistoricalMove], implied_move: float) -> MovePrediction:
    return MovePrediction(
        predicted_range=round(weighted_recent_move(moves), 2),
        avg_move=round(average_abs_move(moves), 2),
        median_move=round(median_abs_move(moves), 2),
        std_dev=round(std_dev_abs_move(moves), 2),
        implied_move=implied_move,
        crush_ratio=round(iv_crush_ratio(implied_move, moves), 2),
        win_rate=round(historical_win_rate(implied_move, moves), 1),
        bias=directional_bias(moves).bias,
        signal=trade_signal(implied_move, moves),
    )


def news_sentiment(news: Sequence[NewsItem]) -> float:
    """Mean headline sentiment in [-1, 1]: positive = 1, negative = -1, neutral = 0."""
    if not news:
        return 0.0
    score = {"positive": 1, "negative": -1}
    return sum(score.get(n.sentiment, 0) for n in news) / len(news)
