"""Strategy recommendation engine.

Turns an EnrichedStock into an options structure to sell, its strikes, a
confidence score and a rationale. The decision is an ordered list of
``(name, predicate, builder)`` rules evaluated top to bottom; the first rule
whose predicate holds builds the recommendation. The final rule always
matches, so every input yields a recommendation and nothing here raises.

Short strikes come from the safe-zone bands:
- naked options, credit spreads, short strangles, iron condors: safe band
- wide iron condors: conservative band
- skewed strangles: aggressive band on the side the bias protects,
  conservative band on the side the bias threatens
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ivcrush.analytics.metrics import (
    average_abs_move,
    directional_bias,
    historical_win_rate,
    iv_crush_ratio,
    safe_zone,
    std_dev_abs_move,
)
from ivcrush.analytics.models import DirectionalBias, SafeZone, ZoneBand
from ivcrush.core.logging import get_logger
from ivcrush.earnings.models import EnrichedStock, HistoricalMove
from ivcrush.strategy.models import (
    OptionLeg,
    RiskLevel,
    StrategyRecommendation,
    StrategyType,
)
from ivcrush.strategy.sizing import DEFAULT_EXIT_RULES, position_size
from ivcrush.strategy.thresholds import DEFAULT_THRESHOLDS, StrategyThresholds

logger = get_logger(__name__)


@dataclass(frozen=True)
class Setup:
    """Statistics for one stock, computed once and shared by every rule."""

    stock: EnrichedStock
    moves: list[HistoricalMove]
    thresholds: StrategyThresholds
    avg_move: float
    crush: float
    win_rate: float
    consistency: float
    bias: DirectionalBias
    zone: SafeZone

    @property
    def implied(self) -> float:
        return self.stock.implied_move

    @property
    def up_pct(self) -> int:
        return round(self.bias.up_share * 100)

    @property
    def down_pct(self) -> int:
        return round(self.bias.down_share * 100)

    @property
    def lookback(self) -> int:
        return self.bias.total

    def summary(self) -> str:
        return (
            f"Implied {self.implied:.1f}% vs {self.avg_move:.1f}% average move "
            f"(crush {self.crush:.2f}x), {self.win_rate:.0f}% of past moves inside the implied move"
        )


@dataclass(frozen=True)
class Decision:
    strategy: StrategyType
    risk_level: RiskLevel
    reason: str
    confidence: float = 0.0
    legs: list[OptionLeg] = field(default_factory=list)


Predicate = Callable[[Setup], bool]
Builder = Callable[[Setup], Decision]


def analyze(stock: EnrichedStock, thresholds: StrategyThresholds = DEFAULT_THRESHOLDS) -> Setup:
    moves = stock.historical_moves
    avg = average_abs_move(moves)
    std = std_dev_abs_move(moves)
    return Setup(
        stock=stock,
        moves=moves,
        thresholds=thresholds,
        avg_move=avg,
        crush=iv_crush_ratio(stock.implied_move, moves),
        win_rate=historical_win_rate(stock.implied_move, moves),
        consistency=1 - std / avg if avg > 0 else 0.0,
        bias=directional_bias(moves, lookback=thresholds.bias_lookback),
        zone=safe_zone(stock.price, stock.implied_move, moves, thresholds.zone_confidence),
    )


# =============================================================================
# Legs
# =============================================================================


def _sell(instrument: str, strike: float) -> OptionLeg:
    return OptionLeg(action="sell", instrument=instrument, strike=round(strike, 2))


def _buy(instrument: str, strike: float) -> OptionLeg:
    return OptionLeg(action="buy", instrument=instrument, strike=round(strike, 2))


def _call_wing(s: Setup, short_strike: float) -> float:
    return short_strike * (1 + s.thresholds.wing_pct / 100)


def _put_wing(s: Setup, short_strike: float) -> float:
    return short_strike * (1 - s.thresholds.wing_pct / 100)


def _confidence(cap: float, s: Setup, win_weight: float, crush_weight: float) -> float:
    return min(cap, s.win_rate * win_weight + s.crush * crush_weight)


# =============================================================================
# Predicates
# =============================================================================


def _insufficient(s: Setup) -> bool:
    return len(s.moves) < s.thresholds.min_moves or s.implied <= 0 or s.stock.price <= 0


def _too_risky(s: Setup) -> bool:
    return s.crush < s.thresholds.risky_crush and s.win_rate < s.thresholds.risky_win_rate


def _strong_bearish(s: Setup) -> bool:
    return s.bias.down_share >= s.thresholds.strong_bias_share


def _strong_bullish(s: Setup) -> bool:
    return s.bias.up_share >= s.thresholds.strong_bias_share


def _naked_ok(s: Setup) -> bool:
    return s.crush >= s.thresholds.naked_crush and s.win_rate >= s.thresholds.naked_win_rate


def _moderate_bearish(s: Setup) -> bool:
    return s.bias.down_share >= s.thresholds.moderate_bias_share


def _moderate_bullish(s: Setup) -> bool:
    return s.bias.up_share >= s.thresholds.moderate_bias_share


def _skewed_ok(s: Setup) -> bool:
    return (_moderate_bearish(s) or _moderate_bullish(s)) and s.crush >= s.thresholds.skewed_crush


def _strangle_ok(s: Setup) -> bool:
    t = s.thresholds
    return (
        s.crush >= t.strangle_crush
        and s.win_rate >= t.strangle_win_rate
        and s.consistency > t.strangle_consistency
    )


def _condor_ok(s: Setup) -> bool:
    return s.crush >= s.thresholds.condor_crush and s.win_rate >= s.thresholds.condor_win_rate


def _wide_condor_ok(s: Setup) -> bool:
    t = s.thresholds
    return s.crush >= t.wide_condor_crush and s.win_rate >= t.wide_condor_win_rate


# =============================================================================
# Builders
# =============================================================================


def _build_insufficient(s: Setup) -> Decision:
    if len(s.moves) < s.thresholds.min_moves:
        detail = f"only {len(s.moves)} historical moves (need {s.thresholds.min_moves})"
    elif s.implied <= 0:
        detail = "no implied move available"
    else:
        detail = "no stock price available"
    return Decision(
        strategy=StrategyType.skip,
        risk_level=RiskLevel.unknown,
        reason=f"Insufficient data: {detail}.",
    )


def _build_too_risky(s: Setup) -> Decision:
    return Decision(
        strategy=StrategyType.skip,
        risk_level=RiskLevel.extreme,
        reason=(
            f"Too risky: crush ratio {s.crush:.2f}x is below {s.thresholds.risky_crush}x and "
            f"only {s.win_rate:.0f}% of past moves stayed inside the {s.implied:.1f}% implied move."
        ),
    )


def _build_naked_call(s: Setup) -> Decision:
    strike = s.zone.safe.high
    return Decision(
        strategy=StrategyType.naked_call,
        risk_level=RiskLevel.high,
        confidence=_confidence(95, s, 0.9, 10),
        legs=[_sell("call", strike)],
        reason=(
            f"Strong bearish bias: {s.down_pct}% of the last {s.lookback} moves were down "
            f"(avg {s.bias.avg_down_size:.1f}%). {s.summary()}. "
            f"Sell the {strike:.2f} call at the safe zone."
        ),
    )


def _build_naked_put(s: Setup) -> Decision:
    strike = s.zone.safe.low
    return Decision(
        strategy=StrategyType.naked_put,
        risk_level=RiskLevel.high,
        confidence=_confidence(95, s, 0.9, 10),
        legs=[_sell("put", strike)],
        reason=(
            f"Strong bullish bias: {s.up_pct}% of the last {s.lookback} moves were up "
            f"(avg {s.bias.avg_up_size:.1f}%). {s.summary()}. "
            f"Sell the {strike:.2f} put at the safe zone."
        ),
    )


def _bear_call_spread(s: Setup, label: str) -> Decision:
    short = s.zone.safe.high
    return Decision(
        strategy=StrategyType.bear_call_spread,
        risk_level=RiskLevel.moderate,
        confidence=_confidence(85, s, 0.8, 8),
        legs=[_sell("call", short), _buy("call", _call_wing(s, short))],
        reason=(
            f"{label}: {s.down_pct}% of the last {s.lookback} moves were down. "
            f"{s.summary()}, not enough edge for a naked call. "
            f"Sell the {short:.2f} call, buy {s.thresholds.wing_pct:g}% higher for protection."
        ),
    )


def _bull_put_spread(s: Setup, label: str) -> Decision:
    short = s.zone.safe.low
    return Decision(
        strategy=StrategyType.bull_put_spread,
        risk_level=RiskLevel.moderate,
        confidence=_confidence(85, s, 0.8, 8),
        legs=[_sell("put", short), _buy("put", _put_wing(s, short))],
        reason=(
            f"{label}: {s.up_pct}% of the last {s.lookback} moves were up. "
            f"{s.summary()}, not enough edge for a naked put. "
            f"Sell the {short:.2f} put, buy {s.thresholds.wing_pct:g}% lower for protection."
        ),
    )


def _build_skewed_strangle(s: Setup) -> Decision:
    zone = s.zone
    if _moderate_bearish(s):
        # Downside is threatened: tight call, wide put
        call, put = zone.aggressive.high, zone.conservative.low
        lean = f"{s.down_pct}% of the last {s.lookback} moves were down"
    else:
        call, put = zone.conservative.high, zone.aggressive.low
        lean = f"{s.up_pct}% of the last {s.lookback} moves were up"
    return Decision(
        strategy=StrategyType.skewed_strangle,
        risk_level=RiskLevel.high,
        confidence=_confidence(85, s, 0.8, 10),
        legs=[_sell("call", call), _sell("put", put)],
        reason=(
            f"Moderate bias: {lean}. {s.summary()}. "
            f"Sell the {call:.2f} call and {put:.2f} put, "
            "wider on the side the stock tends to move."
        ),
    )


def _build_short_strangle(s: Setup) -> Decision:
    call, put = s.zone.safe.high, s.zone.safe.low
    return Decision(
        strategy=StrategyType.short_strangle,
        risk_level=RiskLevel.high,
        confidence=_confidence(95, s, 0.9, 10),
        legs=[_sell("call", call), _sell("put", put)],
        reason=(
            f"No directional bias ({s.up_pct}% up / {s.down_pct}% down) and consistent moves "
            f"(consistency {s.consistency:.2f}). {s.summary()}. "
            f"Sell the {call:.2f} call and {put:.2f} put."
        ),
    )


def _iron_condor(
    s: Setup,
    strategy: StrategyType,
    band: ZoneBand,
    band_name: str,
    confidence: float,
    risk: RiskLevel,
) -> Decision:
    call, put = band.high, band.low
    return Decision(
        strategy=strategy,
        risk_level=risk,
        confidence=confidence,
        legs=[
            _sell("call", call),
            _buy("call", _call_wing(s, call)),
            _sell("put", put),
            _buy("put", _put_wing(s, put)),
        ],
        reason=(
            f"Neutral ({s.up_pct}% up / {s.down_pct}% down). {s.summary()}. "
            f"Short strikes {put:.2f}/{call:.2f} at the {band_name} zone with "
            f"{s.thresholds.wing_pct:g}% wings."
        ),
    )


def _build_iron_condor(s: Setup) -> Decision:
    return _iron_condor(
        s,
        StrategyType.iron_condor,
        s.zone.safe,
        "safe",
        confidence=_confidence(85, s, 0.8, 8),
        risk=RiskLevel.moderate,
    )


def _build_wide_iron_condor(s: Setup) -> Decision:
    return _iron_condor(
        s,
        StrategyType.wide_iron_condor,
        s.zone.conservative,
        "conservative",
        confidence=_confidence(75, s, 0.7, 5),
        risk=RiskLevel.low,
    )


def _build_unfavorable(s: Setup) -> Decision:
    return Decision(
        strategy=StrategyType.skip,
        risk_level=RiskLevel.high,
        reason=(
            f"Unfavorable setup. {s.summary()}. Crush ratio below "
            f"{s.thresholds.wide_condor_crush}x or win rate below "
            f"{s.thresholds.wide_condor_win_rate:.0f}% leaves no edge."
        ),
    )


def _build_strong_bear_spread(s: Setup) -> Decision:
    return _bear_call_spread(s, "Strong bearish bias")


def _build_strong_bull_spread(s: Setup) -> Decision:
    return _bull_put_spread(s, "Strong bullish bias")


def _build_moderate_bear_spread(s: Setup) -> Decision:
    return _bear_call_spread(s, "Moderate bearish bias")


def _build_moderate_bull_spread(s: Setup) -> Decision:
    return _bull_put_spread(s, "Moderate bullish bias")


# Evaluated top to bottom, first match wins.
RULES: list[tuple[str, Predicate, Builder]] = [
    ("insufficient_data", _insufficient, _build_insufficient),
    ("too_risky", _too_risky, _build_too_risky),
    ("strong_bearish_naked", lambda s: _strong_bearish(s) and _naked_ok(s), _build_naked_call),
    ("strong_bearish_spread", _strong_bearish, _build_strong_bear_spread),
    ("strong_bullish_naked", lambda s: _strong_bullish(s) and _naked_ok(s), _build_naked_put),
    ("strong_bullish_spread", _strong_bullish, _build_strong_bull_spread),
    ("moderate_bias_skewed", _skewed_ok, _build_skewed_strangle),
    ("moderate_bearish_spread", _moderate_bearish, _build_moderate_bear_spread),
    ("moderate_bullish_spread", _moderate_bullish, _build_moderate_bull_spread),
    ("neutral_strangle", _strangle_ok, _build_short_strangle),
    ("neutral_iron_condor", _condor_ok, _build_iron_condor),
    ("neutral_wide_condor", _wide_condor_ok, _build_wide_iron_condor),
    ("unfavorable", lambda s: True, _build_unfavorable),
]


def recommend(
    stock: EnrichedStock,
    thresholds: StrategyThresholds = DEFAULT_THRESHOLDS,
) -> StrategyRecommendation:
    """Recommend an options structure for one stock. Never raises."""
    setup = analyze(stock, thresholds)
    for name, applies, build in RULES:
        if applies(setup):
            return _finalize(setup, name, build(setup))
    raise AssertionError("unreachable: the last rule always matches")


def _finalize(s: Setup, rule: str, decision: Decision) -> StrategyRecommendation:
    is_trade = decision.strategy != StrategyType.skip
    recommendation = StrategyRecommendation(
        ticker=s.stock.ticker,
        strategy=decision.strategy,
        strategy_name=decision.strategy.label,
        legs=decision.legs,
        confidence=max(0, round(decision.confidence)),
        risk_level=decision.risk_level,
        reason=decision.reason,
        rule=rule,
        crush_ratio=round(s.crush, 2),
        win_rate=round(s.win_rate, 1),
        bias=s.bias.bias,
        up_pct=s.up_pct,
        down_pct=s.down_pct,
        avg_up_mag=s.bias.avg_up_size,
        avg_down_mag=s.bias.avg_down_size,
        sizing=position_size(s.win_rate, decision.risk_level, s.thresholds) if is_trade else None,
        exit_rules=DEFAULT_EXIT_RULES if is_trade else None,
    )
    logger.debug(
        "Strategy recommended",
        ticker=s.stock.ticker,
        rule=rule,
        strategy=decision.strategy.value,
        confidence=recommendation.confidence,
    )
    return recommendation
