"""ATM straddle extraction shared by the options-chain providers.

The combined mid price of the call and put nearest the spot price
approximates the market's expected earnings move:

    implied_move = (mid(call) + mid(put)) / spot * 100

Strike selection scans contracts in ascending strike order and keeps the
first contract with the strictly smallest distance to spot, so a tie between
two strikes resolves to the lower one.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ivcrush.earnings.models import ImpliedMove


@dataclass(frozen=True, slots=True)
class OptionContract:
    """One option quote in provider-neutral form. ``iv`` is a fraction (0.45 = 45%)."""

    strike: float
    bid: float = 0.0
    ask: float = 0.0
    iv: float = 0.0
    expiration: str = ""

    @property
    def mid(self) -> float:
        return (self.bid + self.ask) / 2


@dataclass(frozen=True, slots=True)
class AtmStraddle:
    call: OptionContract
    put: OptionContract

    @property
    def strike(self) -> float:
        return self.call.strike

    @property
    def price(self) -> float:
        return self.call.mid + self.put.mid

    @property
    def iv(self) -> float:
        return (self.call.iv + self.put.iv) / 2


def nearest_strike(contracts: Iterable[OptionContract], spot: float) -> OptionContract | None:
    """Contract whose strike is closest to ``spot``; ties go to the lower strike."""
    best: OptionContract | None = None
    best_dist = float("inf")
    for contract in sorted(contracts, key=lambda c: c.strike):
        dist = abs(contract.strike - spot)
        if dist < best_dist:
            best_dist = dist
            best = contract
    return best


def find_atm_straddle(
    calls: list[OptionContract],
    puts: list[OptionContract],
    spot: float,
) -> AtmStraddle | None:
    """Pick the ATM call, then the put at the same strike (or the put nearest spot)."""
    call = nearest_strike(calls, spot)
    if call is None:
        return None

    put = next((p for p in puts if p.strike == call.strike), None)
    if put is None:
        put = nearest_strike(puts, spot)
    if put is None:
        return None

    return AtmStraddle(call=call, put=put)


def implied_move_from_chain(
    calls: list[OptionContract],
    puts: list[OptionContract],
    spot: float,
    source: str,
    nearest_expiry: str | None = None,
) -> ImpliedMove | None:
    """Compute the implied move from one expiration's calls and puts."""
    if spot <= 0 or not calls or not puts:
        return None

    straddle = find_atm_straddle(calls, puts, spot)
    if straddle is None:
        return None

    implied = straddle.price / spot * 100
    return ImpliedMove(
        implied_move=round(implied, 1),
        iv=round(straddle.iv * 100, 1),
        nearest_expiry=nearest_expiry,
        straddle_price=round(straddle.price, 2),
        atm_strike=straddle.strike,
        source=source,
    )


def to_float(value: object, default: float = 0.0) -> float:
    """Lenient float conversion for provider fields ("1.25", None, "N/A")."""
    if value is None or value == "":
        return default
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
