# src/claimdrop/pricing/vrgda.py
from __future__ import annotations

"""Linear decay pricing (VRGDA) primitive.

Given the actual time reached and the schedule's ideal time for the next
unit, the engine produces a dimensionless wad multiplier:

    quotient = exp(decay_constant * (actual - ideal))

decay_constant = ln(1 - decay_percent) is negative, so:

  - actual > ideal (issuance lags the schedule)  -> quotient < 1e18
  - actual < ideal (issuance leads the schedule) -> quotient > 1e18

Read as a price, the quotient scales a target price. Read as a divisor, it
scales a target quantity inversely. Both readings are exposed; the engine
itself does not care which one a caller uses.
"""

from dataclasses import dataclass

from claimdrop.math.wad import (
    EXP_OVERFLOW_AT,
    WAD,
    to_wad_unsafe,
    unsafe_wad_mul,
    wad_exp,
    wad_ln,
    wad_mul,
)
from claimdrop.pricing.schedule import LinearSchedule

EXP_OVERFLOW_THRESHOLD: int = EXP_OVERFLOW_AT
MAX_UINT256: int = 2**256 - 1


def decay_constant_from_percent(decay_percent: int) -> int:
    """Return ln(1 - decay_percent) for a wad percent in (0, 1e18)."""
    p = int(decay_percent)
    if p <= 0 or p >= WAD:
        raise ValueError(f"decay_percent must be in (0, 1e18); got: {decay_percent}")
    k = wad_ln(WAD - p)
    if k >= 0:
        raise ValueError(f"decay constant must be negative; got: {k}")
    return k


def elapsed_time_units(now: int, start: int, time_unit_seconds: int) -> int:
    """Wad time units between start and now, truncated."""
    return to_wad_unsafe(int(now) - int(start)) // int(time_unit_seconds)


def decay_exponent(decay_constant: int, delta: int) -> int:
    return unsafe_wad_mul(int(decay_constant), int(delta))


def decay_quotient(decay_constant: int, delta: int) -> int:
    """Wad multiplier for a schedule deviation `delta` (actual - ideal).

    Never returns 0: the result is floored at 1 so it is always a valid
    divisor. Exponents at or past the exp overflow boundary short-circuit to
    MAX_UINT256 without evaluating the approximation.
    """
    x = decay_exponent(decay_constant, delta)
    if x >= EXP_OVERFLOW_THRESHOLD:
        return MAX_UINT256
    return max(wad_exp(x), 1)


def scaled_amount(units_per_step: int, quotient: int) -> int:
    """units_per_step divided by a wad quotient, truncated."""
    return int(units_per_step) * WAD // int(quotient)


@dataclass(frozen=True)
class PricingQuote:
    ideal_time_units: int
    actual_time_units: int
    delta: int
    quotient: int
    amount: int


@dataclass(frozen=True)
class DecayPricer:
    schedule: LinearSchedule
    decay_constant: int
    units_per_step: int

    def quotient_at(self, time_units: int, sold: int) -> int:
        ideal = self.schedule.ideal_time_units_for(to_wad_unsafe(int(sold) + 1))
        return decay_quotient(self.decay_constant, int(time_units) - ideal)

    def quote(self, time_units: int, sold: int) -> PricingQuote:
        ideal = self.schedule.ideal_time_units_for(to_wad_unsafe(int(sold) + 1))
        delta = int(time_units) - ideal
        q = decay_quotient(self.decay_constant, delta)
        return PricingQuote(
            ideal_time_units=ideal,
            actual_time_units=int(time_units),
            delta=delta,
            quotient=q,
            amount=scaled_amount(self.units_per_step, q),
        )

    def amount_for(self, time_units: int, sold: int) -> int:
        return scaled_amount(self.units_per_step, self.quotient_at(time_units, sold))

    def price_for(self, target_price: int, time_units: int, sold: int) -> int:
        """Auction reading: target_price scaled by the quotient."""
        q = self.quotient_at(time_units, sold)
        if q == MAX_UINT256:
            raise OverflowError("price beyond representable range")
        return wad_mul(int(target_price), q)


__all__ = [
    "EXP_OVERFLOW_THRESHOLD",
    "MAX_UINT256",
    "DecayPricer",
    "PricingQuote",
    "decay_constant_from_percent",
    "decay_exponent",
    "decay_quotient",
    "elapsed_time_units",
    "scaled_amount",
]
