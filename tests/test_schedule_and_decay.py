from __future__ import annotations

import math

import pytest

from claimdrop.math.wad import EXP_OVERFLOW_AT, WAD, to_wad_unsafe
from claimdrop.pricing import vrgda
from claimdrop.pricing.schedule import LinearSchedule
from claimdrop.pricing.vrgda import (
    EXP_OVERFLOW_THRESHOLD,
    MAX_UINT256,
    DecayPricer,
    decay_constant_from_percent,
    decay_quotient,
    elapsed_time_units,
    scaled_amount,
)


def test_linear_schedule_inverts_the_issuance_line() -> None:
    sched = LinearSchedule(per_time_unit=10 * WAD)
    assert sched.ideal_time_units_for(to_wad_unsafe(50)) == 5 * WAD
    assert sched.ideal_time_units_for(0) == 0


def test_linear_schedule_from_supply() -> None:
    sched = LinearSchedule.from_supply(max_supply=3600, target_duration=3600, time_unit_seconds=60)
    assert sched.per_time_unit == 60 * WAD
    # All 3600 units are due at the 60th time unit (the end of the hour).
    assert sched.ideal_time_units_for(to_wad_unsafe(3600)) == 60 * WAD


def test_linear_schedule_rejects_degenerate_rates() -> None:
    with pytest.raises(ValueError):
        LinearSchedule(per_time_unit=0)
    with pytest.raises(ValueError):
        LinearSchedule.from_supply(max_supply=1, target_duration=0, time_unit_seconds=60)


def test_decay_constant_is_log_of_one_minus_percent() -> None:
    k = decay_constant_from_percent(4 * 10**16)
    assert k < 0
    assert math.isclose(k / WAD, math.log(0.96), rel_tol=1e-9)


@pytest.mark.parametrize("p", [0, -1, WAD, WAD + 1])
def test_decay_constant_rejects_out_of_range_percent(p: int) -> None:
    with pytest.raises(ValueError):
        decay_constant_from_percent(p)


def test_elapsed_time_units_truncates() -> None:
    assert elapsed_time_units(now=1_120, start=1_000, time_unit_seconds=60) == 2 * WAD
    assert elapsed_time_units(now=1_002, start=1_000, time_unit_seconds=60) == 2 * WAD // 60


def test_quotient_is_one_on_schedule() -> None:
    k = decay_constant_from_percent(4 * 10**16)
    assert decay_quotient(k, 0) == WAD


def test_quotient_direction_follows_schedule_deviation() -> None:
    k = decay_constant_from_percent(4 * 10**16)
    behind = decay_quotient(k, 10 * WAD)  # more time has passed than issuance justifies
    ahead = decay_quotient(k, -10 * WAD)  # issuance is ahead of the clock
    assert behind < WAD < ahead
    assert math.isclose(behind / WAD, 0.96**10, rel_tol=1e-9)
    assert math.isclose(ahead / WAD, 0.96**-10, rel_tol=1e-9)


def test_quotient_is_floored_at_one() -> None:
    assert decay_quotient(-WAD, 100 * WAD) == 1


def test_overflow_guard_skips_the_exponential(monkeypatch: pytest.MonkeyPatch) -> None:
    assert EXP_OVERFLOW_THRESHOLD == EXP_OVERFLOW_AT == 135305999368893231589

    def _boom(_x: int) -> int:
        raise AssertionError("wad_exp must not be called past the guard")

    monkeypatch.setattr(vrgda, "wad_exp", _boom)
    assert decay_quotient(-WAD, -EXP_OVERFLOW_THRESHOLD) == MAX_UINT256
    assert decay_quotient(-WAD, -10**30) == MAX_UINT256


def test_just_below_guard_evaluates_exponential() -> None:
    q = decay_quotient(-WAD, -(EXP_OVERFLOW_THRESHOLD - 1))
    assert WAD < q < MAX_UINT256


def test_scaled_amount() -> None:
    assert scaled_amount(1_000, WAD) == 1_000
    assert scaled_amount(1_000, 2 * WAD) == 500
    assert scaled_amount(1_000, 1) == 1_000 * WAD
    assert scaled_amount(10**40, MAX_UINT256) == 0


def test_pricer_reads_quotient_as_price_or_divisor() -> None:
    pricer = DecayPricer(
        schedule=LinearSchedule(per_time_unit=WAD),
        decay_constant=decay_constant_from_percent(4 * 10**16),
        units_per_step=1_000 * WAD,
    )
    # One unit sold, one time unit elapsed: exactly on schedule.
    q = pricer.quote(time_units=WAD, sold=0)
    assert q.ideal_time_units == WAD
    assert q.delta == 0
    assert q.quotient == WAD
    assert q.amount == 1_000 * WAD
    assert pricer.price_for(100 * WAD, time_units=WAD, sold=0) == 100 * WAD

    # Later in time: the price falls and the amount grows.
    assert pricer.price_for(100 * WAD, time_units=5 * WAD, sold=0) < 100 * WAD
    assert pricer.amount_for(time_units=5 * WAD, sold=0) > 1_000 * WAD
