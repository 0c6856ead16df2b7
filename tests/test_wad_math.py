from __future__ import annotations

import math

import pytest

from claimdrop.math.wad import (
    EXP_OVERFLOW_AT,
    EXP_ZERO_BELOW,
    INT256_MAX,
    WAD,
    ExpOverflow,
    LnUndefined,
    WadOverflow,
    sdiv,
    to_wad_unsafe,
    unsafe_wad_div,
    unsafe_wad_mul,
    wad_div,
    wad_exp,
    wad_ln,
    wad_mul,
)


def test_sdiv_truncates_toward_zero() -> None:
    assert sdiv(7, 2) == 3
    assert sdiv(-7, 2) == -3
    assert sdiv(7, -2) == -3
    assert sdiv(-7, -2) == 3


def test_wad_mul_div_truncate_toward_zero() -> None:
    # Floor division would give -1 here.
    assert unsafe_wad_mul(-1, 1) == 0
    assert unsafe_wad_mul(3 * WAD, WAD // 2) == 3 * WAD // 2
    assert unsafe_wad_div(-1, 3 * WAD) == 0
    assert unsafe_wad_div(WAD, 4 * WAD) == WAD // 4
    assert to_wad_unsafe(5) == 5 * WAD


def test_checked_wad_ops_reject_out_of_range() -> None:
    with pytest.raises(WadOverflow):
        wad_mul(INT256_MAX, 2)
    with pytest.raises(ZeroDivisionError):
        wad_div(WAD, 0)
    assert wad_div(WAD, 2 * WAD) == WAD // 2


def test_wad_exp_of_zero_is_one() -> None:
    assert wad_exp(0) == WAD


@pytest.mark.parametrize("x", [-10.0, -3.0, -1.0, -0.5, -0.04, 0.3, 1.0, 2.0, 10.0, 50.0, 100.0])
def test_wad_exp_matches_float_exp(x: float) -> None:
    got = wad_exp(int(x * WAD))
    assert math.isclose(got / WAD, math.exp(x), rel_tol=1e-9)


def test_wad_exp_lower_bound_returns_zero() -> None:
    assert wad_exp(EXP_ZERO_BELOW) == 0
    assert wad_exp(-100 * WAD) == 0
    assert wad_exp(EXP_ZERO_BELOW + WAD) > 0


def test_wad_exp_upper_bound_raises() -> None:
    with pytest.raises(ExpOverflow):
        wad_exp(EXP_OVERFLOW_AT)
    with pytest.raises(ExpOverflow):
        wad_exp(200 * WAD)
    assert 0 < wad_exp(EXP_OVERFLOW_AT - 1) <= INT256_MAX


def test_wad_exp_is_monotone() -> None:
    xs = [-5 * WAD, -WAD, -1, 0, 1, WAD, 5 * WAD]
    ys = [wad_exp(x) for x in xs]
    assert ys == sorted(ys)


def test_wad_ln_of_one_is_zero() -> None:
    assert abs(wad_ln(WAD)) <= 1


@pytest.mark.parametrize("x", [0.001, 0.5, 0.96, 2.0, math.e, 10.0, 1e6, 1e30])
def test_wad_ln_matches_float_log(x: float) -> None:
    got = wad_ln(int(x * WAD))
    assert math.isclose(got / WAD, math.log(int(x * WAD) / WAD), rel_tol=1e-9, abs_tol=1e-15)


def test_wad_ln_rejects_non_positive() -> None:
    with pytest.raises(LnUndefined):
        wad_ln(0)
    with pytest.raises(LnUndefined):
        wad_ln(-WAD)


def test_exp_ln_round_trip_is_close() -> None:
    for x in (WAD // 3, WAD, 7 * WAD, 123456 * WAD):
        back = wad_exp(wad_ln(x))
        assert abs(back - x) <= x // 10**12
