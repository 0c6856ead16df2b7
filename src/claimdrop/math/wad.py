# src/claimdrop/math/wad.py
from __future__ import annotations

"""Signed 18-decimal ("wad") fixed-point arithmetic.

Real numbers are carried as Python ints scaled by 1e18. The functions below
reproduce 256-bit signed integer semantics where it matters for determinism:

  - every division truncates toward zero (sdiv), never floors
  - right shifts are arithmetic (Python's >> already is)

The exponential and logarithm are rational approximations evaluated in a
2**96 binary basis. They are exact integer programs: the same input always
yields the same output on every machine.
"""

WAD: int = 10**18

INT256_MAX: int = 2**255 - 1
INT256_MIN: int = -(2**255)

# exp(x) rounds to zero below this input.
EXP_ZERO_BELOW: int = -42139678854452767551

# exp(x) no longer fits a signed 256-bit wad at/above this input.
EXP_OVERFLOW_AT: int = 135305999368893231589

# ln(2) in a 2**96 basis.
_LN2_X96: int = 54916777467707473351141471128


class WadOverflow(ArithmeticError):
    pass


class ExpOverflow(ArithmeticError):
    pass


class LnUndefined(ArithmeticError):
    pass


def sdiv(a: int, b: int) -> int:
    """Signed division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _check_int256(x: int) -> int:
    if x > INT256_MAX or x < INT256_MIN:
        raise WadOverflow(f"value out of int256 range: {x}")
    return x


def to_wad_unsafe(x: int) -> int:
    return int(x) * WAD


def unsafe_wad_mul(a: int, b: int) -> int:
    """a * b / 1e18 with no range checks. Callers keep inputs in range."""
    return sdiv(a * b, WAD)


def unsafe_wad_div(a: int, b: int) -> int:
    """a * 1e18 / b with no range or zero checks."""
    return sdiv(a * WAD, b)


def wad_mul(a: int, b: int) -> int:
    return sdiv(_check_int256(a * b), WAD)


def wad_div(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError("wad_div by zero")
    return sdiv(_check_int256(a * WAD), b)


def wad_exp(x: int) -> int:
    """Return e^x for a wad x.

    Returns 0 for x <= EXP_ZERO_BELOW (result would be below 0.5 wei).
    Raises ExpOverflow for x >= EXP_OVERFLOW_AT; callers that can reach that
    region must branch before calling.
    """
    if x <= EXP_ZERO_BELOW:
        return 0
    if x >= EXP_OVERFLOW_AT:
        raise ExpOverflow(f"wad_exp input too large: {x}")

    # 1e18 basis -> 2**96 basis: multiply by 2**96 / 1e18 = 2**78 / 5**18.
    x = sdiv(x << 78, 5**18)

    # exp(x) = exp(x') * 2**k with k = round(x / ln 2), x' in (-ln2/2, ln2/2).
    k = (sdiv(x << 96, _LN2_X96) + 2**95) >> 96
    x = x - k * _LN2_X96

    # (6, 7)-term rational approximation; p is monic.
    y = x + 1346386616545796478920950773328
    y = ((y * x) >> 96) + 57155421227552351082224309758442
    p = y + x - 94201549194550492254356042504812
    p = ((p * y) >> 96) + 28719021644029726153956944680412240
    p = p * x + (4385272521454847904659076985693276 << 96)

    q = x - 2855989394907223263936484059900
    q = ((q * x) >> 96) + 50020603652535783019961831881945
    q = ((q * x) >> 96) - 533845033583426703283633433725380
    q = ((q * x) >> 96) + 3604857256930695427073651918091429
    q = ((q * x) >> 96) - 14423608567350463180887372962807573
    q = ((q * x) >> 96) + 26449188498355588339934803723976023

    # q has no real roots, and p is already 2**96 too large.
    r = sdiv(p, q)

    # Scale factor, the 2**k term and the 2**96 -> 1e18 base change in one step.
    return (r * 3822833074963236453042738258902158003155416615667) >> (195 - k)


def wad_ln(x: int) -> int:
    """Return ln(x) for a wad x > 0."""
    if x <= 0:
        raise LnUndefined(f"wad_ln undefined for {x}")

    # ln(x * 2**96 / 1e18) = ln(x) + ln(2**96 / 1e18); the constant is added at the end.
    k = (x.bit_length() - 1) - 96

    # Normalize to [1, 2) * 2**96.
    x = (x << (159 - k)) >> 159

    # (8, 8)-term rational approximation; p is monic.
    p = x + 3273285459638523848632254066296
    p = ((p * x) >> 96) + 24828157081833163892658089445524
    p = ((p * x) >> 96) + 43456485725739037958740375743393
    p = ((p * x) >> 96) - 11111509109440967052023855526967
    p = ((p * x) >> 96) - 45023709667254063763336534515857
    p = ((p * x) >> 96) - 14706773417378608786704636184526
    p = p * x - (795164235651350426258249787498 << 96)

    q = x + 5573035233440673466300451813936
    q = ((q * x) >> 96) + 71694874799317883764090561454958
    q = ((q * x) >> 96) + 283447036172924575727196451306956
    q = ((q * x) >> 96) + 401686690394027663651624208769553
    q = ((q * x) >> 96) + 204048457590392012362485061816622
    q = ((q * x) >> 96) + 31853899698501571402653359427138
    q = ((q * x) >> 96) + 909429971244387300277376558375

    r = sdiv(p, q)

    # Scale factor, k * ln(2), ln(2**96 / 1e18), then 5**18 * 2**192 -> 1e18.
    r *= 1677202110996718588342820967067443963516166
    r += 16597577552685614221487285958193947469193820559219878177908093499208371 * k
    r += 600920179829731861736702779321621459595472258049074101567377883020018308
    return r >> 174


__all__ = [
    "WAD",
    "INT256_MAX",
    "INT256_MIN",
    "EXP_ZERO_BELOW",
    "EXP_OVERFLOW_AT",
    "WadOverflow",
    "ExpOverflow",
    "LnUndefined",
    "sdiv",
    "to_wad_unsafe",
    "unsafe_wad_mul",
    "unsafe_wad_div",
    "wad_mul",
    "wad_div",
    "wad_exp",
    "wad_ln",
]
