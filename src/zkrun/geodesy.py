"""
Deterministic Q32.32 fixed-point geodesy.

A Q32.32 value v stands for the real number v / 2**32. Python integers do
not overflow, so the 128-bit intermediates of the reference arithmetic are
plain ints here; what has to be reproduced exactly is the rounding. Every
division truncates toward zero (not floor), matching two's-complement
integer division, and the cosine uses the same 4-term Taylor polynomial.
Do not "improve" either: outputs must stay bit-compatible with prior journals.

No floating point is used anywhere in this module.
"""
from __future__ import annotations

from zkrun.policy import (
    EARTH_RADIUS_M,
    HALF_TURN_DEGREES,
    MICRO_DEGREES,
    PI_Q32,
    Q32_ONE,
    TWO_PI_Q32,
    U128_LIMIT,
    U64_MAX,
)

# Highest even power of two representable in an unsigned 128-bit integer.
_ISQRT_TOP_BIT = 1 << 126


def div_trunc(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    if b == 0:
        raise ZeroDivisionError("division by zero")
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


def deg_to_rad_q32(deg_micro: int) -> int:
    """Convert micro-degrees to Q32.32 radians."""
    deg_q32 = div_trunc(deg_micro * Q32_ONE, MICRO_DEGREES)
    return div_trunc(deg_q32 * PI_Q32, HALF_TURN_DEGREES * Q32_ONE)


def wrap_pi_q32(x: int) -> int:
    """Reduce a Q32.32 angle into [-pi, pi] by whole turns."""
    while x > PI_Q32:
        x -= TWO_PI_Q32
    while x < -PI_Q32:
        x += TWO_PI_Q32
    return x


def q32_mul(a: int, b: int) -> int:
    return div_trunc(a * b, Q32_ONE)


def q32_div(a: int, b: int) -> int:
    return div_trunc(a * Q32_ONE, b)


def q32_cos(x: int) -> int:
    """cos(x) ~= 1 - x^2/2 + x^4/24 - x^6/720, after wrapping x to [-pi, pi].

    Only accurate near zero; callers evaluate it at latitudes.
    """
    x = wrap_pi_q32(x)
    x2 = q32_mul(x, x)
    x4 = q32_mul(x2, x2)
    x6 = q32_mul(x4, x2)
    return Q32_ONE + div_trunc(-x2, 2) + div_trunc(x4, 24) + div_trunc(-x6, 720)


def isqrt_u128(x: int) -> int:
    """Floor square root of an unsigned 128-bit integer (binary digit method)."""
    if x < 0 or x >= U128_LIMIT:
        raise ValueError(f"isqrt_u128 input out of range: {x}")
    if x == 0:
        return 0
    r = 0
    bit = _ISQRT_TOP_BIT
    while bit > x:
        bit >>= 2
    n = x
    while bit != 0:
        if n >= r + bit:
            n -= r + bit
            r = (r >> 1) + bit
        else:
            r >>= 1
        bit >>= 2
    return r


def distance_segment_meters(lat1: int, lon1: int, lat2: int, lon2: int) -> int:
    """Equirectangular distance in whole meters between two micro-degree fixes.

    x = dlon * cos(mean lat), y = dlat, d = R * sqrt(x^2 + y^2), all in
    Q32.32 and truncated at every step.
    """
    phi1 = deg_to_rad_q32(lat1)
    phi2 = deg_to_rad_q32(lat2)
    lam1 = deg_to_rad_q32(lon1)
    lam2 = deg_to_rad_q32(lon2)

    dphi = phi2 - phi1
    dlam = lam2 - lam1
    cos_lat = q32_cos(div_trunc(phi1 + phi2, 2))

    x = q32_mul(dlam, cos_lat)
    y = dphi
    total = q32_mul(x, x) + q32_mul(y, y)
    if total < 0:
        total = 0

    # Scaling by Q once turns the Q32.32 square into a Q64.64 radicand, so
    # the root comes back in Q32.32.
    root_q32 = isqrt_u128(total * Q32_ONE)
    meters = div_trunc(EARTH_RADIUS_M * root_q32, Q32_ONE)
    if meters < 0:
        return 0
    return min(meters, U64_MAX)


__all__ = [
    "div_trunc",
    "deg_to_rad_q32",
    "wrap_pi_q32",
    "q32_mul",
    "q32_div",
    "q32_cos",
    "isqrt_u128",
    "distance_segment_meters",
]
