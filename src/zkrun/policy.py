"""
Fixed policy and arithmetic constants for the zkrun guest.

Every value the verifier depends on lives here so it can be audited (and
swapped) without touching algorithm code. Changing any of them changes the
guest's outputs and therefore breaks bit-compatibility with prior journals.
"""
from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Q32.32 fixed point
# ---------------------------------------------------------------------------

Q32_SHIFT: Final[int] = 32
Q32_ONE: Final[int] = 1 << Q32_SHIFT

# floor(pi * 2**32) and floor(2 * pi * 2**32), taken from the IEEE-754 double
# value of pi. TWO_PI_Q32 is not 2 * PI_Q32.
PI_Q32: Final[int] = 0x3243F6A88
TWO_PI_Q32: Final[int] = 0x6487ED511

MICRO_DEGREES: Final[int] = 1_000_000
HALF_TURN_DEGREES: Final[int] = 180

# ---------------------------------------------------------------------------
# Geodesy + trip policy
# ---------------------------------------------------------------------------

EARTH_RADIUS_M: Final[int] = 6_371_000
MIN_DISTANCE_M: Final[int] = 5_000

# ---------------------------------------------------------------------------
# Integer widths
# ---------------------------------------------------------------------------

U32_MAX: Final[int] = (1 << 32) - 1
U64_MAX: Final[int] = (1 << 64) - 1
U128_LIMIT: Final[int] = 1 << 128
I32_MIN: Final[int] = -(1 << 31)
I32_MAX: Final[int] = (1 << 31) - 1

# ---------------------------------------------------------------------------
# Signature material
# ---------------------------------------------------------------------------

SIG_LEN: Final[int] = 65
COMPACT_SIG_LEN: Final[int] = 64
PUBKEY_LEN: Final[int] = 65
SEC1_UNCOMPRESSED_TAG: Final[int] = 0x04
ADDRESS_LEN: Final[int] = 20
DIGEST_LEN: Final[int] = 32

# ---------------------------------------------------------------------------
# Journal layout
# ---------------------------------------------------------------------------

JOURNAL_REJECTED: Final[int] = 0
JOURNAL_ACCEPTED: Final[int] = 1
JOURNAL_ACCEPTED_LEN: Final[int] = 1 + 4 + DIGEST_LEN + ADDRESS_LEN


__all__ = [
    "Q32_SHIFT",
    "Q32_ONE",
    "PI_Q32",
    "TWO_PI_Q32",
    "MICRO_DEGREES",
    "HALF_TURN_DEGREES",
    "EARTH_RADIUS_M",
    "MIN_DISTANCE_M",
    "U32_MAX",
    "U64_MAX",
    "U128_LIMIT",
    "I32_MIN",
    "I32_MAX",
    "SIG_LEN",
    "COMPACT_SIG_LEN",
    "PUBKEY_LEN",
    "SEC1_UNCOMPRESSED_TAG",
    "ADDRESS_LEN",
    "DIGEST_LEN",
    "JOURNAL_REJECTED",
    "JOURNAL_ACCEPTED",
    "JOURNAL_ACCEPTED_LEN",
]
