"""
Value types flowing through the zkrun guest.

Sample and RunInput are what the record decoder produces. The verification
outcome is a two-case sum: Accepted carries the journal payload, Rejected
carries nothing, so no failure detail can leak to the journal.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class Sample:
    """One GPS fix: seconds since epoch and micro-degree coordinates."""

    t: int
    lat_microdeg: int
    lon_microdeg: int


@dataclass(frozen=True)
class RunInput:
    """A decoded submission.

    Attributes:
        gps: Ordered samples (at least two for an accepted run)
        start_time: Declared session start (seconds)
        end_time: Declared session end (seconds), must not precede start_time
        max_elapsed_sec: Upper bound on last.t - first.t
        max_speed_mps: Upper bound on floor(segment meters / segment seconds)
        blob: Opaque payload being attested
        sig: 65 bytes, r || s || v (v unused)
        pubkey: 65-byte uncompressed SEC1 point
    """

    gps: Tuple[Sample, ...]
    start_time: int
    end_time: int
    max_elapsed_sec: int
    max_speed_mps: int
    blob: bytes
    sig: bytes
    pubkey: bytes


@dataclass(frozen=True)
class Rejected:
    """The uniform failure outcome."""


@dataclass(frozen=True)
class Accepted:
    """A run that satisfied every check."""

    elapsed_seconds: int
    blob_hash: bytes
    signer_address: bytes


VerificationOutcome = Union[Accepted, Rejected]

REJECTED = Rejected()


__all__ = [
    "Sample",
    "RunInput",
    "Accepted",
    "Rejected",
    "VerificationOutcome",
    "REJECTED",
]
