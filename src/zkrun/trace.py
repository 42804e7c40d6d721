"""
Single-pass trace validation.

Walks consecutive sample pairs once, carrying only the running distance
and the last timestamp. The first violated rule ends the walk; the caller
learns only that the trace was rejected.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from zkrun.geodesy import distance_segment_meters
from zkrun.model import Sample
from zkrun.policy import MIN_DISTANCE_M, U64_MAX

SegmentDistance = Callable[[int, int, int, int], int]


@dataclass(frozen=True)
class TraceSummary:
    """Totals of an accepted trace."""

    elapsed_seconds: int
    total_distance_m: int


def saturating_add_u64(a: int, b: int) -> int:
    return min(a + b, U64_MAX)


def validate_trace(
    gps: Sequence[Sample],
    *,
    max_speed_mps: int,
    max_elapsed_sec: int,
    min_distance_m: int = MIN_DISTANCE_M,
    distance: SegmentDistance = distance_segment_meters,
) -> Optional[TraceSummary]:
    """Check time ordering, per-segment speed, elapsed time and total distance.

    Args:
        gps: Ordered samples
        max_speed_mps: Largest allowed floor(meters / seconds) for any segment
        max_elapsed_sec: Largest allowed last.t - first.t
        min_distance_m: Smallest allowed accumulated distance
        distance: Segment distance function (meters between two fixes)

    Returns:
        TraceSummary if every rule holds, else None.
    """
    if len(gps) < 2:
        return None

    first_t = gps[0].t
    last_t = first_t
    total_distance_m = 0

    for a, b in zip(gps, gps[1:]):
        if not b.t > a.t:
            return None
        dt = b.t - a.t
        d = distance(a.lat_microdeg, a.lon_microdeg, b.lat_microdeg, b.lon_microdeg)
        total_distance_m = saturating_add_u64(total_distance_m, d)
        if dt == 0:
            return None
        if d // dt > max_speed_mps:
            return None
        last_t = b.t

    elapsed = last_t - first_t
    if elapsed > max_elapsed_sec:
        return None
    if total_distance_m < min_distance_m:
        return None
    return TraceSummary(elapsed_seconds=elapsed, total_distance_m=total_distance_m)


__all__ = [
    "SegmentDistance",
    "TraceSummary",
    "saturating_add_u64",
    "validate_trace",
]
