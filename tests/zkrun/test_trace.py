"""
Trace validator tests.

Most tests inject a segment distance table so speed and distance boundaries
can be hit exactly.
"""
from __future__ import annotations

from typing import List, Sequence

from zkrun.model import Sample
from zkrun.policy import MIN_DISTANCE_M, U64_MAX
from zkrun.trace import TraceSummary, saturating_add_u64, validate_trace


def _samples(*times: int) -> List[Sample]:
    return [Sample(t=t, lat_microdeg=i, lon_microdeg=0) for i, t in enumerate(times)]


def _table(*meters: int):
    """Distance function returning meters[i] for the segment starting at sample i."""

    def _distance(lat1: int, lon1: int, lat2: int, lon2: int) -> int:
        return meters[lat1]

    return _distance


def _check(gps: Sequence[Sample], meters: Sequence[int], *, max_speed: int = 12, max_elapsed: int = 3600):
    return validate_trace(
        gps,
        max_speed_mps=max_speed,
        max_elapsed_sec=max_elapsed,
        distance=_table(*meters),
    )


class TestSaturatingAdd:
    def test_normal(self) -> None:
        assert saturating_add_u64(2, 3) == 5

    def test_saturates(self) -> None:
        assert saturating_add_u64(U64_MAX, 1) == U64_MAX
        assert saturating_add_u64(U64_MAX - 1, U64_MAX) == U64_MAX


class TestShape:
    def test_fewer_than_two_samples(self) -> None:
        assert validate_trace([], max_speed_mps=12, max_elapsed_sec=3600) is None
        assert validate_trace(_samples(0), max_speed_mps=12, max_elapsed_sec=3600) is None

    def test_duplicate_timestamp(self) -> None:
        assert _check(_samples(0, 600, 600), [5000, 0]) is None

    def test_backwards_timestamp(self) -> None:
        assert _check(_samples(600, 0), [6000]) is None

    def test_stops_at_first_violation(self) -> None:
        calls = []

        def _distance(lat1: int, lon1: int, lat2: int, lon2: int) -> int:
            calls.append(lat1)
            return 5000

        gps = _samples(0, 600, 300, 900, 1200)
        assert validate_trace(gps, max_speed_mps=12, max_elapsed_sec=3600, distance=_distance) is None
        assert calls == [0]


class TestSpeed:
    def test_speed_equal_to_limit_accepted(self) -> None:
        # floor(5009 / 417) == 12
        assert _check(_samples(0, 417), [5009]) == TraceSummary(elapsed_seconds=417, total_distance_m=5009)

    def test_speed_one_over_limit_rejected(self) -> None:
        # floor(5421 / 417) == 13
        assert _check(_samples(0, 417), [5421]) is None

    def test_speed_is_floored(self) -> None:
        # 5837 / 449 == 13.0, 5836 / 449 == 12.99...
        assert _check(_samples(0, 449), [5836], max_speed=12) is not None
        assert _check(_samples(0, 449), [5837], max_speed=12) is None

    def test_one_fast_segment_rejects_whole_trace(self) -> None:
        assert _check(_samples(0, 600, 610, 1200), [3000, 200, 3000]) is None


class TestTotals:
    def test_distance_just_short(self) -> None:
        assert MIN_DISTANCE_M == 5000
        assert _check(_samples(0, 600, 1200), [2500, 2499]) is None

    def test_distance_exactly_minimum(self) -> None:
        summary = _check(_samples(0, 600, 1200), [2500, 2500])
        assert summary == TraceSummary(elapsed_seconds=1200, total_distance_m=5000)

    def test_elapsed_at_limit(self) -> None:
        assert _check(_samples(100, 700), [5000], max_elapsed=600) is not None

    def test_elapsed_over_limit(self) -> None:
        assert _check(_samples(100, 701), [5000], max_elapsed=600) is None

    def test_custom_minimum(self) -> None:
        summary = validate_trace(
            _samples(0, 10),
            max_speed_mps=12,
            max_elapsed_sec=60,
            min_distance_m=100,
            distance=_table(100),
        )
        assert summary == TraceSummary(elapsed_seconds=10, total_distance_m=100)

    def test_total_saturates(self) -> None:
        summary = validate_trace(
            _samples(0, 1, 2),
            max_speed_mps=U64_MAX,
            max_elapsed_sec=10,
            distance=_table(U64_MAX, U64_MAX),
        )
        assert summary is not None
        assert summary.total_distance_m == U64_MAX


class TestRealGeometry:
    def test_meridian_scenario(self) -> None:
        gps = [Sample(0, 0, 0), Sample(600, 45_000, 0)]
        summary = validate_trace(gps, max_speed_mps=12, max_elapsed_sec=3600)
        assert summary == TraceSummary(elapsed_seconds=600, total_distance_m=5003)

    def test_speed_limit_on_real_segment(self) -> None:
        gps = [Sample(0, 0, 0), Sample(600, 45_000, 0)]
        # 5003 // 600 == 8
        assert validate_trace(gps, max_speed_mps=8, max_elapsed_sec=3600) is not None
        assert validate_trace(gps, max_speed_mps=7, max_elapsed_sec=3600) is None
