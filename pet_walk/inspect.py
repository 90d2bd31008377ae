"""Inspect a recorded fix stream before replaying it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from pet_walk.geo import great_circle_distance_m
from pet_walk.models import TrackSample
from pet_walk.timeutils import IntervalStats, interval_stats


@dataclass(frozen=True, slots=True)
class InspectResult:
    """High-level fix stream inspection result."""

    samples: int
    min_time_ms: int | None
    max_time_ms: int | None
    delta: IntervalStats | None
    min_lat: float | None
    max_lat: float | None
    min_lon: float | None
    max_lon: float | None
    duplicate_timestamps: int
    out_of_order: int
    raw_distance_m: float


def inspect_samples(samples: Sequence[TrackSample]) -> InspectResult:
    """Inspect already-loaded samples (in delivery order).

    ``raw_distance_m`` sums every hop without threshold filtering, so comparing
    it with a replay's total shows how much jitter the filter removed.
    """

    if not samples:
        return InspectResult(
            samples=0,
            min_time_ms=None,
            max_time_ms=None,
            delta=None,
            min_lat=None,
            max_lat=None,
            min_lon=None,
            max_lon=None,
            duplicate_timestamps=0,
            out_of_order=0,
            raw_distance_m=0.0,
        )

    times = sorted(s.timestamp_ms for s in samples)
    dupe = 0
    for i in range(1, len(times)):
        if times[i] == times[i - 1]:
            dupe += 1
    out_of_order = sum(1 for a, b in zip(samples, samples[1:]) if b.timestamp_ms < a.timestamp_ms)
    raw = sum(great_circle_distance_m(a.point, b.point) for a, b in zip(samples, samples[1:]))

    lats = [s.point.latitude for s in samples]
    lons = [s.point.longitude for s in samples]
    return InspectResult(
        samples=len(samples),
        min_time_ms=times[0],
        max_time_ms=times[-1],
        delta=interval_stats(times),
        min_lat=min(lats),
        max_lat=max(lats),
        min_lon=min(lons),
        max_lon=max(lons),
        duplicate_timestamps=dupe,
        out_of_order=out_of_order,
        raw_distance_m=raw,
    )
