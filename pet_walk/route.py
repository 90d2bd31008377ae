"""Route accumulation with movement-threshold filtering."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pet_walk.geo import great_circle_distance_m
from pet_walk.models import GeoPoint, TrackSample

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AcceptResult:
    """Outcome of offering a sample to the route."""

    accepted: bool
    incremental_distance_m: float = 0.0


class RouteAccumulator:
    """Append-only route that ignores GPS jitter.

    The first sample always anchors the route. After that a sample is kept only
    if it lies strictly more than ``threshold_m`` away from the last kept point,
    so consecutive route points are always separated by more than the threshold.
    """

    def __init__(self, threshold_m: float = 2.0) -> None:
        self._threshold_m = threshold_m
        self._points: list[GeoPoint] = []
        self._last: TrackSample | None = None

    @property
    def threshold_m(self) -> float:
        return self._threshold_m

    @property
    def points(self) -> tuple[GeoPoint, ...]:
        return tuple(self._points)

    @property
    def last_sample(self) -> TrackSample | None:
        """Last accepted sample (None while the route is empty)."""

        return self._last

    def __len__(self) -> int:
        return len(self._points)

    def clear(self) -> None:
        self._points.clear()
        self._last = None

    def accept(self, sample: TrackSample) -> AcceptResult:
        """Offer a sample to the route.

        Returns:
            AcceptResult with the distance from the previous route point, or
            ``(False, 0.0)`` when the movement is below the threshold.
        """

        if self._last is None:
            self._points.append(sample.point)
            self._last = sample
            return AcceptResult(accepted=True, incremental_distance_m=0.0)

        d = great_circle_distance_m(self._last.point, sample.point)
        if d > self._threshold_m:
            self._points.append(sample.point)
            self._last = sample
            return AcceptResult(accepted=True, incremental_distance_m=d)

        logger.debug("sample at %s ignored: moved %.2fm (threshold %.2fm)", sample.timestamp_ms, d, self._threshold_m)
        return AcceptResult(accepted=False)
