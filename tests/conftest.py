from __future__ import annotations

import pytest

from pet_walk.geo import haversine_m
from pet_walk.models import GeoPoint, PetRef, TrackSample, WatchOptions
from pet_walk.session import TrackSessionController
from pet_walk.timer import ManualTicker

BASE = GeoPoint(12.9716, 77.5946)
T0 = 1_700_000_000_000


def north_of(p: GeoPoint, meters: float) -> GeoPoint:
    """Point ``meters`` due north of ``p`` (exact on the haversine sphere)."""

    return GeoPoint(p.latitude + meters / 111_194.92664455873, p.longitude)


def sample(p: GeoPoint, t_s: float) -> TrackSample:
    return TrackSample(point=p, timestamp_ms=T0 + int(t_s * 1000))


class FakeLocationSource:
    """Hands the test direct control over update/error callbacks."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.handles: dict[int, tuple] = {}
        self.options: WatchOptions | None = None
        self._next = 0

    def subscribe(self, on_update, on_error, options=WatchOptions()):
        self._next += 1
        self.handles[self._next] = (on_update, on_error)
        self.options = options
        return self._next

    def unsubscribe(self, handle) -> None:
        self.handles.pop(handle, None)

    @property
    def callbacks(self) -> tuple:
        (cbs,) = self.handles.values()
        return cbs

    def send(self, p: GeoPoint, t_s: float) -> None:
        on_update, _ = self.callbacks
        on_update(p.latitude, p.longitude, T0 + int(t_s * 1000))

    def fail(self, reason: str) -> None:
        _, on_error = self.callbacks
        on_error(reason)


@pytest.fixture
def source() -> FakeLocationSource:
    return FakeLocationSource()


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def controller(source: FakeLocationSource, ticker: ManualTicker) -> TrackSessionController:
    return TrackSessionController(source, ticker, clock=lambda: T0)


@pytest.fixture
def rex() -> PetRef:
    return PetRef(id="rex", name="Rex", species="dog", weight_kg=20.0)


def meters(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)
