"""Data models for walk tracking: points, samples, stats and snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class TrackSample:
    """A single location fix as delivered by a location source.

    Attributes:
        point: Reported position.
        timestamp_ms: Capture time, epoch milliseconds.
        horizontal_accuracy_m: Reported accuracy in meters, if the source knows it.
    """

    point: GeoPoint
    timestamp_ms: int
    horizontal_accuracy_m: float | None = None

    @property
    def timestamp_s(self) -> float:
        """Capture time as epoch seconds."""

        return self.timestamp_ms / 1000.0


class TrackState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class PetRef:
    """The pet being walked.

    Only ``weight_kg`` feeds the statistics; the rest is for display and lookups.
    """

    id: str
    name: str
    species: str = "other"
    weight_kg: float | None = None
    breed: str = ""
    age_years: float | None = None
    owner_id: str | None = None


@dataclass(frozen=True, slots=True)
class SessionStats:
    """Aggregate statistics of a walk."""

    elapsed_seconds: int = 0
    total_distance_m: float = 0.0
    average_speed_kmh: float = 0.0
    max_speed_kmh: float = 0.0
    estimated_calories: int = 0

    @property
    def total_distance_km(self) -> float:
        return self.total_distance_m / 1000.0


@dataclass(frozen=True, slots=True)
class WalkSnapshot:
    """Read-only view of a session, published to observers after every change.

    Attributes:
        state: Current tracking state.
        route: Accepted route points in chronological order.
        stats: Statistics at the time of the snapshot.
        subject: Pet being walked, if any.
        current_position: Last fix seen, including fixes received while paused.
        started_at_ms: Epoch ms when the session started, None before the first start.
    """

    state: TrackState
    route: tuple[GeoPoint, ...]
    stats: SessionStats
    subject: PetRef | None = None
    current_position: GeoPoint | None = None
    started_at_ms: int | None = None


@dataclass(frozen=True, slots=True)
class TrackerParams:
    """Tuning for the session controller.

    The calorie factor and movement threshold are heuristic defaults, not a
    physiological model.
    """

    movement_threshold_m: float = 2.0
    calorie_factor: float = 0.5


@dataclass(frozen=True, slots=True)
class WatchOptions:
    """Options passed to a location source when subscribing."""

    high_accuracy: bool = True
    timeout_ms: int = 10_000
    max_fix_age_ms: int = 1_000


EARTH_RADIUS_M: Final[float] = 6_371_000.0
TICK_INTERVAL_S: Final[float] = 1.0
DEFAULT_TZ: Final[str] = "Asia/Kolkata"
DEFAULT_MAP_CENTER: Final[GeoPoint] = GeoPoint(12.9716, 77.5946)
