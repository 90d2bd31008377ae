"""Walk session controller: state machine, timer and statistics.

Location callbacks and timer ticks are the only sources of mutation. They may
arrive on different threads, so all state is guarded by one lock. Observers receive immutable snapshots
after the lock is released, oldest first; a snapshot overtaken by a newer one
is skipped.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable

from pet_walk.errors import InvalidStateError, LocationFixError, UnsupportedCapabilityError
from pet_walk.geo import estimate_calories, speed_kmh
from pet_walk.models import (
    GeoPoint,
    PetRef,
    TICK_INTERVAL_S,
    SessionStats,
    TrackerParams,
    TrackSample,
    TrackState,
    WalkSnapshot,
    WatchOptions,
)
from pet_walk.route import RouteAccumulator
from pet_walk.sources import LocationSampleSource
from pet_walk.timer import TickHandle, Ticker

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[WalkSnapshot], None]
ErrorListener = Callable[[LocationFixError], None]


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class TrackSessionController:
    """Tracks one walk at a time.

    Args:
        source: Location sample source to subscribe to while tracking.
        ticker: Schedules the once-per-interval elapsed-time tick.
        params: Movement threshold and calorie factor.
        options: Passed through to ``source.subscribe``.
        clock: Returns epoch milliseconds; used for ``started_at_ms``.
    """

    def __init__(
        self,
        source: LocationSampleSource,
        ticker: Ticker,
        params: TrackerParams = TrackerParams(),
        options: WatchOptions = WatchOptions(),
        clock: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        self._source = source
        self._ticker = ticker
        self._params = params
        self._options = options
        self._clock = clock

        self._lock = threading.RLock()
        self._state = TrackState.IDLE
        self._route = RouteAccumulator(params.movement_threshold_m)
        self._stats = SessionStats()
        self._subject: PetRef | None = None
        self._current: GeoPoint | None = None
        self._started_at_ms: int | None = None

        self._generation = 0
        self._subscription: object | None = None
        self._tick: TickHandle | None = None

        self._listeners: list[SnapshotListener] = []
        self._error_listeners: list[ErrorListener] = []

        # snapshots are delivered one at a time, newest wins
        self._publish_lock = threading.RLock()
        self._seq = 0
        self._published_seq = 0

    # -------------------------
    # read access
    # -------------------------
    @property
    def state(self) -> TrackState:
        with self._lock:
            return self._state

    @property
    def stats(self) -> SessionStats:
        with self._lock:
            return self._stats

    @property
    def route(self) -> tuple[GeoPoint, ...]:
        with self._lock:
            return self._route.points

    @property
    def params(self) -> TrackerParams:
        return self._params

    def snapshot(self) -> WalkSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> WalkSnapshot:
        return WalkSnapshot(
            state=self._state,
            route=self._route.points,
            stats=self._stats,
            subject=self._subject,
            current_position=self._current,
            started_at_ms=self._started_at_ms,
        )

    def _stamp_locked(self) -> tuple[int, WalkSnapshot]:
        self._seq += 1
        return self._seq, self._snapshot_locked()

    # -------------------------
    # observers
    # -------------------------
    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a snapshot listener. Returns a function that unregisters it."""

        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def on_error(self, listener: ErrorListener) -> Callable[[], None]:
        """Register a listener for transient location errors."""

        with self._lock:
            self._error_listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._error_listeners:
                    self._error_listeners.remove(listener)

        return _unsubscribe

    def _publish(self, seq: int, snap: WalkSnapshot) -> None:
        """Deliver a stamped snapshot unless a newer one was already delivered.

        Called without the state lock held. Snapshots built on other threads
        may arrive here out of order; stale ones are dropped so listeners never
        see the session go back in time (e.g. RUNNING after STOPPED).
        """

        with self._publish_lock:
            if seq <= self._published_seq:
                logger.debug("dropped stale snapshot %s (delivered %s)", seq, self._published_seq)
                return
            self._published_seq = seq
            with self._lock:
                listeners = list(self._listeners)
            for listener in listeners:
                # a listener may have triggered a newer snapshot on this thread
                if self._published_seq != seq:
                    break
                try:
                    listener(snap)
                except Exception:
                    logger.exception("snapshot listener failed")

    def _publish_error(self, err: LocationFixError) -> None:
        with self._lock:
            listeners = list(self._error_listeners)
        for listener in listeners:
            try:
                listener(err)
            except Exception:
                logger.exception("error listener failed")

    # -------------------------
    # lifecycle
    # -------------------------
    def start(self, subject: PetRef | None = None) -> None:
        """Start a new walk for ``subject``.

        Raises:
            InvalidStateError: If not idle.
            UnsupportedCapabilityError: If the source cannot provide locations.
        """

        with self._lock:
            if self._state is not TrackState.IDLE:
                raise InvalidStateError("start", self._state)
            if not self._source.available:
                raise UnsupportedCapabilityError("location updates are not available on this device")

            self._generation += 1
            gen = self._generation
            self._route.clear()
            self._stats = SessionStats()
            self._subject = subject
            self._current = None
            self._started_at_ms = self._clock()
            self._state = TrackState.RUNNING

            self._subscription = self._source.subscribe(
                lambda lat, lng, ts: self._on_update(gen, lat, lng, ts),
                lambda reason: self._on_location_error(gen, reason),
                self._options,
            )
            self._tick = self._ticker.schedule(TICK_INTERVAL_S, lambda: self._on_tick(gen))
            seq, snap = self._stamp_locked()

        logger.info("walk started for %s", subject.name if subject else "unnamed pet")
        self._publish(seq, snap)

    def pause(self) -> None:
        """Pause a running walk; on a paused walk this resumes it."""

        with self._lock:
            if self._state is TrackState.RUNNING:
                self._state = TrackState.PAUSED
            elif self._state is TrackState.PAUSED:
                self._state = TrackState.RUNNING
            else:
                raise InvalidStateError("pause", self._state)
            seq, snap = self._stamp_locked()

        logger.info("walk %s", "paused" if snap.state is TrackState.PAUSED else "resumed")
        self._publish(seq, snap)

    def resume(self) -> None:
        with self._lock:
            if self._state is not TrackState.PAUSED:
                raise InvalidStateError("resume", self._state)
            self._state = TrackState.RUNNING
            seq, snap = self._stamp_locked()

        logger.info("walk resumed")
        self._publish(seq, snap)

    def stop(self) -> None:
        """Stop tracking. Route and stats stay readable until the next start."""

        with self._lock:
            if self._state not in (TrackState.RUNNING, TrackState.PAUSED):
                raise InvalidStateError("stop", self._state)
            # callbacks already in flight carry the old generation and are dropped
            self._generation += 1
            if self._subscription is not None:
                self._source.unsubscribe(self._subscription)
                self._subscription = None
            tick, self._tick = self._tick, None
            self._state = TrackState.STOPPED
            seq, snap = self._stamp_locked()

        # outside the lock: a threaded tick may be waiting for it
        if tick is not None:
            tick.cancel()

        logger.info(
            "walk stopped: %.1fm in %ss, %s points",
            snap.stats.total_distance_m,
            snap.stats.elapsed_seconds,
            len(snap.route),
        )
        self._publish(seq, snap)

    def reset(self) -> None:
        """Return a stopped controller to idle so a new walk can start."""

        with self._lock:
            if self._state is not TrackState.STOPPED:
                raise InvalidStateError("reset", self._state)
            self._state = TrackState.IDLE
            seq, snap = self._stamp_locked()
        self._publish(seq, snap)

    # -------------------------
    # callbacks
    # -------------------------
    def _on_update(self, gen: int, lat: float, lng: float, timestamp_ms: int) -> None:
        with self._lock:
            if gen != self._generation:
                return
            point = GeoPoint(lat, lng)
            self._current = point
            if self._state is TrackState.RUNNING:
                self._ingest_locked(TrackSample(point=point, timestamp_ms=timestamp_ms))
            seq, snap = self._stamp_locked()
        self._publish(seq, snap)

    def _ingest_locked(self, sample: TrackSample) -> None:
        previous = self._route.last_sample
        result = self._route.accept(sample)
        if not result.accepted or previous is None:
            return

        st = self._stats
        total = st.total_distance_m + result.incremental_distance_m
        segment_s = (sample.timestamp_ms - previous.timestamp_ms) / 1000.0
        segment_speed = speed_kmh(result.incremental_distance_m, segment_s)
        self._stats = replace(
            st,
            total_distance_m=total,
            average_speed_kmh=speed_kmh(total, st.elapsed_seconds),
            max_speed_kmh=max(st.max_speed_kmh, segment_speed),
            estimated_calories=self._calories(total, st.elapsed_seconds),
        )

    def _calories(self, total_m: float, elapsed_s: int) -> int:
        weight = self._subject.weight_kg if self._subject is not None else None
        return estimate_calories(total_m / 1000.0, weight, elapsed_s / 3600.0, self._params.calorie_factor)

    def _on_tick(self, gen: int) -> None:
        with self._lock:
            if gen != self._generation or self._state is not TrackState.RUNNING:
                return
            st = self._stats
            elapsed = st.elapsed_seconds + 1
            self._stats = replace(
                st,
                elapsed_seconds=elapsed,
                average_speed_kmh=speed_kmh(st.total_distance_m, elapsed),
            )
            seq, snap = self._stamp_locked()
        self._publish(seq, snap)

    def _on_location_error(self, gen: int, reason: str) -> None:
        with self._lock:
            if gen != self._generation:
                return
        err = LocationFixError(reason)
        logger.warning("%s", err)
        self._publish_error(err)
