"""Run a recorded walk through the session controller.

``replay_walk`` is deterministic: it steps simulated time one tick at a time
and releases the fixes recorded up to that instant. ``replay_realtime`` plays
the same fixes from background threads in (optionally accelerated) wall-clock
time, the way live tracking behaves.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from pet_walk.errors import LocationFixError
from pet_walk.models import PetRef, TrackerParams, TrackSample, TrackState, WalkSnapshot, WatchOptions
from pet_walk.session import SnapshotListener, TrackSessionController
from pet_walk.sources import ReplayLocationSource
from pet_walk.timer import ManualTicker, ThreadTicker

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReplayResult:
    """Final snapshot of a replayed walk plus the location errors seen on the way."""

    snapshot: WalkSnapshot
    location_errors: tuple[str, ...]


def replay_walk(
    samples: Sequence[TrackSample],
    subject: PetRef | None = None,
    params: TrackerParams = TrackerParams(),
    options: WatchOptions = WatchOptions(),
    pause_at_s: int | None = None,
    resume_at_s: int | None = None,
    listener: SnapshotListener | None = None,
) -> ReplayResult:
    """Replay fixes in simulated time, one tick per simulated second.

    Args:
        samples: Recorded fixes in delivery order.
        subject: Pet being walked.
        params: Tracker tuning.
        options: Location source options (timeout, max fix age).
        pause_at_s: Seconds after the first fix at which to pause.
        resume_at_s: Seconds after the first fix at which to resume.
        listener: Optional snapshot listener.

    Raises:
        ValueError: If there are no samples or the pause window is inverted.
    """

    if not samples:
        raise ValueError("nothing to replay: no samples")
    if pause_at_s is not None and resume_at_s is not None and resume_at_s <= pause_at_s:
        raise ValueError(f"resume_at_s ({resume_at_s}) must be after pause_at_s ({pause_at_s})")

    t0 = samples[0].timestamp_ms
    source = ReplayLocationSource(samples)
    ticker = ManualTicker()
    controller = TrackSessionController(source, ticker, params=params, options=options, clock=lambda: t0)
    errors: list[str] = []
    controller.on_error(lambda err: errors.append(err.reason))
    if listener is not None:
        controller.subscribe(listener)

    controller.start(subject)
    source.emit_until(t0)
    seconds = int(math.ceil((max(s.timestamp_ms for s in samples) - t0) / 1000.0))
    for second in range(1, seconds + 1):
        ticker.advance()
        if pause_at_s == second and controller.state is TrackState.RUNNING:
            controller.pause()
        if resume_at_s == second and controller.state is TrackState.PAUSED:
            controller.resume()
        source.emit_until(t0 + second * 1000)
    controller.stop()

    snap = controller.snapshot()
    logger.info("replayed %s fixes over %ss", len(samples), seconds)
    return ReplayResult(snapshot=snap, location_errors=tuple(errors))


def replay_realtime(
    samples: Sequence[TrackSample],
    subject: PetRef | None = None,
    params: TrackerParams = TrackerParams(),
    options: WatchOptions = WatchOptions(),
    speed: float = 1.0,
    listener: SnapshotListener | None = None,
) -> ReplayResult:
    """Replay fixes in wall-clock time, scaled by ``speed``. Blocks until done.

    Press Ctrl+C to stop early; the walk is stopped and returned as recorded so far.
    """

    if not samples:
        raise ValueError("nothing to replay: no samples")

    source = ReplayLocationSource(samples)
    controller = TrackSessionController(source, ThreadTicker(speed=speed), params=params, options=options)
    errors: list[str] = []

    def _on_error(err: LocationFixError) -> None:
        errors.append(err.reason)

    controller.on_error(_on_error)
    if listener is not None:
        controller.subscribe(listener)

    controller.start(subject)
    playback = source.start_playback(speed=speed, poll_s=min(0.05, 0.5 / speed))
    try:
        while not playback.finished:
            playback.join(timeout=0.2)
    except KeyboardInterrupt:
        logger.info("replay interrupted")
        playback.stop()
    finally:
        controller.stop()

    return ReplayResult(snapshot=controller.snapshot(), location_errors=tuple(errors))
