"""Location sample sources.

A source pushes fixes to subscribers through callbacks; the tracker never polls.
``ReplayLocationSource`` plays back recorded fixes, either step by step in
simulated time (``emit_until``) or from a background thread in wall-clock time
(``start_playback``).
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol, Sequence

from pet_walk.models import TrackSample, WatchOptions

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[float, float, int], None]
ErrorCallback = Callable[[str], None]


class LocationSampleSource(Protocol):
    @property
    def available(self) -> bool: ...

    def subscribe(
        self,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
        options: WatchOptions = ...,
    ) -> object: ...

    def unsubscribe(self, handle: object) -> None: ...


_ids = itertools.count(1)


@dataclass(eq=False, slots=True)
class ReplaySubscription:
    """Handle returned by ``ReplayLocationSource.subscribe``."""

    on_update: UpdateCallback
    on_error: ErrorCallback
    options: WatchOptions
    id: int = field(default_factory=lambda: next(_ids))
    next_index: int = 0
    last_fix_clock_ms: int | None = None
    active: bool = True


class ReplayLocationSource:
    """Replays recorded fixes to subscribers.

    Each subscription keeps the ``WatchOptions`` it was opened with.
    ``timeout_ms`` and ``max_fix_age_ms`` shape delivery; ``high_accuracy`` is
    recorded only, since recorded fixes carry whatever accuracy they were
    captured with.

    Args:
        samples: Fixes in delivery order. Timestamps are used as the replay clock.
        available: Set False to emulate an environment without location support.
    """

    def __init__(self, samples: Sequence[TrackSample], available: bool = True) -> None:
        self._samples = list(samples)
        self._available = available
        self._subs: list[ReplaySubscription] = []
        self._lock = threading.RLock()

    @property
    def available(self) -> bool:
        return self._available

    @property
    def samples(self) -> Sequence[TrackSample]:
        return tuple(self._samples)

    @property
    def subscriptions(self) -> int:
        with self._lock:
            return len(self._subs)

    def subscribe(
        self,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
        options: WatchOptions = WatchOptions(),
    ) -> ReplaySubscription:
        sub = ReplaySubscription(on_update=on_update, on_error=on_error, options=options)
        with self._lock:
            self._subs.append(sub)
        logger.debug("subscription %s opened (%s fixes queued)", sub.id, len(self._samples))
        return sub

    def unsubscribe(self, handle: object) -> None:
        with self._lock:
            if not isinstance(handle, ReplaySubscription):
                raise TypeError(f"not a replay subscription: {handle!r}")
            handle.active = False
            if handle in self._subs:
                self._subs.remove(handle)
        logger.debug("subscription %s closed", handle.id)

    def exhausted(self, handle: ReplaySubscription) -> bool:
        """True once every recorded fix was delivered (or skipped) for ``handle``."""

        return handle.next_index >= len(self._samples)

    def emit_until(self, now_ms: int, coalesce: bool = True) -> int:
        """Deliver every fix with ``timestamp_ms <= now_ms`` that is still pending.

        With ``coalesce`` a backlog is thinned: fixes older than
        ``options.max_fix_age_ms`` at ``now_ms`` are dropped, except the freshest
        one. Playback passes ``coalesce=False``: it releases fixes on their
        recorded schedule, so a late poll is the player's delay, not a stale fix.
        If nothing was delivered for ``options.timeout_ms``, subscribers get one
        timeout error per window.

        Returns:
            Number of fixes delivered across all subscriptions.
        """

        deliveries: list[tuple[ReplaySubscription, list[TrackSample], str | None]] = []
        with self._lock:
            for sub in self._subs:
                start = sub.next_index
                end = start
                while end < len(self._samples) and self._samples[end].timestamp_ms <= now_ms:
                    end += 1
                pending = self._samples[start:end]
                sub.next_index = end

                if not pending:
                    if sub.last_fix_clock_ms is None:
                        sub.last_fix_clock_ms = now_ms
                    elif now_ms - sub.last_fix_clock_ms >= sub.options.timeout_ms:
                        sub.last_fix_clock_ms = now_ms
                        deliveries.append((sub, [], f"timeout after {sub.options.timeout_ms}ms"))
                    continue

                if coalesce:
                    max_age = sub.options.max_fix_age_ms
                    fresh = [s for s in pending[:-1] if now_ms - s.timestamp_ms <= max_age]
                    fresh.append(pending[-1])
                else:
                    fresh = list(pending)
                if len(fresh) < len(pending):
                    logger.debug("coalesced %s stale fixes", len(pending) - len(fresh))
                sub.last_fix_clock_ms = now_ms
                deliveries.append((sub, fresh, None))

        delivered = 0
        for sub, batch, error in deliveries:
            if error is not None:
                if sub.active:
                    sub.on_error(error)
                continue
            for s in batch:
                if not sub.active:
                    break
                sub.on_update(s.point.latitude, s.point.longitude, s.timestamp_ms)
                delivered += 1
        return delivered

    def fail(self, reason: str) -> None:
        """Report a fix failure to every active subscriber."""

        with self._lock:
            subs = list(self._subs)
        for sub in subs:
            if sub.active:
                sub.on_error(reason)

    def start_playback(self, speed: float = 1.0, poll_s: float = 0.05) -> Playback:
        """Replay fixes in wall-clock time from a daemon thread.

        Args:
            speed: Time multiplier (2.0 replays twice as fast).
            poll_s: How often the playback thread wakes up.
        """

        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed!r}")
        playback = Playback(self, speed=speed, poll_s=poll_s)
        playback.start()
        return playback


class Playback:
    """Background thread feeding ``ReplayLocationSource.emit_until``."""

    def __init__(self, source: ReplayLocationSource, speed: float, poll_s: float) -> None:
        self._source = source
        self._speed = speed
        self._poll_s = poll_s
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name="pet-walk-playback", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        samples = self._source.samples
        if not samples:
            return
        t0_ms = samples[0].timestamp_ms
        last_ms = samples[-1].timestamp_ms
        wall0 = time.monotonic()
        while not self._stopped.is_set():
            now_ms = t0_ms + int((time.monotonic() - wall0) * 1000.0 * self._speed)
            try:
                self._source.emit_until(now_ms, coalesce=False)
            except Exception:
                logger.exception("playback delivery failed")
            if now_ms >= last_ms:
                break
            self._stopped.wait(self._poll_s)

    def stop(self) -> None:
        self._stopped.set()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    @property
    def finished(self) -> bool:
        return not self._thread.is_alive()
