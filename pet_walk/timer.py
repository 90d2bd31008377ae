"""Periodic tick scheduling.

Two implementations of the same small interface:
  - ThreadTicker: wall-clock ticks from a daemon thread.
  - ManualTicker: ticks only when ``advance()`` is called (simulated time).
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TickHandle(Protocol):
    def cancel(self) -> None: ...


class Ticker(Protocol):
    def schedule(self, interval_s: float, callback: TickCallback) -> TickHandle: ...


class _ThreadTick:
    def __init__(self, interval_s: float, callback: TickCallback) -> None:
        self._interval_s = interval_s
        self._callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name="pet-walk-ticker", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        # Event.wait returns True once cancelled
        while not self._stopped.wait(self._interval_s):
            try:
                self._callback()
            except Exception:
                logger.exception("tick callback failed")

    def cancel(self) -> None:
        """Stop ticking and wait briefly for an in-progress callback to finish."""

        self._stopped.set()
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout=1.0)

    @property
    def running(self) -> bool:
        return self._thread.is_alive()


class ThreadTicker:
    """Fires callbacks from a background thread every ``interval_s`` seconds.

    Args:
        speed: Time multiplier for accelerated replays; 2.0 ticks twice as often.
    """

    def __init__(self, speed: float = 1.0) -> None:
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed!r}")
        self._speed = speed

    def schedule(self, interval_s: float, callback: TickCallback) -> TickHandle:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s!r}")
        tick = _ThreadTick(interval_s / self._speed, callback)
        tick.start()
        return tick


class _ManualTick:
    def __init__(self, owner: ManualTicker, callback: TickCallback) -> None:
        self._owner = owner
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        self._owner._discard(self)


class ManualTicker:
    """Ticker driven by the caller, for replays and tests.

    The interval is recorded but ignored: each ``advance()`` is one tick.
    """

    def __init__(self) -> None:
        self._ticks: list[_ManualTick] = []
        self.interval_s: float | None = None

    @property
    def active(self) -> int:
        """Number of scheduled, uncancelled callbacks."""

        return len(self._ticks)

    def schedule(self, interval_s: float, callback: TickCallback) -> TickHandle:
        self.interval_s = interval_s
        tick = _ManualTick(self, callback)
        self._ticks.append(tick)
        return tick

    def _discard(self, tick: _ManualTick) -> None:
        if tick in self._ticks:
            self._ticks.remove(tick)

    def advance(self, ticks: int = 1) -> None:
        """Fire every active callback ``ticks`` times."""

        for _ in range(ticks):
            for tick in list(self._ticks):
                if not tick.cancelled:
                    tick.callback()
