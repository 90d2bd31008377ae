"""Epoch/timezone conversion and fix sampling intervals."""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def local_time(epoch_ms: int, tz_name: str) -> datetime:
    """Epoch milliseconds as an aware datetime in ``tz_name`` (IANA name).

    Raises:
        ValueError: If the timezone is unknown on this system.
    """

    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise ValueError(f"invalid timezone: {tz_name!r}, e.g. Asia/Kolkata") from exc
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=tz)


@dataclass(frozen=True, slots=True)
class IntervalStats:
    """Gaps between consecutive fixes, in seconds."""

    count: int
    min_s: float
    median_s: float
    p95_s: float
    max_s: float


def interval_stats(timestamps_ms: Iterable[int]) -> IntervalStats | None:
    """Sampling gaps of fix timestamps (sorted ascending); None with fewer than two fixes."""

    ts = list(timestamps_ms)
    gaps = sorted((b - a) / 1000.0 for a, b in zip(ts, ts[1:]) if b >= a)
    if not gaps:
        return None
    return IntervalStats(
        count=len(gaps),
        min_s=gaps[0],
        median_s=statistics.median(gaps),
        p95_s=gaps[int(0.95 * (len(gaps) - 1))],
        max_s=gaps[-1],
    )
