import threading

import pytest

from conftest import BASE, T0, north_of, sample

from pet_walk.models import WatchOptions
from pet_walk.sources import ReplayLocationSource
from pet_walk.timer import ManualTicker, ThreadTicker


def _walk(seconds, step_m=3.0):
    return [sample(north_of(BASE, i * step_m), i) for i in range(seconds + 1)]


class Recorder:
    def __init__(self):
        self.updates = []
        self.errors = []

    def on_update(self, lat, lng, ts):
        self.updates.append((lat, lng, ts))

    def on_error(self, reason):
        self.errors.append(reason)


def test_emits_in_order_up_to_now():
    src = ReplayLocationSource(_walk(5))
    rec = Recorder()
    src.subscribe(rec.on_update, rec.on_error)

    assert src.emit_until(T0) == 1
    assert src.emit_until(T0 + 2000) == 2
    assert [ts for _, _, ts in rec.updates] == [T0, T0 + 1000, T0 + 2000]
    assert src.emit_until(T0 + 2000) == 0


def test_timeout_reported_once_per_window():
    samples = [sample(BASE, 0), sample(north_of(BASE, 10), 10)]
    src = ReplayLocationSource(samples)
    rec = Recorder()
    src.subscribe(rec.on_update, rec.on_error, WatchOptions(timeout_ms=3000))

    for second in range(0, 11):
        src.emit_until(T0 + second * 1000)
    assert len(rec.errors) == 3
    assert "timeout" in rec.errors[0]
    assert len(rec.updates) == 2


def test_stale_backlog_is_coalesced():
    src = ReplayLocationSource(_walk(5))
    rec = Recorder()
    sub = src.subscribe(rec.on_update, rec.on_error, WatchOptions(max_fix_age_ms=1000))

    assert src.emit_until(T0 + 5000) == 2
    assert [ts for _, _, ts in rec.updates] == [T0 + 4000, T0 + 5000]
    assert src.exhausted(sub)


def test_unsubscribe_stops_delivery():
    src = ReplayLocationSource(_walk(5))
    rec = Recorder()
    sub = src.subscribe(rec.on_update, rec.on_error, WatchOptions(max_fix_age_ms=60_000))

    def stop_after_two(lat, lng, ts):
        rec.on_update(lat, lng, ts)
        if len(rec.updates) == 2:
            src.unsubscribe(sub)

    sub.on_update = stop_after_two
    src.emit_until(T0 + 5000)
    assert len(rec.updates) == 2
    assert src.subscriptions == 0
    src.fail("gone")
    assert rec.errors == []


def test_unsubscribe_rejects_foreign_handle():
    with pytest.raises(TypeError):
        ReplayLocationSource([]).unsubscribe(42)


def test_fail_reaches_subscribers():
    src = ReplayLocationSource([])
    rec = Recorder()
    src.subscribe(rec.on_update, rec.on_error)
    src.fail("no satellites")
    assert rec.errors == ["no satellites"]


def test_availability_flag():
    assert ReplayLocationSource([]).available
    assert not ReplayLocationSource([], available=False).available


def test_playback_delivers_everything():
    src = ReplayLocationSource(_walk(5))
    rec = Recorder()
    src.subscribe(rec.on_update, rec.on_error, WatchOptions(max_fix_age_ms=60_000))
    playback = src.start_playback(speed=1000.0, poll_s=0.001)
    playback.join(timeout=5.0)
    assert playback.finished
    assert len(rec.updates) == 6


def test_playback_rejects_bad_speed():
    with pytest.raises(ValueError):
        ReplayLocationSource([]).start_playback(speed=0)


def test_manual_ticker_cancel():
    ticker = ManualTicker()
    hits = []
    handle = ticker.schedule(1.0, lambda: hits.append(1))
    ticker.advance(3)
    handle.cancel()
    ticker.advance(3)
    assert hits == [1, 1, 1]
    assert ticker.active == 0


def test_thread_ticker_fires_until_cancelled():
    fired = threading.Event()
    count = []

    def cb():
        count.append(1)
        fired.set()

    handle = ThreadTicker(speed=100.0).schedule(1.0, cb)
    try:
        assert fired.wait(timeout=5.0)
    finally:
        handle.cancel()


def test_thread_ticker_validates_arguments():
    with pytest.raises(ValueError):
        ThreadTicker(speed=0)
    with pytest.raises(ValueError):
        ThreadTicker().schedule(0, lambda: None)


def test_subscription_keeps_watch_options():
    src = ReplayLocationSource(_walk(2))
    rec = Recorder()
    sub = src.subscribe(rec.on_update, rec.on_error, WatchOptions(high_accuracy=False, timeout_ms=5000))
    assert sub.options.high_accuracy is False
    assert sub.options.timeout_ms == 5000
    # accuracy preference does not filter recorded fixes
    src.emit_until(T0 + 2000)
    assert len(rec.updates) >= 1


def test_playback_never_drops_late_fixes():
    # default max_fix_age_ms with a poll far slower than the recorded 1 Hz rate
    src = ReplayLocationSource(_walk(20))
    rec = Recorder()
    src.subscribe(rec.on_update, rec.on_error)
    playback = src.start_playback(speed=200.0, poll_s=0.02)
    playback.join(timeout=5.0)
    assert playback.finished
    assert [ts for _, _, ts in rec.updates] == [T0 + i * 1000 for i in range(21)]


def test_thread_ticker_cancel_joins_thread():
    handle = ThreadTicker(speed=100.0).schedule(1.0, lambda: None)
    assert handle.running
    handle.cancel()
    assert not handle.running


def test_thread_ticker_cancel_from_own_callback():
    cancelled = threading.Event()
    holder = {}

    def cb():
        holder["handle"].cancel()
        cancelled.set()

    holder["handle"] = ThreadTicker(speed=100.0).schedule(1.0, cb)
    assert cancelled.wait(timeout=5.0)
    holder["handle"].cancel()
    assert not holder["handle"].running
