import pytest

from conftest import BASE, north_of, sample

from pet_walk.models import PetRef, TrackState
from pet_walk.replay import replay_realtime, replay_walk


def _walk(seconds, step_m=3.0):
    return [sample(north_of(BASE, i * step_m), i) for i in range(seconds + 1)]


def test_replay_one_minute_walk():
    result = replay_walk(_walk(60))
    snap = result.snapshot
    assert snap.state is TrackState.STOPPED
    assert snap.stats.elapsed_seconds == 60
    assert snap.stats.total_distance_m == pytest.approx(180.0, abs=1e-6)
    assert snap.stats.average_speed_kmh == pytest.approx(10.8)
    assert snap.stats.max_speed_kmh == pytest.approx(10.8)
    assert len(snap.route) == 61
    assert result.location_errors == ()


def test_replay_with_pause_window():
    result = replay_walk(_walk(60), pause_at_s=20, resume_at_s=40)
    snap = result.snapshot
    assert snap.stats.elapsed_seconds == 40
    # points 0..19 and 40..60
    assert len(snap.route) == 41
    # the resumed point is measured from the last point before the pause
    assert snap.stats.total_distance_m == pytest.approx(180.0, abs=1e-6)


def test_replay_reports_dropouts():
    samples = [sample(north_of(BASE, i * 3.0), i) for i in list(range(11)) + list(range(25, 31))]
    result = replay_walk(samples)
    assert len(result.location_errors) == 1
    assert result.snapshot.stats.elapsed_seconds == 30
    assert len(result.snapshot.route) == 17


def test_replay_calories_for_pet():
    samples = [sample(BASE, 0), sample(north_of(BASE, 2000.0), 3600)]
    result = replay_walk(samples, PetRef(id="rex", name="Rex", weight_kg=20.0))
    assert result.snapshot.stats.estimated_calories == 20
    assert result.snapshot.stats.elapsed_seconds == 3600


def test_replay_listener_sees_progress():
    states = []
    replay_walk(_walk(3), listener=lambda s: states.append(s.state))
    assert states[0] is TrackState.RUNNING
    assert states[-1] is TrackState.STOPPED


def test_replay_validates_input():
    with pytest.raises(ValueError):
        replay_walk([])
    with pytest.raises(ValueError):
        replay_walk(_walk(5), pause_at_s=4, resume_at_s=2)


def test_realtime_replay_fast_forward():
    result = replay_realtime(_walk(5), speed=200.0)
    snap = result.snapshot
    assert snap.state is TrackState.STOPPED
    assert len(snap.route) == 6
    assert snap.stats.total_distance_m == pytest.approx(15.0, abs=1e-6)


@pytest.mark.parametrize("speed", [500.0, 5000.0])
def test_realtime_replay_matches_simulated_replay(speed):
    samples = _walk(120)
    expected = replay_walk(samples).snapshot
    got = replay_realtime(samples, speed=speed).snapshot
    assert got.route == expected.route
    assert got.stats.total_distance_m == pytest.approx(expected.stats.total_distance_m)
    assert got.stats.max_speed_kmh == pytest.approx(expected.stats.max_speed_kmh)
