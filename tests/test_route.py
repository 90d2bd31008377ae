import pytest

from conftest import BASE, north_of, sample

from pet_walk.route import RouteAccumulator


def test_first_sample_anchors_route():
    route = RouteAccumulator()
    res = route.accept(sample(BASE, 0))
    assert res.accepted
    assert res.incremental_distance_m == 0.0
    assert route.points == (BASE,)


def test_identical_points_keep_single_point():
    route = RouteAccumulator()
    route.accept(sample(BASE, 0))
    res = route.accept(sample(BASE, 1))
    assert not res.accepted
    assert res.incremental_distance_m == 0.0
    assert len(route) == 1


def test_one_meter_rejected_five_meters_accepted():
    route = RouteAccumulator(threshold_m=2.0)
    route.accept(sample(BASE, 0))

    assert not route.accept(sample(north_of(BASE, 1.0), 1)).accepted
    assert len(route) == 1

    five = north_of(BASE, 5.0)
    res = route.accept(sample(five, 2))
    assert res.accepted
    assert res.incremental_distance_m == pytest.approx(5.0, abs=1e-6)
    assert route.points == (BASE, five)


def test_threshold_measured_from_last_accepted_point():
    route = RouteAccumulator(threshold_m=2.0)
    route.accept(sample(BASE, 0))
    # creeping 1.5m at a time: rejected until 3m away from the anchor
    assert not route.accept(sample(north_of(BASE, 1.5), 1)).accepted
    res = route.accept(sample(north_of(BASE, 3.0), 2))
    assert res.accepted
    assert res.incremental_distance_m == pytest.approx(3.0, abs=1e-6)


def test_rejection_does_not_move_last_sample():
    route = RouteAccumulator()
    first = sample(BASE, 0)
    route.accept(first)
    route.accept(sample(north_of(BASE, 0.5), 5))
    assert route.last_sample == first


def test_clear_resets_anchor():
    route = RouteAccumulator()
    route.accept(sample(BASE, 0))
    route.accept(sample(north_of(BASE, 10), 1))
    route.clear()
    assert len(route) == 0
    assert route.last_sample is None
    assert route.accept(sample(north_of(BASE, 10), 2)).incremental_distance_m == 0.0


def test_points_view_is_a_copy():
    route = RouteAccumulator()
    route.accept(sample(BASE, 0))
    view = route.points
    route.accept(sample(north_of(BASE, 10), 1))
    assert len(view) == 1
