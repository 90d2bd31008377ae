"""Distance, speed and calorie math (no external dependencies)."""

from __future__ import annotations

import math

from pet_walk.models import EARTH_RADIUS_M, GeoPoint


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute Haversine distance in meters between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees.
        lon1: Longitude 1 in degrees.
        lat2: Latitude 2 in degrees.
        lon2: Longitude 2 in degrees.

    Returns:
        Distance in meters.
    """

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def great_circle_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points, in meters.

    Inputs are not validated; callers pass device output as-is.
    """

    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def speed_kmh(distance_m: float, duration_s: float) -> float:
    """Speed in km/h for a distance covered over a duration.

    Returns 0.0 when ``duration_s <= 0`` so callers never see inf or NaN.
    """

    if duration_s <= 0:
        return 0.0
    return (distance_m / 1000.0) / (duration_s / 3600.0)


def estimate_calories(
    distance_km: float,
    weight_kg: float | None,
    duration_hours: float,
    factor: float = 0.5,
) -> int:
    """Rough calorie estimate for a walk: ``distance_km * weight_kg * factor``.

    This is a simplified heuristic, not a physiological model. ``duration_hours``
    is accepted for interface stability and does not affect the result.

    Args:
        distance_km: Distance walked in kilometers.
        weight_kg: Pet weight in kilograms; None when unknown.
        duration_hours: Walk duration in hours (unused).
        factor: kcal per km per kg.

    Returns:
        Calories rounded half-up, or 0 when the weight is unknown.
    """

    _ = duration_hours
    if weight_kg is None:
        return 0
    return int(math.floor(distance_km * weight_kg * factor + 0.5))
