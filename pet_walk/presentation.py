"""Shape walk snapshots for display: stats panel text and a folium route map."""

from __future__ import annotations

from dataclasses import dataclass

import folium

from pet_walk.models import DEFAULT_MAP_CENTER, GeoPoint, PetRef, TrackState, WalkSnapshot

_AVATARS = {
    "dog": "\N{DOG}",
    "cat": "\N{CAT FACE}",
    "bird": "\N{BIRD}",
    "rabbit": "\N{RABBIT FACE}",
}
_DEFAULT_AVATAR = "\N{PAW PRINTS}"


def pet_avatar(species: str | None) -> str:
    if not species:
        return _DEFAULT_AVATAR
    return _AVATARS.get(species.lower(), _DEFAULT_AVATAR)


def format_elapsed(seconds: int) -> str:
    """``M:SS`` below one hour, ``H:MM:SS`` from one hour on."""

    s = max(0, int(seconds))
    h = s // 3600
    m = (s % 3600) // 60
    sec = s % 60
    if h > 0:
        return f"{h}:{m:02d}:{sec:02d}"
    return f"{m}:{sec:02d}"


def map_center(snapshot: WalkSnapshot) -> GeoPoint:
    if snapshot.current_position is not None:
        return snapshot.current_position
    if snapshot.route:
        return snapshot.route[0]
    return DEFAULT_MAP_CENTER


@dataclass(frozen=True, slots=True)
class StatsPanel:
    """Display strings for the statistics panel."""

    headline: str
    duration: str
    distance_km: str
    average_speed_kmh: str
    calories: str
    max_speed_kmh: str | None
    status: str


def _pet_name(pet: PetRef | None) -> str:
    return pet.name if pet is not None else "Pet"


def stats_panel(snapshot: WalkSnapshot) -> StatsPanel:
    st = snapshot.stats
    km = f"{st.total_distance_km:.2f}"
    tracking = snapshot.state in (TrackState.RUNNING, TrackState.PAUSED)
    if tracking:
        headline = f"Tracking {_pet_name(snapshot.subject)}'s walk - Distance: {km}km"
    elif snapshot.state is TrackState.STOPPED:
        headline = f"Walk finished - Distance: {km}km"
    else:
        headline = "Ready to start tracking your walk"
    status = {
        TrackState.IDLE: "Ready",
        TrackState.RUNNING: "Active Tracking",
        TrackState.PAUSED: "Paused",
        TrackState.STOPPED: "Finished",
    }[snapshot.state]
    return StatsPanel(
        headline=headline,
        duration=format_elapsed(st.elapsed_seconds),
        distance_km=km,
        average_speed_kmh=f"{st.average_speed_kmh:.1f}",
        calories=str(st.estimated_calories),
        max_speed_kmh=f"{st.max_speed_kmh:.1f}" if st.max_speed_kmh > 0 else None,
        status=status,
    )


def build_route_map(snapshot: WalkSnapshot, zoom_start: int = 15) -> folium.Map:
    """Map with the walked route, its start point and the current position."""

    center = map_center(snapshot)
    m = folium.Map(location=[center.latitude, center.longitude], zoom_start=zoom_start)

    route = [(p.latitude, p.longitude) for p in snapshot.route]
    if len(route) > 1:
        folium.PolyLine(route, color="#10b981", weight=4, opacity=0.8, tooltip="Walk route").add_to(m)
    if route:
        folium.Marker(route[0], popup="Walk Start Point", icon=folium.Icon(color="green")).add_to(m)
    if snapshot.current_position is not None:
        cur = snapshot.current_position
        folium.Marker(
            [cur.latitude, cur.longitude],
            popup=f"Current Location<br>{_pet_name(snapshot.subject)} is here!",
            icon=folium.Icon(color="blue", icon="info-sign"),
        ).add_to(m)
    return m
