from __future__ import annotations

from pathlib import Path

import streamlit as st
import streamlit.components.v1 as components

from pet_walk.csv_io import load_samples, walk_summary
from pet_walk.models import DEFAULT_TZ, PetRef, TrackerParams, TrackSample
from pet_walk.pets import PetDirectory
from pet_walk.presentation import build_route_map, pet_avatar, stats_panel
from pet_walk.replay import ReplayResult, replay_walk


@st.cache_data(show_spinner=False)
def _load_samples(csv_path: str, mtime: float) -> list[TrackSample]:
    _ = mtime  # part of cache key so updated files reload automatically
    samples, _summary = load_samples(csv_path)
    return samples


@st.cache_data(show_spinner=False)
def _load_pets(pets_path: str, mtime: float) -> list[PetRef]:
    _ = mtime
    return PetDirectory.from_json(pets_path).all()


def _pet_card(pet: PetRef) -> None:
    st.markdown(f"### {pet_avatar(pet.species)} {pet.name}")
    st.caption(pet.breed or "Unknown breed")
    age = f"{pet.age_years:g} years" if pet.age_years is not None else "Age TBD"
    weight = f"{pet.weight_kg:g} kg" if pet.weight_kg is not None else "weight unknown"
    st.write(f"{age} · {pet.species} · {weight}")


def main() -> None:
    st.set_page_config(page_title="Pet Walk Tracker", layout="wide")
    st.title("Pet Walk Tracker")
    st.caption("Track your pet's walks with GPS precision and detailed statistics")

    with st.sidebar:
        st.subheader("Data")
        pets_json = st.text_input("Pets JSON path", value="sample_data/pets.json")
        owner_id = st.text_input("Owner id (empty = all pets)", value="")
        walk_csv = st.text_input("Recorded walk CSV", value="sample_data/walk.csv")
        tz_name = st.text_input("Timezone (IANA)", value=DEFAULT_TZ)

        with st.expander("Advanced", expanded=False):
            threshold_m = st.number_input("Movement threshold (m)", value=2.0, min_value=0.0, step=0.5)
            calorie_factor = st.number_input("Calorie factor (kcal/km/kg)", value=0.5, min_value=0.0, step=0.1)

    st.subheader("Select Your Pet")
    pets_path = Path(pets_json)
    if not pets_path.exists():
        st.error(f"File not found: {pets_json!r}")
        return
    try:
        pets = _load_pets(pets_json, pets_path.stat().st_mtime)
    except ValueError as exc:
        st.exception(exc)
        return
    if owner_id:
        pets = [p for p in pets if p.owner_id == owner_id]
    if not pets:
        st.info("No pets registered. You need to register your pets first before you can track walks.")
        return

    labels = {f"{pet_avatar(p.species)} {p.name} ({p.id})": p for p in pets}
    pet = labels[st.radio("Walking partner", list(labels), horizontal=True)]

    if st.button(f"Start Walk with {pet.name}", type="primary", use_container_width=True):
        csv_path = Path(walk_csv)
        if not csv_path.exists():
            st.error(f"File not found: {walk_csv!r}")
            return
        with st.spinner("Tracking walk ..."):
            samples = _load_samples(walk_csv, csv_path.stat().st_mtime)
            params = TrackerParams(movement_threshold_m=float(threshold_m), calorie_factor=float(calorie_factor))
            try:
                st.session_state["walk"] = replay_walk(samples, pet, params)
            except ValueError as exc:
                st.error(str(exc))
                return

    result: ReplayResult | None = st.session_state.get("walk")
    if result is None:
        st.info("Ready to start tracking your walk")
        return

    snap = result.snapshot
    panel = stats_panel(snap)
    left, right = st.columns([2, 1])
    with left:
        st.subheader("Live Walk Tracking")
        st.caption(panel.headline)
        components.html(build_route_map(snap).get_root().render(), height=500)
    with right:
        st.subheader("Walk Statistics")
        c1, c2 = st.columns(2)
        c1.metric("Duration", panel.duration)
        c2.metric("Distance (km)", panel.distance_km)
        c3, c4 = st.columns(2)
        c3.metric("Avg Speed (km/h)", panel.average_speed_kmh)
        c4.metric("Calories", panel.calories)
        if panel.max_speed_kmh is not None:
            st.write(f"Max Speed: **{panel.max_speed_kmh} km/h**")
        if result.location_errors:
            st.warning(f"{len(result.location_errors)} location dropouts (tracking continued)")

        st.subheader("Walking Partner")
        if snap.subject is not None:
            _pet_card(snap.subject)

    with st.expander("Summary JSON", expanded=False):
        st.json(walk_summary(snap, tz_name))


if __name__ == "__main__":
    main()
