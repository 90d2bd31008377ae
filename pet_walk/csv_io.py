"""CSV/JSON input and output: recorded fixes in, finished walks out."""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from pet_walk.models import GeoPoint, TrackSample, WalkSnapshot
from pet_walk.timeutils import local_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]


def _parse_int(value: str) -> int:
    return int(value.strip())


def _parse_float(value: str) -> float:
    return float(value.strip())


def _parse_row(row: dict[str, str]) -> TrackSample:
    accuracy = (row.get("horizontalAccuracy") or "").strip()
    accuracy_m = _parse_float(accuracy) if accuracy else None
    return TrackSample(
        point=GeoPoint(_parse_float(row["latitude"]), _parse_float(row["longitude"])),
        timestamp_ms=_parse_int(row["geoTime"]),
        horizontal_accuracy_m=accuracy_m if accuracy_m is not None and accuracy_m >= 0 else None,
    )


def load_samples(csv_path: str | Path) -> tuple[list[TrackSample], CsvSummary]:
    """Load recorded fixes in file order.

    The file uses the phone export layout:
      - geoTime: epoch milliseconds
      - latitude/longitude: decimal degrees
      - horizontalAccuracy (optional): meters, -1 when unknown

    Args:
        csv_path: Path to the CSV.

    Returns:
        (samples, summary). Rows that fail to parse are skipped and counted.

    Raises:
        KeyError: If a required column is missing from the header.
    """

    p = Path(csv_path)
    rows_total = 0
    parsed: list[TrackSample] = []

    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames: Sequence[str] = reader.fieldnames or ()
        missing = [c for c in ("geoTime", "latitude", "longitude") if c not in fieldnames]
        if missing:
            raise KeyError(f"CSV is missing required columns {missing}; found {list(fieldnames)}")
        for row in reader:
            rows_total += 1
            try:
                parsed.append(_parse_row(row))
            except (KeyError, ValueError, TypeError, AttributeError):
                # damaged or blank rows
                continue

    summary = CsvSummary(
        rows_total=rows_total,
        rows_parsed=len(parsed),
        rows_skipped=rows_total - len(parsed),
        fieldnames=fieldnames,
    )
    if summary.rows_skipped > 0:
        logger.warning("skipped %s unparseable rows in %s", summary.rows_skipped, p)
    return parsed, summary


def write_route_csv(snapshot: WalkSnapshot, out_path: str | Path) -> None:
    """Write the accepted route points of a walk, one row per point."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=["seq", "latitude", "longitude"])
        w.writeheader()
        for i, pt in enumerate(snapshot.route):
            w.writerow({"seq": i, "latitude": pt.latitude, "longitude": pt.longitude})


def walk_summary(snapshot: WalkSnapshot, tz_name: str) -> dict[str, object]:
    """Flatten a finished walk into a JSON-friendly dict."""

    st = snapshot.stats
    pet = snapshot.subject
    started = (
        local_time(snapshot.started_at_ms, tz_name).isoformat(sep=" ")
        if snapshot.started_at_ms is not None
        else None
    )
    return {
        "state": snapshot.state.value,
        "started_at": started,
        "pet": None
        if pet is None
        else {"id": pet.id, "name": pet.name, "species": pet.species, "weight_kg": pet.weight_kg},
        "elapsed_seconds": st.elapsed_seconds,
        "total_distance_m": round(st.total_distance_m, 3),
        "average_speed_kmh": round(st.average_speed_kmh, 3),
        "max_speed_kmh": round(st.max_speed_kmh, 3),
        "estimated_calories": st.estimated_calories,
        "route_points": len(snapshot.route),
    }


def write_walk_summary_json(snapshot: WalkSnapshot, out_path: str | Path, tz_name: str) -> None:
    """Persist a walk summary (atomic-ish replace)."""

    p = Path(out_path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    tmp.write_text(json.dumps(walk_summary(snapshot, tz_name), ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(p)
