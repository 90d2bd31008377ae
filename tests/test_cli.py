import csv
import json

import pytest

from conftest import BASE, T0, north_of

from pet_walk.cli import main


@pytest.fixture
def walk_csv(tmp_path):
    p = tmp_path / "walk.csv"
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["geoTime", "latitude", "longitude", "horizontalAccuracy"])
        for i in range(31):
            pt = north_of(BASE, i * 3.0)
            w.writerow([T0 + i * 1000, pt.latitude, pt.longitude, "4.0"])
    return p


@pytest.fixture
def pets_json(tmp_path):
    p = tmp_path / "pets.json"
    p.write_text(
        json.dumps(
            [
                {"id": "rex", "name": "Rex", "petType": "dog", "breed": "Labrador", "weightKg": 30, "ownerId": "u1"},
                {"id": "miso", "name": "Miso", "petType": "cat", "ownerId": "u2"},
            ]
        ),
        encoding="utf-8",
    )
    return p


def test_replay_prints_stats_and_exports(walk_csv, pets_json, tmp_path, capsys):
    route_out = tmp_path / "route.csv"
    summary_out = tmp_path / "summary.json"
    map_out = tmp_path / "map.html"
    code = main(
        [
            "replay",
            "--csv",
            str(walk_csv),
            "--pets",
            str(pets_json),
            "--pet-id",
            "rex",
            "--route-out",
            str(route_out),
            "--summary-out",
            str(summary_out),
            "--map-out",
            str(map_out),
            "--tz",
            "UTC",
        ]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "Walk finished - Distance: 0.09km" in out
    assert "duration=0:30, distance_km=0.09, avg_speed_kmh=10.8" in out
    assert "route_points=31" in out
    assert "Exported map:" in out

    summary = json.loads(summary_out.read_text(encoding="utf-8"))
    assert summary["pet"]["id"] == "rex"
    assert summary["elapsed_seconds"] == 30
    assert summary["estimated_calories"] == 1
    assert route_out.exists()
    assert "leaflet" in map_out.read_text(encoding="utf-8").lower()


def test_replay_with_weight_and_json(walk_csv, capsys):
    code = main(["replay", "--csv", str(walk_csv), "--weight-kg", "20", "--pet-name", "Bolt", "--json", "--tz", "UTC"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Bolt" in out
    payload = json.loads(out[out.index("{") :])
    assert payload["pet"]["weight_kg"] == 20.0
    assert payload["total_distance_m"] == pytest.approx(90.0, abs=1e-3)


def test_inspect(walk_csv, capsys):
    assert main(["inspect", "--csv", str(walk_csv), "--tz", "UTC"]) == 0
    out = capsys.readouterr().out
    assert "total_rows=31, parsed=31, skipped=0" in out
    assert "start=2023-11-14 22:13:20+00:00" in out


def test_pets_listing(pets_json, capsys):
    assert main(["pets", "--pets", str(pets_json), "--owner", "u1"]) == 0
    out = capsys.readouterr().out
    assert "rex: Rex (Labrador" in out
    assert "Miso" not in out

    assert main(["pets", "--pets", str(pets_json), "--owner", "nobody"]) == 0
    assert "No pets registered" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv",
    [
        ["replay", "--csv", "does-not-exist.csv"],
        ["inspect", "--csv", "does-not-exist.csv"],
    ],
)
def test_errors_exit_nonzero(argv, capsys):
    assert main(argv) == 1
    assert capsys.readouterr().err.startswith("error:")


def test_unknown_pet(walk_csv, pets_json, capsys):
    assert main(["replay", "--csv", str(walk_csv), "--pets", str(pets_json), "--pet-id", "ghost"]) == 1
    assert "unknown pet id" in capsys.readouterr().err
