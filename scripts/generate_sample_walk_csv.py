from __future__ import annotations

import argparse
import csv
import math
import random
from datetime import datetime
from pathlib import Path
from typing import Final

from zoneinfo import ZoneInfo


TZ: Final[str] = "Asia/Kolkata"
METERS_PER_DEG_LAT: Final[float] = 111_320.0


def _epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def generate_walk(
    *,
    seconds: int,
    seed: int,
    start_local: datetime,
    lat: float,
    lon: float,
    speed_mps: float,
) -> list[dict[str, str]]:
    """Generate a fake 1 Hz walk: a wandering heading, GPS jitter, a few stops and dropouts."""

    rng = random.Random(seed)
    cur_ms = _epoch_ms(start_local.replace(tzinfo=ZoneInfo(TZ)))
    heading = rng.uniform(0, 2 * math.pi)
    stop_left = 0

    out: list[dict[str, str]] = []
    for _ in range(seconds):
        cur_ms += 1000

        # sniffing stops: stand still with jitter only
        if stop_left == 0 and rng.random() < 0.02:
            stop_left = rng.randint(10, 40)
        step = 0.0 if stop_left > 0 else speed_mps * rng.uniform(0.7, 1.3)
        stop_left = max(0, stop_left - 1)

        heading += rng.uniform(-0.3, 0.3)
        lat += step * math.cos(heading) / METERS_PER_DEG_LAT
        lon += step * math.sin(heading) / (METERS_PER_DEG_LAT * math.cos(math.radians(lat)))

        # occasional dropout
        if rng.random() < 0.01:
            continue

        hacc = rng.choice([3.0, 5.0, 8.0, 12.0])
        jitter = hacc / 4.0
        out.append(
            {
                "geoTime": str(cur_ms),
                "latitude": f"{lat + rng.gauss(0, jitter) / METERS_PER_DEG_LAT:.7f}",
                "longitude": f"{lon + rng.gauss(0, jitter) / METERS_PER_DEG_LAT:.7f}",
                "horizontalAccuracy": f"{hacc:.1f}",
            }
        )
    return out


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake recorded walk CSV for demo/testing (privacy-safe).")
    p.add_argument("--out", type=str, default="sample_data/walk.csv", help="Output CSV path")
    p.add_argument("--seconds", type=int, default=1800, help="Walk duration in seconds")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument("--start", type=str, default="2025-01-01 07:00:00", help="Start local time in Asia/Kolkata")
    p.add_argument("--lat", type=float, default=12.9716, help="Start latitude")
    p.add_argument("--lon", type=float, default=77.5946, help="Start longitude")
    p.add_argument("--speed-mps", type=float, default=1.3, help="Walking speed in m/s")
    args = p.parse_args()

    rows = generate_walk(
        seconds=args.seconds,
        seed=args.seed,
        start_local=datetime.fromisoformat(args.start),
        lat=args.lat,
        lon=args.lon,
        speed_mps=args.speed_mps,
    )
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with out_path.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=["geoTime", "latitude", "longitude", "horizontalAccuracy"])
        w.writeheader()
        w.writerows(rows)

    print(f"Generated: {out_path} (rows={len(rows)}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
