"""Command-line interface for pet_walk.

Run:
    python -m pet_walk replay --csv walk.csv --pets pets.json --pet-id rex
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from pet_walk.csv_io import load_samples, walk_summary, write_route_csv, write_walk_summary_json
from pet_walk.errors import TrackerError
from pet_walk.inspect import inspect_samples
from pet_walk.models import DEFAULT_TZ, PetRef, TrackerParams, WalkSnapshot, WatchOptions
from pet_walk.pets import PetDirectory
from pet_walk.presentation import build_route_map, format_elapsed, pet_avatar, stats_panel
from pet_walk.replay import replay_realtime, replay_walk
from pet_walk.timeutils import local_time

logger = logging.getLogger(__name__)


def _cmd_inspect(args: argparse.Namespace) -> int:
    samples, summary = load_samples(args.csv)
    res = inspect_samples(samples)

    print("### Columns")
    print(", ".join(summary.fieldnames))
    print()

    print("### Rows")
    print(f"total_rows={summary.rows_total}, parsed={summary.rows_parsed}, skipped={summary.rows_skipped}")
    print()

    if res.min_time_ms is not None and res.max_time_ms is not None:
        print("### Time range (local)")
        start = local_time(res.min_time_ms, args.tz)
        end = local_time(res.max_time_ms, args.tz)
        print(f"start={start.isoformat(sep=' ')}, end={end.isoformat(sep=' ')}")
        print()

    if res.delta is not None:
        print("### Sampling interval (seconds)")
        print(
            f"count={res.delta.count}, min={res.delta.min_s:.3f}, median={res.delta.median_s:.3f}, "
            f"p95={res.delta.p95_s:.3f}, max={res.delta.max_s:.3f}"
        )
        print()

    print("### Bounds")
    print(f"lat=[{res.min_lat}, {res.max_lat}], lon=[{res.min_lon}, {res.max_lon}]")
    print()

    print("### Ordering")
    print(f"duplicate_timestamps={res.duplicate_timestamps}, out_of_order={res.out_of_order}")
    print(f"raw_distance_m={res.raw_distance_m:.1f} (unfiltered)")

    if args.json:
        payload = asdict(res) | {
            "rows_total": summary.rows_total,
            "rows_parsed": summary.rows_parsed,
            "rows_skipped": summary.rows_skipped,
            "fieldnames": list(summary.fieldnames),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def _resolve_pet(args: argparse.Namespace) -> PetRef | None:
    if args.pet_id is not None:
        if args.pets is None:
            raise ValueError("--pet-id needs --pets")
        return PetDirectory.from_json(args.pets).get(args.pet_id)
    if args.weight_kg is not None:
        return PetRef(id="cli", name=args.pet_name, weight_kg=args.weight_kg)
    return None


def _print_walk(snap: WalkSnapshot) -> None:
    panel = stats_panel(snap)
    if snap.subject is not None:
        print(f"{pet_avatar(snap.subject.species)} {snap.subject.name}")
    print(panel.headline)
    print(f"duration={panel.duration}, distance_km={panel.distance_km}, avg_speed_kmh={panel.average_speed_kmh}")
    line = f"calories={panel.calories}, route_points={len(snap.route)}"
    if panel.max_speed_kmh is not None:
        line += f", max_speed_kmh={panel.max_speed_kmh}"
    print(line)


def _cmd_replay(args: argparse.Namespace) -> int:
    samples, _ = load_samples(args.csv)
    pet = _resolve_pet(args)
    params = TrackerParams(movement_threshold_m=args.threshold_m, calorie_factor=args.calorie_factor)
    options = WatchOptions(timeout_ms=args.timeout_ms, max_fix_age_ms=args.max_fix_age_ms)

    if args.realtime:

        def _progress(snap: WalkSnapshot) -> None:
            st = snap.stats
            print(
                f"\r[{snap.state.value:>7}] {format_elapsed(st.elapsed_seconds):>8} "
                f"{st.total_distance_km:6.2f}km {st.average_speed_kmh:5.1f}km/h",
                end="",
                file=sys.stderr,
                flush=True,
            )

        result = replay_realtime(samples, pet, params, options, speed=args.speed, listener=_progress)
        print(file=sys.stderr)
    else:
        result = replay_walk(
            samples,
            pet,
            params,
            options,
            pause_at_s=args.pause_at,
            resume_at_s=args.resume_at,
        )

    snap = result.snapshot
    _print_walk(snap)
    if result.location_errors:
        print(f"location errors: {len(result.location_errors)} (tracking continued)")

    if args.route_out:
        write_route_csv(snap, args.route_out)
        print(f"Exported route: {args.route_out}")
    if args.summary_out:
        write_walk_summary_json(snap, args.summary_out, args.tz)
        print(f"Exported summary: {args.summary_out}")
    if args.map_out:
        build_route_map(snap).save(args.map_out)
        print(f"Exported map: {args.map_out}")
    if args.json:
        print(json.dumps(walk_summary(snap, args.tz), ensure_ascii=False, indent=2))
    return 0


def _cmd_pets(args: argparse.Namespace) -> int:
    directory = PetDirectory.from_json(args.pets)
    pets = directory.for_owner(args.owner) if args.owner else directory.all()
    if not pets:
        print("No pets registered. Register your pets first before you can track walks.")
        return 0
    for pet in pets:
        weight = f"{pet.weight_kg:g}kg" if pet.weight_kg is not None else "weight unknown"
        age = f"{pet.age_years:g} years" if pet.age_years is not None else "Age TBD"
        print(f"{pet_avatar(pet.species)} {pet.id}: {pet.name} ({pet.breed or pet.species}, {age}, {weight})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="pet_walk")
    p.add_argument("--log-level", type=str, default="WARNING", help="Logging level (DEBUG/INFO/WARNING)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_ins = sub.add_parser("inspect", help="Summarize a recorded fix CSV (time range, sampling, bounds)")
    p_ins.add_argument("--csv", type=str, default="walk.csv", help="Input CSV path")
    p_ins.add_argument("--tz", type=str, default=DEFAULT_TZ, help="Timezone (IANA)")
    p_ins.add_argument("--json", action="store_true", help="Also print JSON")
    p_ins.set_defaults(func=_cmd_inspect)

    p_rep = sub.add_parser("replay", help="Track a recorded walk and report its statistics")
    p_rep.add_argument("--csv", type=str, default="walk.csv", help="Input CSV path")
    p_rep.add_argument("--pets", type=str, default=None, help="Pets JSON export")
    p_rep.add_argument("--pet-id", type=str, default=None, help="Pet to walk (from --pets)")
    p_rep.add_argument("--weight-kg", type=float, default=None, help="Pet weight when not using --pets")
    p_rep.add_argument("--pet-name", type=str, default="Pet", help="Pet name when using --weight-kg")
    p_rep.add_argument("--threshold-m", type=float, default=2.0, help="Minimum movement to extend the route")
    p_rep.add_argument("--calorie-factor", type=float, default=0.5, help="kcal per km per kg")
    p_rep.add_argument("--timeout-ms", type=int, default=10_000, help="Report a location error after this gap")
    p_rep.add_argument("--max-fix-age-ms", type=int, default=1_000, help="Coalesce fixes older than this")
    p_rep.add_argument("--pause-at", type=int, default=None, help="Pause N seconds into the walk")
    p_rep.add_argument("--resume-at", type=int, default=None, help="Resume N seconds into the walk")
    p_rep.add_argument("--realtime", action="store_true", help="Replay in wall-clock time")
    p_rep.add_argument("--speed", type=float, default=1.0, help="Realtime replay speed multiplier")
    p_rep.add_argument("--route-out", type=str, default=None, help="Write accepted route points CSV")
    p_rep.add_argument("--summary-out", type=str, default=None, help="Write walk summary JSON")
    p_rep.add_argument("--map-out", type=str, default=None, help="Write route map HTML")
    p_rep.add_argument("--tz", type=str, default=DEFAULT_TZ, help="Timezone (IANA)")
    p_rep.add_argument("--json", action="store_true", help="Also print the summary as JSON")
    p_rep.set_defaults(func=_cmd_replay)

    p_pets = sub.add_parser("pets", help="List pets available for walks")
    p_pets.add_argument("--pets", type=str, required=True, help="Pets JSON export")
    p_pets.add_argument("--owner", type=str, default=None, help="Only this owner's pets")
    p_pets.set_defaults(func=_cmd_pets)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        return int(args.func(args))
    except (OSError, KeyError, ValueError, TrackerError) as exc:
        logger.debug("command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
