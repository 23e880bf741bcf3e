from __future__ import annotations

import argparse
import logging
from collections import Counter
from pathlib import Path
from typing import Sequence

from hexmapper.content.io import load_map_json, save_map_json
from hexmapper.mapping.graph import coordinate_collisions
from hexmapper.mapping.hash import graph_hash, topology_hash
from hexmapper.mapping.tracker import MapTracker, Resolution
from hexmapper.parsing.terrain import terrain_label

DEFAULT_COMMAND_PREFIX = ">>> "
ROOM_PRINT_LIMIT = 50


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hexmapper-replay",
        description=(
            "Replay a captured MUD session log through the hex map tracker. Lines starting "
            "with the command prefix are treated as commands sent by the player."
        ),
    )
    parser.add_argument("log_path", help="Path to the captured session log")
    parser.add_argument(
        "--command-prefix",
        default=DEFAULT_COMMAND_PREFIX,
        help="Prefix marking outbound command lines in the log",
    )
    parser.add_argument("--load-map", help="Optional map snapshot JSON to start from")
    parser.add_argument("--dump-map", help="Optional path to write the resulting map snapshot")
    parser.add_argument("--print-rooms", action="store_true", help="List mapped rooms after replay")
    parser.add_argument("--print-events", action="store_true", help="Print one line per resolved room event")
    parser.add_argument("--log-level", default="WARNING", help="Logging level for tracker diagnostics")
    return parser


def _format_resolution(resolution: Resolution) -> str:
    direction = resolution.direction or "-"
    return (
        "event.room "
        f"id={resolution.room_id} "
        f"source={resolution.source} "
        f"direction={direction} "
        f"linked={str(resolution.linked).lower()} "
        f"overrode={str(resolution.overrode_chain).lower()}"
    )


def _print_rooms(tracker: MapTracker) -> None:
    rooms = sorted(tracker.graph.rooms.values(), key=lambda room: (room.coords.r, room.coords.q))
    print(f"rooms.limit={ROOM_PRINT_LIMIT}")
    if not rooms:
        print("room none")
    for room in rooms[:ROOM_PRINT_LIMIT]:
        exits = ",".join(direction for direction, target in room.exits.items() if target) or "-"
        marker = "*" if room.id == tracker.current_room_id else " "
        print(
            f"room{marker} {room.id} "
            f"terrain={terrain_label(room.terrain)} "
            f"visits={room.visit_count} "
            f"exits={exits} "
            f"fingerprint={room.fingerprint or '-'}"
        )


def replay_lines(tracker: MapTracker, lines: Sequence[str], command_prefix: str) -> Counter[str]:
    counts: Counter[str] = Counter()
    for raw in lines:
        line = raw.rstrip("\n")
        if command_prefix and line.startswith(command_prefix):
            counts["commands"] += 1
            if tracker.track_command(line[len(command_prefix) :]):
                counts["movements"] += 1
            continue
        counts["lines"] += 1
        tracker.feed_line(line)
    return counts


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    log_path = Path(args.log_path)
    if not log_path.exists():
        print(f"error: log not found path={log_path}")
        return 2

    resolutions: list[Resolution] = []
    tracker = MapTracker(on_resolution=resolutions.append)
    if args.load_map:
        tracker.load_graph(load_map_json(args.load_map))

    text = log_path.read_text(encoding="utf-8", errors="replace")
    counts = replay_lines(tracker, text.splitlines(), args.command_prefix)

    print(
        "header "
        f"lines={counts['lines']} "
        f"commands={counts['commands']} "
        f"movements={counts['movements']} "
        f"room_events={len(resolutions)}"
    )
    if args.print_events:
        for resolution in resolutions:
            print(_format_resolution(resolution))

    sources = Counter(resolution.source for resolution in resolutions)
    summary = " ".join(f"{source}={sources[source]}" for source in sorted(sources)) or "none"
    print(f"sources {summary}")
    print(f"rooms={tracker.room_count} current={tracker.current_room_id or '-'}")
    print(f"overrides={sum(1 for resolution in resolutions if resolution.overrode_chain)}")
    collisions = coordinate_collisions(tracker.graph)
    print(f"collisions={len(collisions)}")
    print(f"graph_hash={graph_hash(tracker.graph)}")
    print(f"topology_hash={topology_hash(tracker.graph)}")

    if args.print_rooms:
        _print_rooms(tracker)
    if args.dump_map:
        save_map_json(args.dump_map, tracker.graph)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
