from pathlib import Path

from art_samples import ring_one_art, survey

from hexmapper.cli.replay_tool import _build_parser, main
from hexmapper.content.io import load_map_json, save_map_json
from hexmapper.mapping.graph import create_graph, upsert_room
from hexmapper.mapping.hexmath import HexCoord


def _build_log(path: Path) -> None:
    lines = [
        "Welcome back, Bob.",
        *survey(ring_one_art()),
        ">>> north",
        *survey(ring_one_art(center="w", n="^"), "You are in a dense forest. It is dim here."),
        ">>> look",
        ">>> se",
        "There is no exit in that direction.",
        ">>> south",
        *survey(ring_one_art(), "You are in a grassy plain. It is bright here."),
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_replay_tool_parser_defaults() -> None:
    args = _build_parser().parse_args(["session.log", "--print-rooms"])

    assert args.print_rooms is True
    assert args.command_prefix == ">>> "
    assert args.load_map is None


def test_replay_tool_main_outputs_summary_and_hashes(tmp_path: Path, capsys) -> None:
    log_path = tmp_path / "session.log"
    dumped_path = tmp_path / "map.json"
    _build_log(log_path)

    exit_code = main([str(log_path), "--print-events", "--print-rooms", "--dump-map", str(dumped_path)])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "commands=4 movements=3 room_events=3" in output
    assert "event.room id=hex:0,0 source=origin direction=- linked=false overrode=false" in output
    assert "event.room id=hex:0,-1 source=chain direction=n linked=true overrode=false" in output
    assert "event.room id=hex:0,0 source=fingerprint direction=s linked=true overrode=false" in output
    assert "sources chain=1 fingerprint=1 origin=1" in output
    assert "rooms=2 current=hex:0,0" in output
    assert "overrides=0" in output
    assert "collisions=0" in output
    assert "graph_hash=" in output
    assert "topology_hash=" in output
    assert "rooms.limit=50" in output
    assert "room* hex:0,0 terrain=Plains visits=2 exits=n" in output
    assert load_map_json(dumped_path).room_count == 2


def test_replay_tool_starts_from_loaded_map(tmp_path: Path, capsys) -> None:
    map_path = tmp_path / "start.json"
    graph = create_graph()
    upsert_room(graph, "hex:4,4", HexCoord(4, 4), "plains", "A plain.", [], ".:......")
    graph.current_room_id = "hex:4,4"
    save_map_json(map_path, graph)
    log_path = tmp_path / "session.log"
    _build_log(log_path)

    exit_code = main([str(log_path), "--load-map", str(map_path)])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "sources chain=1 fingerprint=2" in output
    assert "rooms=2 current=hex:4,4" in output


def test_replay_tool_reports_missing_log(tmp_path: Path, capsys) -> None:
    exit_code = main([str(tmp_path / "missing.log")])

    assert exit_code == 2
    assert "error: log not found" in capsys.readouterr().out
