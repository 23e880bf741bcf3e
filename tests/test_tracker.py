from art_samples import ring_one_art, ring_two_art, ring_zero_art, survey

from hexmapper.config import TrackerConfig
from hexmapper.mapping.graph import coordinate_collisions, create_graph, upsert_room
from hexmapper.mapping.hexmath import HexCoord
from hexmapper.mapping.tracker import MapTracker, Resolution
from hexmapper.parsing.room_parser import HexRoomEvent

CAMP = '.:^~whs"'
RIDGE = "^:^^^..."
MEADOW = ".:......"


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _room_event(fingerprint: str | None = None, terrain: str = "plains") -> HexRoomEvent:
    return HexRoomEvent(
        description=f"You are somewhere with {terrain}.",
        terrain=terrain,
        landmarks=(),
        fingerprint=fingerprint,
        rings=fingerprint.count(":") if fingerprint else None,
    )


def _build_tracker(**kwargs) -> tuple[MapTracker, list[Resolution], list[int]]:
    resolutions: list[Resolution] = []
    changes: list[int] = []
    tracker = MapTracker(
        on_resolution=resolutions.append,
        on_change=lambda: changes.append(1),
        **kwargs,
    )
    return tracker, resolutions, changes


def _move(tracker: MapTracker, direction: str, event: HexRoomEvent) -> Resolution:
    assert tracker.track_command(direction)
    return tracker.handle_room(event)


def test_first_room_is_placed_at_origin() -> None:
    tracker, resolutions, changes = _build_tracker()

    resolution = tracker.handle_room(_room_event(CAMP))

    assert resolution.room_id == "hex:0,0"
    assert resolution.source == "origin"
    assert resolution.linked is False
    assert tracker.current_room_id == "hex:0,0"
    assert resolutions == [resolution]
    assert changes == [1]


def test_chain_places_new_room_and_links_both_ways() -> None:
    tracker, _, _ = _build_tracker()
    tracker.handle_room(_room_event(CAMP))

    resolution = _move(tracker, "n", _room_event(RIDGE))

    assert resolution.room_id == "hex:0,-1"
    assert resolution.source == "chain"
    assert resolution.direction == "n"
    assert resolution.linked is True
    assert tracker.get_room("hex:0,0").exits["n"] == "hex:0,-1"
    assert tracker.get_room("hex:0,-1").exits["s"] == "hex:0,0"


def test_fingerprint_overrides_chain_and_skips_link() -> None:
    tracker, _, _ = _build_tracker()
    tracker.handle_room(_room_event(CAMP))
    _move(tracker, "n", _room_event(RIDGE))

    resolution = _move(tracker, "n", _room_event(CAMP))

    assert resolution.room_id == "hex:0,0"
    assert resolution.source == "fingerprint"
    assert resolution.overrode_chain is True
    assert resolution.linked is False
    assert tracker.room_count == 2
    assert tracker.current_room_id == "hex:0,0"
    assert tracker.get_room("hex:0,-1").exits["n"] is None
    assert tracker.get_room("hex:0,0").visit_count == 2


def test_fingerprint_agreeing_with_chain_still_links() -> None:
    tracker, _, _ = _build_tracker()
    tracker.handle_room(_room_event(CAMP))
    _move(tracker, "n", _room_event(RIDGE))

    resolution = _move(tracker, "s", _room_event(CAMP))

    assert resolution.source == "fingerprint"
    assert resolution.overrode_chain is False
    assert resolution.linked is True
    assert tracker.get_room("hex:0,-1").exits["s"] == "hex:0,0"


def test_chain_collision_reuses_existing_room() -> None:
    tracker, _, _ = _build_tracker()
    tracker.handle_room(_room_event())
    _move(tracker, "ne", _room_event())

    resolution = _move(tracker, "sw", _room_event())

    assert resolution.room_id == "hex:0,0"
    assert resolution.source == "chain"
    assert tracker.room_count == 2


def test_walking_back_and_forth_never_duplicates_coords() -> None:
    tracker, _, _ = _build_tracker()
    tracker.handle_room(_room_event())
    for direction in ("n", "n", "s", "s", "se", "nw", "sw", "ne"):
        _move(tracker, direction, _room_event())

    assert tracker.room_count == 5
    assert coordinate_collisions(tracker.graph) == []
    assert tracker.current_room_id == "hex:0,0"


def test_stale_movement_falls_back_to_current_room() -> None:
    clock = _FakeClock()
    tracker, _, _ = _build_tracker(clock=clock, config=TrackerConfig(pending_max_age_seconds=5.0))
    tracker.handle_room(_room_event())
    tracker.track_command("n")
    clock.now = 6.0

    resolution = tracker.handle_room(_room_event())

    assert resolution.source == "current"
    assert resolution.room_id == "hex:0,0"
    assert tracker.room_count == 1


def test_failed_move_cancels_chain() -> None:
    tracker, _, _ = _build_tracker()
    tracker.handle_room(_room_event())
    tracker.track_command("n")

    tracker.feed_line("There is no exit in that direction.")
    resolution = tracker.handle_room(_room_event())

    assert resolution.source == "current"
    assert tracker.room_count == 1


def test_fingerprint_naming_missing_room_falls_back_to_chain() -> None:
    tracker, _, _ = _build_tracker()
    tracker.handle_room(_room_event())
    tracker.fingerprints.index_fingerprint(RIDGE, "hex:9,9")

    resolution = _move(tracker, "se", _room_event(RIDGE))

    assert resolution.source == "chain"
    assert resolution.room_id == "hex:1,0"


def test_changed_fingerprint_is_reindexed() -> None:
    tracker, _, _ = _build_tracker()
    tracker.handle_room(_room_event(CAMP))

    tracker.handle_room(_room_event(MEADOW))

    assert tracker.get_room("hex:0,0").fingerprint == MEADOW
    assert tracker.fingerprints.lookup(CAMP) is None
    assert tracker.fingerprints.lookup(MEADOW).room_id == "hex:0,0"


def test_survey_lines_drive_the_tracker_end_to_end() -> None:
    tracker, resolutions, _ = _build_tracker()

    for line in survey(ring_one_art(center=".")):
        tracker.feed_line(line)
    assert tracker.track_command("north")
    for line in survey(ring_one_art(center="w", n="^"), "You are in a dense forest. It is dim here."):
        tracker.feed_line(line)

    assert [resolution.source for resolution in resolutions] == ["origin", "chain"]
    room = tracker.get_room("hex:0,-1")
    assert room is not None
    assert room.terrain == "woods"
    assert room.fingerprint == "w:^....."
    assert tracker.get_room("hex:0,0").fingerprint == MEADOW


def test_loaded_graph_restores_index_and_position() -> None:
    graph = create_graph()
    upsert_room(graph, "hex:2,2", HexCoord(2, 2), "plains", "A plain.", [], CAMP)
    graph.current_room_id = "hex:2,2"

    tracker = MapTracker(graph=graph)

    assert tracker.current_room_id == "hex:2,2"
    assert tracker.fingerprints.lookup(CAMP).room_id == "hex:2,2"
    assert tracker.track_command("s")


def test_find_path_to_uses_current_room() -> None:
    tracker, _, _ = _build_tracker()
    assert tracker.find_path_to("hex:0,0") is None

    tracker.handle_room(_room_event())
    _move(tracker, "n", _room_event())
    _move(tracker, "ne", _room_event())

    path = tracker.find_path_to("hex:0,0")

    assert path is not None
    assert path.directions == ("sw", "s")


def test_set_room_notes() -> None:
    tracker, _, changes = _build_tracker()
    tracker.handle_room(_room_event())

    assert tracker.set_room_notes("hex:0,0", "ferry here") is True
    assert tracker.get_room("hex:0,0").notes == "ferry here"
    assert tracker.set_room_notes("hex:5,5", "nothing") is False
    assert len(changes) == 2


def test_clear_resets_everything() -> None:
    tracker, _, changes = _build_tracker()
    tracker.handle_room(_room_event(CAMP))
    tracker.track_command("n")

    tracker.clear()

    assert tracker.room_count == 0
    assert tracker.current_room_id is None
    assert len(tracker.fingerprints) == 0
    assert tracker.movement.pending is None
    assert tracker.snapshot() == {"rooms": {}, "currentRoomId": None}
    assert len(changes) == 2


def test_fingerprint_of_known_neighbor_beats_dead_reckoning() -> None:
    graph = create_graph()
    upsert_room(graph, "hex:0,0", HexCoord(0, 0), "plains", "A plain.", [], CAMP)
    upsert_room(graph, "hex:1,-1", HexCoord(1, -1), "mountains", "A ridge.", [], RIDGE)
    graph.current_room_id = "hex:0,0"
    tracker, _, _ = _build_tracker(graph=graph)

    resolution = _move(tracker, "n", _room_event(RIDGE, terrain="mountains"))

    assert resolution.room_id == "hex:1,-1"
    assert resolution.overrode_chain is True
    assert tracker.get_room("hex:0,0").exits["n"] is None
    assert tracker.room_count == 2


def test_dim_survey_keeps_room_reachable_by_fingerprint() -> None:
    tracker, _, _ = _build_tracker()
    for line in survey(ring_one_art(center="h", n="^", ne="~", se="w", s="s", sw=".", nw='"')):
        tracker.feed_line(line)
    full = tracker.get_room("hex:0,0").fingerprint
    assert full == 'h:^~ws."'

    for line in survey(ring_zero_art("h"), "You are standing among rolling hills. It is dark here."):
        tracker.feed_line(line)
    _move(tracker, "n", _room_event(RIDGE))

    assert tracker.get_room("hex:0,0").fingerprint == full
    resolution = _move(tracker, "n", _room_event(full))
    assert resolution.room_id == "hex:0,0"
    assert resolution.source == "fingerprint"


def test_wider_survey_upgrades_indexed_fingerprint() -> None:
    tracker, _, _ = _build_tracker()
    for line in survey(ring_one_art(n="^")):
        tracker.feed_line(line)

    for line in survey(ring_two_art({(0, -1): "^", (2, 0): "w"})):
        tracker.feed_line(line)

    room = tracker.get_room("hex:0,0")
    assert room.fingerprint == ".:^.....:....w......."
    assert tracker.fingerprints.lookup(room.fingerprint).exact is True
    assert tracker.fingerprints.lookup(".:^.....").room_id == "hex:0,0"
    assert tracker.room_count == 1
