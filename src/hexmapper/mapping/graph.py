from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from hexmapper.content.schema import validate_map_payload
from hexmapper.mapping.hexmath import (
    COMPASS_DIRECTIONS,
    Direction,
    HexCoord,
    apply_direction,
    coord_key,
    opposite_direction,
)
from hexmapper.parsing.hex_art import is_richer_fingerprint

HEX_ROOM_ID_PREFIX = "hex:"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _empty_exits() -> dict[Direction, str | None]:
    return {direction: None for direction in COMPASS_DIRECTIONS}


def make_hex_room_id(q: int, r: int) -> str:
    return f"{HEX_ROOM_ID_PREFIX}{q},{r}"


@dataclass
class MapRoom:
    id: str
    coords: HexCoord
    terrain: str
    description: str
    landmarks: list[str] = field(default_factory=list)
    exits: dict[Direction, str | None] = field(default_factory=_empty_exits)
    notes: str = ""
    last_visited: int = 0
    visit_count: int = 1
    fingerprint: str | None = None

    def heal_exits(self) -> None:
        for direction in COMPASS_DIRECTIONS:
            self.exits.setdefault(direction, None)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "coords": self.coords.to_dict(),
            "terrain": self.terrain,
            "description": self.description,
            "landmarks": list(self.landmarks),
            "exits": {direction: self.exits.get(direction) for direction in COMPASS_DIRECTIONS},
            "notes": self.notes,
            "lastVisited": self.last_visited,
            "visitCount": self.visit_count,
        }
        if self.fingerprint is not None:
            payload["fingerprint"] = self.fingerprint
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MapRoom":
        raw_exits = data.get("exits") or {}
        exits = _empty_exits()
        for direction in COMPASS_DIRECTIONS:
            target = raw_exits.get(direction)
            exits[direction] = str(target) if target else None
        fingerprint = data.get("fingerprint")
        return cls(
            id=str(data["id"]),
            coords=HexCoord.from_dict(data["coords"]),
            terrain=str(data.get("terrain", "unknown")),
            description=str(data.get("description", "")),
            landmarks=[str(item) for item in data.get("landmarks", [])],
            exits=exits,
            notes=str(data.get("notes", "")),
            last_visited=int(data.get("lastVisited", 0)),
            visit_count=int(data.get("visitCount", 1)),
            fingerprint=str(fingerprint) if fingerprint else None,
        )


@dataclass
class MapGraph:
    rooms: dict[str, MapRoom] = field(default_factory=dict)
    current_room_id: str | None = None

    @property
    def room_count(self) -> int:
        return len(self.rooms)

    def get_room(self, room_id: str | None) -> MapRoom | None:
        if room_id is None:
            return None
        return self.rooms.get(room_id)

    @property
    def current_room(self) -> MapRoom | None:
        return self.get_room(self.current_room_id)


@dataclass(frozen=True)
class CoordAssignment:
    coords: HexCoord
    collision: str | None = None


@dataclass(frozen=True)
class PathResult:
    directions: tuple[Direction, ...]
    room_ids: tuple[str, ...]

    @property
    def hops(self) -> int:
        return len(self.directions)


def create_graph() -> MapGraph:
    return MapGraph()


def upsert_room(
    graph: MapGraph,
    room_id: str,
    coords: HexCoord,
    terrain: str,
    description: str,
    landmarks: list[str] | tuple[str, ...],
    fingerprint: str | None = None,
) -> MapRoom:
    """Create a room, or refresh the volatile fields of a known one.

    Coordinates of an existing room never change. Landmarks are only
    replaced by a non-empty observation, the fingerprint only by one that
    shows at least as much of the hex.
    """
    existing = graph.rooms.get(room_id)
    if existing is not None:
        existing.last_visited = _now_ms()
        existing.visit_count += 1
        existing.terrain = terrain
        existing.description = description
        if landmarks:
            existing.landmarks = list(landmarks)
        if fingerprint and is_richer_fingerprint(fingerprint, existing.fingerprint):
            existing.fingerprint = fingerprint
        existing.heal_exits()
        return existing

    room = MapRoom(
        id=room_id,
        coords=coords,
        terrain=terrain,
        description=description,
        landmarks=list(landmarks),
        last_visited=_now_ms(),
        fingerprint=fingerprint or None,
    )
    graph.rooms[room_id] = room
    return room


def link_rooms(graph: MapGraph, from_id: str, to_id: str, direction: Direction) -> None:
    source = graph.rooms.get(from_id)
    target = graph.rooms.get(to_id)
    if source is None or target is None:
        return
    source.exits[direction] = to_id
    target.exits[opposite_direction(direction)] = from_id


def assign_coords(graph: MapGraph, from_room: MapRoom, direction: Direction) -> CoordAssignment:
    coords = apply_direction(from_room.coords, direction)
    key = coord_key(coords)
    for room in graph.rooms.values():
        if coord_key(room.coords) == key:
            return CoordAssignment(coords=coords, collision=room.id)
    return CoordAssignment(coords=coords)


def find_path(graph: MapGraph, from_id: str, to_id: str) -> PathResult | None:
    """Breadth-first shortest path; equal-length ties follow COMPASS_DIRECTIONS order."""
    if from_id == to_id:
        return PathResult(directions=(), room_ids=(from_id,))
    if from_id not in graph.rooms or to_id not in graph.rooms:
        return None

    previous: dict[str, tuple[str, Direction]] = {}
    visited = {from_id}
    queue: deque[str] = deque([from_id])

    while queue:
        room_id = queue.popleft()
        room = graph.rooms.get(room_id)
        if room is None:
            continue
        for direction in COMPASS_DIRECTIONS:
            target_id = room.exits.get(direction)
            if not target_id or target_id in visited:
                continue
            visited.add(target_id)
            previous[target_id] = (room_id, direction)
            if target_id == to_id:
                return _rebuild_path(previous, from_id, to_id)
            queue.append(target_id)

    return None


def _rebuild_path(previous: dict[str, tuple[str, Direction]], from_id: str, to_id: str) -> PathResult:
    directions: list[Direction] = []
    room_ids = [to_id]
    cursor = to_id
    while cursor != from_id:
        cursor, direction = previous[cursor]
        directions.append(direction)
        room_ids.append(cursor)
    directions.reverse()
    room_ids.reverse()
    return PathResult(directions=tuple(directions), room_ids=tuple(room_ids))


def coordinate_collisions(graph: MapGraph) -> list[str]:
    seen: dict[str, int] = {}
    for room in graph.rooms.values():
        key = coord_key(room.coords)
        seen[key] = seen.get(key, 0) + 1
    return sorted(key for key, count in seen.items() if count > 1)


def serialize_graph(graph: MapGraph) -> dict[str, Any]:
    return {
        "rooms": {room_id: room.to_dict() for room_id, room in graph.rooms.items()},
        "currentRoomId": graph.current_room_id,
    }


def is_legacy_payload(data: dict[str, Any]) -> bool:
    rooms = data.get("rooms") or {}
    return isinstance(rooms, dict) and any(not str(room_id).startswith(HEX_ROOM_ID_PREFIX) for room_id in rooms)


def deserialize_graph(data: dict[str, Any] | None) -> MapGraph:
    """Rebuild a graph from its persisted snapshot.

    Snapshots from the older name-hashed room scheme cannot be mixed with hex
    coordinates, so any non ``hex:`` id discards the whole map.
    """
    if not data:
        return create_graph()
    if not isinstance(data, dict):
        raise ValueError("map payload must be an object")
    if is_legacy_payload(data):
        return create_graph()

    validate_map_payload(data)
    rooms = {room_id: MapRoom.from_dict(raw) for room_id, raw in (data.get("rooms") or {}).items()}
    current_room_id = data.get("currentRoomId")
    if current_room_id not in rooms:
        current_room_id = None
    return MapGraph(rooms=rooms, current_room_id=current_room_id)
