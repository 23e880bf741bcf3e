from __future__ import annotations

from typing import Any

from hexmapper.mapping.hexmath import COMPASS_DIRECTIONS
from hexmapper.parsing.terrain import TERRAIN_TYPES

REQUIRED_ROOM_FIELDS = {"id", "coords", "terrain", "description", "exits"}
VALID_DIRECTIONS = set(COMPASS_DIRECTIONS)
VALID_TERRAIN_TYPES = set(TERRAIN_TYPES)


def _require_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value


def _require_non_negative_int(value: Any, *, field_name: str) -> int:
    value = _require_int(value, field_name=field_name)
    if value < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return value


def _validate_string_list(value: Any, *, field_name: str) -> None:
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list")
    for index, item in enumerate(value):
        if not isinstance(item, str):
            raise ValueError(f"{field_name}[{index}] must be a string")


def _validate_room(room_id: str, room: Any) -> None:
    field_name = f"rooms[{room_id}]"
    if not isinstance(room, dict):
        raise ValueError(f"{field_name} must be an object")

    missing = REQUIRED_ROOM_FIELDS - set(room.keys())
    if missing:
        raise ValueError(f"{field_name} missing room fields: {sorted(missing)}")

    if room["id"] != room_id:
        raise ValueError(f"{field_name}.id does not match its key: {room['id']!r}")

    coords = room["coords"]
    if not isinstance(coords, dict) or not {"q", "r"} <= coords.keys():
        raise ValueError(f"{field_name} invalid coords")
    q = _require_int(coords["q"], field_name=f"{field_name}.coords.q")
    r = _require_int(coords["r"], field_name=f"{field_name}.coords.r")
    if room_id != f"hex:{q},{r}":
        raise ValueError(f"{field_name} id does not match coords ({q},{r})")

    if room["terrain"] not in VALID_TERRAIN_TYPES:
        raise ValueError(f"{field_name} invalid terrain: {room['terrain']}")
    if not isinstance(room["description"], str):
        raise ValueError(f"{field_name}.description must be a string")

    exits = room["exits"]
    if not isinstance(exits, dict):
        raise ValueError(f"{field_name}.exits must be an object")
    for direction, target in exits.items():
        if direction not in VALID_DIRECTIONS:
            raise ValueError(f"{field_name}.exits has invalid direction: {direction}")
        if target is not None and not isinstance(target, str):
            raise ValueError(f"{field_name}.exits[{direction}] must be a room id or null")

    if "landmarks" in room:
        _validate_string_list(room["landmarks"], field_name=f"{field_name}.landmarks")
    if "notes" in room and not isinstance(room["notes"], str):
        raise ValueError(f"{field_name}.notes must be a string")
    if "lastVisited" in room:
        _require_non_negative_int(room["lastVisited"], field_name=f"{field_name}.lastVisited")
    if "visitCount" in room:
        _require_non_negative_int(room["visitCount"], field_name=f"{field_name}.visitCount")
    fingerprint = room.get("fingerprint")
    if fingerprint is not None and not isinstance(fingerprint, str):
        raise ValueError(f"{field_name}.fingerprint must be a string when present")


def validate_map_payload(payload: dict[str, Any]) -> None:
    if not isinstance(payload, dict):
        raise ValueError("map payload must be an object")

    rooms = payload.get("rooms", {})
    if not isinstance(rooms, dict):
        raise ValueError("rooms must be an object")
    for room_id, room in rooms.items():
        if not isinstance(room_id, str):
            raise ValueError("rooms keys must be strings")
        _validate_room(room_id, room)

    current_room_id = payload.get("currentRoomId")
    if current_room_id is not None and not isinstance(current_room_id, str):
        raise ValueError("currentRoomId must be a string or null")
