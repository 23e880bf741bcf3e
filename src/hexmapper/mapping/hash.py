from __future__ import annotations

import hashlib
import json
from typing import Any

from hexmapper.mapping.graph import MapGraph, serialize_graph

# Visit bookkeeping changes on every re-observation and says nothing about
# the map's shape.
VOLATILE_ROOM_FIELDS = ("lastVisited", "visitCount")


def _encode(payload: Any) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def graph_hash(graph: MapGraph) -> str:
    return hashlib.sha256(_encode(serialize_graph(graph))).hexdigest()


def topology_hash(graph: MapGraph) -> str:
    """Hash of rooms, terrain, fingerprints and exits, ignoring visit counters."""
    payload = serialize_graph(graph)
    for room in payload["rooms"].values():
        for field_name in VOLATILE_ROOM_FIELDS:
            room.pop(field_name, None)
    return hashlib.sha256(_encode(payload)).hexdigest()
