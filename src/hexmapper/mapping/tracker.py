"""Ties parser events, movement correlation and the map graph together.

Dead reckoning (previous hex plus the last direction sent) drifts over a
long session because lines get missed or duplicated. Hex art fingerprints
identify a hex by what it looks like, so when a fingerprint names a known
room it wins over the movement chain. The chain-derived edge is dropped in
that case: the previous room is not known to border the re-anchored one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from hexmapper.config import TrackerConfig
from hexmapper.mapping.fingerprints import FingerprintIndex, build_fingerprint_index
from hexmapper.mapping.graph import (
    MapGraph,
    MapRoom,
    PathResult,
    assign_coords,
    create_graph,
    find_path,
    link_rooms,
    make_hex_room_id,
    serialize_graph,
    upsert_room,
)
from hexmapper.mapping.hexmath import ORIGIN, Direction, HexCoord, coord_key
from hexmapper.mapping.movement import MovementTracker, PendingMovement
from hexmapper.parsing.room_parser import HexRoomEvent, MoveFailedEvent, ParserEvent, RoomParser

log = logging.getLogger(__name__)

SOURCE_FINGERPRINT = "fingerprint"
SOURCE_CHAIN = "chain"
SOURCE_CURRENT = "current"
SOURCE_ORIGIN = "origin"


@dataclass(frozen=True)
class Resolution:
    room_id: str
    coords: HexCoord
    source: str
    overrode_chain: bool = False
    linked: bool = False
    direction: Direction | None = None


@dataclass(frozen=True)
class _ChainCandidate:
    from_room_id: str
    direction: Direction
    coords: HexCoord
    collision: str | None


class MapTracker:
    """Single-writer owner of the graph, fingerprint index and movement tracker."""

    def __init__(
        self,
        config: TrackerConfig | None = None,
        *,
        graph: MapGraph | None = None,
        on_change: Callable[[], None] | None = None,
        on_resolution: Callable[[Resolution], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = config or TrackerConfig()
        self._clock = clock
        self._on_change = on_change
        self._on_resolution = on_resolution
        self.parser = RoomParser(
            self._handle_event,
            art_line_limit=self.config.art_line_limit,
            description_line_limit=self.config.description_line_limit,
        )
        self.graph = create_graph()
        self.fingerprints = FingerprintIndex()
        self.movement = self._new_movement_tracker()
        if graph is not None:
            self.load_graph(graph)

    def _new_movement_tracker(self) -> MovementTracker:
        if self._clock is None:
            return MovementTracker(max_age_seconds=self.config.pending_max_age_seconds)
        return MovementTracker(max_age_seconds=self.config.pending_max_age_seconds, clock=self._clock)

    @property
    def current_room_id(self) -> str | None:
        return self.graph.current_room_id

    @property
    def room_count(self) -> int:
        return self.graph.room_count

    def get_room(self, room_id: str) -> MapRoom | None:
        return self.graph.get_room(room_id)

    def find_path_to(self, target_room_id: str) -> PathResult | None:
        if self.graph.current_room_id is None:
            return None
        return find_path(self.graph, self.graph.current_room_id, target_room_id)

    def feed_line(self, line: str) -> None:
        self.parser.feed_line(line)

    def track_command(self, command: str) -> bool:
        return self.movement.track_command(command)

    def set_room_notes(self, room_id: str, notes: str) -> bool:
        room = self.graph.get_room(room_id)
        if room is None:
            return False
        room.notes = notes
        self._changed()
        return True

    def load_graph(self, graph: MapGraph) -> None:
        """Replace all state with a freshly loaded graph."""
        self.graph = graph
        self.fingerprints = build_fingerprint_index(graph)
        self.movement = self._new_movement_tracker()
        self.parser.reset()
        if graph.current_room_id is not None:
            self.movement.set_current_room(graph.current_room_id)

    def clear(self) -> None:
        self.load_graph(create_graph())
        self._changed()

    def snapshot(self) -> dict:
        return serialize_graph(self.graph)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _handle_event(self, event: ParserEvent) -> None:
        if isinstance(event, MoveFailedEvent):
            self.movement.on_move_failed()
            return
        if isinstance(event, HexRoomEvent):
            self.handle_room(event)

    def _chain_candidate(self, movement: PendingMovement | None) -> _ChainCandidate | None:
        if movement is None:
            return None
        source = self.graph.get_room(movement.from_room_id)
        if source is None:
            return None
        assignment = assign_coords(self.graph, source, movement.direction)
        return _ChainCandidate(
            from_room_id=source.id,
            direction=movement.direction,
            coords=assignment.coords,
            collision=assignment.collision,
        )

    def _resolve(self, event: HexRoomEvent, chain: _ChainCandidate | None) -> tuple[str, HexCoord, str, bool]:
        match = self.fingerprints.lookup(event.fingerprint)
        if match is not None:
            matched_room = self.graph.get_room(match.room_id)
            if matched_room is not None:
                overrode = chain is not None and coord_key(chain.coords) != coord_key(matched_room.coords)
                return matched_room.id, matched_room.coords, SOURCE_FINGERPRINT, overrode
            log.debug("fingerprint names missing room %s; falling back", match.room_id)

        if chain is not None:
            room_id = chain.collision or make_hex_room_id(chain.coords.q, chain.coords.r)
            return room_id, chain.coords, SOURCE_CHAIN, False

        current = self.graph.current_room
        if current is not None:
            return current.id, current.coords, SOURCE_CURRENT, False

        return make_hex_room_id(ORIGIN.q, ORIGIN.r), ORIGIN, SOURCE_ORIGIN, False

    def handle_room(self, event: HexRoomEvent) -> Resolution:
        movement = self.movement.take_pending()
        chain = self._chain_candidate(movement)
        room_id, coords, source, overrode = self._resolve(event, chain)

        existing = self.graph.get_room(room_id)
        previous_fingerprint = existing.fingerprint if existing is not None else None
        room = upsert_room(
            self.graph,
            room_id,
            coords,
            event.terrain,
            event.description,
            list(event.landmarks),
            event.fingerprint,
        )

        if room.fingerprint != previous_fingerprint:
            self.fingerprints.deindex_fingerprint(previous_fingerprint, room.id)
            self.fingerprints.index_fingerprint(room.fingerprint, room.id)

        linked = False
        if chain is not None and not overrode and chain.from_room_id != room.id:
            link_rooms(self.graph, chain.from_room_id, room.id, chain.direction)
            linked = True

        if overrode:
            log.debug(
                "fingerprint re-anchored to %s instead of chain candidate %s",
                room.id,
                coord_key(chain.coords) if chain is not None else "-",
            )

        self.movement.set_current_room(room.id)
        self.graph.current_room_id = room.id

        resolution = Resolution(
            room_id=room.id,
            coords=room.coords,
            source=source,
            overrode_chain=overrode,
            linked=linked,
            direction=chain.direction if chain is not None else None,
        )
        if self._on_resolution is not None:
            self._on_resolution(resolution)
        self._changed()
        return resolution
