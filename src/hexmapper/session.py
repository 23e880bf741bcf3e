"""Per-character map session with debounced persistence.

All mutation of the tracker (graph, fingerprint index, movement state) goes
through :class:`MapSession` under one ``asyncio.Lock``. Persistence is the
only asynchronous boundary: changes schedule a write after a quiet period so
fast movement produces one snapshot instead of one per room.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from hexmapper.config import TrackerConfig
from hexmapper.content.io import MAP_DATA_KEY, DataStore, map_filename
from hexmapper.mapping.graph import (
    MapGraph,
    MapRoom,
    PathResult,
    create_graph,
    deserialize_graph,
    is_legacy_payload,
)
from hexmapper.mapping.tracker import MapTracker

log = logging.getLogger(__name__)


class MapSession:
    def __init__(self, store: DataStore, config: TrackerConfig | None = None) -> None:
        self.store = store
        self.config = config or TrackerConfig()
        self.tracker = MapTracker(self.config, on_change=self._schedule_save)
        self.active_character: str | None = None
        self._lock = asyncio.Lock()
        self._save_task: asyncio.Task[None] | None = None
        self._generation = 0

    @property
    def current_room_id(self) -> str | None:
        return self.tracker.current_room_id

    @property
    def room_count(self) -> int:
        return self.tracker.room_count

    @property
    def save_pending(self) -> bool:
        return self._save_task is not None and not self._save_task.done()

    def get_room(self, room_id: str) -> MapRoom | None:
        return self.tracker.get_room(room_id)

    def find_path_to(self, target_room_id: str) -> PathResult | None:
        return self.tracker.find_path_to(target_room_id)

    async def feed_line(self, line: str) -> None:
        async with self._lock:
            self.tracker.feed_line(line)

    async def track_command(self, command: str) -> bool:
        async with self._lock:
            return self.tracker.track_command(command)

    async def set_room_notes(self, room_id: str, notes: str) -> bool:
        async with self._lock:
            return self.tracker.set_room_notes(room_id, notes)

    async def switch_character(self, character: str | None) -> bool:
        """Make ``character`` active and load its map.

        Returns False when a later switch superseded this one while the
        snapshot was loading; the stale result is dropped.
        """
        async with self._lock:
            self._cancel_pending_save()
            self._generation += 1
            generation = self._generation
            self.active_character = character
            self.tracker.load_graph(create_graph())

        if character is None:
            return True

        try:
            data = await self.store.get(map_filename(character), MAP_DATA_KEY)
        except (OSError, ValueError):
            log.warning("could not read map data for %s; starting empty", character, exc_info=True)
            data = None

        async with self._lock:
            if generation != self._generation or self.active_character != character:
                log.debug("discarding stale map load for %s", character)
                return False
            self.tracker.load_graph(self._graph_from_snapshot(character, data))
        log.info("loaded map for %s (%d rooms)", character, self.tracker.room_count)
        return True

    async def clear_map(self) -> None:
        async with self._lock:
            self._cancel_pending_save()
            self.tracker.clear()
        log.info("cleared map for %s", self.active_character)

    async def flush(self) -> None:
        self._cancel_pending_save()
        if self.active_character is not None:
            await self._write(self.active_character)

    async def close(self) -> None:
        if self.save_pending:
            await self.flush()

    def _graph_from_snapshot(self, character: str, data: Any) -> MapGraph:
        if isinstance(data, dict) and is_legacy_payload(data):
            log.warning("discarding legacy map data for %s", character)
        try:
            return deserialize_graph(data)
        except ValueError:
            log.warning("malformed map data for %s; starting empty", character, exc_info=True)
            return create_graph()

    def _cancel_pending_save(self) -> None:
        if self._save_task is not None and not self._save_task.done():
            self._save_task.cancel()
        self._save_task = None

    def _schedule_save(self) -> None:
        character = self.active_character
        if character is None:
            return
        self._cancel_pending_save()
        self._save_task = asyncio.get_running_loop().create_task(self._save_later(character))

    async def _save_later(self, character: str) -> None:
        await asyncio.sleep(self.config.save_debounce_seconds)
        if character != self.active_character:
            return
        await self._write(character)

    async def _write(self, character: str) -> None:
        filename = map_filename(character)
        try:
            await self.store.set(filename, MAP_DATA_KEY, self.tracker.snapshot())
            await self.store.save(filename)
        except (OSError, ValueError):
            log.exception("failed to save map for %s", character)
