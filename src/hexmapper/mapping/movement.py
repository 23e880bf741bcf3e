from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from hexmapper.mapping.hexmath import Direction, parse_direction

PENDING_MAX_AGE_SECONDS = 10.0


@dataclass(frozen=True)
class PendingMovement:
    direction: Direction
    from_room_id: str
    timestamp: float


class MovementTracker:
    """Correlates the last hex direction command with the next parsed room.

    Only the six hex directions are tracked. Other commands neither create
    nor cancel a pending movement; it is cleared by a movement-failure
    message, by being consumed, or by going stale.
    """

    def __init__(
        self,
        *,
        max_age_seconds: float = PENDING_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_age_seconds <= 0:
            raise ValueError("max_age_seconds must be > 0")
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._pending: PendingMovement | None = None
        self._current_room_id: str | None = None

    @property
    def current_room_id(self) -> str | None:
        return self._current_room_id

    @property
    def pending(self) -> PendingMovement | None:
        return self._pending

    def track_command(self, command: str) -> bool:
        direction = parse_direction(command)
        if direction is None or self._current_room_id is None:
            return False
        self._pending = PendingMovement(
            direction=direction,
            from_room_id=self._current_room_id,
            timestamp=self._clock(),
        )
        return True

    def on_room_parsed(self, new_room_id: str) -> PendingMovement | None:
        movement = self._consume_pending()
        self._current_room_id = new_room_id
        return movement

    def on_move_failed(self) -> None:
        self._pending = None

    def set_current_room(self, room_id: str | None) -> None:
        self._current_room_id = room_id

    def take_pending(self) -> PendingMovement | None:
        """Consume a fresh pending movement without moving the current room."""
        return self._consume_pending()

    def _consume_pending(self) -> PendingMovement | None:
        movement = self._pending
        self._pending = None
        if movement is None:
            return None
        if self._clock() - movement.timestamp > self.max_age_seconds:
            return None
        return movement
