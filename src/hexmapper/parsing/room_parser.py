"""Line-oriented state machine that recognizes wilderness rooms.

Two kinds of input start a room:

1. A survey::

       You gaze at your surroundings.
       <hex art block>

       You are in a grassy plain. It is bright here.
       <landmark lines>

2. A bare wilderness description printed after a move, without art.

Everything else in the stream (chat, combat, indoor rooms, status bars) is
ignored. Feeding text never raises; anything unexpected drops the parser back
to ``idle``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from hexmapper.parsing.hex_art import HexArt, decode_hex_art, is_hex_art_line
from hexmapper.parsing.terrain import UNKNOWN_TERRAIN, classify_terrain

log = logging.getLogger(__name__)

SURVEY_TRIGGER = "You gaze at your surroundings."
DEFAULT_ART_LINE_LIMIT = 30
DEFAULT_DESCRIPTION_LINE_LIMIT = 12
ART_BLOCK_MIN_LINES = 3

PROMPT_PREFIX_RE = re.compile(r"^(?:> )+")
MOVE_FAIL_RE = re.compile(
    r"^(?:There is no exit in that direction\.|The .+ is closed\.|You (?:can't|cannot) go that way\.|You can't see to move!)"
)
LIGHTING_RE = re.compile(
    r"It is (?:shadowy|dim|bright|painfully bright|blindingly bright|extremely light|well lit|pitch black|dark)(?: here)?\."
)
WILDERNESS_START_RE = re.compile(r"^(?:You are (?:in|on|at|standing)\b|This is (?:a|an|the) )")
EXIT_LIST_RE = re.compile(r"^There (?:is one obvious exit|are \w+ exits):")
BRIEF_EXITS_RE = re.compile(r"^< .+ >$")
STATUS_RE = re.compile(r"^(?:Held|Worn|Concentration|Encumbrance|Movement|Aura|Needs)\s*:")


class ParserState(Enum):
    IDLE = "idle"
    COLLECTING_HEX_ART = "collecting-hex-art"
    READING_DESCRIPTION = "reading-description"


@dataclass(frozen=True)
class HexRoomEvent:
    event_type: ClassVar[str] = "hex-room"

    description: str
    terrain: str
    landmarks: tuple[str, ...]
    fingerprint: str | None = None
    rings: int | None = None
    art: HexArt | None = None


@dataclass(frozen=True)
class MoveFailedEvent:
    event_type: ClassVar[str] = "move-failed"


ParserEvent = Union[HexRoomEvent, MoveFailedEvent]


def clean_line(raw_line: str) -> str:
    return PROMPT_PREFIX_RE.sub("", raw_line.rstrip("\r")).rstrip()


def is_lighting_line(line: str) -> bool:
    return LIGHTING_RE.search(line) is not None


def is_non_wilderness_line(line: str) -> bool:
    return bool(EXIT_LIST_RE.match(line) or BRIEF_EXITS_RE.match(line) or STATUS_RE.match(line))


def starts_wilderness_description(line: str) -> bool:
    return bool(WILDERNESS_START_RE.match(line)) and classify_terrain(line) != UNKNOWN_TERRAIN


def extract_landmarks(description_lines: list[str]) -> tuple[str, ...]:
    landmarks: list[str] = []
    for line in description_lines[1:]:
        remainder = LIGHTING_RE.sub("", line).strip()
        if remainder:
            landmarks.append(remainder)
    return tuple(landmarks)


class RoomParser:
    """Feed ANSI-stripped lines in order; events go to ``on_event``."""

    def __init__(
        self,
        on_event: Callable[[ParserEvent], None],
        *,
        art_line_limit: int = DEFAULT_ART_LINE_LIMIT,
        description_line_limit: int = DEFAULT_DESCRIPTION_LINE_LIMIT,
    ) -> None:
        if art_line_limit <= 0 or description_line_limit <= 0:
            raise ValueError("parser line limits must be positive")
        self._on_event = on_event
        self._art_line_limit = art_line_limit
        self._description_line_limit = description_line_limit
        self.state = ParserState.IDLE
        self._art_lines: list[str] = []
        self._description_lines: list[str] = []
        self._art: HexArt | None = None
        self._blank_run = 0
        self._lines_in_state = 0

    def feed_line(self, raw_line: str) -> None:
        line = clean_line(raw_line)

        if MOVE_FAIL_RE.match(line):
            self.reset()
            self._on_event(MoveFailedEvent())
            return

        if line == SURVEY_TRIGGER:
            if self.state is ParserState.READING_DESCRIPTION and self._description_lines:
                self._emit_room()
            self._begin_survey()
            return

        if self.state is ParserState.IDLE:
            self._handle_idle(line)
        elif self.state is ParserState.COLLECTING_HEX_ART:
            self._handle_hex_art(line)
        else:
            self._handle_description(line)

    def reset(self) -> None:
        self.state = ParserState.IDLE
        self._art_lines = []
        self._description_lines = []
        self._art = None
        self._blank_run = 0
        self._lines_in_state = 0

    def _begin_survey(self) -> None:
        self.reset()
        self.state = ParserState.COLLECTING_HEX_ART

    def _handle_idle(self, line: str) -> None:
        if starts_wilderness_description(line):
            self.reset()
            self.state = ParserState.READING_DESCRIPTION
            self._handle_description(line)

    def _handle_hex_art(self, line: str) -> None:
        self._lines_in_state += 1
        if self._lines_in_state > self._art_line_limit:
            log.debug("hex art block exceeded %d lines; resetting", self._art_line_limit)
            self.reset()
            return

        if not line.strip():
            if not self._art_lines:
                return
            self._blank_run += 1
            if self._blank_run >= 2 or len(self._art_lines) >= ART_BLOCK_MIN_LINES:
                self._finish_art()
            return

        if is_hex_art_line(line):
            self._art_lines.append(line)
            self._blank_run = 0
            return

        if not self._art_lines:
            # Weather and status chatter can precede the art.
            return

        self._finish_art()
        self._handle_description(line)

    def _finish_art(self) -> None:
        self._art = decode_hex_art(self._art_lines)
        if self._art is None:
            log.debug("could not decode %d-line hex art block", len(self._art_lines))
        self.state = ParserState.READING_DESCRIPTION
        self._lines_in_state = 0
        self._blank_run = 0

    def _handle_description(self, line: str) -> None:
        self._lines_in_state += 1

        if not line.strip():
            if self._description_lines:
                self._emit_room()
            elif self._lines_in_state > self._description_line_limit:
                self.reset()
            return

        if is_non_wilderness_line(line):
            if self._description_lines:
                self._emit_room()
            else:
                log.debug("non-wilderness content before description; resetting")
                self.reset()
            return

        self._description_lines.append(line)
        if is_lighting_line(line) or len(self._description_lines) >= self._description_line_limit:
            self._emit_room()

    def _emit_room(self) -> None:
        lines = self._description_lines
        description = " ".join(part.strip() for part in lines)
        art = self._art
        event = HexRoomEvent(
            description=description,
            terrain=classify_terrain(description),
            landmarks=extract_landmarks(lines),
            fingerprint=art.fingerprint if art is not None else None,
            rings=art.rings if art is not None else None,
            art=art,
        )
        self.reset()
        self._on_event(event)
