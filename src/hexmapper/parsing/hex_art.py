"""Decoder for the ASCII hex art printed after a wilderness survey.

The art is a flat-top hex grid. Each cell is bounded above and below by a
five character border (``-----``, with ``*`` for paths and ``c``/``x`` for
cliff edges) and holds terrain glyphs on the three content lines in between.
Adjacent columns are offset by half a cell, so cells are recovered by
grouping borders by display column and walking each column top to bottom.

Depending on the viewer's sight the art shows 0, 1 or 2 rings around the
center hex (1, 7 or 19 cells).
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field

from hexmapper.mapping.hexmath import HexCoord
from hexmapper.parsing.terrain import TERRAIN_GLYPHS, UNKNOWN_GLYPH, terrain_for_glyph

MIN_ART_LINES = 5
MAX_RINGS = 2
FINGERPRINT_SEPARATOR = ":"

BORDER_RE = re.compile(r"[-*cx]{5}")
RELAXED_BORDER_RE = re.compile(r'[-*cx]{2,}[.^~"whsx][-*cx]{2,}')
LANDMARK_SUFFIX_RE = re.compile(r"\s+[A-Za-z0-9#+]\)\s+\S.*$")
CONTINUATION_SUFFIX_RE = re.compile(r"(?<=[/\\*\-=c])\s{8,}\S.*$")
LEGEND_RE = re.compile(r"\s+([A-Z0-9])\)\s+(.+)$")
TRAILING_WORD_RE = re.compile(r"^(\s{3,})([a-z].*)", re.IGNORECASE)
NON_TERRAIN_LETTER_RE = re.compile(r"[abdefgijklmnopqrtuvyz]", re.IGNORECASE)
TERRAIN_SPILL_RE = re.compile(r'^[.^~"whsx\-* =c]*$')

STRUCTURAL_CHARS = "/\\*=cx"
EDGE_CHARS = "-*=cx"

RING_ONE: tuple[HexCoord, ...] = (
    HexCoord(0, -1),
    HexCoord(1, -1),
    HexCoord(1, 0),
    HexCoord(0, 1),
    HexCoord(-1, 1),
    HexCoord(-1, 0),
)

RING_TWO: tuple[HexCoord, ...] = (
    HexCoord(0, -2),
    HexCoord(1, -2),
    HexCoord(2, -2),
    HexCoord(2, -1),
    HexCoord(2, 0),
    HexCoord(1, 1),
    HexCoord(0, 2),
    HexCoord(-1, 2),
    HexCoord(-2, 2),
    HexCoord(-2, 1),
    HexCoord(-2, 0),
    HexCoord(-1, -1),
)


@dataclass(frozen=True)
class HexArt:
    rings: int
    hexes: dict[HexCoord, str]
    fingerprint: str
    legend: tuple[tuple[str, str], ...] = ()
    raw_lines: tuple[str, ...] = field(default=(), compare=False)

    def terrain_at(self, coord: HexCoord) -> str:
        return terrain_for_glyph(self.hexes.get(coord, UNKNOWN_GLYPH))


@dataclass(frozen=True)
class _Cell:
    top_line: int
    bottom_line: int
    column: int
    coord: HexCoord


def _strip_landmark_suffix(line: str) -> str:
    """Drop legend text printed to the right of the art."""
    stripped = LANDMARK_SUFFIX_RE.sub("", line)
    if stripped != line:
        return stripped
    stripped = CONTINUATION_SUFFIX_RE.sub("", line)
    if stripped != line:
        return stripped

    # Short-gap continuations such as "\     water." only differ from terrain
    # spill by containing letters that are not terrain glyphs.
    last_struct = max(line.rfind("/"), line.rfind("\\"))
    if last_struct > 0:
        match = TRAILING_WORD_RE.match(line[last_struct + 1 :])
        if match and NON_TERRAIN_LETTER_RE.search(match.group(2)):
            return line[: last_struct + 1]
    return line


def _clean(line: str) -> str:
    return _strip_landmark_suffix(line.rstrip("\r"))


def is_hex_art_line(line: str) -> bool:
    cleaned = _clean(line)
    if BORDER_RE.search(cleaned):
        return True

    trimmed = cleaned.strip()
    if not trimmed:
        return False

    first, last = trimmed[0], trimmed[-1]
    if first in STRUCTURAL_CHARS and last in STRUCTURAL_CHARS:
        return True
    if first in EDGE_CHARS and last in EDGE_CHARS and len(trimmed) >= 5:
        return True
    if len(trimmed) <= 12 and ("/" in trimmed or "\\" in trimmed):
        return True

    # Terrain from the rightmost cell can spill past its last wall.
    if first in STRUCTURAL_CHARS:
        last_struct = max(trimmed.rfind(char) for char in STRUCTURAL_CHARS)
        trailing = trimmed[last_struct + 1 :]
        if len(trailing) <= 8 and TERRAIN_SPILL_RE.match(trailing):
            return True

    return False


def _find_borders(lines: list[str]) -> list[tuple[int, int]]:
    borders: list[tuple[int, int]] = []
    for line_index, line in enumerate(lines):
        for match in BORDER_RE.finditer(line):
            borders.append((line_index, match.start()))

    if len(borders) >= 2:
        return borders

    for line_index, line in enumerate(lines):
        for match in RELAXED_BORDER_RE.finditer(line):
            duplicate = any(
                existing_line == line_index and abs(existing_col - match.start()) <= 1
                for existing_line, existing_col in borders
            )
            if not duplicate:
                borders.append((line_index, match.start()))
    return borders


def _group_by_column(borders: list[tuple[int, int]]) -> dict[int, list[int]]:
    groups: dict[int, list[int]] = {}
    for line_index, column in borders:
        for group_column, group_lines in groups.items():
            if abs(column - group_column) <= 1:
                group_lines.append(line_index)
                break
        else:
            groups[column] = [line_index]
    for group_lines in groups.values():
        group_lines.sort()
    return groups


def _ring_count(column_count: int) -> int:
    if column_count <= 1:
        return 0
    if column_count <= 3:
        return 1
    return MAX_RINGS


def _r_range(q: int, rings: int) -> tuple[int, int]:
    return (max(-rings, -rings - q), min(rings, rings - q))


def _assign_cells(groups: dict[int, list[int]], rings: int) -> list[_Cell]:
    columns = sorted(groups.items())
    if not columns:
        return []

    # The center column holds the most cells and therefore the most borders.
    center_index = 0
    most_borders = 0
    for index, (_, border_lines) in enumerate(columns):
        if len(border_lines) > most_borders:
            most_borders = len(border_lines)
            center_index = index

    cells: list[_Cell] = []
    for index, (column, border_lines) in enumerate(columns):
        q = index - center_index
        r_min, r_max = _r_range(q, rings)
        for offset in range(len(border_lines) - 1):
            r = r_min + offset
            if r > r_max:
                break
            cells.append(
                _Cell(
                    top_line=border_lines[offset],
                    bottom_line=border_lines[offset + 1],
                    column=column,
                    coord=HexCoord(q, r),
                )
            )
    return cells


def _cell_glyph(cell: _Cell, lines: list[str]) -> str:
    counts: Counter[str] = Counter()
    for line_index in range(cell.top_line + 1, min(cell.bottom_line, len(lines))):
        line = lines[line_index]
        for column in range(max(cell.column - 1, 0), min(cell.column + 6, len(line))):
            char = line[column]
            if char in TERRAIN_GLYPHS:
                counts[char] += 1
    if not counts:
        return UNKNOWN_GLYPH
    # Counter preserves first-seen order, so ties go to the earliest glyph.
    return counts.most_common(1)[0][0]


def _parse_legend(lines: list[str]) -> tuple[tuple[str, str], ...]:
    legend: list[tuple[str, str]] = []
    for line in lines:
        match = LEGEND_RE.search(line)
        if match:
            legend.append((match.group(1), match.group(2).strip()))
    return tuple(legend)


def generate_fingerprint(rings: int, hexes: dict[HexCoord, str]) -> str:
    """Ordered glyph signature: center, ring 1 then ring 2, clockwise from north."""
    parts = [hexes.get(HexCoord(0, 0), UNKNOWN_GLYPH)]
    if rings >= 1:
        parts.append("".join(hexes.get(coord, UNKNOWN_GLYPH) for coord in RING_ONE))
    if rings >= 2:
        parts.append("".join(hexes.get(coord, UNKNOWN_GLYPH) for coord in RING_TWO))
    return FINGERPRINT_SEPARATOR.join(parts)


def fingerprint_prefix(fingerprint: str) -> str | None:
    """Center plus first ring, shared by full and partially rendered art."""
    parts = fingerprint.split(FINGERPRINT_SEPARATOR)
    if len(parts) < 2:
        return None
    return FINGERPRINT_SEPARATOR.join(parts[:2])


def fingerprint_rings(fingerprint: str) -> int:
    return fingerprint.count(FINGERPRINT_SEPARATOR)


def fingerprint_known_cells(fingerprint: str) -> int:
    cells = fingerprint.replace(FINGERPRINT_SEPARATOR, "")
    return len(cells) - cells.count(UNKNOWN_GLYPH)


def is_richer_fingerprint(candidate: str, current: str | None) -> bool:
    """True when ``candidate`` shows at least as much of the hex as ``current``.

    Dim light and partial rendering shrink the art; such a view must not
    replace the signature the room is indexed under.
    """
    if not current:
        return True
    return fingerprint_rings(candidate) >= fingerprint_rings(current) and fingerprint_known_cells(
        candidate
    ) >= fingerprint_known_cells(current)


def decode_hex_art(art_lines: list[str]) -> HexArt | None:
    """Decode an art block, or return None when it does not hold a usable grid."""
    if len(art_lines) < MIN_ART_LINES:
        return None

    lines = [line.rstrip("\r") for line in art_lines]
    cleaned = [_strip_landmark_suffix(line) for line in lines]

    borders = _find_borders(cleaned)
    if len(borders) < 2:
        return None

    groups = _group_by_column(borders)
    rings = _ring_count(len(groups))
    cells = _assign_cells(groups, rings)
    if not cells:
        return None

    hexes = {cell.coord: _cell_glyph(cell, cleaned) for cell in cells}
    return HexArt(
        rings=rings,
        hexes=hexes,
        fingerprint=generate_fingerprint(rings, hexes),
        legend=_parse_legend(lines),
        raw_lines=tuple(lines),
    )


def extract_hex_art_lines(lines: list[str], start_index: int) -> list[str] | None:
    """Collect the art block following a survey trigger at ``start_index``."""
    index = start_index + 1

    # Weather and status messages can sit between the trigger and the art.
    skipped = 0
    while index < len(lines) and skipped < 4:
        stripped = lines[index].rstrip("\r").strip()
        is_noise = not is_hex_art_line(lines[index]) and len(stripped) < 40 and "-----" not in stripped
        if stripped == "" or is_noise:
            index += 1
            skipped += 1
        else:
            break

    art_lines: list[str] = []
    while index < len(lines):
        line = lines[index].rstrip("\r")
        if is_hex_art_line(line):
            art_lines.append(line)
        elif line.strip() == "" and 0 < len(art_lines) < 3:
            art_lines.append(line)
        else:
            break
        index += 1

    return art_lines if len(art_lines) >= MIN_ART_LINES else None
