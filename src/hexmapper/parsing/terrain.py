"""Terrain vocabulary shared by the hex art decoder and the room parser.

Wilderness hexes are classified twice: once from the glyph drawn inside the
hex art, once from keywords in the description sentence. Both map onto the
same terrain names that are persisted with every room.
"""

from __future__ import annotations

import re

TERRAIN_TYPES = (
    "plains",
    "mountains",
    "water",
    "ocean",
    "farmland",
    "woods",
    "hills",
    "swamp",
    "desert",
    "wasteland",
    "snow",
    "unknown",
)

UNKNOWN_TERRAIN = "unknown"
UNKNOWN_GLYPH = "?"

TERRAIN_GLYPHS: dict[str, str] = {
    ".": "plains",
    "^": "mountains",
    "~": "water",
    '"': "farmland",
    "w": "woods",
    "h": "hills",
    "s": "swamp",
    "-": "desert",
    "x": "wasteland",
}

TERRAIN_LABELS: dict[str, str] = {
    "plains": "Plains",
    "mountains": "Mtns",
    "water": "Water",
    "ocean": "Ocean",
    "farmland": "Farm",
    "woods": "Woods",
    "hills": "Hills",
    "swamp": "Swamp",
    "desert": "Desert",
    "wasteland": "Waste",
    "snow": "Snow",
    "unknown": "?",
}

# First match wins. Saved maps were classified with this exact precedence,
# so categories must not be reordered.
TERRAIN_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), terrain)
    for pattern, terrain in (
        (r"\bocean\b", "ocean"),
        (r"\bsea\b", "ocean"),
        (r"\bwater\b", "water"),
        (r"\briver\b", "water"),
        (r"\blake\b", "water"),
        (r"\bstream\b", "water"),
        (r"\bmountain", "mountains"),
        (r"\bpeak\b", "mountains"),
        (r"\bcrag\b", "mountains"),
        (r"\bcliff\b", "mountains"),
        (r"\bwood", "woods"),
        (r"\bforest", "woods"),
        (r"\btree", "woods"),
        (r"\bthicket", "woods"),
        (r"\bhill", "hills"),
        (r"\brolling\b", "hills"),
        (r"\bswamp", "swamp"),
        (r"\bbog\b", "swamp"),
        (r"\bmarsh", "swamp"),
        (r"\bfarm", "farmland"),
        (r"\bcrop", "farmland"),
        (r"\bfield\b.*\b(?:wheat|grain|corn|barley)", "farmland"),
        (r"\bplowed\b", "farmland"),
        (r"\bdesert", "desert"),
        (r"\bsand\b", "desert"),
        (r"\bdune", "desert"),
        (r"\barid\b", "desert"),
        (r"\bwasteland", "wasteland"),
        (r"\bbarren\b", "wasteland"),
        (r"\bdesolat", "wasteland"),
        (r"\bsnow", "snow"),
        (r"\bfrozen\b", "snow"),
        (r"\bice\b", "snow"),
        (r"\btundra", "snow"),
        (r"\bplain", "plains"),
        (r"\bgrassland", "plains"),
        (r"\bmeadow", "plains"),
        (r"\bprairie", "plains"),
        (r"\bopen\s+(?:field|ground|terrain)", "plains"),
    )
)


def classify_terrain(description: str) -> str:
    for pattern, terrain in TERRAIN_PATTERNS:
        if pattern.search(description):
            return terrain
    return UNKNOWN_TERRAIN


def terrain_for_glyph(glyph: str) -> str:
    return TERRAIN_GLYPHS.get(glyph, UNKNOWN_TERRAIN)


def terrain_label(terrain: str) -> str:
    return TERRAIN_LABELS.get(terrain, TERRAIN_LABELS[UNKNOWN_TERRAIN])
