from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Literal

Direction = Literal["n", "ne", "se", "s", "sw", "nw"]

# Clockwise from north. Path search and fingerprint ring order both rely on it.
COMPASS_DIRECTIONS: tuple[Direction, ...] = ("n", "ne", "se", "s", "sw", "nw")

DIRECTION_ALIASES: dict[str, Direction] = {
    "north": "n",
    "south": "s",
    "northeast": "ne",
    "northwest": "nw",
    "southeast": "se",
    "southwest": "sw",
    "n": "n",
    "s": "s",
    "ne": "ne",
    "nw": "nw",
    "se": "se",
    "sw": "sw",
}

DIRECTION_OFFSETS: dict[Direction, tuple[int, int]] = {
    "n": (0, -1),
    "s": (0, 1),
    "ne": (1, -1),
    "sw": (-1, 1),
    "se": (1, 0),
    "nw": (-1, 0),
}

OPPOSITE_DIRECTIONS: dict[Direction, Direction] = {
    "n": "s",
    "s": "n",
    "ne": "sw",
    "sw": "ne",
    "nw": "se",
    "se": "nw",
}

SQRT3 = math.sqrt(3.0)


@dataclass(frozen=True, order=True)
class HexCoord:
    """Axial hex coordinate (q, r) on a flat-top grid."""

    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def to_dict(self) -> dict[str, int]:
        return {"q": self.q, "r": self.r}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HexCoord":
        return cls(q=int(data["q"]), r=int(data["r"]))


ORIGIN = HexCoord(0, 0)


def parse_direction(text: str) -> Direction | None:
    return DIRECTION_ALIASES.get(text.strip().lower())


def _require_direction(direction: str) -> Direction:
    if direction not in DIRECTION_OFFSETS:
        raise ValueError(f"unknown hex direction: {direction!r}")
    return direction  # type: ignore[return-value]


def direction_offset(direction: Direction) -> tuple[int, int]:
    return DIRECTION_OFFSETS[_require_direction(direction)]


def opposite_direction(direction: Direction) -> Direction:
    return OPPOSITE_DIRECTIONS[_require_direction(direction)]


def apply_direction(coord: HexCoord, direction: Direction) -> HexCoord:
    dq, dr = direction_offset(direction)
    return HexCoord(coord.q + dq, coord.r + dr)


def coord_key(coord: HexCoord) -> str:
    return f"{coord.q},{coord.r}"


def direction_label(direction: Direction) -> str:
    return _require_direction(direction).upper()


def hex_distance(a: HexCoord, b: HexCoord) -> int:
    dq = a.q - b.q
    dr = a.r - b.r
    ds = a.s - b.s
    return int((abs(dq) + abs(dr) + abs(ds)) / 2)


def hex_to_pixel(coord: HexCoord, size: float) -> tuple[float, float]:
    """Flat-top axial to the pixel position of the hex center."""
    x = size * 1.5 * coord.q
    y = size * (SQRT3 / 2.0 * coord.q + SQRT3 * coord.r)
    return (x, y)


def pixel_to_hex(x: float, y: float, size: float) -> HexCoord:
    if size <= 0:
        raise ValueError("size must be > 0")
    q = (2.0 / 3.0 * x) / size
    r = (-1.0 / 3.0 * x + SQRT3 / 3.0 * y) / size
    return hex_round(q, r)


def hex_round(q: float, r: float) -> HexCoord:
    s = -q - r
    rq = round(q)
    rr = round(r)
    rs = round(s)

    dq = abs(rq - q)
    dr = abs(rr - r)
    ds = abs(rs - s)

    # The component with the largest rounding error is rebuilt from the other two.
    if dq > dr and dq > ds:
        rq = -rr - rs
    elif dr > ds:
        rr = -rq - rs

    return HexCoord(int(rq), int(rr))


def hex_corners(cx: float, cy: float, size: float) -> list[tuple[float, float]]:
    corners: list[tuple[float, float]] = []
    for index in range(6):
        angle = math.radians(60 * index)
        corners.append((cx + size * math.cos(angle), cy + size * math.sin(angle)))
    return corners
