import itertools

import pytest

from hexmapper.mapping.hexmath import (
    COMPASS_DIRECTIONS,
    HexCoord,
    apply_direction,
    coord_key,
    direction_label,
    direction_offset,
    hex_corners,
    hex_distance,
    hex_to_pixel,
    opposite_direction,
    parse_direction,
    pixel_to_hex,
)


def test_apply_then_opposite_returns_to_start() -> None:
    for coord in (HexCoord(0, 0), HexCoord(3, -7), HexCoord(-12, 5)):
        for direction in COMPASS_DIRECTIONS:
            moved = apply_direction(coord, direction)
            assert moved != coord
            assert apply_direction(moved, opposite_direction(direction)) == coord


def test_opposite_direction_is_an_involution_over_all_six() -> None:
    opposites = {opposite_direction(direction) for direction in COMPASS_DIRECTIONS}

    assert opposites == set(COMPASS_DIRECTIONS)
    for direction in COMPASS_DIRECTIONS:
        assert opposite_direction(opposite_direction(direction)) == direction


def test_direction_offsets_match_flat_top_layout() -> None:
    assert direction_offset("n") == (0, -1)
    assert direction_offset("s") == (0, 1)
    assert direction_offset("ne") == (1, -1)
    assert direction_offset("sw") == (-1, 1)
    assert direction_offset("se") == (1, 0)
    assert direction_offset("nw") == (-1, 0)


def test_every_direction_is_a_single_hex_step() -> None:
    for direction in COMPASS_DIRECTIONS:
        assert hex_distance(HexCoord(0, 0), apply_direction(HexCoord(0, 0), direction)) == 1


def test_parse_direction_accepts_words_and_abbreviations() -> None:
    assert parse_direction("north") == "n"
    assert parse_direction("  SouthWest ") == "sw"
    assert parse_direction("ne") == "ne"
    assert parse_direction("east") is None
    assert parse_direction("west") is None
    assert parse_direction("look") is None
    assert parse_direction("") is None


def test_unknown_direction_raises() -> None:
    with pytest.raises(ValueError, match="unknown hex direction"):
        apply_direction(HexCoord(0, 0), "e")  # type: ignore[arg-type]


def test_coord_key_is_injective_over_a_window() -> None:
    coords = [HexCoord(q, r) for q, r in itertools.product(range(-15, 16), repeat=2)]
    keys = {coord_key(coord) for coord in coords}

    assert len(keys) == len(coords)
    assert coord_key(HexCoord(1, 23)) != coord_key(HexCoord(12, 3))


def test_pixel_round_trip_recovers_hex() -> None:
    for q, r in itertools.product(range(-6, 7), repeat=2):
        coord = HexCoord(q, r)
        x, y = hex_to_pixel(coord, 20.0)
        assert pixel_to_hex(x, y, 20.0) == coord
        assert pixel_to_hex(x + 4.0, y - 3.0, 20.0) == coord


def test_pixel_to_hex_rounding_keeps_cube_constraint() -> None:
    coord = pixel_to_hex(17.3, 9.1, 10.0)

    assert coord.q + coord.r + coord.s == 0


def test_hex_corners_are_size_away_from_center() -> None:
    corners = hex_corners(5.0, -2.0, 10.0)

    assert len(corners) == 6
    for x, y in corners:
        assert ((x - 5.0) ** 2 + (y + 2.0) ** 2) ** 0.5 == pytest.approx(10.0)


def test_direction_label() -> None:
    assert direction_label("nw") == "NW"
