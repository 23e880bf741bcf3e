from __future__ import annotations

import argparse
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from hexmapper.parsing.hex_art import decode_hex_art, extract_hex_art_lines
from hexmapper.parsing.room_parser import SURVEY_TRIGGER
from hexmapper.parsing.terrain import terrain_for_glyph

FAILURE_PRINT_LIMIT = 10


@dataclass(frozen=True)
class SurveyResult:
    source: str
    line_number: int
    art_line_count: int
    rings: int | None
    fingerprint: str | None
    glyphs: tuple[str, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def survey_lines(lines: Sequence[str], source: str) -> list[SurveyResult]:
    results: list[SurveyResult] = []
    line_list = list(lines)
    for index, line in enumerate(line_list):
        if SURVEY_TRIGGER not in line:
            continue
        art_lines = extract_hex_art_lines(line_list, index)
        if art_lines is None:
            results.append(
                SurveyResult(source, index + 1, 0, None, None, error="no hex art after survey trigger")
            )
            continue
        art = decode_hex_art(art_lines)
        if art is None:
            results.append(
                SurveyResult(
                    source,
                    index + 1,
                    len(art_lines),
                    None,
                    None,
                    error=f"failed to decode {len(art_lines)}-line hex art",
                )
            )
            continue
        results.append(
            SurveyResult(
                source,
                index + 1,
                len(art_lines),
                art.rings,
                art.fingerprint,
                glyphs=tuple(art.hexes.values()),
            )
        )
    return results


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hexmapper-art-survey",
        description="Decode every survey in captured MUD logs and report hex art statistics.",
    )
    parser.add_argument("log_paths", nargs="+", help="Captured session logs")
    parser.add_argument("--verbose", action="store_true", help="Print every decoded survey")
    parser.add_argument("--limit", type=int, default=None, help="Only read the last N logs")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    paths = sorted(Path(value) for value in args.log_paths)
    if args.limit is not None:
        if args.limit <= 0:
            print("error: --limit must be > 0")
            return 2
        paths = paths[-args.limit :]

    results: list[SurveyResult] = []
    for path in paths:
        if not path.exists():
            print(f"error: log not found path={path}")
            return 2
        lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
        results.extend(survey_lines(lines, path.name))

    decoded = [result for result in results if result.ok]
    failures = [result for result in results if not result.ok]
    print(f"surveys={len(results)} decoded={len(decoded)} failed={len(failures)}")

    rings = Counter(result.rings for result in decoded)
    for ring_count in sorted(rings):
        print(f"rings.{ring_count}={rings[ring_count]}")

    terrains = Counter(terrain_for_glyph(glyph) for result in decoded for glyph in result.glyphs)
    for terrain, count in sorted(terrains.items(), key=lambda item: (-item[1], item[0])):
        print(f"terrain.{terrain}={count}")

    print(f"unique_fingerprints={len({result.fingerprint for result in decoded})}")

    if args.verbose:
        for result in decoded:
            print(f"ok {result.source}:{result.line_number} rings={result.rings} fingerprint={result.fingerprint}")
    for result in failures[:FAILURE_PRINT_LIMIT]:
        print(f"fail {result.source}:{result.line_number} {result.error} art_lines={result.art_line_count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
