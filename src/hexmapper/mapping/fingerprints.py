from __future__ import annotations

from dataclasses import dataclass, field

from hexmapper.mapping.graph import MapGraph
from hexmapper.parsing.hex_art import fingerprint_prefix, fingerprint_rings


@dataclass(frozen=True)
class FingerprintMatch:
    room_id: str
    exact: bool


@dataclass
class FingerprintIndex:
    """Exact and prefix lookups from hex art fingerprints to room ids.

    A key shared by several rooms is ambiguous and never matches. Open
    terrain repeats the same art a lot, and a guess there would re-anchor the
    player to the wrong hex. Center-only fingerprints are too common to index.
    """

    exact: dict[str, set[str]] = field(default_factory=dict)
    prefix: dict[str, set[str]] = field(default_factory=dict)

    def index_fingerprint(self, fingerprint: str | None, room_id: str) -> None:
        if not fingerprint or fingerprint_rings(fingerprint) < 1:
            return
        self.exact.setdefault(fingerprint, set()).add(room_id)
        short = fingerprint_prefix(fingerprint)
        if short is not None:
            self.prefix.setdefault(short, set()).add(room_id)

    def deindex_fingerprint(self, fingerprint: str | None, room_id: str) -> None:
        if not fingerprint:
            return
        _discard(self.exact, fingerprint, room_id)
        short = fingerprint_prefix(fingerprint)
        if short is not None:
            _discard(self.prefix, short, room_id)

    def lookup(self, fingerprint: str | None) -> FingerprintMatch | None:
        if not fingerprint or fingerprint_rings(fingerprint) < 1:
            return None

        exact_ids = self.exact.get(fingerprint)
        if exact_ids:
            if len(exact_ids) == 1:
                return FingerprintMatch(room_id=next(iter(exact_ids)), exact=True)
            return None

        short = fingerprint_prefix(fingerprint)
        prefix_ids = self.prefix.get(short) if short is not None else None
        if prefix_ids and len(prefix_ids) == 1:
            return FingerprintMatch(room_id=next(iter(prefix_ids)), exact=False)
        return None

    def __len__(self) -> int:
        return len(self.exact)


def _discard(table: dict[str, set[str]], key: str, room_id: str) -> None:
    room_ids = table.get(key)
    if room_ids is None:
        return
    room_ids.discard(room_id)
    if not room_ids:
        del table[key]


def build_fingerprint_index(graph: MapGraph) -> FingerprintIndex:
    index = FingerprintIndex()
    for room in graph.rooms.values():
        index.index_fingerprint(room.fingerprint, room.id)
    return index
