from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Protocol

from hexmapper.config import TrackerConfig
from hexmapper.mapping.graph import MapGraph, deserialize_graph, serialize_graph

log = logging.getLogger(__name__)

MAP_DATA_KEY = "mapData"
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")


class DataStore(Protocol):
    """Key/value store addressed by file name, as provided by the host app."""

    async def get(self, filename: str, key: str) -> Any | None: ...

    async def set(self, filename: str, key: str, value: Any) -> None: ...

    async def save(self, filename: str) -> None: ...


def map_filename(character: str) -> str:
    return f"map-{character.lower()}.json"


def _canonical_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _write_atomic_json(path: str | Path, payload: dict[str, Any]) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    serialized = _canonical_json(payload)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_file.write(serialized)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def _read_json_object(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path.name} must contain a JSON object")
    return payload


def save_map_json(path: str | Path, graph: MapGraph) -> None:
    _write_atomic_json(path, serialize_graph(graph))


def load_map_json(path: str | Path) -> MapGraph:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return deserialize_graph(payload)


class JsonFileDataStore:
    """DataStore backed by one JSON object per file inside ``root``.

    Values are cached after the first read; ``set`` only touches the cache
    and ``save`` writes the whole file atomically.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._cache: dict[str, dict[str, Any]] = {}

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "JsonFileDataStore":
        return cls(config.data_dir)

    def _path(self, filename: str) -> Path:
        name = Path(filename).name
        if not name or name != filename:
            raise ValueError(f"invalid data file name: {filename!r}")
        return self.root / name

    async def _load(self, filename: str) -> dict[str, Any]:
        cached = self._cache.get(filename)
        if cached is None:
            path = self._path(filename)
            try:
                cached = await asyncio.to_thread(_read_json_object, path)
            except ValueError:
                # The next save overwrites the damaged file.
                log.warning("unreadable data file %s; treating it as empty", path, exc_info=True)
                cached = {}
            self._cache[filename] = cached
        return cached

    async def get(self, filename: str, key: str) -> Any | None:
        return (await self._load(filename)).get(key)

    async def set(self, filename: str, key: str, value: Any) -> None:
        (await self._load(filename))[key] = value

    async def save(self, filename: str) -> None:
        payload = dict(await self._load(filename))
        await asyncio.to_thread(_write_atomic_json, self._path(filename), payload)
