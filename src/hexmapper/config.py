"""Tracker configuration utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class TrackerConfig:
    data_dir: str = "data"
    save_debounce_seconds: float = 2.0
    pending_max_age_seconds: float = 10.0
    art_line_limit: int = 30
    description_line_limit: int = 12

    def __post_init__(self) -> None:
        if self.save_debounce_seconds < 0:
            raise ValueError("save_debounce_seconds must be >= 0")
        if self.pending_max_age_seconds <= 0:
            raise ValueError("pending_max_age_seconds must be > 0")
        if self.art_line_limit <= 0 or self.description_line_limit <= 0:
            raise ValueError("parser line limits must be > 0")

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        return cls(
            data_dir=os.getenv("HEXMAPPER_DATA_DIR", "data"),
            save_debounce_seconds=_env_float("HEXMAPPER_SAVE_DEBOUNCE", 2.0),
            pending_max_age_seconds=_env_float("HEXMAPPER_PENDING_MAX_AGE", 10.0),
        )


__all__ = ["TrackerConfig"]
