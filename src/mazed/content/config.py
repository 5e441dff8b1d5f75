from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mazed.sim.hazards import DEFAULT_CLOSE_DELAY_SECONDS
from mazed.sim.items import DEFAULT_WAYFINDER_MAX_LEVEL, DEFAULT_WAYFINDER_MIN_LEVEL

GAME_CONFIG_SCHEMA_VERSION = 1
DEFAULT_GAME_CONFIG_PATH = "content/config/game_config.json"
DEFAULT_VISIBILITY_RADIUS = 3


@dataclass(frozen=True)
class GameConfig:
    visibility_radius: int = DEFAULT_VISIBILITY_RADIUS
    wayfinder_min_level: int = DEFAULT_WAYFINDER_MIN_LEVEL
    wayfinder_max_level: int = DEFAULT_WAYFINDER_MAX_LEVEL
    pressure_door_close_delay_seconds: float = DEFAULT_CLOSE_DELAY_SECONDS

    def __post_init__(self) -> None:
        for field_name in ("visibility_radius", "wayfinder_min_level", "wayfinder_max_level"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"config.{field_name} must be an integer")
        if self.visibility_radius < 0:
            raise ValueError("config.visibility_radius must be >= 0")
        if self.wayfinder_min_level < 1 or self.wayfinder_max_level < 1:
            raise ValueError("config.wayfinder levels must be >= 1")
        delay = self.pressure_door_close_delay_seconds
        if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
            raise ValueError("config.pressure_door_close_delay_seconds must be a non-negative number")
        object.__setattr__(self, "pressure_door_close_delay_seconds", float(delay))

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": GAME_CONFIG_SCHEMA_VERSION,
            "visibility_radius": self.visibility_radius,
            "wayfinder_min_level": self.wayfinder_min_level,
            "wayfinder_max_level": self.wayfinder_max_level,
            "pressure_door_close_delay_seconds": self.pressure_door_close_delay_seconds,
        }


def load_game_config_json(path: str | Path) -> GameConfig:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return _config_from_payload(payload)


def resolve_game_config(path: str | Path | None) -> GameConfig:
    """Explicit path, else the bundled default file when present, else built-in defaults."""
    if path is not None:
        return load_game_config_json(path)
    if Path(DEFAULT_GAME_CONFIG_PATH).exists():
        return load_game_config_json(DEFAULT_GAME_CONFIG_PATH)
    return GameConfig()


def _config_from_payload(payload: Any) -> GameConfig:
    if not isinstance(payload, dict):
        raise ValueError("game config payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("game config must contain integer field: schema_version")
    if schema_version != GAME_CONFIG_SCHEMA_VERSION:
        raise ValueError(f"unsupported game config schema_version: {schema_version}")

    known = {"schema_version", "visibility_radius", "wayfinder_min_level", "wayfinder_max_level",
             "pressure_door_close_delay_seconds"}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ValueError(f"game config has unknown fields: {unknown}")

    defaults = GameConfig()
    return GameConfig(
        visibility_radius=payload.get("visibility_radius", defaults.visibility_radius),
        wayfinder_min_level=payload.get("wayfinder_min_level", defaults.wayfinder_min_level),
        wayfinder_max_level=payload.get("wayfinder_max_level", defaults.wayfinder_max_level),
        pressure_door_close_delay_seconds=payload.get(
            "pressure_door_close_delay_seconds", defaults.pressure_door_close_delay_seconds
        ),
    )
