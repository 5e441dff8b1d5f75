from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING, Any

from mazed.sim.maze import MazeInstance
from mazed.sim.rng import hash_string

if TYPE_CHECKING:
    from mazed.sim.session import GameSession

CHECKSUM_LENGTH = 6
_BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value > 0:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def make_checksum(payload: str) -> str:
    value = int(hash_string(payload), 16)
    return _to_base36(value).rjust(CHECKSUM_LENGTH, "0")[:CHECKSUM_LENGTH]


def _canonical_digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def maze_hash(maze: MazeInstance, *, include_fog: bool = False) -> str:
    payload = maze.to_dict()
    if not include_fog:
        payload.pop("explored", None)
        payload.pop("visible", None)
    return _canonical_digest(payload)


def session_hash(session: GameSession) -> str:
    maze = session.maze
    payload = {
        "progress": session.to_save_state().to_dict(),
        "level": session.current_level,
        "player_tile": session.player_tile.to_dict() if session.player_tile is not None else None,
        "maze": maze.to_dict() if maze is not None else None,
        "hazards": [hazard.to_dict() for hazard in session.hazard_runtime.hazards()],
        "items": [spawn.to_dict() for spawn in session.item_registry.spawns()],
        "cached_levels": sorted(session.network.levels()),
    }
    return _canonical_digest(payload)
