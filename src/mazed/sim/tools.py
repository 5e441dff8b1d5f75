from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from mazed.sim.items import (
    MAP_FRAGMENT_REVEAL_FRACTION,
    TOOL_COMPASS,
    TOOL_DEFINITIONS,
    TOOL_MAP_FRAGMENT,
    is_tool_id,
)


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ToolExpired:
    tool_id: str


class ToolRuntime:
    """Active tool slot with expiry measured against an injectable millisecond clock."""

    def __init__(self, now_provider: Callable[[], int] = wall_clock_ms) -> None:
        self._now = now_provider
        self.active_tool_id: str | None = None
        self.active_tool_expiry: int | None = None

    def sync_from_state(self, active_tool_id: str | None, active_tool_expiry: int | None) -> None:
        if active_tool_id is not None and not is_tool_id(active_tool_id):
            raise ValueError(f"unknown tool id: {active_tool_id}")
        self.active_tool_id = active_tool_id
        self.active_tool_expiry = active_tool_expiry if active_tool_id is not None else None

    def equip(self, tool_id: str) -> None:
        if not is_tool_id(tool_id):
            raise ValueError(f"unknown tool id: {tool_id}")
        definition = TOOL_DEFINITIONS[tool_id]
        self.active_tool_id = tool_id
        if definition.duration_ms is None:
            self.active_tool_expiry = None
        else:
            self.active_tool_expiry = self._now() + definition.duration_ms

    def unequip(self) -> None:
        self.active_tool_id = None
        self.active_tool_expiry = None

    def consume_active_one_shot(self) -> str | None:
        if self.active_tool_id is None or not TOOL_DEFINITIONS[self.active_tool_id].one_shot:
            return None
        consumed = self.active_tool_id
        self.unequip()
        return consumed

    def update(self) -> ToolExpired | None:
        if self.active_tool_id is None or self.active_tool_expiry is None:
            return None
        if self._now() < self.active_tool_expiry:
            return None
        expired = self.active_tool_id
        self.unequip()
        return ToolExpired(tool_id=expired)

    def visibility_bonus(self) -> int:
        if self.active_tool_id is None:
            return 0
        return TOOL_DEFINITIONS[self.active_tool_id].visibility_bonus

    def speed_multiplier(self) -> float:
        if self.active_tool_id is None:
            return 1.0
        return TOOL_DEFINITIONS[self.active_tool_id].speed_multiplier

    def compass_active(self) -> bool:
        return self.active_tool_id == TOOL_COMPASS

    def map_reveal_fraction(self) -> float:
        return MAP_FRAGMENT_REVEAL_FRACTION if self.active_tool_id == TOOL_MAP_FRAGMENT else 0.0
