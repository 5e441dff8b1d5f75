from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Callable

from mazed.sim.hazards import (
    Hazard,
    LockedDoorHazard,
    OneWayDoorHazard,
    PressurePlateDoorHazard,
    PressurePlateHazard,
)
from mazed.sim.maze import TilePoint

logger = logging.getLogger(__name__)


def _no_key() -> None:
    return None


@dataclass
class TraversalContext:
    """Caller-owned key capability; the runtime calls back when a key is spent."""

    has_skeleton_key: bool = False
    consume_skeleton_key: Callable[[], None] = _no_key


@dataclass(frozen=True)
class DoorTransition:
    hazard_id: str
    open: bool

    def to_dict(self) -> dict[str, object]:
        return {"hazard_id": self.hazard_id, "open": self.open}


class HazardRuntime:
    """Per-level door and plate state, rebuilt on every level load."""

    def __init__(self) -> None:
        self._by_id: dict[str, Hazard] = {}
        self._by_tile: dict[TilePoint, Hazard] = {}
        self._player_tile: TilePoint | None = None
        self._pending: list[DoorTransition] = []

    def load_maze(self, hazards: list[Hazard] | None) -> None:
        self._by_id.clear()
        self._by_tile.clear()
        self._player_tile = None
        self._pending = []
        for hazard in hazards or []:
            runtime_copy = copy.deepcopy(hazard)
            if runtime_copy.hazard_id in self._by_id:
                raise ValueError(f"duplicate hazard id: {runtime_copy.hazard_id}")
            self._by_id[runtime_copy.hazard_id] = runtime_copy
            self._by_tile[runtime_copy.tile] = runtime_copy

        for hazard in self._by_id.values():
            if isinstance(hazard, PressurePlateHazard):
                linked = self._by_id.get(hazard.linked_door_id)
                if not isinstance(linked, PressurePlateDoorHazard):
                    raise ValueError(f"pressure plate {hazard.hazard_id} links to unknown door {hazard.linked_door_id}")

    def hazards(self) -> list[Hazard]:
        return list(self._by_id.values())

    def get_hazard(self, hazard_id: str) -> Hazard | None:
        return self._by_id.get(hazard_id)

    def get_hazard_at_tile(self, x: int, y: int) -> Hazard | None:
        return self._by_tile.get(TilePoint(x, y))

    def check_pass_through(
        self,
        from_tile: TilePoint,
        to_tile: TilePoint,
        direction: str,
        context: TraversalContext | None = None,
    ) -> bool:
        if from_tile == to_tile:
            return True

        hazard = self._by_tile.get(to_tile)
        if hazard is None:
            return True

        if isinstance(hazard, OneWayDoorHazard):
            return hazard.allowed_direction == direction

        if isinstance(hazard, LockedDoorHazard):
            if hazard.is_open or not hazard.requires_key:
                return True
            if context is None or not context.has_skeleton_key:
                return False
            hazard.is_open = True
            context.consume_skeleton_key()
            self._pending.append(DoorTransition(hazard_id=hazard.hazard_id, open=True))
            logger.debug("locked door %s opened with a skeleton key", hazard.hazard_id)
            return True

        if isinstance(hazard, PressurePlateDoorHazard):
            return hazard.is_open

        return True

    def update(self, dt_seconds: float, player_tile: TilePoint | None) -> list[DoorTransition]:
        if dt_seconds < 0:
            raise ValueError("dt_seconds must be >= 0")

        transitions = self._pending
        self._pending = []

        if player_tile != self._player_tile:
            previous = self._player_tile
            self._player_tile = player_tile
            if previous is not None:
                self._leave_tile(previous)
            if player_tile is not None:
                self._enter_tile(player_tile, transitions)

        for hazard in self._by_id.values():
            if not isinstance(hazard, PressurePlateDoorHazard) or hazard.close_timer_seconds is None:
                continue
            hazard.close_timer_seconds -= dt_seconds
            if hazard.close_timer_seconds <= 0:
                hazard.close_timer_seconds = None
                if hazard.is_open:
                    hazard.is_open = False
                    transitions.append(DoorTransition(hazard_id=hazard.hazard_id, open=False))

        return transitions

    def _leave_tile(self, tile: TilePoint) -> None:
        plate = self._by_tile.get(tile)
        if not isinstance(plate, PressurePlateHazard) or not plate.active:
            return
        plate.active = False
        if self._door_held_open(plate.linked_door_id):
            return
        door = self._by_id[plate.linked_door_id]
        if isinstance(door, PressurePlateDoorHazard) and door.is_open:
            door.close_timer_seconds = door.close_delay_seconds

    def _enter_tile(self, tile: TilePoint, transitions: list[DoorTransition]) -> None:
        plate = self._by_tile.get(tile)
        if not isinstance(plate, PressurePlateHazard):
            return
        plate.active = True
        door = self._by_id[plate.linked_door_id]
        if not isinstance(door, PressurePlateDoorHazard):
            return
        door.close_timer_seconds = None
        if not door.is_open:
            door.is_open = True
            transitions.append(DoorTransition(hazard_id=door.hazard_id, open=True))

    def _door_held_open(self, door_id: str) -> bool:
        return any(
            isinstance(hazard, PressurePlateHazard) and hazard.active and hazard.linked_door_id == door_id
            for hazard in self._by_id.values()
        )
