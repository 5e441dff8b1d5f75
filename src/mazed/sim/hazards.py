from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from mazed.sim.maze import (
    CARDINAL_DIRECTIONS,
    DIRECTION_EAST,
    DIRECTION_NORTH,
    DIRECTION_SOUTH,
    DIRECTION_WEST,
    MazeInstance,
    TilePoint,
)
from mazed.sim.pathing import shortest_path_tiles
from mazed.sim.rng import SeededRandom, stream_rng

logger = logging.getLogger(__name__)

HAZARD_ONE_WAY_DOOR = "one_way_door"
HAZARD_LOCKED_DOOR = "locked_door"
HAZARD_PRESSURE_PLATE = "pressure_plate"
HAZARD_PRESSURE_PLATE_DOOR = "pressure_plate_door"

AXIS_HORIZONTAL = "horizontal"
AXIS_VERTICAL = "vertical"
PASSAGE_AXES = (AXIS_HORIZONTAL, AXIS_VERTICAL)

PRESSURE_PLATE_COLORS = ("crimson", "azure", "amber", "jade", "violet", "ivory")
DEFAULT_CLOSE_DELAY_SECONDS = 3.0
PLATE_LINK_MAX_DISTANCE = 5
HAZARD_STREAM = "hazards"


def _require_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value


def _require_axis(value: Any) -> str:
    if value not in PASSAGE_AXES:
        raise ValueError(f"hazard.passage_axis must be one of {list(PASSAGE_AXES)}")
    return value


def _require_non_empty(value: Any, *, field_name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{field_name} must be a non-empty string")
    return value


@dataclass
class _HazardBase:
    hazard_id: str
    tile_x: int
    tile_y: int

    kind: ClassVar[str] = ""

    def __post_init__(self) -> None:
        _require_non_empty(self.hazard_id, field_name="hazard.hazard_id")
        _require_int(self.tile_x, field_name="hazard.tile_x")
        _require_int(self.tile_y, field_name="hazard.tile_y")

    @property
    def tile(self) -> TilePoint:
        return TilePoint(self.tile_x, self.tile_y)

    def _base_dict(self) -> dict[str, Any]:
        return {"id": self.hazard_id, "kind": self.kind, "tile_x": self.tile_x, "tile_y": self.tile_y}


@dataclass
class OneWayDoorHazard(_HazardBase):
    allowed_direction: str = DIRECTION_EAST

    kind: ClassVar[str] = HAZARD_ONE_WAY_DOOR

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.allowed_direction not in CARDINAL_DIRECTIONS:
            raise ValueError(f"hazard.allowed_direction must be one of {sorted(CARDINAL_DIRECTIONS)}")

    def to_dict(self) -> dict[str, Any]:
        return {**self._base_dict(), "allowed_direction": self.allowed_direction}


@dataclass
class LockedDoorHazard(_HazardBase):
    passage_axis: str = AXIS_HORIZONTAL
    requires_key: bool = True
    is_open: bool = False

    kind: ClassVar[str] = HAZARD_LOCKED_DOOR

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_axis(self.passage_axis)
        if not isinstance(self.requires_key, bool) or not isinstance(self.is_open, bool):
            raise ValueError("hazard.requires_key and hazard.open must be booleans")

    def to_dict(self) -> dict[str, Any]:
        return {
            **self._base_dict(),
            "passage_axis": self.passage_axis,
            "requires_key": self.requires_key,
            "open": self.is_open,
        }


@dataclass
class PressurePlateHazard(_HazardBase):
    linked_door_id: str = ""
    color_key: str = PRESSURE_PLATE_COLORS[0]
    active: bool = False

    kind: ClassVar[str] = HAZARD_PRESSURE_PLATE

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_non_empty(self.linked_door_id, field_name="hazard.linked_door_id")
        _require_non_empty(self.color_key, field_name="hazard.color_key")

    def to_dict(self) -> dict[str, Any]:
        return {
            **self._base_dict(),
            "linked_door_id": self.linked_door_id,
            "color_key": self.color_key,
            "active": self.active,
        }


@dataclass
class PressurePlateDoorHazard(_HazardBase):
    color_key: str = PRESSURE_PLATE_COLORS[0]
    passage_axis: str = AXIS_HORIZONTAL
    close_delay_seconds: float = DEFAULT_CLOSE_DELAY_SECONDS
    is_open: bool = False
    close_timer_seconds: float | None = None

    kind: ClassVar[str] = HAZARD_PRESSURE_PLATE_DOOR

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_non_empty(self.color_key, field_name="hazard.color_key")
        _require_axis(self.passage_axis)
        if isinstance(self.close_delay_seconds, bool) or not isinstance(self.close_delay_seconds, (int, float)):
            raise ValueError("hazard.close_delay_seconds must be numeric")
        if self.close_delay_seconds < 0:
            raise ValueError("hazard.close_delay_seconds must be >= 0")
        self.close_delay_seconds = float(self.close_delay_seconds)
        if self.close_timer_seconds is not None:
            self.close_timer_seconds = float(self.close_timer_seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self._base_dict(),
            "color_key": self.color_key,
            "passage_axis": self.passage_axis,
            "close_delay_seconds": self.close_delay_seconds,
            "open": self.is_open,
            "close_timer_seconds": self.close_timer_seconds,
        }


Hazard = Union[OneWayDoorHazard, LockedDoorHazard, PressurePlateHazard, PressurePlateDoorHazard]


def hazard_from_dict(data: dict[str, Any]) -> Hazard:
    if not isinstance(data, dict):
        raise ValueError("hazard payload must be an object")
    kind = data.get("kind")
    common = {"hazard_id": data.get("id"), "tile_x": data.get("tile_x"), "tile_y": data.get("tile_y")}
    if kind == HAZARD_ONE_WAY_DOOR:
        return OneWayDoorHazard(**common, allowed_direction=data.get("allowed_direction"))
    if kind == HAZARD_LOCKED_DOOR:
        return LockedDoorHazard(
            **common,
            passage_axis=data.get("passage_axis"),
            requires_key=bool(data.get("requires_key", True)),
            is_open=bool(data.get("open", False)),
        )
    if kind == HAZARD_PRESSURE_PLATE:
        return PressurePlateHazard(
            **common,
            linked_door_id=data.get("linked_door_id"),
            color_key=data.get("color_key"),
            active=bool(data.get("active", False)),
        )
    if kind == HAZARD_PRESSURE_PLATE_DOOR:
        return PressurePlateDoorHazard(
            **common,
            color_key=data.get("color_key"),
            passage_axis=data.get("passage_axis"),
            close_delay_seconds=data.get("close_delay_seconds", DEFAULT_CLOSE_DELAY_SECONDS),
            is_open=bool(data.get("open", False)),
            close_timer_seconds=data.get("close_timer_seconds"),
        )
    raise ValueError(f"unknown hazard kind: {kind}")


def get_one_way_count(level: int, random: SeededRandom) -> int:
    if level <= 5:
        return 0
    if level <= 10:
        return 1
    if level <= 15:
        return random.next_int(1, 2)
    if level <= 20:
        return random.next_int(2, 3)
    return random.next_int(3, 4)


def get_pressure_pair_count(level: int, random: SeededRandom) -> int:
    if level <= 10:
        return 0
    if level <= 20:
        return 1
    return random.next_int(1, 2)


def get_locked_door_count(level: int) -> int:
    if level <= 10:
        return 0
    if level <= 20:
        return 1
    return 2


def _neighbor_directions(maze: MazeInstance, tile: TilePoint) -> set[str]:
    return {direction for direction, _ in maze.passable_neighbors(tile)}


def _is_straight_corridor(maze: MazeInstance, tile: TilePoint) -> bool:
    directions = _neighbor_directions(maze, tile)
    return directions == {DIRECTION_EAST, DIRECTION_WEST} or directions == {DIRECTION_NORTH, DIRECTION_SOUTH}


def passage_axis_for(maze: MazeInstance, tile: TilePoint, random: SeededRandom) -> str:
    """Axis a door spans, from local corridor orientation; junctions pick at random."""
    directions = _neighbor_directions(maze, tile)
    east_west = {DIRECTION_EAST, DIRECTION_WEST}
    north_south = {DIRECTION_NORTH, DIRECTION_SOUTH}
    if east_west <= directions and not directions & north_south:
        return AXIS_HORIZONTAL
    if north_south <= directions and not directions & east_west:
        return AXIS_VERTICAL
    return random.pick(PASSAGE_AXES)


class HazardSpawner:
    def __init__(self, *, close_delay_seconds: float = DEFAULT_CLOSE_DELAY_SECONDS) -> None:
        if close_delay_seconds < 0:
            raise ValueError("close_delay_seconds must be >= 0")
        self.close_delay_seconds = float(close_delay_seconds)

    def spawn_hazards(self, maze: MazeInstance) -> list[Hazard]:
        random = stream_rng(maze.seed, HAZARD_STREAM)
        critical_path = shortest_path_tiles(maze)
        candidates = [tile for tile in maze.passable_tiles(include_endpoints=False) if tile not in critical_path]
        corridor_candidates = [tile for tile in candidates if _is_straight_corridor(maze, tile)]
        door_candidates = [tile for tile in candidates if maze.passable_neighbor_count(tile) >= 2]

        hazards: list[Hazard] = []
        occupied: set[TilePoint] = set()
        level = maze.level

        def next_id() -> str:
            return f"hazard_{level}_{len(hazards)}"

        one_way_target = get_one_way_count(level, random)
        placed = 0
        for tile in random.shuffle(corridor_candidates):
            if placed >= one_way_target:
                break
            if tile in occupied:
                continue
            directions = _neighbor_directions(maze, tile)
            if {DIRECTION_EAST, DIRECTION_WEST} <= directions:
                allowed = random.pick((DIRECTION_EAST, DIRECTION_WEST))
            else:
                allowed = random.pick((DIRECTION_NORTH, DIRECTION_SOUTH))
            occupied.add(tile)
            hazards.append(OneWayDoorHazard(hazard_id=next_id(), tile_x=tile.x, tile_y=tile.y, allowed_direction=allowed))
            placed += 1
        self._log_shortfall(level, HAZARD_ONE_WAY_DOOR, placed, one_way_target)

        pair_target = get_pressure_pair_count(level, random)
        placed = 0
        for plate_tile in random.shuffle(door_candidates):
            if placed >= pair_target:
                break
            if plate_tile in occupied:
                continue
            linked_candidates = [
                tile
                for tile in door_candidates
                if tile != plate_tile and tile not in occupied and tile.manhattan(plate_tile) <= PLATE_LINK_MAX_DISTANCE
            ]
            if not linked_candidates:
                continue
            door_tile = random.pick(linked_candidates)
            color_key = PRESSURE_PLATE_COLORS[placed % len(PRESSURE_PLATE_COLORS)]
            door = PressurePlateDoorHazard(
                hazard_id=next_id(),
                tile_x=door_tile.x,
                tile_y=door_tile.y,
                color_key=color_key,
                passage_axis=passage_axis_for(maze, door_tile, random),
                close_delay_seconds=self.close_delay_seconds,
            )
            hazards.append(door)
            hazards.append(
                PressurePlateHazard(
                    hazard_id=next_id(),
                    tile_x=plate_tile.x,
                    tile_y=plate_tile.y,
                    linked_door_id=door.hazard_id,
                    color_key=color_key,
                )
            )
            occupied.update((door_tile, plate_tile))
            placed += 1
        self._log_shortfall(level, "pressure_plate_pair", placed, pair_target)

        locked_target = get_locked_door_count(level)
        placed = 0
        for tile in random.shuffle(door_candidates):
            if placed >= locked_target:
                break
            if tile in occupied:
                continue
            occupied.add(tile)
            hazards.append(
                LockedDoorHazard(
                    hazard_id=next_id(),
                    tile_x=tile.x,
                    tile_y=tile.y,
                    passage_axis=passage_axis_for(maze, tile, random),
                )
            )
            placed += 1
        self._log_shortfall(level, HAZARD_LOCKED_DOOR, placed, locked_target)

        return hazards

    @staticmethod
    def _log_shortfall(level: int, kind: str, placed: int, target: int) -> None:
        if placed < target:
            logger.debug("level %s placed %s of %s %s hazards", level, placed, target, kind)
