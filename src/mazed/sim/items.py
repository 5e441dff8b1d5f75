from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from mazed.sim.maze import MazeInstance, TilePoint
from mazed.sim.rng import stream_rng

logger = logging.getLogger(__name__)

ITEM_MAZE_SHARD = "maze_shard"
ITEM_ANCIENT_KEY = "ancient_key"
ITEM_LORE_PAGE = "lore_page"
ITEM_ARTIFACT_PIECE = "artifact_piece"
ITEM_WAYFINDER_STONE = "wayfinder_stone"
ITEM_ORDER = (ITEM_MAZE_SHARD, ITEM_ANCIENT_KEY, ITEM_LORE_PAGE, ITEM_ARTIFACT_PIECE, ITEM_WAYFINDER_STONE)

TOOL_BASIC_TORCH = "basic_torch"
TOOL_COMPASS = "compass"
TOOL_MAP_FRAGMENT = "map_fragment"
TOOL_RUNNING_BOOTS = "running_boots"
TOOL_SKELETON_KEY = "skeleton_key"

DEFAULT_WAYFINDER_MIN_LEVEL = 6
DEFAULT_WAYFINDER_MAX_LEVEL = 12
MAP_FRAGMENT_REVEAL_FRACTION = 0.2
ITEM_STREAM = "items"
WAYFINDER_STREAM = "wayfinder-maze"


@dataclass(frozen=True)
class ToolDefinition:
    tool_id: str
    display_name: str
    unlock_level: int
    duration_ms: int | None
    visibility_bonus: int = 0
    speed_multiplier: float = 1.0
    one_shot: bool = False


TOOL_ORDER = (TOOL_BASIC_TORCH, TOOL_COMPASS, TOOL_MAP_FRAGMENT, TOOL_RUNNING_BOOTS, TOOL_SKELETON_KEY)
TOOL_DEFINITIONS: dict[str, ToolDefinition] = {
    TOOL_BASIC_TORCH: ToolDefinition(TOOL_BASIC_TORCH, "Basic Torch", 1, 60_000, visibility_bonus=2),
    TOOL_COMPASS: ToolDefinition(TOOL_COMPASS, "Compass", 5, None),
    TOOL_MAP_FRAGMENT: ToolDefinition(TOOL_MAP_FRAGMENT, "Map Fragment", 10, None, one_shot=True),
    TOOL_RUNNING_BOOTS: ToolDefinition(TOOL_RUNNING_BOOTS, "Running Boots", 15, 30_000, speed_multiplier=1.3),
    TOOL_SKELETON_KEY: ToolDefinition(TOOL_SKELETON_KEY, "Skeleton Key", 20, None, one_shot=True),
}

ITEM_DISPLAY_NAMES: dict[str, str] = {
    ITEM_MAZE_SHARD: "Maze Shard",
    ITEM_ANCIENT_KEY: "Ancient Key",
    ITEM_LORE_PAGE: "Lore Page",
    ITEM_ARTIFACT_PIECE: "Artifact Piece",
    ITEM_WAYFINDER_STONE: "Wayfinder Stone",
    **{tool_id: definition.display_name for tool_id, definition in TOOL_DEFINITIONS.items()},
}


def is_tool_id(value: Any) -> bool:
    return isinstance(value, str) and value in TOOL_DEFINITIONS


def get_tool_bit(tool_id: str) -> int:
    if not is_tool_id(tool_id):
        raise ValueError(f"unknown tool id: {tool_id}")
    return 1 << TOOL_ORDER.index(tool_id)


def has_tool_unlocked(mask: int, tool_id: str) -> bool:
    return (mask & get_tool_bit(tool_id)) != 0


def unlock_tool(mask: int, tool_id: str) -> int:
    return mask | get_tool_bit(tool_id)


def unlocked_tool_ids(mask: int) -> list[str]:
    return [tool_id for tool_id in TOOL_ORDER if has_tool_unlocked(mask, tool_id)]


def get_tool_unlocked_at_level(level: int) -> str | None:
    for tool_id in TOOL_ORDER:
        if TOOL_DEFINITIONS[tool_id].unlock_level == level:
            return tool_id
    return None


def get_shard_count(level: int) -> int:
    if level <= 5:
        return 1
    if level <= 15:
        return 2
    return 3


@dataclass(frozen=True)
class ItemSpawn:
    spawn_id: str
    item_id: str
    tile_x: int
    tile_y: int

    def __post_init__(self) -> None:
        if not isinstance(self.spawn_id, str) or not self.spawn_id:
            raise ValueError("item_spawn.spawn_id must be a non-empty string")
        if self.item_id not in ITEM_DISPLAY_NAMES:
            raise ValueError(f"item_spawn.item_id is unknown: {self.item_id}")
        for field_name in ("tile_x", "tile_y"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"item_spawn.{field_name} must be an integer")

    @property
    def tile(self) -> TilePoint:
        return TilePoint(self.tile_x, self.tile_y)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.spawn_id, "item_id": self.item_id, "tile_x": self.tile_x, "tile_y": self.tile_y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ItemSpawn":
        return cls(
            spawn_id=data.get("id"),
            item_id=data.get("item_id"),
            tile_x=data.get("tile_x"),
            tile_y=data.get("tile_y"),
        )


@dataclass(frozen=True)
class ItemSpawnOptions:
    player_seed: str
    wayfinder_collected: bool = False
    picked_up_spawn_ids: tuple[str, ...] = ()
    unlocked_tools_mask: int = 0


@dataclass(frozen=True)
class ItemPickup:
    spawn_id: str
    item_id: str


def _farthest_first(tiles: list[TilePoint], origin: TilePoint) -> list[TilePoint]:
    return sorted(tiles, key=lambda tile: -tile.distance_squared(origin))


class ItemSpawner:
    """Deterministic per-level item placement seeded from the maze seed."""

    def __init__(
        self,
        *,
        wayfinder_min_level: int = DEFAULT_WAYFINDER_MIN_LEVEL,
        wayfinder_max_level: int = DEFAULT_WAYFINDER_MAX_LEVEL,
    ) -> None:
        low, high = sorted((wayfinder_min_level, wayfinder_max_level))
        self.wayfinder_min_level = low
        self.wayfinder_max_level = high

    def get_wayfinder_target_level(self, player_seed: str) -> int:
        return stream_rng(player_seed, WAYFINDER_STREAM).next_int(self.wayfinder_min_level, self.wayfinder_max_level)

    def spawn_items(self, maze: MazeInstance, options: ItemSpawnOptions) -> list[ItemSpawn]:
        random = stream_rng(maze.seed, ITEM_STREAM)
        dead_ends = maze.dead_ends()
        passable = maze.passable_tiles(include_endpoints=False)
        available = random.shuffle(dead_ends)
        occupied: set[TilePoint] = set()
        spawns: list[ItemSpawn] = []

        def add_spawn(item_id: str, tile: TilePoint) -> None:
            spawns.append(
                ItemSpawn(spawn_id=f"item_{maze.level}_{len(spawns)}", item_id=item_id, tile_x=tile.x, tile_y=tile.y)
            )
            occupied.add(tile)

        def take_tile() -> TilePoint | None:
            while available:
                candidate = available.pop()
                if candidate not in occupied:
                    return candidate
            return None

        def first_free(tiles: list[TilePoint]) -> TilePoint | None:
            return next((tile for tile in tiles if tile not in occupied), None)

        shard_target = get_shard_count(maze.level)
        for _ in range(shard_target):
            tile = take_tile()
            if tile is None:
                logger.debug("level %s ran out of dead ends for shards", maze.level)
                break
            add_spawn(ITEM_MAZE_SHARD, tile)

        far_dead_ends = _farthest_first(dead_ends, maze.entry)
        unlock_tool_id = get_tool_unlocked_at_level(maze.level)
        if unlock_tool_id is not None and not has_tool_unlocked(options.unlocked_tools_mask, unlock_tool_id):
            tile = first_free(far_dead_ends)
            if tile is not None:
                add_spawn(unlock_tool_id, tile)
            else:
                logger.debug("level %s has no free dead end for tool %s", maze.level, unlock_tool_id)

        if not options.wayfinder_collected and maze.level == self.get_wayfinder_target_level(options.player_seed):
            tile = first_free(far_dead_ends)
            if tile is None:
                tile = first_free(_farthest_first(passable, maze.entry))
            if tile is not None:
                add_spawn(ITEM_WAYFINDER_STONE, tile)

        if not options.picked_up_spawn_ids:
            return spawns
        picked = set(options.picked_up_spawn_ids)
        return [spawn for spawn in spawns if spawn.spawn_id not in picked]


@dataclass
class ItemRegistry:
    """Uncollected spawns for the active level."""

    _by_id: dict[str, ItemSpawn] = field(default_factory=dict)

    def load(self, spawns: list[ItemSpawn] | None) -> None:
        self._by_id = {spawn.spawn_id: spawn for spawn in spawns or []}

    def spawns(self) -> list[ItemSpawn]:
        return list(self._by_id.values())

    def spawn_at(self, tile: TilePoint) -> list[ItemSpawn]:
        return [spawn for spawn in self._by_id.values() if spawn.tile == tile]

    def collect_at(self, tile: TilePoint) -> list[ItemPickup]:
        pickups: list[ItemPickup] = []
        for spawn in self.spawn_at(tile):
            del self._by_id[spawn.spawn_id]
            pickups.append(ItemPickup(spawn_id=spawn.spawn_id, item_id=spawn.item_id))
        return pickups
