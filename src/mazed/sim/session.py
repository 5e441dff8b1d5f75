from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

from mazed.content.config import GameConfig
from mazed.content.save_code import DEFAULT_PLAYER_CHARACTER_ID, PLAYER_CHARACTER_IDS, SaveCodec, SaveState
from mazed.sim.difficulty import get_maze_params
from mazed.sim.generator import MazeGenerator
from mazed.sim.hazard_runtime import DoorTransition, HazardRuntime, TraversalContext
from mazed.sim.hazards import HazardSpawner
from mazed.sim.items import (
    ITEM_MAZE_SHARD,
    ITEM_WAYFINDER_STONE,
    TOOL_SKELETON_KEY,
    ItemPickup,
    ItemRegistry,
    ItemSpawn,
    ItemSpawner,
    ItemSpawnOptions,
    is_tool_id,
    unlock_tool,
)
from mazed.sim.maze import MazeInstance, MazeNetwork, TilePoint
from mazed.sim.tools import ToolExpired, ToolRuntime, wall_clock_ms
from mazed.sim.visibility import VisibilityDelta, VisibilityEngine

logger = logging.getLogger(__name__)

SPAWN_AT_ENTRY = "entry"
SPAWN_AT_EXIT = "exit"

BLOCKED_BOUNDS = "bounds"
BLOCKED_WALL = "wall"


@dataclass(frozen=True)
class MoveOutcome:
    moved: bool
    tile: TilePoint
    blocked_by: str | None = None
    pickups: tuple[ItemPickup, ...] = ()
    door_transitions: tuple[DoorTransition, ...] = ()
    visibility: VisibilityDelta | None = None
    reached_exit: bool = False


@dataclass(frozen=True)
class TickOutcome:
    door_transitions: tuple[DoorTransition, ...] = ()
    tool_expired: ToolExpired | None = None
    visibility: VisibilityDelta | None = None


class GameSession:
    """One player's run: progress, the level cache and the active level's runtimes."""

    def __init__(
        self,
        *,
        config: GameConfig | None = None,
        now_provider: Callable[[], int] = wall_clock_ms,
        generator: MazeGenerator | None = None,
    ) -> None:
        self.config = config if config is not None else GameConfig()
        self.generator = generator if generator is not None else MazeGenerator()
        self.hazard_spawner = HazardSpawner(close_delay_seconds=self.config.pressure_door_close_delay_seconds)
        self.item_spawner = ItemSpawner(
            wayfinder_min_level=self.config.wayfinder_min_level,
            wayfinder_max_level=self.config.wayfinder_max_level,
        )
        self.network = MazeNetwork()
        self.hazard_runtime = HazardRuntime()
        self.item_registry = ItemRegistry()
        self.visibility = VisibilityEngine()
        self.tools = ToolRuntime(now_provider)

        self.seed = ""
        self.player_character_id = DEFAULT_PLAYER_CHARACTER_ID
        self.current_level = 1
        self.unlocked_tools = 0
        self.inventory: list[int] = []
        self.completed_levels: list[int] = []
        self.artifacts = 0
        self.playtime_seconds = 0.0
        self.first_entry_times: dict[int, int] = {}
        self.first_completion_times: dict[int, int] = {}
        self.collected_shards = 0
        self.picked_up_items: dict[int, list[str]] = {}
        self.portal_hub_unlocked = False

        self.maze: MazeInstance | None = None
        self.player_tile: TilePoint | None = None
        self._level_spawns: dict[int, list[ItemSpawn]] = {}

    @property
    def visibility_radius(self) -> int:
        return self.config.visibility_radius + self.tools.visibility_bonus()

    def _reset_caches(self) -> None:
        self.network.clear()
        self._level_spawns.clear()
        self.maze = None
        self.player_tile = None

    def new_game(self, seed: str, character_id: str = DEFAULT_PLAYER_CHARACTER_ID) -> VisibilityDelta:
        if not isinstance(seed, str) or not seed:
            raise ValueError("seed must be a non-empty string")
        self._reset_caches()
        self.seed = seed
        self.player_character_id = character_id if character_id in PLAYER_CHARACTER_IDS else DEFAULT_PLAYER_CHARACTER_ID
        self.current_level = 1
        self.unlocked_tools = 0
        self.inventory = []
        self.completed_levels = []
        self.artifacts = 0
        self.playtime_seconds = 0.0
        self.first_entry_times = {1: 0}
        self.first_completion_times = {}
        self.collected_shards = 0
        self.picked_up_items = {}
        self.portal_hub_unlocked = False
        self.tools.sync_from_state(None, None)
        logger.info("new game seed=%s character=%s", seed, self.player_character_id)
        return self.load_level(1)

    def from_save_state(self, state: SaveState) -> VisibilityDelta:
        self._reset_caches()
        self.seed = state.seed
        self.player_character_id = state.player_character_id
        self.current_level = state.current_level
        self.unlocked_tools = state.unlocked_tools
        self.inventory = list(state.inventory)
        self.completed_levels = list(state.completed_levels)
        self.artifacts = state.artifacts
        self.playtime_seconds = float(state.playtime)
        self.first_entry_times = dict(state.first_entry_times)
        self.first_completion_times = dict(state.first_completion_times)
        self.collected_shards = state.collected_shards
        self.picked_up_items = {level: list(ids) for level, ids in state.picked_up_items.items()}
        self.portal_hub_unlocked = state.portal_hub_unlocked
        self.tools.sync_from_state(state.active_tool_id, state.active_tool_expiry)
        logger.info("restored save seed=%s level=%s", state.seed, state.current_level)
        return self.load_level(state.current_level)

    def _maze_for_level(self, level: int) -> MazeInstance:
        maze = self.network.get(level)
        if maze is None:
            maze = self.generator.generate(get_maze_params(self.seed, level))
            maze.hazards = self.hazard_spawner.spawn_hazards(maze)
            self.network.put(maze)
        return maze

    def _spawns_for_level(self, maze: MazeInstance) -> list[ItemSpawn]:
        template = self._level_spawns.get(maze.level)
        if template is None:
            template = self.item_spawner.spawn_items(
                maze,
                ItemSpawnOptions(
                    player_seed=self.seed,
                    wayfinder_collected=self.portal_hub_unlocked,
                    unlocked_tools_mask=self.unlocked_tools,
                ),
            )
            self._level_spawns[maze.level] = template
        picked = set(self.picked_up_items.get(maze.level, []))
        return [spawn for spawn in template if spawn.spawn_id not in picked]

    def load_level(self, level: int, spawn_point: str = SPAWN_AT_ENTRY) -> VisibilityDelta:
        if not self.seed:
            raise RuntimeError("start or restore a game before loading levels")
        if spawn_point not in (SPAWN_AT_ENTRY, SPAWN_AT_EXIT):
            raise ValueError(f"spawn_point must be '{SPAWN_AT_ENTRY}' or '{SPAWN_AT_EXIT}'")

        maze = self._maze_for_level(level)
        maze.item_spawns = self._spawns_for_level(maze)
        self.hazard_runtime.load_maze(maze.hazards)
        self.item_registry.load(maze.item_spawns)

        self.maze = maze
        self.current_level = level
        self.first_entry_times.setdefault(level, math.floor(self.playtime_seconds))
        self.player_tile = maze.exit if spawn_point == SPAWN_AT_EXIT else maze.entry
        self.hazard_runtime.update(0.0, self.player_tile)
        self.visibility.reset()
        logger.info(
            "loaded level %s (%sx%s) at %s hazards=%s items=%s",
            level,
            maze.width,
            maze.height,
            spawn_point,
            len(maze.hazards or []),
            len(maze.item_spawns),
        )
        return self.visibility.apply_full(self.player_tile, maze, self.visibility_radius)

    def _require_level(self) -> tuple[MazeInstance, TilePoint]:
        if self.maze is None or self.player_tile is None:
            raise RuntimeError("no level is loaded")
        return self.maze, self.player_tile

    def _consume_skeleton_key(self) -> None:
        consumed = self.tools.consume_active_one_shot()
        logger.debug("consumed %s", consumed)

    def try_move(self, direction: str) -> MoveOutcome:
        maze, origin = self._require_level()
        target = origin.step(direction)

        if not maze.in_bounds(target.x, target.y):
            return MoveOutcome(moved=False, tile=origin, blocked_by=BLOCKED_BOUNDS)
        if not maze.is_passable(target.x, target.y):
            return MoveOutcome(moved=False, tile=origin, blocked_by=BLOCKED_WALL)

        context = TraversalContext(
            has_skeleton_key=self.tools.active_tool_id == TOOL_SKELETON_KEY,
            consume_skeleton_key=self._consume_skeleton_key,
        )
        if not self.hazard_runtime.check_pass_through(origin, target, direction, context):
            hazard = self.hazard_runtime.get_hazard_at_tile(target.x, target.y)
            return MoveOutcome(moved=False, tile=origin, blocked_by=hazard.kind if hazard is not None else None)

        self.player_tile = target
        transitions = self.hazard_runtime.update(0.0, target)
        pickups = self.item_registry.collect_at(target)
        for pickup in pickups:
            self._apply_pickup(pickup)
        maze.item_spawns = self.item_registry.spawns()
        delta = self.visibility.apply_dirty(target, maze, self.visibility_radius)

        return MoveOutcome(
            moved=True,
            tile=target,
            pickups=tuple(pickups),
            door_transitions=tuple(transitions),
            visibility=delta,
            reached_exit=target == maze.exit,
        )

    def _apply_pickup(self, pickup: ItemPickup) -> None:
        picked = self.picked_up_items.setdefault(self.current_level, [])
        if pickup.spawn_id not in picked:
            picked.append(pickup.spawn_id)

        if pickup.item_id == ITEM_MAZE_SHARD:
            self.collected_shards += 1
        elif pickup.item_id == ITEM_WAYFINDER_STONE:
            self.portal_hub_unlocked = True
        elif is_tool_id(pickup.item_id):
            self.unlocked_tools = unlock_tool(self.unlocked_tools, pickup.item_id)
            self.tools.equip(pickup.item_id)
        logger.debug("picked up %s (%s) on level %s", pickup.item_id, pickup.spawn_id, self.current_level)

    def tick(self, dt_seconds: float) -> TickOutcome:
        if dt_seconds < 0:
            raise ValueError("dt_seconds must be >= 0")
        self.playtime_seconds += dt_seconds
        if self.maze is None:
            return TickOutcome(tool_expired=self.tools.update())

        transitions = self.hazard_runtime.update(dt_seconds, self.player_tile)
        expired = self.tools.update()
        delta = None
        if expired is not None and self.player_tile is not None:
            delta = self.visibility.apply_dirty(self.player_tile, self.maze, self.visibility_radius)
        return TickOutcome(door_transitions=tuple(transitions), tool_expired=expired, visibility=delta)

    def can_backtrack(self) -> bool:
        return self.current_level > 1 and (self.current_level - 1) in self.completed_levels

    def advance_level(self) -> VisibilityDelta:
        self._require_level()
        level = self.current_level
        if level not in self.first_completion_times:
            first_entry = self.first_entry_times.get(level)
            elapsed = self.playtime_seconds - first_entry if first_entry is not None else 0
            self.first_completion_times[level] = max(0, math.floor(elapsed))
        if level not in self.completed_levels:
            self.completed_levels = sorted({*self.completed_levels, level})
        logger.info("completed level %s", level)
        return self.load_level(level + 1, SPAWN_AT_ENTRY)

    def backtrack_level(self, target_level: int | None = None) -> VisibilityDelta:
        self._require_level()
        if target_level is None:
            if not self.can_backtrack():
                raise ValueError(f"cannot backtrack from level {self.current_level}")
            target_level = self.current_level - 1
        elif not self.portal_hub_unlocked:
            raise ValueError("portal hub travel requires the wayfinder stone")
        elif target_level not in self.completed_levels:
            raise ValueError(f"level {target_level} has not been completed")
        return self.load_level(max(1, target_level), SPAWN_AT_EXIT)

    def to_save_state(self) -> SaveState:
        return SaveState(
            seed=self.seed,
            player_character_id=self.player_character_id,
            current_level=self.current_level,
            unlocked_tools=self.unlocked_tools,
            inventory=list(self.inventory),
            completed_levels=list(self.completed_levels),
            artifacts=self.artifacts,
            playtime=math.floor(self.playtime_seconds),
            first_entry_times=dict(self.first_entry_times),
            first_completion_times=dict(self.first_completion_times),
            active_tool_id=self.tools.active_tool_id,
            active_tool_expiry=self.tools.active_tool_expiry,
            collected_shards=self.collected_shards,
            picked_up_items={level: list(ids) for level, ids in self.picked_up_items.items()},
            portal_hub_unlocked=self.portal_hub_unlocked,
        )

    def save_code(self) -> str:
        return SaveCodec.encode(self.to_save_state())
