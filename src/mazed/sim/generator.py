from __future__ import annotations

import logging
import math

from mazed.sim.difficulty import get_exit_difficulty_profile
from mazed.sim.maze import CELL_ENTRY, CELL_EXIT, CELL_WALL, DIRECTION_STEPS, MazeCell, MazeInstance, MazeParams, TilePoint
from mazed.sim.pathing import DistanceNode, compute_distances, has_path
from mazed.sim.rng import SeededRandom

logger = logging.getLogger(__name__)

MAX_GENERATION_ATTEMPTS = 4


class MazeGenerationError(RuntimeError):
    """Raised when no solvable maze could be produced within the attempt budget."""


def ensure_odd(value: int) -> int:
    return value + 1 if value % 2 == 0 else value


def _wall_grid(width: int, height: int) -> list[list[MazeCell]]:
    return [[MazeCell(x=x, y=y, cell_type=CELL_WALL) for x in range(width)] for y in range(height)]


def _is_interior(x: int, y: int, width: int, height: int) -> bool:
    return 0 < x < width - 1 and 0 < y < height - 1


class MazeGenerator:
    """Seeded depth-first backtracking carve with loop pass and difficulty-aware exit placement."""

    def __init__(self, *, max_attempts: int = MAX_GENERATION_ATTEMPTS) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be a positive integer")
        self.max_attempts = max_attempts

    def generate(self, params: MazeParams) -> MazeInstance:
        width = ensure_odd(params.width + 1)
        height = ensure_odd(params.height + 1)

        for attempt in range(self.max_attempts):
            random = SeededRandom(f"{params.seed}:{attempt}")
            maze = self._build_attempt(params, width, height, random)
            if has_path(maze):
                logger.debug(
                    "generated level=%s seed=%s attempt=%s entry=%s exit=%s",
                    params.level,
                    params.seed,
                    attempt,
                    maze.entry,
                    maze.exit,
                )
                return maze
            logger.warning("maze attempt %s for level %s is unsolvable; retrying", attempt, params.level)

        raise MazeGenerationError(
            f"failed to generate solvable maze for level {params.level} after {self.max_attempts} attempts"
        )

    def _build_attempt(self, params: MazeParams, width: int, height: int, random: SeededRandom) -> MazeInstance:
        cells = _wall_grid(width, height)
        self._carve(cells, width, height, random)
        self._open_loops(cells, width, height, params.loop_chance, random)

        floor_tiles = [
            TilePoint(x, y)
            for y in range(1, height - 1)
            for x in range(1, width - 1)
            if cells[y][x].passable
        ]
        entry = random.pick(floor_tiles)
        # Exit selection needs neighbour counts, so measure on a provisional maze.
        cells[entry.y][entry.x].cell_type = CELL_ENTRY
        provisional = MazeInstance(
            level=params.level,
            width=width,
            height=height,
            seed=params.seed,
            cells=cells,
            entry=entry,
            exit=entry,
        )
        exit_tile = self._choose_exit(provisional, random)
        cells[exit_tile.y][exit_tile.x].cell_type = CELL_EXIT
        return MazeInstance(
            level=params.level,
            width=width,
            height=height,
            seed=params.seed,
            cells=cells,
            entry=entry,
            exit=exit_tile,
        )

    def _carve(self, cells: list[list[MazeCell]], width: int, height: int, random: SeededRandom) -> None:
        lattice_xs = list(range(1, width - 1, 2))
        lattice_ys = list(range(1, height - 1, 2))
        start = TilePoint(random.pick(lattice_xs), random.pick(lattice_ys))
        cells[start.y][start.x].carve()
        stack = [start]

        while stack:
            current = stack[-1]
            candidates: list[TilePoint] = []
            for _, dx, dy in DIRECTION_STEPS:
                next_x = current.x + dx * 2
                next_y = current.y + dy * 2
                if not _is_interior(next_x, next_y, width, height):
                    continue
                if cells[next_y][next_x].cell_type == CELL_WALL:
                    candidates.append(TilePoint(next_x, next_y))

            if not candidates:
                stack.pop()
                continue

            selected = random.pick(candidates)
            cells[(current.y + selected.y) // 2][(current.x + selected.x) // 2].carve()
            cells[selected.y][selected.x].carve()
            stack.append(selected)

    def _open_loops(
        self,
        cells: list[list[MazeCell]],
        width: int,
        height: int,
        loop_chance: float,
        random: SeededRandom,
    ) -> None:
        for y in range(1, height - 1):
            for x in range(1, width - 1):
                if cells[y][x].cell_type != CELL_WALL:
                    continue
                if random.next() < loop_chance:
                    cells[y][x].carve()

    def _choose_exit(self, maze: MazeInstance, random: SeededRandom) -> TilePoint:
        entry = maze.entry
        distances = compute_distances(maze, entry)
        profile = get_exit_difficulty_profile(maze.level)
        max_distance = max(node.distance for node in distances)
        far_enough = max(profile.min_absolute_distance, math.floor(max_distance * profile.min_distance_ratio))

        reachable = [node for node in distances if node.tile != entry]
        far_candidates = [node for node in reachable if node.distance >= far_enough]
        dead_end_candidates = [node for node in far_candidates if maze.passable_neighbor_count(node.tile) <= 1]

        pool: list[DistanceNode]
        if profile.prefer_dead_end and dead_end_candidates:
            pool = dead_end_candidates
        elif far_candidates:
            pool = far_candidates
        else:
            pool = reachable

        if pool:
            return random.pick(pool).tile

        logger.debug("no exit candidates for level %s; falling back to farthest reachable tile", maze.level)
        farthest = DistanceNode(tile=entry, distance=-1)
        for node in reachable:
            if node.distance > farthest.distance:
                farthest = node
        return farthest.tile
