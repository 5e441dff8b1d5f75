from __future__ import annotations

import math
from dataclasses import dataclass, field

from mazed.sim.maze import MazeCell, MazeInstance, TilePoint

FOG_VISIBLE_OPACITY = 1.0
FOG_EXPLORED_OPACITY = 0.2
FOG_UNKNOWN_OPACITY = 0.0


@dataclass(frozen=True)
class VisibilityDelta:
    changed_tiles: list[TilePoint] = field(default_factory=list)
    full: bool = False


def _in_radius(dx: int, dy: int, radius: int) -> bool:
    return dx * dx + dy * dy <= radius * radius


def _blocks_sight(maze: MazeInstance, x: int, y: int) -> bool:
    return not maze.is_passable(x, y)


def has_line_of_sight(maze: MazeInstance, origin: TilePoint, target: TilePoint) -> bool:
    """Grid traversal from cell centre to cell centre.

    Walls block sight unless they are the target itself. On an exact corner
    crossing the ray is blocked only when both side cells block.
    """
    if origin == target:
        return True

    start_x = origin.x + 0.5
    start_y = origin.y + 0.5
    dir_x = (target.x + 0.5) - start_x
    dir_y = (target.y + 0.5) - start_y

    step_x = 0 if dir_x == 0 else (1 if dir_x > 0 else -1)
    step_y = 0 if dir_y == 0 else (1 if dir_y > 0 else -1)
    inv_dir_x = math.inf if dir_x == 0 else 1 / abs(dir_x)
    inv_dir_y = math.inf if dir_y == 0 else 1 / abs(dir_y)

    current_x = origin.x
    current_y = origin.y
    boundary_x = current_x + 1 if step_x > 0 else current_x
    boundary_y = current_y + 1 if step_y > 0 else current_y
    t_max_x = math.inf if step_x == 0 else abs((boundary_x - start_x) / dir_x)
    t_max_y = math.inf if step_y == 0 else abs((boundary_y - start_y) / dir_y)

    while (current_x, current_y) != (target.x, target.y):
        if t_max_x < t_max_y:
            current_x += step_x
            t_max_x += inv_dir_x
        elif t_max_y < t_max_x:
            current_y += step_y
            t_max_y += inv_dir_y
        else:
            side_a = TilePoint(current_x + step_x, current_y)
            side_b = TilePoint(current_x, current_y + step_y)
            if (
                side_a != target
                and side_b != target
                and _blocks_sight(maze, side_a.x, side_a.y)
                and _blocks_sight(maze, side_b.x, side_b.y)
            ):
                return False
            current_x += step_x
            current_y += step_y
            t_max_x += inv_dir_x
            t_max_y += inv_dir_y

        if (current_x, current_y) != (target.x, target.y) and _blocks_sight(maze, current_x, current_y):
            return False

    return True


def fog_opacity(cell: MazeCell) -> float:
    if cell.currently_visible:
        return FOG_VISIBLE_OPACITY
    if cell.explored:
        return FOG_EXPLORED_OPACITY
    return FOG_UNKNOWN_OPACITY


class VisibilityEngine:
    """Recomputes per-cell visibility for the whole grid on every tile change."""

    def __init__(self) -> None:
        self._last_tile: TilePoint | None = None
        self._last_maze_id: int | None = None
        self._last_radius: int | None = None

    def reset(self) -> None:
        self._last_tile = None
        self._last_maze_id = None
        self._last_radius = None

    def update(self, player_tile: TilePoint, maze: MazeInstance, radius: int) -> VisibilityDelta:
        if isinstance(radius, bool) or not isinstance(radius, int) or radius < 0:
            raise ValueError("radius must be a non-negative integer")

        changed: list[TilePoint] = []
        for row in maze.cells:
            for cell in row:
                tile = TilePoint(cell.x, cell.y)
                visible = _in_radius(cell.x - player_tile.x, cell.y - player_tile.y, radius) and has_line_of_sight(
                    maze, player_tile, tile
                )
                if visible:
                    cell.explored = True
                if visible != cell.currently_visible:
                    cell.currently_visible = visible
                    changed.append(tile)

        self._last_tile = player_tile
        self._last_maze_id = id(maze)
        self._last_radius = radius
        return VisibilityDelta(changed_tiles=changed)

    def apply_full(self, player_tile: TilePoint, maze: MazeInstance, radius: int) -> VisibilityDelta:
        self.update(player_tile, maze, radius)
        every_tile = [TilePoint(cell.x, cell.y) for row in maze.cells for cell in row]
        return VisibilityDelta(changed_tiles=every_tile, full=True)

    def apply_dirty(self, player_tile: TilePoint, maze: MazeInstance, radius: int) -> VisibilityDelta:
        if (self._last_tile, self._last_maze_id, self._last_radius) == (player_tile, id(maze), radius):
            return VisibilityDelta()
        return self.update(player_tile, maze, radius)
