from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from mazed.sim.maze import DIRECTION_STEPS, MazeInstance, TilePoint


@dataclass(frozen=True)
class DistanceNode:
    tile: TilePoint
    distance: int


def has_path(maze: MazeInstance) -> bool:
    """Breadth-first reachability from entry to exit over non-wall cells."""
    queue: deque[TilePoint] = deque([maze.entry])
    visited = {maze.entry}
    while queue:
        current = queue.popleft()
        if current == maze.exit:
            return True
        for _, dx, dy in DIRECTION_STEPS:
            candidate = TilePoint(current.x + dx, current.y + dy)
            if candidate in visited or not maze.is_passable(candidate.x, candidate.y):
                continue
            visited.add(candidate)
            queue.append(candidate)
    return False


def compute_distances(maze: MazeInstance, start: TilePoint) -> list[DistanceNode]:
    """BFS hop distance to every reachable passable tile, in discovery order."""
    results = [DistanceNode(tile=start, distance=0)]
    queue: deque[DistanceNode] = deque(results)
    visited = {start}
    while queue:
        current = queue.popleft()
        for _, dx, dy in DIRECTION_STEPS:
            candidate = TilePoint(current.tile.x + dx, current.tile.y + dy)
            if candidate in visited or not maze.is_passable(candidate.x, candidate.y):
                continue
            visited.add(candidate)
            node = DistanceNode(tile=candidate, distance=current.distance + 1)
            queue.append(node)
            results.append(node)
    return results


def shortest_path(maze: MazeInstance, start: TilePoint, goal: TilePoint) -> list[TilePoint] | None:
    queue: deque[TilePoint] = deque([start])
    parents: dict[TilePoint, TilePoint | None] = {start: None}
    while queue:
        current = queue.popleft()
        if current == goal:
            break
        for _, dx, dy in DIRECTION_STEPS:
            candidate = TilePoint(current.x + dx, current.y + dy)
            if candidate in parents or not maze.is_passable(candidate.x, candidate.y):
                continue
            parents[candidate] = current
            queue.append(candidate)

    if goal not in parents:
        return None
    path: list[TilePoint] = []
    cursor: TilePoint | None = goal
    while cursor is not None:
        path.append(cursor)
        cursor = parents[cursor]
    path.reverse()
    return path


def shortest_path_tiles(maze: MazeInstance) -> set[TilePoint]:
    """Tiles on the BFS shortest entry->exit route; empty when unsolvable."""
    path = shortest_path(maze, maze.entry, maze.exit)
    return set(path) if path is not None else set()
