from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CELL_WALL = "wall"
CELL_FLOOR = "floor"
CELL_ENTRY = "entry"
CELL_EXIT = "exit"
CELL_TYPES = {CELL_WALL, CELL_FLOOR, CELL_ENTRY, CELL_EXIT}

ROW_GLYPHS = {CELL_WALL: "#", CELL_FLOOR: ".", CELL_ENTRY: "E", CELL_EXIT: "X"}
GLYPH_CELL_TYPES = {glyph: cell_type for cell_type, glyph in ROW_GLYPHS.items()}

DIRECTION_EAST = "east"
DIRECTION_WEST = "west"
DIRECTION_SOUTH = "south"
DIRECTION_NORTH = "north"

# Iteration order matters: every BFS and neighbour scan walks this tuple.
DIRECTION_STEPS: tuple[tuple[str, int, int], ...] = (
    (DIRECTION_EAST, 1, 0),
    (DIRECTION_WEST, -1, 0),
    (DIRECTION_SOUTH, 0, 1),
    (DIRECTION_NORTH, 0, -1),
)
CARDINAL_DIRECTIONS = {name for name, _, _ in DIRECTION_STEPS}
DIRECTION_DELTAS = {name: (dx, dy) for name, dx, dy in DIRECTION_STEPS}


def _require_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value


@dataclass(frozen=True, order=True)
class TilePoint:
    """Integer grid coordinate (x, y); y grows southward."""

    x: int
    y: int

    def step(self, direction: str) -> "TilePoint":
        if direction not in DIRECTION_DELTAS:
            raise ValueError(f"unknown direction: {direction}")
        dx, dy = DIRECTION_DELTAS[direction]
        return TilePoint(self.x + dx, self.y + dy)

    def manhattan(self, other: "TilePoint") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def distance_squared(self, other: "TilePoint") -> int:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TilePoint":
        return cls(x=int(data["x"]), y=int(data["y"]))


@dataclass
class MazeCell:
    x: int
    y: int
    cell_type: str = CELL_WALL
    explored: bool = False
    currently_visible: bool = False

    def __post_init__(self) -> None:
        if self.cell_type not in CELL_TYPES:
            raise ValueError(f"invalid cell_type: {self.cell_type}")

    @property
    def passable(self) -> bool:
        return self.cell_type != CELL_WALL

    def carve(self) -> None:
        if self.cell_type in {CELL_ENTRY, CELL_EXIT}:
            return
        self.cell_type = CELL_FLOOR


@dataclass(frozen=True)
class MazeParams:
    """Generation inputs, derived purely from level number and player seed."""

    level: int
    width: int
    height: int
    seed: str
    complexity: float = 0.3
    dead_end_ratio: float = 0.1
    loop_chance: float = 0.0

    def __post_init__(self) -> None:
        _require_int(self.level, field_name="params.level")
        _require_int(self.width, field_name="params.width")
        _require_int(self.height, field_name="params.height")
        if self.level < 1:
            raise ValueError("params.level must be >= 1")
        if self.width < 2 or self.height < 2:
            raise ValueError("params.width and params.height must be >= 2")
        if not isinstance(self.seed, str) or not self.seed:
            raise ValueError("params.seed must be a non-empty string")
        if not 0.0 <= float(self.loop_chance) <= 1.0:
            raise ValueError("params.loop_chance must be within [0.0, 1.0]")


@dataclass
class MazeInstance:
    level: int
    width: int
    height: int
    seed: str
    cells: list[list[MazeCell]]
    entry: TilePoint
    exit: TilePoint
    hazards: list[Any] | None = None
    item_spawns: list[Any] | None = None

    def __post_init__(self) -> None:
        if len(self.cells) != self.height or any(len(row) != self.width for row in self.cells):
            raise ValueError("maze cells must match width and height")
        for label, point in (("entry", self.entry), ("exit", self.exit)):
            cell = self.cell_at(point.x, point.y)
            if cell is None:
                raise ValueError(f"maze {label} must lie inside the grid")
            if not cell.passable:
                raise ValueError(f"maze {label} must not be a wall")

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_at(self, x: int, y: int) -> MazeCell | None:
        if not self.in_bounds(x, y):
            return None
        return self.cells[y][x]

    def is_passable(self, x: int, y: int) -> bool:
        cell = self.cell_at(x, y)
        return cell is not None and cell.passable

    def is_endpoint(self, tile: TilePoint) -> bool:
        return tile == self.entry or tile == self.exit

    def passable_neighbors(self, tile: TilePoint) -> list[tuple[str, TilePoint]]:
        neighbors: list[tuple[str, TilePoint]] = []
        for direction, dx, dy in DIRECTION_STEPS:
            if self.is_passable(tile.x + dx, tile.y + dy):
                neighbors.append((direction, TilePoint(tile.x + dx, tile.y + dy)))
        return neighbors

    def passable_neighbor_count(self, tile: TilePoint) -> int:
        return len(self.passable_neighbors(tile))

    def passable_tiles(self, *, include_endpoints: bool = True) -> list[TilePoint]:
        tiles: list[TilePoint] = []
        for row in self.cells:
            for cell in row:
                if not cell.passable:
                    continue
                tile = TilePoint(cell.x, cell.y)
                if not include_endpoints and self.is_endpoint(tile):
                    continue
                tiles.append(tile)
        return tiles

    def dead_ends(self) -> list[TilePoint]:
        """Passable non-endpoint tiles with exactly one passable neighbour."""
        return [
            tile
            for tile in self.passable_tiles(include_endpoints=False)
            if self.passable_neighbor_count(tile) == 1
        ]

    def reset_fog(self) -> None:
        for row in self.cells:
            for cell in row:
                cell.explored = False
                cell.currently_visible = False

    def to_rows(self) -> list[str]:
        return ["".join(ROW_GLYPHS[cell.cell_type] for cell in row) for row in self.cells]

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "width": self.width,
            "height": self.height,
            "seed": self.seed,
            "rows": self.to_rows(),
            "entry": self.entry.to_dict(),
            "exit": self.exit.to_dict(),
            "explored": [[cell.x, cell.y] for row in self.cells for cell in row if cell.explored],
            "visible": [[cell.x, cell.y] for row in self.cells for cell in row if cell.currently_visible],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MazeInstance":
        rows = data.get("rows")
        if not isinstance(rows, list):
            raise ValueError("maze.rows must be a list")
        maze = cls.from_rows(rows, level=int(data.get("level", 1)), seed=str(data.get("seed", "rows")))
        if maze.entry != TilePoint.from_dict(data["entry"]) or maze.exit != TilePoint.from_dict(data["exit"]):
            raise ValueError("maze entry/exit disagree with rows")
        for key, attribute in (("explored", "explored"), ("visible", "currently_visible")):
            for coord in data.get(key, []):
                cell = maze.cell_at(int(coord[0]), int(coord[1]))
                if cell is None:
                    raise ValueError(f"maze.{key} references a cell outside the grid")
                setattr(cell, attribute, True)
        return maze

    @classmethod
    def from_rows(cls, rows: list[str], *, level: int = 1, seed: str = "rows") -> "MazeInstance":
        if not rows:
            raise ValueError("maze rows must not be empty")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("maze rows must all have the same length")

        entries: list[TilePoint] = []
        exits: list[TilePoint] = []
        cells: list[list[MazeCell]] = []
        for y, row in enumerate(rows):
            cell_row: list[MazeCell] = []
            for x, glyph in enumerate(row):
                if glyph not in GLYPH_CELL_TYPES:
                    raise ValueError(f"unknown maze glyph {glyph!r} at ({x}, {y})")
                cell_type = GLYPH_CELL_TYPES[glyph]
                if cell_type == CELL_ENTRY:
                    entries.append(TilePoint(x, y))
                elif cell_type == CELL_EXIT:
                    exits.append(TilePoint(x, y))
                cell_row.append(MazeCell(x=x, y=y, cell_type=cell_type))
            cells.append(cell_row)

        if len(entries) != 1 or len(exits) != 1:
            raise ValueError("maze rows must contain exactly one entry (E) and one exit (X)")
        return cls(
            level=level,
            width=width,
            height=len(rows),
            seed=seed,
            cells=cells,
            entry=entries[0],
            exit=exits[0],
        )


@dataclass
class MazeNetwork:
    """Level number -> generated maze, kept so backtracking never re-rolls geometry."""

    mazes: dict[int, MazeInstance] = field(default_factory=dict)

    def get(self, level: int) -> MazeInstance | None:
        return self.mazes.get(level)

    def put(self, maze: MazeInstance) -> None:
        self.mazes[maze.level] = maze

    def levels(self) -> list[int]:
        return sorted(self.mazes)

    def clear(self) -> None:
        self.mazes.clear()
