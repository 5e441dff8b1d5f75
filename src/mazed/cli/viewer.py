from __future__ import annotations

import argparse
import logging
from typing import Callable, Sequence

from mazed.content.config import resolve_game_config
from mazed.sim.hazards import (
    Hazard,
    LockedDoorHazard,
    OneWayDoorHazard,
    PressurePlateDoorHazard,
    PressurePlateHazard,
)
from mazed.sim.items import ITEM_MAZE_SHARD, ITEM_WAYFINDER_STONE, is_tool_id
from mazed.sim.maze import CARDINAL_DIRECTIONS, ROW_GLYPHS
from mazed.sim.session import GameSession

ONE_WAY_GLYPHS = {"east": ">", "west": "<", "south": "v", "north": "^"}
DIRECTION_ALIASES = {"e": "east", "w": "west", "s": "south", "n": "north"}
UNKNOWN_GLYPH = " "


def _hazard_glyph(hazard: Hazard) -> str:
    if isinstance(hazard, OneWayDoorHazard):
        return ONE_WAY_GLYPHS[hazard.allowed_direction]
    if isinstance(hazard, LockedDoorHazard):
        return "l" if hazard.is_open else "L"
    if isinstance(hazard, PressurePlateHazard):
        return "O" if hazard.active else "o"
    if isinstance(hazard, PressurePlateDoorHazard):
        return "d" if hazard.is_open else "D"
    return "?"


def _item_glyph(item_id: str) -> str:
    if item_id == ITEM_MAZE_SHARD:
        return "*"
    if item_id == ITEM_WAYFINDER_STONE:
        return "W"
    if is_tool_id(item_id):
        return "T"
    return "i"


class AsciiViewer:
    """Read-only projection of a session for terminal display."""

    def __init__(self, *, fog: bool = True) -> None:
        self.fog = fog

    def render(self, session: GameSession) -> str:
        maze = session.maze
        tile = session.player_tile
        tile_text = f"{tile.x},{tile.y}" if tile is not None else "-"
        lines = [
            f"level={session.current_level} "
            f"tile={tile_text} "
            f"shards={session.collected_shards} "
            f"tool={session.tools.active_tool_id or '-'} "
            f"playtime={int(session.playtime_seconds)}"
        ]
        if maze is None:
            return "\n".join(lines + ["<no level loaded>"])

        overlays: dict[tuple[int, int], str] = {}
        for spawn in session.item_registry.spawns():
            overlays[(spawn.tile_x, spawn.tile_y)] = _item_glyph(spawn.item_id)
        for hazard in session.hazard_runtime.hazards():
            overlays[(hazard.tile_x, hazard.tile_y)] = _hazard_glyph(hazard)
        if tile is not None:
            overlays[(tile.x, tile.y)] = "@"

        for row in maze.cells:
            glyphs: list[str] = []
            for cell in row:
                if self.fog and not cell.explored:
                    glyphs.append(UNKNOWN_GLYPH)
                    continue
                glyphs.append(overlays.get((cell.x, cell.y), ROW_GLYPHS[cell.cell_type]))
            lines.append("".join(glyphs))
        return "\n".join(lines)


class SessionController:
    """Text command adapter over a session; returns a status line per command."""

    def __init__(self, session: GameSession) -> None:
        self.session = session

    def move(self, direction: str) -> str:
        direction = DIRECTION_ALIASES.get(direction, direction)
        if direction not in CARDINAL_DIRECTIONS:
            return f"unknown direction: {direction}"
        outcome = self.session.try_move(direction)
        if not outcome.moved:
            return f"blocked by {outcome.blocked_by}"
        parts = [f"moved to {outcome.tile.x},{outcome.tile.y}"]
        parts.extend(f"picked up {pickup.item_id}" for pickup in outcome.pickups)
        parts.extend(
            f"door {transition.hazard_id} {'opened' if transition.open else 'closed'}"
            for transition in outcome.door_transitions
        )
        if outcome.reached_exit:
            parts.append("exit reached (use 'next')")
        return "; ".join(parts)

    def tick(self, seconds: float) -> str:
        outcome = self.session.tick(seconds)
        parts = [f"playtime={int(self.session.playtime_seconds)}"]
        parts.extend(
            f"door {transition.hazard_id} {'opened' if transition.open else 'closed'}"
            for transition in outcome.door_transitions
        )
        if outcome.tool_expired is not None:
            parts.append(f"{outcome.tool_expired.tool_id} expired")
        return "; ".join(parts)

    def advance(self) -> str:
        self.session.advance_level()
        return f"entered level {self.session.current_level}"

    def backtrack(self) -> str:
        self.session.backtrack_level()
        return f"returned to level {self.session.current_level}"

    def save(self) -> str:
        return self.session.save_code()


def run_demo(
    seed: str = "demo",
    *,
    config_path: str | None = None,
    fog: bool = True,
    input_fn: Callable[[str], str] = input,
) -> None:
    session = GameSession(config=resolve_game_config(config_path))
    session.new_game(seed)

    view = AsciiViewer(fog=fog)
    controller = SessionController(session)

    print("Mazed demo. Commands: show | move <n|s|e|w> | tick <seconds> | next | back | save | quit")
    print(view.render(session))

    while True:
        try:
            raw = input_fn("> ").strip()
        except EOFError:
            break
        if raw in {"quit", "exit"}:
            break
        if raw == "show":
            print(view.render(session))
            continue

        parts = raw.split()
        try:
            if len(parts) == 2 and parts[0] == "move":
                print(controller.move(parts[1]))
                print(view.render(session))
                continue
            if len(parts) == 2 and parts[0] == "tick":
                print(controller.tick(float(parts[1])))
                continue
            if parts == ["next"]:
                print(controller.advance())
                print(view.render(session))
                continue
            if parts == ["back"]:
                print(controller.backtrack())
                print(view.render(session))
                continue
            if parts == ["save"]:
                print(controller.save())
                continue
        except ValueError as exc:
            print(f"error: {exc}")
            continue

        print("unknown command")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mazed-viewer", description="Terminal maze viewer over a game session.")
    parser.add_argument("--seed", default="demo", help="Player seed (default: demo)")
    parser.add_argument("--config", help="Game config JSON path")
    parser.add_argument("--no-fog", action="store_true", help="Render unexplored cells too")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())
    run_demo(args.seed, config_path=args.config, fog=not args.no_fog)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
