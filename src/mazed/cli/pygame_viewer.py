from __future__ import annotations

import argparse
import importlib.metadata
import logging
import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mazed.content.config import GameConfig, resolve_game_config
from mazed.content.io import load_state_from_file, save_state_to_file
from mazed.sim.hash import session_hash
from mazed.sim.hazards import LockedDoorHazard, OneWayDoorHazard, PressurePlateDoorHazard, PressurePlateHazard
from mazed.sim.items import ITEM_MAZE_SHARD, ITEM_WAYFINDER_STONE
from mazed.sim.maze import CELL_ENTRY, CELL_EXIT, CELL_FLOOR, CELL_WALL, MazeCell
from mazed.sim.session import GameSession
from mazed.sim.visibility import fog_opacity

WINDOW_SIZE = (960, 720)
HUD_HEIGHT = 48
SIM_TICK_SECONDS = 0.10
BASE_MOVE_INTERVAL_SECONDS = 0.18
DEFAULT_SAVE_PATH = "saves/session_save.txt"
DEFAULT_SEED = "demo"

BACKGROUND_COLOR = (12, 12, 18)
CELL_COLORS: dict[str, tuple[int, int, int]] = {
    CELL_WALL: (58, 54, 70),
    CELL_FLOOR: (168, 158, 132),
    CELL_ENTRY: (96, 170, 220),
    CELL_EXIT: (230, 190, 80),
}
PLAYER_COLOR = (240, 240, 250)
HAZARD_COLORS: dict[str, tuple[int, int, int]] = {
    "one_way_door": (200, 120, 60),
    "locked_door": (150, 60, 60),
    "pressure_plate": (110, 110, 200),
    "pressure_plate_door": (70, 70, 160),
}
ITEM_COLORS: dict[str, tuple[int, int, int]] = {
    ITEM_MAZE_SHARD: (120, 230, 220),
    ITEM_WAYFINDER_STONE: (230, 120, 230),
}
TOOL_ITEM_COLOR = (250, 220, 120)

MOVE_KEYS = {"w": "north", "s": "south", "a": "west", "d": "east"}

pygame: Any | None = None


@dataclass
class MoveRepeater:
    """Held-key stepping; faster intervals while a speed tool is active."""

    base_interval_seconds: float = BASE_MOVE_INTERVAL_SECONDS
    elapsed_seconds: float = 0.0
    held_direction: str | None = None

    def press(self, direction: str) -> None:
        self.held_direction = direction
        self.elapsed_seconds = 0.0

    def release(self, direction: str) -> None:
        if self.held_direction == direction:
            self.held_direction = None
            self.elapsed_seconds = 0.0

    def advance(self, dt_seconds: float, speed_multiplier: float) -> bool:
        if self.held_direction is None:
            return False
        self.elapsed_seconds += dt_seconds
        interval = self.base_interval_seconds / max(speed_multiplier, 0.01)
        if self.elapsed_seconds < interval:
            return False
        self.elapsed_seconds -= interval
        return True


def shade(color: tuple[int, int, int], opacity: float) -> tuple[int, int, int]:
    return (int(color[0] * opacity), int(color[1] * opacity), int(color[2] * opacity))


def cell_draw_color(cell: MazeCell) -> tuple[int, int, int]:
    return shade(CELL_COLORS[cell.cell_type], fog_opacity(cell))


def tile_size_for(width: int, height: int) -> int:
    usable_height = WINDOW_SIZE[1] - HUD_HEIGHT
    return max(4, min(WINDOW_SIZE[0] // max(width, 1), usable_height // max(height, 1)))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mazed-pygame-viewer", description="Run the Mazed pygame viewer.")
    parser.add_argument("--seed", default=DEFAULT_SEED, help="Seed for a new run when no save is loaded.")
    parser.add_argument("--config", help="Game config JSON path.")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Force SDL dummy video driver for CI/testing and exit without opening a real window.",
    )
    parser.add_argument("--load-save", help="Optional save code file to load on startup.")
    parser.add_argument(
        "--save-path",
        default=DEFAULT_SAVE_PATH,
        help="Save code file used by F5 save and F9 load.",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser


def _env_flag_enabled(var_name: str) -> bool:
    return os.environ.get(var_name, "").strip().lower() in {"1", "true", "yes", "on"}


def _print_startup_banner() -> None:
    try:
        pygame_version = importlib.metadata.version("pygame")
    except importlib.metadata.PackageNotFoundError:
        pygame_version = "not-installed"
    print(
        "[mazed.viewer] startup "
        f"python={platform.python_version()} "
        f"pygame={pygame_version} "
        f"platform={platform.platform()}"
    )
    for name in ("SDL_VIDEODRIVER", "SDL_AUDIODRIVER"):
        print(f"[mazed.viewer] env {name}={os.environ.get(name, '<unset>')}")


def _ensure_pygame_imported() -> Any:
    global pygame
    if pygame is None:
        import pygame as pygame_module

        pygame = pygame_module
    return pygame


def _build_viewer_session(seed: str, config: GameConfig, load_save: str | None = None) -> GameSession:
    session = GameSession(config=config)
    if load_save:
        state = load_state_from_file(load_save)
        session.from_save_state(state)
        print(
            "[mazed.viewer] loaded "
            f"path={load_save} level={session.current_level} session_hash={session_hash(session)}"
        )
    else:
        session.new_game(seed)
    return session


def _save_viewer_session(session: GameSession, save_path: str) -> str:
    code = save_state_to_file(save_path, session.to_save_state())
    print(f"[mazed.viewer] saved path={save_path} level={session.current_level} code={code}")
    return code


def _draw_session(screen: Any, session: GameSession, font: Any) -> None:
    maze = session.maze
    screen.fill(BACKGROUND_COLOR)
    if maze is None:
        return
    size = tile_size_for(maze.width, maze.height)
    offset_x = (WINDOW_SIZE[0] - size * maze.width) // 2
    offset_y = HUD_HEIGHT

    def rect_for(x: int, y: int, inset: int = 0) -> Any:
        return pygame.Rect(offset_x + x * size + inset, offset_y + y * size + inset, size - inset * 2, size - inset * 2)

    for row in maze.cells:
        for cell in row:
            pygame.draw.rect(screen, cell_draw_color(cell), rect_for(cell.x, cell.y))

    inset = max(1, size // 5)
    for hazard in session.hazard_runtime.hazards():
        cell = maze.cells[hazard.tile_y][hazard.tile_x]
        if not cell.explored:
            continue
        color = shade(HAZARD_COLORS[hazard.kind], fog_opacity(cell))
        is_open = (
            isinstance(hazard, (LockedDoorHazard, PressurePlateDoorHazard)) and hazard.is_open
        ) or (isinstance(hazard, PressurePlateHazard) and hazard.active)
        pygame.draw.rect(screen, color, rect_for(hazard.tile_x, hazard.tile_y, inset), 1 if is_open else 0)
        if isinstance(hazard, OneWayDoorHazard):
            label = font.render(hazard.allowed_direction[0].upper(), True, PLAYER_COLOR)
            screen.blit(label, rect_for(hazard.tile_x, hazard.tile_y, inset).topleft)

    for spawn in session.item_registry.spawns():
        cell = maze.cells[spawn.tile_y][spawn.tile_x]
        if not cell.currently_visible:
            continue
        color = ITEM_COLORS.get(spawn.item_id, TOOL_ITEM_COLOR)
        pygame.draw.circle(screen, color, rect_for(spawn.tile_x, spawn.tile_y).center, max(2, size // 4))

    if session.player_tile is not None:
        pygame.draw.circle(
            screen,
            PLAYER_COLOR,
            rect_for(session.player_tile.x, session.player_tile.y).center,
            max(3, size // 3),
        )

    hud = (
        f"Level {session.current_level}  Shards {session.collected_shards}  "
        f"Tool {session.tools.active_tool_id or '-'}  Time {int(session.playtime_seconds)}s"
    )
    if session.tools.compass_active():
        hud += f"  Exit {maze.exit.x},{maze.exit.y}"
    screen.blit(font.render(hud, True, PLAYER_COLOR), (12, 12))


def run_pygame_viewer(
    *,
    seed: str = DEFAULT_SEED,
    config_path: str | None = None,
    headless: bool = False,
    load_save: str | None = None,
    save_path: str = DEFAULT_SAVE_PATH,
) -> int:
    if headless:
        os.environ["SDL_VIDEODRIVER"] = "dummy"
        print("[mazed.viewer] warning: headless mode active; no window will open.")

    _print_startup_banner()
    pygame_module = _ensure_pygame_imported()

    try:
        pygame_module.init()
    except Exception as exc:
        print(
            "[mazed.viewer] failed during pygame.init(): "
            f"{exc}. Hint: verify a working SDL video driver (set SDL_VIDEODRIVER=dummy for headless mode).",
            file=sys.stderr,
        )
        return 1

    try:
        session = _build_viewer_session(seed, resolve_game_config(config_path), load_save)
    except Exception as exc:
        print(f"[mazed.viewer] failed to initialize session: {exc}", file=sys.stderr)
        pygame_module.quit()
        return 1

    try:
        pygame_module.display.set_caption("Mazed")
        screen = pygame_module.display.set_mode(WINDOW_SIZE)
    except Exception as exc:
        print(
            "[mazed.viewer] failed during pygame.display.set_mode(...): "
            f"{exc}. Hint: GUI sessions require a valid display; use --headless or MAZED_HEADLESS=1.",
            file=sys.stderr,
        )
        pygame_module.quit()
        return 1

    print(f"[mazed.viewer] display initialized: {pygame_module.display.get_driver()}, window size={WINDOW_SIZE}")

    if headless:
        session.tick(SIM_TICK_SECONDS)
        pygame_module.quit()
        return 0

    font = pygame_module.font.Font(None, 24)
    clock = pygame_module.time.Clock()
    repeater = MoveRepeater()
    key_directions = {getattr(pygame_module, f"K_{key}"): direction for key, direction in MOVE_KEYS.items()}
    accumulator = 0.0
    running = True

    def step(direction: str) -> None:
        outcome = session.try_move(direction)
        for pickup in outcome.pickups:
            print(f"[mazed.viewer] picked up {pickup.item_id} spawn={pickup.spawn_id}")
        if outcome.reached_exit:
            session.advance_level()
            repeater.release(direction)
            print(f"[mazed.viewer] entered level {session.current_level}")

    while running:
        dt = clock.tick(60) / 1000.0
        accumulator += dt

        for event in pygame_module.event.get():
            if event.type == pygame_module.QUIT:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_ESCAPE:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_F5:
                _save_viewer_session(session, save_path)
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_F9:
                if Path(save_path).exists():
                    try:
                        session.from_save_state(load_state_from_file(save_path))
                        print(f"[mazed.viewer] loaded path={save_path} level={session.current_level}")
                    except ValueError as exc:
                        print(f"[mazed.viewer] load failed path={save_path}: {exc}", file=sys.stderr)
                else:
                    print(f"[mazed.viewer] load skipped; file not found path={save_path}")
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_b:
                if session.can_backtrack():
                    session.backtrack_level()
                    print(f"[mazed.viewer] returned to level {session.current_level}")
            elif event.type == pygame_module.KEYDOWN and event.key in key_directions:
                direction = key_directions[event.key]
                repeater.press(direction)
                step(direction)
            elif event.type == pygame_module.KEYUP and event.key in key_directions:
                repeater.release(key_directions[event.key])

        if repeater.held_direction is not None and repeater.advance(dt, session.tools.speed_multiplier()):
            step(repeater.held_direction)

        while accumulator >= SIM_TICK_SECONDS:
            outcome = session.tick(SIM_TICK_SECONDS)
            if outcome.tool_expired is not None:
                print(f"[mazed.viewer] {outcome.tool_expired.tool_id} expired")
            accumulator -= SIM_TICK_SECONDS

        _draw_session(screen, session, font)
        pygame_module.display.flip()

    pygame_module.quit()
    return 0


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())
    headless = args.headless or _env_flag_enabled("MAZED_HEADLESS")
    raise SystemExit(
        run_pygame_viewer(
            seed=args.seed,
            config_path=args.config,
            headless=headless,
            load_save=args.load_save,
            save_path=args.save_path,
        )
    )


if __name__ == "__main__":
    main()
