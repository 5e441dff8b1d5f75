from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from mazed.cli.pygame_viewer import run_pygame_viewer
from mazed.content.config import resolve_game_config
from mazed.content.io import save_state_to_file
from mazed.sim.session import GameSession

DEFAULT_SAVE_PATH = "saves/canonical_viewer_save.txt"
DEFAULT_SEED = "demo"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mazed-play", description="Canonical Mazed launcher.")
    parser.add_argument("--seed", default=DEFAULT_SEED, help="Seed used when creating the canonical save.")
    parser.add_argument("--load-save", default=DEFAULT_SAVE_PATH, help="Path to the save code file to load at startup.")
    parser.add_argument("--config", help="Game config JSON path.")
    parser.add_argument("--headless", action="store_true", help="Run startup path in headless mode.")
    return parser


def _ensure_save_exists(*, save_path: str, seed: str, config_path: str | None) -> None:
    save_file = Path(save_path)
    if save_file.exists():
        return
    session = GameSession(config=resolve_game_config(config_path))
    session.new_game(seed)
    save_state_to_file(save_file, session.to_save_state())


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _ensure_save_exists(save_path=args.load_save, seed=args.seed, config_path=args.config)
    return run_pygame_viewer(
        seed=args.seed,
        config_path=args.config,
        headless=args.headless,
        load_save=args.load_save,
        save_path=args.load_save,
    )


if __name__ == "__main__":
    raise SystemExit(main())
