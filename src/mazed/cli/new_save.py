from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from mazed.content.config import resolve_game_config
from mazed.content.io import write_save_code
from mazed.content.save_code import DEFAULT_PLAYER_CHARACTER_ID, PLAYER_CHARACTER_IDS
from mazed.sim.hash import maze_hash
from mazed.sim.session import GameSession


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mazed-new-save",
        description="Start a fresh run for a seed and emit its portable MAZED save code.",
    )
    parser.add_argument("seed", help="Player seed string for the new run")
    parser.add_argument(
        "--character",
        default=DEFAULT_PLAYER_CHARACTER_ID,
        choices=PLAYER_CHARACTER_IDS,
        help=f"Player character id (default: {DEFAULT_PLAYER_CHARACTER_ID})",
    )
    parser.add_argument("--out", help="Optional path to write the save code to")
    parser.add_argument("--force", action="store_true", help="Overwrite --out if it already exists")
    parser.add_argument("--config", help="Game config JSON path")
    parser.add_argument(
        "--print-summary",
        action="store_true",
        help="Print level, grid size, entry/exit and maze hash of the starting level",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    try:
        if not args.seed.strip():
            raise ValueError("seed must be a non-empty string")

        out_path = Path(args.out) if args.out else None
        if out_path is not None and out_path.exists() and not args.force:
            raise ValueError(f"output exists: {out_path} (use --force to overwrite)")

        session = GameSession(config=resolve_game_config(args.config))
        session.new_game(args.seed, args.character)
        code = session.save_code()

        if out_path is not None:
            write_save_code(out_path, code)

        if args.print_summary:
            maze = session.maze
            if maze is None:
                raise RuntimeError("new game did not load a level")
            print(
                "summary "
                f"level={session.current_level} "
                f"grid={maze.width}x{maze.height} "
                f"entry={maze.entry.x},{maze.entry.y} "
                f"exit={maze.exit.x},{maze.exit.y} "
                f"maze_hash={maze_hash(maze)}"
            )

        print(f"ok seed={args.seed} character={session.player_character_id} code={code}")
        if out_path is not None:
            print(f"save_path={out_path}")
    except Exception as exc:
        print(f"error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
