from __future__ import annotations

import argparse
import logging
from typing import Sequence

from mazed.cli.viewer import AsciiViewer
from mazed.content.config import resolve_game_config
from mazed.content.io import read_save_code, write_save_code
from mazed.content.save_code import SaveCodec, SaveState
from mazed.sim.hash import maze_hash, session_hash
from mazed.sim.items import ITEM_DISPLAY_NAMES, unlocked_tool_ids
from mazed.sim.session import GameSession


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mazed-save-tool",
        description=(
            "Inspect a MAZED save code: verify integrity, summarize progress, "
            "rebuild the saved level and optionally re-emit a current-version code."
        ),
    )
    parser.add_argument("code", nargs="?", help="Save code to inspect")
    parser.add_argument("--file", help="Read the save code from this file instead")
    parser.add_argument("--config", help="Game config JSON path")
    parser.add_argument("--print-level", action="store_true", help="Render the saved level without fog")
    parser.add_argument("--list-hazards", action="store_true", help="List hazards on the saved level")
    parser.add_argument("--list-items", action="store_true", help="List remaining item spawns on the saved level")
    parser.add_argument("--dump-code", help="Write the migrated current-version save code to this path")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser


def _print_header(state: SaveState) -> None:
    print(
        "header "
        f"version={state.version} "
        f"seed={state.seed} "
        f"character={state.player_character_id} "
        f"level={state.current_level} "
        f"completed={len(state.completed_levels)} "
        f"playtime={state.playtime} "
        f"shards={state.collected_shards} "
        f"hub_unlocked={str(state.portal_hub_unlocked).lower()}"
    )
    tools = unlocked_tool_ids(state.unlocked_tools)
    print(f"tools unlocked={','.join(tools) if tools else 'none'} active={state.active_tool_id or 'none'}")
    print("integrity=OK")


def _print_hazards(session: GameSession) -> None:
    hazards = session.hazard_runtime.hazards()
    if not hazards:
        print("hazard none")
    for hazard in hazards:
        details = " ".join(
            f"{key}={value}" for key, value in hazard.to_dict().items() if key not in {"id", "kind", "tile_x", "tile_y"}
        )
        print(f"hazard id={hazard.hazard_id} kind={hazard.kind} tile={hazard.tile_x},{hazard.tile_y} {details}".rstrip())


def _print_items(session: GameSession) -> None:
    spawns = session.item_registry.spawns()
    if not spawns:
        print("item none")
    for spawn in spawns:
        print(
            f"item id={spawn.spawn_id} item_id={spawn.item_id} "
            f"name={ITEM_DISPLAY_NAMES[spawn.item_id].replace(' ', '_')} tile={spawn.tile_x},{spawn.tile_y}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    try:
        if args.file:
            code = read_save_code(args.file)
        elif args.code:
            code = args.code
        else:
            raise ValueError("provide a save code or --file")

        result = SaveCodec.decode(code)
        if result.error is not None:
            print(f"integrity=FAILED code={result.error.code} message={result.error.message}")
            return 1
        state = result.value
        if state is None:
            raise RuntimeError("save decode produced neither a state nor an error")
        _print_header(state)

        session = GameSession(config=resolve_game_config(args.config))
        session.from_save_state(state)
        if session.maze is None:
            raise RuntimeError("save did not load a level")
        print(f"maze_hash={maze_hash(session.maze)}")
        print(f"session_hash={session_hash(session)}")

        if args.print_level:
            print(AsciiViewer(fog=False).render(session))
        if args.list_hazards:
            _print_hazards(session)
        if args.list_items:
            _print_items(session)
        if args.dump_code:
            write_save_code(args.dump_code, SaveCodec.encode(state))
            print(f"dumped_code={args.dump_code}")
    except Exception as exc:
        print(f"error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
