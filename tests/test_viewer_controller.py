from mazed.cli.viewer import AsciiViewer, SessionController, run_demo
from mazed.sim.hazards import OneWayDoorHazard
from mazed.sim.items import ITEM_MAZE_SHARD, ItemSpawn
from mazed.sim.maze import MazeInstance, TilePoint
from mazed.sim.session import GameSession


def _corridor_session() -> GameSession:
    session = GameSession()
    session.new_game("viewer")
    session.maze = MazeInstance.from_rows(["#####", "#E.X#", "#####"])
    session.player_tile = session.maze.entry
    session.hazard_runtime.load_maze(
        [OneWayDoorHazard(hazard_id="hazard_1_0", tile_x=2, tile_y=1, allowed_direction="east")]
    )
    session.item_registry.load([ItemSpawn(spawn_id="item_1_0", item_id=ITEM_MAZE_SHARD, tile_x=3, tile_y=1)])
    return session


def _scripted(lines: list[str]):
    remaining = iter(lines)

    def read(prompt: str) -> str:
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError from None

    return read


def test_ascii_viewer_renders_overlays_without_fog() -> None:
    rendered = AsciiViewer(fog=False).render(_corridor_session()).splitlines()

    assert rendered[0] == "level=1 tile=1,1 shards=0 tool=- playtime=0"
    assert rendered[1:] == ["#####", "#@>*#", "#####"]


def test_ascii_viewer_hides_unexplored_cells_under_fog() -> None:
    session = _corridor_session()
    view = AsciiViewer()

    assert view.render(session).splitlines()[1:] == ["     ", "     ", "     "]

    session.visibility.update(session.player_tile, session.maze, 1)
    assert view.render(session).splitlines()[1:] == [" #   ", "#@>  ", " #   "]


def test_controller_moves_collects_and_reports_exit() -> None:
    session = _corridor_session()
    controller = SessionController(session)

    assert controller.move("e") == "moved to 2,1"
    assert controller.move("east") == "moved to 3,1; picked up maze_shard; exit reached (use 'next')"
    assert session.collected_shards == 1
    assert controller.move("w") == "blocked by one_way_door"
    assert controller.move("up") == "unknown direction: up"


def test_controller_reports_wall_and_tick() -> None:
    session = _corridor_session()
    controller = SessionController(session)

    assert controller.move("n") == "blocked by wall"
    assert controller.tick(2.5) == "playtime=2"


def test_run_demo_processes_scripted_commands(capsys) -> None:
    run_demo(
        "demo",
        input_fn=_scripted(["show", "tick 3", "back", "save", "dance", "quit", "tick 9"]),
    )

    output = capsys.readouterr().out
    assert output.startswith("Mazed demo. Commands:")
    assert "playtime=3" in output
    assert "error: cannot backtrack from level 1" in output
    assert "MAZED-" in output
    assert "unknown command" in output
    assert "playtime=9" not in output


def test_run_demo_stops_on_end_of_input(capsys) -> None:
    run_demo("demo", fog=False, input_fn=_scripted(["move n"]))

    output = capsys.readouterr().out
    assert "level=1 tile=" in output
