from pathlib import Path

from mazed.cli.new_save import main
from mazed.content.io import load_state_from_file, read_save_code
from mazed.content.save_code import SaveCodec
from mazed.sim.hash import maze_hash
from mazed.sim.session import GameSession


def test_new_save_emits_code_and_writes_file(tmp_path: Path, capsys) -> None:
    out_path = tmp_path / "saves" / "demo.txt"

    exit_code = main(["demo", "--out", str(out_path), "--print-summary", "--character", "character_female_1"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "summary level=1 grid=9x9 " in output
    assert "ok seed=demo character=character_female_1 code=MAZED-" in output
    assert f"save_path={out_path}" in output

    state = load_state_from_file(out_path)
    assert state.seed == "demo"
    assert state.current_level == 1
    assert state.player_character_id == "character_female_1"

    session = GameSession()
    session.from_save_state(state)
    assert f"maze_hash={maze_hash(session.maze)}" in output


def test_new_save_code_is_deterministic(capsys) -> None:
    assert main(["demo"]) == 0
    first = capsys.readouterr().out
    assert main(["demo"]) == 0
    second = capsys.readouterr().out

    assert first == second
    code = first.strip().split("code=")[1]
    assert SaveCodec.decode(code).ok is True


def test_new_save_requires_force_to_overwrite(tmp_path: Path, capsys) -> None:
    out_path = tmp_path / "existing.txt"
    out_path.write_text("keep me\n", encoding="utf-8")

    exit_code = main(["demo", "--out", str(out_path)])
    output = capsys.readouterr().out

    assert exit_code == 1
    assert "use --force" in output
    assert out_path.read_text(encoding="utf-8") == "keep me\n"

    assert main(["demo", "--out", str(out_path), "--force"]) == 0
    assert read_save_code(out_path).startswith("MAZED-")


def test_new_save_rejects_blank_seed(capsys) -> None:
    exit_code = main(["   "])

    assert exit_code == 1
    assert "error: seed must be a non-empty string" in capsys.readouterr().out
