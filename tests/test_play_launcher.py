from pathlib import Path

from mazed.cli.play import DEFAULT_SAVE_PATH, main
from mazed.content.io import load_state_from_file


def test_play_launcher_creates_save_when_missing(tmp_path: Path, monkeypatch) -> None:
    save_path = tmp_path / "canonical.txt"

    def fake_run(**kwargs):
        assert kwargs["headless"] is True
        assert kwargs["load_save"] == str(save_path)
        assert kwargs["save_path"] == str(save_path)
        assert kwargs["seed"] == "7"
        return 0

    monkeypatch.setattr("mazed.cli.play.run_pygame_viewer", fake_run)

    result = main(["--headless", "--load-save", str(save_path), "--seed", "7"])

    assert result == 0
    assert save_path.exists()
    assert load_state_from_file(save_path).seed == "7"


def test_play_launcher_keeps_existing_save(tmp_path: Path, monkeypatch) -> None:
    save_path = tmp_path / "canonical.txt"
    save_path.write_text("MAZED-existing\n", encoding="utf-8")
    monkeypatch.setattr("mazed.cli.play.run_pygame_viewer", lambda **_: 0)

    assert main(["--load-save", str(save_path)]) == 0
    assert save_path.read_text(encoding="utf-8") == "MAZED-existing\n"


def test_play_launcher_defaults_to_canonical_save_path(monkeypatch) -> None:
    captured = {}

    def fake_run(**kwargs):
        captured.update(kwargs)
        return 0

    monkeypatch.setattr("mazed.cli.play.run_pygame_viewer", fake_run)
    monkeypatch.setattr("mazed.cli.play._ensure_save_exists", lambda **_: None)

    result = main(["--headless"])

    assert result == 0
    assert captured["load_save"] == DEFAULT_SAVE_PATH
    assert captured["save_path"] == DEFAULT_SAVE_PATH
    assert captured["seed"] == "demo"
