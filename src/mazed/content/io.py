from __future__ import annotations

import os
from pathlib import Path
from tempfile import NamedTemporaryFile

from mazed.content.save_code import SaveCodec, SaveState


def _write_atomic_text(path: str | Path, text: str) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_file.write(text)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def write_save_code(path: str | Path, code: str) -> None:
    _write_atomic_text(path, code.strip() + "\n")


def read_save_code(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8").strip()


def save_state_to_file(path: str | Path, state: SaveState) -> str:
    code = SaveCodec.encode(state)
    write_save_code(path, code)
    return code


def load_state_from_file(path: str | Path) -> SaveState:
    return SaveCodec.decode_or_raise(read_save_code(path))
