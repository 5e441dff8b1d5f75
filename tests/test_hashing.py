from mazed.sim.hash import make_checksum, maze_hash
from mazed.sim.maze import MazeInstance

ROWS = ["#####", "#E.X#", "#####"]


def test_checksum_is_six_uppercase_base36_characters() -> None:
    checksum = make_checksum("0A0B0C")

    assert len(checksum) == 6
    assert checksum == checksum.upper()
    assert set(checksum) <= set("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ")
    assert checksum == make_checksum("0A0B0C")
    assert make_checksum("0A0B0D") != checksum


def test_checksum_of_empty_payload_matches_fnv_offset_basis() -> None:
    # 0x811c9dc5 in base36 is "ZTNTFP".
    assert make_checksum("") == "ZTNTFP"


def test_maze_hash_ignores_fog_unless_requested() -> None:
    clean = MazeInstance.from_rows(ROWS)
    fogged = MazeInstance.from_rows(ROWS)
    fogged.cells[1][2].explored = True

    assert maze_hash(clean) == maze_hash(fogged)
    assert maze_hash(clean, include_fog=True) != maze_hash(fogged, include_fog=True)


def test_maze_hash_tracks_layout() -> None:
    assert maze_hash(MazeInstance.from_rows(ROWS)) != maze_hash(MazeInstance.from_rows(["#####", "#X.E#", "#####"]))
