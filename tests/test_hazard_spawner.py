import pytest

from mazed.sim.difficulty import get_maze_params
from mazed.sim.generator import MazeGenerator
from mazed.sim.hazards import (
    AXIS_HORIZONTAL,
    AXIS_VERTICAL,
    HAZARD_LOCKED_DOOR,
    HAZARD_ONE_WAY_DOOR,
    HAZARD_PRESSURE_PLATE,
    HAZARD_PRESSURE_PLATE_DOOR,
    PLATE_LINK_MAX_DISTANCE,
    HazardSpawner,
    LockedDoorHazard,
    OneWayDoorHazard,
    PressurePlateDoorHazard,
    PressurePlateHazard,
    get_locked_door_count,
    get_one_way_count,
    get_pressure_pair_count,
    hazard_from_dict,
    passage_axis_for,
)
from mazed.sim.maze import MazeInstance, TilePoint
from mazed.sim.pathing import shortest_path_tiles
from mazed.sim.rng import SeededRandom

SEEDS = ["demo", "alpha", "beta", "gamma", "delta", "epsilon"]


def _maze(seed: str, level: int) -> MazeInstance:
    return MazeGenerator().generate(get_maze_params(seed, level))


def test_hazard_counts_scale_with_level() -> None:
    random = SeededRandom("counts")

    assert get_one_way_count(5, random) == 0
    assert get_one_way_count(6, random) == 1
    assert get_one_way_count(12, random) in {1, 2}
    assert get_one_way_count(18, random) in {2, 3}
    assert get_one_way_count(30, random) in {3, 4}
    assert get_pressure_pair_count(10, random) == 0
    assert get_pressure_pair_count(11, random) == 1
    assert get_pressure_pair_count(25, random) in {1, 2}
    assert [get_locked_door_count(level) for level in (10, 11, 20, 21)] == [0, 1, 1, 2]


def test_early_levels_spawn_no_hazards() -> None:
    for seed in SEEDS:
        assert HazardSpawner().spawn_hazards(_maze(seed, 1)) == []


def test_spawning_is_deterministic_per_maze_seed() -> None:
    maze = _maze("demo", 14)

    first = [hazard.to_dict() for hazard in HazardSpawner().spawn_hazards(maze)]
    second = [hazard.to_dict() for hazard in HazardSpawner().spawn_hazards(_maze("demo", 14))]

    assert first == second


@pytest.mark.parametrize("level", [6, 11, 16, 21, 25])
def test_hazards_avoid_critical_path_endpoints_and_walls(level: int) -> None:
    for seed in SEEDS:
        maze = _maze(seed, level)
        critical_path = shortest_path_tiles(maze)
        hazards = HazardSpawner().spawn_hazards(maze)

        tiles = [hazard.tile for hazard in hazards]
        assert len(tiles) == len(set(tiles))
        for hazard in hazards:
            assert maze.is_passable(hazard.tile_x, hazard.tile_y)
            assert not maze.is_endpoint(hazard.tile)
            assert hazard.tile not in critical_path
            assert hazard.hazard_id.startswith(f"hazard_{level}_")


@pytest.mark.parametrize("level", [11, 16, 21, 25])
def test_pressure_plates_link_to_nearby_door_with_shared_color(level: int) -> None:
    for seed in SEEDS:
        hazards = HazardSpawner().spawn_hazards(_maze(seed, level))
        by_id = {hazard.hazard_id: hazard for hazard in hazards}

        plates = [hazard for hazard in hazards if isinstance(hazard, PressurePlateHazard)]
        doors = [hazard for hazard in hazards if isinstance(hazard, PressurePlateDoorHazard)]
        assert len(plates) == len(doors)
        for plate in plates:
            door = by_id[plate.linked_door_id]
            assert isinstance(door, PressurePlateDoorHazard)
            assert door.color_key == plate.color_key
            assert door.tile != plate.tile
            assert door.tile.manhattan(plate.tile) <= PLATE_LINK_MAX_DISTANCE


def test_late_levels_place_some_hazards_of_each_kind() -> None:
    kinds: set[str] = set()
    for seed in SEEDS:
        for level in (21, 25):
            kinds.update(hazard.kind for hazard in HazardSpawner().spawn_hazards(_maze(seed, level)))

    assert kinds == {HAZARD_ONE_WAY_DOOR, HAZARD_LOCKED_DOOR, HAZARD_PRESSURE_PLATE, HAZARD_PRESSURE_PLATE_DOOR}


def test_placement_never_exceeds_level_targets() -> None:
    for seed in SEEDS:
        hazards = HazardSpawner().spawn_hazards(_maze(seed, 14))
        kinds = [hazard.kind for hazard in hazards]

        assert kinds.count(HAZARD_ONE_WAY_DOOR) <= 2
        assert kinds.count(HAZARD_PRESSURE_PLATE) <= 1
        assert kinds.count(HAZARD_LOCKED_DOOR) <= 1


def test_spawner_uses_configured_close_delay() -> None:
    for seed in SEEDS:
        doors = [
            hazard
            for hazard in HazardSpawner(close_delay_seconds=5.5).spawn_hazards(_maze(seed, 21))
            if isinstance(hazard, PressurePlateDoorHazard)
        ]
        assert all(door.close_delay_seconds == 5.5 for door in doors)


def test_passage_axis_follows_corridor_orientation() -> None:
    maze = MazeInstance.from_rows(
        [
            "#####",
            "#E..#",
            "###.#",
            "###X#",
            "#####",
        ]
    )
    random = SeededRandom("axis")

    assert passage_axis_for(maze, TilePoint(2, 1), random) == AXIS_HORIZONTAL
    assert passage_axis_for(maze, TilePoint(3, 2), random) == AXIS_VERTICAL
    assert passage_axis_for(maze, TilePoint(3, 1), random) in {AXIS_HORIZONTAL, AXIS_VERTICAL}


def test_hazard_dict_round_trip_by_kind() -> None:
    hazards = [
        OneWayDoorHazard(hazard_id="h0", tile_x=1, tile_y=2, allowed_direction="north"),
        LockedDoorHazard(hazard_id="h1", tile_x=3, tile_y=2, passage_axis=AXIS_VERTICAL, is_open=True),
        PressurePlateDoorHazard(hazard_id="h2", tile_x=4, tile_y=4, color_key="jade", close_timer_seconds=1),
        PressurePlateHazard(hazard_id="h3", tile_x=5, tile_y=4, linked_door_id="h2", color_key="jade"),
    ]

    assert [hazard_from_dict(hazard.to_dict()) for hazard in hazards] == hazards


def test_hazard_validation_rejects_bad_fields() -> None:
    with pytest.raises(ValueError, match="allowed_direction"):
        OneWayDoorHazard(hazard_id="h0", tile_x=1, tile_y=1, allowed_direction="up")
    with pytest.raises(ValueError, match="passage_axis"):
        LockedDoorHazard(hazard_id="h1", tile_x=1, tile_y=1, passage_axis="diagonal")
    with pytest.raises(ValueError, match="unknown hazard kind"):
        hazard_from_dict({"id": "h2", "kind": "spikes", "tile_x": 1, "tile_y": 1})
