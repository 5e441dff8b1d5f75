import pytest

from mazed.sim.items import (
    ITEM_MAZE_SHARD,
    ITEM_WAYFINDER_STONE,
    TOOL_BASIC_TORCH,
    TOOL_COMPASS,
    TOOL_SKELETON_KEY,
    ItemPickup,
    ItemRegistry,
    ItemSpawn,
    ItemSpawner,
    ItemSpawnOptions,
    get_shard_count,
    get_tool_bit,
    get_tool_unlocked_at_level,
    has_tool_unlocked,
    unlock_tool,
    unlocked_tool_ids,
)
from mazed.sim.maze import MazeInstance, TilePoint

# Dead ends at (1, 1), (3, 1) and (5, 1); entry sits at (1, 2).
COMB = [
    "#########",
    "#.#.#.#X#",
    "#E......#",
    "#########",
]
DEAD_ENDS = {TilePoint(1, 1), TilePoint(3, 1), TilePoint(5, 1)}


def _comb(level: int) -> MazeInstance:
    return MazeInstance.from_rows(COMB, level=level, seed=f"comb-{level}")


def test_tool_bitmask_helpers() -> None:
    mask = unlock_tool(0, TOOL_COMPASS)
    mask = unlock_tool(mask, TOOL_SKELETON_KEY)

    assert get_tool_bit(TOOL_BASIC_TORCH) == 1
    assert get_tool_bit(TOOL_COMPASS) == 2
    assert has_tool_unlocked(mask, TOOL_COMPASS) is True
    assert has_tool_unlocked(mask, TOOL_BASIC_TORCH) is False
    assert unlocked_tool_ids(mask) == [TOOL_COMPASS, TOOL_SKELETON_KEY]
    with pytest.raises(ValueError, match="unknown tool id"):
        get_tool_bit("lantern")


def test_tool_unlock_levels_and_shard_tiers() -> None:
    assert get_tool_unlocked_at_level(1) == TOOL_BASIC_TORCH
    assert get_tool_unlocked_at_level(5) == TOOL_COMPASS
    assert get_tool_unlocked_at_level(2) is None
    assert [get_shard_count(level) for level in (1, 5, 6, 15, 16)] == [1, 1, 2, 2, 3]


def test_level_one_places_shard_and_torch_on_dead_ends() -> None:
    spawns = ItemSpawner().spawn_items(_comb(1), ItemSpawnOptions(player_seed="demo"))

    assert [spawn.spawn_id for spawn in spawns] == ["item_1_0", "item_1_1"]
    assert [spawn.item_id for spawn in spawns] == [ITEM_MAZE_SHARD, TOOL_BASIC_TORCH]
    shard, torch = spawns
    assert shard.tile in DEAD_ENDS
    assert torch.tile in DEAD_ENDS
    assert torch.tile != shard.tile
    expected_torch_tile = TilePoint(5, 1) if shard.tile != TilePoint(5, 1) else TilePoint(3, 1)
    assert torch.tile == expected_torch_tile


def test_unlocked_tool_is_not_placed_again() -> None:
    options = ItemSpawnOptions(player_seed="demo", unlocked_tools_mask=get_tool_bit(TOOL_BASIC_TORCH))

    spawns = ItemSpawner().spawn_items(_comb(1), options)

    assert [spawn.item_id for spawn in spawns] == [ITEM_MAZE_SHARD]


def test_wayfinder_spawns_on_target_level_unless_collected() -> None:
    spawner = ItemSpawner(wayfinder_min_level=6, wayfinder_max_level=6)

    spawns = spawner.spawn_items(_comb(6), ItemSpawnOptions(player_seed="demo"))
    assert [spawn.item_id for spawn in spawns] == [ITEM_MAZE_SHARD, ITEM_MAZE_SHARD, ITEM_WAYFINDER_STONE]
    assert {spawn.tile for spawn in spawns} == DEAD_ENDS

    collected = spawner.spawn_items(_comb(6), ItemSpawnOptions(player_seed="demo", wayfinder_collected=True))
    assert ITEM_WAYFINDER_STONE not in [spawn.item_id for spawn in collected]


def test_wayfinder_falls_back_to_farthest_tile_without_free_dead_end() -> None:
    spawner = ItemSpawner(wayfinder_min_level=16, wayfinder_max_level=16)

    spawns = spawner.spawn_items(_comb(16), ItemSpawnOptions(player_seed="demo"))

    assert [spawn.item_id for spawn in spawns].count(ITEM_MAZE_SHARD) == 3
    assert spawns[-1].item_id == ITEM_WAYFINDER_STONE
    assert spawns[-1].tile == TilePoint(7, 2)


def test_wayfinder_target_level_is_seeded_and_in_range() -> None:
    spawner = ItemSpawner()
    targets = {spawner.get_wayfinder_target_level(f"seed-{index}") for index in range(50)}

    assert targets <= set(range(6, 13))
    assert len(targets) > 1
    assert spawner.get_wayfinder_target_level("demo") == ItemSpawner().get_wayfinder_target_level("demo")
    assert ItemSpawner(wayfinder_min_level=9, wayfinder_max_level=7).wayfinder_min_level == 7


def test_picked_up_spawns_are_filtered_and_ids_stay_stable() -> None:
    options = ItemSpawnOptions(player_seed="demo", picked_up_spawn_ids=("item_1_0",))

    spawns = ItemSpawner().spawn_items(_comb(1), options)

    assert [spawn.spawn_id for spawn in spawns] == ["item_1_1"]
    assert spawns[0].item_id == TOOL_BASIC_TORCH


def test_spawning_is_deterministic() -> None:
    first = ItemSpawner().spawn_items(_comb(16), ItemSpawnOptions(player_seed="demo"))
    second = ItemSpawner().spawn_items(_comb(16), ItemSpawnOptions(player_seed="demo"))

    assert first == second


def test_registry_collects_spawns_on_tile() -> None:
    registry = ItemRegistry()
    registry.load(
        [
            ItemSpawn(spawn_id="item_1_0", item_id=ITEM_MAZE_SHARD, tile_x=1, tile_y=1),
            ItemSpawn(spawn_id="item_1_1", item_id=TOOL_BASIC_TORCH, tile_x=3, tile_y=1),
        ]
    )

    assert registry.collect_at(TilePoint(2, 2)) == []
    assert registry.collect_at(TilePoint(1, 1)) == [ItemPickup(spawn_id="item_1_0", item_id=ITEM_MAZE_SHARD)]
    assert [spawn.spawn_id for spawn in registry.spawns()] == ["item_1_1"]
    assert registry.collect_at(TilePoint(1, 1)) == []


def test_item_spawn_validation_and_dict_round_trip() -> None:
    spawn = ItemSpawn(spawn_id="item_3_0", item_id=ITEM_MAZE_SHARD, tile_x=4, tile_y=5)

    assert spawn.to_dict() == {"id": "item_3_0", "item_id": ITEM_MAZE_SHARD, "tile_x": 4, "tile_y": 5}
    assert ItemSpawn.from_dict(spawn.to_dict()) == spawn
    with pytest.raises(ValueError, match="item_id is unknown"):
        ItemSpawn(spawn_id="item_3_1", item_id="gold", tile_x=1, tile_y=1)
