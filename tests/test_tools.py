import pytest

from mazed.sim.items import (
    MAP_FRAGMENT_REVEAL_FRACTION,
    TOOL_BASIC_TORCH,
    TOOL_COMPASS,
    TOOL_MAP_FRAGMENT,
    TOOL_RUNNING_BOOTS,
    TOOL_SKELETON_KEY,
)
from mazed.sim.tools import ToolExpired, ToolRuntime


class FakeClock:
    def __init__(self, now_ms: int = 1_000) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


def test_timed_tool_expires_against_injected_clock() -> None:
    clock = FakeClock()
    runtime = ToolRuntime(now_provider=clock)
    runtime.equip(TOOL_BASIC_TORCH)

    assert runtime.active_tool_expiry == 61_000
    assert runtime.visibility_bonus() == 2

    clock.now_ms = 60_999
    assert runtime.update() is None
    clock.now_ms = 61_000
    assert runtime.update() == ToolExpired(tool_id=TOOL_BASIC_TORCH)
    assert runtime.active_tool_id is None
    assert runtime.visibility_bonus() == 0
    assert runtime.update() is None


def test_untimed_tools_never_expire() -> None:
    clock = FakeClock()
    runtime = ToolRuntime(now_provider=clock)
    runtime.equip(TOOL_COMPASS)

    clock.now_ms = 10**12
    assert runtime.update() is None
    assert runtime.compass_active() is True
    assert runtime.active_tool_expiry is None


def test_effect_accessors_follow_active_tool() -> None:
    runtime = ToolRuntime(now_provider=FakeClock())

    assert runtime.speed_multiplier() == 1.0
    runtime.equip(TOOL_RUNNING_BOOTS)
    assert runtime.speed_multiplier() == 1.3
    runtime.equip(TOOL_MAP_FRAGMENT)
    assert runtime.map_reveal_fraction() == MAP_FRAGMENT_REVEAL_FRACTION
    assert runtime.compass_active() is False


def test_one_shot_tools_are_consumed() -> None:
    runtime = ToolRuntime(now_provider=FakeClock())
    runtime.equip(TOOL_SKELETON_KEY)

    assert runtime.consume_active_one_shot() == TOOL_SKELETON_KEY
    assert runtime.active_tool_id is None
    assert runtime.consume_active_one_shot() is None

    runtime.equip(TOOL_COMPASS)
    assert runtime.consume_active_one_shot() is None
    assert runtime.active_tool_id == TOOL_COMPASS


def test_sync_from_state_restores_or_clears_slot() -> None:
    clock = FakeClock(5_000)
    runtime = ToolRuntime(now_provider=clock)

    runtime.sync_from_state(TOOL_BASIC_TORCH, 4_000)
    assert runtime.update() == ToolExpired(tool_id=TOOL_BASIC_TORCH)

    runtime.sync_from_state(None, 9_000)
    assert runtime.active_tool_expiry is None


def test_unknown_tool_ids_are_rejected() -> None:
    runtime = ToolRuntime(now_provider=FakeClock())

    with pytest.raises(ValueError, match="unknown tool id"):
        runtime.equip("lantern")
    with pytest.raises(ValueError, match="unknown tool id"):
        runtime.sync_from_state("lantern", None)
