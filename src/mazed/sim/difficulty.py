from __future__ import annotations

import math
from dataclasses import dataclass

from mazed.sim.maze import MazeParams
from mazed.sim.rng import hash_string


@dataclass(frozen=True)
class ExitDifficultyProfile:
    min_distance_ratio: float
    prefer_dead_end: bool
    min_absolute_distance: int


@dataclass(frozen=True)
class ExitDifficultyTier:
    max_level: float
    profile: ExitDifficultyProfile


EXIT_DIFFICULTY_TIERS: tuple[ExitDifficultyTier, ...] = (
    ExitDifficultyTier(
        max_level=3,
        profile=ExitDifficultyProfile(min_distance_ratio=0.55, prefer_dead_end=False, min_absolute_distance=5),
    ),
    ExitDifficultyTier(
        max_level=8,
        profile=ExitDifficultyProfile(min_distance_ratio=0.68, prefer_dead_end=False, min_absolute_distance=7),
    ),
    ExitDifficultyTier(
        max_level=math.inf,
        profile=ExitDifficultyProfile(min_distance_ratio=0.75, prefer_dead_end=True, min_absolute_distance=8),
    ),
)


def get_exit_difficulty_profile(level: int) -> ExitDifficultyProfile:
    for tier in EXIT_DIFFICULTY_TIERS:
        if level <= tier.max_level:
            return tier.profile
    return EXIT_DIFFICULTY_TIERS[-1].profile


def get_maze_size(level: int) -> int:
    if level <= 3:
        return 8
    if level <= 8:
        return 10
    return 10 + ((level - 9) // 5) * 2


def get_loop_chance(level: int) -> float:
    if level <= 3:
        return 0.02
    return min(0.03 + level * 0.005, 0.18)


def get_complexity(level: int) -> float:
    return min(0.3 + level * 0.02, 0.8)


def get_dead_end_ratio(level: int) -> float:
    return min(0.1 + level * 0.01, 0.4)


def level_seed(player_seed: str, level: int) -> str:
    return hash_string(f"{player_seed}:{level}")


def get_maze_params(player_seed: str, level: int) -> MazeParams:
    if isinstance(level, bool) or not isinstance(level, int) or level < 1:
        raise ValueError("level must be an integer >= 1")
    size = get_maze_size(level)
    return MazeParams(
        level=level,
        width=size,
        height=size,
        seed=level_seed(player_seed, level),
        complexity=get_complexity(level),
        dead_end_ratio=get_dead_end_ratio(level),
        loop_chance=get_loop_chance(level),
    )
