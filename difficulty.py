# -*- coding: utf-8 -*-
########################
# difficulty.py
########################
# Purpose:
# - Maps a difficulty tier to its spawn cadence and fall speed ceiling.
# - Converts the current fall speed into the spawner interval.
#
# Design notes:
# - No Qt usage. Pure functions over immutable profiles.
# - Faster fall speed shortens the spawn interval, so difficulty escalates with combo.
# - Unknown tier names fall back to MEDIUM instead of failing a session start.
#
########################
# Interfaces:
# Public enums:
# - DifficultyTier: EASY, MEDIUM, HARD
#
# Public dataclasses:
# - DifficultyProfile(tier: DifficultyTier, base_interval_ms: float, fall_speed_ceiling_factor: float)
#   - interval_ms(fall_speed: float, base_fall_speed: float) -> float
#   - fall_speed_ceiling(base_fall_speed: float) -> float
#
# Public functions:
# - parse_tier(value: object) -> DifficultyTier
# - profile_for(tier: DifficultyTier, difficulty_config: Optional[DifficultyConfig] = None) -> DifficultyProfile
# - spawn_interval_ms(tier, fall_speed, base_fall_speed, difficulty_config=None) -> float
#
########################

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from config import DifficultyConfig


logger = logging.getLogger(__name__)

FALL_SPEED_CEILING_FACTOR = 2.0


class DifficultyTier(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DEFAULT_TIER = DifficultyTier.MEDIUM


@dataclass(frozen=True)
class DifficultyProfile:
    tier: DifficultyTier
    base_interval_ms: float
    fall_speed_ceiling_factor: float = FALL_SPEED_CEILING_FACTOR

    def interval_ms(self, fall_speed: float, base_fall_speed: float) -> float:
        speed = float(fall_speed)
        base = float(base_fall_speed)
        if speed <= 0.0 or base <= 0.0:
            raise ValueError(f"Fall speeds must be positive (fall_speed={speed}, base={base})")
        return float(self.base_interval_ms) / (speed / base)

    def fall_speed_ceiling(self, base_fall_speed: float) -> float:
        return float(base_fall_speed) * float(self.fall_speed_ceiling_factor)


def parse_tier(value: object) -> DifficultyTier:
    if isinstance(value, DifficultyTier):
        return value
    text = str(value or "").strip().lower()
    for tier in DifficultyTier:
        if text == tier.value:
            return tier
    logger.warning("Unknown difficulty %r, falling back to %s", value, DEFAULT_TIER.value)
    return DEFAULT_TIER


def _base_intervals(difficulty_config: Optional[DifficultyConfig]) -> Dict[DifficultyTier, float]:
    config = difficulty_config if difficulty_config is not None else DifficultyConfig()
    return {
        DifficultyTier.EASY: float(config.easy_interval_ms),
        DifficultyTier.MEDIUM: float(config.medium_interval_ms),
        DifficultyTier.HARD: float(config.hard_interval_ms),
    }


def profile_for(tier: DifficultyTier, difficulty_config: Optional[DifficultyConfig] = None) -> DifficultyProfile:
    resolved_tier = parse_tier(tier)
    return DifficultyProfile(
        tier=resolved_tier,
        base_interval_ms=_base_intervals(difficulty_config)[resolved_tier],
    )


def spawn_interval_ms(
    tier: DifficultyTier,
    fall_speed: float,
    base_fall_speed: float,
    difficulty_config: Optional[DifficultyConfig] = None,
) -> float:
    return profile_for(tier, difficulty_config).interval_ms(fall_speed, base_fall_speed)


def _run_unit_tests() -> None:
    base = 1.5
    assert spawn_interval_ms(DifficultyTier.EASY, base, base) == 1200.0
    assert spawn_interval_ms(DifficultyTier.MEDIUM, base, base) == 900.0
    assert spawn_interval_ms(DifficultyTier.HARD, base, base) == 600.0
    assert spawn_interval_ms(DifficultyTier.MEDIUM, base * 2.0, base) == 450.0

    assert parse_tier("HARD") == DifficultyTier.HARD
    assert parse_tier("nightmare") == DifficultyTier.MEDIUM
    assert profile_for(DifficultyTier.EASY).fall_speed_ceiling(base) == 3.0


if __name__ == "__main__":
    _run_unit_tests()
    print("difficulty.py: ok")
