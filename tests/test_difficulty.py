import pytest

import difficulty
from config import DifficultyConfig


BASE = 1.5


@pytest.mark.parametrize(
    "tier, expected_ms",
    [
        (difficulty.DifficultyTier.EASY, 1200.0),
        (difficulty.DifficultyTier.MEDIUM, 900.0),
        (difficulty.DifficultyTier.HARD, 600.0),
    ],
)
def test_interval_at_base_speed(tier, expected_ms):
    assert difficulty.spawn_interval_ms(tier, BASE, BASE) == expected_ms


def test_interval_shrinks_as_fall_speed_grows():
    slow = difficulty.spawn_interval_ms(difficulty.DifficultyTier.MEDIUM, BASE, BASE)
    fast = difficulty.spawn_interval_ms(difficulty.DifficultyTier.MEDIUM, BASE * 2.0, BASE)
    assert fast == pytest.approx(slow / 2.0)


def test_harder_tiers_spawn_more_often_at_every_speed():
    for speed in (1.5, 1.8, 2.25, 3.0):
        easy = difficulty.spawn_interval_ms(difficulty.DifficultyTier.EASY, speed, BASE)
        medium = difficulty.spawn_interval_ms(difficulty.DifficultyTier.MEDIUM, speed, BASE)
        hard = difficulty.spawn_interval_ms(difficulty.DifficultyTier.HARD, speed, BASE)
        assert easy > medium > hard


def test_non_positive_speed_is_rejected():
    with pytest.raises(ValueError):
        difficulty.spawn_interval_ms(difficulty.DifficultyTier.EASY, 0.0, BASE)


def test_parse_tier_falls_back_to_medium():
    assert difficulty.parse_tier(" Hard ") == difficulty.DifficultyTier.HARD
    assert difficulty.parse_tier("nightmare") == difficulty.DifficultyTier.MEDIUM
    assert difficulty.parse_tier(None) == difficulty.DifficultyTier.MEDIUM


def test_profile_uses_configured_intervals():
    custom = DifficultyConfig(easy_interval_ms=2000, medium_interval_ms=1000, hard_interval_ms=500)
    profile = difficulty.profile_for(difficulty.DifficultyTier.EASY, custom)
    assert profile.interval_ms(BASE, BASE) == 2000.0
    assert profile.fall_speed_ceiling(BASE) == 3.0
