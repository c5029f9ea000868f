from __future__ import annotations

from progression_engine.levels import (
    LEVEL_THRESHOLDS,
    MAX_LEVEL,
    calculate_level,
    level_name,
    level_progress,
    xp_for_next_level,
)


def test_level_one_at_zero() -> None:
    assert calculate_level(0) == 1
    assert calculate_level(-50) == 1


def test_exact_boundaries() -> None:
    assert calculate_level(99) == 1
    assert calculate_level(100) == 2
    assert calculate_level(250) == 3
    assert calculate_level(999) == 4
    assert calculate_level(1000) == 5
    assert calculate_level(70000) == 15
    assert calculate_level(10**9) == 15


def test_level_is_monotonic() -> None:
    levels = [calculate_level(xp) for xp in range(0, 80000, 50)]
    assert levels == sorted(levels)


def test_threshold_table_is_fixed() -> None:
    assert LEVEL_THRESHOLDS == (0, 100, 250, 500, 1000, 2000, 3500, 5500, 8000, 12000, 17000, 25000, 35000, 50000, 70000)
    assert MAX_LEVEL == 15


def test_xp_for_next_level() -> None:
    assert xp_for_next_level(1) == 100
    assert xp_for_next_level(4) == 1000
    assert xp_for_next_level(15) is None


def test_progress_mid_level() -> None:
    progress = level_progress(175)
    assert progress.current_level == 2
    assert progress.xp_in_level == 75
    assert progress.xp_for_next_level == 250
    assert progress.progress_percent == 50


def test_progress_rounds_half_up() -> None:
    # 5 XP into the 1000 -> 2000 band is 0.5%; 25 XP is 2.5%.
    assert level_progress(1005).progress_percent == 1
    assert level_progress(1025).progress_percent == 3
    assert level_progress(0).progress_percent == 0


def test_progress_at_max_level() -> None:
    progress = level_progress(80000)
    assert progress.current_level == 15
    assert progress.xp_in_level == 10000
    assert progress.xp_for_next_level is None
    assert progress.progress_percent == 100


def test_level_names() -> None:
    assert level_name(1) == "Beginner 1"
    assert level_name(7) == "Intermediate 2"
    assert level_name(15) == "Advanced 5"
    assert level_name(16) == "Master 1"
