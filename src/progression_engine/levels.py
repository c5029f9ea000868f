"""Level ladder: fixed XP thresholds with a steepening curve."""

from __future__ import annotations

import math

from .models import LevelProgress

LEVEL_THRESHOLDS: tuple[int, ...] = (
    0,       # Level 1
    100,
    250,
    500,
    1000,    # Level 5
    2000,
    3500,
    5500,
    8000,
    12000,   # Level 10
    17000,
    25000,
    35000,
    50000,
    70000,   # Level 15
)
MAX_LEVEL = len(LEVEL_THRESHOLDS)


def calculate_level(total_xp: int) -> int:
    """Return the 1-based level reached with ``total_xp``."""
    for index in range(len(LEVEL_THRESHOLDS) - 1, -1, -1):
        if total_xp >= LEVEL_THRESHOLDS[index]:
            return index + 1
    return 1


def xp_for_next_level(current_level: int) -> int | None:
    """Total XP needed to reach the level after ``current_level``; None at the top."""
    if current_level >= MAX_LEVEL:
        return None
    return LEVEL_THRESHOLDS[max(current_level, 1)]


def level_progress(total_xp: int) -> LevelProgress:
    total_xp = max(0, total_xp)
    current_level = calculate_level(total_xp)
    level_floor = LEVEL_THRESHOLDS[current_level - 1]
    next_threshold = xp_for_next_level(current_level)
    xp_in_level = total_xp - level_floor

    if next_threshold is None:
        percent = 100
    else:
        needed = next_threshold - level_floor
        # Half rounds up, so 12.5% shows as 13.
        percent = min(100, math.floor(xp_in_level * 100 / needed + 0.5))

    return LevelProgress(
        current_level=current_level,
        xp_in_level=xp_in_level,
        xp_for_next_level=next_threshold,
        progress_percent=percent,
    )


def level_name(level: int) -> str:
    if level <= 5:
        return f"Beginner {level}"
    if level <= 10:
        return f"Intermediate {level - 5}"
    if level <= 15:
        return f"Advanced {level - 10}"
    return f"Master {level - 15}"


__all__ = [
    "LEVEL_THRESHOLDS",
    "MAX_LEVEL",
    "calculate_level",
    "level_name",
    "level_progress",
    "xp_for_next_level",
]
