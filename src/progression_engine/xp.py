"""XP awards for lesson attempts, including bonus stacking and daily goals."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Iterable, Mapping

from .config import DEFAULT_DAILY_GOAL_XP
from .models import AttemptMode, DailyGoalProgress, XPBonuses, XPBreakdown

PERFECT_BONUS = 5
DAILY_GOAL_BONUS = 5
STREAK_BONUS = 2
STREAK_BONUS_EVERY = 7
REVIEW_XP = 5
LEGENDARY_XP = 40


def compute_xp(
    base_xp: int,
    score: int,
    daily_goal_reached: bool = False,
    streak_days: int = 0,
) -> XPBreakdown:
    """Base lesson XP plus the perfect, daily goal and weekly streak bonuses."""
    bonuses = XPBonuses(
        perfect=PERFECT_BONUS if score == 100 else 0,
        daily_goal=DAILY_GOAL_BONUS if daily_goal_reached else 0,
        streak_bonus=STREAK_BONUS if streak_days > 0 and streak_days % STREAK_BONUS_EVERY == 0 else 0,
    )
    total = base_xp + bonuses.perfect + bonuses.daily_goal + bonuses.streak_bonus
    return XPBreakdown(base_xp=base_xp, bonuses=bonuses, total=total)


def _flat(amount: int) -> XPBreakdown:
    return XPBreakdown(base_xp=amount, bonuses=XPBonuses(), total=amount)


def resolve_attempt_mode(was_completed: bool, *, review: bool = False, legendary: bool = False) -> AttemptMode:
    """Classify an attempt. Legendary wins over review; an uncompleted lesson is always "first"."""
    if legendary:
        return "legendary"
    if review:
        return "review"
    if was_completed:
        return "repeat"
    return "first"


def xp_for_attempt(
    mode: AttemptMode,
    base_xp: int,
    score: int,
    daily_goal_reached: bool = False,
    streak_days: int = 0,
) -> XPBreakdown:
    if mode == "first":
        return compute_xp(base_xp, score, daily_goal_reached, streak_days)
    if mode == "review":
        return _flat(REVIEW_XP)
    if mode == "legendary":
        return _flat(LEGENDARY_XP)
    if mode == "repeat":
        # Repeat completions would double count the lesson.
        return _flat(0)
    raise ValueError(f"Unsupported attempt mode: {mode}")


def total_xp(breakdowns: Iterable[XPBreakdown]) -> int:
    return sum(item.total for item in breakdowns)


def daily_goal_reached(today_xp: int, earned: int = 0, goal: int = DEFAULT_DAILY_GOAL_XP) -> bool:
    return today_xp + earned >= goal


def daily_goal_progress(today_xp: int, goal: int = DEFAULT_DAILY_GOAL_XP) -> DailyGoalProgress:
    if goal <= 0:
        return DailyGoalProgress(target=goal, current=today_xp, progress=100, reached=True)
    return DailyGoalProgress(
        target=goal,
        current=today_xp,
        progress=min(100, math.floor(today_xp * 100 / goal + 0.5)),
        reached=today_xp >= goal,
    )


def consecutive_daily_goals(
    daily_xp: Mapping[date, int],
    goal: int = DEFAULT_DAILY_GOAL_XP,
    today: date | None = None,
) -> int:
    """Count consecutive days, ending today, on which the XP goal was met.

    A day still in progress does not break the run: when today's goal is not
    met yet, counting starts from yesterday.
    """
    if goal <= 0:
        raise ValueError("goal must be positive")
    if today is None:
        today = date.today()
    day = today if daily_xp.get(today, 0) >= goal else today - timedelta(days=1)
    count = 0
    while daily_xp.get(day, 0) >= goal:
        count += 1
        day -= timedelta(days=1)
    return count


__all__ = [
    "DAILY_GOAL_BONUS",
    "LEGENDARY_XP",
    "PERFECT_BONUS",
    "REVIEW_XP",
    "STREAK_BONUS",
    "compute_xp",
    "consecutive_daily_goals",
    "daily_goal_progress",
    "daily_goal_reached",
    "resolve_attempt_mode",
    "total_xp",
    "xp_for_attempt",
]
