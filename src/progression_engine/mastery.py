"""Per-lesson mastery (0-5) and the spaced-repetition review schedule."""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from .clock import normalize_datetime, utc_now
from .models import AttemptMode

MAX_MASTERY = 5
MASTERY_DECAY_DAYS: tuple[int, ...] = (1, 3, 7, 14, 30)

GOOD_SCORE = 80
PASSING_SCORE = 60


def calculate_mastery_level(score: int, previous_mastery: float = 0) -> int:
    """New mastery after a normal or review attempt.

    100 and 80-99 both advance one level (capped), 60-79 holds, below 60 drops one.
    """
    current = math.floor(previous_mastery)
    if score == 100:
        return min(current + 1, MAX_MASTERY)
    if score >= GOOD_SCORE:
        return current + 1 if current < MAX_MASTERY else current
    if score >= PASSING_SCORE:
        return current
    return max(0, current - 1)


def legendary_mastery_level(score: int, previous_mastery: float = 0) -> int:
    """Legendary attempts only move mastery on a perfect score."""
    current = math.floor(previous_mastery)
    if score == 100:
        return min(current + 1, MAX_MASTERY)
    return current


def next_mastery_level(mode: AttemptMode, score: int, previous_mastery: float = 0) -> int:
    if mode == "legendary":
        return legendary_mastery_level(score, previous_mastery)
    return calculate_mastery_level(score, previous_mastery)


def review_interval(mastery_level: int) -> timedelta:
    index = min(max(mastery_level, 0), len(MASTERY_DECAY_DAYS) - 1)
    return timedelta(days=MASTERY_DECAY_DAYS[index])


def next_review_date(
    mastery_level: int,
    last_attempt_at: datetime | None,
    now: datetime | None = None,
) -> datetime:
    """When the lesson is next due. Never earlier than ``now``."""
    moment = normalize_datetime(now or utc_now())
    if last_attempt_at is None:
        return moment + timedelta(days=MASTERY_DECAY_DAYS[0])

    scheduled = normalize_datetime(last_attempt_at) + review_interval(mastery_level)
    if scheduled < moment:
        return moment
    return scheduled


def needs_review(
    next_review_at: datetime | None,
    mastery_level: int,
    now: datetime | None = None,
) -> bool:
    if mastery_level < MAX_MASTERY:
        return True
    if next_review_at is None:
        return False
    return normalize_datetime(next_review_at) <= normalize_datetime(now or utc_now())


def mastery_decay(mastery_level: int, days_since_last_review: float) -> int:
    """Mastery after ``days_since_last_review`` days without practice.

    Lands on the highest lower tier whose review window has been overrun.
    """
    if mastery_level <= 0:
        return 0
    top = min(mastery_level, len(MASTERY_DECAY_DAYS))
    for index in range(top - 1, -1, -1):
        if days_since_last_review > MASTERY_DECAY_DAYS[index]:
            return index
    return mastery_level


__all__ = [
    "MASTERY_DECAY_DAYS",
    "MAX_MASTERY",
    "calculate_mastery_level",
    "legendary_mastery_level",
    "mastery_decay",
    "needs_review",
    "next_mastery_level",
    "next_review_date",
    "review_interval",
]
