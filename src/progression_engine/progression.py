"""Lesson start / completion pipelines built from the engine pieces.

These functions take the per-user state the caller loaded and return the
state to write back. They never touch storage except through the unlock
store handed in, and they do not serialize concurrent calls for one user;
the caller owns that (a per-user lock or a version check on save).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Mapping, Sequence

from .clock import normalize_datetime, utc_now
from .config import DEFAULT_DAILY_GOAL_XP
from .hearts import has_enough_hearts, regenerate_hearts, settle_hearts, spend_hearts
from .levels import calculate_level, level_progress
from .mastery import next_mastery_level, next_review_date
from .models import (
    AttemptMode,
    DailyGoalProgress,
    Diagnostic,
    HeartState,
    LevelProgress,
    ProgressRecord,
    RewardCard,
    StreakState,
    StreakUpdate,
    XPBreakdown,
)
from .store import UnlockStore
from .streaks import apply_streak, is_streak_milestone, streak_milestone_name
from .unlocks import build_context, unlock_cards
from .xp import compute_xp, daily_goal_progress, daily_goal_reached, resolve_attempt_mode, xp_for_attempt

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UserProgression:
    """Per-user durable state as read from persistence."""

    user_id: str
    hearts: HeartState
    streak: StreakState = field(default_factory=StreakState)
    total_xp: int = 0
    daily_goal_xp: int = DEFAULT_DAILY_GOAL_XP
    today_xp: int = 0
    consecutive_daily_goals: int = 0
    completed_lessons: int = 0


@dataclass(frozen=True, slots=True)
class LessonAttempt:
    lesson_id: str
    score: int
    base_xp: int = 10
    chapter_id: str | None = None
    hearts_lost: int = 0
    review: bool = False
    legendary: bool = False


@dataclass(frozen=True, slots=True)
class LessonStart:
    allowed: bool
    hearts: HeartState
    next_refill_at: datetime | None
    record: ProgressRecord | None


@dataclass(slots=True)
class CompletionResult:
    mode: AttemptMode
    hearts: HeartState
    xp: XPBreakdown
    total_xp: int
    level: LevelProgress
    leveled_up: bool
    streak: StreakState
    streak_update: StreakUpdate
    milestone: bool
    milestone_name: str | None
    record: ProgressRecord
    unlocked_cards: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def xp_earned(self) -> int:
        return self.xp.total


@dataclass(frozen=True, slots=True)
class ProgressSummary:
    total_xp: int
    level: LevelProgress
    hearts: int
    max_hearts: int
    next_refill_at: datetime | None
    current_streak: int
    longest_streak: int
    last_active_date: datetime | None
    daily_goal: DailyGoalProgress
    completed_lessons: int


def start_lesson(
    hearts: HeartState,
    record: ProgressRecord | None,
    lesson_id: str,
    now: datetime | None = None,
    *,
    chapter_id: str | None = None,
) -> LessonStart:
    """Gate a lesson on hearts and mark the attempt in progress.

    A lesson that is already completed stays completed so it can be replayed
    as a review or legendary attempt.
    """
    moment = normalize_datetime(now or utc_now())
    settled, status = settle_hearts(hearts, moment)

    if not has_enough_hearts(settled.hearts):
        logger.info("Lesson %s blocked: %s hearts left", lesson_id, settled.hearts)
        return LessonStart(allowed=False, hearts=settled, next_refill_at=status.next_refill_at, record=record)

    if record is None:
        updated = ProgressRecord(lesson_id=lesson_id, chapter_id=chapter_id, status="in_progress", last_attempt_at=moment)
    else:
        updated = replace(
            record,
            status="completed" if record.is_completed else "in_progress",
            last_attempt_at=moment,
        )
    return LessonStart(allowed=True, hearts=settled, next_refill_at=status.next_refill_at, record=updated)


def _merge_progress(progress: Iterable[ProgressRecord], record: ProgressRecord) -> list[ProgressRecord]:
    merged = [item for item in progress if item.lesson_id != record.lesson_id]
    merged.append(record)
    return merged


def complete_lesson(
    user: UserProgression,
    attempt: LessonAttempt,
    record: ProgressRecord | None = None,
    now: datetime | None = None,
    *,
    progress: Sequence[ProgressRecord] = (),
    chapter_lessons: Mapping[str, Sequence[str]] | None = None,
    catalog: Iterable[RewardCard] = (),
    store: UnlockStore | None = None,
) -> CompletionResult:
    """Apply a finished attempt: hearts, XP, level, streak, mastery, then unlocks.

    ``progress`` holds the user's other lesson records; the updated record for
    this lesson replaces any entry with the same id before unlocks are checked.
    Card unlocks only run when a ``store`` is given.
    """
    moment = normalize_datetime(now or utc_now())
    existing = record or ProgressRecord(lesson_id=attempt.lesson_id, chapter_id=attempt.chapter_id)
    mode = resolve_attempt_mode(existing.is_completed, review=attempt.review, legendary=attempt.legendary)

    settled, _ = settle_hearts(user.hearts, moment)
    hearts = spend_hearts(settled.hearts, attempt.hearts_lost, settled.max_hearts, settled.last_refill_at, moment)

    streak_days = user.streak.current_streak
    if mode == "first":
        provisional = compute_xp(attempt.base_xp, attempt.score, False, streak_days)
        goal_reached = daily_goal_reached(user.today_xp, provisional.total, user.daily_goal_xp)
        xp = xp_for_attempt(mode, attempt.base_xp, attempt.score, goal_reached, streak_days)
    else:
        xp = xp_for_attempt(mode, attempt.base_xp, attempt.score)

    new_total = user.total_xp + xp.total
    leveled_up = calculate_level(new_total) > calculate_level(user.total_xp)

    streak, streak_update = apply_streak(user.streak, moment)
    milestone = streak_update.should_increment and is_streak_milestone(streak.current_streak)

    mastery = next_mastery_level(mode, attempt.score, existing.mastery_level)
    updated = replace(
        existing,
        chapter_id=existing.chapter_id or attempt.chapter_id,
        status="completed",
        best_score=max(existing.best_score, attempt.score),
        mastery_level=mastery,
        last_attempt_at=moment,
        completed_at=existing.completed_at if existing.is_completed else moment,
        next_review_at=next_review_date(mastery, existing.last_attempt_at, moment),
    )

    result = CompletionResult(
        mode=mode,
        hearts=hearts,
        xp=xp,
        total_xp=new_total,
        level=level_progress(new_total),
        leveled_up=leveled_up,
        streak=streak,
        streak_update=streak_update,
        milestone=milestone,
        milestone_name=streak_milestone_name(streak.current_streak) if milestone else None,
        record=updated,
    )

    if store is not None:
        context = build_context(
            _merge_progress(progress, updated),
            lesson_id=attempt.lesson_id,
            chapter_id=updated.chapter_id,
            score=attempt.score,
            streak_days=streak.current_streak,
            total_xp=new_total,
            level=result.level.current_level,
            consecutive_daily_goals=user.consecutive_daily_goals,
            chapter_lessons=chapter_lessons,
        )
        unlocked = unlock_cards(user.user_id, context, catalog, store, moment)
        result.unlocked_cards = unlocked.card_ids
        result.diagnostics = unlocked.diagnostics

    logger.info(
        "Lesson %s completed user=%s mode=%s xp=%s total=%s streak=%s mastery=%s",
        attempt.lesson_id,
        user.user_id,
        mode,
        xp.total,
        new_total,
        streak.current_streak,
        mastery,
    )
    return result


def practice_lesson(record: ProgressRecord | None, lesson_id: str, now: datetime | None = None) -> ProgressRecord:
    """Track a practice run: no hearts, XP or mastery change."""
    moment = normalize_datetime(now or utc_now())
    if record is None:
        return ProgressRecord(lesson_id=lesson_id, status="in_progress", last_attempt_at=moment)
    return replace(record, last_attempt_at=moment)


def progress_summary(user: UserProgression, now: datetime | None = None) -> ProgressSummary:
    status = regenerate_hearts(user.hearts.hearts, user.hearts.max_hearts, user.hearts.last_refill_at, now)
    return ProgressSummary(
        total_xp=user.total_xp,
        level=level_progress(user.total_xp),
        hearts=status.hearts,
        max_hearts=user.hearts.max_hearts,
        next_refill_at=status.next_refill_at,
        current_streak=user.streak.current_streak,
        longest_streak=user.streak.longest_streak,
        last_active_date=user.streak.last_active_date,
        daily_goal=daily_goal_progress(user.today_xp, user.daily_goal_xp),
        completed_lessons=user.completed_lessons,
    )


__all__ = [
    "CompletionResult",
    "LessonAttempt",
    "LessonStart",
    "ProgressSummary",
    "UserProgression",
    "complete_lesson",
    "practice_lesson",
    "progress_summary",
    "start_lesson",
]
