"""Reward unlock rules: evaluate typed conditions against a progression snapshot.

Conditions arrive already parsed (see ``parse_condition``) so evaluation is a
single exhaustive ``match``. The engine never reads persistence itself; the
caller builds an ``UnlockContext`` from what it loaded and hands over an
ownership store whose ``create_unlock`` is idempotent per (user, card).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from .clock import normalize_datetime, utc_now
from .models import (
    ChapterComplete,
    Diagnostic,
    DailyGoal,
    FirstLesson,
    LessonCount,
    LevelUp,
    PerfectQuiz,
    ProgressRecord,
    RewardCard,
    Streak,
    UnknownCondition,
    UnlockCondition,
    XPThreshold,
)
from .store import UnlockStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UnlockContext:
    """Everything a condition may look at, captured at the moment of evaluation."""

    lesson_id: str | None = None
    chapter_id: str | None = None
    score: int | None = None
    streak_days: int = 0
    total_xp: int = 0
    level: int = 0
    consecutive_daily_goals: int = 0
    progress: tuple[ProgressRecord, ...] = ()
    chapter_lessons: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def completed_lesson_ids(self) -> set[str]:
        return {record.lesson_id for record in self.progress if record.is_completed}


@dataclass(slots=True)
class UnlockResult:
    card_ids: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def _int_param(raw: Mapping[str, Any], key: str, default: int) -> int:
    value = raw.get(key)
    if not value:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s=%r in unlock condition", key, value)
        return default


def _str_param(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    return str(value) if value else None


def parse_condition(raw: Mapping[str, Any]) -> UnlockCondition:
    """Turn a persisted ``{"type": ..., **params}`` mapping into a typed condition.

    Missing or zero numeric params fall back to their defaults. Unknown tags
    are kept as ``UnknownCondition`` so they can be reported at evaluation.
    """
    kind = str(raw.get("type") or "").strip()
    if kind == "first_lesson":
        return FirstLesson()
    if kind == "chapter_complete":
        return ChapterComplete(chapter_id=_str_param(raw, "chapterId"))
    if kind == "perfect_quiz":
        return PerfectQuiz(lesson_id=_str_param(raw, "lessonId"))
    if kind == "streak":
        return Streak(days=_int_param(raw, "days", 7))
    if kind == "xp_threshold":
        return XPThreshold(xp=_int_param(raw, "xp", 1000))
    if kind == "level_up":
        return LevelUp(level=_int_param(raw, "level", 5))
    if kind == "daily_goal":
        return DailyGoal(consecutive_days=_int_param(raw, "consecutiveDays", 7))
    if kind == "lesson_count":
        return LessonCount(count=_int_param(raw, "count", 10))
    params = {key: value for key, value in raw.items() if key != "type"}
    return UnknownCondition(type=kind, params=params)


def condition_to_dict(condition: UnlockCondition) -> dict[str, Any]:
    """Inverse of ``parse_condition``, using the persisted param names."""
    match condition:
        case FirstLesson():
            return {"type": "first_lesson"}
        case ChapterComplete(chapter_id=chapter_id):
            return {"type": "chapter_complete", **({"chapterId": chapter_id} if chapter_id else {})}
        case PerfectQuiz(lesson_id=lesson_id):
            return {"type": "perfect_quiz", **({"lessonId": lesson_id} if lesson_id else {})}
        case Streak(days=days):
            return {"type": "streak", "days": days}
        case XPThreshold(xp=xp):
            return {"type": "xp_threshold", "xp": xp}
        case LevelUp(level=level):
            return {"type": "level_up", "level": level}
        case DailyGoal(consecutive_days=days):
            return {"type": "daily_goal", "consecutiveDays": days}
        case LessonCount(count=count):
            return {"type": "lesson_count", "count": count}
        case UnknownCondition(type=kind, params=params):
            return {"type": kind, **params}


def _chapter_complete(chapter_id: str | None, context: UnlockContext) -> bool:
    target = context.chapter_id or chapter_id
    if not target:
        return False
    lessons = context.chapter_lessons.get(target)
    if lessons is None:
        return False
    completed = context.completed_lesson_ids
    return sum(1 for lesson_id in lessons if lesson_id in completed) == len(lessons)


def evaluate_condition(
    condition: UnlockCondition,
    user_id: str,
    context: UnlockContext,
    diagnostics: list[Diagnostic] | None = None,
) -> bool:
    """Return True when ``user_id`` satisfies ``condition`` under ``context``.

    Never raises. An unknown condition type evaluates to False; a diagnostic
    is appended to ``diagnostics`` when a list is given.
    """
    match condition:
        case FirstLesson():
            return any(record.is_completed for record in context.progress)
        case ChapterComplete(chapter_id=chapter_id):
            return _chapter_complete(chapter_id, context)
        case PerfectQuiz():
            if context.score == 100:
                return True
            return any(record.best_score == 100 for record in context.progress)
        case Streak(days=days):
            return (context.streak_days or 0) >= days
        case XPThreshold(xp=xp):
            return (context.total_xp or 0) >= xp
        case LevelUp(level=level):
            return (context.level or 0) >= level
        case DailyGoal(consecutive_days=days):
            return (context.consecutive_daily_goals or 0) >= days
        case LessonCount(count=count):
            return len(context.completed_lesson_ids) >= count
        case UnknownCondition(type=kind):
            logger.warning("Unknown unlock condition type %r for user=%s", kind, user_id)
            if diagnostics is not None:
                diagnostics.append(
                    Diagnostic(
                        code="unknown_condition_type",
                        message=f"Unknown unlock condition type: {kind!r}",
                        detail={"type": kind, "user_id": user_id},
                    )
                )
            return False
    return False


def unlock_cards(
    user_id: str,
    context: UnlockContext,
    catalog: Iterable[RewardCard],
    store: UnlockStore,
    now: datetime | None = None,
) -> UnlockResult:
    """Grant every card whose condition now holds and the user does not own yet.

    Safe to call concurrently for the same user: the store decides who wins the
    insert, and only cards this call actually created are reported.
    """
    moment = normalize_datetime(now or utc_now())
    owned = store.owned_card_ids(user_id)
    result = UnlockResult()

    for card in catalog:
        if card.id in owned:
            continue
        if not evaluate_condition(card.condition, user_id, context, result.diagnostics):
            logger.debug("Card %s not unlocked for user=%s", card.id, user_id)
            continue
        if store.create_unlock(user_id, card.id, moment):
            result.card_ids.append(card.id)
            logger.info("Card unlocked user=%s card=%s name=%s", user_id, card.id, card.name)
        else:
            logger.debug("Card %s already unlocked for user=%s", card.id, user_id)

    return result


def build_context(
    progress: Sequence[ProgressRecord],
    *,
    lesson_id: str | None = None,
    chapter_id: str | None = None,
    score: int | None = None,
    streak_days: int = 0,
    total_xp: int = 0,
    level: int = 0,
    consecutive_daily_goals: int = 0,
    chapter_lessons: Mapping[str, Sequence[str]] | None = None,
) -> UnlockContext:
    lessons = {key: tuple(value) for key, value in (chapter_lessons or {}).items()}
    return UnlockContext(
        lesson_id=lesson_id,
        chapter_id=chapter_id,
        score=score,
        streak_days=streak_days,
        total_xp=total_xp,
        level=level,
        consecutive_daily_goals=consecutive_daily_goals,
        progress=tuple(progress),
        chapter_lessons=lessons,
    )


__all__ = [
    "UnlockContext",
    "UnlockResult",
    "build_context",
    "condition_to_dict",
    "evaluate_condition",
    "parse_condition",
    "unlock_cards",
]
