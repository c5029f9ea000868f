from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Mapping, Union, cast

LessonStatus = Literal["not_started", "in_progress", "completed"]
AttemptMode = Literal["first", "repeat", "review", "legendary"]
Rarity = Literal["common", "rare", "epic", "legendary"]

LESSON_STATUSES: tuple[LessonStatus, ...] = ("not_started", "in_progress", "completed")
ATTEMPT_MODES: tuple[AttemptMode, ...] = ("first", "repeat", "review", "legendary")


@dataclass(slots=True)
class HeartState:
    hearts: int
    max_hearts: int = 5
    last_refill_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class HeartStatus:
    hearts: int
    next_refill_at: datetime | None
    hearts_to_refill: int


@dataclass(slots=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_active_date: datetime | None = None
    timezone: str = "UTC"


@dataclass(frozen=True, slots=True)
class StreakUpdate:
    current_streak: int
    should_increment: bool
    should_reset: bool
    last_active_date: datetime


@dataclass(frozen=True, slots=True)
class XPBonuses:
    perfect: int = 0
    daily_goal: int = 0
    streak_bonus: int = 0


@dataclass(frozen=True, slots=True)
class XPBreakdown:
    base_xp: int
    bonuses: XPBonuses = field(default_factory=XPBonuses)
    total: int = 0


@dataclass(frozen=True, slots=True)
class DailyGoalProgress:
    target: int
    current: int
    progress: int
    reached: bool


@dataclass(frozen=True, slots=True)
class LevelProgress:
    current_level: int
    xp_in_level: int
    xp_for_next_level: int | None
    progress_percent: int


@dataclass(slots=True)
class ProgressRecord:
    """Per user x lesson progress row as read from persistence."""

    lesson_id: str
    chapter_id: str | None = None
    status: LessonStatus = "not_started"
    best_score: int = 0
    mastery_level: int = 0
    last_attempt_at: datetime | None = None
    completed_at: datetime | None = None
    next_review_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


# Unlock conditions: one frozen dataclass per persisted ``type`` tag.


@dataclass(frozen=True, slots=True)
class FirstLesson:
    type: Literal["first_lesson"] = "first_lesson"


@dataclass(frozen=True, slots=True)
class ChapterComplete:
    chapter_id: str | None = None
    type: Literal["chapter_complete"] = "chapter_complete"


@dataclass(frozen=True, slots=True)
class PerfectQuiz:
    # Carried for the reward data; evaluation does not filter on it.
    lesson_id: str | None = None
    type: Literal["perfect_quiz"] = "perfect_quiz"


@dataclass(frozen=True, slots=True)
class Streak:
    days: int = 7
    type: Literal["streak"] = "streak"


@dataclass(frozen=True, slots=True)
class XPThreshold:
    xp: int = 1000
    type: Literal["xp_threshold"] = "xp_threshold"


@dataclass(frozen=True, slots=True)
class LevelUp:
    level: int = 5
    type: Literal["level_up"] = "level_up"


@dataclass(frozen=True, slots=True)
class DailyGoal:
    consecutive_days: int = 7
    type: Literal["daily_goal"] = "daily_goal"


@dataclass(frozen=True, slots=True)
class LessonCount:
    count: int = 10
    type: Literal["lesson_count"] = "lesson_count"


@dataclass(frozen=True, slots=True)
class UnknownCondition:
    """A persisted condition whose tag is outside the known vocabulary."""

    type: str
    params: Mapping[str, Any] = field(default_factory=dict)


UnlockCondition = Union[
    FirstLesson,
    ChapterComplete,
    PerfectQuiz,
    Streak,
    XPThreshold,
    LevelUp,
    DailyGoal,
    LessonCount,
    UnknownCondition,
]

CONDITION_TYPES: tuple[str, ...] = (
    "first_lesson",
    "chapter_complete",
    "perfect_quiz",
    "streak",
    "xp_threshold",
    "level_up",
    "daily_goal",
    "lesson_count",
)


@dataclass(frozen=True, slots=True)
class RewardCard:
    id: str
    name: str
    condition: UnlockCondition
    description: str = ""
    rarity: Rarity = "common"
    category: str = ""
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class UserCardUnlock:
    user_id: str
    card_id: str
    unlocked_at: datetime


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Non-fatal problem surfaced to the caller instead of an exception."""

    code: str
    message: str
    detail: Mapping[str, Any] = field(default_factory=dict)


def ensure_lesson_status(value: str) -> LessonStatus:
    """Normalise and validate a lesson status string."""

    normalized = value.strip().lower()
    if normalized not in LESSON_STATUSES:
        raise ValueError(f"Unsupported lesson status: {value}")
    return cast(LessonStatus, normalized)


def ensure_rarity(value: str | None) -> Rarity:
    if value is None:
        return "common"
    normalized = value.strip().lower()
    if normalized not in ("common", "rare", "epic", "legendary"):
        raise ValueError(f"Unsupported card rarity: {value}")
    return cast(Rarity, normalized)


__all__ = [
    "ATTEMPT_MODES",
    "AttemptMode",
    "CONDITION_TYPES",
    "ChapterComplete",
    "DailyGoal",
    "DailyGoalProgress",
    "Diagnostic",
    "ensure_lesson_status",
    "ensure_rarity",
    "FirstLesson",
    "HeartState",
    "HeartStatus",
    "LESSON_STATUSES",
    "LessonCount",
    "LessonStatus",
    "LevelProgress",
    "LevelUp",
    "PerfectQuiz",
    "ProgressRecord",
    "Rarity",
    "RewardCard",
    "Streak",
    "StreakState",
    "StreakUpdate",
    "UnknownCondition",
    "UnlockCondition",
    "UserCardUnlock",
    "XPBonuses",
    "XPBreakdown",
    "XPThreshold",
]
