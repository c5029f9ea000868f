"""Progression and gamification engine: hearts, streaks, XP, levels, mastery, card unlocks."""

from .hearts import has_enough_hearts, regenerate_hearts, settle_hearts, spend_hearts
from .levels import calculate_level, level_progress
from .mastery import calculate_mastery_level, mastery_decay, next_review_date
from .progression import complete_lesson, practice_lesson, progress_summary, start_lesson
from .streaks import is_streak_milestone, update_streak
from .unlocks import UnlockContext, evaluate_condition, parse_condition, unlock_cards
from .xp import compute_xp, xp_for_attempt

__all__ = [
    "calculate_level",
    "calculate_mastery_level",
    "complete_lesson",
    "compute_xp",
    "evaluate_condition",
    "has_enough_hearts",
    "is_streak_milestone",
    "level_progress",
    "mastery_decay",
    "next_review_date",
    "parse_condition",
    "practice_lesson",
    "progress_summary",
    "regenerate_hearts",
    "settle_hearts",
    "spend_hearts",
    "start_lesson",
    "UnlockContext",
    "unlock_cards",
    "update_streak",
    "xp_for_attempt",
]
