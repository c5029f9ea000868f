"""Daily streak state machine evaluated on calendar days in the user's timezone."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .clock import normalize_datetime, utc_now
from .models import StreakState, StreakUpdate

logger = logging.getLogger(__name__)

STREAK_MILESTONES: dict[int, str] = {
    7: "Week Warrior",
    30: "Monthly Master",
    100: "Century Champion",
    365: "Year Legend",
}


def resolve_timezone(name: str | None) -> tzinfo:
    """Return the zone for ``name``, falling back to UTC when it is unusable."""
    if not name or not name.strip():
        return timezone.utc
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning("Unknown timezone %r, using UTC for streak days", name)
        return timezone.utc


def local_day(moment: datetime, zone: tzinfo) -> date:
    return normalize_datetime(moment).astimezone(zone).date()


def update_streak(
    last_active_date: datetime | None,
    current_streak: int,
    timezone_name: str | None = "UTC",
    now: datetime | None = None,
) -> StreakUpdate:
    moment = normalize_datetime(now or utc_now())

    if last_active_date is None:
        return StreakUpdate(
            current_streak=1,
            should_increment=True,
            should_reset=False,
            last_active_date=moment,
        )

    zone = resolve_timezone(timezone_name)
    today = local_day(moment, zone)
    last_day = local_day(last_active_date, zone)

    if last_day >= today:
        return StreakUpdate(
            current_streak=current_streak,
            should_increment=False,
            should_reset=False,
            last_active_date=last_active_date,
        )

    if last_day == today - timedelta(days=1):
        return StreakUpdate(
            current_streak=current_streak + 1,
            should_increment=True,
            should_reset=False,
            last_active_date=moment,
        )

    return StreakUpdate(
        current_streak=1,
        should_increment=True,
        should_reset=True,
        last_active_date=moment,
    )


def apply_streak(state: StreakState, now: datetime | None = None) -> tuple[StreakState, StreakUpdate]:
    """Run ``update_streak`` against a stored state and fold in the longest streak."""
    update = update_streak(state.last_active_date, state.current_streak, state.timezone, now)
    if not update.should_increment:
        return state, update
    new_state = replace(
        state,
        current_streak=update.current_streak,
        longest_streak=max(state.longest_streak, update.current_streak),
        last_active_date=update.last_active_date,
    )
    return new_state, update


def is_streak_milestone(days: int) -> bool:
    return days in STREAK_MILESTONES


def streak_milestone_name(days: int) -> str | None:
    return STREAK_MILESTONES.get(days)


__all__ = [
    "STREAK_MILESTONES",
    "apply_streak",
    "is_streak_milestone",
    "local_day",
    "resolve_timezone",
    "streak_milestone_name",
    "update_streak",
]
