"""Heart (lives) economy: lazy regeneration on a fixed timer, spending, gating."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

from .clock import normalize_datetime, utc_now
from .models import HeartState, HeartStatus

HEART_REFILL_INTERVAL = timedelta(hours=4)
MAX_HEARTS = 5
MAX_HEARTS_LOST_PER_QUIZ = 5


def regenerate_hearts(
    hearts: int,
    max_hearts: int = MAX_HEARTS,
    last_refill_at: datetime | None = None,
    now: datetime | None = None,
    *,
    interval: timedelta = HEART_REFILL_INTERVAL,
) -> HeartStatus:
    """Work out how many hearts have come back since ``last_refill_at``.

    Nothing is stored: the balance is recomputed from the regen clock baseline
    every time a caller asks. ``next_refill_at`` is None once the balance is full.
    """
    if hearts >= max_hearts:
        return HeartStatus(hearts=max_hearts, next_refill_at=None, hearts_to_refill=0)

    moment = normalize_datetime(now or utc_now())
    hearts = max(0, hearts)

    if last_refill_at is None:
        return HeartStatus(hearts=hearts, next_refill_at=moment + interval, hearts_to_refill=0)

    # A baseline in the future (clock skew) counts as no time elapsed.
    elapsed = max(timedelta(0), moment - normalize_datetime(last_refill_at))
    gained = elapsed // interval
    until_next = interval - (elapsed % interval)

    if gained == 0:
        return HeartStatus(hearts=hearts, next_refill_at=moment + until_next, hearts_to_refill=0)

    new_hearts = min(hearts + gained, max_hearts)
    next_refill_at = None if new_hearts >= max_hearts else moment + until_next
    return HeartStatus(
        hearts=new_hearts,
        next_refill_at=next_refill_at,
        hearts_to_refill=new_hearts - hearts,
    )


def settle_hearts(
    state: HeartState,
    now: datetime | None = None,
    *,
    interval: timedelta = HEART_REFILL_INTERVAL,
) -> tuple[HeartState, HeartStatus]:
    """Fold regeneration into a stored state so the same hours are not credited twice.

    The regen clock moves forward by whole intervals only, keeping the partial
    interval already elapsed. A balance that comes back to full restarts the
    clock at ``now``.
    """
    moment = normalize_datetime(now or utc_now())
    status = regenerate_hearts(state.hearts, state.max_hearts, state.last_refill_at, moment, interval=interval)
    if status.hearts_to_refill == 0:
        return replace(state, hearts=status.hearts), status
    if status.hearts >= state.max_hearts or state.last_refill_at is None:
        refill_at = moment
    else:
        refill_at = normalize_datetime(state.last_refill_at) + interval * status.hearts_to_refill
    return replace(state, hearts=status.hearts, last_refill_at=refill_at), status


def spend_hearts(
    hearts: int,
    amount: int,
    max_hearts: int = MAX_HEARTS,
    last_refill_at: datetime | None = None,
    now: datetime | None = None,
) -> HeartState:
    """Deduct ``amount`` hearts, keeping the existing regen clock when there is one."""
    moment = normalize_datetime(now or utc_now())
    remaining = max(0, hearts - max(0, amount))
    if remaining >= max_hearts:
        refill_at: datetime | None = moment
    else:
        refill_at = last_refill_at or moment
    return HeartState(hearts=remaining, max_hearts=max_hearts, last_refill_at=refill_at)


def has_enough_hearts(hearts: int, required: int = 1) -> bool:
    return hearts >= required


def hearts_lost(incorrect_answers: int, max_loss: int = MAX_HEARTS_LOST_PER_QUIZ) -> int:
    return max(0, min(incorrect_answers, max_loss))


__all__ = [
    "HEART_REFILL_INTERVAL",
    "MAX_HEARTS",
    "MAX_HEARTS_LOST_PER_QUIZ",
    "has_enough_hearts",
    "hearts_lost",
    "regenerate_hearts",
    "settle_hearts",
    "spend_hearts",
]
