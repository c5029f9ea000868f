"""Tests for mastery.py: score-driven transitions, review scheduling and decay."""

from __future__ import annotations

from datetime import timedelta

import pytest

from progression_engine.mastery import (
    MASTERY_DECAY_DAYS,
    calculate_mastery_level,
    legendary_mastery_level,
    mastery_decay,
    needs_review,
    next_mastery_level,
    next_review_date,
)


class TestCalculateMasteryLevel:
    def test_perfect_advances(self):
        assert calculate_mastery_level(100, 3) == 4

    def test_perfect_capped(self):
        assert calculate_mastery_level(100, 5) == 5

    def test_good_score_advances_like_perfect(self):
        assert calculate_mastery_level(85, 2) == 3

    def test_good_score_capped(self):
        assert calculate_mastery_level(90, 5) == 5

    def test_passing_holds(self):
        assert calculate_mastery_level(60, 3) == 3
        assert calculate_mastery_level(79, 3) == 3

    def test_poor_score_drops(self):
        assert calculate_mastery_level(40, 3) == 2
        assert calculate_mastery_level(59, 0) == 0

    def test_fractional_previous_is_floored(self):
        assert calculate_mastery_level(100, 2.7) == 3
        assert calculate_mastery_level(70, 2.7) == 2

    def test_default_previous_is_zero(self):
        assert calculate_mastery_level(100) == 1


class TestLegendary:
    def test_only_perfect_counts(self):
        assert legendary_mastery_level(100, 2) == 3
        assert legendary_mastery_level(95, 2) == 2
        assert legendary_mastery_level(10, 2) == 2

    def test_capped(self):
        assert legendary_mastery_level(100, 5) == 5

    def test_dispatch_by_mode(self):
        assert next_mastery_level("legendary", 90, 2) == 2
        assert next_mastery_level("review", 90, 2) == 3
        assert next_mastery_level("first", 30, 2) == 1


class TestNextReviewDate:
    def test_first_review_tomorrow(self, now):
        assert next_review_date(0, None, now) == now + timedelta(days=1)

    @pytest.mark.parametrize("level,days", [(0, 1), (1, 3), (2, 7), (3, 14), (4, 30), (5, 30)])
    def test_schedule_by_level(self, now, level, days):
        assert next_review_date(level, now, now) == now + timedelta(days=days)

    def test_overdue_schedule_clamps_to_now(self, now):
        assert next_review_date(1, now - timedelta(days=10), now) == now

    def test_partial_wait_stays_in_future(self, now):
        last = now - timedelta(days=2)
        assert next_review_date(2, last, now) == last + timedelta(days=7)


class TestNeedsReview:
    def test_unmastered_always_needs_review(self, now):
        assert needs_review(now + timedelta(days=10), 3, now) is True

    def test_mastered_waits_for_date(self, now):
        assert needs_review(now + timedelta(days=1), 5, now) is False
        assert needs_review(now - timedelta(seconds=1), 5, now) is True
        assert needs_review(None, 5, now) is False


class TestMasteryDecay:
    def test_zero_never_decays(self):
        assert mastery_decay(0, 1000) == 0

    def test_within_window_unchanged(self):
        assert mastery_decay(3, 1) == 3
        assert mastery_decay(1, 0.5) == 1

    def test_lands_on_highest_overrun_tier(self):
        assert mastery_decay(3, 8) == 2
        assert mastery_decay(5, 31) == 4
        assert mastery_decay(2, 2) == 0

    def test_schedule_is_fixed(self):
        assert MASTERY_DECAY_DAYS == (1, 3, 7, 14, 30)
