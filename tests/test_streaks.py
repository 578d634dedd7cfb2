"""
tests/test_streaks.py — Streak Calculator Unit Tests
=====================================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from gigquest.engine.streaks import StreakState, advance_streak, as_utc, days_between

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestDaysBetween:
    def test_same_instant(self):
        assert days_between(T0, T0) == 0

    def test_just_under_a_day(self):
        assert days_between(T0, T0 + timedelta(hours=23, minutes=59)) == 0

    def test_exactly_one_day(self):
        assert days_between(T0, T0 + timedelta(days=1)) == 1

    def test_elapsed_buckets_not_calendar_days(self):
        late = datetime(2026, 3, 1, 23, 0, tzinfo=UTC)
        early_next = datetime(2026, 3, 2, 1, 0, tzinfo=UTC)
        assert days_between(late, early_next) == 0
        assert days_between(T0, T0 + timedelta(hours=47)) == 1

    def test_order_insensitive(self):
        assert days_between(T0 + timedelta(days=3), T0) == 3

    def test_naive_treated_as_utc(self):
        naive = datetime(2026, 3, 2, 12, 0)
        assert as_utc(naive).tzinfo is UTC
        assert days_between(T0, naive) == 1


class TestAdvanceStreak:
    def test_first_activity(self):
        state = advance_streak(StreakState(), T0)
        assert state == StreakState(1, 1, T0)

    def test_same_day_leaves_state_untouched(self):
        before = StreakState(4, 6, T0)
        after = advance_streak(before, T0 + timedelta(hours=20))
        assert after == before
        assert after.last_activity_date == T0

    def test_next_day_increments(self):
        after = advance_streak(StreakState(4, 6, T0), T0 + timedelta(days=1, hours=2))
        assert after.current_streak == 5
        assert after.longest_streak == 6
        assert after.last_activity_date == T0 + timedelta(days=1, hours=2)

    def test_next_day_raises_longest(self):
        after = advance_streak(StreakState(6, 6, T0), T0 + timedelta(days=1))
        assert after.current_streak == 7
        assert after.longest_streak == 7

    def test_gap_resets_current_keeps_longest(self):
        now = T0 + timedelta(days=2)
        after = advance_streak(StreakState(9, 12, T0), now)
        assert after == StreakState(1, 12, now)

    def test_longest_never_below_current(self):
        state = StreakState()
        now = T0
        for step in (0, 1, 1, 0.5, 3, 1, 1):
            now = now + timedelta(days=step)
            state = advance_streak(state, now)
            assert state.longest_streak >= state.current_streak >= 1

    def test_stored_naive_last_activity(self):
        """Rows read back from SQLite have naive datetimes."""
        stored = StreakState(2, 2, datetime(2026, 3, 1, 12, 0))
        after = advance_streak(stored, T0 + timedelta(days=1))
        assert after.current_streak == 3
