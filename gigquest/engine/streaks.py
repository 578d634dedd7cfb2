"""
gigquest.engine.streaks — Consecutive-day streak calculation
=============================================================

Pure calculation, no database I/O.

Days are **elapsed 24-hour buckets**, not calendar dates: an activity at
23:00 followed by one at 01:00 the next morning is 0 days apart, and two
activities 47 hours apart are 1 day apart.  A same-bucket activity leaves
``last_activity_date`` where it was, so the bucket is always measured from
the activity that last moved the streak.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True, slots=True)
class StreakState:
    """Streak counters for one user."""

    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: datetime | None = None


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole elapsed days between two instants, order-insensitive."""
    delta = abs(as_utc(later) - as_utc(earlier))
    return delta // ONE_DAY


def advance_streak(state: StreakState, now: datetime) -> StreakState:
    """Return the streak state after an activity at *now*.

    - first activity → 1/1, anchored at *now*
    - same day (0)   → unchanged
    - next day (1)   → current + 1, longest follows
    - gap (≥ 2)      → current resets to 1, longest kept
    """
    if state.last_activity_date is None:
        return StreakState(current_streak=1, longest_streak=1, last_activity_date=now)

    elapsed = days_between(state.last_activity_date, now)

    if elapsed == 0:
        return state

    if elapsed == 1:
        current = state.current_streak + 1
        return StreakState(
            current_streak=current,
            longest_streak=max(state.longest_streak, current),
            last_activity_date=now,
        )

    return StreakState(
        current_streak=1,
        longest_streak=max(state.longest_streak, 1),
        last_activity_date=now,
    )
