"""
gigquest.engine.events — Activity point table
==============================================

Fixed points awarded per activity type.  Anything not in the table is
worth nothing but is still recorded in the ledger.
"""

from __future__ import annotations

from gigquest.database.models import ActivityType

__all__ = ["POINTS_PER_ACTIVITY", "points_for"]

POINTS_PER_ACTIVITY: dict[ActivityType, int] = {
    ActivityType.LOGIN: 5,
    ActivityType.JOB_POSTED: 10,
    ActivityType.APPLICATION_SENT: 15,
    ActivityType.APPLICATION_ACCEPTED: 25,
    ActivityType.JOB_COMPLETED: 50,
    ActivityType.PROFILE_UPDATED: 5,
}


def points_for(activity_type: str) -> int:
    """Points for *activity_type*; unknown types map to 0."""
    try:
        return POINTS_PER_ACTIVITY[ActivityType(activity_type)]
    except ValueError:
        return 0
