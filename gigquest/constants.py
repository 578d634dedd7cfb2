"""
gigquest.constants — Shared Constants & Helpers
================================================

Single source of truth for the leveling formula and leaderboard
presentation.  Import from here instead of duplicating in services and
routes.
"""

from __future__ import annotations

POINTS_PER_LEVEL = 100

RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉


# ---------------------------------------------------------------------------
# Leveling formula: THE single canonical implementation
# ---------------------------------------------------------------------------
def level_for_points(total_points: int) -> int:
    """Level reached with *total_points*: one level per 100 points, starting at 1."""
    return max(total_points, 0) // POINTS_PER_LEVEL + 1


def points_for_next_level(total_points: int) -> int:
    """Points still needed to reach the next level."""
    return level_for_points(total_points) * POINTS_PER_LEVEL - max(total_points, 0)
