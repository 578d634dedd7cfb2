"""
gigquest.database.seed — Default Achievement Catalog
=====================================================

Baseline achievements seeded on first startup so streaks, job milestones
and point totals have something to unlock out of the box.

Idempotent: only inserts names that don't already exist.  Achievements
edited or deactivated by an admin are never overwritten.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from gigquest.database.models import Achievement, AchievementCategory, CriteriaType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Default catalog: name → (description, icon, category, criteria, target, points, order)
# ---------------------------------------------------------------------------
DEFAULT_ACHIEVEMENTS: dict[str, tuple[str, str, str, str, int, int, int]] = {
    "Warming Up": (
        "Be active three days in a row", "flame",
        AchievementCategory.STREAK, CriteriaType.STREAK_DAYS, 3, 20, 1,
    ),
    "On Fire": (
        "Be active seven days in a row", "fire",
        AchievementCategory.STREAK, CriteriaType.STREAK_DAYS, 7, 50, 2,
    ),
    "Unstoppable": (
        "Be active thirty days in a row", "rocket",
        AchievementCategory.STREAK, CriteriaType.STREAK_DAYS, 30, 200, 3,
    ),
    "First Delivery": (
        "Complete your first job", "check",
        AchievementCategory.JOBS, CriteriaType.JOBS_COMPLETED, 1, 25, 1,
    ),
    "Reliable": (
        "Complete ten jobs", "medal",
        AchievementCategory.JOBS, CriteriaType.JOBS_COMPLETED, 10, 100, 2,
    ),
    "Rising Star": (
        "Earn 500 points", "star",
        AchievementCategory.COMMUNITY, CriteriaType.TOTAL_POINTS, 500, 50, 1,
    ),
    "Marketplace Legend": (
        "Earn 5000 points", "crown",
        AchievementCategory.COMMUNITY, CriteriaType.TOTAL_POINTS, 5000, 250, 2,
    ),
}


def seed_default_achievements(engine: Engine) -> int:
    """Insert any missing default achievements.  Returns the number inserted."""
    with Session(engine) as session:
        existing = set(session.scalars(select(Achievement.name)).all())
        inserted = 0
        for name, spec in DEFAULT_ACHIEVEMENTS.items():
            if name in existing:
                continue
            description, icon, category, criteria, target, points, order = spec
            session.add(Achievement(
                name=name,
                description=description,
                icon=icon,
                category=category.value,
                criteria_type=criteria.value,
                criteria_target=target,
                points=points,
                order=order,
            ))
            inserted += 1
        session.commit()

    if inserted:
        logger.info("Seeded %d default achievements.", inserted)
    return inserted
