"""
gigquest.engine.achievements — Achievement Unlock Evaluation
=============================================================

Handler-registry implementation for achievement criteria.  Each
CriteriaType maps to a pure function that reads one number off an
AchievementContext; the achievement unlocks when that number reaches
``criteria_target``.  Unknown criteria types have no handler and never
unlock.

Evaluation is a single forward pass in catalog order.  The point total is
live: a bonus granted earlier in the pass counts toward a ``total_points``
achievement checked later in the same pass.

This module is pure calculation, no database I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Protocol

from gigquest.database.models import CriteriaType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Achievement Context: user state seen by criteria handlers
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AchievementContext:
    """Snapshot of the user state relevant to unlock criteria.

    Parameters
    ----------
    current_streak : Streak after this activity was applied.
    jobs_completed : ``stats.jobs_completed`` counter.
    total_points : Points after this activity's award (and any bonuses
        granted earlier in the same evaluation pass).
    """

    current_streak: int = 0
    jobs_completed: int = 0
    total_points: int = 0


class AchievementLike(Protocol):
    id: int
    name: str
    criteria_type: str
    criteria_target: int
    points: int


@dataclass(slots=True)
class EvaluationResult:
    """Achievements unlocked by one pass, and the points they added."""

    unlocked: list[AchievementLike] = field(default_factory=list)
    bonus_points: int = 0
    context: AchievementContext = field(default_factory=AchievementContext)

    @property
    def unlocked_ids(self) -> list[int]:
        return [a.id for a in self.unlocked]


# ---------------------------------------------------------------------------
# Criteria handlers: pure functions ctx → measured value
# ---------------------------------------------------------------------------
def _streak_days(ctx: AchievementContext) -> int:
    return ctx.current_streak


def _jobs_completed(ctx: AchievementContext) -> int:
    return ctx.jobs_completed


def _total_points(ctx: AchievementContext) -> int:
    return ctx.total_points


CRITERIA_HANDLERS: dict[str, Callable[[AchievementContext], int]] = {
    CriteriaType.STREAK_DAYS: _streak_days,
    CriteriaType.JOBS_COMPLETED: _jobs_completed,
    CriteriaType.TOTAL_POINTS: _total_points,
}


def is_satisfied(criteria_type: str, target: int, ctx: AchievementContext) -> bool:
    """True if *ctx* meets the criterion.  Unknown types are never satisfied."""
    handler = CRITERIA_HANDLERS.get(criteria_type)
    if handler is None:
        return False
    return handler(ctx) >= target


# ---------------------------------------------------------------------------
# Main evaluation function
# ---------------------------------------------------------------------------
def evaluate_achievements(
    ctx: AchievementContext,
    achievements: Iterable[AchievementLike],
    already_unlocked: set[int],
) -> EvaluationResult:
    """Work out which of *achievements* the user newly unlocks.

    Parameters
    ----------
    ctx : User state after the triggering activity.
    achievements : Active catalog entries, in catalog order.
    already_unlocked : Achievement IDs the user already holds.  Never
        mutated; entries in it are skipped, which makes re-evaluation with
        unchanged stats a no-op.

    Returns
    -------
    EvaluationResult with the unlocked achievements, the summed bonus, and
    the context as it stood at the end of the pass.
    """
    result = EvaluationResult(context=ctx)
    seen = set(already_unlocked)

    for achievement in achievements:
        if achievement.id in seen:
            continue

        if not is_satisfied(achievement.criteria_type, achievement.criteria_target, result.context):
            continue

        seen.add(achievement.id)
        result.unlocked.append(achievement)
        result.bonus_points += achievement.points
        result.context = replace(
            result.context,
            total_points=result.context.total_points + achievement.points,
        )
        logger.info(
            "Achievement unlocked: %s (id=%d, +%d pts)",
            achievement.name, achievement.id, achievement.points,
        )

    return result
