"""
gigquest.services.gamification_service — Gamification Orchestrator
===================================================================

Turns an activity into points, a ledger row, a streak update, achievement
unlocks and a level.  The whole unit commits once:

1. Load the user (NotFound if missing)
2. Append to the activity ledger
3. Add the activity's points
4. Advance the streak
5. Evaluate achievements, insert unlocks, add their bonus points
6. Re-sync the stored level

The user row is versioned, so two concurrent activities for the same user
cannot both commit a stale read.  The loser is retried from step 1 a
bounded number of times and then surfaces as :class:`ConflictError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from gigquest.constants import level_for_points, points_for_next_level
from gigquest.database.models import (
    AccountStatus,
    Achievement,
    AchievementCategory,
    ActivityEvent,
    User,
    UserAchievement,
)
from gigquest.engine.achievements import AchievementContext, evaluate_achievements
from gigquest.engine.streaks import StreakState, advance_streak
from gigquest.exceptions import ConflictError, GigQuestError, InvalidInputError, NotFoundError
from gigquest.services import ledger_service
from gigquest.services.user_service import load_user

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class ActivityResult:
    """What one recorded activity did to the user."""

    event: ActivityEvent
    points_awarded: int
    bonus_points: int
    new_achievements: list[Achievement] = field(default_factory=list)
    total_points: int = 0
    level: int = 1
    leveled_up: bool = False
    current_streak: int = 0


@dataclass(slots=True)
class UserGameStats:
    level: int
    total_points: int
    points_to_next_level: int
    current_streak: int
    longest_streak: int
    achievements: list[tuple[Achievement, datetime]]
    recent_activities: list[ActivityEvent]


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    user: User
    total_points: int
    current_streak: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def get_unlocked_ids(session: Session, user_id: int) -> set[int]:
    rows = session.scalars(
        select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    ).all()
    return set(rows)


def active_catalog(session: Session) -> list[Achievement]:
    """Active achievements in catalog order."""
    return list(session.scalars(
        select(Achievement)
        .where(Achievement.is_active.is_(True))
        .order_by(Achievement.category, Achievement.order, Achievement.id)
    ).all())


def _apply_activity(
    session: Session,
    user_id: int,
    activity_type: str,
    metadata: dict | None,
    now: datetime,
) -> ActivityResult:
    user = load_user(session, user_id)
    old_level = user.level or 1

    event = ledger_service.record(session, user_id, activity_type, metadata, date=now)
    user.total_points = (user.total_points or 0) + event.points

    streak = advance_streak(
        StreakState(
            current_streak=user.current_streak or 0,
            longest_streak=user.longest_streak or 0,
            last_activity_date=user.last_activity_date,
        ),
        now,
    )
    user.current_streak = streak.current_streak
    user.longest_streak = streak.longest_streak
    user.last_activity_date = streak.last_activity_date

    ctx = AchievementContext(
        current_streak=user.current_streak,
        jobs_completed=user.jobs_completed or 0,
        total_points=user.total_points,
    )
    evaluation = evaluate_achievements(ctx, active_catalog(session), get_unlocked_ids(session, user_id))
    for achievement in evaluation.unlocked:
        session.add(UserAchievement(user_id=user_id, achievement_id=achievement.id, unlocked_at=now))
    user.total_points += evaluation.bonus_points

    user.level = level_for_points(user.total_points)
    session.flush()

    return ActivityResult(
        event=event,
        points_awarded=event.points,
        bonus_points=evaluation.bonus_points,
        new_achievements=list(evaluation.unlocked),
        total_points=user.total_points,
        level=user.level,
        leveled_up=user.level > old_level,
        current_streak=user.current_streak,
    )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------
def record_activity(
    engine: Engine,
    user_id: int,
    activity_type: str,
    metadata: dict | None = None,
    *,
    now: datetime | None = None,
) -> ActivityResult:
    """Run an activity through the full gamification pipeline.

    Raises
    ------
    NotFoundError
        If *user_id* does not exist.
    ConflictError
        If the user row kept changing underneath us for every attempt.
    """
    now = now or datetime.now(UTC)

    for attempt in range(1, MAX_ATTEMPTS + 1):
        session = Session(engine, expire_on_commit=False)
        try:
            result = _apply_activity(session, user_id, activity_type, metadata, now)
            session.commit()
        except (StaleDataError, IntegrityError):
            session.rollback()
            logger.warning(
                "Concurrent update on user %d (attempt %d/%d)", user_id, attempt, MAX_ATTEMPTS,
            )
            continue
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info(
            "Activity: user=%d type=%s +%d pts (bonus %d) → level %d, streak %d",
            user_id, activity_type, result.points_awarded, result.bonus_points,
            result.level, result.current_streak,
        )
        if result.leveled_up:
            logger.info("Level up: user %d reached level %d", user_id, result.level)
        return result

    raise ConflictError(f"Could not record {activity_type} for user {user_id}; try again")


def award(
    engine: Engine,
    user_id: int | None,
    activity_type: str,
    metadata: dict | None = None,
) -> ActivityResult | None:
    """Best-effort :func:`record_activity` for lifecycle side effects.

    Called after a job or application change has committed; a failure here
    is logged and must not turn that change into an error response.
    """
    if user_id is None:
        return None
    try:
        return record_activity(engine, user_id, activity_type, metadata)
    except (GigQuestError, SQLAlchemyError):
        logger.warning(
            "Could not award %s to user %s", activity_type, user_id, exc_info=True,
        )
        return None


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_user_achievements(engine: Engine, user_id: int) -> list[tuple[Achievement, datetime]]:
    """Unlocked achievements for *user_id* with their unlock time, oldest first."""
    with Session(engine, expire_on_commit=False) as session:
        load_user(session, user_id)
        return _unlocked_with_dates(session, user_id)


def _unlocked_with_dates(session: Session, user_id: int) -> list[tuple[Achievement, datetime]]:
    rows = session.execute(
        select(Achievement, UserAchievement.unlocked_at)
        .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.unlocked_at, Achievement.id)
    ).all()
    return [(row[0], row[1]) for row in rows]


def get_stats(engine: Engine, user_id: int, recent_limit: int = 10) -> UserGameStats:
    """Level, points, streaks, unlocked achievements and recent activity."""
    with Session(engine, expire_on_commit=False) as session:
        user = load_user(session, user_id)
        total = user.total_points or 0
        return UserGameStats(
            level=level_for_points(total),
            total_points=total,
            points_to_next_level=points_for_next_level(total),
            current_streak=user.current_streak or 0,
            longest_streak=user.longest_streak or 0,
            achievements=_unlocked_with_dates(session, user_id),
            recent_activities=ledger_service.recent_in_session(session, user_id, recent_limit),
        )


def get_leaderboard(engine: Engine, limit: int = 10) -> list[LeaderboardEntry]:
    """Top users by total points.  Ties go to the lower user id."""
    with Session(engine, expire_on_commit=False) as session:
        users = session.scalars(
            select(User)
            .where(User.account_status != AccountStatus.DELETED.value)
            .order_by(User.total_points.desc(), User.id.asc())
            .limit(max(limit, 1))
        ).all()

    return [
        LeaderboardEntry(
            rank=i,
            user=u,
            total_points=u.total_points or 0,
            current_streak=u.current_streak or 0,
        )
        for i, u in enumerate(users, start=1)
    ]


# ---------------------------------------------------------------------------
# Achievement catalog
# ---------------------------------------------------------------------------
def list_achievements(engine: Engine) -> list[Achievement]:
    with Session(engine, expire_on_commit=False) as session:
        return active_catalog(session)


def create_achievement(engine: Engine, data: dict) -> Achievement:
    """Add a catalog entry.  Duplicate name → :class:`ConflictError`."""
    if data.get("category") not in set(AchievementCategory):
        raise InvalidInputError(f"Unknown achievement category: {data.get('category')!r}")
    if int(data.get("criteria_target", 0)) < 1:
        raise InvalidInputError("criteria_target must be at least 1")

    name = data["name"].strip()
    try:
        with Session(engine, expire_on_commit=False) as session:
            exists = session.scalar(select(Achievement.id).where(Achievement.name == name))
            if exists is not None:
                raise ConflictError(f"Achievement '{name}' already exists")
            achievement = Achievement(
                name=name,
                description=data["description"],
                icon=data["icon"],
                category=data["category"],
                criteria_type=data["criteria_type"],
                criteria_target=int(data["criteria_target"]),
                points=int(data.get("points", 0)),
                badge_url=data.get("badge_url"),
                is_active=bool(data.get("is_active", True)),
                order=int(data.get("order", 0)),
            )
            session.add(achievement)
            session.commit()
    except IntegrityError as exc:
        raise ConflictError(f"Achievement '{name}' already exists") from exc

    logger.info("Achievement created: %s (id=%d)", achievement.name, achievement.id)
    return achievement


def get_achievement(engine: Engine, achievement_id: int) -> Achievement:
    with Session(engine, expire_on_commit=False) as session:
        achievement = session.get(Achievement, achievement_id)
        if achievement is None:
            raise NotFoundError(f"Achievement {achievement_id} not found")
        return achievement
