"""
gigquest.services.user_service — User Directory
================================================

Provisioning, profile edits, freelancer search, and the ``stats.*``
counters.  This module is the only writer of the stats counters; the job
and application services call :func:`increment_stat` instead of touching
user rows themselves.

Counter increments are best-effort secondary writes: they run as a single
atomic ``UPDATE … SET x = x + delta`` after the caller's primary
transaction has committed, and a failure is logged rather than raised.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Engine, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gigquest.database.engine import get_session
from gigquest.database.models import AccountStatus, Availability, User, UserRole
from gigquest.engine.identity import Identity
from gigquest.exceptions import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from gigquest.services.pagination import Page, paginate

logger = logging.getLogger(__name__)

STAT_FIELDS: frozenset[str] = frozenset({
    "jobs_posted",
    "jobs_completed",
    "gigs_created",
    "total_earnings",
    "total_spent",
    "reviews_count",
})

PROFILE_FIELDS: frozenset[str] = frozenset({
    "first_name", "last_name", "avatar", "bio", "location",
})

FREELANCER_FIELDS: frozenset[str] = frozenset({
    "title", "hourly_rate", "skills", "availability",
})


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
def load_user(session: Session, user_id: int) -> User:
    """Fetch a user inside *session* or raise :class:`NotFoundError`."""
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def get_user(engine: Engine, user_id: int) -> User:
    with Session(engine, expire_on_commit=False) as session:
        return load_user(session, user_id)


def list_users(
    engine: Engine,
    *,
    role: str | None = None,
    account_status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> Page:
    """Admin listing with equality filters and a name/email substring search."""
    stmt = select(User)
    if role:
        stmt = stmt.where(User.role == role)
    if account_status:
        stmt = stmt.where(User.account_status == account_status)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(
            User.email.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
        ))
    stmt = stmt.order_by(User.created_at.desc(), User.id.desc())

    with Session(engine, expire_on_commit=False) as session:
        return paginate(session, stmt, page, limit)


# ---------------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------------
def create_user(
    engine: Engine,
    *,
    email: str,
    first_name: str,
    last_name: str,
    role: str = UserRole.CLIENT,
    **extra: Any,
) -> User:
    """Insert a new user.  Duplicate email → :class:`ConflictError`."""
    if role not in set(UserRole):
        raise InvalidInputError(f"Unknown role: {role!r}")

    email = email.strip().lower()
    unknown = set(extra) - PROFILE_FIELDS - FREELANCER_FIELDS
    if unknown:
        raise InvalidInputError(f"Unknown user fields: {', '.join(sorted(unknown))}")

    try:
        with get_session(engine) as session:
            if session.scalar(select(User.id).where(User.email == email)) is not None:
                raise ConflictError(f"Email '{email}' is already registered")
            user = User(
                email=email,
                first_name=first_name,
                last_name=last_name,
                role=str(role),
                skills=list(extra.pop("skills", None) or []),
                **extra,
            )
            session.add(user)
            session.flush()
    except IntegrityError as exc:
        raise ConflictError(f"Email '{email}' is already registered") from exc

    logger.info("User created: id=%d role=%s", user.id, user.role)
    return user


def record_login(engine: Engine, user_id: int) -> None:
    """Stamp ``last_login_at``.  Best-effort, like the stats counters."""
    try:
        with get_session(engine) as session:
            session.execute(
                update(User)
                .where(User.id == user_id)
                .values(last_login_at=datetime.now(UTC))
                .execution_options(synchronize_session=False)
            )
    except SQLAlchemyError:
        logger.warning("Could not record login for user %d", user_id, exc_info=True)


# ---------------------------------------------------------------------------
# Profile edits
# ---------------------------------------------------------------------------
def _ensure_self_or_admin(actor: Identity, user_id: int) -> None:
    if not (actor.owns(user_id) or actor.is_admin):
        raise ForbiddenError("You may only edit your own profile")


def update_profile(engine: Engine, user_id: int, actor: Identity, data: dict) -> User:
    """Merge profile fields (owner or admin)."""
    unknown = set(data) - PROFILE_FIELDS
    if unknown:
        raise InvalidInputError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

    with get_session(engine) as session:
        user = load_user(session, user_id)
        _ensure_self_or_admin(actor, user_id)
        for key, value in data.items():
            setattr(user, key, value)
    return user


def update_freelancer_profile(engine: Engine, user_id: int, actor: Identity, data: dict) -> User:
    """Merge freelancer-profile fields.  Only freelancers have one."""
    unknown = set(data) - FREELANCER_FIELDS
    if unknown:
        raise InvalidInputError(f"Unknown freelancer fields: {', '.join(sorted(unknown))}")
    if "availability" in data and data["availability"] not in set(Availability):
        raise InvalidInputError(f"Unknown availability: {data['availability']!r}")

    with get_session(engine) as session:
        user = load_user(session, user_id)
        _ensure_self_or_admin(actor, user_id)
        if user.role != UserRole.FREELANCER:
            raise ForbiddenError("Only freelancers have a freelancer profile")
        for key, value in data.items():
            setattr(user, key, list(value) if key == "skills" else value)
    return user


def deactivate_user(engine: Engine, user_id: int, actor: Identity) -> User:
    """Soft delete: the row stays so jobs and ledger entries keep their owner."""
    with get_session(engine) as session:
        user = load_user(session, user_id)
        _ensure_self_or_admin(actor, user_id)
        user.account_status = AccountStatus.DELETED.value
    logger.info("User %d deactivated by %d", user_id, actor.user_id)
    return user


# ---------------------------------------------------------------------------
# Freelancer search
# ---------------------------------------------------------------------------
def search_freelancers(
    engine: Engine,
    *,
    skills: list[str] | None = None,
    min_rating: float = 0.0,
    availability: str | None = None,
    limit: int = 20,
) -> list[User]:
    """Active freelancers with at least one of *skills*, best rated first."""
    stmt = select(User).where(
        User.role == UserRole.FREELANCER.value,
        User.account_status != AccountStatus.DELETED.value,
        User.rating >= min_rating,
    )
    if availability:
        stmt = stmt.where(User.availability == availability)
    stmt = stmt.order_by(User.rating.desc(), User.total_points.desc(), User.id)

    with Session(engine, expire_on_commit=False) as session:
        rows = list(session.scalars(stmt).all())

    if skills:
        wanted = {s.strip().lower() for s in skills if s.strip()}
        rows = [u for u in rows if wanted & {s.lower() for s in (u.skills or [])}]
    return rows[:limit]


# ---------------------------------------------------------------------------
# Stats counters
# ---------------------------------------------------------------------------
def increment_stat(engine: Engine, user_id: int | None, field: str, delta: int = 1) -> bool:
    """Atomically add *delta* to ``users.<field>``.

    Returns False (and logs) when the write fails or the user is gone; the
    caller's primary change is never rolled back because of it.
    """
    if field not in STAT_FIELDS:
        raise ValueError(f"Not a stats counter: {field!r}")
    if user_id is None:
        return False

    column = getattr(User, field)
    try:
        with get_session(engine) as session:
            result = session.execute(
                update(User)
                .where(User.id == user_id)
                .values({column: column + delta})
                .execution_options(synchronize_session=False)
            )
    except SQLAlchemyError:
        logger.warning(
            "Stat update failed: user=%s field=%s delta=%d", user_id, field, delta,
            exc_info=True,
        )
        return False

    if result.rowcount == 0:
        logger.warning("Stat update skipped: user %s not found", user_id)
        return False
    return True
