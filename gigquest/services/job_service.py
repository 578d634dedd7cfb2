"""
gigquest.services.job_service — Job Lifecycle Manager
======================================================

Create, read, list, edit, publish, assign, complete, cancel and delete
jobs.  Every mutation checks ownership first, then asks
:mod:`gigquest.engine.lifecycle` whether the transition is legal, then
commits.  Jobs are versioned rows; a write that lost a race raises
:class:`ConflictError`.

Counter side effects (the client's ``jobs_posted``, both parties'
``jobs_completed``, the job's ``views`` and ``applications_count``) are
best-effort and run after the primary commit.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Engine, case, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from gigquest.database.engine import get_session
from gigquest.database.models import (
    AccountStatus,
    ExperienceLevel,
    Job,
    JobStatus,
    JobType,
    User,
    UserRole,
)
from gigquest.engine.identity import Identity
from gigquest.engine.lifecycle import job_transition
from gigquest.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from gigquest.services import user_service
from gigquest.services.pagination import Page, apply_sort, paginate, paginate_list

logger = logging.getLogger(__name__)

EDITABLE_FIELDS: frozenset[str] = frozenset({
    "title",
    "description",
    "category",
    "subcategory",
    "type",
    "budget",
    "hourly_rate_min",
    "hourly_rate_max",
    "skills_required",
    "experience_level",
    "estimated_duration",
    "deadline",
    "is_urgent",
})

SORTABLE_FIELDS: set[str] = {
    "created_at", "updated_at", "budget", "deadline", "views", "applications_count", "title",
}

POSTING_ROLES: frozenset[str] = frozenset({UserRole.CLIENT.value, UserRole.ADMIN.value})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def load_job(session: Session, job_id: int) -> Job:
    job = session.get(Job, job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found")
    return job


def _ensure_owner(job: Job, actor: Identity) -> None:
    if not actor.owns(job.client_id):
        raise ForbiddenError("Only the job's client may do that")


def _validate_fields(data: dict) -> dict:
    unknown = set(data) - EDITABLE_FIELDS
    if unknown:
        raise InvalidInputError(f"Unknown job fields: {', '.join(sorted(unknown))}")
    if "type" in data and data["type"] not in set(JobType):
        raise InvalidInputError(f"Unknown job type: {data['type']!r}")
    if "experience_level" in data and data["experience_level"] not in set(ExperienceLevel):
        raise InvalidInputError(f"Unknown experience level: {data['experience_level']!r}")
    low, high = data.get("hourly_rate_min"), data.get("hourly_rate_max")
    if low is not None and high is not None and low > high:
        raise InvalidInputError("hourly_rate_min cannot exceed hourly_rate_max")
    if "skills_required" in data:
        data = {**data, "skills_required": list(data["skills_required"] or [])}
    return data


def _commit_versioned(session: Session, job_id: int) -> None:
    try:
        session.commit()
    except StaleDataError as exc:
        session.rollback()
        raise ConflictError(f"Job {job_id} was modified concurrently; reload and retry") from exc


def _has_skill(job: Job, wanted: set[str]) -> bool:
    return bool(wanted & {s.lower() for s in (job.skills_required or [])})


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------
def create_job(engine: Engine, actor: Identity, data: dict) -> Job:
    """New draft job owned by *actor*.  Only clients and admins may post."""
    if actor.role not in POSTING_ROLES:
        raise ForbiddenError("Only clients can post jobs")
    data = _validate_fields(data)
    for required in ("title", "description", "category", "type"):
        if not data.get(required):
            raise InvalidInputError(f"Missing required field: {required}")

    with get_session(engine) as session:
        user_service.load_user(session, actor.user_id)
        job = Job(client_id=actor.user_id, status=JobStatus.DRAFT.value, **data)
        session.add(job)
        session.flush()

    logger.info("Job created: id=%d client=%d", job.id, actor.user_id)
    user_service.increment_stat(engine, actor.user_id, "jobs_posted")
    return job


def get_job(engine: Engine, job_id: int, *, increment_view: bool = False) -> Job:
    with Session(engine, expire_on_commit=False) as session:
        job = load_job(session, job_id)

    if increment_view and _bump_counter(engine, job_id, Job.views, 1):
        job.views = (job.views or 0) + 1
    return job


def list_jobs(
    engine: Engine,
    *,
    filters: dict[str, Any] | None = None,
    search: str | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 10,
) -> Page:
    """Filtered, sorted, paginated job listing.

    ``filters`` accepts ``status``, ``category``, ``type``,
    ``experience_level``, ``client_id``, ``is_urgent`` (equality),
    ``budget_min``/``budget_max`` (range) and ``skills`` (any-of).
    """
    filters = dict(filters or {})
    stmt = select(Job)

    for name in ("status", "category", "type", "experience_level", "client_id", "is_urgent"):
        value = filters.get(name)
        if value is not None:
            stmt = stmt.where(getattr(Job, name) == value)
    if filters.get("budget_min") is not None:
        stmt = stmt.where(Job.budget >= filters["budget_min"])
    if filters.get("budget_max") is not None:
        stmt = stmt.where(Job.budget <= filters["budget_max"])
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(
            Job.title.ilike(pattern),
            Job.description.ilike(pattern),
            Job.category.ilike(pattern),
        ))
    stmt = apply_sort(stmt, Job, sort_by, sort_order, SORTABLE_FIELDS)

    skills = [s.strip().lower() for s in filters.get("skills") or [] if s.strip()]
    with Session(engine, expire_on_commit=False) as session:
        if not skills:
            return paginate(session, stmt, page, limit)
        rows = session.scalars(stmt).all()

    wanted = set(skills)
    return paginate_list([job for job in rows if _has_skill(job, wanted)], page, limit)


def recommended_jobs(engine: Engine, freelancer_id: int, limit: int = 10) -> list[Job]:
    """Open jobs sharing at least one skill with the freelancer, newest first."""
    with Session(engine, expire_on_commit=False) as session:
        freelancer = user_service.load_user(session, freelancer_id)
        if freelancer.role != UserRole.FREELANCER:
            raise ForbiddenError("Recommendations are for freelancers")
        wanted = {s.lower() for s in (freelancer.skills or [])}
        if not wanted:
            return []
        rows = session.scalars(
            select(Job)
            .where(Job.status == JobStatus.OPEN.value)
            .order_by(Job.created_at.desc(), Job.id.desc())
        ).all()

    return [job for job in rows if _has_skill(job, wanted)][:limit]


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def update_job(engine: Engine, job_id: int, actor: Identity, data: dict) -> Job:
    """Merge editable fields while the job is still live."""
    data = _validate_fields(data)
    with Session(engine, expire_on_commit=False) as session:
        job = load_job(session, job_id)
        _ensure_owner(job, actor)
        job_transition(job.status, "update")
        for key, value in data.items():
            setattr(job, key, value)
        _commit_versioned(session, job_id)
    return job


def _transition(engine: Engine, job_id: int, actor: Identity, operation: str, **changes) -> Job:
    with Session(engine, expire_on_commit=False) as session:
        job = load_job(session, job_id)
        _ensure_owner(job, actor)
        previous = job.status
        job.status = str(job_transition(job.status, operation))
        for key, value in changes.items():
            setattr(job, key, value)
        _commit_versioned(session, job_id)

    logger.info("Job %d: %s → %s (%s)", job_id, previous, job.status, operation)
    return job


def publish_job(engine: Engine, job_id: int, actor: Identity) -> Job:
    return _transition(engine, job_id, actor, "publish")


def assign_freelancer(engine: Engine, job_id: int, actor: Identity, freelancer_id: int) -> Job:
    """Move an open job to in-progress with *freelancer_id* on it."""
    with Session(engine, expire_on_commit=False) as session:
        job = load_job(session, job_id)
        _ensure_owner(job, actor)
        job_transition(job.status, "assign")
        freelancer = session.get(User, freelancer_id)
        if freelancer is None or freelancer.role != UserRole.FREELANCER:
            raise InvalidInputError(f"User {freelancer_id} is not a freelancer")
        if freelancer.account_status == AccountStatus.DELETED:
            raise InvalidInputError(f"User {freelancer_id} has been deactivated")

    return _transition(
        engine, job_id, actor, "assign",
        assigned_freelancer_id=freelancer_id,
        start_date=datetime.now(UTC),
    )


def complete_job(engine: Engine, job_id: int, actor: Identity) -> Job:
    job = _transition(engine, job_id, actor, "complete", completion_date=datetime.now(UTC))
    user_service.increment_stat(engine, job.client_id, "jobs_completed")
    user_service.increment_stat(engine, job.assigned_freelancer_id, "jobs_completed")
    return job


def cancel_job(engine: Engine, job_id: int, actor: Identity) -> Job:
    return _transition(engine, job_id, actor, "cancel")


def delete_job(engine: Engine, job_id: int, actor: Identity) -> None:
    """Remove a draft job (and, by cascade, any applications on it)."""
    with Session(engine, expire_on_commit=False) as session:
        job = load_job(session, job_id)
        _ensure_owner(job, actor)
        job_transition(job.status, "delete")
        session.delete(job)
        _commit_versioned(session, job_id)
    logger.info("Job %d deleted by %d", job_id, actor.user_id)


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------
def _bump_counter(engine: Engine, job_id: int, column, delta: int) -> bool:
    """Atomic, floored-at-zero counter update that leaves ``version`` alone."""
    try:
        with get_session(engine) as session:
            result = session.execute(
                update(Job.__table__)
                .where(Job.__table__.c.id == job_id)
                .values({column.key: case((column + delta < 0, 0), else_=column + delta)})
            )
    except SQLAlchemyError:
        logger.warning(
            "Counter update failed: job=%d column=%s delta=%d", job_id, column.key, delta,
            exc_info=True,
        )
        return False
    return result.rowcount > 0


def adjust_applications_count(engine: Engine, job_id: int, delta: int) -> bool:
    return _bump_counter(engine, job_id, Job.applications_count, delta)
