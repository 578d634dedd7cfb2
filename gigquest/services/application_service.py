"""
gigquest.services.application_service — Application Lifecycle Manager
=======================================================================

Freelancer proposals against open jobs.  One application per
``(job, freelancer)`` pair, enforced by a unique constraint.

Accept is the interesting one.  It runs in a single transaction that
covers the accepted application, the auto-rejection of every other
pending application on the job, and a write to the job row
(``accepted_application_id``).  The job row is versioned, so when two
clients race to accept different applications on the same job exactly
one commit wins; the other raises ``StaleDataError`` and is reported as
:class:`ConflictError`.  Accept never assigns the job; that stays an
explicit job operation.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from gigquest.database.models import (
    Application,
    ApplicationStatus,
    Job,
    JobStatus,
    UserRole,
)
from gigquest.engine.identity import Identity
from gigquest.engine.lifecycle import application_transition
from gigquest.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from gigquest.services import job_service
from gigquest.services.pagination import Page, apply_sort, paginate

logger = logging.getLogger(__name__)

EDITABLE_FIELDS: frozenset[str] = frozenset({
    "cover_letter", "proposed_rate", "proposed_duration", "portfolio",
})

SORTABLE_FIELDS: set[str] = {"created_at", "applied_at", "responded_at", "proposed_rate"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def load_application(session: Session, application_id: int) -> Application:
    application = session.get(Application, application_id)
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")
    return application


def _ensure_applicant(application: Application, actor: Identity) -> None:
    if not actor.owns(application.freelancer_id):
        raise ForbiddenError("Only the applicant may do that")


def _ensure_job_owner(job: Job, actor: Identity) -> None:
    if not actor.owns(job.client_id):
        raise ForbiddenError("Only the job's client may do that")


def _validate_fields(data: dict) -> dict:
    unknown = set(data) - EDITABLE_FIELDS
    if unknown:
        raise InvalidInputError(f"Unknown application fields: {', '.join(sorted(unknown))}")
    if "portfolio" in data:
        data = {**data, "portfolio": list(data["portfolio"] or [])}
    return data


def _commit_versioned(session: Session, what: str) -> None:
    try:
        session.commit()
    except StaleDataError as exc:
        session.rollback()
        raise ConflictError(f"{what} was modified concurrently; reload and retry") from exc


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------
def create_application(engine: Engine, job_id: int, actor: Identity, data: dict) -> Application:
    """Apply to an open job.

    Raises
    ------
    NotFoundError       the job does not exist
    InvalidStateError   the job is not open
    ForbiddenError      the caller owns the job or is not a freelancer
    ConflictError       the caller already applied to this job
    """
    data = _validate_fields(data)
    if not data.get("cover_letter"):
        raise InvalidInputError("Missing required field: cover_letter")

    try:
        with Session(engine, expire_on_commit=False) as session:
            job = job_service.load_job(session, job_id)
            if job.status != JobStatus.OPEN:
                raise InvalidStateError(
                    f"Cannot apply to a job in status '{job.status}'",
                    current=job.status,
                    operation="apply",
                )
            if actor.owns(job.client_id):
                raise ForbiddenError("You cannot apply to your own job")
            if actor.role != UserRole.FREELANCER:
                raise ForbiddenError("Only freelancers can apply to jobs")

            duplicate = session.scalar(
                select(Application.id).where(
                    Application.job_id == job_id,
                    Application.freelancer_id == actor.user_id,
                )
            )
            if duplicate is not None:
                raise ConflictError("You have already applied to this job")

            application = Application(
                job_id=job_id,
                freelancer_id=actor.user_id,
                status=ApplicationStatus.PENDING.value,
                applied_at=datetime.now(UTC),
                **data,
            )
            session.add(application)
            session.commit()
    except IntegrityError as exc:
        raise ConflictError("You have already applied to this job") from exc

    logger.info(
        "Application %d: freelancer %d → job %d", application.id, actor.user_id, job_id,
    )
    job_service.adjust_applications_count(engine, job_id, 1)
    return application


def get_application(engine: Engine, application_id: int, actor: Identity) -> Application:
    """Visible to the applicant, the job's client and admins."""
    with Session(engine, expire_on_commit=False) as session:
        application = load_application(session, application_id)
        job = job_service.load_job(session, application.job_id)
        if not (actor.owns(application.freelancer_id) or actor.owns(job.client_id) or actor.is_admin):
            raise ForbiddenError("You cannot view this application")
        return application


def list_applications(
    engine: Engine,
    *,
    filters: dict[str, Any] | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 10,
) -> Page:
    """Filter by ``status``, ``job_id`` and ``freelancer_id``."""
    filters = dict(filters or {})
    stmt = select(Application)
    for name in ("status", "job_id", "freelancer_id"):
        value = filters.get(name)
        if value is not None:
            stmt = stmt.where(getattr(Application, name) == value)
    stmt = apply_sort(stmt, Application, sort_by, sort_order, SORTABLE_FIELDS)

    with Session(engine, expire_on_commit=False) as session:
        return paginate(session, stmt, page, limit)


# ---------------------------------------------------------------------------
# Applicant operations
# ---------------------------------------------------------------------------
def update_application(
    engine: Engine, application_id: int, actor: Identity, data: dict,
) -> Application:
    data = _validate_fields(data)
    with Session(engine, expire_on_commit=False) as session:
        application = load_application(session, application_id)
        _ensure_applicant(application, actor)
        application_transition(application.status, "update")
        for key, value in data.items():
            setattr(application, key, value)
        _commit_versioned(session, f"Application {application_id}")
    return application


def withdraw_application(engine: Engine, application_id: int, actor: Identity) -> Application:
    with Session(engine, expire_on_commit=False) as session:
        application = load_application(session, application_id)
        _ensure_applicant(application, actor)
        application.status = str(application_transition(application.status, "withdraw"))
        _commit_versioned(session, f"Application {application_id}")

    logger.info("Application %d withdrawn", application_id)
    job_service.adjust_applications_count(engine, application.job_id, -1)
    return application


def delete_application(engine: Engine, application_id: int, actor: Identity) -> None:
    with Session(engine, expire_on_commit=False) as session:
        application = load_application(session, application_id)
        _ensure_applicant(application, actor)
        application_transition(application.status, "delete")
        job_id = application.job_id
        job = job_service.load_job(session, job_id)
        if job.accepted_application_id == application.id:
            job.accepted_application_id = None
        session.delete(application)
        _commit_versioned(session, f"Application {application_id}")

    logger.info("Application %d deleted", application_id)
    job_service.adjust_applications_count(engine, job_id, -1)


# ---------------------------------------------------------------------------
# Client operations
# ---------------------------------------------------------------------------
def accept_application(engine: Engine, application_id: int, actor: Identity) -> Application:
    """Accept one pending application and reject the job's other pending ones.

    Raises
    ------
    ForbiddenError      the caller does not own the job
    InvalidStateError   the job is not open, already has an accepted
                        application, or the application is not pending
    ConflictError       a concurrent accept on the same job won
    """
    now = datetime.now(UTC)
    with Session(engine, expire_on_commit=False) as session:
        application = load_application(session, application_id)
        job = job_service.load_job(session, application.job_id)
        _ensure_job_owner(job, actor)

        if job.status != JobStatus.OPEN:
            raise InvalidStateError(
                f"Cannot accept applications on a job in status '{job.status}'",
                current=job.status,
                operation="accept",
            )
        if job.accepted_application_id is not None:
            raise InvalidStateError(
                f"Job {job.id} already has an accepted application",
                current=job.status,
                operation="accept",
            )

        application_transition(application.status, "accept")

        # No writes before this query (autoflush).
        others = session.scalars(
            select(Application).where(
                Application.job_id == job.id,
                Application.id != application.id,
                Application.status == ApplicationStatus.PENDING.value,
            )
        ).all()

        application.status = ApplicationStatus.ACCEPTED.value
        application.responded_at = now
        for other in others:
            other.status = ApplicationStatus.REJECTED.value
            other.responded_at = now

        job.accepted_application_id = application.id
        _commit_versioned(session, f"Job {job.id}")

    logger.info(
        "Application %d accepted on job %d (%d others rejected)",
        application_id, application.job_id, len(others),
    )
    return application


def reject_application(engine: Engine, application_id: int, actor: Identity) -> Application:
    with Session(engine, expire_on_commit=False) as session:
        application = load_application(session, application_id)
        job = job_service.load_job(session, application.job_id)
        _ensure_job_owner(job, actor)
        application.status = str(application_transition(application.status, "reject"))
        application.responded_at = datetime.now(UTC)
        _commit_versioned(session, f"Application {application_id}")

    logger.info("Application %d rejected", application_id)
    return application

