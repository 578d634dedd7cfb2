"""
gigquest.engine.lifecycle — Job & Application state machines
=============================================================

Transition tables for the two lifecycle-managed entities.  Each operation
maps to the set of states it may start from and the state it leaves the
entity in (``None`` when the operation edits fields or deletes the row
without changing status).

Ownership checks live in the services; this module only answers "is this
operation legal from this state, and where does it go?".

Job::

    draft ──publish──▶ open ──assign──▶ in_progress ──complete──▶ completed
      │                 │                    │
      └─────────────────┴──────cancel────────┴──────────▶ cancelled

Application::

    pending ──accept──▶ accepted
       ├────reject────▶ rejected
       └───withdraw───▶ withdrawn
"""

from __future__ import annotations

from dataclasses import dataclass

from gigquest.database.models import ApplicationStatus, JobStatus
from gigquest.exceptions import InvalidStateError


@dataclass(frozen=True, slots=True)
class Transition:
    allowed_from: frozenset[str]
    target: str | None = None


def _states(*states: str) -> frozenset[str]:
    return frozenset(s.value if hasattr(s, "value") else s for s in states)


# ---------------------------------------------------------------------------
# Job
# ---------------------------------------------------------------------------
JOB_INITIAL_STATE = JobStatus.DRAFT

JOB_TRANSITIONS: dict[str, Transition] = {
    "publish": Transition(_states(JobStatus.DRAFT), JobStatus.OPEN),
    "assign": Transition(_states(JobStatus.OPEN), JobStatus.IN_PROGRESS),
    "complete": Transition(_states(JobStatus.IN_PROGRESS), JobStatus.COMPLETED),
    "cancel": Transition(
        _states(JobStatus.DRAFT, JobStatus.OPEN, JobStatus.IN_PROGRESS, JobStatus.CANCELLED),
        JobStatus.CANCELLED,
    ),
    "update": Transition(_states(JobStatus.DRAFT, JobStatus.OPEN, JobStatus.IN_PROGRESS)),
    "delete": Transition(_states(JobStatus.DRAFT)),
}


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APPLICATION_INITIAL_STATE = ApplicationStatus.PENDING

APPLICATION_TRANSITIONS: dict[str, Transition] = {
    "update": Transition(_states(ApplicationStatus.PENDING)),
    "accept": Transition(_states(ApplicationStatus.PENDING), ApplicationStatus.ACCEPTED),
    "reject": Transition(_states(ApplicationStatus.PENDING), ApplicationStatus.REJECTED),
    "withdraw": Transition(_states(ApplicationStatus.PENDING), ApplicationStatus.WITHDRAWN),
    "delete": Transition(_states(*ApplicationStatus)),
}


def _check(table: dict[str, Transition], entity: str, current: str, operation: str) -> str | None:
    transition = table.get(operation)
    if transition is None:
        raise ValueError(f"Unknown {entity} operation: {operation!r}")
    if current not in transition.allowed_from:
        raise InvalidStateError(
            f"Cannot {operation} a {entity} in status '{current}'",
            current=current,
            operation=operation,
        )
    return transition.target


def job_transition(current: str, operation: str) -> str | None:
    """Validate *operation* on a job in *current* status.

    Returns the resulting status (``None`` for non-transitions) or raises
    :class:`InvalidStateError`.
    """
    return _check(JOB_TRANSITIONS, "job", current, operation)


def application_transition(current: str, operation: str) -> str | None:
    """Validate *operation* on an application in *current* status."""
    return _check(APPLICATION_TRANSITIONS, "application", current, operation)
