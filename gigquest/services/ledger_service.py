"""
gigquest.services.ledger_service — Activity Ledger
===================================================

Append-only record of point-bearing user actions.  Events are inserted
and read, never updated or deleted.

``record`` works inside the caller's session so the gamification
orchestrator can commit the ledger row together with the user update.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from gigquest.database.models import ActivityEvent
from gigquest.engine.events import points_for

logger = logging.getLogger(__name__)


def record(
    session: Session,
    user_id: int,
    activity_type: str,
    metadata: dict | None = None,
    *,
    date: datetime | None = None,
) -> ActivityEvent:
    """Append an event for *user_id*.  Points come from the fixed table."""
    event = ActivityEvent(
        user_id=user_id,
        type=str(activity_type),
        points=points_for(activity_type),
        metadata_=dict(metadata) if metadata else None,
        date=date or datetime.now(UTC),
    )
    session.add(event)
    session.flush()
    logger.debug(
        "Ledger: user=%d type=%s points=%d", user_id, event.type, event.points,
    )
    return event


def recent(engine: Engine, user_id: int, limit: int = 10) -> list[ActivityEvent]:
    """Return up to *limit* events for *user_id*, newest first."""
    with Session(engine, expire_on_commit=False) as session:
        return recent_in_session(session, user_id, limit)


def recent_in_session(session: Session, user_id: int, limit: int = 10) -> list[ActivityEvent]:
    rows = session.scalars(
        select(ActivityEvent)
        .where(ActivityEvent.user_id == user_id)
        .order_by(ActivityEvent.date.desc(), ActivityEvent.id.desc())
        .limit(limit)
    ).all()
    return list(rows)
