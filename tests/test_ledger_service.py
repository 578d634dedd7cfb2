"""
tests/test_ledger_service.py — Activity Ledger Tests
=====================================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from conftest import make_user
from gigquest.database.models import ActivityType
from gigquest.services import ledger_service

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def test_record_uses_points_table(db_engine):
    user = make_user(db_engine)
    with Session(db_engine) as session:
        event = ledger_service.record(session, user.id, ActivityType.JOB_COMPLETED, {"job_id": 7})
        session.commit()
        assert event.points == 50
        assert event.type == "job_completed"
        assert event.metadata_ == {"job_id": 7}
        assert event.date is not None


def test_unknown_type_is_zero_points(db_engine):
    user = make_user(db_engine)
    with Session(db_engine) as session:
        event = ledger_service.record(session, user.id, "review_given")
        session.commit()
        assert event.points == 0
        assert event.metadata_ is None


def test_recent_newest_first_and_limited(db_engine):
    user = make_user(db_engine)
    other = make_user(db_engine)
    with Session(db_engine) as session:
        for i in range(5):
            ledger_service.record(session, user.id, ActivityType.LOGIN, date=T0 + timedelta(days=i))
        ledger_service.record(session, other.id, ActivityType.LOGIN, date=T0 + timedelta(days=9))
        session.commit()

    events = ledger_service.recent(db_engine, user.id, limit=3)
    assert len(events) == 3
    assert all(e.user_id == user.id for e in events)
    assert [e.date.day for e in events] == [5, 4, 3]


def test_recent_empty(db_engine):
    user = make_user(db_engine)
    assert ledger_service.recent(db_engine, user.id) == []
