"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of gigquest.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from gigquest.database.models import (  # noqa: E402
    Achievement,
    Base,
    Job,
    JobStatus,
    User,
    UserRole,
)
from gigquest.engine.identity import Identity  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all GigQuest tables.

    The achievement catalog starts empty so each test controls what can
    unlock.  Uses StaticPool so all threads share the same in-memory
    database (required by ``asyncio.to_thread`` in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
_counter = {"n": 0}


def make_user(engine: Engine, role: str = UserRole.CLIENT, **fields) -> User:
    """Insert a user directly and return it (detached, attributes loaded)."""
    _counter["n"] += 1
    n = _counter["n"]
    defaults = {
        "email": f"user{n}@example.com",
        "first_name": f"First{n}",
        "last_name": f"Last{n}",
    }
    defaults.update(fields)
    with Session(engine, expire_on_commit=False) as session:
        user = User(role=str(role), **defaults)
        session.add(user)
        session.commit()
    return user


def make_job(engine: Engine, client: User, status: str = JobStatus.DRAFT, **fields) -> Job:
    """Insert a job in *status* for *client*, bypassing the lifecycle."""
    defaults = {
        "title": "Build a landing page",
        "description": "Responsive single page site",
        "category": "web",
        "type": "fixed_price",
        "budget": 500.0,
        "skills_required": ["html", "css"],
    }
    defaults.update(fields)
    with Session(engine, expire_on_commit=False) as session:
        job = Job(client_id=client.id, status=str(status), **defaults)
        session.add(job)
        session.commit()
    return job


def make_achievement(engine: Engine, name: str, criteria_type: str, target: int,
                     points: int = 0, category: str = "community", order: int = 0) -> Achievement:
    with Session(engine, expire_on_commit=False) as session:
        achievement = Achievement(
            name=name,
            description=name,
            icon="star",
            category=category,
            criteria_type=str(criteria_type),
            criteria_target=target,
            points=points,
            order=order,
        )
        session.add(achievement)
        session.commit()
    return achievement


def identity_of(user: User) -> Identity:
    return Identity(user_id=user.id, role=user.role, email=user.email)


def reload(engine: Engine, model, pk):
    with Session(engine, expire_on_commit=False) as session:
        return session.get(model, pk)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------
@pytest.fixture
def client(db_engine):
    """FastAPI TestClient bound to the in-memory database.

    Not entered as a context manager, so the lifespan hook (which would
    build an engine from DATABASE_URL) does not run.
    """
    from fastapi.testclient import TestClient

    from gigquest.api.deps import get_engine
    from gigquest.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    from gigquest.api.auth import issue_tokens

    token = issue_tokens(identity_of(user))["access_token"]
    return {"Authorization": f"Bearer {token}"}
