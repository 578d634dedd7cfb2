"""
tests/test_user_service.py — User Directory Tests
==================================================
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import identity_of, make_user, reload
from gigquest.database.models import AccountStatus, User, UserRole
from gigquest.exceptions import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from gigquest.services import user_service


@pytest.fixture
def engine(db_engine):
    return db_engine


class TestProvisioning:
    def test_create_user(self, engine):
        user = user_service.create_user(
            engine, email="  Ada@Example.com ", first_name="Ada", last_name="Lovelace",
            role="freelancer", skills=["python"],
        )
        assert user.id is not None
        assert user.email == "ada@example.com"
        assert user.account_status == AccountStatus.ACTIVE
        assert user.level == 1
        assert user.skills == ["python"]

    def test_duplicate_email(self, engine):
        user_service.create_user(engine, email="a@b.io", first_name="A", last_name="B")
        with pytest.raises(ConflictError):
            user_service.create_user(engine, email="A@B.io", first_name="C", last_name="D")

    def test_unknown_role(self, engine):
        with pytest.raises(InvalidInputError):
            user_service.create_user(engine, email="x@y.io", first_name="X", last_name="Y", role="owner")

    def test_get_missing(self, engine):
        with pytest.raises(NotFoundError):
            user_service.get_user(engine, 999)

    def test_list_users(self, engine):
        make_user(engine, role=UserRole.FREELANCER, first_name="Grace")
        make_user(engine, role=UserRole.CLIENT, first_name="Linus")
        make_user(engine, role=UserRole.CLIENT, first_name="Guido")

        clients = user_service.list_users(engine, role="client")
        assert clients.total == 2
        found = user_service.list_users(engine, search="grac")
        assert [u.first_name for u in found.items] == ["Grace"]


class TestProfiles:
    def test_owner_updates_profile(self, engine):
        user = make_user(engine)
        updated = user_service.update_profile(engine, user.id, identity_of(user), {"bio": "Hello"})
        assert updated.bio == "Hello"

    def test_admin_updates_anyone(self, engine):
        user = make_user(engine)
        admin = make_user(engine, role=UserRole.ADMIN)
        updated = user_service.update_profile(engine, user.id, identity_of(admin), {"location": "Oslo"})
        assert updated.location == "Oslo"

    def test_stranger_forbidden(self, engine):
        user = make_user(engine)
        stranger = make_user(engine)
        with pytest.raises(ForbiddenError):
            user_service.update_profile(engine, user.id, identity_of(stranger), {"bio": "x"})

    def test_stats_not_editable(self, engine):
        user = make_user(engine)
        with pytest.raises(InvalidInputError):
            user_service.update_profile(engine, user.id, identity_of(user), {"total_points": 10_000})

    def test_freelancer_profile(self, engine):
        user = make_user(engine, role=UserRole.FREELANCER)
        updated = user_service.update_freelancer_profile(
            engine, user.id, identity_of(user), {"skills": ["go", "rust"], "availability": "busy"},
        )
        assert updated.skills == ["go", "rust"]
        assert updated.availability == "busy"

    def test_freelancer_profile_requires_freelancer(self, engine):
        user = make_user(engine, role=UserRole.CLIENT)
        with pytest.raises(ForbiddenError):
            user_service.update_freelancer_profile(engine, user.id, identity_of(user), {"title": "Dev"})

    def test_deactivate(self, engine):
        user = make_user(engine)
        user_service.deactivate_user(engine, user.id, identity_of(user))
        assert reload(engine, User, user.id).account_status == AccountStatus.DELETED


class TestSearch:
    def test_skills_and_rating(self, engine):
        a = make_user(engine, role=UserRole.FREELANCER, skills=["Python"], rating=4.8)
        b = make_user(engine, role=UserRole.FREELANCER, skills=["python", "sql"], rating=3.0)
        make_user(engine, role=UserRole.FREELANCER, skills=["design"], rating=5.0)
        make_user(engine, role=UserRole.CLIENT, skills=["python"])

        found = user_service.search_freelancers(engine, skills=["python"])
        assert [u.id for u in found] == [a.id, b.id]

        rated = user_service.search_freelancers(engine, skills=["python"], min_rating=4.0)
        assert [u.id for u in rated] == [a.id]

    def test_excludes_deleted(self, engine):
        make_user(engine, role=UserRole.FREELANCER, skills=["python"], account_status="deleted")
        assert user_service.search_freelancers(engine, skills=["python"]) == []


class TestStats:
    def test_increment(self, engine):
        user = make_user(engine)
        assert user_service.increment_stat(engine, user.id, "jobs_posted")
        assert user_service.increment_stat(engine, user.id, "jobs_posted", 2)
        assert reload(engine, User, user.id).jobs_posted == 3

    def test_increment_leaves_version_alone(self, engine):
        user = make_user(engine)
        user_service.increment_stat(engine, user.id, "jobs_completed")
        assert reload(engine, User, user.id).version == user.version

    def test_unknown_field(self, engine):
        with pytest.raises(ValueError):
            user_service.increment_stat(engine, 1, "total_points")

    def test_missing_user(self, engine):
        assert user_service.increment_stat(engine, 999, "jobs_posted") is False
        assert user_service.increment_stat(engine, None, "jobs_posted") is False

    def test_storage_failure_is_logged_not_raised(self, engine, caplog):
        user = make_user(engine)
        with patch("gigquest.services.user_service.get_session",
                   side_effect=OperationalError("UPDATE", {}, Exception("db down"))):
            assert user_service.increment_stat(engine, user.id, "jobs_posted") is False
        assert "Stat update failed" in caplog.text

    def test_record_login(self, engine):
        user = make_user(engine)
        user_service.record_login(engine, user.id)
        assert reload(engine, User, user.id).last_login_at is not None
