"""
tests/test_api_routes.py — HTTP Layer Tests
============================================
Exercises the FastAPI app end to end against the in-memory database:
auth guards, the error envelope, and a job posted → applied → accepted →
completed flow with the points it awards.
"""

from __future__ import annotations

from unittest.mock import patch

from conftest import auth_headers, make_job, make_user
from gigquest.api.auth import issue_tokens
from gigquest.database.models import AccountStatus, JobStatus, UserRole
from gigquest.engine.identity import Identity
from gigquest.exceptions import ConflictError
from gigquest.services import gamification_service


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


class TestAuthGuards:
    def test_missing_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_refresh_token_not_accepted_as_access(self, client, db_engine):
        user = make_user(db_engine)
        refresh = issue_tokens(Identity(user.id, user.role, user.email))["refresh_token"]
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {refresh}"})
        assert resp.status_code == 401

    def test_me(self, client, db_engine):
        user = make_user(db_engine, first_name="Ada")
        resp = client.get("/api/auth/me", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json()["first_name"] == "Ada"
        assert resp.json()["email"] == user.email

    def test_refresh_counts_as_login(self, client, db_engine):
        user = make_user(db_engine)
        refresh = issue_tokens(Identity(user.id, user.role, user.email))["refresh_token"]

        resp = client.post("/api/auth/refresh", json={"refresh_token": refresh})
        assert resp.status_code == 200
        tokens = resp.json()
        assert {"access_token", "refresh_token"} <= tokens.keys()

        stats = client.get(
            "/api/gamification/stats",
            headers={"Authorization": f"Bearer {tokens['access_token']}"},
        ).json()
        assert stats["total_points"] == 5
        assert stats["recent_activities"][0]["type"] == "login"

    def test_refresh_survives_gamification_failure(self, client, db_engine):
        user = make_user(db_engine)
        refresh = issue_tokens(Identity(user.id, user.role, user.email))["refresh_token"]
        with patch.object(
            gamification_service, "record_activity", side_effect=ConflictError("busy"),
        ):
            resp = client.post("/api/auth/refresh", json={"refresh_token": refresh})
        assert resp.status_code == 200
        assert resp.json()["access_token"]

    def test_refresh_rejected_for_deleted_account(self, client, db_engine):
        user = make_user(db_engine, account_status=AccountStatus.DELETED.value)
        refresh = issue_tokens(Identity(user.id, user.role, user.email))["refresh_token"]
        resp = client.post("/api/auth/refresh", json={"refresh_token": refresh})
        assert resp.status_code == 401
        assert resp.json()["error"]["kind"] == "unauthorized"


class TestUsers:
    def test_admin_provisions_user(self, client, db_engine):
        admin = make_user(db_engine, role=UserRole.ADMIN)
        resp = client.post(
            "/api/users",
            json={"email": "new@example.com", "first_name": "New", "last_name": "Person",
                  "role": "freelancer", "skills": ["python"]},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["user"]["email"] == "new@example.com"
        assert body["user"]["freelancer_profile"]["skills"] == ["python"]
        assert body["access_token"]

    def test_non_admin_cannot_provision(self, client, db_engine):
        user = make_user(db_engine)
        resp = client.post(
            "/api/users",
            json={"email": "x@example.com", "first_name": "X", "last_name": "Y"},
            headers=auth_headers(user),
        )
        assert resp.status_code == 403

    def test_duplicate_email_envelope(self, client, db_engine):
        admin = make_user(db_engine, role=UserRole.ADMIN)
        resp = client.post(
            "/api/users",
            json={"email": admin.email, "first_name": "X", "last_name": "Y"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["kind"] == "conflict"

    def test_public_profile_hides_email(self, client, db_engine):
        viewer = make_user(db_engine)
        other = make_user(db_engine)
        body = client.get(f"/api/users/{other.id}", headers=auth_headers(viewer)).json()
        assert "email" not in body

    def test_profile_update_awards_points(self, client, db_engine):
        user = make_user(db_engine)
        resp = client.patch(
            f"/api/users/{user.id}/profile", json={"bio": "Hi"}, headers=auth_headers(user),
        )
        assert resp.status_code == 200
        stats = client.get("/api/gamification/stats", headers=auth_headers(user)).json()
        assert stats["total_points"] == 5


class TestMarketplaceFlow:
    def test_post_apply_accept_assign_complete(self, client, db_engine):
        owner = make_user(db_engine, role=UserRole.CLIENT)
        freelancer = make_user(db_engine, role=UserRole.FREELANCER)

        resp = client.post(
            "/api/jobs",
            json={"title": "ETL job", "description": "Move data", "category": "data",
                  "type": "fixed_price", "budget": 300},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 201
        job_id = resp.json()["id"]
        assert resp.json()["status"] == "draft"

        assert client.post(f"/api/jobs/{job_id}/publish", headers=auth_headers(owner)).json()[
            "status"] == "open"

        resp = client.post(
            f"/api/jobs/{job_id}/applications",
            json={"cover_letter": "Done this many times"},
            headers=auth_headers(freelancer),
        )
        assert resp.status_code == 201
        application_id = resp.json()["id"]

        resp = client.post(
            f"/api/applications/{application_id}/accept", headers=auth_headers(owner),
        )
        assert resp.json()["status"] == "accepted"

        job = client.get(f"/api/jobs/{job_id}").json()
        assert job["status"] == "open"
        assert job["accepted_application_id"] == application_id
        assert job["applications_count"] == 1

        client.post(
            f"/api/jobs/{job_id}/assign",
            json={"freelancer_id": freelancer.id}, headers=auth_headers(owner),
        )
        resp = client.post(f"/api/jobs/{job_id}/complete", headers=auth_headers(owner))
        assert resp.json()["status"] == "completed"

        owner_stats = client.get("/api/gamification/stats", headers=auth_headers(owner)).json()
        # job_posted 10 + job_completed 50
        assert owner_stats["total_points"] == 60
        freelancer_stats = client.get(
            "/api/gamification/stats", headers=auth_headers(freelancer),
        ).json()
        # application_sent 15 + application_accepted 25 + job_completed 50
        assert freelancer_stats["total_points"] == 90

    def test_invalid_state_envelope(self, client, db_engine):
        owner = make_user(db_engine, role=UserRole.CLIENT)
        job = make_job(db_engine, owner, JobStatus.COMPLETED)
        resp = client.post(f"/api/jobs/{job.id}/cancel", headers=auth_headers(owner))
        assert resp.status_code == 409
        assert resp.json()["error"]["kind"] == "invalid_state"

    def test_missing_job(self, client):
        resp = client.get("/api/jobs/999")
        assert resp.status_code == 404
        assert resp.json()["error"]["kind"] == "not_found"

    def test_applicant_sees_only_own_applications(self, client, db_engine):
        owner = make_user(db_engine, role=UserRole.CLIENT)
        job = make_job(db_engine, owner, JobStatus.OPEN)
        mine = make_user(db_engine, role=UserRole.FREELANCER)
        theirs = make_user(db_engine, role=UserRole.FREELANCER)
        for f in (mine, theirs):
            client.post(
                f"/api/jobs/{job.id}/applications",
                json={"cover_letter": "hello"}, headers=auth_headers(f),
            )

        own = client.get(f"/api/applications?job_id={job.id}", headers=auth_headers(mine)).json()
        assert own["total"] == 1
        everyone = client.get(
            f"/api/applications?job_id={job.id}", headers=auth_headers(owner),
        ).json()
        assert everyone["total"] == 2


class TestGamificationRoutes:
    def test_leaderboard(self, client, db_engine):
        top = make_user(db_engine, total_points=250)
        make_user(db_engine, total_points=40)
        board = client.get("/api/gamification/leaderboard?limit=5").json()["leaderboard"]
        assert board[0]["user"]["id"] == top.id
        assert board[0]["rank"] == 1
        assert board[0]["level"] == 3
        assert board[0]["badge"]

    def test_points_cannot_be_self_granted(self, client, db_engine):
        user = make_user(db_engine)
        resp = client.post(
            "/api/gamification/activities", json={"type": "job_completed"},
            headers=auth_headers(user),
        )
        assert resp.status_code in (404, 405)
        stats = client.get("/api/gamification/stats", headers=auth_headers(user)).json()
        assert stats["total_points"] == 0
        assert stats["recent_activities"] == []

    def test_admin_creates_achievement(self, client, db_engine):
        admin = make_user(db_engine, role=UserRole.ADMIN)
        payload = {"name": "Closer", "description": "Complete five jobs", "icon": "handshake",
                   "category": "jobs", "criteria_type": "jobs_completed",
                   "criteria_target": 5, "points": 40}
        resp = client.post("/api/gamification/achievements", json=payload, headers=auth_headers(admin))
        assert resp.status_code == 201
        assert resp.json()["criteria"] == {"type": "jobs_completed", "target": 5}

        names = [a["name"] for a in client.get("/api/gamification/achievements").json()["achievements"]]
        assert names == ["Closer"]

    def test_non_admin_cannot_create_achievement(self, client, db_engine):
        user = make_user(db_engine)
        resp = client.post(
            "/api/gamification/achievements",
            json={"name": "x", "description": "x", "icon": "x", "category": "jobs",
                  "criteria_type": "jobs_completed", "criteria_target": 1},
            headers=auth_headers(user),
        )
        assert resp.status_code == 403
