"""
tests/test_auth.py — Token Issuance & Verification Tests
=========================================================
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt
import pytest

from gigquest.api import deps
from gigquest.api.auth import issue_tokens, verify_token
from gigquest.config import GigQuestConfig
from gigquest.engine.identity import Identity
from gigquest.exceptions import UnauthorizedError

ALICE = Identity(user_id=7, role="freelancer", email="alice@example.com")


class TestTokens:
    def test_round_trip(self):
        tokens = issue_tokens(ALICE)
        assert tokens["token_type"] == "bearer"
        assert verify_token(tokens["access_token"]) == ALICE
        assert verify_token(tokens["refresh_token"], "refresh") == ALICE

    def test_kinds_not_interchangeable(self):
        tokens = issue_tokens(ALICE)
        with pytest.raises(UnauthorizedError):
            verify_token(tokens["refresh_token"], "access")
        with pytest.raises(UnauthorizedError):
            verify_token(tokens["access_token"], "refresh")

    def test_expired(self):
        cfg = GigQuestConfig(access_token_minutes=-1)
        token = issue_tokens(ALICE, cfg)["access_token"]
        with pytest.raises(UnauthorizedError):
            verify_token(token)

    def test_wrong_signature(self):
        forged = jwt.encode(
            {"sub": "7", "role": "admin", "type": "access",
             "exp": datetime.now(UTC) + timedelta(minutes=5)},
            "another-secret-that-is-long-enough-to-sign", algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError):
            verify_token(forged)

    def test_garbage(self):
        with pytest.raises(UnauthorizedError):
            verify_token("not-a-jwt")

    def test_missing_subject(self):
        token = jwt.encode(
            {"type": "access", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            deps.JWT_SECRET, algorithm=deps.JWT_ALGORITHM,
        )
        with pytest.raises(UnauthorizedError):
            verify_token(token)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            verify_token("x", "session")


class TestSecretValidation:
    @pytest.mark.parametrize("secret", ["", "change-me", "gigquest-dev-secret-change-me", "short"])
    def test_rejects_weak(self, secret):
        with patch.dict(os.environ, {"JWT_SECRET": secret}):
            with pytest.raises(RuntimeError):
                deps._load_jwt_secret()

    def test_accepts_strong(self):
        strong = "s" * 48
        with patch.dict(os.environ, {"JWT_SECRET": strong}):
            assert deps._load_jwt_secret() == strong
