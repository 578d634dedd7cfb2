"""
gigquest.api.auth — JWT issuance & verification
================================================

Access and refresh tokens are HS256 JWTs signed with ``JWT_SECRET``.  The
``type`` claim keeps the two apart: an access token is never accepted
where a refresh token is expected, and vice versa.

Credential checking is out of scope; users are provisioned by an admin
(``POST /api/users``), which hands back the first token pair.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import APIRouter, Depends
from jwt.exceptions import InvalidTokenError
from pydantic import BaseModel

from gigquest.api.deps import (
    JWT_ALGORITHM,
    JWT_SECRET,
    get_config,
    get_current_identity,
    get_engine,
)
from gigquest.api.serializers import user_dict
from gigquest.config import GigQuestConfig
from gigquest.database.engine import run_db
from gigquest.database.models import AccountStatus, ActivityType
from gigquest.engine.identity import Identity
from gigquest.exceptions import NotFoundError, UnauthorizedError
from gigquest.services import gamification_service, user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

TOKEN_KINDS = ("access", "refresh")


class RefreshRequest(BaseModel):
    refresh_token: str


def issue_tokens(identity: Identity, cfg: GigQuestConfig | None = None) -> dict[str, str]:
    """Sign a fresh access/refresh pair for *identity*."""
    cfg = cfg or GigQuestConfig()
    now = datetime.now(UTC)
    claims = {"sub": str(identity.user_id), "role": identity.role, "email": identity.email}

    access = jwt.encode(
        {**claims, "type": "access", "iat": now,
         "exp": now + timedelta(minutes=cfg.access_token_minutes)},
        JWT_SECRET, algorithm=JWT_ALGORITHM,
    )
    refresh = jwt.encode(
        {**claims, "type": "refresh", "iat": now,
         "exp": now + timedelta(days=cfg.refresh_token_days)},
        JWT_SECRET, algorithm=JWT_ALGORITHM,
    )
    return {"access_token": access, "refresh_token": refresh, "token_type": "bearer"}


def verify_token(token: str, expected_kind: str = "access") -> Identity:
    """Decode *token* and check its ``type`` claim.

    Raises
    ------
    UnauthorizedError
        If the token is malformed, expired, badly signed, or of the wrong kind.
    """
    if expected_kind not in TOKEN_KINDS:
        raise ValueError(f"Unknown token kind: {expected_kind!r}")
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError as exc:
        raise UnauthorizedError("Invalid or expired token") from exc

    if payload.get("type") != expected_kind:
        raise UnauthorizedError(f"Expected a {expected_kind} token")
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise UnauthorizedError("Token has no valid subject") from exc

    return Identity(user_id=user_id, role=payload.get("role", ""), email=payload.get("email"))


def _refresh(engine, token: str, cfg: GigQuestConfig) -> dict:
    identity = verify_token(token, "refresh")
    try:
        user = user_service.get_user(engine, identity.user_id)
    except NotFoundError as exc:
        raise UnauthorizedError("Token subject no longer exists") from exc
    if user.account_status != AccountStatus.ACTIVE:
        raise UnauthorizedError(f"Account is {user.account_status}")

    # Role and email may have changed since the refresh token was issued.
    fresh = Identity(user_id=user.id, role=user.role, email=user.email)
    user_service.record_login(engine, user.id)
    gamification_service.award(engine, user.id, ActivityType.LOGIN)
    return issue_tokens(fresh, cfg)


@router.post("/refresh")
async def refresh(
    body: RefreshRequest,
    cfg: GigQuestConfig = Depends(get_config),
    engine=Depends(get_engine),
):
    """Trade a refresh token for a new token pair.  Counts as a login."""
    return await run_db(_refresh, engine, body.refresh_token, cfg)


@router.get("/me")
async def me(
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    """Return the authenticated user's profile."""
    user = await run_db(user_service.get_user, engine, identity.user_id)
    return user_dict(user, private=True)
