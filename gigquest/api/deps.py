"""
gigquest.api.deps — FastAPI dependency injection
=================================================
"""

from __future__ import annotations

import os
from collections.abc import Callable
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Query, status
from sqlalchemy import Engine

from gigquest.config import GigQuestConfig, load_config
from gigquest.database.engine import create_db_engine
from gigquest.engine.identity import Identity

_WEAK_SECRETS = frozenset({
    "gigquest-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> GigQuestConfig:
    return load_config()


def get_current_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """Resolve the bearer access token to an :class:`Identity`.  401 if invalid."""
    from gigquest.api.auth import verify_token
    from gigquest.exceptions import UnauthorizedError

    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        return verify_token(token, "access")
    except UnauthorizedError as exc:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, exc.message) from exc


def require_roles(*roles: str) -> Callable[..., Identity]:
    """Dependency factory: the caller must hold one of *roles*.  403 otherwise."""
    allowed = {str(r) for r in roles}

    def _guard(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Insufficient role")
        return identity

    return _guard


def page_params(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    cfg: GigQuestConfig = Depends(get_config),
) -> tuple[int, int]:
    """``page``/``limit`` query parameters, capped at ``page_size_max``."""
    size = limit or cfg.page_size_default
    return page, min(size, cfg.page_size_max)
