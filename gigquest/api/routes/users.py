"""
gigquest.api.routes.users — User directory & profiles
======================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from gigquest.api.auth import issue_tokens
from gigquest.api.deps import get_config, get_current_identity, get_engine, page_params, require_roles
from gigquest.api.serializers import user_dict
from gigquest.config import GigQuestConfig
from gigquest.database.engine import run_db
from gigquest.database.models import AccountStatus, ActivityType, Availability, UserRole
from gigquest.engine.identity import Identity
from gigquest.services import gamification_service, user_service

router = APIRouter(prefix="/users", tags=["users"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class UserCreate(BaseModel):
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    role: UserRole = UserRole.CLIENT
    title: str | None = None
    hourly_rate: float | None = Field(None, ge=0)
    skills: list[str] | None = None


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    avatar: str | None = None
    bio: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=100)


class FreelancerProfileUpdate(BaseModel):
    title: str | None = Field(None, max_length=200)
    hourly_rate: float | None = Field(None, ge=0)
    skills: list[str] | None = None
    availability: Availability | None = None


def _payload(body: BaseModel) -> dict:
    return {
        key: (value.value if hasattr(value, "value") else value)
        for key, value in body.model_dump(exclude_none=True).items()
    }


# ---------------------------------------------------------------------------
# Admin provisioning
# ---------------------------------------------------------------------------
@router.post("", status_code=201)
async def create_user(
    body: UserCreate,
    admin: Identity = Depends(require_roles(UserRole.ADMIN)),
    cfg: GigQuestConfig = Depends(get_config),
    engine=Depends(get_engine),
):
    """Provision a user and hand back their first token pair."""
    data = _payload(body)
    user = await run_db(user_service.create_user, engine, **data)
    tokens = issue_tokens(Identity(user.id, user.role, user.email), cfg)
    return {"user": user_dict(user, private=True), **tokens}


@router.get("")
async def list_users(
    role: UserRole | None = None,
    account_status: AccountStatus | None = None,
    search: str | None = None,
    paging: tuple[int, int] = Depends(page_params),
    admin: Identity = Depends(require_roles(UserRole.ADMIN)),
    engine=Depends(get_engine),
):
    page, limit = paging
    result = await run_db(
        user_service.list_users, engine,
        role=role.value if role else None,
        account_status=account_status.value if account_status else None,
        search=search, page=page, limit=limit,
    )
    return result.to_dict(lambda u: user_dict(u, private=True))


# ---------------------------------------------------------------------------
# Freelancer search
# ---------------------------------------------------------------------------
@router.get("/freelancers")
async def search_freelancers(
    skills: list[str] | None = Query(None),
    min_rating: float = Query(0.0, ge=0, le=5),
    availability: Availability | None = None,
    limit: int = Query(20, ge=1, le=100),
    engine=Depends(get_engine),
):
    rows = await run_db(
        user_service.search_freelancers, engine,
        skills=skills, min_rating=min_rating,
        availability=availability.value if availability else None, limit=limit,
    )
    return {"freelancers": [user_dict(u) for u in rows]}


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------
@router.get("/{user_id}")
async def get_user(
    user_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    user = await run_db(user_service.get_user, engine, user_id)
    return user_dict(user, private=identity.owns(user_id) or identity.is_admin)


@router.patch("/{user_id}/profile")
async def update_profile(
    user_id: int,
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    data = _payload(body)
    if not data:
        raise HTTPException(400, "No fields to update")
    user = await run_db(user_service.update_profile, engine, user_id, identity, data)
    await run_db(gamification_service.award, engine, user_id, ActivityType.PROFILE_UPDATED)
    return user_dict(user, private=True)


@router.patch("/{user_id}/freelancer-profile")
async def update_freelancer_profile(
    user_id: int,
    body: FreelancerProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    data = _payload(body)
    if not data:
        raise HTTPException(400, "No fields to update")
    user = await run_db(user_service.update_freelancer_profile, engine, user_id, identity, data)
    await run_db(gamification_service.award, engine, user_id, ActivityType.PROFILE_UPDATED)
    return user_dict(user, private=True)


@router.delete("/{user_id}", status_code=204)
async def deactivate_user(
    user_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    await run_db(user_service.deactivate_user, engine, user_id, identity)
    return None
