"""
gigquest.api.routes.gamification — Stats, leaderboard & achievement catalog
============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from gigquest.api.deps import get_config, get_current_identity, get_engine, require_roles
from gigquest.api.serializers import (
    achievement_dict,
    leaderboard_entry_dict,
    stats_dict,
)
from gigquest.config import GigQuestConfig
from gigquest.database.engine import run_db
from gigquest.database.models import CriteriaType, UserRole
from gigquest.engine.identity import Identity
from gigquest.services import gamification_service

router = APIRouter(prefix="/gamification", tags=["gamification"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class AchievementCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str
    icon: str
    category: str
    criteria_type: CriteriaType
    criteria_target: int = Field(ge=1)
    points: int = Field(0, ge=0)
    badge_url: str | None = None
    is_active: bool = True
    order: int = 0


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.get("/stats")
async def my_stats(
    identity: Identity = Depends(get_current_identity),
    cfg: GigQuestConfig = Depends(get_config),
    engine=Depends(get_engine),
):
    stats = await run_db(
        gamification_service.get_stats, engine, identity.user_id, cfg.recent_activity_limit,
    )
    return stats_dict(stats)


@router.get("/stats/{user_id}")
async def user_stats(
    user_id: int,
    identity: Identity = Depends(get_current_identity),
    cfg: GigQuestConfig = Depends(get_config),
    engine=Depends(get_engine),
):
    stats = await run_db(
        gamification_service.get_stats, engine, user_id, cfg.recent_activity_limit,
    )
    return stats_dict(stats)


@router.get("/leaderboard")
async def leaderboard(
    limit: int | None = Query(None, ge=1, le=100),
    cfg: GigQuestConfig = Depends(get_config),
    engine=Depends(get_engine),
):
    entries = await run_db(
        gamification_service.get_leaderboard, engine, limit or cfg.leaderboard_default_limit,
    )
    return {"leaderboard": [leaderboard_entry_dict(e) for e in entries]}


@router.get("/achievements")
async def list_achievements(engine=Depends(get_engine)):
    rows = await run_db(gamification_service.list_achievements, engine)
    return {"achievements": [achievement_dict(a) for a in rows]}


@router.get("/achievements/me")
async def my_achievements(
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    rows = await run_db(gamification_service.get_user_achievements, engine, identity.user_id)
    return {"achievements": [achievement_dict(a, at) for a, at in rows]}


@router.get("/achievements/{achievement_id}")
async def get_achievement(achievement_id: int, engine=Depends(get_engine)):
    achievement = await run_db(gamification_service.get_achievement, engine, achievement_id)
    return achievement_dict(achievement)


@router.post("/achievements", status_code=201)
async def create_achievement(
    body: AchievementCreate,
    admin: Identity = Depends(require_roles(UserRole.ADMIN)),
    engine=Depends(get_engine),
):
    achievement = await run_db(
        gamification_service.create_achievement, engine, body.model_dump(mode="json"),
    )
    return achievement_dict(achievement)
