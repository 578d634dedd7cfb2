"""
gigquest.api.routes.jobs — Job postings and their lifecycle
============================================================

Each mutating endpoint runs the job operation first and, once it has
committed, awards the matching activity (``job_posted``,
``job_completed``).
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from gigquest.api.deps import get_current_identity, get_engine, page_params, require_roles
from gigquest.api.serializers import job_dict
from gigquest.database.engine import run_db
from gigquest.database.models import (
    ActivityType,
    ExperienceLevel,
    JobStatus,
    JobType,
    UserRole,
)
from gigquest.engine.identity import Identity
from gigquest.services import gamification_service, job_service

router = APIRouter(prefix="/jobs", tags=["jobs"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=5000)
    category: str
    subcategory: str | None = None
    type: JobType
    budget: float | None = Field(None, ge=0)
    hourly_rate_min: float | None = Field(None, ge=0)
    hourly_rate_max: float | None = Field(None, ge=0)
    skills_required: list[str] = []
    experience_level: ExperienceLevel = ExperienceLevel.INTERMEDIATE
    estimated_duration: str | None = None
    deadline: datetime | None = None
    is_urgent: bool = False


class JobUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1, max_length=5000)
    category: str | None = None
    subcategory: str | None = None
    type: JobType | None = None
    budget: float | None = Field(None, ge=0)
    hourly_rate_min: float | None = Field(None, ge=0)
    hourly_rate_max: float | None = Field(None, ge=0)
    skills_required: list[str] | None = None
    experience_level: ExperienceLevel | None = None
    estimated_duration: str | None = None
    deadline: datetime | None = None
    is_urgent: bool | None = None


class AssignRequest(BaseModel):
    freelancer_id: int


def _payload(body: BaseModel) -> dict:
    return {
        key: (value.value if hasattr(value, "value") else value)
        for key, value in body.model_dump(exclude_none=True).items()
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("")
async def list_jobs(
    status: JobStatus | None = None,
    category: str | None = None,
    type: JobType | None = None,
    experience_level: ExperienceLevel | None = None,
    client_id: int | None = None,
    is_urgent: bool | None = None,
    budget_min: float | None = None,
    budget_max: float | None = None,
    skills: list[str] | None = Query(None),
    search: str | None = None,
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    paging: tuple[int, int] = Depends(page_params),
    engine=Depends(get_engine),
):
    page, limit = paging
    filters = {
        "status": status, "category": category, "type": type,
        "experience_level": experience_level, "client_id": client_id,
        "is_urgent": is_urgent, "budget_min": budget_min, "budget_max": budget_max,
        "skills": skills,
    }
    result = await run_db(
        job_service.list_jobs, engine,
        filters={k: (v.value if hasattr(v, "value") else v) for k, v in filters.items()},
        search=search, sort_by=sort_by, sort_order=sort_order, page=page, limit=limit,
    )
    return result.to_dict(job_dict)


@router.get("/recommended")
async def recommended(
    limit: int = Query(10, ge=1, le=50),
    identity: Identity = Depends(require_roles(UserRole.FREELANCER)),
    engine=Depends(get_engine),
):
    rows = await run_db(job_service.recommended_jobs, engine, identity.user_id, limit)
    return {"jobs": [job_dict(j) for j in rows]}


@router.get("/{job_id}")
async def get_job(job_id: int, engine=Depends(get_engine)):
    job = await run_db(job_service.get_job, engine, job_id, increment_view=True)
    return job_dict(job)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
@router.post("", status_code=201)
async def create_job(
    body: JobCreate,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    job = await run_db(job_service.create_job, engine, identity, _payload(body))
    await run_db(
        gamification_service.award, engine, identity.user_id, ActivityType.JOB_POSTED,
        {"job_id": job.id},
    )
    return job_dict(job)


@router.patch("/{job_id}")
async def update_job(
    job_id: int,
    body: JobUpdate,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    data = _payload(body)
    if not data:
        raise HTTPException(400, "No fields to update")
    job = await run_db(job_service.update_job, engine, job_id, identity, data)
    return job_dict(job)


@router.post("/{job_id}/publish")
async def publish_job(
    job_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    job = await run_db(job_service.publish_job, engine, job_id, identity)
    return job_dict(job)


@router.post("/{job_id}/assign")
async def assign_freelancer(
    job_id: int,
    body: AssignRequest,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    job = await run_db(
        job_service.assign_freelancer, engine, job_id, identity, body.freelancer_id,
    )
    return job_dict(job)


@router.post("/{job_id}/complete")
async def complete_job(
    job_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    job = await run_db(job_service.complete_job, engine, job_id, identity)
    for user_id in (job.client_id, job.assigned_freelancer_id):
        await run_db(
            gamification_service.award, engine, user_id, ActivityType.JOB_COMPLETED,
            {"job_id": job.id},
        )
    return job_dict(job)


@router.post("/{job_id}/cancel")
async def cancel_job(
    job_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    job = await run_db(job_service.cancel_job, engine, job_id, identity)
    return job_dict(job)


@router.delete("/{job_id}", status_code=204)
async def delete_job(
    job_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    await run_db(job_service.delete_job, engine, job_id, identity)
    return None
