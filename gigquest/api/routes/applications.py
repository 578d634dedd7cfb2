"""
gigquest.api.routes.applications — Freelancer applications
===========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from gigquest.api.deps import get_current_identity, get_engine, page_params
from gigquest.api.serializers import application_dict
from gigquest.database.engine import run_db
from gigquest.database.models import ActivityType, ApplicationStatus
from gigquest.engine.identity import Identity
from gigquest.services import application_service, gamification_service, job_service

router = APIRouter(tags=["applications"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class ApplicationCreate(BaseModel):
    cover_letter: str = Field(min_length=1, max_length=2000)
    proposed_rate: float | None = Field(None, ge=0)
    proposed_duration: str | None = None
    portfolio: list[str] = []


class ApplicationUpdate(BaseModel):
    cover_letter: str | None = Field(None, min_length=1, max_length=2000)
    proposed_rate: float | None = Field(None, ge=0)
    proposed_duration: str | None = None
    portfolio: list[str] | None = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.post("/jobs/{job_id}/applications", status_code=201)
async def apply_to_job(
    job_id: int,
    body: ApplicationCreate,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    application = await run_db(
        application_service.create_application, engine, job_id, identity,
        body.model_dump(exclude_none=True),
    )
    await run_db(
        gamification_service.award, engine, identity.user_id, ActivityType.APPLICATION_SENT,
        {"job_id": job_id, "application_id": application.id},
    )
    return application_dict(application)


@router.get("/applications")
async def list_applications(
    status: ApplicationStatus | None = None,
    job_id: int | None = None,
    freelancer_id: int | None = None,
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    paging: tuple[int, int] = Depends(page_params),
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    """Admins see everything.  A job's client sees that job's applications;
    everyone else only sees their own."""
    page, limit = paging
    if not identity.is_admin:
        owns_job = False
        if job_id is not None:
            job = await run_db(job_service.get_job, engine, job_id)
            owns_job = identity.owns(job.client_id)
        if not owns_job:
            freelancer_id = identity.user_id

    filters = {
        "status": status.value if status else None,
        "job_id": job_id,
        "freelancer_id": freelancer_id,
    }

    result = await run_db(
        application_service.list_applications, engine,
        filters=filters, sort_by=sort_by, sort_order=sort_order, page=page, limit=limit,
    )
    return result.to_dict(application_dict)


@router.get("/applications/{application_id}")
async def get_application(
    application_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    application = await run_db(
        application_service.get_application, engine, application_id, identity,
    )
    return application_dict(application)


@router.patch("/applications/{application_id}")
async def update_application(
    application_id: int,
    body: ApplicationUpdate,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    data = body.model_dump(exclude_none=True)
    if not data:
        raise HTTPException(400, "No fields to update")
    application = await run_db(
        application_service.update_application, engine, application_id, identity, data,
    )
    return application_dict(application)


@router.post("/applications/{application_id}/accept")
async def accept_application(
    application_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    application = await run_db(
        application_service.accept_application, engine, application_id, identity,
    )
    await run_db(
        gamification_service.award, engine, application.freelancer_id,
        ActivityType.APPLICATION_ACCEPTED,
        {"job_id": application.job_id, "application_id": application.id},
    )
    return application_dict(application)


@router.post("/applications/{application_id}/reject")
async def reject_application(
    application_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    application = await run_db(
        application_service.reject_application, engine, application_id, identity,
    )
    return application_dict(application)


@router.post("/applications/{application_id}/withdraw")
async def withdraw_application(
    application_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    application = await run_db(
        application_service.withdraw_application, engine, application_id, identity,
    )
    return application_dict(application)


@router.delete("/applications/{application_id}", status_code=204)
async def delete_application(
    application_id: int,
    identity: Identity = Depends(get_current_identity),
    engine=Depends(get_engine),
):
    await run_db(application_service.delete_application, engine, application_id, identity)
    return None
