"""
gigquest.api.serializers — ORM rows → JSON dicts
=================================================
"""

from __future__ import annotations

from datetime import datetime

from gigquest.constants import RANK_BADGES, level_for_points, points_for_next_level
from gigquest.database.models import Achievement, ActivityEvent, Application, Job, User
from gigquest.services.gamification_service import (
    LeaderboardEntry,
    UserGameStats,
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_dict(u: User, *, private: bool = False) -> dict:
    data = {
        "id": u.id,
        "first_name": u.first_name,
        "last_name": u.last_name,
        "name": u.full_name,
        "avatar": u.avatar,
        "role": u.role,
        "bio": u.bio,
        "location": u.location,
        "freelancer_profile": {
            "title": u.title,
            "hourly_rate": u.hourly_rate,
            "skills": list(u.skills or []),
            "availability": u.availability,
        } if u.role == "freelancer" else None,
        "stats": {
            "jobs_posted": u.jobs_posted or 0,
            "jobs_completed": u.jobs_completed or 0,
            "gigs_created": u.gigs_created or 0,
            "rating": u.rating or 0.0,
            "reviews_count": u.reviews_count or 0,
        },
        "gamification": {
            "level": level_for_points(u.total_points or 0),
            "total_points": u.total_points or 0,
            "current_streak": u.current_streak or 0,
            "longest_streak": u.longest_streak or 0,
        },
        "created_at": _iso(u.created_at),
    }
    if private:
        data["email"] = u.email
        data["account_status"] = u.account_status
        data["stats"]["total_earnings"] = u.total_earnings or 0.0
        data["stats"]["total_spent"] = u.total_spent or 0.0
        data["last_login_at"] = _iso(u.last_login_at)
    return data


def event_dict(e: ActivityEvent) -> dict:
    return {
        "id": e.id,
        "user_id": e.user_id,
        "type": e.type,
        "points": e.points,
        "metadata": e.metadata_ or {},
        "date": _iso(e.date),
    }


def achievement_dict(a: Achievement, unlocked_at: datetime | None = None) -> dict:
    data = {
        "id": a.id,
        "name": a.name,
        "description": a.description,
        "icon": a.icon,
        "category": a.category,
        "criteria": {"type": a.criteria_type, "target": a.criteria_target},
        "points": a.points,
        "badge_url": a.badge_url,
        "is_active": a.is_active,
        "order": a.order,
    }
    if unlocked_at is not None:
        data["unlocked_at"] = _iso(unlocked_at)
    return data


def job_dict(j: Job) -> dict:
    return {
        "id": j.id,
        "client_id": j.client_id,
        "title": j.title,
        "description": j.description,
        "category": j.category,
        "subcategory": j.subcategory,
        "type": j.type,
        "budget": j.budget,
        "hourly_rate": {"min": j.hourly_rate_min, "max": j.hourly_rate_max},
        "skills_required": list(j.skills_required or []),
        "experience_level": j.experience_level,
        "estimated_duration": j.estimated_duration,
        "is_urgent": bool(j.is_urgent),
        "status": j.status,
        "assigned_freelancer_id": j.assigned_freelancer_id,
        "accepted_application_id": j.accepted_application_id,
        "views": j.views or 0,
        "applications_count": j.applications_count or 0,
        "saved_count": j.saved_count or 0,
        "deadline": _iso(j.deadline),
        "start_date": _iso(j.start_date),
        "completion_date": _iso(j.completion_date),
        "created_at": _iso(j.created_at),
        "updated_at": _iso(j.updated_at),
    }


def application_dict(a: Application) -> dict:
    return {
        "id": a.id,
        "job_id": a.job_id,
        "freelancer_id": a.freelancer_id,
        "cover_letter": a.cover_letter,
        "proposed_rate": a.proposed_rate,
        "proposed_duration": a.proposed_duration,
        "portfolio": list(a.portfolio or []),
        "status": a.status,
        "applied_at": _iso(a.applied_at),
        "responded_at": _iso(a.responded_at),
    }


def stats_dict(s: UserGameStats) -> dict:
    return {
        "level": s.level,
        "total_points": s.total_points,
        "points_to_next_level": s.points_to_next_level,
        "current_streak": s.current_streak,
        "longest_streak": s.longest_streak,
        "achievements": [achievement_dict(a, at) for a, at in s.achievements],
        "recent_activities": [event_dict(e) for e in s.recent_activities],
    }


def leaderboard_entry_dict(entry: LeaderboardEntry) -> dict:
    u = entry.user
    return {
        "rank": entry.rank,
        "badge": RANK_BADGES[entry.rank - 1] if entry.rank <= len(RANK_BADGES) else None,
        "user": {"id": u.id, "name": u.full_name, "email": u.email, "avatar": u.avatar},
        "total_points": entry.total_points,
        "current_streak": entry.current_streak,
        "level": level_for_points(entry.total_points),
        "points_to_next_level": points_for_next_level(entry.total_points),
    }
