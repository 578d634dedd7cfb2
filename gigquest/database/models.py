"""
gigquest.database.models — SQLAlchemy 2.0 Data Models
======================================================

Tables:
- users              Marketplace members (clients, freelancers, admins)
                       with their stats counters and gamification state
- activity_events    Append-only ledger of point-bearing actions
- achievements       Admin-curated achievement catalog
- user_achievements  Unlocked achievements (composite PK → no duplicates)
- jobs               Client job postings and their lifecycle state
- applications       Freelancer applications, unique per (job, freelancer)

``users``, ``jobs`` and ``applications`` carry a ``version`` column wired to
SQLAlchemy's ``version_id_col`` so concurrent read-modify-write cycles on the
same row fail with ``StaleDataError`` instead of silently overwriting.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all GigQuest ORM models."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class UserRole(enum.StrEnum):
    CLIENT = "client"
    FREELANCER = "freelancer"
    ADMIN = "admin"


class AccountStatus(enum.StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class Availability(enum.StrEnum):
    AVAILABLE = "available"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


class ActivityType(enum.StrEnum):
    """Every action that flows through the gamification pipeline."""
    LOGIN = "login"
    JOB_POSTED = "job_posted"
    APPLICATION_SENT = "application_sent"
    APPLICATION_ACCEPTED = "application_accepted"
    JOB_COMPLETED = "job_completed"
    PROFILE_UPDATED = "profile_updated"


class AchievementCategory(enum.StrEnum):
    STREAK = "streak"
    JOBS = "jobs"
    APPLICATIONS = "applications"
    PROFILE = "profile"
    COMMUNITY = "community"


class CriteriaType(enum.StrEnum):
    """Condition an achievement is unlocked by."""
    STREAK_DAYS = "streak_days"
    JOBS_COMPLETED = "jobs_completed"
    TOTAL_POINTS = "total_points"


class JobStatus(enum.StrEnum):
    DRAFT = "draft"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class JobType(enum.StrEnum):
    FIXED_PRICE = "fixed_price"
    HOURLY = "hourly"


class ExperienceLevel(enum.StrEnum):
    ENTRY = "entry"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


class ApplicationStatus(enum.StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


# ---------------------------------------------------------------------------
# Users: one row per marketplace member
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.CLIENT.value
    )
    account_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AccountStatus.ACTIVE.value
    )

    # Profile
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar: Mapped[str | None] = mapped_column(String(500), default=None)
    bio: Mapped[str | None] = mapped_column(String(500), default=None)
    location: Mapped[str | None] = mapped_column(String(100), default=None)

    # Freelancer profile
    title: Mapped[str | None] = mapped_column(String(200), default=None)
    hourly_rate: Mapped[float | None] = mapped_column(Float, default=None)
    skills: Mapped[list | None] = mapped_column(JSONB, default=list)
    availability: Mapped[str] = mapped_column(
        String(20), default=Availability.AVAILABLE.value
    )

    # Stats: written only through user_service.increment_stat
    jobs_posted: Mapped[int] = mapped_column(Integer, default=0)
    jobs_completed: Mapped[int] = mapped_column(Integer, default=0)
    gigs_created: Mapped[int] = mapped_column(Integer, default=0)
    total_earnings: Mapped[float] = mapped_column(Float, default=0.0)
    total_spent: Mapped[float] = mapped_column(Float, default=0.0)
    rating: Mapped[float] = mapped_column(Float, default=0.0)
    reviews_count: Mapped[int] = mapped_column(Integer, default=0)

    # Gamification: written only by gamification_service
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_activity_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    total_points: Mapped[int] = mapped_column(Integer, default=0)
    level: Mapped[int] = mapped_column(Integer, default=1)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )

    # Relationships
    activity_events: Mapped[list[ActivityEvent]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    achievements: Mapped[list[UserAchievement]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_total_points_desc", "total_points"),
        Index("ix_users_role", "role"),
        CheckConstraint("longest_streak >= current_streak", name="ck_users_streak_order"),
        CheckConstraint("total_points >= 0", name="ck_users_points_non_negative"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"


# ---------------------------------------------------------------------------
# ActivityEvent: append-only ledger
# ---------------------------------------------------------------------------
class ActivityEvent(Base):
    __tablename__ = "activity_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="activity_events")

    __table_args__ = (
        Index("ix_activity_events_user_date", "user_id", "date"),
        Index("ix_activity_events_user_type", "user_id", "type"),
        Index("ix_activity_events_date", "date"),
        CheckConstraint("points >= 0", name="ck_activity_events_points"),
    )

    def __repr__(self) -> str:
        return f"<ActivityEvent id={self.id} user={self.user_id} type={self.type}>"


# ---------------------------------------------------------------------------
# Achievement: admin-curated catalog
# ---------------------------------------------------------------------------
class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False)

    # Unlock criteria
    criteria_type: Mapped[str] = mapped_column(String(50), nullable=False)
    criteria_target: Mapped[int] = mapped_column(Integer, nullable=False)

    # Rewards
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    badge_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    unlocked_by: Mapped[list[UserAchievement]] = relationship(back_populates="achievement")

    __table_args__ = (
        UniqueConstraint("name", name="uq_achievements_name"),
        Index("ix_achievements_category_order", "category", "order"),
        Index("ix_achievements_active", "is_active"),
        CheckConstraint("criteria_target >= 1", name="ck_achievements_target"),
        CheckConstraint("points >= 0", name="ck_achievements_points"),
    )

    def __repr__(self) -> str:
        return f"<Achievement id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# UserAchievement: unlocked badges
# ---------------------------------------------------------------------------
class UserAchievement(Base):
    __tablename__ = "user_achievements"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    achievement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("achievements.id", ondelete="CASCADE"), primary_key=True
    )
    unlocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="achievements")
    achievement: Mapped[Achievement] = relationship(back_populates="unlocked_by")

    def __repr__(self) -> str:
        return f"<UserAchievement user={self.user_id} achievement={self.achievement_id}>"


# ---------------------------------------------------------------------------
# Job: client postings
# ---------------------------------------------------------------------------
class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    subcategory: Mapped[str | None] = mapped_column(String(100), default=None)

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    budget: Mapped[float | None] = mapped_column(Float, default=None)
    hourly_rate_min: Mapped[float | None] = mapped_column(Float, default=None)
    hourly_rate_max: Mapped[float | None] = mapped_column(Float, default=None)

    skills_required: Mapped[list | None] = mapped_column(JSONB, default=list)
    experience_level: Mapped[str] = mapped_column(
        String(20), default=ExperienceLevel.INTERMEDIATE.value
    )
    estimated_duration: Mapped[str | None] = mapped_column(String(100), default=None)
    is_urgent: Mapped[bool] = mapped_column(Boolean, default=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JobStatus.DRAFT.value
    )
    assigned_freelancer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    accepted_application_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Counters
    views: Mapped[int] = mapped_column(Integer, default=0)
    applications_count: Mapped[int] = mapped_column(Integer, default=0)
    saved_count: Mapped[int] = mapped_column(Integer, default=0)

    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    completion_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )

    client: Mapped[User] = relationship(foreign_keys=[client_id])
    assigned_freelancer: Mapped[User | None] = relationship(
        foreign_keys=[assigned_freelancer_id]
    )
    applications: Mapped[list[Application]] = relationship(
        back_populates="job", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_jobs_client_status", "client_id", "status"),
        Index("ix_jobs_status_created", "status", "created_at"),
        Index("ix_jobs_category_status", "category", "status"),
        CheckConstraint("views >= 0", name="ck_jobs_views"),
        CheckConstraint("applications_count >= 0", name="ck_jobs_applications_count"),
        CheckConstraint("saved_count >= 0", name="ck_jobs_saved_count"),
    )

    def __repr__(self) -> str:
        return f"<Job id={self.id} title={self.title!r} status={self.status}>"


# ---------------------------------------------------------------------------
# Application: freelancer proposals
# ---------------------------------------------------------------------------
class Application(Base):
    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False
    )
    freelancer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    cover_letter: Mapped[str] = mapped_column(Text, nullable=False)
    proposed_rate: Mapped[float | None] = mapped_column(Float, default=None)
    proposed_duration: Mapped[str | None] = mapped_column(String(100), default=None)
    portfolio: Mapped[list | None] = mapped_column(JSONB, default=list)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApplicationStatus.PENDING.value
    )
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )

    job: Mapped[Job] = relationship(back_populates="applications")
    freelancer: Mapped[User] = relationship()

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("job_id", "freelancer_id", name="uq_applications_job_freelancer"),
        Index("ix_applications_job_status", "job_id", "status"),
        Index("ix_applications_freelancer_status", "freelancer_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Application id={self.id} job={self.job_id} "
            f"freelancer={self.freelancer_id} status={self.status}>"
        )
