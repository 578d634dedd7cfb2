"""Initial marketplace schema: users, ledger, achievements, jobs, applications

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0a1b2c3d4e5f"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create every table of the marketplace core."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="client"),
        sa.Column("account_status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("avatar", sa.String(500)),
        sa.Column("bio", sa.String(500)),
        sa.Column("location", sa.String(100)),
        sa.Column("title", sa.String(200)),
        sa.Column("hourly_rate", sa.Float()),
        sa.Column("skills", postgresql.JSONB()),
        sa.Column("availability", sa.String(20), server_default="available"),
        sa.Column("jobs_posted", sa.Integer(), server_default="0"),
        sa.Column("jobs_completed", sa.Integer(), server_default="0"),
        sa.Column("gigs_created", sa.Integer(), server_default="0"),
        sa.Column("total_earnings", sa.Float(), server_default="0"),
        sa.Column("total_spent", sa.Float(), server_default="0"),
        sa.Column("rating", sa.Float(), server_default="0"),
        sa.Column("reviews_count", sa.Integer(), server_default="0"),
        sa.Column("current_streak", sa.Integer(), server_default="0"),
        sa.Column("longest_streak", sa.Integer(), server_default="0"),
        sa.Column("last_activity_date", sa.DateTime(timezone=True)),
        sa.Column("total_points", sa.Integer(), server_default="0"),
        sa.Column("level", sa.Integer(), server_default="1"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("longest_streak >= current_streak", name="ck_users_streak_order"),
        sa.CheckConstraint("total_points >= 0", name="ck_users_points_non_negative"),
    )
    op.create_index("ix_users_total_points_desc", "users", ["total_points"])
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "activity_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column(
            "date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
        ),
        sa.CheckConstraint("points >= 0", name="ck_activity_events_points"),
    )
    op.create_index("ix_activity_events_user_date", "activity_events", ["user_id", "date"])
    op.create_index("ix_activity_events_user_type", "activity_events", ["user_id", "type"])
    op.create_index("ix_activity_events_date", "activity_events", ["date"])

    op.create_table(
        "achievements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(100), nullable=False),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("criteria_type", sa.String(50), nullable=False),
        sa.Column("criteria_target", sa.Integer(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("badge_url", sa.String(500)),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("order", sa.Integer(), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("name", name="uq_achievements_name"),
        sa.CheckConstraint("criteria_target >= 1", name="ck_achievements_target"),
        sa.CheckConstraint("points >= 0", name="ck_achievements_points"),
    )
    op.create_index("ix_achievements_category_order", "achievements", ["category", "order"])
    op.create_index("ix_achievements_active", "achievements", ["is_active"])

    op.create_table(
        "user_achievements",
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "achievement_id", sa.Integer(),
            sa.ForeignKey("achievements.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("unlocked_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "client_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("subcategory", sa.String(100)),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("budget", sa.Float()),
        sa.Column("hourly_rate_min", sa.Float()),
        sa.Column("hourly_rate_max", sa.Float()),
        sa.Column("skills_required", postgresql.JSONB()),
        sa.Column("experience_level", sa.String(20), server_default="intermediate"),
        sa.Column("estimated_duration", sa.String(100)),
        sa.Column("is_urgent", sa.Boolean(), server_default=sa.false()),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column(
            "assigned_freelancer_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("accepted_application_id", sa.Integer(), nullable=True),
        sa.Column("views", sa.Integer(), server_default="0"),
        sa.Column("applications_count", sa.Integer(), server_default="0"),
        sa.Column("saved_count", sa.Integer(), server_default="0"),
        sa.Column("deadline", sa.DateTime(timezone=True)),
        sa.Column("start_date", sa.DateTime(timezone=True)),
        sa.Column("completion_date", sa.DateTime(timezone=True)),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.CheckConstraint("views >= 0", name="ck_jobs_views"),
        sa.CheckConstraint("applications_count >= 0", name="ck_jobs_applications_count"),
        sa.CheckConstraint("saved_count >= 0", name="ck_jobs_saved_count"),
    )
    op.create_index("ix_jobs_client_status", "jobs", ["client_id", "status"])
    op.create_index("ix_jobs_status_created", "jobs", ["status", "created_at"])
    op.create_index("ix_jobs_category_status", "jobs", ["category", "status"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "job_id", sa.Integer(),
            sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "freelancer_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("cover_letter", sa.Text(), nullable=False),
        sa.Column("proposed_rate", sa.Float()),
        sa.Column("proposed_duration", sa.String(100)),
        sa.Column("portfolio", postgresql.JSONB()),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("applied_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("responded_at", sa.DateTime(timezone=True)),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.UniqueConstraint("job_id", "freelancer_id", name="uq_applications_job_freelancer"),
    )
    op.create_index("ix_applications_job_status", "applications", ["job_id", "status"])
    op.create_index(
        "ix_applications_freelancer_status", "applications", ["freelancer_id", "status"],
    )


def downgrade() -> None:
    """Drop the marketplace core, children first."""
    op.drop_table("applications")
    op.drop_table("jobs")
    op.drop_table("user_achievements")
    op.drop_table("achievements")
    op.drop_table("activity_events")
    op.drop_table("users")
