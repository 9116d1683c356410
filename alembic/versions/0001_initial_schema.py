"""Initial marketplace schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "establishments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("establishment_type", sa.String(length=60), nullable=False, server_default="autre"),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("department", sa.String(length=3), nullable=True),
        sa.Column("subscription_status", sa.String(length=20), nullable=False, server_default="freemium"),
        sa.Column("subscription_plan", sa.String(length=20), nullable=True),
        sa.Column("missions_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("missions_included_used", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_table(
        "talents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("first_name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("position_types", sa.JSON(), nullable=False),
        sa.Column("preferred_departments", sa.JSON(), nullable=False),
        sa.Column("min_hourly_rate", sa.Numeric(8, 2), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "missions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "establishment_id",
            sa.Integer(),
            sa.ForeignKey("establishments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.String(length=60), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="open"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="not_required"),
        sa.Column("payment_session_id", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("price", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("department", sa.String(length=3), nullable=True),
        sa.Column("location_fuzzy", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("location_exact", sa.Text(), nullable=False, server_default=""),
        sa.Column("hourly_rate", sa.Numeric(8, 2), nullable=True),
        sa.Column("comment", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_index("ix_missions_establishment_id", "missions", ["establishment_id"])
    op.create_index("ix_missions_status", "missions", ["status"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("mission_id", sa.Integer(), sa.ForeignKey("missions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("talent_id", sa.Integer(), sa.ForeignKey("talents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="interested"),
        sa.Column("establishment_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("talent_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("mission_id", "talent_id", name="uq_applications_mission_talent"),
    )
    op.create_index("ix_applications_mission_id", "applications", ["mission_id"])
    op.create_index("ix_applications_talent_id", "applications", ["talent_id"])
    op.create_index("ix_applications_status", "applications", ["status"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=60), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("link", sa.String(length=255), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_index("ix_applications_talent_id", table_name="applications")
    op.drop_index("ix_applications_mission_id", table_name="applications")
    op.drop_table("applications")
    op.drop_index("ix_missions_status", table_name="missions")
    op.drop_index("ix_missions_establishment_id", table_name="missions")
    op.drop_table("missions")
    op.drop_table("talents")
    op.drop_table("establishments")
