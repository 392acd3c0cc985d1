"""add digest preferences and indexes

Revision ID: b7d2f5a8c3e1
Revises: a1c4e7b2d9f0
Create Date: 2026-10-05 09:30:00.000000

This migration:
1. Adds digest preference columns to users (enabled, hour, timezone)
2. Adds last_digest_sent_at, written after each successful digest send
3. Adds the indexes used by the hourly digest queries

Existing users default to digests disabled, 08:00 UTC.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "b7d2f5a8c3e1"
down_revision: str | Sequence[str] | None = "a1c4e7b2d9f0"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Add digest columns to users and digest query indexes."""
    op.add_column(
        "users",
        sa.Column("digest_enabled", sa.Boolean(), nullable=False, server_default="false"),
    )
    op.add_column(
        "users",
        sa.Column("digest_hour", sa.Integer(), nullable=False, server_default="8"),
    )
    op.add_column(
        "users",
        sa.Column("digest_timezone", sa.String(length=64), nullable=False, server_default="UTC"),
    )
    op.add_column(
        "users",
        sa.Column("last_digest_sent_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_check_constraint(
        "ck_users_digest_hour_range",
        "users",
        "digest_hour >= 0 AND digest_hour <= 23",
    )

    # Hourly candidate scan
    op.create_index(
        "ix_users_digest_enabled",
        "users",
        ["digest_enabled"],
        unique=False,
        postgresql_where=sa.text("digest_enabled = true"),
    )

    # New requests per course since a timestamp
    op.create_index(
        "ix_requests_course_created",
        "requests",
        ["course_id", "created_at"],
        unique=False,
    )
    # Open requests assigned to a staff member
    op.create_index(
        "ix_requests_assignee_status",
        "requests",
        ["assigned_to_id", "status"],
        unique=False,
    )
    # New comments per request since a timestamp
    op.create_index(
        "ix_comments_request_created",
        "comments",
        ["request_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    """Remove digest indexes and columns."""
    op.drop_index("ix_comments_request_created", table_name="comments")
    op.drop_index("ix_requests_assignee_status", table_name="requests")
    op.drop_index("ix_requests_course_created", table_name="requests")
    op.drop_index("ix_users_digest_enabled", table_name="users")
    op.drop_constraint("ck_users_digest_hour_range", "users", type_="check")

    op.drop_column("users", "last_digest_sent_at")
    op.drop_column("users", "digest_timezone")
    op.drop_column("users", "digest_hour")
    op.drop_column("users", "digest_enabled")
