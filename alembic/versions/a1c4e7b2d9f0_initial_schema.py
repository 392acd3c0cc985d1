"""initial schema

Revision ID: a1c4e7b2d9f0
Revises:
Create Date: 2026-09-28 10:00:00.000000

This migration creates the core tables:
1. users - staff accounts (admins, professors, teaching assistants)
2. courses - owned by a professor
3. course_members - staff assigned to a course
4. requests - student requests against a course
5. comments - internal staff notes on requests

Note: PostgreSQL enum labels are stored in uppercase (enum member names).
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c4e7b2d9f0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _base_columns() -> list[sa.Column]:
    """Primary key and timestamps (from BaseModel)."""
    return [
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create the core tables."""
    user_role_enum = postgresql.ENUM(
        "ADMIN",
        "PROFESSOR",
        "TEACHING_ASSISTANT",
        name="user_role",
        create_type=False,
    )
    user_role_enum.create(op.get_bind(), checkfirst=True)

    request_status_enum = postgresql.ENUM(
        "PENDING",
        "IN_REVIEW",
        "APPROVED",
        "DENIED",
        "CLOSED",
        name="request_status",
        create_type=False,
    )
    request_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "courses",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("owner_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["owner_id"],
            ["users.id"],
            name="fk_courses_owner_id",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint("code", name="uq_courses_code"),
    )
    op.create_index(op.f("ix_courses_owner_id"), "courses", ["owner_id"], unique=False)

    op.create_table(
        "course_members",
        *_base_columns(),
        sa.Column("course_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.id"],
            name="fk_course_members_course_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_course_members_user_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("course_id", "user_id", name="uq_course_members_course_user"),
    )
    op.create_index(
        op.f("ix_course_members_user_id"), "course_members", ["user_id"], unique=False
    )

    op.create_table(
        "requests",
        *_base_columns(),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("student_name", sa.String(length=200), nullable=False),
        sa.Column("student_email", sa.String(length=255), nullable=False),
        sa.Column("status", request_status_enum, nullable=False, server_default="PENDING"),
        sa.Column("course_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("assigned_to_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.id"],
            name="fk_requests_course_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["assigned_to_id"],
            ["users.id"],
            name="fk_requests_assigned_to_id",
            ondelete="SET NULL",
        ),
    )

    op.create_table(
        "comments",
        *_base_columns(),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("request_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["author_id"],
            ["users.id"],
            name="fk_comments_author_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["request_id"],
            ["requests.id"],
            name="fk_comments_request_id",
            ondelete="CASCADE",
        ),
    )


def downgrade() -> None:
    """Drop the core tables and enum types."""
    op.drop_table("comments")
    op.drop_table("requests")
    op.drop_index(op.f("ix_course_members_user_id"), table_name="course_members")
    op.drop_table("course_members")
    op.drop_index(op.f("ix_courses_owner_id"), table_name="courses")
    op.drop_table("courses")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")

    postgresql.ENUM(name="request_status").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="user_role").drop(op.get_bind(), checkfirst=True)
