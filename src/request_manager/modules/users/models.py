"""
User Models

Database model for staff accounts and their digest preferences.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column, relationship

from request_manager.modules.shared import BaseModel

if TYPE_CHECKING:
    from request_manager.modules.courses.models import Course, CourseMember


class UserRole(str, Enum):
    """Staff roles in the system."""

    ADMIN = "admin"
    PROFESSOR = "professor"
    TEACHING_ASSISTANT = "teaching_assistant"


DEFAULT_DIGEST_HOUR = 8
DEFAULT_DIGEST_TIMEZONE = "UTC"


class User(BaseModel):
    """
    Staff user.

    Students do not have accounts; they submit requests by name and email.
    Staff see requests according to their role: admins see every course,
    professors the courses they own, teaching assistants the courses they
    are members of.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        ENUM(UserRole, name="user_role", create_type=True),
        nullable=False,
        default=UserRole.TEACHING_ASSISTANT,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Digest preferences
    digest_enabled: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    digest_hour: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_DIGEST_HOUR,
        nullable=False,
    )
    digest_timezone: Mapped[str] = mapped_column(
        String(64),
        default=DEFAULT_DIGEST_TIMEZONE,
        nullable=False,
    )
    # Written only by the digest scheduler after a successful send
    last_digest_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    owned_courses: Mapped[list["Course"]] = relationship(
        "Course",
        back_populates="owner",
        lazy="selectin",
    )
    memberships: Mapped[list["CourseMember"]] = relationship(
        "CourseMember",
        back_populates="user",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("digest_hour >= 0 AND digest_hour <= 23", name="ck_users_digest_hour_range"),
        # Hourly candidate scan
        Index(
            "ix_users_digest_enabled",
            "digest_enabled",
            postgresql_where=text("digest_enabled = true"),
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"
