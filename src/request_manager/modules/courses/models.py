"""
Course Models

Courses are owned by a professor; teaching assistants are attached through
CourseMember rows.
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from request_manager.modules.shared import BaseModel

if TYPE_CHECKING:
    from request_manager.modules.student_requests.models import Request
    from request_manager.modules.users.models import User


class Course(BaseModel):
    """A course that students can submit requests against."""

    __tablename__ = "courses"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
    )
    owner_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Relationships
    owner: Mapped["User"] = relationship(
        "User",
        back_populates="owned_courses",
    )
    members: Mapped[list["CourseMember"]] = relationship(
        "CourseMember",
        back_populates="course",
        cascade="all, delete-orphan",
    )
    requests: Mapped[list["Request"]] = relationship(
        "Request",
        back_populates="course",
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, code={self.code})>"


class CourseMember(BaseModel):
    """Teaching assistant membership in a course."""

    __tablename__ = "course_members"

    course_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    course: Mapped["Course"] = relationship(
        "Course",
        back_populates="members",
    )
    user: Mapped["User"] = relationship(
        "User",
        back_populates="memberships",
    )

    __table_args__ = (UniqueConstraint("course_id", "user_id", name="uq_course_members_course_user"),)
