"""
Request Models

Student requests and the staff comments attached to them.
"""

import enum
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from request_manager.modules.shared import BaseModel

if TYPE_CHECKING:
    from request_manager.modules.courses.models import Course
    from request_manager.modules.users.models import User


class RequestStatus(str, enum.Enum):
    """Status of a student request."""

    PENDING = "PENDING"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    CLOSED = "CLOSED"


# Statuses that still need action from the assignee
OPEN_STATUSES = (RequestStatus.PENDING, RequestStatus.IN_REVIEW)


class Request(BaseModel):
    """A request submitted by a student against a course."""

    __tablename__ = "requests"

    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    student_name: Mapped[str] = mapped_column(String(200), nullable=False)
    student_email: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, name="request_status"),
        nullable=False,
        default=RequestStatus.PENDING,
    )

    course_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    assigned_to_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    course: Mapped["Course"] = relationship("Course", back_populates="requests")
    assigned_to: Mapped["User | None"] = relationship("User")
    comments: Mapped[list["Comment"]] = relationship(
        "Comment", back_populates="request", cascade="all, delete-orphan"
    )

    # Indexes for digest queries
    __table_args__ = (
        Index("ix_requests_course_created", "course_id", "created_at"),
        Index("ix_requests_assignee_status", "assigned_to_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Request(id={self.id}, status={self.status.value})>"


class Comment(BaseModel):
    """Internal staff note on a request."""

    __tablename__ = "comments"

    content: Mapped[str] = mapped_column(Text, nullable=False)

    author_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    request_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("requests.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Relationships
    author: Mapped["User"] = relationship("User")
    request: Mapped["Request"] = relationship("Request", back_populates="comments")

    __table_args__ = (Index("ix_comments_request_created", "request_id", "created_at"),)
