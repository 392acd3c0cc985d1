"""
Digest Store

Read-side records and the data-access port used by the digest aggregator
and scheduler. The production implementation lives in repository.py; tests
use an in-memory implementation of the same protocol.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from request_manager.modules.student_requests.models import RequestStatus
from request_manager.modules.users.models import User, UserRole


@dataclass(frozen=True)
class StaffMember:
    """Snapshot of a staff user as seen by the digest subsystem."""

    id: str
    name: str
    email: str
    role: UserRole
    digest_enabled: bool
    digest_hour: int
    digest_timezone: str
    last_digest_sent_at: datetime | None = None

    @classmethod
    def from_model(cls, user: User) -> "StaffMember":
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            role=user.role,
            digest_enabled=user.digest_enabled,
            digest_hour=user.digest_hour,
            digest_timezone=user.digest_timezone,
            last_digest_sent_at=user.last_digest_sent_at,
        )


@dataclass(frozen=True)
class RequestRecord:
    id: str
    subject: str
    student_name: str
    status: str
    course_name: str
    created_at: datetime


@dataclass(frozen=True)
class CommentRecord:
    id: str
    request_id: str
    request_subject: str
    author_name: str
    content: str
    created_at: datetime


class DigestStore(Protocol):
    """Queries the digest subsystem needs from persistent storage."""

    async def get_digest_enabled_staff(self) -> list[StaffMember]: ...

    async def get_staff(self, staff_id: str) -> StaffMember | None: ...

    async def get_all_course_ids(self) -> list[str]: ...

    async def get_owned_course_ids(self, staff_id: str) -> list[str]: ...

    async def get_member_course_ids(self, staff_id: str) -> list[str]: ...

    async def get_new_requests(
        self, course_ids: Sequence[str], since: datetime, limit: int
    ) -> list[RequestRecord]:
        """Requests in the given courses created strictly after ``since``, newest first."""
        ...

    async def get_action_items(
        self, staff_id: str, statuses: Sequence[RequestStatus], limit: int
    ) -> list[RequestRecord]:
        """Requests assigned to the staff member in one of ``statuses``, newest first."""
        ...

    async def get_new_comments(
        self,
        course_ids: Sequence[str],
        exclude_author_id: str,
        since: datetime,
        limit: int,
    ) -> list[CommentRecord]:
        """Comments on requests in the given courses, newest first, not by the excluded author."""
        ...

    async def count_pending(self, course_ids: Sequence[str]) -> int: ...

    async def mark_digest_sent(self, staff_id: str, sent_at: datetime) -> None: ...
