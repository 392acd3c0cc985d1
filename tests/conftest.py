"""
Shared fixtures: an in-memory DigestStore, a fixed clock and a recording
mail transport.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from request_manager.core.email import EmailDeliveryError
from request_manager.modules.digest.jobs import DigestScheduler
from request_manager.modules.digest.store import CommentRecord, RequestRecord, StaffMember
from request_manager.modules.student_requests.models import RequestStatus
from request_manager.modules.users.models import UserRole

# 12:03 UTC is 08:03 in New York (EDT)
NOW = datetime(2026, 10, 19, 12, 3, tzinfo=UTC)


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta


class FakeTransport:
    """Mail transport that records sends instead of delivering them."""

    def __init__(self):
        self.sent: list[dict[str, str]] = []
        self.fail_for: set[str] = set()
        self.hang = False

    async def send(self, to_email: str, subject: str, html_content: str) -> None:
        if self.hang:
            await asyncio.sleep(60)
        if to_email in self.fail_for:
            raise EmailDeliveryError(to_email, "mail API returned 500")
        self.sent.append({"to": to_email, "subject": subject, "html": html_content})


class FakeDigestStore:
    """In-memory DigestStore."""

    def __init__(self):
        self.staff: dict[str, StaffMember] = {}
        # course id -> (name, owner id, member ids)
        self.courses: dict[str, tuple[str, str, set[str]]] = {}
        # (course id, assignee id, record)
        self.requests: list[tuple[str, str | None, RequestRecord]] = []
        # (course id, author id, record)
        self.comments: list[tuple[str, str, CommentRecord]] = []
        self.marked: list[tuple[str, datetime]] = []

    # Setup helpers

    def add_staff(
        self,
        name: str = "Dana Staff",
        role: UserRole = UserRole.ADMIN,
        digest_enabled: bool = True,
        digest_hour: int = 12,
        digest_timezone: str = "UTC",
        last_digest_sent_at: datetime | None = None,
        email: str | None = None,
    ) -> StaffMember:
        staff_id = str(uuid4())
        staff = StaffMember(
            id=staff_id,
            name=name,
            email=email or f"{name.split()[0].lower()}-{staff_id[:6]}@uni.test",
            role=role,
            digest_enabled=digest_enabled,
            digest_hour=digest_hour,
            digest_timezone=digest_timezone,
            last_digest_sent_at=last_digest_sent_at,
        )
        self.staff[staff_id] = staff
        return staff

    def add_course(self, name: str = "Algorithms", owner_id: str = "", member_ids=()) -> str:
        course_id = str(uuid4())
        self.courses[course_id] = (name, owner_id, set(member_ids))
        return course_id

    def add_request(
        self,
        course_id: str,
        created_at: datetime,
        subject: str = "Extension request",
        status: RequestStatus = RequestStatus.PENDING,
        assigned_to_id: str | None = None,
        student_name: str = "Sam Student",
    ) -> RequestRecord:
        record = RequestRecord(
            id=str(uuid4()),
            subject=subject,
            student_name=student_name,
            status=status.value,
            course_name=self.courses[course_id][0],
            created_at=created_at,
        )
        self.requests.append((course_id, assigned_to_id, record))
        return record

    def add_comment(
        self,
        request: RequestRecord,
        author: StaffMember,
        created_at: datetime,
        content: str = "Looks fine to me.",
    ) -> CommentRecord:
        course_id = next(c for c, _a, r in self.requests if r.id == request.id)
        record = CommentRecord(
            id=str(uuid4()),
            request_id=request.id,
            request_subject=request.subject,
            author_name=author.name,
            content=content,
            created_at=created_at,
        )
        self.comments.append((course_id, author.id, record))
        return record

    # DigestStore

    async def get_digest_enabled_staff(self) -> list[StaffMember]:
        return [s for s in self.staff.values() if s.digest_enabled]

    async def get_staff(self, staff_id: str) -> StaffMember | None:
        return self.staff.get(staff_id)

    async def get_all_course_ids(self) -> list[str]:
        return list(self.courses)

    async def get_owned_course_ids(self, staff_id: str) -> list[str]:
        return [cid for cid, (_n, owner, _m) in self.courses.items() if owner == staff_id]

    async def get_member_course_ids(self, staff_id: str) -> list[str]:
        return [cid for cid, (_n, _o, members) in self.courses.items() if staff_id in members]

    async def get_new_requests(
        self, course_ids: Sequence[str], since: datetime, limit: int
    ) -> list[RequestRecord]:
        matches = [r for c, _a, r in self.requests if c in course_ids and r.created_at > since]
        return sorted(matches, key=lambda r: r.created_at, reverse=True)[:limit]

    async def get_action_items(
        self, staff_id: str, statuses: Sequence[RequestStatus], limit: int
    ) -> list[RequestRecord]:
        wanted = {s.value for s in statuses}
        matches = [r for _c, a, r in self.requests if a == staff_id and r.status in wanted]
        return sorted(matches, key=lambda r: r.created_at, reverse=True)[:limit]

    async def get_new_comments(
        self,
        course_ids: Sequence[str],
        exclude_author_id: str,
        since: datetime,
        limit: int,
    ) -> list[CommentRecord]:
        matches = [
            r
            for c, author, r in self.comments
            if c in course_ids and author != exclude_author_id and r.created_at > since
        ]
        return sorted(matches, key=lambda r: r.created_at, reverse=True)[:limit]

    async def count_pending(self, course_ids: Sequence[str]) -> int:
        return sum(
            1
            for c, _a, r in self.requests
            if c in course_ids and r.status == RequestStatus.PENDING.value
        )

    async def mark_digest_sent(self, staff_id: str, sent_at: datetime) -> None:
        self.marked.append((staff_id, sent_at))
        staff = self.staff[staff_id]
        if staff.last_digest_sent_at is None or staff.last_digest_sent_at <= sent_at:
            self.staff[staff_id] = replace(staff, last_digest_sent_at=sent_at)


@pytest.fixture
def clock():
    """Clock fixed at 2026-10-19 12:03 UTC."""
    return FixedClock(NOW)


@pytest.fixture
def store():
    return FakeDigestStore()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def scheduler(store, transport, clock):
    """DigestScheduler wired to the in-memory store, fake transport and fixed clock."""
    return DigestScheduler(
        store=store,
        transport=transport,
        clock=clock,
        base_url="https://requests.example.edu",
        send_timeout_seconds=1,
    )


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db
