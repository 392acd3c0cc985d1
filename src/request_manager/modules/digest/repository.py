"""
Digest Repository

SQLAlchemy implementation of the DigestStore port.

Each query opens its own session from the session factory so the aggregator
can run its queries concurrently (an AsyncSession cannot be shared between
concurrent tasks).
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from request_manager.modules.courses.models import Course, CourseMember
from request_manager.modules.digest.store import CommentRecord, RequestRecord, StaffMember
from request_manager.modules.student_requests.models import Comment, Request, RequestStatus
from request_manager.modules.users.models import User
from request_manager.modules.users.repository import UserRepository


def _to_request_record(request: Request, course_name: str) -> RequestRecord:
    return RequestRecord(
        id=str(request.id),
        subject=request.subject,
        student_name=request.student_name,
        status=request.status.value,
        course_name=course_name,
        created_at=request.created_at,
    )


class SqlAlchemyDigestStore:
    """DigestStore backed by the application database."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get_digest_enabled_staff(self) -> list[StaffMember]:
        async with self._session_maker() as db:
            users = await UserRepository.get_digest_enabled(db)
        return [StaffMember.from_model(user) for user in users]

    async def get_staff(self, staff_id: str) -> StaffMember | None:
        async with self._session_maker() as db:
            user = await UserRepository.get_by_id(db, staff_id)
        return StaffMember.from_model(user) if user else None

    async def get_all_course_ids(self) -> list[str]:
        async with self._session_maker() as db:
            result = await db.execute(select(Course.id))
            return [str(course_id) for course_id in result.scalars().all()]

    async def get_owned_course_ids(self, staff_id: str) -> list[str]:
        async with self._session_maker() as db:
            result = await db.execute(select(Course.id).where(Course.owner_id == staff_id))
            return [str(course_id) for course_id in result.scalars().all()]

    async def get_member_course_ids(self, staff_id: str) -> list[str]:
        async with self._session_maker() as db:
            result = await db.execute(
                select(CourseMember.course_id).where(CourseMember.user_id == staff_id)
            )
            return [str(course_id) for course_id in result.scalars().all()]

    async def get_new_requests(
        self, course_ids: Sequence[str], since: datetime, limit: int
    ) -> list[RequestRecord]:
        async with self._session_maker() as db:
            result = await db.execute(
                select(Request, Course.name)
                .join(Course, Request.course_id == Course.id)
                .where(
                    Request.course_id.in_(list(course_ids)),
                    Request.created_at > since,
                )
                .order_by(Request.created_at.desc())
                .limit(limit)
            )
            return [_to_request_record(request, course_name) for request, course_name in result.all()]

    async def get_action_items(
        self, staff_id: str, statuses: Sequence[RequestStatus], limit: int
    ) -> list[RequestRecord]:
        async with self._session_maker() as db:
            result = await db.execute(
                select(Request, Course.name)
                .join(Course, Request.course_id == Course.id)
                .where(
                    Request.assigned_to_id == staff_id,
                    Request.status.in_(list(statuses)),
                )
                .order_by(Request.created_at.desc())
                .limit(limit)
            )
            return [_to_request_record(request, course_name) for request, course_name in result.all()]

    async def get_new_comments(
        self,
        course_ids: Sequence[str],
        exclude_author_id: str,
        since: datetime,
        limit: int,
    ) -> list[CommentRecord]:
        async with self._session_maker() as db:
            result = await db.execute(
                select(Comment, Request.id, Request.subject, User.name)
                .join(Request, Comment.request_id == Request.id)
                .join(User, Comment.author_id == User.id)
                .where(
                    Request.course_id.in_(list(course_ids)),
                    Comment.author_id != exclude_author_id,
                    Comment.created_at > since,
                )
                .order_by(Comment.created_at.desc())
                .limit(limit)
            )
            return [
                CommentRecord(
                    id=str(comment.id),
                    request_id=str(request_id),
                    request_subject=request_subject,
                    author_name=author_name,
                    content=comment.content,
                    created_at=comment.created_at,
                )
                for comment, request_id, request_subject, author_name in result.all()
            ]

    async def count_pending(self, course_ids: Sequence[str]) -> int:
        async with self._session_maker() as db:
            result = await db.execute(
                select(func.count())
                .select_from(Request)
                .where(
                    Request.course_id.in_(list(course_ids)),
                    Request.status == RequestStatus.PENDING,
                )
            )
            return int(result.scalar_one())

    async def mark_digest_sent(self, staff_id: str, sent_at: datetime) -> None:
        async with self._session_maker() as db:
            await UserRepository.mark_digest_sent(db, staff_id, sent_at)
