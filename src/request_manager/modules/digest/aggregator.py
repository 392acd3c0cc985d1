"""
Digest Aggregator

Builds the content of one staff member's digest from the data store.

For a staff member with a non-empty course scope, the digest contains:
1. New requests in scope created since the last digest (max 25)
2. Action items: open requests assigned to the member, any age (max 10)
3. New comments by other staff on requests in scope (max 15)
plus the total number of pending requests in scope.

A digest is only warranted when at least one of the three lists is
non-empty. A pending backlog on its own does not produce a digest.
"""

import asyncio
import logging
from datetime import datetime, timedelta

from request_manager.core.clock import Clock, system_clock
from request_manager.modules.digest.schemas import DigestComment, DigestPayload, DigestRequest
from request_manager.modules.digest.scope import resolve_course_scope
from request_manager.modules.digest.store import CommentRecord, DigestStore, StaffMember
from request_manager.modules.student_requests.models import OPEN_STATUSES

logger = logging.getLogger(__name__)

NEW_REQUESTS_LIMIT = 25
ACTION_ITEMS_LIMIT = 10
NEW_COMMENTS_LIMIT = 15
COMMENT_PREVIEW_LENGTH = 100
COMMENT_PREVIEW_SUFFIX = "..."

# Lookback for staff who have never received a digest
DEFAULT_LOOKBACK = timedelta(hours=24)


def digest_since(staff: StaffMember, now: datetime) -> datetime:
    """Start of the activity window: the last send, or 24 hours ago."""
    if staff.last_digest_sent_at is not None:
        return staff.last_digest_sent_at
    return now - DEFAULT_LOOKBACK


def truncate_comment(content: str) -> str:
    """Cut comment content to the preview length, marking the cut with an ellipsis."""
    if len(content) > COMMENT_PREVIEW_LENGTH:
        return content[:COMMENT_PREVIEW_LENGTH] + COMMENT_PREVIEW_SUFFIX
    return content


def _to_digest_comment(record: CommentRecord) -> DigestComment:
    return DigestComment(
        request_id=record.request_id,
        request_subject=record.request_subject,
        author_name=record.author_name,
        content_preview=truncate_comment(record.content),
    )


class DigestAggregator:
    """Computes digest payloads. Read-only: never writes to the store."""

    def __init__(self, store: DigestStore, clock: Clock = system_clock):
        self.store = store
        self.clock = clock

    async def build_digest(self, staff: StaffMember) -> DigestPayload | None:
        """
        Build the digest for one staff member.

        Returns:
            The payload, or None if the member has no courses in scope or
            there is no new activity and no open action items.
        """
        course_ids = await resolve_course_scope(self.store, staff)
        if not course_ids:
            logger.debug(f"No courses in scope for {staff.email}, no digest")
            return None

        now = self.clock.now()
        since = digest_since(staff, now)

        new_requests, action_items, new_comments, total_pending = await asyncio.gather(
            self.store.get_new_requests(course_ids, since, NEW_REQUESTS_LIMIT),
            self.store.get_action_items(staff.id, OPEN_STATUSES, ACTION_ITEMS_LIMIT),
            self.store.get_new_comments(course_ids, staff.id, since, NEW_COMMENTS_LIMIT),
            self.store.count_pending(course_ids),
        )

        payload = DigestPayload(
            user_name=staff.name,
            new_requests=[DigestRequest.model_validate(r) for r in new_requests],
            action_items=[DigestRequest.model_validate(r) for r in action_items],
            new_comments=[_to_digest_comment(c) for c in new_comments],
            total_pending=total_pending,
            since=since,
            generated_at=now,
        )

        if not payload.has_activity:
            logger.debug(
                f"No activity for {staff.email} since {since.isoformat()} "
                f"({total_pending} pending), no digest"
            )
            return None

        return payload
