"""
Digest Background Jobs

Hourly job that emails each opted-in staff member their daily digest in
their chosen local hour.

Per cycle, for every staff member with digests enabled:
1. Project "now" into the member's timezone (unknown zones fall back to UTC)
2. Skip unless the local hour equals the member's digest hour
3. Skip if a digest was sent less than an hour ago (idempotence guard)
4. Build the digest; skip if there is nothing to report
5. Render and send it, then record last_digest_sent_at

Error Handling:
- A failure for one member (database, rendering, mail API, timeout) is logged
  and the job moves on to the next member
- last_digest_sent_at is only written after a confirmed send

The same class also serves on-demand test digests, which skip the hour and
guard checks and never touch last_digest_sent_at.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from request_manager.core.clock import Clock, system_clock
from request_manager.core.config import settings
from request_manager.core.database import async_session_maker
from request_manager.core.email import EmailDeliveryError, MailTransport, get_mail_transport
from request_manager.core.scheduler import HourlySchedule
from request_manager.modules.digest.aggregator import DigestAggregator, digest_since
from request_manager.modules.digest.renderer import digest_subject, render_digest
from request_manager.modules.digest.repository import SqlAlchemyDigestStore
from request_manager.modules.digest.schemas import DigestPayload
from request_manager.modules.digest.store import DigestStore, StaffMember

logger = logging.getLogger(__name__)

# Minimum time between two digests for the same member
RESEND_GUARD = timedelta(hours=1)

JOB_ID_SEND_DIGESTS = "digest_send_daily_digests"


def local_hour(timezone_name: str, now: datetime) -> int:
    """
    Hour of ``now`` in the given IANA timezone.

    An invalid or unknown timezone yields the UTC hour instead of raising.
    """
    try:
        tz = ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning(f"Invalid digest timezone {timezone_name!r}, using UTC")
        tz = UTC
    return now.astimezone(tz).hour


def sent_recently(last_sent_at: datetime | None, now: datetime) -> bool:
    """True if a digest was sent less than RESEND_GUARD before ``now``."""
    if last_sent_at is None:
        return False
    return now - last_sent_at < RESEND_GUARD


@dataclass
class OnDemandDigestResult:
    """Outcome of an on-demand test digest."""

    had_activity: bool
    sent_to: str


class DigestScheduler:
    """Aggregates, renders and dispatches digests."""

    def __init__(
        self,
        store: DigestStore,
        transport: MailTransport,
        aggregator: DigestAggregator | None = None,
        clock: Clock = system_clock,
        base_url: str | None = None,
        send_timeout_seconds: float | None = None,
    ):
        self.store = store
        self.transport = transport
        self.clock = clock
        self.aggregator = aggregator or DigestAggregator(store, clock)
        self.base_url = base_url or settings.app_url
        self.send_timeout_seconds = send_timeout_seconds or settings.email_timeout_seconds

        # Guard check-then-set is serialized per member
        self._member_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        # Sends recorded by this process, in case the store snapshot is stale
        self._sent_at: dict[str, datetime] = {}

    async def _dispatch(self, staff: StaffMember, payload: DigestPayload) -> None:
        """
        Render and send one digest.

        Raises:
            EmailDeliveryError: If the transport fails or exceeds the send timeout
        """
        html = render_digest(payload, self.base_url)
        subject = digest_subject(self.clock.now())
        try:
            await asyncio.wait_for(
                self.transport.send(staff.email, subject, html),
                timeout=self.send_timeout_seconds,
            )
        except TimeoutError as e:
            raise EmailDeliveryError(
                staff.email, f"mail transport timed out after {self.send_timeout_seconds}s"
            ) from e

    def _last_sent_at(self, staff: StaffMember) -> datetime | None:
        candidates = [
            ts for ts in (staff.last_digest_sent_at, self._sent_at.get(staff.id)) if ts is not None
        ]
        return max(candidates) if candidates else None

    async def process_member(self, staff: StaffMember, now: datetime) -> dict[str, Any]:
        """
        Run the scheduled digest policy for one staff member.

        Returns:
            Dict with staff_id, status ("sent" or "skipped") and a reason for skips
        """
        result: dict[str, Any] = {"staff_id": staff.id, "email": staff.email}

        if not staff.digest_enabled:
            return {**result, "status": "skipped", "reason": "digest_disabled"}

        hour = local_hour(staff.digest_timezone, now)
        if hour != staff.digest_hour:
            return {**result, "status": "skipped", "reason": "not_digest_hour"}

        async with self._member_locks[staff.id]:
            if sent_recently(self._last_sent_at(staff), now):
                logger.info(f"Digest already sent to {staff.email} within the last hour, skipping")
                return {**result, "status": "skipped", "reason": "recently_sent"}

            payload = await self.aggregator.build_digest(staff)
            if payload is None:
                logger.info(f"No activity for {staff.email}, skipping")
                return {**result, "status": "skipped", "reason": "no_activity"}

            await self._dispatch(staff, payload)

            sent_at = self.clock.now()
            self._sent_at[staff.id] = sent_at
            await self.store.mark_digest_sent(staff.id, sent_at)

        logger.info(f"Sent digest to {staff.email}")
        return {**result, "status": "sent", "sent_at": sent_at.isoformat()}

    async def run_cycle(self) -> dict[str, Any]:
        """
        Evaluate every digest-enabled staff member once.

        Returns:
            Dict with job execution summary including:
            - executed_at: When the cycle ran
            - total_candidates: Staff members with digests enabled
            - sent / skipped / errors: Counts per outcome
            - results: Per-member results
        """
        executed_at = self.clock.now()
        logger.info(f"Running digest scheduler check at {executed_at.isoformat()}")

        results: dict[str, Any] = {
            "executed_at": executed_at.isoformat(),
            "total_candidates": 0,
            "sent": 0,
            "skipped": 0,
            "errors": 0,
            "results": [],
        }

        staff_members = await self.store.get_digest_enabled_staff()
        results["total_candidates"] = len(staff_members)

        for staff in staff_members:
            try:
                member_result = await self.process_member(staff, executed_at)
            except EmailDeliveryError as e:
                logger.error(f"Failed to send digest to {staff.email}: {e.message}")
                member_result = {
                    "staff_id": staff.id,
                    "email": staff.email,
                    "status": "error",
                    "error": e.message,
                }
            except Exception as e:
                logger.error(f"Error processing digest for {staff.email}: {e}", exc_info=True)
                member_result = {
                    "staff_id": staff.id,
                    "email": staff.email,
                    "status": "error",
                    "error": str(e),
                }

            results["results"].append(member_result)
            if member_result["status"] == "sent":
                results["sent"] += 1
            elif member_result["status"] == "skipped":
                results["skipped"] += 1
            else:
                results["errors"] += 1

        logger.info(
            f"Digest cycle completed. Sent: {results['sent']}, "
            f"Skipped: {results['skipped']}, Errors: {results['errors']}"
        )
        return results

    async def send_test_digest(self, staff: StaffMember) -> OnDemandDigestResult:
        """
        Send one digest to ``staff`` immediately.

        Ignores the digest hour and the idempotence guard. When there is no
        activity, a digest with no sections is sent so delivery can still be
        verified. Exactly one email is sent per call and last_digest_sent_at
        is never modified.

        Raises:
            EmailDeliveryError: If the send fails
        """
        payload = await self.aggregator.build_digest(staff)
        if payload is None:
            now = self.clock.now()
            payload = DigestPayload.empty(staff.name, since=digest_since(staff, now), generated_at=now)
        had_activity = payload.has_activity

        await self._dispatch(staff, payload)

        logger.info(f"Sent test digest to {staff.email} (activity: {had_activity})")
        return OnDemandDigestResult(had_activity=had_activity, sent_to=staff.email)


_digest_scheduler: DigestScheduler | None = None


def get_digest_scheduler() -> DigestScheduler:
    """Return the process-wide DigestScheduler (FastAPI dependency)."""
    global _digest_scheduler
    if _digest_scheduler is None:
        _digest_scheduler = DigestScheduler(
            store=SqlAlchemyDigestStore(async_session_maker),
            transport=get_mail_transport(),
        )
    return _digest_scheduler


async def send_daily_digests() -> dict[str, Any]:
    """Scheduled entry point: run one digest cycle."""
    return await get_digest_scheduler().run_cycle()


def register_digest_jobs(schedule: HourlySchedule) -> None:
    """
    Register the digest job with the scheduler.

    Runs at minute 0 of every hour so each timezone's digest hour is hit once.
    """
    logger.info("Registering digest background jobs...")
    schedule.on_every_hour(JOB_ID_SEND_DIGESTS, send_daily_digests)
    logger.info(f"Registered job: {JOB_ID_SEND_DIGESTS} (every hour at :00)")
