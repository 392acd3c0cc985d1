"""
Digest Settings Router

API endpoints for a staff member's own digest email settings.

Endpoints:
- GET /settings/digest - Get digest preferences
- PATCH /settings/digest - Update digest preferences
- POST /settings/digest/test - Send a test digest now

Security:
- All endpoints require a valid staff JWT
- Test sends are rate limited per user
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from request_manager.core.auth import StaffUser, get_current_staff_user
from request_manager.core.database import get_db
from request_manager.core.rate_limit import RateLimitExceeded, check_rate_limit
from request_manager.modules.digest import service
from request_manager.modules.digest.jobs import DigestScheduler, get_digest_scheduler
from request_manager.modules.digest.schemas import (
    DigestPreferences,
    DigestPreferencesUpdate,
    DigestTestSendResponse,
)
from request_manager.modules.digest.service import DigestServiceError

logger = logging.getLogger(__name__)

router = APIRouter()

# Test digests per user (limit, window seconds)
RATE_LIMIT_TEST_DIGEST = (3, 600)


def _handle_service_error(e: DigestServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


@router.get(
    "",
    response_model=DigestPreferences,
    summary="Get Digest Preferences",
)
async def get_preferences(
    staff: StaffUser = Depends(get_current_staff_user),
    db: AsyncSession = Depends(get_db),
) -> DigestPreferences:
    """Return whether digests are enabled, and the hour and timezone they are sent in."""
    try:
        return await service.get_digest_preferences(db, staff.id)
    except DigestServiceError as e:
        _handle_service_error(e)


@router.patch(
    "",
    response_model=DigestPreferences,
    summary="Update Digest Preferences",
    description="""
Update digest preferences. Omitted fields are left unchanged.

- `digest_hour`: integer 0-23, local hour the digest is sent in
- `digest_timezone`: IANA timezone name, e.g. `America/New_York`
""",
)
async def update_preferences(
    data: DigestPreferencesUpdate,
    staff: StaffUser = Depends(get_current_staff_user),
    db: AsyncSession = Depends(get_db),
) -> DigestPreferences:
    try:
        return await service.update_digest_preferences(db, staff.id, data)
    except DigestServiceError as e:
        _handle_service_error(e)


@router.post(
    "/test",
    response_model=DigestTestSendResponse,
    summary="Send Test Digest",
    responses={
        429: {"description": "Too many test digests"},
        502: {"description": "Mail delivery failed"},
        503: {"description": "Digest could not be built"},
    },
)
async def send_test_digest(
    staff: StaffUser = Depends(get_current_staff_user),
    scheduler: DigestScheduler = Depends(get_digest_scheduler),
) -> DigestTestSendResponse:
    """
    Send one digest immediately, regardless of the configured hour.

    If there is no recent activity the email is still sent, without sections,
    and the response status is "warning".
    """
    limit, window_seconds = RATE_LIMIT_TEST_DIGEST
    if not await check_rate_limit(f"digest:test:{staff.id}", limit, window_seconds):
        logger.warning(f"Rate limit exceeded for test digest by {staff.id}")
        raise RateLimitExceeded(limit, window_seconds)

    try:
        return await service.send_test_digest(scheduler, staff.id)
    except DigestServiceError as e:
        _handle_service_error(e)
