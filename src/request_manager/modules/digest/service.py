"""
Digest Service Layer

Business logic behind the digest settings endpoints:
- Reading and updating a staff member's digest preferences
- Sending an on-demand test digest

Errors are raised as DigestServiceError subclasses carrying an error code
and HTTP status; the router converts them to HTTP responses.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from request_manager.core.email import EmailDeliveryError
from request_manager.modules.digest.jobs import DigestScheduler
from request_manager.modules.digest.schemas import (
    DigestPreferences,
    DigestPreferencesUpdate,
    DigestTestSendResponse,
)
from request_manager.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class DigestServiceError(Exception):
    """Base exception for digest service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class StaffNotFoundError(DigestServiceError):
    """Raised when the authenticated user no longer exists."""

    def __init__(self, staff_id: str | UUID):
        super().__init__(
            message=f"Staff member {staff_id} not found.",
            error_code="STAFF_NOT_FOUND",
            status_code=404,
        )


class DigestDeliveryFailedError(DigestServiceError):
    """Raised when the test digest could not be sent."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="DIGEST_DELIVERY_FAILED",
            status_code=502,
        )


class DigestBuildFailedError(DigestServiceError):
    """Raised when the test digest could not be built (e.g. database failure)."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="DIGEST_BUILD_FAILED",
            status_code=503,
        )


async def get_digest_preferences(db: AsyncSession, user_id: str | UUID) -> DigestPreferences:
    """
    Get the digest preferences of a staff member.

    Raises:
        StaffNotFoundError: If the user does not exist
    """
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise StaffNotFoundError(user_id)
    return DigestPreferences.model_validate(user)


async def update_digest_preferences(
    db: AsyncSession,
    user_id: str | UUID,
    data: DigestPreferencesUpdate,
) -> DigestPreferences:
    """
    Update the digest preferences of a staff member.

    Only fields present in the request body are changed. Hour range and
    timezone validity are enforced by the schema.

    Raises:
        StaffNotFoundError: If the user does not exist
    """
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise StaffNotFoundError(user_id)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if changes:
        user = await UserRepository.update_digest_preferences(db, user, changes)

    return DigestPreferences.model_validate(user)


async def send_test_digest(scheduler: DigestScheduler, user_id: str | UUID) -> DigestTestSendResponse:
    """
    Send a test digest to a staff member right now.

    Exactly one email is sent. If the member has no activity to report, the
    email has no sections and the response carries a warning.

    Raises:
        StaffNotFoundError: If the user does not exist
        DigestDeliveryFailedError: If the mail transport failed
        DigestBuildFailedError: If building the digest failed
    """
    try:
        staff = await scheduler.store.get_staff(str(user_id))
    except Exception as e:
        logger.error(f"Staff lookup for test digest {user_id} failed: {e}", exc_info=True)
        raise DigestBuildFailedError(f"Failed to build test digest: {e}") from e
    if staff is None:
        raise StaffNotFoundError(user_id)

    try:
        result = await scheduler.send_test_digest(staff)
    except EmailDeliveryError as e:
        logger.error(f"Test digest to {staff.email} failed: {e.message}")
        raise DigestDeliveryFailedError(f"Failed to send test digest: {e.message}") from e
    except Exception as e:
        logger.error(f"Test digest for {staff.email} could not be built: {e}", exc_info=True)
        raise DigestBuildFailedError(f"Failed to build test digest: {e}") from e

    if not result.had_activity:
        return DigestTestSendResponse(
            status="warning",
            message=f"Test digest sent to {result.sent_to}.",
            warning="No recent activity in your courses, so the digest has no sections.",
        )

    return DigestTestSendResponse(
        status="success",
        message=f"Test digest sent to {result.sent_to}.",
    )
