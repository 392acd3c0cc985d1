"""
Unit tests for the digest service layer.

These tests cover:
- Reading and updating digest preferences
- On-demand test digests and their error mapping
"""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from request_manager.modules.digest.schemas import DigestPreferencesUpdate
from request_manager.modules.digest.service import (
    DigestBuildFailedError,
    DigestDeliveryFailedError,
    DigestServiceError,
    StaffNotFoundError,
    get_digest_preferences,
    send_test_digest,
    update_digest_preferences,
)


def _user(**overrides):
    data = {
        "id": str(uuid4()),
        "digest_enabled": True,
        "digest_hour": 8,
        "digest_timezone": "UTC",
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class TestErrors:
    """Tests for service error types."""

    def test_staff_not_found(self):
        """Missing staff maps to 404."""
        error = StaffNotFoundError("abc")
        assert isinstance(error, DigestServiceError)
        assert error.status_code == 404
        assert error.error_code == "STAFF_NOT_FOUND"

    def test_delivery_failed(self):
        """Transport failures map to 502."""
        error = DigestDeliveryFailedError("boom")
        assert error.status_code == 502
        assert error.error_code == "DIGEST_DELIVERY_FAILED"
        assert error.message == "boom"

    def test_build_failed(self):
        """Failures while building the digest map to 503."""
        error = DigestBuildFailedError("db down")
        assert isinstance(error, DigestServiceError)
        assert error.status_code == 503
        assert error.error_code == "DIGEST_BUILD_FAILED"
        assert error.message == "db down"


class TestGetDigestPreferences:
    @pytest.mark.asyncio
    async def test_returns_preferences(self, mock_db):
        """Stored preferences are returned as-is."""
        user = _user(digest_hour=17, digest_timezone="Europe/Berlin")

        with patch("request_manager.modules.digest.service.UserRepository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=user)
            result = await get_digest_preferences(mock_db, user.id)

        assert result.digest_enabled is True
        assert result.digest_hour == 17
        assert result.digest_timezone == "Europe/Berlin"

    @pytest.mark.asyncio
    async def test_missing_user_raises(self, mock_db):
        """Unknown user raises StaffNotFoundError."""
        with patch("request_manager.modules.digest.service.UserRepository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)
            with pytest.raises(StaffNotFoundError):
                await get_digest_preferences(mock_db, uuid4())


class TestUpdateDigestPreferences:
    @pytest.mark.asyncio
    async def test_only_sent_fields_are_changed(self, mock_db):
        """Only fields present in the body are written."""
        user = _user()
        updated = _user(id=user.id, digest_hour=6)

        with patch("request_manager.modules.digest.service.UserRepository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=user)
            mock_repo.update_digest_preferences = AsyncMock(return_value=updated)

            result = await update_digest_preferences(
                mock_db, user.id, DigestPreferencesUpdate(digest_hour=6)
            )

        mock_repo.update_digest_preferences.assert_awaited_once_with(
            mock_db, user, {"digest_hour": 6}
        )
        assert result.digest_hour == 6

    @pytest.mark.asyncio
    async def test_empty_update_does_not_write(self, mock_db):
        """An empty body returns current preferences without a write."""
        user = _user()

        with patch("request_manager.modules.digest.service.UserRepository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=user)
            mock_repo.update_digest_preferences = AsyncMock()

            result = await update_digest_preferences(mock_db, user.id, DigestPreferencesUpdate())

        mock_repo.update_digest_preferences.assert_not_awaited()
        assert result.digest_hour == 8

    @pytest.mark.asyncio
    async def test_missing_user_raises(self, mock_db):
        """Unknown user raises StaffNotFoundError."""
        with patch("request_manager.modules.digest.service.UserRepository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)
            with pytest.raises(StaffNotFoundError):
                await update_digest_preferences(
                    mock_db, uuid4(), DigestPreferencesUpdate(digest_enabled=False)
                )


class TestSendTestDigest:
    """Tests for the test-send service function."""

    @pytest.mark.asyncio
    async def test_activity_returns_success(self, store, scheduler, clock, transport):
        """Recent activity gives a success response."""
        staff = store.add_staff()
        course = store.add_course()
        store.add_request(course, clock.now() - timedelta(hours=1))

        response = await send_test_digest(scheduler, staff.id)

        assert response.status == "success"
        assert response.warning is None
        assert staff.email in response.message
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_no_activity_returns_warning_and_still_sends(self, store, scheduler, transport):
        """No activity still sends one email, with a warning."""
        staff = store.add_staff()

        response = await send_test_digest(scheduler, staff.id)

        assert response.status == "warning"
        assert "No recent activity" in response.warning
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_unknown_staff_raises(self, scheduler, transport):
        """Unknown staff raises before anything is sent."""
        with pytest.raises(StaffNotFoundError):
            await send_test_digest(scheduler, uuid4())

        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_transport_failure_maps_to_delivery_failed(self, store, scheduler, transport):
        """Mail errors become DigestDeliveryFailedError."""
        staff = store.add_staff()
        transport.fail_for.add(staff.email)

        with pytest.raises(DigestDeliveryFailedError) as exc_info:
            await send_test_digest(scheduler, staff.id)

        assert "mail API returned 500" in exc_info.value.message
        assert store.marked == []

    @pytest.mark.asyncio
    async def test_store_failure_maps_to_build_failed(self, store, scheduler, transport):
        """A database error while building becomes DigestBuildFailedError."""
        staff = store.add_staff()
        store.get_all_course_ids = AsyncMock(side_effect=RuntimeError("db down"))

        with (
            patch("request_manager.modules.digest.service.logger") as mock_logger,
            pytest.raises(DigestBuildFailedError) as exc_info,
        ):
            await send_test_digest(scheduler, staff.id)

        assert exc_info.value.status_code == 503
        assert "db down" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert mock_logger.error.call_args.kwargs["exc_info"] is True
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_staff_lookup_failure_maps_to_build_failed(self, store, scheduler, transport):
        """A database error while loading the member becomes DigestBuildFailedError."""
        store.get_staff = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(DigestBuildFailedError):
            await send_test_digest(scheduler, uuid4())

        assert transport.sent == []
