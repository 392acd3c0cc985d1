"""
Unit tests for digest schemas.
"""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from request_manager.modules.digest.schemas import (
    DigestPayload,
    DigestPreferencesUpdate,
    DigestRequest,
    is_valid_timezone,
)


class TestIsValidTimezone:
    @pytest.mark.parametrize("name", ["UTC", "America/New_York", "Asia/Kolkata", "Europe/London"])
    def test_valid(self, name):
        """Known IANA names are accepted."""
        assert is_valid_timezone(name) is True

    @pytest.mark.parametrize("name", ["Mars/Olympus_Mons", "Not a zone", "../etc/passwd"])
    def test_invalid(self, name):
        """Unknown or malformed names are rejected."""
        assert is_valid_timezone(name) is False


class TestDigestPreferencesUpdate:
    """Validation of PATCH /settings/digest bodies."""

    def test_all_fields(self):
        """All three fields can be set together."""
        data = DigestPreferencesUpdate(
            digest_enabled=True, digest_hour=23, digest_timezone="America/New_York"
        )
        assert data.digest_hour == 23

    def test_partial_update_leaves_other_fields_unset(self):
        """Omitted fields stay out of the dump."""
        data = DigestPreferencesUpdate(digest_hour=0)
        assert data.model_dump(exclude_unset=True) == {"digest_hour": 0}

    @pytest.mark.parametrize("hour", [-1, 24, 100])
    def test_hour_out_of_range(self, hour):
        """Hours outside 0-23 are rejected."""
        with pytest.raises(ValidationError):
            DigestPreferencesUpdate(digest_hour=hour)

    @pytest.mark.parametrize("hour", ["8", 8.5])
    def test_hour_must_be_an_integer(self, hour):
        """Strings and floats are not coerced to an hour."""
        with pytest.raises(ValidationError):
            DigestPreferencesUpdate(digest_hour=hour)

    def test_invalid_timezone(self):
        """Unknown timezone is rejected with a clear message."""
        with pytest.raises(ValidationError, match="Invalid timezone"):
            DigestPreferencesUpdate(digest_timezone="Mars/Olympus_Mons")

    def test_unknown_field_rejected(self):
        """last_digest_sent_at cannot be set through the API."""
        with pytest.raises(ValidationError):
            DigestPreferencesUpdate(last_digest_sent_at="2026-10-19T00:00:00Z")


class TestDigestPayload:
    def test_empty_payload_has_no_activity(self):
        """An empty payload reports no activity."""
        now = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
        payload = DigestPayload.empty("Dana", since=now, generated_at=now)

        assert payload.has_activity is False
        assert payload.total_pending == 0
        assert payload.new_requests == []

    def test_pending_backlog_alone_is_not_activity(self):
        """total_pending does not count as activity on its own."""
        now = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
        payload = DigestPayload(user_name="Dana", total_pending=4, since=now, generated_at=now)

        assert payload.has_activity is False

    def test_any_section_is_activity(self):
        """A single action item is enough activity for a digest."""
        now = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
        item = DigestRequest(
            id="req-1",
            subject="Extension for lab 3",
            student_name="Sam Student",
            status="IN_REVIEW",
            course_name="Algorithms",
            created_at=now,
        )
        payload = DigestPayload(user_name="Dana", action_items=[item], since=now, generated_at=now)

        assert payload.has_activity is True
