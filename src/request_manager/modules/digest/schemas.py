"""
Digest Schemas

Pydantic schemas for the digest payload and the digest settings endpoints.
"""

from datetime import datetime
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DigestRequest(BaseModel):
    """A request row in the digest email."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    subject: str
    student_name: str
    status: str
    course_name: str
    created_at: datetime


class DigestComment(BaseModel):
    """A staff note in the digest email, with truncated content."""

    request_id: str
    request_subject: str
    author_name: str
    content_preview: str


class DigestPayload(BaseModel):
    """Everything needed to render one staff member's digest."""

    user_name: str
    new_requests: list[DigestRequest] = Field(default_factory=list)
    action_items: list[DigestRequest] = Field(default_factory=list)
    new_comments: list[DigestComment] = Field(default_factory=list)
    total_pending: int = 0
    since: datetime
    generated_at: datetime

    @property
    def has_activity(self) -> bool:
        return bool(self.new_requests or self.action_items or self.new_comments)

    @classmethod
    def empty(cls, user_name: str, since: datetime, generated_at: datetime) -> "DigestPayload":
        """Payload with no sections, used when a test digest has nothing to report."""
        return cls(user_name=user_name, since=since, generated_at=generated_at)


def is_valid_timezone(name: str) -> bool:
    """Return True if ``name`` is a known IANA timezone."""
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False
    return True


class DigestPreferences(BaseModel):
    """Response body for GET/PATCH /settings/digest."""

    model_config = ConfigDict(from_attributes=True)

    digest_enabled: bool
    digest_hour: int
    digest_timezone: str


class DigestPreferencesUpdate(BaseModel):
    """Request body for PATCH /settings/digest. Omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    digest_enabled: bool | None = None
    digest_hour: int | None = Field(None, ge=0, le=23, strict=True)
    digest_timezone: str | None = Field(None, min_length=1, max_length=64)

    @field_validator("digest_timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_timezone(value):
            raise ValueError("Invalid timezone")
        return value


class DigestTestSendResponse(BaseModel):
    """Response body for POST /settings/digest/test."""

    status: Literal["success", "warning"]
    message: str
    warning: str | None = None
