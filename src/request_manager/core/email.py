"""
Email Service using Resend

Outbound mail transport for digest notifications.

send() returns only after the mail API accepted the message. Any failure
raises EmailDeliveryError carrying the recipient and the cause.
"""

import asyncio
import logging
from typing import Protocol

import resend

from request_manager.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when an email could not be delivered to the mail API."""

    def __init__(self, to_email: str, message: str):
        self.to_email = to_email
        self.message = message
        super().__init__(f"Failed to send email to {to_email}: {message}")


class MailTransport(Protocol):
    async def send(self, to_email: str, subject: str, html_content: str) -> None:
        """Send one HTML email. Raises EmailDeliveryError on failure."""
        ...


class ResendMailTransport:
    """
    Mail transport backed by the Resend API.

    The Resend SDK is synchronous, so each call runs in a worker thread;
    callers apply their own timeout. Without an API key the email is logged
    instead of sent (local development).
    """

    def __init__(
        self,
        api_key: str | None = None,
        sender: str | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.sender = sender or settings.email_from

    async def send(self, to_email: str, subject: str, html_content: str) -> None:
        if not self.api_key:
            logger.warning("RESEND_API_KEY not set - logging email instead of sending")
            logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
            return

        resend.api_key = self.api_key
        params: resend.Emails.SendParams = {
            "from": self.sender,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        try:
            email = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise EmailDeliveryError(to_email, str(e)) from e

        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")


_default_transport: ResendMailTransport | None = None


def get_mail_transport() -> MailTransport:
    """Return the process-wide mail transport (FastAPI dependency)."""
    global _default_transport
    if _default_transport is None:
        _default_transport = ResendMailTransport()
    return _default_transport
