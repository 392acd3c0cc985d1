"""
Clock abstraction.

Digest scheduling depends on "now" for hour matching, the idempotence guard
and the since-window. Components take a Clock so tests can pin time.
"""

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


system_clock = SystemClock()
