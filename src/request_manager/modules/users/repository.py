"""
User Repository

Database operations for staff users and their digest settings.
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from request_manager.modules.users.models import User

logger = logging.getLogger(__name__)

DIGEST_PREFERENCE_FIELDS = frozenset({"digest_enabled", "digest_hour", "digest_timezone"})


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str | UUID) -> User | None:
        """
        Get a user by ID.

        Args:
            db: Database session
            user_id: User UUID

        Returns:
            User instance or None if not found
        """
        user_id_str = str(user_id)
        result = await db.execute(select(User).where(User.id == user_id_str))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_digest_enabled(db: AsyncSession) -> list[User]:
        """Get every active user who opted in to digest emails."""
        result = await db.execute(
            select(User).where(
                User.digest_enabled == True,  # noqa: E712
                User.is_active == True,  # noqa: E712
            )
        )
        return list(result.scalars().all())

    @staticmethod
    async def mark_digest_sent(db: AsyncSession, user_id: str | UUID, sent_at: datetime) -> bool:
        """
        Record a successful digest send.

        The update only applies when ``sent_at`` is not older than the stored
        value, so last_digest_sent_at never moves backwards.

        Returns:
            True if the row was updated
        """
        result = await db.execute(
            update(User)
            .where(
                User.id == str(user_id),
                or_(
                    User.last_digest_sent_at.is_(None),
                    User.last_digest_sent_at <= sent_at,
                ),
            )
            .values(last_digest_sent_at=sent_at)
        )
        await db.commit()

        updated = result.rowcount == 1
        if not updated:
            logger.warning(
                f"last_digest_sent_at for user {user_id} not advanced to {sent_at.isoformat()} "
                "(user missing or a newer send is already recorded)"
            )
        return updated

    @staticmethod
    async def update_digest_preferences(
        db: AsyncSession, user: User, changes: dict[str, Any]
    ) -> User:
        """
        Apply digest preference changes to a user.

        Args:
            db: Database session
            user: User to update
            changes: Subset of digest_enabled, digest_hour, digest_timezone

        Returns:
            The refreshed user
        """
        unknown = set(changes) - DIGEST_PREFERENCE_FIELDS
        if unknown:
            raise ValueError(f"Not a digest preference: {sorted(unknown)}")

        for field, value in changes.items():
            setattr(user, field, value)

        await db.commit()
        await db.refresh(user)

        logger.info(f"Updated digest preferences for user {user.id}: {sorted(changes)}")
        return user
