"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
Access tokens are issued by the authentication service; this module only
validates them and checks that the caller is a staff member.

SECURITY NOTE:
- Development mode auth bypass is ONLY enabled when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable test tokens
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from request_manager.core.config import settings
from request_manager.core.security import decode_token
from request_manager.modules.users.models import UserRole

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)

STAFF_ROLES = frozenset(role.value for role in UserRole)


@dataclass
class StaffUser:
    """
    Represents an authenticated staff user.

    Populated from JWT claims after token validation.

    Attributes:
        id: User's unique identifier (UUID)
        email: User's email address
        role: One of admin, professor, teaching_assistant
        name: User's display name (optional)
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    def __str__(self) -> str:
        return f"StaffUser(id={self.id}, email={self.email}, role={self.role})"


def _is_dev_mode_safe() -> bool:
    """
    Check if development mode is safe to enable.

    Requires settings.is_development, not settings.is_production, and a
    PYTHON_ENV environment variable that is neither production nor staging.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var != "production"
        and env_var != "staging"
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


# Development mode flag - allows UUID tokens for LOCAL testing ONLY
_DEVELOPMENT_MODE = _is_dev_mode_safe()


def _invalid_token(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> StaffUser:
    """
    Validate JWT token and extract user claims.

    Raises:
        HTTPException 401: If token is invalid or expired
    """
    # In development mode, accept a user id as the token
    if _DEVELOPMENT_MODE:
        try:
            user_id = UUID(token)
            logger.debug("Development mode: Using user id token")
            return StaffUser(
                id=user_id,
                email=f"staff-{str(user_id)[:8]}@requests.dev",
                role=UserRole.ADMIN.value,
                name="Development Staff",
            )
        except ValueError:
            pass

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _invalid_token("INVALID_TOKEN", "Invalid or expired authentication token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        token_type = payload.get("type", "access")
        if token_type != "access":
            logger.warning(f"Invalid token type: {token_type}")
            raise _invalid_token("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

        return StaffUser(
            id=UUID(user_id_str),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            name=payload.get("name"),
        )

    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _invalid_token(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_staff_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> StaffUser:
    """
    FastAPI dependency that validates the JWT token and returns the staff user.

    Usage:
        @router.get("/endpoint")
        async def endpoint(staff: StaffUser = Depends(get_current_staff_user)):
            ...

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
        HTTPException 403: If the user is not a staff member
    """
    user = await _validate_jwt_token(credentials.credentials)

    if user.role not in STAFF_ROLES:
        logger.warning(
            f"Access denied: User {user.id} ({user.email}) has role '{user.role}', "
            "which is not a staff role"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "STAFF_ACCESS_REQUIRED",
                "message": "Staff access is required for this endpoint.",
            },
        )

    logger.debug(f"Authenticated staff: {user.id} ({user.email})")
    return user


__all__ = [
    "StaffUser",
    "get_current_staff_user",
]
