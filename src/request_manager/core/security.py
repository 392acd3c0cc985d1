"""
Security Utilities

JWT encoding and decoding. Tokens are issued by the authentication service;
this API only needs to validate them, but ``create_access_token`` is kept
for scripts and tests that need a signed token.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from request_manager.core.config import settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24


def create_access_token(
    subject: str,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: Value for the ``sub`` claim (user id)
        additional_claims: Extra claims such as email and role
        expires_delta: Token lifetime, defaults to 24 hours

    Returns:
        Encoded JWT string
    """
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload: dict[str, Any] = {
        "sub": subject,
        "type": "access",
        "iat": now,
        "exp": expire,
    }
    if additional_claims:
        payload.update(additional_claims)
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT.

    Returns:
        The token payload, or None if the signature is invalid or the token
        has expired.
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        logger.debug(f"Token validation failed: {e}")
        return None
