"""JWT helpers.

Authentication itself happens upstream; this service only verifies bearer
tokens and reads the user identity (and role) from them.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import jwt

from product_grouping.config import settings


def create_access_token(
    user_id: UUID, expires_delta: timedelta | None = None, role: str | None = None
) -> str:
    """
    Create a JWT access token.

    Used by tests and local tooling; production tokens come from the auth
    provider and share the same secret.

    Args:
        user_id: User ID to encode in token
        expires_delta: Optional custom expiration time
        role: Optional role claim (e.g. "admin")

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_expire_minutes)

    expire = datetime.now(timezone.utc) + expires_delta
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
    }
    if role:
        to_encode["role"] = role
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a JWT token.

    Raises:
        JWTError: If token is invalid or expired
    """
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def is_admin_payload(payload: dict[str, Any]) -> bool:
    """True when the token carries the admin role or belongs to a configured admin."""
    if payload.get("role") == "admin":
        return True
    try:
        return UUID(str(payload.get("sub"))) in settings.admin_user_ids
    except ValueError:
        return False
