"""FastAPI dependency injection for caller identity and database."""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from product_grouping.core.errors import get_error
from product_grouping.core.security import decode_token, is_admin_payload
from product_grouping.db.session import get_db
from product_grouping.grouping.categories import category_key

__all__ = ["Caller", "get_current_caller", "get_db", "require_category"]

# OAuth2 bearer token scheme
security = HTTPBearer()


@dataclass(frozen=True)
class Caller:
    """The authenticated user making the request."""

    id: UUID
    is_admin: bool = False


async def get_current_caller(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Caller:
    """
    Read the caller's identity from the bearer token.

    Users are managed by the auth provider, so there is no user lookup:
    a valid token with a UUID ``sub`` is enough.

    Raises:
        HTTPException: If token is invalid, expired, or has no usable subject
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(credentials.credentials)
        user_id = UUID(str(payload.get("sub")))
    except JWTError:
        raise credentials_exception
    except ValueError:
        raise credentials_exception

    caller = Caller(id=user_id, is_admin=is_admin_payload(payload))
    request.state.user = caller
    return caller


def require_category(value: str | None, allow_none: bool = False) -> str | None:
    """Normalize a category key or label, rejecting unknown ones with 400."""
    if value is None or not value.strip():
        if allow_none:
            return None
    else:
        key = category_key(value)
        if key is not None:
            return key

    error_def = get_error("API_001")
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error_code": "API_001",
            "user_message": error_def["user_message"],
            "suggestion": error_def["suggestion"],
        },
    )
