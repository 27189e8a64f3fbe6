"""FastAPI auth dependencies.

Used as Depends() in route handlers to resolve the caller's identity:
1. Bearer JWT in the Authorization header (REST calls)
2. ?token=<JWT> query parameter (EventSource streams)

Plus the shared-secret check for the external cron caller.
"""

import secrets
import uuid
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query

from creatorcompass.auth.jwt import ACCESS, TokenError, verify_token
from creatorcompass.config import settings


class CurrentIdentity:
    """The authenticated user making the request."""

    def __init__(self, user_id: str):
        self.user_id = user_id

    @property
    def user_uuid(self) -> uuid.UUID:
        return uuid.UUID(self.user_id)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"}
    )


def _authenticate_jwt(token: str) -> CurrentIdentity:
    try:
        claims = verify_token(token, expected_type=ACCESS)
        user_id = str(uuid.UUID(claims["sub"]))
    except TokenError as e:
        raise _unauthorized(str(e))
    except (ValueError, TypeError):
        raise _unauthorized("Invalid token subject")
    return CurrentIdentity(user_id=user_id)


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
    token: Optional[str] = Query(None, include_in_schema=False),
) -> Optional[CurrentIdentity]:
    """Soft auth — returns None when no credentials were sent at all."""
    if authorization and authorization.startswith("Bearer "):
        return _authenticate_jwt(authorization[7:])
    if token:
        return _authenticate_jwt(token)
    return None


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Hard auth — 401 if no credentials."""
    if not identity:
        raise _unauthorized("Authentication required")
    return identity


async def require_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Guard for the scheduler endpoint. Disabled when no secret is configured."""
    expected = f"Bearer {settings.cron_secret}"
    # Bytes: compare_digest rejects non-ASCII str, and header values are latin-1
    if not settings.cron_secret or not authorization or not secrets.compare_digest(
        authorization.encode(), expected.encode()
    ):
        raise HTTPException(status_code=401, detail="Unauthorized")
