"""JWT issuing and verification.

Two token kinds, distinguished by the `type` claim:
- access: short-lived, sent as a Bearer header on API calls or as
  ?token= on SSE streams (EventSource can't set headers)
- refresh: long-lived, only accepted by POST /api/auth/refresh
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from creatorcompass.config import settings

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Token is expired, malformed, badly signed, or of the wrong kind."""


def _issue(user_id: str, token_type: str, lifetime: timedelta) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, expires_minutes: Optional[int] = None) -> str:
    minutes = expires_minutes or settings.access_token_expire_minutes
    return _issue(user_id, ACCESS, timedelta(minutes=minutes))


def create_refresh_token(user_id: str, expires_days: Optional[int] = None) -> str:
    days = expires_days or settings.refresh_token_expire_days
    return _issue(user_id, REFRESH, timedelta(days=days))


def verify_token(token: str, expected_type: Optional[str] = None) -> dict:
    """Decode a token and return its claims.

    With `expected_type`, a valid token of the other kind is rejected too.
    Raises TokenError on any failure.
    """
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if expected_type is not None and claims.get("type") != expected_type:
        raise TokenError(f"Expected a {expected_type} token")
    return claims
