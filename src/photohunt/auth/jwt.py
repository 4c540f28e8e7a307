"""
JWT access token management.

Tokens carry a `login_time` claim (ISO-8601 UTC, microsecond precision) that the
session gate compares against the last cycle-reset time. The standard `iat`
claim is whole seconds and too coarse for that comparison.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from photohunt.config import get_settings


def create_access_token(
    user_id: int,
    username: str,
    is_admin: bool = False,
    *,
    login_time: datetime | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        user_id: The user's database ID.
        username: The user's login name.
        is_admin: Whether the user holds the admin role.
        login_time: Issuance time recorded for the session gate (defaults to now).

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    issued = login_time or now
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "is_admin": is_admin,
        "login_time": issued.isoformat(),
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or wrong type.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)

    return payload


def token_login_time(payload: dict[str, Any]) -> datetime:
    """Return the session's login time, falling back to `iat` for tokens without the claim."""
    raw = payload.get("login_time")
    if raw:
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as e:
            msg = "Malformed login_time claim"
            raise jwt.InvalidTokenError(msg) from e
    else:
        parsed = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
