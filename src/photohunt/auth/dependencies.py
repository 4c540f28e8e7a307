"""FastAPI authentication dependencies, including the post-reset session gate."""

from __future__ import annotations

from typing import Any

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.auth.jwt import token_login_time, verify_token
from photohunt.auth.service import get_user_by_id
from photohunt.database import get_session
from photohunt.db.models import User
from photohunt.exceptions import AuthError, ForbiddenError, SessionExpiredError
from photohunt.game.settings_service import get_last_reset_time

_bearer = HTTPBearer(auto_error=False)


async def check_session_valid(db: AsyncSession, payload: dict[str, Any]) -> None:
    """
    Reject tokens issued before the last cycle reset.

    A reset purges submission history, so a stale session could otherwise look
    eligible to submit again for a word it already completed.
    """
    last_reset = await get_last_reset_time(db)
    if last_reset is None:
        return
    try:
        login_time = token_login_time(payload)
    except jwt.InvalidTokenError as e:
        raise AuthError(str(e), code="INVALID_TOKEN") from e
    if login_time < last_reset:
        msg = "Session expired due to a game reset. Please log in again."
        raise SessionExpiredError(msg)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the bearer token, apply the session gate, return the User.

    Raises AuthError (401) or SessionExpiredError (401) on failure.
    """
    if credentials is None:
        raise AuthError("Authentication required")
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise AuthError(str(e), code="INVALID_TOKEN") from e

    await check_session_valid(db, payload)

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        raise AuthError("User not found", code="INVALID_TOKEN")
    return user


async def require_admin(
    user: User = Depends(get_current_user),
) -> User:
    """Same as get_current_user but additionally requires the admin role."""
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user
