"""Authentication router — all /api/auth/* endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.auth.dependencies import get_current_user
from photohunt.auth.jwt import create_access_token
from photohunt.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from photohunt.auth.service import change_password, login_or_register, register_user
from photohunt.config import get_settings
from photohunt.database import get_session
from photohunt.db.models import User

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def user_response(user: User) -> UserResponse:
    """Build a UserResponse from a User model."""
    return UserResponse(
        id=user.id,
        username=user.username,
        is_admin=user.is_admin,
        created_at=user.created_at,
        last_active=user.last_active,
    )


def _issue_token(user: User, *, is_new_user: bool) -> TokenResponse:
    settings = get_settings()
    token = create_access_token(
        user.id, user.username, user.is_admin, login_time=datetime.now(timezone.utc)
    )
    return TokenResponse(
        access_token=token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        is_new_user=is_new_user,
        user=user_response(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Log in with username + password, registering unseen usernames."""
    user, created = await login_or_register(db, body.username, body.password)
    return _issue_token(user, is_new_user=created)


@router.post("/register", response_model=TokenResponse)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Register a new account. 409 if the username is taken."""
    user = await register_user(db, body.username, body.password)
    return _issue_token(user, is_new_user=True)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    """Return the authenticated user's record."""
    return user_response(user)


@router.post("/change-password", response_model=MessageResponse)
async def change_password_endpoint(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Change the caller's password."""
    await change_password(db, user, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")
