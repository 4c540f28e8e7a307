"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login with username + password. Unseen usernames are registered."""

    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(BaseModel):
    """Explicit registration request."""

    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Public user profile."""

    id: int
    username: str
    is_admin: bool
    created_at: datetime | None = None
    last_active: datetime | None = None


class TokenResponse(BaseModel):
    """Token response returned on login and registration."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    is_new_user: bool = False
    user: UserResponse


class MessageResponse(BaseModel):
    success: bool = True
    message: str
