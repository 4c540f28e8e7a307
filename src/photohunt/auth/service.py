"""
Authentication business logic.

Handles user lookup, login with auto-registration, explicit registration and
password changes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from photohunt.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from photohunt.config import get_settings
from photohunt.db.models import User
from photohunt.exceptions import AuthError, ConflictError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Fetch a user by exact username."""
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def normalize_username(username: str) -> str:
    """Trim and length-check a username."""
    settings = get_settings()
    cleaned = (username or "").strip()
    if len(cleaned) < settings.username_min_length:
        msg = f"Username must be at least {settings.username_min_length} characters"
        raise ValidationError(msg)
    if len(cleaned) > settings.username_max_length:
        msg = f"Username must not exceed {settings.username_max_length} characters"
        raise ValidationError(msg)
    return cleaned


def check_password(password: str) -> None:
    try:
        validate_password_strength(password)
    except PasswordStrengthError as e:
        raise ValidationError(str(e)) from e


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


async def create_user(db: AsyncSession, username: str, password: str, *, is_admin: bool = False) -> User:
    """Insert a user and flush. Raises IntegrityError on a duplicate username."""
    now = datetime.now(timezone.utc)
    user = User(
        username=username,
        password_hash=hash_password(password),
        is_admin=is_admin,
        created_at=now,
        last_active=now,
    )
    db.add(user)
    await db.flush()
    return user


async def register_user(db: AsyncSession, username: str, password: str) -> User:
    """Explicit registration. Duplicate usernames raise ConflictError."""
    username = normalize_username(username)
    check_password(password)

    if await get_user_by_username(db, username) is not None:
        raise ConflictError("Username already exists")

    try:
        user = await create_user(db, username, password)
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Username already exists") from e

    await db.commit()
    logger.info("user_registered", user_id=user.id, username=username)
    return user


async def login_or_register(db: AsyncSession, username: str, password: str) -> tuple[User, bool]:
    """
    Log in, creating the account if the username has never been seen.

    Returns:
        Tuple of (user, created).
    """
    username = normalize_username(username)
    check_password(password)

    user = await get_user_by_username(db, username)
    created = False
    if user is None:
        try:
            user = await create_user(db, username, password)
            created = True
        except IntegrityError:
            # Lost a race with a concurrent first login for the same name
            await db.rollback()
            user = await get_user_by_username(db, username)
            if user is None:
                raise

    if not created:
        if not verify_password(password, user.password_hash):
            logger.info("login_failed", username=username)
            raise AuthError("Wrong password for existing username", code="INVALID_CREDENTIALS")
        if check_needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)

    user.last_active = datetime.now(timezone.utc)
    await db.commit()
    logger.info("user_logged_in", user_id=user.id, created=created)
    return user, created


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    """Change a user's password after verifying the current one."""
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    check_password(new_password)
    user.password_hash = hash_password(new_password)
    await db.commit()
    logger.info("password_changed", user_id=user.id)


async def ensure_admin_user(db: AsyncSession, username: str, password: str) -> bool:
    """Create the configured admin account if it does not exist. Returns True if created."""
    if await get_user_by_username(db, username) is not None:
        return False
    await create_user(db, username, password, is_admin=True)
    await db.commit()
    logger.info("admin_user_created", username=username)
    return True
