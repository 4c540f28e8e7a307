"""Coupon minting and confirmation.

Codes are `YCC-` followed by 8 characters over A-Z0-9, generated server-side
with a cryptographic random source.
"""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.db.models import Coupon, User

logger = structlog.get_logger()

COUPON_PREFIX = "YCC-"
COUPON_CHARSET = string.ascii_uppercase + string.digits  # A-Z, 0-9
COUPON_LENGTH = 8

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"


def generate_coupon_code() -> str:
    """Generate a random coupon code such as YCC-7QK2M9ZD."""
    return COUPON_PREFIX + "".join(secrets.choice(COUPON_CHARSET) for _ in range(COUPON_LENGTH))


async def generate_unique_coupon_code(db: AsyncSession) -> str:
    """Generate a coupon code that doesn't already exist in the database."""
    for _ in range(10):
        code = generate_coupon_code()
        existing = await db.execute(select(Coupon.id).where(Coupon.coupon_code == code))
        if existing.scalar_one_or_none() is None:
            return code
    raise RuntimeError("Failed to generate unique coupon code after 10 attempts")


async def mint_coupon(db: AsyncSession, user_id: int, word: str) -> Coupon:
    """Create a pending coupon for a submission. The caller commits."""
    coupon = Coupon(
        user_id=user_id,
        word=word,
        coupon_code=await generate_unique_coupon_code(db),
        status=STATUS_PENDING,
        created_at=datetime.now(timezone.utc),
    )
    db.add(coupon)
    await db.flush()
    return coupon


async def confirm_coupon(db: AsyncSession, user_id: int, coupon_id: int) -> bool:
    """Mark the owner's pending coupon as confirmed.

    Returns False if the coupon does not exist, belongs to someone else, or is
    already confirmed.
    """
    result = await db.execute(
        update(Coupon)
        .where(
            Coupon.id == coupon_id,
            Coupon.user_id == user_id,
            Coupon.status == STATUS_PENDING,
        )
        .values(status=STATUS_CONFIRMED, confirmed_at=datetime.now(timezone.utc))
    )
    await db.commit()
    confirmed = result.rowcount > 0
    if confirmed:
        logger.info("coupon_confirmed", user_id=user_id, coupon_id=coupon_id)
    return confirmed


async def list_user_coupons(db: AsyncSession, user_id: int) -> list[Coupon]:
    result = await db.execute(
        select(Coupon)
        .where(Coupon.user_id == user_id)
        .order_by(Coupon.created_at.desc(), Coupon.id.desc())
    )
    return list(result.scalars().all())


async def list_all_coupons(db: AsyncSession) -> list[tuple[Coupon, str]]:
    """Every coupon with its owner's username, newest first."""
    result = await db.execute(
        select(Coupon, User.username)
        .join(User, Coupon.user_id == User.id)
        .order_by(Coupon.created_at.desc(), Coupon.id.desc())
    )
    return [(coupon, username) for coupon, username in result.all()]
