"""Startup seeding: the admin account and the starter word list (idempotent)."""

from __future__ import annotations

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.auth.service import ensure_admin_user
from photohunt.config import get_settings
from photohunt.db.models import Word

logger = structlog.get_logger()

STARTER_WORDS: list[str] = [
    "apple", "book", "chair", "dog", "elephant", "flower", "guitar", "house",
    "ice", "jacket", "key", "lamp", "mountain", "notebook", "ocean", "pencil",
    "queen", "rainbow", "sun", "tree", "umbrella", "violin", "water", "yacht",
    "zebra", "backpack", "camera", "diamond", "eagle", "fire", "glass", "helmet",
    "island", "kite", "lighthouse", "mirror", "nest", "owl", "piano", "quilt",
    "rocket", "star", "telescope", "valley", "whale", "yarn", "airplane", "bridge",
    "castle", "door", "engine", "forest", "garden", "kitchen", "library", "maze",
]


async def seed_words(db: AsyncSession, words: list[str] | None = None) -> int:
    """Insert the starter list if the word table is empty. Returns rows inserted."""
    result = await db.execute(select(func.count(Word.id)))
    if result.scalar_one() > 0:
        return 0
    for text in words if words is not None else STARTER_WORDS:
        db.add(Word(word=text))
    await db.commit()
    inserted = len(words if words is not None else STARTER_WORDS)
    logger.info("words_seeded", count=inserted)
    return inserted


async def seed_all(db: AsyncSession) -> None:
    settings = get_settings()
    await ensure_admin_user(db, settings.admin_username, settings.admin_password)
    if settings.seed_default_words:
        await seed_words(db)
