"""
Admin business logic: word queue, game settings, accounts and data wipes.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.auth.password import hash_password
from photohunt.auth.service import check_password, get_user_by_id
from photohunt.db.models import Coupon, ScoreArchive, Submission, User, Word, utcnow
from photohunt.exceptions import ConflictError, NotFoundError, ValidationError
from photohunt.game import settings_service
from photohunt.game.progression import (
    activate_word,
    evaluate_completion,
    purge_submissions,
    required_completions_for,
)

logger = structlog.get_logger()

MAX_WORD_LENGTH = 64


@dataclass
class WordProgress:
    word: Word
    current_completions: int
    required_completions: int


@dataclass
class GameSettingsView:
    coupon_drop_rate: int
    default_required_completions: int
    booth_open_time: str
    booth_close_time: str
    last_reset_time: str | None


def normalize_word(text: str) -> str:
    cleaned = (text or "").strip().lower()
    if not cleaned:
        raise ValidationError("Word is required")
    if len(cleaned) > MAX_WORD_LENGTH:
        msg = f"Word must not exceed {MAX_WORD_LENGTH} characters"
        raise ValidationError(msg)
    return cleaned


def _normalize_many(words: list[str]) -> list[str]:
    """Normalize, drop blanks and de-duplicate while keeping order."""
    seen: set[str] = set()
    out: list[str] = []
    for text in words:
        if not text or not text.strip():
            continue
        cleaned = normalize_word(text)
        if cleaned not in seen:
            seen.add(cleaned)
            out.append(cleaned)
    return out


async def _get_word(db: AsyncSession, word_id: int) -> Word:
    word = await db.get(Word, word_id)
    if word is None:
        msg = f"Word {word_id} not found"
        raise NotFoundError(msg)
    return word


# ---------------------------------------------------------------------------
# Words
# ---------------------------------------------------------------------------


async def list_words(db: AsyncSession) -> list[WordProgress]:
    default = await settings_service.get_default_required_completions(db)
    result = await db.execute(
        select(Word, func.count(Submission.id))
        .outerjoin(Submission, Submission.word_id == Word.id)
        .group_by(Word.id)
        .order_by(Word.id)
    )
    return [
        WordProgress(word=word, current_completions=count, required_completions=required_completions_for(word, default))
        for word, count in result.all()
    ]


async def add_word(db: AsyncSession, text: str) -> Word:
    cleaned = normalize_word(text)
    existing = await db.execute(select(Word.id).where(Word.word == cleaned))
    if existing.scalar_one_or_none() is not None:
        msg = f"Word '{cleaned}' already exists"
        raise ConflictError(msg)
    word = Word(word=cleaned, created_at=utcnow())
    db.add(word)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        msg = f"Word '{cleaned}' already exists"
        raise ConflictError(msg) from e
    logger.info("word_added", word_id=word.id, word=cleaned)
    return word


async def bulk_add_words(db: AsyncSession, words: list[str]) -> int:
    """Add every word not already present. Returns the number added."""
    cleaned = _normalize_many(words)
    if not cleaned:
        raise ValidationError("Words array is required")
    result = await db.execute(select(Word.word).where(Word.word.in_(cleaned)))
    existing = set(result.scalars().all())
    added = [w for w in cleaned if w not in existing]
    now = utcnow()
    for text in added:
        db.add(Word(word=text, created_at=now))
    await db.commit()
    logger.info("words_bulk_added", count=len(added), skipped=len(cleaned) - len(added))
    return len(added)


async def bulk_replace_words(db: AsyncSession, words: list[str]) -> tuple[int, Word]:
    """Replace the whole word list and start a fresh cycle.

    Scores are archived before submissions are purged. Returns
    (number of words, newly active word).
    """
    cleaned = _normalize_many(words)
    if not cleaned:
        raise ValidationError("Words array is required")

    now = utcnow()
    await purge_submissions(db, now)
    await db.execute(delete(Word), execution_options={"synchronize_session": False})
    await db.flush()
    new_words = [Word(word=text, created_at=now) for text in cleaned]
    db.add_all(new_words)
    await db.flush()
    active = await activate_word(db, random.choice(new_words).id)
    logger.info("words_replaced", count=len(cleaned), active_word=active.word)
    return len(cleaned), active


async def remove_word(db: AsyncSession, word_id: int) -> None:
    """Delete a word. Its submissions keep their text snapshot and points."""
    word = await _get_word(db, word_id)
    if word.is_active:
        raise ConflictError("Cannot remove the active word")
    await db.execute(
        update(Submission).where(Submission.word_id == word_id).values(word_id=None),
        execution_options={"synchronize_session": False},
    )
    await db.delete(word)
    await db.commit()
    logger.info("word_removed", word_id=word_id)


async def set_word_required_completions(
    db: AsyncSession, word_id: int, required: int | None
) -> tuple[Word, Word | None]:
    """Override (or clear) a word's threshold.

    If this brings the active word to its threshold, it rotates immediately.
    Returns (word, next active word or None).
    """
    if required is not None:
        settings_service.validate_required_completions(required)
    word = await _get_word(db, word_id)
    word.required_completions = required
    await db.flush()
    next_word = await evaluate_completion(db)
    await db.commit()
    return word, next_word


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


async def get_game_settings(db: AsyncSession) -> GameSettingsView:
    hours = await settings_service.get_booth_hours(db)
    last_reset = await settings_service.get_last_reset_time(db)
    return GameSettingsView(
        coupon_drop_rate=await settings_service.get_coupon_drop_rate(db),
        default_required_completions=await settings_service.get_default_required_completions(db),
        booth_open_time=hours.open_time,
        booth_close_time=hours.close_time,
        last_reset_time=last_reset.isoformat() if last_reset else None,
    )


async def update_game_settings(
    db: AsyncSession,
    *,
    coupon_drop_rate: int | None = None,
    default_required_completions: int | None = None,
    booth_open_time: str | None = None,
    booth_close_time: str | None = None,
) -> GameSettingsView:
    """Update any subset of settings. Nothing is committed unless every value is valid."""
    if coupon_drop_rate is not None:
        await settings_service.set_coupon_drop_rate(db, coupon_drop_rate)
    if default_required_completions is not None:
        await settings_service.set_default_required_completions(db, default_required_completions)
    if booth_open_time is not None or booth_close_time is not None:
        current = await settings_service.get_booth_hours(db)
        await settings_service.set_booth_hours(
            db,
            booth_open_time or current.open_time,
            booth_close_time or current.close_time,
        )
    await db.commit()
    logger.info(
        "settings_updated",
        coupon_drop_rate=coupon_drop_rate,
        default_required_completions=default_required_completions,
        booth_open_time=booth_open_time,
        booth_close_time=booth_close_time,
    )
    return await get_game_settings(db)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """Delete a player with their submissions, coupons and archived scores."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)
    if user.is_admin:
        raise ConflictError("Cannot delete admin user")
    for model in (Submission, Coupon, ScoreArchive):
        await db.execute(
            delete(model).where(model.user_id == user_id),
            execution_options={"synchronize_session": False},
        )
    await db.delete(user)
    await db.commit()
    logger.info("user_deleted", user_id=user_id)


async def reset_user_password(db: AsyncSession, user_id: int, new_password: str) -> None:
    user = await get_user_by_id(db, user_id)
    if user is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)
    check_password(new_password)
    user.password_hash = hash_password(new_password)
    await db.commit()
    logger.info("user_password_reset", user_id=user_id)


# ---------------------------------------------------------------------------
# Full wipe
# ---------------------------------------------------------------------------


async def clear_all_data(db: AsyncSession) -> Word | None:
    """Delete all gameplay data and every non-admin account.

    Words are kept; a random one starts the new game. All sessions issued
    before the wipe are invalidated.
    """
    now = utcnow()
    no_sync = {"synchronize_session": False}
    for model in (Submission, Coupon, ScoreArchive):
        await db.execute(delete(model), execution_options=no_sync)
    await db.execute(delete(User).where(User.is_admin.is_(False)), execution_options=no_sync)
    await db.execute(update(Word).values(is_active=False, completed_at=None), execution_options=no_sync)
    await settings_service.record_reset(db, now)

    result = await db.execute(select(Word.id))
    word_ids = list(result.scalars().all())
    logger.info("all_data_cleared", words=len(word_ids))
    if not word_ids:
        await db.commit()
        return None
    return await activate_word(db, random.choice(word_ids))
