"""Word progression engine.

Maintains the single active word and decides when and how to rotate it.

Rotation prefers a word whose own submission count is still below its
threshold, chosen uniformly at random. When every word has reached its
threshold (a full cycle) the engine archives per-user scores, purges all
submissions, records the reset time and activates any word at random.

The deactivate/activate pair always lands in one transaction. Rotation first
re-checks that the outgoing word is still active with a conditional UPDATE,
so a second concurrent rotation for the same word is a no-op.

Functions that end in a commit: get_active_word (so a self-heal or repair
sticks), activate_word, advance_word, reset_cycle. evaluate_completion runs inside the
caller's transaction and leaves the commit to the caller.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.db.models import ScoreArchive, Submission, Word, utcnow
from photohunt.exceptions import NoActiveWordError, NoWordsAvailableError, NotFoundError
from photohunt.game.settings_service import get_default_required_completions, record_reset

logger = structlog.get_logger()

# Bulk statements below re-read rows with populate_existing instead of syncing the session.
_NO_SYNC = {"synchronize_session": False}


@dataclass
class ActiveWord:
    word: Word
    current_completions: int
    required_completions: int

    @property
    def progress(self) -> float:
        if self.required_completions <= 0:
            return 1.0
        return min(self.current_completions / self.required_completions, 1.0)


def required_completions_for(word: Word, default: int) -> int:
    """Per-word override, or the global default."""
    return word.required_completions if word.required_completions is not None else default


async def count_submissions(db: AsyncSession, word_id: int) -> int:
    result = await db.execute(
        select(func.count(Submission.id)).where(Submission.word_id == word_id)
    )
    return result.scalar_one()


async def _find_active(db: AsyncSession) -> Word | None:
    result = await db.execute(
        select(Word)
        .where(Word.is_active.is_(True))
        .order_by(Word.activated_at.desc(), Word.id.desc())
        .execution_options(populate_existing=True)
    )
    active = list(result.scalars().all())
    if not active:
        return None
    if len(active) > 1:
        # Repair: keep the most recently activated word.
        keep = active[0]
        await db.execute(
            update(Word).where(Word.is_active.is_(True), Word.id != keep.id).values(is_active=False),
            execution_options=_NO_SYNC,
        )
        logger.warning("multiple_active_words_repaired", kept_word_id=keep.id, count=len(active))
    return active[0]


async def _under_threshold_ids(db: AsyncSession, default: int, exclude_id: int | None) -> list[int]:
    """Ids of words whose submission count is strictly below their own threshold."""
    threshold = func.coalesce(Word.required_completions, default)
    stmt = (
        select(Word.id)
        .outerjoin(Submission, Submission.word_id == Word.id)
        .group_by(Word.id, Word.required_completions)
        .having(func.count(Submission.id) < threshold)
        .order_by(Word.id)
    )
    if exclude_id is not None:
        stmt = stmt.where(Word.id != exclude_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def _all_word_ids(db: AsyncSession) -> list[int]:
    result = await db.execute(select(Word.id).order_by(Word.id))
    return list(result.scalars().all())


async def _activate(db: AsyncSession, word_id: int, now: datetime) -> Word:
    await db.execute(
        update(Word).where(Word.is_active.is_(True), Word.id != word_id).values(is_active=False),
        execution_options=_NO_SYNC,
    )
    await db.execute(
        update(Word).where(Word.id == word_id).values(is_active=True, activated_at=now),
        execution_options=_NO_SYNC,
    )
    word = await db.get(Word, word_id, populate_existing=True)
    if word is None:
        msg = f"Word {word_id} disappeared during activation"
        raise NoWordsAvailableError(msg)
    return word


# ---------------------------------------------------------------------------
# History purge (cycle reset)
# ---------------------------------------------------------------------------


async def archive_scores(db: AsyncSession, now: datetime) -> int:
    """Snapshot per-user points and completions before submissions are purged.

    Returns the number of users archived.
    """
    result = await db.execute(
        select(
            Submission.user_id,
            func.sum(Submission.points),
            func.count(Submission.id),
        ).group_by(Submission.user_id)
    )
    rows = result.all()
    for user_id, points, completed in rows:
        db.add(ScoreArchive(
            user_id=user_id,
            points=int(points or 0),
            words_completed=int(completed or 0),
            archived_at=now,
        ))
    await db.flush()
    return len(rows)


async def purge_submissions(db: AsyncSession, now: datetime) -> None:
    """Archive scores, delete every submission and record the reset time.

    Sessions issued before `now` are rejected from here on.
    """
    archived = await archive_scores(db, now)
    await db.execute(delete(Submission), execution_options=_NO_SYNC)
    await db.execute(update(Word).values(completed_at=None), execution_options=_NO_SYNC)
    await record_reset(db, now)
    logger.info("cycle_reset", archived_users=archived, reset_time=now.isoformat())


# ---------------------------------------------------------------------------
# Selection and rotation
# ---------------------------------------------------------------------------


async def _select_and_activate(db: AsyncSession, exclude_id: int | None, now: datetime) -> Word:
    """Activate an under-threshold word, or reset the cycle and activate any word."""
    all_ids = await _all_word_ids(db)
    if not all_ids:
        raise NoWordsAvailableError("No words available. Add words in the admin panel.")

    default = await get_default_required_completions(db)
    candidates = await _under_threshold_ids(db, default, exclude_id)
    if candidates:
        chosen = random.choice(candidates)
    else:
        await purge_submissions(db, now)
        chosen = random.choice(all_ids)
    return await _activate(db, chosen, now)


async def rotate(db: AsyncSession, outgoing_word_id: int) -> Word | None:
    """Rotate away from `outgoing_word_id`.

    Returns the newly active word, or None if the outgoing word was no longer
    active (another request already rotated it).
    """
    now = utcnow()
    result = await db.execute(
        update(Word)
        .where(Word.id == outgoing_word_id, Word.is_active.is_(True))
        .values(is_active=False, completed_at=now),
        execution_options=_NO_SYNC,
    )
    if result.rowcount == 0:
        logger.info("rotation_skipped", word_id=outgoing_word_id)
        return None

    new_word = await _select_and_activate(db, outgoing_word_id, now)
    logger.info("word_rotated", from_word_id=outgoing_word_id, to_word_id=new_word.id, to_word=new_word.word)
    return new_word


async def get_active_word(db: AsyncSession) -> ActiveWord:
    """Return the active word with its completion count.

    If no word is active the engine activates one before returning. Raises
    NoActiveWordError if the word table is empty.
    """
    word = await _find_active(db)
    if word is None:
        try:
            word = await _select_and_activate(db, None, utcnow())
        except NoWordsAvailableError as e:
            raise NoActiveWordError("No active word found") from e
        logger.info("active_word_self_healed", word_id=word.id, word=word.word)

    default = await get_default_required_completions(db)
    active = ActiveWord(
        word=word,
        current_completions=await count_submissions(db, word.id),
        required_completions=required_completions_for(word, default),
    )
    await db.commit()
    return active


async def evaluate_completion(db: AsyncSession) -> Word | None:
    """Rotate if the active word reached its threshold. Does not commit.

    Returns the new active word if a rotation happened.
    """
    word = await _find_active(db)
    if word is None:
        return None
    default = await get_default_required_completions(db)
    current = await count_submissions(db, word.id)
    if current < required_completions_for(word, default):
        return None
    return await rotate(db, word.id)


# ---------------------------------------------------------------------------
# Admin overrides
# ---------------------------------------------------------------------------


async def activate_word(db: AsyncSession, word_id: int) -> Word:
    """Activate a specific word regardless of its completion count."""
    if await db.get(Word, word_id) is None:
        msg = f"Word {word_id} not found"
        raise NotFoundError(msg)
    word = await _activate(db, word_id, utcnow())
    await db.commit()
    logger.info("word_activated_manually", word_id=word.id, word=word.word)
    return word


async def advance_word(db: AsyncSession) -> Word:
    """Rotate to the next word regardless of the current word's completion count."""
    current = await _find_active(db)
    if current is None:
        word = await _select_and_activate(db, None, utcnow())
    else:
        word = await rotate(db, current.id)
        if word is None:
            # Rotated concurrently; report whatever is active now.
            word = await _find_active(db)
            if word is None:
                raise NoWordsAvailableError("No active word after rotation")
    await db.commit()
    return word


async def reset_cycle(db: AsyncSession) -> Word:
    """Purge submission history and start a new cycle on a random word."""
    all_ids = await _all_word_ids(db)
    if not all_ids:
        raise NoWordsAvailableError("No words available. Add words in the admin panel.")
    now = utcnow()
    await purge_submissions(db, now)
    word = await _activate(db, random.choice(all_ids), now)
    await db.commit()
    return word
