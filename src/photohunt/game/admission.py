"""Submission admission controller.

Gates one player's attempt to complete the active word, then records the
result. Every eligibility check runs before anything is written; a
classifier failure or a negative verdict writes nothing. On a pass, the
submission, optional coupon and progression re-evaluation share one
transaction.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.classifier.service import BaseClassifier, decode_image
from photohunt.classifier.templates import verdict_message
from photohunt.db.models import Submission, User
from photohunt.exceptions import BoothClosedError, ForbiddenError
from photohunt.game.booth import is_booth_open, resolve_timezone
from photohunt.game.coupons import mint_coupon
from photohunt.game.progression import ActiveWord, evaluate_completion, get_active_word
from photohunt.game.scoring import calculate_points, roll_coupon
from photohunt.game.settings_service import get_booth_hours, get_coupon_drop_rate

logger = structlog.get_logger()


@dataclass
class SubmissionResult:
    success: bool
    message: str
    points: int = 0
    confidence: int = 0
    got_coupon: bool = False
    coupon_code: str | None = None
    word_progressed: bool = False
    next_word: str | None = None
    already_submitted: bool = False
    is_screen_capture: bool = False
    explanation: str | None = None


async def has_submitted(db: AsyncSession, user_id: int, word_id: int) -> bool:
    result = await db.execute(
        select(Submission.id).where(Submission.user_id == user_id, Submission.word_id == word_id)
    )
    return result.first() is not None


async def get_submission_status(db: AsyncSession, user: User) -> tuple[ActiveWord, bool]:
    """The active word and whether the user already completed it."""
    active = await get_active_word(db)
    return active, await has_submitted(db, user.id, active.word.id)


async def ensure_booth_open(db: AsyncSession, tz_name: str | None, now: datetime | None = None) -> None:
    hours = await get_booth_hours(db)
    zone = resolve_timezone(tz_name)
    if not is_booth_open(hours, zone, now):
        msg = f"The booth is closed. Opening hours are {hours.open_time}-{hours.close_time}."
        raise BoothClosedError(msg)


def _already_submitted(word: str) -> SubmissionResult:
    return SubmissionResult(
        success=False,
        already_submitted=True,
        message=f'You\'ve already found "{word}"! Wait for the next word.',
    )


async def submit(
    db: AsyncSession,
    classifier: BaseClassifier,
    user: User,
    image_data: str,
    *,
    tz_name: str | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> SubmissionResult:
    """Admit and record one photo submission for the active word.

    Raises:
        ForbiddenError: the user is an admin.
        BoothClosedError: outside booth hours.
        ValidationError: bad image payload or timezone.
        NoActiveWordError: no words exist.
        ClassifierUnavailableError: the classifier failed; nothing was written.
    """
    if user.is_admin:
        raise ForbiddenError("Admins cannot take part in the game")

    await ensure_booth_open(db, tz_name, now)
    image = decode_image(image_data)

    active = await get_active_word(db)
    word_id = active.word.id
    word_text = active.word.word

    if await has_submitted(db, user.id, word_id):
        return _already_submitted(word_text)

    # End the read transaction; the classifier call can take seconds.
    await db.commit()

    verdict = await classifier.classify(image.data, image.mime_type, word_text)
    message = verdict_message(word_text, passed=verdict.passed, is_screen_capture=verdict.is_screen_capture)

    if verdict.is_screen_capture or not verdict.passed:
        logger.info(
            "submission_rejected",
            user_id=user.id,
            word_id=word_id,
            confidence=verdict.confidence,
            is_screen_capture=verdict.is_screen_capture,
        )
        return SubmissionResult(
            success=False,
            message=message,
            confidence=verdict.confidence,
            is_screen_capture=verdict.is_screen_capture,
            explanation=verdict.explanation,
        )

    points = calculate_points(verdict.confidence)
    got_coupon = roll_coupon(await get_coupon_drop_rate(db), rng)

    # Recorded against the word seen before classification, even if it has rotated since
    db.add(Submission(
        user_id=user.id,
        word_id=word_id,
        word=word_text,
        points=points,
        confidence=verdict.confidence,
        created_at=now or datetime.now(timezone.utc),
    ))
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent submission for the same (user, word)
        await db.rollback()
        return _already_submitted(word_text)

    coupon_code = None
    if got_coupon:
        coupon = await mint_coupon(db, user.id, word_text)
        coupon_code = coupon.coupon_code

    next_word = await evaluate_completion(db)
    await db.commit()

    logger.info(
        "submission_accepted",
        user_id=user.id,
        word_id=word_id,
        points=points,
        confidence=verdict.confidence,
        got_coupon=got_coupon,
        word_progressed=next_word is not None,
    )
    return SubmissionResult(
        success=True,
        message=message,
        points=points,
        confidence=verdict.confidence,
        got_coupon=got_coupon,
        coupon_code=coupon_code,
        word_progressed=next_word is not None,
        next_word=next_word.word if next_word is not None else None,
        explanation=verdict.explanation,
    )
