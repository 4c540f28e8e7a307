"""Gameplay API — all /api/game/* endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.auth.dependencies import get_current_user
from photohunt.classifier.service import BaseClassifier, get_classifier
from photohunt.database import get_session
from photohunt.db.models import User
from photohunt.exceptions import NotFoundError
from photohunt.game.admission import get_submission_status, submit
from photohunt.game.booth import is_booth_open, resolve_timezone
from photohunt.game.coupons import confirm_coupon, list_user_coupons
from photohunt.game.leaderboard import DEFAULT_LIMIT, get_leaderboard, get_user_stats
from photohunt.game.progression import ActiveWord, get_active_word
from photohunt.game.schemas import (
    BoothStatusResponse,
    ConfirmCouponRequest,
    ConfirmCouponResponse,
    CouponResponse,
    CurrentWordResponse,
    LeaderboardEntry,
    SubmissionStatusResponse,
    SubmitRequest,
    SubmitResponse,
    UserStatsResponse,
)
from photohunt.game.settings_service import get_booth_hours

router = APIRouter(prefix="/api/game", tags=["Game"])


def _word_response(active: ActiveWord) -> CurrentWordResponse:
    return CurrentWordResponse(
        id=active.word.id,
        word=active.word.word,
        progress=active.progress,
        total_submissions=active.current_completions,
        required_submissions=active.required_completions,
    )


@router.get("/current-word", response_model=CurrentWordResponse)
async def current_word(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CurrentWordResponse:
    """The shared challenge word and its progress toward rotation."""
    return _word_response(await get_active_word(db))


@router.get("/submission-status", response_model=SubmissionStatusResponse)
async def submission_status(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SubmissionStatusResponse:
    """Whether the caller already completed the active word."""
    active, submitted = await get_submission_status(db, user)
    return SubmissionStatusResponse(has_submitted=submitted, current_word=_word_response(active))


@router.post("/submit", response_model=SubmitResponse)
async def submit_photo(
    body: SubmitRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    classifier: BaseClassifier = Depends(get_classifier),
    x_timezone: str | None = Header(None),
) -> SubmitResponse:
    """Submit a photo for the active word."""
    result = await submit(db, classifier, user, body.image_data, tz_name=x_timezone)
    return SubmitResponse(
        success=result.success,
        message=result.message,
        points=result.points,
        confidence=result.confidence,
        got_coupon=result.got_coupon,
        coupon_code=result.coupon_code,
        word_progressed=result.word_progressed,
        next_word=result.next_word,
        already_submitted=result.already_submitted,
        is_screen_capture=result.is_screen_capture,
        explanation=result.explanation,
    )


@router.post("/confirm-coupon", response_model=ConfirmCouponResponse)
async def confirm_coupon_endpoint(
    body: ConfirmCouponRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ConfirmCouponResponse:
    """Confirm one of the caller's pending coupons."""
    if not await confirm_coupon(db, user.id, body.coupon_id):
        raise NotFoundError("Coupon not found or already confirmed")
    return ConfirmCouponResponse(
        message="Coupon confirmed! You can now visit the booth to claim your prize."
    )


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def leaderboard(
    limit: int = Query(DEFAULT_LIMIT),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[LeaderboardEntry]:
    """Top players; limit is clamped to 1-50."""
    players = await get_leaderboard(db, limit)
    return [
        LeaderboardEntry(
            rank=p.rank or 0,
            username=p.username,
            points=p.points,
            coupons=p.coupons,
            words_completed=p.words_completed,
        )
        for p in players
    ]


@router.get("/booth-status", response_model=BoothStatusResponse)
async def booth_status(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    x_timezone: str | None = Header(None),
) -> BoothStatusResponse:
    """Whether the booth is open now, plus configured hours."""
    hours = await get_booth_hours(db)
    zone = resolve_timezone(x_timezone)
    now = datetime.now(timezone.utc)
    return BoothStatusResponse(
        is_open=is_booth_open(hours, zone, now),
        open_time=hours.open_time,
        close_time=hours.close_time,
        current_time=now,
        timezone=zone.key,
    )


@router.get("/user-stats", response_model=UserStatsResponse)
async def user_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserStatsResponse:
    """The caller's totals and rank."""
    stats = await get_user_stats(db, user)
    return UserStatsResponse(
        id=user.id,
        username=user.username,
        points=stats.points,
        coupons=stats.coupons,
        words_completed=stats.words_completed,
        rank=stats.rank,
        is_admin=user.is_admin,
    )


@router.get("/user-coupons", response_model=list[CouponResponse])
async def user_coupons(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[CouponResponse]:
    """The caller's coupons, newest first."""
    coupons = await list_user_coupons(db, user.id)
    return [CouponResponse.model_validate(c, from_attributes=True) for c in coupons]
