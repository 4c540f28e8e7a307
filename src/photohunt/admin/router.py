"""Admin API — all /api/admin/* endpoints. Every route requires the admin role."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.admin import service
from photohunt.admin.schemas import (
    AddWordRequest,
    AddWordResponse,
    AdminCouponResponse,
    AdminStatsResponse,
    AdminUserResponse,
    BulkWordsResponse,
    ClassifierTestRequest,
    ClassifierTestResponse,
    MessageResponse,
    RequiredCompletionsRequest,
    ResetPasswordRequest,
    SettingsResponse,
    SettingsUpdateRequest,
    WordChangeResponse,
    WordListResponse,
    WordResponse,
    WordsRequest,
)
from photohunt.auth.dependencies import require_admin
from photohunt.classifier.service import BaseClassifier, decode_image, get_classifier
from photohunt.classifier.templates import verdict_message
from photohunt.database import get_session
from photohunt.game.coupons import list_all_coupons
from photohunt.game.leaderboard import PlayerStats, get_all_user_stats
from photohunt.game.progression import activate_word, advance_word, reset_cycle
from photohunt.game.scoring import calculate_points

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


def _word_response(progress: service.WordProgress) -> WordResponse:
    word = progress.word
    return WordResponse(
        id=word.id,
        word=word.word,
        is_active=word.is_active,
        created_at=word.created_at,
        activated_at=word.activated_at,
        completed_at=word.completed_at,
        required_completions=word.required_completions,
        effective_required_completions=progress.required_completions,
        current_completions=progress.current_completions,
    )


def _user_response(stats: PlayerStats) -> AdminUserResponse:
    return AdminUserResponse(
        id=stats.user_id,
        username=stats.username,
        is_admin=stats.is_admin,
        created_at=stats.created_at,
        last_active=stats.last_active,
        total_points=stats.points,
        total_coupons=stats.coupons,
        words_completed=stats.words_completed,
    )


# ---------------------------------------------------------------------------
# Words
# ---------------------------------------------------------------------------


@router.get("/words", response_model=WordListResponse)
async def list_words(db: AsyncSession = Depends(get_session)) -> WordListResponse:
    """All words with their completion progress."""
    return WordListResponse(words=[_word_response(p) for p in await service.list_words(db)])


@router.post("/words", response_model=AddWordResponse)
async def add_word(body: AddWordRequest, db: AsyncSession = Depends(get_session)) -> AddWordResponse:
    word = await service.add_word(db, body.word)
    return AddWordResponse(word_id=word.id)


@router.post("/words/bulk", response_model=BulkWordsResponse)
async def bulk_add_words(body: WordsRequest, db: AsyncSession = Depends(get_session)) -> BulkWordsResponse:
    """Add many words, skipping ones that already exist."""
    count = await service.bulk_add_words(db, body.words)
    return BulkWordsResponse(count=count, message=f"{count} words added")


@router.put("/words", response_model=BulkWordsResponse)
async def bulk_replace_words(body: WordsRequest, db: AsyncSession = Depends(get_session)) -> BulkWordsResponse:
    """Replace the entire word list and start a new cycle."""
    count, active = await service.bulk_replace_words(db, body.words)
    return BulkWordsResponse(count=count, message=f"All words replaced ({count})", current_word=active.word)


@router.delete("/words/{word_id}", response_model=MessageResponse)
async def remove_word(word_id: int, db: AsyncSession = Depends(get_session)) -> MessageResponse:
    await service.remove_word(db, word_id)
    return MessageResponse(message="Word removed")


@router.patch("/words/{word_id}", response_model=WordChangeResponse)
async def set_required_completions(
    word_id: int,
    body: RequiredCompletionsRequest,
    db: AsyncSession = Depends(get_session),
) -> WordChangeResponse:
    """Override a word's required completions (null restores the default)."""
    word, next_word = await service.set_word_required_completions(db, word_id, body.required_completions)
    return WordChangeResponse(
        current_word=next_word.word if next_word else None,
        word_progressed=next_word is not None,
        message=f"Required completions for '{word.word}' updated",
    )


@router.post("/words/{word_id}/activate", response_model=WordChangeResponse)
async def activate(word_id: int, db: AsyncSession = Depends(get_session)) -> WordChangeResponse:
    """Make a word the active one, regardless of its completion count."""
    word = await activate_word(db, word_id)
    return WordChangeResponse(current_word=word.word, word_progressed=True, message=f"'{word.word}' is now active")


@router.post("/words/next", response_model=WordChangeResponse)
async def next_word(db: AsyncSession = Depends(get_session)) -> WordChangeResponse:
    """Rotate to the next word now."""
    word = await advance_word(db)
    return WordChangeResponse(current_word=word.word, word_progressed=True, message="Moved to the next word")


@router.post("/words/reset-cycle", response_model=WordChangeResponse)
async def reset_word_cycle(db: AsyncSession = Depends(get_session)) -> WordChangeResponse:
    """Clear submission history so every word can be played again."""
    word = await reset_cycle(db)
    return WordChangeResponse(
        current_word=word.word,
        word_progressed=True,
        message="Word cycle reset. All words are available again.",
    )


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@router.get("/settings", response_model=SettingsResponse)
async def get_settings_endpoint(db: AsyncSession = Depends(get_session)) -> SettingsResponse:
    view = await service.get_game_settings(db)
    return SettingsResponse(**vars(view))


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(body: SettingsUpdateRequest, db: AsyncSession = Depends(get_session)) -> SettingsResponse:
    """Update coupon rate, default completions and/or booth hours."""
    view = await service.update_game_settings(
        db,
        coupon_drop_rate=body.coupon_drop_rate,
        default_required_completions=body.default_required_completions,
        booth_open_time=body.booth_open_time,
        booth_close_time=body.booth_close_time,
    )
    return SettingsResponse(**vars(view))


# ---------------------------------------------------------------------------
# Users & stats
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(db: AsyncSession = Depends(get_session)) -> list[AdminUserResponse]:
    return [_user_response(s) for s in await get_all_user_stats(db)]


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: int, db: AsyncSession = Depends(get_session)) -> MessageResponse:
    await service.delete_user(db, user_id)
    return MessageResponse(message="User deleted successfully")


@router.post("/users/{user_id}/reset-password", response_model=MessageResponse)
async def reset_password(
    user_id: int,
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await service.reset_user_password(db, user_id, body.new_password)
    return MessageResponse(message="Password reset successfully")


@router.get("/stats", response_model=AdminStatsResponse)
async def stats(db: AsyncSession = Depends(get_session)) -> AdminStatsResponse:
    """Every user's totals and every coupon."""
    users = [_user_response(s) for s in await get_all_user_stats(db)]
    coupons = [
        AdminCouponResponse(
            id=c.id,
            coupon_code=c.coupon_code,
            word=c.word,
            status=c.status,
            created_at=c.created_at,
            confirmed_at=c.confirmed_at,
            username=username,
        )
        for c, username in await list_all_coupons(db)
    ]
    return AdminStatsResponse(users=users, coupons=coupons)


@router.post("/clear-all", response_model=WordChangeResponse)
async def clear_all(db: AsyncSession = Depends(get_session)) -> WordChangeResponse:
    """Wipe all gameplay data and player accounts."""
    word = await service.clear_all_data(db)
    return WordChangeResponse(
        current_word=word.word if word else None,
        word_progressed=word is not None,
        message="All data has been deleted",
    )


# ---------------------------------------------------------------------------
# Classifier test
# ---------------------------------------------------------------------------


@router.post("/classifier/test", response_model=ClassifierTestResponse)
async def classifier_test(
    body: ClassifierTestRequest,
    classifier: BaseClassifier = Depends(get_classifier),
) -> ClassifierTestResponse:
    """Run the classifier on an image without recording anything."""
    image = decode_image(body.image_data)
    word = body.word.strip().lower()
    verdict = await classifier.classify(image.data, image.mime_type, word)
    return ClassifierTestResponse(
        passed=verdict.passed,
        confidence=verdict.confidence,
        is_screen_capture=verdict.is_screen_capture,
        explanation=verdict.explanation,
        points=calculate_points(verdict.confidence) if verdict.passed else 0,
        message=verdict_message(word, passed=verdict.passed, is_screen_capture=verdict.is_screen_capture),
    )
