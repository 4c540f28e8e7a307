"""Request/response schemas for admin endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Words
# ---------------------------------------------------------------------------


class WordResponse(BaseModel):
    id: int
    word: str
    is_active: bool
    created_at: datetime | None = None
    activated_at: datetime | None = None
    completed_at: datetime | None = None
    required_completions: int | None = None
    effective_required_completions: int
    current_completions: int


class WordListResponse(BaseModel):
    words: list[WordResponse]


class AddWordRequest(BaseModel):
    word: str = Field(..., min_length=1, max_length=64)


class AddWordResponse(BaseModel):
    success: bool = True
    word_id: int


class WordsRequest(BaseModel):
    words: list[str] = Field(..., min_length=1)


class BulkWordsResponse(BaseModel):
    success: bool = True
    count: int
    message: str
    current_word: str | None = None


class RequiredCompletionsRequest(BaseModel):
    required_completions: int | None = Field(None, description="1-20, or null to use the default")


class WordChangeResponse(BaseModel):
    success: bool = True
    current_word: str | None = None
    word_progressed: bool = False
    message: str


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class SettingsResponse(BaseModel):
    coupon_drop_rate: int
    default_required_completions: int
    booth_open_time: str
    booth_close_time: str
    last_reset_time: str | None = None


class SettingsUpdateRequest(BaseModel):
    coupon_drop_rate: int | None = None
    default_required_completions: int | None = None
    booth_open_time: str | None = None
    booth_close_time: str | None = None


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class AdminUserResponse(BaseModel):
    id: int
    username: str
    is_admin: bool
    created_at: datetime | None = None
    last_active: datetime | None = None
    total_points: int
    total_coupons: int
    words_completed: int


class ResetPasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=1, max_length=128)


class AdminCouponResponse(BaseModel):
    id: int
    coupon_code: str
    word: str
    status: str
    created_at: datetime
    confirmed_at: datetime | None = None
    username: str


class AdminStatsResponse(BaseModel):
    users: list[AdminUserResponse]
    coupons: list[AdminCouponResponse]


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# ---------------------------------------------------------------------------
# Classifier test
# ---------------------------------------------------------------------------


class ClassifierTestRequest(BaseModel):
    image_data: str = Field(..., min_length=1)
    word: str = Field(..., min_length=1, max_length=64)


class ClassifierTestResponse(BaseModel):
    passed: bool
    confidence: int
    is_screen_capture: bool
    explanation: str
    points: int
    message: str
