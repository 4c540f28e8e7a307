"""Pydantic schemas for gameplay API requests and responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CurrentWordResponse(BaseModel):
    id: int
    word: str
    progress: float
    total_submissions: int
    required_submissions: int
    is_active: bool = True


class SubmissionStatusResponse(BaseModel):
    has_submitted: bool
    current_word: CurrentWordResponse


class SubmitRequest(BaseModel):
    image_data: str = Field(..., min_length=1, description="data:image/...;base64,... or bare base64")


class SubmitResponse(BaseModel):
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


class ConfirmCouponRequest(BaseModel):
    coupon_id: int = Field(..., ge=1)


class ConfirmCouponResponse(BaseModel):
    success: bool = True
    message: str


class LeaderboardEntry(BaseModel):
    rank: int
    username: str
    points: int
    coupons: int
    words_completed: int


class BoothStatusResponse(BaseModel):
    is_open: bool
    open_time: str
    close_time: str
    current_time: datetime
    timezone: str


class UserStatsResponse(BaseModel):
    id: int
    username: str
    points: int
    coupons: int
    words_completed: int
    rank: int | None = None
    is_admin: bool = False


class CouponResponse(BaseModel):
    id: int
    word: str
    coupon_code: str
    status: str
    prize_description: str
    created_at: datetime
    confirmed_at: datetime | None = None
