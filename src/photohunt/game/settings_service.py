"""Runtime game settings backed by the game_settings key/value table.

Keys are read and written individually. Missing or unparsable values fall back
to the defaults below.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.db.models import GameSetting, utcnow
from photohunt.exceptions import ValidationError

COUPON_DROP_RATE = "coupon_drop_rate"
DEFAULT_REQUIRED_COMPLETIONS = "default_required_completions"
BOOTH_OPEN_TIME = "booth_open_time"
BOOTH_CLOSE_TIME = "booth_close_time"
LAST_RESET_TIME = "last_reset_time"

DEFAULT_COUPON_DROP_RATE = 30
DEFAULT_COMPLETIONS = 5
DEFAULT_OPEN_TIME = "09:00"
DEFAULT_CLOSE_TIME = "18:00"

COUPON_RATE_RANGE = (0, 100)
COMPLETIONS_RANGE = (1, 20)

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class BoothHours:
    open_time: str
    close_time: str

    @property
    def opens(self) -> time:
        return parse_hhmm(self.open_time)

    @property
    def closes(self) -> time:
        return parse_hhmm(self.close_time)


def parse_hhmm(value: str) -> time:
    """Parse a strict 24-hour HH:MM string."""
    match = _HHMM.match(value or "")
    if match is None:
        msg = f"Invalid time '{value}', expected HH:MM"
        raise ValidationError(msg)
    return time(int(match.group(1)), int(match.group(2)))


async def get_setting(db: AsyncSession, key: str) -> str | None:
    result = await db.execute(select(GameSetting.value).where(GameSetting.key == key))
    return result.scalar_one_or_none()


async def set_setting(db: AsyncSession, key: str, value: str) -> None:
    """Upsert a setting. The caller commits."""
    row = await db.get(GameSetting, key)
    if row is None:
        db.add(GameSetting(key=key, value=value, updated_at=utcnow()))
    else:
        row.value = value
        row.updated_at = utcnow()
    await db.flush()


async def _get_int(db: AsyncSession, key: str, default: int) -> int:
    raw = await get_setting(db, key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _check_range(name: str, value: int, bounds: tuple[int, int]) -> None:
    low, high = bounds
    if not low <= value <= high:
        msg = f"{name} must be between {low} and {high}"
        raise ValidationError(msg)


# ---------------------------------------------------------------------------
# Coupon drop rate
# ---------------------------------------------------------------------------


async def get_coupon_drop_rate(db: AsyncSession) -> int:
    return await _get_int(db, COUPON_DROP_RATE, DEFAULT_COUPON_DROP_RATE)


async def set_coupon_drop_rate(db: AsyncSession, rate: int) -> None:
    _check_range("Coupon drop rate", rate, COUPON_RATE_RANGE)
    await set_setting(db, COUPON_DROP_RATE, str(rate))


# ---------------------------------------------------------------------------
# Required completions
# ---------------------------------------------------------------------------


async def get_default_required_completions(db: AsyncSession) -> int:
    return await _get_int(db, DEFAULT_REQUIRED_COMPLETIONS, DEFAULT_COMPLETIONS)


async def set_default_required_completions(db: AsyncSession, completions: int) -> None:
    validate_required_completions(completions)
    await set_setting(db, DEFAULT_REQUIRED_COMPLETIONS, str(completions))


def validate_required_completions(completions: int) -> None:
    _check_range("Required completions", completions, COMPLETIONS_RANGE)


# ---------------------------------------------------------------------------
# Booth hours
# ---------------------------------------------------------------------------


async def get_booth_hours(db: AsyncSession) -> BoothHours:
    open_time = await get_setting(db, BOOTH_OPEN_TIME) or DEFAULT_OPEN_TIME
    close_time = await get_setting(db, BOOTH_CLOSE_TIME) or DEFAULT_CLOSE_TIME
    return BoothHours(open_time=open_time, close_time=close_time)


async def set_booth_hours(db: AsyncSession, open_time: str, close_time: str) -> BoothHours:
    parse_hhmm(open_time)
    parse_hhmm(close_time)
    await set_setting(db, BOOTH_OPEN_TIME, open_time)
    await set_setting(db, BOOTH_CLOSE_TIME, close_time)
    return BoothHours(open_time=open_time, close_time=close_time)


# ---------------------------------------------------------------------------
# Last reset
# ---------------------------------------------------------------------------


async def get_last_reset_time(db: AsyncSession) -> datetime | None:
    """Time of the last cycle reset or data wipe, or None if never reset."""
    raw = await get_setting(db, LAST_RESET_TIME)
    if raw is None:
        return None
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def record_reset(db: AsyncSession, when: datetime | None = None) -> datetime:
    when = when or utcnow()
    await set_setting(db, LAST_RESET_TIME, when.isoformat())
    return when
