"""Booth operating-hours window.

The window is half-open: a submission at exactly the opening minute is
accepted, one at exactly the closing minute is rejected. A closing time
earlier than the opening time wraps past midnight, and equal times mean the
booth never closes.
"""

from __future__ import annotations

from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from photohunt.config import get_settings
from photohunt.exceptions import ValidationError
from photohunt.game.settings_service import BoothHours


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Resolve a caller-supplied IANA zone name, or the configured booth zone."""
    zone_name = name or get_settings().booth_timezone
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        msg = f"Unknown timezone '{zone_name}'"
        raise ValidationError(msg) from e


def is_within_hours(moment: time, opens: time, closes: time) -> bool:
    """Check a local time-of-day against the [opens, closes) window."""
    moment = moment.replace(tzinfo=None)
    if opens == closes:
        return True
    if opens < closes:
        return opens <= moment < closes
    return moment >= opens or moment < closes


def local_now(zone: ZoneInfo, now: datetime | None = None) -> datetime:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(zone)


def is_booth_open(hours: BoothHours, zone: ZoneInfo, now: datetime | None = None) -> bool:
    return is_within_hours(local_now(zone, now).time(), hours.opens, hours.closes)
