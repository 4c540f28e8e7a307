"""Leaderboard and per-user stats.

Totals are aggregated from submissions, coupons and the score archive on every
read; there are no denormalized counters to drift out of sync.

Ranking: points DESC, coupons DESC, words completed DESC, then username ASC
as the final tiebreaker. Admins are never ranked.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from photohunt.db.models import Coupon, ScoreArchive, Submission, User

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


@dataclass
class PlayerStats:
    user_id: int
    username: str
    is_admin: bool
    points: int
    coupons: int
    words_completed: int
    created_at: datetime | None = None
    last_active: datetime | None = None
    rank: int | None = None


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


def rank_players(players: list[PlayerStats]) -> list[PlayerStats]:
    """Sort players deterministically and assign 1-indexed ranks."""

    def sort_key(p: PlayerStats) -> tuple[int, int, int, str]:
        return (-p.points, -p.coupons, -p.words_completed, p.username)

    ranked = sorted(players, key=sort_key)
    for idx, p in enumerate(ranked):
        p.rank = idx + 1
    return ranked


def _stats_query() -> Select:
    live = (
        select(
            Submission.user_id.label("user_id"),
            func.sum(Submission.points).label("points"),
            func.count(Submission.id).label("completed"),
        )
        .group_by(Submission.user_id)
        .subquery()
    )
    archived = (
        select(
            ScoreArchive.user_id.label("user_id"),
            func.sum(ScoreArchive.points).label("points"),
            func.sum(ScoreArchive.words_completed).label("completed"),
        )
        .group_by(ScoreArchive.user_id)
        .subquery()
    )
    coupons = (
        select(
            Coupon.user_id.label("user_id"),
            func.count(Coupon.id).label("coupons"),
        )
        .group_by(Coupon.user_id)
        .subquery()
    )
    return (
        select(
            User.id,
            User.username,
            User.is_admin,
            User.created_at,
            User.last_active,
            (func.coalesce(live.c.points, 0) + func.coalesce(archived.c.points, 0)).label("points"),
            func.coalesce(coupons.c.coupons, 0).label("coupons"),
            (func.coalesce(live.c.completed, 0) + func.coalesce(archived.c.completed, 0)).label("completed"),
        )
        .outerjoin(live, live.c.user_id == User.id)
        .outerjoin(archived, archived.c.user_id == User.id)
        .outerjoin(coupons, coupons.c.user_id == User.id)
    )


def _to_stats(row) -> PlayerStats:  # noqa: ANN001
    return PlayerStats(
        user_id=row.id,
        username=row.username,
        is_admin=bool(row.is_admin),
        points=int(row.points or 0),
        coupons=int(row.coupons or 0),
        words_completed=int(row.completed or 0),
        created_at=row.created_at,
        last_active=row.last_active,
    )


async def _ranked_players(db: AsyncSession) -> list[PlayerStats]:
    result = await db.execute(_stats_query().where(User.is_admin.is_(False)))
    return rank_players([_to_stats(row) for row in result.all()])


async def get_leaderboard(db: AsyncSession, limit: int | None = DEFAULT_LIMIT) -> list[PlayerStats]:
    """Top players, at most MAX_LIMIT."""
    ranked = await _ranked_players(db)
    return ranked[: clamp_limit(limit)]


async def get_user_stats(db: AsyncSession, user: User) -> PlayerStats:
    """Totals for one user. Admins get totals without a rank."""
    if not user.is_admin:
        for player in await _ranked_players(db):
            if player.user_id == user.id:
                return player
    result = await db.execute(_stats_query().where(User.id == user.id))
    row = result.one_or_none()
    if row is None:
        return PlayerStats(user_id=user.id, username=user.username, is_admin=user.is_admin,
                           points=0, coupons=0, words_completed=0)
    return _to_stats(row)


async def get_all_user_stats(db: AsyncSession) -> list[PlayerStats]:
    """Every account (admins included) by points, for the admin dashboard."""
    result = await db.execute(_stats_query())
    players = [_to_stats(row) for row in result.all()]
    return sorted(players, key=lambda p: (-p.points, p.username))
