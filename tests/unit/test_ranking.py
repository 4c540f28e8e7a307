"""Unit tests for leaderboard ordering."""

from photohunt.game.leaderboard import MAX_LIMIT, PlayerStats, clamp_limit, rank_players


def _player(username: str, points: int = 0, coupons: int = 0, words: int = 0) -> PlayerStats:
    return PlayerStats(
        user_id=hash(username) & 0xFFFF,
        username=username,
        is_admin=False,
        points=points,
        coupons=coupons,
        words_completed=words,
    )


class TestRankPlayers:
    def test_points_first(self):
        ranked = rank_players([_player("a", points=3), _player("b", points=9)])
        assert [p.username for p in ranked] == ["b", "a"]
        assert [p.rank for p in ranked] == [1, 2]

    def test_coupons_break_point_ties(self):
        ranked = rank_players([_player("a", points=5), _player("b", points=5, coupons=1)])
        assert ranked[0].username == "b"

    def test_words_break_coupon_ties(self):
        ranked = rank_players([
            _player("a", points=5, coupons=1, words=1),
            _player("b", points=5, coupons=1, words=2),
        ])
        assert ranked[0].username == "b"

    def test_username_is_final_tiebreak(self):
        ranked = rank_players([_player("zed", points=4), _player("amy", points=4), _player("kim", points=4)])
        assert [p.username for p in ranked] == ["amy", "kim", "zed"]
        assert [p.rank for p in ranked] == [1, 2, 3]

    def test_empty(self):
        assert rank_players([]) == []


class TestClampLimit:
    def test_default(self):
        assert clamp_limit(None) == 10

    def test_upper_bound(self):
        assert clamp_limit(500) == MAX_LIMIT

    def test_lower_bound(self):
        assert clamp_limit(0) == 1
        assert clamp_limit(-5) == 1

    def test_within_range(self):
        assert clamp_limit(25) == 25
