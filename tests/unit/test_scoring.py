"""Unit tests for point calculation and the coupon draw."""

import random

import pytest

from photohunt.game.scoring import calculate_points, clamp_confidence, roll_coupon


class TestCalculatePoints:
    """Points are 1 + floor(confidence / 20)."""

    @pytest.mark.parametrize(
        ("confidence", "expected"),
        [(0, 1), (19, 1), (20, 2), (39, 2), (40, 3), (59, 3), (60, 4), (79, 4), (80, 5), (85, 5), (99, 5), (100, 6)],
    )
    def test_bands(self, confidence, expected):
        assert calculate_points(confidence) == expected

    def test_out_of_range_is_clamped(self):
        assert calculate_points(-15) == 1
        assert calculate_points(250) == 6

    def test_fractional_confidence_truncates(self):
        assert calculate_points(79.9) == 4


class TestClampConfidence:
    def test_clamps_low(self):
        assert clamp_confidence(-1) == 0

    def test_clamps_high(self):
        assert clamp_confidence(101) == 100

    def test_keeps_in_range(self):
        assert clamp_confidence(42) == 42


class _FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__()
        self.value = value

    def random(self) -> float:
        return self.value


class TestRollCoupon:
    """A coupon is awarded iff u*100 < drop_rate."""

    def test_rate_zero_never_awards(self):
        assert not any(roll_coupon(0) for _ in range(500))

    def test_rate_hundred_always_awards(self):
        assert all(roll_coupon(100) for _ in range(500))

    def test_boundary_is_strict(self):
        assert roll_coupon(30, _FixedRandom(0.29)) is True
        assert roll_coupon(30, _FixedRandom(0.30)) is False

    def test_lowest_draw_wins_any_positive_rate(self):
        assert roll_coupon(1, _FixedRandom(0.0)) is True
