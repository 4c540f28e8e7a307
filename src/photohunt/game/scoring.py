"""Point and coupon-draw rules for a verified submission.

Points by classifier confidence:
  0-19   → 1
  20-39  → 2
  40-59  → 3
  60-79  → 4
  80-99  → 5
  100    → 6
"""

from __future__ import annotations

import random

BASE_POINTS = 1
CONFIDENCE_STEP = 20

_rng = random.SystemRandom()


def clamp_confidence(confidence: float) -> int:
    """Clamp a classifier confidence into the integer range 0-100."""
    return int(min(max(confidence, 0), 100))


def calculate_points(confidence: float) -> int:
    """Points awarded for a passing photo: 1 + floor(confidence / 20)."""
    return BASE_POINTS + clamp_confidence(confidence) // CONFIDENCE_STEP


def roll_coupon(drop_rate: int, rng: random.Random | None = None) -> bool:
    """Draw u in [0, 100); a coupon is awarded iff u < drop_rate."""
    draw = (rng or _rng).random() * 100
    return draw < drop_rate
