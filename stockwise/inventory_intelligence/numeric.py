"""Small numeric helpers shared by the inventory engines."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def safe_divide(numerator: float, denominator: float) -> float:
    """Neutral-value division: 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator
