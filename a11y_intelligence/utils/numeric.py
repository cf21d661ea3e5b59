"""
Numeric helpers shared by the confidence and score calculators.

Scores are reported as whole numbers and halves always round up
(50.5 -> 51), unlike Python's built-in round() which rounds to even.
"""

import math
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, with .5 rounding towards +infinity."""
    return int(math.floor(value + 0.5))


def clamp(value: Number, low: Number = 0, high: Number = 100) -> Number:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))
