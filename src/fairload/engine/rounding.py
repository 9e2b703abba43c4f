"""Rounding helpers.

Percentages are rounded to one decimal and scores to integers at fixed
points in the pipeline. Rounding is half-up (2.25 -> 2.3, 0.5 -> 1), not
Python's round-half-to-even, so outputs stay comparable across platforms.
"""

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round a value half-up to the given number of decimals."""
    factor = 10 ** digits
    # Nudge by a tiny epsilon so 2.675-style binary representation errors
    # still round up.
    return math.floor(value * factor + 0.5 + 1e-9) / factor


def round_score(value: float) -> int:
    """Round a value half-up to an integer score."""
    return int(round_half_up(value, 0))


def round_percentage(value: float) -> float:
    """Round a percentage half-up to one decimal."""
    return round_half_up(value, 1)
