"""Numeric helpers shared by the analyzer and the scorer."""

import math


def js_round(value: float) -> int:
    """Round half up, as the score formulas expect (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(value, high))
