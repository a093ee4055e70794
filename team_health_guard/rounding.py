"""Rounding helpers shared by the scorers."""

import math


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round half up (2.5 -> 3), unlike the built-in banker's ``round``."""
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def round_score(value: float) -> int:
    return int(round_half_up(value))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))
