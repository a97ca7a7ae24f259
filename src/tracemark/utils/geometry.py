"""Small numeric helpers shared by the tracing stages."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity."""
    return int(math.floor(value + 0.5))


def clamp(value, low, high):
    """Clamp ``value`` into [low, high]."""
    return low if value < low else high if value > high else value
