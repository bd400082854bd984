import math


def round_money(value: float) -> float:
    return round(value, 2)


def round_half_up(value: float) -> int:
    """Whole-unit rounding with halves going up, so 0.5 -> 1 and 2.5 -> 3."""
    return int(math.floor(value + 0.5))


def round_to_nearest(value: float, step: int) -> int:
    return round_half_up(value / step) * step
