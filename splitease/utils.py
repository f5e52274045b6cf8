import math

# absolute tolerance for every money comparison
TOLERANCE = 0.01


def round_currency(value: float) -> float:
    """Round to cents, halves away from zero (never banker's rounding)."""
    cents = math.floor(abs(value) * 100 + 0.5)
    return math.copysign(cents, value) / 100 if cents else 0.0


def amounts_equal(a: float, b: float) -> bool:
    return abs(a - b) < TOLERANCE


def is_zero(value: float) -> bool:
    return amounts_equal(value, 0.0)
