# stock_forecast/utils/math_utils.py
import math
from typing import Optional

MISSING = 'missing'
INVALID = 'invalid'

def to_finite_number(value) -> Optional[float]:
    """Convert a loosely typed value to a finite float.

    Ints, floats and numeric strings are accepted. Booleans, NaN and
    infinities are rejected.

    Args:
        value: Value to convert

    Returns:
        Float value or None if the value is not a finite number
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None

    return number

def coerce_non_negative(value, default: float = 0.0):
    """Coerce a value to a finite, non-negative float.

    Args:
        value: Raw value
        default: Value used when the raw value is missing or invalid

    Returns:
        Tuple of (number, reason) where reason is None, 'missing' or 'invalid'
    """
    if value is None:
        return default, MISSING

    number = to_finite_number(value)
    if number is None or number < 0:
        return default, INVALID

    return number, None

def coerce_non_negative_int(value, default: int = 0, upper: Optional[int] = None):
    """Coerce a value to a non-negative integer, flooring fractional input.

    Args:
        value: Raw value
        default: Value used when the raw value is missing or invalid
        upper: Optional bound; larger values are capped and reported invalid

    Returns:
        Tuple of (integer, reason) where reason is None, 'missing' or 'invalid'
    """
    number, reason = coerce_non_negative(value, default)
    result = int(math.floor(number))
    if upper is not None and result > upper:
        return upper, INVALID
    return result, reason

def days_to_months(days: float, days_per_month: int = 30) -> float:
    """Convert a day count to months using a fixed month length."""
    return days / days_per_month
