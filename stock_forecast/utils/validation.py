# stock_forecast/utils/validation.py
from typing import List, Optional
import math

from stock_forecast.logging_setup import get_logger
from stock_forecast.utils.math_utils import to_finite_number

ADVISORY_LIMIT = 1_000_000

log = get_logger('validation')

def _advise(value: float, field_label: str, warnings: Optional[List[str]]) -> None:
    if value > ADVISORY_LIMIT:
        message = f"{field_label} exceeds {ADVISORY_LIMIT:,}, please confirm the value"
        log.warning(message)
        if warnings is not None:
            warnings.append(message)

def clamp_non_negative_number(raw, field_label: str, warnings: Optional[List[str]] = None) -> float:
    """Clamp a user-entered value to a finite, non-negative number.

    Values above the advisory limit are accepted; a warning is logged and,
    when a list is supplied, appended to it.

    Args:
        raw: Raw value
        field_label: Human readable field name used in warnings
        warnings: Optional list collecting advisory warnings

    Returns:
        Clamped value
    """
    number = to_finite_number(raw)
    if number is None or number < 0:
        number = 0.0

    _advise(number, field_label, warnings)
    return number

def clamp_non_negative_int(raw, field_label: str, warnings: Optional[List[str]] = None,
                           upper: Optional[int] = None) -> int:
    """Clamp a user-entered value to a non-negative integer (floored).

    When ``upper`` is given, larger values are capped to it.
    """
    number = to_finite_number(raw)
    if number is None or number < 0:
        number = 0.0

    value = int(math.floor(number))
    _advise(value, field_label, warnings)
    if upper is not None and value > upper:
        log.warning(f"{field_label} capped at {upper:,}")
        value = upper
    return value
