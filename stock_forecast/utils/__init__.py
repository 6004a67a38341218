from .date_utils import parse_iso_date, is_month_end, month_offset, get_month_dates
from .math_utils import to_finite_number, coerce_non_negative, coerce_non_negative_int, days_to_months
from .validation import clamp_non_negative_number, clamp_non_negative_int

__all__ = [
    'parse_iso_date',
    'is_month_end',
    'month_offset',
    'get_month_dates',
    'to_finite_number',
    'coerce_non_negative',
    'coerce_non_negative_int',
    'days_to_months',
    'clamp_non_negative_number',
    'clamp_non_negative_int'
]
