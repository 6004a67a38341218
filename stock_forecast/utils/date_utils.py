# stock_forecast/utils/date_utils.py
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
import calendar

ISO_DATE_LENGTH = 10

def parse_iso_date(value) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` value.

    Longer strings (e.g. full ISO timestamps) are cut to their date part.

    Args:
        value: date, datetime or string

    Returns:
        Parsed date or None if the value is not a valid date
    """
    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        return None

    try:
        return date.fromisoformat(value.strip()[:ISO_DATE_LENGTH])
    except ValueError:
        return None

def is_month_end(day: date) -> bool:
    """Check whether the next calendar day falls in a different month."""
    return (day + timedelta(days=1)).month != day.month

def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """Move a (year, month) pair by a number of months.

    Args:
        year: Year
        month: Month number (1-12)
        offset: Number of months to move, may be negative

    Returns:
        Tuple with year and month
    """
    index = year * 12 + (month - 1) + offset
    return (index // 12, index % 12 + 1)

def month_offset(day: date, reference: date) -> int:
    """Number of calendar months between the month of ``reference`` and the month of ``day``."""
    return (day.year - reference.year) * 12 + (day.month - reference.month)

def get_month_dates(year: int, month: int) -> Tuple[date, date]:
    """Get first and last date of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return (date(year, month, 1), date(year, month, last_day))

def format_compact(day: date) -> str:
    """Format a date as ``YYYYMMDD``."""
    return day.strftime('%Y%m%d')
