# stock_forecast/core/forecast.py
"""
Day-by-day stock projection.

The engine walks forward from today, consuming a seasonal daily rate and
adding purchase order arrivals, and records the projected stock for every
day of the horizon plus a snapshot on each month end.
"""
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, Optional

import numpy as np

from ..models import (
    MONTHS_PER_YEAR, DailyPoint, MonthEndPoint, Product, Projection, PurchaseOrder, StockStatus
)
from ..utils.date_utils import is_month_end

# Monthly sales are spread over a fixed 30-day month regardless of the
# actual month length.
DAYS_PER_MONTH = 30
DEFAULT_HORIZON_DAYS = 365
DEFAULT_WARNING_DAYS = 225

def calculate_daily_rates(monthly_sales: Iterable[float]) -> np.ndarray:
    """Convert 12 monthly sales figures into daily consumption rates.

    Args:
        monthly_sales: Units sold per calendar month, January first

    Returns:
        Array of 12 daily rates
    """
    return np.asarray(list(monthly_sales), dtype=float) / DAYS_PER_MONTH

def incoming_by_date(pos: Iterable[PurchaseOrder]) -> Dict[date, float]:
    """Total quantity arriving per date, ignoring cancelled orders."""
    arrivals: Dict[date, float] = defaultdict(float)
    for po in pos:
        if po.is_cancelled:
            continue
        arrivals[po.arrival_date] += po.qty
    return arrivals

def classify_stock(stock: float, daily_consumption: float, warning_days: int) -> StockStatus:
    """Classify one projected day.

    Args:
        stock: Stock at the end of the day
        daily_consumption: Consumption rate of the day
        warning_days: Days of cover below which stock counts as low

    Returns:
        StockStatus of the day
    """
    if stock <= 0:
        return StockStatus.STOCKOUT
    if stock < daily_consumption * warning_days:
        return StockStatus.LOW
    return StockStatus.OK

def project(
    product: Optional[Product],
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    warning_days: int = DEFAULT_WARNING_DAYS,
    today: Optional[date] = None
) -> Projection:
    """Project daily stock levels for one product.

    Day 0 is ``today`` and the horizon is inclusive, so the series holds
    ``horizon_days + 1`` points. Each day consumption is applied first and
    floored at zero, then the day's arrivals are added; an arrival on the day
    stock would run out therefore masks that stockout.

    Args:
        product: Sanitized product, may be None
        horizon_days: Number of days to simulate after today
        warning_days: Low-stock threshold in days of cover
        today: First projected day, defaults to the current date

    Returns:
        Projection with daily series, current month daily rate and month-end snapshots
    """
    if product is None:
        return Projection()

    today = today or date.today()
    daily_rates = calculate_daily_rates(product.monthly_sales)
    if daily_rates.shape != (MONTHS_PER_YEAR,):
        return Projection()
    arrivals = incoming_by_date(product.pos)

    series = []
    month_end_stocks = []
    running_stock = float(product.current_stock)

    for i in range(horizon_days + 1):
        current_date = today + timedelta(days=i)
        daily_consumption = float(daily_rates[current_date.month - 1])
        incoming_qty = arrivals.get(current_date, 0.0)

        after_consumption = max(0.0, running_stock - daily_consumption)
        running_stock = after_consumption + incoming_qty

        status = classify_stock(running_stock, daily_consumption, warning_days)
        series.append(DailyPoint(
            date=current_date,
            stock=max(0.0, running_stock),
            status=status,
            incoming_qty=incoming_qty
        ))

        if is_month_end(current_date):
            month_end_stocks.append(MonthEndPoint(
                year=current_date.year,
                month=current_date.month,
                stock=running_stock,
                status=status
            ))

    return Projection(
        series=tuple(series),
        current_month_daily_rate=float(daily_rates[today.month - 1]),
        month_end_stocks=tuple(month_end_stocks)
    )
