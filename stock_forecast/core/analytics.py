# stock_forecast/core/analytics.py
"""
Reorder analytics derived from a product's projection.

Produces the dashboard view of one product: months of coverage and risk tier,
stockout and reorder dates, a suggested reorder quantity, and 12 forward
months of availability flags and purchase order arrivals.
"""
import math
from datetime import date, timedelta
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..models import (
    MONTHS_PER_YEAR, DailyPoint, Product, ProductAnalysis, Projection,
    PurchaseOrder, RiskTier, Urgency
)
from ..utils.date_utils import get_month_dates, month_offset, shift_month
from ..utils.math_utils import days_to_months
from .forecast import DAYS_PER_MONTH, DEFAULT_WARNING_DAYS, calculate_daily_rates, project

ANALYSIS_HORIZON_DAYS = 400

# Reorder buffer policy, independent of the configurable warning days
SAFE_COVERAGE_MONTHS = 6.5
SAFE_COVERAGE_DAYS = math.ceil(SAFE_COVERAGE_MONTHS * DAYS_PER_MONTH)

SAFE_MONTHS = 12
WARNING_MONTHS = 6

def classify_risk(days_of_cover: float) -> RiskTier:
    """Bucket days of coverage into a risk tier.

    Args:
        days_of_cover: Days until the product runs out

    Returns:
        SAFE for 12 months or more, WARNING for 6 to 12, CRITICAL below 6
    """
    months = days_to_months(days_of_cover, DAYS_PER_MONTH)
    if months >= SAFE_MONTHS:
        return RiskTier.SAFE
    if months >= WARNING_MONTHS:
        return RiskTier.WARNING
    return RiskTier.CRITICAL

def first_stockout_index(series: Sequence[DailyPoint], start: int = 0) -> int:
    """Index of the first day at or after ``start`` with no stock, -1 if none."""
    for index in range(start, len(series)):
        if series[index].stock <= 0:
            return index
    return -1

def next_inbound_index(series: Sequence[DailyPoint]) -> int:
    """Index of the first day with an arrival, -1 if none."""
    for index, point in enumerate(series):
        if point.incoming_qty > 0:
            return index
    return -1

def last_positive_index(series: Sequence[DailyPoint]) -> int:
    """Index of the last day with stock on hand, -1 if none."""
    for index in range(len(series) - 1, -1, -1):
        if series[index].stock > 0:
            return index
    return -1

def earliest_arrival_index(series: Sequence[DailyPoint], pos: Sequence[PurchaseOrder]) -> int:
    """Index of the earliest day in the series on which a purchase order arrives, -1 if none."""
    indices = {point.date: index for index, point in enumerate(series)}
    found = [indices[po.arrival_date] for po in pos if po.arrival_date in indices]
    return min(found) if found else -1

def find_coverage(product: Product, series: Sequence[DailyPoint], horizon_days: int) -> Tuple[int, Optional[int]]:
    """Work out how long the product stays covered.

    A product that is out of stock today but has orders in flight is judged
    on how long its next delivery lasts: the count starts at the earliest
    arrival and runs to the next stockout, and with no delivery inside the
    series it counts as covered. Otherwise the last day with stock
    on hand marks exhaustion.

    Args:
        product: Product being analyzed
        series: Projected daily series
        horizon_days: Horizon the series was projected over

    Returns:
        Tuple of (days of coverage, index of the stockout day or None when
        the product is covered for the whole horizon)
    """
    active_pos = product.active_pos

    if product.current_stock == 0 and active_pos:
        arrival_index = earliest_arrival_index(series, active_pos)
        if arrival_index < 0:
            return horizon_days, None
        stockout_index = first_stockout_index(series, arrival_index)
        if stockout_index < 0:
            return horizon_days, None
        return stockout_index - arrival_index, stockout_index

    target = max(0, last_positive_index(series))
    if target >= horizon_days:
        return horizon_days, None
    return target, target

def calculate_suggested_qty(product: Product, series: Sequence[DailyPoint]) -> float:
    """Units to order now to cover the safe coverage window from today.

    Args:
        product: Product being analyzed
        series: Projected daily series starting today

    Returns:
        Forecast consumption over the window minus current stock, floored at 0
    """
    daily_rates = calculate_daily_rates(product.monthly_sales)
    window = series[:SAFE_COVERAGE_DAYS]
    if not window:
        return 0.0

    month_indices = np.fromiter((point.date.month - 1 for point in window), dtype=int, count=len(window))
    cumulative_consumption = float(np.sum(daily_rates[month_indices]))

    return max(0.0, cumulative_consumption - product.current_stock)

def calculate_monthly_availability(series: Sequence[DailyPoint], today: date) -> Tuple[bool, ...]:
    """Whole-month availability for the 12 months starting with the current one.

    A month is unavailable when any projected day inside it has exactly zero stock.
    """
    flags: List[bool] = []
    for offset in range(MONTHS_PER_YEAR):
        year, month = shift_month(today.year, today.month, offset)
        month_start, month_end = get_month_dates(year, month)
        has_stockout_day = any(
            month_start <= point.date <= month_end and point.stock == 0
            for point in series
        )
        flags.append(not has_stockout_day)
    return tuple(flags)

def bucket_pos_by_month(pos: Sequence[PurchaseOrder], today: date) -> Tuple[Tuple[PurchaseOrder, ...], ...]:
    """Group active purchase orders by the month of their arrival.

    Orders arriving outside the 12 months starting with the current one are left out.
    """
    buckets: List[List[PurchaseOrder]] = [[] for _ in range(MONTHS_PER_YEAR)]
    for po in pos:
        if po.is_cancelled:
            continue
        offset = month_offset(po.arrival_date, today)
        if 0 <= offset < MONTHS_PER_YEAR:
            buckets[offset].append(po)
    return tuple(tuple(bucket) for bucket in buckets)

def analyze_product(
    product: Product,
    warning_days: int = DEFAULT_WARNING_DAYS,
    today: Optional[date] = None,
    horizon_days: int = ANALYSIS_HORIZON_DAYS,
    projection: Optional[Projection] = None
) -> ProductAnalysis:
    """Build the reorder analytics of one product.

    Args:
        product: Sanitized product
        warning_days: Low-stock threshold, also the lead of the reorder date
            ahead of the stockout date
        today: Analysis date, defaults to the current date
        horizon_days: Horizon of the projection the analytics run on
        projection: Precomputed projection over ``horizon_days`` starting today

    Returns:
        ProductAnalysis for the product
    """
    today = today or date.today()
    if projection is None:
        projection = project(product, horizon_days, warning_days, today)
    series = projection.series

    days_of_cover, stockout_index = find_coverage(product, series, horizon_days)

    stockout_date = None
    reorder_date = None
    urgency = Urgency.NORMAL
    if stockout_index is not None and stockout_index < len(series):
        stockout_date = series[stockout_index].date
        reorder_date = stockout_date - timedelta(days=warning_days)
        if reorder_date < today:
            urgency = Urgency.CRITICAL

    return ProductAnalysis(
        product=product,
        projection=projection,
        days_until_stockout=days_of_cover,
        months_until_stockout=round(days_to_months(days_of_cover, DAYS_PER_MONTH), 1),
        risk_tier=classify_risk(days_of_cover),
        stockout_date=stockout_date,
        reorder_date=reorder_date,
        urgency=urgency,
        suggested_qty=calculate_suggested_qty(product, series),
        monthly_availability=calculate_monthly_availability(series, today),
        monthly_pos=bucket_pos_by_month(product.pos, today)
    )

def coverage_summary(projection: Projection) -> Optional[dict]:
    """Days until the first projected stockout of a projection.

    Returns:
        Dictionary with safe flag, days, months and stockout date, or None for an empty projection
    """
    series = projection.series
    if not series:
        return None

    index = first_stockout_index(series)
    if index < 0:
        days = len(series) - 1
        return {
            'safe': True,
            'days': days,
            'months': round(days_to_months(days, DAYS_PER_MONTH), 1),
            'stockout_date': None
        }

    return {
        'safe': False,
        'days': index,
        'months': round(days_to_months(index, DAYS_PER_MONTH), 1),
        'stockout_date': series[index].date
    }
