# stock_forecast/services/dashboard.py
from collections import OrderedDict
from datetime import date, timedelta
from typing import Callable, Dict, Hashable, List, Optional, Sequence

import numpy as np

from stock_forecast.config import config
from stock_forecast.core.analytics import analyze_product, coverage_summary
from stock_forecast.core.forecast import project
from stock_forecast.logging_setup import get_logger
from stock_forecast.models import MONTHS_PER_YEAR, Product, ProductAnalysis, Projection
from stock_forecast.utils.date_utils import month_offset

FLEET_HORIZON_DAYS = 365
ORDER_WINDOW_DAYS = 60
ARRIVAL_WINDOW_DAYS = 30
NEXT_ARRIVALS_LIMIT = 5
STATUS_GROUP_NAMES = ('ordered', 'production', 'shipping', 'inspection', 'completed')

log = get_logger('dashboard')

class ForecastCache:
    """Bounded least-recently-used cache of forecast results."""

    def __init__(self, max_entries: int = 256):
        self.max_entries = max(1, max_entries)
        self._entries: "OrderedDict[Hashable, object]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], object]):
        """Return the cached value for ``key``, computing and storing it on a miss."""
        if key in self._entries:
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]

        self.misses += 1
        value = compute()
        self._entries[key] = value
        if len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return value

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)


class DashboardService:
    """Service building dashboard rows and fleet-wide rollups.

    Projections and analyses are memoized on the product record together with
    the horizon, warning days and analysis date. Product records are
    immutable, so an edited product is a new key and is recomputed while
    untouched products are served from the cache.
    """

    def __init__(self, warning_days: Optional[int] = None, horizon_days: Optional[int] = None,
                 analysis_horizon_days: Optional[int] = None, today: Optional[date] = None,
                 cache: Optional[ForecastCache] = None):
        """Initialize the dashboard service.

        Args:
            warning_days: Low-stock threshold, defaults to configuration
            horizon_days: Display horizon of single-product projections
            analysis_horizon_days: Horizon the reorder analytics run on
            today: Analysis date, defaults to the current date
            cache: Optional shared cache
        """
        settings = config.forecast_config
        self.warning_days = warning_days if warning_days is not None else settings['warning_days']
        self.horizon_days = horizon_days if horizon_days is not None else settings['horizon_days']
        self.analysis_horizon_days = (
            analysis_horizon_days if analysis_horizon_days is not None
            else settings['analysis_horizon_days']
        )
        self.today = today or date.today()
        self.cache = cache or ForecastCache(settings['cache_size'])

    def project(self, product: Optional[Product], horizon_days: Optional[int] = None) -> Projection:
        """Memoized projection of one product."""
        horizon_days = horizon_days if horizon_days is not None else self.horizon_days
        key = ('projection', product, horizon_days, self.warning_days, self.today)
        return self.cache.get_or_compute(
            key, lambda: project(product, horizon_days, self.warning_days, self.today)
        )

    def analyze(self, product: Product) -> ProductAnalysis:
        """Memoized reorder analytics of one product."""
        key = ('analysis', product, self.analysis_horizon_days, self.warning_days, self.today)
        return self.cache.get_or_compute(key, lambda: analyze_product(
            product,
            warning_days=self.warning_days,
            today=self.today,
            horizon_days=self.analysis_horizon_days,
            projection=self.project(product, self.analysis_horizon_days)
        ))

    def analyze_all(self, products: Sequence[Product]) -> List[ProductAnalysis]:
        """Dashboard rows for every product, in collection order."""
        misses_before = self.cache.misses
        rows = [self.analyze(product) for product in products]
        log.debug(f"Analyzed {len(rows)} products ({self.cache.misses - misses_before} recomputed)")
        return rows

    def coverage(self, product: Product) -> Optional[dict]:
        """Days until the first stockout within the display horizon."""
        return coverage_summary(self.project(product))

    def fleet_kpi(self, products: Sequence[Product]) -> Dict:
        """Count products stocking out within a year and products due for ordering soon.

        Returns:
            Dictionary with stockout_within_horizon, need_order_soon and order_window_days
        """
        stockout_within_horizon = 0
        need_order_soon = 0

        for analysis in self.analyze_all(products):
            if analysis.stockout_date is None:
                continue

            days_to_stockout = (analysis.stockout_date - self.today).days
            if 0 <= days_to_stockout <= FLEET_HORIZON_DAYS:
                stockout_within_horizon += 1

            if analysis.reorder_date is not None:
                if (analysis.reorder_date - self.today).days <= ORDER_WINDOW_DAYS:
                    need_order_soon += 1

        return {
            'stockout_within_horizon': stockout_within_horizon,
            'need_order_soon': need_order_soon,
            'order_window_days': ORDER_WINDOW_DAYS
        }

    def sales_summary(self, products: Sequence[Product]) -> Dict:
        """Sales totals per calendar month across all products.

        Returns:
            Dictionary with totals (January first), annual_total and monthly_avg
        """
        if products:
            totals = np.sum(np.array([product.monthly_sales for product in products], dtype=float), axis=0)
        else:
            totals = np.zeros(MONTHS_PER_YEAR)

        annual_total = float(np.sum(totals))
        return {
            'totals': [float(value) for value in totals],
            'annual_total': annual_total,
            'monthly_avg': annual_total / MONTHS_PER_YEAR
        }

    def stock_summary(self, products: Sequence[Product]) -> Dict:
        """Total units on hand."""
        return {'on_hand_stock': float(sum(product.current_stock for product in products))}

    def po_summary(self, products: Sequence[Product]) -> Dict:
        """Purchase order pipeline across all products.

        Cancelled orders are ignored. Open orders (not yet shelved) add to the
        open quantity and to the capital tied up at the product's unit cost.

        Returns:
            Dictionary with status_counts, open_qty, open_value and next_arrivals
        """
        status_counts = {name: 0 for name in STATUS_GROUP_NAMES}
        arrivals = []
        open_qty = 0.0
        open_value = 0.0

        for product in products:
            for po in product.active_pos:
                arrivals.append({
                    'product_name': product.name,
                    'po_number': po.po_number,
                    'qty': po.qty,
                    'arrival_date': po.arrival_date
                })

                if po.is_open:
                    open_qty += po.qty
                    open_value += po.qty * product.unit_cost

                status_counts[po.status.group] += 1

        window_end = self.today + timedelta(days=ARRIVAL_WINDOW_DAYS)
        next_arrivals = sorted(
            (arrival for arrival in arrivals if self.today <= arrival['arrival_date'] <= window_end),
            key=lambda arrival: arrival['arrival_date']
        )[:NEXT_ARRIVALS_LIMIT]

        return {
            'status_counts': status_counts,
            'open_qty': open_qty,
            'open_value': open_value,
            'next_arrivals': next_arrivals
        }

    def replenishment_rows(self, products: Sequence[Product]) -> List[Dict]:
        """Products with a positive suggested quantity, largest first."""
        rows = [
            {
                'id': analysis.product.id,
                'name': analysis.product.name,
                'suggested_qty': analysis.suggested_qty,
                'stockout_date': analysis.stockout_date
            }
            for analysis in self.analyze_all(products)
            if analysis.suggested_qty > 0
        ]
        return sorted(rows, key=lambda row: row['suggested_qty'], reverse=True)

    def monthly_summary(self, products: Sequence[Product]) -> Dict:
        """Twelve forward months of inbound units, sales and rolling start-of-month stock.

        Month 0 is the current month. Sales are taken from the calendar month
        each offset falls in.

        Returns:
            Dictionary with start_stocks, inbound_totals and sales_totals
        """
        inbound_totals = [0.0] * MONTHS_PER_YEAR
        for analysis in self.analyze_all(products):
            for point in analysis.projection.series:
                if not point.incoming_qty:
                    continue
                offset = month_offset(point.date, self.today)
                if 0 <= offset < MONTHS_PER_YEAR:
                    inbound_totals[offset] += point.incoming_qty

        calendar_totals = self.sales_summary(products)['totals']
        sales_totals = [
            calendar_totals[(self.today.month - 1 + offset) % MONTHS_PER_YEAR]
            for offset in range(MONTHS_PER_YEAR)
        ]

        start_stocks = []
        rolling_stock = self.stock_summary(products)['on_hand_stock']
        for offset in range(MONTHS_PER_YEAR):
            if offset > 0:
                rolling_stock += inbound_totals[offset - 1] - sales_totals[offset - 1]
            start_stocks.append(rolling_stock)

        return {
            'start_stocks': start_stocks,
            'inbound_totals': inbound_totals,
            'sales_totals': sales_totals
        }
