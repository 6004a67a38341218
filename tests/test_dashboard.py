"""
Tests for the dashboard service.
"""
import unittest
import datetime

from stock_forecast.models import POStatus, Product, PurchaseOrder
from stock_forecast.services.dashboard import DashboardService, ForecastCache


TODAY = datetime.date(2026, 3, 10)


def make_product(product_id=1, current_stock=0.0, monthly=300.0, unit_cost=0.0, pos=()):
    return Product(
        id=product_id,
        name=f'Product {product_id}',
        current_stock=current_stock,
        unit_cost=unit_cost,
        monthly_sales=(monthly,) * 12,
        pos=tuple(pos)
    )


class TestForecastCache(unittest.TestCase):
    def test_hits_and_misses(self):
        """Test values are computed once per key."""
        cache = ForecastCache(max_entries=4)
        calls = []

        def compute():
            calls.append(1)
            return 'value'

        self.assertEqual(cache.get_or_compute('a', compute), 'value')
        self.assertEqual(cache.get_or_compute('a', compute), 'value')
        self.assertEqual(len(calls), 1)
        self.assertEqual((cache.hits, cache.misses), (1, 1))

    def test_least_recently_used_entry_is_evicted(self):
        """Test the cache stays within its bound."""
        cache = ForecastCache(max_entries=2)
        cache.get_or_compute('a', lambda: 1)
        cache.get_or_compute('b', lambda: 2)
        cache.get_or_compute('a', lambda: 1)
        cache.get_or_compute('c', lambda: 3)

        self.assertEqual(len(cache), 2)
        self.assertEqual(cache.get_or_compute('a', lambda: 'recomputed'), 1)
        self.assertEqual(cache.get_or_compute('b', lambda: 'recomputed'), 'recomputed')

        cache.clear()
        self.assertEqual(len(cache), 0)


class TestDashboardService(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.service = DashboardService(
            warning_days=225,
            horizon_days=365,
            analysis_horizon_days=400,
            today=TODAY
        )
        self.empty = make_product(
            product_id=1,
            pos=[PurchaseOrder(id=1, order_date=TODAY, qty=100, prod_days=10)]
        )
        self.stocked = make_product(product_id=2, current_stock=100000, monthly=0)

    def test_analysis_is_memoized(self):
        """Test unchanged products are served from the cache."""
        first = self.service.analyze(self.empty)
        misses = self.service.cache.misses

        second = self.service.analyze(self.empty)

        self.assertIs(first, second)
        self.assertEqual(self.service.cache.misses, misses)

    def test_edited_product_is_recomputed(self):
        """Test an edited product does not reuse a stale analysis."""
        first = self.service.analyze(self.empty)
        edited = self.empty.evolve(current_stock=5000)
        second = self.service.analyze(edited)

        self.assertIsNot(first, second)
        self.assertNotEqual(first.days_until_stockout, second.days_until_stockout)

    def test_analyze_all_keeps_order(self):
        """Test rows come back in collection order."""
        rows = self.service.analyze_all([self.stocked, self.empty])
        self.assertEqual([row.product.id for row in rows], [2, 1])

    def test_coverage(self):
        """Test the display horizon coverage of a product."""
        summary = self.service.coverage(self.empty)
        self.assertFalse(summary['safe'])
        self.assertEqual(summary['days'], 0)
        self.assertEqual(summary['stockout_date'], TODAY)

    def test_fleet_kpi(self):
        """Test fleet counts of stockouts and due reorders."""
        kpi = self.service.fleet_kpi([self.empty, self.stocked])

        self.assertEqual(kpi['stockout_within_horizon'], 1)
        self.assertEqual(kpi['need_order_soon'], 1)
        self.assertEqual(kpi['order_window_days'], 60)

    def test_sales_and_stock_summary(self):
        """Test sales totals and stock on hand."""
        products = [make_product(1, current_stock=10, monthly=600), make_product(2, current_stock=5, monthly=800)]

        sales = self.service.sales_summary(products)
        self.assertEqual(sales['totals'], [1400.0] * 12)
        self.assertEqual(sales['annual_total'], 16800.0)
        self.assertEqual(sales['monthly_avg'], 1400.0)

        self.assertEqual(self.service.sales_summary([])['annual_total'], 0.0)
        self.assertEqual(self.service.stock_summary(products), {'on_hand_stock': 15.0})

    def test_po_summary(self):
        """Test the purchase order pipeline rollup."""
        product = make_product(unit_cost=2.0, pos=[
            PurchaseOrder(id=1, order_date=TODAY, qty=100, prod_days=10),
            PurchaseOrder(id=2, order_date=TODAY, qty=50, status=POStatus.SHELVED),
            PurchaseOrder(id=3, order_date=TODAY, qty=999, prod_days=5, status=POStatus.CANCELLED),
            PurchaseOrder(id=4, order_date=TODAY, qty=10, prod_days=90, status=POStatus.LEG1_SHIPPED),
        ])
        summary = self.service.po_summary([product])

        self.assertEqual(summary['status_counts'], {
            'ordered': 1, 'production': 0, 'shipping': 1, 'inspection': 0, 'completed': 1
        })
        self.assertEqual(summary['open_qty'], 110.0)
        self.assertEqual(summary['open_value'], 220.0)
        self.assertEqual(
            [arrival['arrival_date'] for arrival in summary['next_arrivals']],
            [TODAY, TODAY + datetime.timedelta(days=10)]
        )

    def test_replenishment_rows(self):
        """Test products needing stock are listed largest first."""
        small = make_product(product_id=3, current_stock=1900)
        rows = self.service.replenishment_rows([small, self.stocked, self.empty])

        self.assertEqual([row['id'] for row in rows], [1, 3])
        self.assertEqual(rows[0]['suggested_qty'], 1950.0)
        self.assertEqual(rows[1]['suggested_qty'], 50.0)

    def test_monthly_summary(self):
        """Test forward months of inbound units, sales and start stock."""
        product = make_product(
            current_stock=1000,
            pos=[PurchaseOrder(id=1, order_date=TODAY, qty=500, prod_days=30)]
        )
        summary = self.service.monthly_summary([product])

        self.assertEqual(summary['inbound_totals'][1], 500.0)
        self.assertEqual(sum(summary['inbound_totals']), 500.0)
        self.assertEqual(summary['sales_totals'], [300.0] * 12)
        self.assertEqual(summary['start_stocks'][:3], [1000.0, 700.0, 900.0])


if __name__ == '__main__':
    unittest.main()
