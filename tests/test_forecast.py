"""
Tests for the daily stock projection.
"""
import unittest
import datetime
from dataclasses import replace

import numpy as np

from stock_forecast.core.forecast import (
    calculate_daily_rates,
    classify_stock,
    incoming_by_date,
    project,
)
from stock_forecast.models import (
    MAX_LEAD_DAYS, POStatus, Product, Projection, PurchaseOrder, StockStatus
)


TODAY = datetime.date(2026, 3, 10)


def make_product(current_stock=0.0, monthly=300.0, pos=()):
    return Product(
        id=1,
        name='Test product',
        current_stock=current_stock,
        monthly_sales=(monthly,) * 12,
        pos=tuple(pos)
    )


class TestForecast(unittest.TestCase):
    def test_calculate_daily_rates(self):
        """Test monthly sales spread over a 30 day month."""
        rates = calculate_daily_rates([300] * 6 + [60] * 6)
        self.assertEqual(rates.shape, (12,))
        np.testing.assert_allclose(rates, [10.0] * 6 + [2.0] * 6)

    def test_classify_stock(self):
        """Test day status thresholds."""
        self.assertEqual(classify_stock(0, 10, 225), StockStatus.STOCKOUT)
        self.assertEqual(classify_stock(-1, 10, 225), StockStatus.STOCKOUT)
        self.assertEqual(classify_stock(2249, 10, 225), StockStatus.LOW)
        self.assertEqual(classify_stock(2250, 10, 225), StockStatus.OK)
        self.assertEqual(classify_stock(5, 0, 225), StockStatus.OK)

    def test_incoming_by_date_skips_cancelled(self):
        """Test arrivals are summed per date without cancelled orders."""
        pos = [
            PurchaseOrder(id=1, order_date=TODAY, qty=10, prod_days=5),
            PurchaseOrder(id=2, order_date=TODAY, qty=15, leg1_days=5),
            PurchaseOrder(id=3, order_date=TODAY, qty=99, prod_days=5, status=POStatus.CANCELLED),
        ]
        arrivals = incoming_by_date(pos)
        self.assertEqual(dict(arrivals), {TODAY + datetime.timedelta(days=5): 25.0})

    def test_lead_time_is_monotonic(self):
        """Test longer production or transit never moves arrival earlier."""
        base = PurchaseOrder(id=1, order_date=TODAY, qty=10, prod_days=5, leg1_days=5, leg2_days=5, leg3_days=5)
        self.assertGreaterEqual(base.arrival_date, base.order_date)

        for field_name in ('prod_days', 'leg1_days', 'leg2_days', 'leg3_days'):
            for extra in (0, 1, 30):
                with self.subTest(field=field_name, extra=extra):
                    later = replace(base, **{field_name: getattr(base, field_name) + extra})
                    self.assertGreaterEqual(later.arrival_date, base.arrival_date)
                    self.assertEqual((later.arrival_date - base.arrival_date).days, extra)

        immediate = PurchaseOrder(id=2, order_date=TODAY)
        self.assertEqual(immediate.arrival_date, TODAY)

    def test_leg3_days_delay_arrival(self):
        """Test the final leg is part of the lead time used by the projection."""
        po = PurchaseOrder(id=1, order_date=TODAY, qty=10, leg3_days=7)
        product = make_product(monthly=0, pos=[po])
        series = project(product, horizon_days=10, today=TODAY).series

        self.assertEqual(series[6].stock, 0.0)
        self.assertEqual(series[7].incoming_qty, 10.0)
        self.assertEqual(series[7].stock, 10.0)

        same_day = project(product.evolve(pos=(replace(po, leg3_days=0),)), horizon_days=10, today=TODAY)
        self.assertEqual(same_day.series[0].incoming_qty, 10.0)

    def test_unrepresentable_arrival_saturates(self):
        """Test arrivals past the last representable date stay out of the horizon."""
        late = PurchaseOrder(id=1, order_date=datetime.date.max, qty=10, leg1_days=1)
        self.assertEqual(late.arrival_date, datetime.date.max)

        far = PurchaseOrder(id=2, order_date=TODAY, qty=10, prod_days=MAX_LEAD_DAYS, leg1_days=MAX_LEAD_DAYS)
        self.assertEqual(far.arrival_date, datetime.date.max)

        series = project(make_product(current_stock=100, pos=[late, far]), horizon_days=30, today=TODAY).series
        self.assertTrue(all(point.incoming_qty == 0 for point in series))

    def test_none_product_yields_empty_projection(self):
        """Test that a missing product projects to an empty result."""
        self.assertEqual(project(None, today=TODAY), Projection())

    def test_series_length_and_rate(self):
        """Test the horizon is inclusive of day 0."""
        product = Product(id=1, name='A', current_stock=50, monthly_sales=tuple(range(0, 120, 10)))
        projection = project(product, horizon_days=365, today=TODAY)

        self.assertEqual(len(projection.series), 366)
        self.assertEqual(projection.series[0].date, TODAY)
        self.assertEqual(projection.series[-1].date, TODAY + datetime.timedelta(days=365))
        # March sales are 20 units
        self.assertAlmostEqual(projection.current_month_daily_rate, 20 / 30)

    def test_consumption_before_arrival(self):
        """Test that a day consumes first and then receives its arrivals."""
        po = PurchaseOrder(id=1, order_date=TODAY, qty=20)
        product = make_product(current_stock=5, pos=[po])

        first_day = project(product, horizon_days=5, today=TODAY).series[0]
        self.assertEqual(first_day.stock, 20.0)
        self.assertEqual(first_day.incoming_qty, 20.0)
        self.assertEqual(first_day.status, StockStatus.LOW)

    def test_stock_never_goes_negative(self):
        """Test projected stock is floored at zero."""
        product = make_product(current_stock=25)
        series = project(product, horizon_days=10, today=TODAY).series

        self.assertEqual([p.stock for p in series[:4]], [15.0, 5.0, 0.0, 0.0])
        self.assertTrue(all(p.status is StockStatus.STOCKOUT for p in series[2:]))

    def test_zero_stock_with_inbound_order(self):
        """Test the projection of an empty product waiting for a delivery."""
        po = PurchaseOrder(id=1, order_date=TODAY, qty=100, prod_days=10)
        series = project(make_product(pos=[po]), horizon_days=30, today=TODAY).series

        for point in series[:10]:
            self.assertEqual(point.stock, 0.0)
            self.assertEqual(point.status, StockStatus.STOCKOUT)
        self.assertEqual(series[10].stock, 100.0)
        self.assertEqual(series[10].status, StockStatus.LOW)
        self.assertEqual(series[15].stock, 50.0)
        self.assertEqual(series[20].stock, 0.0)
        self.assertEqual(series[20].status, StockStatus.STOCKOUT)

    def test_cancelled_orders_do_not_change_projection(self):
        """Test that adding a cancelled order leaves the projection untouched."""
        base = make_product(current_stock=500)
        cancelled = PurchaseOrder(id=9, order_date=TODAY, qty=1000, prod_days=3, status=POStatus.CANCELLED)

        self.assertEqual(
            project(base, horizon_days=60, today=TODAY),
            project(base.evolve(pos=(cancelled,)), horizon_days=60, today=TODAY)
        )

    def test_month_end_snapshots(self):
        """Test a snapshot is taken on the last day of each month."""
        today = datetime.date(2026, 1, 30)
        projection = project(make_product(current_stock=100), horizon_days=3, today=today)

        self.assertEqual(len(projection.month_end_stocks), 1)
        snapshot = projection.month_end_stocks[0]
        self.assertEqual((snapshot.year, snapshot.month), (2026, 1))
        self.assertEqual(snapshot.stock, 80.0)

    def test_yearly_month_end_count(self):
        """Test a one year horizon covers twelve month ends."""
        projection = project(make_product(current_stock=100), horizon_days=365, today=datetime.date(2026, 1, 1))
        self.assertEqual(len(projection.month_end_stocks), 12)

    def test_projection_is_deterministic(self):
        """Test that the projection depends only on its inputs."""
        po = PurchaseOrder(id=1, order_date=TODAY, qty=300, prod_days=40)
        product = make_product(current_stock=250, pos=[po])
        self.assertEqual(project(product, 120, 30, TODAY), project(product, 120, 30, TODAY))


if __name__ == '__main__':
    unittest.main()
