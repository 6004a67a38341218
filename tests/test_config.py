"""
Tests for configuration, validation helpers and error types.
"""
import unittest
import tempfile
import datetime
from pathlib import Path

from stock_forecast.config import config
from stock_forecast.exceptions import NotFoundError, StockForecastError
from stock_forecast.logging_setup import get_logger
from stock_forecast.utils.date_utils import month_offset, parse_iso_date, shift_month
from stock_forecast.utils.math_utils import (
    INVALID, MISSING, coerce_non_negative, coerce_non_negative_int, to_finite_number
)
from stock_forecast.utils.validation import clamp_non_negative_int, clamp_non_negative_number


class TestConfig(unittest.TestCase):
    def setUp(self):
        """Point the configuration at a temporary settings file."""
        self.original_path = config.config_path
        self.temp_dir = tempfile.TemporaryDirectory()
        self.settings = Path(self.temp_dir.name) / 'settings.ini'
        self.settings.write_text("[FORECAST]\nwarning_days = 100\n")
        config.reload(self.settings)

    def tearDown(self):
        """Restore the original configuration."""
        config.reload(self.original_path)
        self.temp_dir.cleanup()

    def test_file_overrides_defaults(self):
        """Test values from the settings file win over defaults."""
        settings = config.forecast_config
        self.assertEqual(settings['warning_days'], 100)
        self.assertEqual(settings['horizon_days'], 365)
        self.assertEqual(settings['analysis_horizon_days'], 400)

    def test_order_defaults(self):
        """Test default lead times of new purchase orders."""
        defaults = config.order_defaults
        self.assertEqual(defaults['qty'], 1000.0)
        self.assertEqual(defaults['prod_days'], 30)
        self.assertEqual(defaults['leg3_days'], 0)

    def test_set_persists_value(self):
        """Test set writes the value to the settings file."""
        config.set('FORECAST', 'cache_size', 32)
        config.reload()

        self.assertEqual(config.get_int('FORECAST', 'cache_size'), 32)
        self.assertIn('cache_size = 32', self.settings.read_text())

    def test_missing_values_return_default(self):
        """Test lookups of unknown keys."""
        self.assertEqual(config.get('NOPE', 'key', 'fallback'), 'fallback')
        self.assertIsNone(config.get_int('FORECAST', 'missing'))
        self.assertTrue(config.get_boolean('LOGGING', 'console_output'))


class TestValueHelpers(unittest.TestCase):
    def test_to_finite_number(self):
        """Test loose number parsing."""
        self.assertEqual(to_finite_number('12.5'), 12.5)
        self.assertEqual(to_finite_number(3), 3.0)
        self.assertIsNone(to_finite_number(True))
        self.assertIsNone(to_finite_number(float('inf')))
        self.assertIsNone(to_finite_number('nan'))
        self.assertIsNone(to_finite_number([1]))

    def test_coerce_non_negative(self):
        """Test coercion reasons."""
        self.assertEqual(coerce_non_negative(None), (0.0, MISSING))
        self.assertEqual(coerce_non_negative(-1), (0.0, INVALID))
        self.assertEqual(coerce_non_negative('7'), (7.0, None))

    def test_clamp_helpers(self):
        """Test clamping of user-entered values."""
        self.assertEqual(clamp_non_negative_number(-3, 'Qty'), 0.0)
        self.assertEqual(clamp_non_negative_number('abc', 'Qty'), 0.0)
        self.assertEqual(clamp_non_negative_int(4.9, 'Days'), 4)

    def test_upper_bound_caps_values(self):
        """Test integer helpers cap values above an upper bound."""
        self.assertEqual(coerce_non_negative_int(1e12, upper=100), (100, INVALID))
        self.assertEqual(coerce_non_negative_int(50, upper=100), (50, None))
        self.assertEqual(clamp_non_negative_int(5_000_000_000, 'Days', upper=100), 100)
        self.assertEqual(clamp_non_negative_int(7, 'Days', upper=100), 7)

    def test_date_helpers(self):
        """Test date parsing and month arithmetic."""
        self.assertEqual(parse_iso_date('2026-02-28T10:00:00'), datetime.date(2026, 2, 28))
        self.assertIsNone(parse_iso_date('2026-02-30'))
        self.assertIsNone(parse_iso_date(20260228))
        self.assertEqual(shift_month(2026, 11, 3), (2027, 2))
        self.assertEqual(shift_month(2026, 1, -1), (2025, 12))
        self.assertEqual(month_offset(datetime.date(2027, 1, 5), datetime.date(2026, 3, 31)), 10)


class TestLogging(unittest.TestCase):
    def test_loggers_are_namespaced_and_cached(self):
        """Test loggers live under the package namespace and are reused."""
        first = get_logger('catalog')
        self.assertEqual(first.name, 'stock_forecast.catalog')
        self.assertIs(get_logger('catalog'), first)
        self.assertFalse(first.propagate)


class TestExceptions(unittest.TestCase):
    def test_to_dict(self):
        """Test error serialization."""
        error = NotFoundError("Product 3 not found", code='E404', details={'product_id': 3})

        self.assertIsInstance(error, StockForecastError)
        self.assertEqual(str(error), '[E404] Product 3 not found')
        self.assertEqual(error.to_dict(), {
            'error': 'NotFoundError',
            'message': 'Product 3 not found',
            'code': 'E404',
            'details': {'product_id': 3}
        })


if __name__ == '__main__':
    unittest.main()
