"""
Tests for JSON and CSV exchange of products and purchase orders.
"""
import unittest
import datetime
import json

from stock_forecast.exceptions import ImportFormatError
from stock_forecast.models import POStatus, TransportMode
from stock_forecast.services.catalog import bootstrap_products
from stock_forecast.services.exchange import (
    CSV_COLUMNS,
    pos_from_csv,
    pos_from_json,
    pos_to_csv,
    pos_to_json,
    products_from_json,
    products_to_json,
)


TODAY = datetime.date(2026, 3, 10)


class TestProductExchange(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.products = list(bootstrap_products(TODAY))

    def test_export_uses_payload_keys(self):
        """Test exported products use the external field names."""
        payload = json.loads(products_to_json(self.products))

        self.assertEqual(payload[0]['currentStock'], 1200.0)
        self.assertEqual(payload[0]['pos'][0]['orderDate'], '2026-03-10')
        self.assertEqual(payload[0]['pos'][0]['leg2Mode'], 'rail')
        self.assertEqual(len(payload[1]['monthlySales']), 12)

    def test_import_restores_products(self):
        """Test an exported collection imports back unchanged."""
        products, report = products_from_json(products_to_json(self.products), TODAY)

        self.assertEqual(products, self.products)
        self.assertFalse(report.has_issues)

    def test_import_sanitizes_entries(self):
        """Test imported products are sanitized."""
        products, report = products_from_json('[{"name": "Loose", "currentStock": -4}, null]', TODAY)

        self.assertEqual(len(products), 1)
        self.assertEqual(products[0].current_stock, 0.0)
        self.assertTrue(report.has_issues)

    def test_import_rejects_wrong_shape(self):
        """Test documents that are not JSON arrays are rejected."""
        with self.assertRaises(ImportFormatError):
            products_from_json('{"id": 1}', TODAY)
        with self.assertRaises(ImportFormatError):
            products_from_json('not json', TODAY)


class TestPurchaseOrderExchange(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.pos = bootstrap_products(TODAY)[0].pos

    def test_json_import(self):
        """Test purchase orders read back from JSON."""
        pos, _ = pos_from_json(pos_to_json(self.pos), TODAY)
        self.assertEqual(tuple(pos), self.pos)

        with self.assertRaises(ImportFormatError):
            pos_from_json('{}', TODAY)

    def test_csv_export(self):
        """Test the CSV header and derived arrival date."""
        lines = pos_to_csv(self.pos).splitlines()

        self.assertEqual(lines[0], ','.join(CSV_COLUMNS))
        self.assertEqual(len(lines), 2)
        # 30 production days plus 35 + 15 + 10 days in transit
        self.assertTrue(lines[1].endswith(',ordered,2026-06-08'))

    def test_csv_import(self):
        """Test CSV rows with a byte order mark and blank cells."""
        text = (
            "\ufeffpo_number,order_date,qty,prod_days,leg1_mode,leg1_days,status,arrival_date\n"
            "PO-1,2026-03-01,50,,air,7,,1999-01-01\n"
            ",,,,,,,\n"
            "PO-2,2026-03-05,abc,10,boat,5,shelved,\n"
        )
        pos, report = pos_from_csv(text, TODAY)

        self.assertEqual(len(pos), 2)
        first, second = pos
        self.assertEqual(first.po_number, 'PO-1')
        self.assertEqual(first.order_date, datetime.date(2026, 3, 1))
        self.assertEqual(first.qty, 50.0)
        self.assertEqual(first.prod_days, 0)
        self.assertEqual(first.leg1_mode, TransportMode.AIR)
        self.assertEqual(first.status, POStatus.ORDERED)
        self.assertEqual(first.arrival_date, datetime.date(2026, 3, 8))

        self.assertEqual(second.qty, 0.0)
        self.assertEqual(second.leg1_mode, TransportMode.SEA)
        self.assertEqual(second.status, POStatus.SHELVED)
        self.assertTrue(report.has_issues)

    def test_csv_import_rejects_bad_documents(self):
        """Test a missing header or an empty body is rejected."""
        with self.assertRaises(ImportFormatError):
            pos_from_csv("po_number,qty\nPO-1,5\n", TODAY)
        with self.assertRaises(ImportFormatError):
            pos_from_csv(','.join(CSV_COLUMNS) + "\n", TODAY)
        with self.assertRaises(ImportFormatError):
            pos_from_csv("", TODAY)


if __name__ == '__main__':
    unittest.main()
