# stock_forecast/services/exchange.py
"""
JSON and CSV serialization of products and purchase orders.

Exports are plain serializations of the records. Imports go through the
sanitizer, so any document that parses yields well-formed records.
"""
import csv
import io
import json
from datetime import date
from typing import List, Optional, Sequence, Tuple

from stock_forecast.core.sanitizer import SanitizeReport, sanitize_with_report
from stock_forecast.exceptions import ImportFormatError
from stock_forecast.logging_setup import get_logger
from stock_forecast.models import Product, PurchaseOrder

CSV_COLUMNS = [
    'po_number', 'order_date', 'qty', 'prod_days',
    'leg1_mode', 'leg1_days', 'leg2_mode', 'leg2_days', 'leg3_mode', 'leg3_days',
    'status', 'arrival_date'
]
CSV_TO_PAYLOAD = {
    'po_number': 'poNumber',
    'order_date': 'orderDate',
    'qty': 'qty',
    'prod_days': 'prodDays',
    'leg1_mode': 'leg1Mode',
    'leg1_days': 'leg1Days',
    'leg2_mode': 'leg2Mode',
    'leg2_days': 'leg2Days',
    'leg3_mode': 'leg3Mode',
    'leg3_days': 'leg3Days',
    'status': 'status',
}

log = get_logger('exchange')

def _parse_json(text: str):
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise ImportFormatError(f"Could not parse JSON document: {e}")

def _log_report(kind: str, report: SanitizeReport):
    if report.has_issues:
        log.warning(f"Imported {kind} with defaulted fields: {report.summary()}")

def products_to_json(products: Sequence[Product]) -> str:
    """Serialize a product collection to JSON."""
    return json.dumps([product.to_dict() for product in products], indent=2, ensure_ascii=False)

def products_from_json(text: str, today: Optional[date] = None) -> Tuple[List[Product], SanitizeReport]:
    """Parse and sanitize a JSON product collection.

    Raises:
        ImportFormatError: if the document is not a JSON array
    """
    payload = _parse_json(text)
    if not isinstance(payload, list):
        raise ImportFormatError("Product document must be a JSON array")

    products, report = sanitize_with_report(payload, today)
    _log_report('products', report)
    return products, report

def _sanitize_pos(entries: list, today: Optional[date]) -> Tuple[List[PurchaseOrder], SanitizeReport]:
    # Wrap the orders in a throwaway product so they share the product sanitation path
    products, report = sanitize_with_report([{'id': 0, 'name': '', 'pos': entries}], today)
    _log_report('purchase orders', report)
    return list(products[0].pos), report

def pos_to_json(pos: Sequence[PurchaseOrder]) -> str:
    """Serialize purchase orders to JSON."""
    return json.dumps([po.to_dict() for po in pos], indent=2, ensure_ascii=False)

def pos_from_json(text: str, today: Optional[date] = None) -> Tuple[List[PurchaseOrder], SanitizeReport]:
    """Parse and sanitize a JSON array of purchase orders.

    Raises:
        ImportFormatError: if the document is not a JSON array
    """
    payload = _parse_json(text)
    if not isinstance(payload, list):
        raise ImportFormatError("Purchase order document must be a JSON array")
    return _sanitize_pos(payload, today)

def pos_to_csv(pos: Sequence[PurchaseOrder]) -> str:
    """Serialize purchase orders to CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(CSV_COLUMNS)
    for po in pos:
        writer.writerow([
            po.po_number,
            po.order_date.isoformat(),
            po.qty,
            po.prod_days,
            po.leg1_mode.value,
            po.leg1_days,
            po.leg2_mode.value,
            po.leg2_days,
            po.leg3_mode.value,
            po.leg3_days,
            po.status.value,
            po.arrival_date.isoformat()
        ])
    return buffer.getvalue()

def pos_from_csv(text: str, today: Optional[date] = None) -> Tuple[List[PurchaseOrder], SanitizeReport]:
    """Parse and sanitize purchase orders from CSV.

    The ``arrival_date`` column is ignored; arrival is always derived from
    the order date and lead times.

    Raises:
        ImportFormatError: if the header is missing or no data row is present
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if not reader.fieldnames or 'order_date' not in reader.fieldnames:
        raise ImportFormatError("CSV document needs a header row with an order_date column")

    entries = []
    for row in reader:
        if not any((value or '').strip() for value in row.values() if isinstance(value, str)):
            continue
        entries.append({
            payload_key: (row.get(column) or '').strip() or None
            for column, payload_key in CSV_TO_PAYLOAD.items()
        })

    if not entries:
        raise ImportFormatError("CSV document contains no purchase order rows")

    return _sanitize_pos(entries, today)
