# stock_forecast/core/sanitizer.py
"""
Sanitation of untrusted product collections.

Every product collection loaded from an external source (storage, imports,
sync payloads) passes through ``sanitize`` before it reaches the forecast
engine. Sanitation never raises: malformed fields fall back to defaults and
the worst case is an empty list.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional, Tuple

from ..models import MAX_LEAD_DAYS, MONTHS_PER_YEAR, POStatus, Product, PurchaseOrder, TransportMode
from ..utils.date_utils import parse_iso_date
from ..utils.math_utils import MISSING, INVALID, coerce_non_negative, coerce_non_negative_int, to_finite_number

logger = logging.getLogger(__name__)

PO_DAY_FIELDS = (
    ('prodDays', 'prod_days'),
    ('leg1Days', 'leg1_days'),
    ('leg2Days', 'leg2_days'),
    ('leg3Days', 'leg3_days'),
)
PO_MODE_FIELDS = (
    ('leg1Mode', 'leg1_mode'),
    ('leg2Mode', 'leg2_mode'),
    ('leg3Mode', 'leg3_mode'),
)
VALID_MODES = {mode.value for mode in TransportMode}
VALID_STATUSES = {status.value for status in POStatus}


@dataclass(frozen=True)
class FieldIssue:
    """A field that fell back to its default during sanitation."""
    path: str
    reason: str
    value: Any = None


@dataclass
class SanitizeReport:
    """Diagnostics collected while sanitizing a product collection."""
    issues: List[FieldIssue] = field(default_factory=list)
    dropped_entries: int = 0

    def add(self, path, reason, value=None):
        self.issues.append(FieldIssue(path, reason, value))

    @property
    def has_issues(self) -> bool:
        return bool(self.issues) or self.dropped_entries > 0

    def summary(self) -> dict:
        """Count issues by reason."""
        counts = {MISSING: 0, INVALID: 0, 'dropped': self.dropped_entries}
        for issue in self.issues:
            counts[issue.reason] = counts.get(issue.reason, 0) + 1
        return counts


def _is_falsy(entry):
    # Empty records still count as entries; only scalar falsy values are dropped
    if isinstance(entry, (dict, list, tuple)):
        return False
    return not entry


def _as_mapping(entry):
    if isinstance(entry, (Product, PurchaseOrder)):
        return entry.to_dict()
    if isinstance(entry, dict):
        return entry
    return None


def _number(raw, key, path, report, default=0.0):
    value, reason = coerce_non_negative(raw.get(key), default)
    if reason:
        report.add(f"{path}.{key}", reason, raw.get(key))
    return value


def _int(raw, key, path, report, default=0, upper=None):
    value, reason = coerce_non_negative_int(raw.get(key), default, upper)
    if reason:
        report.add(f"{path}.{key}", reason, raw.get(key))
    return value


def _identifier(raw, path, report, fallback):
    number = to_finite_number(raw.get('id'))
    if number is None or number < 0:
        report.add(f"{path}.id", MISSING if raw.get('id') is None else INVALID, raw.get('id'))
        return fallback
    return int(number)


def _enum_value(raw, key, valid, path, report, default):
    value = raw.get(key)
    if isinstance(value, (POStatus, TransportMode)):
        value = value.value
    if isinstance(value, str) and value in valid:
        return value
    report.add(f"{path}.{key}", MISSING if value is None else INVALID, value)
    return default


def sanitize_purchase_order(raw_po, index: int, path: str, report: SanitizeReport,
                            today: date, now_ms: int) -> Optional[PurchaseOrder]:
    """Rebuild one purchase order from an untrusted entry.

    Args:
        raw_po: Raw entry (dict or PurchaseOrder)
        index: Position of the entry, used for the fallback id
        path: Diagnostic path of the entry
        report: Report collecting field issues
        today: Date used when the order date is missing or garbled
        now_ms: Timestamp in milliseconds used for fallback ids

    Returns:
        PurchaseOrder, or None for falsy entries
    """
    if _is_falsy(raw_po):
        report.dropped_entries += 1
        return None

    raw = _as_mapping(raw_po)
    if raw is None:
        # Truthy but not record-like: every field takes its default
        report.add(path, INVALID, raw_po)
        raw = {}

    order_date = parse_iso_date(raw.get('orderDate'))
    if order_date is None:
        report.add(f"{path}.orderDate", MISSING if raw.get('orderDate') is None else INVALID, raw.get('orderDate'))
        order_date = today

    po_number = raw.get('poNumber')
    days = {attr: _int(raw, key, path, report, upper=MAX_LEAD_DAYS) for key, attr in PO_DAY_FIELDS}
    modes = {
        attr: TransportMode(_enum_value(raw, key, VALID_MODES, path, report, TransportMode.SEA.value))
        for key, attr in PO_MODE_FIELDS
    }

    return PurchaseOrder(
        id=_identifier(raw, path, report, now_ms + index),
        po_number='' if po_number is None else str(po_number),
        order_date=order_date,
        qty=_number(raw, 'qty', path, report),
        status=POStatus(_enum_value(raw, 'status', VALID_STATUSES, path, report, POStatus.ORDERED.value)),
        **days,
        **modes,
    )


def sanitize_product(raw_product, index: int, report: SanitizeReport,
                     today: date, now_ms: int) -> Product:
    """Rebuild one product from an untrusted, truthy entry."""
    path = f"products[{index}]"
    raw = _as_mapping(raw_product)
    if raw is None:
        report.add(path, INVALID, raw_product)
        raw = {}

    product_id = _identifier(raw, path, report, index + 1)

    name = raw.get('name')
    if name is None:
        report.add(f"{path}.name", MISSING)
        name = f"SKU #{product_id}"

    sales_raw = raw.get('monthlySales')
    if not isinstance(sales_raw, (list, tuple)):
        report.add(f"{path}.monthlySales", MISSING if sales_raw is None else INVALID, sales_raw)
        sales_raw = []

    monthly_sales = []
    for month in range(MONTHS_PER_YEAR):
        value = sales_raw[month] if month < len(sales_raw) else None
        number, reason = coerce_non_negative(value)
        if reason == INVALID:
            report.add(f"{path}.monthlySales[{month}]", reason, value)
        monthly_sales.append(number)

    pos_raw = raw.get('pos')
    if not isinstance(pos_raw, (list, tuple)):
        if pos_raw is not None:
            report.add(f"{path}.pos", INVALID, pos_raw)
        pos_raw = []

    pos = []
    for po_index, raw_po in enumerate(pos_raw):
        po = sanitize_purchase_order(raw_po, po_index, f"{path}.pos[{po_index}]", report, today, now_ms)
        if po is not None:
            pos.append(po)

    return Product(
        id=product_id,
        name=str(name),
        current_stock=_number(raw, 'currentStock', path, report),
        unit_cost=_number(raw, 'unitCost', path, report),
        monthly_sales=tuple(monthly_sales),
        pos=tuple(pos),
    )


def sanitize_with_report(raw_items, today: Optional[date] = None) -> Tuple[List[Product], SanitizeReport]:
    """Sanitize a product collection and report every defaulted field.

    Args:
        raw_items: Arbitrary value, expected to be a list of product payloads
        today: Date substituted for missing or garbled order dates

    Returns:
        Tuple of (products, report)
    """
    report = SanitizeReport()
    today = today or date.today()
    now_ms = int(time.time() * 1000)

    if not isinstance(raw_items, (list, tuple)):
        if raw_items is not None:
            report.add('products', INVALID, type(raw_items).__name__)
        return [], report

    entries = [entry for entry in raw_items if not _is_falsy(entry)]
    report.dropped_entries += len(raw_items) - len(entries)

    products = [
        sanitize_product(entry, index, report, today, now_ms)
        for index, entry in enumerate(entries)
    ]

    if report.has_issues:
        logger.debug(f"Sanitized {len(products)} products with issues: {report.summary()}")

    return products, report


def sanitize(raw_items, today: Optional[date] = None) -> List[Product]:
    """Coerce an untrusted product collection into well-typed products.

    Never raises; a non-list input yields an empty list.
    """
    products, _ = sanitize_with_report(raw_items, today)
    return products
