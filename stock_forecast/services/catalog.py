# stock_forecast/services/catalog.py
"""
Value-level edits of a product collection.

Every function takes a sequence of products and returns a new tuple; the
input collection and its records are never mutated, so a forecast running
on an earlier snapshot is never affected by later edits.
"""
import math
import time
from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from stock_forecast.config import config
from stock_forecast.exceptions import NotFoundError, ValidationError
from stock_forecast.logging_setup import get_logger
from stock_forecast.models import (
    MAX_LEAD_DAYS, MONTHS_PER_YEAR, POStatus, Product, PurchaseOrder, TransportMode
)
from stock_forecast.utils.date_utils import format_compact, parse_iso_date
from stock_forecast.utils.math_utils import to_finite_number
from stock_forecast.utils.validation import clamp_non_negative_int, clamp_non_negative_number

log = get_logger('catalog')

PRODUCT_NUMBER_FIELDS = {
    'current_stock': 'Current stock',
    'unit_cost': 'Unit cost',
}
PO_NUMBER_FIELDS = {
    'qty': 'Order quantity',
}
PO_DAY_FIELDS = {
    'prod_days': 'Production days',
    'leg1_days': 'Leg 1 days',
    'leg2_days': 'Leg 2 days',
    'leg3_days': 'Leg 3 days',
}
PO_MODE_FIELDS = ('leg1_mode', 'leg2_mode', 'leg3_mode')

def next_product_id(products: Sequence[Product]) -> int:
    """Next free product id: one above the highest id in use."""
    return max((product.id for product in products), default=0) + 1

def get_product(products: Sequence[Product], product_id: int) -> Product:
    """Find a product by id.

    Raises:
        NotFoundError: if no product has the id
    """
    for product in products:
        if product.id == product_id:
            return product
    raise NotFoundError(f"Product {product_id} not found", details={'product_id': product_id})

def _replace_product(products: Sequence[Product], updated: Product) -> Tuple[Product, ...]:
    return tuple(updated if product.id == updated.id else product for product in products)

def add_product(products: Sequence[Product], name: Optional[str] = None) -> Tuple[Tuple[Product, ...], Product]:
    """Append a new empty product.

    Returns:
        Tuple of (new collection, new product)
    """
    new_id = next_product_id(products)
    product = Product(id=new_id, name=name or f"New product {new_id}")
    log.info(f"Added product {new_id}")
    return tuple(products) + (product,), product

def duplicate_product(products: Sequence[Product], product_id: int) -> Tuple[Tuple[Product, ...], Product]:
    """Append a copy of a product under a new id.

    Returns:
        Tuple of (new collection, copied product)
    """
    source = get_product(products, product_id)
    new_id = next_product_id(products)
    copy = source.evolve(id=new_id, name=f"{source.name} (copy)")
    log.info(f"Duplicated product {product_id} as {new_id}")
    return tuple(products) + (copy,), copy

def delete_product(products: Sequence[Product], product_id: int) -> Tuple[Product, ...]:
    """Remove a product from the collection."""
    get_product(products, product_id)
    log.info(f"Deleted product {product_id}")
    return tuple(product for product in products if product.id != product_id)

def _clamp_sales(values, warnings: Optional[List[str]]) -> Tuple[float, ...]:
    if not isinstance(values, (list, tuple)):
        raise ValidationError("Monthly sales must be a sequence of 12 numbers")
    values = list(values)[:MONTHS_PER_YEAR]
    values += [0] * (MONTHS_PER_YEAR - len(values))
    return tuple(
        clamp_non_negative_number(value, f"Sales for month {month + 1}", warnings)
        for month, value in enumerate(values)
    )

def update_product(products: Sequence[Product], product_id: int,
                   warnings: Optional[List[str]] = None, **changes) -> Tuple[Product, ...]:
    """Replace fields of one product.

    Numeric fields are clamped to non-negative values; values above the
    advisory limit are accepted and reported through ``warnings``.

    Args:
        products: Product collection
        product_id: Id of the product to update
        warnings: Optional list collecting advisory warnings
        **changes: Any of name, current_stock, unit_cost, monthly_sales

    Returns:
        New collection

    Raises:
        NotFoundError: if the product does not exist
        ValidationError: for unknown fields or an empty name
    """
    product = get_product(products, product_id)
    values = {}

    for field_name, value in changes.items():
        if field_name == 'name':
            name = str(value).strip()
            if not name:
                raise ValidationError("Product name cannot be empty", details={'product_id': product_id})
            values['name'] = name
        elif field_name in PRODUCT_NUMBER_FIELDS:
            values[field_name] = clamp_non_negative_number(value, PRODUCT_NUMBER_FIELDS[field_name], warnings)
        elif field_name == 'monthly_sales':
            values['monthly_sales'] = _clamp_sales(value, warnings)
        else:
            raise ValidationError(f"Unknown product field: {field_name}", details={'field': field_name})

    return _replace_product(products, product.evolve(**values))

def quick_fill_monthly_sales(annual_total) -> Tuple[float, ...]:
    """Spread an annual sales total evenly over 12 months.

    Each month gets the floored twelfth; the remainder is handed out one
    unit at a time starting with January.

    Raises:
        ValidationError: if the total is not a finite, non-negative number
    """
    total = to_finite_number(annual_total)
    if total is None or total < 0:
        raise ValidationError("Annual sales total must be a non-negative number", details={'value': annual_total})

    monthly_value = math.floor(total / MONTHS_PER_YEAR)
    sales = [float(monthly_value)] * MONTHS_PER_YEAR
    remainder = total % MONTHS_PER_YEAR
    for month in range(math.ceil(remainder)):
        sales[month] += 1
    return tuple(sales)

def generate_po_number(product: Optional[Product], today: Optional[date] = None) -> str:
    """Next display number ``PO-YYYYMMDD-NNN`` for orders created today on a product."""
    stamp = format_compact(today or date.today())
    if product is None:
        return f"PO-{stamp}-001"

    todays_orders = [
        po for po in product.pos
        if po.po_number and len(po.po_number.split('-')) > 1 and po.po_number.split('-')[1] == stamp
    ]
    return f"PO-{stamp}-{len(todays_orders) + 1:03d}"

def _new_po_id(product: Product, po_id: Optional[int]) -> int:
    po_id = po_id if po_id is not None else int(time.time() * 1000)
    while product.find_po(po_id) is not None:
        po_id += 1
    return po_id

def add_po(products: Sequence[Product], product_id: int, today: Optional[date] = None,
           defaults: Optional[Dict] = None, po_id: Optional[int] = None) -> Tuple[Tuple[Product, ...], PurchaseOrder]:
    """Append a purchase order placed today with the configured default lead times.

    Returns:
        Tuple of (new collection, new purchase order)
    """
    product = get_product(products, product_id)
    today = today or date.today()
    defaults = defaults or config.order_defaults

    po = PurchaseOrder(
        id=_new_po_id(product, po_id),
        po_number=generate_po_number(product, today),
        order_date=today,
        qty=float(defaults.get('qty', 0)),
        prod_days=int(defaults.get('prod_days', 0)),
        leg1_days=int(defaults.get('leg1_days', 0)),
        leg2_days=int(defaults.get('leg2_days', 0)),
        leg3_days=int(defaults.get('leg3_days', 0)),
        status=POStatus.ORDERED
    )
    log.info(f"Added purchase order {po.po_number} to product {product_id}")
    return _replace_product(products, product.evolve(pos=product.pos + (po,))), po

def update_po(products: Sequence[Product], product_id: int, po_id: int,
              warnings: Optional[List[str]] = None, **changes) -> Tuple[Product, ...]:
    """Replace fields of one purchase order.

    Args:
        products: Product collection
        product_id: Id of the owning product
        po_id: Id of the purchase order
        warnings: Optional list collecting advisory warnings
        **changes: Any purchase order field except id

    Returns:
        New collection

    Raises:
        NotFoundError: if the product or purchase order does not exist
        ValidationError: for unknown fields or an unparsable order date
    """
    product = get_product(products, product_id)
    po = product.find_po(po_id)
    if po is None:
        raise NotFoundError(f"Purchase order {po_id} not found on product {product_id}",
                            details={'product_id': product_id, 'po_id': po_id})

    values = {}
    for field_name, value in changes.items():
        if field_name == 'order_date':
            order_date = parse_iso_date(value)
            if order_date is None:
                raise ValidationError(f"Invalid order date: {value}", details={'po_id': po_id})
            values['order_date'] = order_date
        elif field_name in PO_NUMBER_FIELDS:
            values[field_name] = clamp_non_negative_number(value, PO_NUMBER_FIELDS[field_name], warnings)
        elif field_name in PO_DAY_FIELDS:
            values[field_name] = clamp_non_negative_int(
                value, PO_DAY_FIELDS[field_name], warnings, upper=MAX_LEAD_DAYS
            )
        elif field_name in PO_MODE_FIELDS:
            values[field_name] = TransportMode.from_string(value)
        elif field_name == 'status':
            values['status'] = POStatus.from_string(value)
        elif field_name == 'po_number':
            values['po_number'] = str(value)
        else:
            raise ValidationError(f"Unknown purchase order field: {field_name}", details={'field': field_name})

    updated = replace(po, **values)
    pos = tuple(updated if existing.id == po_id else existing for existing in product.pos)
    return _replace_product(products, product.evolve(pos=pos))

def duplicate_po(products: Sequence[Product], product_id: int, po_id: int,
                 today: Optional[date] = None, new_po_id: Optional[int] = None) -> Tuple[Tuple[Product, ...], PurchaseOrder]:
    """Copy a purchase order as a new order placed today with status ``ordered``.

    Returns:
        Tuple of (new collection, copied purchase order)
    """
    product = get_product(products, product_id)
    source = product.find_po(po_id)
    if source is None:
        raise NotFoundError(f"Purchase order {po_id} not found on product {product_id}",
                            details={'product_id': product_id, 'po_id': po_id})

    today = today or date.today()
    copy = replace(
        source,
        id=_new_po_id(product, new_po_id),
        po_number=generate_po_number(product, today),
        order_date=today,
        status=POStatus.ORDERED
    )
    return _replace_product(products, product.evolve(pos=product.pos + (copy,))), copy

def remove_po(products: Sequence[Product], product_id: int, po_id: int) -> Tuple[Product, ...]:
    """Remove a purchase order from a product."""
    product = get_product(products, product_id)
    if product.find_po(po_id) is None:
        raise NotFoundError(f"Purchase order {po_id} not found on product {product_id}",
                            details={'product_id': product_id, 'po_id': po_id})
    pos = tuple(po for po in product.pos if po.id != po_id)
    return _replace_product(products, product.evolve(pos=pos))

def bootstrap_products(today: Optional[date] = None) -> Tuple[Product, ...]:
    """Initial collection used when the store is empty."""
    today = today or date.today()
    return (
        Product(
            id=1,
            name='Flagship product A (North America)',
            current_stock=1200.0,
            monthly_sales=(600.0,) * MONTHS_PER_YEAR,
            pos=(
                PurchaseOrder(
                    id=101,
                    po_number=f"PO-{format_compact(today)}-001",
                    order_date=today,
                    qty=2500.0,
                    prod_days=30,
                    leg1_mode=TransportMode.SEA,
                    leg1_days=35,
                    leg2_mode=TransportMode.RAIL,
                    leg2_days=15,
                    leg3_mode=TransportMode.SEA,
                    leg3_days=10
                ),
            )
        ),
        Product(
            id=2,
            name='Fast mover B (Southeast Asia)',
            current_stock=4000.0,
            monthly_sales=(800.0,) * MONTHS_PER_YEAR
        ),
    )
