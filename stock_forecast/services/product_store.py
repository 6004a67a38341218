# stock_forecast/services/product_store.py
from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stock_forecast.core.sanitizer import SanitizeReport, sanitize_with_report
from stock_forecast.db import ProductRow, PurchaseOrderRow
from stock_forecast.exceptions import NotFoundError, StorageError
from stock_forecast.logging_setup import get_logger
from stock_forecast.models import Product

log = get_logger('store')

class ProductStore:
    """Persistent product collection.

    The collection is saved wholesale and loaded back through the
    sanitizer, so callers only ever see well-formed products no matter what
    was written to the tables.
    """

    def __init__(self, session: Session):
        """Initialize the product store.

        Args:
            session: Database session
        """
        self.session = session

    @staticmethod
    def _row_to_payload(row: ProductRow) -> dict:
        return {
            'id': row.id,
            'name': row.name,
            'currentStock': row.current_stock,
            'unitCost': row.unit_cost,
            'monthlySales': row.monthly_sales,
            'pos': [
                {
                    'id': po.po_id,
                    'poNumber': po.po_number,
                    'orderDate': po.order_date,
                    'qty': po.qty,
                    'prodDays': po.prod_days,
                    'leg1Mode': po.leg1_mode,
                    'leg1Days': po.leg1_days,
                    'leg2Mode': po.leg2_mode,
                    'leg2Days': po.leg2_days,
                    'leg3Mode': po.leg3_mode,
                    'leg3Days': po.leg3_days,
                    'status': po.status,
                }
                for po in row.purchase_orders
            ],
        }

    @staticmethod
    def _product_to_row(product: Product, position: int) -> ProductRow:
        row = ProductRow(
            id=product.id,
            position=position,
            name=product.name,
            current_stock=product.current_stock,
            unit_cost=product.unit_cost,
            monthly_sales=list(product.monthly_sales)
        )
        row.purchase_orders = [
            PurchaseOrderRow(
                po_id=po.id,
                position=po_position,
                po_number=po.po_number,
                order_date=po.order_date.isoformat(),
                qty=po.qty,
                prod_days=po.prod_days,
                leg1_mode=po.leg1_mode.value,
                leg1_days=po.leg1_days,
                leg2_mode=po.leg2_mode.value,
                leg2_days=po.leg2_days,
                leg3_mode=po.leg3_mode.value,
                leg3_days=po.leg3_days,
                status=po.status.value
            )
            for po_position, po in enumerate(product.pos)
        ]
        return row

    def load_with_report(self, today: Optional[date] = None) -> Tuple[List[Product], SanitizeReport]:
        """Load the stored collection and the sanitation report.

        Raises:
            StorageError: if the tables cannot be read
        """
        try:
            rows = self.session.query(ProductRow).order_by(ProductRow.position, ProductRow.id).all()
            payload = [self._row_to_payload(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError("Could not load products", details=str(e))

        products, report = sanitize_with_report(payload, today)
        if report.has_issues:
            log.warning(f"Stored products needed sanitation: {report.summary()}")
            for issue in report.issues:
                log.debug(f"{issue.path}: {issue.reason} ({issue.value!r})")

        log.info(f"Loaded {len(products)} products")
        return products, report

    def load_products(self, today: Optional[date] = None) -> List[Product]:
        """Load the stored collection as sanitized products."""
        products, _ = self.load_with_report(today)
        return products

    def get_product(self, product_id: int, today: Optional[date] = None) -> Product:
        """Load one product.

        Raises:
            NotFoundError: if no stored product has the id
        """
        for product in self.load_products(today):
            if product.id == product_id:
                return product
        raise NotFoundError(f"Product {product_id} not found", details={'product_id': product_id})

    def save_products(self, products: Sequence[Product]) -> int:
        """Replace the stored collection.

        Returns:
            Number of products saved

        Raises:
            StorageError: if the collection cannot be written
        """
        try:
            for row in self.session.query(ProductRow).all():
                self.session.delete(row)
            self.session.flush()
            self.session.add_all(
                self._product_to_row(product, position) for position, product in enumerate(products)
            )
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError("Could not save products", details=str(e))

        log.info(f"Saved {len(products)} products")
        return len(products)

    def is_empty(self) -> bool:
        return self.session.query(ProductRow).count() == 0
