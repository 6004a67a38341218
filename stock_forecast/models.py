# stock_forecast/models.py
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Dict, Optional, Tuple
import enum

MONTHS_PER_YEAR = 12

# Longest span representable between two dates
MAX_LEAD_DAYS = (date.max - date.min).days

class POStatus(enum.Enum):
    """Lifecycle stages of a purchase order."""
    PRE_ORDER = 'pre_order'
    ORDERED = 'ordered'
    CANCELLED = 'cancelled'
    IN_PRODUCTION = 'in_production'
    PROD_COMPLETE = 'prod_complete'
    LEG1_SHIPPED = 'leg1_shipped'
    LEG1_ARRIVED = 'leg1_arrived'
    LEG2_SHIPPED = 'leg2_shipped'
    LEG2_ARRIVED = 'leg2_arrived'
    INSPECTING = 'inspecting'
    PICKING = 'picking'
    BONDED_WAREHOUSE = 'bonded_warehouse'
    PENDING_SHELVING = 'pending_shelving'
    SHELVED = 'shelved'

    def __str__(self):
        """Return the string value of the enum."""
        return self.value

    @classmethod
    def from_string(cls, value) -> 'POStatus':
        """Create a POStatus from a string value.

        Unrecognized values are coerced to ORDERED.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.ORDERED

    @property
    def group(self) -> Optional[str]:
        """Dashboard group of the status, None for cancelled orders."""
        return STATUS_GROUPS.get(self)

STATUS_GROUPS: Dict[POStatus, str] = {
    POStatus.PRE_ORDER: 'ordered',
    POStatus.ORDERED: 'ordered',
    POStatus.IN_PRODUCTION: 'production',
    POStatus.PROD_COMPLETE: 'production',
    POStatus.LEG1_SHIPPED: 'shipping',
    POStatus.LEG1_ARRIVED: 'shipping',
    POStatus.LEG2_SHIPPED: 'shipping',
    POStatus.LEG2_ARRIVED: 'shipping',
    POStatus.INSPECTING: 'inspection',
    POStatus.PICKING: 'inspection',
    POStatus.BONDED_WAREHOUSE: 'inspection',
    POStatus.PENDING_SHELVING: 'inspection',
    POStatus.SHELVED: 'completed',
}

class TransportMode(enum.Enum):
    """Transport mode tag of a shipping leg. Display only."""
    SEA = 'sea'
    AIR = 'air'
    RAIL = 'rail'

    def __str__(self):
        return self.value

    @classmethod
    def from_string(cls, value) -> 'TransportMode':
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.SEA

class StockStatus(enum.Enum):
    """Classification of a projected day."""
    OK = 'ok'
    LOW = 'low'
    STOCKOUT = 'stockout'

    def __str__(self):
        return self.value

class RiskTier(enum.Enum):
    """Coarse bucket of months of coverage remaining."""
    SAFE = 'safe'
    WARNING = 'warning'
    CRITICAL = 'critical'

    def __str__(self):
        return self.value

class Urgency(enum.Enum):
    NORMAL = 'normal'
    CRITICAL = 'critical'

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class PurchaseOrder:
    """One inbound replenishment shipment."""
    id: int
    order_date: date
    qty: float = 0.0
    po_number: str = ''
    prod_days: int = 0
    leg1_mode: TransportMode = TransportMode.SEA
    leg1_days: int = 0
    leg2_mode: TransportMode = TransportMode.SEA
    leg2_days: int = 0
    leg3_mode: TransportMode = TransportMode.SEA
    leg3_days: int = 0
    status: POStatus = POStatus.ORDERED

    @property
    def lead_time_days(self) -> int:
        """Total days from order placement to arrival."""
        return self.prod_days + self.leg1_days + self.leg2_days + self.leg3_days

    @property
    def arrival_date(self) -> date:
        """Order date plus lead time, saturating at ``date.max``."""
        days_left = date.max.toordinal() - self.order_date.toordinal()
        return self.order_date + timedelta(days=min(self.lead_time_days, days_left))

    @property
    def is_cancelled(self) -> bool:
        return self.status is POStatus.CANCELLED

    @property
    def is_open(self) -> bool:
        """Open orders are neither cancelled nor shelved."""
        return self.status not in (POStatus.CANCELLED, POStatus.SHELVED)

    def to_dict(self) -> dict:
        """Serialize to the external payload shape."""
        return {
            'id': self.id,
            'poNumber': self.po_number,
            'orderDate': self.order_date.isoformat(),
            'qty': self.qty,
            'prodDays': self.prod_days,
            'leg1Mode': self.leg1_mode.value,
            'leg1Days': self.leg1_days,
            'leg2Mode': self.leg2_mode.value,
            'leg2Days': self.leg2_days,
            'leg3Mode': self.leg3_mode.value,
            'leg3Days': self.leg3_days,
            'status': self.status.value,
        }


@dataclass(frozen=True)
class Product:
    """One trackable inventory item."""
    id: int
    name: str
    current_stock: float = 0.0
    unit_cost: float = 0.0
    monthly_sales: Tuple[float, ...] = (0.0,) * MONTHS_PER_YEAR
    pos: Tuple[PurchaseOrder, ...] = ()

    @property
    def active_pos(self) -> Tuple[PurchaseOrder, ...]:
        """Purchase orders that contribute stock to a projection."""
        return tuple(po for po in self.pos if not po.is_cancelled)

    def find_po(self, po_id: int) -> Optional[PurchaseOrder]:
        for po in self.pos:
            if po.id == po_id:
                return po
        return None

    def evolve(self, **changes) -> 'Product':
        """Return a copy of the product with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Serialize to the external payload shape."""
        return {
            'id': self.id,
            'name': self.name,
            'currentStock': self.current_stock,
            'unitCost': self.unit_cost,
            'monthlySales': list(self.monthly_sales),
            'pos': [po.to_dict() for po in self.pos],
        }


@dataclass(frozen=True)
class DailyPoint:
    """Projected stock at the end of one day."""
    date: date
    stock: float
    status: StockStatus
    incoming_qty: float = 0.0


@dataclass(frozen=True)
class MonthEndPoint:
    """Projected stock on the last day of a calendar month."""
    year: int
    month: int
    stock: float
    status: StockStatus


@dataclass(frozen=True)
class Projection:
    """Output of a forecast run for one product."""
    series: Tuple[DailyPoint, ...] = ()
    current_month_daily_rate: float = 0.0
    month_end_stocks: Tuple[MonthEndPoint, ...] = ()


@dataclass(frozen=True)
class ProductAnalysis:
    """Reorder analytics derived from a product's projection."""
    product: Product
    projection: Projection
    days_until_stockout: int
    months_until_stockout: float
    risk_tier: RiskTier
    stockout_date: Optional[date]
    reorder_date: Optional[date]
    urgency: Urgency
    suggested_qty: float
    monthly_availability: Tuple[bool, ...] = field(default_factory=tuple)
    monthly_pos: Tuple[Tuple[PurchaseOrder, ...], ...] = field(default_factory=tuple)
