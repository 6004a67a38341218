from .dashboard import DashboardService, ForecastCache
from .product_store import ProductStore

__all__ = [
    'DashboardService',
    'ForecastCache',
    'ProductStore'
]
