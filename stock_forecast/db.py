from contextlib import contextmanager

from sqlalchemy import (
    BigInteger, Column, DateTime, Float, ForeignKey, Integer, JSON, String, create_engine
)
from sqlalchemy.orm import declarative_base, relationship, scoped_session, sessionmaker
from sqlalchemy.sql import func

from stock_forecast.config import config

Base = declarative_base()


class ProductRow(Base):
    """Stored product record.

    Values are kept as written by the caller; loading always passes them
    through the sanitizer.
    """
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, autoincrement=False)
    position = Column(Integer, nullable=False, default=0)  # display order
    name = Column(String)
    current_stock = Column(Float)
    unit_cost = Column(Float)
    monthly_sales = Column(JSON)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    purchase_orders = relationship(
        'PurchaseOrderRow',
        back_populates='product',
        order_by='PurchaseOrderRow.position',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f"<ProductRow(id={self.id}, name='{self.name}', current_stock={self.current_stock})>"


class PurchaseOrderRow(Base):
    """Stored purchase order record."""
    __tablename__ = 'purchase_orders'

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    # Purchase order ids are only unique per product
    po_id = Column(BigInteger, nullable=False)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    po_number = Column(String)
    order_date = Column(String(10))
    qty = Column(Float)
    prod_days = Column(Integer)
    leg1_mode = Column(String(10))
    leg1_days = Column(Integer)
    leg2_mode = Column(String(10))
    leg2_days = Column(Integer)
    leg3_mode = Column(String(10))
    leg3_days = Column(Integer)
    status = Column(String(30))

    product = relationship('ProductRow', back_populates='purchase_orders')

    def __repr__(self):
        return f"<PurchaseOrderRow(po_id={self.po_id}, product_id={self.product_id}, status='{self.status}')>"


class Database:
    """Database connection manager for the Stock Forecast system."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Database, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the database connection if not already initialized."""
        if self._initialized:
            return

        self._engine = None
        self._session_factory = None
        self._session = None
        self._initialized = True

    def initialize(self, connection_string=None):
        """Initialize database connection.

        Args:
            connection_string: Optional database URL.
                              If not provided, will use configuration.
        """
        if connection_string is None:
            connection_string = config.get_db_url()

        echo = config.get_boolean('DATABASE', 'echo', False)

        self._engine = create_engine(connection_string, echo=echo)
        self._session_factory = sessionmaker(bind=self._engine)
        self._session = scoped_session(self._session_factory)

    def create_all_tables(self):
        """Create all tables defined in the models."""
        Base.metadata.create_all(self.engine)

    def drop_all_tables(self):
        """Drop all tables from the database."""
        Base.metadata.drop_all(self.engine)

    @property
    def session(self):
        """Get the current session registry."""
        if self._session is None:
            self.initialize()
        return self._session

    @property
    def engine(self):
        """Get the database engine."""
        if self._engine is None:
            self.initialize()
        return self._engine

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope around a series of operations."""
        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

# Global database instance
db = Database()

@contextmanager
def session_scope():
    """Session scope context manager."""
    with db.session_scope() as session:
        yield session
