"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class and TimestampMixin
- catalog: Product
- order: Order, OrderLine, Payment
- ticket: DailyTicketCounter
"""

# Base classes
from .base import Base, TimestampMixin

# Catalog
from .catalog import Product

# Orders
from .order import Order, OrderLine, Payment

# Ticket numbers
from .ticket import DailyTicketCounter

__all__ = [
    "Base",
    "TimestampMixin",
    "Product",
    "Order",
    "OrderLine",
    "Payment",
    "DailyTicketCounter",
]
