"""
Repository Pattern implementation.
Centralizes data access with guaranteed eager loading.

Usage:
    from rest_api.repositories import OrderRepository, OrderFilters

    repo = OrderRepository(db)
    orders = repo.find_all(OrderFilters(status="READY", limit=20))
    order = repo.find_by_id(order_id)
"""

from .base import BaseRepository, RepositoryFilters
from .product import ProductRepository
from .order import OrderRepository, OrderFilters

__all__ = [
    # Base
    "BaseRepository",
    "RepositoryFilters",
    # Product
    "ProductRepository",
    # Order
    "OrderRepository",
    "OrderFilters",
]
