"""
Product Repository - Data access for products.
"""

from typing import Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from rest_api.models import Product
from .base import BaseRepository, RepositoryFilters


class ProductRepository(BaseRepository[Product]):
    """Repository for Product entities."""

    @property
    def model(self) -> type[Product]:
        return Product

    def _base_query(self) -> Select:
        return select(Product).order_by(Product.name)

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        return query

    def find_map(self, product_ids: Sequence[str]) -> dict[str, Product]:
        """Batch fetch products keyed by id. Missing ids are simply absent."""
        return {product.id: product for product in self.find_by_ids(list(product_ids))}
