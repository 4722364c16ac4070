"""
Catalog Models: Product.

Products are owned by the catalog collaborator. Only the columns the
order workflow reads or writes are mapped here.
"""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Product(TimestampMixin, Base):
    """
    A sellable item with its current price and stock.

    available_stock is only decremented by payment settlement.
    """

    __tablename__ = "product"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    available_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("unit_price_cents >= 0", name="chk_product_price_non_negative"),
        CheckConstraint("available_stock >= 0", name="chk_product_stock_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Product(id='{self.id}', stock={self.available_stock}, active={self.is_active})>"
