"""
Stock Ledger.

Per-product available quantity, decremented only by payment settlement.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shared.config.logging import get_logger
from rest_api.models import Product
from .errors import InsufficientStockError, NotFoundError, ValidationError

logger = get_logger(__name__)


class StockLedger:
    """
    Stock operations bound to one open transaction.

    Build it from the session yielded by unit_of_work(); it refuses a
    session with no transaction in progress, since a decrement outside a
    unit of work could not be rolled back with the rest of a settlement.
    """

    def __init__(self, tx: Session):
        if not tx.in_transaction():
            raise RuntimeError("StockLedger requires a session with an active transaction")
        self._tx = tx

    def lock_product(self, product_id: str) -> Product:
        """Lock the product row for the rest of the transaction and return fresh values."""
        product = self._tx.scalar(
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def decrement_if_sufficient(self, product_id: str, quantity: int) -> int:
        """
        Take quantity units out of stock and return the new stock level.

        The UPDATE itself carries "available_stock >= :qty", so stock can
        not go negative even where row locks are not available.

        Raises:
            ValidationError: quantity is not positive
            NotFoundError: product does not exist
            InsufficientStockError: not enough stock; nothing is changed
        """
        if quantity <= 0:
            raise ValidationError(
                "Quantity must be greater than zero",
                errors={"quantity": "must be greater than zero"},
            )

        product = self.lock_product(product_id)
        if product.available_stock < quantity:
            raise InsufficientStockError(product.id, product.name, product.available_stock, quantity)

        result = self._tx.execute(
            update(Product)
            .where(Product.id == product_id, Product.available_stock >= quantity)
            .values(available_stock=Product.available_stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Someone else took the stock between the read and the update
            self._tx.refresh(product)
            raise InsufficientStockError(product.id, product.name, product.available_stock, quantity)

        self._tx.refresh(product, ["available_stock"])
        logger.debug(
            "Stock decremented",
            product_id=product_id,
            quantity=quantity,
            available_stock=product.available_stock,
        )
        return product.available_stock
