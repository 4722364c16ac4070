"""
Order Domain Service.

Opening, delivering and cancelling orders. Payment lives in
settlement_service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from shared.config.constants import Limits, OrderStatus
from shared.config.logging import orders_logger as logger
from shared.infrastructure.db import unit_of_work
from shared.utils.schemas import OrderCreateRequest
from rest_api.models import Order
from rest_api.repositories import OrderRepository, ProductRepository
from . import order_state
from .errors import NotFoundError, ValidationError
from .ticket_numbers import business_date_for, next_ticket_number

if TYPE_CHECKING:
    from rest_api.services.events import OrderEventNotifier


def _merge_items(request: OrderCreateRequest) -> dict[str, int]:
    """
    Collapse repeated products into one quantity each, keeping the
    position of the first occurrence.
    """
    if not request.items:
        raise ValidationError(
            "Order must have at least one item",
            errors={"items": "must not be empty"},
        )

    errors: dict[str, str] = {}
    merged: dict[str, int] = {}
    for index, item in enumerate(request.items):
        if item.quantity <= 0:
            errors[f"items[{index}].quantity"] = "must be greater than zero"
            continue
        merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity

    if errors:
        raise ValidationError("Invalid order items", errors=errors)
    if len(merged) > Limits.MAX_ORDER_LINES:
        raise ValidationError(
            "Too many items in one order",
            errors={"items": f"at most {Limits.MAX_ORDER_LINES} different products"},
        )
    return merged


def _clean_customer_name(name: str | None) -> str | None:
    if name is None:
        return None
    name = name.strip()
    if not name:
        return None
    if len(name) > Limits.MAX_CUSTOMER_NAME_LENGTH:
        raise ValidationError(
            "Customer name is too long",
            errors={"customer_name": f"at most {Limits.MAX_CUSTOMER_NAME_LENGTH} characters"},
        )
    return name


class OrderService:
    """
    Domain service for the order lifecycle outside of payment.

    Stock is never checked or touched here: it is reserved only when the
    order is paid.
    """

    def __init__(self, db: Session, notifier: "OrderEventNotifier | None" = None):
        self._db = db
        self._notifier = notifier

    def create(
        self,
        request: OrderCreateRequest,
        attendant_id: str | None = None,
    ) -> Order:
        """
        Open a PENDING order with name and price snapshots of each product.

        Raises:
            ValidationError: empty order, bad quantity, inactive product
            NotFoundError: unknown product
        """
        quantities = _merge_items(request)
        customer_name = _clean_customer_name(request.customer_name)

        with unit_of_work(self._db) as tx:
            products = ProductRepository(tx).find_map(list(quantities))

            for product_id in quantities:
                product = products.get(product_id)
                if product is None:
                    raise NotFoundError("Product", product_id)
                if not product.is_active:
                    raise ValidationError(
                        "Product is not available",
                        errors={"product_id": f"'{product_id}' is not available"},
                    )

            business_date = business_date_for()
            order = Order(
                status=OrderStatus.PENDING,
                business_date=business_date,
                ticket_number=next_ticket_number(tx, business_date),
                customer_name=customer_name,
                attendant_id=attendant_id,
                total_cents=0,
            )
            for product_id, quantity in quantities.items():
                product = products[product_id]
                order_state.add_line(
                    order,
                    product_id=product.id,
                    product_name=product.name,
                    unit_price_cents=product.unit_price_cents,
                    quantity=quantity,
                )
            tx.add(order)
            tx.flush()

        logger.info(
            "Order created",
            order_id=order.id,
            ticket_number=order.ticket_number,
            total_cents=order.total_cents,
            lines=len(order.lines),
            attendant_id=attendant_id,
        )
        return order

    def _load_for_update(self, tx: Session, order_id: str) -> Order:
        order = OrderRepository(tx).get_for_update(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def mark_delivered(self, order_id: str) -> Order:
        """
        READY -> DELIVERED, then tell the screens to drop the ticket.

        Raises:
            NotFoundError: unknown order
            InvalidStateError: order is not READY
        """
        with unit_of_work(self._db) as tx:
            order = self._load_for_update(tx, order_id)
            order_state.transition_to_delivered(order)
            order_state.flush_transition(tx, order, OrderStatus.READY)

        logger.info("Order delivered", order_id=order.id, ticket_number=order.ticket_number)
        if self._notifier is not None:
            self._notifier.order_delivered(order)
        return order

    def cancel_order(self, order_id: str) -> Order:
        """
        PENDING -> CANCELLED. Stock is untouched, nothing was reserved.

        Raises:
            NotFoundError: unknown order
            InvalidStateError: order was already paid, delivered or cancelled
        """
        with unit_of_work(self._db) as tx:
            order = self._load_for_update(tx, order_id)
            order_state.cancel(order)
            order_state.flush_transition(tx, order, OrderStatus.PENDING)

        logger.info("Order cancelled", order_id=order.id, ticket_number=order.ticket_number)
        if self._notifier is not None:
            self._notifier.order_cancelled(order)
        return order
