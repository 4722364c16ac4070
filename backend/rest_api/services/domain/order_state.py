"""
Order state machine.

All status changes of an Order go through this module. The legal edges
live in ORDER_TRANSITIONS; anything else raises InvalidStateError.

These functions only mutate the in-memory aggregate. The version column
is bumped by the mapper when the change is flushed, and that UPDATE only
matches while the row still has the version that was read.
"""

from __future__ import annotations

from typing import Final

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from rest_api.models import Order, OrderLine, Payment
from rest_api.models.base import utcnow
from shared.config.constants import OrderStatus
from .errors import InvalidStateError, ValidationError

# from_status -> statuses reachable from it
ORDER_TRANSITIONS: Final[dict[str, frozenset[str]]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in ORDER_TRANSITIONS.get(from_status, frozenset())


def _ensure_transition(order: Order, to_status: str, detail: str) -> None:
    if not can_transition(order.status, to_status):
        expected = [s for s, targets in ORDER_TRANSITIONS.items() if to_status in targets]
        raise InvalidStateError(
            "Order",
            order.status,
            expected,
            detail=f"{detail}: order is '{order.status}', expected: {', '.join(expected)}",
        )


def recalculate_total(order: Order) -> int:
    """Recompute line subtotals and the order total from the lines."""
    if order.status != OrderStatus.PENDING:
        raise InvalidStateError("Order", order.status, [OrderStatus.PENDING],
                                detail="Order lines are frozen once the order leaves PENDING")
    total = 0
    for line in order.lines:
        line.subtotal_cents = line.unit_price_cents * line.quantity
        total += line.subtotal_cents
    order.total_cents = total
    return total


def add_line(order: Order, product_id: str, product_name: str, unit_price_cents: int, quantity: int) -> OrderLine:
    """Append a line with snapshotted name and price and refresh the total."""
    if quantity <= 0:
        raise ValidationError(
            "Quantity must be greater than zero",
            errors={"quantity": "must be greater than zero"},
        )
    line = OrderLine(
        position=len(order.lines),
        product_id=product_id,
        product_name=product_name,
        unit_price_cents=unit_price_cents,
        quantity=quantity,
        subtotal_cents=unit_price_cents * quantity,
    )
    order.lines.append(line)
    recalculate_total(order)
    return line


def transition_to_ready(order: Order, payment: Payment) -> None:
    """PENDING -> READY. Attaches the payment and stamps paid_at."""
    _ensure_transition(order, OrderStatus.READY, "Order is not payable")
    now = utcnow()
    order.payment = payment
    order.status = OrderStatus.READY
    order.paid_at = now
    order.updated_at = now


def transition_to_delivered(order: Order) -> None:
    """READY -> DELIVERED."""
    _ensure_transition(order, OrderStatus.DELIVERED, "Order cannot be delivered")
    now = utcnow()
    order.status = OrderStatus.DELIVERED
    order.delivered_at = now
    order.updated_at = now


def cancel(order: Order) -> None:
    """PENDING -> CANCELLED. Paid orders cannot be cancelled."""
    _ensure_transition(order, OrderStatus.CANCELLED, "Order cannot be cancelled")
    now = utcnow()
    order.status = OrderStatus.CANCELLED
    order.cancelled_at = now
    order.updated_at = now


def flush_transition(tx: Session, order: Order, from_status: str) -> None:
    """
    Write a transition made by this module.

    The UPDATE only matches the version that was read, so a copy that
    went stale under another request's commit fails here instead of
    overwriting it.
    """
    order_id = order.id
    try:
        tx.flush()
    except StaleDataError:
        raise InvalidStateError(
            "Order",
            from_status,
            detail=f"Order {order_id} was changed by another request, reload it and try again",
        )
