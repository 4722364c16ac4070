"""
Payment Settlement Domain Service.

Paying an order is the only place stock moves. The whole settlement is
one unit of work: re-read the order, check the tendered amount, attach
the payment and flip PENDING -> READY, then take every line out of
stock. Any failure rolls all of it back.

Concurrency: the order row and each product row are locked FOR UPDATE
(products in id order, so two settlements never wait on each other in
opposite orders). The status flip is written before any stock moves and
is guarded by the order version, so a request holding a stale copy
fails before touching stock. Stock decrements are conditional UPDATEs,
so even without row locks an order is settled at most once and stock
never goes negative.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from shared.config.constants import OrderStatus, PaymentMethod
from shared.config.logging import orders_logger as logger
from shared.infrastructure.db import unit_of_work
from shared.utils.schemas import PaymentRequest
from rest_api.models import Order, OrderLine, Payment
from rest_api.repositories import OrderRepository
from . import order_state
from .errors import InvalidStateError, NotFoundError, ValidationError
from .stock_ledger import StockLedger

if TYPE_CHECKING:
    from rest_api.services.events import OrderEventNotifier


def _quantities_by_product(lines: list[OrderLine]) -> list[tuple[str, int]]:
    """Total quantity per product, sorted by product id (the lock order)."""
    totals: dict[str, int] = defaultdict(int)
    for line in lines:
        totals[line.product_id] += line.quantity
    return sorted(totals.items())


def build_payment(total_cents: int, request: PaymentRequest) -> Payment:
    """
    Validate the tendered amount against the order total.

    CASH needs at least the total and gets change back. Card and PIX are
    charged exactly the total; a tendered amount, if sent, must match.
    """
    if request.method not in PaymentMethod.ALL:
        raise ValidationError(
            "Unknown payment method",
            errors={"method": f"must be one of {', '.join(PaymentMethod.ALL)}"},
        )

    tendered = request.amount_tendered_cents

    if request.method == PaymentMethod.CASH:
        if tendered is None:
            raise ValidationError(
                "Amount tendered is required for cash payments",
                errors={"amount_tendered_cents": "required for cash payments"},
            )
        if tendered < total_cents:
            raise ValidationError(
                "Insufficient amount tendered",
                errors={"amount_tendered_cents": f"must be at least {total_cents}"},
            )
        return Payment(
            method=request.method,
            amount_tendered_cents=tendered,
            change_due_cents=tendered - total_cents,
        )

    if tendered is not None and tendered != total_cents:
        raise ValidationError(
            "Amount tendered must equal the order total for non-cash payments",
            errors={"amount_tendered_cents": f"must be exactly {total_cents}"},
        )
    return Payment(method=request.method, amount_tendered_cents=total_cents, change_due_cents=0)


class SettlementService:
    """Domain service for order payment."""

    def __init__(self, db: Session, notifier: "OrderEventNotifier | None" = None):
        self._db = db
        self._notifier = notifier

    def settle_payment(self, order_id: str, request: PaymentRequest) -> Order:
        """
        Pay a PENDING order and move it to READY.

        Raises:
            NotFoundError: unknown order or product
            InvalidStateError: order is not PENDING (already paid, delivered
                or cancelled), including when another request paid it first
            ValidationError: tendered amount rejected
            InsufficientStockError: some line cannot be served; nothing changes
        """
        with unit_of_work(self._db) as tx:
            order = OrderRepository(tx).get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order", order_id)

            if order.status != OrderStatus.PENDING:
                raise InvalidStateError(
                    "Order",
                    order.status,
                    [OrderStatus.PENDING],
                    detail=f"Order is not payable: order is '{order.status}', expected: PENDING",
                )

            # Reject a bad amount before any stock is touched
            payment = build_payment(order.total_cents, request)

            # Claim the order first; a request that lost the race stops here
            order_state.transition_to_ready(order, payment)
            order_state.flush_transition(tx, order, OrderStatus.PENDING)

            ledger = StockLedger(tx)
            for product_id, quantity in _quantities_by_product(order.lines):
                ledger.decrement_if_sufficient(product_id, quantity)

        logger.info(
            "Order paid",
            order_id=order.id,
            ticket_number=order.ticket_number,
            method=payment.method,
            total_cents=order.total_cents,
            change_due_cents=payment.change_due_cents,
        )

        if self._notifier is not None:
            self._notifier.order_ready(order)
        return order
