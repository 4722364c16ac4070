"""
Orders router.
Counter operations: open, pay, deliver and cancel orders, plus the
read endpoints used by the queue screen and the customer display.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Limits, OrderAction
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, require_permission
from shared.utils.schemas import (
    DisplayTicketOutput,
    ErrorResponse,
    OrderCreateRequest,
    OrderOutput,
    PaymentRequest,
    ReceiptOutput,
)
from rest_api.core.dependencies import get_order_event_notifier
from rest_api.services.domain import (
    OrderQueryService,
    OrderService,
    ReceiptService,
    SettlementService,
)
from rest_api.services.domain.order_output import build_order_output
from rest_api.services.events import OrderEventNotifier


router = APIRouter(prefix="/api/orders", tags=["orders"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=OrderOutput,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
def create_order(
    body: OrderCreateRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """
    Open a PENDING order. Stock is not reserved until payment.

    Requires ATTENDANT, ADMIN, or MASTER role.
    """
    require_permission(ctx, OrderAction.CREATE)
    order = OrderService(db).create(body, attendant_id=ctx["sub"])
    return build_order_output(order)


@router.get("", response_model=list[OrderOutput])
def list_orders(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[OrderOutput]:
    """List orders, newest first. Requires any staff role."""
    require_permission(ctx, OrderAction.READ)
    orders = OrderQueryService(db).list_orders(status_filter, limit=limit, offset=offset)
    return [build_order_output(order) for order in orders]


@router.get("/ready", response_model=list[OrderOutput])
def list_ready_orders(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[OrderOutput]:
    """Orders paid and waiting for pickup, lowest ticket first."""
    require_permission(ctx, OrderAction.READ)
    return [build_order_output(order) for order in OrderQueryService(db).list_ready()]


@router.get("/display", response_model=list[DisplayTicketOutput])
def list_display_tickets(db: Session = Depends(get_db)) -> list[DisplayTicketOutput]:
    """
    Public customer display: today's ready tickets.

    No authentication. Only ticket number and customer name are exposed.
    """
    return OrderQueryService(db).list_for_display()


@router.get("/{order_id}", response_model=OrderOutput, responses=ERROR_RESPONSES)
def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    require_permission(ctx, OrderAction.READ)
    return build_order_output(OrderQueryService(db).get_order(order_id))


@router.get("/{order_id}/receipt", response_model=ReceiptOutput, responses=ERROR_RESPONSES)
def get_order_receipt(
    order_id: str,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ReceiptOutput:
    """
    Receipt data for a paid order. The printer client lays it out.

    Returns 409 when the order has not been paid.
    """
    require_permission(ctx, OrderAction.READ)
    return ReceiptService(db).build_receipt(order_id)


@router.post("/{order_id}/pay", response_model=OrderOutput, responses=ERROR_RESPONSES)
def pay_order(
    order_id: str,
    body: PaymentRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
    notifier: OrderEventNotifier = Depends(get_order_event_notifier),
) -> OrderOutput:
    """
    Settle a PENDING order: record the payment, take the stock and mark
    it READY. Screens are notified after the commit.

    400 for insufficient amount or stock, 409 if the order is not PENDING.
    """
    require_permission(ctx, OrderAction.PAY)
    order = SettlementService(db, notifier).settle_payment(order_id, body)
    return build_order_output(order)


@router.patch("/{order_id}/deliver", response_model=OrderOutput, responses=ERROR_RESPONSES)
def deliver_order(
    order_id: str,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
    notifier: OrderEventNotifier = Depends(get_order_event_notifier),
) -> OrderOutput:
    """Hand a READY order to the customer. Requires any staff role."""
    require_permission(ctx, OrderAction.DELIVER)
    order = OrderService(db, notifier).mark_delivered(order_id)
    return build_order_output(order)


@router.patch("/{order_id}/cancel", response_model=OrderOutput, responses=ERROR_RESPONSES)
def cancel_order(
    order_id: str,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
    notifier: OrderEventNotifier = Depends(get_order_event_notifier),
) -> OrderOutput:
    """
    Cancel a PENDING order. Paid orders cannot be cancelled.

    Requires ADMIN or MASTER role.
    """
    require_permission(ctx, OrderAction.CANCEL)
    order = OrderService(db, notifier).cancel_order(order_id)
    return build_order_output(order)
