"""
Order -> schema builders shared by routers, the notifier and the receipt.
"""

from __future__ import annotations

from rest_api.models import Order
from rest_api.models.base import as_utc
from shared.utils.schemas import (
    DisplayTicketOutput,
    OrderLineOutput,
    OrderOutput,
    PaymentOutput,
)


def build_order_output(order: Order) -> OrderOutput:
    payment = None
    if order.payment is not None:
        payment = PaymentOutput(
            method=order.payment.method,
            amount_tendered_cents=order.payment.amount_tendered_cents,
            change_due_cents=order.payment.change_due_cents,
            created_at=as_utc(order.payment.created_at),
        )

    return OrderOutput(
        id=order.id,
        ticket_number=order.ticket_number,
        business_date=order.business_date.isoformat(),
        customer_name=order.customer_name,
        status=order.status,
        lines=[
            OrderLineOutput(
                product_id=line.product_id,
                product_name=line.product_name,
                unit_price_cents=line.unit_price_cents,
                quantity=line.quantity,
                subtotal_cents=line.subtotal_cents,
            )
            for line in order.lines
        ],
        total_cents=order.total_cents,
        payment=payment,
        attendant_id=order.attendant_id,
        created_at=as_utc(order.created_at),
        updated_at=as_utc(order.updated_at),
        paid_at=as_utc(order.paid_at),
        delivered_at=as_utc(order.delivered_at),
        cancelled_at=as_utc(order.cancelled_at),
    )


def build_display_ticket(order: Order) -> DisplayTicketOutput:
    """Public projection: no prices, no items, no staff data."""
    return DisplayTicketOutput(ticket_number=order.ticket_number, customer_name=order.customer_name)
