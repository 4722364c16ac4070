"""
Receipt Domain Service.

Builds the structured data of a customer receipt for a paid order. The
printer client does the layout; nothing here is formatted for paper.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from shared.config.settings import settings
from shared.utils.schemas import (
    ReceiptHeader,
    ReceiptLine,
    ReceiptOrderBlock,
    ReceiptOutput,
    ReceiptSummary,
)
from rest_api.models import Order
from rest_api.models.base import as_utc
from .errors import InvalidStateError
from .order_query_service import OrderQueryService
from .ticket_numbers import business_timezone

RECEIPT_DATE_FORMAT = "%d/%m/%Y %H:%M"
UNNAMED_CUSTOMER = "Not informed"


class ReceiptService:
    def __init__(self, db: Session):
        self._queries = OrderQueryService(db)

    def build_receipt(self, order_id: str) -> ReceiptOutput:
        """
        Raises:
            NotFoundError: unknown order
            InvalidStateError: order has not been paid
        """
        order = self._queries.get_order(order_id)
        if order.payment is None:
            raise InvalidStateError(
                "Order",
                order.status,
                detail="Order has not been paid, no receipt available",
            )
        return self._build(order)

    def _build(self, order: Order) -> ReceiptOutput:
        created_local = as_utc(order.created_at).astimezone(business_timezone())
        return ReceiptOutput(
            header=ReceiptHeader(
                store_name=settings.store_name,
                address=settings.store_address,
                phone=settings.store_phone,
            ),
            order=ReceiptOrderBlock(
                ticket_number=order.ticket_number,
                order_id=order.id,
                created_at=created_local.strftime(RECEIPT_DATE_FORMAT),
                customer_name=order.customer_name or UNNAMED_CUSTOMER,
            ),
            items=[
                ReceiptLine(
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price_cents=line.unit_price_cents,
                    subtotal_cents=line.subtotal_cents,
                )
                for line in order.lines
            ],
            summary=ReceiptSummary(
                total_cents=order.total_cents,
                payment_method=order.payment.method,
                amount_tendered_cents=order.payment.amount_tendered_cents,
                change_due_cents=order.payment.change_due_cents,
            ),
            footer=settings.receipt_footer,
        )
