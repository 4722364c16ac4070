"""
Order Query Service.

Read-only access for the counter, the queue screens and the public
customer display.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy.orm import Session

from shared.config.constants import Limits, OrderStatus
from shared.utils.schemas import DisplayTicketOutput
from rest_api.models import Order
from rest_api.repositories import OrderFilters, OrderRepository
from .errors import NotFoundError, ValidationError
from .order_output import build_display_ticket
from .ticket_numbers import business_date_for


class OrderQueryService:
    def __init__(self, db: Session):
        self._repo = OrderRepository(db)

    def get_order(self, order_id: str) -> Order:
        order = self._repo.find_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def list_orders(
        self,
        status: str | None = None,
        limit: int = Limits.DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> Sequence[Order]:
        """All orders, newest first, optionally filtered by status."""
        if status is not None and status not in OrderStatus.ALL:
            raise ValidationError(
                "Unknown order status",
                errors={"status": f"must be one of {', '.join(OrderStatus.ALL)}"},
            )
        return self._repo.find_all(OrderFilters(status=status, limit=limit, offset=offset))

    def list_ready(self) -> Sequence[Order]:
        """READY orders waiting for pickup, lowest ticket first."""
        return self._repo.find_ready()

    def list_for_display(self) -> list[DisplayTicketOutput]:
        """Today's ready tickets, reduced to what the public screen may show."""
        return [build_display_ticket(order) for order in self._repo.find_ready(business_date_for())]
