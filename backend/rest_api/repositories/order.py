"""
Order Repository - Data access for orders.

Lines and payment are always selectin-loaded with the order, so callers
never trigger lazy loads after the session closes.
"""

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, selectinload

from rest_api.models import Order
from shared.config.constants import OrderStatus
from .base import BaseRepository, RepositoryFilters


@dataclass
class OrderFilters(RepositoryFilters):
    """Filters specific to orders."""

    status: str | None = None
    business_date: date | None = None


class OrderRepository(BaseRepository[Order]):
    """
    Repository for Order entities.

    Guarantees eager loading of:
    - lines (in insertion order)
    - payment
    """

    @property
    def model(self) -> type[Order]:
        return Order

    def _base_query(self) -> Select:
        """Newest first; ticket number breaks ties within the same instant."""
        return (
            select(Order)
            .options(selectinload(Order.lines), selectinload(Order.payment))
            .order_by(Order.created_at.desc(), Order.ticket_number.desc())
        )

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, OrderFilters):
            return query
        if filters.status:
            query = query.where(Order.status == filters.status)
        if filters.business_date:
            query = query.where(Order.business_date == filters.business_date)
        return query

    def get_for_update(self, order_id: str) -> Order | None:
        """
        Load an order and its lines inside the caller's transaction.

        Takes a row lock on the order (FOR UPDATE; ignored by SQLite) and
        overwrites any copy already held in the identity map, so the
        status seen here is the committed one.
        """
        return self._db.scalar(
            select(Order)
            .options(selectinload(Order.lines), selectinload(Order.payment))
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    def find_ready(self, business_date: date | None = None) -> Sequence[Order]:
        """
        READY orders by ticket number, oldest business day first.

        Pass business_date to restrict the result to one day.
        """
        query = (
            select(Order)
            .options(selectinload(Order.lines), selectinload(Order.payment))
            .where(Order.status == OrderStatus.READY)
            .order_by(Order.business_date, Order.ticket_number)
        )
        if business_date is not None:
            query = query.where(Order.business_date == business_date)
        return self._db.execute(query).scalars().unique().all()
