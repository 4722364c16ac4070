"""
Order Models: Order, OrderLine, Payment.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import OrderStatus
from .base import Base, TimestampMixin, utcnow


def _new_order_id() -> str:
    return str(uuid.uuid4())


class Order(TimestampMixin, Base):
    """
    A counter order and its lifecycle.

    PENDING -> READY (paid) -> DELIVERED, or PENDING -> CANCELLED.
    Transitions go through rest_api.services.domain.order_state; routers
    and services never assign status directly.

    total_cents always equals the sum of the line subtotals and is frozen
    once the order leaves PENDING. version is bumped on every transition
    and guards the conditional status update.
    """

    __tablename__ = "customer_order"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_order_id)
    # Daily display number ("senha"), restarts at 1 every business day
    business_date: Mapped[date] = mapped_column(Date, nullable=False)
    ticket_number: Mapped[int] = mapped_column(Integer, nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(16), default=OrderStatus.PENDING, nullable=False, index=True
    )
    total_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    attendant_id: Mapped[Optional[str]] = mapped_column(String(64))
    # Managed by the mapper: every UPDATE carries "WHERE version = :old"
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    lines: Mapped[list["OrderLine"]] = relationship(
        back_populates="order",
        order_by="OrderLine.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    payment: Mapped[Optional["Payment"]] = relationship(
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("business_date", "ticket_number", name="uq_order_business_date_ticket"),
        CheckConstraint(
            "status IN ('PENDING', 'READY', 'DELIVERED', 'CANCELLED')",
            name="chk_order_status_valid",
        ),
        CheckConstraint("total_cents >= 0", name="chk_order_total_non_negative"),
        # Ready queue and display: status filter ordered by ticket
        Index("ix_order_status_date_ticket", "status", "business_date", "ticket_number"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Order(id='{self.id}', ticket={self.ticket_number}, status='{self.status}')>"


class OrderLine(Base):
    """
    One product line of an order.

    product_id is a weak reference: the product may later be renamed,
    repriced or deactivated, so name and price are snapshotted here.
    """

    __tablename__ = "order_line"

    order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customer_order.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="lines")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_line_quantity_positive"),
        CheckConstraint("unit_price_cents >= 0", name="chk_order_line_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<OrderLine(order_id='{self.order_id}', product_id='{self.product_id}', qty={self.quantity})>"


class Payment(Base):
    """
    Settlement record of an order. Present iff the order is READY or DELIVERED.
    """

    __tablename__ = "order_payment"

    order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customer_order.id", ondelete="CASCADE"), primary_key=True
    )
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    amount_tendered_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    change_due_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="payment")

    __table_args__ = (
        CheckConstraint(
            "method IN ('CASH', 'CREDIT_CARD', 'DEBIT_CARD', 'PIX')",
            name="chk_payment_method_valid",
        ),
        CheckConstraint("change_due_cents >= 0", name="chk_payment_change_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Payment(order_id='{self.order_id}', method='{self.method}', tendered={self.amount_tendered_cents})>"
