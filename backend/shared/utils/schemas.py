"""
Shared Pydantic schemas used across the application.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["MASTER", "ADMIN", "ATTENDANT"]
OrderStatusLiteral = Literal["PENDING", "READY", "DELIVERED", "CANCELLED"]
PaymentMethodLiteral = Literal["CASH", "CREDIT_CARD", "DEBIT_CARD", "PIX"]


# =============================================================================
# Order Schemas
# =============================================================================


class OrderItemInput(BaseModel):
    """A single requested product and quantity."""

    product_id: str = Field(min_length=1, max_length=64)
    quantity: int = Field(ge=1, le=Limits.MAX_LINE_QUANTITY)


class OrderCreateRequest(BaseModel):
    """Request to open a new order at the counter."""

    customer_name: str | None = Field(default=None, max_length=Limits.MAX_CUSTOMER_NAME_LENGTH)
    items: list[OrderItemInput] = Field(min_length=1, max_length=Limits.MAX_ORDER_LINES)


class PaymentRequest(BaseModel):
    """Payment submitted for a pending order."""

    method: PaymentMethodLiteral
    # Required for CASH; for card and PIX it must match the total when given
    amount_tendered_cents: int | None = Field(default=None, ge=0)


class OrderLineOutput(BaseModel):
    """Output for a single line of an order."""

    product_id: str
    product_name: str
    unit_price_cents: int
    quantity: int
    subtotal_cents: int


class PaymentOutput(BaseModel):
    """Payment recorded when an order was settled."""

    method: PaymentMethodLiteral
    amount_tendered_cents: int
    change_due_cents: int
    created_at: datetime


class OrderOutput(BaseModel):
    """Output for an order with its lines and payment."""

    id: str
    ticket_number: int
    business_date: str
    customer_name: str | None = None
    status: OrderStatusLiteral
    lines: list[OrderLineOutput]
    total_cents: int
    payment: PaymentOutput | None = None
    attendant_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    paid_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None


class DisplayTicketOutput(BaseModel):
    """What the public customer display shows for a ready order."""

    ticket_number: int
    customer_name: str | None = None


# =============================================================================
# Receipt Schemas
# =============================================================================


class ReceiptHeader(BaseModel):
    store_name: str
    address: str
    phone: str


class ReceiptOrderBlock(BaseModel):
    ticket_number: int
    order_id: str
    created_at: str  # Local business time, "DD/MM/YYYY HH:MM"
    customer_name: str


class ReceiptLine(BaseModel):
    product_name: str
    quantity: int
    unit_price_cents: int
    subtotal_cents: int


class ReceiptSummary(BaseModel):
    total_cents: int
    payment_method: PaymentMethodLiteral
    amount_tendered_cents: int
    change_due_cents: int


class ReceiptOutput(BaseModel):
    """Structured receipt data for a paid order, ready to be printed."""

    header: ReceiptHeader
    order: ReceiptOrderBlock
    items: list[ReceiptLine]
    summary: ReceiptSummary
    footer: str


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: str | None = None
    errors: dict[str, str] | None = None
