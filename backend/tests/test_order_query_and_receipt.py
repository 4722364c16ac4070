"""
Tests for OrderQueryService and ReceiptService.
"""

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest

from rest_api.services.domain import (
    InvalidStateError,
    NotFoundError,
    OrderQueryService,
    OrderService,
    ReceiptService,
    SettlementService,
    ValidationError,
)
from shared.utils.schemas import OrderCreateRequest, PaymentRequest


def open_order(db_session, quantity=1, customer_name=None):
    return OrderService(db_session).create(
        OrderCreateRequest(
            customer_name=customer_name,
            items=[{"product_id": "bread", "quantity": quantity}],
        )
    )


def pay(db_session, order, method="PIX", amount=None):
    return SettlementService(db_session).settle_payment(
        order.id, PaymentRequest(method=method, amount_tendered_cents=amount)
    )


class TestOrderQueries:

    def test_get_order(self, db_session, bread):
        order = open_order(db_session)
        assert OrderQueryService(db_session).get_order(order.id).id == order.id

    def test_get_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            OrderQueryService(db_session).get_order("missing")

    def test_list_orders_filters_by_status(self, db_session, bread):
        pending = open_order(db_session)
        paid = open_order(db_session)
        pay(db_session, paid)

        queries = OrderQueryService(db_session)

        assert {o.id for o in queries.list_orders()} == {pending.id, paid.id}
        assert [o.id for o in queries.list_orders(status="READY")] == [paid.id]
        assert [o.id for o in queries.list_orders(status="PENDING")] == [pending.id]

    def test_list_orders_pages(self, db_session, bread):
        for _ in range(3):
            open_order(db_session)

        queries = OrderQueryService(db_session)

        assert len(queries.list_orders(limit=2)) == 2
        assert len(queries.list_orders(limit=2, offset=2)) == 1

    def test_list_orders_rejects_unknown_status(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            OrderQueryService(db_session).list_orders(status="BAKING")
        assert "status" in exc_info.value.errors

    def test_ready_queue_is_ordered_by_ticket(self, db_session, bread):
        first, second, third = (open_order(db_session) for _ in range(3))
        pay(db_session, third)
        pay(db_session, first)

        ready = OrderQueryService(db_session).list_ready()

        assert [o.ticket_number for o in ready] == [first.ticket_number, third.ticket_number]

    def test_display_shows_only_todays_ready_tickets(self, db_session, bread):
        target = "rest_api.services.domain.order_service.business_date_for"
        with patch(target, return_value=date(2020, 1, 1)):
            old = open_order(db_session)
        pay(db_session, old)
        today = open_order(db_session, customer_name="Ana")
        pay(db_session, today)
        open_order(db_session)

        tickets = OrderQueryService(db_session).list_for_display()

        assert [(t.ticket_number, t.customer_name) for t in tickets] == [(today.ticket_number, "Ana")]

    def test_display_ticket_exposes_no_prices(self, db_session, bread):
        pay(db_session, open_order(db_session))

        ticket = OrderQueryService(db_session).list_for_display()[0]

        assert set(ticket.model_dump()) == {"ticket_number", "customer_name"}


class TestReceipt:

    def test_receipt_for_cash_payment(self, db_session, bread):
        order = open_order(db_session, quantity=3, customer_name="Maria")
        pay(db_session, order, method="CASH", amount=500)

        receipt = ReceiptService(db_session).build_receipt(order.id)

        assert receipt.header.store_name
        assert receipt.order.ticket_number == order.ticket_number
        assert receipt.order.order_id == order.id
        assert receipt.order.customer_name == "Maria"
        assert [(i.product_name, i.quantity, i.subtotal_cents) for i in receipt.items] == [
            ("Pão francês", 3, 240)
        ]
        assert receipt.summary.total_cents == 240
        assert receipt.summary.payment_method == "CASH"
        assert receipt.summary.amount_tendered_cents == 500
        assert receipt.summary.change_due_cents == 260
        assert receipt.footer

    def test_receipt_without_customer_name(self, db_session, bread):
        order = open_order(db_session)
        pay(db_session, order)

        receipt = ReceiptService(db_session).build_receipt(order.id)

        assert receipt.order.customer_name == "Not informed"

    def test_receipt_date_is_in_store_time(self, db_session, bread):
        order = open_order(db_session)
        pay(db_session, order)
        db_session.refresh(order)
        order.created_at = datetime(2024, 3, 10, 2, 30, tzinfo=timezone.utc)
        db_session.commit()

        receipt = ReceiptService(db_session).build_receipt(order.id)

        assert receipt.order.created_at == "09/03/2024 23:30"

    def test_unpaid_order_has_no_receipt(self, db_session, bread):
        order = open_order(db_session)

        with pytest.raises(InvalidStateError):
            ReceiptService(db_session).build_receipt(order.id)

    def test_unknown_order_has_no_receipt(self, db_session):
        with pytest.raises(NotFoundError):
            ReceiptService(db_session).build_receipt("missing")
