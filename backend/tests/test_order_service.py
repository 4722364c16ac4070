"""
Tests for OrderService: opening, delivering and cancelling orders.
"""

import pytest
from sqlalchemy import func, select

from rest_api.models import Order
from rest_api.services.domain import (
    InvalidStateError,
    NotFoundError,
    OrderService,
    SettlementService,
    ValidationError,
)
from shared.utils.schemas import OrderCreateRequest, OrderItemInput, PaymentRequest


def order_request(*items, customer_name=None):
    return OrderCreateRequest(
        customer_name=customer_name,
        items=[{"product_id": product_id, "quantity": quantity} for product_id, quantity in items],
    )


def count_orders(db_session):
    return db_session.scalar(select(func.count()).select_from(Order))


class TestCreateOrder:
    """Tests for OrderService.create."""

    def test_create_computes_total_and_leaves_stock(self, db_session, bread):
        """3 breads at 80 cents: total 240, PENDING, stock still 5."""
        order = OrderService(db_session).create(order_request(("bread", 3)), attendant_id="attendant-1")

        assert order.status == "PENDING"
        assert order.total_cents == 240
        assert order.ticket_number == 1
        assert order.attendant_id == "attendant-1"
        assert order.payment is None
        assert len(order.lines) == 1
        assert order.lines[0].subtotal_cents == 240

        db_session.refresh(bread)
        assert bread.available_stock == 5

    def test_total_is_sum_of_lines(self, db_session, bread, coffee):
        order = OrderService(db_session).create(order_request(("bread", 2), ("coffee", 1)))

        assert order.total_cents == 2 * 80 + 450
        assert order.total_cents == sum(line.subtotal_cents for line in order.lines)

    def test_ticket_numbers_increase_within_the_day(self, db_session, bread):
        service = OrderService(db_session)

        tickets = [service.create(order_request(("bread", 1))).ticket_number for _ in range(3)]

        assert tickets == [1, 2, 3]

    def test_repeated_products_are_merged(self, db_session, bread, coffee):
        """Same product twice becomes one line at its first position."""
        order = OrderService(db_session).create(
            order_request(("bread", 1), ("coffee", 1), ("bread", 2))
        )

        assert [(line.product_id, line.quantity) for line in order.lines] == [
            ("bread", 3),
            ("coffee", 1),
        ]
        assert [line.position for line in order.lines] == [0, 1]

    def test_lines_snapshot_name_and_price(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 2)))

        bread.unit_price_cents = 95
        bread.name = "Pão francês grande"
        db_session.commit()
        db_session.refresh(order)

        assert order.lines[0].unit_price_cents == 80
        assert order.lines[0].product_name == "Pão francês"
        assert order.total_cents == 160

    def test_customer_name_is_trimmed(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 1), customer_name="  Maria  "))
        assert order.customer_name == "Maria"

    def test_blank_customer_name_is_dropped(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 1), customer_name="   "))
        assert order.customer_name is None

    def test_unknown_product_raises_not_found(self, db_session, bread):
        with pytest.raises(NotFoundError) as exc_info:
            OrderService(db_session).create(order_request(("bread", 1), ("baguette", 1)))

        assert "baguette" in exc_info.value.detail
        assert count_orders(db_session) == 0

    def test_inactive_product_is_rejected(self, db_session, retired_product):
        with pytest.raises(ValidationError) as exc_info:
            OrderService(db_session).create(order_request(("sonho", 1)))

        assert "product_id" in exc_info.value.errors
        assert count_orders(db_session) == 0

    def test_non_positive_quantity_is_rejected(self, db_session, bread):
        """Bypasses request validation to reach the domain check."""
        request = OrderCreateRequest.model_construct(
            customer_name=None,
            items=[OrderItemInput.model_construct(product_id="bread", quantity=0)],
        )

        with pytest.raises(ValidationError) as exc_info:
            OrderService(db_session).create(request)

        assert "items[0].quantity" in exc_info.value.errors

    def test_empty_order_is_rejected(self, db_session):
        request = OrderCreateRequest.model_construct(customer_name=None, items=[])

        with pytest.raises(ValidationError):
            OrderService(db_session).create(request)

    def test_failed_create_does_not_consume_a_ticket(self, db_session, bread):
        service = OrderService(db_session)
        with pytest.raises(NotFoundError):
            service.create(order_request(("missing", 1)))

        order = service.create(order_request(("bread", 1)))

        assert order.ticket_number == 1


class TestDeliverOrder:
    """Tests for OrderService.mark_delivered."""

    def _paid_order(self, db_session, event_notifier):
        order = OrderService(db_session).create(order_request(("bread", 2)))
        SettlementService(db_session, event_notifier).settle_payment(
            order.id, PaymentRequest(method="PIX")
        )
        return order

    def test_ready_order_is_delivered(self, db_session, bread, event_notifier, recorder):
        order = self._paid_order(db_session, event_notifier)

        delivered = OrderService(db_session, event_notifier).mark_delivered(order.id)

        assert delivered.status == "DELIVERED"
        assert delivered.delivered_at is not None
        assert delivered.payment is not None
        assert recorder.types_for("queue") == ["order.ready", "order.delivered"]
        assert recorder.types_for("display") == ["order.ready", "order.delivered"]

    def test_delivery_message_carries_ticket_only(self, db_session, bread, event_notifier, recorder):
        order = self._paid_order(db_session, event_notifier)

        OrderService(db_session, event_notifier).mark_delivered(order.id)

        _, event = recorder.sent[-1]
        assert event.data == {"order_id": order.id, "ticket_number": order.ticket_number}

    def test_delivering_twice_fails(self, db_session, bread, event_notifier):
        order = self._paid_order(db_session, event_notifier)
        service = OrderService(db_session, event_notifier)
        service.mark_delivered(order.id)

        with pytest.raises(InvalidStateError):
            service.mark_delivered(order.id)

    def test_pending_order_cannot_be_delivered(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 1)))

        with pytest.raises(InvalidStateError) as exc_info:
            OrderService(db_session).mark_delivered(order.id)

        assert "PENDING" in exc_info.value.detail
        db_session.refresh(order)
        assert order.status == "PENDING"

    def test_unknown_order_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            OrderService(db_session).mark_delivered("00000000-0000-0000-0000-000000000000")


class TestCancelOrder:
    """Tests for OrderService.cancel_order."""

    def test_pending_order_is_cancelled_and_stock_untouched(
        self, db_session, bread, event_notifier, recorder
    ):
        order = OrderService(db_session).create(order_request(("bread", 3)))

        cancelled = OrderService(db_session, event_notifier).cancel_order(order.id)

        assert cancelled.status == "CANCELLED"
        assert cancelled.cancelled_at is not None
        db_session.refresh(bread)
        assert bread.available_stock == 5
        # The customer display never showed the pending order
        assert recorder.types_for("queue") == ["order.cancelled"]
        assert recorder.types_for("display") == []

    def test_paid_order_cannot_be_cancelled(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 1)))
        SettlementService(db_session).settle_payment(order.id, PaymentRequest(method="DEBIT_CARD"))

        with pytest.raises(InvalidStateError):
            OrderService(db_session).cancel_order(order.id)

        db_session.refresh(bread)
        assert bread.available_stock == 4

    def test_cancelling_twice_fails(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 1)))
        service = OrderService(db_session)
        service.cancel_order(order.id)

        with pytest.raises(InvalidStateError):
            service.cancel_order(order.id)

    def test_delivered_order_cannot_be_cancelled(self, db_session, bread):
        service = OrderService(db_session)
        order = service.create(order_request(("bread", 1)))
        SettlementService(db_session).settle_payment(order.id, PaymentRequest(method="PIX"))
        service.mark_delivered(order.id)

        with pytest.raises(InvalidStateError):
            service.cancel_order(order.id)
