"""
Tests for SettlementService: payment, stock reservation and the
at-most-once guarantee.
"""

import threading

import pytest
from sqlalchemy import func, select

from rest_api.models import Order, Payment, Product
from rest_api.services.domain import (
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    OrderService,
    SettlementService,
    ValidationError,
)
from rest_api.services.domain import order_state
from rest_api.services.domain.settlement_service import build_payment
from rest_api.services.events import OrderEventNotifier
from shared.utils.schemas import OrderCreateRequest, PaymentRequest


def order_request(*items):
    return OrderCreateRequest(
        items=[{"product_id": product_id, "quantity": quantity} for product_id, quantity in items]
    )


def cash(amount):
    return PaymentRequest(method="CASH", amount_tendered_cents=amount)


class TestBuildPayment:
    """Tests for the tendered amount rules."""

    def test_cash_above_total_gives_change(self):
        payment = build_payment(240, cash(500))
        assert payment.amount_tendered_cents == 500
        assert payment.change_due_cents == 260

    def test_cash_exact_gives_no_change(self):
        payment = build_payment(240, cash(240))
        assert payment.change_due_cents == 0

    def test_cash_below_total_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            build_payment(240, cash(239))
        assert "amount_tendered_cents" in exc_info.value.errors

    def test_cash_without_amount_is_rejected(self):
        with pytest.raises(ValidationError):
            build_payment(240, PaymentRequest(method="CASH"))

    @pytest.mark.parametrize("method", ["PIX", "CREDIT_CARD", "DEBIT_CARD"])
    def test_non_cash_is_charged_the_total(self, method):
        payment = build_payment(240, PaymentRequest(method=method))
        assert payment.amount_tendered_cents == 240
        assert payment.change_due_cents == 0

    def test_non_cash_with_different_amount_is_rejected(self):
        with pytest.raises(ValidationError):
            build_payment(240, PaymentRequest(method="PIX", amount_tendered_cents=300))

    def test_unknown_method_is_rejected(self):
        request = PaymentRequest.model_construct(method="CHEQUE", amount_tendered_cents=240)
        with pytest.raises(ValidationError) as exc_info:
            build_payment(240, request)
        assert "method" in exc_info.value.errors


class TestSettlePayment:
    """Tests for SettlementService.settle_payment."""

    def test_cash_payment_marks_ready_and_takes_stock(self, db_session, bread):
        """Bread stock 5, qty 3, CASH 500: READY, change 260, stock 2."""
        order = OrderService(db_session).create(order_request(("bread", 3)))

        paid = SettlementService(db_session).settle_payment(order.id, cash(500))

        assert paid.status == "READY"
        assert paid.paid_at is not None
        assert paid.payment.method == "CASH"
        assert paid.payment.amount_tendered_cents == 500
        assert paid.payment.change_due_cents == 260
        db_session.refresh(bread)
        assert bread.available_stock == 2

    def test_pix_payment_has_no_change(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 3)))

        paid = SettlementService(db_session).settle_payment(order.id, PaymentRequest(method="PIX"))

        assert paid.status == "READY"
        assert paid.payment.amount_tendered_cents == 240
        assert paid.payment.change_due_cents == 0

    def test_insufficient_stock_leaves_everything_unchanged(self, db_session, bread):
        """qty 10 with 5 in stock fails and stock stays 5."""
        order = OrderService(db_session).create(order_request(("bread", 10)))

        with pytest.raises(InsufficientStockError) as exc_info:
            SettlementService(db_session).settle_payment(order.id, cash(1000))

        assert exc_info.value.product_id == "bread"
        assert exc_info.value.available == 5
        assert exc_info.value.requested == 10
        assert "Pão francês" in exc_info.value.detail
        db_session.refresh(bread)
        db_session.refresh(order)
        assert bread.available_stock == 5
        assert order.status == "PENDING"
        assert order.payment is None

    def test_one_short_line_rolls_back_the_others(self, db_session, bread, coffee):
        """Bread is decremented first (id order) and must be restored."""
        order = OrderService(db_session).create(order_request(("coffee", 21), ("bread", 2)))

        with pytest.raises(InsufficientStockError):
            SettlementService(db_session).settle_payment(order.id, PaymentRequest(method="PIX"))

        db_session.refresh(bread)
        db_session.refresh(coffee)
        assert bread.available_stock == 5
        assert coffee.available_stock == 20

    def test_insufficient_cash_leaves_stock_unchanged(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 3)))

        with pytest.raises(ValidationError):
            SettlementService(db_session).settle_payment(order.id, cash(100))

        db_session.refresh(bread)
        db_session.refresh(order)
        assert bread.available_stock == 5
        assert order.status == "PENDING"

    def test_stock_can_reach_zero(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 5)))

        SettlementService(db_session).settle_payment(order.id, cash(400))

        db_session.refresh(bread)
        assert bread.available_stock == 0

    def test_paying_twice_fails(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 1)))
        service = SettlementService(db_session)
        service.settle_payment(order.id, cash(100))

        with pytest.raises(InvalidStateError) as exc_info:
            service.settle_payment(order.id, cash(100))

        assert "not payable" in exc_info.value.detail
        db_session.refresh(bread)
        assert bread.available_stock == 4

    def test_cancelled_order_cannot_be_paid(self, db_session, bread):
        order = OrderService(db_session).create(order_request(("bread", 1)))
        OrderService(db_session).cancel_order(order.id)

        with pytest.raises(InvalidStateError):
            SettlementService(db_session).settle_payment(order.id, cash(100))

    def test_unknown_order_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            SettlementService(db_session).settle_payment("no-such-order", cash(100))

    def test_deactivated_product_can_still_be_paid(self, db_session, bread):
        """Availability is checked when the order is opened, not at payment."""
        order = OrderService(db_session).create(order_request(("bread", 2)))
        bread.is_active = False
        db_session.commit()

        paid = SettlementService(db_session).settle_payment(order.id, cash(160))

        assert paid.status == "READY"


class TestSettlementNotifications:
    """Queue screens and the display learn about paid orders."""

    def test_ready_is_sent_to_both_topics(self, db_session, bread, event_notifier, recorder):
        order = OrderService(db_session).create(order_request(("bread", 3)))

        SettlementService(db_session, event_notifier).settle_payment(order.id, cash(500))

        assert [topic for topic, _ in recorder.sent] == ["queue", "display"]
        for topic, event in recorder.sent:
            assert event.type == "order.ready"
            assert event.topic == topic
            assert event.data["id"] == order.id
            assert event.data["status"] == "READY"
            assert event.data["payment"]["change_due_cents"] == 260

    def test_failed_payment_sends_nothing(self, db_session, bread, event_notifier, recorder):
        order = OrderService(db_session).create(order_request(("bread", 10)))

        with pytest.raises(InsufficientStockError):
            SettlementService(db_session, event_notifier).settle_payment(order.id, cash(1000))

        assert recorder.sent == []

    def test_notifier_failure_does_not_fail_payment(self, db_session, bread, failing_notifier):
        order = OrderService(db_session).create(order_request(("bread", 3)))

        paid = SettlementService(db_session, OrderEventNotifier(failing_notifier)).settle_payment(
            order.id, cash(500)
        )

        assert paid.status == "READY"
        # Both topics were attempted even though the first one failed
        assert failing_notifier.attempts == 2
        db_session.refresh(bread)
        assert bread.available_stock == 2


class TestAtMostOnceSettlement:
    """Two counters settling the same order on separate connections."""

    def _open_order(self, session_factory, stock=5):
        with session_factory() as setup:
            setup.add(Product(id="bread", name="Pão francês", unit_price_cents=80, available_stock=stock))
            setup.commit()
            order = OrderService(setup).create(order_request(("bread", 3)))
            return order.id

    def test_second_settlement_is_rejected(self, file_session_factory):
        order_id = self._open_order(file_session_factory)

        with file_session_factory() as first, file_session_factory() as second:
            # Second counter looked at the order before the first one paid
            stale = second.get(Order, order_id)
            assert stale.status == "PENDING"

            SettlementService(first).settle_payment(order_id, cash(500))

            with pytest.raises(InvalidStateError):
                SettlementService(second).settle_payment(order_id, cash(500))

        with file_session_factory() as check:
            order = check.get(Order, order_id)
            assert order.status == "READY"
            assert order.payment.amount_tendered_cents == 500
            assert check.get(Product, "bread").available_stock == 2

    def test_stale_copy_cannot_overwrite_committed_transition(self, file_session_factory):
        """The version guard rejects a flush from a copy read before another commit."""
        order_id = self._open_order(file_session_factory)

        with file_session_factory() as first, file_session_factory() as second:
            stale = second.get(Order, order_id)
            assert stale.status == "PENDING"

            SettlementService(first).settle_payment(order_id, cash(500))

            order_state.cancel(stale)
            with pytest.raises(InvalidStateError):
                order_state.flush_transition(second, stale, "PENDING")
            second.rollback()

        with file_session_factory() as check:
            assert check.get(Order, order_id).status == "READY"

    @pytest.mark.parametrize("stock", [10, 5])
    def test_simultaneous_settlements_pay_once(self, file_session_factory, stock):
        """Two counters press pay at the same moment; one wins, one is told the order moved on."""
        order_id = self._open_order(file_session_factory, stock=stock)
        barrier = threading.Barrier(2)
        results = []
        results_lock = threading.Lock()

        def settle():
            with file_session_factory() as session:
                barrier.wait()
                try:
                    SettlementService(session).settle_payment(order_id, cash(500))
                    outcome = "ok"
                except Exception as e:
                    outcome = type(e).__name__
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=settle) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert sorted(results) == ["InvalidStateError", "ok"]

        with file_session_factory() as check:
            assert check.scalar(select(func.count()).select_from(Payment)) == 1
            assert check.get(Product, "bread").available_stock == stock - 3
            assert check.get(Order, order_id).status == "READY"

    def test_lost_race_reports_invalid_state(self, file_session_factory):
        """A settlement whose version check fails leaves the session usable for the error message."""
        order_id = self._open_order(file_session_factory)

        with file_session_factory() as first, file_session_factory() as second:
            stale = second.get(Order, order_id)
            SettlementService(first).settle_payment(order_id, cash(500))

            order_state.cancel(stale)
            with pytest.raises(InvalidStateError) as exc_info:
                order_state.flush_transition(second, stale, "PENDING")
            assert order_id in exc_info.value.detail
            second.rollback()

        with file_session_factory() as check:
            assert check.get(Product, "bread").available_stock == 2
