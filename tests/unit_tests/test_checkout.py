"""Tests for payment orders: holds, confirmation, expiry and webhook events."""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from models.enums import BookingStatus, PaymentOrderStatus, PaymentStatus
from services.checkout import (
    cancel_order,
    confirm_payment,
    create_order,
    expire_stale_orders,
    fail_order,
    handle_webhook_event,
)
from services.errors import ConflictError, NotFoundError, PaymentIntegrityError, PaymentPendingError, ValidationError
from tests.mocks.gateway import FakeGateway, session_event

_NOW = datetime(2030, 3, 1, 12, 0)


def _at(hour):
    return datetime(2030, 3, 6, hour, 0)


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def slots(store):
    return {h: store.add_slot(1, _at(h), _at(h + 1)) for h in (9, 10, 11)}


def _open(store, gateway, slot, hours=1, player_id=7, now=_NOW):
    return create_order(store, gateway, player_id, 1, slot.id, hours, now)


class TestCreateOrder:
    def test_opens_pending_order_for_window(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9], hours=2)

        order = checkout.order
        assert order.status == PaymentOrderStatus.PENDING
        assert order.amount == Decimal("900")
        assert order.time_slot_ids == [slots[9].id, slots[10].id]
        assert order.expires_at == _NOW + timedelta(minutes=15)
        assert order.provider_order_id == checkout.reference == f"cs_test_{order.id}"
        assert gateway.sessions[checkout.reference]["amount"] == Decimal("900")
        assert gateway.sessions[checkout.reference]["expires_in_minutes"] == 15
        assert gateway.sessions[checkout.reference]["expires_in_minutes"] == 15

    def test_pending_order_holds_slots_against_others(self, store, gateway, slots):
        _open(store, gateway, slots[10])
        with pytest.raises(ConflictError):
            _open(store, gateway, slots[9], hours=2, player_id=8)

    def test_hold_lapses_after_expiry(self, store, gateway, slots):
        _open(store, gateway, slots[10])
        later = _NOW + timedelta(minutes=16)
        checkout = _open(store, gateway, slots[10], player_id=8, now=later)
        assert checkout.order.player_id == 8

    def test_booked_slot_cannot_start_checkout(self, store, gateway, slots):
        store.seed_booking(slots[10])
        with pytest.raises(ConflictError):
            _open(store, gateway, slots[9], hours=2)
        assert store.orders == {}

    def test_past_slot_rejected(self, store, gateway, slots):
        with pytest.raises(ValidationError):
            _open(store, gateway, slots[9], now=_at(9))

    def test_slot_of_another_court(self, store, gateway, slots):
        store.add_court(name="Court 2")
        with pytest.raises(NotFoundError):
            create_order(store, gateway, 7, 2, slots[9].id, 1, _NOW)

    def test_inactive_court(self, store, gateway, slots):
        store.get_court(1).is_active = False
        with pytest.raises(NotFoundError):
            _open(store, gateway, slots[9])

    def test_provider_failure_marks_order_failed(self, store, gateway, slots):
        gateway.fail_next = True
        with pytest.raises(PaymentIntegrityError):
            _open(store, gateway, slots[9])
        (order,) = store.orders.values()
        assert order.status == PaymentOrderStatus.FAILED
        # a failed order does not hold the slot
        _open(store, gateway, slots[9], player_id=8)


class TestConfirmPayment:
    def test_unpaid_checkout_is_pending(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        with pytest.raises(PaymentPendingError):
            confirm_payment(store, gateway, checkout.reference, 7, _NOW)

    def test_paid_checkout_books(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9], hours=2)
        gateway.mark_paid(checkout.reference)

        result = confirm_payment(store, gateway, checkout.reference, 7, _NOW)

        assert result.created
        assert len(result.bookings) == 2
        assert all(b.status == BookingStatus.CONFIRMED for b in result.bookings)

    def test_confirm_twice_returns_same_bookings(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        gateway.mark_paid(checkout.reference)
        first = confirm_payment(store, gateway, checkout.reference, 7, _NOW)
        second = confirm_payment(store, gateway, checkout.reference, 7, _NOW)
        assert not second.created
        assert second.booking_ids == first.booking_ids

    def test_other_player_cannot_confirm(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        gateway.mark_paid(checkout.reference)
        with pytest.raises(NotFoundError):
            confirm_payment(store, gateway, checkout.reference, 8, _NOW)

    def test_expired_order_paid_late_still_books(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        later = _NOW + timedelta(hours=1)
        assert expire_stale_orders(store, later) == 1
        assert checkout.order.status == PaymentOrderStatus.EXPIRED

        gateway.mark_paid(checkout.reference)
        result = confirm_payment(store, gateway, checkout.reference, 7, later)
        assert result.created

    def test_underpayment_rejected(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        gateway.mark_paid(checkout.reference, amount="100")
        with pytest.raises(PaymentIntegrityError):
            confirm_payment(store, gateway, checkout.reference, 7, _NOW)


class TestOrderLifecycle:
    def test_expire_only_touches_lapsed_pending_orders(self, store, gateway, slots):
        _open(store, gateway, slots[9])
        assert expire_stale_orders(store, _NOW + timedelta(minutes=5)) == 0
        assert expire_stale_orders(store, _NOW + timedelta(minutes=15)) == 1
        assert expire_stale_orders(store, _NOW + timedelta(minutes=30)) == 0

    def test_player_cancels_open_order(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        assert cancel_order(store, gateway, checkout.order.id, 7)
        assert checkout.order.status == PaymentOrderStatus.FAILED
        assert checkout.reference in gateway.expired
        assert not cancel_order(store, gateway, checkout.order.id, 7)

    def test_cannot_cancel_someone_elses_order(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        with pytest.raises(NotFoundError):
            cancel_order(store, gateway, checkout.order.id, 8)

    def test_cancel_keeps_order_open_when_provider_is_down(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        gateway.fail_next = True
        with pytest.raises(PaymentIntegrityError):
            cancel_order(store, gateway, checkout.order.id, 7)
        assert checkout.order.status == PaymentOrderStatus.PENDING

    def test_payment_completed_before_cancel_still_books(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        gateway.mark_paid(checkout.reference)
        assert cancel_order(store, gateway, checkout.order.id, 7)
        assert checkout.reference not in gateway.expired

        event = session_event("checkout.session.completed", checkout.reference, 45000)
        assert handle_webhook_event(store, event, _NOW) == "booked"
        assert checkout.order.status == PaymentOrderStatus.SUCCESSFUL
        assert [p.status for p in store.payments] == [PaymentStatus.PAID]

    def test_payment_after_cancel_for_retaken_slot_is_kept_for_refund(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        gateway.mark_paid(checkout.reference)
        cancel_order(store, gateway, checkout.order.id, 7)
        store.seed_booking(slots[9], player_id=8)

        event = session_event("checkout.session.completed", checkout.reference, 45000)
        assert handle_webhook_event(store, event, _NOW) == "conflict"
        assert [p.status for p in store.payments] == [PaymentStatus.FAILED]
        assert [p.provider_payment_id for p in store.payments] == [f"pi_{checkout.reference}"]

    def test_fail_order_leaves_successful_alone(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        gateway.mark_paid(checkout.reference)
        confirm_payment(store, gateway, checkout.reference, 7, _NOW)
        assert not fail_order(store, checkout.reference, "checkout expired")
        assert checkout.order.status == PaymentOrderStatus.SUCCESSFUL


class TestWebhookEvents:
    def test_completed_event_books(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        event = session_event("checkout.session.completed", checkout.reference, 45000)
        assert handle_webhook_event(store, event, _NOW) == "booked"
        assert handle_webhook_event(store, event, _NOW) == "duplicate"

    def test_unpaid_completion_waits(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        event = session_event("checkout.session.completed", checkout.reference, 45000, payment_status="unpaid")
        assert handle_webhook_event(store, event, _NOW) == "pending"
        assert checkout.order.status == PaymentOrderStatus.PENDING

    def test_conflict_is_reported_not_raised(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        store.seed_booking(slots[9])
        event = session_event("checkout.session.completed", checkout.reference, 45000)
        assert handle_webhook_event(store, event, _NOW) == "conflict"
        assert checkout.order.status == PaymentOrderStatus.FAILED

    def test_wrong_amount_rejected(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        event = session_event("checkout.session.completed", checkout.reference, 100)
        assert handle_webhook_event(store, event, _NOW) == "rejected"

    def test_expired_session_fails_order(self, store, gateway, slots):
        checkout = _open(store, gateway, slots[9])
        event = session_event("checkout.session.expired", checkout.reference, 45000, payment_status="unpaid")
        assert handle_webhook_event(store, event, _NOW) == "failed"
        assert checkout.order.status == PaymentOrderStatus.FAILED

    def test_unknown_session(self, store):
        event = session_event("checkout.session.completed", "cs_unknown", 45000)
        assert handle_webhook_event(store, event, _NOW) == "unknown_order"

    def test_unrelated_event_ignored(self, store):
        event = session_event("charge.refunded", "cs_unknown", 45000)
        assert handle_webhook_event(store, event, _NOW) == "ignored"
