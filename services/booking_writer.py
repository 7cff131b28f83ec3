"""
Turn a paid payment order into bookings, and cancel bookings.

The write is all-or-nothing: either every slot of the order gets a CONFIRMED
booking or none does. The store's unique index on confirmed bookings is the
final word on conflicts; the read before the insert only produces a friendlier
error.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from models.enums import BookingStatus, PaymentOrderStatus, PaymentStatus
from services.availability import booking_holds_slot
from services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PaymentIntegrityError,
    PaymentPendingError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Allowed stored transitions; COMPLETED is derived at read time.
TRANSITIONS = {
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

CLAIMABLE_ORDER_STATUSES = (PaymentOrderStatus.PENDING, PaymentOrderStatus.EXPIRED)

# failure_reason of an order the player walked away from; a payment that
# still arrives for it is honoured like a late payment on an EXPIRED order
PLAYER_CANCELLED_REASON = "cancelled by player"


@dataclass
class BookingResult:
    order_id: int
    bookings: list
    created: bool

    @property
    def booking_ids(self) -> list:
        return [b.id for b in self.bookings]


def can_transition(current, target) -> bool:
    return BookingStatus(target) in TRANSITIONS[BookingStatus(current)]


def _existing_result(store, order):
    bookings = store.bookings_for_order(order.id)
    if bookings:
        return BookingResult(order_id=order.id, bookings=bookings, created=False)
    raise PaymentPendingError("Payment received, booking is still being processed", order_id=order.id)


def _refund_required(store, order, provider_payment_id, why):
    if provider_payment_id:
        store.add_payment(order.id, provider_payment_id, order.amount, order.currency, PaymentStatus.FAILED)
        store.commit()
    logger.warning("Order %s paid but not booked (%s); refund required", order.id, why)


def write_bookings(store, provider_order_id: str, provider_payment_id: str, amount_paid, now: datetime) -> BookingResult:
    """
    Create one CONFIRMED booking per slot of the order identified by
    ``provider_order_id``. Safe to call again for the same order: later calls
    return the bookings created by the first one.
    """
    order = store.get_order_by_reference(provider_order_id)
    if order is None:
        raise NotFoundError("Payment order not found")

    status = PaymentOrderStatus(order.status)
    if status is PaymentOrderStatus.SUCCESSFUL:
        return _existing_result(store, order)

    claimable = CLAIMABLE_ORDER_STATUSES
    if status is PaymentOrderStatus.FAILED:
        if order.failure_reason != PLAYER_CANCELLED_REASON:
            _refund_required(store, order, provider_payment_id, order.failure_reason or "order failed")
            raise PaymentIntegrityError("Payment order already failed", order_id=order.id)
        claimable = CLAIMABLE_ORDER_STATUSES + (PaymentOrderStatus.FAILED,)

    if amount_paid is not None and Decimal(amount_paid) != Decimal(order.amount):
        _refund_required(store, order, provider_payment_id, f"paid {amount_paid}, expected {order.amount}")
        raise PaymentIntegrityError("Paid amount does not match the order", order_id=order.id)

    if not store.claim_order(order.id, claimable, PaymentOrderStatus.SUCCESSFUL, now):
        # another delivery of the same callback got here first
        store.rollback()
        order = store.get_order(order.id)
        if PaymentOrderStatus(order.status) is PaymentOrderStatus.SUCCESSFUL:
            return _existing_result(store, order)
        raise PaymentIntegrityError(f"Payment order is {PaymentOrderStatus(order.status).value}", order_id=order.id)

    items = order.items
    slot_ids = [item["time_slot_id"] for item in items]
    try:
        held = store.bookings_for_slots(slot_ids)
        taken = sorted(sid for sid, rows in held.items() if any(booking_holds_slot(b.status) for b in rows))
        if taken:
            raise ConflictError("One or more time slots are already booked", time_slot_ids=taken)

        bookings = store.add_bookings([
            {
                "time_slot_id": item["time_slot_id"],
                "court_id": order.court_id,
                "player_id": order.player_id,
                "payment_order_id": order.id,
                "status": BookingStatus.CONFIRMED,
                "total_price": item["price"],
                "is_paid": True,
                "created_at": now,
            }
            for item in items
        ])
        store.add_payment(order.id, provider_payment_id, order.amount, order.currency, PaymentStatus.PAID)
        store.commit()
    except ConflictError:
        store.rollback()
        store.set_order_status(order.id, PaymentOrderStatus.FAILED, reason="slot conflict after payment")
        store.commit()
        _refund_required(store, order, provider_payment_id, f"slots {slot_ids} were taken")
        raise

    logger.info("Order %s booked slots %s", order.id, slot_ids)
    return BookingResult(order_id=order.id, bookings=bookings, created=True)


def cancel_booking(store, booking_id: int, actor_id: int, is_manager: bool, reason, now: datetime, cutoff_hours: int = 0):
    """
    CONFIRMED -> CANCELLED. Players may cancel their own bookings up to
    ``cutoff_hours`` before start; court managers may cancel any booking that
    has not started.
    """
    booking = store.get_booking(booking_id)
    if booking is None or (not is_manager and booking.player_id != actor_id):
        raise NotFoundError("Booking not found")

    slot = store.get_slot(booking.time_slot_id)
    if not can_transition(booking.status, BookingStatus.CANCELLED):
        raise ValidationError(f"Booking is {BookingStatus(booking.status).value} and cannot be cancelled")
    if slot is not None and slot.start_time <= now:
        raise ValidationError("Booking has already started")
    if not is_manager and slot is not None and slot.start_time - now < timedelta(hours=cutoff_hours):
        raise AuthorizationError(f"Cancellation not allowed within {cutoff_hours} hours of start")

    if not store.cancel_booking(booking.id, reason, now):
        store.rollback()
        raise ConflictError("Booking was changed by another request")
    store.commit()
    return store.get_booking(booking.id)
