"""
Payment orders: open one for a selected window, confirm or fail it, and let
unpaid ones lapse.

A PENDING order that has not reached ``expires_at`` holds its slots against
other checkouts; only a confirmed payment turns it into bookings.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from models.enums import PaymentOrderStatus
from services.availability import court_day_views
from services.booking_writer import PLAYER_CANCELLED_REASON, write_bookings
from services.errors import (
    BookingServiceError,
    ConflictError,
    NotFoundError,
    PaymentIntegrityError,
    PaymentPendingError,
    ValidationError,
)
from services.payments import confirmation_from_session
from services.window_selector import select_window

logger = logging.getLogger(__name__)

OPEN_ORDER_STATUSES = (PaymentOrderStatus.PENDING, PaymentOrderStatus.EXPIRED)


@dataclass
class Checkout:
    order: object
    window: object
    reference: str
    url: str


def create_order(store, gateway, player_id: int, court_id: int, origin_slot_id: int, hours: int,
                 now: datetime, ttl_minutes: int = 15, currency: str = "INR") -> Checkout:
    court = store.get_court(court_id)
    if court is None or not court.is_active:
        raise NotFoundError("Court not found")

    origin = store.get_slot(origin_slot_id)
    if origin is None or origin.court_id != court.id:
        raise NotFoundError("Time slot not found")
    if origin.start_time <= now:
        raise ValidationError("Cannot book a slot that has already started")

    # the client's idea of availability is never trusted; select again from the store
    views = court_day_views(store, court, origin.start_time.date())
    window = select_window(views, origin.id, hours)
    if window is None:
        raise ConflictError(
            f"{hours} consecutive hour(s) are not available from the selected time",
            time_slot_id=origin.id,
            hours=hours,
        )

    holders = store.active_orders_holding(court.id, window.time_slot_ids, now)
    if holders:
        raise ConflictError("Selected slots are currently being booked by someone else")

    order = store.add_order(
        player_id=player_id,
        court_id=court.id,
        amount=window.total_price,
        currency=currency,
        items=window.items,
        expires_at=now + timedelta(minutes=ttl_minutes),
    )
    store.commit()

    try:
        session = gateway.create_checkout(
            order_id=order.id,
            amount=window.total_price,
            currency=currency,
            description=f"{court.name} {window.start_time:%Y-%m-%d %H:%M}-{window.end_time:%H:%M}",
            metadata={
                "order_id": order.id,
                "player_id": player_id,
                "court_id": court.id,
                "time_slot_ids": ",".join(str(i) for i in window.time_slot_ids),
            },
            expires_in_minutes=ttl_minutes,
        )
    except Exception as exc:
        store.rollback()
        store.set_order_status(order.id, PaymentOrderStatus.FAILED, reason="checkout could not be created")
        store.commit()
        logger.exception("Checkout creation failed for order %s", order.id)
        if isinstance(exc, BookingServiceError):
            raise
        raise PaymentIntegrityError("Payment provider error, please try again") from exc

    store.set_order_reference(order, session.reference)
    store.commit()
    logger.info("Order %s opened for slots %s", order.id, list(window.time_slot_ids))
    return Checkout(order=order, window=window, reference=session.reference, url=session.url)


def _own_order(store, reference, player_id):
    order = store.get_order_by_reference(reference)
    if order is None or (player_id is not None and order.player_id != player_id):
        raise NotFoundError("Payment order not found")
    return order


def confirm_payment(store, gateway, reference: str, player_id, now: datetime):
    """Client-return path: ask the provider whether the checkout was paid, then book."""
    order = _own_order(store, reference, player_id)
    if PaymentOrderStatus(order.status) is PaymentOrderStatus.SUCCESSFUL:
        return write_bookings(store, reference, None, None, now)

    confirmation = gateway.retrieve_paid(reference)
    if confirmation is None:
        raise PaymentPendingError("Payment not completed yet", order_id=order.id)
    return write_bookings(store, reference, confirmation.payment_id, confirmation.amount, now)


def fail_order(store, reference: str, reason: str, player_id=None) -> bool:
    """PENDING/EXPIRED -> FAILED. Returns False when the order was already settled."""
    order = _own_order(store, reference, player_id)
    if PaymentOrderStatus(order.status) not in OPEN_ORDER_STATUSES:
        return False
    store.set_order_status(order.id, PaymentOrderStatus.FAILED, reason=reason)
    store.commit()
    logger.info("Order %s failed: %s", order.id, reason)
    return True


def cancel_order(store, gateway, order_id: int, player_id: int) -> bool:
    """
    Player abandons an open checkout. The provider session is expired first
    so the abandoned tab can no longer take a payment; if it was paid in the
    meantime, the payment callback still books the order.
    """
    order = store.get_order(order_id)
    if order is None or order.player_id != player_id:
        raise NotFoundError("Payment order not found")
    if PaymentOrderStatus(order.status) not in OPEN_ORDER_STATUSES:
        return False

    if order.provider_order_id:
        try:
            expired = gateway.expire_checkout(order.provider_order_id)
        except BookingServiceError:
            raise
        except Exception as exc:
            logger.exception("Could not expire checkout %s for order %s", order.provider_order_id, order.id)
            raise PaymentIntegrityError("Payment provider error, please try again") from exc
        if not expired:
            logger.info("Checkout %s for order %s was already closed", order.provider_order_id, order.id)

    store.set_order_status(order.id, PaymentOrderStatus.FAILED, reason=PLAYER_CANCELLED_REASON)
    store.commit()
    return True


def expire_stale_orders(store, now: datetime) -> int:
    count = store.expire_orders(now)
    store.commit()
    if count:
        logger.info("Expired %s unpaid payment orders", count)
    return count


def handle_webhook_event(store, event, now: datetime) -> str:
    """
    Apply a verified Stripe event. Returns a short outcome label; conflicts
    are logged rather than raised so the provider does not keep retrying.
    """
    event_type = event["type"]
    session = event["data"]["object"]
    reference = session.get("id")

    if event_type in ("checkout.session.completed", "checkout.session.async_payment_succeeded"):
        confirmation = confirmation_from_session(session)
        if confirmation is None:
            # async payment methods settle later
            return "pending"
        try:
            result = write_bookings(store, reference, confirmation.payment_id, confirmation.amount, now)
        except ConflictError:
            return "conflict"
        except PaymentPendingError:
            return "duplicate"
        except PaymentIntegrityError as exc:
            logger.warning("Webhook for session %s rejected: %s", reference, exc.message)
            return "rejected"
        except NotFoundError:
            logger.warning("Webhook for unknown checkout session %s", reference)
            return "unknown_order"
        return "booked" if result.created else "duplicate"

    if event_type in ("checkout.session.async_payment_failed", "checkout.session.expired"):
        reason = "payment failed" if event_type.endswith("failed") else "checkout expired"
        try:
            return "failed" if fail_order(store, reference, reason) else "ignored"
        except NotFoundError:
            return "unknown_order"

    return "ignored"

