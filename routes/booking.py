from flask import Blueprint, request, jsonify, current_app, g

from models.enums import BookingStatus, parse_enum
from security.rbac import can_manage_court
from services.booking_writer import cancel_booking
from services.errors import AuthorizationError, NotFoundError
from services.slots import managed_court
from services.store import SqlAlchemyStore
from utils.audit import log_event
from utils.auth_context import login_required
from utils.clock import venue_now
from utils.serializers import booking_to_dict

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


def _reason(data):
    return (data.get("reason") or "").strip()[:255] or None


# ---------- PLAYERS ----------
@booking_bp.get("/me")
@login_required
def my_bookings():
    status = parse_enum(BookingStatus, request.args.get("status"))
    now = venue_now()
    rows = [booking_to_dict(b, now) for b in SqlAlchemyStore().bookings_for_player(g.user.id)]
    if status is not None:
        # filter on the status as displayed, so COMPLETED works
        rows = [r for r in rows if r["status"] == status.value]
    return jsonify(rows), 200


@booking_bp.post("/<int:booking_id>/cancel")
@login_required
def cancel_my_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    now = venue_now()
    booking = cancel_booking(
        SqlAlchemyStore(),
        booking_id,
        actor_id=g.user.id,
        is_manager=False,
        reason=_reason(data),
        now=now,
        cutoff_hours=current_app.config.get("CANCEL_CUTOFF_HOURS", 0),
    )

    log_event("BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking.id)
    return jsonify(booking_to_dict(booking, now)), 200


# ---------- OWNER/ADMIN ----------
@booking_bp.post("/<int:booking_id>/owner-cancel")
@login_required
def owner_cancel_booking(booking_id: int):
    store = SqlAlchemyStore()
    booking = store.get_booking(booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    if not can_manage_court(g.user, store.get_court(booking.court_id)):
        raise AuthorizationError("You do not manage this court")

    data = request.get_json(silent=True) or {}
    now = venue_now()
    booking = cancel_booking(
        store,
        booking_id,
        actor_id=g.user.id,
        is_manager=True,
        reason=_reason(data) or "cancelled by venue",
        now=now,
    )

    log_event(
        "BOOKING_OWNER_CANCEL",
        user_id=g.user.id,
        entity="booking",
        entity_id=booking.id,
        metadata={"player_id": booking.player_id},
    )
    return jsonify(booking_to_dict(booking, now)), 200


@booking_bp.get("/court/<int:court_id>")
@login_required
def court_bookings(court_id: int):
    store = SqlAlchemyStore()
    managed_court(store, court_id, lambda court: can_manage_court(g.user, court))

    status = parse_enum(BookingStatus, request.args.get("status"))
    now = venue_now()
    rows = [booking_to_dict(b, now) for b in store.bookings_for_court(court_id)]
    if status is not None:
        rows = [r for r in rows if r["status"] == status.value]
    return jsonify(rows), 200
