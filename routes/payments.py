from flask import Blueprint, request, jsonify, current_app, g

from models.audit_log import AuditLog
from security.rbac import require_roles
from services import checkout
from services.errors import ConflictError, NotFoundError, ValidationError
from services.store import SqlAlchemyStore
from utils.audit import log_event
from utils.auth_context import login_required
from utils.clock import venue_now
from utils.parsing import parse_int
from utils.serializers import audit_to_dict, order_to_dict

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")

MAX_BOOKING_HOURS = 8


def _gateway():
    return current_app.extensions["payment_gateway"]


@payments_bp.post("/start")
@login_required
def start_payment():
    data = request.get_json(silent=True) or {}
    court_id = parse_int(data.get("court_id"), "court_id", minimum=1)
    slot_id = parse_int(data.get("time_slot_id"), "time_slot_id", minimum=1)
    hours = parse_int(data.get("hours", 1), "hours", minimum=1, maximum=MAX_BOOKING_HOURS)

    result = checkout.create_order(
        SqlAlchemyStore(),
        _gateway(),
        player_id=g.user.id,
        court_id=court_id,
        origin_slot_id=slot_id,
        hours=hours,
        now=venue_now(),
        ttl_minutes=current_app.config["RESERVATION_TTL_MINUTES"],
        currency=current_app.config["CURRENCY"],
    )

    log_event(
        "PAYMENT_START",
        user_id=g.user.id,
        entity="payment_order",
        entity_id=result.order.id,
        metadata={"time_slot_ids": list(result.window.time_slot_ids), "amount": str(result.window.total_price)},
    )
    return jsonify(
        order=order_to_dict(result.order),
        session_id=result.reference,
        checkout_url=result.url,
    ), 201


@payments_bp.post("/verify")
@login_required
def verify_payment():
    data = request.get_json(silent=True) or {}
    session_id = (data.get("session_id") or "").strip()
    if not session_id:
        raise ValidationError("session_id required", field="session_id")

    store = SqlAlchemyStore()
    try:
        result = checkout.confirm_payment(store, _gateway(), session_id, g.user.id, venue_now())
    except ConflictError:
        log_event("PAYMENT_CONFLICT", user_id=g.user.id, entity="payment_order", metadata={"session_id": session_id})
        raise

    if result.created:
        log_event(
            "BOOKING_CREATE",
            user_id=g.user.id,
            entity="payment_order",
            entity_id=result.order_id,
            metadata={"booking_ids": result.booking_ids},
        )
    return jsonify(
        order_id=result.order_id,
        booking_ids=result.booking_ids,
        created=result.created,
    ), 200


@payments_bp.post("/cancel")
@login_required
def cancel_payment():
    data = request.get_json(silent=True) or {}
    order_id = parse_int(data.get("order_id"), "order_id", minimum=1)

    cancelled = checkout.cancel_order(SqlAlchemyStore(), _gateway(), order_id, g.user.id)
    if cancelled:
        log_event("PAYMENT_CANCEL", user_id=g.user.id, entity="payment_order", entity_id=order_id)
    return jsonify(order_id=order_id, cancelled=cancelled), 200


@payments_bp.get("/orders/<int:order_id>/audit")
@require_roles("ADMIN")
def order_audit(order_id: int):
    """Everything recorded about one order, for refund and dispute follow-up."""
    order = SqlAlchemyStore().get_order(order_id)
    if order is None:
        raise NotFoundError("Payment order not found")

    entries = AuditLog.trail("payment_order", order.id)
    if order.provider_order_id:
        entries += AuditLog.trail("checkout_session", order.provider_order_id)
    entries.sort(key=lambda e: (e.timestamp, e.id))
    return jsonify(order=order_to_dict(order), audit=[audit_to_dict(e) for e in entries]), 200
