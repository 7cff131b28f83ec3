from flask import Blueprint, request, jsonify, current_app

from services.checkout import handle_webhook_event
from services.store import SqlAlchemyStore
from utils.audit import log_event
from utils.clock import venue_now

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")

AUDITED_OUTCOMES = {
    "booked": "PAYMENT_PAID",
    "conflict": "PAYMENT_CONFLICT",
    "failed": "PAYMENT_FAILED",
    "rejected": "PAYMENT_REJECTED",
}


@webhook_bp.post("/stripe")
def stripe_webhook():
    gateway = current_app.extensions["payment_gateway"]
    # signature problems surface as PaymentIntegrityError -> 400
    event = gateway.parse_webhook(request.data, request.headers.get("Stripe-Signature"))

    outcome = handle_webhook_event(SqlAlchemyStore(), event, venue_now())

    action = AUDITED_OUTCOMES.get(outcome)
    if action:
        session = event["data"]["object"]
        log_event(
            action,
            user_id=None,
            entity="checkout_session",
            entity_id=session.get("id"),
            metadata={"event_type": event["type"], "outcome": outcome},
        )
    return jsonify(received=True, outcome=outcome), 200
