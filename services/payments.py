"""Stripe Checkout as the payment collaborator."""
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import stripe

from services.errors import PaymentIntegrityError

logger = logging.getLogger(__name__)

# currencies Stripe expects in whole units instead of cents
ZERO_DECIMAL_CURRENCIES = {"jpy", "krw", "vnd", "clp", "pyg", "ugx", "xaf", "xof"}

# Stripe rejects Checkout Session expiry shorter than this
MIN_SESSION_MINUTES = 30


@dataclass(frozen=True)
class CheckoutSession:
    reference: str
    url: str


@dataclass(frozen=True)
class PaymentConfirmation:
    payment_id: str
    amount: Decimal


class PaymentGateway(Protocol):
    def create_checkout(self, order_id: int, amount: Decimal, currency: str, description: str, metadata: dict,
                        expires_in_minutes: int = MIN_SESSION_MINUTES) -> CheckoutSession: ...
    def expire_checkout(self, reference: str) -> bool: ...
    def retrieve_paid(self, reference: str) -> Optional[PaymentConfirmation]: ...
    def parse_webhook(self, payload: bytes, signature: str) -> dict: ...


def to_minor_units(amount: Decimal, currency: str) -> int:
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return int(Decimal(amount))
    return int(Decimal(amount) * 100)


def from_minor_units(amount: int, currency: str) -> Decimal:
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return Decimal(amount)
    return Decimal(amount) / 100


def _append_query(url: str, params: dict) -> str:
    if not url:
        return url
    parts = urlparse(url)
    query = dict(parse_qsl(parts.query))
    query.update({k: v for k, v in params.items() if v is not None})
    return urlunparse(parts._replace(query=urlencode(query)))


def confirmation_from_session(session) -> Optional[PaymentConfirmation]:
    if session.get("payment_status") != "paid":
        return None
    currency = session.get("currency") or "inr"
    return PaymentConfirmation(
        payment_id=session.get("payment_intent") or session.get("id"),
        amount=from_minor_units(session.get("amount_total") or 0, currency),
    )


class StripeGateway:
    def __init__(self, secret_key, webhook_secret, success_url, cancel_url):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.success_url = success_url
        self.cancel_url = cancel_url

    @classmethod
    def from_config(cls, config) -> "StripeGateway":
        return cls(
            secret_key=config.get("STRIPE_SECRET_KEY"),
            webhook_secret=config.get("STRIPE_WEBHOOK_SECRET"),
            success_url=config.get("STRIPE_SUCCESS_URL"),
            cancel_url=config.get("STRIPE_CANCEL_URL"),
        )

    def _require_key(self):
        if not self.secret_key:
            raise PaymentIntegrityError("Stripe secret key missing (STRIPE_SECRET_KEY)")
        stripe.api_key = self.secret_key

    def create_checkout(self, order_id, amount, currency, description, metadata, expires_in_minutes=MIN_SESSION_MINUTES):
        self._require_key()
        if not self.success_url or not self.cancel_url:
            raise PaymentIntegrityError("Stripe success/cancel URLs not configured")

        # Stripe fills in {CHECKOUT_SESSION_ID}; the client posts it back to /payments/verify
        success_url = _append_query(self.success_url, {"order_id": str(order_id)})
        success_url += ("&" if "?" in success_url else "?") + "session_id={CHECKOUT_SESSION_ID}"
        cancel_url = _append_query(self.cancel_url, {"order_id": str(order_id)})

        session = stripe.checkout.Session.create(
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": currency.lower(),
                    "product_data": {"name": description},
                    "unit_amount": to_minor_units(amount, currency),
                },
                "quantity": 1,
            }],
            success_url=success_url,
            cancel_url=cancel_url,
            client_reference_id=str(order_id),
            metadata={k: str(v) for k, v in metadata.items()},
            expires_at=int(time.time()) + max(expires_in_minutes, MIN_SESSION_MINUTES) * 60,
        )
        return CheckoutSession(reference=session["id"], url=session["url"])

    def expire_checkout(self, reference):
        """Close an open session so it can no longer be paid. False if it was already complete or expired."""
        self._require_key()
        try:
            stripe.checkout.Session.expire(reference)
        except stripe.InvalidRequestError as exc:
            logger.info("Checkout session %s not expired: %s", reference, exc)
            return False
        return True

    def retrieve_paid(self, reference):
        self._require_key()
        session = stripe.checkout.Session.retrieve(reference)
        return confirmation_from_session(session)

    def parse_webhook(self, payload, signature):
        if not self.webhook_secret:
            raise PaymentIntegrityError("Webhook secret not configured")
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError):
            raise PaymentIntegrityError("Invalid webhook signature")
