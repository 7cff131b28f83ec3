"""Tests for the Stripe Checkout gateway with the stripe client patched out."""
import time
from decimal import Decimal

import pytest
import stripe

from services.errors import PaymentIntegrityError
from services.payments import StripeGateway, from_minor_units, to_minor_units


@pytest.fixture()
def gateway():
    return StripeGateway(
        secret_key="sk_test_x",
        webhook_secret="whsec_x",
        success_url="http://localhost:5173/payment/success",
        cancel_url="http://localhost:5173/payment/cancel?from=checkout",
    )


class TestMinorUnits:
    def test_two_decimal_currency(self):
        assert to_minor_units(Decimal("450"), "INR") == 45000
        assert from_minor_units(54000, "inr") == Decimal("540")

    def test_zero_decimal_currency(self):
        assert to_minor_units(Decimal("900"), "JPY") == 900
        assert from_minor_units(900, "jpy") == Decimal("900")


class TestCreateCheckout:
    def test_session_request(self, gateway, monkeypatch):
        calls = []

        def fake_create(**kwargs):
            calls.append(kwargs)
            return {"id": "cs_test_1", "url": "https://checkout.stripe.com/c/cs_test_1"}

        monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

        session = gateway.create_checkout(
            order_id=5,
            amount=Decimal("990"),
            currency="INR",
            description="Court A 2030-03-06 21:00-23:00",
            metadata={"order_id": 5, "time_slot_ids": "7,8"},
        )

        assert session.reference == "cs_test_1"
        (kwargs,) = calls
        assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 99000
        assert kwargs["line_items"][0]["price_data"]["currency"] == "inr"
        assert kwargs["success_url"].endswith("order_id=5&session_id={CHECKOUT_SESSION_ID}")
        assert "from=checkout" in kwargs["cancel_url"]
        assert kwargs["metadata"] == {"order_id": "5", "time_slot_ids": "7,8"}

    def test_session_expiry_is_never_below_stripe_minimum(self, gateway, monkeypatch):
        calls = []
        monkeypatch.setattr(
            stripe.checkout.Session,
            "create",
            lambda **kwargs: calls.append(kwargs) or {"id": "cs_test_2", "url": "https://checkout.stripe.com/c/cs_test_2"},
        )

        before = int(time.time())
        gateway.create_checkout(2, Decimal("450"), "INR", "x", {}, expires_in_minutes=15)
        after = int(time.time())

        assert before + 30 * 60 <= calls[0]["expires_at"] <= after + 30 * 60

    def test_missing_secret_key(self, gateway):
        gateway.secret_key = None
        with pytest.raises(PaymentIntegrityError):
            gateway.create_checkout(1, Decimal("450"), "INR", "x", {})


class TestRetrievePaid:
    def test_unpaid_session(self, gateway, monkeypatch):
        monkeypatch.setattr(
            stripe.checkout.Session,
            "retrieve",
            lambda reference: {"id": reference, "payment_status": "unpaid", "amount_total": 45000, "currency": "inr"},
        )
        assert gateway.retrieve_paid("cs_test_1") is None

    def test_paid_session(self, gateway, monkeypatch):
        monkeypatch.setattr(
            stripe.checkout.Session,
            "retrieve",
            lambda reference: {
                "id": reference,
                "payment_status": "paid",
                "payment_intent": "pi_123",
                "amount_total": 45000,
                "currency": "inr",
            },
        )
        confirmation = gateway.retrieve_paid("cs_test_1")
        assert confirmation.payment_id == "pi_123"
        assert confirmation.amount == Decimal("450")


class TestParseWebhook:
    def test_bad_signature(self, gateway, monkeypatch):
        def reject(payload, signature, secret):
            raise stripe.SignatureVerificationError("bad signature", signature)

        monkeypatch.setattr(stripe.Webhook, "construct_event", reject)
        with pytest.raises(PaymentIntegrityError):
            gateway.parse_webhook(b"{}", "t=1,v1=nope")

    def test_missing_secret(self, gateway):
        gateway.webhook_secret = None
        with pytest.raises(PaymentIntegrityError):
            gateway.parse_webhook(b"{}", "t=1,v1=x")


class TestExpireCheckout:
    def test_open_session_is_expired(self, gateway, monkeypatch):
        expired = []
        monkeypatch.setattr(stripe.checkout.Session, "expire", lambda reference: expired.append(reference))
        assert gateway.expire_checkout("cs_test_1") is True
        assert expired == ["cs_test_1"]

    def test_completed_session_cannot_be_expired(self, gateway, monkeypatch):
        def refuse(reference):
            raise stripe.InvalidRequestError("Only Checkout Sessions with a status of open can be expired.", None)

        monkeypatch.setattr(stripe.checkout.Session, "expire", refuse)
        assert gateway.expire_checkout("cs_test_1") is False
