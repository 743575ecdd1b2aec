"""
Tests for tier pricing, Stripe checkout and webhook processing.
Stripe itself is never called; the adapter is monkeypatched.
"""

import hashlib
import hmac
import json
import time

import pytest
from fastapi.testclient import TestClient

from adapters import stripe_adapter
from app.config import settings
from domain.enums import SubscriptionStatus, TierLevel, UserRole, WebhookEventStatus
from domain.models import PaymentLog, TrainerSubscription, WebhookEvent
from main import app
from services.billing_service import BillingService

from test_fixtures import auth_headers, client, db_session, make_user

WEBHOOK_URL = "/api/v1/stripe/webhook"


def _checkout_event(trainer, event_id="evt_checkout_1", tier="professional", customer="cus_123"):
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_test_1",
                "customer": customer,
                "amount_total": 29900,
                "currency": "USD",
                "metadata": {"trainer_id": str(trainer.id), "tier": tier},
            }
        },
    }


def _post_event(event, http=client, headers=None):
    return http.post(WEBHOOK_URL, content=json.dumps(event), headers=headers or {})


@pytest.fixture
def fake_checkout(monkeypatch):
    calls = []

    def create_checkout_session(**kwargs):
        calls.append(kwargs)
        return {"session_id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    monkeypatch.setattr(stripe_adapter, "create_checkout_session", create_checkout_session)
    return calls


# =============================================================================
# PRICING AND CHECKOUT
# =============================================================================


def test_pricing_is_public():
    r = client.get("/api/v1/stripe/pricing")
    assert r.status_code == 200
    tiers = r.json()["tiers"]
    assert [(t["tier"], t["price_cents"], t["customer_limit"]) for t in tiers] == [
        ("starter", 19900, 9),
        ("professional", 29900, 20),
        ("enterprise", 39900, 50),
    ]


def test_checkout_passes_trainer_metadata(db_session, fake_checkout):
    """
    Verifies:
    - The session carries the trainer id and tier as metadata
    - Default return urls point at the trainer billing page
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    r = client.post(
        "/api/v1/stripe/checkout", json={"tier": "professional"}, headers=auth_headers(trainer)
    )
    assert r.status_code == 200
    assert r.json() == {"session_id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    call = fake_checkout[0]
    assert call["price_id"] == settings.stripe_price_professional
    assert call["customer_email"] == trainer.email
    assert call["metadata"] == {"trainer_id": str(trainer.id), "tier": "professional"}
    assert "/trainer/billing?status=cancelled" in call["cancel_url"]
    assert call["customer_id"] is None


def test_checkout_requires_stripe_configuration(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    r = client.post(
        "/api/v1/stripe/checkout", json={"tier": "starter"}, headers=auth_headers(trainer)
    )
    assert r.status_code == 502
    assert r.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"


def test_checkout_is_trainer_only(db_session, fake_checkout):
    customer = make_user(db_session)
    r = client.post(
        "/api/v1/stripe/checkout", json={"tier": "starter"}, headers=auth_headers(customer)
    )
    assert r.status_code == 403
    assert fake_checkout == []


def test_only_upgrades_can_be_purchased(db_session, fake_checkout):
    trainer = make_user(db_session, UserRole.TRAINER)
    assert _post_event(_checkout_event(trainer)).status_code == 200
    headers = auth_headers(trainer)

    r = client.post("/api/v1/stripe/checkout", json={"tier": "professional"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "SAME_TIER"

    r = client.post("/api/v1/stripe/checkout", json={"tier": "starter"}, headers=headers)
    assert r.json()["error"]["code"] == "DOWNGRADE_NOT_ALLOWED"

    r = client.post("/api/v1/stripe/checkout", json={"tier": "enterprise"}, headers=headers)
    assert r.status_code == 200
    assert fake_checkout[-1]["customer_id"] == "cus_123"


# =============================================================================
# SUBSCRIPTION
# =============================================================================


def test_subscription_defaults_to_starter(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    make_user(db_session, trainer=trainer)

    r = client.get("/api/v1/stripe/subscription", headers=auth_headers(trainer))
    assert r.status_code == 200
    data = r.json()
    assert data["tier"] == "starter"
    assert data["status"] is None
    assert data["purchased"] is False
    assert data["limits"] == {"customers": 9, "meal_plans": 50}
    assert data["usage"] == {"customers": 1, "meal_plans": 0}


def test_subscription_without_default_tier(db_session, monkeypatch):
    monkeypatch.setattr(settings, "default_tier", None)
    trainer = make_user(db_session, UserRole.TRAINER)
    data = client.get("/api/v1/stripe/subscription", headers=auth_headers(trainer)).json()
    assert data["tier"] is None
    assert data["limits"] == {"customers": 0, "meal_plans": 0}


# =============================================================================
# WEBHOOKS
# =============================================================================


def test_checkout_webhook_activates_tier_once(db_session):
    """
    Verifies:
    - checkout.session.completed stores an active subscription and a payment
    - Replaying the same event id is acknowledged but not processed again
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    event = _checkout_event(trainer)

    r = _post_event(event)
    assert r.status_code == 200
    assert r.json() == {
        "received": True,
        "processed": True,
        "event_type": "checkout.session.completed",
    }

    subscription = db_session.query(TrainerSubscription).one()
    assert subscription.tier == TierLevel.PROFESSIONAL
    assert subscription.status == SubscriptionStatus.ACTIVE
    assert subscription.stripe_customer_id == "cus_123"
    assert subscription.current_period_end is not None

    payment = db_session.query(PaymentLog).one()
    assert float(payment.amount) == 299.0
    assert payment.currency == "usd"

    r = _post_event(event)
    assert r.json()["processed"] is False
    assert db_session.query(PaymentLog).count() == 1

    info = client.get("/api/v1/stripe/subscription", headers=auth_headers(trainer)).json()
    assert info["tier"] == "professional"
    assert info["purchased"] is True
    assert info["limits"]["customers"] == 20


def test_invoice_failure_marks_past_due(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    _post_event(_checkout_event(trainer))

    r = _post_event(
        {
            "id": "evt_invoice_1",
            "type": "invoice.payment_failed",
            "data": {"object": {"id": "in_1", "customer": "cus_123", "amount_due": 29900}},
        }
    )
    assert r.status_code == 200

    db_session.expire_all()
    subscription = db_session.query(TrainerSubscription).one()
    assert subscription.status == SubscriptionStatus.PAST_DUE
    failed = db_session.query(PaymentLog).filter(PaymentLog.status == "failed").one()
    assert failed.trainer_id == trainer.id

    info = client.get("/api/v1/stripe/subscription", headers=auth_headers(trainer)).json()
    assert info["tier"] == "starter"
    assert info["status"] == "past_due"
    assert info["purchased"] is False


def test_subscription_deleted_cancels(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    _post_event(_checkout_event(trainer))
    _post_event(
        {
            "id": "evt_sub_deleted",
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_1", "customer": "cus_123"}},
        }
    )
    db_session.expire_all()
    assert db_session.query(TrainerSubscription).one().status == SubscriptionStatus.CANCELED


def test_checkout_without_metadata_is_acknowledged(db_session):
    event = {
        "id": "evt_no_meta",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_x", "metadata": {}}},
    }
    r = _post_event(event)
    assert r.status_code == 200
    assert r.json()["processed"] is True
    assert db_session.query(TrainerSubscription).count() == 0


def test_unhandled_event_type_is_recorded(db_session):
    r = _post_event({"id": "evt_other", "type": "charge.refunded", "data": {"object": {}}})
    assert r.status_code == 200
    record = db_session.query(WebhookEvent).one()
    assert record.status == WebhookEventStatus.PROCESSED


def test_malformed_payload_rejected(db_session):
    r = client.post(WEBHOOK_URL, content=b"not json")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_PAYLOAD"

    r = _post_event({"type": "checkout.session.completed"})
    assert r.json()["error"]["code"] == "INVALID_PAYLOAD"


def test_failed_event_is_recorded_for_retry(db_session, monkeypatch):
    """
    Verifies:
    - A handler failure answers 500 so Stripe redelivers
    - The event row counts the retries and keeps the error
    - A later successful delivery marks it processed
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    event = _checkout_event(trainer, event_id="evt_flaky")
    original = BillingService._checkout_completed

    def broken(db, session):
        raise RuntimeError("database hiccup")

    monkeypatch.setattr(BillingService, "_checkout_completed", staticmethod(broken))
    unsafe_client = TestClient(app, raise_server_exceptions=False)

    for _ in range(2):
        r = _post_event(event, http=unsafe_client)
        assert r.status_code == 500
        assert r.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"

    record = db_session.query(WebhookEvent).filter(WebhookEvent.event_id == "evt_flaky").one()
    assert record.status == WebhookEventStatus.FAILED
    assert record.retry_count == 2
    assert "database hiccup" in record.error_message

    monkeypatch.setattr(BillingService, "_checkout_completed", staticmethod(original))
    r = _post_event(event)
    assert r.json()["processed"] is True
    db_session.expire_all()
    assert record.status == WebhookEventStatus.PROCESSED
    assert record.error_message is None


# =============================================================================
# SIGNATURES
# =============================================================================


def _signature(payload: str, secret: str) -> str:
    timestamp = int(time.time())
    digest = hmac.new(
        secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={digest}"


def test_signed_webhooks(db_session, monkeypatch):
    monkeypatch.setattr(settings, "stripe_webhook_secret", "whsec_test")
    payload = json.dumps({"id": "evt_signed", "type": "charge.refunded", "data": {"object": {}}})

    r = client.post(WEBHOOK_URL, content=payload)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_SIGNATURE"

    r = client.post(
        WEBHOOK_URL, content=payload, headers={"Stripe-Signature": _signature(payload, "whsec_other")}
    )
    assert r.json()["error"]["code"] == "INVALID_SIGNATURE"

    r = client.post(
        WEBHOOK_URL, content=payload, headers={"Stripe-Signature": _signature(payload, "whsec_test")}
    )
    assert r.status_code == 200
    assert r.json()["processed"] is True
