"""Stripe adapter for one-time tier purchases and webhook verification."""

import json
import logging
from typing import Any, Dict, Optional

import stripe

from app.config import settings
from app.exceptions import ExternalServiceError, ServiceValidationError

logger = logging.getLogger("fitmeal.stripe")


def is_configured() -> bool:
    return bool(settings.stripe_secret_key)


def create_checkout_session(
    price_id: str,
    customer_email: str,
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
    customer_id: Optional[str] = None,
) -> Dict[str, Optional[str]]:
    """Create a one-time payment Checkout Session.

    Returns:
        {"session_id", "url"}

    Raises:
        ExternalServiceError: Stripe is not configured or rejected the request
    """
    if not is_configured():
        raise ExternalServiceError("Stripe is not configured")

    params: Dict[str, Any] = {
        "mode": "payment",
        "payment_method_types": ["card"],
        "line_items": [{"price": price_id, "quantity": 1}],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
        "payment_intent_data": {"metadata": metadata},
        "api_key": settings.stripe_secret_key,
    }
    if customer_id:
        params["customer"] = customer_id
    else:
        params["customer_email"] = customer_email
        params["customer_creation"] = "always"

    try:
        session = stripe.checkout.Session.create(**params)
    except stripe.StripeError as exc:
        logger.error("stripe_checkout_failed error=%s", exc)
        raise ExternalServiceError("Could not create checkout session") from exc

    logger.info("stripe_checkout_created session_id=%s", session.id)
    return {"session_id": session.id, "url": session.url}


def parse_webhook_event(payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """Verify (when a signing secret is configured) and decode a webhook payload.

    Raises:
        ServiceValidationError: bad signature or malformed payload
    """
    secret = settings.stripe_webhook_secret
    if secret:
        if not signature:
            raise ServiceValidationError(
                "Missing Stripe-Signature header", code="INVALID_SIGNATURE"
            )
        try:
            stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as exc:
            logger.warning("stripe_webhook_bad_signature")
            raise ServiceValidationError(
                "Invalid webhook signature", code="INVALID_SIGNATURE"
            ) from exc
        except ValueError as exc:
            raise ServiceValidationError("Invalid webhook payload", code="INVALID_PAYLOAD") from exc
    else:
        logger.warning("stripe_webhook_unverified reason=no_webhook_secret")

    try:
        event = json.loads(payload)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ServiceValidationError("Invalid webhook payload", code="INVALID_PAYLOAD") from exc
    if not isinstance(event, dict) or "id" not in event or "type" not in event:
        raise ServiceValidationError("Invalid webhook payload", code="INVALID_PAYLOAD")
    return event
