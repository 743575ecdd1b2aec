"""Billing service - tier pricing, Stripe checkout and webhook processing."""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from adapters import stripe_adapter
from app.config import settings
from app.exceptions import ExternalServiceError, ServiceValidationError
from domain.enums import SubscriptionStatus, TierLevel, WebhookEventStatus
from domain.models import PaymentLog, TrainerSubscription, User, WebhookEvent
from domain.models.database import utcnow
from domain.schemas.billing_schemas import CheckoutRequest
from repositories import (
    PaymentLogRepository,
    SubscriptionRepository,
    UserRepository,
    WebhookEventRepository,
)
from services.activity_service import ActivityService
from services.entitlements_service import (
    TIER_CATALOG,
    TIER_ORDER,
    EntitlementsService,
    tier_rank,
)

logger = logging.getLogger("fitmeal.billing")

SUBSCRIPTION_PERIOD = timedelta(days=365)


def _cents_to_amount(cents: Optional[int]) -> Decimal:
    return (Decimal(cents or 0) / 100).quantize(Decimal("0.01"))


class BillingService:
    @staticmethod
    def pricing() -> dict:
        return {
            "tiers": [
                {
                    "tier": tier.level,
                    "name": tier.name,
                    "price_cents": tier.price_cents,
                    "currency": "usd",
                    "customer_limit": tier.customer_limit,
                    "meal_plan_limit": tier.meal_plan_limit,
                    "features": list(tier.features),
                }
                for tier in (TIER_CATALOG[level] for level in TIER_ORDER)
            ]
        }

    @staticmethod
    def _purchased_tier(subscription: Optional[TrainerSubscription]) -> Optional[TierLevel]:
        if subscription is None or subscription.status != SubscriptionStatus.ACTIVE:
            return None
        return TierLevel(subscription.tier)

    @staticmethod
    def create_checkout(db: Session, trainer: User, data: CheckoutRequest) -> dict:
        """
        Start a one-time purchase of ``data.tier``.

        Raises:
            ServiceValidationError: the tier is the current one or a downgrade
            ExternalServiceError: Stripe or the tier's price id is not configured
        """
        subscription = SubscriptionRepository(db).get_for_trainer(trainer.id)
        current = BillingService._purchased_tier(subscription)
        if current is not None and tier_rank(data.tier) <= tier_rank(current):
            code = "SAME_TIER" if data.tier == current else "DOWNGRADE_NOT_ALLOWED"
            raise ServiceValidationError(
                f"You already have the {current.value} tier",
                details={"current_tier": current.value, "requested_tier": data.tier.value},
                code=code,
            )

        tier = TIER_CATALOG[data.tier]
        if not tier.stripe_price_id:
            raise ExternalServiceError(f"No Stripe price configured for {tier.level.value}")

        base = settings.frontend_url.rstrip("/")
        result = stripe_adapter.create_checkout_session(
            price_id=tier.stripe_price_id,
            customer_email=trainer.email,
            success_url=data.success_url
            or f"{base}/trainer/billing?status=success&session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=data.cancel_url or f"{base}/trainer/billing?status=cancelled",
            metadata={"trainer_id": str(trainer.id), "tier": tier.level.value},
            customer_id=subscription.stripe_customer_id if subscription else None,
        )
        logger.info(
            "checkout_started trainer_id=%s tier=%s session_id=%s",
            trainer.id,
            tier.level.value,
            result["session_id"],
        )
        return result

    @staticmethod
    def subscription_info(db: Session, trainer: User) -> dict:
        subscription = SubscriptionRepository(db).get_for_trainer(trainer.id)
        tier = EntitlementsService.get_tier(db, trainer.id)
        return {
            "tier": tier,
            "status": SubscriptionStatus(subscription.status) if subscription else None,
            "purchased": BillingService._purchased_tier(subscription) is not None,
            "limits": EntitlementsService.get_limits(tier),
            "usage": EntitlementsService.get_usage(db, trainer.id),
            "current_period_end": subscription.current_period_end if subscription else None,
        }

    # =========================================================================
    # Webhooks
    # =========================================================================

    @staticmethod
    def handle_webhook(db: Session, payload: bytes, signature: Optional[str]) -> dict:
        """
        Verify and process one Stripe event exactly once.

        A failed event is recorded with its retry count and the error is
        re-raised so the endpoint answers 500 and Stripe delivers it again.
        """
        event = stripe_adapter.parse_webhook_event(payload, signature)
        event_id, event_type = event["id"], event["type"]

        repo = WebhookEventRepository(db)
        record = repo.get_by_event_id(event_id)
        if record is not None and record.status == WebhookEventStatus.PROCESSED:
            logger.info("webhook_duplicate event_id=%s type=%s", event_id, event_type)
            return {"received": True, "processed": False, "event_type": event_type}

        try:
            handled = BillingService._dispatch(db, event)
        except Exception as exc:
            db.rollback()
            logger.exception("webhook_failed event_id=%s type=%s", event_id, event_type)
            record = repo.get_by_event_id(event_id)
            if record is None:
                record = repo.add(
                    WebhookEvent(
                        event_id=event_id,
                        event_type=event_type,
                        status=WebhookEventStatus.FAILED,
                    )
                )
            record.status = WebhookEventStatus.FAILED
            record.retry_count = (record.retry_count or 0) + 1
            record.error_message = str(exc)[:2000]
            db.commit()
            raise

        if record is None:
            record = repo.add(
                WebhookEvent(
                    event_id=event_id,
                    event_type=event_type,
                    status=WebhookEventStatus.PROCESSED,
                )
            )
        record.status = WebhookEventStatus.PROCESSED
        record.error_message = None
        record.processed_at = utcnow()
        db.commit()
        logger.info(
            "webhook_processed event_id=%s type=%s handled=%s", event_id, event_type, handled
        )
        return {"received": True, "processed": True, "event_type": event_type}

    @staticmethod
    def _dispatch(db: Session, event: Dict[str, Any]) -> bool:
        obj = (event.get("data") or {}).get("object") or {}
        event_type = event["type"]
        if event_type == "checkout.session.completed":
            return BillingService._checkout_completed(db, obj)
        if event_type in ("invoice.payment_succeeded", "invoice.payment_failed"):
            return BillingService._invoice_paid(
                db, obj, succeeded=event_type == "invoice.payment_succeeded"
            )
        if event_type == "customer.subscription.deleted":
            return BillingService._subscription_deleted(db, obj)
        logger.info("webhook_unhandled type=%s", event_type)
        return False

    @staticmethod
    def _checkout_completed(db: Session, session: Dict[str, Any]) -> bool:
        metadata = session.get("metadata") or {}
        try:
            trainer_id = UUID(metadata["trainer_id"])
            tier = TierLevel(metadata["tier"])
        except (KeyError, ValueError):
            logger.warning("checkout_missing_metadata session_id=%s", session.get("id"))
            return False

        trainer = UserRepository(db).get_by_id(trainer_id)
        if trainer is None:
            logger.warning("checkout_unknown_trainer trainer_id=%s", trainer_id)
            return False

        repo = SubscriptionRepository(db)
        subscription = repo.get_for_trainer(trainer.id)
        if subscription is None:
            subscription = repo.add(
                TrainerSubscription(
                    trainer_id=trainer.id, tier=tier, status=SubscriptionStatus.ACTIVE
                )
            )
        now = utcnow()
        subscription.tier = tier
        subscription.status = SubscriptionStatus.ACTIVE
        subscription.stripe_customer_id = session.get("customer") or subscription.stripe_customer_id
        subscription.stripe_checkout_session_id = session.get("id")
        subscription.current_period_start = now
        subscription.current_period_end = now + SUBSCRIPTION_PERIOD

        PaymentLogRepository(db).add(
            PaymentLog(
                trainer_id=trainer.id,
                event_type="purchase",
                amount=_cents_to_amount(session.get("amount_total")),
                currency=(session.get("currency") or "usd").lower(),
                status="succeeded",
                details={"checkout_session_id": session.get("id"), "tier": tier.value},
            )
        )
        ActivityService.record(
            db, trainer.id, "billing.purchase", "subscription", subscription.id,
            {"tier": tier.value},
        )
        logger.info("tier_purchased trainer_id=%s tier=%s", trainer.id, tier.value)
        return True

    @staticmethod
    def _invoice_paid(db: Session, invoice: Dict[str, Any], succeeded: bool) -> bool:
        subscription = None
        if invoice.get("customer"):
            subscription = SubscriptionRepository(db).get_by_stripe_customer(invoice["customer"])
        cents = invoice.get("amount_paid") if succeeded else invoice.get("amount_due")
        PaymentLogRepository(db).add(
            PaymentLog(
                trainer_id=subscription.trainer_id if subscription else None,
                event_type="invoice",
                amount=_cents_to_amount(cents),
                currency=(invoice.get("currency") or "usd").lower(),
                status="succeeded" if succeeded else "failed",
                details={"invoice_id": invoice.get("id"), "customer": invoice.get("customer")},
            )
        )
        if not succeeded and subscription is not None:
            subscription.status = SubscriptionStatus.PAST_DUE
            logger.warning("subscription_past_due trainer_id=%s", subscription.trainer_id)
        return True

    @staticmethod
    def _subscription_deleted(db: Session, stripe_subscription: Dict[str, Any]) -> bool:
        customer = stripe_subscription.get("customer")
        subscription = (
            SubscriptionRepository(db).get_by_stripe_customer(customer) if customer else None
        )
        if subscription is None:
            logger.warning("subscription_deleted_unknown customer=%s", customer)
            return False
        subscription.status = SubscriptionStatus.CANCELED
        logger.info("subscription_canceled trainer_id=%s", subscription.trainer_id)
        return True
