"""Stripe billing routes: pricing, checkout, subscription and webhook"""

import anyio
from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session
import logging
from typing import Optional

from api.dependencies import get_db, require_trainer
from domain.models import User
from domain.schemas.billing_schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PricingResponse,
    SubscriptionResponse,
    WebhookResponse,
)
from services.billing_service import BillingService

router = APIRouter(prefix="/v1/stripe", tags=["Billing"])
logger = logging.getLogger("fitmeal.api.billing")


@router.get("/pricing", response_model=PricingResponse)
def get_pricing():
    return BillingService.pricing()


@router.post("/checkout", response_model=CheckoutResponse)
def create_checkout(
    payload: CheckoutRequest,
    db: Session = Depends(get_db),
    trainer: User = Depends(require_trainer),
):
    """Start a one-time tier purchase; only upgrades are allowed."""
    return BillingService.create_checkout(db, trainer, payload)


@router.get("/subscription", response_model=SubscriptionResponse)
def get_subscription(
    db: Session = Depends(get_db),
    trainer: User = Depends(require_trainer),
):
    return BillingService.subscription_info(db, trainer)


@router.post("/webhook", response_model=WebhookResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
):
    """
    Receive Stripe events.

    The raw body is needed for signature verification. Each event id is
    processed once; a processing failure answers 500 so Stripe retries.
    """
    payload = await request.body()
    return await anyio.to_thread.run_sync(
        BillingService.handle_webhook, db, payload, stripe_signature
    )
