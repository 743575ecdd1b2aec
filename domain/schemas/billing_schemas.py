"""Pydantic schemas for tiers, checkout and subscriptions."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from domain.enums import SubscriptionStatus, TierLevel


class TierInfo(BaseModel):
    tier: TierLevel
    name: str
    price_cents: int
    currency: str = "usd"
    customer_limit: int
    meal_plan_limit: int
    features: List[str]


class PricingResponse(BaseModel):
    tiers: List[TierInfo]


class CheckoutRequest(BaseModel):
    tier: TierLevel
    success_url: Optional[str] = Field(None, max_length=2000)
    cancel_url: Optional[str] = Field(None, max_length=2000)


class CheckoutResponse(BaseModel):
    session_id: str
    url: Optional[str] = None


class SubscriptionResponse(BaseModel):
    tier: Optional[TierLevel] = None
    status: Optional[SubscriptionStatus] = None
    purchased: bool
    limits: Dict[str, int]
    usage: Dict[str, int]
    current_period_end: Optional[datetime] = None


class WebhookResponse(BaseModel):
    received: bool = True
    processed: bool
    event_type: Optional[str] = None
