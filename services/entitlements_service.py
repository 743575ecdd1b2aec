"""Entitlements service - tier catalogue, usage and quota checks."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import PaymentRequiredError
from domain.enums import SubscriptionStatus, TierLevel, UserRole
from repositories import MealPlanRepository, SubscriptionRepository, UserRepository

logger = logging.getLogger("fitmeal.entitlements")

CUSTOMERS = "customers"
MEAL_PLANS = "meal_plans"
RESOURCES = (CUSTOMERS, MEAL_PLANS)


@dataclass(frozen=True)
class Tier:
    level: TierLevel
    name: str
    price_cents: int
    customer_limit: int
    meal_plan_limit: int
    features: List[str] = field(default_factory=list)

    def limit_for(self, resource: str) -> int:
        return self.customer_limit if resource == CUSTOMERS else self.meal_plan_limit

    @property
    def stripe_price_id(self) -> str:
        return getattr(settings, f"stripe_price_{self.level.value}")


TIER_CATALOG: Dict[TierLevel, Tier] = {
    TierLevel.STARTER: Tier(
        level=TierLevel.STARTER,
        name="Starter",
        price_cents=19900,
        customer_limit=9,
        meal_plan_limit=50,
        features=[
            "Up to 9 customers",
            "50 saved meal plans",
            "Recipe library access",
            "PDF exports",
        ],
    ),
    TierLevel.PROFESSIONAL: Tier(
        level=TierLevel.PROFESSIONAL,
        name="Professional",
        price_cents=29900,
        customer_limit=20,
        meal_plan_limit=200,
        features=[
            "Up to 20 customers",
            "200 saved meal plans",
            "Progress tracking reports",
            "Grocery list generation",
        ],
    ),
    TierLevel.ENTERPRISE: Tier(
        level=TierLevel.ENTERPRISE,
        name="Enterprise",
        price_cents=39900,
        customer_limit=50,
        meal_plan_limit=500,
        features=[
            "Up to 50 customers",
            "500 saved meal plans",
            "Priority support",
            "All Professional features",
        ],
    ),
}

TIER_ORDER = [TierLevel.STARTER, TierLevel.PROFESSIONAL, TierLevel.ENTERPRISE]


def tier_rank(tier: Optional[TierLevel]) -> int:
    """Position in the upgrade path; -1 for no tier"""
    return TIER_ORDER.index(TierLevel(tier)) if tier is not None else -1


class EntitlementsService:
    @staticmethod
    def get_subscription(db: Session, trainer_id: UUID):
        return SubscriptionRepository(db).get_for_trainer(trainer_id)

    @staticmethod
    def get_tier(db: Session, trainer_id: UUID) -> Optional[TierLevel]:
        """Tier of the active subscription, else the configured default (None if unset)."""
        subscription = SubscriptionRepository(db).get_for_trainer(trainer_id)
        if subscription is not None and subscription.status == SubscriptionStatus.ACTIVE:
            return TierLevel(subscription.tier)
        if settings.default_tier:
            return TierLevel(settings.default_tier)
        return None

    @staticmethod
    def get_limits(tier: Optional[TierLevel]) -> Dict[str, int]:
        if tier is None:
            return {resource: 0 for resource in RESOURCES}
        info = TIER_CATALOG[TierLevel(tier)]
        return {resource: info.limit_for(resource) for resource in RESOURCES}

    @staticmethod
    def get_usage(db: Session, trainer_id: UUID) -> Dict[str, int]:
        return {
            CUSTOMERS: UserRepository(db).count_customers(trainer_id),
            MEAL_PLANS: MealPlanRepository(db).count_for_trainer(trainer_id),
        }

    @staticmethod
    def check_quota(db: Session, user, resource: str, adding: int = 1) -> None:
        """
        Raise PaymentRequiredError when ``adding`` more of ``resource`` would
        exceed the trainer's tier. Admins are never limited.
        """
        if resource not in RESOURCES:
            raise ValueError(f"Unknown resource: {resource}")
        if UserRole(user.role) == UserRole.ADMIN or not settings.enforce_tier_limits:
            return

        tier = EntitlementsService.get_tier(db, user.id)
        limit = EntitlementsService.get_limits(tier)[resource]
        used = EntitlementsService.get_usage(db, user.id)[resource]
        if used + adding > limit:
            logger.info(
                "quota_exceeded trainer_id=%s resource=%s used=%d limit=%d",
                user.id,
                resource,
                used,
                limit,
            )
            raise PaymentRequiredError(
                f"Your plan allows {limit} {resource.replace('_', ' ')}. Upgrade to add more.",
                details={
                    "resource": resource,
                    "limit": limit,
                    "used": used,
                    "tier": tier.value if tier else None,
                },
            )
