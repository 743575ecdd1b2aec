"""
Billing repositories: subscriptions, payment logs and webhook events.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import TrainerSubscription, PaymentLog, WebhookEvent
from domain.enums import SubscriptionStatus


class SubscriptionRepository(BaseRepository[TrainerSubscription]):
    def __init__(self, db: Session):
        super().__init__(db, TrainerSubscription)

    def get_for_trainer(self, trainer_id: UUID) -> Optional[TrainerSubscription]:
        return (
            self.db.query(TrainerSubscription)
            .filter(TrainerSubscription.trainer_id == trainer_id)
            .first()
        )

    def get_by_stripe_customer(self, stripe_customer_id: str) -> Optional[TrainerSubscription]:
        return (
            self.db.query(TrainerSubscription)
            .filter(TrainerSubscription.stripe_customer_id == stripe_customer_id)
            .first()
        )

    def count_active_by_tier(self) -> dict:
        rows = (
            self.db.query(TrainerSubscription.tier, func.count(TrainerSubscription.id))
            .filter(TrainerSubscription.status == SubscriptionStatus.ACTIVE)
            .group_by(TrainerSubscription.tier)
            .all()
        )
        return {tier.value: count for tier, count in rows}


class PaymentLogRepository(BaseRepository[PaymentLog]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentLog)

    def list_for_trainer(self, trainer_id: UUID) -> List[PaymentLog]:
        return (
            self.db.query(PaymentLog)
            .filter(PaymentLog.trainer_id == trainer_id)
            .order_by(PaymentLog.occurred_at.desc())
            .all()
        )


class WebhookEventRepository(BaseRepository[WebhookEvent]):
    def __init__(self, db: Session):
        super().__init__(db, WebhookEvent)

    def get_by_event_id(self, event_id: str) -> Optional[WebhookEvent]:
        return self.db.query(WebhookEvent).filter(WebhookEvent.event_id == event_id).first()
