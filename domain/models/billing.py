"""
Billing models: trainer tier subscriptions, payment logs and Stripe webhook events.
"""

from sqlalchemy import (
    Column,
    Text,
    String,
    Integer,
    Numeric,
    DateTime,
    ForeignKey,
    Uuid,
    JSON,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow
from domain.enums import TierLevel, SubscriptionStatus, WebhookEventStatus


class TrainerSubscription(Base):
    __tablename__ = "trainer_subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    trainer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    tier = Column(SQLEnum(TierLevel, name="tier_level"), nullable=False)
    status = Column(
        SQLEnum(SubscriptionStatus, name="subscription_status"),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
    )
    stripe_customer_id = Column(String(255), index=True)
    stripe_checkout_session_id = Column(String(255))
    current_period_start = Column(DateTime)
    current_period_end = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    trainer = relationship("User", back_populates="subscription")


class PaymentLog(Base):
    __tablename__ = "payment_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    trainer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    event_type = Column(String(50), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="usd")
    status = Column(String(20), nullable=False)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=False, default=dict)
    occurred_at = Column(DateTime, nullable=False, default=utcnow)


class WebhookEvent(Base):
    """Processed Stripe events, used for idempotency"""

    __tablename__ = "webhook_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(String(255), unique=True, nullable=False)
    event_type = Column(String(100), nullable=False)
    status = Column(SQLEnum(WebhookEventStatus, name="webhook_event_status"), nullable=False)
    retry_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text)
    processed_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)
