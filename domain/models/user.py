"""
User-related database models.
"""

from sqlalchemy import (
    Column,
    Text,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow
from domain.enums import UserRole


class User(Base):
    """User account model (admin, trainer or customer)"""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(Text)
    role = Column(SQLEnum(UserRole, name="user_role"), nullable=False, default=UserRole.CUSTOMER)
    name = Column(String(255))
    profile_picture = Column(Text)
    trainer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # A customer's trainer; deleting the trainer unlinks (not deletes) the customers
    trainer = relationship(
        "User", remote_side=[id], back_populates="customers", foreign_keys=[trainer_id]
    )
    customers = relationship("User", back_populates="trainer", foreign_keys=[trainer_id])

    sessions = relationship(
        "UserSession", back_populates="user", cascade="all, delete-orphan"
    )
    invitations = relationship(
        "CustomerInvitation", back_populates="trainer", cascade="all, delete-orphan"
    )
    recipes = relationship("Recipe", back_populates="trainer")
    meal_plans = relationship(
        "MealPlan", back_populates="trainer", cascade="all, delete-orphan"
    )
    assigned_meal_plans = relationship(
        "CustomerMealPlan",
        back_populates="customer",
        foreign_keys="CustomerMealPlan.customer_id",
        cascade="all, delete-orphan",
    )
    given_assignments = relationship(
        "CustomerMealPlan",
        back_populates="trainer",
        foreign_keys="CustomerMealPlan.trainer_id",
        cascade="all, delete-orphan",
    )
    goals = relationship(
        "CustomerGoal", back_populates="customer", cascade="all, delete-orphan"
    )
    measurements = relationship(
        "ProgressMeasurement", back_populates="customer", cascade="all, delete-orphan"
    )
    photos = relationship(
        "ProgressPhoto", back_populates="customer", cascade="all, delete-orphan"
    )
    subscription = relationship(
        "TrainerSubscription",
        back_populates="trainer",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class UserSession(Base):
    """Refresh-token backed login session"""

    __tablename__ = "sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash = Column(String(64), unique=True, nullable=False)
    user_agent = Column(Text)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="sessions")


class CustomerInvitation(Base):
    """Invitation a trainer sends to a prospective customer"""

    __tablename__ = "customer_invitations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    trainer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_email = Column(String(255), nullable=False)
    token = Column(String(128), unique=True, nullable=False)
    message = Column(Text)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    trainer = relationship("User", back_populates="invitations")
