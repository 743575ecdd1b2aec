"""
Customer progress tracking models.
"""

from sqlalchemy import (
    Column,
    Text,
    String,
    Integer,
    Numeric,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow
from domain.enums import GoalType, GoalStatus, PhotoType


class CustomerGoal(Base):
    """Fitness goal with a target and tracked progress"""

    __tablename__ = "customer_goals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    goal_type = Column(SQLEnum(GoalType, name="goal_type"), nullable=False)
    goal_name = Column(String(255), nullable=False)
    description = Column(Text)
    target_value = Column(Numeric(10, 2))
    target_unit = Column(String(20))
    starting_value = Column(Numeric(10, 2))
    current_value = Column(Numeric(10, 2))
    start_date = Column(Date, nullable=False)
    target_date = Column(Date)
    achieved_date = Column(Date)
    status = Column(
        SQLEnum(GoalStatus, name="goal_status"),
        nullable=False,
        default=GoalStatus.ACTIVE,
        index=True,
    )
    progress_percentage = Column(Integer, nullable=False, default=0)
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    customer = relationship("User", back_populates="goals")


class ProgressMeasurement(Base):
    """Body measurements recorded by a customer"""

    __tablename__ = "progress_measurements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    measurement_date = Column(Date, nullable=False, index=True)
    weight_kg = Column(Numeric(5, 2))
    body_fat_percentage = Column(Numeric(4, 1))
    muscle_mass_kg = Column(Numeric(5, 2))
    neck_cm = Column(Numeric(4, 1))
    chest_cm = Column(Numeric(5, 1))
    waist_cm = Column(Numeric(5, 1))
    hips_cm = Column(Numeric(5, 1))
    bicep_cm = Column(Numeric(4, 1))
    thigh_cm = Column(Numeric(4, 1))
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    customer = relationship("User", back_populates="measurements")


class ProgressPhoto(Base):
    """Progress photo metadata; the image lives in object storage"""

    __tablename__ = "progress_photos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    photo_date = Column(Date, nullable=False)
    storage_key = Column(String(500), nullable=False)
    photo_url = Column(Text, nullable=False)
    photo_type = Column(SQLEnum(PhotoType, name="photo_type"), nullable=False, default=PhotoType.OTHER)
    caption = Column(Text)
    is_private = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    customer = relationship("User", back_populates="photos")
