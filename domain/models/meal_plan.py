"""
Meal planning models.
"""

from sqlalchemy import (
    Column,
    Text,
    String,
    Integer,
    Numeric,
    Boolean,
    DateTime,
    ForeignKey,
    Uuid,
    JSON,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base, utcnow
from domain.enums import AssignmentStatus


class MealPlan(Base):
    """Multi-day meal plan owned by a trainer"""

    __tablename__ = "meal_plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    trainer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text)
    fitness_goal = Column(String(50))
    duration_days = Column(Integer, nullable=False, default=0)
    meals_per_day = Column(Integer, nullable=False, default=0)
    daily_calorie_target = Column(Integer)
    protein_target_g = Column(Numeric(6, 2))
    carbs_target_g = Column(Numeric(6, 2))
    fat_target_g = Column(Numeric(6, 2))
    is_template = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=False, default=list)
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    trainer = relationship("User", back_populates="meal_plans")
    days = relationship(
        "MealPlanDay",
        back_populates="meal_plan",
        cascade="all, delete-orphan",
        order_by="MealPlanDay.day_number",
    )
    assignments = relationship(
        "CustomerMealPlan", back_populates="meal_plan", cascade="all, delete-orphan"
    )


class MealPlanDay(Base):
    """One day of a meal plan"""

    __tablename__ = "meal_plan_days"
    __table_args__ = (UniqueConstraint("meal_plan_id", "day_number"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    meal_plan_id = Column(
        Uuid, ForeignKey("meal_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_number = Column(Integer, nullable=False)

    meal_plan = relationship("MealPlan", back_populates="days")
    meals = relationship(
        "MealPlanMeal",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="MealPlanMeal.position",
    )


class MealPlanMeal(Base):
    """A recipe placed in a meal slot of a day"""

    __tablename__ = "meal_plan_meals"
    __table_args__ = (UniqueConstraint("day_id", "position"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    day_id = Column(
        Uuid, ForeignKey("meal_plan_days.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipe_id = Column(
        Uuid, ForeignKey("recipes.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    meal_type = Column(String(20), nullable=False)
    position = Column(Integer, nullable=False)
    servings = Column(Numeric(5, 2), nullable=False, default=1)

    day = relationship("MealPlanDay", back_populates="meals")
    recipe = relationship("Recipe", lazy="joined")


class CustomerMealPlan(Base):
    """Assignment of a trainer's meal plan to one of their customers"""

    __tablename__ = "customer_meal_plans"
    __table_args__ = (UniqueConstraint("meal_plan_id", "customer_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    meal_plan_id = Column(
        Uuid, ForeignKey("meal_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    trainer_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(
        SQLEnum(AssignmentStatus, name="assignment_status"),
        nullable=False,
        default=AssignmentStatus.ASSIGNED,
    )
    customizations = Column(JSON, nullable=False, default=dict)
    progress = Column(JSON, nullable=False, default=dict)
    notes = Column(Text)
    assigned_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    meal_plan = relationship("MealPlan", back_populates="assignments")
    customer = relationship(
        "User", back_populates="assigned_meal_plans", foreign_keys=[customer_id]
    )
    trainer = relationship(
        "User", back_populates="given_assignments", foreign_keys=[trainer_id]
    )
