"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    init_database,
    get_db_session,
)
from domain.models.user import User, UserSession, CustomerInvitation
from domain.models.recipe import Ingredient, Recipe, RecipeIngredient
from domain.models.meal_plan import (
    MealPlan,
    MealPlanDay,
    MealPlanMeal,
    CustomerMealPlan,
)
from domain.models.progress import CustomerGoal, ProgressMeasurement, ProgressPhoto
from domain.models.billing import TrainerSubscription, PaymentLog, WebhookEvent
from domain.models.activity import ActivityLog

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "init_database",
    "get_db_session",
    # User models
    "User",
    "UserSession",
    "CustomerInvitation",
    # Recipe models
    "Ingredient",
    "Recipe",
    "RecipeIngredient",
    # Meal plan models
    "MealPlan",
    "MealPlanDay",
    "MealPlanMeal",
    "CustomerMealPlan",
    # Progress models
    "CustomerGoal",
    "ProgressMeasurement",
    "ProgressPhoto",
    # Billing models
    "TrainerSubscription",
    "PaymentLog",
    "WebhookEvent",
    # Audit
    "ActivityLog",
]
