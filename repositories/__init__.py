"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.user_repository import (
    UserRepository,
    SessionRepository,
    InvitationRepository,
)
from repositories.recipe_repository import RecipeRepository, IngredientRepository
from repositories.meal_plan_repository import MealPlanRepository, AssignmentRepository
from repositories.progress_repository import (
    MeasurementRepository,
    GoalRepository,
    PhotoRepository,
)
from repositories.billing_repository import (
    SubscriptionRepository,
    PaymentLogRepository,
    WebhookEventRepository,
)
from repositories.activity_repository import ActivityLogRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "SessionRepository",
    "InvitationRepository",
    "RecipeRepository",
    "IngredientRepository",
    "MealPlanRepository",
    "AssignmentRepository",
    "MeasurementRepository",
    "GoalRepository",
    "PhotoRepository",
    "SubscriptionRepository",
    "PaymentLogRepository",
    "WebhookEventRepository",
    "ActivityLogRepository",
]
