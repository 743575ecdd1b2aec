"""
Domain enums for FitMeal Pro.
Contains all enumeration types used across the domain models.
"""

import enum


class UserRole(str, enum.Enum):
    """Role-based access levels"""

    ADMIN = "admin"
    TRAINER = "trainer"
    CUSTOMER = "customer"


class MealType(str, enum.Enum):
    """Meal slots within a day"""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class RecipeSource(str, enum.Enum):
    MANUAL = "manual"
    AI = "ai"


class AssignmentStatus(str, enum.Enum):
    """Lifecycle of a meal plan assigned to a customer"""

    ASSIGNED = "assigned"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class GoalType(str, enum.Enum):
    """Customer fitness goal types"""

    WEIGHT_LOSS = "weight_loss"
    WEIGHT_GAIN = "weight_gain"
    MUSCLE_GAIN = "muscle_gain"
    BODY_FAT = "body_fat"
    PERFORMANCE = "performance"
    OTHER = "other"


class GoalStatus(str, enum.Enum):
    ACTIVE = "active"
    ACHIEVED = "achieved"
    PAUSED = "paused"
    ABANDONED = "abandoned"


class PhotoType(str, enum.Enum):
    FRONT = "front"
    SIDE = "side"
    BACK = "back"
    OTHER = "other"


class TierLevel(str, enum.Enum):
    """Purchasable trainer tiers"""

    STARTER = "starter"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


class WebhookEventStatus(str, enum.Enum):
    PROCESSED = "processed"
    FAILED = "failed"
