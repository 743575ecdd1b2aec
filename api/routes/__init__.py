"""API routes package"""

from . import (
    admin,
    auth,
    billing,
    customers,
    health,
    ingredients,
    meal_plans,
    pdf,
    progress,
    recipes,
)

__all__ = [
    "admin",
    "auth",
    "billing",
    "customers",
    "health",
    "ingredients",
    "meal_plans",
    "pdf",
    "progress",
    "recipes",
]
