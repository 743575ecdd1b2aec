"""Services package - Business logic layer"""

from services.activity_service import ActivityService
from services.admin_service import AdminService
from services.auth_service import AuthService, LoginAttemptTracker, login_attempts
from services.billing_service import BillingService
from services.customer_service import CustomerService
from services.entitlements_service import EntitlementsService
from services.grocery_service import GroceryService
from services.ingredient_service import IngredientService
from services.meal_plan_service import MealPlanService
from services.pdf_service import PdfService
from services.progress_service import ProgressService
from services.recipe_generation_service import RecipeGenerationService
from services.recipe_service import RecipeService

# access_service holds plain route-guard functions, not a class

__all__ = [
    "ActivityService",
    "AdminService",
    "AuthService",
    "BillingService",
    "CustomerService",
    "EntitlementsService",
    "GroceryService",
    "IngredientService",
    "LoginAttemptTracker",
    "MealPlanService",
    "PdfService",
    "ProgressService",
    "RecipeGenerationService",
    "RecipeService",
    "login_attempts",
]
