"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.auth_schemas import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    UserResponse,
    TokenResponse,
    RouteAccessResponse,
)
from domain.schemas.recipe_schemas import (
    IngredientCreate,
    IngredientResponse,
    RecipeIngredientInput,
    RecipeIngredientResponse,
    RecipeCreate,
    RecipeUpdate,
    RecipeResponse,
    BulkApproveRequest,
    BulkApproveResponse,
    GenerateRecipesRequest,
    GenerateRecipesResponse,
)
from domain.schemas.meal_plan_schemas import (
    MealInput,
    DayInput,
    MealPlanCreate,
    MealPlanUpdate,
    MealPlanGenerateRequest,
    PlannedMealResponse,
    PlanDayResponse,
    MealPlanSummary,
    MealPlanResponse,
    NutritionTotals,
    DayNutrition,
    MealPlanNutritionResponse,
    GroceryItem,
    GroceryListResponse,
)
from domain.schemas.customer_schemas import (
    InvitationCreate,
    InvitationResponse,
    AcceptInvitationRequest,
    CustomerResponse,
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentResponse,
)
from domain.schemas.progress_schemas import (
    MeasurementCreate,
    MeasurementUpdate,
    MeasurementResponse,
    GoalCreate,
    GoalUpdate,
    GoalResponse,
    PhotoResponse,
    ProgressSummaryResponse,
)
from domain.schemas.billing_schemas import (
    TierInfo,
    PricingResponse,
    CheckoutRequest,
    CheckoutResponse,
    SubscriptionResponse,
    WebhookResponse,
)
from domain.schemas.admin_schemas import (
    AdminStatsResponse,
    AdminUserUpdate,
    ActivityLogResponse,
)
