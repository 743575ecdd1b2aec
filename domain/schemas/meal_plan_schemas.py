"""Pydantic schemas for meal plans, nutrition and grocery lists."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.enums import MealType


class MealInput(BaseModel):
    recipe_id: UUID
    meal_type: MealType
    servings: float = Field(default=1, gt=0, le=20)


class DayInput(BaseModel):
    day_number: int = Field(..., ge=1, le=366)
    meals: List[MealInput] = Field(default_factory=list, max_length=10)


class MacroTargets(BaseModel):
    daily_calorie_target: Optional[int] = Field(None, ge=0, le=10000)
    protein_target_g: Optional[float] = Field(None, ge=0, le=1000)
    carbs_target_g: Optional[float] = Field(None, ge=0, le=1000)
    fat_target_g: Optional[float] = Field(None, ge=0, le=1000)


class MealPlanCreate(MacroTargets):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    fitness_goal: Optional[str] = Field(None, max_length=50)
    is_template: bool = False
    tags: List[str] = []
    notes: Optional[str] = None
    days: List[DayInput] = Field(..., min_length=1, max_length=366)


class MealPlanUpdate(MacroTargets):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    fitness_goal: Optional[str] = Field(None, max_length=50)
    is_template: Optional[bool] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    days: Optional[List[DayInput]] = Field(None, min_length=1, max_length=366)


class MealPlanGenerateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    fitness_goal: str = Field(..., min_length=1, max_length=50)
    daily_calorie_target: int = Field(..., ge=800, le=5001)
    days: int = Field(default=7, ge=1, le=30)
    meals_per_day: int = Field(default=3, ge=1, le=6)
    dietary_tag: Optional[str] = Field(None, max_length=50)
    max_prep_time: Optional[int] = Field(None, ge=0, le=1440)
    save: bool = True


class PlannedMealResponse(BaseModel):
    id: Optional[UUID] = None
    recipe_id: UUID
    recipe_name: str
    meal_type: str
    position: int
    servings: float
    calories_kcal: float
    protein_grams: float
    carbs_grams: float
    fat_grams: float


class PlanDayResponse(BaseModel):
    day_number: int
    meals: List[PlannedMealResponse]


class MealPlanSummary(BaseModel):
    id: Optional[UUID] = None
    trainer_id: UUID
    name: str
    description: Optional[str] = None
    fitness_goal: Optional[str] = None
    duration_days: int
    meals_per_day: int
    daily_calorie_target: Optional[int] = None
    protein_target_g: Optional[float] = None
    carbs_target_g: Optional[float] = None
    fat_target_g: Optional[float] = None
    is_template: bool
    tags: List[str] = []
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MealPlanResponse(MealPlanSummary):
    days: List[PlanDayResponse] = []


class NutritionTotals(BaseModel):
    calories: float = 0
    protein_grams: float = 0
    carbs_grams: float = 0
    fat_grams: float = 0


class DayNutrition(NutritionTotals):
    day_number: int


class MealPlanNutritionResponse(BaseModel):
    meal_plan_id: UUID
    days: List[DayNutrition]
    daily_average: NutritionTotals


class GroceryItem(BaseModel):
    ingredient_id: UUID
    name: str
    category: str
    quantity: float
    unit: Optional[str] = None
    priority: str
    recipes: List[str]


class GroceryListResponse(BaseModel):
    meal_plan_id: UUID
    total_items: int
    items: List[GroceryItem]
