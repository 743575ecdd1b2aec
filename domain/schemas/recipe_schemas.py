"""Pydantic schemas for recipes and ingredients."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from domain.enums import MealType, RecipeSource


def _clean_tags(values: List[str]) -> List[str]:
    seen = []
    for value in values or []:
        tag = value.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class IngredientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    default_unit: Optional[str] = Field(None, max_length=20)


class IngredientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: str
    default_unit: Optional[str] = None


class RecipeIngredientInput(BaseModel):
    """Ingredient line of a recipe, referenced by id or by name."""

    ingredient_id: Optional[UUID] = None
    name: Optional[str] = Field(None, max_length=255)
    quantity: float = Field(..., ge=0)
    unit: Optional[str] = Field(None, max_length=20)

    @model_validator(mode="after")
    def check_reference(self):
        if self.ingredient_id is None and not (self.name and self.name.strip()):
            raise ValueError("Either ingredient_id or name is required")
        return self


class RecipeIngredientResponse(BaseModel):
    ingredient_id: UUID
    name: str
    category: str
    quantity: float
    unit: Optional[str] = None
    position: int


class RecipeBase(BaseModel):
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)


class RecipeCreate(RecipeBase):
    name: str = Field(..., min_length=1, max_length=255)
    instructions: str = ""
    meal_types: List[MealType] = []
    dietary_tags: List[str] = []
    tags: List[str] = []
    prep_time_minutes: int = Field(default=0, ge=0, le=1440)
    cook_time_minutes: int = Field(default=0, ge=0, le=1440)
    servings: int = Field(default=1, ge=1, le=100)
    calories_kcal: int = Field(default=0, ge=0, le=10000)
    protein_grams: float = Field(default=0, ge=0, le=1000)
    carbs_grams: float = Field(default=0, ge=0, le=1000)
    fat_grams: float = Field(default=0, ge=0, le=1000)
    is_public: bool = False
    ingredients: List[RecipeIngredientInput] = []

    @field_validator("dietary_tags", "tags")
    @classmethod
    def normalize_tags(cls, v):
        return _clean_tags(v)


class RecipeUpdate(RecipeBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    instructions: Optional[str] = None
    meal_types: Optional[List[MealType]] = None
    dietary_tags: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    prep_time_minutes: Optional[int] = Field(None, ge=0, le=1440)
    cook_time_minutes: Optional[int] = Field(None, ge=0, le=1440)
    servings: Optional[int] = Field(None, ge=1, le=100)
    calories_kcal: Optional[int] = Field(None, ge=0, le=10000)
    protein_grams: Optional[float] = Field(None, ge=0, le=1000)
    carbs_grams: Optional[float] = Field(None, ge=0, le=1000)
    fat_grams: Optional[float] = Field(None, ge=0, le=1000)
    is_public: Optional[bool] = None
    ingredients: Optional[List[RecipeIngredientInput]] = None

    @field_validator("dietary_tags", "tags")
    @classmethod
    def normalize_tags(cls, v):
        return _clean_tags(v) if v is not None else v


class RecipeResponse(BaseModel):
    id: UUID
    trainer_id: Optional[UUID] = None
    name: str
    description: Optional[str] = None
    instructions: str
    meal_types: List[str]
    dietary_tags: List[str]
    tags: List[str]
    prep_time_minutes: int
    cook_time_minutes: int
    servings: int
    calories_kcal: int
    protein_grams: float
    carbs_grams: float
    fat_grams: float
    image_url: Optional[str] = None
    is_public: bool
    is_approved: bool
    source: RecipeSource
    ingredients: List[RecipeIngredientResponse] = []
    created_at: datetime
    updated_at: datetime


class BulkApproveRequest(BaseModel):
    recipe_ids: List[UUID] = Field(..., min_length=1, max_length=500)


class BulkApproveResponse(BaseModel):
    approved: int


class GenerateRecipesRequest(BaseModel):
    count: int = Field(default=1, ge=1, le=20)
    meal_types: List[MealType] = []
    dietary_tags: List[str] = []
    fitness_goal: Optional[str] = Field(None, max_length=50)
    target_calories: Optional[int] = Field(None, ge=50, le=3000)


class GenerateRecipesResponse(BaseModel):
    requested: int
    generated: int
    failed: int
    recipe_ids: List[UUID]
    errors: List[str] = []
