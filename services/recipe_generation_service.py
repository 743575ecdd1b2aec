"""Recipe generation service - AI-authored recipes stored for admin review."""

import logging
import time
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy.orm import Session

from adapters import openai_adapter
from app.config import settings
from app.exceptions import ExternalServiceError, ServiceValidationError
from domain.enums import MealType, RecipeSource
from domain.models import Recipe, User
from domain.schemas.recipe_schemas import GenerateRecipesRequest, RecipeIngredientInput
from repositories import RecipeRepository
from services.activity_service import ActivityService
from services.ingredient_service import normalize_ingredient_name
from services.recipe_service import RecipeService

logger = logging.getLogger("fitmeal.recipe_generation")


class GeneratedIngredient(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: float = Field(default=0, ge=0)
    unit: Optional[str] = Field(None, max_length=20)


class GeneratedRecipe(BaseModel):
    """Shape a model reply must have before it is stored."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    instructions: str = Field(..., min_length=1)
    meal_types: List[MealType] = Field(..., min_length=1)
    dietary_tags: List[str] = []
    prep_time_minutes: int = Field(default=0, ge=0, le=1440)
    cook_time_minutes: int = Field(default=0, ge=0, le=1440)
    servings: int = Field(default=1, ge=1, le=100)
    calories_kcal: int = Field(..., ge=0, le=10000)
    protein_grams: float = Field(..., ge=0, le=1000)
    carbs_grams: float = Field(..., ge=0, le=1000)
    fat_grams: float = Field(..., ge=0, le=1000)
    ingredients: List[GeneratedIngredient] = Field(..., min_length=1)

    @field_validator("instructions", mode="before")
    @classmethod
    def join_steps(cls, v):
        if isinstance(v, list):
            return "\n".join(f"{i}. {step}" for i, step in enumerate(v, start=1))
        return v

    @field_validator("dietary_tags")
    @classmethod
    def lower_tags(cls, v):
        return sorted({t.strip().lower() for t in v if t and t.strip()})


class RecipeGenerationService:
    @staticmethod
    def request_recipe(
        prompt: str,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> GeneratedRecipe:
        """
        Ask the model for one recipe, retrying with exponential backoff.

        Both transport failures and replies that fail validation are retried.

        Raises:
            ExternalServiceError: every attempt failed
        """
        max_attempts = max_attempts or settings.openai_max_retries
        delay = settings.openai_retry_base_delay_sec if base_delay is None else base_delay
        last_error: Optional[str] = None

        for attempt in range(1, max_attempts + 1):
            try:
                payload = openai_adapter.generate_recipe_json(prompt)
                return GeneratedRecipe.model_validate(payload)
            except (ExternalServiceError, ValidationError) as exc:
                last_error = str(exc).splitlines()[0]
                logger.warning(
                    "recipe_generation_attempt_failed attempt=%d/%d error=%s",
                    attempt,
                    max_attempts,
                    last_error,
                )
                if attempt < max_attempts:
                    sleep(delay * (2 ** (attempt - 1)))

        raise ExternalServiceError(
            f"Recipe generation failed after {max_attempts} attempts",
            details={"last_error": last_error},
        )

    @staticmethod
    def store_recipe(db: Session, generated: GeneratedRecipe) -> Recipe:
        """Persist an AI recipe: unapproved, private and owned by no trainer (flush only)."""
        recipe = Recipe(
            trainer_id=None,
            name=generated.name,
            description=generated.description,
            instructions=generated.instructions,
            meal_types=[m.value for m in generated.meal_types],
            dietary_tags=generated.dietary_tags,
            tags=["ai-generated"],
            prep_time_minutes=generated.prep_time_minutes,
            cook_time_minutes=generated.cook_time_minutes,
            servings=generated.servings,
            calories_kcal=generated.calories_kcal,
            protein_grams=generated.protein_grams,
            carbs_grams=generated.carbs_grams,
            fat_grams=generated.fat_grams,
            is_public=False,
            is_approved=False,
            source=RecipeSource.AI,
        )
        # Models sometimes repeat an ingredient; keep the first occurrence
        unique, seen = [], set()
        for item in generated.ingredients:
            key = normalize_ingredient_name(item.name)
            if key not in seen:
                seen.add(key)
                unique.append(
                    RecipeIngredientInput(name=item.name, quantity=item.quantity, unit=item.unit)
                )
        recipe.ingredients = RecipeService.build_ingredient_links(db, unique)
        return RecipeRepository(db).add(recipe)

    @staticmethod
    def generate_batch(
        db: Session,
        admin: User,
        request: GenerateRecipesRequest,
        sleep: Callable[[float], None] = time.sleep,
    ) -> dict:
        """
        Generate ``request.count`` recipes one call at a time.

        Recipes that still fail after all retries are counted, not fatal.

        Raises:
            ExternalServiceError: OpenAI is not configured
        """
        if not openai_adapter.is_configured():
            raise ExternalServiceError("OpenAI API key is not configured")

        meal_types = [m.value for m in request.meal_types]
        recipe_ids, errors, names = [], [], []
        for index in range(request.count):
            prompt = openai_adapter.build_recipe_prompt(
                meal_type=meal_types[index % len(meal_types)] if meal_types else None,
                dietary_tags=request.dietary_tags,
                fitness_goal=request.fitness_goal,
                target_calories=request.target_calories,
                avoid_names=names[-10:],
            )
            try:
                generated = RecipeGenerationService.request_recipe(prompt, sleep=sleep)
                with db.begin_nested():
                    recipe = RecipeGenerationService.store_recipe(db, generated)
            except (ExternalServiceError, ServiceValidationError) as exc:
                errors.append(f"recipe {index + 1}: {exc.message}")
                continue
            recipe_ids.append(recipe.id)
            names.append(recipe.name)

        ActivityService.record(
            db,
            admin.id,
            "recipe.generate",
            "recipe",
            None,
            {"requested": request.count, "generated": len(recipe_ids)},
        )
        db.commit()
        logger.info(
            "recipes_generated requested=%d generated=%d failed=%d",
            request.count,
            len(recipe_ids),
            len(errors),
        )
        return {
            "requested": request.count,
            "generated": len(recipe_ids),
            "failed": request.count - len(recipe_ids),
            "recipe_ids": recipe_ids,
            "errors": errors,
        }
