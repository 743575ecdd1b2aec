"""
Meal plan domain mappers.
Handles transformation between ORM models and DTOs for meal plans. Works for
persisted plans and for generated plans that were never saved.
"""

from typing import Optional

from domain.models import MealPlan, MealPlanMeal
from domain.schemas.meal_plan_schemas import (
    MealPlanSummary,
    MealPlanResponse,
    PlanDayResponse,
    PlannedMealResponse,
)


def _as_float(value) -> Optional[float]:
    return float(value) if value is not None else None


class MealPlanMapper:
    """Mapper for meal plan transformations."""

    @staticmethod
    def _summary_fields(plan: MealPlan) -> dict:
        return dict(
            id=plan.id,
            trainer_id=plan.trainer_id,
            name=plan.name,
            description=plan.description,
            fitness_goal=plan.fitness_goal,
            duration_days=plan.duration_days or 0,
            meals_per_day=plan.meals_per_day or 0,
            daily_calorie_target=plan.daily_calorie_target,
            protein_target_g=_as_float(plan.protein_target_g),
            carbs_target_g=_as_float(plan.carbs_target_g),
            fat_target_g=_as_float(plan.fat_target_g),
            is_template=bool(plan.is_template),
            tags=list(plan.tags or []),
            notes=plan.notes,
            created_at=plan.created_at,
            updated_at=plan.updated_at,
        )

    @staticmethod
    def to_summary(plan: MealPlan) -> MealPlanSummary:
        return MealPlanSummary(**MealPlanMapper._summary_fields(plan))

    @staticmethod
    def meal_to_response(meal: MealPlanMeal) -> PlannedMealResponse:
        """Macros are the recipe's per-serving values scaled by the meal's servings"""
        recipe = meal.recipe
        servings = float(meal.servings or 1)
        return PlannedMealResponse(
            id=meal.id,
            recipe_id=recipe.id,
            recipe_name=recipe.name,
            meal_type=meal.meal_type,
            position=meal.position,
            servings=servings,
            calories_kcal=round((recipe.calories_kcal or 0) * servings, 2),
            protein_grams=round(float(recipe.protein_grams or 0) * servings, 2),
            carbs_grams=round(float(recipe.carbs_grams or 0) * servings, 2),
            fat_grams=round(float(recipe.fat_grams or 0) * servings, 2),
        )

    @staticmethod
    def to_response(plan: MealPlan) -> MealPlanResponse:
        """
        Convert ORM MealPlan to MealPlanResponse DTO.

        Args:
            plan: MealPlan with days, meals and recipes loaded

        Returns:
            MealPlanResponse with days ordered by day number and meals by position
        """
        days = [
            PlanDayResponse(
                day_number=day.day_number,
                meals=[
                    MealPlanMapper.meal_to_response(meal)
                    for meal in sorted(day.meals, key=lambda m: m.position)
                ],
            )
            for day in sorted(plan.days, key=lambda d: d.day_number)
        ]
        return MealPlanResponse(**MealPlanMapper._summary_fields(plan), days=days)
