"""Meal plan service - manual plans, plan generation and nutrition totals."""

import logging
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import ForbiddenError, NotFoundError, ServiceValidationError
from domain.enums import MealType, UserRole
from domain.models import MealPlan, MealPlanDay, MealPlanMeal, Recipe, User
from domain.schemas.meal_plan_schemas import (
    DayInput,
    MealPlanCreate,
    MealPlanGenerateRequest,
    MealPlanUpdate,
)
from repositories import AssignmentRepository, MealPlanRepository, RecipeRepository
from services.activity_service import ActivityService
from services.entitlements_service import MEAL_PLANS, EntitlementsService

logger = logging.getLogger("fitmeal.meal_plan")

# Slot order for generated days, truncated to meals_per_day
SLOT_SEQUENCE = [
    MealType.BREAKFAST,
    MealType.LUNCH,
    MealType.DINNER,
    MealType.SNACK,
    MealType.SNACK,
    MealType.SNACK,
]

_METADATA_FIELDS = (
    "name",
    "description",
    "fitness_goal",
    "daily_calorie_target",
    "protein_target_g",
    "carbs_target_g",
    "fat_target_g",
    "is_template",
    "tags",
    "notes",
)

MACROS = ("calories", "protein_grams", "carbs_grams", "fat_grams")


def meal_slots(meals_per_day: int) -> List[MealType]:
    return SLOT_SEQUENCE[:meals_per_day]


def pick_recipe(
    candidates: Sequence[Recipe], slot: MealType, target_calories: float, used: set
) -> Recipe:
    """
    Choose the recipe for one slot.

    Recipes tagged with the slot's meal type are preferred, then recipes not yet
    used in the plan; among those the closest calorie count wins and ties go to
    the alphabetically first name.
    """
    typed = [r for r in candidates if slot.value in (r.meal_types or [])] or list(candidates)
    fresh = [r for r in typed if r.id not in used] or typed
    return min(
        fresh,
        key=lambda r: (abs((r.calories_kcal or 0) - target_calories), r.name.lower(), r.name),
    )


def meal_macros(meal: MealPlanMeal) -> Dict[str, float]:
    recipe = meal.recipe
    servings = float(meal.servings or 1)
    return {
        "calories": (recipe.calories_kcal or 0) * servings,
        "protein_grams": float(recipe.protein_grams or 0) * servings,
        "carbs_grams": float(recipe.carbs_grams or 0) * servings,
        "fat_grams": float(recipe.fat_grams or 0) * servings,
    }


class MealPlanService:
    @staticmethod
    def _validate_day_numbers(days: List[DayInput]) -> None:
        numbers = [d.day_number for d in days]
        if sorted(numbers) != list(range(1, len(numbers) + 1)):
            raise ServiceValidationError(
                "Day numbers must run from 1 to the number of days without gaps or duplicates",
                details={"day_numbers": numbers},
                code="INVALID_DAY_NUMBERS",
            )

    @staticmethod
    def _build_days(db: Session, user: User, days: List[DayInput]) -> List[MealPlanDay]:
        MealPlanService._validate_day_numbers(days)

        recipe_ids = {meal.recipe_id for day in days for meal in day.meals}
        visible = {}
        if recipe_ids:
            visible = {
                r.id: r
                for r in RecipeRepository(db)
                .visible_query(user)
                .filter(Recipe.id.in_(recipe_ids))
                .all()
            }
        missing = sorted(str(rid) for rid in recipe_ids if rid not in visible)
        if missing:
            raise ServiceValidationError(
                "Some recipes do not exist or are not available to you",
                details={"recipe_ids": missing},
                code="RECIPE_NOT_AVAILABLE",
            )

        result = []
        for day in sorted(days, key=lambda d: d.day_number):
            plan_day = MealPlanDay(day_number=day.day_number)
            plan_day.meals = [
                MealPlanMeal(
                    recipe=visible[meal.recipe_id],
                    meal_type=meal.meal_type.value,
                    position=position,
                    servings=meal.servings,
                )
                for position, meal in enumerate(day.meals, start=1)
            ]
            result.append(plan_day)
        return result

    @staticmethod
    def _apply_days(plan: MealPlan, days: List[MealPlanDay]) -> None:
        plan.days = days
        plan.duration_days = len(days)
        plan.meals_per_day = max((len(d.meals) for d in days), default=0)

    @staticmethod
    def create_plan(
        db: Session, user: User, data: MealPlanCreate, ip_address: Optional[str] = None
    ) -> MealPlan:
        EntitlementsService.check_quota(db, user, MEAL_PLANS)
        plan = MealPlan(
            trainer_id=user.id,
            **{f: getattr(data, f) for f in _METADATA_FIELDS},
        )
        MealPlanService._apply_days(plan, MealPlanService._build_days(db, user, data.days))
        MealPlanRepository(db).add(plan)
        ActivityService.record(
            db, user.id, "meal_plan.create", "meal_plan", plan.id, {"name": plan.name}, ip_address
        )
        db.commit()
        logger.info("meal_plan_created meal_plan_id=%s trainer_id=%s", plan.id, user.id)
        return MealPlanService.get_plan(db, user, plan.id)

    @staticmethod
    def generate_plan(
        db: Session, user: User, data: MealPlanGenerateRequest, ip_address: Optional[str] = None
    ) -> MealPlan:
        """
        Generate a plan from the recipes visible to the user.

        With ``save=False`` the returned plan is transient and never persisted.

        Raises:
            ServiceValidationError: no recipe passes the filters
            PaymentRequiredError: saving would exceed the meal plan quota
        """
        if data.save:
            EntitlementsService.check_quota(db, user, MEAL_PLANS)

        candidates, _ = RecipeRepository(db).search(
            user,
            dietary_tag=data.dietary_tag,
            max_prep_time=data.max_prep_time,
            limit=None,
        )
        if not candidates:
            raise ServiceValidationError(
                "No recipes match the requested filters",
                details={"dietary_tag": data.dietary_tag, "max_prep_time": data.max_prep_time},
                code="NO_RECIPES_AVAILABLE",
            )

        slots = meal_slots(data.meals_per_day)
        target = data.daily_calorie_target / data.meals_per_day
        used: set = set()
        days = []
        for day_number in range(1, data.days + 1):
            plan_day = MealPlanDay(day_number=day_number)
            meals = []
            for position, slot in enumerate(slots, start=1):
                recipe = pick_recipe(candidates, slot, target, used)
                used.add(recipe.id)
                meals.append(
                    MealPlanMeal(
                        recipe=recipe, meal_type=slot.value, position=position, servings=1
                    )
                )
            plan_day.meals = meals
            days.append(plan_day)

        plan = MealPlan(
            trainer_id=user.id,
            name=data.name,
            description=data.description,
            fitness_goal=data.fitness_goal,
            daily_calorie_target=data.daily_calorie_target,
            is_template=False,
            tags=[],
        )
        MealPlanService._apply_days(plan, days)
        logger.info(
            "meal_plan_generated trainer_id=%s days=%d meals_per_day=%d pool=%d save=%s",
            user.id,
            data.days,
            data.meals_per_day,
            len(candidates),
            data.save,
        )
        if not data.save:
            return plan

        MealPlanRepository(db).add(plan)
        ActivityService.record(
            db, user.id, "meal_plan.create", "meal_plan", plan.id,
            {"name": plan.name, "generated": True}, ip_address,
        )
        db.commit()
        return MealPlanService.get_plan(db, user, plan.id)

    @staticmethod
    def list_plans(
        db: Session,
        user: User,
        is_template: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[MealPlan]:
        trainer_id = None if user.role == UserRole.ADMIN else user.id
        return MealPlanRepository(db).list_plans(trainer_id, is_template, search)

    @staticmethod
    def get_plan(db: Session, user: User, meal_plan_id: UUID) -> MealPlan:
        """Owner, admin, or a customer the plan is assigned to; otherwise 404."""
        plan = MealPlanRepository(db).get_with_days(meal_plan_id)
        if plan is None:
            raise NotFoundError(f"Meal plan {meal_plan_id} not found")
        if user.role == UserRole.ADMIN or plan.trainer_id == user.id:
            return plan
        if user.role == UserRole.CUSTOMER and AssignmentRepository(db).is_assigned_to(
            plan.id, user.id
        ):
            return plan
        raise NotFoundError(f"Meal plan {meal_plan_id} not found")

    @staticmethod
    def get_owned_plan(db: Session, user: User, meal_plan_id: UUID) -> MealPlan:
        plan = MealPlanRepository(db).get_with_days(meal_plan_id)
        if plan is None:
            raise NotFoundError(f"Meal plan {meal_plan_id} not found")
        if user.role != UserRole.ADMIN and plan.trainer_id != user.id:
            raise ForbiddenError("You can only modify your own meal plans")
        return plan

    @staticmethod
    def update_plan(
        db: Session, user: User, meal_plan_id: UUID, data: MealPlanUpdate
    ) -> MealPlan:
        plan = MealPlanService.get_owned_plan(db, user, meal_plan_id)
        changes = data.model_dump(exclude_unset=True)
        for field_name in _METADATA_FIELDS:
            if field_name in changes:
                value = changes[field_name]
                if value is None and field_name in ("name", "is_template", "tags"):
                    continue
                setattr(plan, field_name, value)

        if data.days is not None:
            new_days = MealPlanService._build_days(db, user, data.days)
            plan.days.clear()
            db.flush()
            MealPlanService._apply_days(plan, new_days)

        db.commit()
        logger.info("meal_plan_updated meal_plan_id=%s", plan.id)
        db.expire(plan)
        return MealPlanService.get_plan(db, user, plan.id)

    @staticmethod
    def delete_plan(
        db: Session, user: User, meal_plan_id: UUID, ip_address: Optional[str] = None
    ) -> None:
        plan = MealPlanService.get_owned_plan(db, user, meal_plan_id)
        ActivityService.record(
            db, user.id, "meal_plan.delete", "meal_plan", plan.id, {"name": plan.name}, ip_address
        )
        MealPlanRepository(db).remove(plan)
        db.commit()
        logger.info("meal_plan_deleted meal_plan_id=%s", meal_plan_id)

    @staticmethod
    def calculate_nutrition(plan: MealPlan) -> dict:
        """Per-day totals and the average day, from per-serving recipe macros."""
        days = []
        for day in sorted(plan.days, key=lambda d: d.day_number):
            totals = dict.fromkeys(MACROS, 0.0)
            for meal in day.meals:
                for key, value in meal_macros(meal).items():
                    totals[key] += value
            days.append({"day_number": day.day_number, **{k: round(v, 2) for k, v in totals.items()}})

        count = len(days)
        average = {
            key: round(sum(d[key] for d in days) / count, 2) if count else 0.0
            for key in MACROS
        }
        return {"meal_plan_id": plan.id, "days": days, "daily_average": average}
