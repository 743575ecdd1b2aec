"""Meal plan routes: manual plans, generation, nutrition and grocery lists"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session
import logging
from uuid import UUID
from typing import List, Optional

from api.dependencies import client_ip, get_current_user, get_db, require_staff
from domain.mappers import MealPlanMapper
from domain.models import User
from domain.schemas.meal_plan_schemas import (
    GroceryListResponse,
    MealPlanCreate,
    MealPlanGenerateRequest,
    MealPlanNutritionResponse,
    MealPlanResponse,
    MealPlanSummary,
    MealPlanUpdate,
)
from services.grocery_service import GroceryService
from services.meal_plan_service import MealPlanService

router = APIRouter(prefix="/meal-plans", tags=["Meal Plans"])
logger = logging.getLogger("fitmeal.api.meal_plans")


@router.get("", response_model=List[MealPlanSummary])
def list_meal_plans(
    is_template: Optional[bool] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=200),
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    """A trainer's own plans; admins see every plan."""
    plans = MealPlanService.list_plans(db, user, is_template, search)
    return [MealPlanMapper.to_summary(p) for p in plans]


@router.post("", response_model=MealPlanResponse, status_code=status.HTTP_201_CREATED)
def create_meal_plan(
    payload: MealPlanCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    plan = MealPlanService.create_plan(db, user, payload, client_ip(request))
    return MealPlanMapper.to_response(plan)


@router.post(
    "/generate",
    response_model=MealPlanResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": MealPlanResponse, "description": "Preview, not saved"}},
)
def generate_meal_plan(
    payload: MealPlanGenerateRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    """
    Build a plan from the caller's visible recipes.

    Each slot takes the recipe of the slot's meal type whose calories are
    closest to daily_calorie_target / meals_per_day, preferring recipes not
    yet used in the plan. With **save=false** the plan is only previewed.
    """
    plan = MealPlanService.generate_plan(db, user, payload, client_ip(request))
    if not payload.save:
        response.status_code = status.HTTP_200_OK
    return MealPlanMapper.to_response(plan)


@router.get("/{meal_plan_id}", response_model=MealPlanResponse)
def get_meal_plan(
    meal_plan_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return MealPlanMapper.to_response(MealPlanService.get_plan(db, user, meal_plan_id))


@router.patch("/{meal_plan_id}", response_model=MealPlanResponse)
def update_meal_plan(
    meal_plan_id: UUID,
    payload: MealPlanUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    """Update metadata; a **days** list replaces every day of the plan."""
    plan = MealPlanService.update_plan(db, user, meal_plan_id, payload)
    return MealPlanMapper.to_response(plan)


@router.delete("/{meal_plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meal_plan(
    meal_plan_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    MealPlanService.delete_plan(db, user, meal_plan_id, client_ip(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{meal_plan_id}/nutrition", response_model=MealPlanNutritionResponse)
def get_meal_plan_nutrition(
    meal_plan_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    plan = MealPlanService.get_plan(db, user, meal_plan_id)
    return MealPlanService.calculate_nutrition(plan)


@router.get("/{meal_plan_id}/grocery-list", response_model=GroceryListResponse)
def get_grocery_list(
    meal_plan_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Aggregated shopping list for the whole plan.

    Quantities are scaled to each meal's servings, merged per ingredient in
    g, ml or piece, and sorted by store section, then priority, then name.
    """
    plan = MealPlanService.get_plan(db, user, meal_plan_id)
    return GroceryService.build_grocery_list(plan)
