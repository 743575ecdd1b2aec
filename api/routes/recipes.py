"""
Recipe routes - authoring, search and retrieval.
Approval and AI generation live under the admin routes.
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session
import logging
from uuid import UUID
from typing import Optional

from api.dependencies import client_ip, get_current_user, get_db, require_staff
from api.responses import PaginatedResponse, paginated_response
from domain.enums import MealType
from domain.mappers import RecipeMapper
from domain.models import User
from domain.schemas.recipe_schemas import RecipeCreate, RecipeResponse, RecipeUpdate
from services.recipe_service import RecipeService

router = APIRouter(prefix="/recipes", tags=["Recipes"])
logger = logging.getLogger("fitmeal.api.recipes")


@router.get("", response_model=PaginatedResponse[RecipeResponse])
def search_recipes(
    search: Optional[str] = Query(default=None, max_length=200, description="Name or description"),
    meal_type: Optional[MealType] = Query(default=None),
    dietary_tag: Optional[str] = Query(default=None, max_length=50),
    max_prep_time: Optional[int] = Query(default=None, ge=0),
    min_calories: Optional[int] = Query(default=None, ge=0),
    max_calories: Optional[int] = Query(default=None, ge=0),
    min_protein: Optional[float] = Query(default=None, ge=0),
    max_protein: Optional[float] = Query(default=None, ge=0),
    min_carbs: Optional[float] = Query(default=None, ge=0),
    max_carbs: Optional[float] = Query(default=None, ge=0),
    min_fat: Optional[float] = Query(default=None, ge=0),
    max_fat: Optional[float] = Query(default=None, ge=0),
    approved: Optional[bool] = Query(default=None, description="Admins only"),
    mine: bool = Query(default=False, description="Only recipes I authored"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=12, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Search the recipes visible to the caller.

    - Admins see every recipe and may filter on **approved**
    - Trainers see their own recipes plus public approved ones
    - Customers see public approved recipes and those in their assigned plans
    """
    items, total = RecipeService.search_recipes(
        db,
        user,
        page=page,
        page_size=page_size,
        search=search,
        meal_type=meal_type.value if meal_type else None,
        dietary_tag=dietary_tag,
        max_prep_time=max_prep_time,
        min_calories=min_calories,
        max_calories=max_calories,
        min_protein=min_protein,
        max_protein=max_protein,
        min_carbs=min_carbs,
        max_carbs=max_carbs,
        min_fat=min_fat,
        max_fat=max_fat,
        approved=approved,
        mine=mine,
    )
    return paginated_response(
        [RecipeMapper.to_response(r) for r in items], total, page, page_size
    )


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
def create_recipe(
    payload: RecipeCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    recipe = RecipeService.create_recipe(db, user, payload, client_ip(request))
    return RecipeMapper.to_response(recipe)


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return RecipeMapper.to_response(RecipeService.get_recipe(db, user, recipe_id))


@router.patch("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: UUID,
    payload: RecipeUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    """Partial update; a new ingredient list replaces the old one."""
    recipe = RecipeService.update_recipe(db, user, recipe_id, payload, client_ip(request))
    return RecipeMapper.to_response(recipe)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    RecipeService.delete_recipe(db, user, recipe_id, client_ip(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
