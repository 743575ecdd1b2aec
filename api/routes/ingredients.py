"""Ingredient master data routes"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
import logging
from uuid import UUID
from typing import List, Optional

from api.dependencies import get_current_user, get_db, require_admin, require_staff
from domain.models import User
from domain.schemas.recipe_schemas import IngredientCreate, IngredientResponse
from services.ingredient_service import IngredientService

router = APIRouter(prefix="/ingredients", tags=["Ingredients"])
logger = logging.getLogger("fitmeal.api.ingredients")


@router.get("", response_model=List[IngredientResponse])
def search_ingredients(
    search: Optional[str] = Query(default=None, max_length=100),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    items = IngredientService.search(db, search, limit)
    return [IngredientResponse.model_validate(i) for i in items]


@router.post(
    "",
    response_model=IngredientResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": IngredientResponse, "description": "Ingredient already existed"}},
)
def create_ingredient(
    payload: IngredientCreate,
    response: Response,
    db: Session = Depends(get_db),
    _: User = Depends(require_staff),
):
    """Create an ingredient by its normalized name; an existing match is returned with 200."""
    ingredient, created = IngredientService.create(db, payload.name, payload.default_unit)
    if not created:
        response.status_code = status.HTTP_200_OK
    return IngredientResponse.model_validate(ingredient)


@router.delete("/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ingredient(
    ingredient_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    IngredientService.delete(db, ingredient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
