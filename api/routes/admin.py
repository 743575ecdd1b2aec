"""
Admin routes - platform statistics, user management, recipe approval
and AI recipe generation.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
import logging
from uuid import UUID
from typing import List, Optional

from api.dependencies import client_ip, get_db, require_admin
from api.responses import PaginatedResponse, paginated_response
from domain.enums import UserRole
from domain.mappers import RecipeMapper
from domain.models import User
from domain.schemas.admin_schemas import (
    ActivityLogResponse,
    AdminStatsResponse,
    AdminUserUpdate,
)
from domain.schemas.auth_schemas import UserResponse
from domain.schemas.recipe_schemas import (
    BulkApproveRequest,
    BulkApproveResponse,
    GenerateRecipesRequest,
    GenerateRecipesResponse,
    RecipeResponse,
)
from services.admin_service import AdminService
from services.recipe_generation_service import RecipeGenerationService
from services.recipe_service import RecipeService

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger("fitmeal.api.admin")


@router.get("/stats", response_model=AdminStatsResponse)
def get_stats(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return AdminService.stats(db)


@router.get("/users", response_model=PaginatedResponse[UserResponse])
def list_users(
    role: Optional[UserRole] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    users, total = AdminService.list_users(db, role, page, page_size)
    return paginated_response(
        [UserResponse.model_validate(u) for u in users], total, page, page_size
    )


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    payload: AdminUserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Change a role or the active flag; disabling revokes every session."""
    user = AdminService.update_user(db, admin, user_id, payload, client_ip(request))
    return UserResponse.model_validate(user)


@router.get("/activity", response_model=List[ActivityLogResponse])
def list_activity(
    user_id: Optional[UUID] = Query(default=None),
    action: Optional[str] = Query(default=None, max_length=100),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    entries = AdminService.list_activity(db, user_id, action, limit)
    return [ActivityLogResponse.model_validate(e) for e in entries]


# ============================================================================
# Recipe approval and generation
# ============================================================================


@router.post("/recipes/bulk-approve", response_model=BulkApproveResponse)
def bulk_approve_recipes(
    payload: BulkApproveRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return {"approved": RecipeService.bulk_approve(db, admin, payload.recipe_ids)}


@router.post("/recipes/{recipe_id}/approve", response_model=RecipeResponse)
def approve_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return RecipeMapper.to_response(RecipeService.set_approval(db, admin, recipe_id, True))


@router.post("/recipes/{recipe_id}/unapprove", response_model=RecipeResponse)
def unapprove_recipe(
    recipe_id: UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return RecipeMapper.to_response(RecipeService.set_approval(db, admin, recipe_id, False))


@router.post("/generate-recipes", response_model=GenerateRecipesResponse)
def generate_recipes(
    payload: GenerateRecipesRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """
    Generate recipes with OpenAI.

    Generated recipes are private and unapproved until an admin reviews them.
    Recipes that fail after all retries are reported in **errors**.
    """
    return RecipeGenerationService.generate_batch(db, admin, payload)
