"""Recipe service - authoring, visibility, search and approval."""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import ConflictError, ForbiddenError, NotFoundError, ServiceValidationError
from domain.enums import RecipeSource, UserRole
from domain.models import Recipe, RecipeIngredient, User
from domain.schemas.recipe_schemas import RecipeCreate, RecipeIngredientInput, RecipeUpdate
from repositories import IngredientRepository, RecipeRepository
from services.activity_service import ActivityService
from services.ingredient_service import IngredientService

logger = logging.getLogger("fitmeal.recipe")

_SCALAR_FIELDS = (
    "name",
    "description",
    "instructions",
    "dietary_tags",
    "tags",
    "prep_time_minutes",
    "cook_time_minutes",
    "servings",
    "calories_kcal",
    "protein_grams",
    "carbs_grams",
    "fat_grams",
    "image_url",
    "is_public",
)


class RecipeService:
    @staticmethod
    def build_ingredient_links(
        db: Session, items: List[RecipeIngredientInput]
    ) -> List[RecipeIngredient]:
        """
        Resolve ingredient lines (by id or by name) into RecipeIngredient rows.

        Raises:
            ServiceValidationError: unknown ingredient id or the same ingredient twice
        """
        ingredient_repo = IngredientRepository(db)
        links: List[RecipeIngredient] = []
        seen = set()
        for position, item in enumerate(items, start=1):
            if item.ingredient_id is not None:
                ingredient = ingredient_repo.get_by_id(item.ingredient_id)
                if ingredient is None:
                    raise ServiceValidationError(
                        f"Unknown ingredient {item.ingredient_id}",
                        code="UNKNOWN_INGREDIENT",
                    )
            else:
                ingredient, _ = IngredientService.get_or_create(db, item.name, item.unit)

            if ingredient.id in seen:
                raise ServiceValidationError(
                    f"Ingredient '{ingredient.name}' is listed more than once",
                    code="DUPLICATE_INGREDIENT",
                )
            seen.add(ingredient.id)
            links.append(
                RecipeIngredient(
                    ingredient_id=ingredient.id,
                    quantity=item.quantity,
                    unit=(item.unit or ingredient.default_unit),
                    position=position,
                )
            )
        return links

    @staticmethod
    def create_recipe(
        db: Session, user: User, data: RecipeCreate, ip_address: Optional[str] = None
    ) -> Recipe:
        is_admin = user.role == UserRole.ADMIN
        recipe = Recipe(
            trainer_id=None if is_admin else user.id,
            meal_types=[m.value for m in data.meal_types],
            is_approved=is_admin,
            source=RecipeSource.MANUAL,
            **{f: getattr(data, f) for f in _SCALAR_FIELDS},
        )
        recipe.ingredients = RecipeService.build_ingredient_links(db, data.ingredients)
        RecipeRepository(db).add(recipe)
        ActivityService.record(
            db, user.id, "recipe.create", "recipe", recipe.id, {"name": recipe.name}, ip_address
        )
        db.commit()
        db.refresh(recipe)
        logger.info("recipe_created recipe_id=%s user_id=%s", recipe.id, user.id)
        return recipe

    @staticmethod
    def get_recipe(db: Session, user: User, recipe_id: UUID) -> Recipe:
        """Get a recipe the user may see; invisible recipes look like missing ones."""
        recipe = RecipeRepository(db).get_visible(user, recipe_id)
        if recipe is None:
            raise NotFoundError(f"Recipe {recipe_id} not found")
        return recipe

    @staticmethod
    def _get_editable(db: Session, user: User, recipe_id: UUID) -> Recipe:
        recipe = RecipeService.get_recipe(db, user, recipe_id)
        if user.role != UserRole.ADMIN and recipe.trainer_id != user.id:
            raise ForbiddenError("You can only modify your own recipes")
        return recipe

    @staticmethod
    def search_recipes(
        db: Session, user: User, page: int = 1, page_size: int = 12, **filters
    ) -> Tuple[List[Recipe], int]:
        return RecipeRepository(db).search(
            user, skip=(page - 1) * page_size, limit=page_size, **filters
        )

    @staticmethod
    def update_recipe(
        db: Session,
        user: User,
        recipe_id: UUID,
        data: RecipeUpdate,
        ip_address: Optional[str] = None,
    ) -> Recipe:
        """
        Apply a partial update. A new ingredient list replaces the old one, and
        a trainer's edit sends an approved recipe back to review.
        """
        recipe = RecipeService._get_editable(db, user, recipe_id)
        changes = data.model_dump(exclude_unset=True)

        for field_name in _SCALAR_FIELDS:
            if field_name in changes and (
                changes[field_name] is not None or field_name in ("description", "image_url")
            ):
                setattr(recipe, field_name, changes[field_name])
        if data.meal_types is not None:
            recipe.meal_types = [m.value for m in data.meal_types]

        if data.ingredients is not None:
            recipe.ingredients.clear()
            db.flush()
            recipe.ingredients.extend(RecipeService.build_ingredient_links(db, data.ingredients))

        if user.role != UserRole.ADMIN and recipe.is_approved:
            recipe.is_approved = False
            logger.info("recipe_needs_reapproval recipe_id=%s", recipe.id)

        ActivityService.record(
            db, user.id, "recipe.update", "recipe", recipe.id,
            {"fields": sorted(changes.keys())}, ip_address,
        )
        db.commit()
        db.refresh(recipe)
        return recipe

    @staticmethod
    def delete_recipe(
        db: Session, user: User, recipe_id: UUID, ip_address: Optional[str] = None
    ) -> None:
        recipe = RecipeService._get_editable(db, user, recipe_id)
        repo = RecipeRepository(db)
        if repo.is_used_in_meal_plan(recipe.id):
            raise ConflictError(
                "Recipe is used in a meal plan and cannot be deleted",
                code="RECIPE_IN_USE",
            )
        ActivityService.record(
            db, user.id, "recipe.delete", "recipe", recipe.id, {"name": recipe.name}, ip_address
        )
        repo.remove(recipe)
        db.commit()
        logger.info("recipe_deleted recipe_id=%s user_id=%s", recipe_id, user.id)

    @staticmethod
    def set_approval(
        db: Session, admin: User, recipe_id: UUID, approved: bool
    ) -> Recipe:
        repo = RecipeRepository(db)
        recipe = repo.get_by_id(recipe_id)
        if recipe is None:
            raise NotFoundError(f"Recipe {recipe_id} not found")
        recipe.is_approved = approved
        ActivityService.record(
            db, admin.id, "recipe.approve" if approved else "recipe.unapprove",
            "recipe", recipe.id,
        )
        db.commit()
        db.refresh(recipe)
        return recipe

    @staticmethod
    def bulk_approve(db: Session, admin: User, recipe_ids: List[UUID]) -> int:
        count = RecipeRepository(db).set_approval(list(set(recipe_ids)), True)
        ActivityService.record(
            db, admin.id, "recipe.approve", "recipe", None, {"count": count}
        )
        db.commit()
        db.expire_all()
        logger.info("recipes_bulk_approved count=%d admin_id=%s", count, admin.id)
        return count
