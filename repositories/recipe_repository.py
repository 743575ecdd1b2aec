"""
Recipe and ingredient repositories.
"""

from typing import Optional, List, Tuple, Iterable
from uuid import UUID
from sqlalchemy import String, and_, cast, func, or_, select
from sqlalchemy.orm import Session, Query

from repositories.base import BaseRepository
from domain.models import (
    Ingredient,
    Recipe,
    RecipeIngredient,
    MealPlanDay,
    MealPlanMeal,
    CustomerMealPlan,
    User,
)
from domain.enums import UserRole


def _json_list_contains(column, value: str):
    """Portable "JSON array contains string" check (works on PostgreSQL and SQLite)."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return cast(column, String).like(f'%"{escaped}"%', escape="\\")


class IngredientRepository(BaseRepository[Ingredient]):
    """Repository for the ingredient master table"""

    def __init__(self, db: Session):
        super().__init__(db, Ingredient)

    def get_by_name(self, name: str) -> Optional[Ingredient]:
        return self.db.query(Ingredient).filter(Ingredient.name == name).first()

    def get_by_ids(self, ids: Iterable[UUID]) -> List[Ingredient]:
        ids = list(ids)
        if not ids:
            return []
        return self.db.query(Ingredient).filter(Ingredient.id.in_(ids)).all()

    def search(self, term: Optional[str] = None, limit: int = 50) -> List[Ingredient]:
        query = self.db.query(Ingredient)
        if term:
            query = query.filter(Ingredient.name.ilike(f"%{term.strip().lower()}%"))
        return query.order_by(Ingredient.name).limit(limit).all()

    def is_in_use(self, ingredient_id: UUID) -> bool:
        return (
            self.db.query(RecipeIngredient)
            .filter(RecipeIngredient.ingredient_id == ingredient_id)
            .first()
            is not None
        )


class RecipeRepository(BaseRepository[Recipe]):
    """Repository for recipes, including role-based visibility"""

    def __init__(self, db: Session):
        super().__init__(db, Recipe)

    @staticmethod
    def assigned_recipe_ids_subquery(customer_id: UUID):
        """Ids of recipes that appear in meal plans assigned to a customer"""
        return (
            select(MealPlanMeal.recipe_id)
            .join(MealPlanDay, MealPlanMeal.day_id == MealPlanDay.id)
            .join(
                CustomerMealPlan,
                CustomerMealPlan.meal_plan_id == MealPlanDay.meal_plan_id,
            )
            .where(CustomerMealPlan.customer_id == customer_id)
        )

    def visible_query(self, user: User) -> Query:
        query = self.db.query(Recipe)
        public = and_(Recipe.is_public.is_(True), Recipe.is_approved.is_(True))
        if user.role == UserRole.ADMIN:
            return query
        if user.role == UserRole.TRAINER:
            return query.filter(or_(Recipe.trainer_id == user.id, public))
        return query.filter(
            or_(public, Recipe.id.in_(self.assigned_recipe_ids_subquery(user.id)))
        )

    def get_visible(self, user: User, recipe_id: UUID) -> Optional[Recipe]:
        return self.visible_query(user).filter(Recipe.id == recipe_id).first()

    def search(
        self,
        user: User,
        search: Optional[str] = None,
        meal_type: Optional[str] = None,
        dietary_tag: Optional[str] = None,
        max_prep_time: Optional[int] = None,
        min_calories: Optional[int] = None,
        max_calories: Optional[int] = None,
        min_protein: Optional[float] = None,
        max_protein: Optional[float] = None,
        min_carbs: Optional[float] = None,
        max_carbs: Optional[float] = None,
        min_fat: Optional[float] = None,
        max_fat: Optional[float] = None,
        approved: Optional[bool] = None,
        mine: bool = False,
        skip: int = 0,
        limit: Optional[int] = 12,
    ) -> Tuple[List[Recipe], int]:
        """Filtered, paginated recipe search scoped to what the user may see"""
        query = self.visible_query(user)

        if search:
            term = f"%{search.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(Recipe.name).like(term),
                    func.lower(func.coalesce(Recipe.description, "")).like(term),
                )
            )
        if meal_type:
            query = query.filter(_json_list_contains(Recipe.meal_types, meal_type))
        if dietary_tag:
            query = query.filter(
                _json_list_contains(Recipe.dietary_tags, dietary_tag.strip().lower())
            )
        if max_prep_time is not None:
            query = query.filter(Recipe.prep_time_minutes <= max_prep_time)

        ranges = [
            (Recipe.calories_kcal, min_calories, max_calories),
            (Recipe.protein_grams, min_protein, max_protein),
            (Recipe.carbs_grams, min_carbs, max_carbs),
            (Recipe.fat_grams, min_fat, max_fat),
        ]
        for column, low, high in ranges:
            if low is not None:
                query = query.filter(column >= low)
            if high is not None:
                query = query.filter(column <= high)

        if approved is not None and user.role == UserRole.ADMIN:
            query = query.filter(Recipe.is_approved.is_(approved))
        if mine:
            query = query.filter(Recipe.trainer_id == user.id)

        total = query.count()
        query = query.order_by(Recipe.created_at.desc(), Recipe.name).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all(), total

    def is_used_in_meal_plan(self, recipe_id: UUID) -> bool:
        return (
            self.db.query(MealPlanMeal)
            .filter(MealPlanMeal.recipe_id == recipe_id)
            .first()
            is not None
        )

    def set_approval(self, recipe_ids: List[UUID], approved: bool) -> int:
        count = (
            self.db.query(Recipe)
            .filter(Recipe.id.in_(recipe_ids))
            .update({Recipe.is_approved: approved}, synchronize_session=False)
        )
        self.db.flush()
        return count

    def count_by_approval(self) -> dict:
        total = self.db.query(Recipe).count()
        approved = self.db.query(Recipe).filter(Recipe.is_approved.is_(True)).count()
        return {"total": total, "approved": approved, "pending": total - approved}
