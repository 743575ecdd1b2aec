"""
Meal plan and assignment repositories.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session, selectinload

from repositories.base import BaseRepository
from domain.models import MealPlan, MealPlanDay, MealPlanMeal, CustomerMealPlan


class MealPlanRepository(BaseRepository[MealPlan]):
    """Repository for meal plans"""

    def __init__(self, db: Session):
        super().__init__(db, MealPlan)

    def get_with_days(self, meal_plan_id: UUID) -> Optional[MealPlan]:
        """Get plan with days, meals and recipes eagerly loaded"""
        return (
            self.db.query(MealPlan)
            .options(
                selectinload(MealPlan.days)
                .selectinload(MealPlanDay.meals)
                .joinedload(MealPlanMeal.recipe)
            )
            .filter(MealPlan.id == meal_plan_id)
            .first()
        )

    def list_plans(
        self,
        trainer_id: Optional[UUID] = None,
        is_template: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[MealPlan]:
        query = self.db.query(MealPlan)
        if trainer_id is not None:
            query = query.filter(MealPlan.trainer_id == trainer_id)
        if is_template is not None:
            query = query.filter(MealPlan.is_template.is_(is_template))
        if search:
            query = query.filter(MealPlan.name.ilike(f"%{search.strip()}%"))
        return query.order_by(MealPlan.created_at.desc(), MealPlan.name).all()

    def count_for_trainer(self, trainer_id: UUID) -> int:
        return self.db.query(MealPlan).filter(MealPlan.trainer_id == trainer_id).count()


class AssignmentRepository(BaseRepository[CustomerMealPlan]):
    """Repository for meal plans assigned to customers"""

    def __init__(self, db: Session):
        super().__init__(db, CustomerMealPlan)

    def get_for_plan_and_customer(
        self, meal_plan_id: UUID, customer_id: UUID
    ) -> Optional[CustomerMealPlan]:
        return (
            self.db.query(CustomerMealPlan)
            .filter(
                CustomerMealPlan.meal_plan_id == meal_plan_id,
                CustomerMealPlan.customer_id == customer_id,
            )
            .first()
        )

    def list_for_customer(self, customer_id: UUID) -> List[CustomerMealPlan]:
        return (
            self.db.query(CustomerMealPlan)
            .options(selectinload(CustomerMealPlan.meal_plan))
            .filter(CustomerMealPlan.customer_id == customer_id)
            .order_by(CustomerMealPlan.assigned_at.desc())
            .all()
        )

    def is_assigned_to(self, meal_plan_id: UUID, customer_id: UUID) -> bool:
        return self.get_for_plan_and_customer(meal_plan_id, customer_id) is not None
