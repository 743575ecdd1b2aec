"""Admin service - platform statistics and user management."""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, ServiceValidationError
from domain.enums import UserRole
from domain.models import User
from domain.models.database import utcnow
from domain.schemas.admin_schemas import AdminUserUpdate
from repositories import (
    AssignmentRepository,
    MealPlanRepository,
    RecipeRepository,
    SessionRepository,
    SubscriptionRepository,
    UserRepository,
)
from services.activity_service import ActivityService

logger = logging.getLogger("fitmeal.admin")


class AdminService:
    @staticmethod
    def stats(db: Session) -> dict:
        return {
            "users": UserRepository(db).count_by_role(),
            "recipes": RecipeRepository(db).count_by_approval(),
            "meal_plans": MealPlanRepository(db).count(),
            "assignments": AssignmentRepository(db).count(),
            "subscriptions": SubscriptionRepository(db).count_active_by_tier(),
        }

    @staticmethod
    def list_users(
        db: Session, role: Optional[UserRole] = None, page: int = 1, page_size: int = 20
    ) -> Tuple[List[User], int]:
        return UserRepository(db).list_users(role, skip=(page - 1) * page_size, limit=page_size)

    @staticmethod
    def update_user(
        db: Session,
        admin: User,
        user_id: UUID,
        data: AdminUserUpdate,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Change a user's role or active flag.

        Raises:
            NotFoundError: unknown user
            ServiceValidationError: an admin disabling or demoting themselves
        """
        user = UserRepository(db).get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        if user.id == admin.id:
            if data.is_active is False:
                raise ServiceValidationError(
                    "You cannot disable your own account", code="SELF_MODIFICATION"
                )
            if data.role is not None and data.role != UserRole.ADMIN:
                raise ServiceValidationError(
                    "You cannot remove your own admin role", code="SELF_MODIFICATION"
                )

        changes = {}
        if data.role is not None and data.role != user.role:
            changes["role"] = {"from": UserRole(user.role).value, "to": data.role.value}
            user.role = data.role
        if data.is_active is not None and data.is_active != user.is_active:
            changes["is_active"] = {"from": user.is_active, "to": data.is_active}
            user.is_active = data.is_active
            if not data.is_active:
                revoked = SessionRepository(db).revoke_all_for_user(user.id, utcnow())
                logger.info("sessions_revoked user_id=%s count=%d", user.id, revoked)

        if changes:
            ActivityService.record(
                db, admin.id, "user.update", "user", user.id, changes, ip_address
            )
        db.commit()
        db.refresh(user)
        logger.info("user_updated user_id=%s changes=%s", user.id, sorted(changes))
        return user

    @staticmethod
    def list_activity(
        db: Session,
        user_id: Optional[UUID] = None,
        action: Optional[str] = None,
        limit: int = 50,
    ):
        return ActivityService.list_recent(db, user_id, action, limit)
