"""
User Repository - Data access layer for accounts, sessions and invitations
"""

from datetime import datetime
from typing import Optional, List, Tuple
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import User, UserSession, CustomerInvitation, CustomerMealPlan
from domain.enums import UserRole


class UserRepository(BaseRepository[User]):
    """Repository for user data access"""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive, emails are stored lower-cased)"""
        return (
            self.db.query(User)
            .filter(User.email == (email or "").strip().lower())
            .first()
        )

    def list_users(
        self,
        role: Optional[UserRole] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[User], int]:
        query = self.db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        total = query.count()
        items = (
            query.order_by(User.created_at.desc(), User.email)
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def count_by_role(self) -> dict:
        rows = self.db.query(User.role, func.count(User.id)).group_by(User.role).all()
        counts = {role.value: 0 for role in UserRole}
        for role, count in rows:
            counts[role.value if isinstance(role, UserRole) else str(role)] = count
        return counts

    def list_customers(self, trainer_id: Optional[UUID] = None) -> List[Tuple[User, int]]:
        """Customers with their assignment counts; all customers when trainer_id is None"""
        assignment_count = (
            self.db.query(
                CustomerMealPlan.customer_id.label("customer_id"),
                func.count(CustomerMealPlan.id).label("cnt"),
            )
            .group_by(CustomerMealPlan.customer_id)
            .subquery()
        )
        query = (
            self.db.query(User, func.coalesce(assignment_count.c.cnt, 0))
            .outerjoin(assignment_count, assignment_count.c.customer_id == User.id)
            .filter(User.role == UserRole.CUSTOMER)
        )
        if trainer_id is not None:
            query = query.filter(User.trainer_id == trainer_id)
        return [(user, int(cnt)) for user, cnt in query.order_by(User.created_at.desc()).all()]

    def count_customers(self, trainer_id: UUID) -> int:
        return (
            self.db.query(User)
            .filter(User.role == UserRole.CUSTOMER, User.trainer_id == trainer_id)
            .count()
        )


class SessionRepository(BaseRepository[UserSession]):
    """Refresh-token sessions"""

    def __init__(self, db: Session):
        super().__init__(db, UserSession)

    def get_by_token_hash(self, token_hash: str) -> Optional[UserSession]:
        return (
            self.db.query(UserSession)
            .filter(UserSession.token_hash == token_hash)
            .first()
        )

    def revoke_all_for_user(self, user_id: UUID, when: datetime) -> int:
        count = (
            self.db.query(UserSession)
            .filter(UserSession.user_id == user_id, UserSession.revoked_at.is_(None))
            .update({UserSession.revoked_at: when}, synchronize_session=False)
        )
        self.db.flush()
        return count


class InvitationRepository(BaseRepository[CustomerInvitation]):
    """Customer invitations sent by trainers"""

    def __init__(self, db: Session):
        super().__init__(db, CustomerInvitation)

    def get_by_token(self, token: str) -> Optional[CustomerInvitation]:
        return (
            self.db.query(CustomerInvitation)
            .filter(CustomerInvitation.token == token)
            .first()
        )

    def list_for_trainer(self, trainer_id: UUID) -> List[CustomerInvitation]:
        return (
            self.db.query(CustomerInvitation)
            .filter(CustomerInvitation.trainer_id == trainer_id)
            .order_by(CustomerInvitation.created_at.desc())
            .all()
        )
