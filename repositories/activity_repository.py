"""
Activity log repository.
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import ActivityLog


class ActivityLogRepository(BaseRepository[ActivityLog]):
    def __init__(self, db: Session):
        super().__init__(db, ActivityLog)

    def list_recent(
        self,
        user_id: Optional[UUID] = None,
        action: Optional[str] = None,
        limit: int = 50,
    ) -> List[ActivityLog]:
        query = self.db.query(ActivityLog)
        if user_id is not None:
            query = query.filter(ActivityLog.user_id == user_id)
        if action:
            query = query.filter(ActivityLog.action == action)
        return query.order_by(ActivityLog.created_at.desc()).limit(limit).all()
