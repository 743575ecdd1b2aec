"""Activity service - audit trail of user actions."""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from domain.models import ActivityLog
from repositories import ActivityLogRepository

logger = logging.getLogger("fitmeal.activity")


class ActivityService:
    @staticmethod
    def record(
        db: Session,
        user_id: Optional[UUID],
        action: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> ActivityLog:
        """Stage an audit row; it commits with the caller's transaction."""
        entry = ActivityLogRepository(db).add(
            ActivityLog(
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                details=details or {},
                ip_address=ip_address,
            )
        )
        logger.debug("activity action=%s user_id=%s entity=%s", action, user_id, entity_id)
        return entry

    @staticmethod
    def list_recent(
        db: Session,
        user_id: Optional[UUID] = None,
        action: Optional[str] = None,
        limit: int = 50,
    ) -> List[ActivityLog]:
        return ActivityLogRepository(db).list_recent(user_id, action, limit)
