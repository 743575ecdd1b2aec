"""
Audit trail model.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid, JSON
import uuid

from domain.models.database import Base, utcnow


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    action = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(50))
    entity_id = Column(String(64))
    details = Column(JSON, nullable=False, default=dict)
    ip_address = Column(String(64))
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
