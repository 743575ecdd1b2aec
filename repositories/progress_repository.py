"""
Progress tracking repositories: measurements, goals and photos.
"""

from datetime import date
from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import ProgressMeasurement, CustomerGoal, ProgressPhoto
from domain.enums import GoalStatus


class MeasurementRepository(BaseRepository[ProgressMeasurement]):
    def __init__(self, db: Session):
        super().__init__(db, ProgressMeasurement)

    def list_for_customer(
        self,
        customer_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        newest_first: bool = True,
    ) -> List[ProgressMeasurement]:
        query = self.db.query(ProgressMeasurement).filter(
            ProgressMeasurement.customer_id == customer_id
        )
        if start_date is not None:
            query = query.filter(ProgressMeasurement.measurement_date >= start_date)
        if end_date is not None:
            query = query.filter(ProgressMeasurement.measurement_date <= end_date)
        if newest_first:
            order = (
                ProgressMeasurement.measurement_date.desc(),
                ProgressMeasurement.created_at.desc(),
            )
        else:
            order = (
                ProgressMeasurement.measurement_date.asc(),
                ProgressMeasurement.created_at.asc(),
            )
        return query.order_by(*order).all()


class GoalRepository(BaseRepository[CustomerGoal]):
    def __init__(self, db: Session):
        super().__init__(db, CustomerGoal)

    def list_for_customer(
        self, customer_id: UUID, status: Optional[GoalStatus] = None
    ) -> List[CustomerGoal]:
        query = self.db.query(CustomerGoal).filter(CustomerGoal.customer_id == customer_id)
        if status is not None:
            query = query.filter(CustomerGoal.status == status)
        return query.order_by(CustomerGoal.created_at.desc()).all()


class PhotoRepository(BaseRepository[ProgressPhoto]):
    def __init__(self, db: Session):
        super().__init__(db, ProgressPhoto)

    def list_for_customer(
        self, customer_id: UUID, include_private: bool = True
    ) -> List[ProgressPhoto]:
        query = self.db.query(ProgressPhoto).filter(ProgressPhoto.customer_id == customer_id)
        if not include_private:
            query = query.filter(ProgressPhoto.is_private.is_(False))
        return query.order_by(
            ProgressPhoto.photo_date.desc(), ProgressPhoto.created_at.desc()
        ).all()
