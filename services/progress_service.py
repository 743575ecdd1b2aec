"""Progress service - body measurements, fitness goals and progress photos."""

import logging
import uuid
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adapters.storage_adapter import get_storage
from app.exceptions import NotFoundError, ServiceValidationError
from domain.enums import GoalStatus, GoalType, PhotoType
from domain.models import CustomerGoal, ProgressMeasurement, ProgressPhoto, User
from domain.schemas.progress_schemas import (
    METRIC_FIELDS,
    GoalCreate,
    GoalUpdate,
    MeasurementCreate,
    MeasurementUpdate,
)
from repositories import GoalRepository, MeasurementRepository, PhotoRepository
from services.customer_service import CustomerService

logger = logging.getLogger("fitmeal.progress")

PHOTO_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}
MAX_PHOTO_BYTES = 10 * 1024 * 1024

PERIOD_DAYS = {"week": 7, "month": 30, "quarter": 90, "year": 365, "all": None}

WEIGHT_GOAL_TYPES = (GoalType.WEIGHT_LOSS, GoalType.WEIGHT_GAIN)


def compute_goal_progress(
    starting: Optional[float], current: Optional[float], target: Optional[float]
) -> int:
    """Percent of the way from starting to target, clamped to 0..100."""
    if starting is None or current is None or target is None:
        return 0
    starting, current, target = float(starting), float(current), float(target)
    if target == starting:
        return 0
    percent = round((current - starting) / (target - starting) * 100)
    return max(0, min(100, percent))


def period_start(period: str, today: Optional[date] = None) -> Optional[date]:
    if period not in PERIOD_DAYS:
        raise ServiceValidationError(
            f"Unknown period '{period}'",
            details={"allowed": list(PERIOD_DAYS)},
        )
    days = PERIOD_DAYS[period]
    if days is None:
        return None
    return (today or date.today()) - timedelta(days=days)


def _refresh_goal(goal: CustomerGoal) -> None:
    goal.progress_percentage = compute_goal_progress(
        goal.starting_value, goal.current_value, goal.target_value
    )
    if goal.progress_percentage >= 100 and goal.status == GoalStatus.ACTIVE:
        goal.status = GoalStatus.ACHIEVED
        goal.achieved_date = date.today()
        logger.info("goal_achieved goal_id=%s customer_id=%s", goal.id, goal.customer_id)


class ProgressService:
    # =========================================================================
    # Measurements
    # =========================================================================

    @staticmethod
    def list_measurements(
        db: Session,
        customer_id: uuid.UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ProgressMeasurement]:
        return MeasurementRepository(db).list_for_customer(customer_id, start_date, end_date)

    @staticmethod
    def _get_measurement(
        db: Session, customer: User, measurement_id: uuid.UUID
    ) -> ProgressMeasurement:
        measurement = MeasurementRepository(db).get_by_id(measurement_id)
        if measurement is None or measurement.customer_id != customer.id:
            raise NotFoundError(f"Measurement {measurement_id} not found")
        return measurement

    @staticmethod
    def _ensure_metric(measurement: ProgressMeasurement) -> None:
        if all(getattr(measurement, f) is None for f in METRIC_FIELDS):
            raise ServiceValidationError(
                "At least one measurement value is required",
                details={"fields": list(METRIC_FIELDS)},
                code="NO_METRICS",
            )

    @staticmethod
    def _sync_weight_goals(db: Session, customer_id: uuid.UUID, weight_kg: float) -> int:
        goals = [
            g
            for g in GoalRepository(db).list_for_customer(customer_id, GoalStatus.ACTIVE)
            if g.goal_type in WEIGHT_GOAL_TYPES and (g.target_unit or "").lower() == "kg"
        ]
        for goal in goals:
            goal.current_value = weight_kg
            _refresh_goal(goal)
        return len(goals)

    @staticmethod
    def create_measurement(
        db: Session, customer: User, data: MeasurementCreate
    ) -> ProgressMeasurement:
        """
        Record a measurement. A weight reading that is not older than the
        latest one moves the customer's active kilogram weight goals.
        """
        repo = MeasurementRepository(db)
        measurement = ProgressMeasurement(customer_id=customer.id, **data.model_dump())
        ProgressService._ensure_metric(measurement)

        latest = repo.list_for_customer(customer.id)
        is_latest = not latest or data.measurement_date >= latest[0].measurement_date
        repo.add(measurement)
        if data.weight_kg is not None and is_latest:
            updated = ProgressService._sync_weight_goals(db, customer.id, data.weight_kg)
            if updated:
                logger.info(
                    "weight_goals_updated customer_id=%s goals=%d", customer.id, updated
                )
        db.commit()
        db.refresh(measurement)
        logger.info(
            "measurement_created measurement_id=%s customer_id=%s", measurement.id, customer.id
        )
        return measurement

    @staticmethod
    def update_measurement(
        db: Session, customer: User, measurement_id: uuid.UUID, data: MeasurementUpdate
    ) -> ProgressMeasurement:
        measurement = ProgressService._get_measurement(db, customer, measurement_id)
        changes = data.model_dump(exclude_unset=True)
        if "measurement_date" in changes and changes["measurement_date"] is None:
            del changes["measurement_date"]
        for field_name, value in changes.items():
            setattr(measurement, field_name, value)
        ProgressService._ensure_metric(measurement)
        db.commit()
        db.refresh(measurement)
        return measurement

    @staticmethod
    def delete_measurement(db: Session, customer: User, measurement_id: uuid.UUID) -> None:
        measurement = ProgressService._get_measurement(db, customer, measurement_id)
        MeasurementRepository(db).remove(measurement)
        db.commit()
        logger.info("measurement_deleted measurement_id=%s", measurement_id)

    # =========================================================================
    # Goals
    # =========================================================================

    @staticmethod
    def list_goals(
        db: Session, customer: User, status: Optional[GoalStatus] = None
    ) -> List[CustomerGoal]:
        return GoalRepository(db).list_for_customer(customer.id, status)

    @staticmethod
    def _get_goal(db: Session, customer: User, goal_id: uuid.UUID) -> CustomerGoal:
        goal = GoalRepository(db).get_by_id(goal_id)
        if goal is None or goal.customer_id != customer.id:
            raise NotFoundError(f"Goal {goal_id} not found")
        return goal

    @staticmethod
    def create_goal(db: Session, customer: User, data: GoalCreate) -> CustomerGoal:
        values = data.model_dump()
        if values["start_date"] is None:
            values["start_date"] = date.today()
        if values["starting_value"] is None:
            values["starting_value"] = values["current_value"]
        goal = CustomerGoal(customer_id=customer.id, status=GoalStatus.ACTIVE, **values)
        _refresh_goal(goal)
        GoalRepository(db).add(goal)
        db.commit()
        db.refresh(goal)
        logger.info("goal_created goal_id=%s customer_id=%s", goal.id, customer.id)
        return goal

    @staticmethod
    def update_goal(
        db: Session, customer: User, goal_id: uuid.UUID, data: GoalUpdate
    ) -> CustomerGoal:
        goal = ProgressService._get_goal(db, customer, goal_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("goal_name", "") is None:
            changes.pop("goal_name")
        status = changes.pop("status", None)
        for field_name, value in changes.items():
            setattr(goal, field_name, value)

        if status is not None:
            goal.status = status
            if status == GoalStatus.ACHIEVED and goal.achieved_date is None:
                goal.achieved_date = date.today()
            elif status != GoalStatus.ACHIEVED:
                goal.achieved_date = None
            goal.progress_percentage = compute_goal_progress(
                goal.starting_value, goal.current_value, goal.target_value
            )
        else:
            _refresh_goal(goal)

        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def delete_goal(db: Session, customer: User, goal_id: uuid.UUID) -> None:
        goal = ProgressService._get_goal(db, customer, goal_id)
        GoalRepository(db).remove(goal)
        db.commit()
        logger.info("goal_deleted goal_id=%s", goal_id)

    # =========================================================================
    # Photos
    # =========================================================================

    @staticmethod
    def upload_photo(
        db: Session,
        customer: User,
        content: bytes,
        content_type: Optional[str],
        photo_date: Optional[date] = None,
        photo_type: PhotoType = PhotoType.OTHER,
        caption: Optional[str] = None,
        is_private: bool = True,
    ) -> ProgressPhoto:
        """
        Store an image and its metadata row.

        Raises:
            ServiceValidationError: unsupported type, empty file or over 10 MB
            ExternalServiceError: storage write failed
        """
        extension = PHOTO_CONTENT_TYPES.get((content_type or "").lower())
        if extension is None:
            raise ServiceValidationError(
                "Only JPEG, PNG and WebP images are allowed",
                details={"content_type": content_type},
                code="UNSUPPORTED_FILE_TYPE",
            )
        if not content:
            raise ServiceValidationError("The uploaded file is empty", code="EMPTY_FILE")
        if len(content) > MAX_PHOTO_BYTES:
            raise ServiceValidationError(
                "Photos must be 10 MB or smaller",
                details={"size": len(content), "max_size": MAX_PHOTO_BYTES},
                code="FILE_TOO_LARGE",
            )

        storage = get_storage()
        key = f"progress/{customer.id}/{uuid.uuid4()}.{extension}"
        url = storage.save(key, content, content_type)
        photo = ProgressPhoto(
            customer_id=customer.id,
            photo_date=photo_date or date.today(),
            storage_key=key,
            photo_url=url,
            photo_type=photo_type,
            caption=caption,
            is_private=is_private,
        )
        try:
            PhotoRepository(db).add(photo)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            storage.delete(key)
            raise
        db.refresh(photo)
        logger.info(
            "photo_uploaded photo_id=%s customer_id=%s size=%d", photo.id, customer.id, len(content)
        )
        return photo

    @staticmethod
    def list_photos(
        db: Session, customer_id: uuid.UUID, include_private: bool = True
    ) -> List[ProgressPhoto]:
        return PhotoRepository(db).list_for_customer(customer_id, include_private)

    @staticmethod
    def delete_photo(db: Session, customer: User, photo_id: uuid.UUID) -> None:
        repo = PhotoRepository(db)
        photo = repo.get_by_id(photo_id)
        if photo is None or photo.customer_id != customer.id:
            raise NotFoundError(f"Photo {photo_id} not found")
        get_storage().delete(photo.storage_key)
        repo.remove(photo)
        db.commit()
        logger.info("photo_deleted photo_id=%s", photo_id)

    # =========================================================================
    # Summaries
    # =========================================================================

    @staticmethod
    def summary(
        db: Session,
        customer_id: uuid.UUID,
        period: str = "month",
        include_private: bool = True,
        today: Optional[date] = None,
    ) -> dict:
        start = period_start(period, today)
        measurements = MeasurementRepository(db).list_for_customer(
            customer_id, start_date=start, newest_first=False
        )

        def first_and_last(field_name: str):
            values = [
                getattr(m, field_name)
                for m in measurements
                if getattr(m, field_name) is not None
            ]
            if not values:
                return None, None
            return float(values[0]), float(values[-1])

        first_weight, latest_weight = first_and_last("weight_kg")
        first_fat, latest_fat = first_and_last("body_fat_percentage")

        goals: Dict[str, int] = {status.value: 0 for status in GoalStatus}
        for goal in GoalRepository(db).list_for_customer(customer_id):
            goals[GoalStatus(goal.status).value] += 1

        photos = PhotoRepository(db).list_for_customer(customer_id, include_private)
        if start is not None:
            photos = [p for p in photos if p.photo_date >= start]

        return {
            "customer_id": customer_id,
            "period": period,
            "start_date": start,
            "measurement_count": len(measurements),
            "first_weight_kg": first_weight,
            "latest_weight_kg": latest_weight,
            "weight_change_kg": (
                round(latest_weight - first_weight, 2) if first_weight is not None else None
            ),
            "body_fat_change": (
                round(latest_fat - first_fat, 2) if first_fat is not None else None
            ),
            "goals": goals,
            "photo_count": len(photos),
        }

    @staticmethod
    def customer_summary(
        db: Session, user: User, customer_id: uuid.UUID, period: str = "month"
    ) -> dict:
        """Summary a trainer or admin sees for a customer; private photos are not counted."""
        customer = CustomerService.get_managed_customer(db, user, customer_id)
        return ProgressService.summary(db, customer.id, period, include_private=False)

    @staticmethod
    def customer_measurements(
        db: Session, user: User, customer_id: uuid.UUID
    ) -> List[ProgressMeasurement]:
        customer = CustomerService.get_managed_customer(db, user, customer_id)
        return MeasurementRepository(db).list_for_customer(customer.id)

    @staticmethod
    def customer_photos(db: Session, user: User, customer_id: uuid.UUID) -> List[ProgressPhoto]:
        customer = CustomerService.get_managed_customer(db, user, customer_id)
        return PhotoRepository(db).list_for_customer(customer.id, include_private=False)
