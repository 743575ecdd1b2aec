"""Progress tracking routes: measurements, goals, photos and summaries"""

import anyio
from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from sqlalchemy.orm import Session
import logging
from datetime import date
from functools import partial
from uuid import UUID
from typing import List, Literal, Optional

from api.dependencies import get_db, require_customer, require_staff
from domain.enums import GoalStatus, PhotoType
from domain.models import User
from domain.schemas.progress_schemas import (
    GoalCreate,
    GoalResponse,
    GoalUpdate,
    MeasurementCreate,
    MeasurementResponse,
    MeasurementUpdate,
    PhotoResponse,
    ProgressSummaryResponse,
)
from services.progress_service import ProgressService

router = APIRouter(prefix="/progress", tags=["Progress"])
logger = logging.getLogger("fitmeal.api.progress")

Period = Literal["week", "month", "quarter", "year", "all"]


# ============================================================================
# Measurements
# ============================================================================


@router.get("/measurements", response_model=List[MeasurementResponse])
def list_measurements(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    """Measurements newest first, optionally within a date range."""
    items = ProgressService.list_measurements(db, customer.id, start_date, end_date)
    return [MeasurementResponse.model_validate(m) for m in items]


@router.post(
    "/measurements", response_model=MeasurementResponse, status_code=status.HTTP_201_CREATED
)
def create_measurement(
    payload: MeasurementCreate,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    measurement = ProgressService.create_measurement(db, customer, payload)
    return MeasurementResponse.model_validate(measurement)


@router.patch("/measurements/{measurement_id}", response_model=MeasurementResponse)
def update_measurement(
    measurement_id: UUID,
    payload: MeasurementUpdate,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    measurement = ProgressService.update_measurement(db, customer, measurement_id, payload)
    return MeasurementResponse.model_validate(measurement)


@router.delete("/measurements/{measurement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_measurement(
    measurement_id: UUID,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    ProgressService.delete_measurement(db, customer, measurement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Goals
# ============================================================================


@router.get("/goals", response_model=List[GoalResponse])
def list_goals(
    status_filter: Optional[GoalStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    goals = ProgressService.list_goals(db, customer, status_filter)
    return [GoalResponse.model_validate(g) for g in goals]


@router.post("/goals", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
def create_goal(
    payload: GoalCreate,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    return GoalResponse.model_validate(ProgressService.create_goal(db, customer, payload))


@router.patch("/goals/{goal_id}", response_model=GoalResponse)
def update_goal(
    goal_id: UUID,
    payload: GoalUpdate,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    """Progress is recomputed from starting, current and target values."""
    return GoalResponse.model_validate(ProgressService.update_goal(db, customer, goal_id, payload))


@router.delete("/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(
    goal_id: UUID,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    ProgressService.delete_goal(db, customer, goal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Photos
# ============================================================================


@router.post("/photos", response_model=PhotoResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    file: UploadFile = File(..., description="JPEG, PNG or WebP, at most 10 MB"),
    photo_type: PhotoType = Form(default=PhotoType.OTHER),
    photo_date: Optional[date] = Form(default=None),
    caption: Optional[str] = Form(default=None, max_length=1000),
    is_private: bool = Form(default=True),
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    content = await file.read()
    # Disk write and commit run on a worker thread
    photo = await anyio.to_thread.run_sync(
        partial(
            ProgressService.upload_photo,
            db,
            customer,
            content,
            file.content_type,
            photo_date=photo_date,
            photo_type=photo_type,
            caption=caption,
            is_private=is_private,
        )
    )
    return PhotoResponse.model_validate(photo)


@router.get("/photos", response_model=List[PhotoResponse])
def list_photos(
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    return [PhotoResponse.model_validate(p) for p in ProgressService.list_photos(db, customer.id)]


@router.delete("/photos/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_photo(
    photo_id: UUID,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    ProgressService.delete_photo(db, customer, photo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Summaries
# ============================================================================


@router.get("/summary", response_model=ProgressSummaryResponse)
def get_summary(
    period: Period = Query(default="month"),
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    return ProgressService.summary(db, customer.id, period)


@router.get("/customers/{customer_id}/summary", response_model=ProgressSummaryResponse)
def get_customer_summary(
    customer_id: UUID,
    period: Period = Query(default="month"),
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    """A trainer's view of their customer; private photos are not counted."""
    return ProgressService.customer_summary(db, user, customer_id, period)


@router.get("/customers/{customer_id}/measurements", response_model=List[MeasurementResponse])
def get_customer_measurements(
    customer_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    items = ProgressService.customer_measurements(db, user, customer_id)
    return [MeasurementResponse.model_validate(m) for m in items]


@router.get("/customers/{customer_id}/photos", response_model=List[PhotoResponse])
def get_customer_photos(
    customer_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    """Only photos the customer did not mark private."""
    items = ProgressService.customer_photos(db, user, customer_id)
    return [PhotoResponse.model_validate(p) for p in items]
