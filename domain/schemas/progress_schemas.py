"""Pydantic schemas for customer progress tracking."""

from datetime import date, datetime
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.enums import GoalStatus, GoalType, PhotoType

METRIC_FIELDS = (
    "weight_kg",
    "body_fat_percentage",
    "muscle_mass_kg",
    "neck_cm",
    "chest_cm",
    "waist_cm",
    "hips_cm",
    "bicep_cm",
    "thigh_cm",
)


class MeasurementBase(BaseModel):
    weight_kg: Optional[float] = Field(None, gt=0, le=500)
    body_fat_percentage: Optional[float] = Field(None, ge=0, le=100)
    muscle_mass_kg: Optional[float] = Field(None, ge=0, le=300)
    neck_cm: Optional[float] = Field(None, gt=0, le=200)
    chest_cm: Optional[float] = Field(None, gt=0, le=300)
    waist_cm: Optional[float] = Field(None, gt=0, le=300)
    hips_cm: Optional[float] = Field(None, gt=0, le=300)
    bicep_cm: Optional[float] = Field(None, gt=0, le=150)
    thigh_cm: Optional[float] = Field(None, gt=0, le=200)
    notes: Optional[str] = None


class MeasurementCreate(MeasurementBase):
    measurement_date: date


class MeasurementUpdate(MeasurementBase):
    measurement_date: Optional[date] = None


class MeasurementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    measurement_date: date
    weight_kg: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    muscle_mass_kg: Optional[float] = None
    neck_cm: Optional[float] = None
    chest_cm: Optional[float] = None
    waist_cm: Optional[float] = None
    hips_cm: Optional[float] = None
    bicep_cm: Optional[float] = None
    thigh_cm: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime


class GoalCreate(BaseModel):
    goal_type: GoalType
    goal_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    target_value: Optional[float] = None
    target_unit: Optional[str] = Field(None, max_length=20)
    starting_value: Optional[float] = None
    current_value: Optional[float] = None
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    notes: Optional[str] = None


class GoalUpdate(BaseModel):
    goal_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    target_value: Optional[float] = None
    target_unit: Optional[str] = Field(None, max_length=20)
    starting_value: Optional[float] = None
    current_value: Optional[float] = None
    target_date: Optional[date] = None
    status: Optional[GoalStatus] = None
    notes: Optional[str] = None


class GoalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    goal_type: GoalType
    goal_name: str
    description: Optional[str] = None
    target_value: Optional[float] = None
    target_unit: Optional[str] = None
    starting_value: Optional[float] = None
    current_value: Optional[float] = None
    start_date: date
    target_date: Optional[date] = None
    achieved_date: Optional[date] = None
    status: GoalStatus
    progress_percentage: int
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PhotoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    photo_date: date
    photo_url: str
    photo_type: PhotoType
    caption: Optional[str] = None
    is_private: bool
    created_at: datetime


class ProgressSummaryResponse(BaseModel):
    customer_id: UUID
    period: str
    start_date: Optional[date] = None
    measurement_count: int
    first_weight_kg: Optional[float] = None
    latest_weight_kg: Optional[float] = None
    weight_change_kg: Optional[float] = None
    body_fat_change: Optional[float] = None
    goals: Dict[str, int]
    photo_count: int
