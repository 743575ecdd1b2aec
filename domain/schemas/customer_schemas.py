"""Pydantic schemas for customers, invitations and plan assignments."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from domain.enums import AssignmentStatus
from domain.schemas.meal_plan_schemas import MealPlanSummary


class InvitationCreate(BaseModel):
    customer_email: EmailStr
    message: Optional[str] = Field(None, max_length=1000)

    @field_validator("customer_email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class InvitationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_email: str
    message: Optional[str] = None
    expires_at: datetime
    used_at: Optional[datetime] = None
    created_at: datetime
    status: str = Field(..., description="pending, accepted or expired")


class AcceptInvitationRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, max_length=128)
    name: Optional[str] = Field(None, max_length=255)


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: Optional[str] = None
    trainer_id: Optional[UUID] = None
    is_active: bool
    created_at: datetime
    assignment_count: int = 0


class AssignmentCreate(BaseModel):
    meal_plan_id: UUID
    notes: Optional[str] = None
    customizations: Dict[str, Any] = {}


class AssignmentUpdate(BaseModel):
    status: Optional[AssignmentStatus] = None
    progress: Optional[Dict[str, Any]] = None
    customizations: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    meal_plan_id: UUID
    customer_id: UUID
    trainer_id: UUID
    status: AssignmentStatus
    customizations: Dict[str, Any] = {}
    progress: Dict[str, Any] = {}
    notes: Optional[str] = None
    assigned_at: datetime
    updated_at: datetime
    meal_plan: Optional[MealPlanSummary] = None
