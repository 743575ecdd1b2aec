"""Customer routes: invitations, customer management and meal plan assignments"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session
import logging
from uuid import UUID
from typing import List

from api.dependencies import (
    client_ip,
    get_current_user,
    get_db,
    require_customer,
    require_staff,
    require_trainer,
)
from domain.mappers import MealPlanMapper
from domain.models import CustomerMealPlan, User
from domain.schemas.auth_schemas import TokenResponse
from domain.schemas.customer_schemas import (
    AcceptInvitationRequest,
    AssignmentCreate,
    AssignmentResponse,
    AssignmentUpdate,
    CustomerResponse,
    InvitationCreate,
    InvitationResponse,
)
from services.customer_service import CustomerService, invitation_status

router = APIRouter(prefix="/customers", tags=["Customers"])
logger = logging.getLogger("fitmeal.api.customers")


def _invitation_response(invitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        customer_email=invitation.customer_email,
        message=invitation.message,
        expires_at=invitation.expires_at,
        used_at=invitation.used_at,
        created_at=invitation.created_at,
        status=invitation_status(invitation),
    )


def _customer_response(customer: User, assignment_count: int = 0) -> CustomerResponse:
    return CustomerResponse(
        id=customer.id,
        email=customer.email,
        name=customer.name,
        trainer_id=customer.trainer_id,
        is_active=customer.is_active,
        created_at=customer.created_at,
        assignment_count=assignment_count,
    )


def _assignment_response(assignment: CustomerMealPlan, embed_plan: bool = False):
    return AssignmentResponse(
        id=assignment.id,
        meal_plan_id=assignment.meal_plan_id,
        customer_id=assignment.customer_id,
        trainer_id=assignment.trainer_id,
        status=assignment.status,
        customizations=assignment.customizations or {},
        progress=assignment.progress or {},
        notes=assignment.notes,
        assigned_at=assignment.assigned_at,
        updated_at=assignment.updated_at,
        meal_plan=(
            MealPlanMapper.to_summary(assignment.meal_plan)
            if embed_plan and assignment.meal_plan is not None
            else None
        ),
    )


# ============================================================================
# Invitations
# ============================================================================


@router.post(
    "/invitations", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED
)
def create_invitation(
    payload: InvitationCreate,
    request: Request,
    db: Session = Depends(get_db),
    trainer: User = Depends(require_trainer),
):
    """Invite a customer by email; the link is valid for 7 days."""
    invitation = CustomerService.create_invitation(db, trainer, payload, client_ip(request))
    return _invitation_response(invitation)


@router.get("/invitations", response_model=List[InvitationResponse])
def list_invitations(
    db: Session = Depends(get_db),
    trainer: User = Depends(require_trainer),
):
    return [_invitation_response(i) for i in CustomerService.list_invitations(db, trainer)]


@router.post("/invitations/accept", response_model=TokenResponse)
def accept_invitation(
    payload: AcceptInvitationRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Public: create or link the customer account and sign it in."""
    return CustomerService.accept_invitation(
        db, payload, request.headers.get("user-agent"), client_ip(request)
    )


# ============================================================================
# Customers
# ============================================================================


@router.get("", response_model=List[CustomerResponse])
def list_customers(
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    return [
        _customer_response(customer, count)
        for customer, count in CustomerService.list_customers(db, user)
    ]


# Declared before /{customer_id} so "me" is not parsed as an id
@router.get("/me/meal-plans", response_model=List[AssignmentResponse])
def my_meal_plans(
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    return [
        _assignment_response(a, embed_plan=True)
        for a in CustomerService.my_assignments(db, customer)
    ]


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    customer = CustomerService.get_customer(db, user, customer_id)
    return _customer_response(customer, len(customer.assigned_meal_plans))


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    """Delete a customer with all their data; photos are removed from storage first."""
    CustomerService.delete_customer(db, user, customer_id, client_ip(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Assignments
# ============================================================================


@router.post(
    "/{customer_id}/meal-plans",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_meal_plan(
    customer_id: UUID,
    payload: AssignmentCreate,
    request: Request,
    db: Session = Depends(get_db),
    trainer: User = Depends(require_trainer),
):
    assignment = CustomerService.assign_meal_plan(
        db, trainer, customer_id, payload, client_ip(request)
    )
    return _assignment_response(assignment, embed_plan=True)


@router.get("/{customer_id}/meal-plans", response_model=List[AssignmentResponse])
def list_customer_meal_plans(
    customer_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return [
        _assignment_response(a, embed_plan=True)
        for a in CustomerService.list_assignments(db, user, customer_id)
    ]


@router.patch("/{customer_id}/meal-plans/{assignment_id}", response_model=AssignmentResponse)
def update_assignment(
    customer_id: UUID,
    assignment_id: UUID,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Update an assignment.

    Customers may change only **status** and **progress**. Status moves
    assigned -> active -> paused/completed, and any open state may be cancelled.
    """
    assignment = CustomerService.update_assignment(
        db, user, customer_id, assignment_id, payload
    )
    return _assignment_response(assignment, embed_plan=True)


@router.delete(
    "/{customer_id}/meal-plans/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT
)
def unassign_meal_plan(
    customer_id: UUID,
    assignment_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    CustomerService.unassign_meal_plan(db, user, customer_id, assignment_id, client_ip(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
