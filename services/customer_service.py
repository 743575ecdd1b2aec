"""Customer service - invitations, trainer/customer links and plan assignments."""

import logging
from datetime import timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from adapters import mail_adapter
from adapters.storage_adapter import get_storage
from app.config import settings
from app.exceptions import (
    ConflictError,
    ExternalServiceError,
    ForbiddenError,
    GoneError,
    NotFoundError,
    ServiceValidationError,
    UnauthorizedError,
)
from app.security import generate_invitation_token, hash_password, verify_password
from domain.enums import AssignmentStatus, UserRole
from domain.models import CustomerInvitation, CustomerMealPlan, User
from domain.models.database import utcnow
from domain.schemas.customer_schemas import (
    AcceptInvitationRequest,
    AssignmentCreate,
    AssignmentUpdate,
    InvitationCreate,
)
from repositories import (
    AssignmentRepository,
    InvitationRepository,
    MealPlanRepository,
    PhotoRepository,
    UserRepository,
)
from services.activity_service import ActivityService
from services.auth_service import AuthService
from services.entitlements_service import CUSTOMERS, EntitlementsService

logger = logging.getLogger("fitmeal.customers")

ALLOWED_TRANSITIONS = {
    AssignmentStatus.ASSIGNED: {AssignmentStatus.ACTIVE, AssignmentStatus.CANCELLED},
    AssignmentStatus.ACTIVE: {
        AssignmentStatus.PAUSED,
        AssignmentStatus.COMPLETED,
        AssignmentStatus.CANCELLED,
    },
    AssignmentStatus.PAUSED: {AssignmentStatus.ACTIVE, AssignmentStatus.CANCELLED},
    AssignmentStatus.COMPLETED: set(),
    AssignmentStatus.CANCELLED: set(),
}

# Fields a customer may change on their own assignment
CUSTOMER_EDITABLE = {"status", "progress"}


def invitation_status(invitation: CustomerInvitation) -> str:
    if invitation.used_at is not None:
        return "accepted"
    if invitation.expires_at <= utcnow():
        return "expired"
    return "pending"


def check_transition(current: AssignmentStatus, new: AssignmentStatus) -> None:
    current, new = AssignmentStatus(current), AssignmentStatus(new)
    if current == new:
        return
    if new not in ALLOWED_TRANSITIONS[current]:
        raise ServiceValidationError(
            f"Cannot change assignment status from {current.value} to {new.value}",
            details={
                "from": current.value,
                "to": new.value,
                "allowed": sorted(s.value for s in ALLOWED_TRANSITIONS[current]),
            },
            code="INVALID_STATUS_TRANSITION",
        )


class CustomerService:
    # =========================================================================
    # Invitations
    # =========================================================================

    @staticmethod
    def create_invitation(
        db: Session, trainer: User, data: InvitationCreate, ip_address: Optional[str] = None
    ) -> CustomerInvitation:
        """
        Invite a customer by email. The email is best-effort.

        Raises:
            ConflictError: the email belongs to a non-customer or someone else's customer
            PaymentRequiredError: the trainer is at their customer limit
        """
        existing = UserRepository(db).get_by_email(data.customer_email)
        if existing is not None:
            if existing.role != UserRole.CUSTOMER:
                raise ConflictError(
                    "This email belongs to a non-customer account", code="EMAIL_NOT_CUSTOMER"
                )
            if existing.trainer_id == trainer.id:
                raise ConflictError(
                    "This customer is already linked to you", code="ALREADY_YOUR_CUSTOMER"
                )
            if existing.trainer_id is not None:
                raise ConflictError(
                    "This customer is already linked to another trainer",
                    code="CUSTOMER_HAS_TRAINER",
                )

        EntitlementsService.check_quota(db, trainer, CUSTOMERS)

        invitation = InvitationRepository(db).add(
            CustomerInvitation(
                trainer_id=trainer.id,
                customer_email=data.customer_email,
                token=generate_invitation_token(),
                message=data.message,
                expires_at=utcnow() + timedelta(days=settings.invitation_expire_days),
            )
        )
        ActivityService.record(
            db,
            trainer.id,
            "customer.invite",
            "invitation",
            invitation.id,
            {"email": data.customer_email},
            ip_address,
        )
        db.commit()
        db.refresh(invitation)
        logger.info(
            "invitation_created invitation_id=%s trainer_id=%s", invitation.id, trainer.id
        )

        try:
            mail_adapter.send_invitation_email(invitation, trainer)
        except ExternalServiceError as exc:
            logger.warning(
                "invitation_email_failed invitation_id=%s error=%s", invitation.id, exc.message
            )
        return invitation

    @staticmethod
    def list_invitations(db: Session, trainer: User) -> List[CustomerInvitation]:
        return InvitationRepository(db).list_for_trainer(trainer.id)

    @staticmethod
    def accept_invitation(
        db: Session,
        data: AcceptInvitationRequest,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> dict:
        """
        Accept an invitation and sign the customer in.

        A new customer account is created, or an existing customer without a
        trainer is linked after their password checks out.

        Raises:
            NotFoundError: unknown token
            ConflictError: invitation already used, or the account cannot be linked
            GoneError: invitation expired
            UnauthorizedError: wrong password for an existing account
        """
        invitation = InvitationRepository(db).get_by_token(data.token)
        if invitation is None:
            raise NotFoundError("Invitation not found", code="INVITATION_NOT_FOUND")
        if invitation.used_at is not None:
            raise ConflictError("Invitation has already been used", code="INVITATION_USED")
        if invitation.expires_at <= utcnow():
            raise GoneError("Invitation has expired", code="INVITATION_EXPIRED")

        trainer = invitation.trainer
        user_repo = UserRepository(db)
        customer = user_repo.get_by_email(invitation.customer_email)
        if customer is not None:
            if customer.role != UserRole.CUSTOMER or (
                customer.trainer_id is not None and customer.trainer_id != trainer.id
            ):
                raise ConflictError(
                    "This account cannot be linked to the inviting trainer",
                    code="CUSTOMER_HAS_TRAINER",
                )
            if not verify_password(data.password, customer.password_hash):
                raise UnauthorizedError("Invalid email or password", code="INVALID_CREDENTIALS")
            if customer.trainer_id is None:
                EntitlementsService.check_quota(db, trainer, CUSTOMERS)
            customer.trainer_id = trainer.id
            if data.name and not customer.name:
                customer.name = data.name
        else:
            AuthService.ensure_password_policy(data.password)
            EntitlementsService.check_quota(db, trainer, CUSTOMERS)
            customer = user_repo.add(
                User(
                    email=invitation.customer_email,
                    password_hash=hash_password(data.password),
                    role=UserRole.CUSTOMER,
                    name=data.name,
                    trainer_id=trainer.id,
                    is_active=True,
                )
            )

        invitation.used_at = utcnow()
        tokens = AuthService.issue_tokens(db, customer, user_agent)
        ActivityService.record(
            db,
            customer.id,
            "customer.accept",
            "invitation",
            invitation.id,
            {"trainer_id": str(trainer.id)},
            ip_address,
        )
        db.commit()
        db.refresh(customer)
        logger.info(
            "invitation_accepted invitation_id=%s customer_id=%s trainer_id=%s",
            invitation.id,
            customer.id,
            trainer.id,
        )
        return tokens

    # =========================================================================
    # Customers
    # =========================================================================

    @staticmethod
    def list_customers(db: Session, user: User) -> List[Tuple[User, int]]:
        trainer_id = None if user.role == UserRole.ADMIN else user.id
        return UserRepository(db).list_customers(trainer_id)

    @staticmethod
    def get_customer(db: Session, user: User, customer_id: UUID) -> User:
        """Admin, the customer's own trainer, or the customer; otherwise 404."""
        customer = UserRepository(db).get_by_id(customer_id)
        if customer is None or customer.role != UserRole.CUSTOMER:
            raise NotFoundError(f"Customer {customer_id} not found")
        if (
            user.role == UserRole.ADMIN
            or customer.id == user.id
            or (user.role == UserRole.TRAINER and customer.trainer_id == user.id)
        ):
            return customer
        raise NotFoundError(f"Customer {customer_id} not found")

    @staticmethod
    def get_managed_customer(db: Session, user: User, customer_id: UUID) -> User:
        """A customer the user manages: the owning trainer or an admin."""
        customer = CustomerService.get_customer(db, user, customer_id)
        if user.role == UserRole.CUSTOMER:
            raise ForbiddenError("Customers cannot manage customer accounts")
        return customer

    @staticmethod
    def delete_customer(
        db: Session, user: User, customer_id: UUID, ip_address: Optional[str] = None
    ) -> None:
        """Delete a customer. Photos leave storage before the rows leave the database."""
        customer = CustomerService.get_managed_customer(db, user, customer_id)

        storage = get_storage()
        photos = PhotoRepository(db).list_for_customer(customer.id)
        for photo in photos:
            storage.delete(photo.storage_key)

        ActivityService.record(
            db,
            user.id,
            "customer.delete",
            "user",
            customer.id,
            {"email": customer.email, "photos_removed": len(photos)},
            ip_address,
        )
        UserRepository(db).remove(customer)
        db.commit()
        logger.info(
            "customer_deleted customer_id=%s by=%s photos=%d", customer_id, user.id, len(photos)
        )

    # =========================================================================
    # Meal plan assignments
    # =========================================================================

    @staticmethod
    def assign_meal_plan(
        db: Session,
        trainer: User,
        customer_id: UUID,
        data: AssignmentCreate,
        ip_address: Optional[str] = None,
    ) -> CustomerMealPlan:
        customer = UserRepository(db).get_by_id(customer_id)
        if (
            customer is None
            or customer.role != UserRole.CUSTOMER
            or customer.trainer_id != trainer.id
        ):
            raise NotFoundError(f"Customer {customer_id} not found")

        plan = MealPlanRepository(db).get_by_id(data.meal_plan_id)
        if plan is None or plan.trainer_id != trainer.id:
            raise NotFoundError(f"Meal plan {data.meal_plan_id} not found")

        repo = AssignmentRepository(db)
        if repo.get_for_plan_and_customer(plan.id, customer.id) is not None:
            raise ConflictError(
                "This meal plan is already assigned to the customer", code="ALREADY_ASSIGNED"
            )

        assignment = repo.add(
            CustomerMealPlan(
                meal_plan_id=plan.id,
                customer_id=customer.id,
                trainer_id=trainer.id,
                status=AssignmentStatus.ASSIGNED,
                customizations=data.customizations,
                progress={},
                notes=data.notes,
            )
        )
        ActivityService.record(
            db,
            trainer.id,
            "assignment.assign",
            "customer_meal_plan",
            assignment.id,
            {"meal_plan_id": str(plan.id), "customer_id": str(customer.id)},
            ip_address,
        )
        db.commit()
        db.refresh(assignment)
        logger.info(
            "meal_plan_assigned assignment_id=%s meal_plan_id=%s customer_id=%s",
            assignment.id,
            plan.id,
            customer.id,
        )
        return assignment

    @staticmethod
    def list_assignments(db: Session, user: User, customer_id: UUID) -> List[CustomerMealPlan]:
        customer = CustomerService.get_customer(db, user, customer_id)
        return AssignmentRepository(db).list_for_customer(customer.id)

    @staticmethod
    def _get_assignment(
        db: Session, user: User, customer_id: UUID, assignment_id: UUID
    ) -> CustomerMealPlan:
        assignment = AssignmentRepository(db).get_by_id(assignment_id)
        if assignment is None or assignment.customer_id != customer_id:
            raise NotFoundError(f"Assignment {assignment_id} not found")
        if user.role == UserRole.ADMIN:
            return assignment
        if user.role == UserRole.TRAINER and assignment.trainer_id == user.id:
            return assignment
        if user.role == UserRole.CUSTOMER and assignment.customer_id == user.id:
            return assignment
        raise NotFoundError(f"Assignment {assignment_id} not found")

    @staticmethod
    def update_assignment(
        db: Session,
        user: User,
        customer_id: UUID,
        assignment_id: UUID,
        data: AssignmentUpdate,
    ) -> CustomerMealPlan:
        """
        Update an assignment. Customers may only move the status and record
        progress; status changes follow ALLOWED_TRANSITIONS.
        """
        assignment = CustomerService._get_assignment(db, user, customer_id, assignment_id)
        changes = data.model_dump(exclude_unset=True)

        if user.role == UserRole.CUSTOMER:
            blocked = sorted(set(changes) - CUSTOMER_EDITABLE)
            if blocked:
                raise ForbiddenError(
                    "Customers can only update status and progress",
                    details={"fields": blocked},
                )

        if changes.get("status") is not None:
            check_transition(assignment.status, data.status)
            assignment.status = data.status
        if changes.get("progress") is not None:
            assignment.progress = {**(assignment.progress or {}), **data.progress}
        if changes.get("customizations") is not None:
            assignment.customizations = data.customizations
        if "notes" in changes:
            assignment.notes = data.notes

        db.commit()
        db.refresh(assignment)
        logger.info(
            "assignment_updated assignment_id=%s status=%s by=%s",
            assignment.id,
            AssignmentStatus(assignment.status).value,
            user.id,
        )
        return assignment

    @staticmethod
    def unassign_meal_plan(
        db: Session,
        user: User,
        customer_id: UUID,
        assignment_id: UUID,
        ip_address: Optional[str] = None,
    ) -> None:
        if user.role == UserRole.CUSTOMER:
            raise ForbiddenError("Customers cannot remove assignments")
        assignment = CustomerService._get_assignment(db, user, customer_id, assignment_id)
        ActivityService.record(
            db,
            user.id,
            "assignment.unassign",
            "customer_meal_plan",
            assignment.id,
            {"meal_plan_id": str(assignment.meal_plan_id), "customer_id": str(customer_id)},
            ip_address,
        )
        AssignmentRepository(db).remove(assignment)
        db.commit()
        logger.info("meal_plan_unassigned assignment_id=%s", assignment_id)

    @staticmethod
    def my_assignments(db: Session, customer: User) -> List[CustomerMealPlan]:
        return AssignmentRepository(db).list_for_customer(customer.id)
