"""PDF export routes"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
import logging
import re
from uuid import UUID

from api.dependencies import get_current_user, get_db, require_customer
from domain.models import User
from services.meal_plan_service import MealPlanService
from services.pdf_service import PDF_MEDIA_TYPE, PdfService
from services.progress_service import ProgressService

router = APIRouter(prefix="/pdf", tags=["PDF Export"])
logger = logging.getLogger("fitmeal.api.pdf")


def _filename(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return f"{slug or 'export'}.pdf"


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=PDF_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/meal-plans/{meal_plan_id}",
    response_class=Response,
    responses={200: {"content": {PDF_MEDIA_TYPE: {}}}},
)
def export_meal_plan(
    meal_plan_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Download a meal plan with its day tables, nutrition and grocery list."""
    plan = MealPlanService.get_plan(db, user, meal_plan_id)
    content = PdfService.meal_plan_pdf(plan)
    logger.info("pdf_exported kind=meal_plan meal_plan_id=%s size=%d", plan.id, len(content))
    return _pdf_response(content, _filename(plan.name))


@router.get(
    "/progress",
    response_class=Response,
    responses={200: {"content": {PDF_MEDIA_TYPE: {}}}},
)
def export_progress(
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    measurements = list(reversed(ProgressService.list_measurements(db, customer.id)))
    goals = ProgressService.list_goals(db, customer)
    content = PdfService.progress_pdf(customer, measurements, goals)
    logger.info("pdf_exported kind=progress customer_id=%s size=%d", customer.id, len(content))
    return _pdf_response(content, "progress-report.pdf")
