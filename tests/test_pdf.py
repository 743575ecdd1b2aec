"""
Tests for PDF exports of meal plans and progress reports.
"""

from datetime import date, timedelta

import pytest

from domain.enums import GoalStatus, GoalType, UserRole
from domain.models import CustomerGoal, ProgressMeasurement
from services.pdf_service import _fmt

from test_fixtures import (
    auth_headers,
    client,
    db_session,
    make_assignment,
    make_ingredient,
    make_meal_plan,
    make_recipe,
    make_user,
)


@pytest.mark.parametrize(
    "value,digits,expected",
    [(None, 1, "-"), (82.0, 1, "82"), (82.36, 1, "82.4"), (1.5, 2, "1.5"), (2000, 0, "2000")],
)
def test_fmt(value, digits, expected):
    assert _fmt(value, digits) == expected


def test_meal_plan_pdf_download(db_session):
    """
    Verifies:
    - The trainer and the assigned customer can download the plan as a PDF
    - The filename is a slug of the plan name
    - A trainer without access gets 404
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    other = make_user(db_session, UserRole.TRAINER)
    oats = make_ingredient(db_session, "rolled oats", "pantry")
    recipe = make_recipe(db_session, trainer, name="Overnight Oats & Berries", ingredients=[(oats, 80, "g")])
    plan = make_meal_plan(db_session, trainer, [recipe], days=2, name="Cut Phase: Week 1")
    make_assignment(db_session, plan, customer)

    for user in (trainer, customer):
        r = client.get(f"/api/pdf/meal-plans/{plan.id}", headers=auth_headers(user))
        assert r.status_code == 200
        assert r.headers["content-type"] == "application/pdf"
        assert r.headers["content-disposition"] == 'attachment; filename="cut-phase-week-1.pdf"'
        assert r.content.startswith(b"%PDF")

    r = client.get(f"/api/pdf/meal-plans/{plan.id}", headers=auth_headers(other))
    assert r.status_code == 404


def test_progress_pdf_download(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer, name="Sam <Lifter>")
    today = date.today()
    db_session.add_all(
        [
            ProgressMeasurement(customer_id=customer.id, measurement_date=today - timedelta(days=7), weight_kg=84.2),
            ProgressMeasurement(customer_id=customer.id, measurement_date=today, weight_kg=83.1, waist_cm=86),
            CustomerGoal(
                customer_id=customer.id,
                goal_type=GoalType.WEIGHT_LOSS,
                goal_name="Reach 80 kg",
                target_value=80,
                target_unit="kg",
                starting_value=85,
                current_value=83.1,
                start_date=today - timedelta(days=14),
                status=GoalStatus.ACTIVE,
                progress_percentage=38,
            ),
        ]
    )
    db_session.commit()

    r = client.get("/api/pdf/progress", headers=auth_headers(customer))
    assert r.status_code == 200
    assert r.headers["content-disposition"] == 'attachment; filename="progress-report.pdf"'
    assert r.content.startswith(b"%PDF")


def test_progress_pdf_without_data(db_session):
    customer = make_user(db_session)
    r = client.get("/api/pdf/progress", headers=auth_headers(customer))
    assert r.status_code == 200
    assert r.content.startswith(b"%PDF")


def test_progress_pdf_customer_only(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    r = client.get("/api/pdf/progress", headers=auth_headers(trainer))
    assert r.status_code == 403
