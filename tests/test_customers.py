"""
Tests for customer invitations, the trainer/customer link and meal plan assignments.
"""

from datetime import timedelta

import pytest

from adapters import mail_adapter
from adapters.storage_adapter import get_storage
from app.config import settings
from app.exceptions import ExternalServiceError, ServiceValidationError
from domain.enums import AssignmentStatus, PhotoType, UserRole
from domain.models import CustomerInvitation, ProgressPhoto, User
from domain.models.database import utcnow
from services.customer_service import check_transition

from test_fixtures import (
    DEFAULT_PASSWORD,
    auth_headers,
    client,
    db_session,
    make_assignment,
    make_meal_plan,
    make_recipe,
    make_user,
    unique_email,
)


@pytest.fixture
def sent_invitations(monkeypatch):
    """Capture invitation emails instead of sending them."""
    sent = []

    def fake_send(invitation, trainer):
        sent.append((invitation.customer_email, invitation.token, trainer.id))
        return True

    monkeypatch.setattr(mail_adapter, "send_invitation_email", fake_send)
    return sent


def _invite(trainer, email, sent):
    r = client.post(
        "/api/customers/invitations",
        json={"customer_email": email, "message": "Let's get started"},
        headers=auth_headers(trainer),
    )
    assert r.status_code == 201, r.text
    return r.json(), sent[-1][1]


# =============================================================================
# INVITATIONS
# =============================================================================


def test_invite_and_accept_creates_linked_customer(db_session, sent_invitations):
    """
    Verifies:
    - A pending invitation is created and emailed
    - Accepting creates a customer linked to the trainer and signs them in
    - The invitation then reports accepted and cannot be reused (409)
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    email = unique_email("newclient")
    invitation, token = _invite(trainer, email, sent_invitations)
    assert invitation["status"] == "pending"
    assert sent_invitations[0][0] == email
    assert sent_invitations[0][2] == trainer.id

    r = client.post(
        "/api/customers/invitations/accept",
        json={"token": token, "password": "Str0ng!pass", "name": "Emma Johnson"},
    )
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["role"] == "customer"
    assert user["trainer_id"] == str(trainer.id)
    assert user["name"] == "Emma Johnson"

    listed = client.get("/api/customers/invitations", headers=auth_headers(trainer)).json()
    assert listed[0]["status"] == "accepted"

    r = client.post(
        "/api/customers/invitations/accept", json={"token": token, "password": "Str0ng!pass"}
    )
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "INVITATION_USED"


def test_accept_links_existing_unlinked_customer(db_session, sent_invitations):
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session)
    _, token = _invite(trainer, customer.email, sent_invitations)

    r = client.post(
        "/api/customers/invitations/accept", json={"token": token, "password": "Wrong123!"}
    )
    assert r.status_code == 401

    r = client.post(
        "/api/customers/invitations/accept",
        json={"token": token, "password": DEFAULT_PASSWORD},
    )
    assert r.status_code == 200
    db_session.refresh(customer)
    assert customer.trainer_id == trainer.id


def test_accept_expired_invitation_is_gone(db_session, sent_invitations):
    trainer = make_user(db_session, UserRole.TRAINER)
    _, token = _invite(trainer, unique_email(), sent_invitations)
    invitation = db_session.query(CustomerInvitation).filter_by(token=token).one()
    invitation.expires_at = utcnow() - timedelta(minutes=1)
    db_session.commit()

    r = client.post(
        "/api/customers/invitations/accept", json={"token": token, "password": "Str0ng!pass"}
    )
    assert r.status_code == 410
    assert r.json()["error"]["code"] == "INVITATION_EXPIRED"


def test_accept_unknown_token(db_session):
    r = client.post(
        "/api/customers/invitations/accept", json={"token": "missing", "password": "Str0ng!pass"}
    )
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "INVITATION_NOT_FOUND"


def test_accept_enforces_password_policy(db_session, sent_invitations):
    trainer = make_user(db_session, UserRole.TRAINER)
    _, token = _invite(trainer, unique_email(), sent_invitations)
    r = client.post("/api/customers/invitations/accept", json={"token": token, "password": "weak"})
    assert r.status_code == 400


def test_invite_conflicts(db_session, sent_invitations):
    """
    Verifies:
    - Staff emails cannot be invited (EMAIL_NOT_CUSTOMER)
    - A trainer's own customer cannot be re-invited (ALREADY_YOUR_CUSTOMER)
    - Another trainer's customer cannot be poached (CUSTOMER_HAS_TRAINER)
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    other = make_user(db_session, UserRole.TRAINER)
    mine = make_user(db_session, trainer=trainer)
    theirs = make_user(db_session, trainer=other)
    headers = auth_headers(trainer)

    cases = [
        (other.email, "EMAIL_NOT_CUSTOMER"),
        (mine.email, "ALREADY_YOUR_CUSTOMER"),
        (theirs.email, "CUSTOMER_HAS_TRAINER"),
    ]
    for email, code in cases:
        r = client.post("/api/customers/invitations", json={"customer_email": email}, headers=headers)
        assert r.status_code == 409
        assert r.json()["error"]["code"] == code
    assert sent_invitations == []


def test_invite_requires_customer_quota(db_session, sent_invitations, monkeypatch):
    monkeypatch.setattr(settings, "default_tier", None)
    trainer = make_user(db_session, UserRole.TRAINER)
    r = client.post(
        "/api/customers/invitations",
        json={"customer_email": unique_email()},
        headers=auth_headers(trainer),
    )
    assert r.status_code == 402
    assert r.json()["error"]["details"]["resource"] == "customers"


def test_invitation_email_failure_does_not_fail_request(db_session, monkeypatch):
    def broken_send(invitation, trainer):
        raise ExternalServiceError("Email delivery failed")

    monkeypatch.setattr(mail_adapter, "send_invitation_email", broken_send)
    trainer = make_user(db_session, UserRole.TRAINER)
    r = client.post(
        "/api/customers/invitations",
        json={"customer_email": unique_email()},
        headers=auth_headers(trainer),
    )
    assert r.status_code == 201


def test_mail_adapter_skips_when_unconfigured():
    assert mail_adapter.is_configured() is False
    assert mail_adapter.send_email("a@example.com", "Hi", "Body") is False


# =============================================================================
# CUSTOMERS
# =============================================================================


def test_list_and_get_customers(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    other = make_user(db_session, UserRole.TRAINER)
    admin = make_user(db_session, UserRole.ADMIN)
    mine = make_user(db_session, trainer=trainer)
    theirs = make_user(db_session, trainer=other)
    make_assignment(db_session, make_meal_plan(db_session, trainer, [make_recipe(db_session, trainer)]), mine)

    r = client.get("/api/customers", headers=auth_headers(trainer))
    assert r.status_code == 200
    assert [(c["id"], c["assignment_count"]) for c in r.json()] == [(str(mine.id), 1)]

    assert len(client.get("/api/customers", headers=auth_headers(admin)).json()) == 2
    assert client.get("/api/customers", headers=auth_headers(mine)).status_code == 403

    assert client.get(f"/api/customers/{mine.id}", headers=auth_headers(trainer)).status_code == 200
    assert client.get(f"/api/customers/{theirs.id}", headers=auth_headers(trainer)).status_code == 404
    assert client.get(f"/api/customers/{mine.id}", headers=auth_headers(mine)).status_code == 200
    assert client.get(f"/api/customers/{theirs.id}", headers=auth_headers(mine)).status_code == 404


def test_delete_customer_removes_photos(db_session):
    """
    Verifies:
    - Deleting a customer removes their photo files from storage
    - The account and its rows are gone afterwards
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    storage = get_storage()
    key = f"progress/{customer.id}/front.jpg"
    storage.save(key, b"\xff\xd8\xff", "image/jpeg")
    db_session.add(
        ProgressPhoto(
            customer_id=customer.id,
            photo_date=utcnow().date(),
            storage_key=key,
            photo_url=storage.url_for(key),
            photo_type=PhotoType.FRONT,
        )
    )
    db_session.commit()
    customer_id = customer.id

    r = client.delete(f"/api/customers/{customer_id}", headers=auth_headers(trainer))
    assert r.status_code == 204
    assert storage.exists(key) is False
    db_session.expire_all()
    assert db_session.get(User, customer_id) is None


def test_customer_cannot_delete_self(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    r = client.delete(f"/api/customers/{customer.id}", headers=auth_headers(customer))
    assert r.status_code == 403


# =============================================================================
# ASSIGNMENTS
# =============================================================================


def test_status_transitions():
    check_transition(AssignmentStatus.ASSIGNED, AssignmentStatus.ACTIVE)
    check_transition(AssignmentStatus.ACTIVE, AssignmentStatus.ACTIVE)
    check_transition(AssignmentStatus.PAUSED, AssignmentStatus.ACTIVE)
    with pytest.raises(ServiceValidationError):
        check_transition(AssignmentStatus.ASSIGNED, AssignmentStatus.COMPLETED)
    with pytest.raises(ServiceValidationError):
        check_transition(AssignmentStatus.CANCELLED, AssignmentStatus.ACTIVE)


def test_assign_and_list(db_session):
    """
    Verifies:
    - A trainer assigns their own plan to their own customer
    - The same plan cannot be assigned twice (409)
    - The customer sees the assignment with the plan summary embedded
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    plan = make_meal_plan(db_session, trainer, [make_recipe(db_session, trainer)])
    url = f"/api/customers/{customer.id}/meal-plans"

    r = client.post(url, json={"meal_plan_id": str(plan.id), "notes": "Start Monday"}, headers=auth_headers(trainer))
    assert r.status_code == 201
    assignment = r.json()
    assert assignment["status"] == "assigned"
    assert assignment["meal_plan"]["name"] == "Lean Week"

    r = client.post(url, json={"meal_plan_id": str(plan.id)}, headers=auth_headers(trainer))
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "ALREADY_ASSIGNED"

    mine = client.get("/api/customers/me/meal-plans", headers=auth_headers(customer)).json()
    assert [a["id"] for a in mine] == [assignment["id"]]
    assert mine[0]["notes"] == "Start Monday"


def test_assign_requires_own_customer_and_plan(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    other = make_user(db_session, UserRole.TRAINER)
    mine = make_user(db_session, trainer=trainer)
    theirs = make_user(db_session, trainer=other)
    my_plan = make_meal_plan(db_session, trainer, [make_recipe(db_session, trainer)])
    their_plan = make_meal_plan(db_session, other, [make_recipe(db_session, other)])
    headers = auth_headers(trainer)

    r = client.post(f"/api/customers/{theirs.id}/meal-plans", json={"meal_plan_id": str(my_plan.id)}, headers=headers)
    assert r.status_code == 404
    r = client.post(f"/api/customers/{mine.id}/meal-plans", json={"meal_plan_id": str(their_plan.id)}, headers=headers)
    assert r.status_code == 404


def test_customer_updates_status_and_progress(db_session):
    """
    Verifies:
    - A customer may move the status along allowed transitions
    - Progress updates merge into the existing progress
    - Customers cannot touch notes or customizations (403)
    - Invalid transitions are 400 INVALID_STATUS_TRANSITION
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    plan = make_meal_plan(db_session, trainer, [make_recipe(db_session, trainer)])
    assignment = make_assignment(db_session, plan, customer)
    url = f"/api/customers/{customer.id}/meal-plans/{assignment.id}"
    headers = auth_headers(customer)

    r = client.patch(url, json={"status": "active", "progress": {"day": 1}}, headers=headers)
    assert r.status_code == 200
    r = client.patch(url, json={"progress": {"adherence": 0.9}}, headers=headers)
    assert r.json()["status"] == "active"
    assert r.json()["progress"] == {"day": 1, "adherence": 0.9}

    r = client.patch(url, json={"notes": "mine"}, headers=headers)
    assert r.status_code == 403
    assert r.json()["error"]["details"] == {"fields": ["notes"]}

    r = client.patch(url, json={"status": "assigned"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"


def test_trainer_updates_and_unassigns(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    plan = make_meal_plan(db_session, trainer, [make_recipe(db_session, trainer)])
    assignment = make_assignment(db_session, plan, customer)
    url = f"/api/customers/{customer.id}/meal-plans/{assignment.id}"

    r = client.patch(url, json={"customizations": {"swap": "no dairy"}, "notes": "Check in Friday"}, headers=auth_headers(trainer))
    assert r.status_code == 200
    assert r.json()["customizations"] == {"swap": "no dairy"}

    assert client.delete(url, headers=auth_headers(customer)).status_code == 403
    assert client.delete(url, headers=auth_headers(trainer)).status_code == 204
    assert client.get(f"/api/customers/{customer.id}/meal-plans", headers=auth_headers(trainer)).json() == []
