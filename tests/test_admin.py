"""
Tests for the admin area: platform statistics, user management and the
activity log.
"""

import uuid

from domain.enums import UserRole

from test_fixtures import (
    DEFAULT_PASSWORD,
    auth_headers,
    client,
    db_session,
    make_assignment,
    make_meal_plan,
    make_recipe,
    make_user,
)


def test_stats_counts_platform(db_session):
    """
    Verifies:
    - Users are counted per role, including roles with no users
    - Recipes are split into approved and pending
    """
    admin = make_user(db_session, UserRole.ADMIN)
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    approved = make_recipe(db_session, trainer, name="Approved")
    make_recipe(db_session, trainer, name="Pending", is_approved=False)
    plan = make_meal_plan(db_session, trainer, [approved])
    make_assignment(db_session, plan, customer)

    r = client.get("/api/admin/stats", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json() == {
        "users": {"admin": 1, "trainer": 1, "customer": 1},
        "recipes": {"total": 2, "approved": 1, "pending": 1},
        "meal_plans": 1,
        "assignments": 1,
        "subscriptions": {},
    }


def test_admin_routes_reject_other_roles(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session)
    for user in (trainer, customer):
        r = client.get("/api/admin/stats", headers=auth_headers(user))
        assert r.status_code == 403
        assert r.json()["error"]["code"] == "FORBIDDEN_ROLE"
    assert client.get("/api/admin/users").status_code == 401


def test_list_users_paginates_and_filters(db_session):
    admin = make_user(db_session, UserRole.ADMIN)
    for _ in range(3):
        make_user(db_session, UserRole.TRAINER)
    make_user(db_session)
    headers = auth_headers(admin)

    r = client.get("/api/admin/users", params={"page_size": 2}, headers=headers)
    page = r.json()
    assert page["total"] == 5
    assert len(page["items"]) == 2
    assert page["has_next"] is True

    r = client.get("/api/admin/users", params={"role": "trainer"}, headers=headers)
    page = r.json()
    assert page["total"] == 3
    assert {u["role"] for u in page["items"]} == {"trainer"}
    assert all("password_hash" not in u for u in page["items"])


def test_disable_user_revokes_sessions(db_session):
    """
    Verifies:
    - Disabling a user blocks their access token and refresh token
    - The change is written to the activity log with the before/after values
    """
    admin = make_user(db_session, UserRole.ADMIN)
    trainer = make_user(db_session, UserRole.TRAINER)
    login = client.post(
        "/api/auth/login", json={"email": trainer.email, "password": DEFAULT_PASSWORD}
    ).json()

    r = client.patch(
        f"/api/admin/users/{trainer.id}", json={"is_active": False}, headers=auth_headers(admin)
    )
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {login['access_token']}"})
    assert r.status_code == 401
    r = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert r.status_code == 401

    entries = client.get(
        "/api/admin/activity", params={"action": "user.update"}, headers=auth_headers(admin)
    ).json()
    assert len(entries) == 1
    assert entries[0]["user_id"] == str(admin.id)
    assert entries[0]["entity_id"] == str(trainer.id)
    assert entries[0]["details"] == {"is_active": {"from": True, "to": False}}


def test_change_role(db_session):
    admin = make_user(db_session, UserRole.ADMIN)
    customer = make_user(db_session)
    r = client.patch(
        f"/api/admin/users/{customer.id}", json={"role": "trainer"}, headers=auth_headers(admin)
    )
    assert r.status_code == 200
    assert r.json()["role"] == "trainer"


def test_admin_cannot_lock_themselves_out(db_session):
    admin = make_user(db_session, UserRole.ADMIN)
    headers = auth_headers(admin)

    r = client.patch(f"/api/admin/users/{admin.id}", json={"is_active": False}, headers=headers)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "SELF_MODIFICATION"

    r = client.patch(f"/api/admin/users/{admin.id}", json={"role": "trainer"}, headers=headers)
    assert r.json()["error"]["code"] == "SELF_MODIFICATION"


def test_update_unknown_user(db_session):
    admin = make_user(db_session, UserRole.ADMIN)
    r = client.patch(
        f"/api/admin/users/{uuid.uuid4()}", json={"is_active": True}, headers=auth_headers(admin)
    )
    assert r.status_code == 404


def test_activity_filters_by_user(db_session):
    admin = make_user(db_session, UserRole.ADMIN)
    first = make_user(db_session)
    second = make_user(db_session)
    headers = auth_headers(admin)
    client.patch(f"/api/admin/users/{first.id}", json={"is_active": False}, headers=headers)
    client.patch(f"/api/admin/users/{second.id}", json={"is_active": False}, headers=headers)

    everything = client.get("/api/admin/activity", headers=headers).json()
    assert {e["entity_id"] for e in everything} >= {str(first.id), str(second.id)}

    limited = client.get("/api/admin/activity", params={"limit": 1}, headers=headers).json()
    assert len(limited) == 1

    other_admin = make_user(db_session, UserRole.ADMIN)
    mine = client.get(
        "/api/admin/activity", params={"user_id": str(other_admin.id)}, headers=headers
    ).json()
    assert mine == []
