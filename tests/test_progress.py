"""
Tests for measurements, goals, progress photos and progress summaries.
"""

from datetime import date, timedelta

import pytest

from adapters.storage_adapter import get_storage
from app.exceptions import ServiceValidationError
from domain.enums import UserRole
from domain.models import ProgressPhoto
from services.progress_service import compute_goal_progress, period_start

from test_fixtures import auth_headers, client, db_session, make_user

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


def _days_ago(n: int) -> str:
    return (date.today() - timedelta(days=n)).isoformat()


def _customer_pair(db):
    trainer = make_user(db, UserRole.TRAINER)
    customer = make_user(db, trainer=trainer)
    return trainer, customer


# =============================================================================
# PURE HELPERS
# =============================================================================


@pytest.mark.parametrize(
    "starting,current,target,expected",
    [
        (90, 85, 80, 50),
        (60, 65, 70, 50),
        (90, 95, 80, 0),
        (90, 75, 80, 100),
        (90, 90, 90, 0),
        (None, 85, 80, 0),
    ],
)
def test_compute_goal_progress(starting, current, target, expected):
    assert compute_goal_progress(starting, current, target) == expected


def test_period_start():
    today = date(2024, 3, 31)
    assert period_start("week", today) == date(2024, 3, 24)
    assert period_start("month", today) == date(2024, 3, 1)
    assert period_start("all", today) is None
    with pytest.raises(ServiceValidationError):
        period_start("decade", today)


# =============================================================================
# MEASUREMENTS
# =============================================================================


def test_measurement_crud(db_session):
    """
    Verifies:
    - Measurements are created, listed newest first, updated and deleted
    - Date filters narrow the list
    - Another customer cannot touch them (404)
    """
    _, customer = _customer_pair(db_session)
    stranger = make_user(db_session)
    headers = auth_headers(customer)

    first = client.post(
        "/api/progress/measurements",
        json={"measurement_date": _days_ago(10), "weight_kg": 82.5, "waist_cm": 88},
        headers=headers,
    )
    assert first.status_code == 201
    second = client.post(
        "/api/progress/measurements",
        json={"measurement_date": _days_ago(2), "weight_kg": 81.9},
        headers=headers,
    )
    assert second.status_code == 201

    listed = client.get("/api/progress/measurements", headers=headers).json()
    assert [m["weight_kg"] for m in listed] == [81.9, 82.5]

    recent = client.get(
        "/api/progress/measurements", params={"start_date": _days_ago(5)}, headers=headers
    ).json()
    assert len(recent) == 1

    measurement_id = first.json()["id"]
    r = client.patch(
        f"/api/progress/measurements/{measurement_id}",
        json={"body_fat_percentage": 21.5},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["body_fat_percentage"] == 21.5
    assert r.json()["weight_kg"] == 82.5

    r = client.delete(f"/api/progress/measurements/{measurement_id}", headers=auth_headers(stranger))
    assert r.status_code == 404
    r = client.delete(f"/api/progress/measurements/{measurement_id}", headers=headers)
    assert r.status_code == 204


def test_measurement_needs_a_metric(db_session):
    _, customer = _customer_pair(db_session)
    r = client.post(
        "/api/progress/measurements",
        json={"measurement_date": _days_ago(0), "notes": "forgot the scale"},
        headers=auth_headers(customer),
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "NO_METRICS"


def test_trainer_cannot_post_own_measurements(db_session):
    trainer, _ = _customer_pair(db_session)
    r = client.post(
        "/api/progress/measurements",
        json={"measurement_date": _days_ago(0), "weight_kg": 80},
        headers=auth_headers(trainer),
    )
    assert r.status_code == 403


# =============================================================================
# GOALS
# =============================================================================


def test_weight_measurements_move_weight_goals(db_session):
    """
    Verifies:
    - A new goal starts from its current value
    - A newer weight reading updates active kg weight goals
    - An older reading does not
    - Reaching the target marks the goal achieved
    """
    _, customer = _customer_pair(db_session)
    headers = auth_headers(customer)

    r = client.post(
        "/api/progress/goals",
        json={
            "goal_type": "weight_loss",
            "goal_name": "Drop to 80 kg",
            "target_value": 80,
            "target_unit": "kg",
            "current_value": 90,
        },
        headers=headers,
    )
    assert r.status_code == 201
    goal = r.json()
    assert goal["starting_value"] == 90
    assert goal["progress_percentage"] == 0
    assert goal["status"] == "active"

    client.post("/api/progress/measurements", json={"measurement_date": _days_ago(1), "weight_kg": 85}, headers=headers)
    goal = client.get("/api/progress/goals", headers=headers).json()[0]
    assert goal["current_value"] == 85
    assert goal["progress_percentage"] == 50

    client.post("/api/progress/measurements", json={"measurement_date": _days_ago(7), "weight_kg": 70}, headers=headers)
    goal = client.get("/api/progress/goals", headers=headers).json()[0]
    assert goal["current_value"] == 85

    client.post("/api/progress/measurements", json={"measurement_date": _days_ago(0), "weight_kg": 79.5}, headers=headers)
    goal = client.get("/api/progress/goals", headers=headers).json()[0]
    assert goal["status"] == "achieved"
    assert goal["progress_percentage"] == 100
    assert goal["achieved_date"] == date.today().isoformat()


def test_goal_update_and_filter(db_session):
    _, customer = _customer_pair(db_session)
    headers = auth_headers(customer)
    created = client.post(
        "/api/progress/goals",
        json={"goal_type": "performance", "goal_name": "Run 5k", "target_value": 5, "starting_value": 0, "current_value": 1},
        headers=headers,
    ).json()
    assert created["progress_percentage"] == 20

    r = client.patch(
        f"/api/progress/goals/{created['id']}", json={"current_value": 3}, headers=headers
    )
    assert r.json()["progress_percentage"] == 60

    r = client.patch(
        f"/api/progress/goals/{created['id']}", json={"status": "paused"}, headers=headers
    )
    assert r.json()["status"] == "paused"

    assert client.get("/api/progress/goals", params={"status": "active"}, headers=headers).json() == []
    assert len(client.get("/api/progress/goals", params={"status": "paused"}, headers=headers).json()) == 1

    assert client.delete(f"/api/progress/goals/{created['id']}", headers=headers).status_code == 204
    assert client.get("/api/progress/goals", headers=headers).json() == []


# =============================================================================
# PHOTOS
# =============================================================================


def test_upload_list_and_delete_photo(db_session):
    """
    Verifies:
    - A JPEG upload is stored and served under the media prefix
    - Deleting the photo removes the stored file
    """
    _, customer = _customer_pair(db_session)
    headers = auth_headers(customer)

    r = client.post(
        "/api/progress/photos",
        files={"file": ("front.jpg", JPEG_BYTES, "image/jpeg")},
        data={"photo_type": "front", "caption": "Week 1", "photo_date": _days_ago(3)},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    photo = r.json()
    assert photo["photo_type"] == "front"
    assert photo["is_private"] is True
    assert photo["photo_url"].startswith(f"/media/progress/{customer.id}/")

    row = db_session.query(ProgressPhoto).one()
    storage = get_storage()
    assert storage.exists(row.storage_key)

    listed = client.get("/api/progress/photos", headers=headers).json()
    assert [p["id"] for p in listed] == [photo["id"]]

    r = client.delete(f"/api/progress/photos/{photo['id']}", headers=headers)
    assert r.status_code == 204
    assert storage.exists(row.storage_key) is False


def test_upload_rejects_unsupported_type(db_session):
    _, customer = _customer_pair(db_session)
    r = client.post(
        "/api/progress/photos",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers(customer),
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "UNSUPPORTED_FILE_TYPE"


def test_upload_rejects_empty_file(db_session):
    _, customer = _customer_pair(db_session)
    r = client.post(
        "/api/progress/photos",
        files={"file": ("empty.png", b"", "image/png")},
        headers=auth_headers(customer),
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "EMPTY_FILE"


# =============================================================================
# SUMMARIES AND STAFF VIEWS
# =============================================================================


def _seed_history(headers):
    for days_ago, weight, body_fat in ((40, 90, None), (20, 88, 25), (1, 86.5, 23.5)):
        body = {"measurement_date": _days_ago(days_ago), "weight_kg": weight}
        if body_fat is not None:
            body["body_fat_percentage"] = body_fat
        assert client.post("/api/progress/measurements", json=body, headers=headers).status_code == 201
    for is_private in ("true", "false"):
        r = client.post(
            "/api/progress/photos",
            files={"file": ("p.jpg", JPEG_BYTES, "image/jpeg")},
            data={"is_private": is_private},
            headers=headers,
        )
        assert r.status_code == 201


def test_summary_periods(db_session):
    """
    Verifies:
    - The month window only counts the last 30 days
    - Weight and body fat changes run first to latest reading
    - The customer's own summary counts private photos
    """
    _, customer = _customer_pair(db_session)
    headers = auth_headers(customer)
    _seed_history(headers)

    month = client.get("/api/progress/summary", headers=headers).json()
    assert month["period"] == "month"
    assert month["measurement_count"] == 2
    assert month["first_weight_kg"] == 88
    assert month["latest_weight_kg"] == 86.5
    assert month["weight_change_kg"] == -1.5
    assert month["body_fat_change"] == -1.5
    assert month["photo_count"] == 2

    everything = client.get("/api/progress/summary", params={"period": "all"}, headers=headers).json()
    assert everything["start_date"] is None
    assert everything["measurement_count"] == 3
    assert everything["weight_change_kg"] == -3.5

    r = client.get("/api/progress/summary", params={"period": "decade"}, headers=headers)
    assert r.status_code == 422


def test_staff_views_hide_private_photos(db_session):
    trainer, customer = _customer_pair(db_session)
    other = make_user(db_session, UserRole.TRAINER)
    _seed_history(auth_headers(customer))
    base = f"/api/progress/customers/{customer.id}"

    summary = client.get(f"{base}/summary", headers=auth_headers(trainer)).json()
    assert summary["photo_count"] == 1
    assert len(client.get(f"{base}/photos", headers=auth_headers(trainer)).json()) == 1
    assert len(client.get(f"{base}/measurements", headers=auth_headers(trainer)).json()) == 3

    assert client.get(f"{base}/summary", headers=auth_headers(other)).status_code == 404
    assert client.get(f"{base}/summary", headers=auth_headers(customer)).status_code == 403
