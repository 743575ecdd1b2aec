"""
Tests for ingredient normalization, categorization and the ingredient routes.
"""

import pytest

from domain.enums import UserRole
from services.ingredient_service import categorize_ingredient, normalize_ingredient_name

from test_fixtures import (
    auth_headers,
    client,
    db_session,
    make_ingredient,
    make_recipe,
    make_user,
)


# =============================================================================
# NORMALIZATION AND CATEGORIES
# =============================================================================


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Extra Virgin Olive Oil", "olive oil"),
        ("Fresh chopped tomatoes", "tomato"),
        ("  Chicken Breasts ", "chicken breast"),
        ("Boneless skinless chicken thighs", "chicken thigh"),
        ("Greek Yogurt (plain)", "greek yogurt"),
        ("Whole Milk", "milk"),
        ("Ground Beef", "ground beef"),
        ("lean ground beef", "ground beef"),
        ("ground turkey", "ground turkey"),
        ("Frozen Berries", "frozen berries"),
        ("fresh", "fresh"),
    ],
)
def test_normalize_ingredient_name(raw, expected):
    assert normalize_ingredient_name(raw) == expected


@pytest.mark.parametrize(
    "name,category",
    [
        ("chicken breast", "meat"),
        ("Salmon", "meat"),
        ("Greek Yogurt", "dairy"),
        ("Brown Rice", "pantry"),
        ("ground beef", "meat"),
        ("cumin", "spices"),
        ("xyz seasoning", "spices"),
        ("almond milk", "beverages"),
        ("dragonfruit", "produce"),
    ],
)
def test_categorize_ingredient(name, category):
    assert categorize_ingredient(name) == category


# =============================================================================
# ROUTES
# =============================================================================


def test_create_ingredient_normalizes_and_deduplicates(db_session):
    """
    Verifies:
    - A new ingredient is stored under its normalized name (201)
    - A variant spelling returns the existing row (200)
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    headers = auth_headers(trainer)

    r = client.post("/api/ingredients", json={"name": "Tomatoes", "default_unit": "piece"}, headers=headers)
    assert r.status_code == 201
    created = r.json()
    assert created["name"] == "tomato"
    assert created["category"] == "produce"

    r = client.post("/api/ingredients", json={"name": "Fresh tomato"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["id"] == created["id"]


def test_customer_cannot_create_ingredient(db_session):
    customer = make_user(db_session)
    r = client.post("/api/ingredients", json={"name": "basil"}, headers=auth_headers(customer))
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "FORBIDDEN_ROLE"


def test_search_ingredients(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    headers = auth_headers(trainer)
    for name in ("chicken breast", "chicken thigh", "broccoli"):
        client.post("/api/ingredients", json={"name": name}, headers=headers)

    r = client.get("/api/ingredients", params={"search": "chicken"}, headers=headers)
    assert r.status_code == 200
    assert [i["name"] for i in r.json()] == ["chicken breast", "chicken thigh"]


def test_delete_ingredient_in_use_conflict(db_session):
    """
    Verifies:
    - Only admins delete ingredients
    - An ingredient referenced by a recipe cannot be deleted (409)
    - An unused one is removed (204)
    """
    admin = make_user(db_session, UserRole.ADMIN)
    trainer = make_user(db_session, UserRole.TRAINER)
    rice = make_ingredient(db_session, "white rice", "pantry")
    basil = make_ingredient(db_session, "basil")
    make_recipe(db_session, trainer, ingredients=[(rice, 100, "g")])

    r = client.delete(f"/api/ingredients/{basil.id}", headers=auth_headers(trainer))
    assert r.status_code == 403

    r = client.delete(f"/api/ingredients/{rice.id}", headers=auth_headers(admin))
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "INGREDIENT_IN_USE"

    r = client.delete(f"/api/ingredients/{basil.id}", headers=auth_headers(admin))
    assert r.status_code == 204


def test_ground_meat_variants_share_one_ingredient(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    headers = auth_headers(trainer)

    r = client.post("/api/ingredients", json={"name": "Ground Beef"}, headers=headers)
    assert r.status_code == 201
    assert r.json()["name"] == "ground beef"
    assert r.json()["category"] == "meat"
    beef_id = r.json()["id"]

    r = client.post("/api/ingredients", json={"name": "Lean ground beef"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["id"] == beef_id
