"""
Tests for manual meal plans, plan generation, tier quotas and nutrition totals.
"""

import uuid
from types import SimpleNamespace

import pytest

from app.config import settings
from app.exceptions import ServiceValidationError
from domain.enums import MealType, UserRole
from domain.schemas.meal_plan_schemas import MealPlanGenerateRequest
from services.meal_plan_service import MealPlanService, meal_slots, pick_recipe

from test_fixtures import (
    auth_headers,
    client,
    db_session,
    make_assignment,
    make_meal_plan,
    make_recipe,
    make_user,
)


def _plan_body(recipes, days=2, **overrides):
    body = {
        "name": "Cutting Phase",
        "fitness_goal": "weight_loss",
        "daily_calorie_target": 1800,
        "tags": ["cut"],
        "days": [
            {
                "day_number": n,
                "meals": [
                    {"recipe_id": str(r.id), "meal_type": (r.meal_types or ["lunch"])[0]}
                    for r in recipes
                ],
            }
            for n in range(1, days + 1)
        ],
    }
    body.update(overrides)
    return body


# =============================================================================
# SLOT PICKING
# =============================================================================


def test_meal_slots_order():
    assert meal_slots(1) == [MealType.BREAKFAST]
    assert meal_slots(3) == [MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER]
    assert meal_slots(5)[3:] == [MealType.SNACK, MealType.SNACK]


def test_pick_recipe_prefers_type_then_unused_then_calories():
    a = SimpleNamespace(id=1, name="Alpha", meal_types=["breakfast"], calories_kcal=400)
    b = SimpleNamespace(id=2, name="Bravo", meal_types=["breakfast"], calories_kcal=600)
    c = SimpleNamespace(id=3, name="Charlie", meal_types=["lunch"], calories_kcal=600)

    assert pick_recipe([a, b, c], MealType.BREAKFAST, 600, set()) is b
    assert pick_recipe([a, b, c], MealType.BREAKFAST, 600, {2}) is a
    # No dinner recipe: any recipe may fill the slot
    assert pick_recipe([a, b, c], MealType.DINNER, 590, set()) is b


def test_pick_recipe_ties_break_by_name():
    z = SimpleNamespace(id=1, name="Zucchini Soup", meal_types=["lunch"], calories_kcal=500)
    a = SimpleNamespace(id=2, name="Apple Salad", meal_types=["lunch"], calories_kcal=500)
    assert pick_recipe([z, a], MealType.LUNCH, 500, set()) is a


# =============================================================================
# MANUAL PLANS
# =============================================================================


def test_create_plan(db_session):
    """
    Verifies:
    - Days and meals are stored in order
    - duration_days and meals_per_day are derived from the days
    - Meal macros are the recipe's scaled by servings
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    oats = make_recipe(db_session, trainer, name="Oats", meal_types=["breakfast"], calories=400)
    bowl = make_recipe(db_session, trainer, name="Bowl", meal_types=["lunch"], calories=600)
    body = _plan_body([oats, bowl], days=3)
    body["days"][0]["meals"][1]["servings"] = 1.5

    r = client.post("/api/meal-plans", json=body, headers=auth_headers(trainer))
    assert r.status_code == 201
    plan = r.json()
    assert plan["duration_days"] == 3
    assert plan["meals_per_day"] == 2
    assert plan["trainer_id"] == str(trainer.id)
    assert [d["day_number"] for d in plan["days"]] == [1, 2, 3]
    first_day = plan["days"][0]["meals"]
    assert [m["recipe_name"] for m in first_day] == ["Oats", "Bowl"]
    assert first_day[1]["calories_kcal"] == 900


def test_create_plan_rejects_gapped_days(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    recipe = make_recipe(db_session, trainer)
    body = _plan_body([recipe], days=2)
    body["days"][1]["day_number"] = 3

    r = client.post("/api/meal-plans", json=body, headers=auth_headers(trainer))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_DAY_NUMBERS"


def test_create_plan_rejects_invisible_recipe(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    other = make_user(db_session, UserRole.TRAINER)
    private = make_recipe(db_session, other, is_public=False)

    r = client.post("/api/meal-plans", json=_plan_body([private]), headers=auth_headers(trainer))
    assert r.status_code == 400
    error = r.json()["error"]
    assert error["code"] == "RECIPE_NOT_AVAILABLE"
    assert error["details"]["recipe_ids"] == [str(private.id)]


def test_customer_cannot_create_plan(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    recipe = make_recipe(db_session, trainer)
    r = client.post("/api/meal-plans", json=_plan_body([recipe]), headers=auth_headers(customer))
    assert r.status_code == 403


def test_plan_quota_without_tier(db_session, monkeypatch):
    """
    Verifies:
    - A trainer with no tier cannot save plans (402 TIER_LIMIT_REACHED)
    - Admins are never limited
    """
    monkeypatch.setattr(settings, "default_tier", None)
    trainer = make_user(db_session, UserRole.TRAINER)
    admin = make_user(db_session, UserRole.ADMIN)
    recipe = make_recipe(db_session, trainer)

    r = client.post("/api/meal-plans", json=_plan_body([recipe]), headers=auth_headers(trainer))
    assert r.status_code == 402
    error = r.json()["error"]
    assert error["code"] == "TIER_LIMIT_REACHED"
    assert error["details"] == {"resource": "meal_plans", "limit": 0, "used": 0, "tier": None}

    r = client.post("/api/meal-plans", json=_plan_body([recipe]), headers=auth_headers(admin))
    assert r.status_code == 201


def test_list_plans_scoped_to_trainer(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    other = make_user(db_session, UserRole.TRAINER)
    admin = make_user(db_session, UserRole.ADMIN)
    recipe = make_recipe(db_session, trainer)
    make_meal_plan(db_session, trainer, [recipe], name="Bulk Month")
    make_meal_plan(db_session, trainer, [recipe], name="Lean Week")
    make_meal_plan(db_session, other, [recipe], name="Other Plan")

    r = client.get("/api/meal-plans", headers=auth_headers(trainer))
    assert sorted(p["name"] for p in r.json()) == ["Bulk Month", "Lean Week"]

    r = client.get("/api/meal-plans", params={"search": "lean"}, headers=auth_headers(trainer))
    assert [p["name"] for p in r.json()] == ["Lean Week"]

    r = client.get("/api/meal-plans", headers=auth_headers(admin))
    assert len(r.json()) == 3


def test_plan_access_rules(db_session):
    """
    Verifies:
    - The owner and an assigned customer can read the plan
    - Other trainers and unassigned customers get 404
    - Other trainers get 403 when modifying
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    other = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    stranger = make_user(db_session)
    plan = make_meal_plan(db_session, trainer, [make_recipe(db_session, trainer)])
    make_assignment(db_session, plan, customer)

    url = f"/api/meal-plans/{plan.id}"
    assert client.get(url, headers=auth_headers(trainer)).status_code == 200
    assert client.get(url, headers=auth_headers(customer)).status_code == 200
    assert client.get(url, headers=auth_headers(other)).status_code == 404
    assert client.get(url, headers=auth_headers(stranger)).status_code == 404
    assert client.patch(url, json={"name": "x"}, headers=auth_headers(other)).status_code == 403
    assert client.delete(url, headers=auth_headers(other)).status_code == 403
    assert client.get(f"/api/meal-plans/{uuid.uuid4()}", headers=auth_headers(trainer)).status_code == 404


def test_update_plan_replaces_days(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    oats = make_recipe(db_session, trainer, name="Oats", meal_types=["breakfast"])
    bowl = make_recipe(db_session, trainer, name="Bowl", meal_types=["lunch"])
    plan = make_meal_plan(db_session, trainer, [oats], days=3)

    body = {"name": "Renamed", "days": _plan_body([oats, bowl], days=1)["days"]}
    r = client.patch(f"/api/meal-plans/{plan.id}", json=body, headers=auth_headers(trainer))
    assert r.status_code == 200
    data = r.json()
    assert data["name"] == "Renamed"
    assert data["duration_days"] == 1
    assert data["meals_per_day"] == 2
    assert [m["recipe_name"] for m in data["days"][0]["meals"]] == ["Oats", "Bowl"]


def test_update_plan_metadata_only_keeps_days(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    plan = make_meal_plan(db_session, trainer, [make_recipe(db_session, trainer)], days=2)

    r = client.patch(
        f"/api/meal-plans/{plan.id}",
        json={"notes": "Drink more water", "is_template": True},
        headers=auth_headers(trainer),
    )
    assert r.status_code == 200
    assert r.json()["is_template"] is True
    assert r.json()["notes"] == "Drink more water"
    assert len(r.json()["days"]) == 2


def test_delete_plan(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    plan = make_meal_plan(db_session, trainer, [make_recipe(db_session, trainer)])
    headers = auth_headers(trainer)

    assert client.delete(f"/api/meal-plans/{plan.id}", headers=headers).status_code == 204
    assert client.get(f"/api/meal-plans/{plan.id}", headers=headers).status_code == 404


# =============================================================================
# GENERATION
# =============================================================================


def _generation_pool(db, trainer):
    return {
        "a": make_recipe(db, trainer, name="Egg Scramble", meal_types=["breakfast"], calories=400),
        "b": make_recipe(db, trainer, name="Protein Pancakes", meal_types=["breakfast"], calories=600),
        "c": make_recipe(db, trainer, name="Chicken Wrap", meal_types=["lunch"], calories=500),
        "d": make_recipe(db, trainer, name="Beef Stew", meal_types=["dinner"], calories=700),
        "e": make_recipe(db, trainer, name="Salmon Plate", meal_types=["dinner"], calories=550),
    }


def test_generate_plan_picks_closest_unused_recipes(db_session):
    """
    Verifies:
    - Slots run breakfast, lunch, dinner
    - Each slot takes the closest calories to target / meals_per_day
    - Recipes not yet used win over repeats
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    _generation_pool(db_session, trainer)
    body = {
        "name": "Auto Week",
        "fitness_goal": "maintenance",
        "daily_calorie_target": 1800,
        "days": 2,
        "meals_per_day": 3,
    }

    r = client.post("/api/meal-plans/generate", json=body, headers=auth_headers(trainer))
    assert r.status_code == 201
    plan = r.json()
    assert plan["id"] is not None
    day1 = [(m["meal_type"], m["recipe_name"]) for m in plan["days"][0]["meals"]]
    day2 = [(m["meal_type"], m["recipe_name"]) for m in plan["days"][1]["meals"]]
    assert day1 == [
        ("breakfast", "Protein Pancakes"),
        ("lunch", "Chicken Wrap"),
        ("dinner", "Salmon Plate"),
    ]
    assert day2 == [
        ("breakfast", "Egg Scramble"),
        ("lunch", "Chicken Wrap"),
        ("dinner", "Beef Stew"),
    ]


def test_generate_preview_is_not_saved(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    _generation_pool(db_session, trainer)
    body = {
        "name": "Preview",
        "fitness_goal": "maintenance",
        "daily_calorie_target": 2000,
        "days": 1,
        "meals_per_day": 4,
        "save": False,
    }
    headers = auth_headers(trainer)

    r = client.post("/api/meal-plans/generate", json=body, headers=headers)
    assert r.status_code == 200
    plan = r.json()
    assert plan["id"] is None
    assert [m["meal_type"] for m in plan["days"][0]["meals"]] == [
        "breakfast",
        "lunch",
        "dinner",
        "snack",
    ]
    assert client.get("/api/meal-plans", headers=headers).json() == []


def test_generate_without_matching_recipes(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    _generation_pool(db_session, trainer)
    body = {
        "name": "Vegan",
        "fitness_goal": "maintenance",
        "daily_calorie_target": 2000,
        "dietary_tag": "vegan",
    }
    r = client.post("/api/meal-plans/generate", json=body, headers=auth_headers(trainer))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "NO_RECIPES_AVAILABLE"


def test_generate_validates_calorie_range(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    body = {"name": "Tiny", "fitness_goal": "cut", "daily_calorie_target": 500}
    r = client.post("/api/meal-plans/generate", json=body, headers=auth_headers(trainer))
    assert r.status_code == 422


def test_generate_service_raises_without_candidates(db_session):
    trainer = make_user(db_session, UserRole.TRAINER)
    request = MealPlanGenerateRequest(
        name="Empty", fitness_goal="cut", daily_calorie_target=1500, save=False
    )
    with pytest.raises(ServiceValidationError):
        MealPlanService.generate_plan(db_session, trainer, request)


# =============================================================================
# NUTRITION
# =============================================================================


def test_nutrition_totals_and_average(db_session):
    """
    Verifies:
    - Day totals sum recipe macros scaled by servings
    - The daily average divides by the number of days
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)
    oats = make_recipe(db_session, trainer, name="Oats", calories=400, protein=30, carbs=50, fat=10)
    bowl = make_recipe(db_session, trainer, name="Bowl", calories=600, protein=45, carbs=60, fat=15)
    plan = make_meal_plan(db_session, trainer, [oats, bowl], days=2, servings=2)
    make_assignment(db_session, plan, customer)

    r = client.get(f"/api/meal-plans/{plan.id}/nutrition", headers=auth_headers(customer))
    assert r.status_code == 200
    data = r.json()
    assert data["meal_plan_id"] == str(plan.id)
    assert data["days"][0] == {
        "day_number": 1,
        "calories": 2000.0,
        "protein_grams": 150.0,
        "carbs_grams": 220.0,
        "fat_grams": 50.0,
    }
    assert data["daily_average"]["calories"] == 2000.0
