#!/usr/bin/env python3
"""
Seed a demo admin, trainer and customer with a few recipes and one
assigned meal plan. Existing demo users are reused, so the script is
idempotent for accounts; recipes and the plan are only created once.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("seed_demo_data")

DEMO_RECIPES = [
    {
        "name": "Protein Oats",
        "description": "Overnight oats with whey and berries",
        "instructions": "1. Mix oats, milk and whey\n2. Top with berries and chill overnight",
        "meal_types": ["breakfast"],
        "dietary_tags": ["vegetarian"],
        "prep_time_minutes": 5,
        "servings": 1,
        "calories_kcal": 450,
        "protein_grams": 35,
        "carbs_grams": 55,
        "fat_grams": 9,
        "ingredients": [
            {"name": "rolled oats", "quantity": 80, "unit": "g"},
            {"name": "milk", "quantity": 250, "unit": "ml"},
            {"name": "whey protein", "quantity": 30, "unit": "g"},
            {"name": "blueberries", "quantity": 1, "unit": "cup"},
        ],
    },
    {
        "name": "Chicken Rice Bowl",
        "description": "Grilled chicken breast with rice and broccoli",
        "instructions": "1. Cook the rice\n2. Grill the chicken\n3. Steam the broccoli and serve",
        "meal_types": ["lunch", "dinner"],
        "dietary_tags": ["high-protein", "gluten-free"],
        "prep_time_minutes": 15,
        "cook_time_minutes": 20,
        "servings": 2,
        "calories_kcal": 620,
        "protein_grams": 48,
        "carbs_grams": 70,
        "fat_grams": 12,
        "ingredients": [
            {"name": "chicken breast", "quantity": 400, "unit": "g"},
            {"name": "white rice", "quantity": 200, "unit": "g"},
            {"name": "broccoli", "quantity": 1, "unit": "lb"},
            {"name": "olive oil", "quantity": 1, "unit": "tbsp"},
        ],
    },
    {
        "name": "Salmon with Sweet Potato",
        "description": "Baked salmon fillet with roasted sweet potato",
        "instructions": "1. Roast the sweet potato\n2. Bake the salmon for 12 minutes",
        "meal_types": ["dinner"],
        "dietary_tags": ["gluten-free", "dairy-free"],
        "prep_time_minutes": 10,
        "cook_time_minutes": 30,
        "servings": 1,
        "calories_kcal": 580,
        "protein_grams": 40,
        "carbs_grams": 45,
        "fat_grams": 24,
        "ingredients": [
            {"name": "salmon fillet", "quantity": 180, "unit": "g"},
            {"name": "sweet potato", "quantity": 1, "unit": "piece"},
            {"name": "olive oil", "quantity": 2, "unit": "tsp"},
        ],
    },
    {
        "name": "Greek Yogurt Parfait",
        "description": "Yogurt layered with granola and honey",
        "instructions": "1. Layer yogurt and granola\n2. Drizzle with honey",
        "meal_types": ["snack", "breakfast"],
        "dietary_tags": ["vegetarian"],
        "prep_time_minutes": 3,
        "servings": 1,
        "calories_kcal": 300,
        "protein_grams": 20,
        "carbs_grams": 38,
        "fat_grams": 7,
        "ingredients": [
            {"name": "greek yogurt", "quantity": 200, "unit": "g"},
            {"name": "granola", "quantity": 40, "unit": "g"},
            {"name": "honey", "quantity": 1, "unit": "tbsp"},
        ],
    },
]


def get_or_create_user(db, email: str, password: str, role, name: str, trainer=None):
    from app.security import hash_password
    from domain.models import User
    from repositories import UserRepository

    repo = UserRepository(db)
    user = repo.get_by_email(email)
    if user is not None:
        logger.info("Reusing %s account %s", role.value, email)
        return user
    user = repo.add(
        User(
            email=email,
            password_hash=hash_password(password),
            role=role,
            name=name,
            trainer_id=trainer.id if trainer else None,
            is_active=True,
        )
    )
    db.commit()
    logger.info("Created %s account %s", role.value, email)
    return user


def seed(db, password: str) -> None:
    from domain.enums import UserRole
    from domain.schemas import AssignmentCreate, MealPlanCreate, RecipeCreate
    from repositories import AssignmentRepository, MealPlanRepository
    from services import CustomerService, MealPlanService, RecipeService

    admin = get_or_create_user(db, "admin@fitmeal-demo.com", password, UserRole.ADMIN, "Demo Admin")
    trainer = get_or_create_user(
        db, "trainer@fitmeal-demo.com", password, UserRole.TRAINER, "Demo Trainer"
    )
    customer = get_or_create_user(
        db, "customer@fitmeal-demo.com", password, UserRole.CUSTOMER, "Demo Customer", trainer
    )

    if MealPlanRepository(db).count_for_trainer(trainer.id):
        logger.info("Demo meal plan already exists, skipping recipes and plan")
        return

    recipes = {}
    for data in DEMO_RECIPES:
        recipe = RecipeService.create_recipe(
            db, trainer, RecipeCreate(is_public=True, **data)
        )
        RecipeService.set_approval(db, admin, recipe.id, True)
        recipes[recipe.name] = recipe
    logger.info("Created %d recipes", len(recipes))

    days = []
    for day_number in range(1, 8):
        dinner = "Salmon with Sweet Potato" if day_number % 2 else "Chicken Rice Bowl"
        days.append(
            {
                "day_number": day_number,
                "meals": [
                    {"recipe_id": recipes["Protein Oats"].id, "meal_type": "breakfast"},
                    {"recipe_id": recipes["Chicken Rice Bowl"].id, "meal_type": "lunch"},
                    {"recipe_id": recipes["Greek Yogurt Parfait"].id, "meal_type": "snack"},
                    {"recipe_id": recipes[dinner].id, "meal_type": "dinner"},
                ],
            }
        )
    plan = MealPlanService.create_plan(
        db,
        trainer,
        MealPlanCreate(
            name="Lean Week",
            description="Seven days of high-protein meals",
            fitness_goal="weight_loss",
            daily_calorie_target=1900,
            protein_target_g=140,
            tags=["demo"],
            days=days,
        ),
    )
    logger.info("Created meal plan %s", plan.id)

    if not AssignmentRepository(db).list_for_customer(customer.id):
        CustomerService.assign_meal_plan(
            db, trainer, customer.id, AssignmentCreate(meal_plan_id=plan.id)
        )
        logger.info("Assigned meal plan to %s", customer.email)


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Seed FitMeal Pro with demo data.")
    p.add_argument(
        "--password",
        default="DemoPass123!",
        help="Password for the demo admin, trainer and customer accounts",
    )
    args = p.parse_args(argv)

    from domain.models.database import SessionLocal, init_database

    init_database()
    db = SessionLocal()
    try:
        seed(db, args.password)
    finally:
        db.close()

    logger.info("=" * 60)
    logger.info("Demo data ready. Sign in with <role>@fitmeal-demo.com / %s", args.password)
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
