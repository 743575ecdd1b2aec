"""
Tests for the cascade rules of the data model.
"""

from datetime import timedelta

from domain.enums import SubscriptionStatus, TierLevel, UserRole
from domain.models import (
    CustomerInvitation,
    CustomerMealPlan,
    MealPlan,
    MealPlanDay,
    MealPlanMeal,
    PaymentLog,
    ProgressMeasurement,
    Recipe,
    TrainerSubscription,
    User,
)
from domain.models.database import utcnow
from repositories import UserRepository

from test_fixtures import (
    db_session,
    make_assignment,
    make_meal_plan,
    make_recipe,
    make_user,
)


def test_deleting_trainer_cascades(db_session):
    """
    Verifies:
    - The trainer's meal plans, days, meals and assignments are deleted
    - Their invitations and subscription are deleted
    - Their customers stay, unlinked from the trainer, with their own data
    - Their recipes stay as ownerless recipes
    - Payment history stays with no trainer
    - Another trainer's data is untouched
    """
    trainer = make_user(db_session, UserRole.TRAINER)
    other = make_user(db_session, UserRole.TRAINER)
    customer = make_user(db_session, trainer=trainer)

    recipe = make_recipe(db_session, trainer, name="Turkey Chili")
    other_recipe = make_recipe(db_session, other, name="Tuna Salad")
    plan = make_meal_plan(db_session, trainer, [recipe], days=2)
    other_plan = make_meal_plan(db_session, other, [recipe, other_recipe])
    make_assignment(db_session, plan, customer)

    db_session.add_all(
        [
            CustomerInvitation(
                trainer_id=trainer.id,
                customer_email="prospect@example.com",
                token="invite-token",
                expires_at=utcnow() + timedelta(days=7),
            ),
            TrainerSubscription(
                trainer_id=trainer.id,
                tier=TierLevel.PROFESSIONAL,
                status=SubscriptionStatus.ACTIVE,
            ),
            PaymentLog(
                trainer_id=trainer.id,
                event_type="checkout.session.completed",
                amount=299,
                status="succeeded",
            ),
            ProgressMeasurement(
                customer_id=customer.id,
                measurement_date=utcnow().date(),
                weight_kg=82.5,
            ),
        ]
    )
    db_session.commit()
    trainer_id, customer_id, recipe_id = trainer.id, customer.id, recipe.id

    assert UserRepository(db_session).delete(trainer_id) is True
    db_session.expire_all()

    assert db_session.get(User, trainer_id) is None
    assert [p.id for p in db_session.query(MealPlan).all()] == [other_plan.id]
    assert db_session.query(MealPlanDay).count() == 1
    assert db_session.query(MealPlanMeal).count() == 2
    assert db_session.query(CustomerMealPlan).count() == 0
    assert db_session.query(CustomerInvitation).count() == 0
    assert db_session.query(TrainerSubscription).count() == 0

    customer = db_session.get(User, customer_id)
    assert customer is not None
    assert customer.trainer_id is None
    assert db_session.query(ProgressMeasurement).filter_by(customer_id=customer_id).count() == 1

    orphaned = db_session.get(Recipe, recipe_id)
    assert orphaned is not None
    assert orphaned.trainer_id is None
    assert db_session.get(Recipe, other_recipe.id).trainer_id == other.id

    payment = db_session.query(PaymentLog).one()
    assert payment.trainer_id is None
