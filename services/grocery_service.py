"""
Grocery list aggregation for meal plans.

Recipe ingredient quantities are scaled to the servings planned for each meal,
merged per ingredient when their units convert into each other, and sorted for
a shopping trip: by store section, then priority, then name.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import ROUND_CEILING, Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from domain.models import MealPlan

logger = logging.getLogger("fitmeal.grocery")

CATEGORY_ORDER = ["meat", "dairy", "produce", "frozen", "pantry", "spices", "beverages", "snacks"]
PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

# unit alias -> (base unit, factor to base)
UNIT_CONVERSIONS: Dict[str, Tuple[str, float]] = {
    "g": ("g", 1.0),
    "gram": ("g", 1.0),
    "grams": ("g", 1.0),
    "kg": ("g", 1000.0),
    "kilogram": ("g", 1000.0),
    "kilograms": ("g", 1000.0),
    "oz": ("g", 28.3495),
    "ounce": ("g", 28.3495),
    "ounces": ("g", 28.3495),
    "lb": ("g", 453.592),
    "lbs": ("g", 453.592),
    "pound": ("g", 453.592),
    "pounds": ("g", 453.592),
    "ml": ("ml", 1.0),
    "milliliter": ("ml", 1.0),
    "milliliters": ("ml", 1.0),
    "l": ("ml", 1000.0),
    "liter": ("ml", 1000.0),
    "liters": ("ml", 1000.0),
    "litre": ("ml", 1000.0),
    "tsp": ("ml", 4.92892),
    "teaspoon": ("ml", 4.92892),
    "teaspoons": ("ml", 4.92892),
    "tbsp": ("ml", 14.7868),
    "tablespoon": ("ml", 14.7868),
    "tablespoons": ("ml", 14.7868),
    "cup": ("ml", 236.588),
    "cups": ("ml", 236.588),
    "piece": ("piece", 1.0),
    "pieces": ("piece", 1.0),
    "pc": ("piece", 1.0),
    "pcs": ("piece", 1.0),
    "whole": ("piece", 1.0),
}


def to_base_unit(quantity: float, unit: Optional[str]) -> Tuple[float, Optional[str]]:
    """Convert to g, ml or piece. Missing units count pieces; unknown units pass through."""
    key = (unit or "piece").strip().lower().rstrip(".")
    if key in UNIT_CONVERSIONS:
        base, factor = UNIT_CONVERSIONS[key]
        return quantity * factor, base
    return quantity, key


def priority_for(category: str) -> str:
    if category in ("meat", "dairy"):
        return "high"
    if category in ("spices", "pantry"):
        return "low"
    return "medium"


def round_up(quantity: float) -> float:
    """Round up to 2 decimals, ignoring float noise below 1e-6"""
    value = Decimal(repr(round(quantity, 6)))
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_CEILING))


@dataclass
class _Line:
    ingredient_id: UUID
    name: str
    category: str
    unit: Optional[str]
    quantity: float = 0.0
    recipes: List[str] = field(default_factory=list)


class GroceryService:
    @staticmethod
    def build_grocery_list(plan: MealPlan) -> dict:
        lines: "OrderedDict[Tuple[UUID, Optional[str]], _Line]" = OrderedDict()

        for day in sorted(plan.days, key=lambda d: d.day_number):
            for meal in sorted(day.meals, key=lambda m: m.position):
                recipe = meal.recipe
                scale = float(meal.servings or 1) / float(recipe.servings or 1)
                for link in recipe.ingredients:
                    quantity, unit = to_base_unit(float(link.quantity or 0) * scale, link.unit)
                    ingredient = link.ingredient
                    key = (ingredient.id, unit)
                    line = lines.get(key)
                    if line is None:
                        line = lines[key] = _Line(
                            ingredient_id=ingredient.id,
                            name=ingredient.name,
                            category=ingredient.category,
                            unit=unit,
                        )
                    line.quantity += quantity
                    if recipe.name not in line.recipes:
                        line.recipes.append(recipe.name)

        items = [
            {
                "ingredient_id": line.ingredient_id,
                "name": line.name,
                "category": line.category,
                "quantity": round_up(line.quantity),
                "unit": line.unit,
                "priority": priority_for(line.category),
                "recipes": line.recipes,
            }
            for line in lines.values()
        ]
        items.sort(
            key=lambda item: (
                CATEGORY_ORDER.index(item["category"])
                if item["category"] in CATEGORY_ORDER
                else len(CATEGORY_ORDER),
                PRIORITY_ORDER[item["priority"]],
                item["name"],
            )
        )
        logger.debug("grocery_list_built meal_plan_id=%s items=%d", plan.id, len(items))
        return {"meal_plan_id": plan.id, "total_items": len(items), "items": items}
