"""Ingredient service - master ingredient data, name normalization and categories."""

import logging
import re
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import ConflictError, NotFoundError, ServiceValidationError
from domain.models import Ingredient
from repositories import IngredientRepository

logger = logging.getLogger("fitmeal.ingredient")

INGREDIENT_CATEGORIES = {
    # Produce
    "onion": "produce", "garlic": "produce", "clove": "produce",
    "tomato": "produce", "bell pepper": "produce",
    "broccoli": "produce", "spinach": "produce", "lettuce": "produce",
    "carrot": "produce", "celery": "produce", "potato": "produce",
    "sweet potato": "produce", "avocado": "produce",
    "lime": "produce", "lemon": "produce", "apple": "produce", "banana": "produce",
    "mushroom": "produce", "cilantro": "produce", "parsley": "produce",
    "basil": "produce", "ginger": "produce", "cucumber": "produce",
    "zucchini": "produce", "squash": "produce", "corn": "produce",
    "cabbage": "produce", "cauliflower": "produce", "asparagus": "produce",
    "green beans": "produce", "beans": "produce", "berries": "produce",
    "blueberries": "produce", "strawberries": "produce",
    # Meat and seafood
    "chicken": "meat", "chicken breast": "meat", "chicken thigh": "meat",
    "beef": "meat", "ground beef": "meat", "steak": "meat",
    "pork": "meat", "pork chop": "meat", "pork tenderloin": "meat",
    "turkey": "meat", "ground turkey": "meat", "salmon": "meat", "tuna": "meat", "shrimp": "meat",
    "bacon": "meat", "sausage": "meat", "ham": "meat",
    "fish": "meat", "cod": "meat", "tilapia": "meat", "lamb": "meat", "veal": "meat",
    # Dairy and eggs
    "milk": "dairy", "cheese": "dairy", "cheddar": "dairy", "mozzarella": "dairy",
    "parmesan": "dairy", "swiss": "dairy",
    "yogurt": "dairy", "greek yogurt": "dairy", "plain yogurt": "dairy",
    "butter": "dairy", "cream": "dairy", "heavy cream": "dairy", "sour cream": "dairy",
    "cream cheese": "dairy", "cottage cheese": "dairy",
    "egg": "dairy", "egg whites": "dairy",
    # Pantry staples
    "rice": "pantry", "brown rice": "pantry", "white rice": "pantry",
    "pasta": "pantry", "spaghetti": "pantry", "penne": "pantry",
    "flour": "pantry", "all-purpose flour": "pantry", "wheat flour": "pantry",
    "sugar": "pantry", "brown sugar": "pantry",
    "salt": "pantry", "pepper": "pantry", "black pepper": "pantry",
    "olive oil": "pantry", "vegetable oil": "pantry", "coconut oil": "pantry",
    "vinegar": "pantry", "balsamic vinegar": "pantry", "apple cider vinegar": "pantry",
    "soy sauce": "pantry", "honey": "pantry", "vanilla": "pantry",
    "baking powder": "pantry", "baking soda": "pantry",
    "breadcrumbs": "pantry", "panko": "pantry",
    "quinoa": "pantry", "oats": "pantry", "rolled oats": "pantry",
    "bread": "pantry", "whole wheat bread": "pantry", "tortilla": "pantry",
    "tomato sauce": "pantry", "pasta sauce": "pantry", "marinara": "pantry",
    "peanut butter": "pantry", "protein powder": "pantry",
    # Spices and herbs
    "oregano": "spices", "thyme": "spices", "rosemary": "spices",
    "cumin": "spices", "paprika": "spices", "chili powder": "spices",
    "garlic powder": "spices", "onion powder": "spices",
    "italian seasoning": "spices", "bay leaves": "spices",
    "cinnamon": "spices", "nutmeg": "spices",
    # Beverages
    "water": "beverages", "juice": "beverages", "orange juice": "beverages",
    "coffee": "beverages", "tea": "beverages",
    "almond milk": "beverages", "coconut milk": "beverages",
    "soy milk": "beverages", "oat milk": "beverages",
    # Frozen
    "frozen vegetables": "frozen", "frozen fruit": "frozen",
    "frozen berries": "frozen", "ice cream": "frozen",
    # Snacks
    "nuts": "snacks", "almonds": "snacks", "walnuts": "snacks",
    "peanuts": "snacks", "cashews": "snacks",
    "chips": "snacks", "crackers": "snacks", "granola": "snacks", "trail mix": "snacks",
}

INGREDIENT_VARIATIONS = {
    "tomatoes": "tomato",
    "onions": "onion",
    "carrots": "carrot",
    "peppers": "pepper",
    "potatoes": "potato",
    "sweet potatoes": "sweet potato",
    "avocados": "avocado",
    "limes": "lime",
    "lemons": "lemon",
    "apples": "apple",
    "bananas": "banana",
    "mushrooms": "mushroom",
    "cucumbers": "cucumber",
    "eggs": "egg",
    "cloves": "clove",
    "tortillas": "tortilla",
    "chicken breasts": "chicken breast",
    "chicken thighs": "chicken thigh",
    "bell peppers": "bell pepper",
    "ground beef": "ground beef",
    "lean ground beef": "ground beef",
    "extra lean ground beef": "ground beef",
    "ground turkey": "ground turkey",
    "lean ground turkey": "ground turkey",
    "frozen vegetables": "frozen vegetables",
    "frozen fruit": "frozen fruit",
    "frozen berries": "frozen berries",
    "whole wheat bread": "whole wheat bread",
    "large egg": "egg",
    "large eggs": "egg",
    "medium onion": "onion",
    "large onion": "onion",
    "small onion": "onion",
    "extra virgin olive oil": "olive oil",
    "virgin olive oil": "olive oil",
    "evoo": "olive oil",
    "2% milk": "milk",
    "1% milk": "milk",
    "whole milk": "milk",
    "skim milk": "milk",
}

IGNORE_WORDS = frozenset(
    [
        "fresh", "dried", "frozen", "canned", "organic", "free-range",
        "large", "medium", "small", "extra", "lean", "fat-free",
        "low-fat", "unsalted", "salted", "raw", "cooked",
        "chopped", "diced", "sliced", "minced", "crushed",
        "ground", "grated", "shredded", "whole", "half",
        "boneless", "skinless", "trimmed",
    ]
)

# Keyword fallbacks, checked in order when no table entry matches
CATEGORY_KEYWORDS: List[Tuple[Tuple[str, ...], str]] = [
    (("oil", "vinegar", "sauce", "flour"), "pantry"),
    (("cheese", "milk", "yogurt"), "dairy"),
    (("chicken", "beef", "fish", "meat", "pork", "turkey"), "meat"),
    (("spice", "seasoning", "powder"), "spices"),
    (("frozen",), "frozen"),
    (("juice", "drink"), "beverages"),
]

DEFAULT_CATEGORY = "produce"

_PARENTHETICAL = re.compile(r"\([^)]*\)")
_FILLER = re.compile(r"\b(s|of)\b")
_WHITESPACE = re.compile(r"\s+")


def normalize_ingredient_name(name: str) -> str:
    """
    Reduce an ingredient name to its canonical form.

    "Extra Virgin Olive Oil" -> "olive oil", "2 Large Eggs (beaten)" keeps the
    number but drops the descriptor and parenthetical, "Fresh chopped tomatoes"
    -> "tomato". Falls back to the lower-cased input when nothing is left.
    """
    original = (name or "").strip().lower()
    normalized = _PARENTHETICAL.sub("", original).strip()
    if normalized in INGREDIENT_VARIATIONS:
        return INGREDIENT_VARIATIONS[normalized]

    words = [w for w in normalized.split() if w not in IGNORE_WORDS]
    normalized = _FILLER.sub("", " ".join(words))
    normalized = _WHITESPACE.sub(" ", normalized).strip()
    normalized = INGREDIENT_VARIATIONS.get(normalized, normalized)
    return normalized or original


def _similarity(a: str, b: str) -> float:
    """1.0 exact, 0.9 containment, otherwise word-overlap (Jaccard)"""
    if a == b:
        return 1.0
    if a and b and (a in b or b in a):
        return 0.9
    words_a, words_b = set(a.split()), set(b.split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def categorize_ingredient(name: str) -> str:
    normalized = normalize_ingredient_name(name)
    if normalized in INGREDIENT_CATEGORIES:
        return INGREDIENT_CATEGORIES[normalized]

    # Longest keys first so "chicken breast" wins over "chicken"
    for key in sorted(INGREDIENT_CATEGORIES, key=len, reverse=True):
        if _similarity(normalized, key) >= 0.8:
            return INGREDIENT_CATEGORIES[key]

    for keywords, category in CATEGORY_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


class IngredientService:
    """Business logic for ingredient master data management."""

    @staticmethod
    def get_or_create(
        db: Session, name: str, default_unit: Optional[str] = None
    ) -> Tuple[Ingredient, bool]:
        """
        Get an ingredient by normalized name, creating it when missing.

        Only flushes; the caller commits. Returns (ingredient, created).
        """
        if not name or not name.strip():
            raise ServiceValidationError("Ingredient name is required")

        repo = IngredientRepository(db)
        normalized = normalize_ingredient_name(name)
        ingredient = repo.get_by_name(normalized)
        if ingredient:
            return ingredient, False

        ingredient = repo.add(
            Ingredient(
                name=normalized,
                category=categorize_ingredient(normalized),
                default_unit=default_unit,
            )
        )
        logger.info(
            "ingredient_created name=%s category=%s", ingredient.name, ingredient.category
        )
        return ingredient, True

    @staticmethod
    def create(
        db: Session, name: str, default_unit: Optional[str] = None
    ) -> Tuple[Ingredient, bool]:
        ingredient, created = IngredientService.get_or_create(db, name, default_unit)
        db.commit()
        db.refresh(ingredient)
        return ingredient, created

    @staticmethod
    def search(db: Session, search: Optional[str] = None, limit: int = 50) -> List[Ingredient]:
        return IngredientRepository(db).search(search, limit)

    @staticmethod
    def get_ingredient(db: Session, ingredient_id: UUID) -> Ingredient:
        ingredient = IngredientRepository(db).get_by_id(ingredient_id)
        if not ingredient:
            raise NotFoundError(f"Ingredient {ingredient_id} not found")
        return ingredient

    @staticmethod
    def delete(db: Session, ingredient_id: UUID) -> None:
        repo = IngredientRepository(db)
        ingredient = IngredientService.get_ingredient(db, ingredient_id)
        if repo.is_in_use(ingredient_id):
            raise ConflictError(
                f"Ingredient '{ingredient.name}' is used by recipes",
                code="INGREDIENT_IN_USE",
            )
        repo.remove(ingredient)
        db.commit()
        logger.info("ingredient_deleted ingredient_id=%s", ingredient_id)
