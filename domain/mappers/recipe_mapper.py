"""
Recipe domain mappers.
Handles transformation between ORM models and DTOs for recipes.
"""

from domain.models import Recipe
from domain.schemas.recipe_schemas import RecipeResponse, RecipeIngredientResponse


class RecipeMapper:
    """Mapper for recipe transformations."""

    @staticmethod
    def to_response(recipe: Recipe) -> RecipeResponse:
        """
        Convert ORM Recipe to RecipeResponse DTO.

        Args:
            recipe: Recipe ORM instance with ingredient links loaded

        Returns:
            RecipeResponse DTO with ingredient names and categories resolved
        """
        ingredients = [
            RecipeIngredientResponse(
                ingredient_id=link.ingredient_id,
                name=link.ingredient.name,
                category=link.ingredient.category,
                quantity=float(link.quantity or 0),
                unit=link.unit,
                position=link.position,
            )
            for link in recipe.ingredients
        ]

        return RecipeResponse(
            id=recipe.id,
            trainer_id=recipe.trainer_id,
            name=recipe.name,
            description=recipe.description,
            instructions=recipe.instructions or "",
            meal_types=list(recipe.meal_types or []),
            dietary_tags=list(recipe.dietary_tags or []),
            tags=list(recipe.tags or []),
            prep_time_minutes=recipe.prep_time_minutes or 0,
            cook_time_minutes=recipe.cook_time_minutes or 0,
            servings=recipe.servings or 1,
            calories_kcal=recipe.calories_kcal or 0,
            protein_grams=float(recipe.protein_grams or 0),
            carbs_grams=float(recipe.carbs_grams or 0),
            fat_grams=float(recipe.fat_grams or 0),
            image_url=recipe.image_url,
            is_public=bool(recipe.is_public),
            is_approved=bool(recipe.is_approved),
            source=recipe.source,
            ingredients=ingredients,
            created_at=recipe.created_at,
            updated_at=recipe.updated_at,
        )
