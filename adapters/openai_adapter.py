"""OpenAI adapter for structured recipe generation."""

import json
import logging
from typing import Any, Dict, Optional

from openai import OpenAI, OpenAIError

from app.config import settings
from app.exceptions import ExternalServiceError

logger = logging.getLogger("fitmeal.openai")

_client: Optional[OpenAI] = None

SYSTEM_PROMPT = (
    "You are a sports nutritionist who writes recipes for fitness clients. "
    "Answer with a single JSON object and nothing else."
)

RECIPE_JSON_SHAPE = (
    '{"name": str, "description": str, "instructions": str, '
    '"meal_types": ["breakfast"|"lunch"|"dinner"|"snack"], "dietary_tags": [str], '
    '"prep_time_minutes": int, "cook_time_minutes": int, "servings": int, '
    '"calories_kcal": int, "protein_grams": number, "carbs_grams": number, '
    '"fat_grams": number, "ingredients": [{"name": str, "quantity": number, "unit": str}]}'
)


def is_configured() -> bool:
    return bool(settings.openai_api_key)


def _get_client() -> OpenAI:
    """Lazy init OpenAI client."""
    global _client
    if _client is None:
        if not is_configured():
            raise ExternalServiceError("OpenAI API key is not configured")
        # Transport-level retries are handled by the generation loop
        _client = OpenAI(api_key=settings.openai_api_key, max_retries=0)
    return _client


def close():
    global _client
    try:
        if _client is not None:
            _client.close()
    finally:
        _client = None


def build_recipe_prompt(
    meal_type: Optional[str] = None,
    dietary_tags: Optional[list] = None,
    fitness_goal: Optional[str] = None,
    target_calories: Optional[int] = None,
    avoid_names: Optional[list] = None,
) -> str:
    lines = ["Create one healthy recipe."]
    if meal_type:
        lines.append(f"Meal type: {meal_type}.")
    if dietary_tags:
        lines.append(f"It must be: {', '.join(dietary_tags)}.")
    if fitness_goal:
        lines.append(f"It should support the fitness goal: {fitness_goal}.")
    if target_calories:
        lines.append(f"Aim for about {target_calories} kcal per serving.")
    if avoid_names:
        lines.append(f"Do not repeat these recipes: {', '.join(avoid_names)}.")
    lines.append("Nutrition values are per serving. Ingredient quantities are for the full recipe.")
    lines.append(f"Return JSON shaped like: {RECIPE_JSON_SHAPE}")
    return "\n".join(lines)


def generate_recipe_json(prompt: str) -> Dict[str, Any]:
    """Ask the model for one recipe and return the decoded JSON object.

    Raises:
        ExternalServiceError: API failure or a reply that is not a JSON object
    """
    try:
        response = _get_client().chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=0.8,
        )
    except OpenAIError as exc:
        logger.warning("openai_request_failed error=%s", exc)
        raise ExternalServiceError("Recipe generation request failed") from exc

    content = response.choices[0].message.content or ""
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ExternalServiceError("Recipe generation returned invalid JSON") from exc
    if not isinstance(payload, dict):
        raise ExternalServiceError("Recipe generation returned an unexpected payload")
    return payload
