"""Recipe generation and cooking guidance with Google Gemini."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from ..models import Recipe
from ..vision import strip_fences
from . import RecipeService, RecipeServiceError

if TYPE_CHECKING:
    from ..models import Ingredient, UserProfile

logger = logging.getLogger(__name__)

_GENERATE_PROMPT = """\
You are a professional chef AI assistant. Generate creative, practical recipes based on available ingredients.

AVAILABLE INGREDIENTS:
{inventory}

USER PREFERENCES:
- Dietary Restrictions: {restrictions}
- Nutrition Goals: {goals}

INSTRUCTIONS:
1. Generate 5-7 recipe ideas that can be made with these ingredients
2. Categorize recipes as:
   - "The Scavenger": Uses ONLY available ingredients (no shopping needed)
   - "The Upgrader": Requires 1-2 additional common ingredients
3. For each recipe, provide:
   - Title (creative and appetizing)
   - Brief description
   - List of missing ingredients (if any)
   - Step-by-step cooking instructions
   - Match score (0.0-1.0) based on ingredient availability
   - Estimated time
   - Servings
4. Respect ALL dietary restrictions strictly
5. Prioritize recipes with higher match scores

RESPOND ONLY WITH VALID JSON in this exact format:
{{
  "recipes": [
    {{
      "title": "Recipe Name",
      "description": "Brief description",
      "missingIngredients": [
        {{"name": "ingredient name", "estimatedQuantity": "quantity", "confidence": 1.0}}
      ],
      "steps": ["Step 1", "Step 2"],
      "matchScore": 0.95,
      "estimatedTime": "30 minutes",
      "servings": 4
    }}
  ]
}}
"""

_SCALE_PROMPT = """\
Scale this recipe based on a limiting ingredient quantity.

ORIGINAL RECIPE:
Title: {title}
Servings: {servings}

STEPS:
{steps}

LIMITING INGREDIENT:
{ingredient}: I only have {quantity}

INSTRUCTIONS:
1. Calculate the scaled portions for all ingredients
2. Adjust cooking times if necessary
3. Update servings count
4. Maintain the same step structure but update quantities

RESPOND ONLY WITH VALID JSON:
{{
  "title": "Recipe Name",
  "description": "Updated description with new servings",
  "missingIngredients": [],
  "steps": ["Updated steps with scaled quantities"],
  "matchScore": 0.95,
  "estimatedTime": "updated time",
  "servings": 2
}}
"""

_GUIDANCE_PROMPT = """\
You are a cooking assistant providing real-time guidance.

CURRENT STEP: {step}
"""

_GUIDANCE_INSTRUCTIONS = """
Provide brief, actionable guidance for this cooking step.
If the context indicates the step is complete, confirm it.
If there are issues, suggest corrections.
Keep response under 50 words.
"""


class GeminiRecipeService(RecipeService):
    """Generate recipes and cooking guidance with Gemini."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "gemini-2.0-flash",
        temperature: float = 0.7,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._temperature = temperature

    def _require_key(self) -> None:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not configured. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

    async def generate_recipes(
        self, inventory: list[Ingredient], profile: UserProfile
    ) -> list[Recipe]:
        self._require_key()
        prompt = build_generation_prompt(inventory, profile)
        text = await self._generate(
            prompt,
            {
                "temperature": self._temperature,
                "top_k": 40,
                "top_p": 0.95,
                "max_output_tokens": 8192,
            },
        )
        recipes = _parse_recipes(text)
        logger.info("Generated %d recipes", len(recipes))
        return recipes

    async def scale_recipe(
        self, recipe: Recipe, ingredient: Ingredient, quantity: str
    ) -> Recipe:
        self._require_key()
        prompt = _SCALE_PROMPT.format(
            title=recipe.title,
            servings=recipe.servings or 4,
            steps="\n".join(f"{i}. {s}" for i, s in enumerate(recipe.steps, 1)),
            ingredient=ingredient.name,
            quantity=quantity,
        )
        text = await self._generate(prompt)
        recipes = _parse_recipes(text)
        if not recipes:
            return recipe
        scaled = recipes[0]
        # Keep the identity of the recipe being scaled
        scaled.id = recipe.id
        return scaled

    async def provide_cooking_guidance(
        self, step: str, context: str | None = None
    ) -> str:
        self._require_key()
        prompt = _GUIDANCE_PROMPT.format(step=step)
        if context:
            prompt += f"\nVISUAL CONTEXT: {context}\n"
        prompt += _GUIDANCE_INSTRUCTIONS
        text = await self._generate(prompt)
        return text.strip()

    async def _generate(self, prompt: str, generation_config: dict | None = None) -> str:
        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(
            self._model, generation_config=generation_config
        )
        try:
            response = await model.generate_content_async(prompt)
            return response.text
        except Exception as e:
            raise RecipeServiceError(f"Gemini request failed: {e}") from e


def build_generation_prompt(
    inventory: list[Ingredient], profile: UserProfile
) -> str:
    inventory_list = "\n".join(
        f"- {i.name}: {i.estimated_quantity}" for i in inventory
    )
    restrictions = (
        ", ".join(profile.dietary_restrictions)
        if profile.dietary_restrictions
        else "None"
    )
    goals = profile.nutrition_goals or "No specific goals"
    return _GENERATE_PROMPT.format(
        inventory=inventory_list, restrictions=restrictions, goals=goals
    )


def _parse_recipes(text: str) -> list[Recipe]:
    """Parse recipes from Gemini's response.

    Accepts ``{"recipes": [...]}``, a bare list, or a single recipe object.
    """
    try:
        data = json.loads(strip_fences(text))
    except json.JSONDecodeError as e:
        raise RecipeServiceError(f"Failed to parse recipe response: {e}") from e

    if isinstance(data, dict):
        items = data["recipes"] if "recipes" in data else [data]
    elif isinstance(data, list):
        items = data
    else:
        raise RecipeServiceError("Recipe response is not an object or a list")

    try:
        return [Recipe.from_dict(item) for item in items]
    except (KeyError, TypeError, ValueError) as e:
        raise RecipeServiceError(f"Malformed recipe in response: {e}") from e
