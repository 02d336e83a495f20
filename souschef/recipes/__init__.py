"""Recipe service base class, filters, and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from ..models import Recipe, RecipeCategory

if TYPE_CHECKING:
    from ..config import SousChefConfig
    from ..models import Ingredient, UserProfile

# Recipes at or above this match score count as a high match.
HIGH_MATCH_SCORE = 0.8


class RecipeServiceError(RuntimeError):
    """Recipe generation failed or returned something unusable."""


class RecipeFilter(str, Enum):
    ALL = "all"
    SCAVENGER = "scavenger"
    UPGRADER = "upgrader"
    HIGH_MATCH = "high_match"

    @property
    def label(self) -> str:
        return _FILTER_LABELS[self][0]

    @property
    def description(self) -> str:
        return _FILTER_LABELS[self][1]


_FILTER_LABELS = {
    RecipeFilter.ALL: ("All Recipes", "Show all recipes"),
    RecipeFilter.SCAVENGER: ("The Scavenger", "Uses only your ingredients"),
    RecipeFilter.UPGRADER: ("The Upgrader", "Needs 1-2 additional items"),
    RecipeFilter.HIGH_MATCH: ("High Match", "80%+ ingredient match"),
}


def filter_recipes(recipes: list[Recipe], selected: RecipeFilter) -> list[Recipe]:
    match selected:
        case RecipeFilter.ALL:
            return list(recipes)
        case RecipeFilter.SCAVENGER:
            return [r for r in recipes if r.category is RecipeCategory.SCAVENGER]
        case RecipeFilter.UPGRADER:
            return [r for r in recipes if r.category is RecipeCategory.UPGRADER]
        case RecipeFilter.HIGH_MATCH:
            return [r for r in recipes if r.match_score >= HIGH_MATCH_SCORE]
    raise ValueError(f"Unknown recipe filter: {selected!r}")


class RecipeService(ABC):
    """Abstract base for AI-powered recipe generation."""

    @abstractmethod
    async def generate_recipes(
        self, inventory: list[Ingredient], profile: UserProfile
    ) -> list[Recipe]:
        """Suggest recipes for the available ingredients and preferences."""
        ...

    @abstractmethod
    async def scale_recipe(
        self, recipe: Recipe, ingredient: Ingredient, quantity: str
    ) -> Recipe:
        """Rescale a recipe around a limiting ingredient quantity."""
        ...

    @abstractmethod
    async def provide_cooking_guidance(
        self, step: str, context: str | None = None
    ) -> str:
        """Short, actionable guidance for the current cooking step."""
        ...


def create_recipe_service(config: SousChefConfig) -> RecipeService:
    from .gemini import GeminiRecipeService

    return GeminiRecipeService(
        api_key=config.recipes.api_key,
        model=config.recipes.model,
        temperature=config.recipes.temperature,
    )
