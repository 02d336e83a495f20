"""Recipe suggestions from the current inventory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .recipes import RecipeFilter, filter_recipes

if TYPE_CHECKING:
    from .db import RecipeDB
    from .models import Ingredient, Recipe, UserProfile
    from .recipes import RecipeService

logger = logging.getLogger(__name__)


class RecipePlanner:
    """Generate, filter, scale and save recipe suggestions.

    Failures are kept in ``error`` so a front end can show them without
    losing the recipes it already has.
    """

    def __init__(
        self,
        service: RecipeService,
        repository: RecipeDB | None = None,
    ) -> None:
        self._service = service
        self._repository = repository
        self.recipes: list[Recipe] = []
        self.filtered_recipes: list[Recipe] = []
        self.selected_filter = RecipeFilter.ALL
        self.is_generating = False
        self.error: Exception | None = None

    async def generate(
        self, inventory: list[Ingredient], profile: UserProfile
    ) -> list[Recipe]:
        """Generate recipes, best match first, and apply the current filter."""
        self.is_generating = True
        self.error = None
        try:
            generated = await self._service.generate_recipes(inventory, profile)
            self.recipes = sorted(
                generated, key=lambda r: r.match_score, reverse=True
            )
            self.apply_filter()
        except Exception as e:
            logger.exception("Recipe generation failed")
            self.error = e
        finally:
            self.is_generating = False
        return self.filtered_recipes

    def apply_filter(self) -> None:
        self.filtered_recipes = filter_recipes(self.recipes, self.selected_filter)

    def set_filter(self, selected: RecipeFilter) -> None:
        self.selected_filter = selected
        self.apply_filter()

    async def scale_recipe(
        self, recipe: Recipe, ingredient: Ingredient, quantity: str
    ) -> None:
        try:
            scaled = await self._service.scale_recipe(recipe, ingredient, quantity)
        except Exception as e:
            logger.exception("Recipe scaling failed")
            self.error = e
            return

        for idx, existing in enumerate(self.recipes):
            if existing.id == recipe.id:
                self.recipes[idx] = scaled
                self.apply_filter()
                break

    def save_recipe(self, recipe: Recipe) -> None:
        if self._repository is None:
            return
        try:
            self._repository.save_recipe(recipe)
        except Exception as e:
            logger.exception("Saving recipe %s failed", recipe.id)
            self.error = e
