"""Data models for ingredients, recipes and user profiles."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum

# Items below this confidence are flagged for the user to confirm.
VERIFICATION_THRESHOLD = 0.7

COMMON_RESTRICTIONS = [
    "Vegan",
    "Vegetarian",
    "Gluten-Free",
    "Dairy-Free",
    "Keto",
    "Paleo",
    "Nut Allergy",
    "Shellfish Allergy",
]


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Ingredient:
    """An ingredient detected by the camera or entered by the user."""

    name: str
    estimated_quantity: str = "Unknown"
    confidence: float = 1.0  # 0.0〜1.0
    id: str = field(default_factory=_new_id)

    @property
    def needs_verification(self) -> bool:
        return self.confidence < VERIFICATION_THRESHOLD

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Ingredient:
        return cls(
            name=data["name"],
            estimated_quantity=data.get("estimated_quantity")
            or data.get("estimatedQuantity")
            or "Unknown",
            confidence=float(data.get("confidence", 1.0)),
            id=data.get("id") or _new_id(),
        )


class RecipeCategory(str, Enum):
    SCAVENGER = "scavenger"  # uses only what is on hand
    UPGRADER = "upgrader"  # needs one or two extra items


@dataclass
class Recipe:
    title: str
    description: str = ""
    missing_ingredients: list[Ingredient] = field(default_factory=list)
    steps: list[str] = field(default_factory=list)
    match_score: float = 0.0
    estimated_time: str | None = None
    servings: int | None = None
    id: str = field(default_factory=_new_id)

    @property
    def category(self) -> RecipeCategory:
        if self.missing_ingredients:
            return RecipeCategory.UPGRADER
        return RecipeCategory.SCAVENGER

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Recipe:
        """Build a Recipe from stored data or a model response.

        Accepts both snake_case keys and the camelCase keys used in
        generated JSON.
        """
        missing = data.get("missing_ingredients")
        if missing is None:
            missing = data.get("missingIngredients", [])
        servings = data.get("servings")
        return cls(
            title=data["title"],
            description=data.get("description", ""),
            missing_ingredients=[Ingredient.from_dict(m) for m in missing],
            steps=[str(s) for s in data.get("steps", [])],
            match_score=float(
                data.get("match_score", data.get("matchScore", 0.0))
            ),
            estimated_time=data.get("estimated_time", data.get("estimatedTime")),
            servings=int(servings) if servings is not None else None,
            id=data.get("id") or _new_id(),
        )


@dataclass
class UserProfile:
    """Dietary preferences and pantry staples for one user."""

    id: str = field(default_factory=_new_id)
    dietary_restrictions: list[str] = field(default_factory=list)
    nutrition_goals: str = ""
    pantry_staples: list[Ingredient] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> UserProfile:
        return cls(
            id=data.get("id") or _new_id(),
            dietary_restrictions=list(data.get("dietary_restrictions", [])),
            nutrition_goals=data.get("nutrition_goals", ""),
            pantry_staples=[
                Ingredient.from_dict(s) for s in data.get("pantry_staples", [])
            ],
        )
