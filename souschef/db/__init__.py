"""SQLite storage for inventory, saved recipes and user profiles."""

from .inventory import InventoryDB
from .profiles import ProfileDB
from .recipes import RecipeDB
from .schema import ensure_schema

__all__ = [
    "InventoryDB",
    "ProfileDB",
    "RecipeDB",
    "ensure_schema",
]
