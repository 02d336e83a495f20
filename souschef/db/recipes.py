"""Saved (favourite) recipe storage."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from ..models import Recipe
from .schema import ensure_schema


class RecipeDB:
    """Manages the saved_recipes table."""

    def __init__(self, db_path: str | Path = "~/.config/souschef/souschef.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def save_recipe(self, recipe: Recipe) -> bool:
        """Save a recipe unless one with the same id is already stored.

        Returns:
            True if the recipe was inserted.
        """
        conn = self._get_conn()
        cur = conn.execute(
            """INSERT OR IGNORE INTO saved_recipes
               (id, title, match_score, recipe_json)
               VALUES (?, ?, ?, ?)""",
            (
                recipe.id,
                recipe.title,
                recipe.match_score,
                json.dumps(recipe.to_dict(), ensure_ascii=False),
            ),
        )
        conn.commit()
        return cur.rowcount > 0

    def get_saved_recipes(self) -> list[Recipe]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT recipe_json FROM saved_recipes ORDER BY created_at, rowid"
        ).fetchall()
        return [Recipe.from_dict(json.loads(r["recipe_json"])) for r in rows]

    def get_recipe(self, recipe_id: str) -> Recipe | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT recipe_json FROM saved_recipes WHERE id = ?",
            (recipe_id,),
        ).fetchone()
        if row is None:
            return None
        return Recipe.from_dict(json.loads(row["recipe_json"]))

    def delete_recipe(self, recipe_id: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM saved_recipes WHERE id = ?", (recipe_id,))
        conn.commit()
