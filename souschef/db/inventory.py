"""Ingredient inventory CRUD operations."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..models import Ingredient
from .schema import ensure_schema


class InventoryDB:
    """Manages the inventory table."""

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

    def get_inventory(self) -> list[Ingredient]:
        """Return every stored ingredient, most confident first."""
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM inventory ORDER BY confidence DESC, created_at"
        ).fetchall()
        return [_row_to_ingredient(r) for r in rows]

    def save_inventory(self, ingredients: list[Ingredient]) -> None:
        """Replace the whole inventory with ``ingredients``."""
        conn = self._get_conn()
        with conn:
            conn.execute("DELETE FROM inventory")
            conn.executemany(
                """INSERT INTO inventory (id, name, estimated_quantity, confidence)
                   VALUES (?, ?, ?, ?)""",
                [
                    (i.id, i.name, i.estimated_quantity, i.confidence)
                    for i in ingredients
                ],
            )

    def add_ingredient(self, ingredient: Ingredient) -> None:
        conn = self._get_conn()
        conn.execute(
            """INSERT OR REPLACE INTO inventory
               (id, name, estimated_quantity, confidence)
               VALUES (?, ?, ?, ?)""",
            (
                ingredient.id,
                ingredient.name,
                ingredient.estimated_quantity,
                ingredient.confidence,
            ),
        )
        conn.commit()

    def update_ingredient(self, ingredient: Ingredient) -> bool:
        """Update an existing ingredient.

        Returns:
            False if no ingredient with that id exists.
        """
        conn = self._get_conn()
        cur = conn.execute(
            """UPDATE inventory
               SET name = ?,
                   estimated_quantity = ?,
                   confidence = ?,
                   updated_at = datetime('now', 'localtime')
               WHERE id = ?""",
            (
                ingredient.name,
                ingredient.estimated_quantity,
                ingredient.confidence,
                ingredient.id,
            ),
        )
        conn.commit()
        return cur.rowcount > 0

    def remove_ingredient(self, ingredient_id: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM inventory WHERE id = ?", (ingredient_id,))
        conn.commit()


def _row_to_ingredient(row: sqlite3.Row) -> Ingredient:
    return Ingredient(
        id=row["id"],
        name=row["name"],
        estimated_quantity=row["estimated_quantity"],
        confidence=row["confidence"],
    )
