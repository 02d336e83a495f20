"""User profile storage: dietary restrictions, goals and pantry staples."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from ..models import Ingredient, UserProfile
from .schema import ensure_schema


class ProfileDB:
    """Manages the user_profiles table."""

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

    def get_profile(self, user_id: str) -> UserProfile:
        """Return the stored profile, creating a default one if missing."""
        conn = self._get_conn()
        row = conn.execute(
            "SELECT profile_json FROM user_profiles WHERE id = ?", (user_id,)
        ).fetchone()
        if row is not None:
            return UserProfile.from_dict(json.loads(row["profile_json"]))

        profile = UserProfile(id=user_id)
        self.save_profile(profile)
        return profile

    def save_profile(self, profile: UserProfile) -> None:
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO user_profiles (id, profile_json) VALUES (?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   profile_json = excluded.profile_json,
                   updated_at = datetime('now', 'localtime')""",
            (profile.id, json.dumps(profile.to_dict(), ensure_ascii=False)),
        )
        conn.commit()

    def update_dietary_restrictions(
        self, user_id: str, restrictions: list[str]
    ) -> UserProfile:
        profile = self.get_profile(user_id)
        profile.dietary_restrictions = list(restrictions)
        self.save_profile(profile)
        return profile

    def update_nutrition_goals(self, user_id: str, goals: str) -> UserProfile:
        profile = self.get_profile(user_id)
        profile.nutrition_goals = goals
        self.save_profile(profile)
        return profile

    def update_pantry_staples(
        self, user_id: str, staples: list[Ingredient]
    ) -> UserProfile:
        profile = self.get_profile(user_id)
        profile.pantry_staples = list(staples)
        self.save_profile(profile)
        return profile
