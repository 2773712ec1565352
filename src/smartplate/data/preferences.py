"""
User preferences store.

PreferencesStore owns the current UserPreferences. Every mutation is a
read-modify-write followed by a call to the injected persist callback, so
the same store works with the SQLite backend, a JSON file, or nothing at
all in tests.
"""

import json
import logging
import os
import sqlite3
import time
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from smartplate.data.models import PantryItem, UserPreferences, pantry_slug
from smartplate.recommendation.weights import normalize_weights, preset_weights

logger = logging.getLogger(__name__)

RECENTLY_VIEWED_LIMIT = 10

PersistCallback = Callable[[UserPreferences], None]


class PreferencesStore:
    """Holds one user's preferences and persists every change."""

    def __init__(
        self,
        preferences: Optional[UserPreferences] = None,
        persist: Optional[PersistCallback] = None,
        clear: Optional[Callable[[], None]] = None,
    ):
        self._prefs = preferences or UserPreferences()
        self._persist = persist
        self._clear = clear

    @property
    def preferences(self) -> UserPreferences:
        return self._prefs

    def _commit(self, prefs: UserPreferences) -> UserPreferences:
        prefs.updated_at = datetime.now()
        self._prefs = prefs
        if self._persist is not None:
            self._persist(prefs)
        return prefs

    def update(self, changes: Optional[Mapping[str, Any]] = None, **kwargs) -> UserPreferences:
        """
        Merge changes into the current preferences.

        Keys may be snake_case or camelCase. Changing the preset or the
        fitness goal without supplying weights resets the weights to the
        resulting goal's vector.

        Returns:
            The updated preferences
        """
        incoming: Dict[str, Any] = dict(changes or {})
        incoming.update(kwargs)

        merged = self._prefs.to_dict()
        # Drop the current key when the caller used the camelCase alias
        for key in list(incoming):
            snake = _CAMEL_TO_SNAKE.get(key)
            if snake:
                merged.pop(snake, None)
        merged.update(incoming)

        goal_changed = any(
            k in incoming
            for k in ("recommendation_preset", "recommendationPreset", "fitness_goal", "fitnessGoal")
        )
        weights_given = any(k in incoming for k in ("recommendation_weights", "recommendationWeights"))
        if goal_changed and not weights_given:
            merged.pop("recommendation_weights", None)
            merged.pop("recommendationWeights", None)

        return self._commit(UserPreferences.from_dict(merged))

    def set_preset(self, preset: str) -> UserPreferences:
        return self.update(recommendation_preset=preset)

    def set_weights(self, weights: Mapping[str, Any]) -> UserPreferences:
        prefs = UserPreferences.from_dict(self._prefs.to_dict())
        prefs.recommendation_weights = normalize_weights(weights)
        return self._commit(prefs)

    def reset_weights(self) -> UserPreferences:
        prefs = UserPreferences.from_dict(self._prefs.to_dict())
        prefs.recommendation_weights = preset_weights(prefs.goal_key)
        return self._commit(prefs)

    def add_liked_meal(self, recipe_id: str) -> UserPreferences:
        """Like a meal; a meal is never both liked and disliked."""
        prefs = UserPreferences.from_dict(self._prefs.to_dict())
        if recipe_id not in prefs.liked_meals:
            prefs.liked_meals.append(recipe_id)
        prefs.disliked_meals = [m for m in prefs.disliked_meals if m != recipe_id]
        return self._commit(prefs)

    def add_disliked_meal(self, recipe_id: str) -> UserPreferences:
        """Dislike a meal; a meal is never both liked and disliked."""
        prefs = UserPreferences.from_dict(self._prefs.to_dict())
        if recipe_id not in prefs.disliked_meals:
            prefs.disliked_meals.append(recipe_id)
        prefs.liked_meals = [m for m in prefs.liked_meals if m != recipe_id]
        return self._commit(prefs)

    def record_view(self, recipe_id: str) -> UserPreferences:
        """Move a recipe to the front of the recently viewed list."""
        prefs = UserPreferences.from_dict(self._prefs.to_dict())
        viewed = [recipe_id] + [r for r in prefs.recently_viewed if r != recipe_id]
        prefs.recently_viewed = viewed[:RECENTLY_VIEWED_LIMIT]
        return self._commit(prefs)

    def add_pantry_item(
        self,
        name: str,
        quantity: float = 1.0,
        unit: str = "piece",
        category: str = "other",
        expiry_date: Optional[str] = None,
    ) -> PantryItem:
        """Add one item to the pantry and return it with its new id."""
        if not name or not name.strip():
            raise ValueError("Pantry item needs a name")
        return self.add_pantry_items([
            {"name": name, "quantity": quantity, "unit": unit, "category": category, "expiry_date": expiry_date}
        ])[0]

    def add_pantry_items(self, items: Iterable[Any]) -> List[PantryItem]:
        """
        Add several pantry items at once (one persist call).

        Args:
            items: PantryItem objects, dicts or bare names

        Returns:
            The added items
        """
        prefs = UserPreferences.from_dict(self._prefs.to_dict())
        taken = {item.id for item in prefs.pantry}
        stamp = int(time.time() * 1000)
        added = []
        for value in items:
            item = PantryItem.from_value(value)
            if not item.name:
                continue
            explicit = value.get("id") if isinstance(value, dict) else getattr(value, "id", None)
            if not explicit or explicit in taken:
                item.id = f"pantry_{stamp}_{len(taken)}_{pantry_slug(item.name)}"
            taken.add(item.id)
            added.append(item)
        prefs.pantry.extend(added)
        self._commit(prefs)
        logger.info(f"Added {len(added)} pantry item(s)")
        return added

    def remove_pantry_item(self, item_id: str) -> bool:
        """Remove a pantry item by id. Returns False when no item matched."""
        prefs = UserPreferences.from_dict(self._prefs.to_dict())
        remaining = [item for item in prefs.pantry if item.id != item_id]
        if len(remaining) == len(prefs.pantry):
            return False
        prefs.pantry = remaining
        self._commit(prefs)
        return True

    def update_pantry_item(self, item_id: str, **updates) -> Optional[PantryItem]:
        """
        Change fields of a pantry item.

        Accepts name, quantity, unit, category and expiry_date (or the
        camelCase expirationDate). Returns the updated item, or None when
        no item has that id.
        """
        prefs = UserPreferences.from_dict(self._prefs.to_dict())
        for index, item in enumerate(prefs.pantry):
            if item.id != item_id:
                continue
            merged = item.to_dict()
            if "expirationDate" in updates:
                merged.pop("expiry_date", None)
            merged.update(updates)
            merged["id"] = item_id
            prefs.pantry[index] = PantryItem.from_dict(merged)
            self._commit(prefs)
            return prefs.pantry[index]
        return None

    def reset(self) -> UserPreferences:
        """Restore defaults and remove the stored profile."""
        self._prefs = UserPreferences()
        if self._clear is not None:
            self._clear()
        logger.info("User preferences reset to defaults")
        return self._prefs


_CAMEL_TO_SNAKE = {
    "calorieTarget": "calorie_target",
    "proteinTarget": "protein_target",
    "carbTarget": "carb_target",
    "fatTarget": "fat_target",
    "fitnessGoal": "fitness_goal",
    "recommendationPreset": "recommendation_preset",
    "recommendationWeights": "recommendation_weights",
    "dietaryPreference": "dietary_preference",
    "dietaryRestrictions": "dietary_restrictions",
    "likedMeals": "liked_meals",
    "dislikedMeals": "disliked_meals",
    "likedFoods": "liked_foods",
    "dislikedFoods": "disliked_foods",
    "authorStyle": "author_style",
    "cookingTime": "cooking_time",
    "cookingExperience": "cooking_experience",
    "budgetTier": "budget_tier",
    "recentlyViewed": "recently_viewed",
}


class SqlitePreferencesBackend:
    """
    Stores the preferences document in a key/value user_preferences table.
    """

    PROFILE_KEY = "user_profile"

    def __init__(self, db_path: str):
        self.db_path = db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user_preferences (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def get_preference(self, key: str) -> Optional[str]:
        """Get a raw preference value by key."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM user_preferences WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else None

    def set_preference(self, key: str, value: str):
        """Set a raw preference value."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO user_preferences (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, value, datetime.now().isoformat()),
            )
            conn.commit()

    def delete_preference(self, key: str):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM user_preferences WHERE key = ?", (key,))
            conn.commit()

    def load(self) -> Optional[UserPreferences]:
        """Load the stored profile, or None if there is none (or it is unreadable)."""
        raw = self.get_preference(self.PROFILE_KEY)
        if raw is None:
            return None
        try:
            return UserPreferences.from_dict(json.loads(raw))
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Stored preferences unreadable, using defaults: {e}")
            return None

    def save(self, prefs: UserPreferences):
        self.set_preference(self.PROFILE_KEY, json.dumps(prefs.to_dict()))

    def clear(self):
        self.delete_preference(self.PROFILE_KEY)


def open_store(db_path: str) -> PreferencesStore:
    """PreferencesStore backed by SQLite at db_path."""
    backend = SqlitePreferencesBackend(db_path)
    return PreferencesStore(backend.load(), persist=backend.save, clear=backend.clear)
