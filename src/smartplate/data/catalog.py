"""
Recipe catalog.

Holds the recipes available for recommendation. The bundled seed catalog
ships with the package; imported recipes (e.g. from photos) can be added
at runtime.
"""

import json
import logging
import os
from typing import Dict, Iterable, Iterator, List, Optional

from smartplate.data.models import Recipe

logger = logging.getLogger(__name__)

SEED_PATH = os.path.join(os.path.dirname(__file__), "seed_recipes.json")


class RecipeCatalog:
    """In-memory recipe collection keyed by id, preserving insertion order."""

    def __init__(self, recipes: Optional[Iterable[Recipe]] = None):
        self._recipes: Dict[str, Recipe] = {}
        for recipe in recipes or []:
            self.add(recipe)

    @classmethod
    def from_json(cls, path: str = SEED_PATH) -> "RecipeCatalog":
        """
        Load a catalog from a JSON array of recipe dicts.

        Entries without an id are skipped with a warning.
        """
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)

        recipes = []
        for entry in raw:
            if not isinstance(entry, dict) or "id" not in entry:
                logger.warning(f"Skipping catalog entry without id: {entry!r:.80}")
                continue
            recipes.append(Recipe.from_dict(entry))

        logger.info(f"Loaded {len(recipes)} recipes from {path}")
        return cls(recipes)

    def add(self, recipe: Recipe) -> None:
        self._recipes[recipe.id] = recipe

    def get(self, recipe_id: str) -> Optional[Recipe]:
        return self._recipes.get(str(recipe_id))

    def all(self) -> List[Recipe]:
        return list(self._recipes.values())

    def by_category(self, category: str) -> List[Recipe]:
        return [r for r in self._recipes.values() if r.category.lower() == category.lower()]

    def __iter__(self) -> Iterator[Recipe]:
        return iter(list(self._recipes.values()))

    def __len__(self) -> int:
        return len(self._recipes)

    def __contains__(self, recipe_id: object) -> bool:
        return recipe_id in self._recipes


def load_default_catalog() -> RecipeCatalog:
    return RecipeCatalog.from_json(SEED_PATH)
