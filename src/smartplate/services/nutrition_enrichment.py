"""
Nutrition and cost enrichment.

Recipes from the catalog or the LLM can arrive with partial nutrition. The
enricher fills missing values from a food library (NDJSON, nutrients per
serving size, usually 100 g), estimates cost per serving where the library
carries prices, and derives a nutrient score for every recipe.
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from smartplate.data.models import NutritionInfo, Recipe, RecipeIngredient
from smartplate.recommendation.nutrition import (
    ensure_nutrient_score,
    get_recipe_nutrition,
    validate_recipes,
)

logger = logging.getLogger(__name__)

DEFAULT_LIBRARY_PATH = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "data", "food_library.ndjson"
)

# Rough gram weights for non-metric units
UNIT_GRAMS: Dict[str, float] = {
    "g": 1.0,
    "ml": 1.0,
    "kg": 1000.0,
    "l": 1000.0,
    "cup": 240.0,
    "tbsp": 15.0,
    "tsp": 5.0,
    "piece": 100.0,
    "": 100.0,
}

# Daily reference values used by the micronutrient score
MICRONUTRIENT_REFERENCES = {
    "vitaminA_ug": 900,
    "vitaminC_mg": 90,
    "calcium_mg": 1000,
    "iron_mg": 18,
}


@dataclass
class FoodItem:
    """Food library entry."""

    id: int
    name: str
    category: str = "Other"
    serving_size: float = 100.0
    serving_unit: str = "g"
    nutrients: Dict[str, float] = field(default_factory=dict)
    price_per_serving: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FoodItem":
        """Validate an entry, filling missing core nutrients with 0."""
        raw = data.get("nutrients") or {}
        nutrients = {
            "calories": 0.0,
            "protein_g": 0.0,
            "fat_g": 0.0,
            "carbs_g": 0.0,
            "fiber_g": 0.0,
            "sugar_g": 0.0,
        }
        for key, value in raw.items():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                nutrients[key] = float(value)

        price = data.get("price_per_serving", data.get("pricePerServing"))
        return cls(
            id=int(data.get("id") or 0),
            name=data.get("name") or "Unknown Food",
            category=data.get("category") or "Other",
            serving_size=float(data.get("serving_size", data.get("servingSize")) or 100),
            serving_unit=data.get("serving_unit", data.get("servingUnit")) or "g",
            nutrients=nutrients,
            price_per_serving=float(price) if isinstance(price, (int, float)) else None,
        )


def load_food_library(path: Optional[str] = None) -> List[FoodItem]:
    """
    Load a food library from NDJSON.

    Malformed lines are skipped with a warning. A missing file yields an
    empty library.
    """
    path = path or DEFAULT_LIBRARY_PATH
    if not os.path.exists(path):
        logger.warning(f"Food library not found at {path}")
        return []

    items = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                items.append(FoodItem.from_dict(json.loads(line)))
            except (json.JSONDecodeError, TypeError, ValueError) as e:
                logger.warning(f"Skipping food library line {line_no}: {e}")

    logger.info(f"Loaded {len(items)} food library items from {path}")
    return items


def calculate_nutrient_score(item: FoodItem) -> float:
    """Macro score blended with whatever micronutrients the entry lists."""
    n = item.nutrients
    fiber_score = n["fiber_g"] / 30
    calorie_score = 1 - min(1.0, n["calories"] / 1000)
    protein_score = min(1.0, n["protein_g"] / 50)

    micro = [
        min(1.0, n[key] / reference)
        for key, reference in MICRONUTRIENT_REFERENCES.items()
        if key in n
    ]
    micro_score = sum(micro) / len(micro) if micro else 0.0

    return max(0.0, fiber_score * 0.3 + calorie_score * 0.2 + protein_score * 0.3 + micro_score * 0.2)


def convert_food_item_to_recipe(item: FoodItem) -> Recipe:
    """Present a single food as a simple recipe."""
    n = item.nutrients
    return Recipe(
        id=f"food-{item.id}",
        title=item.name,
        image="https://images.unsplash.com/photo-1512621776951-a57141f2eefd",
        time="10 mins",
        category=item.category,
        tags=[item.category],
        ingredients=[RecipeIngredient.from_value(f"{item.serving_size:g} {item.serving_unit} {item.name}")],
        difficulty="Easy",
        calories=n["calories"],
        protein=n["protein_g"],
        carbs=n["carbs_g"],
        fat=n["fat_g"],
        fiber=n["fiber_g"],
        sugar=n["sugar_g"],
        cost=item.price_per_serving,
        nutrient_score=calculate_nutrient_score(item),
    )


class NutritionEnricher:
    """Fills missing recipe nutrition from a food library."""

    def __init__(self, library: Optional[Sequence[FoodItem]] = None):
        self.library = list(library or [])
        # Longest names first so "sweet potato" wins over "potato"
        self._by_name = sorted(self.library, key=lambda i: len(i.name), reverse=True)

    def find_food(self, ingredient_name: str) -> Optional[FoodItem]:
        name = ingredient_name.lower()
        for item in self._by_name:
            if item.name.lower() in name:
                return item
        return None

    def _grams(self, ingredient: RecipeIngredient) -> float:
        unit = ingredient.unit.lower().rstrip("s") if ingredient.unit else ""
        per_unit = UNIT_GRAMS.get(unit, 100.0)
        amount = ingredient.amount or 1.0
        return amount * per_unit

    def estimate(self, recipe: Recipe) -> Optional[NutritionInfo]:
        """Per-serving nutrition from matched ingredients, or None if nothing matched."""
        totals = NutritionInfo()
        matched = 0
        for ingredient in recipe.ingredients:
            item = self.find_food(ingredient.display_name)
            if item is None:
                continue
            matched += 1
            factor = self._grams(ingredient) / (item.serving_size or 100.0)
            n = item.nutrients
            totals.calories += n["calories"] * factor
            totals.protein += n["protein_g"] * factor
            totals.carbs += n["carbs_g"] * factor
            totals.fat += n["fat_g"] * factor
            totals.fiber += n["fiber_g"] * factor
            totals.sugar += n["sugar_g"] * factor
            if item.price_per_serving:
                totals.cost += item.price_per_serving * factor

        if not matched:
            return None

        servings = recipe.servings or 1
        return NutritionInfo(**{k: round(v / servings, 2) for k, v in totals.to_dict().items()})

    def enrich(self, recipe: Recipe) -> Recipe:
        current = get_recipe_nutrition(recipe)
        if current.calories > 0 and current.cost > 0:
            return recipe

        estimate = self.estimate(recipe)
        if estimate is None:
            return recipe

        merged = current.to_dict()
        for key, value in estimate.to_dict().items():
            if not merged[key]:
                merged[key] = value
        return replace(recipe, nutrition=NutritionInfo(**merged))

    async def __call__(self, recipes: Sequence[Recipe]) -> List[Recipe]:
        enriched = ensure_nutrient_score(self.enrich(r) for r in recipes)
        validate_recipes(enriched)
        return enriched


_default_enricher: Optional[NutritionEnricher] = None


def default_enricher() -> NutritionEnricher:
    """Enricher backed by the bundled food library (loaded once)."""
    global _default_enricher
    if _default_enricher is None:
        _default_enricher = NutritionEnricher(load_food_library())
    return _default_enricher


async def ensure_nutrition_and_cost(recipes: Sequence[Recipe]) -> List[Recipe]:
    """Fill in missing nutrition and cost, and derive nutrient scores."""
    return await default_enricher()(recipes)

