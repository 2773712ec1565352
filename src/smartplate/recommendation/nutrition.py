"""
Nutrition accessors and goal heuristics.

Recipes carry nutrition either in a nested NutritionInfo or in legacy flat
fields. get_recipe_nutrition() hides the difference and never returns a
missing value.
"""

import logging
from dataclasses import replace
from typing import Iterable, List, Optional

from smartplate.data.models import NutritionInfo, Recipe, UserPreferences
from smartplate.recommendation.preset_rules import DEFAULT_MEAL_FRACTION, Goal, goal_for

logger = logging.getLogger(__name__)


class MissingNutrientScoreError(ValueError):
    """Raised when recipes reach ranking without a nutrient score."""


def get_recipe_nutrition(recipe: Recipe) -> NutritionInfo:
    """
    Complete nutrition for a recipe.

    The nested nutrition object wins; otherwise legacy fields are used.
    Missing or malformed values become 0.
    """
    if recipe.nutrition is not None:
        return NutritionInfo.from_dict(recipe.nutrition.to_dict())

    return NutritionInfo.from_dict({
        "calories": recipe.calories,
        "protein": recipe.protein,
        "carbs": recipe.carbs,
        "fat": recipe.fat,
        "fiber": recipe.fiber,
        "sugar": recipe.sugar,
        "cost": recipe.cost,
    })


def enrich_recipe(recipe: Recipe) -> Recipe:
    """Copy of the recipe with the nested nutrition object filled in."""
    if recipe.nutrition is not None:
        return recipe
    return replace(recipe, nutrition=get_recipe_nutrition(recipe))


def nutrient_score_from_macros(calories: float, protein: float, fiber: float) -> float:
    """Fallback nutrient density score from macros."""
    fiber_score = fiber / 30
    calorie_score = 1 - min(1.0, calories / 1000)
    protein_score = min(1.0, protein / 50)
    return max(0.0, (fiber_score + calorie_score + protein_score) / 3)


def ensure_nutrient_score(recipes: Iterable[Recipe]) -> List[Recipe]:
    """Derive nutrient_score where it is missing."""
    result = []
    for recipe in recipes:
        if recipe.nutrient_score is None:
            n = get_recipe_nutrition(recipe)
            recipe = replace(
                recipe,
                nutrient_score=nutrient_score_from_macros(n.calories, n.protein, n.fiber),
            )
        result.append(recipe)
    return result


def validate_recipes(recipes: Iterable[Recipe]) -> None:
    """
    Check every recipe has a nutrient score.

    Raises:
        MissingNutrientScoreError: If any recipe lacks one
    """
    missing = [r.id for r in recipes if r.nutrient_score is None]
    if missing:
        raise MissingNutrientScoreError(f"{len(missing)} recipes missing nutrient_score")


# ==================== Goal heuristics ====================
# Used when no meal type (and therefore no meal budget) is known.

def weight_loss_score(n: NutritionInfo) -> float:
    calorie_score = 1 - n.calories / 1000 if n.calories > 0 else 0
    protein_score = n.protein / n.calories if n.calories > 0 else 0
    fiber_score = n.fiber / 30
    return calorie_score * 0.5 + protein_score * 0.3 + fiber_score * 0.2


def muscle_gain_score(n: NutritionInfo) -> float:
    return (n.protein / 50) * 0.7 + min(1.0, n.calories / 800) * 0.3


def maintenance_score(n: NutritionInfo) -> float:
    """Closeness to a 30/40/30 protein/carb/fat calorie split."""
    if n.calories == 0:
        return 0.0
    protein_pct = n.protein * 4 / n.calories
    carb_pct = n.carbs * 4 / n.calories
    fat_pct = n.fat * 9 / n.calories
    return (
        (1 - abs(0.3 - protein_pct))
        + (1 - abs(0.4 - carb_pct))
        + (1 - abs(0.3 - fat_pct))
    ) / 3


def performance_score(n: NutritionInfo) -> float:
    return min(1.0, n.carbs / 100) * 0.6 + min(1.0, n.protein / 40) * 0.4


GOAL_HEURISTICS = {
    Goal.HEALTHY: maintenance_score,
    Goal.WEIGHT_LOSS: weight_loss_score,
    Goal.MUSCLE_GAIN: muscle_gain_score,
}

# Goals with a heuristic but no preset of their own
EXTRA_HEURISTICS = {
    "performance": performance_score,
}


def _per_meal(daily: Optional[float]) -> Optional[float]:
    return daily * DEFAULT_MEAL_FRACTION if daily else None


def _target_match(actual: float, target: Optional[float]) -> Optional[float]:
    if not target:
        return None
    return max(0.0, 1 - abs(actual - target) / target * 2)


def goal_fit_score(recipe: Recipe, prefs: UserPreferences) -> float:
    """
    Nutrition fit without a meal budget.

    Daily macro overrides are scaled to one meal (a third of the day) and
    matched against the recipe; otherwise the heuristic for the user's goal
    applies. Result is clamped to [0, 1].
    """
    n = get_recipe_nutrition(recipe)

    matches = [
        m for m in (
            _target_match(n.calories, _per_meal(prefs.calorie_target)),
            _target_match(n.protein, _per_meal(prefs.protein_target)),
            _target_match(n.carbs, _per_meal(prefs.carb_target)),
            _target_match(n.fat, _per_meal(prefs.fat_target)),
        ) if m is not None
    ]
    if matches:
        return sum(matches) / len(matches)

    key = (prefs.goal_key or "").strip().lower()
    heuristic = EXTRA_HEURISTICS.get(key) or GOAL_HEURISTICS[goal_for(prefs)]
    return max(0.0, min(1.0, heuristic(n)))
