"""
Meal constraints derived from a meal budget.

A budget becomes hard limits (calorie window, sugar hard cap) and the
tolerance bands used by the nutrition fit score. Diet, allergy and time
filters live in filters.py.
"""

import logging
from dataclasses import dataclass

from smartplate.data.models import MealBudget, Recipe, UserPreferences
from smartplate.recommendation import preset_rules
from smartplate.recommendation.nutrition import get_recipe_nutrition

logger = logging.getLogger(__name__)

# Hard calorie window relative to the tolerance band
HARD_CAP_TOLERANCE_MULTIPLIER = 1.6
HARD_FLOOR_TOLERANCE_MULTIPLIER = 0.6

# Weights of each component in the nutrition fit score
FIT_COMPONENT_WEIGHTS = {
    "calories": 0.30,
    "protein": 0.25,
    "carbs": 0.15,
    "fat": 0.15,
    "fiber": 0.10,
    "sugar": 0.05,
}


@dataclass
class Tolerances:
    calorie: float
    protein: float
    carb: float = preset_rules.CARB_TOLERANCE
    fat: float = preset_rules.FAT_TOLERANCE


@dataclass
class MealConstraints:
    """Budget plus the limits and tolerance bands built from it."""

    budget: MealBudget
    tolerances: Tolerances
    max_calories: int
    min_calories: int
    max_sugar: float


def calculate_meal_constraints(prefs: UserPreferences, meal_type: str,
                               include_breakfast: bool = True,
                               with_snacks: bool = False) -> MealConstraints:
    """
    Build constraints for one meal.

    Args:
        prefs: User preferences
        meal_type: Meal being planned
        include_breakfast: Whether the day includes breakfast
        with_snacks: Use the four-meal split with a snack

    Returns:
        MealConstraints for the meal
    """
    budget = preset_rules.meal_budget(prefs, meal_type, include_breakfast, with_snacks)
    constraints = preset_rules.nutritional_constraints(preset_rules.goal_for(prefs))

    if (meal_type or "").lower() == "breakfast":
        tolerances = Tolerances(
            calorie=constraints.breakfast_calorie_tolerance,
            protein=constraints.breakfast_protein_tolerance,
        )
    else:
        tolerances = Tolerances(
            calorie=constraints.calorie_tolerance,
            protein=constraints.protein_tolerance,
        )

    return MealConstraints(
        budget=budget,
        tolerances=tolerances,
        max_calories=preset_rules.round_half_up(
            budget.kcal_target * (1 + tolerances.calorie * HARD_CAP_TOLERANCE_MULTIPLIER)
        ),
        min_calories=preset_rules.round_half_up(
            budget.kcal_target * (1 - tolerances.calorie * HARD_FLOOR_TOLERANCE_MULTIPLIER)
        ),
        max_sugar=budget.sugar_hard_cap_g,
    )


def within_budget_limits(recipe: Recipe, constraints: MealConstraints) -> bool:
    """Calorie window and sugar hard cap check."""
    n = get_recipe_nutrition(recipe)
    if n.calories > constraints.max_calories or n.calories < constraints.min_calories:
        return False
    if n.sugar and n.sugar > constraints.max_sugar:
        return False
    return True


def component_score(actual: float, target: float, tolerance: float) -> float:
    """Linear falloff outside the tolerance band around a target."""
    if target == 0:
        return 1.0

    ratio = actual / target
    min_ratio = 1 - tolerance
    max_ratio = 1 + tolerance

    if min_ratio <= ratio <= max_ratio:
        return 1.0
    if ratio < min_ratio:
        return max(0.0, ratio / min_ratio)
    return max(0.0, min(1.0, 2 - ratio / max_ratio))


def sugar_penalty(sugar: float, soft_cap: float, hard_cap: float) -> float:
    """0 up to the soft cap, rising linearly to 1 at the hard cap."""
    if sugar <= soft_cap:
        return 0.0
    if hard_cap <= soft_cap or sugar >= hard_cap:
        return 1.0
    return (sugar - soft_cap) / (hard_cap - soft_cap)


def nutritional_fit_score(recipe: Recipe, constraints: MealConstraints) -> float:
    """
    How well a recipe fits the meal budget, in [0, 1].

    Missing nutrition counts as 0; a missing fiber value scores neutral.
    """
    budget = constraints.budget
    tol = constraints.tolerances
    n = get_recipe_nutrition(recipe)

    if n.fiber and budget.fiber_min_g > 0:
        fiber_score = min(1.0, n.fiber / budget.fiber_min_g)
    elif n.fiber:
        fiber_score = 1.0
    else:
        fiber_score = 0.5

    parts = {
        "calories": component_score(n.calories, budget.kcal_target, tol.calorie),
        "protein": component_score(n.protein, budget.protein_target_g, tol.protein),
        "carbs": component_score(n.carbs, budget.carb_target_g, tol.carb),
        "fat": component_score(n.fat, budget.fat_target_g, tol.fat),
        "fiber": fiber_score,
        "sugar": 1 - sugar_penalty(n.sugar, budget.sugar_soft_cap_g, budget.sugar_hard_cap_g),
    }
    total = sum(FIT_COMPONENT_WEIGHTS[k] * v for k, v in parts.items())
    return max(0.0, min(1.0, total))
