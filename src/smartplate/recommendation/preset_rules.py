"""
Goal presets and per-meal nutrition budgets.

Each goal fixes a daily calorie target, a macro split and a set of
nutritional constraints (fiber floor, sugar caps, tolerance bands). A meal
budget is the daily target scaled by the meal's share of the day.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from smartplate.data.models import MealBudget, UserPreferences

logger = logging.getLogger(__name__)


class Goal(str, Enum):
    HEALTHY = "Healthy"
    WEIGHT_LOSS = "WeightLoss"
    MUSCLE_GAIN = "MuscleGain"


GOAL_ALIASES: Dict[str, Goal] = {
    "healthy": Goal.HEALTHY,
    "maintenance": Goal.HEALTHY,
    "general": Goal.HEALTHY,
    "weightloss": Goal.WEIGHT_LOSS,
    "weight_loss": Goal.WEIGHT_LOSS,
    "weight-loss": Goal.WEIGHT_LOSS,
    "weight loss": Goal.WEIGHT_LOSS,
    "musclegain": Goal.MUSCLE_GAIN,
    "muscle_gain": Goal.MUSCLE_GAIN,
    "muscle-gain": Goal.MUSCLE_GAIN,
    "muscle gain": Goal.MUSCLE_GAIN,
}


@dataclass(frozen=True)
class MacroSplit:
    protein: float
    carbs: float
    fat: float


@dataclass(frozen=True)
class NutritionalConstraints:
    fiber_min_g: float
    sugar_soft_cap_g: float
    sugar_hard_cap_g: float
    calorie_tolerance: float
    protein_tolerance: float
    breakfast_calorie_tolerance: float
    breakfast_protein_tolerance: float


DAILY_KCAL: Dict[Goal, int] = {
    Goal.HEALTHY: 2200,
    Goal.WEIGHT_LOSS: 1800,
    Goal.MUSCLE_GAIN: 2800,
}

MACRO_PCTS: Dict[Goal, MacroSplit] = {
    Goal.HEALTHY: MacroSplit(protein=0.25, carbs=0.45, fat=0.30),
    Goal.WEIGHT_LOSS: MacroSplit(protein=0.35, carbs=0.35, fat=0.30),
    Goal.MUSCLE_GAIN: MacroSplit(protein=0.30, carbs=0.45, fat=0.25),
}

NUTRITIONAL_CONSTRAINTS: Dict[Goal, NutritionalConstraints] = {
    Goal.HEALTHY: NutritionalConstraints(8, 25, 35, 0.15, 0.20, 0.25, 0.30),
    Goal.WEIGHT_LOSS: NutritionalConstraints(12, 20, 25, 0.10, 0.15, 0.20, 0.25),
    Goal.MUSCLE_GAIN: NutritionalConstraints(6, 35, 50, 0.20, 0.15, 0.30, 0.20),
}

# Share of the day's intake per meal
MEAL_SPLITS: Dict[str, Dict[str, float]] = {
    "with_breakfast": {"breakfast": 0.25, "lunch": 0.35, "dinner": 0.40},
    "no_breakfast": {"lunch": 0.45, "dinner": 0.55},
    "with_snacks": {"breakfast": 0.20, "lunch": 0.30, "dinner": 0.35, "snack": 0.15},
}
DEFAULT_MEAL_FRACTION = 1 / 3

# (soft, hard) grams of sugar per meal
SUGAR_CAPS_BY_MEAL: Dict[str, Tuple[float, float]] = {
    "breakfast": (15, 25),
    "lunch": (20, 30),
    "dinner": (20, 30),
    "snack": (10, 15),
    "dessert": (30, 45),
}

# Carb and fat bands are the same for every goal
CARB_TOLERANCE = 0.25
FAT_TOLERANCE = 0.30


def resolve_goal(value: Union[str, Goal, None]) -> Goal:
    """
    Resolve a goal key or alias.

    Unknown or missing values resolve to Healthy; this never raises.
    """
    if isinstance(value, Goal):
        return value
    if not value:
        return Goal.HEALTHY
    text = str(value).strip()
    for goal in Goal:
        if text == goal.value:
            return goal
    goal = GOAL_ALIASES.get(text.lower())
    if goal is None:
        logger.debug(f"Unknown goal '{value}', using {Goal.HEALTHY.value}")
        return Goal.HEALTHY
    return goal


def daily_calorie_target(goal: Union[str, Goal, None]) -> int:
    return DAILY_KCAL[resolve_goal(goal)]


def macro_percentages(goal: Union[str, Goal, None]) -> MacroSplit:
    return MACRO_PCTS[resolve_goal(goal)]


def nutritional_constraints(goal: Union[str, Goal, None]) -> NutritionalConstraints:
    return NUTRITIONAL_CONSTRAINTS[resolve_goal(goal)]


def goal_for(prefs: UserPreferences) -> Goal:
    """The user's goal: explicit preset, then fitness goal, then Healthy."""
    return resolve_goal(prefs.goal_key)


def meal_fraction(meal_type: Optional[str], include_breakfast: bool = True,
                  with_snacks: bool = False) -> float:
    """Share of daily intake allotted to a meal type."""
    if with_snacks:
        split = MEAL_SPLITS["with_snacks"]
    elif include_breakfast:
        split = MEAL_SPLITS["with_breakfast"]
    else:
        split = MEAL_SPLITS["no_breakfast"]
    return split.get((meal_type or "").lower(), DEFAULT_MEAL_FRACTION)


def sugar_caps(meal_type: Optional[str]) -> Tuple[float, float]:
    return SUGAR_CAPS_BY_MEAL.get((meal_type or "").lower(), SUGAR_CAPS_BY_MEAL["lunch"])


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def daily_targets(prefs: UserPreferences) -> Dict[str, float]:
    """Daily kcal and macro grams after applying user overrides."""
    goal = goal_for(prefs)
    pcts = macro_percentages(goal)
    kcal = prefs.calorie_target or daily_calorie_target(goal)
    return {
        "kcal": kcal,
        "protein": prefs.protein_target or kcal * pcts.protein / 4,
        "carbs": prefs.carb_target or kcal * pcts.carbs / 4,
        "fat": prefs.fat_target or kcal * pcts.fat / 9,
    }


def meal_budget(prefs: UserPreferences, meal_type: Optional[str],
                include_breakfast: bool = True, with_snacks: bool = False) -> MealBudget:
    """
    Per-meal nutrition budget.

    Args:
        prefs: User preferences (overrides win over goal defaults)
        meal_type: breakfast/lunch/dinner/snack/dessert; anything else gets 1/3
        include_breakfast: Whether the day includes breakfast
        with_snacks: Use the four-meal split with a snack

    Returns:
        MealBudget with integer targets
    """
    goal = goal_for(prefs)
    daily = daily_targets(prefs)
    fraction = meal_fraction(meal_type, include_breakfast, with_snacks)
    soft, hard = sugar_caps(meal_type)

    return MealBudget(
        kcal_target=round_half_up(daily["kcal"] * fraction),
        protein_target_g=round_half_up(daily["protein"] * fraction),
        carb_target_g=round_half_up(daily["carbs"] * fraction),
        fat_target_g=round_half_up(daily["fat"] * fraction),
        fiber_min_g=round_half_up(nutritional_constraints(goal).fiber_min_g * fraction),
        sugar_soft_cap_g=soft,
        sugar_hard_cap_g=hard,
    )
