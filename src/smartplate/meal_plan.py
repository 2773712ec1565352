"""
Weekly meal plan.

A WeeklyPlan holds the meals picked for Monday through Sunday. A day has at
most one meal per meal type: adding a second dinner to Tuesday replaces the
first. Daily nutrition is the sum of the day's recipes.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from smartplate.data.models import NutritionInfo, Recipe
from smartplate.recommendation.nutrition import get_recipe_nutrition

logger = logging.getLogger(__name__)

DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
DEFAULT_MEAL_TYPE = "dinner"


def normalize_day(day: str) -> str:
    """Canonical day name ("tue", "TUESDAY" -> "Tuesday")."""
    text = str(day or "").strip().lower()
    for name in DAYS:
        if text and name.lower().startswith(text) and len(text) >= 3:
            return name
    raise ValueError(f"Unknown day: {day!r}")


def meal_type_of(recipe: Recipe) -> str:
    """Meal type for a recipe, from its category."""
    return (recipe.category or DEFAULT_MEAL_TYPE).strip().lower()


@dataclass
class PlannedMeal:
    """A recipe planned for one meal of one day."""

    day: str
    meal_type: str
    recipe: Recipe

    def __str__(self) -> str:
        return f"{self.day} - {self.meal_type.title()}: {self.recipe.title}"

    def to_dict(self) -> Dict:
        return {
            "day": self.day,
            "meal_type": self.meal_type,
            "recipe": self.recipe.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PlannedMeal":
        recipe = Recipe.from_dict(data["recipe"])
        return cls(
            day=normalize_day(data["day"]),
            meal_type=(data.get("meal_type") or data.get("mealType") or meal_type_of(recipe)).lower(),
            recipe=recipe,
        )


@dataclass
class WeeklyPlan:
    """Meals for one week, Monday to Sunday."""

    meals: List[PlannedMeal] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    def add_meal(self, day: str, recipe: Recipe, meal_type: Optional[str] = None) -> PlannedMeal:
        """
        Put a recipe on a day.

        Args:
            day: Day name (case-insensitive, three-letter prefixes accepted)
            recipe: Recipe to plan
            meal_type: Defaults to the recipe's category

        Returns:
            The planned meal. An existing meal of the same type that day is replaced.

        Raises:
            ValueError: If the day is unknown
        """
        day = normalize_day(day)
        meal_type = (meal_type or meal_type_of(recipe)).lower()
        planned = PlannedMeal(day=day, meal_type=meal_type, recipe=recipe)

        for i, meal in enumerate(self.meals):
            if meal.day == day and meal.meal_type == meal_type:
                logger.info(f"Replacing {day} {meal_type}: {meal.recipe.title} -> {recipe.title}")
                self.meals[i] = planned
                return planned

        self.meals.append(planned)
        return planned

    def change_meal(self, day: str, recipe_id: str, new_recipe: Recipe) -> Optional[PlannedMeal]:
        """Swap the meal with recipe_id on a day for another recipe; None if not planned."""
        day = normalize_day(day)
        for i, meal in enumerate(self.meals):
            if meal.day == day and meal.recipe.id == recipe_id:
                self.meals[i] = PlannedMeal(day=day, meal_type=meal.meal_type, recipe=new_recipe)
                return self.meals[i]
        return None

    def remove_meal(self, recipe_id: str, day: Optional[str] = None) -> int:
        """Remove a recipe from one day, or from every day. Returns how many meals went."""
        day = normalize_day(day) if day else None
        before = len(self.meals)
        self.meals = [
            m for m in self.meals
            if not (m.recipe.id == recipe_id and (day is None or m.day == day))
        ]
        return before - len(self.meals)

    def meals_for_day(self, day: str) -> List[PlannedMeal]:
        day = normalize_day(day)
        return [m for m in self.meals if m.day == day]

    def day_nutrition(self, day: str) -> NutritionInfo:
        """Summed nutrition of a day's meals."""
        total = NutritionInfo()
        for meal in self.meals_for_day(day):
            n = get_recipe_nutrition(meal.recipe)
            total.calories += n.calories
            total.protein += n.protein
            total.carbs += n.carbs
            total.fat += n.fat
            total.fiber += n.fiber
            total.sugar += n.sugar
            total.cost += n.cost
        return total

    def nutrition_by_day(self) -> Dict[str, NutritionInfo]:
        return {day: self.day_nutrition(day) for day in DAYS}

    def recipes(self) -> List[Recipe]:
        """Planned recipes in day order (a recipe planned twice appears twice)."""
        return [m.recipe for day in DAYS for m in self.meals if m.day == day]

    def fill_from(self, recipes: Sequence[Recipe], meal_type: Optional[str] = None) -> List[PlannedMeal]:
        """
        Assign one recipe per day, starting Monday.

        Extra recipes are ignored; with fewer than seven, the later days stay as they are.
        """
        return [self.add_meal(day, recipe, meal_type) for day, recipe in zip(DAYS, recipes)]

    def to_dict(self) -> Dict:
        return {
            "days": {
                day: {
                    "meals": [m.to_dict() for m in self.meals_for_day(day)],
                    "total_nutrition": self.day_nutrition(day).to_dict(),
                }
                for day in DAYS
            },
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "WeeklyPlan":
        meals = [
            PlannedMeal.from_dict(meal)
            for day_data in (data.get("days") or {}).values()
            for meal in day_data.get("meals", [])
        ]
        created_at = data.get("created_at")
        return cls(
            meals=meals,
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(),
        )
