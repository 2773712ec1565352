"""
Hard filters applied to the catalog before scoring.

A recipe that fails any filter is never recommended. Filters are
case-insensitive and match ingredients by substring.
"""

import logging
import re
from typing import Iterable, List, Optional, Set

from smartplate.data.models import Recipe, UserPreferences
from smartplate.tag_canon import (
    excluded_ingredients,
    meal_type_of,
    normalize_tag,
    normalize_tags,
    satisfying_tags,
)

logger = logging.getLogger(__name__)

_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)\b")
_MINUTES_RE = re.compile(r"(\d+)\s*(?:minutes?|mins?|m)\b")


def parse_minutes(label: str) -> Optional[int]:
    """
    Parse a prep-time label into minutes.

    Examples:
        "25 mins" -> 25
        "1 hr 30 mins" -> 90
        "5 mins + overnight" -> 5

    Returns:
        Minutes, or None if the label has no recognizable duration
    """
    if not label:
        return None
    text = label.lower()
    hours = _HOURS_RE.search(text)
    minutes = _MINUTES_RE.search(text)
    if not hours and not minutes:
        return None
    total = 0.0
    if hours:
        total += float(hours.group(1)) * 60
    if minutes:
        total += int(minutes.group(1))
    return int(total)


def matches_diet(recipe: Recipe, diet: str) -> bool:
    """True if the recipe's tags satisfy a dietary preference or restriction."""
    allowed = satisfying_tags(diet)
    if allowed is None:
        return True
    return bool(allowed & normalize_tags(recipe.tags))


def contains_any(recipe: Recipe, terms: Iterable[str]) -> bool:
    """True if any ingredient name contains one of the terms."""
    names = recipe.ingredient_names()
    for term in terms:
        term = term.lower().strip()
        if term and any(term in name for name in names):
            return True
    return False


def contains_word(recipe: Recipe, terms: Iterable[str]) -> bool:
    """
    True if any ingredient name contains one of the terms as a whole word.

    Plurals count ("walnut" matches "walnuts") but longer words do not
    ("nut" leaves "coconut", "nutmeg" and "butternut" alone).
    """
    names = recipe.ingredient_names()
    for term in terms:
        term = term.lower().strip()
        if not term:
            continue
        pattern = re.compile(rf"\b{re.escape(term)}(?:s|es)?\b")
        if any(pattern.search(name) for name in names):
            return True
    return False


def matches_meal_type(recipe: Recipe, meal_type: str) -> bool:
    """A recipe fits a meal type through its category or its tags."""
    wanted = normalize_tag(meal_type)
    if meal_type_of(recipe.category) == wanted:
        return True
    return wanted in normalize_tags(recipe.tags)


def passes_filters(recipe: Recipe, prefs: UserPreferences, meal_type: Optional[str] = None,
                   exclude_ids: Optional[Set[str]] = None) -> bool:
    """Check a catalog recipe against every hard filter."""
    if recipe.id in prefs.disliked_meals:
        return False
    if exclude_ids and recipe.id in exclude_ids:
        return False

    if prefs.dietary_preference and not matches_diet(recipe, prefs.dietary_preference):
        return False
    for restriction in prefs.dietary_restrictions:
        if satisfying_tags(restriction) is not None:
            if not matches_diet(recipe, restriction):
                return False
        elif contains_word(recipe, excluded_ingredients(restriction)):
            return False

    if contains_any(recipe, prefs.allergies):
        return False
    if contains_any(recipe, prefs.disliked_foods):
        return False

    if prefs.cooking_time and prefs.cooking_time > 0:
        minutes = parse_minutes(recipe.time)
        if minutes is not None and minutes > prefs.cooking_time:
            return False

    if meal_type and not matches_meal_type(recipe, meal_type):
        return False

    return True


def filter_recipes(recipes: Iterable[Recipe], prefs: UserPreferences,
                   meal_type: Optional[str] = None,
                   exclude_ids: Optional[Set[str]] = None) -> List[Recipe]:
    """
    Filter recipes by the user's hard constraints.

    Args:
        recipes: Candidate recipes
        prefs: User preferences (diet, allergies, dislikes, cooking time)
        meal_type: Restrict to this meal type
        exclude_ids: Recipe ids to drop (current selections etc.)

    Returns:
        Recipes passing every filter, in input order
    """
    recipes = list(recipes)
    result = [r for r in recipes if passes_filters(r, prefs, meal_type, exclude_ids)]
    logger.debug(f"[FILTER] {len(recipes)} recipes -> {len(result)} after hard filters")
    return result
