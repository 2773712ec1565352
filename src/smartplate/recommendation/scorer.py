"""
Weighted multi-factor recipe scoring.

Each factor produces a sub-score in [0, 1] (or None when the factor has no
data for this user). The composite score is the weighted sum of sub-scores
using the user's normalized weights; an absent factor contributes 0 but its
weight is not redistributed.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from smartplate.data.models import (
    Recipe,
    RecommendationWeights,
    ScoreBreakdown,
    ScoredRecipe,
    UserPreferences,
)
from smartplate.recommendation.meal_budget import MealConstraints, nutritional_fit_score
from smartplate.recommendation.nutrition import get_recipe_nutrition, goal_fit_score
from smartplate.recommendation.weights import normalize_weights
from smartplate.tag_canon import normalize_tag, normalize_tags

logger = logging.getLogger(__name__)

RECENCY_WINDOW = 10
MAX_RECENCY_PENALTY = 0.8

MIN_COST = 2.0
MAX_COST = 20.0
EXPENSIVE_PROTEINS = ("steak", "salmon", "shrimp", "lamb")

# Share of the similarity score from tag overlap vs. liked ingredients
TAG_SIMILARITY_SHARE = 0.7
FOOD_SIMILARITY_SHARE = 0.3


@dataclass
class ScoringContext:
    """Everything the scorer needs besides the recipe itself."""

    prefs: UserPreferences
    weights: RecommendationWeights
    constraints: Optional[MealConstraints] = None
    liked_recipes: List[Recipe] = field(default_factory=list)
    selected_tags: Set[str] = field(default_factory=set)

    @classmethod
    def build(cls, prefs: UserPreferences, catalog: Iterable[Recipe],
              constraints: Optional[MealConstraints] = None) -> "ScoringContext":
        liked = set(prefs.liked_meals)
        return cls(
            prefs=prefs,
            weights=normalize_weights(prefs.recommendation_weights),
            constraints=constraints,
            liked_recipes=[r for r in catalog if r.id in liked],
        )


def recipe_tag_set(recipe: Recipe) -> Set[str]:
    """Normalized tags plus the category."""
    tags = normalize_tags(recipe.tags)
    if recipe.category:
        tags.add(normalize_tag(recipe.category))
    return tags


# ==================== Sub-scores ====================

def nutritional_fit(recipe: Recipe, prefs: UserPreferences,
                    constraints: Optional[MealConstraints] = None) -> float:
    if constraints is not None:
        return nutritional_fit_score(recipe, constraints)
    return goal_fit_score(recipe, prefs)


def similarity_to_likes(recipe: Recipe, liked_recipes: Sequence[Recipe],
                        liked_foods: Sequence[str]) -> Optional[float]:
    """
    Tag overlap with liked recipes plus liked foods in the ingredients.

    Returns None when the user has not liked anything yet.
    """
    liked_recipes = [r for r in liked_recipes if r.id != recipe.id]
    liked_foods = [f.lower().strip() for f in liked_foods if f and f.strip()]
    if not liked_recipes and not liked_foods:
        return None

    score = 0.0
    if liked_recipes:
        tags = recipe_tag_set(recipe)
        overlap = 0.0
        for liked in liked_recipes:
            overlap += len(tags & recipe_tag_set(liked)) / max(len(tags), 1)
        score += (overlap / len(liked_recipes)) * TAG_SIMILARITY_SHARE

    if liked_foods:
        names = recipe.ingredient_names()
        hits = sum(1 for food in liked_foods if any(food in name for name in names))
        score += (hits / len(liked_foods)) * FOOD_SIMILARITY_SHARE

    return min(score, 1.0)


def variety_boost(recipe: Recipe, selected_tags: Set[str]) -> float:
    """1.0 for a recipe sharing no tags with the batch picked so far."""
    tags = recipe_tag_set(recipe)
    if not tags or not selected_tags:
        return 1.0
    return 1 - len(tags & selected_tags) / len(tags)


def _pantry_has(ingredient: str, pantry: Sequence[str]) -> bool:
    for item in pantry:
        if item == ingredient or item in ingredient or ingredient in item:
            return True
    return False


def pantry_match(recipe: Recipe, pantry: Sequence[str]) -> Optional[float]:
    """Fraction of ingredients already in the pantry; None without pantry data."""
    pantry = [p.lower().strip() for p in pantry if p and p.strip()]
    names = [n for n in recipe.ingredient_names() if n]
    if not pantry or not names:
        return None
    return sum(1 for name in names if _pantry_has(name, pantry)) / len(names)


def cost_score(recipe: Recipe) -> float:
    """Cheaper recipes score higher."""
    cost = get_recipe_nutrition(recipe).cost
    if cost > 0:
        return 1 - min(1.0, max(0.0, (cost - MIN_COST) / (MAX_COST - MIN_COST)))

    names = recipe.ingredient_names()
    count_penalty = min(0.5, len(names) / 20)
    protein_penalty = 0.3 if any(p in n for n in names for p in EXPENSIVE_PROTEINS) else 0
    return max(0.0, 1 - count_penalty - protein_penalty)


def recency_penalty(recipe: Recipe, recently_viewed: Sequence[str],
                    window: int = RECENCY_WINDOW) -> float:
    """
    Penalty for recently viewed recipes.

    recently_viewed is most-recent-first. The latest view costs 0.8 and the
    penalty shrinks linearly to 0 at the edge of the window.
    """
    for index, recipe_id in enumerate(recently_viewed[:window]):
        if recipe_id == recipe.id:
            return MAX_RECENCY_PENALTY * (window - index) / window
    return 0.0


# ==================== Composite ====================

def _reasons(recipe: Recipe, breakdown: ScoreBreakdown, ctx: ScoringContext) -> List[str]:
    reasons = []
    if breakdown.nutritional_fit is not None and breakdown.nutritional_fit >= 0.8:
        if ctx.constraints is not None:
            reasons.append(f"Fits your meal budget ({ctx.constraints.budget.kcal_target} kcal)")
        else:
            reasons.append("Matches your nutrition goal")
    if breakdown.similarity_to_likes and breakdown.similarity_to_likes >= 0.3:
        reasons.append("Similar to meals you liked")
    if breakdown.pantry_match and breakdown.pantry_match >= 0.5:
        reasons.append("Uses ingredients from your pantry")
    if breakdown.cost_score is not None and breakdown.cost_score >= 0.8:
        reasons.append("Budget friendly")
    if breakdown.recency_penalty:
        reasons.append("Viewed recently")
    if ctx.prefs.author_style and recipe.author_style == ctx.prefs.author_style:
        reasons.append(f"In the style of {recipe.author_style}")
    return reasons


def score_recipe(recipe: Recipe, ctx: ScoringContext) -> ScoredRecipe:
    """
    Composite score for one recipe.

    Never raises: malformed nutrition reads as 0 through the accessor.
    """
    prefs = ctx.prefs
    w = ctx.weights

    breakdown = ScoreBreakdown(
        nutritional_fit=nutritional_fit(recipe, prefs, ctx.constraints),
        similarity_to_likes=similarity_to_likes(recipe, ctx.liked_recipes, prefs.liked_foods),
        variety_boost=variety_boost(recipe, ctx.selected_tags),
        pantry_match=pantry_match(recipe, prefs.pantry_names()),
        cost_score=cost_score(recipe),
        recency_penalty=recency_penalty(recipe, prefs.recently_viewed),
    )

    score = (
        w.nutritional_fit * breakdown.nutritional_fit
        + w.similarity_to_likes * (breakdown.similarity_to_likes or 0.0)
        + w.variety_boost * breakdown.variety_boost
        + w.pantry_match * (breakdown.pantry_match or 0.0)
        + w.cost_score * breakdown.cost_score
        + w.recency_penalty * (1 - breakdown.recency_penalty)
    )
    breakdown.reasons = _reasons(recipe, breakdown, ctx)

    return ScoredRecipe(recipe=recipe, score=score, breakdown=breakdown)


def score_recipes(recipes: Iterable[Recipe], ctx: ScoringContext) -> List[ScoredRecipe]:
    return [score_recipe(r, ctx) for r in recipes]


def rank_with_variety(recipes: Sequence[Recipe], ctx: ScoringContext,
                      count: int) -> List[ScoredRecipe]:
    """
    Greedy diversified ranking.

    After each pick the variety factor of the remaining recipes is
    recomputed against the tags of everything picked so far. Ties keep
    input order.
    """
    remaining = list(recipes)
    picked: List[ScoredRecipe] = []
    ctx.selected_tags = set()

    while remaining and len(picked) < count:
        scored = score_recipes(remaining, ctx)
        best_index = 0
        for i, candidate in enumerate(scored):
            if candidate.score > scored[best_index].score:
                best_index = i
        best = scored[best_index]
        picked.append(best)
        ctx.selected_tags |= recipe_tag_set(best.recipe)
        remaining.pop(best_index)

    return picked


def breakdown_summary(scored: Sequence[ScoredRecipe]) -> Dict[str, float]:
    """Average sub-scores across a batch, for logging."""
    if not scored:
        return {}
    keys = ("nutritional_fit", "variety_boost", "cost_score")
    return {
        k: round(sum(getattr(s.breakdown, k) or 0.0 for s in scored) / len(scored), 3)
        for k in keys
    }
