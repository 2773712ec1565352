"""
Similar recipe lookup ("you might also like").
"""

from typing import List, Sequence

from smartplate.data.models import Recipe
from smartplate.tag_canon import normalize_tags

INGREDIENT_SHARE = 0.7
TAG_SHARE = 0.3


def similarity(a: Recipe, b: Recipe) -> float:
    """Weighted ingredient and tag overlap of b relative to a."""
    a_ingredients = set(a.ingredient_names())
    b_ingredients = set(b.ingredient_names())
    a_tags = normalize_tags(a.tags)
    b_tags = normalize_tags(b.tags)

    ingredient_overlap = len(a_ingredients & b_ingredients) / max(len(a_ingredients), 1)
    tag_overlap = len(a_tags & b_tags) / max(len(a_tags), 1)
    return ingredient_overlap * INGREDIENT_SHARE + tag_overlap * TAG_SHARE


def find_similar_recipes(recipe: Recipe, pool: Sequence[Recipe], count: int = 3) -> List[Recipe]:
    """Top `count` recipes from the pool most similar to `recipe` (never itself)."""
    scored = [(similarity(recipe, other), i, other) for i, other in enumerate(pool) if other.id != recipe.id]
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [other for _, _, other in scored[:count]]
