"""
Shopping list generation.

Ingredients from the planned recipes are aggregated by name, pantry stock
is subtracted, and whatever is still needed becomes a ShoppingItem. Each
item remembers which recipes contributed to it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from smartplate.data.models import PantryItem, Recipe

logger = logging.getLogger(__name__)


@dataclass
class IngredientContribution:
    """A single recipe's contribution to a shopping item."""

    recipe_title: str
    amount: float
    unit: str

    def to_dict(self) -> Dict:
        return {"recipe_title": self.recipe_title, "amount": self.amount, "unit": self.unit}


@dataclass
class ShoppingItem:
    """Ingredient still to buy."""

    name: str
    amount: float
    unit: str
    contributions: List[IngredientContribution] = field(default_factory=list)

    @property
    def recipe_sources(self) -> List[str]:
        seen = []
        for c in self.contributions:
            if c.recipe_title not in seen:
                seen.append(c.recipe_title)
        return seen

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "amount": self.amount,
            "unit": self.unit,
            "recipe_sources": self.recipe_sources,
            "contributions": [c.to_dict() for c in self.contributions],
        }


@dataclass
class _Needed:
    amount: float = 0.0
    unit: str = ""
    contributions: List[IngredientContribution] = field(default_factory=list)


def aggregate_ingredients(recipes: Sequence[Recipe]) -> Dict[str, _Needed]:
    """Total ingredient amounts across recipes, keyed by lowercase name."""
    needed: Dict[str, _Needed] = {}
    for recipe in recipes:
        for ing in recipe.ingredients:
            key = ing.display_name.lower().strip()
            if not key:
                continue
            entry = needed.setdefault(key, _Needed())
            entry.amount += ing.amount or 0.0
            # Amounts are summed as-is; units are not converted
            entry.unit = ing.unit or entry.unit or "unit"
            entry.contributions.append(
                IngredientContribution(recipe.title, ing.amount or 0.0, ing.unit or "unit")
            )
    return needed


def build_shopping_list(recipes: Sequence[Recipe], pantry: Sequence[PantryItem] = ()) -> List[ShoppingItem]:
    """
    Shopping list for a set of planned recipes.

    Args:
        recipes: Planned recipes
        pantry: Items on hand; matching names reduce the amount to buy

    Returns:
        Items with a positive amount to buy, sorted by name
    """
    stock = {item.name.lower().strip(): item.quantity or 0.0 for item in pantry}

    items = []
    for name, entry in aggregate_ingredients(recipes).items():
        to_buy = max(0.0, entry.amount - stock.get(name, 0.0))
        if to_buy > 0:
            items.append(ShoppingItem(
                name=name,
                amount=round(to_buy, 2),
                unit=entry.unit,
                contributions=entry.contributions,
            ))

    items.sort(key=lambda i: i.name)
    logger.info(f"Shopping list: {len(items)} items from {len(recipes)} recipes")
    return items
