"""
Unit tests for shopping list generation.
"""

import pytest

from smartplate.data.models import PantryItem, Recipe, RecipeIngredient
from smartplate.shopping import aggregate_ingredients, build_shopping_list


def _recipe(recipe_id, title, *lines):
    return Recipe(
        id=recipe_id,
        title=title,
        ingredients=[RecipeIngredient(id=i, amount=a, unit=u, name=n) for i, (n, a, u) in enumerate(lines)],
    )


@pytest.fixture
def planned():
    return [
        _recipe("1", "Stir-Fry", ("Chicken breast", 200, "g"), ("Rice", 150, "g"), ("Garlic", 2, "clove")),
        _recipe("2", "Fried Rice", ("rice", 250, "g"), ("Eggs", 2, "piece"), ("garlic", 1, "clove")),
    ]


class TestShoppingList:
    """Test aggregation and pantry subtraction."""

    def test_aggregates_by_name(self, planned):
        needed = aggregate_ingredients(planned)
        assert needed["rice"].amount == 400
        assert needed["garlic"].amount == 3
        assert len(needed["rice"].contributions) == 2

    def test_sorted_with_sources(self, planned):
        items = build_shopping_list(planned)

        assert [i.name for i in items] == ["chicken breast", "eggs", "garlic", "rice"]
        rice = items[-1]
        assert rice.recipe_sources == ["Stir-Fry", "Fried Rice"]
        assert rice.to_dict()["amount"] == 400

    def test_pantry_is_subtracted(self, planned):
        pantry = [
            PantryItem(id="p1", name="Rice", quantity=100, unit="g"),
            PantryItem(id="p2", name="Eggs", quantity=6, unit="piece"),
        ]
        items = {i.name: i for i in build_shopping_list(planned, pantry)}

        assert items["rice"].amount == 300
        assert "eggs" not in items

    def test_empty_plan(self):
        assert build_shopping_list([]) == []
