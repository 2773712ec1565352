"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import pytest

from smartplate.data.catalog import RecipeCatalog
from smartplate.data.models import NutritionInfo, Recipe, RecipeIngredient, UserPreferences
from smartplate.data.preferences import PreferencesStore
from smartplate.llm_provider import NullLLMProvider
from smartplate.recommendation.engine import RecommendationEngine
from smartplate.recommendation.llm_suggestions import synthesize_recipes


def make_recipe(recipe_id, title=None, category="Dinner", tags=None, ingredients=None,
                calories=500, protein=30, carbs=50, fat=18, fiber=6, sugar=8, cost=5.0,
                time="25 mins", **kwargs):
    """Recipe with nested nutrition and structured ingredients."""
    names = ingredients if ingredients is not None else ["chicken breast", "rice", "broccoli"]
    return Recipe(
        id=recipe_id,
        title=title or f"Recipe {recipe_id}",
        time=time,
        category=category,
        tags=list(tags or []),
        ingredients=[RecipeIngredient(id=i, amount=100, unit="g", name=n) for i, n in enumerate(names)],
        nutrition=NutritionInfo(calories, protein, carbs, fat, fiber, sugar, cost),
        **kwargs,
    )


@pytest.fixture
def recipe_factory():
    """
    Build recipes inline.

    Usage in tests:
        def test_something(recipe_factory):
            recipe = recipe_factory("r1", tags=["Vegan"])
    """
    return make_recipe


@pytest.fixture
def sample_recipes():
    """A small mixed catalog covering every meal type."""
    return [
        make_recipe("b1", "Veggie Omelette", category="Breakfast", tags=["Vegetarian", "High Protein"],
                    ingredients=["eggs", "spinach", "feta"], calories=520, protein=30, carbs=10, fat=25),
        make_recipe("b2", "Berry Oats", category="Breakfast", tags=["Vegan", "Quick"],
                    ingredients=["oats", "blueberries", "almond milk"], calories=480, protein=14, carbs=70,
                    fat=10, sugar=18, cost=2.5, time="5 mins"),
        make_recipe("l1", "Chickpea Salad", category="Lunch", tags=["Vegan", "High Fiber"],
                    ingredients=["chickpeas", "cucumber", "tomato"], calories=700, protein=28, carbs=90,
                    fat=22, fiber=14),
        make_recipe("l2", "Tuna Wrap", category="Lunch", tags=["High Protein", "Seafood"],
                    ingredients=["tuna", "tortilla", "lettuce"], calories=760, protein=45, carbs=70, fat=28),
        make_recipe("d1", "Chicken Stir-Fry", category="Dinner", tags=["Asian", "High Protein"],
                    ingredients=["chicken breast", "broccoli", "soy sauce", "rice"], calories=880,
                    protein=55, carbs=95, fat=28),
        make_recipe("d2", "Peanut Noodles", category="Dinner", tags=["Asian", "Vegan"],
                    ingredients=["noodles", "peanut butter", "carrot"], calories=850, protein=25,
                    carbs=110, fat=32, sugar=14),
        make_recipe("d3", "Slow Beef Stew", category="Dinner", tags=["Comfort Food", "Gluten Free"],
                    ingredients=["beef", "potato", "carrot", "onion"], calories=900, protein=50,
                    carbs=60, fat=40, cost=12.0, time="2 hrs"),
        make_recipe("d4", "Salmon Bowl", category="Dinner", tags=["Seafood", "High Protein", "Gluten Free"],
                    ingredients=["salmon", "rice", "avocado"], calories=870, protein=48, carbs=80,
                    fat=35, cost=14.0),
    ]


@pytest.fixture
def catalog(sample_recipes):
    return RecipeCatalog(sample_recipes)


@pytest.fixture
def prefs():
    """Default preferences: Healthy preset, no restrictions."""
    return UserPreferences()


@pytest.fixture
def store():
    """In-memory preferences store that records every persisted snapshot."""
    saved = []
    store = PreferencesStore(persist=saved.append)
    store.saved = saved
    return store


@pytest.fixture
def fake_suggester():
    """
    Async suggester that synthesizes offline recipes and records its calls.
    """
    calls = []

    async def suggester(style, ingredients):
        calls.append((style, list(ingredients)))
        return synthesize_recipes(style, ingredients or ["tomato", "onion", "garlic", "olive oil", "pasta"])

    suggester.calls = calls
    return suggester


@pytest.fixture
def engine(catalog, fake_suggester):
    """Engine over the sample catalog without enrichment."""
    return RecommendationEngine(catalog, suggester=fake_suggester, enricher=None)


@pytest.fixture
def null_provider():
    return NullLLMProvider()
