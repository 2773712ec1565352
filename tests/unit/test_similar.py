"""
Unit tests for similar recipe lookup.
"""

import pytest

from smartplate.recommendation.similar import find_similar_recipes, similarity


class TestSimilarRecipes:
    """Test ingredient and tag overlap ranking."""

    def test_similarity_weights(self, recipe_factory):
        a = recipe_factory("a", tags=["Asian"], ingredients=["rice", "tofu"])
        b = recipe_factory("b", tags=["Asian"], ingredients=["rice", "beef"])
        assert similarity(a, b) == pytest.approx(0.5 * 0.7 + 1.0 * 0.3)

    def test_never_returns_the_recipe_itself(self, sample_recipes):
        target = sample_recipes[4]
        similar = find_similar_recipes(target, sample_recipes, count=10)
        assert target.id not in [r.id for r in similar]
        assert len(similar) == len(sample_recipes) - 1

    def test_most_similar_first(self, sample_recipes):
        # d1 shares rice and the High Protein tag with the salmon bowl
        salmon_bowl = sample_recipes[7]
        similar = find_similar_recipes(salmon_bowl, sample_recipes, count=1)
        assert [r.id for r in similar] == ["d1"]

    def test_count(self, sample_recipes):
        assert len(find_similar_recipes(sample_recipes[0], sample_recipes)) == 3
