"""
Unit tests for the weighted recipe scorer and diversified ranking.
"""

import pytest

from smartplate.data.models import UserPreferences
from smartplate.recommendation.meal_budget import calculate_meal_constraints
from smartplate.recommendation.scorer import (
    ScoringContext,
    cost_score,
    pantry_match,
    rank_with_variety,
    recency_penalty,
    score_recipe,
    similarity_to_likes,
    variety_boost,
)
from smartplate.recommendation.weights import normalize_weights


def _context(weights, **prefs_kwargs):
    prefs = UserPreferences(recommendation_weights=normalize_weights(weights), **prefs_kwargs)
    return ScoringContext(prefs=prefs, weights=prefs.recommendation_weights)


class TestSubScores:
    """Test individual scoring factors."""

    def test_recency_penalty_decays_with_position(self, recipe_factory):
        recipe = recipe_factory("r1")
        assert recency_penalty(recipe, ["r1", "x"]) == pytest.approx(0.8)
        assert recency_penalty(recipe, ["a", "b", "c", "d", "e", "r1"]) == pytest.approx(0.4)
        assert recency_penalty(recipe, ["x", "y"]) == 0.0

    def test_recency_penalty_ignores_views_outside_window(self, recipe_factory):
        viewed = [f"x{i}" for i in range(10)] + ["r1"]
        assert recency_penalty(recipe_factory("r1"), viewed) == 0.0

    def test_variety_boost(self, recipe_factory):
        recipe = recipe_factory("r1", category="", tags=["Asian", "Spicy"])
        assert variety_boost(recipe, set()) == 1.0
        assert variety_boost(recipe, {"asian"}) == pytest.approx(0.5)
        assert variety_boost(recipe, {"asian", "spicy"}) == 0.0

    def test_pantry_match(self, recipe_factory):
        recipe = recipe_factory("r1", ingredients=["chicken breast", "rice", "broccoli"])
        assert pantry_match(recipe, []) is None
        assert pantry_match(recipe, ["Chicken", "rice"]) == pytest.approx(2 / 3)

    def test_similarity_absent_without_likes(self, recipe_factory):
        assert similarity_to_likes(recipe_factory("r1"), [], []) is None

    def test_similarity_to_liked_recipes_and_foods(self, recipe_factory):
        recipe = recipe_factory("r1", category="", tags=["Asian"], ingredients=["tofu", "rice"])
        liked = recipe_factory("r2", category="", tags=["Asian"])
        score = similarity_to_likes(recipe, [liked], ["tofu"])
        assert score == pytest.approx(1.0)

    def test_cost_score(self, recipe_factory):
        assert cost_score(recipe_factory("a", cost=2.0)) == pytest.approx(1.0)
        assert cost_score(recipe_factory("b", cost=11.0)) == pytest.approx(0.5)
        assert cost_score(recipe_factory("c", cost=40.0)) == 0.0

    def test_cost_score_estimated_without_cost(self, recipe_factory):
        recipe = recipe_factory("a", cost=0, ingredients=["salmon", "rice", "lemon"])
        assert cost_score(recipe) == pytest.approx(1 - 3 / 20 - 0.3)


class TestScoreRecipe:
    """Test the composite score."""

    def test_recency_weight(self, recipe_factory):
        recipe = recipe_factory("r1")
        assert score_recipe(recipe, _context({"recency_penalty": 1})).score == pytest.approx(1.0)

        viewed = _context({"recency_penalty": 1}, recently_viewed=["r1"])
        assert score_recipe(recipe, viewed).score == pytest.approx(0.2)

    def test_absent_factor_contributes_zero(self, recipe_factory):
        scored = score_recipe(recipe_factory("r1"), _context({"pantry_match": 1}))
        assert scored.breakdown.pantry_match is None
        assert scored.score == 0.0

    def test_uses_meal_budget_when_given(self, recipe_factory):
        ctx = _context({"nutritional_fit": 1})
        ctx.constraints = calculate_meal_constraints(ctx.prefs, "dinner")
        recipe = recipe_factory("r1", calories=880, protein=55, carbs=99, fat=29, fiber=6, sugar=5)

        scored = score_recipe(recipe, ctx)

        assert scored.score == pytest.approx(1.0)
        assert any("meal budget" in reason for reason in scored.breakdown.reasons)

    def test_reasons_mention_recent_views(self, recipe_factory):
        ctx = _context({"recency_penalty": 1}, recently_viewed=["r1"])
        assert "Viewed recently" in score_recipe(recipe_factory("r1"), ctx).breakdown.reasons

    def test_context_build_collects_liked_recipes(self, catalog):
        prefs = UserPreferences(liked_meals=["d1", "missing"])
        ctx = ScoringContext.build(prefs, catalog)
        assert [r.id for r in ctx.liked_recipes] == ["d1"]
        assert ctx.weights.total() == pytest.approx(1.0)


class TestRankWithVariety:
    """Test greedy diversified ranking."""

    def test_truncates_to_count(self, sample_recipes, prefs):
        ctx = ScoringContext.build(prefs, sample_recipes)
        assert len(rank_with_variety(sample_recipes, ctx, 3)) == 3

    def test_ties_keep_input_order(self, recipe_factory):
        recipes = [recipe_factory(f"r{i}", cost=5.0) for i in range(4)]
        ranked = rank_with_variety(recipes, _context({"cost_score": 1}), 4)
        assert [s.id for s in ranked] == ["r0", "r1", "r2", "r3"]

    def test_variety_recomputed_after_each_pick(self, recipe_factory):
        recipes = [
            recipe_factory("a", category="", tags=["Asian"]),
            recipe_factory("b", category="", tags=["Asian"]),
            recipe_factory("c", category="", tags=["Italian"]),
        ]
        ranked = rank_with_variety(recipes, _context({"variety_boost": 1}), 3)
        assert [s.id for s in ranked] == ["a", "c", "b"]
        assert ranked[2].breakdown.variety_boost == 0.0

    def test_scores_never_increase(self, sample_recipes, prefs):
        ctx = ScoringContext.build(prefs, sample_recipes)
        scores = [s.score for s in rank_with_variety(sample_recipes, ctx, len(sample_recipes))]
        assert scores == sorted(scores, reverse=True)
