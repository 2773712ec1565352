"""
Recommendation engine.

Pipeline for one call:
    filter -> cold start / style suggestions -> enrich -> score -> diversify -> truncate

The engine keeps no per-user state. Preferences come in on every call and
changes (dislikes, recently viewed) go through a PreferencesStore.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Set

from smartplate.data.catalog import RecipeCatalog
from smartplate.data.models import Recipe, ScoredRecipe, UserPreferences
from smartplate.data.preferences import PreferencesStore
from smartplate.meal_plan import WeeklyPlan
from smartplate.recommendation.filters import filter_recipes
from smartplate.recommendation.llm_suggestions import suggest_by_style
from smartplate.recommendation.meal_budget import (
    MealConstraints,
    calculate_meal_constraints,
    within_budget_limits,
)
from smartplate.recommendation.scorer import ScoringContext, breakdown_summary, rank_with_variety
from smartplate.recommendation.similar import find_similar_recipes
from smartplate.services.nutrition_enrichment import ensure_nutrition_and_cost

logger = logging.getLogger(__name__)

DEFAULT_STYLE = "Mediterranean"
DEFAULT_COUNT = 5

Suggester = Callable[[str, Sequence[str]], Awaitable[List[Recipe]]]
Enricher = Callable[[Sequence[Recipe]], Awaitable[List[Recipe]]]


class RecommendationEngine:
    """Ranks catalog (and generated) recipes for a user."""

    def __init__(
        self,
        catalog: RecipeCatalog,
        suggester: Suggester = suggest_by_style,
        enricher: Optional[Enricher] = ensure_nutrition_and_cost,
        default_style: str = DEFAULT_STYLE,
    ):
        self.catalog = catalog
        self.suggester = suggester
        self.enricher = enricher
        self.default_style = default_style

    def meal_constraints(self, prefs: UserPreferences, meal_type: Optional[str],
                         include_breakfast: bool = True,
                         with_snacks: bool = False) -> Optional[MealConstraints]:
        if not meal_type:
            return None
        return calculate_meal_constraints(prefs, meal_type, include_breakfast, with_snacks)

    async def get_recommendations(
        self,
        prefs: UserPreferences,
        count: int = DEFAULT_COUNT,
        meal_type: Optional[str] = None,
        include_breakfast: bool = True,
        exclude_ids: Iterable[str] = (),
        allow_generated: bool = True,
        enforce_budget: bool = False,
        with_snacks: bool = False,
    ) -> List[ScoredRecipe]:
        """
        Ranked recommendations for a user.

        Args:
            prefs: Normalized user preferences
            count: Maximum number of recipes to return
            meal_type: Restrict to a meal type and score against its budget
            include_breakfast: Whether the day includes breakfast (budget split)
            exclude_ids: Recipe ids that must not be returned
            allow_generated: Allow LLM suggestions on cold start / style preference
            enforce_budget: Also drop recipes outside the meal's calorie window
                or above its sugar hard cap
            with_snacks: Budget against the four-meal split with a snack

        Returns:
            At most `count` ScoredRecipes, best first
        """
        if count <= 0:
            return []

        excluded: Set[str] = set(exclude_ids)
        constraints = self.meal_constraints(prefs, meal_type, include_breakfast, with_snacks)

        # 1. Filter
        candidates = filter_recipes(self.catalog, prefs, meal_type=meal_type, exclude_ids=excluded)
        if enforce_budget and constraints is not None:
            candidates = [r for r in candidates if within_budget_limits(r, constraints)]
        logger.info(f"[ENGINE] {len(candidates)} organic candidates (meal_type={meal_type})")

        # 2. Cold start / style suggestions
        if allow_generated and (not candidates or prefs.author_style):
            generated = await self._generated_candidates(prefs, excluded)
            seen = {r.id for r in candidates}
            candidates.extend(r for r in generated if r.id not in seen)

        if not candidates:
            logger.info("[ENGINE] No candidates available")
            return []

        # 3. Enrich
        candidates = await self._enrich(candidates)

        # 4-5. Score, diversify, truncate
        ctx = ScoringContext.build(prefs, self.catalog, constraints)
        ranked = rank_with_variety(candidates, ctx, count)
        logger.info(f"[ENGINE] Returning {len(ranked)} recommendations {breakdown_summary(ranked)}")
        return ranked

    async def _generated_candidates(self, prefs: UserPreferences, excluded: Set[str]) -> List[Recipe]:
        style = prefs.author_style or self.default_style
        try:
            generated = await self.suggester(style, prefs.pantry_names())
        except Exception as e:
            logger.warning(f"[ENGINE] Style suggestions failed for '{style}': {e}")
            return []

        disliked = set(prefs.disliked_meals)
        generated = [r for r in generated or [] if r.id not in disliked and r.id not in excluded]
        logger.info(f"[ENGINE] {len(generated)} generated candidates in style '{style}'")
        return generated

    async def _enrich(self, candidates: List[Recipe]) -> List[Recipe]:
        if self.enricher is None:
            return candidates
        try:
            return list(await self.enricher(candidates))
        except Exception as e:
            logger.warning(f"[ENGINE] Nutrition enrichment failed, scoring raw recipes: {e}")
            return candidates

    async def replace_rejected(
        self,
        store: PreferencesStore,
        rejected_id: str,
        selected: Sequence[str] = (),
        recommended: Sequence[str] = (),
        meal_type: Optional[str] = None,
        include_breakfast: bool = True,
        with_snacks: bool = False,
    ) -> Optional[ScoredRecipe]:
        """
        Record a rejection and find one replacement.

        The rejected id is added to the user's dislikes. The replacement is
        drawn from the catalog only and is never the rejected recipe or one
        already selected or recommended.

        Returns:
            The replacement, or None if no eligible recipe remains
        """
        store.add_disliked_meal(rejected_id)
        exclude = set(selected) | set(recommended) | {rejected_id}

        replacements = await self.get_recommendations(
            store.preferences,
            count=1,
            meal_type=meal_type,
            include_breakfast=include_breakfast,
            exclude_ids=exclude,
            allow_generated=False,
            with_snacks=with_snacks,
        )
        if not replacements:
            logger.info(f"[ENGINE] No replacement available for rejected recipe {rejected_id}")
            return None
        return replacements[0]

    def find_similar(self, recipe_id: str, count: int = 3) -> List[Recipe]:
        recipe = self.catalog.get(recipe_id)
        if recipe is None:
            return []
        return find_similar_recipes(recipe, self.catalog.all(), count)


@dataclass
class RecommendationSession:
    """
    One meal-planning session: current recommendations, picks and rejections.
    """

    engine: RecommendationEngine
    store: PreferencesStore
    meal_type: Optional[str] = None
    include_breakfast: bool = True
    with_snacks: bool = False
    count: int = DEFAULT_COUNT
    plan: WeeklyPlan = field(default_factory=WeeklyPlan)
    recommendations: List[ScoredRecipe] = field(default_factory=list)
    selected: List[Recipe] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)

    def _selected_ids(self) -> List[str]:
        return [r.id for r in self.selected]

    async def generate(self) -> List[ScoredRecipe]:
        """Fresh recommendations, excluding recipes already picked."""
        self.recommendations = await self.engine.get_recommendations(
            self.store.preferences,
            count=self.count,
            meal_type=self.meal_type,
            include_breakfast=self.include_breakfast,
            with_snacks=self.with_snacks,
            exclude_ids=self._selected_ids(),
        )
        return self.recommendations

    def select(self, recipe_id: str, day: Optional[str] = None) -> Optional[Recipe]:
        """
        Move a recommendation into the selection and mark it viewed.

        With a day, the recipe is also planned for that day (as the
        session's meal type when one is set).
        """
        for i, scored in enumerate(self.recommendations):
            if scored.id == recipe_id:
                if day:
                    self.plan.add_meal(day, scored.recipe, self.meal_type)
                self.recommendations.pop(i)
                self.selected.append(scored.recipe)
                self.store.record_view(recipe_id)
                return scored.recipe
        return None

    def unselect(self, recipe_id: str) -> bool:
        self.plan.remove_meal(recipe_id)
        before = len(self.selected)
        self.selected = [r for r in self.selected if r.id != recipe_id]
        return len(self.selected) < before

    async def reject(self, recipe_id: str) -> Optional[ScoredRecipe]:
        """Drop a recommendation, dislike it and slot in a replacement if one exists."""
        self.recommendations = [s for s in self.recommendations if s.id != recipe_id]
        self.rejected.append(recipe_id)

        replacement = await self.engine.replace_rejected(
            self.store,
            recipe_id,
            selected=self._selected_ids(),
            recommended=[s.id for s in self.recommendations],
            meal_type=self.meal_type,
            include_breakfast=self.include_breakfast,
            with_snacks=self.with_snacks,
        )
        if replacement is not None:
            self.recommendations.append(replacement)
        return replacement

    async def clear_and_regenerate(self) -> List[ScoredRecipe]:
        self.selected = []
        self.rejected = []
        self.plan = WeeklyPlan()
        return await self.generate()

    def meal_budget_info(self) -> Optional[MealConstraints]:
        return self.engine.meal_constraints(
            self.store.preferences, self.meal_type, self.include_breakfast, self.with_snacks
        )

    def plan_week(self) -> WeeklyPlan:
        """Spread the current recommendations over the week, one per day from Monday."""
        self.plan.fill_from([s.recipe for s in self.recommendations], self.meal_type)
        return self.plan
