"""
Unit tests for RecommendationSession.
"""

import pytest

from smartplate.recommendation.engine import RecommendationSession


@pytest.fixture
def session(engine, store):
    return RecommendationSession(engine=engine, store=store, meal_type="dinner", count=2)


class TestRecommendationSession:
    """Test selection, rejection and regeneration within a session."""

    @pytest.mark.asyncio
    async def test_generate(self, session):
        recommendations = await session.generate()
        assert len(recommendations) == 2
        assert session.recommendations == recommendations

    @pytest.mark.asyncio
    async def test_select_moves_recipe_and_records_view(self, session, store):
        await session.generate()
        picked_id = session.recommendations[0].id

        recipe = session.select(picked_id)

        assert recipe.id == picked_id
        assert [r.id for r in session.selected] == [picked_id]
        assert picked_id not in [s.id for s in session.recommendations]
        assert store.preferences.recently_viewed[0] == picked_id

    def test_select_unknown_recipe(self, session):
        assert session.select("nope") is None

    @pytest.mark.asyncio
    async def test_generate_excludes_selected(self, session):
        await session.generate()
        picked_id = session.recommendations[0].id
        session.select(picked_id)

        regenerated = await session.generate()

        assert picked_id not in [s.id for s in regenerated]

    @pytest.mark.asyncio
    async def test_reject_slots_in_replacement(self, session, store):
        await session.generate()
        rejected_id = session.recommendations[0].id
        kept_id = session.recommendations[1].id

        replacement = await session.reject(rejected_id)

        assert replacement is not None
        assert replacement.id not in (rejected_id, kept_id)
        assert [s.id for s in session.recommendations] == [kept_id, replacement.id]
        assert session.rejected == [rejected_id]
        assert rejected_id in store.preferences.disliked_meals

    @pytest.mark.asyncio
    async def test_unselect(self, session):
        await session.generate()
        picked_id = session.recommendations[0].id
        session.select(picked_id)

        assert session.unselect(picked_id)
        assert session.selected == []
        assert not session.unselect(picked_id)

    @pytest.mark.asyncio
    async def test_clear_and_regenerate(self, session):
        await session.generate()
        session.select(session.recommendations[0].id)
        await session.reject(session.recommendations[0].id)

        await session.clear_and_regenerate()

        assert session.selected == []
        assert session.rejected == []
        assert len(session.recommendations) == 2

    def test_meal_budget_info(self, session, engine, store):
        constraints = session.meal_budget_info()
        assert constraints.budget.kcal_target == 880

        open_session = RecommendationSession(engine=engine, store=store)
        assert open_session.meal_budget_info() is None

    @pytest.mark.asyncio
    async def test_select_with_day_plans_meal(self, session):
        await session.generate()
        picked_id = session.recommendations[0].id

        session.select(picked_id, day="Tuesday")

        meals = session.plan.meals_for_day("Tuesday")
        assert [m.recipe.id for m in meals] == [picked_id]
        assert meals[0].meal_type == "dinner"

    @pytest.mark.asyncio
    async def test_unselect_removes_from_plan(self, session):
        await session.generate()
        picked_id = session.recommendations[0].id
        session.select(picked_id, day="mon")

        session.unselect(picked_id)

        assert session.plan.meals == []

    @pytest.mark.asyncio
    async def test_plan_week(self, session):
        await session.generate()

        plan = session.plan_week()

        assert [m.day for m in plan.meals] == ["Monday", "Tuesday"]
        assert plan.day_nutrition("Monday").calories > 0

    def test_meal_budget_info_with_snacks(self, engine, store):
        snack_session = RecommendationSession(engine=engine, store=store, meal_type="snack", with_snacks=True)
        assert snack_session.meal_budget_info().budget.kcal_target == 330

    @pytest.mark.asyncio
    async def test_generate_passes_snack_split(self, engine, store, mocker):
        spy = mocker.spy(engine, "get_recommendations")
        snack_session = RecommendationSession(engine=engine, store=store, meal_type="snack", with_snacks=True)

        await snack_session.generate()

        assert spy.call_args.kwargs["with_snacks"] is True
