"""
Unit tests for PreferencesStore and the SQLite backend.
"""

import pytest

from smartplate.data.models import UserPreferences
from smartplate.data.preferences import PreferencesStore, SqlitePreferencesBackend, open_store
from smartplate.recommendation.meal_budget import calculate_meal_constraints
from smartplate.recommendation.preset_rules import Goal, goal_for
from smartplate.recommendation.weights import preset_weights


class TestPreferencesStore:
    """Test mutations on the in-memory store."""

    def test_defaults(self, store):
        prefs = store.preferences
        assert prefs.recommendation_preset is None
        assert goal_for(prefs) is Goal.HEALTHY
        assert prefs.recommendation_weights == preset_weights("Healthy")

    def test_update_accepts_camel_case(self, store):
        prefs = store.update({"dietaryPreference": "vegan", "cookingTime": "30"})
        assert prefs.dietary_preference == "vegan"
        assert prefs.cooking_time == 30

    def test_preset_change_resets_weights(self, store):
        store.set_weights({"cost_score": 1})
        prefs = store.set_preset("MuscleGain")
        assert prefs.recommendation_weights == preset_weights("MuscleGain")

    def test_preset_change_keeps_explicit_weights(self, store):
        prefs = store.update(recommendation_preset="WeightLoss", recommendation_weights={"cost_score": 2})
        assert prefs.recommendation_preset == "WeightLoss"
        assert prefs.recommendation_weights.cost_score == pytest.approx(1.0)

    def test_fitness_goal_change_resets_weights(self, store):
        store.set_weights({"cost_score": 1})
        prefs = store.update(fitness_goal="weight_loss")

        assert goal_for(prefs) is Goal.WEIGHT_LOSS
        assert prefs.recommendation_weights == preset_weights("WeightLoss")
        assert calculate_meal_constraints(prefs, "dinner").budget.kcal_target == 720

    def test_explicit_preset_wins_over_fitness_goal(self, store):
        prefs = store.update(fitnessGoal="MuscleGain", recommendationPreset="WeightLoss")
        assert goal_for(prefs) is Goal.WEIGHT_LOSS

    def test_reset_weights_follows_fitness_goal(self, store):
        store.update(fitness_goal="muscle_gain")
        store.set_weights({"cost_score": 1})
        assert store.reset_weights().recommendation_weights == preset_weights("MuscleGain")

    def test_set_weights_normalizes(self, store):
        prefs = store.set_weights({"nutritionalFit": 1, "varietyBoost": 3})
        assert prefs.recommendation_weights.variety_boost == pytest.approx(0.75)

    def test_reset_weights(self, store):
        store.update(recommendation_preset="WeightLoss")
        store.set_weights({"cost_score": 1})
        assert store.reset_weights().recommendation_weights == preset_weights("WeightLoss")

    def test_like_and_dislike_are_exclusive(self, store):
        store.add_liked_meal("1")
        store.add_disliked_meal("1")
        assert store.preferences.disliked_meals == ["1"]
        assert store.preferences.liked_meals == []

        store.add_liked_meal("1")
        assert store.preferences.liked_meals == ["1"]
        assert store.preferences.disliked_meals == []

    def test_record_view_moves_to_front_and_caps(self, store):
        for i in range(12):
            store.record_view(str(i))
        store.record_view("5")

        viewed = store.preferences.recently_viewed
        assert viewed[0] == "5"
        assert len(viewed) == 10
        assert viewed.count("5") == 1

    def test_every_mutation_persists(self, store):
        store.update(allergies=["shellfish"])
        store.add_liked_meal("3")
        store.record_view("3")
        assert len(store.saved) == 3
        assert store.saved[-1].allergies == ["shellfish"]

    def test_add_pantry_item(self, store):
        item = store.add_pantry_item("Eggs", quantity=6, unit="piece", category="dairy", expiry_date="2026-11-01")

        assert item.id.startswith("pantry_")
        assert store.preferences.pantry_names() == ["Eggs"]
        assert store.preferences.pantry[0].expiry_date == "2026-11-01"
        assert store.saved[-1].pantry[0].id == item.id

    def test_add_pantry_item_requires_name(self, store):
        with pytest.raises(ValueError):
            store.add_pantry_item("  ")

    def test_add_pantry_items_assigns_unique_ids(self, store):
        added = store.add_pantry_items(["rice", {"name": "rice", "quantity": 2}, {"name": ""}])

        assert len(added) == 2
        assert added[0].id != added[1].id
        assert len(store.saved) == 1

    def test_add_pantry_items_keeps_given_ids(self, store):
        added = store.add_pantry_items([{"id": "scanned_1_0", "name": "Milk"}])
        assert added[0].id == "scanned_1_0"

    def test_remove_pantry_item(self, store):
        item = store.add_pantry_item("Milk")

        assert store.remove_pantry_item(item.id) is True
        assert store.preferences.pantry == []
        assert store.remove_pantry_item(item.id) is False

    def test_update_pantry_item(self, store):
        item = store.add_pantry_item("Milk", quantity=1, unit="l")

        updated = store.update_pantry_item(item.id, quantity=0.5, expirationDate="2026-10-25")

        assert updated.id == item.id
        assert updated.quantity == 0.5
        assert updated.unit == "l"
        assert updated.expiry_date == "2026-10-25"
        assert store.preferences.pantry[0].quantity == 0.5

    def test_update_missing_pantry_item(self, store):
        assert store.update_pantry_item("nope", quantity=2) is None

    def test_reset_clears_backend(self, mocker):
        clear = mocker.Mock()
        store = PreferencesStore(UserPreferences(allergies=["nuts"]), clear=clear)

        prefs = store.reset()

        clear.assert_called_once()
        assert prefs.allergies == []


class TestSqliteBackend:
    """Test SQLite persistence."""

    def test_round_trip(self, tmp_path):
        db_path = str(tmp_path / "prefs.db")
        store = open_store(db_path)
        store.update(dietary_preference="vegetarian", liked_meals=["4"])

        reopened = open_store(db_path)

        assert reopened.preferences.dietary_preference == "vegetarian"
        assert reopened.preferences.liked_meals == ["4"]

    def test_missing_profile(self, tmp_path):
        backend = SqlitePreferencesBackend(str(tmp_path / "prefs.db"))
        assert backend.load() is None

    def test_clear(self, tmp_path):
        db_path = str(tmp_path / "prefs.db")
        store = open_store(db_path)
        store.update(allergies=["eggs"])
        store.reset()

        assert SqlitePreferencesBackend(db_path).load() is None

    def test_unreadable_profile(self, tmp_path):
        backend = SqlitePreferencesBackend(str(tmp_path / "prefs.db"))
        backend.set_preference(backend.PROFILE_KEY, "{not json")
        assert backend.load() is None

    def test_creates_parent_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "prefs.db"
        SqlitePreferencesBackend(str(db_path))
        assert db_path.exists()
