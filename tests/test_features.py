"""Unit tests for feature extractors. Each returns a value in [0, 1]."""

from __future__ import annotations

import logging
import math

import pytest

from recipe_recommender.data_layer.models import (
    CostLevel,
    GoalType,
    HealthGoal,
    LearnedPreferences,
    Macros,
    MealType,
    RecipeCandidate,
    RecipeIngredient,
    RecommendationContext,
    Season,
    SpiceLevel,
    UserPreferenceProfile,
)
from recipe_recommender.scoring.features import (
    INVENTORY_NO_PANTRY_SCORE,
    NEUTRAL_SCORE,
    OFF_SEASON_SCORE,
    avoided_ingredients,
    clamp_unit,
    inventory_match,
    is_cold_start,
    meal_targets,
    nutrition_match,
    preference_match,
    price_match,
    saturate,
    seasonal_match,
)


def _make_recipe(
    ingredients: tuple = ("rice", "tofu"),
    cost: float | None = 15.0,
    macros: Macros | None = None,
    cuisine: str | None = "thai",
    spice: SpiceLevel | None = None,
    seasons: frozenset = frozenset(),
    optional: tuple = (),
) -> RecipeCandidate:
    items = tuple(RecipeIngredient(n) for n in ingredients)
    items += tuple(RecipeIngredient(n, optional=True) for n in optional)
    return RecipeCandidate(
        id="r1",
        name="Tofu Rice",
        total_time_minutes=25,
        macros=macros or Macros(calories=500, protein_g=25, carbs_g=55, fat_g=18),
        category="main",
        estimated_cost=cost,
        cuisine=cuisine,
        seasons=seasons,
        ingredients=items,
        spice_level=spice,
    )


def _make_context(**overrides) -> RecommendationContext:
    fields = dict(member_id="m1", meal_type=MealType.DINNER)
    fields.update(overrides)
    return RecommendationContext(**fields)


class TestClamp:

    def test_clamps_range(self):
        assert clamp_unit(1.7) == 1.0
        assert clamp_unit(-0.2) == 0.0
        assert clamp_unit(0.42) == 0.42

    def test_non_finite_logged_and_zeroed(self, caplog):
        with caplog.at_level(logging.WARNING, logger="recipe_recommender.scoring.features"):
            assert clamp_unit(math.nan, "price") == 0.0
            assert clamp_unit(math.inf, "price") == 0.0
        assert "Non-finite price" in caplog.text

    def test_saturate(self):
        assert saturate(0.0) == 0.0
        assert saturate(-2.0) == 0.0
        assert saturate(1.0) == pytest.approx(0.5)
        assert saturate(100.0) < 1.0


class TestInventoryMatch:

    def test_no_pantry_is_neutral_low(self):
        assert inventory_match(_make_recipe(), _make_context()) == INVENTORY_NO_PANTRY_SCORE

    def test_fully_stocked(self):
        ctx = _make_context(pantry=frozenset({"Rice", "tofu"}))
        assert inventory_match(_make_recipe(), ctx) == 1.0

    def test_partial_stock(self):
        ctx = _make_context(pantry=frozenset({"rice"}))
        assert inventory_match(_make_recipe(), ctx) == pytest.approx(0.5)

    def test_optional_ingredients_not_required(self):
        recipe = _make_recipe(optional=("cilantro",))
        ctx = _make_context(pantry=frozenset({"rice", "tofu"}))
        assert inventory_match(recipe, ctx) == 1.0

    def test_recipe_without_required_ingredients(self):
        recipe = _make_recipe(ingredients=())
        ctx = _make_context(pantry=frozenset({"rice"}))
        assert inventory_match(recipe, ctx) == INVENTORY_NO_PANTRY_SCORE


class TestPriceMatch:

    def test_no_budget_neutral(self):
        assert price_match(_make_recipe(), _make_context()) == NEUTRAL_SCORE

    def test_unknown_cost_neutral(self):
        assert price_match(_make_recipe(cost=None), _make_context(budget_limit=20)) == NEUTRAL_SCORE

    def test_at_or_below_half_budget(self):
        ctx = _make_context(budget_limit=20)
        assert price_match(_make_recipe(cost=10), ctx) == 1.0
        assert price_match(_make_recipe(cost=4), ctx) == 1.0

    def test_linear_decay(self):
        ctx = _make_context(budget_limit=20)
        assert price_match(_make_recipe(cost=15), ctx) == pytest.approx(0.5)
        assert price_match(_make_recipe(cost=18), ctx) == pytest.approx(0.2)

    def test_at_or_over_budget(self):
        ctx = _make_context(budget_limit=20)
        assert price_match(_make_recipe(cost=20), ctx) == 0.0
        assert price_match(_make_recipe(cost=30), ctx) == 0.0

    def test_zero_budget(self):
        ctx = _make_context(budget_limit=0)
        assert price_match(_make_recipe(cost=0), ctx) == 1.0
        assert price_match(_make_recipe(cost=1), ctx) == 0.0

    def test_cost_level_ignored(self):
        cheap = UserPreferenceProfile(member_id="m1", cost_level=CostLevel.LOW)
        lavish = UserPreferenceProfile(member_id="m1", cost_level=CostLevel.HIGH)
        recipe = _make_recipe(cost=45.0)
        assert price_match(recipe, _make_context(), cheap) == NEUTRAL_SCORE
        ctx = _make_context(budget_limit=60)
        assert price_match(recipe, ctx, cheap) == price_match(recipe, ctx, lavish) == pytest.approx(0.5)


class TestNutritionMatch:

    def test_no_goal_neutral(self):
        assert nutrition_match(_make_recipe(), _make_context()) == NEUTRAL_SCORE

    def test_exact_targets(self):
        ctx = _make_context(health_goal=HealthGoal(GoalType.MAINTAIN))
        assert nutrition_match(_make_recipe(), ctx) == pytest.approx(1.0)

    def test_mean_deviation(self):
        macros = Macros(calories=750, protein_g=25, carbs_g=55, fat_g=18)
        ctx = _make_context(health_goal=HealthGoal(GoalType.MAINTAIN))
        # calories 50% over target, other macros exact
        assert nutrition_match(_make_recipe(macros=macros), ctx) == pytest.approx(0.875)

    def test_deviation_capped_per_macro(self):
        macros = Macros(calories=5000, protein_g=25, carbs_g=55, fat_g=18)
        ctx = _make_context(health_goal=HealthGoal(GoalType.MAINTAIN))
        assert nutrition_match(_make_recipe(macros=macros), ctx) == pytest.approx(0.75)

    def test_lose_weight_lower_calories_not_penalized(self):
        macros = Macros(calories=250, protein_g=30, carbs_g=35, fat_g=12)
        ctx = _make_context(health_goal=HealthGoal(GoalType.LOSE_WEIGHT))
        assert nutrition_match(_make_recipe(macros=macros), ctx) == pytest.approx(1.0)

    def test_gain_muscle_extra_protein_not_penalized(self):
        macros = Macros(calories=650, protein_g=90, carbs_g=70, fat_g=20)
        ctx = _make_context(health_goal=HealthGoal(GoalType.GAIN_MUSCLE))
        assert nutrition_match(_make_recipe(macros=macros), ctx) == pytest.approx(1.0)

    def test_explicit_targets_override_defaults(self):
        goal = HealthGoal(GoalType.MAINTAIN, target_calories=750)
        assert meal_targets(goal)["calories"] == 750.0
        macros = Macros(calories=750, protein_g=25, carbs_g=55, fat_g=18)
        ctx = _make_context(health_goal=goal)
        assert nutrition_match(_make_recipe(macros=macros), ctx) == pytest.approx(1.0)


class TestPreferenceMatch:

    def test_no_signal_base(self):
        assert preference_match(_make_recipe(), _make_context()) == NEUTRAL_SCORE
        profile = UserPreferenceProfile.default("m1")
        assert preference_match(_make_recipe(), _make_context(), profile) == NEUTRAL_SCORE

    def test_context_cuisine_counts(self):
        ctx = _make_context(preferred_cuisines=("Thai",))
        # cuisine 0.4 * 1 + ingredients 0 + spice neutral 0.2 * 0.5
        assert preference_match(_make_recipe(), ctx) == pytest.approx(0.5)

    def test_full_match(self):
        profile = UserPreferenceProfile(
            member_id="m1",
            preferred_cuisines=["thai"],
            preferred_ingredients=["tofu", "rice"],
            spice_level=SpiceLevel.HIGH,
        )
        recipe = _make_recipe(spice=SpiceLevel.HIGH)
        assert preference_match(recipe, _make_context(), profile) == pytest.approx(1.0)

    def test_spice_distance(self):
        profile = UserPreferenceProfile(member_id="m1", spice_level=SpiceLevel.NONE)
        recipe = _make_recipe(spice=SpiceLevel.EXTREME, cuisine=None)
        assert preference_match(recipe, _make_context(), profile) == pytest.approx(0.0)

    def test_learned_cuisine_affinity_saturates(self):
        profile = UserPreferenceProfile(
            member_id="m1",
            learned=LearnedPreferences(cuisine_affinity={"thai": 1.0}),
        )
        # cuisine 0.4 * 0.5 + ingredients 0 + spice neutral 0.1
        assert preference_match(_make_recipe(), _make_context(), profile) == pytest.approx(0.3)

    def test_avoided_ingredient_penalty(self):
        base = UserPreferenceProfile(member_id="m1", preferred_cuisines=["thai"])
        avoiding = UserPreferenceProfile(
            member_id="m1", preferred_cuisines=["thai"], avoided_ingredients=["Tofu"]
        )
        ctx = _make_context()
        plain = preference_match(_make_recipe(), ctx, base)
        penalized = preference_match(_make_recipe(), ctx, avoiding)
        assert penalized == pytest.approx(plain * 0.2)
        assert penalized > 0.0

    def test_learned_negative_affinity_counts_as_avoided(self):
        profile = UserPreferenceProfile(
            member_id="m1",
            learned=LearnedPreferences(ingredient_affinity={"tofu": -1.5, "rice": -0.5}),
        )
        assert avoided_ingredients(profile) == {"tofu"}
        assert preference_match(_make_recipe(), _make_context(), profile) == pytest.approx(0.1)


class TestIsColdStart:

    def test_new_member(self):
        assert is_cold_start(UserPreferenceProfile.default("m1"), _make_context())

    def test_anonymous_request_not_cold_start(self):
        assert not is_cold_start(None, _make_context())

    @pytest.mark.parametrize(
        "overrides",
        [
            {"preferred_cuisines": ["thai"]},
            {"preferred_ingredients": ["tofu"]},
            {"spice_level": SpiceLevel.LOW},
        ],
    )
    def test_stated_tastes_end_cold_start(self, overrides):
        assert not is_cold_start(UserPreferenceProfile(member_id="m1", **overrides))

    def test_request_cuisines_end_cold_start(self):
        ctx = _make_context(preferred_cuisines=frozenset({"thai"}))
        assert not is_cold_start(UserPreferenceProfile.default("m1"), ctx)

    def test_history_thresholds(self):
        few = UserPreferenceProfile(
            member_id="m1", learned=LearnedPreferences(rating_count=2, favorite_count=1, view_count=9)
        )
        assert is_cold_start(few)
        for counts in ({"rating_count": 3}, {"favorite_count": 2}, {"view_count": 10}):
            enough = UserPreferenceProfile(member_id="m1", learned=LearnedPreferences(**counts))
            assert not is_cold_start(enough)


class TestSeasonalMatch:

    def test_no_season_neutral(self):
        recipe = _make_recipe(seasons=frozenset({Season.WINTER}))
        assert seasonal_match(recipe, _make_context()) == NEUTRAL_SCORE

    def test_no_declared_seasons(self):
        assert seasonal_match(_make_recipe(), _make_context(season=Season.SUMMER)) == 1.0

    def test_in_season(self):
        recipe = _make_recipe(seasons=frozenset({Season.SUMMER, Season.SPRING}))
        assert seasonal_match(recipe, _make_context(season=Season.SUMMER)) == 1.0

    def test_off_season(self):
        recipe = _make_recipe(seasons=frozenset({Season.WINTER}))
        assert seasonal_match(recipe, _make_context(season=Season.SUMMER)) == OFF_SEASON_SCORE


class TestBounds:

    @pytest.mark.parametrize(
        "extractor",
        [inventory_match, price_match, nutrition_match, preference_match, seasonal_match],
    )
    def test_extreme_inputs_stay_in_unit_range(self, extractor):
        recipe = _make_recipe(
            cost=1e9,
            macros=Macros(calories=1e6, protein_g=0, carbs_g=1e5, fat_g=0),
            spice=SpiceLevel.EXTREME,
            seasons=frozenset({Season.WINTER}),
        )
        ctx = _make_context(
            budget_limit=1.0,
            pantry=frozenset(),
            season=Season.SUMMER,
            health_goal=HealthGoal(GoalType.GAIN_MUSCLE),
        )
        profile = UserPreferenceProfile(
            member_id="m1",
            avoided_ingredients=["rice", "tofu"],
            learned=LearnedPreferences(cuisine_affinity={"thai": 1e9}),
        )
        value = extractor(recipe, ctx, profile)
        assert 0.0 <= value <= 1.0
