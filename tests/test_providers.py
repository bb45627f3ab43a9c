"""Tests for catalog filter hints and in-memory collaborators."""

from datetime import datetime, timedelta, timezone

import pytest

from recipe_recommender.data_layer.models import (
    FeedbackEvent,
    Macros,
    MealType,
    RecipeCandidate,
    UserPreferenceProfile,
)
from recipe_recommender.providers import (
    CatalogFilter,
    CatalogReader,
    InMemoryCatalog,
    InMemoryFeedbackLog,
    InMemoryProfileStore,
)

T0 = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def _make_recipe(rid, category="main", time=20, meal_types=frozenset({MealType.DINNER})):
    return RecipeCandidate(
        id=rid,
        name=rid,
        total_time_minutes=time,
        macros=Macros(calories=500, protein_g=25, carbs_g=55, fat_g=18),
        category=category,
        meal_types=meal_types,
    )


class TestCatalogFilter:

    def test_empty_filter_matches_everything(self):
        assert CatalogFilter().matches(_make_recipe("a"))

    def test_meal_type(self):
        hints = CatalogFilter(meal_type=MealType.LUNCH)
        assert not hints.matches(_make_recipe("a"))
        assert hints.matches(_make_recipe("b", meal_types=frozenset()))

    def test_category_case_insensitive(self):
        assert CatalogFilter(category="MAIN").matches(_make_recipe("a"))
        assert not CatalogFilter(category="soup").matches(_make_recipe("a"))

    def test_max_total_time(self):
        hints = CatalogFilter(max_total_time=20)
        assert hints.matches(_make_recipe("a", time=20))
        assert not hints.matches(_make_recipe("b", time=21))


class TestInMemoryCatalog:

    def test_is_catalog_reader(self):
        assert isinstance(InMemoryCatalog(), CatalogReader)

    def test_list_and_get(self):
        catalog = InMemoryCatalog([_make_recipe("a"), _make_recipe("b", category="soup")])
        assert len(catalog) == 2
        assert [r.id for r in catalog.list_recipes(CatalogFilter(category="soup"))] == ["b"]
        assert catalog.get_recipe("a").id == "a"
        assert catalog.get_recipe("zzz") is None


class TestInMemoryProfileStore:

    def test_returns_copies(self):
        store = InMemoryProfileStore([UserPreferenceProfile(member_id="m1")])
        profile = store.get_profile("m1")
        profile.avoided_ingredients.append("peanut")
        assert store.get_profile("m1").avoided_ingredients == []

    def test_save(self):
        store = InMemoryProfileStore()
        assert store.get_profile("m1") is None
        store.save_profile("m1", UserPreferenceProfile(member_id="m1", preference_score=0.4))
        assert store.get_profile("m1").preference_score == 0.4


class TestInMemoryFeedbackLog:

    @pytest.fixture
    def log(self):
        events = [
            FeedbackEvent("e1", "m1", "view", T0),
            FeedbackEvent("e2", "m1", "view", T0 + timedelta(hours=1)),
            FeedbackEvent("e3", "m2", "view", T0 + timedelta(hours=2)),
        ]
        return InMemoryFeedbackLog(events)

    def test_filters_by_member(self, log):
        assert [e.event_id for e in log.list_feedback_since("m1")] == ["e1", "e2"]

    def test_since_is_inclusive(self, log):
        assert [e.event_id for e in log.list_feedback_since("m1", T0)] == ["e1", "e2"]
        assert [e.event_id for e in log.list_feedback_since("m1", T0 + timedelta(minutes=1))] == ["e2"]

    def test_append(self, log):
        log.append(FeedbackEvent("e4", "m2", "favorite", T0 + timedelta(hours=3)))
        assert len(log.list_feedback_since("m2")) == 2
