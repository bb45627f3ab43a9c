"""Tests for the preference learner."""

from __future__ import annotations

import copy
import logging
import math
from datetime import datetime, timedelta, timezone

import pytest

from recipe_recommender.data_layer.models import (
    FeedbackEvent,
    Macros,
    RecipeCandidate,
    RecipeIngredient,
    SpiceLevel,
    UserPreferenceProfile,
)
from recipe_recommender.learning.preference_learner import (
    LearnerSettings,
    confidence_from_volume,
    update_profile,
)

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _make_recipe(rid: str = "r1") -> RecipeCandidate:
    return RecipeCandidate(
        id=rid,
        name="Green Curry",
        total_time_minutes=30,
        macros=Macros(calories=550, protein_g=30, carbs_g=50, fat_g=20),
        category="Main",
        cuisine="Thai",
        ingredients=(RecipeIngredient("rice"), RecipeIngredient("tofu")),
        spice_level=SpiceLevel.MEDIUM,
    )


def _event(
    eid: str,
    kind: str,
    payload: dict | None = None,
    recipe_id: str | None = "r1",
    minutes: int = 0,
    member_id: str = "m1",
) -> FeedbackEvent:
    return FeedbackEvent(
        event_id=eid,
        member_id=member_id,
        kind=kind,
        timestamp=T0 + timedelta(minutes=minutes),
        recipe_id=recipe_id,
        payload=payload or {},
    )


@pytest.fixture
def recipes():
    return {"r1": _make_recipe()}


@pytest.fixture
def profile():
    return UserPreferenceProfile.default("m1")


class TestZeroHistoryScenario:
    """A new member learns from one 5-star rating plus a favorite."""

    def test_fresh_profile_is_empty(self, profile):
        assert profile.preference_score == 0
        assert profile.learned.is_empty

    def test_rating_and_favorite(self, profile, recipes):
        events = [
            _event("e1", "rating", {"rating": 5}),
            _event("e2", "favorite", minutes=1),
        ]
        result = update_profile(profile, events, recipes)

        learned = result.profile.learned
        assert result.processed_count == 2
        assert result.skipped_count == 0
        assert result.profile.preference_score > 0
        assert learned.cuisine_affinity["thai"] == pytest.approx(3.0)
        assert learned.category_affinity["main"] == pytest.approx(3.0)
        assert learned.ingredient_affinity == {"rice": 3.0, "tofu": 3.0}
        assert learned.spice_level is SpiceLevel.MEDIUM
        assert learned.signal_volume == pytest.approx(3.0)
        assert result.profile.preference_score == pytest.approx(1 - math.exp(-3 / 20))


class TestSignals:

    def test_favorite_stronger_than_rating(self, profile, recipes):
        by_rating = update_profile(profile, [_event("e1", "rating", {"rating": 5})], recipes)
        by_favorite = update_profile(profile, [_event("e1", "favorite")], recipes)
        assert (
            by_favorite.profile.learned.cuisine_affinity["thai"]
            > by_rating.profile.learned.cuisine_affinity["thai"]
        )

    def test_neutral_rating_only_counts(self, profile, recipes):
        result = update_profile(profile, [_event("e1", "rating", {"rating": 3})], recipes)
        learned = result.profile.learned
        assert learned.cuisine_affinity == {}
        assert learned.rating_count == 1
        assert learned.average_rating == 3.0

    def test_low_ratings_promote_avoided(self, profile, recipes):
        events = [
            _event("e1", "rating", {"rating": 1}),
            _event("e2", "rating", {"rating": 1}, minutes=5),
        ]
        result = update_profile(profile, events, recipes)
        learned = result.profile.learned
        assert learned.cuisine_affinity["thai"] == pytest.approx(-2.0)
        assert learned.avoid_candidates == {"rice": 2.0, "tofu": 2.0}
        assert "main" not in learned.category_affinity
        assert result.profile.avoided_ingredients == ["rice", "tofu"]

    def test_single_low_rating_not_promoted(self, profile, recipes):
        result = update_profile(profile, [_event("e1", "rating", {"rating": 2})], recipes)
        assert result.profile.learned.avoid_candidates["rice"] == pytest.approx(0.5)
        assert result.profile.avoided_ingredients == []

    @pytest.mark.parametrize(
        "payload, expected",
        [
            ({"duration_seconds": 120}, 0.1),
            ({"duration_seconds": 600}, 0.1),
            ({"duration_seconds": 2}, 0.1 * 2 / 120),
            ({}, 0.1 * 30 / 120),
        ],
    )
    def test_view_scaled_by_duration(self, profile, recipes, payload, expected):
        result = update_profile(profile, [_event("e1", "view", payload)], recipes)
        assert result.profile.learned.cuisine_affinity["thai"] == pytest.approx(expected)
        assert result.profile.learned.view_count == 1

    def test_substitution(self, profile, recipes):
        events = [
            _event("e1", "substitution", {"original": "Butter", "substitute": "olive oil"}, recipe_id=None),
            _event("e2", "substitution", {"original": "butter", "substitute": "ghee"}, minutes=1),
        ]
        result = update_profile(profile, events, recipes)
        learned = result.profile.learned
        assert result.processed_count == 2
        assert learned.ingredient_affinity["butter"] == pytest.approx(-2.0)
        assert learned.ingredient_affinity["olive oil"] == pytest.approx(1.0)
        assert learned.substitutions == {"butter": "ghee"}
        assert learned.substitution_count == 2
        assert result.profile.avoided_ingredients == ["butter"]


class TestSkipping:
    """Malformed events are skipped, counted and logged."""

    def test_unknown_kind(self, profile, recipes, caplog):
        events = [_event("bad", "share"), _event("ok", "favorite", minutes=1)]
        with caplog.at_level(logging.WARNING):
            result = update_profile(profile, events, recipes)
        assert result.processed_count == 1
        assert result.skipped_count == 1
        assert result.skipped_event_ids == ["bad"]
        assert "unknown kind" in caplog.text

    @pytest.mark.parametrize(
        "payload",
        [{}, {"rating": 0}, {"rating": 6}, {"rating": "great"}],
    )
    def test_invalid_rating_payload(self, profile, recipes, payload):
        result = update_profile(profile, [_event("e1", "rating", payload)], recipes)
        assert result.skipped_event_ids == ["e1"]
        assert result.profile.learned.rating_count == 0

    def test_negative_view_duration(self, profile, recipes):
        result = update_profile(profile, [_event("e1", "view", {"duration_seconds": -5})], recipes)
        assert result.skipped_count == 1

    def test_substitution_missing_field(self, profile, recipes):
        result = update_profile(profile, [_event("e1", "substitution", {"original": "butter"})], recipes)
        assert result.skipped_count == 1

    def test_unknown_recipe(self, profile, recipes):
        result = update_profile(profile, [_event("e1", "rating", {"rating": 5}, recipe_id="nope")], recipes)
        assert result.skipped_event_ids == ["e1"]

    def test_other_member(self, profile, recipes):
        result = update_profile(profile, [_event("e1", "favorite", member_id="m2")], recipes)
        assert result.skipped_count == 1
        assert result.profile.last_analyzed_at is None


class TestProfileHandling:

    def test_input_not_mutated(self, profile, recipes):
        before = copy.deepcopy(profile)
        update_profile(profile, [_event("e1", "favorite")], recipes)
        assert profile == before

    def test_events_applied_in_timestamp_order(self, profile, recipes):
        events = [
            _event("late", "substitution", {"original": "a", "substitute": "c"}, minutes=10),
            _event("early", "substitution", {"original": "a", "substitute": "b"}, minutes=0),
        ]
        result = update_profile(profile, events, recipes)
        assert result.profile.learned.substitutions == {"a": "c"}

    def test_watermark_is_latest_event(self, profile, recipes):
        events = [
            _event("e1", "favorite", minutes=5),
            _event("e2", "nonsense", minutes=9),
            _event("e3", "favorite", minutes=1),
        ]
        result = update_profile(profile, events, recipes)
        assert result.profile.last_analyzed_at == T0 + timedelta(minutes=9)

    def test_ids_at_watermark_recorded(self, profile, recipes):
        events = [
            _event("e1", "favorite", minutes=0),
            _event("e3", "view", minutes=4),
            _event("e2", "favorite", minutes=4),
        ]
        result = update_profile(profile, events, recipes)
        assert result.profile.last_analyzed_at == T0 + timedelta(minutes=4)
        assert result.profile.last_analyzed_event_ids == ["e2", "e3"]

    def test_mixed_naive_and_aware_timestamps(self, profile, recipes):
        events = [
            FeedbackEvent("e1", "m1", "rating", datetime(2026, 3, 1), "r1", {"rating": 4}),
            FeedbackEvent("e2", "m1", "rating", datetime(2026, 3, 2, tzinfo=timezone.utc), "r1", {"rating": 5}),
        ]
        result = update_profile(profile, events, recipes)
        assert result.processed_count == 2
        assert result.profile.last_analyzed_at == datetime(2026, 3, 2, tzinfo=timezone.utc)

    def test_naive_event_after_aware_watermark(self, recipes):
        start = UserPreferenceProfile(member_id="m1", last_analyzed_at=T0)
        event = FeedbackEvent("e1", "m1", "favorite", datetime(2026, 3, 1, 13, 0), "r1")
        result = update_profile(start, [event], recipes)
        assert result.processed_count == 1
        assert result.profile.last_analyzed_at == T0 + timedelta(hours=1)

    def test_empty_batch(self, profile, recipes):
        result = update_profile(profile, [], recipes)
        assert result.processed_count == 0
        assert result.profile.preference_score == 0.0


class TestConfidence:

    def test_monotonic_across_batches(self, recipes):
        profile = UserPreferenceProfile.default("m1")
        scores = [profile.preference_score]
        batches = [
            [_event("a", "view", {"duration_seconds": 10})],
            [_event("b", "rating", {"rating": 1}, minutes=1)],
            [_event("c", "bogus", minutes=2)],
            [],
            [_event("d", "favorite", minutes=3)],
        ]
        for batch in batches:
            profile = update_profile(profile, batch, recipes).profile
            scores.append(profile.preference_score)
        assert scores == sorted(scores)

    def test_prior_score_never_lowered(self, recipes):
        profile = UserPreferenceProfile(member_id="m1", preference_score=0.8)
        result = update_profile(profile, [_event("e1", "view")], recipes)
        assert result.profile.preference_score == 0.8

    def test_saturates_below_one(self):
        assert confidence_from_volume(0) == 0.0
        assert confidence_from_volume(10) < confidence_from_volume(20) < 1.0
        assert confidence_from_volume(1e6) <= 1.0

    def test_custom_scale(self, profile, recipes):
        settings = LearnerSettings(confidence_scale=2.0)
        result = update_profile(profile, [_event("e1", "favorite")], recipes, settings)
        assert result.profile.preference_score == pytest.approx(1 - math.exp(-1.0))

    def test_invalid_scale(self):
        with pytest.raises(ValueError):
            LearnerSettings(confidence_scale=0)
