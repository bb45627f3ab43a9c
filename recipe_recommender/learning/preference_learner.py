"""Preference learner: folds feedback events into a member's learned preferences.

Pure with respect to its inputs: the given profile is copied, never mutated,
and the learner keeps no record of which events it has consumed. Callers
de-duplicate events by id and serialize updates for the same member.
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

from pydantic import ValidationError

from recipe_recommender.data_layer.models import (
    FeedbackEvent,
    FeedbackKind,
    LearnedPreferences,
    LearningResult,
    RecipeCandidate,
    UserPreferenceProfile,
    normalize_name,
)
from recipe_recommender.learning.payloads import PAYLOAD_MODELS

logger = logging.getLogger(__name__)

# Contribution of each feedback kind to the confidence signal volume
DEFAULT_VOLUME_WEIGHTS: Dict[str, float] = {
    FeedbackKind.RATING.value: 1.0,
    FeedbackKind.FAVORITE.value: 2.0,
    FeedbackKind.VIEW.value: 0.2,
    FeedbackKind.SUBSTITUTION.value: 1.0,
}


@dataclass(frozen=True)
class LearnerSettings:
    """Signal strengths for each feedback kind."""

    positive_rating_min: int = 4  # Ratings at or above add affinity
    negative_rating_max: int = 2  # Ratings at or below add avoid candidacy
    favorite_affinity: float = 2.0
    view_affinity_max: float = 0.1
    view_full_seconds: float = 120.0  # Duration that earns the full view signal
    view_default_seconds: float = 30.0  # Assumed when no duration is recorded
    substitution_affinity: float = 1.0
    avoid_promotion_threshold: float = 2.0  # Candidacy that promotes to avoided_ingredients
    confidence_scale: float = 20.0  # Volume at which confidence reaches ~63%
    volume_weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_VOLUME_WEIGHTS))

    def __post_init__(self):
        if self.confidence_scale <= 0:
            raise ValueError("confidence_scale must be positive")


def confidence_from_volume(volume: float, scale: float = 20.0) -> float:
    """Saturating confidence: 1 - exp(-volume / scale), always below 1.0."""
    if volume <= 0:
        return 0.0
    return 1.0 - math.exp(-volume / scale)


# --- Affinity helpers ---


def _bump(affinity: Dict[str, float], key: Optional[str], delta: float) -> None:
    if not key:
        return
    name = normalize_name(key)
    if not name:
        return
    affinity[name] = affinity.get(name, 0.0) + delta


def _bump_recipe(learned: LearnedPreferences, recipe: RecipeCandidate, delta: float, category: bool = True) -> None:
    _bump(learned.cuisine_affinity, recipe.cuisine, delta)
    if category:
        _bump(learned.category_affinity, recipe.category, delta)
    for name in recipe.ingredient_names:
        _bump(learned.ingredient_affinity, name, delta)


def _vote_spice(learned: LearnedPreferences, recipe: RecipeCandidate, weight: float) -> None:
    if recipe.spice_level is not None:
        learned.spice_votes[recipe.spice_level] = learned.spice_votes.get(recipe.spice_level, 0.0) + weight


def _add_avoid_candidacy(
    profile: UserPreferenceProfile,
    ingredient: str,
    amount: float,
    settings: LearnerSettings,
) -> None:
    learned = profile.learned
    _bump(learned.avoid_candidates, ingredient, amount)
    name = normalize_name(ingredient)
    if learned.avoid_candidates.get(name, 0.0) < settings.avoid_promotion_threshold:
        return
    if name not in {normalize_name(i) for i in profile.avoided_ingredients}:
        profile.avoided_ingredients.append(name)
        logger.info("Member %s: promoted '%s' to avoided ingredients", profile.member_id, name)


# --- Per-kind handlers ---


def _apply_rating(profile, recipe, payload, settings: LearnerSettings) -> None:
    learned = profile.learned
    rating = payload.rating
    learned.rating_count += 1
    learned.rating_sum += rating
    if rating >= settings.positive_rating_min:
        delta = (rating - 3) / 2.0
        _bump_recipe(learned, recipe, delta)
        _vote_spice(learned, recipe, delta)
    elif rating <= settings.negative_rating_max:
        delta = (3 - rating) / 2.0
        _bump_recipe(learned, recipe, -delta, category=False)
        for name in recipe.ingredient_names:
            _add_avoid_candidacy(profile, name, delta, settings)


def _apply_favorite(profile, recipe, payload, settings: LearnerSettings) -> None:
    learned = profile.learned
    learned.favorite_count += 1
    _bump_recipe(learned, recipe, settings.favorite_affinity)
    _vote_spice(learned, recipe, settings.favorite_affinity)


def _apply_view(profile, recipe, payload, settings: LearnerSettings) -> None:
    learned = profile.learned
    learned.view_count += 1
    seconds = payload.duration_seconds
    if seconds is None:
        seconds = settings.view_default_seconds
    delta = settings.view_affinity_max * min(1.0, seconds / settings.view_full_seconds)
    if delta > 0:
        _bump_recipe(learned, recipe, delta)


def _apply_substitution(profile, recipe, payload, settings: LearnerSettings) -> None:
    learned = profile.learned
    learned.substitution_count += 1
    original = normalize_name(payload.original)
    substitute = normalize_name(payload.substitute)
    _bump(learned.ingredient_affinity, original, -settings.substitution_affinity)
    _bump(learned.ingredient_affinity, substitute, settings.substitution_affinity)
    learned.substitutions[original] = substitute
    _add_avoid_candidacy(profile, original, settings.substitution_affinity, settings)


_HANDLERS = {
    FeedbackKind.RATING: _apply_rating,
    FeedbackKind.FAVORITE: _apply_favorite,
    FeedbackKind.VIEW: _apply_view,
    FeedbackKind.SUBSTITUTION: _apply_substitution,
}

_RECIPE_REQUIRED = {FeedbackKind.RATING, FeedbackKind.FAVORITE, FeedbackKind.VIEW}


def _skip(result: LearningResult, event: FeedbackEvent, reason: str) -> None:
    result.skipped_count += 1
    result.skipped_event_ids.append(event.event_id)
    logger.warning(
        "Skipping feedback event %s for member %s: %s",
        event.event_id,
        event.member_id,
        reason,
    )


# --- Public API ---


def update_profile(
    profile: UserPreferenceProfile,
    events: Iterable[FeedbackEvent],
    recipes: Mapping[str, RecipeCandidate],
    settings: Optional[LearnerSettings] = None,
) -> LearningResult:
    """Apply a batch of feedback events to a copy of the profile.

    Events are applied in (timestamp, event_id) order. A malformed event is
    skipped and reported; it never aborts the batch.

    Args:
        profile: Current profile (not mutated)
        events: Feedback events for this member
        recipes: Recipes referenced by the events, keyed by id
        settings: Signal strengths; defaults to LearnerSettings()

    Returns:
        LearningResult with the new profile and processed/skipped counts
    """
    settings = settings or LearnerSettings()
    updated = copy.deepcopy(profile)
    result = LearningResult(profile=updated)
    learned = updated.learned

    ordered = sorted(events, key=lambda e: (e.timestamp, e.event_id))
    for event in ordered:
        if event.member_id != updated.member_id:
            _skip(result, event, f"belongs to member {event.member_id}")
            continue
        # Watermark includes skipped events
        if updated.last_analyzed_at is None or event.timestamp > updated.last_analyzed_at:
            updated.last_analyzed_at = event.timestamp
            updated.last_analyzed_event_ids = [event.event_id]
        elif (
            event.timestamp == updated.last_analyzed_at
            and event.event_id not in updated.last_analyzed_event_ids
        ):
            updated.last_analyzed_event_ids.append(event.event_id)
        try:
            kind = FeedbackKind(event.kind)
        except ValueError:
            _skip(result, event, f"unknown kind {event.kind!r}")
            continue
        try:
            payload = PAYLOAD_MODELS[kind].model_validate(event.payload or {})
        except ValidationError as exc:
            _skip(result, event, f"invalid {kind.value} payload ({exc.error_count()} errors)")
            continue

        recipe = recipes.get(event.recipe_id) if event.recipe_id else None
        if kind in _RECIPE_REQUIRED and recipe is None:
            _skip(result, event, f"unknown recipe {event.recipe_id!r}")
            continue

        _HANDLERS[kind](updated, recipe, payload, settings)
        learned.signal_volume += settings.volume_weights.get(kind.value, 0.0)
        result.processed_count += 1

    updated.preference_score = max(
        profile.preference_score,
        confidence_from_volume(learned.signal_volume, settings.confidence_scale),
    )
    logger.info(
        "Updated preferences for member %s: %d processed, %d skipped, confidence %.3f",
        updated.member_id,
        result.processed_count,
        result.skipped_count,
        updated.preference_score,
    )
    return result
