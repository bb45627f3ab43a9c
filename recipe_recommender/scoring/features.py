"""Feature extractors: (candidate, context, profile) -> sub-score in [0, 1].

Each extractor is pure and total: missing optional data degrades to a
documented neutral value instead of raising.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, Optional, Set

from recipe_recommender.data_layer.models import (
    GoalType,
    HealthGoal,
    RecipeCandidate,
    RecommendationContext,
    SpiceLevel,
    UserPreferenceProfile,
    normalize_name,
)

logger = logging.getLogger(__name__)

# Neutral values used when the input needed for a feature is absent
NEUTRAL_SCORE = 0.5
INVENTORY_NO_PANTRY_SCORE = 0.0  # neutral-low: no pantry data supplied

# Price: full score at or below this fraction of the budget
PRICE_FULL_SCORE_FRACTION = 0.5

# Seasonal: off-season recipes stay valid but less ideal
OFF_SEASON_SCORE = 0.3

# Preference component weights (sum to 1.0)
PREF_CUISINE_WEIGHT = 0.4
PREF_INGREDIENT_WEIGHT = 0.4
PREF_SPICE_WEIGHT = 0.2
# Ingredient hits needed for a full ingredient component
PREF_INGREDIENT_HITS_FOR_FULL = 2.0
# Learned affinity at which the saturated value reaches 0.5
AFFINITY_HALF_SATURATION = 1.0
# Multiplier applied once per avoided ingredient present
AVOIDED_INGREDIENT_PENALTY = 0.2
# Learned ingredient affinity at or below this counts as avoided
LEARNED_AVOID_THRESHOLD = -1.0

# Reaching any one of these counts ends cold start
COLD_START_MIN_RATINGS = 3
COLD_START_MIN_FAVORITES = 2
COLD_START_MIN_VIEWS = 10

# Per-meal macro targets by goal type: (calories, protein_g, carbs_g, fat_g)
GOAL_MEAL_TARGETS: Dict[GoalType, Dict[str, float]] = {
    GoalType.LOSE_WEIGHT: {"calories": 400.0, "protein_g": 30.0, "carbs_g": 35.0, "fat_g": 12.0},
    GoalType.GAIN_MUSCLE: {"calories": 650.0, "protein_g": 40.0, "carbs_g": 70.0, "fat_g": 20.0},
    GoalType.MAINTAIN: {"calories": 500.0, "protein_g": 25.0, "carbs_g": 55.0, "fat_g": 18.0},
    GoalType.IMPROVE_HEALTH: {"calories": 450.0, "protein_g": 25.0, "carbs_g": 50.0, "fat_g": 15.0},
}

# Macros only penalized in one direction: "min" = at least target, "max" = at most target
GOAL_ONE_SIDED: Dict[GoalType, Dict[str, str]] = {
    GoalType.LOSE_WEIGHT: {"calories": "max"},
    GoalType.GAIN_MUSCLE: {"protein_g": "min"},
    GoalType.MAINTAIN: {},
    GoalType.IMPROVE_HEALTH: {"fat_g": "max"},
}


def clamp_unit(value: float, feature: str = "score") -> float:
    """Clamp to [0, 1]; non-finite values are logged and replaced by 0.0."""
    if value is None or not math.isfinite(value):
        logger.warning("Non-finite %s value %r replaced with 0.0", feature, value)
        return 0.0
    return max(0.0, min(1.0, value))


def saturate(affinity: float) -> float:
    """Map a non-negative learned affinity onto [0, 1) with diminishing returns."""
    if affinity <= 0:
        return 0.0
    return affinity / (affinity + AFFINITY_HALF_SATURATION)


# --- Inventory match ---


def inventory_match(
    candidate: RecipeCandidate,
    context: RecommendationContext,
    profile: Optional[UserPreferenceProfile] = None,
) -> float:
    """Fraction of required ingredients in the member's pantry.

    Returns 0.0 when no pantry data is supplied or the recipe lists no
    required ingredients.
    """
    if context.pantry is None:
        return INVENTORY_NO_PANTRY_SCORE
    required = candidate.required_ingredients
    if not required:
        return INVENTORY_NO_PANTRY_SCORE
    stocked = {normalize_name(item) for item in context.pantry}
    hits = sum(1 for ing in required if normalize_name(ing.name) in stocked)
    return clamp_unit(hits / len(required), "inventory")


# --- Price match ---


def price_match(
    candidate: RecipeCandidate,
    context: RecommendationContext,
    profile: Optional[UserPreferenceProfile] = None,
) -> float:
    """1.0 at or below half the budget, decaying linearly to 0.0 at the budget.

    Neutral 0.5 when either the budget or the recipe cost is unknown. The
    member's cost_level is not consulted, so a request without a budget
    never favours cheap recipes.
    """
    budget = context.budget_limit
    cost = candidate.estimated_cost
    if budget is None or cost is None:
        return NEUTRAL_SCORE
    if budget <= 0:
        return 1.0 if cost <= 0 else 0.0
    full_score_below = budget * PRICE_FULL_SCORE_FRACTION
    if cost <= full_score_below:
        return 1.0
    if cost >= budget:
        return 0.0
    return clamp_unit((budget - cost) / (budget - full_score_below), "price")


# --- Nutrition match ---


def meal_targets(goal: HealthGoal) -> Dict[str, float]:
    """Per-meal macro targets for a goal; explicit targets override defaults."""
    targets = dict(GOAL_MEAL_TARGETS[goal.goal_type])
    overrides = {
        "calories": goal.target_calories,
        "protein_g": goal.target_protein_g,
        "carbs_g": goal.target_carbs_g,
        "fat_g": goal.target_fat_g,
    }
    for key, value in overrides.items():
        if value is not None:
            targets[key] = float(value)
    return targets


def _macro_deviation(actual: float, target: float, direction: Optional[str]) -> float:
    """Relative deviation in [0, 1]; one-sided macros ignore the favoured side."""
    if target <= 0:
        return 0.0
    if direction == "min" and actual >= target:
        return 0.0
    if direction == "max" and actual <= target:
        return 0.0
    return min(1.0, abs(actual - target) / target)


def nutrition_match(
    candidate: RecipeCandidate,
    context: RecommendationContext,
    profile: Optional[UserPreferenceProfile] = None,
) -> float:
    """1 - mean macro deviation from the active health goal's per-meal targets.

    Neutral 0.5 when the member has no active health goal.
    """
    goal = context.health_goal
    if goal is None:
        return NEUTRAL_SCORE
    targets = meal_targets(goal)
    one_sided = GOAL_ONE_SIDED.get(goal.goal_type, {})
    deviations = [
        _macro_deviation(
            float(getattr(candidate.macros, macro, 0.0) or 0.0),
            target,
            one_sided.get(macro),
        )
        for macro, target in targets.items()
    ]
    return clamp_unit(1.0 - sum(deviations) / len(deviations), "nutrition")


# --- Preference match ---


def is_cold_start(
    profile: Optional[UserPreferenceProfile],
    context: Optional[RecommendationContext] = None,
) -> bool:
    """True for a member with no stated tastes and too little feedback to personalize on.

    Anonymous requests (no profile) are not cold start; they stay neutral.
    """
    if profile is None:
        return False
    if profile.preferred_cuisines or profile.preferred_ingredients or profile.spice_level:
        return False
    if context is not None and context.preferred_cuisines:
        return False
    learned = profile.learned
    return (
        learned.rating_count < COLD_START_MIN_RATINGS
        and learned.favorite_count < COLD_START_MIN_FAVORITES
        and learned.view_count < COLD_START_MIN_VIEWS
    )


def avoided_ingredients(profile: Optional[UserPreferenceProfile]) -> Set[str]:
    """Explicitly avoided ingredients plus those with strongly negative learned affinity."""
    if profile is None:
        return set()
    avoided = {normalize_name(name) for name in profile.avoided_ingredients}
    for name, affinity in profile.learned.ingredient_affinity.items():
        if affinity <= LEARNED_AVOID_THRESHOLD:
            avoided.add(normalize_name(name))
    return avoided


def _cuisine_component(
    candidate: RecipeCandidate,
    explicit_cuisines: Set[str],
    cuisine_affinity: Dict[str, float],
) -> float:
    if not candidate.cuisine:
        return 0.0
    cuisine = normalize_name(candidate.cuisine)
    if cuisine in explicit_cuisines:
        return 1.0
    return saturate(cuisine_affinity.get(cuisine, 0.0))


def _ingredient_component(
    ingredient_names: Iterable[str],
    explicit_ingredients: Set[str],
    ingredient_affinity: Dict[str, float],
) -> float:
    hits = 0.0
    for name in ingredient_names:
        if name in explicit_ingredients:
            hits += 1.0
        else:
            hits += saturate(ingredient_affinity.get(name, 0.0))
    return min(1.0, hits / PREF_INGREDIENT_HITS_FOR_FULL)


def _spice_component(recipe_level: Optional[SpiceLevel], preferred: Optional[SpiceLevel]) -> float:
    if recipe_level is None or preferred is None:
        return NEUTRAL_SCORE
    max_gap = SpiceLevel.EXTREME.rank - SpiceLevel.NONE.rank
    return 1.0 - abs(recipe_level.rank - preferred.rank) / max_gap


def preference_match(
    candidate: RecipeCandidate,
    context: RecommendationContext,
    profile: Optional[UserPreferenceProfile] = None,
) -> float:
    """Weighted overlap of cuisine, ingredients and spice with explicit + learned preferences.

    Returns a 0.5 base when the member has expressed no preference at all.
    Each avoided ingredient present multiplies the score by
    AVOIDED_INGREDIENT_PENALTY; this is a soft penalty, not an exclusion.
    """
    explicit_cuisines = {normalize_name(c) for c in context.preferred_cuisines}
    explicit_ingredients: Set[str] = set()
    cuisine_affinity: Dict[str, float] = {}
    ingredient_affinity: Dict[str, float] = {}
    preferred_spice: Optional[SpiceLevel] = None

    if profile is not None:
        explicit_cuisines |= {normalize_name(c) for c in profile.preferred_cuisines}
        explicit_ingredients = {normalize_name(i) for i in profile.preferred_ingredients}
        cuisine_affinity = {normalize_name(k): v for k, v in profile.learned.cuisine_affinity.items()}
        ingredient_affinity = {
            normalize_name(k): v for k, v in profile.learned.ingredient_affinity.items()
        }
        preferred_spice = profile.spice_level or profile.learned.spice_level

    has_signal = bool(
        explicit_cuisines
        or explicit_ingredients
        or any(v > 0 for v in cuisine_affinity.values())
        or any(v > 0 for v in ingredient_affinity.values())
        or preferred_spice is not None
    )

    names = candidate.ingredient_names
    if has_signal:
        score = (
            PREF_CUISINE_WEIGHT * _cuisine_component(candidate, explicit_cuisines, cuisine_affinity)
            + PREF_INGREDIENT_WEIGHT * _ingredient_component(names, explicit_ingredients, ingredient_affinity)
            + PREF_SPICE_WEIGHT * _spice_component(candidate.spice_level, preferred_spice)
        )
    else:
        score = NEUTRAL_SCORE

    avoided = avoided_ingredients(profile)
    if avoided:
        present = sum(1 for name in names if name in avoided)
        score *= AVOIDED_INGREDIENT_PENALTY ** present

    return clamp_unit(score, "preference")


# --- Seasonal match ---


def seasonal_match(
    candidate: RecipeCandidate,
    context: RecommendationContext,
    profile: Optional[UserPreferenceProfile] = None,
) -> float:
    """1.0 in season or when the recipe has no seasonal restriction, else OFF_SEASON_SCORE.

    Neutral 0.5 when the caller passes no season.
    """
    if context.season is None:
        return NEUTRAL_SCORE
    if not candidate.seasons or context.season in candidate.seasons:
        return 1.0
    return OFF_SEASON_SCORE
