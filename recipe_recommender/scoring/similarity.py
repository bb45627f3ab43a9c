"""Similar-recipe mode: weighted categorical similarity to a reference recipe.

similarity = 0.30 * [same cuisine]
           + 0.25 * [same category]
           + 0.15 * (1 - |difficulty rank gap| / 2)
           + 0.30 * Jaccard(ingredient category sets)
"""

from __future__ import annotations

from typing import List, Tuple

from recipe_recommender.data_layer.models import (
    RecipeCandidate,
    Recommendation,
    SubScores,
    normalize_name,
)
from recipe_recommender.scoring.features import clamp_unit

CUISINE_WEIGHT = 0.30
CATEGORY_WEIGHT = 0.25
DIFFICULTY_WEIGHT = 0.15
INGREDIENT_CATEGORY_WEIGHT = 0.30

# Ingredient-category overlap needed before it is mentioned as a reason
INGREDIENT_OVERLAP_REASON_MIN = 0.5
MAX_DIFFICULTY_GAP = 2


def jaccard(a: frozenset, b: frozenset) -> float:
    if not a and not b:
        return 0.0
    return len(a & b) / len(a | b)


def _same(a, b) -> bool:
    if not a or not b:
        return False
    return normalize_name(a) == normalize_name(b)


def similarity_components(
    reference: RecipeCandidate,
    other: RecipeCandidate,
) -> Tuple[bool, bool, float, float]:
    """(same cuisine, same category, difficulty closeness, ingredient-category overlap)."""
    same_cuisine = _same(reference.cuisine, other.cuisine)
    same_category = _same(reference.category, other.category)
    gap = abs(reference.difficulty.rank - other.difficulty.rank)
    difficulty_closeness = 1.0 - gap / MAX_DIFFICULTY_GAP
    overlap = jaccard(reference.ingredient_categories, other.ingredient_categories)
    return same_cuisine, same_category, difficulty_closeness, overlap


def similarity(reference: RecipeCandidate, other: RecipeCandidate) -> float:
    same_cuisine, same_category, difficulty_closeness, overlap = similarity_components(
        reference, other
    )
    value = (
        CUISINE_WEIGHT * same_cuisine
        + CATEGORY_WEIGHT * same_category
        + DIFFICULTY_WEIGHT * difficulty_closeness
        + INGREDIENT_CATEGORY_WEIGHT * overlap
    )
    return clamp_unit(value, "similarity")


def similarity_reasons(reference: RecipeCandidate, other: RecipeCandidate) -> List[str]:
    same_cuisine, same_category, difficulty_closeness, overlap = similarity_components(
        reference, other
    )
    reasons: List[str] = []
    if same_cuisine:
        reasons.append(f"Shares {other.cuisine} cuisine with {reference.name}")
    if same_category:
        reasons.append(f"Shares the {other.category} category with {reference.name}")
    if overlap >= INGREDIENT_OVERLAP_REASON_MIN:
        reasons.append(f"Shares key ingredient types with {reference.name}")
    if difficulty_closeness == 1.0:
        reasons.append(f"Shares {other.difficulty.value} difficulty with {reference.name}")
    return reasons


def score_similar(reference: RecipeCandidate, other: RecipeCandidate) -> Recommendation:
    """Build a Recommendation for `other`; the similarity sits in the preference slot."""
    value = similarity(reference, other)
    reasons = similarity_reasons(reference, other)
    # Partial matches only
    if not reasons and value > 0:
        reasons = [f"Shares some traits with {reference.name}"]
    if value > 0:
        explanation = f"Similar to {reference.name} ({value:.0%} match)."
    else:
        explanation = f"Not closely related to {reference.name}."
    return Recommendation(
        recipe_id=other.id,
        score=value,
        reasons=tuple(reasons),
        explanation=explanation,
        metadata=SubScores(preference=value),
    )
