"""Candidate selection: hard constraints as pure predicates.

This module is the single place that answers "may this recipe be scored at
all for this request?". Each predicate returns True when the recipe is
allowed. No scoring and no I/O.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Callable, Iterable, List, Tuple

from recipe_recommender.data_layer.models import (
    RecipeCandidate,
    RecommendationContext,
    normalize_name,
)

logger = logging.getLogger(__name__)

Predicate = Callable[[RecipeCandidate, RecommendationContext], bool]


# --- Excluded ingredients ---


def passes_excluded_ingredients(recipe: RecipeCandidate, context: RecommendationContext) -> bool:
    """False if any ingredient name contains an excluded term as whole words.

    "peanut" matches "peanut butter" but "egg" does not match "eggplant".
    """
    patterns = [
        re.compile(rf"\b{re.escape(term)}\b")
        for term in (normalize_name(x) for x in context.excluded_ingredients)
        if term
    ]
    if not patterns:
        return True
    for name in recipe.ingredient_names:
        if any(pattern.search(name) for pattern in patterns):
            return False
    return True


# --- Dietary restrictions ---


def passes_dietary_restrictions(recipe: RecipeCandidate, context: RecommendationContext) -> bool:
    """Every requested restriction must be declared in the recipe's diet tags."""
    if not context.dietary_restrictions:
        return True
    tags = {normalize_name(t) for t in recipe.diet_tags}
    return all(normalize_name(r) in tags for r in context.dietary_restrictions)


# --- Budget ceiling ---


def passes_budget(recipe: RecipeCandidate, context: RecommendationContext) -> bool:
    """Cost strictly above the budget is excluded; unknown cost passes."""
    if context.budget_limit is None or recipe.estimated_cost is None:
        return True
    return recipe.estimated_cost <= context.budget_limit


# --- Time ceiling ---


def passes_cook_time(recipe: RecipeCandidate, context: RecommendationContext) -> bool:
    if context.max_cook_time is None:
        return True
    return recipe.total_time_minutes <= context.max_cook_time


# --- Meal type ---


def passes_meal_type(recipe: RecipeCandidate, context: RecommendationContext) -> bool:
    """Recipes that declare meal types must include the requested one."""
    if not recipe.meal_types:
        return True
    return context.meal_type in recipe.meal_types


# --- Refresh exclusion ---


def passes_refresh_exclusion(recipe: RecipeCandidate, context: RecommendationContext) -> bool:
    return recipe.id not in context.exclude_recipe_ids


HARD_CONSTRAINTS: Tuple[Tuple[str, Predicate], ...] = (
    ("excluded_ingredients", passes_excluded_ingredients),
    ("dietary_restrictions", passes_dietary_restrictions),
    ("budget", passes_budget),
    ("cook_time", passes_cook_time),
    ("meal_type", passes_meal_type),
    ("refresh_exclusion", passes_refresh_exclusion),
)


def first_violation(recipe: RecipeCandidate, context: RecommendationContext) -> str:
    """Name of the first hard constraint the recipe violates, or "" if none."""
    for name, predicate in HARD_CONSTRAINTS:
        if not predicate(recipe, context):
            return name
    return ""


def select_candidates(
    catalog: Iterable[RecipeCandidate],
    context: RecommendationContext,
) -> List[RecipeCandidate]:
    """Return recipes that satisfy every hard constraint, in catalog order.

    Args:
        catalog: Recipes to filter (not mutated)
        context: Request context carrying the constraints

    Returns:
        Surviving candidates; empty list when nothing survives
    """
    survivors: List[RecipeCandidate] = []
    rejected: Counter = Counter()
    for recipe in catalog:
        violation = first_violation(recipe, context)
        if violation:
            rejected[violation] += 1
        else:
            survivors.append(recipe)

    logger.debug(
        "Candidate selection for %s: %d kept, rejected %s",
        context.member_id,
        len(survivors),
        dict(rejected),
    )
    return survivors
