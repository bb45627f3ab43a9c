"""Final ordering of scored candidates, with optional diversity caps.

Orders already-scored candidates. No scoring, no constraints, no randomness.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from recipe_recommender.data_layer.models import (
    RecipeCandidate,
    Recommendation,
    normalize_name,
)

ScoredPair = Tuple[RecipeCandidate, Recommendation]


@dataclass(frozen=True)
class DiversityPolicy:
    """Caps on how many results may share a category or cuisine.

    None disables a cap. With backfill, deferred entries fill any slots left
    after the capped pass, in sorted order.
    """

    max_per_category: Optional[int] = None
    max_per_cuisine: Optional[int] = None
    backfill: bool = True

    def __post_init__(self):
        for name in ("max_per_category", "max_per_cuisine"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")


# --- Sort key ---


def ordering_key(item: ScoredPair) -> Tuple[float, int, str, str]:
    """Key for ascending sort: score desc, rating count desc, name asc, id asc."""
    recipe, rec = item
    return (-float(rec.score), -recipe.stats.rating_count, recipe.name, recipe.id)


def order_scored(scored_pairs: Iterable[ScoredPair]) -> List[ScoredPair]:
    return sorted(scored_pairs, key=ordering_key)


# --- Diversity ---


def _apply_diversity(
    ordered: List[ScoredPair],
    limit: int,
    policy: DiversityPolicy,
) -> List[ScoredPair]:
    chosen: List[ScoredPair] = []
    deferred: List[ScoredPair] = []
    per_category: Counter = Counter()
    per_cuisine: Counter = Counter()

    for pair in ordered:
        if len(chosen) >= limit:
            break
        recipe = pair[0]
        category = normalize_name(recipe.category)
        cuisine = normalize_name(recipe.cuisine) if recipe.cuisine else None
        over_category = (
            policy.max_per_category is not None
            and per_category[category] >= policy.max_per_category
        )
        over_cuisine = (
            policy.max_per_cuisine is not None
            and cuisine is not None
            and per_cuisine[cuisine] >= policy.max_per_cuisine
        )
        if over_category or over_cuisine:
            deferred.append(pair)
            continue
        chosen.append(pair)
        per_category[category] += 1
        if cuisine is not None:
            per_cuisine[cuisine] += 1

    if policy.backfill and len(chosen) < limit:
        chosen.extend(deferred[: limit - len(chosen)])
        chosen = order_scored(chosen)
    return chosen


# --- Public API ---


def rank(
    scored_pairs: Iterable[ScoredPair],
    limit: int,
    exclude_recipe_ids: Optional[Iterable[str]] = None,
    diversity: Optional[DiversityPolicy] = None,
) -> List[Recommendation]:
    """Return at most `limit` recommendations in final order.

    Args:
        scored_pairs: (candidate, recommendation) pairs in any order
        limit: Maximum number of results; <= 0 returns []
        exclude_recipe_ids: Recipe ids to drop (refresh semantics)
        diversity: Optional category/cuisine caps

    Returns:
        Recommendations sorted by score desc, rating count desc, name, id
    """
    if limit <= 0:
        return []
    excluded = set(exclude_recipe_ids or ())
    ordered = order_scored(pair for pair in scored_pairs if pair[0].id not in excluded)
    if diversity is None:
        selected = ordered[:limit]
    else:
        selected = _apply_diversity(ordered, limit, diversity)
    return [rec for _, rec in selected]
