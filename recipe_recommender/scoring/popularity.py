"""Popular-recipe mode: Bayesian-adjusted rating blended with view volume.

No personalization. A recipe with a single 5-star rating is pulled toward
the prior mean so it cannot outrank a recipe with hundreds of good ratings.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional

from recipe_recommender.config import EngineSettings
from recipe_recommender.data_layer.models import (
    RecipeCandidate,
    Recommendation,
    SubScores,
    normalize_name,
)
from recipe_recommender.scoring.features import clamp_unit

MAX_RATING = 5.0
HIGHLY_RATED_MIN = 4.0  # Bayesian rating needed for the "highly rated" reason
MANY_RATINGS_MIN = 50
VIEW_REASON_MIN = 0.5  # Normalized view score needed for the "frequently viewed" reason


def bayesian_rating(
    average_rating: float,
    rating_count: int,
    prior_mean: float = 3.0,
    prior_weight: float = 10.0,
) -> float:
    """(C * m + n * avg) / (C + n), returning the prior mean when both weights are zero."""
    denominator = prior_weight + rating_count
    if denominator <= 0:
        return prior_mean
    return (prior_weight * prior_mean + rating_count * average_rating) / denominator


def filter_by_category(
    recipes: Iterable[RecipeCandidate],
    category: Optional[str],
) -> List[RecipeCandidate]:
    if not category:
        return list(recipes)
    wanted = normalize_name(category)
    return [r for r in recipes if normalize_name(r.category) == wanted]


class PopularityScorer:
    """Scores recipes by adjusted rating and relative view count."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    def score_all(self, recipes: List[RecipeCandidate]) -> List[Recommendation]:
        """Score every recipe; view volume is normalized against the busiest one."""
        max_views = max((r.stats.view_count for r in recipes), default=0)
        return [self._score(recipe, max_views) for recipe in recipes]

    def _score(self, recipe: RecipeCandidate, max_views: int) -> Recommendation:
        s = self.settings
        stats = recipe.stats
        adjusted = bayesian_rating(
            stats.average_rating,
            stats.rating_count,
            s.popularity_prior_mean,
            s.popularity_prior_weight,
        )
        rating_part = clamp_unit(adjusted / MAX_RATING, "popularity_rating")
        if max_views > 0:
            view_part = clamp_unit(
                math.log1p(max(stats.view_count, 0)) / math.log1p(max_views),
                "popularity_views",
            )
        else:
            view_part = 0.0
        share = s.popularity_rating_share
        value = clamp_unit(share * rating_part + (1.0 - share) * view_part, "popularity")

        reasons: List[str] = []
        if adjusted >= HIGHLY_RATED_MIN:
            reasons.append(f"Highly rated ({stats.average_rating:.1f} average)")
        if stats.rating_count >= MANY_RATINGS_MIN:
            reasons.append(f"Rated by {stats.rating_count} cooks")
        if view_part >= VIEW_REASON_MIN:
            reasons.append("Frequently viewed")
        if not reasons and value > 0:
            reasons.append("Popular with other cooks")

        return Recommendation(
            recipe_id=recipe.id,
            score=value,
            reasons=tuple(reasons),
            explanation=f"Popular pick with an adjusted rating of {adjusted:.2f} out of 5.",
            metadata=SubScores(preference=rating_part),
        )
