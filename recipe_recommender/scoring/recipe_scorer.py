"""Scoring aggregator: weighted sum of feature sub-scores plus explanations."""

import dataclasses
import logging
from typing import Callable, Dict, List, Optional

from recipe_recommender.config import EngineSettings
from recipe_recommender.data_layer.models import (
    RecipeCandidate,
    Recommendation,
    RecommendationContext,
    SubScores,
    UserPreferenceProfile,
)
from recipe_recommender.scoring.features import (
    clamp_unit,
    inventory_match,
    nutrition_match,
    preference_match,
    price_match,
    seasonal_match,
)
from recipe_recommender.scoring.weights import DIMENSIONS, ScoringWeights

logger = logging.getLogger(__name__)

Extractor = Callable[
    [RecipeCandidate, RecommendationContext, Optional[UserPreferenceProfile]], float
]

EXTRACTORS: Dict[str, Extractor] = {
    "inventory": inventory_match,
    "price": price_match,
    "nutrition": nutrition_match,
    "preference": preference_match,
    "seasonal": seasonal_match,
}

# Reason shown when a sub-score clears the reason threshold
STRONG_REASONS: Dict[str, str] = {
    "inventory": "Uses ingredients you already have",
    "price": "Fits comfortably within your budget",
    "nutrition": "Matches your nutrition goals",
    "preference": "Matches your taste preferences",
    "seasonal": "Made with in-season ingredients",
}

# Fallback reason for the largest weighted contribution when nothing clears the threshold
SOFT_REASONS: Dict[str, str] = {
    "inventory": "Uses some ingredients from your pantry",
    "price": "Reasonably priced for your budget",
    "nutrition": "Reasonably close to your nutrition goals",
    "preference": "Somewhat in line with your tastes",
    "seasonal": "Suitable for this time of year",
}

# Phrase used in the explanation clause for a heavily weighted dimension
EMPHASIS_PHRASES: Dict[str, str] = {
    "inventory": "using what is already in your pantry",
    "price": "keeping costs down",
    "nutrition": "meeting your nutrition goals",
    "preference": "matching your tastes",
    "seasonal": "cooking with the seasons",
}

# Preference reasons reworded when the slot was filled from popularity
COLD_START_REASONS: Dict[str, str] = {
    STRONG_REASONS["preference"]: "Popular with other cooks",
    SOFT_REASONS["preference"]: "Liked by other cooks",
}

NO_MATCH_EXPLANATION = "No strong match for your current preferences."


def compute_sub_scores(
    candidate: RecipeCandidate,
    context: RecommendationContext,
    profile: Optional[UserPreferenceProfile] = None,
) -> SubScores:
    """Run every feature extractor and clamp the results."""
    values = {
        name: clamp_unit(extractor(candidate, context, profile), name)
        for name, extractor in EXTRACTORS.items()
    }
    return SubScores(**values)


def blend_popularity(sub_scores: SubScores, popularity: float, share: float) -> SubScores:
    """Mix a catalog popularity value into the preference sub-score."""
    preference = (1.0 - share) * sub_scores.preference + share * clamp_unit(popularity, "popularity")
    return dataclasses.replace(sub_scores, preference=clamp_unit(preference, "preference"))


def weighted_total(sub_scores: SubScores, weights: ScoringWeights) -> float:
    total = sum(
        getattr(sub_scores, name) * getattr(weights, name) for name in DIMENSIONS
    )
    return clamp_unit(total, "total")


def select_reasons(
    sub_scores: SubScores,
    weights: ScoringWeights,
    threshold: float = 0.7,
    max_reasons: int = 3,
) -> List[str]:
    """Pick reason strings for a scored candidate.

    Args:
        sub_scores: Clamped sub-scores
        weights: Weights used for the total
        threshold: Minimum sub-score for a strong reason
        max_reasons: Cap on the number of strong reasons

    Returns:
        Reason strings, empty when every weighted contribution is zero
    """
    values = sub_scores.as_dict()
    strong = [name for name in DIMENSIONS if values[name] >= threshold]
    # Stable sort keeps DIMENSIONS order on ties
    strong.sort(key=lambda name: -values[name])
    strong = strong[:max_reasons]
    if strong:
        return [STRONG_REASONS[name] for name in strong]

    contributions = {name: values[name] * getattr(weights, name) for name in DIMENSIONS}
    best = max(DIMENSIONS, key=lambda name: (contributions[name], -DIMENSIONS.index(name)))
    if contributions[best] <= 0:
        return []
    return [SOFT_REASONS[best]]


def build_explanation(
    reasons: List[str],
    score: float,
    weights: ScoringWeights,
    emphasis_threshold: float = 0.3,
) -> str:
    """Assemble the one-sentence explanation for a recommendation."""
    if score <= 0 or not reasons:
        return NO_MATCH_EXPLANATION

    lowered = [_as_clause(reason[0].lower() + reason[1:]) for reason in reasons]
    if len(lowered) == 1:
        summary = lowered[0]
    else:
        summary = ", ".join(lowered[:-1]) + " and " + lowered[-1]
    sentence = f"Recommended because it {summary}"

    dominant = weights.dominant()
    if getattr(weights, dominant) >= emphasis_threshold:
        sentence += f", with emphasis on {EMPHASIS_PHRASES[dominant]}"
    return sentence + "."


def _as_clause(reason: str) -> str:
    # Reasons start with a verb ("uses", "fits") or a participle/adjective
    if reason.startswith(("made ", "reasonably ", "somewhat ", "suitable ", "popular ", "liked ")):
        return "is " + reason
    return reason


class RecipeScorer:
    """Scores candidates against a request context and member profile."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        weights: Optional[ScoringWeights] = None,
    ):
        """Initialize recipe scorer.

        Args:
            settings: Engine settings (reason threshold and cap)
            weights: Default scoring weights, used when score() gets none
        """
        self.settings = settings or EngineSettings()
        self.weights = weights or ScoringWeights()

    def score(
        self,
        candidate: RecipeCandidate,
        context: RecommendationContext,
        profile: Optional[UserPreferenceProfile] = None,
        weights: Optional[ScoringWeights] = None,
        popularity: Optional[float] = None,
    ) -> Recommendation:
        """Score one candidate.

        Args:
            candidate: Recipe that passed hard-constraint filtering
            context: Request context
            profile: Member profile, or None for an anonymous request
            weights: Per-call weights overriding the scorer defaults
            popularity: Catalog popularity in [0, 1] for a cold-start member;
                blended into the preference sub-score when given

        Returns:
            Recommendation with score, reasons, explanation and sub-scores
        """
        active = weights or self.weights
        sub_scores = compute_sub_scores(candidate, context, profile)
        if popularity is not None:
            sub_scores = blend_popularity(
                sub_scores, popularity, self.settings.cold_start_popularity_share
            )
        total = weighted_total(sub_scores, active)

        reasons = select_reasons(
            sub_scores,
            active,
            threshold=self.settings.reason_threshold,
            max_reasons=self.settings.max_reasons,
        )
        if popularity is not None:
            reasons = [COLD_START_REASONS.get(reason, reason) for reason in reasons]
        if total <= 0:
            reasons = []
        explanation = build_explanation(
            reasons, total, active, self.settings.emphasis_weight_threshold
        )

        logger.debug(
            "Scored recipe %s: %.4f (%s)", candidate.id, total, sub_scores.as_dict()
        )
        return Recommendation(
            recipe_id=candidate.id,
            score=total,
            reasons=tuple(reasons),
            explanation=explanation,
            metadata=sub_scores,
        )
