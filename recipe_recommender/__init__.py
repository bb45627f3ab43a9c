"""Recipe recommendation scoring engine."""

from recipe_recommender.config import EngineSettings
from recipe_recommender.data_layer.models import (
    Recommendation,
    RecommendationContext,
    UserPreferenceProfile,
)
from recipe_recommender.engine import RecommendationEngine
from recipe_recommender.ranking.ordering import DiversityPolicy
from recipe_recommender.scoring.weights import ScoringWeights

__version__ = "0.1.0"

__all__ = [
    "DiversityPolicy",
    "EngineSettings",
    "Recommendation",
    "RecommendationContext",
    "RecommendationEngine",
    "ScoringWeights",
    "UserPreferenceProfile",
]
