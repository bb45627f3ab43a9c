"""Recommendation engine: the boundary service used by request handlers.

The engine holds only injected collaborators and immutable configuration.
Every call fetches what it needs through the collaborator interfaces and
then runs pure selection, scoring and ranking over in-memory values.
"""

import dataclasses
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional

from recipe_recommender.config import EngineSettings
from recipe_recommender.data_layer.exceptions import RecipeNotFoundError
from recipe_recommender.data_layer.models import (
    LearningResult,
    RecipeCandidate,
    Recommendation,
    RecommendationContext,
    UserPreferenceProfile,
)
from recipe_recommender.learning.preference_learner import LearnerSettings, update_profile
from recipe_recommender.providers.interfaces import (
    CatalogFilter,
    CatalogReader,
    FeedbackSource,
    ProfileStore,
)
from recipe_recommender.ranking.candidates import select_candidates
from recipe_recommender.ranking.ordering import DiversityPolicy, ScoredPair, rank
from recipe_recommender.scoring.features import avoided_ingredients, is_cold_start
from recipe_recommender.scoring.popularity import PopularityScorer, filter_by_category
from recipe_recommender.scoring.recipe_scorer import RecipeScorer
from recipe_recommender.scoring.similarity import score_similar
from recipe_recommender.scoring.weights import ScoringWeights, merge_weights

logger = logging.getLogger(__name__)


class RecommendationEngine:
    """Personalized, similar-recipe and popular-recipe recommendations."""

    def __init__(
        self,
        catalog: CatalogReader,
        profiles: ProfileStore,
        feedback: FeedbackSource,
        settings: Optional[EngineSettings] = None,
        weights: Optional[ScoringWeights] = None,
        learner_settings: Optional[LearnerSettings] = None,
    ):
        """Initialize the engine.

        Args:
            catalog: Recipe catalog reader
            profiles: Profile store (read for scoring, written by the learner)
            feedback: Feedback event source
            settings: Engine settings; defaults to EngineSettings()
            weights: Default scoring weights; defaults to ScoringWeights()
            learner_settings: Preference learner signal strengths
        """
        self.catalog = catalog
        self.profiles = profiles
        self.feedback = feedback
        self.settings = settings or EngineSettings()
        self.weights = weights or ScoringWeights()
        self.learner_settings = learner_settings or LearnerSettings()
        self._scorer = RecipeScorer(self.settings, self.weights)
        self._popularity = PopularityScorer(self.settings)
        self._member_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # --- Helpers ---

    def _load_profile(self, member_id: str) -> UserPreferenceProfile:
        profile = self.profiles.get_profile(member_id)
        if profile is None:
            logger.info("No profile for member %s; using defaults", member_id)
            return UserPreferenceProfile.default(member_id)
        return profile

    def _lock_for(self, member_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._member_locks.get(member_id)
            if lock is None:
                lock = threading.Lock()
                self._member_locks[member_id] = lock
            return lock

    def _resolve_limit(self, limit: Optional[int]) -> int:
        return self.settings.default_limit if limit is None else limit

    def _cold_start_popularity(
        self,
        candidates: List[RecipeCandidate],
        context: RecommendationContext,
        profile: UserPreferenceProfile,
    ) -> Optional[Dict[str, float]]:
        """Popularity per candidate for a cold-start member, else None."""
        if self.settings.cold_start_popularity_share <= 0 or not is_cold_start(profile, context):
            return None
        logger.debug("Member %s is cold start; blending popularity", profile.member_id)
        return {
            rec.recipe_id: rec.score for rec in self._popularity.score_all(candidates)
        }

    def _score_candidates(
        self,
        candidates: List[RecipeCandidate],
        context: RecommendationContext,
        profile: UserPreferenceProfile,
        weights: ScoringWeights,
        popularity: Optional[Dict[str, float]] = None,
    ) -> List[ScoredPair]:
        """Score candidates, in parallel for large sets; output order matches input order."""

        def score_one(candidate: RecipeCandidate) -> Recommendation:
            boost = popularity.get(candidate.id) if popularity is not None else None
            return self._scorer.score(candidate, context, profile, weights, boost)

        workers = self.settings.max_workers
        if workers > 1 and len(candidates) >= self.settings.parallel_threshold:
            logger.debug("Scoring %d candidates with %d workers", len(candidates), workers)
            with ThreadPoolExecutor(max_workers=workers) as pool:
                recommendations = list(pool.map(score_one, candidates))
        else:
            recommendations = [score_one(c) for c in candidates]
        return list(zip(candidates, recommendations))

    # --- Public API ---

    def get_recommendations(
        self,
        context: RecommendationContext,
        limit: Optional[int] = None,
        weights: Optional[ScoringWeights] = None,
        diversity: Optional[DiversityPolicy] = None,
    ) -> List[Recommendation]:
        """Rank catalog recipes for a member's request.

        Args:
            context: Request context (constraints, pantry, goal, season)
            limit: Maximum results; defaults to settings.default_limit
            weights: Per-call weights, overriding the member's and engine's
            diversity: Optional category/cuisine caps

        Returns:
            Ordered recommendations; empty when no recipe passes the hard constraints
        """
        limit = self._resolve_limit(limit)
        if limit <= 0:
            return []

        profile = self._load_profile(context.member_id)
        hints = CatalogFilter(meal_type=context.meal_type, max_total_time=context.max_cook_time)
        candidates = select_candidates(self.catalog.list_recipes(hints), context)
        if not candidates:
            logger.info("No candidates survive hard constraints for member %s", context.member_id)
            return []

        active = merge_weights(self.weights, profile.recommendation_weights, weights)
        popularity = self._cold_start_popularity(candidates, context, profile)
        scored = self._score_candidates(candidates, context, profile, active, popularity)
        results = rank(scored, limit, context.exclude_recipe_ids, diversity)
        logger.info(
            "Recommended %d of %d candidates for member %s (weights %s)",
            len(results),
            len(candidates),
            context.member_id,
            active.version,
        )
        return results

    def refresh_recommendations(
        self,
        context: RecommendationContext,
        exclude_recipe_ids: Iterable[str],
        limit: Optional[int] = None,
        weights: Optional[ScoringWeights] = None,
        diversity: Optional[DiversityPolicy] = None,
    ) -> List[Recommendation]:
        """Re-run get_recommendations with already-shown recipes excluded."""
        refreshed = dataclasses.replace(
            context,
            exclude_recipe_ids=context.exclude_recipe_ids | frozenset(exclude_recipe_ids),
        )
        return self.get_recommendations(refreshed, limit, weights, diversity)

    def get_similar_recipes(
        self,
        recipe_id: str,
        member_id: str,
        limit: int = 5,
    ) -> List[Recommendation]:
        """Recipes most similar to a reference recipe.

        The reference itself and recipes containing the member's avoided
        ingredients are never returned.

        Raises:
            RecipeNotFoundError: If recipe_id is not in the catalog
        """
        reference = self.catalog.get_recipe(recipe_id)
        if reference is None:
            raise RecipeNotFoundError(recipe_id)
        if limit <= 0:
            return []

        avoided = avoided_ingredients(self._load_profile(member_id))
        scored: List[ScoredPair] = []
        for recipe in self.catalog.list_recipes():
            if recipe.id == reference.id:
                continue
            if avoided and any(name in avoided for name in recipe.ingredient_names):
                continue
            rec = score_similar(reference, recipe)
            if rec.score > 0:
                scored.append((recipe, rec))
        return rank(scored, limit)

    def get_popular_recipes(
        self,
        limit: Optional[int] = None,
        category: Optional[str] = None,
    ) -> List[Recommendation]:
        """Globally popular recipes, optionally within one category. No personalization."""
        limit = self._resolve_limit(limit)
        if limit <= 0:
            return []
        hints = CatalogFilter(category=category) if category else None
        recipes = filter_by_category(self.catalog.list_recipes(hints), category)
        recommendations = self._popularity.score_all(recipes)
        return rank(zip(recipes, recommendations), limit)

    def update_user_preferences(self, member_id: str) -> LearningResult:
        """Fold new feedback into the member's profile and save it.

        Updates for the same member are serialized; different members run
        independently. Only events at or after the profile's watermark are
        read, minus those already consumed at the watermark itself.

        Returns:
            LearningResult with the saved profile and processed/skipped counts
        """
        with self._lock_for(member_id):
            profile = self._load_profile(member_id)
            consumed = set(profile.last_analyzed_event_ids)
            events = [
                e
                for e in self.feedback.list_feedback_since(member_id, profile.last_analyzed_at)
                if not (e.timestamp == profile.last_analyzed_at and e.event_id in consumed)
            ]
            if not events:
                logger.info("No new feedback for member %s", member_id)
                return LearningResult(profile=profile)

            recipes: Dict[str, RecipeCandidate] = {}
            for event in events:
                if event.recipe_id and event.recipe_id not in recipes:
                    recipe = self.catalog.get_recipe(event.recipe_id)
                    if recipe is not None:
                        recipes[recipe.id] = recipe

            result = update_profile(profile, events, recipes, self.learner_settings)
            self.profiles.save_profile(member_id, result.profile)
            return result
