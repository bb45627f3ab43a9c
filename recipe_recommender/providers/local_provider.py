"""In-memory collaborators.

Used by tests and by callers that already hold their data in memory. The
file-backed implementations in ``data_layer`` load into these shapes.
"""

import copy
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from recipe_recommender.data_layer.models import (
    FeedbackEvent,
    RecipeCandidate,
    UserPreferenceProfile,
)
from recipe_recommender.providers.interfaces import (
    CatalogFilter,
    CatalogReader,
    FeedbackSource,
    ProfileStore,
)


class InMemoryCatalog(CatalogReader):
    """Catalog backed by a list of recipes, kept in insertion order."""

    def __init__(self, recipes: Iterable[RecipeCandidate] = ()) -> None:
        self._recipes: Dict[str, RecipeCandidate] = {}
        for recipe in recipes:
            self._recipes[recipe.id] = recipe

    def list_recipes(self, filter_hints: Optional[CatalogFilter] = None) -> List[RecipeCandidate]:
        recipes = list(self._recipes.values())
        if filter_hints is None:
            return recipes
        return [r for r in recipes if filter_hints.matches(r)]

    def get_recipe(self, recipe_id: str) -> Optional[RecipeCandidate]:
        return self._recipes.get(recipe_id)

    def __len__(self) -> int:
        return len(self._recipes)


class InMemoryProfileStore(ProfileStore):
    """Profile store holding deep copies so callers cannot mutate stored state."""

    def __init__(self, profiles: Iterable[UserPreferenceProfile] = ()) -> None:
        self._profiles: Dict[str, UserPreferenceProfile] = {
            p.member_id: copy.deepcopy(p) for p in profiles
        }

    def get_profile(self, member_id: str) -> Optional[UserPreferenceProfile]:
        profile = self._profiles.get(member_id)
        return copy.deepcopy(profile) if profile is not None else None

    def save_profile(self, member_id: str, profile: UserPreferenceProfile) -> None:
        self._profiles[member_id] = copy.deepcopy(profile)


class InMemoryFeedbackLog(FeedbackSource):
    """Append-only list of feedback events."""

    def __init__(self, events: Iterable[FeedbackEvent] = ()) -> None:
        self._events: List[FeedbackEvent] = list(events)

    def append(self, event: FeedbackEvent) -> None:
        self._events.append(event)

    def list_feedback_since(
        self,
        member_id: str,
        since: Optional[datetime] = None,
    ) -> List[FeedbackEvent]:
        return [
            e
            for e in self._events
            if e.member_id == member_id and (since is None or e.timestamp >= since)
        ]
