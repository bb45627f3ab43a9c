"""Abstract collaborators the recommendation engine reads from and writes to.

The engine depends ONLY on these interfaces. Concrete implementations
supply data from memory, local files or a database without changing the
scoring logic. All I/O happens behind these methods, never inside scoring.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from recipe_recommender.data_layer.models import (
    FeedbackEvent,
    MealType,
    RecipeCandidate,
    UserPreferenceProfile,
    normalize_name,
)


@dataclass(frozen=True)
class CatalogFilter:
    """Coarse pre-filter hints a catalog may use to narrow its result.

    Hints are advisory: the engine re-applies every hard constraint, so a
    catalog that ignores them is still correct.
    """

    meal_type: Optional[MealType] = None
    category: Optional[str] = None
    max_total_time: Optional[int] = None

    def matches(self, recipe: RecipeCandidate) -> bool:
        if self.meal_type is not None and recipe.meal_types and self.meal_type not in recipe.meal_types:
            return False
        if self.category and normalize_name(recipe.category) != normalize_name(self.category):
            return False
        if self.max_total_time is not None and recipe.total_time_minutes > self.max_total_time:
            return False
        return True


class CatalogReader(ABC):
    """Read access to the recipe catalog."""

    @abstractmethod
    def list_recipes(self, filter_hints: Optional[CatalogFilter] = None) -> List[RecipeCandidate]:
        """Return catalog recipes, optionally narrowed by *filter_hints*.

        Args:
            filter_hints: Advisory pre-filter; None returns every recipe.

        Returns:
            Recipes in a stable catalog order.
        """
        ...

    @abstractmethod
    def get_recipe(self, recipe_id: str) -> Optional[RecipeCandidate]:
        """Return the recipe with *recipe_id*, or ``None`` if absent."""
        ...


class ProfileStore(ABC):
    """Read/write access to member preference profiles."""

    @abstractmethod
    def get_profile(self, member_id: str) -> Optional[UserPreferenceProfile]:
        """Return the stored profile, or ``None`` for a member with no profile yet."""
        ...

    @abstractmethod
    def save_profile(self, member_id: str, profile: UserPreferenceProfile) -> None:
        """Persist *profile*, superseding any previous one for *member_id*."""
        ...


class FeedbackSource(ABC):
    """Read access to the append-only feedback log."""

    @abstractmethod
    def list_feedback_since(
        self,
        member_id: str,
        since: Optional[datetime] = None,
    ) -> List[FeedbackEvent]:
        """Return the member's events with timestamp at or after *since*.

        The bound is inclusive. Callers drop the events they already
        consumed at the watermark.

        Args:
            member_id: Member whose events to return.
            since: Watermark; ``None`` returns the full history.
        """
        ...
