"""Data models for the recipe recommendation engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from recipe_recommender.scoring.weights import ScoringWeights


class _LowerEnum(str, Enum):
    """String enum that parses its values case-insensitively."""

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value == wanted:
                    return member
        return None


class MealType(_LowerEnum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class Season(_LowerEnum):
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


class Difficulty(_LowerEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def rank(self) -> int:
        return _DIFFICULTY_ORDER.index(self)


class SpiceLevel(_LowerEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"

    @property
    def rank(self) -> int:
        return _SPICE_ORDER.index(self)


class CostLevel(_LowerEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DietType(_LowerEnum):
    OMNIVORE = "omnivore"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    PESCATARIAN = "pescatarian"
    GLUTEN_FREE = "gluten_free"
    DAIRY_FREE = "dairy_free"
    LOW_CARB = "low_carb"
    HIGH_PROTEIN = "high_protein"


class GoalType(_LowerEnum):
    LOSE_WEIGHT = "lose_weight"
    GAIN_MUSCLE = "gain_muscle"
    MAINTAIN = "maintain"
    IMPROVE_HEALTH = "improve_health"


class FeedbackKind(_LowerEnum):
    RATING = "rating"
    FAVORITE = "favorite"
    VIEW = "view"
    SUBSTITUTION = "substitution"


_DIFFICULTY_ORDER = [Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD]
_SPICE_ORDER = [
    SpiceLevel.NONE,
    SpiceLevel.LOW,
    SpiceLevel.MEDIUM,
    SpiceLevel.HIGH,
    SpiceLevel.EXTREME,
]


def normalize_name(name: str) -> str:
    """Normalize an ingredient, tag or cuisine name for matching."""
    return str(name).strip().lower()


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (or datetime) into an aware UTC datetime.

    Naive values are taken to be UTC.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# --- Recipe catalog ---


@dataclass(frozen=True)
class Macros:
    """Per-serving nutrition of a recipe."""

    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    fiber_g: Optional[float] = None
    sodium_mg: Optional[float] = None


@dataclass(frozen=True)
class RecipeIngredient:
    """An ingredient line of a recipe."""

    name: str  # Food reference name (e.g. "chicken breast")
    category: str = ""  # Food category (e.g. "poultry", "vegetable")
    optional: bool = False  # Optional garnish; not required for inventory match


@dataclass(frozen=True)
class RecipeStats:
    """Aggregate engagement statistics for a recipe."""

    average_rating: float = 0.0
    rating_count: int = 0
    view_count: int = 0
    favorite_count: int = 0


@dataclass(frozen=True)
class RecipeCandidate:
    """Read-only snapshot of a catalog recipe. Never mutated by the engine."""

    id: str
    name: str
    total_time_minutes: int
    macros: Macros
    category: str
    estimated_cost: Optional[float] = None
    difficulty: Difficulty = Difficulty.MEDIUM
    cuisine: Optional[str] = None
    seasons: FrozenSet[Season] = frozenset()
    meal_types: FrozenSet[MealType] = frozenset()
    ingredients: Tuple[RecipeIngredient, ...] = ()
    diet_tags: FrozenSet[str] = frozenset()
    spice_level: Optional[SpiceLevel] = None
    stats: RecipeStats = field(default_factory=RecipeStats)

    @property
    def ingredient_names(self) -> List[str]:
        return [normalize_name(ing.name) for ing in self.ingredients]

    @property
    def required_ingredients(self) -> List[RecipeIngredient]:
        return [ing for ing in self.ingredients if not ing.optional]

    @property
    def ingredient_categories(self) -> FrozenSet[str]:
        return frozenset(
            normalize_name(ing.category) for ing in self.ingredients if ing.category
        )


# --- Request context ---


@dataclass(frozen=True)
class HealthGoal:
    """Active health goal of a member.

    Explicit per-meal targets override the goal type's default targets.
    """

    goal_type: GoalType
    target_calories: Optional[float] = None
    target_protein_g: Optional[float] = None
    target_carbs_g: Optional[float] = None
    target_fat_g: Optional[float] = None


@dataclass(frozen=True)
class RecommendationContext:
    """Immutable per-call request context built by the caller."""

    member_id: str
    meal_type: MealType
    servings: int = 1
    max_cook_time: Optional[int] = None  # minutes
    budget_limit: Optional[float] = None  # currency units
    dietary_restrictions: FrozenSet[str] = frozenset()
    excluded_ingredients: FrozenSet[str] = frozenset()
    preferred_cuisines: Tuple[str, ...] = ()
    season: Optional[Season] = None
    pantry: Optional[FrozenSet[str]] = None  # None means no pantry data supplied
    health_goal: Optional[HealthGoal] = None
    exclude_recipe_ids: FrozenSet[str] = frozenset()

    def __post_init__(self):
        """Validate numeric fields."""
        if self.servings < 1:
            raise ValueError(f"servings must be >= 1, got {self.servings}")
        if self.max_cook_time is not None and self.max_cook_time < 0:
            raise ValueError(f"max_cook_time must be non-negative, got {self.max_cook_time}")
        if self.budget_limit is not None and self.budget_limit < 0:
            raise ValueError(f"budget_limit must be non-negative, got {self.budget_limit}")


# --- Preference profile ---


@dataclass
class LearnedPreferences:
    """Preference signals inferred from member behaviour.

    Affinity maps are signed: positive values mean the member tends to enjoy
    the cuisine/category/ingredient, negative values mean the opposite.
    """

    cuisine_affinity: Dict[str, float] = field(default_factory=dict)
    category_affinity: Dict[str, float] = field(default_factory=dict)
    ingredient_affinity: Dict[str, float] = field(default_factory=dict)
    avoid_candidates: Dict[str, float] = field(default_factory=dict)
    substitutions: Dict[str, str] = field(default_factory=dict)  # original -> substitute
    spice_votes: Dict[SpiceLevel, float] = field(default_factory=dict)
    rating_count: int = 0
    rating_sum: float = 0.0
    favorite_count: int = 0
    view_count: int = 0
    substitution_count: int = 0
    signal_volume: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.signal_volume == 0.0 and not (
            self.cuisine_affinity
            or self.category_affinity
            or self.ingredient_affinity
            or self.substitutions
        )

    @property
    def spice_level(self) -> Optional[SpiceLevel]:
        """Most-voted spice level; ties resolve to the milder level."""
        if not self.spice_votes:
            return None
        return max(
            self.spice_votes.items(),
            key=lambda item: (item[1], -item[0].rank),
        )[0]

    @property
    def average_rating(self) -> Optional[float]:
        if self.rating_count == 0:
            return None
        return self.rating_sum / self.rating_count

    def top_cuisines(self, n: int = 5) -> List[str]:
        return _top_positive(self.cuisine_affinity, n)

    def top_ingredients(self, n: int = 10) -> List[str]:
        return _top_positive(self.ingredient_affinity, n)


def _top_positive(affinity: Mapping[str, float], n: int) -> List[str]:
    ranked = sorted(
        ((name, value) for name, value in affinity.items() if value > 0),
        key=lambda item: (-item[1], item[0]),
    )
    return [name for name, _ in ranked[:n]]


@dataclass
class UserPreferenceProfile:
    """Explicit and learned preferences of one family member."""

    member_id: str
    diet_type: DietType = DietType.OMNIVORE
    preferred_cuisines: List[str] = field(default_factory=list)
    preferred_ingredients: List[str] = field(default_factory=list)
    avoided_ingredients: List[str] = field(default_factory=list)
    spice_level: Optional[SpiceLevel] = None
    cost_level: CostLevel = CostLevel.MEDIUM  # Informational only; not used in scoring
    learned: LearnedPreferences = field(default_factory=LearnedPreferences)
    preference_score: float = 0.0  # Confidence in learned data, 0.0-1.0
    recommendation_weights: Optional["ScoringWeights"] = None
    last_analyzed_at: Optional[datetime] = None
    # Events already consumed at exactly last_analyzed_at
    last_analyzed_event_ids: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.last_analyzed_at is not None:
            self.last_analyzed_at = parse_timestamp(self.last_analyzed_at)

    @classmethod
    def default(cls, member_id: str) -> "UserPreferenceProfile":
        """Profile used on a member's first recommendation request."""
        return cls(member_id=member_id)


# --- Results ---


@dataclass(frozen=True)
class SubScores:
    """The five named feature sub-scores, each in [0, 1]."""

    inventory: float = 0.0
    price: float = 0.0
    nutrition: float = 0.0
    preference: float = 0.0
    seasonal: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {
            "inventory": self.inventory,
            "price": self.price,
            "nutrition": self.nutrition,
            "preference": self.preference,
            "seasonal": self.seasonal,
        }


@dataclass(frozen=True)
class Recommendation:
    """A scored, explained recipe recommendation."""

    recipe_id: str
    score: float
    reasons: Tuple[str, ...]
    explanation: str
    metadata: SubScores = field(default_factory=SubScores)


# --- Feedback ---


@dataclass(frozen=True)
class FeedbackEvent:
    """Append-only behavioural signal from a member.

    kind is kept as the raw string so unknown kinds can be reported rather
    than rejected at construction time.
    """

    event_id: str
    member_id: str
    kind: str
    timestamp: datetime
    recipe_id: Optional[str] = None
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "timestamp", parse_timestamp(self.timestamp))


@dataclass
class LearningResult:
    """Outcome of a Preference Learner run."""

    profile: UserPreferenceProfile
    processed_count: int = 0
    skipped_count: int = 0
    skipped_event_ids: List[str] = field(default_factory=list)
