"""Member preference profiles stored as one YAML file per member."""
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from recipe_recommender.data_layer.exceptions import ProfileLoadError
from recipe_recommender.data_layer.models import (
    CostLevel,
    DietType,
    LearnedPreferences,
    SpiceLevel,
    UserPreferenceProfile,
    parse_timestamp,
)
from recipe_recommender.providers.interfaces import ProfileStore
from recipe_recommender.scoring.weights import ScoringWeights, weights_to_dict

logger = logging.getLogger(__name__)

_SAFE_MEMBER_ID = re.compile(r"^[A-Za-z0-9_.-]+$")

_LEARNED_COUNTERS = (
    "rating_count",
    "favorite_count",
    "view_count",
    "substitution_count",
)
_LEARNED_TOTALS = ("rating_sum", "signal_volume")
_LEARNED_MAPS = (
    "cuisine_affinity",
    "category_affinity",
    "ingredient_affinity",
    "avoid_candidates",
)


def profile_from_dict(data: Dict[str, Any]) -> UserPreferenceProfile:
    """Build a profile from a plain mapping (parsed YAML).

    Raises:
        KeyError: If member_id is missing
        ValueError: If an enum value or number is invalid
    """
    learned_data = data.get("learned") or {}
    learned = LearnedPreferences(
        substitutions={str(k): str(v) for k, v in (learned_data.get("substitutions") or {}).items()},
        spice_votes={
            SpiceLevel(k): float(v) for k, v in (learned_data.get("spice_votes") or {}).items()
        },
    )
    for name in _LEARNED_MAPS:
        setattr(
            learned,
            name,
            {str(k): float(v) for k, v in (learned_data.get(name) or {}).items()},
        )
    for name in _LEARNED_COUNTERS:
        setattr(learned, name, int(learned_data.get(name, 0)))
    for name in _LEARNED_TOTALS:
        setattr(learned, name, float(learned_data.get(name, 0.0)))

    weights_data = data.get("recommendation_weights")
    spice = data.get("spice_level")
    analyzed = data.get("last_analyzed_at")
    return UserPreferenceProfile(
        member_id=str(data["member_id"]),
        diet_type=DietType(data.get("diet_type", "omnivore")),
        preferred_cuisines=[str(c) for c in data.get("preferred_cuisines") or []],
        preferred_ingredients=[str(i) for i in data.get("preferred_ingredients") or []],
        avoided_ingredients=[str(i) for i in data.get("avoided_ingredients") or []],
        spice_level=SpiceLevel(spice) if spice else None,
        cost_level=CostLevel(data.get("cost_level", "medium")),
        learned=learned,
        preference_score=float(data.get("preference_score", 0.0)),
        recommendation_weights=ScoringWeights.from_mapping(weights_data) if weights_data else None,
        last_analyzed_at=parse_timestamp(analyzed) if analyzed else None,
        last_analyzed_event_ids=[str(e) for e in data.get("last_analyzed_event_ids") or []],
    )


def profile_to_dict(profile: UserPreferenceProfile) -> Dict[str, Any]:
    """Plain-data form of a profile, suitable for YAML or JSON."""
    learned = profile.learned
    learned_data: Dict[str, Any] = {name: dict(getattr(learned, name)) for name in _LEARNED_MAPS}
    learned_data["substitutions"] = dict(learned.substitutions)
    learned_data["spice_votes"] = {k.value: v for k, v in learned.spice_votes.items()}
    for name in _LEARNED_COUNTERS + _LEARNED_TOTALS:
        learned_data[name] = getattr(learned, name)

    return {
        "member_id": profile.member_id,
        "diet_type": profile.diet_type.value,
        "preferred_cuisines": list(profile.preferred_cuisines),
        "preferred_ingredients": list(profile.preferred_ingredients),
        "avoided_ingredients": list(profile.avoided_ingredients),
        "spice_level": profile.spice_level.value if profile.spice_level else None,
        "cost_level": profile.cost_level.value,
        "preference_score": profile.preference_score,
        "recommendation_weights": (
            weights_to_dict(profile.recommendation_weights)
            if profile.recommendation_weights
            else None
        ),
        "last_analyzed_at": (
            profile.last_analyzed_at.isoformat() if profile.last_analyzed_at else None
        ),
        "last_analyzed_event_ids": list(profile.last_analyzed_event_ids),
        "learned": learned_data,
    }


class UserProfileStore(ProfileStore):
    """Profile store keeping ``<member_id>.yaml`` files in a directory."""

    def __init__(self, directory: str):
        """Initialize the store.

        Args:
            directory: Directory holding profile files (created on first save)
        """
        self.directory = Path(directory)

    def _path_for(self, member_id: str) -> Path:
        if not _SAFE_MEMBER_ID.match(member_id):
            raise ProfileLoadError(member_id, "member id contains unsupported characters")
        return self.directory / f"{member_id}.yaml"

    def get_profile(self, member_id: str) -> Optional[UserPreferenceProfile]:
        """Load a member's profile.

        Returns:
            The profile, or None when the member has no profile file

        Raises:
            ProfileLoadError: If the file exists but cannot be parsed
        """
        path = self._path_for(member_id)
        if not path.exists():
            return None
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            data.setdefault("member_id", member_id)
            profile = profile_from_dict(data)
        except OSError as exc:
            raise ProfileLoadError(member_id, str(exc)) from exc
        except yaml.YAMLError as exc:
            raise ProfileLoadError(member_id, f"invalid YAML: {exc}") from exc
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ProfileLoadError(member_id, repr(exc)) from exc

        if profile.member_id != member_id:
            raise ProfileLoadError(
                member_id, f"file declares member_id '{profile.member_id}'"
            )
        return profile

    def save_profile(self, member_id: str, profile: UserPreferenceProfile) -> None:
        path = self._path_for(member_id)
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(profile_to_dict(profile), f, sort_keys=False)
        logger.info("Saved profile for member %s to %s", member_id, path)
