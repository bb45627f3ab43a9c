"""Versioned weight configuration for the scoring aggregator."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

DIMENSIONS = ("inventory", "price", "nutrition", "preference", "seasonal")


@dataclass(frozen=True)
class ScoringWeights:
    """Configurable weights for the five feature sub-scores."""
    inventory: float = 0.3    # 30% - pantry coverage
    price: float = 0.2        # 20% - budget fit
    nutrition: float = 0.3    # 30% - health goal fit
    preference: float = 0.15  # 15% - taste preferences
    seasonal: float = 0.05    # 5%  - seasonality
    version: str = "v1"

    def __post_init__(self):
        """Validate weights sum to 1.0 and are non-negative."""
        weights = [getattr(self, name) for name in DIMENSIONS]
        if any(w < 0 for w in weights):
            raise ValueError("All scoring weights must be non-negative")

        total = sum(weights)
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total}")

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in DIMENSIONS}

    def dominant(self) -> str:
        """Dimension with the largest weight (first in DIMENSIONS order on ties)."""
        return max(DIMENSIONS, key=lambda name: (getattr(self, name), -DIMENSIONS.index(name)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ScoringWeights":
        """Build weights from a plain mapping (e.g. a YAML section).

        The mapping either names no dimension (defaults apply) or all five.
        Partial vectors are rejected, not merged over the defaults.

        Raises:
            ValueError: On unknown keys, a partial vector or invalid weights
        """
        allowed = set(DIMENSIONS) | {"version"}
        unknown = set(data) - allowed
        if unknown:
            raise ValueError(f"Unknown scoring weight keys: {sorted(unknown)}")
        missing = [name for name in DIMENSIONS if name not in data]
        if missing and len(missing) < len(DIMENSIONS):
            raise ValueError(f"Scoring weights must list every dimension, missing {missing}")
        values: Dict[str, Any] = {
            name: float(data[name]) for name in DIMENSIONS if name in data
        }
        if "version" in data:
            values["version"] = str(data["version"])
        return cls(**values)


def merge_weights(
    base: ScoringWeights,
    *overrides: Optional[ScoringWeights],
) -> ScoringWeights:
    """Return the last non-None override, falling back to base.

    Overrides are complete vectors and replace the base as a whole.
    """
    result = base
    for override in overrides:
        if override is not None:
            result = override
    return result


def weights_to_dict(weights: ScoringWeights) -> Dict[str, Any]:
    return asdict(weights)
