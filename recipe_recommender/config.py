"""Engine configuration loaded from YAML.

Example ``recommender.yaml``::

    engine:
      reason_threshold: 0.7
      max_reasons: 3
      max_workers: 4
    weights:
      version: pantry-first
      inventory: 0.4
      price: 0.2
      nutrition: 0.2
      preference: 0.15
      seasonal: 0.05
"""
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from recipe_recommender.data_layer.exceptions import ConfigurationError
from recipe_recommender.scoring.weights import ScoringWeights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    """Tunable engine parameters."""

    reason_threshold: float = 0.7  # Sub-score needed to surface a reason
    max_reasons: int = 3
    emphasis_weight_threshold: float = 0.3  # Largest weight needed for the emphasis clause
    popularity_prior_mean: float = 3.0  # Bayesian prior rating
    popularity_prior_weight: float = 10.0  # Bayesian prior pseudo-count
    popularity_rating_share: float = 0.8  # Remainder goes to views
    cold_start_popularity_share: float = 0.5  # Popularity share of the preference slot for new members
    max_workers: int = 1  # >1 enables parallel candidate scoring
    parallel_threshold: int = 64  # Minimum candidates before going parallel
    default_limit: int = 10

    def __post_init__(self):
        """Validate ranges."""
        if not 0.0 <= self.reason_threshold <= 1.0:
            raise ValueError(f"reason_threshold must be in [0, 1], got {self.reason_threshold}")
        if self.max_reasons < 1:
            raise ValueError(f"max_reasons must be >= 1, got {self.max_reasons}")
        if not 0.0 <= self.popularity_rating_share <= 1.0:
            raise ValueError(
                f"popularity_rating_share must be in [0, 1], got {self.popularity_rating_share}"
            )
        if not 0.0 <= self.cold_start_popularity_share <= 1.0:
            raise ValueError(
                "cold_start_popularity_share must be in [0, 1], "
                f"got {self.cold_start_popularity_share}"
            )
        if self.popularity_prior_weight < 0:
            raise ValueError("popularity_prior_weight must be non-negative")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"config file not found: {path}")
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config root must be a mapping: {path}")
    unknown = set(data) - {"engine", "weights"}
    if unknown:
        raise ConfigurationError(f"unknown config sections in {path}: {sorted(unknown)}")
    return data


def _build_settings(section: Dict[str, Any]) -> EngineSettings:
    known = {f.name for f in fields(EngineSettings)}
    unknown = set(section) - known
    if unknown:
        raise ConfigurationError(f"unknown engine settings: {sorted(unknown)}")
    try:
        return EngineSettings(**section)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid engine settings: {exc}") from exc


def _build_weights(section: Dict[str, Any]) -> ScoringWeights:
    try:
        return ScoringWeights.from_mapping(section)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid scoring weights: {exc}") from exc


def load_config(path: str) -> Tuple[EngineSettings, ScoringWeights]:
    """Load engine settings and scoring weights from a YAML file.

    Missing sections fall back to defaults.

    Args:
        path: Path to the YAML configuration file

    Returns:
        Tuple of (EngineSettings, ScoringWeights)

    Raises:
        ConfigurationError: If the file is missing, malformed or has unknown keys
    """
    config_path = Path(path)
    data = _read_yaml(config_path)
    settings = _build_settings(data.get("engine") or {})
    weights = _build_weights(data.get("weights") or {})
    logger.info(
        "Loaded recommender config from %s (weights version %s)",
        config_path,
        weights.version,
    )
    return settings, weights


def load_settings(path: str) -> EngineSettings:
    """Load only the ``engine`` section."""
    return load_config(path)[0]


def load_weights(path: str) -> ScoringWeights:
    """Load only the ``weights`` section."""
    return load_config(path)[1]


def resolve_config(path: Optional[str]) -> Tuple[EngineSettings, ScoringWeights]:
    """Load config from path, or return defaults when no path is given."""
    if path is None:
        return EngineSettings(), ScoringWeights()
    return load_config(path)
