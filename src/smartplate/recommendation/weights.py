"""
Recommendation weight presets and normalization.
"""

import logging
import math
from typing import Any, Dict, Mapping, Optional, Union

from smartplate.data.models import RecommendationWeights

logger = logging.getLogger(__name__)

FACTORS = (
    "nutritional_fit",
    "similarity_to_likes",
    "variety_boost",
    "pantry_match",
    "cost_score",
    "recency_penalty",
    "metadata_overlap",
    "vector_similarity",
    "collaborative_filtering",
)

# Browser clients send camelCase factor names
CAMEL_FACTORS: Dict[str, str] = {
    "nutritionalFit": "nutritional_fit",
    "similarityToLikes": "similarity_to_likes",
    "varietyBoost": "variety_boost",
    "pantryMatch": "pantry_match",
    "costScore": "cost_score",
    "recencyPenalty": "recency_penalty",
    "metadataOverlap": "metadata_overlap",
    "vectorSimilarity": "vector_similarity",
    "collaborativeFiltering": "collaborative_filtering",
}

PRESET_WEIGHTS: Dict[str, Dict[str, float]] = {
    "Healthy": {
        "nutritional_fit": 0.4,
        "similarity_to_likes": 0.2,
        "variety_boost": 0.1,
        "pantry_match": 0.1,
        "cost_score": 0.1,
        "recency_penalty": 0.1,
    },
    "WeightLoss": {
        "nutritional_fit": 0.6,
        "similarity_to_likes": 0.1,
        "variety_boost": 0.1,
        "pantry_match": 0.1,
        "cost_score": 0.05,
        "recency_penalty": 0.05,
    },
    "MuscleGain": {
        "nutritional_fit": 0.5,
        "similarity_to_likes": 0.1,
        "variety_boost": 0.1,
        "pantry_match": 0.1,
        "cost_score": 0.05,
        "recency_penalty": 0.15,
    },
}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value) and not math.isinf(value)


def default_weights() -> RecommendationWeights:
    return RecommendationWeights(**PRESET_WEIGHTS["Healthy"])


def normalize_weights(
    raw: Optional[Union[Mapping[str, Any], RecommendationWeights]]
) -> RecommendationWeights:
    """
    Scale weights so the known factors sum to 1.0.

    Args:
        raw: Factor -> weight mapping (snake_case or camelCase) or weights

    Returns:
        Normalized RecommendationWeights. Non-numeric entries count as 0.
        When nothing positive remains, the default weights are returned.
    """
    if isinstance(raw, RecommendationWeights):
        raw = raw.to_dict()
    raw = raw or {}

    values: Dict[str, float] = {}
    for key, value in raw.items():
        factor = CAMEL_FACTORS.get(key, key)
        if factor in FACTORS and _is_number(value) and value > 0:
            values[factor] = float(value)

    total = sum(values.values())
    if total <= 0:
        logger.warning("Recommendation weights sum to zero, using default weights")
        return default_weights()

    return RecommendationWeights(**{k: v / total for k, v in values.items()})


def preset_weights(preset: Union[str, Any]) -> RecommendationWeights:
    """Normalized weight vector for a goal preset (unknown presets: Healthy)."""
    from smartplate.recommendation.preset_rules import resolve_goal
    goal = resolve_goal(preset)
    return normalize_weights(PRESET_WEIGHTS[goal.value])
