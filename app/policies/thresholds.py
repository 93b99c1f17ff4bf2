"""
Threshold policy - maps a strictness level to per-category cutoffs.

Stricter levels use lower cutoffs, so they flag more frames:
strict < moderate < lenient for every category.
"""
from typing import Dict, Optional, Union

from app.core.config import get_strictness_presets
from app.evaluation.result import CategoryScores, StrictnessLevel


def thresholds_for(level: Optional[Union[str, StrictnessLevel]]) -> CategoryScores:
    """
    Get the cutoffs for a strictness level.

    Unknown level names fall back to "moderate". The returned values are
    cutoffs, not probabilities; a score triggers only when strictly above.
    """
    strictness = StrictnessLevel.parse(level)
    presets = get_strictness_presets()
    return CategoryScores.from_mapping(presets[strictness.value])


def list_strictness_levels() -> Dict[str, Dict[str, float]]:
    """All levels with their cutoffs, for the API."""
    return {
        level.value: thresholds_for(level).to_dict()
        for level in StrictnessLevel
    }
