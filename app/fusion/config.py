"""
Fusion Configuration - weights and per-violation durations.

These are policy constants, not learned values. Override via environment
variables (VISUAL_WEIGHT, TEXT_WEIGHT, ...) through the settings layer.
"""
from dataclasses import dataclass

from app.core.config import settings


@dataclass(frozen=True)
class FusionWeights:
    """Weights for combining visual and text evidence."""
    visual_weight: float = 0.7              # Primary, higher-recall signal
    text_weight: float = 0.3                # Corroborating signal
    unflagged_confidence: float = 0.1
    text_flagged_confidence: float = 0.9

    # Estimated attributable seconds per violation
    visual_violation_seconds: float = 1.5
    audio_violation_seconds: float = 2.0

    @classmethod
    def from_settings(cls) -> "FusionWeights":
        return cls(
            visual_weight=settings.visual_weight,
            text_weight=settings.text_weight,
            unflagged_confidence=settings.unflagged_confidence,
            text_flagged_confidence=settings.text_flagged_confidence,
            visual_violation_seconds=settings.visual_violation_seconds,
            audio_violation_seconds=settings.audio_violation_seconds,
        )
