"""
Result models shared by the stages, fusion, cache and API.
"""
from app.evaluation.result import (
    CATEGORIES,
    CategoryScores,
    FrameSample,
    LiteralTextResult,
    ModerationInputError,
    ModerationRequest,
    ModerationResult,
    StageStatus,
    StrictnessLevel,
    TextResult,
    TextViolation,
    TranscriptSegment,
    VisualResult,
    VisualViolation,
)

__all__ = [
    "CATEGORIES",
    "CategoryScores",
    "FrameSample",
    "LiteralTextResult",
    "ModerationInputError",
    "ModerationRequest",
    "ModerationResult",
    "StageStatus",
    "StrictnessLevel",
    "TextResult",
    "TextViolation",
    "TranscriptSegment",
    "VisualResult",
    "VisualViolation",
]
