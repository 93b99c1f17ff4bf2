"""
API Schemas (DTOs) for the moderation service.

Moderation reports are plain dicts built by app.fusion.report; the models
here cover the fixed-shape utility endpoints.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    models_loaded: bool = False


class StrictnessLevelsResponse(BaseModel):
    """Per-category cutoffs for every strictness level."""
    default: str = "moderate"
    levels: Dict[str, Dict[str, float]]


class CacheStatsResponse(BaseModel):
    """Result cache counters."""
    entries: int
    max_entries: int
    hits: int = 0
    misses: int = 0
    evictions: int = 0


class TextModerationResponse(BaseModel):
    """Literal text verdict."""
    flagged: bool
    cleaned_text: str
    detected_words: List[str] = Field(default_factory=list)
    flag_reason: Optional[str] = None


class SubtitleSegment(BaseModel):
    """Caller-supplied subtitle line for /moderate."""
    start: float = Field(..., ge=0.0)
    end: float
    text: str
