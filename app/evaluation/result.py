"""
Unified Result Models for moderation.

Single source of truth for all result structures used across:
- Visual, transcription and text stages
- Fusion output
- Result cache
- API reports

Results are frozen dataclasses: once a stage or the fusion step builds one it
is never mutated, so a cached instance can be handed to concurrent requests.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

CATEGORIES = ("porn", "sexy", "hentai")


class StrictnessLevel(str, Enum):
    """Named sensitivity profile for the visual thresholds."""
    STRICT = "strict"
    MODERATE = "moderate"
    LENIENT = "lenient"

    @classmethod
    def parse(cls, value: Optional[str]) -> "StrictnessLevel":
        """Case-insensitive lookup; unknown or empty values mean MODERATE."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.MODERATE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.MODERATE


class StageStatus(str, Enum):
    """Outcome tag carried by every stage result."""
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ModerationInputError(ValueError):
    """Raised when a request carries neither media nor text."""
    pass


@dataclass(frozen=True)
class ModerationRequest:
    """One moderation invocation."""
    media_path: Optional[str] = None
    text: Optional[str] = None
    strictness: StrictnessLevel = StrictnessLevel.MODERATE
    # Caller-supplied subtitles; when non-empty, transcription is skipped
    segments: Tuple["TranscriptSegment", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "strictness", StrictnessLevel.parse(self.strictness))
        object.__setattr__(self, "segments", tuple(self.segments or ()))

    @property
    def has_media(self) -> bool:
        return bool(self.media_path)

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    @property
    def has_segments(self) -> bool:
        return len(self.segments) > 0

    def validate(self) -> None:
        if not self.has_media and not self.has_text:
            raise ModerationInputError("Either a media file or text must be provided")


@dataclass(frozen=True)
class FrameSample:
    """A decoded frame handed from extraction to classification. Never persisted."""
    index: int
    timestamp_seconds: float
    image_bytes: bytes = field(repr=False)


@dataclass(frozen=True)
class CategoryScores:
    """
    Independent per-category probabilities.

    The same type holds per-category cutoffs when returned by the threshold
    policy. Values are kept unrounded; rounding happens on serialization.
    """
    porn: float = 0.0
    sexy: float = 0.0
    hentai: float = 0.0

    @classmethod
    def from_mapping(cls, values: Dict[str, float]) -> "CategoryScores":
        """Build from a {category: value} mapping, missing categories are 0."""
        return cls(**{c: float(values.get(c, 0.0) or 0.0) for c in CATEGORIES})

    def get(self, category: str) -> float:
        return getattr(self, category)

    def exceeded(self, thresholds: "CategoryScores") -> List[str]:
        """Categories strictly above their cutoff."""
        return [c for c in CATEGORIES if self.get(c) > thresholds.get(c)]

    def to_dict(self) -> Dict[str, float]:
        return {c: round(self.get(c), 2) for c in CATEGORIES}


@dataclass(frozen=True)
class VisualViolation:
    """A sampled frame where at least one category exceeded its cutoff."""
    frame_index: int
    exact_timestamp: float
    formatted_timestamp: str
    estimated_duration_label: str
    scores: CategoryScores

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_index": self.frame_index,
            "exact_timestamp": round(self.exact_timestamp, 2),
            "timestamp": self.formatted_timestamp,
            "estimated_duration": self.estimated_duration_label,
            "scores": self.scores.to_dict(),
        }


@dataclass(frozen=True)
class TranscriptSegment:
    """Time-stamped text produced by the transcription engine."""
    start: float
    end: float
    text: str

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(
                f"Segment end ({self.end}) must be after start ({self.start})"
            )


@dataclass(frozen=True)
class TextViolation:
    """Profanity found in a transcript segment or in literal text."""
    original_text: str
    cleaned_text: str
    detected_words: Tuple[str, ...]
    flag_reason: str = "profanity"
    start: Optional[float] = None
    end: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "original_text": self.original_text,
            "cleaned_text": self.cleaned_text,
            "detected_words": list(self.detected_words),
            "flag_reason": self.flag_reason,
        }
        if self.start is not None and self.end is not None:
            data["start"] = round(self.start, 2)
            data["end"] = round(self.end, 2)
        return data


@dataclass(frozen=True)
class VisualResult:
    """Output of the visual moderation stage."""
    flagged: bool = False
    violations: Tuple[VisualViolation, ...] = ()
    total_frames_checked: int = 0
    video_duration_seconds: Optional[float] = None
    confidence: float = 0.0
    status: StageStatus = StageStatus.COMPLETED
    error: Optional[str] = None

    @classmethod
    def skipped(cls) -> "VisualResult":
        return cls(status=StageStatus.SKIPPED)

    @classmethod
    def failed(cls, message: str) -> "VisualResult":
        return cls(status=StageStatus.FAILED, error=message)

    @property
    def checked(self) -> bool:
        return self.status == StageStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "flagged": self.flagged,
            "status": self.status.value,
            "violations": [v.to_dict() for v in self.violations],
            "total_frames_checked": self.total_frames_checked,
            "video_duration_seconds": (
                round(self.video_duration_seconds, 2)
                if self.video_duration_seconds is not None else None
            ),
            "confidence": round(self.confidence, 2),
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class TextResult:
    """Output of the text stage over transcript segments."""
    flagged: bool = False
    violations: Tuple[TextViolation, ...] = ()
    total_segments_checked: int = 0
    status: StageStatus = StageStatus.COMPLETED
    error: Optional[str] = None

    @classmethod
    def skipped(cls) -> "TextResult":
        return cls(status=StageStatus.SKIPPED)

    @classmethod
    def failed(cls, message: str) -> "TextResult":
        return cls(status=StageStatus.FAILED, error=message)

    @property
    def checked(self) -> bool:
        return self.status == StageStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "flagged": self.flagged,
            "status": self.status.value,
            "violations": [v.to_dict() for v in self.violations],
            "total_segments_checked": self.total_segments_checked,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class LiteralTextResult:
    """Output of the text stage over the request's literal text."""
    flagged: bool = False
    violation: Optional[TextViolation] = None
    status: StageStatus = StageStatus.COMPLETED
    error: Optional[str] = None

    @classmethod
    def skipped(cls) -> "LiteralTextResult":
        return cls(status=StageStatus.SKIPPED)

    @classmethod
    def failed(cls, message: str) -> "LiteralTextResult":
        return cls(status=StageStatus.FAILED, error=message)

    @classmethod
    def from_violation(cls, violation: Optional[TextViolation]) -> "LiteralTextResult":
        return cls(flagged=violation is not None, violation=violation)

    @property
    def checked(self) -> bool:
        return self.status == StageStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "flagged": self.flagged,
            "status": self.status.value,
            "violation": self.violation.to_dict() if self.violation else None,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class ModerationResult:
    """
    Complete moderation result.

    This is the unit cached by content hash and rendered into the
    safe or unsafe report.
    """
    flagged: bool
    confidence: float
    visual: VisualResult
    audio_text: TextResult
    literal_text: LiteralTextResult
    strictness: StrictnessLevel = StrictnessLevel.MODERATE
    content_hash: Optional[str] = None

    @property
    def errors(self) -> Dict[str, str]:
        """Soft failures absorbed by the stages, keyed by signal."""
        errors = {}
        if self.visual.error:
            errors["visual"] = self.visual.error
        if self.audio_text.error:
            errors["audio"] = self.audio_text.error
        if self.literal_text.error:
            errors["text"] = self.literal_text.error
        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "flagged": self.flagged,
            "confidence": round(self.confidence, 2),
            "strictness": self.strictness.value,
            "content_hash": self.content_hash,
            "visual": self.visual.to_dict(),
            "audio_text": self.audio_text.to_dict(),
            "literal_text": self.literal_text.to_dict(),
        }


def only_spoken(segments: Iterable[TranscriptSegment]) -> List[TranscriptSegment]:
    """Drop segments whose text is empty or whitespace."""
    return [s for s in segments if s.text and s.text.strip()]
