"""
Report builder - renders a ModerationResult as the safe or unsafe response.

Unsafe reports list only what is wrong: a signal's block is omitted when the
signal was not checked or not flagged. Safe reports summarize what was
checked and how much was examined, with no violation detail.
"""
import math
from typing import Any, Dict, List, Optional

from app.evaluation.result import (
    CATEGORIES,
    CategoryScores,
    ModerationResult,
    StageStatus,
    VisualViolation,
)
from app.fusion.config import FusionWeights
from app.policies.thresholds import thresholds_for
from app.utils.timing import format_seconds

ISSUE_LABELS = {
    "porn": "explicit content",
    "sexy": "suggestive content",
    "hentai": "explicit animated content",
}

CONTENT_TYPE_STATUS = {
    StageStatus.COMPLETED: "checked",
    StageStatus.SKIPPED: "not_provided",
    StageStatus.FAILED: "unavailable",
}


def _percent(value: float) -> int:
    """Round half up to a whole number (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def describe_issues(scores: CategoryScores, thresholds: CategoryScores) -> List[str]:
    """Human-readable label for every category above its cutoff."""
    return [
        f"{ISSUE_LABELS[category]} ({_percent(scores.get(category) * 100)}% confidence)"
        for category in CATEGORIES
        if category in scores.exceeded(thresholds)
    ]


def estimate_violation_time(
    visual_count: int,
    audio_count: int,
    weights: FusionWeights,
) -> float:
    """Seconds attributable to violations using fixed per-violation durations."""
    return (
        visual_count * weights.visual_violation_seconds
        + audio_count * weights.audio_violation_seconds
    )


def _visual_violation(violation: VisualViolation, thresholds: CategoryScores) -> Dict[str, Any]:
    data = violation.to_dict()
    data["issues"] = describe_issues(violation.scores, thresholds)
    return data


def _summary(result: ModerationResult, weights: FusionWeights) -> Dict[str, Any]:
    visual_count = len(result.visual.violations) if result.visual.flagged else 0
    audio_count = len(result.audio_text.violations) if result.audio_text.flagged else 0
    text_count = 1 if result.literal_text.flagged else 0

    summary: Dict[str, Any] = {
        "visual_violations": visual_count,
        "audio_violations": audio_count,
        "text_violations": text_count,
        "total_violations": visual_count + audio_count + text_count,
    }

    duration = result.visual.video_duration_seconds
    if duration and duration > 0 and (visual_count or audio_count):
        violation_time = estimate_violation_time(visual_count, audio_count, weights)
        summary["video_duration"] = round(duration, 2)
        summary["total_violation_time"] = round(violation_time, 2)
        summary["total_violation_time_display"] = format_seconds(violation_time)
        summary["violation_percentage"] = min(100, _percent(violation_time * 100 / duration))

    return summary


def _diagnostics(result: ModerationResult) -> Optional[Dict[str, str]]:
    return result.errors or None


def build_unsafe_report(
    result: ModerationResult,
    weights: Optional[FusionWeights] = None,
) -> Dict[str, Any]:
    """Violation report for a flagged result."""
    weights = weights or FusionWeights.from_settings()
    thresholds = thresholds_for(result.strictness)

    violations: Dict[str, Any] = {}

    if result.visual.checked and result.visual.flagged:
        violations["visual"] = {
            "frames_checked": result.visual.total_frames_checked,
            "confidence": round(result.visual.confidence, 2),
            "violations": [
                _visual_violation(v, thresholds) for v in result.visual.violations
            ],
        }

    if result.audio_text.checked and result.audio_text.flagged:
        violations["audio"] = {
            "segments_checked": result.audio_text.total_segments_checked,
            "violations": [v.to_dict() for v in result.audio_text.violations],
        }

    if result.literal_text.checked and result.literal_text.flagged:
        violations["text"] = result.literal_text.violation.to_dict()

    report = {
        "status": "unsafe",
        "flagged": True,
        "confidence": round(result.confidence, 2),
        "strictness": result.strictness.value,
        "summary": _summary(result, weights),
        "violations": violations,
    }

    diagnostics = _diagnostics(result)
    if diagnostics:
        report["diagnostics"] = diagnostics
    return report


def build_safe_report(result: ModerationResult) -> Dict[str, Any]:
    """Summary of what was checked for an unflagged result."""
    duration = result.visual.video_duration_seconds

    report = {
        "status": "safe",
        "flagged": False,
        "confidence": round(result.confidence, 2),
        "strictness": result.strictness.value,
        "message": "No content violations detected",
        "content_types": {
            "video": CONTENT_TYPE_STATUS[result.visual.status],
            "audio": CONTENT_TYPE_STATUS[result.audio_text.status],
            "text": CONTENT_TYPE_STATUS[result.literal_text.status],
        },
        "frames_checked": result.visual.total_frames_checked,
        "segments_checked": result.audio_text.total_segments_checked,
        "video_duration": round(duration, 2) if duration is not None else None,
    }

    diagnostics = _diagnostics(result)
    if diagnostics:
        report["diagnostics"] = diagnostics
    return report


def build_report(
    result: ModerationResult,
    weights: Optional[FusionWeights] = None,
) -> Dict[str, Any]:
    """Render the unsafe or safe report for a result."""
    if result.flagged:
        return build_unsafe_report(result, weights)
    return build_safe_report(result)


def build_error_report(error: Exception) -> Dict[str, Any]:
    """Check-failed response: an operational error, not a content judgment."""
    return {
        "status": "error",
        "message": "Moderation failed",
        "error": str(error),
    }
