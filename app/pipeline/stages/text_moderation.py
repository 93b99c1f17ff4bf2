"""
Text moderation stage for transcript segments and literal text.

Both entry points share one profanity matcher so spoken and typed text are
judged the same way.
"""
from typing import Optional, Sequence

from app.core.logging import get_logger
from app.evaluation.result import TextResult, TextViolation, TranscriptSegment

logger = get_logger("stages.text_moderation")


class TextModerationStage:
    """Profanity scan with censored rewrites."""

    def __init__(self, matcher=None):
        self._matcher = matcher

    @property
    def matcher(self):
        if self._matcher is None:
            from app.models import get_profanity_matcher
            self._matcher = get_profanity_matcher()
        return self._matcher

    def _check(
        self,
        text: str,
        start: Optional[float] = None,
        end: Optional[float] = None,
    ) -> Optional[TextViolation]:
        if not text or not self.matcher.has_match(text):
            return None

        matches = self.matcher.find_matches(text)
        cleaned = self.matcher.censor(text, matches)
        detected = tuple(
            m.word if m.word else f"term_{m.term_id}"
            for m in matches
        )

        return TextViolation(
            original_text=text,
            cleaned_text=cleaned,
            detected_words=detected,
            flag_reason="profanity",
            start=start,
            end=end,
        )

    def moderate_segments(self, segments: Sequence[TranscriptSegment]) -> TextResult:
        """Check every segment; violations keep the segment timing."""
        if not segments:
            return TextResult()

        try:
            violations = []
            for segment in segments:
                violation = self._check(segment.text, segment.start, segment.end)
                if violation:
                    violations.append(violation)
        except Exception as e:
            logger.error(f"Text moderation failed: {e}")
            return TextResult.failed(str(e))

        if violations:
            logger.info(f"Profanity in {len(violations)}/{len(segments)} transcript segments")

        return TextResult(
            flagged=len(violations) > 0,
            violations=tuple(violations),
            total_segments_checked=len(segments),
        )

    def moderate_text(self, text: str) -> Optional[TextViolation]:
        """Check a single literal string. None when clean."""
        violation = self._check(text)
        if violation:
            logger.info(f"Profanity in literal text: {list(violation.detected_words)}")
        return violation

    def filter_text(self, text: str) -> str:
        """Censored rewrite, unchanged when clean."""
        violation = self._check(text)
        return violation.cleaned_text if violation else text
