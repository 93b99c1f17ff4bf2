"""
Fusion engine - combines the three signal results into one verdict.

overall flagged = visual OR audio text OR literal text

confidence = visual_weight * visual_confidence + text_weight * text_confidence
  visual_confidence = max(visual.confidence, unflagged_confidence) if visual flagged
                      else unflagged_confidence
  text_confidence   = text_flagged_confidence if any text flagged else unflagged_confidence

Note the max() on the visual term. The plain weighted sum would use
visual.confidence as is, and a flagged video with 1 violating frame out of 20
(0.05) would then fuse below the confidence of a clean result. Clamping the
flagged visual term to the unflagged floor departs from that plain formula
and keeps the fused confidence within [unflagged_confidence, 1].
"""
from typing import Optional, Union

from app.core.logging import get_logger
from app.evaluation.result import (
    LiteralTextResult,
    ModerationResult,
    StrictnessLevel,
    TextResult,
    VisualResult,
)
from app.fusion.config import FusionWeights

logger = get_logger("fusion.engine")


def fuse(
    visual: VisualResult,
    audio_text: TextResult,
    literal_text: LiteralTextResult,
    weights: Optional[FusionWeights] = None,
    strictness: Union[str, StrictnessLevel] = StrictnessLevel.MODERATE,
    content_hash: Optional[str] = None,
) -> ModerationResult:
    """
    Fuse stage results into a ModerationResult.

    Failed or skipped stages carry flagged=False and count as
    "unknown, not violating".
    """
    weights = weights or FusionWeights.from_settings()

    text_flagged = audio_text.flagged or literal_text.flagged
    flagged = visual.flagged or text_flagged

    if visual.flagged:
        visual_confidence = max(visual.confidence, weights.unflagged_confidence)
    else:
        visual_confidence = weights.unflagged_confidence

    text_confidence = (
        weights.text_flagged_confidence if text_flagged else weights.unflagged_confidence
    )

    confidence = (
        weights.visual_weight * visual_confidence
        + weights.text_weight * text_confidence
    )
    confidence = round(min(1.0, confidence), 2)

    logger.info(
        f"Fusion: flagged={flagged} confidence={confidence} "
        f"(visual={visual.flagged}, audio={audio_text.flagged}, text={literal_text.flagged})"
    )

    return ModerationResult(
        flagged=flagged,
        confidence=confidence,
        visual=visual,
        audio_text=audio_text,
        literal_text=literal_text,
        strictness=StrictnessLevel.parse(strictness),
        content_hash=content_hash,
    )
