"""
Visual moderation stage.

Samples frames across the media, classifies each one with the NSFW
classifier and records a violation for every frame where a monitored
category is strictly above the active cutoff.

Frames are scored one at a time: classifier inference holds sizeable
tensors, so concurrent inference per request is not allowed. Each frame's
file is deleted as soon as it has been scored, whether scoring worked or not.
"""
import asyncio
import functools
import shutil
import threading
import uuid
from pathlib import Path
from typing import List, Optional, Union

from app.core.config import settings
from app.core.logging import get_logger
from app.evaluation.result import (
    CategoryScores,
    FrameSample,
    StrictnessLevel,
    VisualResult,
    VisualViolation,
)
from app.pipeline.sampler import FrameSampler
from app.policies.thresholds import thresholds_for
from app.utils.ffmpeg import ExtractedFrame, extract_frames, get_media_duration
from app.utils.timing import format_timestamp

logger = get_logger("stages.nsfw")

ESTIMATED_DURATION_LABEL = "~1-2 seconds"


class VisualModerationStage:
    """Frame sampling + NSFW classification over one media file."""

    def __init__(
        self,
        classifier=None,
        sampler: Optional[FrameSampler] = None,
        work_dir: Optional[str] = None,
        frame_size: Optional[int] = None,
    ):
        self._classifier = classifier
        self.sampler = sampler or FrameSampler()
        self.work_dir = work_dir or settings.temp_dir
        self.frame_size = frame_size or settings.frame_size

    @property
    def classifier(self):
        if self._classifier is None:
            from app.models import get_nsfw_classifier
            self._classifier = get_nsfw_classifier()
        return self._classifier

    async def moderate(
        self,
        media_path: str,
        strictness: Union[str, StrictnessLevel] = StrictnessLevel.MODERATE,
    ) -> VisualResult:
        """
        Run visual moderation.

        Never raises for engine problems: unreadable media or a failed
        extraction comes back as a FAILED result carrying the error.
        The frame directory is removed on every exit, cancellation included;
        an extraction still running in the executor is told to stop and
        removes what it wrote.
        """
        level = StrictnessLevel.parse(strictness)
        frame_dir = Path(self.work_dir) / f"frames_{uuid.uuid4().hex}"
        stop = threading.Event()

        logger.info(f"Running visual moderation ({level.value}) on {media_path}")

        try:
            return await self._moderate(media_path, level, frame_dir, stop)
        finally:
            stop.set()
            shutil.rmtree(frame_dir, ignore_errors=True)

    async def _moderate(
        self,
        media_path: str,
        level: StrictnessLevel,
        frame_dir: Path,
        stop: threading.Event,
    ) -> VisualResult:
        thresholds = thresholds_for(level)
        loop = asyncio.get_running_loop()

        try:
            duration = await loop.run_in_executor(None, get_media_duration, media_path)
            timestamps = self.sampler.sample(duration)

            frames: List[ExtractedFrame] = []
            if timestamps:
                frames = await loop.run_in_executor(
                    None,
                    functools.partial(
                        extract_frames,
                        media_path,
                        timestamps,
                        str(frame_dir),
                        self.frame_size,
                        stop_event=stop,
                    ),
                )
        except Exception as e:
            logger.error(f"Visual moderation failed: {e}")
            return VisualResult.failed(str(e))

        violations: List[VisualViolation] = []
        frames_checked = 0

        for frame in frames:
            scores = await self._score_frame(frame)
            if scores is None:
                continue

            frames_checked += 1
            if scores.exceeded(thresholds):
                violations.append(VisualViolation(
                    frame_index=frame.index,
                    exact_timestamp=round(frame.timestamp, 2),
                    formatted_timestamp=format_timestamp(frame.timestamp),
                    estimated_duration_label=ESTIMATED_DURATION_LABEL,
                    scores=scores,
                ))

        if frames and frames_checked == 0:
            logger.error("Visual moderation could not classify any frame")
            return VisualResult.failed("No frames could be classified")

        logger.info(
            f"Visual moderation complete: {frames_checked} frames checked, "
            f"{len(violations)} flagged"
        )

        return VisualResult(
            flagged=len(violations) > 0,
            violations=tuple(violations),
            total_frames_checked=frames_checked,
            video_duration_seconds=duration,
            confidence=len(violations) / frames_checked if frames_checked else 0.0,
        )

    async def _score_frame(self, frame: ExtractedFrame) -> Optional[CategoryScores]:
        """Classify one extracted frame and delete its file."""
        loop = asyncio.get_running_loop()
        frame_path = Path(frame.path)
        sample = None

        try:
            image_bytes = await loop.run_in_executor(None, frame_path.read_bytes)
            sample = FrameSample(
                index=frame.index,
                timestamp_seconds=frame.timestamp,
                image_bytes=image_bytes,
            )
            raw = await loop.run_in_executor(None, self.classifier.classify, sample.image_bytes)
            return CategoryScores.from_mapping(raw)
        except Exception as e:
            logger.warning(f"Failed to classify frame {frame.index} at {frame.timestamp:.2f}s: {e}")
            return None
        finally:
            del sample
            frame_path.unlink(missing_ok=True)
