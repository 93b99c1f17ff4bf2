"""
Frame sampler - stratified random timestamps across a media duration.

The duration is split into equal-width strata and one timestamp is drawn
uniformly inside each. Fixed offsets would let content hide between known
sample points; pure random draws could cluster.
"""
import math
import random
from typing import List, Optional

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("pipeline.sampler")


class FrameSampler:
    """Chooses which timestamps the visual stage inspects."""

    def __init__(
        self,
        min_frames: int = None,
        max_frames: int = None,
        seconds_per_frame: float = None,
        seed: Optional[int] = None,
    ):
        self.min_frames = min_frames if min_frames is not None else settings.min_sample_frames
        self.max_frames = max_frames if max_frames is not None else settings.max_sample_frames
        self.seconds_per_frame = (
            seconds_per_frame if seconds_per_frame is not None else settings.seconds_per_sample
        )
        self._seed = seed

    def target_count(self, duration_seconds: float) -> int:
        """clamp(ceil(duration / seconds_per_frame), min_frames, max_frames)."""
        if duration_seconds <= 0:
            return 0
        wanted = math.ceil(duration_seconds / self.seconds_per_frame)
        return max(self.min_frames, min(self.max_frames, wanted))

    def sample(self, duration_seconds: Optional[float]) -> List[float]:
        """Return sorted timestamps, one per stratum. Empty for duration <= 0."""
        if not duration_seconds or duration_seconds <= 0:
            return []

        count = self.target_count(duration_seconds)
        width = duration_seconds / count

        # Fresh generator per call; a fixed seed only for reproducible tests
        rng = random.Random(self._seed)
        timestamps = [
            rng.uniform(i * width, (i + 1) * width)
            for i in range(count)
        ]

        logger.debug(
            f"Sampled {count} timestamps over {duration_seconds:.2f}s "
            f"(stratum width {width:.2f}s)"
        )
        return timestamps
