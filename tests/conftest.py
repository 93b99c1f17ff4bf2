"""
Shared fixtures: fake engines and a pipeline factory.

No models or ffmpeg are needed; every external engine is replaced.
"""
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from app.evaluation.result import TranscriptSegment, VisualResult
from app.models.profanity import ProfanityMatcher
from app.pipeline.runner import ModerationPipeline
from app.pipeline.stages import TextModerationStage, TranscriptionOutcome
from app.utils.cache import InMemoryResultCache
from app.utils.ffmpeg import ExtractedFrame


def write_fake_frames(
    media_path: str,
    timestamps: Sequence[float],
    output_dir: str,
    size: int = 224,
    prefix: str = "frame",
    stop_event=None,
) -> List[ExtractedFrame]:
    """Stand-in for extract_frames that writes placeholder files."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    frames = []
    for index, timestamp in enumerate(timestamps):
        path = out / f"{prefix}_{index:03d}.png"
        path.write_bytes(b"frame-%d" % index)
        frames.append(ExtractedFrame(index=index, timestamp=timestamp, path=str(path)))
    return frames


class FakeClassifier:
    """Returns scripted scores; one dict per call, the last one repeats."""

    def __init__(self, *responses):
        self.responses = list(responses) or [{"neutral": 0.99}]
        self.calls = 0

    def classify(self, image_bytes: bytes):
        response = self.responses[min(self.calls, len(self.responses) - 1)]
        self.calls += 1
        if isinstance(response, Exception):
            raise response
        return response


class FakeVisualStage:
    def __init__(self, result: VisualResult):
        self.result = result
        self.calls = 0

    async def moderate(self, media_path, strictness):
        self.calls += 1
        return self.result


class FakeAudioAdapter:
    def __init__(self, segments=(), error: Optional[str] = None):
        self.segments = list(segments)
        self.error = error
        self.calls = 0

    async def run(self, media_path):
        self.calls += 1
        if self.error:
            return TranscriptionOutcome(error=self.error)
        return TranscriptionOutcome(segments=list(self.segments))

    async def transcribe_for_moderation(self, media_path):
        return (await self.run(media_path)).segments


@pytest.fixture
def matcher():
    return ProfanityMatcher()


@pytest.fixture
def text_stage(matcher):
    return TextModerationStage(matcher=matcher)


@pytest.fixture
def media_file(tmp_path):
    """A small file standing in for an uploaded clip."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"not really a video" * 64)
    return str(path)


@pytest.fixture
def make_pipeline(text_stage):
    """Factory for pipelines wired with fake visual and audio engines."""

    def _make(
        visual_result: Optional[VisualResult] = None,
        segments: Sequence[TranscriptSegment] = (),
        transcription_error: Optional[str] = None,
        cache=None,
        **kwargs,
    ) -> ModerationPipeline:
        return ModerationPipeline(
            cache=cache if cache is not None else InMemoryResultCache(),
            visual_stage=FakeVisualStage(visual_result or VisualResult()),
            audio_adapter=FakeAudioAdapter(segments, transcription_error),
            text_stage=text_stage,
            **kwargs,
        )

    return _make


@pytest.fixture
def fake_frames():
    """extract_frames replacement."""
    return write_fake_frames


@pytest.fixture
def fake_classifier():
    """FakeClassifier factory: fake_classifier({"porn": 0.9}, ...)."""
    return FakeClassifier
