"""
Moderation pipeline - fan-out over the three signals, fan-in at fusion.

For one request:
1. Validate (media or text required)
2. Hash the content and consult the cache before any sampling
3. Run concurrently:
   - visual moderation
   - audio transcription (or caller-supplied subtitles) -> text moderation
   - literal text moderation
4. Fuse and store the result

Each branch has its own time budget. A branch that overruns or fails
degrades into its soft fallback; only unexpected errors propagate.
"""
import asyncio
from typing import Optional, Tuple, Union

from app.core.config import settings
from app.core.logging import get_logger
from app.evaluation.result import (
    LiteralTextResult,
    ModerationRequest,
    ModerationResult,
    StrictnessLevel,
    TextResult,
    VisualResult,
    only_spoken,
)
from app.fusion.config import FusionWeights
from app.fusion.engine import fuse
from app.pipeline.stages import (
    AudioTranscriptionAdapter,
    TextModerationStage,
    VisualModerationStage,
)
from app.utils.cache import InMemoryResultCache, ResultCache
from app.utils.hashing import build_cache_key, hash_file_async, hash_segments, hash_text
from app.utils.timing import timer

logger = get_logger("pipeline.runner")


class ModerationPipeline:
    """
    Runs one moderation request end to end.

    All collaborators are injected; build_pipeline() wires the defaults.
    """

    def __init__(
        self,
        cache: ResultCache,
        visual_stage: Optional[VisualModerationStage] = None,
        audio_adapter: Optional[AudioTranscriptionAdapter] = None,
        text_stage: Optional[TextModerationStage] = None,
        weights: Optional[FusionWeights] = None,
        visual_timeout: Optional[float] = None,
        transcription_timeout: Optional[float] = None,
    ):
        self.cache = cache
        self.visual_stage = visual_stage or VisualModerationStage()
        self.audio_adapter = audio_adapter or AudioTranscriptionAdapter()
        self.text_stage = text_stage or TextModerationStage()
        self.weights = weights or FusionWeights.from_settings()
        self.visual_timeout = visual_timeout or settings.visual_timeout_sec
        self.transcription_timeout = transcription_timeout or settings.transcription_timeout_sec

    async def content_key(self, request: ModerationRequest) -> Tuple[str, str]:
        """(content_hash, cache_key) for a request."""
        text_hash = hash_text(request.text) if request.has_text else None
        segments_hash = hash_segments(request.segments) if request.has_segments else None

        if request.has_media:
            content_hash = await hash_file_async(request.media_path)
            key = build_cache_key(content_hash, request.strictness.value, text_hash, segments_hash)
        else:
            content_hash = text_hash
            key = build_cache_key(content_hash, request.strictness.value, segments_hash=segments_hash)

        return content_hash, key

    async def run(self, request: ModerationRequest) -> ModerationResult:
        """
        Moderate a request.

        Raises:
            ModerationInputError: neither media nor text provided
        """
        request.validate()

        content_hash, key = await self.content_key(request)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.info(f"Returning cached result for {content_hash[:12]}")
            return cached

        logger.info(
            f"Moderating request (media={request.has_media}, text={request.has_text}, "
            f"strictness={request.strictness.value})"
        )

        with timer("Moderation pipeline"):
            visual, audio_text, literal_text = await asyncio.gather(
                self._moderate_visual(request),
                self._moderate_audio(request),
                self._moderate_literal(request),
            )

            result = fuse(
                visual,
                audio_text,
                literal_text,
                weights=self.weights,
                strictness=request.strictness,
                content_hash=content_hash,
            )

        await self.cache.put(key, result)
        return result

    async def moderate_visual_only(
        self,
        media_path: str,
        strictness: Union[str, StrictnessLevel] = StrictnessLevel.MODERATE,
    ) -> VisualResult:
        """Visual stage alone, uncached."""
        with timer("Visual-only moderation"):
            return await self._run_visual(media_path, StrictnessLevel.parse(strictness))

    async def _moderate_visual(self, request: ModerationRequest) -> VisualResult:
        if not request.has_media:
            return VisualResult.skipped()
        return await self._run_visual(request.media_path, request.strictness)

    async def _run_visual(self, media_path: str, strictness: StrictnessLevel) -> VisualResult:
        try:
            return await asyncio.wait_for(
                self.visual_stage.moderate(media_path, strictness),
                timeout=self.visual_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Visual moderation timed out after {self.visual_timeout}s")
            return VisualResult.failed(f"Visual moderation timed out after {self.visual_timeout}s")

    async def _moderate_audio(self, request: ModerationRequest) -> TextResult:
        if request.has_segments:
            logger.info(f"Using {len(request.segments)} supplied segments, skipping transcription")
            return self.text_stage.moderate_segments(only_spoken(request.segments))

        if not request.has_media:
            return TextResult.skipped()

        try:
            outcome = await asyncio.wait_for(
                self.audio_adapter.run(request.media_path),
                timeout=self.transcription_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Transcription timed out after {self.transcription_timeout}s")
            return TextResult.failed(f"Transcription timed out after {self.transcription_timeout}s")

        if outcome.error:
            return TextResult.failed(outcome.error)
        return self.text_stage.moderate_segments(outcome.segments)

    async def _moderate_literal(self, request: ModerationRequest) -> LiteralTextResult:
        if not request.has_text:
            return LiteralTextResult.skipped()

        try:
            return LiteralTextResult.from_violation(self.text_stage.moderate_text(request.text))
        except Exception as e:
            logger.error(f"Literal text moderation failed: {e}")
            return LiteralTextResult.failed(str(e))


def build_pipeline(cache: Optional[ResultCache] = None) -> ModerationPipeline:
    """Pipeline with the default stages and an in-memory LRU cache."""
    if cache is None:
        cache = InMemoryResultCache(max_entries=settings.cache_max_entries)

    return ModerationPipeline(
        cache=cache,
        visual_stage=VisualModerationStage(),
        audio_adapter=AudioTranscriptionAdapter(),
        text_stage=TextModerationStage(),
    )
