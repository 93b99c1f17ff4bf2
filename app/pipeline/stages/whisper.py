"""
Audio transcription adapter.

Extracts the full audio track and hands it to Whisper. Transcription is
best-effort: any failure yields no segments, which means "nothing spoken to
check", not "check passed". The failure message is kept for diagnostics.
"""
import asyncio
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.evaluation.result import TranscriptSegment, only_spoken
from app.utils.ffmpeg import extract_audio

logger = get_logger("stages.whisper")


@dataclass
class TranscriptionOutcome:
    """Segments worth moderating plus the error, if transcription failed."""
    segments: List[TranscriptSegment] = field(default_factory=list)
    error: Optional[str] = None


class AudioTranscriptionAdapter:
    """Media file -> validated, non-empty transcript segments."""

    def __init__(self, asr=None, work_dir: Optional[str] = None):
        self._asr = asr
        self.work_dir = work_dir or settings.temp_dir

    @property
    def asr(self):
        if self._asr is None:
            from app.models import get_whisper_asr
            self._asr = get_whisper_asr()
        return self._asr

    async def run(self, media_path: str) -> TranscriptionOutcome:
        """Transcribe and keep the error message when it fails."""
        logger.info(f"Transcribing audio for moderation: {media_path}")

        audio_path = Path(self.work_dir) / f"audio_{uuid.uuid4().hex}.wav"
        loop = asyncio.get_running_loop()

        try:
            raw_segments = await loop.run_in_executor(
                None, self._transcribe_file, media_path, audio_path
            )
        except Exception as e:
            logger.error(f"Audio transcription failed: {e}")
            return TranscriptionOutcome(error=str(e))

        segments = []
        for start, end, text in raw_segments:
            try:
                segments.append(TranscriptSegment(start=start, end=end, text=text))
            except ValueError as e:
                logger.debug(f"Dropping invalid segment: {e}")

        spoken = only_spoken(segments)
        if spoken:
            logger.info(f"Transcription produced {len(spoken)} segments")
        else:
            logger.warning("Transcription completed but no speech was detected")

        return TranscriptionOutcome(segments=spoken)

    def _transcribe_file(self, media_path: str, audio_path: Path):
        """
        Extract + transcribe in one executor call.

        The WAV is written and removed on the executor thread, even when
        the awaiting task has already been cancelled.
        """
        try:
            # Full range, original language
            extract_audio(media_path, str(audio_path))
            return self.asr.transcribe(str(audio_path))
        finally:
            audio_path.unlink(missing_ok=True)

    async def transcribe_for_moderation(self, media_path: str) -> List[TranscriptSegment]:
        """Segments with non-empty text; empty on any failure."""
        outcome = await self.run(media_path)
        return outcome.segments
