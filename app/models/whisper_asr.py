"""
Whisper speech-to-text.

Full-range, untranslated transcription in the spoken language, returned as
time-stamped chunks.
"""
import wave
from typing import List, Optional, Tuple

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("models.whisper")


def wav_duration(audio_path: str) -> float:
    """Duration of a PCM WAV file in seconds."""
    with wave.open(audio_path, "rb") as wav:
        rate = wav.getframerate()
        return wav.getnframes() / float(rate) if rate else 0.0


class WhisperASR:
    """Whisper ASR backed by a transformers pipeline."""

    def __init__(self, model_id: Optional[str] = None, chunk_length_s: int = 30):
        self.model_id = model_id or settings.whisper_model_id
        self.chunk_length_s = chunk_length_s
        self._pipeline = None

    @property
    def loaded(self) -> bool:
        return self._pipeline is not None

    def load(self):
        """Load the model on first use."""
        if self._pipeline is not None:
            return

        import torch
        from transformers import pipeline

        device = 0 if torch.cuda.is_available() else -1
        logger.info(f"Loading Whisper model {self.model_id} (device={device})")
        self._pipeline = pipeline(
            "automatic-speech-recognition",
            model=self.model_id,
            chunk_length_s=self.chunk_length_s,
            device=device,
        )
        logger.info("Whisper model loaded")

    def transcribe(self, audio_path: str) -> List[Tuple[float, float, str]]:
        """
        Transcribe a mono 16 kHz WAV file.

        Returns:
            [(start, end, text)] in seconds. A trailing chunk with no end
            timestamp is closed at the audio duration.
        """
        self.load()

        output = self._pipeline(
            audio_path,
            return_timestamps=True,
            # No "language": let Whisper detect it. No translation.
            generate_kwargs={"task": "transcribe"},
        )

        chunks = output.get("chunks", []) if isinstance(output, dict) else []
        duration = None
        segments = []

        for chunk in chunks:
            start, end = chunk.get("timestamp", (None, None))
            if start is None:
                continue
            if end is None:
                if duration is None:
                    duration = wav_duration(audio_path)
                end = duration
            segments.append((float(start), float(end), str(chunk.get("text", "")).strip()))

        logger.info(f"Whisper returned {len(segments)} chunks")
        return segments
