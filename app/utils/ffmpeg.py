"""
FFmpeg utilities for frame and audio extraction.
"""
import json
import shutil
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("ffmpeg")


class MediaProbeError(RuntimeError):
    """ffprobe could not read the media."""
    pass


class FrameExtractionError(RuntimeError):
    """No frame could be extracted."""
    pass


class AudioExtractionError(RuntimeError):
    """The audio track could not be extracted."""
    pass


@dataclass
class ExtractedFrame:
    """A frame written to disk by ffmpeg."""
    index: int
    timestamp: float
    path: str


def get_media_duration(media_path: str) -> float:
    """Read the container duration (seconds) with ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        media_path
    ]

    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, check=True,
            timeout=settings.ffmpeg_timeout_sec,
        )
        data = json.loads(result.stdout or "{}")
        return float(data.get("format", {}).get("duration", 0) or 0)

    except subprocess.CalledProcessError as e:
        logger.error(f"ffprobe failed: {e.stderr}")
        raise MediaProbeError(f"Unable to read media: {media_path}") from e
    except subprocess.TimeoutExpired as e:
        logger.error(f"ffprobe timed out on {media_path}")
        raise MediaProbeError(f"Timed out reading media: {media_path}") from e
    except (ValueError, json.JSONDecodeError) as e:
        logger.error(f"Failed to parse ffprobe output: {e}")
        raise MediaProbeError(f"Unreadable media metadata: {media_path}") from e


def extract_frame(
    media_path: str,
    timestamp: float,
    output_path: str,
    size: int = 224
) -> str:
    """Extract a single frame at `timestamp`, scaled to size x size PNG."""
    cmd = [
        "ffmpeg",
        "-ss", f"{timestamp:.2f}",
        "-i", media_path,
        "-frames:v", "1",
        "-vf", f"scale={size}:{size}",
        "-y",  # Overwrite
        output_path
    ]

    subprocess.run(
        cmd, capture_output=True, check=True,
        timeout=settings.ffmpeg_timeout_sec,
    )
    if not Path(output_path).exists():
        raise FrameExtractionError(f"ffmpeg produced no frame at {timestamp:.2f}s")
    return output_path


def extract_frames(
    media_path: str,
    timestamps: Sequence[float],
    output_dir: str,
    size: int = 224,
    prefix: str = "frame",
    stop_event: Optional[threading.Event] = None
) -> List[ExtractedFrame]:
    """
    Extract one frame per timestamp.

    A timestamp that fails is skipped. Raises FrameExtractionError only when
    timestamps were requested and none could be extracted.

    When `stop_event` is set (the caller gave up waiting), extraction stops
    before the next frame, `output_dir` is removed and FrameExtractionError
    is raised.
    """
    output_dir_path = Path(output_dir)
    output_dir_path.mkdir(parents=True, exist_ok=True)

    frames: List[ExtractedFrame] = []
    for index, timestamp in enumerate(timestamps):
        if stop_event is not None and stop_event.is_set():
            break
        output_path = str(output_dir_path / f"{prefix}_{index:03d}.png")
        try:
            extract_frame(media_path, timestamp, output_path, size)
            frames.append(ExtractedFrame(index=index, timestamp=timestamp, path=output_path))
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FrameExtractionError) as e:
            stderr = getattr(e, "stderr", None)
            logger.warning(f"Frame extraction failed at {timestamp:.2f}s: {stderr or e}")

    if stop_event is not None and stop_event.is_set():
        shutil.rmtree(output_dir_path, ignore_errors=True)
        logger.info(f"Frame extraction stopped after {len(frames)}/{len(timestamps)} frames")
        raise FrameExtractionError(f"Frame extraction cancelled for {media_path}")

    if timestamps and not frames:
        raise FrameExtractionError(f"No frames could be extracted from {media_path}")

    logger.info(f"Extracted {len(frames)}/{len(timestamps)} frames")
    return frames


def extract_audio(
    media_path: str,
    output_path: str,
    start: float = 0.0,
    end: Optional[float] = None
) -> str:
    """Extract audio as mono 16 kHz PCM WAV, optionally limited to [start, end)."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    cmd = ["ffmpeg"]
    if start > 0:
        cmd += ["-ss", str(start)]
    cmd += ["-i", media_path]
    if end is not None and end > start:
        cmd += ["-t", str(end - start)]
    cmd += [
        "-vn",  # No video
        "-acodec", "pcm_s16le",  # PCM 16-bit
        "-ar", "16000",  # 16kHz sample rate
        "-ac", "1",  # Mono
        "-y",  # Overwrite
        output_path
    ]

    try:
        subprocess.run(
            cmd, capture_output=True, check=True,
            timeout=settings.ffmpeg_timeout_sec,
        )
        return output_path

    except subprocess.CalledProcessError as e:
        logger.error(f"Audio extraction failed: {e.stderr}")
        raise AudioExtractionError(f"Unable to extract audio from {media_path}") from e
    except subprocess.TimeoutExpired as e:
        logger.error(f"Audio extraction timed out on {media_path}")
        raise AudioExtractionError(f"Timed out extracting audio from {media_path}") from e
