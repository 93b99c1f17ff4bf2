"""
Configuration management for ClipGuard moderation service.
"""
import os
from typing import Dict
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # API Settings
    app_name: str = "ClipGuard - Multi-modal Content Moderation"
    version: str = "1.0.0"
    api_prefix: str = "/v1"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Model Settings
    hf_home: str = os.getenv("HF_HOME", "/models/hf")
    preload_models: bool = os.getenv("PRELOAD_MODELS", "false").lower() == "true"

    # Visual classifier (drawings/hentai/neutral/porn/sexy labels)
    nsfw_model_id: str = os.getenv("NSFW_MODEL_ID", "giacomoarienti/nsfw-classifier")

    # Whisper ASR Model
    whisper_model_id: str = os.getenv("WHISPER_MODEL_ID", "openai/whisper-small")

    # Working Directory
    temp_dir: str = os.getenv("TEMP_DIR", "/tmp/clipguard")
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "100"))
    temp_max_age_sec: int = int(os.getenv("TEMP_MAX_AGE_SEC", "1800"))
    cleanup_interval_sec: int = int(os.getenv("CLEANUP_INTERVAL_SEC", "600"))

    # Per-level cutoffs; every category must satisfy strict < moderate < lenient
    threshold_strict_porn: float = float(os.getenv("THRESHOLD_STRICT_PORN", "0.4"))
    threshold_strict_sexy: float = float(os.getenv("THRESHOLD_STRICT_SEXY", "0.6"))
    threshold_strict_hentai: float = float(os.getenv("THRESHOLD_STRICT_HENTAI", "0.5"))

    threshold_porn: float = float(os.getenv("THRESHOLD_PORN", "0.6"))
    threshold_sexy: float = float(os.getenv("THRESHOLD_SEXY", "0.8"))
    threshold_hentai: float = float(os.getenv("THRESHOLD_HENTAI", "0.7"))

    threshold_lenient_porn: float = float(os.getenv("THRESHOLD_LENIENT_PORN", "0.8"))
    threshold_lenient_sexy: float = float(os.getenv("THRESHOLD_LENIENT_SEXY", "0.9"))
    threshold_lenient_hentai: float = float(os.getenv("THRESHOLD_LENIENT_HENTAI", "0.85"))

    # Frame sampling
    min_sample_frames: int = 8
    max_sample_frames: int = 20
    seconds_per_sample: float = 10.0
    frame_size: int = 224

    # Stage budgets (seconds)
    visual_timeout_sec: float = float(os.getenv("VISUAL_TIMEOUT_SEC", "180"))
    transcription_timeout_sec: float = float(os.getenv("TRANSCRIPTION_TIMEOUT_SEC", "240"))
    ffmpeg_timeout_sec: float = float(os.getenv("FFMPEG_TIMEOUT_SEC", "60"))

    # Fusion policy (tunable, not learned)
    visual_weight: float = 0.7
    text_weight: float = 0.3
    unflagged_confidence: float = 0.1
    text_flagged_confidence: float = 0.9

    # Estimated attributable seconds per violation
    visual_violation_seconds: float = 1.5
    audio_violation_seconds: float = 2.0

    # Result cache
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "256"))

    @model_validator(mode="after")
    def validate_threshold_order(self):
        """Each category must be ordered strict < moderate < lenient, inside [0, 1]."""
        for category in ("porn", "sexy", "hentai"):
            strict = getattr(self, f"threshold_strict_{category}")
            moderate = getattr(self, f"threshold_{category}")
            lenient = getattr(self, f"threshold_lenient_{category}")
            if not (0.0 <= strict < moderate < lenient <= 1.0):
                raise ValueError(
                    f"{category} thresholds must be ordered strict < moderate < lenient, "
                    f"got {strict} / {moderate} / {lenient}"
                )
        return self

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()


def get_strictness_presets() -> Dict[str, Dict[str, float]]:
    """Get per-category cutoffs for every strictness level."""
    return {
        "strict": {
            "porn": settings.threshold_strict_porn,
            "sexy": settings.threshold_strict_sexy,
            "hentai": settings.threshold_strict_hentai,
        },
        "moderate": {
            "porn": settings.threshold_porn,
            "sexy": settings.threshold_sexy,
            "hentai": settings.threshold_hentai,
        },
        "lenient": {
            "porn": settings.threshold_lenient_porn,
            "sexy": settings.threshold_lenient_sexy,
            "hentai": settings.threshold_lenient_hentai,
        },
    }
