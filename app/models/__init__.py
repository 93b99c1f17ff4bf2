"""
Model registry - process-wide singletons, loaded lazily.
"""
import threading
from typing import Any, Dict

from app.core.logging import get_logger

logger = get_logger("models")

_models: Dict[str, Any] = {}
_lock = threading.Lock()


def get_nsfw_classifier():
    """Get the NSFW image classifier (weights load on first classify)."""
    with _lock:
        if "nsfw" not in _models:
            from app.models.nsfw_classifier import NSFWClassifier
            _models["nsfw"] = NSFWClassifier()
        return _models["nsfw"]


def get_whisper_asr():
    """Get the Whisper ASR model (weights load on first transcribe)."""
    with _lock:
        if "whisper" not in _models:
            from app.models.whisper_asr import WhisperASR
            _models["whisper"] = WhisperASR()
        return _models["whisper"]


def get_profanity_matcher():
    """Get the shared profanity matcher."""
    with _lock:
        if "profanity" not in _models:
            from app.models.profanity import ProfanityMatcher
            _models["profanity"] = ProfanityMatcher()
        return _models["profanity"]


def preload_all_models():
    """Load all model weights up front."""
    logger.info("Pre-loading models...")
    get_nsfw_classifier().load()
    get_whisper_asr().load()
    get_profanity_matcher()
    logger.info("All models loaded")


def models_loaded() -> bool:
    """True once both neural models have their weights in memory."""
    with _lock:
        nsfw = _models.get("nsfw")
        whisper = _models.get("whisper")
    return bool(nsfw and nsfw.loaded and whisper and whisper.loaded)
