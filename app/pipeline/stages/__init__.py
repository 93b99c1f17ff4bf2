"""
Moderation stages.

- VisualModerationStage: sampled frames -> NSFW classifier -> visual violations
- AudioTranscriptionAdapter: audio track -> Whisper -> transcript segments
- TextModerationStage: transcript segments / literal text -> profanity
"""
from app.pipeline.stages.nsfw_detection import VisualModerationStage
from app.pipeline.stages.text_moderation import TextModerationStage
from app.pipeline.stages.whisper import AudioTranscriptionAdapter, TranscriptionOutcome

__all__ = [
    "VisualModerationStage",
    "TextModerationStage",
    "AudioTranscriptionAdapter",
    "TranscriptionOutcome",
]
