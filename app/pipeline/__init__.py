"""
Pipeline package for multi-modal moderation.

Main entry points:
- ModerationPipeline.run(): full request (visual + audio + literal text)
- ModerationPipeline.moderate_visual_only(): visual stage alone
- build_pipeline(): pipeline wired with default stages and cache
"""
from app.pipeline.runner import ModerationPipeline, build_pipeline
from app.pipeline.sampler import FrameSampler

__all__ = [
    "ModerationPipeline",
    "build_pipeline",
    "FrameSampler",
]
