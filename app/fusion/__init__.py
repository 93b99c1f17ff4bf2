"""
Fusion of visual, audio and literal-text signals.

The fusion module provides:
- The weighted verdict/confidence over the three stage results
- Safe and unsafe report rendering
- Tunable policy weights
"""
from app.fusion.config import FusionWeights
from app.fusion.engine import fuse
from app.fusion.report import (
    build_error_report,
    build_report,
    build_safe_report,
    build_unsafe_report,
    describe_issues,
    estimate_violation_time,
)

__all__ = [
    "FusionWeights",
    "fuse",
    "build_report",
    "build_safe_report",
    "build_unsafe_report",
    "build_error_report",
    "describe_issues",
    "estimate_violation_time",
]
