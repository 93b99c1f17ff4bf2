"""
Strictness policy for visual moderation.
"""
from app.policies.thresholds import thresholds_for, list_strictness_levels

__all__ = [
    "thresholds_for",
    "list_strictness_levels",
]
