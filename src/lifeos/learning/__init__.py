"""Learning from user feedback on surfaced insights.

Feedback accumulates in an append-only ``LearningProfile`` whose derived
weights bias what the *next* analysis tells its caller to surface.
"""

from .profile import (
    FeedbackEntry,
    LearningProfile,
    ProfileRegistry,
    ProfileSummary,
    infer_insight_type,
    to_feedback_entry,
)

__all__ = [
    "FeedbackEntry",
    "LearningProfile",
    "ProfileRegistry",
    "ProfileSummary",
    "infer_insight_type",
    "to_feedback_entry",
]
