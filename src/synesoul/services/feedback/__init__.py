"""User feedback learning services."""

from synesoul.services.feedback.feedback_learner import (
    CorrectionRecord,
    FeedbackLearner,
    effective_delta,
    personality_delta,
)

__all__ = [
    "CorrectionRecord",
    "FeedbackLearner",
    "effective_delta",
    "personality_delta",
]
