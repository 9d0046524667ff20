"""Metrics infrastructure package."""

from synesoul.infrastructure.metrics.prometheus_metrics import (
    # Inference metrics
    INFERENCES_TOTAL,
    INFERENCE_LATENCY,
    INFERENCE_ERRORS_TOTAL,
    # Training metrics
    TRAINING_RUNS_TOTAL,
    TRAINING_DURATION,
    MODEL_REVISIONS_PUBLISHED,
    STORAGE_FAILURES_TOTAL,
    # Feedback & memory metrics
    FEEDBACK_CORRECTIONS_TOTAL,
    MEMORY_EXPERIENCES,
    # Helpers
    track_inference,
    track_training,
    track_revision,
    track_storage_failure,
    track_feedback,
    track_memory_size,
    render_metrics,
    update_system_info,
)

__all__ = [
    "INFERENCES_TOTAL",
    "INFERENCE_LATENCY",
    "INFERENCE_ERRORS_TOTAL",
    "TRAINING_RUNS_TOTAL",
    "TRAINING_DURATION",
    "MODEL_REVISIONS_PUBLISHED",
    "STORAGE_FAILURES_TOTAL",
    "FEEDBACK_CORRECTIONS_TOTAL",
    "MEMORY_EXPERIENCES",
    "track_inference",
    "track_training",
    "track_revision",
    "track_storage_failure",
    "track_feedback",
    "track_memory_size",
    "render_metrics",
    "update_system_info",
]
