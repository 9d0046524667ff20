"""
Prometheus Metrics

Engine observability metrics. The surrounding application decides how
to expose them; render_metrics() returns the scrape payload.

ARCHITECTURE: Metrics are decoupled from business logic.
Only increment/observe; never block on metrics operations and never
raise into the core.
"""

import time
from contextlib import contextmanager
from typing import Iterator, Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from synesoul import __version__
from synesoul.config.logging_config import get_logger

logger = get_logger(__name__)

# =============================================================================
# INFERENCE METRICS
# =============================================================================

INFERENCES_TOTAL = Counter(
    "synesoul_inferences_total",
    "Inferences by primary emotion",
    ["primary"],
)

INFERENCE_LATENCY = Histogram(
    "synesoul_inference_latency_seconds",
    "Inference latency",
    buckets=[0.0001, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.05, 0.1],
)

INFERENCE_ERRORS_TOTAL = Counter(
    "synesoul_inference_errors_total",
    "Rejected inference calls by error type",
    ["error_type"],
)

# =============================================================================
# TRAINING METRICS
# =============================================================================

TRAINING_RUNS_TOTAL = Counter(
    "synesoul_training_runs_total",
    "Training runs by outcome",
    ["outcome"],  # success, degraded, dataset_error, failed
)

TRAINING_DURATION = Histogram(
    "synesoul_training_duration_seconds",
    "Duration of training runs",
    ["kind"],  # baseline, incremental
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

MODEL_REVISIONS_PUBLISHED = Counter(
    "synesoul_model_revisions_published_total",
    "Model revisions published to the registry",
    ["source"],  # training, personality, incremental
)

STORAGE_FAILURES_TOTAL = Counter(
    "synesoul_storage_failures_total",
    "Model store operations that failed after retries",
    ["operation"],
)

# =============================================================================
# FEEDBACK & MEMORY METRICS
# =============================================================================

FEEDBACK_CORRECTIONS_TOTAL = Counter(
    "synesoul_feedback_corrections_total",
    "User corrections by outcome",
    ["outcome"],  # disagreement, confirmation, rejected
)

MEMORY_EXPERIENCES = Gauge(
    "synesoul_memory_experiences",
    "Experiences currently held in emotional memory",
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "synesoul_system",
    "SYNESOUL engine information",
)

SYSTEM_INFO.info({
    "version": __version__,
    "environment": "development",  # Updated at runtime
})


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

@contextmanager
def track_inference() -> Iterator[dict]:
    """
    Time an inference call and count its outcome.

    The caller stores the primary label under "primary" in the yielded
    dict. Exceptions are counted by type and re-raised.
    """
    outcome: dict = {}
    start_time = time.perf_counter()
    try:
        yield outcome
    except Exception as e:
        INFERENCE_ERRORS_TOTAL.labels(error_type=type(e).__name__).inc()
        raise
    else:
        primary = outcome.get("primary")
        if primary is not None:
            INFERENCES_TOTAL.labels(primary=str(primary)).inc()
    finally:
        INFERENCE_LATENCY.observe(time.perf_counter() - start_time)


def track_training(outcome: str, duration_seconds: float, kind: str = "baseline") -> None:
    """Record a training run."""
    TRAINING_RUNS_TOTAL.labels(outcome=outcome).inc()
    TRAINING_DURATION.labels(kind=kind).observe(duration_seconds)


def track_revision(source: str) -> None:
    """Record a published model revision."""
    MODEL_REVISIONS_PUBLISHED.labels(source=source).inc()


def track_storage_failure(operation: str) -> None:
    """Record a model store failure."""
    STORAGE_FAILURES_TOTAL.labels(operation=operation).inc()


def track_feedback(outcome: str) -> None:
    """Record a feedback correction."""
    FEEDBACK_CORRECTIONS_TOTAL.labels(outcome=outcome).inc()


def track_memory_size(size: int) -> None:
    """Record the current memory log size."""
    MEMORY_EXPERIENCES.set(size)


def render_metrics() -> tuple[bytes, str]:
    """
    Render metrics in Prometheus text format.

    Returns:
        Tuple of (payload, content type) for the caller's scrape endpoint
    """
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


def update_system_info(environment: str, version: Optional[str] = None) -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version or __version__,
        "environment": environment,
    })
