"""
Unit Tests for Prometheus Metrics
"""

import pytest
from prometheus_client import REGISTRY

from synesoul.infrastructure.metrics import (
    render_metrics,
    track_feedback,
    track_inference,
)


def sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetrics:
    """Tests for metric helpers."""

    def test_inference_counted_by_primary(self) -> None:
        """Test successful inferences are counted by label."""
        before = sample("synesoul_inferences_total", {"primary": "awe"})
        with track_inference() as outcome:
            outcome["primary"] = "awe"
        assert sample("synesoul_inferences_total", {"primary": "awe"}) == before + 1

    def test_errors_counted_and_reraised(self) -> None:
        """Test failures are counted by type and propagate."""
        labels = {"error_type": "KeyError"}
        before = sample("synesoul_inference_errors_total", labels)

        with pytest.raises(KeyError):
            with track_inference():
                raise KeyError("boom")

        assert sample("synesoul_inference_errors_total", labels) == before + 1

    def test_render(self) -> None:
        """Test the exposition payload."""
        track_feedback("confirmation")
        payload, content_type = render_metrics()
        assert b"synesoul_feedback_corrections_total" in payload
        assert content_type.startswith("text/plain")
