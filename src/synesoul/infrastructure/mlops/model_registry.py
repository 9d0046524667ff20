"""
MLOps Model Registry

Versioned publication of soul artifacts, plus per-version performance
tracking.

ARCHITECTURE: Published artifacts are immutable. publish() assigns the
next monotonically increasing version under a lock and swaps the
"current" reference in a single assignment, so a reader sees either the
previous revision or the new one in full, never a mixture. Readers take
no lock. Long-running work (training) must never happen while the lock
is held.

PRIVACY: Prediction logging keeps counts and latencies only. Raw
feature vectors are never retained.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Optional

from synesoul.config.logging_config import get_logger
from synesoul.domain.errors import ModelVersionNotFound

if TYPE_CHECKING:
    from synesoul.services.baseline.artifacts import SoulArtifacts

logger = get_logger(__name__)


@dataclass
class ModelVersion:
    """Model version metadata."""

    version: int
    name: str
    source: str  # training, personality, incremental, store
    created_at: datetime
    parent_version: Optional[int] = None
    metrics: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "name": self.name,
            "source": self.source,
            "created_at": self.created_at.isoformat(),
            "parent_version": self.parent_version,
            "metrics": self.metrics,
        }


class ModelRegistry:
    """
    Artifact registry with atomic-swap publication.

    Features:
    - Monotonic integer versions, never reused
    - Lock-free reads of the current revision
    - Read-modify-publish via update()
    - Bounded retention of older revisions
    - Privacy-safe per-version prediction statistics
    """

    def __init__(self, name: str = "factory-soul", retain: int = 20) -> None:
        if retain < 1:
            raise ValueError("retain must be at least 1")

        self.name = name
        self._retain = retain
        self._lock = threading.Lock()
        self._current: Optional["SoulArtifacts"] = None
        self._revisions: OrderedDict[int, "SoulArtifacts"] = OrderedDict()
        self._metadata: dict[int, ModelVersion] = {}
        self._last_version = 0

        # Performance aggregates
        self._stats_lock = threading.Lock()
        self._request_counts: dict[int, int] = {}
        self._latency_sums: dict[int, float] = {}
        self._error_counts: dict[int, int] = {}

    def publish(self, draft: "SoulArtifacts") -> "SoulArtifacts":
        """
        Publish artifacts as the new current revision.

        Args:
            draft: Artifacts to publish; any version they carry is replaced

        Returns:
            The published artifacts stamped with their new version
        """
        with self._lock:
            return self._publish_locked(draft)

    def update(
        self,
        fn: Callable[[Optional["SoulArtifacts"]], Optional["SoulArtifacts"]],
    ) -> Optional["SoulArtifacts"]:
        """
        Read-modify-publish under the registry lock.

        fn receives the current artifacts and returns a draft to publish,
        or None to leave the registry untouched. fn must be cheap: it
        runs while publication is blocked.

        Returns:
            The published artifacts, or None if fn declined
        """
        with self._lock:
            draft = fn(self._current)
            if draft is None:
                return None
            return self._publish_locked(draft)

    def adopt(self, artifacts: "SoulArtifacts") -> "SoulArtifacts":
        """
        Install artifacts that already carry a version (e.g. loaded from a store).

        The version counter moves past the adopted version so later
        publications stay monotonic.
        """
        with self._lock:
            if artifacts.version <= 0:
                return self._publish_locked(artifacts)
            if artifacts.version in self._revisions:
                raise ValueError(f"Version {artifacts.version} is already registered")
            self._last_version = max(self._last_version, artifacts.version)
            self._store_locked(artifacts, source="store")
            if self._current is None or artifacts.version > self._current.version:
                self._current = artifacts
            return artifacts

    def _publish_locked(self, draft: "SoulArtifacts") -> "SoulArtifacts":
        version = self._last_version + 1
        published = draft.stamped(version)
        self._store_locked(published, source=published.source)
        self._last_version = version

        # Single reference assignment is the atomic swap
        self._current = published

        logger.info(
            "Model published",
            model=self.name,
            version=version,
            source=published.source,
        )
        return published

    def _store_locked(self, artifacts: "SoulArtifacts", source: str) -> None:
        version = artifacts.version
        self._revisions[version] = artifacts
        self._metadata[version] = ModelVersion(
            version=version,
            name=self.name,
            source=source,
            created_at=datetime.now(timezone.utc),
            parent_version=artifacts.model.parent_version,
            metrics=dict(artifacts.model.metrics),
        )
        with self._stats_lock:
            self._request_counts.setdefault(version, 0)
            self._latency_sums.setdefault(version, 0.0)
            self._error_counts.setdefault(version, 0)

        while len(self._revisions) > self._retain:
            evicted, _ = self._revisions.popitem(last=False)
            self._metadata.pop(evicted, None)
            with self._stats_lock:
                self._request_counts.pop(evicted, None)
                self._latency_sums.pop(evicted, None)
                self._error_counts.pop(evicted, None)
            logger.debug("Revision evicted from registry", version=evicted)

    def current(self) -> Optional["SoulArtifacts"]:
        """Currently published artifacts, or None before the first publish."""
        return self._current

    @property
    def latest_version(self) -> Optional[int]:
        current = self._current
        return current.version if current is not None else None

    def get(self, version: int) -> "SoulArtifacts":
        """
        Artifacts for a specific retained version.

        Raises:
            ModelVersionNotFound: If the version was never published or was evicted
        """
        artifacts = self._revisions.get(version)
        if artifacts is None:
            raise ModelVersionNotFound(version)
        return artifacts

    def versions(self) -> list[int]:
        """Retained versions, oldest first."""
        with self._lock:
            return list(self._revisions)

    def get_metadata(self, version: int) -> Optional[ModelVersion]:
        return self._metadata.get(version)

    def log_prediction(
        self,
        version: int,
        latency_ms: float,
        success: bool = True,
    ) -> None:
        """
        Record a prediction for monitoring.

        Privacy: only counts and latency are kept. Predictions for
        evicted versions are dropped.
        """
        with self._stats_lock:
            if version not in self._request_counts:
                return
            self._request_counts[version] = self._request_counts.get(version, 0) + 1
            self._latency_sums[version] = self._latency_sums.get(version, 0.0) + latency_ms
            if not success:
                self._error_counts[version] = self._error_counts.get(version, 0) + 1

    def get_model_metrics(self, version: int) -> dict:
        """
        Get performance metrics for a version.

        Returns aggregate statistics.
        """
        with self._stats_lock:
            request_count = self._request_counts.get(version)
            if request_count is None:
                return {}
            if request_count == 0:
                return {"version": version, "request_count": 0}

            latency_sum = self._latency_sums.get(version, 0.0)
            error_count = self._error_counts.get(version, 0)

        return {
            "version": version,
            "request_count": request_count,
            "avg_latency_ms": latency_sum / request_count,
            "error_count": error_count,
            "error_rate": error_count / request_count,
        }

    def export_metrics(self) -> dict:
        """Export all metrics for external consumption."""
        return {
            "name": self.name,
            "current_version": self.latest_version,
            "models": [m.to_dict() for m in self._metadata.values()],
            "metrics": {
                version: self.get_model_metrics(version)
                for version in list(self._metadata)
            },
            "exported_at": datetime.now(timezone.utc).isoformat(),
        }
