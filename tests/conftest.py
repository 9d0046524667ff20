"""Tests configuration and fixtures."""

from datetime import datetime, timezone
from typing import Optional

import numpy as np
import pytest

from synesoul.config import (
    FeedbackSettings,
    MemorySettings,
    Settings,
    StorageSettings,
    TrainingSettings,
)
from synesoul.domain.enums import Label
from synesoul.domain.models import EmotionalState, FeatureVector, TrainingRecord
from synesoul.infrastructure.mlops import ModelRegistry
from synesoul.infrastructure.storage import InMemoryModelStore
from synesoul.services.baseline import BaselineTrainer, SoulArtifacts

# Well separated clusters for fast training; the passion centre sits on the
# canonical high-energy window, which the reference dataset test checks independently
CLUSTERS = {
    Label.PASSION: ([0.9, 0.9, 0.7, 0.4, 0.0, 0.0, 0.0, 0.0], "rock"),
    Label.SERENITY: ([0.2, 0.2, 0.3, 0.9, 0.1, 0.3, 0.5, 0.3], "ambient"),
    Label.MELANCHOLY: ([0.3, 0.3, 0.2, 0.6, 0.2, 0.8, 0.3, 0.1], "blues"),
    Label.JOY: ([0.6, 0.6, 0.6, 0.8, 0.5, 0.5, 0.7, 0.7], "pop"),
}
PASSION_WINDOW = [0.9, 0.9, 0.7, 0.4, 0.0, 0.0, 0.0, 0.0]


def build_clustered_dataset(per_label: int = 40, seed: int = 7) -> list[TrainingRecord]:
    """Small jittered dataset around CLUSTERS."""
    rng = np.random.default_rng(seed)
    records = []
    for label, (centre, genre) in CLUSTERS.items():
        for _ in range(per_label):
            values = np.clip(np.asarray(centre) + rng.uniform(-0.05, 0.05, 8), 0.0, 1.0)
            records.append(TrainingRecord(
                features=tuple(float(v) for v in values),
                label=label.value,
                genre=genre,
            ))
    return records


def make_state(
    primary: Label = Label.JOY,
    confidence: float = 80.0,
    intensity: float = 0.5,
    features: Optional[list[float]] = None,
    timestamp: Optional[datetime] = None,
    model_version: Optional[int] = 1,
) -> EmotionalState:
    """Hand-built EmotionalState for memory and feedback tests."""
    values = features or [intensity, 0.5, 0.5, 0.5, 0.5, 0.5, 0.5, 0.5]
    return EmotionalState(
        primary=primary,
        confidence=confidence,
        depth=50.0,
        intensity=intensity,
        colors=primary.profile.colors,
        features=FeatureVector.from_values(values),
        timestamp=timestamp or datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc),
        model_version=model_version,
    )


@pytest.fixture
def test_settings() -> Settings:
    """Fast settings: short training, no retry waits."""
    return Settings(
        env="development",
        training=TrainingSettings(epochs=60, batch_size=16, learning_rate=0.01),
        memory=MemorySettings(capacity=50),
        feedback=FeedbackSettings(min_batch=4, incremental_epochs=3),
        storage=StorageSettings(retry_multiplier=0.0, retry_wait_min=0.0, retry_wait_max=0.0),
    )


@pytest.fixture(scope="session")
def clustered_dataset() -> list[TrainingRecord]:
    return build_clustered_dataset()


@pytest.fixture
def registry() -> ModelRegistry:
    return ModelRegistry(name="test-soul")


@pytest.fixture
def store() -> InMemoryModelStore:
    return InMemoryModelStore()


@pytest.fixture
def trained_artifacts(test_settings, clustered_dataset) -> SoulArtifacts:
    """Unpublished artifacts fitted on the clustered dataset."""
    trainer = BaselineTrainer(test_settings)
    return trainer.fit(clustered_dataset).artifacts


@pytest.fixture
def published_registry(registry, trained_artifacts) -> ModelRegistry:
    """Registry with the trained artifacts published as version 1."""
    registry.publish(trained_artifacts)
    return registry


@pytest.fixture
def passion_window() -> list[float]:
    return list(PASSION_WINDOW)


@pytest.fixture
def state_factory():
    return make_state
