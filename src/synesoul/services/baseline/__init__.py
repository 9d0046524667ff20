"""Baseline ("factory soul") training services."""

from synesoul.services.baseline.network import BaselineModel, EmotionClassifier
from synesoul.services.baseline.artifacts import (
    SoulArtifacts,
    artifacts_to_payload,
    payload_to_artifacts,
)
from synesoul.services.baseline.personality import derive_affinities, derive_personality
from synesoul.services.baseline.reference_dataset import (
    GENRE_SCENARIOS,
    generate_reference_dataset,
)
from synesoul.services.baseline.trainer import BaselineTrainer, TrainingResult

__all__ = [
    "EmotionClassifier",
    "BaselineModel",
    "SoulArtifacts",
    "artifacts_to_payload",
    "payload_to_artifacts",
    "derive_personality",
    "derive_affinities",
    "GENRE_SCENARIOS",
    "generate_reference_dataset",
    "BaselineTrainer",
    "TrainingResult",
]
