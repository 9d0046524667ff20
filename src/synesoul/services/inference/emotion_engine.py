"""
Emotion Engine

Real-time inference: turns one feature vector into an EmotionalState,
biased by the factory soul's personality, the genre prior and recent
emotional memory.

ARCHITECTURE: Pipeline with a fixed, bounded order:
1. Raw distribution from the baseline classifier
2. Personality bias (one declared rule per trait)
3. Genre affinity blend (optional, skipped for unknown genres)
4. Memory nudge (optional, capped at 30% of the mass)
5. Output derivation (primary, confidence, depth, intensity, colors)

Each call reads exactly one artifacts snapshot, so a revision published
mid-call is only observed by the next call. Inference is deterministic:
no randomness, eval mode, gradients disabled.
"""

import time
from typing import Any, Optional, Union

import numpy as np

from synesoul.config.logging_config import get_logger
from synesoul.config.settings import InferenceSettings, Settings
from synesoul.domain.enums import Label
from synesoul.domain.errors import InvalidFeatureError, ModelUnavailableError
from synesoul.domain.models import EmotionalDNA, EmotionalState, FeatureVector
from synesoul.infrastructure.metrics import track_inference
from synesoul.infrastructure.mlops import ModelRegistry
from synesoul.services.baseline.artifacts import SoulArtifacts
from synesoul.services.inference.bias import (
    apply_personality,
    blend_genre,
    normalized_depth,
    nudge_memory,
)
from synesoul.services.inference.color_palette import palette_for

logger = get_logger(__name__)

ALTERNATIVE_COUNT = 3


class EmotionEngine:
    """
    Personalized emotion inference.

    The engine either holds a fixed artifacts revision or tracks the
    latest revision of a ModelRegistry.

    Usage:
        engine = EmotionEngine(registry, settings)
        state = engine.infer(features, memory_context=memory.insights(), genre="jazz")
    """

    def __init__(
        self,
        source: Union[ModelRegistry, SoulArtifacts, None] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings: InferenceSettings = (settings or Settings()).inference
        self._registry: Optional[ModelRegistry] = None
        self._artifacts: Optional[SoulArtifacts] = None

        if isinstance(source, ModelRegistry):
            self._registry = source
        elif source is not None:
            self._artifacts = source

    def load(self, artifacts: SoulArtifacts) -> None:
        """Pin the engine to a fixed revision (stops tracking a registry)."""
        self._registry = None
        self._artifacts = artifacts
        logger.info("Engine pinned to revision", version=artifacts.version)

    def track(self, registry: ModelRegistry) -> None:
        """Follow the latest revision of a registry."""
        self._registry = registry
        self._artifacts = None

    def snapshot(self) -> Optional[SoulArtifacts]:
        """The revision the next call would use."""
        if self._registry is not None:
            return self._registry.current()
        return self._artifacts

    def is_ready(self) -> bool:
        """Whether a baseline model is loaded."""
        return self.snapshot() is not None

    @property
    def model_version(self) -> Optional[int]:
        artifacts = self.snapshot()
        return artifacts.version if artifacts is not None else None

    def infer(
        self,
        features: Any,
        memory_context: Optional[EmotionalDNA] = None,
        genre: Optional[str] = None,
    ) -> EmotionalState:
        """
        Infer the emotional state of one analysis window.

        Args:
            features: FeatureVector or raw values in schema order
            memory_context: Recent EmotionalDNA, None to skip the nudge
            genre: Genre hint, unknown or None skips the blend

        Returns:
            Immutable EmotionalState

        Raises:
            ModelUnavailableError: If no model is loaded
            InvalidFeatureError: On arity mismatch or non-finite values
        """
        start_time = time.perf_counter()

        with track_inference() as outcome:
            artifacts = self.snapshot()
            if artifacts is None:
                raise ModelUnavailableError()

            vector = self._to_vector(features, artifacts)
            probabilities = self.distribution(vector, artifacts, memory_context, genre)
            state = self._build_state(vector, probabilities, artifacts, genre)
            outcome["primary"] = state.primary

        if self._registry is not None:
            self._registry.log_prediction(
                artifacts.version,
                latency_ms=(time.perf_counter() - start_time) * 1000,
            )

        logger.debug(
            "Emotion inferred",
            primary=state.primary.value,
            confidence=round(state.confidence, 2),
            model_version=artifacts.version,
        )
        return state

    def distribution(
        self,
        vector: FeatureVector,
        artifacts: SoulArtifacts,
        memory_context: Optional[EmotionalDNA] = None,
        genre: Optional[str] = None,
    ) -> np.ndarray:
        """Final label distribution after every bias step."""
        p = artifacts.model.predict_proba(vector)
        p = apply_personality(p, artifacts.personality, self.settings)
        p = blend_genre(p, artifacts.affinities.get(genre), self.settings)
        p = nudge_memory(p, memory_context, self.settings)
        return p

    @staticmethod
    def _to_vector(features: Any, artifacts: SoulArtifacts) -> FeatureVector:
        schema = artifacts.model.schema
        if isinstance(features, FeatureVector):
            if len(features) != schema.arity:
                raise InvalidFeatureError(
                    f"Invalid feature vector: expected {schema.arity} features, "
                    f"got {len(features)}",
                    details={"expected_arity": schema.arity},
                )
            if features.schema == schema:
                return features
            features = features.values
        return FeatureVector.from_values(features, schema)

    def _build_state(
        self,
        vector: FeatureVector,
        probabilities: np.ndarray,
        artifacts: SoulArtifacts,
        genre: Optional[str],
    ) -> EmotionalState:
        labels = artifacts.model.labels

        # np.argmax returns the first maximum, so ties go to the lowest index
        primary_index = int(np.argmax(probabilities))
        primary = labels[primary_index]

        ranked = sorted(range(len(labels)), key=lambda i: (-probabilities[i], i))
        alternatives = tuple(labels[i] for i in ranked[1:1 + ALTERNATIVE_COUNT])

        confidence = float(min(100.0, max(0.0, 100.0 * probabilities[primary_index])))
        depth = normalized_depth(probabilities)
        intensity = float(min(1.0, max(0.0, vector.energy)))

        return EmotionalState(
            primary=primary,
            confidence=confidence,
            depth=depth,
            intensity=intensity,
            colors=palette_for(primary, depth, self.settings.max_colors),
            features=vector,
            probabilities=tuple(float(x) for x in probabilities),
            model_version=artifacts.version,
            genre=genre if artifacts.affinities.get(genre) is not None else None,
            alternatives=alternatives,
        )


def top_labels(state: EmotionalState, k: int = 3) -> list[tuple[Label, float]]:
    """Most likely labels of a state with their probabilities."""
    if not state.probabilities:
        return [(state.primary, state.confidence / 100.0)]
    ranked = sorted(
        zip(Label.ordered(), state.probabilities),
        key=lambda item: (-item[1], item[0].index),
    )
    return ranked[:k]
