"""
Emotional State Domain Model

One inference result: the perceived emotion of a single analysis window.

Created once per inference call and never mutated afterwards. Memory
and rendering collaborators receive it read-only.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from synesoul.domain.enums import Label
from synesoul.domain.models.features import FeatureVector


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EmotionalState:
    """
    Perceived emotional state.

    Attributes:
        primary: Arg-max label of the final distribution
        confidence: Probability of the primary label scaled to 0-100
        depth: Distribution sharpness scaled to 0-100 (100 = one-hot)
        intensity: Normalized energy of the window (0.0-1.0)
        colors: Ordered synesthetic color tokens, never empty
        features: Originating feature vector
        timestamp: When the inference was performed
        probabilities: Final distribution in label order
        model_version: Registry version that produced the state
        genre: Genre hint used, if any
        alternatives: Next most likely labels after the primary
    """

    primary: Label
    confidence: float
    depth: float
    intensity: float
    colors: tuple[str, ...]
    features: FeatureVector
    timestamp: datetime = field(default_factory=utc_now)
    probabilities: tuple[float, ...] = ()
    model_version: Optional[int] = None
    genre: Optional[str] = None
    alternatives: tuple[Label, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 100.0:
            raise ValueError(f"Confidence must be 0-100, got {self.confidence}")
        if not 0.0 <= self.depth <= 100.0:
            raise ValueError(f"Depth must be 0-100, got {self.depth}")
        if not 0.0 <= self.intensity <= 1.0:
            raise ValueError(f"Intensity must be 0.0-1.0, got {self.intensity}")
        if not self.colors:
            raise ValueError("Emotional state requires at least one color")

    def probability_of(self, label: Label) -> float:
        if not self.probabilities:
            return 1.0 if label == self.primary else 0.0
        return self.probabilities[label.index]

    def to_dict(self) -> dict:
        """Serialize for rendering consumers."""
        return {
            "primary": self.primary.value,
            "display_name": self.primary.profile.display_name,
            "confidence": round(self.confidence, 2),
            "depth": round(self.depth, 2),
            "intensity": round(self.intensity, 3),
            "colors": list(self.colors),
            "features": self.features.as_dict(),
            "timestamp": self.timestamp.isoformat(),
            "model_version": self.model_version,
            "genre": self.genre,
            "alternatives": [label.value for label in self.alternatives],
        }
