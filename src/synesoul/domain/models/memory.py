"""
Emotional Memory Domain Models

Experiences are the append-only entries of the emotional memory log.
EmotionalDNA is the aggregate derived from that log on demand.

PRIVACY: Experiences retain the originating feature vector only. No
raw audio ever reaches the memory log.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Optional

from synesoul.domain.enums import Label, TimeOfDay
from synesoul.domain.models.emotional_state import EmotionalState, utc_now


class IntensityPreference(StrEnum):
    """Listener's preferred emotional intensity band."""

    HIGH = "high-intensity"
    """Average intensity above 0.7."""

    LOW = "low-intensity"
    """Average intensity below 0.4."""

    MODERATE = "moderate"
    """Everything in between."""


class JourneyTrend(StrEnum):
    """Direction of intensity over a recent journey."""

    RISING = "rising"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class ExperienceContext:
    """
    Circumstances of an experience.

    Attributes:
        source: Origin of the analysis window (e.g. "microphone", "file")
        session_duration: Seconds since the listening session started
        user_feedback: Optional free-form feedback attached by the user
        time_of_day: Circadian bucket, derived from the state when omitted
    """

    source: str = "audio"
    session_duration: float = 0.0
    user_feedback: Optional[str] = None
    time_of_day: Optional[TimeOfDay] = None

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "session_duration": self.session_duration,
            "user_feedback": self.user_feedback,
            "time_of_day": self.time_of_day.value if self.time_of_day else None,
        }


@dataclass(frozen=True)
class Experience:
    """
    One memory log entry. Never mutated once appended.

    Attributes:
        state: Inferred emotional state
        context: Circumstances, with time_of_day always resolved
        emotional_weight: Significance of the experience (min_weight-1.0)
        recorded_at: When the entry was appended
        sequence: Monotonic position in the log, survives eviction
    """

    state: EmotionalState
    context: ExperienceContext
    emotional_weight: float
    recorded_at: datetime = field(default_factory=utc_now)
    sequence: int = 0

    @property
    def emotion(self) -> Label:
        return self.state.primary

    @property
    def intensity(self) -> float:
        return self.state.intensity

    @property
    def day_of_week(self) -> int:
        return self.state.timestamp.weekday()

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "emotion": self.emotion.value,
            "confidence": round(self.state.confidence, 2),
            "intensity": round(self.state.intensity, 3),
            "emotional_weight": round(self.emotional_weight, 3),
            "recorded_at": self.recorded_at.isoformat(),
            "context": self.context.to_dict(),
            "features": self.state.features.as_dict(),
        }


@dataclass(frozen=True)
class IntensityProfile:
    """Average, spread and preferred band of experienced intensity."""

    average: float = 0.0
    range: float = 0.0
    preference: IntensityPreference = IntensityPreference.MODERATE

    def to_dict(self) -> dict:
        return {
            "average": round(self.average, 4),
            "range": round(self.range, 4),
            "preference": self.preference.value,
        }


@dataclass(frozen=True)
class EmotionalDNA:
    """
    Aggregate statistics over the memory log.

    Recomputed deterministically from a log snapshot, never hand-edited.
    Treat the mapping fields as read-only.

    Attributes:
        dominant_emotions: Top labels with their weighted frequency share
        emotional_complexity: Normalized entropy of label frequencies (0.0-1.0)
        time_patterns: Time bucket -> label frequency distribution
        recency_profile: Decay-weighted label distribution, recent counts more
        intensity_profile: Intensity statistics
        emotional_triggers: Label -> mean feature values observed with it
        mood_stability: Consecutive-experience stability score (0.0-1.0)
        unique_traits: Descriptive tags derived from the other fields
        experience_count: Number of experiences in the snapshot
    """

    dominant_emotions: tuple[tuple[Label, float], ...] = ()
    emotional_complexity: float = 0.0
    time_patterns: dict[TimeOfDay, dict[Label, float]] = field(default_factory=dict)
    recency_profile: dict[Label, float] = field(default_factory=dict)
    intensity_profile: IntensityProfile = field(default_factory=IntensityProfile)
    emotional_triggers: dict[Label, dict[str, float]] = field(default_factory=dict)
    mood_stability: float = 0.5
    unique_traits: tuple[str, ...] = ()
    experience_count: int = 0

    @classmethod
    def empty(cls) -> "EmotionalDNA":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.experience_count == 0

    @property
    def dominant_labels(self) -> list[Label]:
        return [label for label, _ in self.dominant_emotions]

    def to_dict(self) -> dict:
        return {
            "dominant_emotions": [
                {"emotion": label.value, "weight": round(weight, 4)}
                for label, weight in self.dominant_emotions
            ],
            "emotional_complexity": round(self.emotional_complexity, 4),
            "time_patterns": {
                bucket.value: {label.value: round(p, 4) for label, p in dist.items()}
                for bucket, dist in self.time_patterns.items()
            },
            "recency_profile": {
                label.value: round(p, 4) for label, p in self.recency_profile.items()
            },
            "intensity_profile": self.intensity_profile.to_dict(),
            "emotional_triggers": {
                label.value: {name: round(v, 4) for name, v in feats.items()}
                for label, feats in self.emotional_triggers.items()
            },
            "mood_stability": round(self.mood_stability, 4),
            "unique_traits": list(self.unique_traits),
            "experience_count": self.experience_count,
        }
