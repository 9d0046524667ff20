"""Domain models package."""

from synesoul.domain.models.features import (
    DEFAULT_SCHEMA,
    FEATURE_ARITY,
    FEATURE_NAMES,
    FeatureSchema,
    FeatureVector,
    TrainingRecord,
)
from synesoul.domain.models.soul_profile import (
    GenreAffinity,
    MusicalAffinityTable,
    PersonalityDelta,
    PersonalityProfile,
)
from synesoul.domain.models.emotional_state import EmotionalState
from synesoul.domain.models.memory import (
    EmotionalDNA,
    Experience,
    ExperienceContext,
    IntensityPreference,
    IntensityProfile,
    JourneyTrend,
)

__all__ = [
    # Features
    "FEATURE_NAMES",
    "FEATURE_ARITY",
    "DEFAULT_SCHEMA",
    "FeatureSchema",
    "FeatureVector",
    "TrainingRecord",
    # Soul profile
    "PersonalityProfile",
    "PersonalityDelta",
    "GenreAffinity",
    "MusicalAffinityTable",
    # Inference output
    "EmotionalState",
    # Memory
    "Experience",
    "ExperienceContext",
    "EmotionalDNA",
    "IntensityProfile",
    "IntensityPreference",
    "JourneyTrend",
]
