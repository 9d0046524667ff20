"""
SYNESOUL Domain Layer

Core entities and value objects of the emotion engine.
These models are independent of the classifier and storage infrastructure.
"""

from synesoul.domain.enums import Label, LabelProfile, PersonalityTrait, TimeOfDay
from synesoul.domain.errors import (
    ConvergenceWarning,
    DatasetError,
    IncompatibleLabelError,
    InvalidFeatureError,
    ModelUnavailableError,
    ModelVersionNotFound,
    SoulEngineError,
    StorageError,
    VersionExistsError,
)
from synesoul.domain.models import (
    EmotionalDNA,
    EmotionalState,
    Experience,
    ExperienceContext,
    FeatureSchema,
    FeatureVector,
    MusicalAffinityTable,
    PersonalityDelta,
    PersonalityProfile,
    TrainingRecord,
)

__all__ = [
    # Enums
    "Label",
    "LabelProfile",
    "PersonalityTrait",
    "TimeOfDay",
    # Errors
    "SoulEngineError",
    "DatasetError",
    "ConvergenceWarning",
    "InvalidFeatureError",
    "ModelUnavailableError",
    "StorageError",
    "ModelVersionNotFound",
    "VersionExistsError",
    "IncompatibleLabelError",
    # Models
    "FeatureSchema",
    "FeatureVector",
    "TrainingRecord",
    "PersonalityProfile",
    "PersonalityDelta",
    "MusicalAffinityTable",
    "EmotionalState",
    "Experience",
    "ExperienceContext",
    "EmotionalDNA",
]
