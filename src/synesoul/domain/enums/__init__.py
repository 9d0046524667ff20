"""Domain enums package."""

from synesoul.domain.enums.emotion_label import (
    LABEL_PROFILES,
    Label,
    LabelProfile,
    PersonalityTrait,
)
from synesoul.domain.enums.time_of_day import TimeOfDay

__all__ = [
    "Label",
    "LabelProfile",
    "LABEL_PROFILES",
    "PersonalityTrait",
    "TimeOfDay",
]
