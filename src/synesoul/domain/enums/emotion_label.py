"""
Emotion Label Enumeration

The closed, ordered set of emotions the soul can perceive, and the
fixed attribute schema attached to each of them.

The order of members is the output-unit order of the baseline
classifier. It is fixed at build time: adding, removing or reordering
members invalidates every trained model.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from synesoul.domain.errors import IncompatibleLabelError


class Label(StrEnum):
    """
    Emotion categories.

    The first six are primary emotions; the remaining six are complex
    emotional states (combinations of primaries).
    """

    JOY = "joy"
    SADNESS = "sadness"
    ANGER = "anger"
    FEAR = "fear"
    SURPRISE = "surprise"
    DISGUST = "disgust"
    NOSTALGIA = "nostalgia"
    AWE = "awe"
    DETERMINATION = "determination"
    SERENITY = "serenity"
    PASSION = "passion"
    MELANCHOLY = "melancholy"

    @classmethod
    def parse(cls, value: Any) -> "Label":
        """
        Parse a label, rejecting anything outside the closed set.

        Args:
            value: Label instance or its string value (case-insensitive)

        Returns:
            Matching Label

        Raises:
            IncompatibleLabelError: If value is not a known label
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise IncompatibleLabelError(value)

    @classmethod
    def ordered(cls) -> tuple["Label", ...]:
        """All labels in output-unit order."""
        return tuple(cls)

    @property
    def index(self) -> int:
        """Output-unit index of this label."""
        return _LABEL_INDEX[self]

    @property
    def profile(self) -> "LabelProfile":
        """Fixed attribute schema for this label."""
        return LABEL_PROFILES[self]


@dataclass(frozen=True)
class LabelProfile:
    """
    Fixed attributes of an emotion label.

    Attributes:
        display_name: Human-readable name
        valence: Positive vs negative (0.0-1.0)
        arousal: Energy level (0.0-1.0)
        dominance: Sense of control (0.0-1.0)
        is_complex: Whether the emotion combines primary emotions
        colors: Ordered synesthetic color tokens (hex)
    """

    display_name: str
    valence: float
    arousal: float
    dominance: float
    is_complex: bool
    colors: tuple[str, ...]


LABEL_PROFILES: dict[Label, LabelProfile] = {
    Label.JOY: LabelProfile(
        "Joy", 0.9, 0.8, 0.7, False,
        ("#FFD700", "#FFA500", "#FF6347", "#FF69B4"),
    ),
    Label.SADNESS: LabelProfile(
        "Sadness", 0.1, 0.2, 0.3, False,
        ("#4169E1", "#6495ED", "#87CEEB", "#B0C4DE"),
    ),
    Label.ANGER: LabelProfile(
        "Anger", 0.2, 0.9, 0.8, False,
        ("#DC143C", "#B22222", "#8B0000", "#FF0000"),
    ),
    Label.FEAR: LabelProfile(
        "Fear", 0.2, 0.8, 0.2, False,
        ("#2F4F4F", "#696969", "#778899", "#708090"),
    ),
    Label.SURPRISE: LabelProfile(
        "Surprise", 0.6, 0.7, 0.5, False,
        ("#FFD700", "#FFFF00", "#ADFF2F", "#7FFF00"),
    ),
    Label.DISGUST: LabelProfile(
        "Disgust", 0.2, 0.5, 0.6, False,
        ("#8FBC8F", "#9ACD32", "#6B8E23", "#556B2F"),
    ),
    Label.NOSTALGIA: LabelProfile(
        "Nostalgic Longing", 0.6, 0.4, 0.5, True,
        ("#DDA0DD", "#D8BFD8", "#E6E6FA", "#F0E68C"),
    ),
    Label.AWE: LabelProfile(
        "Transcendent Awe", 0.8, 0.6, 0.3, True,
        ("#4169E1", "#1E90FF", "#87CEEB", "#F0F8FF"),
    ),
    Label.DETERMINATION: LabelProfile(
        "Fierce Determination", 0.7, 0.9, 0.9, True,
        ("#DC143C", "#FF6347", "#FF4500", "#FF8C00"),
    ),
    Label.SERENITY: LabelProfile(
        "Serene Peace", 0.8, 0.2, 0.6, True,
        ("#98FB98", "#90EE90", "#87CEEB", "#E0FFFF"),
    ),
    Label.PASSION: LabelProfile(
        "Passionate Fire", 0.8, 0.95, 0.8, True,
        ("#FF1493", "#DC143C", "#FF6347", "#FF4500"),
    ),
    Label.MELANCHOLY: LabelProfile(
        "Beautiful Melancholy", 0.4, 0.3, 0.4, True,
        ("#663399", "#9370DB", "#8A2BE2", "#9932CC"),
    ),
}

_LABEL_INDEX: dict[Label, int] = {label: i for i, label in enumerate(Label)}

# Labels counted as negative valence when deriving neuroticism
NEGATIVE_VALENCE_THRESHOLD = 0.35


class PersonalityTrait(StrEnum):
    """Big Five personality traits biasing perception."""

    OPENNESS = "openness"
    CONSCIENTIOUSNESS = "conscientiousness"
    EXTRAVERSION = "extraversion"
    AGREEABLENESS = "agreeableness"
    NEUROTICISM = "neuroticism"
