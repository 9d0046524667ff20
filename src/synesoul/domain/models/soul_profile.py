"""
Soul Profile Domain Models

Personality and musical-affinity artifacts derived from the training
dataset. Together with the baseline classifier they make up the
"factory soul": the default, non-personalized perceptual bias.

All models are immutable. Personalization produces new instances,
never edits published ones.
"""

import math
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Mapping, Optional

from synesoul.domain.enums import Label, PersonalityTrait


def _check_unit(name: str, value: float) -> None:
    if not (isinstance(value, (int, float)) and math.isfinite(value) and 0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be within [0, 1], got {value!r}")


@dataclass(frozen=True)
class PersonalityProfile:
    """
    Big Five trait weights, each bounded to [0, 1].

    Attributes:
        openness: Drawn toward complex emotional states
        conscientiousness: Drawn toward controlled, dominant states
        extraversion: Drawn toward high-arousal states
        agreeableness: Drawn toward positive-valence states
        neuroticism: Volatility, sharpens the distribution
    """

    openness: float
    conscientiousness: float
    extraversion: float
    agreeableness: float
    neuroticism: float

    def __post_init__(self) -> None:
        for f in fields(self):
            _check_unit(f.name, getattr(self, f.name))

    def weight(self, trait: PersonalityTrait) -> float:
        return getattr(self, trait.value)

    def apply_delta(self, delta: "PersonalityDelta") -> "PersonalityProfile":
        """
        Return a new profile with the delta applied and clamped to [0, 1].
        """
        values = {}
        for trait in PersonalityTrait:
            moved = self.weight(trait) + delta.changes.get(trait, 0.0)
            values[trait.value] = min(1.0, max(0.0, moved))
        return PersonalityProfile(**values)

    @classmethod
    def neutral(cls) -> "PersonalityProfile":
        return cls(**{trait.value: 0.5 for trait in PersonalityTrait})

    def to_dict(self) -> dict[str, float]:
        return {trait.value: self.weight(trait) for trait in PersonalityTrait}

    @classmethod
    def from_dict(cls, data: Mapping[str, float]) -> "PersonalityProfile":
        missing = [t.value for t in PersonalityTrait if t.value not in data]
        if missing:
            raise ValueError(f"Personality profile is missing traits: {missing}")
        return cls(**{t.value: float(data[t.value]) for t in PersonalityTrait})


@dataclass(frozen=True)
class PersonalityDelta:
    """
    Signed change per trait produced by a single correction.

    Empty when the correction agreed with the engine.
    """

    changes: Mapping[PersonalityTrait, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", MappingProxyType(dict(self.changes)))

    @property
    def is_empty(self) -> bool:
        return not any(self.changes.values())

    def to_dict(self) -> dict[str, float]:
        return {trait.value: round(change, 6) for trait, change in self.changes.items()}


@dataclass(frozen=True)
class GenreAffinity:
    """
    Emotional-response prior for a single genre.

    Attributes:
        base_affinity: How strongly the genre prior is trusted (0.0-1.0)
        emotional_response: Label -> response intensity (0.0-1.0), non-empty
    """

    base_affinity: float
    emotional_response: Mapping[Label, float]

    def __post_init__(self) -> None:
        _check_unit("base_affinity", self.base_affinity)
        if not self.emotional_response:
            raise ValueError("Genre emotional response must cover at least one label")
        response = {}
        for label, intensity in self.emotional_response.items():
            label = Label.parse(label)
            _check_unit(f"emotional_response[{label}]", intensity)
            response[label] = float(intensity)
        object.__setattr__(self, "emotional_response", MappingProxyType(response))

    def to_dict(self) -> dict:
        return {
            "base_affinity": self.base_affinity,
            "emotional_response": {
                label.value: value for label, value in self.emotional_response.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GenreAffinity":
        return cls(
            base_affinity=float(data["base_affinity"]),
            emotional_response=dict(data["emotional_response"]),
        )


@dataclass(frozen=True)
class MusicalAffinityTable:
    """
    Genre -> GenreAffinity lookup, case-insensitive on genre names.
    """

    entries: Mapping[str, GenreAffinity] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized = {
            genre.strip().lower(): affinity for genre, affinity in self.entries.items()
        }
        object.__setattr__(self, "entries", MappingProxyType(normalized))

    def get(self, genre: Optional[str]) -> Optional[GenreAffinity]:
        """Look up a genre; None for absent or unknown genres."""
        if not genre:
            return None
        return self.entries.get(genre.strip().lower())

    def __contains__(self, genre: object) -> bool:
        return isinstance(genre, str) and self.get(genre) is not None

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def genres(self) -> list[str]:
        return sorted(self.entries)

    def to_dict(self) -> dict:
        return {genre: affinity.to_dict() for genre, affinity in self.entries.items()}

    @classmethod
    def from_dict(cls, data: dict) -> "MusicalAffinityTable":
        return cls(
            entries={genre: GenreAffinity.from_dict(raw) for genre, raw in data.items()}
        )
