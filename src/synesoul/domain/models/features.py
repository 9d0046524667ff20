"""
Feature Vector Domain Model

Fixed-arity numeric summary of one audio analysis window, as supplied
by the external feature extractor.

ARCHITECTURE: The arity and ordering declared by FEATURE_NAMES are the
contract shared by the trainer and the engine. Any deviation in arity is
a hard input error, never a silent truncation or padding.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from synesoul.domain.errors import InvalidFeatureError


FEATURE_NAMES: tuple[str, ...] = (
    "energy",
    "tempo",
    "spectral_centroid",
    "harmonicity",
    "rhythm_complexity",
    "bass_level",
    "mid_level",
    "treble_level",
)

FEATURE_ARITY = len(FEATURE_NAMES)


@dataclass(frozen=True)
class FeatureSchema:
    """
    Agreed feature layout and valid value range.

    Attributes:
        names: Ordered feature names
        minimum: Lower clamp bound
        maximum: Upper clamp bound
    """

    names: tuple[str, ...] = FEATURE_NAMES
    minimum: float = 0.0
    maximum: float = 1.0

    def __post_init__(self) -> None:
        if not self.names:
            raise ValueError("Feature schema must declare at least one feature")
        if self.minimum >= self.maximum:
            raise ValueError(
                f"Empty feature range: [{self.minimum}, {self.maximum}]"
            )

    @property
    def arity(self) -> int:
        return len(self.names)

    def to_dict(self) -> dict:
        return {
            "names": list(self.names),
            "minimum": self.minimum,
            "maximum": self.maximum,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FeatureSchema":
        return cls(
            names=tuple(data["names"]),
            minimum=float(data["minimum"]),
            maximum=float(data["maximum"]),
        )


DEFAULT_SCHEMA = FeatureSchema()


def check_values(values: Any, arity: int) -> tuple[float, ...]:
    """
    Coerce a raw sequence to finite floats of the expected arity.

    Raises:
        ValueError: With a human-readable reason on any violation
    """
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        try:
            values = list(values)
        except TypeError:
            raise ValueError(f"features must be a sequence, got {type(values).__name__}")

    if len(values) != arity:
        raise ValueError(f"expected {arity} features, got {len(values)}")

    coerced = []
    for position, value in enumerate(values):
        if isinstance(value, bool):
            raise ValueError(f"feature {position} is not numeric: {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"feature {position} is not numeric: {value!r}")
        if not math.isfinite(number):
            raise ValueError(f"feature {position} is not finite: {value!r}")
        coerced.append(number)

    return tuple(coerced)


@dataclass(frozen=True)
class FeatureVector:
    """
    Validated, clamped feature vector.

    Build instances with from_values(); the constructor trusts its input.

    Attributes:
        values: Clamped feature values in schema order
        schema: Schema the values conform to
    """

    values: tuple[float, ...]
    schema: FeatureSchema = field(default=DEFAULT_SCHEMA, compare=False)

    @classmethod
    def from_values(
        cls,
        values: Any,
        schema: Optional[FeatureSchema] = None,
    ) -> "FeatureVector":
        """
        Validate and clamp raw feature values.

        Args:
            values: Raw numeric sequence (or an existing FeatureVector)
            schema: Agreed schema, defaults to the 8-feature layout

        Returns:
            FeatureVector with every value clamped to the schema range

        Raises:
            InvalidFeatureError: On arity mismatch or non-finite values
        """
        schema = schema or DEFAULT_SCHEMA
        if isinstance(values, FeatureVector):
            values = values.values

        try:
            coerced = check_values(values, schema.arity)
        except ValueError as e:
            raise InvalidFeatureError(
                f"Invalid feature vector: {e}",
                details={"expected_arity": schema.arity},
            ) from e

        clamped = tuple(
            min(schema.maximum, max(schema.minimum, v)) for v in coerced
        )
        return cls(values=clamped, schema=schema)

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, name: str) -> float:
        return self.values[self.schema.names.index(name)]

    @property
    def energy(self) -> float:
        """Energy feature normalized to [0, 1]."""
        # Custom schemas without an energy feature fall back to the first one
        position = (
            self.schema.names.index("energy") if "energy" in self.schema.names else 0
        )
        raw = self.values[position]
        span = self.schema.maximum - self.schema.minimum
        return (raw - self.schema.minimum) / span

    def as_dict(self) -> dict[str, float]:
        return dict(zip(self.schema.names, self.values))


@dataclass(frozen=True)
class TrainingRecord:
    """
    One labeled example as supplied by the dataset loader.

    Values are not validated here; the trainer validates every record
    before fitting so that it can name the offending index.
    """

    features: Sequence[Any]
    label: str
    genre: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: dict) -> "TrainingRecord":
        return cls(
            features=tuple(data["features"]),
            label=data["label"],
            genre=data.get("genre"),
        )

    def to_dict(self) -> dict:
        return {
            "features": list(self.features),
            "label": self.label,
            "genre": self.genre,
        }
