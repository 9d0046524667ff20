"""
Soul Artifacts

The unit of publication: baseline classifier, personality profile and
musical affinity table, versioned together. Also provides the payload
format used by model stores.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from synesoul.domain.enums import Label
from synesoul.domain.errors import IncompatibleLabelError
from synesoul.domain.models import (
    FeatureSchema,
    MusicalAffinityTable,
    PersonalityProfile,
)
from synesoul.services.baseline.network import BaselineModel, EmotionClassifier

PAYLOAD_FORMAT = 1


@dataclass(frozen=True)
class SoulArtifacts:
    """
    One published revision of the factory soul.

    Attributes:
        model: Baseline classifier
        personality: Trait weights biasing perception
        affinities: Genre emotional-response priors
        version: Registry version (0 for an unpublished draft)
        source: What produced the revision (training, personality, incremental)
    """

    model: BaselineModel
    personality: PersonalityProfile
    affinities: MusicalAffinityTable
    version: int = 0
    source: str = "training"

    def stamped(self, version: int) -> "SoulArtifacts":
        """Copy of the artifacts with the registry version applied."""
        return replace(
            self,
            model=replace(self.model, version=version),
            version=version,
        )

    def with_personality(
        self,
        personality: PersonalityProfile,
        source: str = "personality",
    ) -> "SoulArtifacts":
        """Draft sharing this revision's network with a new profile."""
        return replace(
            self,
            model=replace(self.model, parent_version=self.version),
            personality=personality,
            version=0,
            source=source,
        )

    def with_model(self, model: BaselineModel, source: str = "incremental") -> "SoulArtifacts":
        """Draft keeping this revision's profile and affinities with a new network."""
        return replace(self, model=model, version=0, source=source)

    def summary(self) -> dict:
        return {
            "version": self.version,
            "source": self.source,
            "model": self.model.to_dict(),
            "personality": self.personality.to_dict(),
            "genres": self.affinities.genres,
        }


def artifacts_to_payload(artifacts: SoulArtifacts) -> dict[str, Any]:
    """
    Serialize artifacts into a self-contained payload.

    Tensors are cloned so the payload never aliases live weights.
    """
    model = artifacts.model
    return {
        "format": PAYLOAD_FORMAT,
        "version": artifacts.version,
        "source": artifacts.source,
        "model": {
            "state_dict": model.state_dict(),
            "input_dim": model.network.input_dim,
            "hidden_dim": model.network.hidden_dim,
            "labels": [label.value for label in model.labels],
            "schema": model.schema.to_dict(),
            "parent_version": model.parent_version,
            "created_at": model.created_at.isoformat(),
            "metrics": dict(model.metrics),
        },
        "personality": artifacts.personality.to_dict(),
        "affinities": artifacts.affinities.to_dict(),
    }


def payload_to_artifacts(payload: dict[str, Any]) -> SoulArtifacts:
    """
    Rebuild artifacts from a payload.

    Raises:
        IncompatibleLabelError: If the payload was trained on another label set
        KeyError: If the payload is missing required fields
    """
    raw_model = payload["model"]
    labels = tuple(Label.parse(value) for value in raw_model["labels"])
    if labels != Label.ordered():
        raise IncompatibleLabelError(raw_model["labels"])

    network = EmotionClassifier(
        input_dim=raw_model["input_dim"],
        hidden_dim=raw_model["hidden_dim"],
        num_labels=len(labels),
    )
    network.load_state_dict(
        {name: tensor.clone() for name, tensor in raw_model["state_dict"].items()}
    )

    version: Optional[int] = payload.get("version")
    model = BaselineModel(
        network=network,
        schema=FeatureSchema.from_dict(raw_model["schema"]),
        labels=labels,
        version=version or 0,
        parent_version=raw_model.get("parent_version"),
        created_at=datetime.fromisoformat(raw_model["created_at"]),
        metrics=dict(raw_model.get("metrics", {})),
    )
    return SoulArtifacts(
        model=model,
        personality=PersonalityProfile.from_dict(payload["personality"]),
        affinities=MusicalAffinityTable.from_dict(payload["affinities"]),
        version=version or 0,
        source=payload.get("source", "training"),
    )
