"""
Baseline Emotion Classifier

Compact feed-forward classifier mapping a feature vector to a
probability distribution over the closed label set.

ARCHITECTURE: This is a pure ML component with no business logic.
Personality bias, genre blending and memory nudging happen in the
emotion engine on top of the distribution produced here.

A published BaselineModel is immutable: its network is frozen in eval
mode with gradients disabled. Learners fine-tune a clone and publish a
new revision instead.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

import numpy as np
import torch
import torch.nn as nn

from synesoul.domain.enums import Label
from synesoul.domain.errors import InvalidFeatureError
from synesoul.domain.models import DEFAULT_SCHEMA, FeatureSchema, FeatureVector
from synesoul.domain.models.emotional_state import utc_now


class EmotionClassifier(nn.Module):
    """
    Two-hidden-layer MLP.

    Architecture:
    - Linear(arity, hidden) + ReLU
    - Linear(hidden, hidden) + ReLU
    - Linear(hidden, num_labels) producing logits

    Softmax is applied by the caller; training uses cross-entropy on the
    raw logits.
    """

    def __init__(self, input_dim: int, hidden_dim: int, num_labels: int) -> None:
        super().__init__()

        self.input_dim = input_dim
        self.hidden_dim = hidden_dim
        self.num_labels = num_labels

        self.layers = nn.Sequential(
            nn.Linear(input_dim, hidden_dim),
            nn.ReLU(),
            nn.Linear(hidden_dim, hidden_dim),
            nn.ReLU(),
            nn.Linear(hidden_dim, num_labels),
        )

    def forward(self, features: torch.Tensor) -> torch.Tensor:
        """
        Forward pass.

        Args:
            features: Feature batch [batch, input_dim]

        Returns:
            logits: Label logits [batch, num_labels]
        """
        return self.layers(features)


def freeze(network: nn.Module) -> nn.Module:
    """Put a network in eval mode with gradients disabled."""
    network.eval()
    network.requires_grad_(False)
    return network


@dataclass(frozen=True)
class BaselineModel:
    """
    Published classifier revision.

    Attributes:
        network: Frozen classifier
        schema: Feature schema the network was trained on
        labels: Output-unit label order
        version: Registry version (0 until published)
        parent_version: Version this revision was fine-tuned from
        created_at: When the revision was produced
        metrics: Training summary (final_loss, training_accuracy, sample_count)
    """

    network: EmotionClassifier
    schema: FeatureSchema = DEFAULT_SCHEMA
    labels: tuple[Label, ...] = field(default_factory=Label.ordered)
    version: int = 0
    parent_version: Optional[int] = None
    created_at: datetime = field(default_factory=utc_now)
    metrics: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if self.network.num_labels != len(self.labels):
            raise ValueError(
                f"Network has {self.network.num_labels} outputs "
                f"for {len(self.labels)} labels"
            )
        if self.network.input_dim != self.schema.arity:
            raise ValueError(
                f"Network expects {self.network.input_dim} features, "
                f"schema declares {self.schema.arity}"
            )
        freeze(self.network)

    def predict_proba(
        self,
        features: Union[FeatureVector, np.ndarray, list[float]],
    ) -> np.ndarray:
        """
        Raw label distribution for one feature vector.

        Args:
            features: Validated FeatureVector or raw values

        Returns:
            float64 array in label order summing to 1

        Raises:
            InvalidFeatureError: If the arity does not match the schema
        """
        if not isinstance(features, FeatureVector):
            features = FeatureVector.from_values(list(np.ravel(features)), self.schema)
        elif features.schema.arity != self.schema.arity:
            raise InvalidFeatureError(
                f"Expected {self.schema.arity} features, got {features.schema.arity}"
            )

        x = torch.tensor([features.values], dtype=torch.float32)
        with torch.no_grad():
            logits = self.network(x)

        # Softmax in float64 keeps the sum within 1e-12 of one
        logits64 = logits[0].double()
        probs = torch.softmax(logits64, dim=-1).cpu().numpy()
        return probs / probs.sum()

    def clone_network(self) -> EmotionClassifier:
        """Trainable deep copy of the network."""
        network = copy.deepcopy(self.network)
        network.requires_grad_(True)
        network.train()
        return network

    def state_dict(self) -> dict[str, torch.Tensor]:
        """Detached copy of the network weights."""
        return {
            name: tensor.detach().clone()
            for name, tensor in self.network.state_dict().items()
        }

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "parent_version": self.parent_version,
            "created_at": self.created_at.isoformat(),
            "hidden_dim": self.network.hidden_dim,
            "labels": [label.value for label in self.labels],
            "schema": self.schema.to_dict(),
            "metrics": self.metrics,
        }


def build_network(schema: FeatureSchema, hidden_multiplier: int) -> EmotionClassifier:
    """Create an untrained classifier for the schema and the full label set."""
    return EmotionClassifier(
        input_dim=schema.arity,
        hidden_dim=hidden_multiplier * schema.arity,
        num_labels=len(Label),
    )
