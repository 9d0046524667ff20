"""
Baseline Trainer

Trains the factory soul: a compact classifier plus the personality
profile and musical affinity table derived from the same dataset.

ARCHITECTURE: Fitting is CPU-bound and runs in an executor, off the
inference path. Nothing is published until the whole run succeeded:
a DatasetError aborts before any side effect, and publication to the
registry is a single atomic swap. Persistence failures degrade to
in-memory operation and are reported on the result.

REPRODUCIBILITY: Shuffling is seeded. Weight initialization and
minibatch order both draw from one torch.Generator seeded with
TrainingSettings.seed, so two runs over identical input produce
identical weights.
"""

import asyncio
import math
import time
import warnings
from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Sequence

import numpy as np
import torch
import torch.nn as nn

from synesoul.config.logging_config import get_logger
from synesoul.config.settings import Settings
from synesoul.domain.enums import Label
from synesoul.domain.errors import (
    ConvergenceWarning,
    DatasetError,
    IncompatibleLabelError,
    StorageError,
)
from synesoul.domain.models import DEFAULT_SCHEMA, FeatureSchema, TrainingRecord
from synesoul.domain.models.features import check_values
from synesoul.infrastructure.metrics import (
    track_revision,
    track_storage_failure,
    track_training,
)
from synesoul.infrastructure.mlops import ModelRegistry
from synesoul.infrastructure.storage import ModelStore, persist_with_retry
from synesoul.services.baseline.artifacts import SoulArtifacts
from synesoul.services.baseline.network import BaselineModel, EmotionClassifier, build_network
from synesoul.services.baseline.personality import derive_affinities, derive_personality

logger = get_logger(__name__)


@dataclass(frozen=True)
class ValidatedDataset:
    """Dataset ready for fitting: clamped features and label indices."""

    features: np.ndarray  # [n, arity] float32
    targets: np.ndarray  # [n] int64
    labels: tuple[Label, ...]
    genres: tuple[Optional[str], ...]

    def __len__(self) -> int:
        return len(self.labels)


@dataclass(frozen=True)
class TrainingResult:
    """
    Outcome of a training run.

    Attributes:
        artifacts: Trained artifacts (published when version > 0)
        history: Mean loss per epoch
        converged: False when a ConvergenceWarning was raised
        storage_error: Persistence failure, None when persisted or no store
        duration_seconds: Wall time of the run
    """

    artifacts: SoulArtifacts
    history: tuple[float, ...]
    converged: bool
    storage_error: Optional[StorageError] = None
    duration_seconds: float = 0.0

    @property
    def version(self) -> int:
        return self.artifacts.version

    @property
    def degraded(self) -> bool:
        return self.storage_error is not None

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "epochs": len(self.history),
            "final_loss": self.history[-1] if self.history else None,
            "converged": self.converged,
            "degraded": self.degraded,
            "storage_error": str(self.storage_error) if self.storage_error else None,
            "duration_seconds": round(self.duration_seconds, 3),
            "metrics": self.artifacts.model.metrics,
        }


def seeded_generator(seed: int) -> torch.Generator:
    generator = torch.Generator()
    generator.manual_seed(seed)
    return generator


def initialize_weights(network: nn.Module, generator: torch.Generator) -> None:
    """
    Uniform(-1/sqrt(fan_in), 1/sqrt(fan_in)) init drawn from the generator.

    Same bounds as the torch default for Linear layers, but independent
    of the global RNG.
    """
    with torch.no_grad():
        for module in network.modules():
            if isinstance(module, nn.Linear):
                bound = 1.0 / math.sqrt(module.in_features)
                module.weight.uniform_(-bound, bound, generator=generator)
                if module.bias is not None:
                    module.bias.uniform_(-bound, bound, generator=generator)


def train_network(
    network: EmotionClassifier,
    features: torch.Tensor,
    targets: torch.Tensor,
    *,
    epochs: int,
    learning_rate: float,
    batch_size: int,
    generator: torch.Generator,
    sample_weights: Optional[torch.Tensor] = None,
) -> list[float]:
    """
    Minibatch Adam with (optionally sample-weighted) categorical cross-entropy.

    Args:
        network: Trainable network, updated in place
        features: [n, arity] float32
        targets: [n] int64 label indices
        epochs: Number of passes over the data
        learning_rate: Adam learning rate
        batch_size: Minibatch size
        generator: Source of shuffling order
        sample_weights: [n] per-example loss weights, uniform when None

    Returns:
        Mean loss per epoch
    """
    network.train()
    optimizer = torch.optim.Adam(network.parameters(), lr=learning_rate)
    loss_fn = nn.CrossEntropyLoss(reduction="none")
    n = features.shape[0]
    if sample_weights is None:
        sample_weights = torch.ones(n, dtype=torch.float32)
    history = []

    for _ in range(epochs):
        order = torch.randperm(n, generator=generator)
        epoch_loss = 0.0
        for start in range(0, n, batch_size):
            batch = order[start:start + batch_size]
            optimizer.zero_grad()
            weights = sample_weights[batch]
            losses = loss_fn(network(features[batch]), targets[batch])
            loss = (losses * weights).sum() / weights.sum()
            loss.backward()
            optimizer.step()
            epoch_loss += loss.item() * len(batch)
        history.append(epoch_loss / n)

    network.eval()
    return history


def has_converged(history: Sequence[float], window: int, tolerance: float) -> bool:
    """
    Whether the trailing window improved on the preceding one.

    The mean loss over the last `window` epochs must be at least
    `tolerance` (relative) below the mean over the window before it.
    Runs shorter than two windows are not judged.
    """
    if len(history) < 2 * window:
        return True
    earlier = float(np.mean(history[-2 * window:-window]))
    recent = float(np.mean(history[-window:]))
    if earlier <= 0:
        return True
    return (earlier - recent) / earlier >= tolerance


def accuracy(network: nn.Module, features: torch.Tensor, targets: torch.Tensor) -> float:
    with torch.no_grad():
        predicted = network(features).argmax(dim=-1)
    return float((predicted == targets).float().mean().item())


class BaselineTrainer:
    """
    Factory soul trainer.

    Usage:
        trainer = BaselineTrainer(settings, registry=registry, store=store)
        result = await trainer.train(dataset)

    Dataset records may be TrainingRecords, {"features", "label", "genre"?}
    mappings, or (features, label[, genre]) tuples.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[ModelRegistry] = None,
        store: Optional[ModelStore] = None,
        schema: Optional[FeatureSchema] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.registry = registry or ModelRegistry(
            name=self.settings.model_name,
            retain=self.settings.storage.registry_retain,
        )
        self.store = store
        self.schema = schema or FeatureSchema(
            names=DEFAULT_SCHEMA.names,
            minimum=self.settings.inference.feature_min,
            maximum=self.settings.inference.feature_max,
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, dataset: Iterable[Any]) -> ValidatedDataset:
        """
        Validate every record before any fitting happens.

        Raises:
            DatasetError: Naming the first offending record
        """
        rows: list[tuple[float, ...]] = []
        labels: list[Label] = []
        genres: list[Optional[str]] = []

        for index, raw in enumerate(dataset):
            record = self._coerce_record(index, raw)

            try:
                values = check_values(record.features, self.schema.arity)
            except ValueError as e:
                raise DatasetError(index, str(e)) from e

            try:
                label = Label.parse(record.label)
            except IncompatibleLabelError as e:
                raise DatasetError(index, f"unknown label {record.label!r}") from e

            if record.genre is not None and not isinstance(record.genre, str):
                raise DatasetError(index, f"genre must be a string, got {record.genre!r}")

            rows.append(tuple(
                min(self.schema.maximum, max(self.schema.minimum, v)) for v in values
            ))
            labels.append(label)
            genres.append(record.genre or None)

        if not rows:
            raise DatasetError(None, "dataset is empty")

        return ValidatedDataset(
            features=np.asarray(rows, dtype=np.float32),
            targets=np.asarray([label.index for label in labels], dtype=np.int64),
            labels=tuple(labels),
            genres=tuple(genres),
        )

    @staticmethod
    def _coerce_record(index: int, raw: Any) -> TrainingRecord:
        if isinstance(raw, TrainingRecord):
            return raw
        if isinstance(raw, dict):
            try:
                return TrainingRecord.from_mapping(raw)
            except (KeyError, TypeError) as e:
                raise DatasetError(index, f"malformed record: {e}") from e
        if isinstance(raw, (tuple, list)) and len(raw) in (2, 3):
            return TrainingRecord(*raw)
        raise DatasetError(index, f"unsupported record type {type(raw).__name__}")

    # -------------------------------------------------------------------------
    # Fitting
    # -------------------------------------------------------------------------

    def fit(self, dataset: Iterable[Any]) -> TrainingResult:
        """
        Validate and fit without publishing (blocking).

        Returns:
            TrainingResult holding an unpublished draft (version 0)

        Raises:
            DatasetError: On any invalid record
        """
        if not isinstance(dataset, ValidatedDataset):
            dataset = self.validate(dataset)
        return self._fit(dataset)

    def _fit(self, data: ValidatedDataset) -> TrainingResult:
        config = self.settings.training
        start_time = time.perf_counter()

        generator = seeded_generator(config.seed)
        network = build_network(self.schema, config.hidden_multiplier)
        initialize_weights(network, generator)

        features = torch.from_numpy(data.features)
        targets = torch.from_numpy(data.targets)

        logger.info(
            "Training baseline",
            samples=len(data),
            epochs=config.epochs,
            hidden_dim=network.hidden_dim,
            seed=config.seed,
        )

        history = train_network(
            network,
            features,
            targets,
            epochs=config.epochs,
            learning_rate=config.learning_rate,
            batch_size=config.batch_size,
            generator=generator,
        )

        converged = has_converged(
            history, config.convergence_window, config.convergence_tolerance
        )
        if not converged:
            logger.warning(
                "Training loss did not decrease over trailing window",
                window=config.convergence_window,
                final_loss=history[-1],
            )
            warnings.warn(
                f"Loss failed to decrease over the last {config.convergence_window} epochs",
                ConvergenceWarning,
                stacklevel=2,
            )

        model = BaselineModel(
            network=network,
            schema=self.schema,
            metrics={
                "final_loss": history[-1],
                "training_accuracy": accuracy(network, features, targets),
                "sample_count": len(data),
                "epochs": config.epochs,
            },
        )
        draft = SoulArtifacts(
            model=model,
            personality=derive_personality(data.labels),
            affinities=derive_affinities(zip(data.genres, data.labels)),
            source="training",
        )

        return TrainingResult(
            artifacts=draft,
            history=tuple(history),
            converged=converged,
            duration_seconds=time.perf_counter() - start_time,
        )

    # -------------------------------------------------------------------------
    # Training with publication
    # -------------------------------------------------------------------------

    async def train(self, dataset: Iterable[Any]) -> TrainingResult:
        """
        Train, publish and persist a new factory soul revision.

        Validation happens first; a DatasetError aborts the run before
        anything is published or persisted. Fitting runs in the default
        executor so the event loop (and inference) keeps serving the
        previous revision.

        Returns:
            TrainingResult with the published artifacts

        Raises:
            DatasetError: On any invalid record
        """
        start_time = time.perf_counter()

        try:
            data = self.validate(dataset)
        except DatasetError as e:
            track_training("dataset_error", time.perf_counter() - start_time)
            logger.warning(
                "Training aborted on invalid dataset",
                record_index=e.record_index,
                reason=e.reason,
            )
            raise

        loop = asyncio.get_running_loop()
        try:
            fitted = await loop.run_in_executor(None, self._fit, data)
        except Exception as e:
            track_training("failed", time.perf_counter() - start_time)
            logger.error("Training failed", error=str(e), exc_info=True)
            raise

        published = self.registry.publish(fitted.artifacts)
        track_revision(published.source)

        storage_error = await self.persist(published)
        duration = time.perf_counter() - start_time
        track_training("degraded" if storage_error else "success", duration)

        logger.info(
            "Baseline trained",
            version=published.version,
            final_loss=round(fitted.history[-1], 4),
            training_accuracy=round(published.model.metrics["training_accuracy"], 4),
            converged=fitted.converged,
            persisted=self.store is not None and storage_error is None,
        )

        return replace(
            fitted,
            artifacts=published,
            storage_error=storage_error,
            duration_seconds=duration,
        )

    def start_training(self, dataset: Iterable[Any]) -> "asyncio.Task[TrainingResult]":
        """
        Schedule train() as a background task.

        The caller may await the task or abandon it. Must be called from
        a running event loop.
        """
        return asyncio.get_running_loop().create_task(self.train(dataset))

    async def persist(self, artifacts: SoulArtifacts) -> Optional[StorageError]:
        """
        Persist published artifacts, degrading to in-memory on failure.

        Returns:
            The StorageError if persistence failed, otherwise None
        """
        if self.store is None:
            return None
        try:
            await persist_with_retry(self.store, artifacts, self.settings.storage)
        except StorageError as e:
            track_storage_failure("put")
            logger.error(
                "Model persistence failed, continuing in memory",
                version=artifacts.version,
                error=str(e),
            )
            return e
        return None
