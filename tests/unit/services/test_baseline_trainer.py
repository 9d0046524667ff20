"""
Unit Tests for the Baseline Trainer

Tests validation, reproducibility, derivation of the soul profile,
publication and storage degradation.
"""

import asyncio

import numpy as np
import pytest
import torch

from synesoul.config import Settings, TrainingSettings
from synesoul.domain.enums import Label
from synesoul.domain.errors import ConvergenceWarning, DatasetError
from synesoul.domain.models import TrainingRecord
from synesoul.infrastructure.storage import InMemoryModelStore
from synesoul.services.baseline import (
    BaselineTrainer,
    derive_affinities,
    derive_personality,
)
from synesoul.services.baseline.trainer import has_converged


class FailingModelStore(InMemoryModelStore):
    """Store whose writes always fail."""

    def __init__(self) -> None:
        super().__init__()
        self.attempts = 0

    async def put(self, version, artifacts) -> None:
        self.attempts += 1
        raise ConnectionError("store offline")


class TestValidation:
    """Tests for dataset validation."""

    @pytest.fixture
    def trainer(self, test_settings, registry) -> BaselineTrainer:
        return BaselineTrainer(test_settings, registry=registry)

    def test_unknown_label_names_record(self, trainer, clustered_dataset) -> None:
        """Test an unknown label is reported with its index."""
        dataset = list(clustered_dataset)
        dataset.insert(3, TrainingRecord([0.5] * 8, "unknown_emotion"))

        with pytest.raises(DatasetError) as exc_info:
            trainer.validate(dataset)

        assert exc_info.value.record_index == 3
        assert "unknown_emotion" in exc_info.value.reason

    def test_wrong_arity(self, trainer) -> None:
        """Test arity mismatch is a dataset error."""
        with pytest.raises(DatasetError) as exc_info:
            trainer.validate([([0.5] * 8, "joy"), ([0.5] * 5, "joy")])
        assert exc_info.value.record_index == 1

    def test_non_finite_value(self, trainer) -> None:
        """Test NaN features are rejected."""
        with pytest.raises(DatasetError):
            trainer.validate([{"features": [float("nan")] + [0.5] * 7, "label": "joy"}])

    def test_empty_dataset(self, trainer) -> None:
        """Test an empty dataset is rejected."""
        with pytest.raises(DatasetError) as exc_info:
            trainer.validate([])
        assert exc_info.value.record_index is None

    def test_accepts_mixed_record_shapes(self, trainer) -> None:
        """Test records, mappings and tuples are all accepted."""
        data = trainer.validate([
            TrainingRecord([0.1] * 8, "joy", "pop"),
            {"features": [0.2] * 8, "label": "Awe"},
            ([1.4] + [0.3] * 7, "serenity", "ambient"),
        ])
        assert len(data) == 3
        assert data.labels == (Label.JOY, Label.AWE, Label.SERENITY)
        assert data.features[2][0] == 1.0
        assert data.genres == ("pop", None, "ambient")


class TestFitting:
    """Tests for the blocking fit."""

    def test_reproducible_weights(self, test_settings, clustered_dataset) -> None:
        """Test identical input and seed give identical weights."""
        first = BaselineTrainer(test_settings).fit(clustered_dataset).artifacts.model
        second = BaselineTrainer(test_settings).fit(clustered_dataset).artifacts.model

        for name, tensor in first.state_dict().items():
            assert torch.equal(tensor, second.state_dict()[name])

    def test_learns_clusters(self, trained_artifacts) -> None:
        """Test the network separates the training clusters."""
        assert trained_artifacts.model.metrics["training_accuracy"] > 0.9
        assert trained_artifacts.version == 0

    def test_distribution_sums_to_one(self, trained_artifacts) -> None:
        """Test raw distributions are normalized."""
        p = trained_artifacts.model.predict_proba([0.3] * 8)
        assert p.shape == (len(Label),)
        assert abs(p.sum() - 1.0) < 1e-6
        assert (p >= 0).all()

    def test_network_is_frozen(self, trained_artifacts) -> None:
        """Test published networks are in eval mode without gradients."""
        network = trained_artifacts.model.network
        assert not network.training
        assert all(not param.requires_grad for param in network.parameters())

    def test_hidden_width(self, trained_artifacts) -> None:
        """Test hidden width is three times the arity by default."""
        assert trained_artifacts.model.network.hidden_dim == 24

    def test_convergence_warning(self, clustered_dataset) -> None:
        """Test a stalled loss warns but still yields a model."""
        settings = Settings(training=TrainingSettings(
            epochs=10,
            learning_rate=1e-7,
            convergence_window=3,
            convergence_tolerance=0.5,
        ))

        with pytest.warns(ConvergenceWarning):
            result = BaselineTrainer(settings).fit(clustered_dataset)

        assert result.converged is False
        assert len(result.history) == 10

    def test_has_converged(self) -> None:
        """Test the trailing-window comparison."""
        assert has_converged([1.0, 0.9, 0.8, 0.5, 0.4, 0.3], window=3, tolerance=1e-3)
        assert not has_converged([0.5] * 6, window=3, tolerance=1e-3)
        assert has_converged([0.5] * 5, window=3, tolerance=1e-3)


class TestSoulProfileDerivation:
    """Tests for personality and affinity heuristics."""

    def test_personality_from_frequencies(self) -> None:
        """Test expected attributes over the label distribution."""
        profile = derive_personality([Label.JOY, Label.SADNESS])
        assert profile.agreeableness == pytest.approx(0.5)
        assert profile.extraversion == pytest.approx(0.5)
        assert profile.neuroticism == pytest.approx(0.5)
        assert profile.openness == pytest.approx(0.5 * np.log(2) / np.log(12))

    def test_empty_labels_give_neutral_profile(self) -> None:
        """Test no labels means a neutral profile."""
        assert derive_personality([]).openness == 0.5

    def test_affinities_from_cooccurrence(self) -> None:
        """Test per-genre and cross-genre normalization."""
        table = derive_affinities([
            ("Jazz", Label.NOSTALGIA),
            ("jazz", Label.NOSTALGIA),
            ("jazz", Label.JOY),
            ("rock", Label.PASSION),
            (None, Label.ANGER),
        ])
        jazz = table.get("jazz")
        assert jazz.base_affinity == 1.0
        assert jazz.emotional_response[Label.NOSTALGIA] == 1.0
        assert jazz.emotional_response[Label.JOY] == pytest.approx(0.5)
        assert Label.ANGER not in jazz.emotional_response
        assert table.get("rock").base_affinity == pytest.approx(1 / 3)
        assert len(table) == 2


class TestTraining:
    """Tests for publication and persistence."""

    async def test_invalid_dataset_publishes_nothing(
        self, test_settings, registry, store, clustered_dataset
    ) -> None:
        """Test a dataset error leaves registry and store untouched."""
        trainer = BaselineTrainer(test_settings, registry=registry, store=store)
        dataset = list(clustered_dataset) + [TrainingRecord([0.5] * 8, "unknown_emotion")]

        with pytest.raises(DatasetError) as exc_info:
            await trainer.train(dataset)

        assert exc_info.value.record_index == len(clustered_dataset)
        assert registry.current() is None
        assert await store.versions() == []

    async def test_publishes_and_persists(
        self, test_settings, registry, store, clustered_dataset
    ) -> None:
        """Test a successful run publishes version 1 and stores it."""
        trainer = BaselineTrainer(test_settings, registry=registry, store=store)

        result = await trainer.train(clustered_dataset)

        assert result.version == 1
        assert result.degraded is False
        assert registry.current() is result.artifacts
        assert await store.versions() == [1]
        assert set(result.artifacts.affinities.genres) == {"rock", "ambient", "blues", "pop"}

    async def test_storage_failure_degrades(
        self, test_settings, registry, clustered_dataset
    ) -> None:
        """Test persistence failure is reported but the model stays usable."""
        store = FailingModelStore()
        trainer = BaselineTrainer(test_settings, registry=registry, store=store)

        result = await trainer.train(clustered_dataset)

        assert result.degraded is True
        assert result.storage_error.version == 1
        assert store.attempts == test_settings.storage.retry_attempts
        assert registry.current().version == 1

    async def test_background_training(
        self, test_settings, registry, clustered_dataset
    ) -> None:
        """Test start_training returns an awaitable task."""
        trainer = BaselineTrainer(test_settings, registry=registry)

        task = trainer.start_training(clustered_dataset)
        assert isinstance(task, asyncio.Task)
        result = await task

        assert registry.latest_version == result.version == 1

    async def test_versions_increase(self, test_settings, registry, clustered_dataset) -> None:
        """Test each run publishes a new version."""
        trainer = BaselineTrainer(test_settings, registry=registry)
        first = await trainer.train(clustered_dataset)
        second = await trainer.train(clustered_dataset)
        assert second.version > first.version
