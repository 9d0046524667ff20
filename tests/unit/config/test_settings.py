"""
Unit Tests for Engine Settings
"""

import pytest
from pydantic import ValidationError

from synesoul.config import InferenceSettings, Settings, TrainingSettings


class TestSettings:
    """Tests for settings defaults and validation."""

    def test_defaults(self) -> None:
        """Test documented defaults."""
        settings = Settings()
        assert settings.training.hidden_multiplier == 3
        assert settings.memory.min_weight == 0.5
        assert settings.feedback.initial_adaptation_rate == 0.1
        assert settings.storage.retry_attempts == 3
        assert settings.is_production() is False

    def test_memory_influence_is_capped(self) -> None:
        """Test memory influence above 0.3 is refused."""
        with pytest.raises(ValidationError):
            InferenceSettings(memory_influence=0.5)

    def test_hidden_multiplier_bounds(self) -> None:
        """Test hidden width stays between 2x and 3x the arity."""
        with pytest.raises(ValidationError):
            TrainingSettings(hidden_multiplier=4)

    def test_empty_feature_range(self) -> None:
        """Test an empty clamp range is refused."""
        with pytest.raises(ValidationError):
            InferenceSettings(feature_min=1.0, feature_max=1.0)

    def test_environment_override(self, monkeypatch) -> None:
        """Test nested groups read their own prefix."""
        monkeypatch.setenv("SYNESOUL_TRAINING_EPOCHS", "7")
        assert TrainingSettings().epochs == 7
