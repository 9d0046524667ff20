"""
SYNESOUL Engine Settings

Configuration management using Pydantic Settings.
All values can be overridden from environment variables with the
SYNESOUL_ prefix (nested groups use their own prefix).

Bias magnitudes are tunable constants, not behavioral contracts.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrainingSettings(BaseSettings):
    """Baseline ("factory soul") training configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNESOUL_TRAINING_")

    seed: int = Field(default=1337, description="Seed for initialization and shuffling")
    epochs: int = Field(default=40, ge=1, le=5000, description="Number of training epochs")
    batch_size: int = Field(default=32, ge=1, le=4096)
    learning_rate: float = Field(default=0.01, gt=0.0, le=1.0)
    hidden_multiplier: int = Field(
        default=3,
        ge=2,
        le=3,
        description="Hidden layer width as a multiple of feature arity",
    )
    convergence_window: int = Field(default=5, ge=1, le=100)
    convergence_tolerance: float = Field(
        default=1e-3,
        ge=0.0,
        description="Minimum relative loss decrease between trailing windows",
    )


class InferenceSettings(BaseSettings):
    """Real-time inference and personalization bias configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNESOUL_INFERENCE_")

    # Personality bias gains (one rule per trait)
    agreeableness_gain: float = Field(default=0.3, ge=0.0, le=1.0)
    extraversion_gain: float = Field(default=0.2, ge=0.0, le=1.0)
    conscientiousness_gain: float = Field(default=0.2, ge=0.0, le=1.0)
    openness_gain: float = Field(default=0.2, ge=0.0, le=1.0)
    neuroticism_gain: float = Field(default=0.5, ge=0.0, le=2.0)

    # Genre affinity blend
    genre_blend_scale: float = Field(default=0.5, ge=0.0, le=1.0)

    # Memory nudge (hard cap: memory never owns more than 30% of the mass)
    memory_influence: float = Field(default=0.2, ge=0.0, le=0.3)
    memory_decay: float = Field(default=0.85, gt=0.0, lt=1.0)
    memory_warmup: int = Field(default=10, ge=1)

    # Feature validation
    feature_min: float = Field(default=0.0)
    feature_max: float = Field(default=1.0)

    max_colors: int = Field(default=5, ge=1, le=12)

    @model_validator(mode="after")
    def validate_feature_range(self) -> "InferenceSettings":
        """Ensure the declared feature range is not empty."""
        if self.feature_min >= self.feature_max:
            raise ValueError("feature_min must be lower than feature_max")
        return self


class MemorySettings(BaseSettings):
    """Emotional memory configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNESOUL_MEMORY_")

    capacity: int = Field(default=1000, ge=1, le=100_000, description="FIFO window size")
    top_k: int = Field(default=5, ge=1, le=12)
    min_weight: float = Field(default=0.5, ge=0.0, le=1.0)
    journey_default: int = Field(default=10, ge=1)
    similarity_threshold: float = Field(default=0.6, ge=0.0, le=1.0)


class FeedbackSettings(BaseSettings):
    """Feedback learning configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNESOUL_FEEDBACK_")

    min_batch: int = Field(default=8, ge=1, description="Corrections before an incremental step")
    incremental_epochs: int = Field(default=5, ge=1, le=100)
    incremental_learning_rate: float = Field(default=0.001, gt=0.0, le=0.1)
    trait_step: float = Field(default=0.05, gt=0.0, le=0.2)
    max_pending: int = Field(default=500, ge=1)

    # Adaptive learning rate (scales the trait step)
    initial_adaptation_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    min_adaptation_rate: float = Field(default=0.05, ge=0.0, le=1.0)
    max_adaptation_rate: float = Field(default=0.3, ge=0.0, le=1.0)


class StorageSettings(BaseSettings):
    """Model store write retry configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNESOUL_STORAGE_")

    retry_attempts: int = Field(default=3, ge=1, le=10)
    retry_multiplier: float = Field(default=1.0, ge=0.0)
    retry_wait_min: float = Field(default=1.0, ge=0.0)
    retry_wait_max: float = Field(default=10.0, ge=0.0)
    registry_retain: int = Field(default=20, ge=1, description="Revisions kept in the registry")


class Settings(BaseSettings):
    """
    Main engine settings.

    Usage:
        settings = get_settings()
        epochs = settings.training.epochs
    """

    model_config = SettingsConfigDict(
        env_prefix="SYNESOUL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Runtime environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    model_name: str = Field(default="factory-soul", description="Registered model name")

    training: TrainingSettings = Field(default_factory=TrainingSettings)
    inference: InferenceSettings = Field(default_factory=InferenceSettings)
    memory: MemorySettings = Field(default_factory=MemorySettings)
    feedback: FeedbackSettings = Field(default_factory=FeedbackSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached engine settings.

    For testing, construct Settings directly and inject it.

    Returns:
        Settings: Engine settings instance
    """
    return Settings()
