"""MLOps infrastructure package."""

from synesoul.infrastructure.mlops.model_registry import ModelRegistry, ModelVersion

__all__ = [
    "ModelRegistry",
    "ModelVersion",
]
