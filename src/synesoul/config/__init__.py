"""
SYNESOUL Configuration Module

Provides centralized configuration management with:
- Environment-based settings loading
- Validation of tunable bias constants
"""

from synesoul.config.settings import (
    FeedbackSettings,
    InferenceSettings,
    MemorySettings,
    Settings,
    StorageSettings,
    TrainingSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "TrainingSettings",
    "InferenceSettings",
    "MemorySettings",
    "FeedbackSettings",
    "StorageSettings",
    "get_settings",
]
