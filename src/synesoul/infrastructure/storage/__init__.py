"""Model storage infrastructure package."""

from synesoul.infrastructure.storage.model_store import (
    InMemoryModelStore,
    ModelStore,
    persist_with_retry,
)

__all__ = [
    "ModelStore",
    "InMemoryModelStore",
    "persist_with_retry",
]
