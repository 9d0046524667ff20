"""Dataset loading infrastructure package."""

from synesoul.infrastructure.datasets.dataset_loader import load_dataset, save_dataset

__all__ = [
    "load_dataset",
    "save_dataset",
]
