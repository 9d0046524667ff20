"""
Reference Dataset

Synthetic labeled dataset used to bootstrap a factory soul when no
curated dataset is available.

Records are drawn from eight genre scenarios with +/-0.2 jitter per
feature and labeled by the arg-max of a research-based mapping from
audio features to emotional response.
"""

from typing import Optional

import numpy as np

from synesoul.domain.enums import Label
from synesoul.domain.models import FEATURE_NAMES, TrainingRecord

# Genre -> typical feature values
GENRE_SCENARIOS: dict[str, dict[str, float]] = {
    "classical": {
        "spectral_centroid": 0.3, "tempo": 0.4, "energy": 0.5, "harmonicity": 0.9,
        "rhythm_complexity": 0.7, "bass_level": 0.4, "mid_level": 0.8, "treble_level": 0.6,
    },
    "rock": {
        "spectral_centroid": 0.7, "tempo": 0.8, "energy": 0.9, "harmonicity": 0.6,
        "rhythm_complexity": 0.5, "bass_level": 0.9, "mid_level": 0.7, "treble_level": 0.8,
    },
    "electronic": {
        "spectral_centroid": 0.8, "tempo": 0.9, "energy": 0.9, "harmonicity": 0.4,
        "rhythm_complexity": 0.8, "bass_level": 0.8, "mid_level": 0.6, "treble_level": 0.9,
    },
    "jazz": {
        "spectral_centroid": 0.5, "tempo": 0.6, "energy": 0.6, "harmonicity": 0.8,
        "rhythm_complexity": 0.9, "bass_level": 0.6, "mid_level": 0.8, "treble_level": 0.7,
    },
    "ambient": {
        "spectral_centroid": 0.3, "tempo": 0.2, "energy": 0.3, "harmonicity": 0.7,
        "rhythm_complexity": 0.3, "bass_level": 0.5, "mid_level": 0.6, "treble_level": 0.4,
    },
    "folk": {
        "spectral_centroid": 0.4, "tempo": 0.5, "energy": 0.6, "harmonicity": 0.8,
        "rhythm_complexity": 0.4, "bass_level": 0.5, "mid_level": 0.9, "treble_level": 0.6,
    },
    "blues": {
        "spectral_centroid": 0.4, "tempo": 0.4, "energy": 0.5, "harmonicity": 0.7,
        "rhythm_complexity": 0.5, "bass_level": 0.7, "mid_level": 0.8, "treble_level": 0.5,
    },
    "pop": {
        "spectral_centroid": 0.6, "tempo": 0.7, "energy": 0.8, "harmonicity": 0.7,
        "rhythm_complexity": 0.4, "bass_level": 0.6, "mid_level": 0.8, "treble_level": 0.7,
    },
}

JITTER = 0.2


def emotional_response(features: dict[str, float]) -> np.ndarray:
    """
    Research-based emotional response to a feature set.

    Returns:
        Non-negative scores in label order, normalized to sum to 1
    """
    energy = features["energy"]
    tempo = features["tempo"]
    centroid = features["spectral_centroid"]
    harmonicity = features["harmonicity"]
    rhythm = features["rhythm_complexity"]
    bass = features["bass_level"]
    mid = features["mid_level"]

    scores = {
        Label.JOY: energy * 0.4 + harmonicity * 0.3 + (0.3 if 0.3 < tempo < 0.8 else 0.0),
        Label.SADNESS: (1 - energy) * 0.4 + (1 - tempo) * 0.3 + (1 - centroid) * 0.3,
        Label.ANGER: energy * 0.4 + tempo * 0.3 + (1 - harmonicity) * 0.3,
        Label.FEAR: centroid * 0.4 + (1 - harmonicity) * 0.3 + rhythm * 0.3,
        Label.SURPRISE: centroid * 0.5 + rhythm * 0.5,
        Label.DISGUST: ((1 - harmonicity) * 0.6 + centroid * 0.4)
        * (1.0 if harmonicity < 0.3 else 0.2),
        Label.NOSTALGIA: harmonicity * 0.4 + (1 - abs(energy - 0.5)) * 0.3 + mid * 0.3,
        Label.AWE: harmonicity * 0.4 + rhythm * 0.3 + (1 - abs(energy - 0.6)) * 0.3,
        Label.DETERMINATION: energy * 0.4 + bass * 0.3 + (1 - abs(rhythm - 0.5)) * 0.3,
        Label.SERENITY: (1 - energy) * 0.4 + harmonicity * 0.4 + (1 - tempo) * 0.2,
        Label.PASSION: energy * 0.4 + tempo * 0.4 + (0.2 if harmonicity > 0.4 else 0.0),
        Label.MELANCHOLY: (1 - energy) * 0.3
        + (0.4 if 0.3 < harmonicity < 0.7 else 0.1)
        + rhythm * 0.3,
    }

    response = np.array([max(0.0, scores[label]) for label in Label], dtype=np.float64)
    total = response.sum()
    if total > 0:
        response /= total
    return response


def generate_reference_dataset(
    size: int = 1000,
    seed: Optional[int] = 1337,
) -> list[TrainingRecord]:
    """
    Generate a labeled dataset from the genre scenarios.

    Args:
        size: Number of records
        seed: Seed for scenario choice and jitter; same seed, same dataset

    Returns:
        Records with features in FEATURE_NAMES order and the genre attached
    """
    if size < 1:
        raise ValueError("size must be positive")

    rng = np.random.default_rng(seed)
    genres = list(GENRE_SCENARIOS)
    records = []

    for _ in range(size):
        genre = genres[int(rng.integers(len(genres)))]
        scenario = GENRE_SCENARIOS[genre]

        jitter = rng.uniform(-JITTER, JITTER, size=len(FEATURE_NAMES))
        features = {
            name: float(np.clip(scenario[name] + offset, 0.0, 1.0))
            for name, offset in zip(FEATURE_NAMES, jitter)
        }

        # Ties resolve to the lowest label index
        label = Label.ordered()[int(np.argmax(emotional_response(features)))]
        records.append(
            TrainingRecord(
                features=tuple(features[name] for name in FEATURE_NAMES),
                label=label.value,
                genre=genre,
            )
        )

    return records
