"""Emotional memory services."""

from synesoul.services.memory.emotional_memory import (
    EmotionalMemory,
    JourneySummary,
    compute_dna,
    emotional_weight,
    experience_similarity,
    journey_trend,
)

__all__ = [
    "EmotionalMemory",
    "JourneySummary",
    "compute_dna",
    "emotional_weight",
    "experience_similarity",
    "journey_trend",
]
