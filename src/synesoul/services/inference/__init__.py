"""Real-time emotion inference services."""

from synesoul.services.inference.emotion_engine import EmotionEngine, top_labels
from synesoul.services.inference.color_palette import palette_for
from synesoul.services.inference.bias import (
    MEMORY_INFLUENCE_CAP,
    apply_personality,
    blend_genre,
    nudge_memory,
)

__all__ = [
    "EmotionEngine",
    "top_labels",
    "palette_for",
    "MEMORY_INFLUENCE_CAP",
    "apply_personality",
    "blend_genre",
    "nudge_memory",
]
