"""
SYNESOUL - Emotion Inference & Personalization Engine

This package provides the core of the synesthetic music experience:
a trainable baseline "factory soul" classifier, real-time emotion
inference biased by personality and musical affinities, an emotional
memory that evolves into an "emotional DNA", and a feedback loop that
personalizes the soul over time.

Audio capture, rendering and UI are thin collaborators outside this package.
"""

__version__ = "0.1.0"
__author__ = "Synesoul Engineering Team"
