"""
SYNESOUL Infrastructure Layer

Model registry, model storage, dataset loading and metrics.
Storage implements an abstract interface so the surrounding app can
plug in its own medium.
"""
