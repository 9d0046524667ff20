"""Orchestration of training, inference, memory and feedback."""

from synesoul.services.pipeline.soul_pipeline import SoulPipeline

__all__ = ["SoulPipeline"]
