"""
Soul Pipeline

Wires the trainer, registry, store, engine, memory and feedback learner
into one entry point for the surrounding application.

ARCHITECTURE: Data flow per analysis window:
1. EmotionEngine.infer with the memory's current EmotionalDNA as context
2. EmotionalMemory.record of the resulting state
3. The state is returned to the caller for rendering

Feedback goes to the FeedbackLearner, which publishes through the shared
registry; the engine tracks the registry and picks up new revisions on
its next call.
"""

from typing import Any, Iterable, Optional

from synesoul import __version__
from synesoul.config.logging_config import bind_session_id, clear_context, get_logger
from synesoul.config.settings import Settings
from synesoul.domain.errors import ModelVersionNotFound
from synesoul.domain.models import EmotionalState, ExperienceContext, PersonalityDelta
from synesoul.infrastructure.metrics import update_system_info
from synesoul.infrastructure.mlops import ModelRegistry
from synesoul.infrastructure.storage import ModelStore
from synesoul.services.baseline import (
    BaselineTrainer,
    SoulArtifacts,
    TrainingResult,
    generate_reference_dataset,
)
from synesoul.services.feedback import FeedbackLearner
from synesoul.services.inference import EmotionEngine
from synesoul.services.memory import EmotionalMemory

logger = get_logger(__name__)


class SoulPipeline:
    """
    Emotion inference and personalization pipeline.

    Usage:
        pipeline = SoulPipeline(settings, store=store)
        await pipeline.initialize()
        if not pipeline.is_ready():
            await pipeline.bootstrap(dataset)
        pipeline.start_session("session-42")
        state = pipeline.analyze(features, genre="jazz")
        pipeline.feedback(state, "nostalgia")
        summary = pipeline.end_session()
    """

    PIPELINE_VERSION = __version__

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[ModelRegistry] = None,
        store: Optional[ModelStore] = None,
        memory: Optional[EmotionalMemory] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.registry = registry or ModelRegistry(
            name=self.settings.model_name,
            retain=self.settings.storage.registry_retain,
        )
        self.store = store

        self.trainer = BaselineTrainer(self.settings, registry=self.registry, store=store)
        self.engine = EmotionEngine(self.registry, self.settings)
        self.memory = memory or EmotionalMemory(self.settings)
        self.learner = FeedbackLearner(self.registry, self.settings, store=store)

        self._initialized = False

    async def initialize(self) -> Optional[SoulArtifacts]:
        """
        Restore the latest persisted revision, if the store holds one.

        Returns:
            The adopted artifacts, or None when nothing was restored
        """
        if self._initialized:
            return self.registry.current()

        update_system_info(self.settings.env, self.PIPELINE_VERSION)
        restored = None

        if self.store is not None and self.registry.current() is None:
            try:
                artifacts = await self.store.get_latest()
            except ModelVersionNotFound:
                artifacts = None
            if artifacts is not None:
                restored = self.registry.adopt(artifacts)
                logger.info("Factory soul restored from store", version=restored.version)

        self._initialized = True
        logger.info("Soul pipeline initialized", ready=self.is_ready())
        return restored

    async def shutdown(self) -> None:
        """Wait for background feedback work and deferred persistence to finish."""
        await self.learner.drain()
        self._initialized = False

    async def bootstrap(self, dataset: Optional[Iterable[Any]] = None) -> TrainingResult:
        """
        Train the factory soul and make it current.

        Args:
            dataset: Training records; the synthetic reference dataset when None

        Raises:
            DatasetError: On any invalid record
        """
        if dataset is None:
            dataset = generate_reference_dataset(seed=self.settings.training.seed)
            logger.info("Bootstrapping from reference dataset", records=len(dataset))
        return await self.trainer.train(dataset)

    def is_ready(self) -> bool:
        return self.engine.is_ready()

    def analyze(
        self,
        features: Any,
        genre: Optional[str] = None,
        context: Optional[ExperienceContext] = None,
    ) -> EmotionalState:
        """
        Infer the state of one analysis window and remember it.

        Raises:
            ModelUnavailableError: If no revision is published
            InvalidFeatureError: On malformed features; nothing is recorded
        """
        state = self.engine.infer(
            features,
            memory_context=self.memory.insights(),
            genre=genre,
        )
        self.memory.record(state, context)
        return state

    def feedback(self, state: EmotionalState, label: Any) -> PersonalityDelta:
        """Forward a user correction to the learner."""
        return self.learner.correct(state, label)

    def start_session(self, session_id: str) -> None:
        """
        Begin a listening session.

        Log entries emitted in this context carry the session ID until
        end_session().
        """
        bind_session_id(session_id)
        self.memory.start_session()
        logger.info("Listening session started")

    def end_session(self) -> dict:
        """Close the current listening session and return its summary."""
        summary = self.memory.session_summary()
        logger.info(
            "Listening session ended",
            experiences=summary["experience_count"],
        )
        clear_context()
        return summary

    def status(self) -> dict:
        """Readiness and revision overview."""
        current = self.registry.current()
        return {
            "ready": current is not None,
            "pipeline_version": self.PIPELINE_VERSION,
            "model_version": current.version if current is not None else None,
            "source": current.source if current is not None else None,
            "personality": current.personality.to_dict() if current is not None else None,
            "memory_size": len(self.memory),
            "memory_capacity": self.memory.capacity,
            "pending_corrections": len(self.learner.pending),
            "unpersisted_revisions": len(self.learner.unpersisted),
            "adaptation_rate": round(self.learner.adaptation_rate, 3),
            "persistent": self.store is not None,
        }
