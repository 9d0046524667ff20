"""
Feedback Learner

Turns user corrections into personality adjustments and periodic
incremental fine-tuning of the baseline network.

ARCHITECTURE: Two update paths, both publishing through the registry:
1. Personality path (synchronous): each disagreement moves the trait
   weights by a bounded step and publishes a new revision sharing the
   current network.
2. Model path (background): once enough corrections are pending, a deep
   copy of the current network is fine-tuned on them in an executor and
   published as a new revision that keeps the profile current at publish
   time.

Published revisions are never mutated. A failed incremental step leaves
the registry untouched and keeps the corrections pending, as does a step
whose base network was replaced by a new baseline while it ran.
Revisions published from synchronous callers without a running event
loop are queued and written to the store by flush() or drain().

PRIVACY: Correction records hold the feature vector of the corrected
window and nothing else about the listener.
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

import torch

from synesoul.config.logging_config import get_logger
from synesoul.config.settings import FeedbackSettings, Settings
from synesoul.domain.enums import Label, PersonalityTrait
from synesoul.domain.errors import IncompatibleLabelError, ModelUnavailableError, StorageError
from synesoul.domain.models import (
    EmotionalState,
    FeatureVector,
    PersonalityDelta,
    PersonalityProfile,
)
from synesoul.domain.models.emotional_state import utc_now
from synesoul.infrastructure.metrics import (
    track_feedback,
    track_revision,
    track_storage_failure,
    track_training,
)
from synesoul.infrastructure.mlops import ModelRegistry
from synesoul.infrastructure.storage import ModelStore, persist_with_retry
from synesoul.services.baseline.artifacts import SoulArtifacts
from synesoul.services.baseline.network import BaselineModel
from synesoul.services.baseline.trainer import accuracy, seeded_generator, train_network

logger = get_logger(__name__)

CORRECTION_WEIGHT = 1.0
REINFORCEMENT_WEIGHT = 0.5

# Adaptive rate: more than this many corrections per window speeds learning up
BUSY_CORRECTION_COUNT = 5
BUSY_WINDOW = timedelta(hours=24)
RATE_INCREASE = 0.05
RATE_DECREASE = 0.01

CONFIDENT_THRESHOLD = 50.0


@dataclass(frozen=True)
class CorrectionRecord:
    """
    A labeled example produced by user feedback.

    Attributes:
        features: Feature vector the engine saw
        original: Primary label the engine inferred
        corrected: Label the user chose
        confidence: Engine confidence for the original label (0-100)
        weight: Training weight (1.0 correction, 0.5 reinforcement)
        recorded_at: When the feedback arrived
        model_version: Revision that produced the original state
    """

    features: FeatureVector
    original: Label
    corrected: Label
    confidence: float
    weight: float
    recorded_at: datetime
    model_version: Optional[int] = None

    @property
    def is_disagreement(self) -> bool:
        return self.corrected != self.original

    def to_dict(self) -> dict:
        return {
            "original": self.original.value,
            "corrected": self.corrected.value,
            "confidence": round(self.confidence, 2),
            "weight": self.weight,
            "recorded_at": self.recorded_at.isoformat(),
            "model_version": self.model_version,
        }


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def personality_delta(
    original: Label,
    corrected: Label,
    confidence: float,
    step: float,
) -> PersonalityDelta:
    """
    Trait changes that favor `corrected` over `original`.

    Each trait moves in the direction its bias rule would need to rank
    the corrected label higher. Traits whose attribute does not separate
    the two labels are omitted.

    Args:
        original: Label the engine inferred
        corrected: Label the user chose
        confidence: Engine confidence for the original label (0-100)
        step: Magnitude of each move
    """
    if original == corrected:
        return PersonalityDelta()

    before = original.profile
    after = corrected.profile
    changes: dict[PersonalityTrait, float] = {}

    directions = {
        PersonalityTrait.OPENNESS: int(after.is_complex) - int(before.is_complex),
        PersonalityTrait.CONSCIENTIOUSNESS: _sign(after.dominance - before.dominance),
        PersonalityTrait.EXTRAVERSION: _sign(after.arousal - before.arousal),
        PersonalityTrait.AGREEABLENESS: _sign(after.valence - before.valence),
        # A confident mistake calls for less volatility, a hesitant one for more
        PersonalityTrait.NEUROTICISM: -1 if confidence >= CONFIDENT_THRESHOLD else 1,
    }
    for trait, direction in directions.items():
        if direction:
            changes[trait] = direction * step

    return PersonalityDelta(changes)


def effective_delta(before: PersonalityProfile, after: PersonalityProfile) -> PersonalityDelta:
    """Change actually applied after clamping, zero moves dropped."""
    changes = {}
    for trait in PersonalityTrait:
        moved = after.weight(trait) - before.weight(trait)
        if moved != 0.0:
            changes[trait] = moved
    return PersonalityDelta(changes)


class FeedbackLearner:
    """
    User feedback learning.

    Features:
    - Bounded personality steps per disagreement
    - Confirmations kept as reinforcement examples
    - Adaptive step size driven by correction frequency
    - Background incremental fine-tuning once a batch is pending

    Usage:
        learner = FeedbackLearner(registry, settings, store=store)
        delta = learner.correct(state, "nostalgia")
        await learner.flush()
    """

    def __init__(
        self,
        registry: ModelRegistry,
        settings: Optional[Settings] = None,
        store: Optional[ModelStore] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.registry = registry
        self.settings = settings or Settings()
        self.store = store
        self._clock = clock

        config: FeedbackSettings = self.settings.feedback
        self._config = config
        self._pending: deque[CorrectionRecord] = deque(maxlen=config.max_pending)
        self._history: deque[CorrectionRecord] = deque(maxlen=config.max_pending)
        self._correction_times: deque[datetime] = deque()
        self._unpersisted: list[SoulArtifacts] = []
        self._adaptation_rate = config.initial_adaptation_rate

        self._update_lock = asyncio.Lock()
        self._pending_update: Optional[asyncio.Task] = None
        self._background: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def adaptation_rate(self) -> float:
        return self._adaptation_rate

    @property
    def step(self) -> float:
        """Current trait step, scaled by the adaptive rate."""
        config = self._config
        if config.initial_adaptation_rate <= 0:
            return config.trait_step
        return config.trait_step * self._adaptation_rate / config.initial_adaptation_rate

    @property
    def pending(self) -> tuple[CorrectionRecord, ...]:
        """Examples waiting for the next incremental step."""
        return tuple(self._pending)

    @property
    def corrections(self) -> tuple[CorrectionRecord, ...]:
        """Recent feedback, oldest first."""
        return tuple(self._history)

    @property
    def unpersisted(self) -> tuple[SoulArtifacts, ...]:
        """Revisions published without a running loop, awaiting flush() or drain()."""
        return tuple(self._unpersisted)

    @property
    def pending_update(self) -> Optional["asyncio.Task[Optional[SoulArtifacts]]"]:
        """The scheduled incremental step, if any."""
        return self._pending_update

    # -------------------------------------------------------------------------
    # Corrections
    # -------------------------------------------------------------------------

    def correct(self, original_state: EmotionalState, corrected_label) -> PersonalityDelta:
        """
        Apply user feedback on an inferred state.

        Args:
            original_state: State the engine produced
            corrected_label: Label the user chose (Label or its name)

        Returns:
            The personality change applied (empty on agreement)

        Raises:
            IncompatibleLabelError: If the label is outside the closed set;
                nothing is recorded or published
            ModelUnavailableError: If no revision has been published yet
        """
        try:
            corrected = Label.parse(corrected_label)
        except IncompatibleLabelError:
            track_feedback("rejected")
            logger.warning("Feedback rejected", label=str(corrected_label))
            raise

        if self.registry.current() is None:
            raise ModelUnavailableError()

        now = self._clock()
        disagreement = corrected != original_state.primary
        record = CorrectionRecord(
            features=original_state.features,
            original=original_state.primary,
            corrected=corrected,
            confidence=original_state.confidence,
            weight=CORRECTION_WEIGHT if disagreement else REINFORCEMENT_WEIGHT,
            recorded_at=now,
            model_version=original_state.model_version,
        )
        self._pending.append(record)
        self._history.append(record)

        if disagreement:
            delta = self._apply_disagreement(record, now)
        else:
            track_feedback("confirmation")
            logger.info("Feedback confirmed inference", label=corrected.value)
            delta = PersonalityDelta()

        self._maybe_schedule_update()
        return delta

    def _apply_disagreement(self, record: CorrectionRecord, now: datetime) -> PersonalityDelta:
        self._update_adaptation_rate(now)
        requested = personality_delta(
            record.original, record.corrected, record.confidence, self.step
        )
        applied = PersonalityDelta()

        def adjust(current: Optional[SoulArtifacts]) -> Optional[SoulArtifacts]:
            nonlocal applied
            if current is None:
                return None
            profile = current.personality.apply_delta(requested)
            applied = effective_delta(current.personality, profile)
            if applied.is_empty:
                return None
            return current.with_personality(profile)

        published = self.registry.update(adjust)
        track_feedback("disagreement")

        if published is not None:
            track_revision(published.source)
            self._persist_later(published)

        logger.info(
            "Personality adjusted from feedback",
            original=record.original.value,
            corrected=record.corrected.value,
            delta=applied.to_dict(),
            adaptation_rate=round(self._adaptation_rate, 3),
            version=published.version if published is not None else None,
        )
        return applied

    def _persist_later(self, artifacts: SoulArtifacts) -> None:
        if self.store is None:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._unpersisted.append(artifacts)
            logger.warning(
                "No running event loop, revision persistence deferred",
                version=artifacts.version,
                unpersisted=len(self._unpersisted),
            )
            return
        self._schedule(self.persist(artifacts))

    def _update_adaptation_rate(self, now: datetime) -> None:
        config = self._config
        self._correction_times.append(now)
        while self._correction_times and now - self._correction_times[0] > BUSY_WINDOW:
            self._correction_times.popleft()

        if len(self._correction_times) > BUSY_CORRECTION_COUNT:
            rate = self._adaptation_rate + RATE_INCREASE
        else:
            rate = self._adaptation_rate - RATE_DECREASE
        self._adaptation_rate = min(
            config.max_adaptation_rate, max(config.min_adaptation_rate, rate)
        )

    # -------------------------------------------------------------------------
    # Incremental updates
    # -------------------------------------------------------------------------

    def _maybe_schedule_update(self) -> None:
        if len(self._pending) < self._config.min_batch:
            return
        if self._pending_update is not None and not self._pending_update.done():
            return
        task = self._schedule(self._run_incremental())
        if task is not None:
            self._pending_update = task

    def _schedule(self, coro) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: work waits for an explicit flush()
            coro.close()
            return None
        task = loop.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background feedback task failed", error=str(error))

    async def flush(self) -> Optional[SoulArtifacts]:
        """
        Run an incremental step now on whatever is pending.

        Returns:
            The published revision, or None if nothing was pending or
            the step was discarded
        """
        await self.persist_deferred()
        return await self._run_incremental()

    async def drain(self) -> None:
        """Wait for scheduled background work (updates and persistence)."""
        await self.persist_deferred()
        while self._background:
            await asyncio.gather(*list(self._background))

    async def persist_deferred(self) -> list[StorageError]:
        """
        Write out revisions published without a running event loop.

        Returns:
            Persistence failures, already logged and counted
        """
        errors = []
        while self._unpersisted:
            artifacts = self._unpersisted.pop(0)
            error = await self.persist(artifacts)
            if error is not None:
                errors.append(error)
        return errors

    async def _run_incremental(self) -> Optional[SoulArtifacts]:
        async with self._update_lock:
            batch = tuple(self._pending)
            if not batch:
                return None

            base = self.registry.current()
            if base is None:
                raise ModelUnavailableError()

            start_time = time.perf_counter()
            loop = asyncio.get_running_loop()
            try:
                model = await loop.run_in_executor(None, self._fine_tune, base, batch)
            except Exception as e:
                track_training("failed", time.perf_counter() - start_time, kind="incremental")
                logger.error(
                    "Incremental update failed, corrections kept pending",
                    pending=len(batch),
                    error=str(e),
                )
                raise

            def rebase(current: Optional[SoulArtifacts]) -> Optional[SoulArtifacts]:
                # Personality revisions share the network; a new network means a new baseline
                if current is not None and current.model.network is not base.model.network:
                    return None
                # Keep the profile current at publish time, not the one we started from
                return (current or base).with_model(model)

            published = self.registry.update(rebase)
            if published is None:
                track_training("discarded", time.perf_counter() - start_time, kind="incremental")
                logger.warning(
                    "Incremental update discarded, network replaced during fine-tuning",
                    base_version=base.version,
                    pending=len(batch),
                )
                return None
            track_revision(published.source)

            consumed = {id(record) for record in batch}
            remaining = [record for record in self._pending if id(record) not in consumed]
            self._pending.clear()
            self._pending.extend(remaining)

            storage_error = await self.persist(published)
            duration = time.perf_counter() - start_time
            track_training(
                "degraded" if storage_error else "success", duration, kind="incremental"
            )

            logger.info(
                "Incremental update published",
                version=published.version,
                parent_version=base.version,
                examples=len(batch),
                final_loss=round(model.metrics["final_loss"], 4),
            )
            return published

    def _fine_tune(self, base: SoulArtifacts, batch: tuple[CorrectionRecord, ...]) -> BaselineModel:
        schema = base.model.schema
        rows = [
            FeatureVector.from_values(record.features.values, schema).values
            for record in batch
        ]
        features = torch.tensor(rows, dtype=torch.float32)
        targets = torch.tensor([record.corrected.index for record in batch], dtype=torch.int64)
        weights = torch.tensor([record.weight for record in batch], dtype=torch.float32)

        network = base.model.clone_network()
        history = train_network(
            network,
            features,
            targets,
            epochs=self._config.incremental_epochs,
            learning_rate=self._config.incremental_learning_rate,
            batch_size=self.settings.training.batch_size,
            generator=seeded_generator(self.settings.training.seed + base.version),
            sample_weights=weights,
        )

        return BaselineModel(
            network=network,
            schema=schema,
            labels=base.model.labels,
            parent_version=base.version,
            metrics={
                "final_loss": history[-1],
                "training_accuracy": accuracy(network, features, targets),
                "sample_count": len(batch),
                "epochs": self._config.incremental_epochs,
            },
        )

    async def persist(self, artifacts: SoulArtifacts) -> Optional[StorageError]:
        """Persist a revision; failures are logged and returned, never raised."""
        if self.store is None:
            return None
        try:
            await persist_with_retry(self.store, artifacts, self.settings.storage)
        except StorageError as e:
            track_storage_failure("put")
            logger.error(
                "Revision persistence failed, continuing in memory",
                version=artifacts.version,
                error=str(e),
            )
            return e
        return None
