"""
Emotional Memory

Bounded, append-only log of experiences and the EmotionalDNA derived
from it.

ARCHITECTURE: One writer, many readers. Appends happen under a lock;
readers copy the log into an immutable tuple under the same lock and
compute everything from that snapshot. A reader therefore sees the log
either before or after an append, never a partial entry. insights() is
a pure function of the snapshot: no hidden accumulators.

The log is a FIFO window: once capacity is reached the oldest
experience is evicted on every append.

PRIVACY: Only feature vectors and derived labels are retained, never
raw audio.
"""

import math
import threading
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from synesoul.config.logging_config import get_logger
from synesoul.config.settings import MemorySettings, Settings
from synesoul.domain.enums import Label, TimeOfDay
from synesoul.domain.models import (
    EmotionalDNA,
    EmotionalState,
    Experience,
    ExperienceContext,
    IntensityPreference,
    IntensityProfile,
    JourneyTrend,
)
from synesoul.domain.models.emotional_state import utc_now
from synesoul.infrastructure.metrics import track_memory_size

logger = get_logger(__name__)

# Emotional weight contributions
CONFIDENCE_WEIGHT = 0.3
INTENSITY_WEIGHT = 0.2
FEEDBACK_WEIGHT = 0.3

# Journey trend threshold on the mean intensity change
TREND_THRESHOLD = 0.1

# Mood stability looks at this many most recent experiences
MOOD_WINDOW = 20

# Features compared by experience similarity
SIMILARITY_FEATURES = ("energy", "bass_level", "mid_level", "treble_level")


def emotional_weight(
    state: EmotionalState,
    context: ExperienceContext,
    min_weight: float = 0.5,
) -> float:
    """
    Significance of an experience.

    min_weight + 0.3*confidence/100 + 0.2*intensity (+0.3 with user
    feedback), capped at 1.0. Higher confidence and higher intensity
    each increase the weight; the floor is min_weight.
    """
    weight = min_weight
    weight += (state.confidence / 100.0) * CONFIDENCE_WEIGHT
    weight += state.intensity * INTENSITY_WEIGHT
    if context.user_feedback:
        weight += FEEDBACK_WEIGHT
    return max(min_weight, min(1.0, weight))


def experience_similarity(first: Experience, second: Experience) -> float:
    """
    Similarity of two experiences in [0, 1].

    - same emotion: 0.4
    - audio similarity (energy, bass, mid, treble): up to 0.3
    - same time of day: 0.1
    - same day of week: 0.05
    - intensity closeness: up to 0.15
    """
    score = 0.0

    if first.emotion == second.emotion:
        score += 0.4

    a = first.state.features.as_dict()
    b = second.state.features.as_dict()
    shared = [name for name in SIMILARITY_FEATURES if name in a and name in b]
    if shared:
        audio = sum(max(0.0, 1.0 - abs(a[name] - b[name])) for name in shared) / len(shared)
        score += audio * 0.3

    if first.context.time_of_day == second.context.time_of_day:
        score += 0.1
    if first.day_of_week == second.day_of_week:
        score += 0.05

    score += (1.0 - abs(first.intensity - second.intensity)) * 0.15
    return min(1.0, max(0.0, score))


def journey_trend(experiences: Sequence[Experience]) -> JourneyTrend:
    """
    Compare mean intensity of the older and newer halves.

    Args:
        experiences: Chronological order, oldest first
    """
    if len(experiences) < 2:
        return JourneyTrend.STABLE

    intensities = [exp.intensity for exp in experiences]
    middle = len(intensities) // 2
    first_avg = sum(intensities[:middle]) / middle
    second_avg = sum(intensities[middle:]) / (len(intensities) - middle)

    if second_avg > first_avg + TREND_THRESHOLD:
        return JourneyTrend.RISING
    if second_avg < first_avg - TREND_THRESHOLD:
        return JourneyTrend.DECLINING
    return JourneyTrend.STABLE


def compute_dna(
    experiences: Sequence[Experience],
    top_k: int = 5,
    decay: float = 0.85,
) -> EmotionalDNA:
    """
    Derive EmotionalDNA from a chronological log snapshot.

    Pure and deterministic: identical input, identical output. Ties are
    broken by label order.

    Args:
        experiences: Chronological snapshot, oldest first
        top_k: Number of dominant emotions to keep
        decay: Geometric decay per step back in time for the recency profile
    """
    if not experiences:
        return EmotionalDNA.empty()

    count = len(experiences)

    # Dominant emotions by weighted frequency
    weighted: dict[Label, float] = defaultdict(float)
    for exp in experiences:
        weighted[exp.emotion] += exp.emotional_weight
    total_weight = sum(weighted.values())
    ranked = sorted(weighted.items(), key=lambda item: (-item[1], item[0].index))
    dominant = tuple(
        (label, weight / total_weight) for label, weight in ranked[:top_k]
    )

    # Complexity: normalized entropy of the label frequencies
    counts = Counter(exp.emotion for exp in experiences)
    entropy = -sum((c / count) * math.log(c / count) for c in counts.values())
    complexity = min(1.0, max(0.0, entropy / math.log(len(Label))))

    # Time patterns: label distribution per time bucket
    buckets: dict[TimeOfDay, Counter] = defaultdict(Counter)
    for exp in experiences:
        bucket = exp.context.time_of_day or TimeOfDay.from_datetime(exp.state.timestamp)
        buckets[bucket][exp.emotion] += 1
    time_patterns = {}
    for bucket in TimeOfDay:
        if bucket not in buckets:
            continue
        bucket_total = sum(buckets[bucket].values())
        time_patterns[bucket] = {
            label: buckets[bucket][label] / bucket_total
            for label in Label
            if buckets[bucket][label]
        }

    # Recency profile: most recent experience has weight 1, then decay^i
    recency: dict[Label, float] = defaultdict(float)
    for age, exp in enumerate(reversed(experiences)):
        recency[exp.emotion] += decay ** age
    recency_total = sum(recency.values())
    recency_profile = {
        label: recency[label] / recency_total for label in Label if label in recency
    }

    # Intensity profile
    intensities = [exp.intensity for exp in experiences]
    average = sum(intensities) / count
    if average > 0.7:
        preference = IntensityPreference.HIGH
    elif average < 0.4:
        preference = IntensityPreference.LOW
    else:
        preference = IntensityPreference.MODERATE
    intensity_profile = IntensityProfile(
        average=average,
        range=max(intensities) - min(intensities),
        preference=preference,
    )

    # Triggers: mean feature values per emotion
    sums: dict[Label, dict[str, float]] = {}
    for exp in experiences:
        feature_sums = sums.setdefault(exp.emotion, defaultdict(float))
        for name, value in exp.state.features.as_dict().items():
            feature_sums[name] += value
    triggers = {
        label: {name: total / counts[label] for name, total in sums[label].items()}
        for label in Label
        if label in sums
    }

    stability = mood_stability(experiences[-MOOD_WINDOW:])

    traits = []
    if len(counts) / count > 0.8 and count > 1:
        traits.append("emotionally-diverse")
    if stability > 0.7:
        traits.append("mood-stable")
    if preference is IntensityPreference.HIGH:
        traits.append("intensity-seeker")
    elif preference is IntensityPreference.LOW:
        traits.append("gentle-soul")
    if TimeOfDay.MORNING in time_patterns:
        traits.append("morning-emotional")
    if TimeOfDay.NIGHT in time_patterns:
        traits.append("night-emotional")

    return EmotionalDNA(
        dominant_emotions=dominant,
        emotional_complexity=complexity,
        time_patterns=time_patterns,
        recency_profile=recency_profile,
        intensity_profile=intensity_profile,
        emotional_triggers=triggers,
        mood_stability=stability,
        unique_traits=tuple(traits),
        experience_count=count,
    )


def mood_stability(experiences: Sequence[Experience]) -> float:
    """
    Stability across consecutive experiences.

    Each consecutive pair scores 0.5 for the same emotion plus up to 0.3
    for similar intensity; the result is the mean over pairs. Fewer than
    three experiences give the neutral 0.5.
    """
    if len(experiences) < 3:
        return 0.5
    score = 0.0
    for previous, current in zip(experiences, experiences[1:]):
        if current.emotion == previous.emotion:
            score += 0.5
        score += (1.0 - abs(current.intensity - previous.intensity)) * 0.3
    return score / (len(experiences) - 1)


@dataclass(frozen=True)
class JourneySummary:
    """Recent emotional journey with its trend."""

    experiences: tuple[Experience, ...]
    trend: JourneyTrend
    dominant_emotions: tuple[tuple[Label, int], ...]
    average_intensity: float

    def to_dict(self) -> dict:
        return {
            "experiences": [exp.to_dict() for exp in self.experiences],
            "trend": self.trend.value,
            "dominant_emotions": [
                {"emotion": label.value, "count": count}
                for label, count in self.dominant_emotions
            ],
            "average_intensity": round(self.average_intensity, 4),
        }


class EmotionalMemory:
    """
    Bounded emotional memory.

    Usage:
        memory = EmotionalMemory(settings)
        memory.record(state, ExperienceContext(source="microphone"))
        dna = memory.insights()
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or Settings()
        self.settings: MemorySettings = settings.memory
        self._decay = settings.inference.memory_decay
        self._log: deque[Experience] = deque(maxlen=self.settings.capacity)
        self._lock = threading.Lock()
        self._next_sequence = 0
        self._session_start_sequence = 0
        self._session_started_at = utc_now()

    @property
    def capacity(self) -> int:
        return self.settings.capacity

    def __len__(self) -> int:
        return len(self._log)

    def record(
        self,
        state: EmotionalState,
        context: Optional[ExperienceContext] = None,
    ) -> Experience:
        """
        Append an experience for an inferred state.

        Never rejects a well-formed state. When the log is full the
        oldest experience is evicted.

        Args:
            state: Inferred emotional state
            context: Circumstances; time_of_day is derived from the state if unset

        Returns:
            The appended Experience
        """
        context = context or ExperienceContext()
        if context.time_of_day is None:
            context = replace(
                context, time_of_day=TimeOfDay.from_datetime(state.timestamp)
            )
        weight = emotional_weight(state, context, self.settings.min_weight)

        with self._lock:
            experience = Experience(
                state=state,
                context=context,
                emotional_weight=weight,
                sequence=self._next_sequence,
            )
            self._next_sequence += 1
            self._log.append(experience)
            size = len(self._log)

        track_memory_size(size)
        logger.debug(
            "Experience recorded",
            emotion=state.primary.value,
            weight=round(weight, 3),
            sequence=experience.sequence,
        )
        return experience

    def snapshot(self) -> tuple[Experience, ...]:
        """Immutable chronological copy of the log, oldest first."""
        with self._lock:
            return tuple(self._log)

    def recent_journey(self, n: Optional[int] = None) -> list[Experience]:
        """Last n experiences, most recent first."""
        n = self.settings.journey_default if n is None else n
        if n <= 0:
            return []
        snapshot = self.snapshot()
        return list(reversed(snapshot[-n:]))

    def insights(self) -> EmotionalDNA:
        """EmotionalDNA recomputed from the current log snapshot."""
        return compute_dna(self.snapshot(), top_k=self.settings.top_k, decay=self._decay)

    def journey_summary(self, n: Optional[int] = None) -> JourneySummary:
        """
        Recent journey with trend, dominant emotions and mean intensity.

        Experiences are returned most recent first; the trend is computed
        in chronological order.
        """
        n = self.settings.journey_default if n is None else n
        chronological = self.snapshot()[-n:] if n > 0 else ()

        counts = Counter(exp.emotion for exp in chronological)
        dominant = tuple(
            sorted(counts.items(), key=lambda item: (-item[1], item[0].index))[:3]
        )
        average = (
            sum(exp.intensity for exp in chronological) / len(chronological)
            if chronological else 0.5
        )

        return JourneySummary(
            experiences=tuple(reversed(chronological)),
            trend=journey_trend(chronological),
            dominant_emotions=dominant,
            average_intensity=average,
        )

    def start_session(self) -> None:
        """Begin a new listening session for session_summary()."""
        with self._lock:
            self._session_start_sequence = self._next_sequence
            self._session_started_at = utc_now()

    def session_experiences(self) -> tuple[Experience, ...]:
        with self._lock:
            start = self._session_start_sequence
            return tuple(exp for exp in self._log if exp.sequence >= start)

    def session_summary(self) -> dict:
        """Summary of the experiences recorded since the session started."""
        experiences = self.session_experiences()
        if not experiences:
            return {
                "experience_count": 0,
                "message": "No emotional experiences recorded this session",
            }

        emotions = [exp.emotion for exp in experiences]
        counts = Counter(emotions)
        dominant = min(counts, key=lambda label: (-counts[label], label.index))
        average = sum(exp.intensity for exp in experiences) / len(experiences)

        return {
            "experience_count": len(experiences),
            "dominant_emotion": dominant.value,
            "average_intensity": round(average * 100),
            "emotional_journey": " → ".join(label.value for label in emotions),
            "session_duration": (utc_now() - self._session_started_at).total_seconds(),
            "unique_emotions": len(counts),
        }

    def find_similar(
        self,
        experience: Experience,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> list[tuple[Experience, float]]:
        """
        Past experiences resembling the given one.

        Args:
            experience: Reference experience (excluded from the results)
            threshold: Minimum similarity, strictly exceeded
            limit: Maximum results, defaults to top_k

        Returns:
            (experience, similarity) pairs, most similar first
        """
        threshold = self.settings.similarity_threshold if threshold is None else threshold
        limit = self.settings.top_k if limit is None else limit

        matches = []
        for past in self.snapshot():
            if past.sequence == experience.sequence:
                continue
            similarity = experience_similarity(experience, past)
            if similarity > threshold:
                matches.append((past, similarity))

        matches.sort(key=lambda item: (-item[1], -item[0].sequence))
        return matches[:limit]

    def clear(self) -> None:
        """Forget every experience."""
        with self._lock:
            self._log.clear()
            self._session_start_sequence = self._next_sequence
        track_memory_size(0)
