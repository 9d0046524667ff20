"""
Unit Tests for Emotional Memory

Tests experience weighting, the bounded log, EmotionalDNA derivation,
journeys, similarity and snapshot semantics under concurrent appends.
"""

import math
import threading
from datetime import datetime, timedelta, timezone

import pytest

from synesoul.config import MemorySettings, Settings
from synesoul.domain.enums import Label, TimeOfDay
from synesoul.domain.models import ExperienceContext, IntensityPreference, JourneyTrend
from synesoul.services.memory import EmotionalMemory, compute_dna, emotional_weight


@pytest.fixture
def memory(test_settings) -> EmotionalMemory:
    return EmotionalMemory(test_settings)


class TestEmotionalWeight:
    """Tests for experience weighting."""

    def test_zero_confidence_and_intensity(self, memory, state_factory) -> None:
        """Test the floor weight for a flat, uncertain state."""
        experience = memory.record(state_factory(confidence=0.0, intensity=0.0))

        assert experience.emotional_weight == 0.5
        assert not math.isnan(experience.emotional_weight)

    def test_confidence_and_intensity_both_count(self, state_factory) -> None:
        """Test both confidence and intensity increase the weight."""
        context = ExperienceContext()
        base = emotional_weight(state_factory(confidence=20, intensity=0.2), context)
        confident = emotional_weight(state_factory(confidence=60, intensity=0.2), context)
        intense = emotional_weight(state_factory(confidence=20, intensity=0.6), context)

        assert confident > base
        assert intense > base

    def test_capped_at_one(self, state_factory) -> None:
        """Test the weight never exceeds 1.0."""
        context = ExperienceContext(user_feedback="loved it")
        weight = emotional_weight(state_factory(confidence=100, intensity=1.0), context)
        assert weight == 1.0


class TestLog:
    """Tests for the bounded FIFO log."""

    def test_evicts_oldest(self, state_factory) -> None:
        """Test capacity bounds the log and the oldest entries go first."""
        memory = EmotionalMemory(Settings(memory=MemorySettings(capacity=3)))
        for label in (Label.JOY, Label.FEAR, Label.AWE, Label.ANGER):
            memory.record(state_factory(primary=label))

        assert len(memory) == 3
        assert [exp.emotion for exp in memory.snapshot()] == [
            Label.FEAR, Label.AWE, Label.ANGER,
        ]
        assert memory.snapshot()[-1].sequence == 3

    def test_recent_journey_most_recent_first(self, memory, state_factory) -> None:
        """Test journey order and length."""
        for label in (Label.JOY, Label.FEAR, Label.AWE):
            memory.record(state_factory(primary=label))

        journey = memory.recent_journey(2)
        assert [exp.emotion for exp in journey] == [Label.AWE, Label.FEAR]
        assert memory.recent_journey(0) == []
        assert len(memory.recent_journey(10)) == 3

    def test_time_of_day_derived_from_state(self, memory, state_factory) -> None:
        """Test an unset time bucket is derived from the state timestamp."""
        state = state_factory(timestamp=datetime(2026, 3, 2, 22, 30, tzinfo=timezone.utc))
        experience = memory.record(state)
        assert experience.context.time_of_day is TimeOfDay.NIGHT

    def test_clear(self, memory, state_factory) -> None:
        """Test clearing forgets everything."""
        memory.record(state_factory())
        memory.clear()
        assert len(memory) == 0
        assert memory.insights().is_empty


class TestInsights:
    """Tests for EmotionalDNA derivation."""

    def test_empty_memory(self, memory) -> None:
        """Test insights of an empty log."""
        dna = memory.insights()
        assert dna.experience_count == 0
        assert dna.dominant_emotions == ()

    def test_dominant_emotions(self, memory, state_factory) -> None:
        """Test ranking by weighted frequency."""
        for label in (Label.JOY, Label.JOY, Label.JOY, Label.SADNESS, Label.AWE):
            memory.record(state_factory(primary=label))

        dna = memory.insights()
        assert dna.dominant_labels[0] is Label.JOY
        assert dna.dominant_emotions[0][1] == pytest.approx(0.6)
        assert sum(share for _, share in dna.dominant_emotions) == pytest.approx(1.0)

    def test_ties_broken_by_label_order(self, memory, state_factory) -> None:
        """Test equal weights rank by label order."""
        memory.record(state_factory(primary=Label.AWE))
        memory.record(state_factory(primary=Label.JOY))
        assert memory.insights().dominant_labels == [Label.JOY, Label.AWE]

    def test_idempotent(self, memory, state_factory) -> None:
        """Test repeated calls without appends give identical output."""
        for label in (Label.JOY, Label.AWE, Label.FEAR, Label.JOY):
            memory.record(state_factory(primary=label, intensity=0.3))

        assert memory.insights() == memory.insights()

    def test_recency_profile_favors_recent(self, memory, state_factory) -> None:
        """Test recency decays geometrically, most recent first."""
        memory.record(state_factory(primary=Label.SADNESS))
        memory.record(state_factory(primary=Label.JOY))

        profile = memory.insights().recency_profile
        assert profile[Label.JOY] == pytest.approx(1 / 1.85)
        assert profile[Label.SADNESS] == pytest.approx(0.85 / 1.85)

    def test_complexity(self, memory, state_factory) -> None:
        """Test complexity is 0 for one label and grows with variety."""
        memory.record(state_factory(primary=Label.JOY))
        memory.record(state_factory(primary=Label.JOY))
        assert memory.insights().emotional_complexity == 0.0

        memory.record(state_factory(primary=Label.FEAR))
        assert memory.insights().emotional_complexity > 0.0

    def test_intensity_and_triggers(self, state_factory) -> None:
        """Test the intensity profile and per-label feature means."""
        memory = EmotionalMemory()
        memory.record(state_factory(primary=Label.PASSION, intensity=0.9))
        memory.record(state_factory(primary=Label.PASSION, intensity=0.7))

        dna = memory.insights()
        assert dna.intensity_profile.average == pytest.approx(0.8)
        assert dna.intensity_profile.preference is IntensityPreference.HIGH
        assert dna.emotional_triggers[Label.PASSION]["energy"] == pytest.approx(0.8)
        assert "intensity-seeker" in dna.unique_traits

    def test_time_patterns(self, memory, state_factory) -> None:
        """Test label distribution per time bucket."""
        morning = datetime(2026, 3, 2, 9, tzinfo=timezone.utc)
        evening = datetime(2026, 3, 2, 19, tzinfo=timezone.utc)
        memory.record(state_factory(primary=Label.JOY, timestamp=morning))
        memory.record(state_factory(primary=Label.AWE, timestamp=morning))
        memory.record(state_factory(primary=Label.FEAR, timestamp=evening))

        patterns = memory.insights().time_patterns
        assert patterns[TimeOfDay.MORNING] == {Label.JOY: 0.5, Label.AWE: 0.5}
        assert patterns[TimeOfDay.EVENING] == {Label.FEAR: 1.0}
        assert TimeOfDay.NIGHT not in patterns

    def test_compute_dna_is_pure(self, memory, state_factory) -> None:
        """Test DNA depends only on the snapshot passed in."""
        memory.record(state_factory(primary=Label.JOY))
        snapshot = memory.snapshot()
        memory.record(state_factory(primary=Label.FEAR))

        assert compute_dna(snapshot).experience_count == 1


class TestJourney:
    """Tests for journey summaries, sessions and similarity."""

    def test_rising_trend(self, memory, state_factory) -> None:
        """Test increasing intensity is reported as rising."""
        for intensity in (0.1, 0.2, 0.7, 0.8):
            memory.record(state_factory(intensity=intensity))

        summary = memory.journey_summary(4)
        assert summary.trend is JourneyTrend.RISING
        assert summary.average_intensity == pytest.approx(0.45)
        assert summary.experiences[0].intensity == 0.8

    def test_declining_and_stable(self, memory, state_factory) -> None:
        """Test the other trend directions."""
        for intensity in (0.9, 0.8, 0.3, 0.2):
            memory.record(state_factory(intensity=intensity))
        assert memory.journey_summary(4).trend is JourneyTrend.DECLINING
        assert memory.journey_summary(1).trend is JourneyTrend.STABLE

    def test_session_summary(self, memory, state_factory) -> None:
        """Test the session only covers experiences since it started."""
        memory.record(state_factory(primary=Label.FEAR))
        memory.start_session()
        assert memory.session_summary()["experience_count"] == 0

        memory.record(state_factory(primary=Label.JOY, intensity=0.6))
        memory.record(state_factory(primary=Label.JOY, intensity=0.4))

        summary = memory.session_summary()
        assert summary["experience_count"] == 2
        assert summary["dominant_emotion"] == "joy"
        assert summary["average_intensity"] == 50

    def test_find_similar(self, memory, state_factory) -> None:
        """Test similar experiences are found and the reference excluded."""
        first = memory.record(state_factory(primary=Label.JOY, intensity=0.5))
        memory.record(state_factory(primary=Label.JOY, intensity=0.55))
        memory.record(state_factory(
            primary=Label.FEAR,
            intensity=0.0,
            features=[0.0, 0.9, 0.9, 0.9, 0.9, 1.0, 1.0, 1.0],
            timestamp=datetime(2026, 3, 5, 23, tzinfo=timezone.utc),
        ))

        matches = memory.find_similar(first)

        assert len(matches) == 1
        assert matches[0][0].intensity == 0.55
        assert 0.6 < matches[0][1] <= 1.0


class TestConcurrency:
    """Tests for snapshot semantics with a concurrent writer."""

    def test_readers_see_whole_entries(self, state_factory) -> None:
        """Test snapshots taken during appends are always consistent."""
        memory = EmotionalMemory(Settings(memory=MemorySettings(capacity=100)))
        states = [
            state_factory(
                primary=Label.ordered()[i % len(Label)],
                timestamp=datetime(2026, 3, 2, tzinfo=timezone.utc) + timedelta(minutes=i),
            )
            for i in range(300)
        ]
        errors = []

        def writer() -> None:
            for state in states:
                memory.record(state)

        def reader() -> None:
            for _ in range(200):
                snapshot = memory.snapshot()
                sequences = [exp.sequence for exp in snapshot]
                if sequences != sorted(sequences) or len(snapshot) > 100:
                    errors.append(sequences)
                dna = compute_dna(snapshot)
                if dna.experience_count != len(snapshot):
                    errors.append(dna.experience_count)

        threads = [threading.Thread(target=writer)] + [
            threading.Thread(target=reader) for _ in range(3)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(memory) == 100
        assert memory.snapshot()[-1].sequence == 299
