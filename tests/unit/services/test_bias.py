"""
Unit Tests for Perceptual Bias Transforms

Tests the personality rules, genre blend, memory nudge and color palette.
"""

import numpy as np
import pytest

from synesoul.config import InferenceSettings
from synesoul.domain.enums import Label, PersonalityTrait
from synesoul.domain.models import EmotionalDNA, GenreAffinity, PersonalityProfile
from synesoul.services.inference import (
    MEMORY_INFLUENCE_CAP,
    apply_personality,
    blend_genre,
    nudge_memory,
    palette_for,
)
from synesoul.services.inference.bias import normalized_depth, personality_rules

UNIFORM = np.full(len(Label), 1.0 / len(Label))


def profile_with(**weights: float) -> PersonalityProfile:
    values = {trait.value: 0.0 for trait in PersonalityTrait}
    values.update(weights)
    return PersonalityProfile(**values)


class TestPersonalityBias:
    """Tests for the one-rule-per-trait personality bias."""

    @pytest.fixture
    def settings(self) -> InferenceSettings:
        return InferenceSettings()

    def test_every_trait_has_a_rule(self, settings) -> None:
        """Test each trait declares exactly one rule."""
        assert set(personality_rules(settings)) == set(PersonalityTrait)

    def test_zero_weights_are_identity(self, settings) -> None:
        """Test a profile of zeros leaves the distribution unchanged."""
        p = np.linspace(1, 2, len(Label))
        p = p / p.sum()
        assert np.allclose(apply_personality(p, profile_with(), settings), p)

    def test_agreeableness_favors_positive_valence(self, settings) -> None:
        """Test agreeableness shifts mass toward positive labels."""
        result = apply_personality(UNIFORM, profile_with(agreeableness=1.0), settings)
        assert result[Label.JOY.index] > result[Label.SADNESS.index]

    def test_extraversion_favors_arousal(self, settings) -> None:
        """Test extraversion shifts mass toward high-arousal labels."""
        result = apply_personality(UNIFORM, profile_with(extraversion=1.0), settings)
        assert result[Label.PASSION.index] > result[Label.SERENITY.index]

    def test_conscientiousness_favors_dominance(self, settings) -> None:
        """Test conscientiousness shifts mass toward controlled labels."""
        result = apply_personality(UNIFORM, profile_with(conscientiousness=1.0), settings)
        assert result[Label.DETERMINATION.index] > result[Label.FEAR.index]

    def test_openness_favors_complex(self, settings) -> None:
        """Test openness shifts mass toward complex labels."""
        result = apply_personality(UNIFORM, profile_with(openness=1.0), settings)
        assert result[Label.AWE.index] > result[Label.JOY.index]

    def test_neuroticism_sharpens(self, settings) -> None:
        """Test neuroticism increases the peak of a non-uniform distribution."""
        p = np.full(len(Label), 0.05)
        p[Label.ANGER.index] = 0.45
        result = apply_personality(p, profile_with(neuroticism=1.0), settings)
        assert result[Label.ANGER.index] > 0.45
        assert normalized_depth(result) > normalized_depth(p)

    def test_output_is_normalized(self, settings) -> None:
        """Test every combination still sums to one."""
        result = apply_personality(UNIFORM, PersonalityProfile.neutral(), settings)
        assert result.sum() == pytest.approx(1.0)
        assert (result >= 0).all()

    def test_does_not_mutate_input(self, settings) -> None:
        """Test transforms return new arrays."""
        p = UNIFORM.copy()
        apply_personality(p, profile_with(agreeableness=1.0), settings)
        assert np.array_equal(p, UNIFORM)


class TestGenreAndMemory:
    """Tests for the genre blend and the memory nudge."""

    def test_blend_weight(self) -> None:
        """Test lambda = base_affinity * genre_blend_scale."""
        settings = InferenceSettings(genre_blend_scale=0.5)
        affinity = GenreAffinity(0.8, {Label.NOSTALGIA: 1.0})

        result = blend_genre(UNIFORM, affinity, settings)

        expected = 0.6 * UNIFORM[Label.NOSTALGIA.index] + 0.4
        assert result[Label.NOSTALGIA.index] == pytest.approx(expected)

    def test_no_affinity_is_identity(self) -> None:
        """Test a missing genre skips the blend."""
        assert blend_genre(UNIFORM, None, InferenceSettings()) is UNIFORM

    def test_memory_warmup(self) -> None:
        """Test memory influence ramps with experience count."""
        settings = InferenceSettings(memory_influence=0.2, memory_warmup=10)
        young = EmotionalDNA(recency_profile={Label.AWE: 1.0}, experience_count=5)
        mature = EmotionalDNA(recency_profile={Label.AWE: 1.0}, experience_count=50)

        young_p = nudge_memory(UNIFORM, young, settings)
        mature_p = nudge_memory(UNIFORM, mature, settings)

        assert young_p[Label.AWE.index] == pytest.approx(0.9 * UNIFORM[0] + 0.1)
        assert mature_p[Label.AWE.index] == pytest.approx(0.8 * UNIFORM[0] + 0.2)

    def test_dominant_emotions_fallback(self) -> None:
        """Test dominant emotions stand in for an empty recency profile."""
        dna = EmotionalDNA(dominant_emotions=((Label.JOY, 1.0),), experience_count=10)
        result = nudge_memory(UNIFORM, dna, InferenceSettings())
        assert result[Label.JOY.index] > UNIFORM[Label.JOY.index]

    def test_cap_constant(self) -> None:
        """Test the hard cap value."""
        assert MEMORY_INFLUENCE_CAP == 0.3


class TestDepthAndPalette:
    """Tests for depth and the color lookup."""

    def test_depth_bounds(self) -> None:
        """Test depth is 0 for uniform and 100 for one-hot."""
        one_hot = np.zeros(len(Label))
        one_hot[0] = 1.0
        assert normalized_depth(UNIFORM) == pytest.approx(0.0, abs=1e-9)
        assert normalized_depth(one_hot) == pytest.approx(100.0)

    def test_warm_accents(self) -> None:
        """Test positive labels get warm accents after their own palette."""
        colors = palette_for(Label.SERENITY, depth=90, max_colors=12)
        assert colors[:4] == Label.SERENITY.profile.colors
        assert "#FFD700" in colors

    def test_cool_accents(self) -> None:
        """Test negative labels get cool accents."""
        colors = palette_for(Label.ANGER, depth=90, max_colors=12)
        assert "#4169E1" in colors

    def test_complex_accents_when_diffuse(self) -> None:
        """Test low depth adds complex accents."""
        colors = palette_for(Label.SURPRISE, depth=10, max_colors=12)
        assert "#9370DB" in colors
        assert "#9370DB" not in palette_for(Label.SURPRISE, depth=90, max_colors=12)

    def test_no_duplicates_and_truncation(self) -> None:
        """Test duplicate tokens are dropped and the limit honored."""
        colors = palette_for(Label.SADNESS, depth=10, max_colors=12)
        assert len(colors) == len(set(colors))
        assert len(palette_for(Label.SADNESS, depth=10, max_colors=2)) == 2
