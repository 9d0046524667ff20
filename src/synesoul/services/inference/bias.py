"""
Perceptual Bias Transforms

Pure functions reshaping a label distribution. Each returns a new
normalized array and never mutates its input.

Personality rules, one per trait (w = trait weight, g = trait gain):

- agreeableness:      p * (1 + g*w*(valence - 0.5))    toward positive valence
- extraversion:       p * (1 + g*w*(arousal - 0.5))    toward high arousal
- conscientiousness:  p * (1 + g*w*(dominance - 0.5))  toward controlled states
- openness:           p * (1 + g*w*(+0.5 complex, -0.5 primary))
- neuroticism:        p ** (1 + g*w)                   sharper, more volatile

The distribution is renormalized after every rule.
"""

from typing import Callable, Optional

import numpy as np

from synesoul.config.settings import InferenceSettings
from synesoul.domain.enums import LABEL_PROFILES, Label, PersonalityTrait
from synesoul.domain.models import EmotionalDNA, GenreAffinity, PersonalityProfile

# Memory never owns more than this share of the final mass
MEMORY_INFLUENCE_CAP = 0.3

_LABELS = Label.ordered()

VALENCE = np.array([LABEL_PROFILES[l].valence for l in _LABELS], dtype=np.float64)
AROUSAL = np.array([LABEL_PROFILES[l].arousal for l in _LABELS], dtype=np.float64)
DOMINANCE = np.array([LABEL_PROFILES[l].dominance for l in _LABELS], dtype=np.float64)
COMPLEXITY = np.array(
    [1.0 if LABEL_PROFILES[l].is_complex else 0.0 for l in _LABELS], dtype=np.float64
)


def normalize(p: np.ndarray, fallback: Optional[np.ndarray] = None) -> np.ndarray:
    """Scale to unit sum; fall back (or to uniform) when the mass vanished."""
    total = float(p.sum())
    if not np.isfinite(total) or total <= 0.0:
        if fallback is not None:
            return fallback.copy()
        return np.full(len(p), 1.0 / len(p))
    return p / total


def tilt(p: np.ndarray, attribute: np.ndarray, strength: float) -> np.ndarray:
    """Multiply mass by 1 + strength*(attribute - 0.5) and renormalize."""
    factors = np.clip(1.0 + strength * (attribute - 0.5), 0.0, None)
    return normalize(p * factors, fallback=p)


def sharpen(p: np.ndarray, exponent: float) -> np.ndarray:
    """Raise to a power >= 1 and renormalize; larger exponent, sharper peak."""
    return normalize(np.power(p, exponent), fallback=p)


def _trait_gain(settings: InferenceSettings, trait: PersonalityTrait) -> float:
    return getattr(settings, f"{trait.value}_gain")


def personality_rules(
    settings: InferenceSettings,
) -> dict[PersonalityTrait, Callable[[np.ndarray, float], np.ndarray]]:
    """Declared rule per trait, applied in PersonalityTrait order."""

    def gain(trait: PersonalityTrait) -> float:
        return _trait_gain(settings, trait)

    return {
        PersonalityTrait.OPENNESS: lambda p, w: tilt(
            p, COMPLEXITY, gain(PersonalityTrait.OPENNESS) * w
        ),
        PersonalityTrait.CONSCIENTIOUSNESS: lambda p, w: tilt(
            p, DOMINANCE, gain(PersonalityTrait.CONSCIENTIOUSNESS) * w
        ),
        PersonalityTrait.EXTRAVERSION: lambda p, w: tilt(
            p, AROUSAL, gain(PersonalityTrait.EXTRAVERSION) * w
        ),
        PersonalityTrait.AGREEABLENESS: lambda p, w: tilt(
            p, VALENCE, gain(PersonalityTrait.AGREEABLENESS) * w
        ),
        PersonalityTrait.NEUROTICISM: lambda p, w: sharpen(
            p, 1.0 + gain(PersonalityTrait.NEUROTICISM) * w
        ),
    }


def apply_personality(
    p: np.ndarray,
    profile: PersonalityProfile,
    settings: InferenceSettings,
) -> np.ndarray:
    """Apply every trait's rule in turn."""
    result = normalize(np.asarray(p, dtype=np.float64))
    for trait, rule in personality_rules(settings).items():
        result = rule(result, profile.weight(trait))
    return result


def response_vector(affinity: GenreAffinity) -> np.ndarray:
    """Genre emotional response as a distribution over labels."""
    r = np.array(
        [affinity.emotional_response.get(label, 0.0) for label in _LABELS],
        dtype=np.float64,
    )
    return normalize(r)


def blend_genre(
    p: np.ndarray,
    affinity: Optional[GenreAffinity],
    settings: InferenceSettings,
) -> np.ndarray:
    """
    Weighted average with the genre prior; no-op for unknown genres.

    lambda = base_affinity * genre_blend_scale
    """
    if affinity is None:
        return p
    weight = affinity.base_affinity * settings.genre_blend_scale
    if weight <= 0.0:
        return p
    return normalize((1.0 - weight) * p + weight * response_vector(affinity), fallback=p)


def memory_target(dna: EmotionalDNA) -> Optional[np.ndarray]:
    """Distribution memory pulls toward: recency profile, else dominant emotions."""
    source = dna.recency_profile or dict(dna.dominant_emotions)
    if not source:
        return None
    target = np.array([source.get(label, 0.0) for label in _LABELS], dtype=np.float64)
    if target.sum() <= 0.0:
        return None
    return normalize(target)


def memory_weight(dna: EmotionalDNA, settings: InferenceSettings) -> float:
    """
    Nudge strength: influence ramps up over the warm-up period.

    Bounded by MEMORY_INFLUENCE_CAP regardless of configuration.
    """
    if dna.experience_count <= 0:
        return 0.0
    ramp = min(1.0, dna.experience_count / settings.memory_warmup)
    return min(MEMORY_INFLUENCE_CAP, settings.memory_influence) * ramp


def nudge_memory(
    p: np.ndarray,
    dna: Optional[EmotionalDNA],
    settings: InferenceSettings,
) -> np.ndarray:
    """Pull the distribution toward recent emotional history."""
    if dna is None:
        return p
    target = memory_target(dna)
    weight = memory_weight(dna, settings)
    if target is None or weight <= 0.0:
        return p
    return normalize((1.0 - weight) * p + weight * target, fallback=p)


def normalized_depth(p: np.ndarray) -> float:
    """Sharpness in [0, 100]: 100 for one-hot, 0 for uniform."""
    nonzero = p[p > 0]
    entropy = float(-(nonzero * np.log(nonzero)).sum())
    depth = 100.0 * (1.0 - entropy / np.log(len(p)))
    return float(min(100.0, max(0.0, depth)))
