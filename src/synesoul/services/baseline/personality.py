"""
Soul Profile Derivation

Hand-authored heuristics deriving the personality profile and the
musical affinity table from dataset-wide statistics.

These are deterministic formulas over label and genre counts, not a
second learned model:

- agreeableness: expected valence of the label distribution
- extraversion: expected arousal
- conscientiousness: expected dominance
- neuroticism: share of negative-valence labels
- openness: half complex-label share, half normalized label entropy

Affinities come from genre x label co-occurrence, normalized per genre
(emotional response) and across genres (base affinity).
"""

import math
from collections import Counter, defaultdict
from typing import Iterable, Optional

from synesoul.domain.enums import LABEL_PROFILES, Label
from synesoul.domain.enums.emotion_label import NEGATIVE_VALENCE_THRESHOLD
from synesoul.domain.models import GenreAffinity, MusicalAffinityTable, PersonalityProfile


def label_frequencies(labels: Iterable[Label]) -> dict[Label, float]:
    """Relative frequency of every label, zero for unseen ones."""
    counts = Counter(labels)
    total = sum(counts.values())
    if total == 0:
        return {label: 0.0 for label in Label}
    return {label: counts.get(label, 0) / total for label in Label}


def normalized_entropy(distribution: Iterable[float]) -> float:
    """Shannon entropy divided by log(K); 0 for one-hot, 1 for uniform."""
    values = [p for p in distribution]
    k = len(values)
    if k < 2:
        return 0.0
    entropy = -sum(p * math.log(p) for p in values if p > 0)
    return min(1.0, max(0.0, entropy / math.log(k)))


def derive_personality(labels: Iterable[Label]) -> PersonalityProfile:
    """
    Derive trait weights from the label distribution.

    Args:
        labels: Labels of every training record

    Returns:
        PersonalityProfile with every trait in [0, 1]
    """
    freq = label_frequencies(labels)
    if not any(freq.values()):
        return PersonalityProfile.neutral()

    def expected(attribute: str) -> float:
        return sum(p * getattr(LABEL_PROFILES[label], attribute) for label, p in freq.items())

    complex_share = sum(p for label, p in freq.items() if LABEL_PROFILES[label].is_complex)
    negative_share = sum(
        p for label, p in freq.items()
        if LABEL_PROFILES[label].valence < NEGATIVE_VALENCE_THRESHOLD
    )

    def unit(value: float) -> float:
        return min(1.0, max(0.0, value))

    return PersonalityProfile(
        openness=unit(0.5 * complex_share + 0.5 * normalized_entropy(freq.values())),
        conscientiousness=unit(expected("dominance")),
        extraversion=unit(expected("arousal")),
        agreeableness=unit(expected("valence")),
        neuroticism=unit(negative_share),
    )


def derive_affinities(
    pairs: Iterable[tuple[Optional[str], Label]],
) -> MusicalAffinityTable:
    """
    Derive the musical affinity table from genre/label co-occurrence.

    Args:
        pairs: (genre, label) per record; records without genre are ignored

    Returns:
        MusicalAffinityTable with one entry per genre seen
    """
    counts: dict[str, Counter] = defaultdict(Counter)
    for genre, label in pairs:
        if not genre:
            continue
        counts[genre.strip().lower()][label] += 1

    if not counts:
        return MusicalAffinityTable()

    largest_genre = max(sum(c.values()) for c in counts.values())
    entries = {}
    for genre in sorted(counts):
        genre_counts = counts[genre]
        peak = max(genre_counts.values())
        entries[genre] = GenreAffinity(
            base_affinity=sum(genre_counts.values()) / largest_genre,
            emotional_response={
                label: genre_counts[label] / peak
                for label in Label
                if genre_counts.get(label, 0) > 0
            },
        )

    return MusicalAffinityTable(entries=entries)
