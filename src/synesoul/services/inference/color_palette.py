"""
Synesthetic Color Palette

Deterministic lookup from a perceived emotion to ordered color tokens.
"""

from synesoul.domain.enums import Label

WARM_ACCENTS: tuple[str, ...] = ("#FFD700", "#FFA500")
COOL_ACCENTS: tuple[str, ...] = ("#4169E1", "#6495ED")
COMPLEX_ACCENTS: tuple[str, ...] = ("#9370DB", "#8A2BE2")

WARM_VALENCE = 0.7
COOL_VALENCE = 0.3
COMPLEX_DEPTH = 40.0


def palette_for(label: Label, depth: float, max_colors: int = 5) -> tuple[str, ...]:
    """
    Colors for a perceived emotion.

    The label's own palette comes first, followed by warm accents for
    positive valence or cool accents for negative valence, then complex
    accents when the distribution is diffuse (low depth). Duplicates are
    dropped and the result is truncated to max_colors.

    Args:
        label: Primary emotion
        depth: Distribution sharpness (0-100)
        max_colors: Upper bound on returned tokens, at least 1

    Returns:
        Non-empty tuple of hex color tokens
    """
    profile = label.profile
    colors = list(profile.colors)

    if profile.valence > WARM_VALENCE:
        colors.extend(WARM_ACCENTS)
    elif profile.valence < COOL_VALENCE:
        colors.extend(COOL_ACCENTS)

    if depth < COMPLEX_DEPTH:
        colors.extend(COMPLEX_ACCENTS)

    unique = list(dict.fromkeys(colors))
    return tuple(unique[:max(1, max_colors)])
