"""Constitution (dosha) profile from the health questionnaire.

Each categorical answer adds a fixed number of points to exactly one dosha.
Points are then converted to whole percentages with largest-remainder
allocation, so the three values always sum to 100.
All formulas are deterministic.
"""

from __future__ import annotations

from fractions import Fraction

from ayush.domains.health.domain_logic.assessment_models import (
    ConstitutionProfile,
    HealthAttributes,
)

DOSHAS = ("vata", "pitta", "kapha")

# attribute -> answer -> (dosha, points)
# exercise_frequency, age, weight and height do not contribute.
DOSHA_WEIGHTS: dict[str, dict[str, tuple[str, int]]] = {
    "body_temperature": {
        "cold": ("vata", 2),
        "warm": ("pitta", 2),
        "neutral": ("kapha", 1),
    },
    "digestion": {
        "irregular": ("vata", 3),
        "strong": ("pitta", 3),
        "slow": ("kapha", 3),
    },
    "sleep_pattern": {
        "light": ("vata", 2),
        "moderate": ("pitta", 2),
        "deep": ("kapha", 2),
    },
    "energy_level": {
        "variable": ("vata", 2),
        "high": ("pitta", 2),
        "steady": ("kapha", 2),
    },
    "skin_type": {
        "dry": ("vata", 2),
        "oily": ("pitta", 2),
        "normal": ("kapha", 1),
    },
    "stress_level": {
        "high": ("vata", 2),
        "moderate": ("pitta", 1),
        "low": ("kapha", 1),
    },
}

DOSHA_DESCRIPTIONS = {
    "Vata": (
        "Vata governs movement, creativity, and communication. "
        "When balanced: energetic, creative, adaptable. "
        "When imbalanced: anxious, restless, irregular digestion."
    ),
    "Pitta": (
        "Pitta governs metabolism, digestion, and transformation. "
        "When balanced: intelligent, focused, warm. "
        "When imbalanced: irritable, inflammatory conditions, hyperacidity."
    ),
    "Kapha": (
        "Kapha governs structure, stability, and lubrication. "
        "When balanced: calm, strong, nurturing. "
        "When imbalanced: sluggish, weight gain, congestion."
    ),
}


def score_doshas(attrs: HealthAttributes) -> dict[str, int]:
    """Raw dosha points before normalisation."""
    points = dict.fromkeys(DOSHAS, 0)
    for attribute, table in DOSHA_WEIGHTS.items():
        dosha, value = table[getattr(attrs, attribute)]
        points[dosha] += value
    return points


def allocate_percentages(points: dict[str, int]) -> dict[str, int]:
    """Largest-remainder allocation of ``points`` onto 100 whole percent.

    Every share is floored, then the leftover percent goes one at a time to
    the largest fractional remainders. Equal remainders resolve in DOSHAS
    order. Exact fractions keep the result independent of float rounding.
    """
    total = sum(points.values())
    if total <= 0:
        raise ValueError("Cannot normalise an empty dosha score")

    exact = {d: Fraction(points[d] * 100, total) for d in DOSHAS}
    shares = {d: int(exact[d]) for d in DOSHAS}
    leftover = 100 - sum(shares.values())

    by_remainder = sorted(DOSHAS, key=lambda d: exact[d] - shares[d], reverse=True)
    for dosha in by_remainder[:leftover]:
        shares[dosha] += 1
    return shares


def compute_profile(attrs: HealthAttributes) -> ConstitutionProfile:
    """Compute the constitution profile for one questionnaire."""
    return ConstitutionProfile(**allocate_percentages(score_doshas(attrs)))


def dominant_dosha(profile: ConstitutionProfile) -> str:
    """Name of the highest-scoring dosha. Ties resolve Vata, Pitta, Kapha."""
    highest = max(profile.vata, profile.pitta, profile.kapha)
    if profile.vata == highest:
        return "Vata"
    if profile.pitta == highest:
        return "Pitta"
    return "Kapha"


def dosha_description(dosha: str) -> str:
    """Static description for a dosha name; empty for unknown names."""
    return DOSHA_DESCRIPTIONS.get(dosha, "")
