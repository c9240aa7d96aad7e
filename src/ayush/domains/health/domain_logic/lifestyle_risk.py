"""Lifestyle risk score: six independent contribution terms, capped at 100."""

from __future__ import annotations

from ayush.domains.health.domain_logic.assessment_models import (
    HealthAttributes,
    LifestyleAttributes,
    LifestyleRiskReport,
    RiskFactor,
    effective_exercise_frequency,
)

MAX_OVERALL_RISK = 100
MAX_SCREEN_RISK = 30

INACTIVITY_RISK = {"daily": 0, "weekly": 15, "rarely": 30}


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def score_lifestyle_risk(
    lifestyle: LifestyleAttributes, attrs: HealthAttributes
) -> LifestyleRiskReport:
    """Score lifestyle habits.

    Terms are evaluated in a fixed order; only strictly positive terms are
    reported. Factors are ranked by score, ties keep evaluation order.
    """
    sleep_risk = max(0, (7 - lifestyle.sleep_hours) * 10)
    exercise_risk = INACTIVITY_RISK[effective_exercise_frequency(lifestyle, attrs)]

    if lifestyle.stress_management == "none":
        stress_risk = 25 if attrs.stress_level == "high" else 15
    else:
        stress_risk = 0

    screen_risk = _clamp((lifestyle.screen_time - 8) * 3, 0, MAX_SCREEN_RISK)
    water_risk = 15 if lifestyle.water_intake == "low" else 0
    meal_risk = 20 if lifestyle.meal_timing == "irregular" else 0

    terms = [
        RiskFactor(
            "Inadequate Sleep",
            "High impact on health" if sleep_risk > 20 else "Moderate impact",
            sleep_risk,
        ),
        RiskFactor(
            "Low Physical Activity",
            "High impact on metabolism" if exercise_risk > 20 else "Moderate impact",
            exercise_risk,
        ),
        RiskFactor("Poor Stress Management", "High impact on mental health", stress_risk),
        RiskFactor("Excessive Screen Time", "Impact on eyes and posture", screen_risk),
        RiskFactor("Low Water Intake", "Impact on digestion and detoxification", water_risk),
        RiskFactor("Irregular Meal Times", "Impact on digestion and metabolism", meal_risk),
    ]

    factors = [t for t in terms if t.score > 0]
    total = sum(t.score for t in factors)
    factors.sort(key=lambda t: t.score, reverse=True)

    return LifestyleRiskReport(
        overall_risk=_clamp(total, 0, MAX_OVERALL_RISK),
        risk_factors=tuple(factors),
    )
