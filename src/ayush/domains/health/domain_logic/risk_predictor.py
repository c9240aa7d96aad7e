"""Heuristic risk predictions from dosha profile, lifestyle and BMI.

The rules form a fixed, ordered decision table. Every rule whose guard holds
contributes one finding; findings are not de-duplicated. Output is sorted by
probability (highest first) and ties keep table order, so the table order is
part of the contract.

Probabilities are heuristic scores, not calibrated statistics. They are
clamped to [0, 1] after the rule formula.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ayush.domains.health.domain_logic.assessment_models import (
    ConstitutionProfile,
    HealthAttributes,
    LifestyleAttributes,
    RiskFinding,
    Severity,
    effective_exercise_frequency,
)


@dataclass(frozen=True)
class RiskInputs:
    """Everything a rule may read, with BMI computed once."""

    profile: ConstitutionProfile
    lifestyle: LifestyleAttributes
    attrs: HealthAttributes
    bmi: float
    exercise_frequency: str


@dataclass(frozen=True)
class RiskRule:
    disease: str
    ayush_system: str
    guard: Callable[[RiskInputs], bool]
    probability: Callable[[RiskInputs], float]
    severity: Callable[[RiskInputs], Severity]
    recommendations: tuple[str, ...]


def _fixed(severity: Severity) -> Callable[[RiskInputs], Severity]:
    return lambda _: severity


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Decision table (evaluation order matters)
# ---------------------------------------------------------------------------

RISK_RULES: tuple[RiskRule, ...] = (
    # --- Vata ---
    RiskRule(
        disease="Anxiety & Sleep Disorders",
        ayush_system="Ayurveda",
        guard=lambda r: (
            r.profile.vata > 40
            and r.attrs.stress_level == "high"
            and r.lifestyle.sleep_hours < 6
        ),
        probability=lambda r: 0.65 + r.profile.vata / 200,
        severity=lambda r: "high" if r.profile.vata > 50 else "moderate",
        recommendations=(
            "Practice Vata-pacifying yoga (gentle, grounding poses)",
            "Follow regular meal times with warm, cooked foods",
            "Abhyanga (oil massage) with sesame oil",
            "Meditation and pranayama for stress reduction",
            "Ensure 7-8 hours of sleep",
        ),
    ),
    RiskRule(
        disease="Digestive Irregularity (Vishamagni)",
        ayush_system="Ayurveda",
        guard=lambda r: r.profile.vata > 40 and r.attrs.digestion == "irregular",
        probability=lambda r: 0.55 + r.profile.vata / 250,
        severity=_fixed("moderate"),
        recommendations=(
            "Consume ginger tea before meals",
            "Avoid cold and raw foods",
            "Practice mindful eating",
            "Take Triphala supplement (consult practitioner)",
        ),
    ),
    # --- Pitta ---
    RiskRule(
        disease="Hyperacidity & Inflammatory Conditions",
        ayush_system="Ayurveda",
        guard=lambda r: (
            r.profile.pitta > 40
            and r.attrs.stress_level == "high"
            and r.lifestyle.meal_timing == "irregular"
        ),
        probability=lambda r: 0.60 + r.profile.pitta / 200,
        severity=lambda r: "high" if r.profile.pitta > 50 else "moderate",
        recommendations=(
            "Avoid spicy, fried, and acidic foods",
            "Practice cooling pranayama (Shitali, Sitkari)",
            "Consume cooling foods (cucumber, coconut, coriander)",
            "Avoid excessive sun exposure",
            "Practice stress management techniques",
        ),
    ),
    RiskRule(
        disease="Skin Inflammation & Rashes",
        ayush_system="Ayurveda",
        guard=lambda r: r.profile.pitta > 40 and r.attrs.body_temperature == "warm",
        probability=lambda r: 0.45 + r.profile.pitta / 250,
        severity=_fixed("moderate"),
        recommendations=(
            "Apply cooling herbs like neem and aloe vera",
            "Avoid hot and spicy foods",
            "Practice yoga in cooler hours",
            "Stay hydrated with room temperature water",
        ),
    ),
    # --- Kapha ---
    RiskRule(
        disease="Metabolic Syndrome Risk",
        ayush_system="Ayurveda & Yoga",
        guard=lambda r: (
            r.profile.kapha > 40 and r.bmi > 25 and r.exercise_frequency == "rarely"
        ),
        probability=lambda r: 0.55 + r.profile.kapha / 200 + (r.bmi - 25) / 50,
        severity=lambda r: "high" if r.bmi > 30 else "moderate",
        recommendations=(
            "Daily exercise (minimum 30 minutes)",
            "Avoid heavy, oily, and sweet foods",
            "Practice vigorous yoga styles (Surya Namaskar)",
            "Consume warm water with honey and lemon",
            "Include more vegetables and reduce dairy",
        ),
    ),
    RiskRule(
        disease="Sluggish Digestion & Water Retention",
        ayush_system="Ayurveda & Naturopathy",
        guard=lambda r: (
            r.profile.kapha > 40
            and r.attrs.digestion == "slow"
            and r.lifestyle.water_intake == "low"
        ),
        probability=lambda r: 0.50 + r.profile.kapha / 250,
        severity=_fixed("moderate"),
        recommendations=(
            "Increase water intake (warm water preferred)",
            "Consume light, warm meals",
            "Practice Kapalabhati pranayama",
            "Add ginger, black pepper to diet",
            "Avoid sleeping during day",
        ),
    ),
    # --- Lifestyle ---
    RiskRule(
        disease="Digital Eye Strain & Mental Fatigue",
        ayush_system="Yoga & Naturopathy",
        guard=lambda r: r.lifestyle.screen_time > 8 and r.attrs.stress_level == "high",
        probability=lambda r: 0.70,
        severity=_fixed("moderate"),
        recommendations=(
            "Practice Trataka (candle gazing) for eye health",
            "Follow 20-20-20 rule (every 20 min, look 20 feet away for 20 sec)",
            "Eye exercises and palming",
            "Reduce screen time before bed",
            "Use rose water eye drops (natural)",
        ),
    ),
    RiskRule(
        disease="Sleep Deprivation Syndrome",
        ayush_system="Ayurveda & Yoga",
        guard=lambda r: r.lifestyle.sleep_hours < 6,
        probability=lambda r: 0.75,
        severity=lambda r: "high" if r.lifestyle.sleep_hours < 5 else "moderate",
        recommendations=(
            "Establish consistent sleep schedule",
            "Practice Yoga Nidra before bed",
            "Avoid caffeine after 3 PM",
            "Create dark, cool sleeping environment",
            "Massage feet with warm oil before sleep",
        ),
    ),
    RiskRule(
        disease="Chronic Stress & Burnout Risk",
        ayush_system="Yoga & Ayurveda",
        guard=lambda r: (
            r.lifestyle.stress_management == "none" and r.attrs.stress_level == "high"
        ),
        probability=lambda r: 0.68,
        severity=_fixed("high"),
        recommendations=(
            "Start daily meditation practice (10-15 minutes)",
            "Practice pranayama (Anulom Vilom, Bhramari)",
            "Consider Ashwagandha supplementation (consult practitioner)",
            "Regular yoga practice",
            "Maintain work-life balance",
        ),
    ),
    # --- Homeopathic ---
    RiskRule(
        disease="Constitutional Weakness",
        ayush_system="Homeopathy & Ayurveda",
        guard=lambda r: r.attrs.energy_level == "variable" and r.profile.vata > 35,
        probability=lambda r: 0.50,
        severity=_fixed("low"),
        recommendations=(
            "Constitutional homeopathic remedy (consult homeopath)",
            "Regular meal times",
            "Adequate rest and recovery",
            "Avoid over-exertion",
            "Consider Chyawanprash for immunity",
        ),
    ),
)


def predict_risks(
    profile: ConstitutionProfile,
    lifestyle: LifestyleAttributes,
    attrs: HealthAttributes,
) -> list[RiskFinding]:
    """Evaluate every rule and return the findings, highest probability first."""
    inputs = RiskInputs(
        profile=profile,
        lifestyle=lifestyle,
        attrs=attrs,
        bmi=attrs.bmi,
        exercise_frequency=effective_exercise_frequency(lifestyle, attrs),
    )

    findings = [
        RiskFinding(
            disease=rule.disease,
            probability=_clamp(rule.probability(inputs)),
            severity=rule.severity(inputs),
            ayush_system=rule.ayush_system,
            recommendations=rule.recommendations,
        )
        for rule in RISK_RULES
        if rule.guard(inputs)
    ]
    # list.sort is stable, also with reverse=True
    findings.sort(key=lambda f: f.probability, reverse=True)
    return findings
