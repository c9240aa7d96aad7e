"""Questionnaire inputs and derived assessment results.

Inputs and profiles validate on construction, so any ``HealthAttributes``,
``LifestyleAttributes`` or ``ConstitutionProfile`` instance that exists is
inside its declared domain.
The scoring functions rely on that and never re-check.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, get_args

# ---------------------------------------------------------------------------
# Closed categorical domains
# ---------------------------------------------------------------------------

BodyTemperature = Literal["cold", "neutral", "warm"]
Digestion = Literal["irregular", "strong", "slow"]
SleepPattern = Literal["light", "moderate", "deep"]
EnergyLevel = Literal["variable", "high", "steady"]
SkinType = Literal["dry", "oily", "normal"]
StressLevel = Literal["high", "moderate", "low"]
ExerciseFrequency = Literal["daily", "weekly", "rarely"]

Diet = Literal["vegetarian", "non-vegetarian", "vegan"]
MealTiming = Literal["regular", "irregular"]
WaterIntake = Literal["low", "moderate", "high"]
StressManagement = Literal["yoga", "meditation", "none", "other"]

Severity = Literal["low", "moderate", "high"]

# camelCase keys sent by the web client -> attribute names
_CAMEL_ALIASES = {
    "bodyTemperature": "body_temperature",
    "sleepPattern": "sleep_pattern",
    "energyLevel": "energy_level",
    "skinType": "skin_type",
    "stressLevel": "stress_level",
    "exerciseFrequency": "exercise_frequency",
    "mealTiming": "meal_timing",
    "waterIntake": "water_intake",
    "sleepHours": "sleep_hours",
    "exerciseMinutes": "exercise_minutes",
    "stressManagement": "stress_management",
    "screenTime": "screen_time",
}


class AssessmentInputError(ValueError):
    """Raised when questionnaire input falls outside its declared domain."""


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _check_choice(name: str, value: Any, domain: Any) -> None:
    allowed = get_args(domain)
    if value not in allowed:
        raise AssessmentInputError(
            f"{name} must be one of: {' | '.join(allowed)} (got {value!r})"
        )


def _check_number(name: str, value: Any, *, positive: bool, integer: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AssessmentInputError(f"{name} must be a number (got {value!r})")
    if integer and not isinstance(value, int):
        raise AssessmentInputError(f"{name} must be a whole number (got {value!r})")
    if not math.isfinite(value):
        raise AssessmentInputError(f"{name} must be finite (got {value!r})")
    if positive and value <= 0:
        raise AssessmentInputError(f"{name} must be greater than zero (got {value!r})")
    if not positive and value < 0:
        raise AssessmentInputError(f"{name} must not be negative (got {value!r})")


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    if not isinstance(data, Mapping):
        raise AssessmentInputError(f"Expected an object, got {type(data).__name__}")
    return {_CAMEL_ALIASES.get(key, key): value for key, value in data.items()}


def _require(data: dict[str, Any], names: tuple[str, ...]) -> None:
    missing = [name for name in names if data.get(name) is None]
    if missing:
        raise AssessmentInputError(f"Missing required fields: {', '.join(missing)}")


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HealthAttributes:
    """Answers to the constitution questionnaire."""

    age: int
    weight: float                        # kg
    height: float                        # cm
    body_temperature: BodyTemperature
    digestion: Digestion
    sleep_pattern: SleepPattern
    energy_level: EnergyLevel
    skin_type: SkinType
    stress_level: StressLevel
    exercise_frequency: ExerciseFrequency

    _FIELDS = (
        "age", "weight", "height", "body_temperature", "digestion",
        "sleep_pattern", "energy_level", "skin_type", "stress_level",
        "exercise_frequency",
    )

    def __post_init__(self) -> None:
        _check_number("age", self.age, positive=True, integer=True)
        _check_number("weight", self.weight, positive=True)
        _check_number("height", self.height, positive=True)
        _check_choice("body_temperature", self.body_temperature, BodyTemperature)
        _check_choice("digestion", self.digestion, Digestion)
        _check_choice("sleep_pattern", self.sleep_pattern, SleepPattern)
        _check_choice("energy_level", self.energy_level, EnergyLevel)
        _check_choice("skin_type", self.skin_type, SkinType)
        _check_choice("stress_level", self.stress_level, StressLevel)
        _check_choice("exercise_frequency", self.exercise_frequency, ExerciseFrequency)

    @property
    def bmi(self) -> float:
        """Body mass index, kg / m^2."""
        return self.weight / (self.height / 100) ** 2

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HealthAttributes:
        """Parse a questionnaire payload (snake_case or camelCase keys)."""
        values = _normalize_keys(data)
        _require(values, cls._FIELDS)
        return cls(**{name: values[name] for name in cls._FIELDS})

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self._FIELDS}


@dataclass(frozen=True)
class LifestyleAttributes:
    """Answers to the lifestyle questionnaire.

    ``exercise_frequency`` is optional here; when it is ``None`` the value
    collected with the health attributes applies.
    """

    diet: Diet
    meal_timing: MealTiming
    water_intake: WaterIntake
    sleep_hours: float
    exercise_minutes: int
    stress_management: StressManagement
    screen_time: float                   # hours per day
    exercise_frequency: ExerciseFrequency | None = None

    _FIELDS = (
        "diet", "meal_timing", "water_intake", "sleep_hours",
        "exercise_minutes", "stress_management", "screen_time",
    )

    def __post_init__(self) -> None:
        _check_choice("diet", self.diet, Diet)
        _check_choice("meal_timing", self.meal_timing, MealTiming)
        _check_choice("water_intake", self.water_intake, WaterIntake)
        _check_number("sleep_hours", self.sleep_hours, positive=False)
        _check_number("exercise_minutes", self.exercise_minutes, positive=False, integer=True)
        _check_choice("stress_management", self.stress_management, StressManagement)
        _check_number("screen_time", self.screen_time, positive=False)
        if self.exercise_frequency is not None:
            _check_choice("exercise_frequency", self.exercise_frequency, ExerciseFrequency)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LifestyleAttributes:
        """Parse a lifestyle payload (snake_case or camelCase keys)."""
        values = _normalize_keys(data)
        _require(values, cls._FIELDS)
        return cls(
            **{name: values[name] for name in cls._FIELDS},
            exercise_frequency=values.get("exercise_frequency"),
        )

    def to_dict(self) -> dict[str, Any]:
        result = {name: getattr(self, name) for name in self._FIELDS}
        if self.exercise_frequency is not None:
            result["exercise_frequency"] = self.exercise_frequency
        return result


def effective_exercise_frequency(
    lifestyle: LifestyleAttributes, attrs: HealthAttributes
) -> ExerciseFrequency:
    """Exercise frequency for the lifestyle rules: lifestyle answer, else health answer."""
    return lifestyle.exercise_frequency or attrs.exercise_frequency


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConstitutionProfile:
    """Dosha percentages. Always sums to exactly 100."""

    vata: int
    pitta: int
    kapha: int

    _FIELDS = ("vata", "pitta", "kapha")

    def __post_init__(self) -> None:
        for name in self._FIELDS:
            _check_number(name, getattr(self, name), positive=False, integer=True)
        if self.vata + self.pitta + self.kapha != 100:
            raise AssessmentInputError("Dosha scores must sum to 100")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConstitutionProfile:
        """Rehydrate stored scores."""
        if not isinstance(data, Mapping):
            raise AssessmentInputError(f"Expected an object, got {type(data).__name__}")
        _require(data, cls._FIELDS)
        return cls(**{name: data[name] for name in cls._FIELDS})

    def to_dict(self) -> dict[str, int]:
        return {"vata": self.vata, "pitta": self.pitta, "kapha": self.kapha}


@dataclass(frozen=True)
class RiskFinding:
    """One heuristic risk prediction produced by a single rule."""

    disease: str
    probability: float                   # heuristic score in [0, 1]
    severity: Severity
    ayush_system: str
    recommendations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "disease": self.disease,
            "probability": self.probability,
            "severity": self.severity,
            "ayush_system": self.ayush_system,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class RiskFactor:
    """A single contributing term of the lifestyle risk score."""

    factor: str
    impact: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"factor": self.factor, "impact": self.impact, "score": self.score}


@dataclass(frozen=True)
class LifestyleRiskReport:
    """Aggregate lifestyle risk and its ranked contributing factors."""

    overall_risk: float                  # clamped to [0, 100]
    risk_factors: tuple[RiskFactor, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_risk": self.overall_risk,
            "risk_factors": [f.to_dict() for f in self.risk_factors],
        }
