"""Tests for the constitution (dosha) profile calculator."""

from __future__ import annotations

import itertools

import pytest

from ayush.domains.health.domain_logic.assessment_models import ConstitutionProfile
from ayush.domains.health.domain_logic.profile_calculator import (
    DOSHA_DESCRIPTIONS,
    DOSHA_WEIGHTS,
    allocate_percentages,
    compute_profile,
    dominant_dosha,
    dosha_description,
    score_doshas,
)

ALL_VATA = dict(
    body_temperature="cold",
    digestion="irregular",
    sleep_pattern="light",
    energy_level="variable",
    skin_type="dry",
    stress_level="high",
)


class TestScoring:
    def test_all_vata_answers(self, make_attrs):
        attrs = make_attrs(**ALL_VATA)
        assert score_doshas(attrs) == {"vata": 13, "pitta": 0, "kapha": 0}
        assert compute_profile(attrs) == ConstitutionProfile(vata=100, pitta=0, kapha=0)

    def test_mixed_answers(self, make_attrs):
        # vata 2, pitta 3+2+2 = 7, kapha 2+1 = 3
        attrs = make_attrs(
            body_temperature="cold",
            digestion="strong",
            sleep_pattern="deep",
            energy_level="high",
            skin_type="oily",
            stress_level="low",
        )
        assert score_doshas(attrs) == {"vata": 2, "pitta": 7, "kapha": 3}
        # 16.67 / 58.33 / 25.00 -> floors 16/58/25, one leftover to the largest remainder
        assert compute_profile(attrs) == ConstitutionProfile(vata=17, pitta=58, kapha=25)

    def test_numeric_and_exercise_answers_do_not_contribute(self, make_attrs):
        base = compute_profile(make_attrs())
        other = compute_profile(
            make_attrs(age=80, weight=120.0, height=150.0, exercise_frequency="rarely")
        )
        assert base == other

    def test_every_answer_combination_sums_to_100(self, make_attrs):
        attributes = [*DOSHA_WEIGHTS, "exercise_frequency"]
        choices = [*(DOSHA_WEIGHTS[a] for a in DOSHA_WEIGHTS), ("daily", "weekly", "rarely")]
        combinations = list(itertools.product(*choices))
        assert len(combinations) == 2187
        for answers in combinations:
            profile = compute_profile(make_attrs(**dict(zip(attributes, answers))))
            assert profile.vata + profile.pitta + profile.kapha == 100
            assert min(profile.vata, profile.pitta, profile.kapha) >= 0

    def test_deterministic(self, make_attrs):
        attrs = make_attrs(**ALL_VATA)
        assert compute_profile(attrs) == compute_profile(attrs)


class TestAllocation:
    def test_equal_remainders_resolve_in_dosha_order(self):
        assert allocate_percentages({"vata": 1, "pitta": 1, "kapha": 1}) == {
            "vata": 34, "pitta": 33, "kapha": 33,
        }

    def test_leftover_goes_to_largest_remainder(self):
        # 14.29 / 28.57 / 57.14 -> floors 14/28/57, leftover goes to pitta (.57)
        assert allocate_percentages({"vata": 1, "pitta": 2, "kapha": 4}) == {
            "vata": 14, "pitta": 29, "kapha": 57,
        }

    def test_exact_split_has_no_leftover(self):
        assert allocate_percentages({"vata": 1, "pitta": 1, "kapha": 2}) == {
            "vata": 25, "pitta": 25, "kapha": 50,
        }

    def test_empty_score_raises(self):
        with pytest.raises(ValueError):
            allocate_percentages({"vata": 0, "pitta": 0, "kapha": 0})


class TestDominantDosha:
    @pytest.mark.parametrize(
        "scores,expected",
        [
            ((60, 25, 15), "Vata"),
            ((20, 50, 30), "Pitta"),
            ((10, 20, 70), "Kapha"),
            ((40, 40, 20), "Vata"),
            ((20, 40, 40), "Pitta"),
            ((40, 20, 40), "Vata"),
            ((34, 33, 33), "Vata"),
        ],
    )
    def test_dominant(self, scores, expected):
        assert dominant_dosha(ConstitutionProfile(*scores)) == expected

    def test_descriptions(self):
        assert set(DOSHA_DESCRIPTIONS) == {"Vata", "Pitta", "Kapha"}
        assert dosha_description("Pitta").startswith("Pitta governs metabolism")
        assert dosha_description("Unknown") == ""
