"""Tests for eGFR (CKD-EPI 2021), MELD / MELD-Na and Child-Pugh lab mapping.

Expected values are computed by hand from the published equations.
"""

from __future__ import annotations

import math

import pytest

from clinical_scores.formulas.hepatic import (
    child_pugh_selection,
    classify_meld_na,
    meld,
    meld_na,
    meld_na_raw,
)
from clinical_scores.formulas.renal import classify_gfr, egfr_ckd_epi_2021
from clinical_scores.scoring.evaluator import evaluate


class TestEgfr:
    def test_male_at_kappa(self):
        # Scr / 0.9 == 1 → both min/max terms are 1.
        expected = round(142 * 0.9938 ** 50, 2)
        assert egfr_ckd_epi_2021(50, "male", 0.9) == expected

    def test_female_below_kappa(self):
        expected = round(142 * (0.5 / 0.7) ** -0.241 * 0.9938 ** 40 * 1.012, 2)
        assert egfr_ckd_epi_2021(40, "female", 0.5) == expected

    def test_male_above_kappa(self):
        expected = round(142 * (2.0 / 0.9) ** -1.2 * 0.9938 ** 70, 2)
        assert egfr_ckd_epi_2021(70, "male", 2.0) == expected

    def test_higher_creatinine_lowers_egfr(self):
        assert egfr_ckd_epi_2021(60, "female", 2.0) < egfr_ckd_epi_2021(60, "female", 1.0)

    @pytest.mark.parametrize(
        "age, sex, scr",
        [(0, "male", 1.0), (201, "male", 1.0), (50, "male", 0), (50, "male", 101), (50, "other", 1.0)],
    )
    def test_out_of_range_rejected(self, age, sex, scr):
        with pytest.raises(ValueError):
            egfr_ckd_epi_2021(age, sex, scr)


class TestGfrStages:
    @pytest.mark.parametrize(
        "egfr, code",
        [(120, "G1"), (90, "G1"), (89.99, "G2"), (60, "G2"), (45, "G3a"),
         (44.9, "G3b"), (30, "G3b"), (15, "G4"), (14.9, "G5"), (0, "G5")],
    )
    def test_kdigo_boundaries(self, egfr, code):
        assert classify_gfr(egfr).code == code

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            classify_gfr(-1)


class TestMeld:
    def test_floor_values_give_minimum(self):
        # All inputs floored to 1.0 → ln terms vanish → round(6.43)
        assert meld(0.5, 0.9, 0.6) == 6

    def test_hand_computed(self):
        expected = round(3.78 * math.log(2.5) + 11.2 * math.log(1.8) + 9.57 * math.log(1.4) + 6.43)
        assert meld(2.5, 1.8, 1.4) == expected == 20

    def test_bilirubin_and_creatinine_capped(self):
        assert meld(20, 1.0, 10) == meld(4.0, 1.0, 4.0)

    def test_dialysis_sets_creatinine_to_four(self):
        assert meld(1.0, 1.0, 1.0, on_dialysis=True) == meld(1.0, 1.0, 4.0)

    def test_meld_na_normal_sodium_equals_meld(self):
        assert meld_na(2.5, 1.8, 1.4, 140) == meld(2.5, 1.8, 1.4)

    def test_meld_na_low_sodium(self):
        base = meld(2.5, 1.8, 1.4)
        expected = round(base + 1.32 * 7 - 0.033 * base * 7)
        assert meld_na(2.5, 1.8, 1.4, 130) == expected

    def test_meld_na_sodium_clamped_at_125(self):
        assert meld_na(2.5, 1.8, 1.4, 120) == meld_na(2.5, 1.8, 1.4, 125)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"bilirubin": 51, "inr": 1, "creatinine": 1},
            {"bilirubin": 1, "inr": 0.7, "creatinine": 1},
            {"bilirubin": 1, "inr": 1, "creatinine": 0.4},
        ],
    )
    def test_out_of_range_rejected(self, kwargs):
        with pytest.raises(ValueError):
            meld(**kwargs)

    def test_sodium_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="Sodium"):
            meld_na(1, 1, 1, 161)


class TestMeldBands:
    @pytest.mark.parametrize(
        "score, mortality",
        [(6, "1.9%"), (10, "6.0%"), (14, "6.0%"), (15, "19.6%"), (20, "76.0%"), (25, ">76.0%"), (40, ">76.0%")],
    )
    def test_band_table(self, score, mortality):
        assert classify_meld_na(score).mortality_3_month == mortality

    def test_band_uses_unrounded_score(self):
        # MELD 13, Na 135: 13 + 2.64 - 0.858 = 14.782, displayed as 15.
        raw = meld_na_raw(1.0, 1.5, 1.2, 135)
        assert raw == pytest.approx(14.782)
        assert meld_na(1.0, 1.5, 1.2, 135) == 15
        assert classify_meld_na(raw).mortality_3_month == "6.0%"

    def test_just_below_twenty_stays_in_moderate_band(self):
        assert classify_meld_na(19.99).mortality_3_month == "19.6%"


class TestChildPughSelection:
    def test_compensated(self, child_pugh):
        sel = child_pugh_selection(child_pugh, bilirubin=1.0, albumin=4.0, inr=1.1)
        result = evaluate(child_pugh, sel)
        assert result.total == 5
        assert result.tier.label == "Class A"
        assert result.is_complete

    def test_boundaries(self, child_pugh):
        sel = child_pugh_selection(
            child_pugh, bilirubin=3.0, albumin=2.8, inr=2.3,
            ascites="mild", encephalopathy="grade_1_2",
        )
        assert sel.selected() == (
            "bilirubin_2_to_3", "albumin_2_8_to_3_5", "inr_1_7_to_2_3",
            "ascites_mild", "encephalopathy_grade_1_2",
        )
        assert evaluate(child_pugh, sel).tier.label == "Class C"

    def test_decompensated(self, child_pugh):
        sel = child_pugh_selection(
            child_pugh, bilirubin=5, albumin=2.0, inr=3.0,
            ascites="moderate_to_severe", encephalopathy="grade_3_4",
        )
        assert evaluate(child_pugh, sel).total == 15

    def test_unknown_grade_rejected(self, child_pugh):
        with pytest.raises(ValueError, match="Ascites"):
            child_pugh_selection(child_pugh, 1.0, 4.0, 1.0, ascites="massive")

    def test_albumin_out_of_range(self, child_pugh):
        with pytest.raises(ValueError, match="Albumin"):
            child_pugh_selection(child_pugh, 1.0, 7.0, 1.0)
