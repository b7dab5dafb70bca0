"""Tests for corticosteroid and opioid dose equivalence.

Expected doses follow directly from the equivalence tables:
prednisone 5 mg = dexamethasone 0.75 mg = hydrocortisone 20 mg, and
oral morphine 10 mg = oral oxycodone 6.7 mg = IV morphine 3 mg.
"""

from __future__ import annotations

import pytest

from clinical_scores.formulas.conversions import (
    CORTICOSTEROIDS,
    OPIOIDS,
    Route,
    convert_corticosteroid,
    convert_opioid,
)


class TestCorticosteroids:
    def test_prednisone_to_dexamethasone(self):
        conv = convert_corticosteroid(40, "prednisone", "dexamethasone")
        assert conv.converted_dose == pytest.approx(6.0)
        assert conv.factor == pytest.approx(0.15)
        assert any("long-acting" in w for w in conv.warnings)
        assert any("higher anti-inflammatory potency" in n for n in conv.notes)

    def test_hydrocortisone_to_prednisolone(self):
        conv = convert_corticosteroid(100, "hydrocortisone", "prednisolone")
        assert conv.converted_dose == pytest.approx(25.0)
        assert "Mineralocorticoid activity: high -> moderate" in conv.notes
        assert not any("fludrocortisone" in w for w in conv.warnings)

    def test_hydrocortisone_to_dexamethasone_warns_about_mineralocorticoid_loss(self):
        conv = convert_corticosteroid(100, "hydrocortisone", "dexamethasone")
        assert any("fludrocortisone" in w for w in conv.warnings)

    def test_conversion_is_reversible(self):
        there = convert_corticosteroid(16, "methylprednisolone", "prednisone")
        back = convert_corticosteroid(there.converted_dose, "prednisone", "methylprednisolone")
        assert back.converted_dose == pytest.approx(16)

    def test_high_and_low_dose_warnings(self):
        high = convert_corticosteroid(1000, "methylprednisolone", "prednisone")
        assert any("High dose" in w for w in high.warnings)
        low = convert_corticosteroid(4, "prednisone", "dexamethasone")
        assert any("Very low dose" in w for w in low.warnings)

    def test_same_drug_rejected(self):
        with pytest.raises(ValueError, match="must differ"):
            convert_corticosteroid(10, "prednisone", "prednisone")

    @pytest.mark.parametrize("dose", [0, -5, 1001])
    def test_dose_out_of_range(self, dose):
        with pytest.raises(ValueError, match="Dose"):
            convert_corticosteroid(dose, "prednisone", "dexamethasone")

    def test_unknown_drug_lists_valid_slugs(self):
        with pytest.raises(ValueError, match="Unknown corticosteroid 'cortisone'.*prednisone"):
            convert_corticosteroid(10, "cortisone", "prednisone")

    def test_slugs_unique(self):
        slugs = [c.slug for c in CORTICOSTEROIDS]
        assert len(slugs) == len(set(slugs))


class TestOpioids:
    def test_oral_morphine_to_oral_oxycodone(self):
        conv = convert_opioid(30, "morphine", "oral", "oxycodone", "oral")
        assert conv.converted_dose == pytest.approx(20.1)

    def test_oral_to_iv_morphine(self):
        conv = convert_opioid(30, "morphine", "oral", "morphine", "iv")
        assert conv.converted_dose == pytest.approx(10.0)
        assert any("respiratory depression" in w for w in conv.warnings)

    def test_iv_to_oral_morphine(self):
        conv = convert_opioid(10, "morphine", Route.IV, "morphine", Route.ORAL)
        assert conv.converted_dose == pytest.approx(30.0)
        assert "Consider overlapping both routes during the transition" in conv.notes

    def test_fentanyl_to_iv_morphine(self):
        conv = convert_opioid(0.1, "fentanyl", "iv", "morphine", "iv")
        assert conv.converted_dose == pytest.approx(10.0)

    def test_cross_tolerance_warning_between_non_morphine_opioids(self):
        conv = convert_opioid(100, "tramadol", "oral", "oxycodone", "oral")
        assert any("cross-tolerance" in w for w in conv.warnings)
        assert not any("bioavailability difference" in n for n in conv.notes)

    def test_bioavailability_note(self):
        conv = convert_opioid(30, "morphine", "oral", "codeine", "oral")
        assert any("bioavailability difference" in n for n in conv.notes)
        assert any("contraindications" in w for w in conv.warnings)

    def test_methadone_target_warnings(self):
        conv = convert_opioid(60, "morphine", "oral", "methadone", "oral")
        assert any(w.startswith("Methadone") for w in conv.warnings)
        assert "Start low and titrate slowly" in conv.recommendations

    def test_safety_recommendations_always_present(self):
        conv = convert_opioid(30, "morphine", "oral", "hydrocodone", "oral")
        assert "Keep naloxone available" in conv.recommendations

    def test_unavailable_route_rejected(self):
        with pytest.raises(ValueError, match="Codeine is not available by the iv route"):
            convert_opioid(30, "morphine", "oral", "codeine", "iv")

    def test_same_drug_and_route_rejected(self):
        with pytest.raises(ValueError, match="must differ"):
            convert_opioid(10, "morphine", "oral", "morphine", "oral")

    def test_unknown_route_rejected(self):
        with pytest.raises(ValueError):
            convert_opioid(10, "morphine", "subcutaneous", "oxycodone", "oral")

    @pytest.mark.parametrize("dose", [0, 10001])
    def test_dose_out_of_range(self, dose):
        with pytest.raises(ValueError, match="Dose"):
            convert_opioid(dose, "morphine", "oral", "oxycodone", "oral")

    def test_every_opioid_has_a_route(self):
        assert all(o.routes for o in OPIOIDS)
