"""
Liver disease severity: MELD, MELD-Na and lab-driven Child-Pugh selection.

MELD (UNOS variant)::

    bilirubin, INR, creatinine floored at 1.0
    bilirubin, creatinine capped at 4.0 (creatinine = 4.0 on dialysis)
    MELD = round(3.78 ln(bili) + 11.2 ln(INR) + 9.57 ln(creat) + 6.43)

MELD-Na, with sodium clamped to 125-137 mEq/L::

    MELD-Na = MELD + 1.32 (137 - Na) - 0.033 MELD (137 - Na)

The mortality band is chosen from the unrounded MELD-Na; only the displayed
score is rounded.

``child_pugh_selection`` maps laboratory values to the option slugs of the
``child_pugh`` instrument so that the point score is computed by the same
evaluator as every other table.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from pydantic import BaseModel, ConfigDict

from clinical_scores.models.instrument import ScoreInstrument
from clinical_scores.scoring.selection import FactorSelection
from clinical_scores.scoring.tiers import find_band

log = logging.getLogger(__name__)

# Accepted input ranges (inclusive).
BILIRUBIN_RANGE  = (0.0, 50.0)     # mg/dL
INR_RANGE        = (0.8, 10.0)
CREATININE_RANGE = (0.5, 15.0)     # mg/dL
SODIUM_RANGE     = (120.0, 160.0)  # mEq/L
ALBUMIN_RANGE    = (1.0, 6.0)      # g/dL

ASCITES_GRADES        = ("none", "mild", "moderate_to_severe")
ENCEPHALOPATHY_GRADES = ("none", "grade_1_2", "grade_3_4")


class MeldBand(BaseModel):
    """MELD-Na band with 3-month mortality and transplant priority."""

    model_config = ConfigDict(frozen=True)

    min_score: int
    mortality_3_month: str
    transplant_priority: str
    interpretation: str
    recommendations: tuple[str, ...]


_ROUTINE = (
    "Regular outpatient follow-up",
    "Screen for complications",
    "Optimise treatment of the underlying liver disease",
    "Vaccinations as recommended",
)
_TRANSPLANT_EVAL = (
    "Liver transplant evaluation",
    "Follow-up in a specialist centre",
    "Proactive management of complications",
    "Nutritional support",
)
_URGENT = (
    "Urgent transplant listing",
    "Care in a transplant centre",
    "Intensive management of complications",
    "Multidisciplinary support",
)

MELD_NA_BANDS: tuple[MeldBand, ...] = (
    MeldBand(min_score=0,  mortality_3_month="1.9%",   transplant_priority="Low",
             interpretation="Low mortality risk; compensated cirrhosis.",
             recommendations=_ROUTINE),
    MeldBand(min_score=10, mortality_3_month="6.0%",   transplant_priority="Low to moderate",
             interpretation="Low to moderate risk; regular monitoring required.",
             recommendations=_ROUTINE),
    MeldBand(min_score=15, mortality_3_month="19.6%",  transplant_priority="Moderate",
             interpretation="Moderate risk; consider transplant evaluation.",
             recommendations=_TRANSPLANT_EVAL),
    MeldBand(min_score=20, mortality_3_month="76.0%",  transplant_priority="High",
             interpretation="High mortality risk; transplant indicated.",
             recommendations=_URGENT),
    MeldBand(min_score=25, mortality_3_month=">76.0%", transplant_priority="Very high",
             interpretation="Very high risk; urgent transplant required.",
             recommendations=_URGENT),
)


def _check_range(name: str, value: float, bounds: tuple[float, float], unit: str = "") -> None:
    lo, hi = bounds
    if not lo <= value <= hi:
        suffix = f" {unit}" if unit else ""
        raise ValueError(f"{name} must be between {lo} and {hi}{suffix}, got {value}.")


# ── MELD ──────────────────────────────────────────────────────────────────────

def meld(
    bilirubin: float,
    inr: float,
    creatinine: float,
    on_dialysis: bool = False,
) -> int:
    """MELD score (integer, typically 6-40).

    Raises:
        ValueError: If any input is outside its accepted range.
    """
    _check_range("Bilirubin", bilirubin, BILIRUBIN_RANGE, "mg/dL")
    _check_range("INR", inr, INR_RANGE)
    _check_range("Creatinine", creatinine, CREATININE_RANGE, "mg/dL")

    bili = min(max(bilirubin, 1.0), 4.0)
    inr_c = max(inr, 1.0)
    creat = 4.0 if on_dialysis else min(max(creatinine, 1.0), 4.0)

    score = (
        3.78 * math.log(bili)
        + 11.2 * math.log(inr_c)
        + 9.57 * math.log(creat)
        + 6.43
    )
    return round(score)


def meld_na_raw(
    bilirubin: float,
    inr: float,
    creatinine: float,
    sodium: float,
    on_dialysis: bool = False,
) -> float:
    """Unrounded MELD-Na, built on the rounded MELD.

    Mortality bands are looked up on this value; a raw 14.78 belongs to the
    10-14 band even though it displays as 15.

    Raises:
        ValueError: If any input is outside its accepted range.
    """
    _check_range("Sodium", sodium, SODIUM_RANGE, "mEq/L")
    base = meld(bilirubin, inr, creatinine, on_dialysis=on_dialysis)
    na = max(125.0, min(sodium, 137.0))
    score = base + 1.32 * (137 - na) - 0.033 * base * (137 - na)
    log.debug("MELD=%s MELD-Na=%.3f (Na=%s, dialysis=%s)", base, score, sodium, on_dialysis)
    return score


def meld_na(
    bilirubin: float,
    inr: float,
    creatinine: float,
    sodium: float,
    on_dialysis: bool = False,
) -> int:
    """MELD-Na rounded for display."""
    return round(meld_na_raw(bilirubin, inr, creatinine, sodium, on_dialysis=on_dialysis))


def classify_meld_na(score: float) -> MeldBand:
    """Mortality band for an unrounded MELD-Na score (negatives are rejected)."""
    if score < 0:
        raise ValueError(f"MELD-Na must be >= 0, got {score}.")
    return find_band(MELD_NA_BANDS, score, lambda b: b.min_score)


# ── Child-Pugh ────────────────────────────────────────────────────────────────

def _bilirubin_option(v: float) -> str:
    if v < 2:
        return "bilirubin_below_2"
    if v <= 3:
        return "bilirubin_2_to_3"
    return "bilirubin_over_3"


def _albumin_option(v: float) -> str:
    if v > 3.5:
        return "albumin_over_3_5"
    if v >= 2.8:
        return "albumin_2_8_to_3_5"
    return "albumin_below_2_8"


def _inr_option(v: float) -> str:
    if v < 1.7:
        return "inr_below_1_7"
    if v <= 2.3:
        return "inr_1_7_to_2_3"
    return "inr_over_2_3"


def child_pugh_selection(
    instrument: ScoreInstrument,
    bilirubin: float,
    albumin: float,
    inr: float,
    ascites: str = "none",
    encephalopathy: str = "none",
    selection: Optional[FactorSelection] = None,
) -> FactorSelection:
    """Fill a Child-Pugh selection from laboratory values and clinical grades.

    Args:
        instrument:     The ``child_pugh`` instrument.
        bilirubin:      Total bilirubin, mg/dL.
        albumin:        Serum albumin, g/dL.
        inr:            International normalised ratio.
        ascites:        One of ``ASCITES_GRADES``.
        encephalopathy: One of ``ENCEPHALOPATHY_GRADES``.
        selection:      Existing selection to update; a new one when omitted.

    Raises:
        ValueError: If a value is out of range or a grade is unknown.
    """
    _check_range("Bilirubin", bilirubin, BILIRUBIN_RANGE, "mg/dL")
    _check_range("Albumin", albumin, ALBUMIN_RANGE, "g/dL")
    _check_range("INR", inr, INR_RANGE)
    if ascites not in ASCITES_GRADES:
        raise ValueError(f"Ascites must be one of {list(ASCITES_GRADES)}, got '{ascites}'.")
    if encephalopathy not in ENCEPHALOPATHY_GRADES:
        raise ValueError(
            f"Encephalopathy must be one of {list(ENCEPHALOPATHY_GRADES)}, got '{encephalopathy}'."
        )

    if selection is None:
        selection = FactorSelection(instrument)
    selection.choose("bilirubin", _bilirubin_option(bilirubin))
    selection.choose("albumin", _albumin_option(albumin))
    selection.choose("inr", _inr_option(inr))
    selection.choose("ascites", f"ascites_{ascites}")
    selection.choose("encephalopathy", f"encephalopathy_{encephalopathy}")
    return selection
