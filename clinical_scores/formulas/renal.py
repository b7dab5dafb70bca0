"""
Renal function: CKD-EPI 2021 eGFR, KDIGO GFR categories and KDIGO AKI staging.

    eGFR = 142 * min(Scr/K, 1)^alpha * max(Scr/K, 1)^-1.200 * 0.9938^age
           (* 1.012 if female)

    K     = 0.7 (female) / 0.9 (male)
    alpha = -0.241 (female) / -0.302 (male)

The race-free 2021 refit; creatinine in mg/dL, result in mL/min/1.73 m2.

AKI staging takes the higher of two criteria:

    creatinine   stage 1: rise >= 0.3 mg/dL or ratio >= 1.5
                 stage 2: ratio >= 2.0
                 stage 3: ratio >= 3.0 or Scr >= 4.0 mg/dL
    urine output stage 1: < 0.5 mL/kg/h for 6 h
                 stage 2: < 0.5 mL/kg/h for 12 h
                 stage 3: < 0.3 mL/kg/h for 24 h, or anuria for 12 h

Without a known baseline creatinine, one is back-calculated from MDRD at an
assumed eGFR of 75 mL/min/1.73 m2.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from clinical_scores.scoring.tiers import find_band
from clinical_scores.taxonomy.risk_taxonomy import RiskLevel

log = logging.getLogger(__name__)

AGE_RANGE = (1, 200)
CREATININE_MAX = 100.0

# AKI form bounds (inclusive).
AKI_CREATININE_RANGE = (0.1, 30.0)   # mg/dL
AKI_URINE_RANGE      = (0.0, 10000.0)  # mL collected
AKI_WEIGHT_RANGE     = (30.0, 300.0)   # kg
AKI_AGE_RANGE        = (18, 120)
URINE_PERIODS_H      = (6, 12, 24)


class Sex(StrEnum):
    FEMALE = "female"
    MALE = "male"


class GfrStage(BaseModel):
    """One KDIGO GFR category."""

    model_config = ConfigDict(frozen=True)

    code: str
    min_gfr: float
    label: str
    risk_level: RiskLevel


GFR_STAGES: tuple[GfrStage, ...] = (
    GfrStage(code="G5",  min_gfr=0,  label="Kidney failure",                  risk_level="very_high"),
    GfrStage(code="G4",  min_gfr=15, label="Severely decreased",              risk_level="high"),
    GfrStage(code="G3b", min_gfr=30, label="Moderately to severely decreased", risk_level="moderate"),
    GfrStage(code="G3a", min_gfr=45, label="Mildly to moderately decreased",  risk_level="moderate"),
    GfrStage(code="G2",  min_gfr=60, label="Mildly decreased",                risk_level="low"),
    GfrStage(code="G1",  min_gfr=90, label="Normal or high",                  risk_level="minimal"),
)


def egfr_ckd_epi_2021(age: int, sex: Sex | str, creatinine_mg_dl: float) -> float:
    """Estimated GFR (mL/min/1.73 m2), rounded to 2 decimals.

    Raises:
        ValueError: If ``age`` is outside 1-200 years, ``sex`` is not
            ``"female"``/``"male"``, or creatinine is not in (0, 100] mg/dL.
    """
    sex = Sex(sex)
    if not AGE_RANGE[0] <= age <= AGE_RANGE[1]:
        raise ValueError(f"Age must be between {AGE_RANGE[0]} and {AGE_RANGE[1]} years, got {age}.")
    if not 0 < creatinine_mg_dl <= CREATININE_MAX:
        raise ValueError(
            f"Creatinine must be > 0 and <= {CREATININE_MAX} mg/dL, got {creatinine_mg_dl}."
        )

    female = sex is Sex.FEMALE
    k = 0.7 if female else 0.9
    alpha = -0.241 if female else -0.302

    ratio = creatinine_mg_dl / k
    gfr = (
        142
        * min(ratio, 1.0) ** alpha
        * max(ratio, 1.0) ** -1.200
        * 0.9938 ** age
    )
    if female:
        gfr *= 1.012

    result = round(gfr, 2)
    log.debug("eGFR age=%s sex=%s scr=%s -> %s", age, sex, creatinine_mg_dl, result)
    return result


def classify_gfr(egfr: float) -> GfrStage:
    """KDIGO category for ``egfr``.

    Raises:
        ValueError: If ``egfr`` is negative.
    """
    if egfr < 0:
        raise ValueError(f"eGFR must be >= 0, got {egfr}.")
    return find_band(GFR_STAGES, egfr, lambda s: s.min_gfr)


# ── Acute kidney injury (KDIGO) ───────────────────────────────────────────────


class AkiStage(BaseModel):
    """One KDIGO AKI stage (0 = no AKI) with its management bundle."""

    model_config = ConfigDict(frozen=True)

    stage: int
    label: str
    risk_level: RiskLevel
    prognosis: str
    recommendations: tuple[str, ...]
    monitoring: tuple[str, ...]


class AkiAssessment(BaseModel):
    """Result of ``kdigo_aki_stage``; ``stage`` is the higher of both criteria."""

    model_config = ConfigDict(frozen=True)

    current_creatinine: float
    baseline_creatinine: float
    baseline_estimated: bool
    creatinine_ratio: float
    creatinine_rise: float
    creatinine_stage: int
    urine_rate: Optional[float] = None
    urine_hours: Optional[int] = None
    urine_stage: int = 0
    stage: AkiStage


_BASE_MONITORING = (
    "Daily serum creatinine",
    "Hourly urine output",
    "Fluid balance",
    "Electrolytes (Na, K, Cl, HCO3)",
    "Medication review",
)
_STAGE_2_MONITORING = _BASE_MONITORING + (
    "Arterial blood gas",
    "Phosphate and calcium",
    "Full blood count",
    "Renal ultrasound if indicated",
)

AKI_STAGES: tuple[AkiStage, ...] = (
    AkiStage(
        stage=0, label="No AKI", risk_level="minimal",
        prognosis="Normal renal function; excellent prognosis.",
        recommendations=(
            "Continue routine monitoring",
            "Maintain adequate hydration",
            "Avoid nephrotoxins when possible",
        ),
        monitoring=_BASE_MONITORING,
    ),
    AkiStage(
        stage=1, label="Stage 1", risk_level="moderate",
        prognosis="Mild AKI; good chance of recovery with adequate treatment.",
        recommendations=(
            "Identify and treat reversible causes",
            "Optimise volume status and renal perfusion",
            "Stop nephrotoxic medication",
            "Monitor creatinine and urine output daily",
            "Consider nephrology consultation",
        ),
        monitoring=_BASE_MONITORING,
    ),
    AkiStage(
        stage=2, label="Stage 2", risk_level="high",
        prognosis="Moderate AKI; recovery possible but intensive care is required.",
        recommendations=(
            "Urgent nephrology consultation",
            "Intensive search for reversible causes",
            "Strict fluid balance monitoring",
            "Adjust medication doses",
            "Consider kidney injury biomarkers",
        ),
        monitoring=_STAGE_2_MONITORING,
    ),
    AkiStage(
        stage=3, label="Stage 3", risk_level="very_high",
        prognosis="Severe AKI; high risk of dialysis and death.",
        recommendations=(
            "Immediate nephrology consultation",
            "Consider renal replacement therapy",
            "ICU monitoring if required",
            "Strict control of electrolytes and acidaemia",
            "Prepare for dialysis if indicated",
        ),
        monitoring=_STAGE_2_MONITORING + (
            "Prepare vascular access",
            "Dialysis assessment",
            "Continuous cardiac monitoring",
        ),
    ),
)

# (lower bound of current / baseline, stage)
_CREATININE_RATIO_STAGES: tuple[tuple[float, int], ...] = (
    (0.0, 0),
    (1.5, 1),
    (2.0, 2),
    (3.0, 3),
)


def _check_range(name: str, value: float, bounds: tuple[float, float], unit: str) -> None:
    lo, hi = bounds
    if not lo <= value <= hi:
        raise ValueError(f"{name} must be between {lo} and {hi} {unit}, got {value}.")


def estimate_baseline_creatinine(age: int, sex: Sex | str, black: bool = False) -> float:
    """Baseline creatinine (mg/dL) that gives an MDRD eGFR of 75, rounded to 2 dp.

    Raises:
        ValueError: If ``age`` is outside 18-120 years or ``sex`` is unknown.
    """
    sex = Sex(sex)
    _check_range("Age", age, AKI_AGE_RANGE, "years")
    # 75 = factor * Scr^-1.154
    factor = 175 * age ** -0.203
    if sex is Sex.FEMALE:
        factor *= 0.742
    if black:
        factor *= 1.212
    return round((75 / factor) ** (-1 / 1.154), 2)


def _creatinine_stage(current: float, baseline: float) -> int:
    # Rounded so that 1.2 - 0.9 counts as a 0.3 rise.
    ratio = round(current / baseline, 4)
    stage = find_band(_CREATININE_RATIO_STAGES, ratio, lambda b: b[0])[1]
    if round(current - baseline, 4) >= 0.3:
        stage = max(stage, 1)
    if current >= 4.0:
        stage = 3
    return stage


def _urine_stage(rate: float, hours: int) -> int:
    if hours >= 24 and rate < 0.3:
        return 3
    if hours >= 12 and rate == 0:
        return 3
    if rate >= 0.5:
        return 0
    return 2 if hours >= 12 else 1


def kdigo_aki_stage(
    current_creatinine: float,
    baseline_creatinine: Optional[float] = None,
    *,
    age: Optional[int] = None,
    sex: Sex | str | None = None,
    black: bool = False,
    urine_output_ml: Optional[float] = None,
    weight_kg: Optional[float] = None,
    urine_hours: Optional[int] = None,
) -> AkiAssessment:
    """Stage acute kidney injury by the KDIGO creatinine and urine criteria.

    Args:
        current_creatinine:  Serum creatinine now, mg/dL.
        baseline_creatinine: Known baseline, mg/dL. When omitted, ``age`` and
                             ``sex`` (and optionally ``black``) are required
                             to estimate it.
        urine_output_ml:     Urine collected over ``urine_hours``. The urine
                             criterion is skipped when omitted; when given,
                             ``weight_kg`` and ``urine_hours`` are required.
        urine_hours:         Collection period, one of 6, 12 or 24.

    Raises:
        ValueError: If a value is out of range or a required input is missing.
    """
    _check_range("Current creatinine", current_creatinine, AKI_CREATININE_RANGE, "mg/dL")

    estimated = baseline_creatinine is None
    if estimated:
        if age is None or sex is None:
            raise ValueError("Age and sex are required to estimate baseline creatinine.")
        baseline_creatinine = estimate_baseline_creatinine(age, sex, black)
    else:
        _check_range("Baseline creatinine", baseline_creatinine, AKI_CREATININE_RANGE, "mg/dL")

    creatinine_stage = _creatinine_stage(current_creatinine, baseline_creatinine)

    rate: Optional[float] = None
    urine_stage = 0
    if urine_output_ml is not None:
        _check_range("Urine output", urine_output_ml, AKI_URINE_RANGE, "mL")
        if weight_kg is None:
            raise ValueError("Weight is required to assess urine output.")
        _check_range("Weight", weight_kg, AKI_WEIGHT_RANGE, "kg")
        if urine_hours not in URINE_PERIODS_H:
            raise ValueError(
                f"Urine collection period must be one of {list(URINE_PERIODS_H)} h, "
                f"got {urine_hours}."
            )
        rate = urine_output_ml / (weight_kg * urine_hours)
        urine_stage = _urine_stage(rate, urine_hours)

    final = AKI_STAGES[max(creatinine_stage, urine_stage)]
    log.debug(
        "AKI scr=%s baseline=%s (estimated=%s) urine=%s -> creat %s, urine %s, final %s",
        current_creatinine, baseline_creatinine, estimated, rate,
        creatinine_stage, urine_stage, final.stage,
    )
    return AkiAssessment(
        current_creatinine=current_creatinine,
        baseline_creatinine=baseline_creatinine,
        baseline_estimated=estimated,
        creatinine_ratio=current_creatinine / baseline_creatinine,
        creatinine_rise=current_creatinine - baseline_creatinine,
        creatinine_stage=creatinine_stage,
        urine_rate=rate,
        urine_hours=urine_hours if rate is not None else None,
        urine_stage=urine_stage,
        stage=final,
    )
