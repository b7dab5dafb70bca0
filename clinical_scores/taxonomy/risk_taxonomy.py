"""
Risk taxonomy for clinical scoring instruments.

Two dimensions describe every instrument and every interpretation tier:
  - ``InstrumentCategory`` — the *where*: which clinical domain the score serves.
  - ``RiskLevel``          — the *how bad*: ordered severity of a tier.

``RISK_LEVEL_RANK`` gives ``RiskLevel`` a total order. Tier tables are checked
against it so that a strictly higher score never lands in a strictly
lower-risk tier.

The ``CATEGORY_INSTRUMENT_MAP`` dict is the canonical integrity contract for
the shipped catalog:
  - Every ``InstrumentCategory`` must have an entry.
  - Every shipped instrument slug appears in exactly one category's list.

Run ``tests/test_taxonomy/test_risk_taxonomy.py`` to verify this contract.

This module has NO imports from any other ``clinical_scores`` package.
"""

from enum import StrEnum


class RiskLevel(StrEnum):
    """Ordered severity attached to an interpretation tier."""

    MINIMAL = "minimal"
    """No meaningful risk; no intervention indicated."""

    LOW = "low"
    """Risk present but small; intervention optional or shared decision."""

    MODERATE = "moderate"
    """Intervention usually indicated."""

    HIGH = "high"
    """Intervention clearly indicated; close monitoring."""

    VERY_HIGH = "very_high"
    """Urgent action or specialist care required."""


RISK_LEVEL_RANK: dict[RiskLevel, int] = {
    RiskLevel.MINIMAL:   0,
    RiskLevel.LOW:       1,
    RiskLevel.MODERATE:  2,
    RiskLevel.HIGH:      3,
    RiskLevel.VERY_HIGH: 4,
}


class InstrumentCategory(StrEnum):
    """Clinical domain an instrument belongs to (drives catalog grouping)."""

    THROMBOEMBOLISM = "thromboembolism"
    """Venous thromboembolism prophylaxis and pulmonary embolism probability."""

    CARDIOLOGY = "cardiology"
    """Arrhythmia-related stroke risk."""

    BLEEDING = "bleeding"
    """Bleeding risk under anticoagulation."""

    NEUROLOGY = "neurology"
    """Stroke severity and post-stroke functional outcome."""

    HEPATOLOGY = "hepatology"
    """Cirrhosis severity and transplant prioritisation."""

    NEPHROLOGY = "nephrology"
    """Kidney function staging."""

    PALLIATIVE_CARE = "palliative_care"
    """Functional staging and survival prognosis in palliative care."""


# ── Integrity contract ────────────────────────────────────────────────────────

CATEGORY_INSTRUMENT_MAP: dict[InstrumentCategory, list[str]] = {
    InstrumentCategory.THROMBOEMBOLISM: [
        "padua",
        "caprini",
        "wells_pe",
        "geneva_revised",
        "spesi",
    ],
    InstrumentCategory.CARDIOLOGY: [
        "cha2ds2_vasc",
    ],
    InstrumentCategory.BLEEDING: [
        "improve_bleeding",
    ],
    InstrumentCategory.NEUROLOGY: [
        "nihss",
        "rankin",
    ],
    InstrumentCategory.HEPATOLOGY: [
        "child_pugh",
    ],
    # Formula-only domain (eGFR lives in clinical_scores.formulas.renal)
    InstrumentCategory.NEPHROLOGY: [],
    InstrumentCategory.PALLIATIVE_CARE: [
        "fast",
        "ppi",
        "paliar",
    ],
}
