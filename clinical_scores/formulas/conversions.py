"""
Dose equivalence converters for corticosteroids and opioids.

Corticosteroids are converted through their dose equivalent to 5 mg of
prednisolone::

    converted = dose * target.equivalent_dose / source.equivalent_dose

Opioids are converted through morphine. Oral reference doses are equivalent
to 10 mg oral morphine, IV reference doses to 3 mg IV morphine, and oral
morphine is taken as three times IV morphine::

    morphine = dose / source.equivalent_dose * REF[source_route]
    morphine *= 3 (IV -> oral) or /= 3 (oral -> IV)
    converted = morphine / REF[target_route] * target.equivalent_dose

Both converters return the computed dose together with the clinical notes
and warnings for the pair; they never round the dose.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict

log = logging.getLogger(__name__)

STEROID_DOSE_MAX = 1000.0  # mg
OPIOID_DOSE_MAX = 10000.0  # mg


# ── Corticosteroids ───────────────────────────────────────────────────────────


class Corticosteroid(BaseModel):
    """One corticosteroid; ``equivalent_dose`` is mg equivalent to 5 mg prednisolone."""

    model_config = ConfigDict(frozen=True)

    slug: str
    name: str
    equivalent_dose: float
    half_life: str
    mineralocorticoid_activity: str
    anti_inflammatory_potency: float


CORTICOSTEROIDS: tuple[Corticosteroid, ...] = (
    Corticosteroid(slug="betamethasone", name="Betamethasone", equivalent_dose=0.75,
                   half_life="36-54h", mineralocorticoid_activity="minimal",
                   anti_inflammatory_potency=25),
    Corticosteroid(slug="prednisone", name="Prednisone", equivalent_dose=5,
                   half_life="12-36h", mineralocorticoid_activity="moderate",
                   anti_inflammatory_potency=4),
    Corticosteroid(slug="prednisolone", name="Prednisolone", equivalent_dose=5,
                   half_life="12-36h", mineralocorticoid_activity="moderate",
                   anti_inflammatory_potency=4),
    Corticosteroid(slug="methylprednisolone", name="Methylprednisolone", equivalent_dose=4,
                   half_life="12-36h", mineralocorticoid_activity="minimal",
                   anti_inflammatory_potency=5),
    Corticosteroid(slug="dexamethasone", name="Dexamethasone", equivalent_dose=0.75,
                   half_life="36-54h", mineralocorticoid_activity="minimal",
                   anti_inflammatory_potency=25),
    Corticosteroid(slug="hydrocortisone", name="Hydrocortisone", equivalent_dose=20,
                   half_life="8-12h", mineralocorticoid_activity="high",
                   anti_inflammatory_potency=1),
    Corticosteroid(slug="triamcinolone", name="Triamcinolone", equivalent_dose=4,
                   half_life="12-36h", mineralocorticoid_activity="none",
                   anti_inflammatory_potency=5),
)

_STEROIDS_BY_SLUG = {c.slug: c for c in CORTICOSTEROIDS}


class SteroidConversion(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: Corticosteroid
    target: Corticosteroid
    dose: float
    converted_dose: float
    factor: float
    notes: tuple[str, ...]
    warnings: tuple[str, ...]


def get_corticosteroid(slug: str) -> Corticosteroid:
    try:
        return _STEROIDS_BY_SLUG[slug]
    except KeyError:
        raise ValueError(
            f"Unknown corticosteroid '{slug}'. Valid: {', '.join(_STEROIDS_BY_SLUG)}."
        ) from None


def convert_corticosteroid(dose: float, source: str, target: str) -> SteroidConversion:
    """Equivalent dose of ``target`` for ``dose`` mg of ``source``.

    Raises:
        ValueError: If either drug is unknown, both are the same drug, or the
            dose is not in (0, 1000] mg.
    """
    src = get_corticosteroid(source)
    dst = get_corticosteroid(target)
    if src.slug == dst.slug:
        raise ValueError("Source and target corticosteroid must differ.")
    if not 0 < dose <= STEROID_DOSE_MAX:
        raise ValueError(f"Dose must be > 0 and <= {STEROID_DOSE_MAX:g} mg, got {dose}.")

    factor = dst.equivalent_dose / src.equivalent_dose
    converted = dose * factor

    notes: list[str] = []
    if dst.anti_inflammatory_potency > src.anti_inflammatory_potency:
        notes.append(
            f"{dst.name} has higher anti-inflammatory potency "
            f"({dst.anti_inflammatory_potency:g}x vs {src.anti_inflammatory_potency:g}x)"
        )
    elif dst.anti_inflammatory_potency < src.anti_inflammatory_potency:
        notes.append(
            f"{dst.name} has lower anti-inflammatory potency "
            f"({dst.anti_inflammatory_potency:g}x vs {src.anti_inflammatory_potency:g}x)"
        )
    notes.append(f"Half-life: {src.name} ({src.half_life}) -> {dst.name} ({dst.half_life})")
    if src.mineralocorticoid_activity != dst.mineralocorticoid_activity:
        notes.append(
            f"Mineralocorticoid activity: {src.mineralocorticoid_activity} "
            f"-> {dst.mineralocorticoid_activity}"
        )

    warnings: list[str] = []
    if dst.slug == "hydrocortisone" and src.mineralocorticoid_activity == "minimal":
        warnings.append(
            "Hydrocortisone has high mineralocorticoid activity; "
            "monitor fluid retention and electrolytes"
        )
    if src.slug == "hydrocortisone" and dst.mineralocorticoid_activity == "minimal":
        warnings.append(
            "Switching from hydrocortisone may cause mineralocorticoid deficiency; "
            "consider fludrocortisone"
        )
    if dst.slug in ("dexamethasone", "betamethasone") and src.slug in ("prednisone", "prednisolone"):
        warnings.append("Switching to a long-acting corticosteroid; adjust dosing frequency")
    if converted > 80:
        warnings.append("High dose; consider gradual reduction and monitor adverse effects")
    if converted < 1:
        warnings.append("Very low dose; check that it is clinically effective")

    log.debug("steroid %s %s mg -> %s %.4g mg", src.slug, dose, dst.slug, converted)
    return SteroidConversion(
        source=src, target=dst, dose=dose, converted_dose=converted, factor=factor,
        notes=tuple(notes), warnings=tuple(warnings),
    )


# ── Opioids ───────────────────────────────────────────────────────────────────


class Route(StrEnum):
    ORAL = "oral"
    IV = "iv"


# Morphine dose each route's equivalent_dose is referenced to.
MORPHINE_REFERENCE_MG: dict[Route, float] = {Route.ORAL: 10.0, Route.IV: 3.0}
ORAL_TO_IV_MORPHINE = 3.0


class OpioidRoute(BaseModel):
    model_config = ConfigDict(frozen=True)

    equivalent_dose: float
    duration: str
    onset: str
    bioavailability: Optional[float] = None


class Opioid(BaseModel):
    """One opioid with the routes it is available by."""

    model_config = ConfigDict(frozen=True)

    slug: str
    name: str
    routes: dict[Route, OpioidRoute]
    considerations: tuple[str, ...] = ()
    contraindications: tuple[str, ...] = ()


OPIOIDS: tuple[Opioid, ...] = (
    Opioid(
        slug="morphine", name="Morphine",
        routes={
            Route.ORAL: OpioidRoute(equivalent_dose=10, bioavailability=30, duration="4-6h", onset="30-60min"),
            Route.IV: OpioidRoute(equivalent_dose=3, duration="3-4h", onset="5-10min"),
        },
        considerations=(
            "Reference standard for opioid comparison",
            "Hepatic metabolism with active metabolites",
            "Adjust in renal impairment",
        ),
    ),
    Opioid(
        slug="codeine", name="Codeine",
        routes={
            Route.ORAL: OpioidRoute(equivalent_dose=60, bioavailability=60, duration="4-6h", onset="30-60min"),
        },
        considerations=(
            "Prodrug converted to morphine by CYP2D6",
            "Variable efficacy due to genetic polymorphism",
            "Contraindicated under 12 years for cough or post-operative pain",
        ),
        contraindications=(
            "Children under 12 (cough or post-operative pain)",
            "Breastfeeding",
            "CYP2D6 ultra-rapid metabolisers",
        ),
    ),
    Opioid(
        slug="tramadol", name="Tramadol",
        routes={
            Route.ORAL: OpioidRoute(equivalent_dose=50, bioavailability=75, duration="4-6h", onset="30-60min"),
            Route.IV: OpioidRoute(equivalent_dose=30, duration="4-6h", onset="10-20min"),
        },
        considerations=(
            "Dual mechanism: opioid plus serotonin/noradrenaline reuptake inhibition",
            "Lower dependence potential",
            "Risk of serotonin syndrome",
        ),
        contraindications=(
            "Concomitant MAO inhibitors",
            "History of seizures",
            "Acute alcohol or hypnotic intoxication",
        ),
    ),
    Opioid(
        slug="oxycodone", name="Oxycodone",
        routes={
            Route.ORAL: OpioidRoute(equivalent_dose=6.7, bioavailability=87, duration="4-6h", onset="30-60min"),
        },
        considerations=(
            "High oral bioavailability",
            "Mainly hepatic metabolism",
            "Controlled-release formulations available",
        ),
    ),
    Opioid(
        slug="fentanyl", name="Fentanyl",
        routes={
            Route.IV: OpioidRoute(equivalent_dose=0.03, duration="30-60min", onset="1-3min"),
        },
        considerations=(
            "Highly lipophilic; rapid onset",
            "Short duration through redistribution",
            "Accumulates in adipose tissue with repeated doses",
            "Available as transdermal patches",
        ),
        contraindications=(
            "Acute pain (patches)",
            "Opioid-naive patients (patches)",
        ),
    ),
    Opioid(
        slug="methadone", name="Methadone",
        routes={
            Route.ORAL: OpioidRoute(equivalent_dose=3, bioavailability=85, duration="8-12h", onset="30-60min"),
            Route.IV: OpioidRoute(equivalent_dose=1.5, duration="8-12h", onset="10-20min"),
        },
        considerations=(
            "Long and variable half-life (8-59h)",
            "Risk of accumulation and delayed overdose",
            "NMDA antagonist activity",
            "Complex conversion; consult a specialist",
        ),
        contraindications=(
            "Prolonged QT",
            "QT-prolonging medication",
        ),
    ),
    Opioid(
        slug="buprenorphine", name="Buprenorphine",
        routes={
            Route.IV: OpioidRoute(equivalent_dose=0.1, duration="6-8h", onset="5-15min"),
        },
        considerations=(
            "Partial mu-opioid agonist",
            "Ceiling effect for respiratory depression",
            "Difficult to reverse with naloxone",
            "Sublingual form available",
        ),
    ),
    Opioid(
        slug="hydrocodone", name="Hydrocodone",
        routes={
            Route.ORAL: OpioidRoute(equivalent_dose=5, bioavailability=85, duration="4-6h", onset="30-60min"),
        },
        considerations=(
            "Often combined with paracetamol",
            "Metabolised by CYP2D6",
            "Controlled-release formulations available",
        ),
    ),
)

_OPIOIDS_BY_SLUG = {o.slug: o for o in OPIOIDS}

_SAFETY_RECOMMENDATIONS = (
    "Start at 75% of the calculated dose in elderly patients",
    "Monitor respiratory function and level of consciousness",
    "Keep naloxone available",
    "Reassess efficacy and adverse effects in 24-48h",
)


class OpioidConversion(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: Opioid
    source_route: Route
    target: Opioid
    target_route: Route
    dose: float
    converted_dose: float
    factor: float
    notes: tuple[str, ...]
    warnings: tuple[str, ...]
    recommendations: tuple[str, ...]


def get_opioid(slug: str) -> Opioid:
    try:
        return _OPIOIDS_BY_SLUG[slug]
    except KeyError:
        raise ValueError(f"Unknown opioid '{slug}'. Valid: {', '.join(_OPIOIDS_BY_SLUG)}.") from None


def _route_of(opioid: Opioid, route: Route) -> OpioidRoute:
    try:
        return opioid.routes[route]
    except KeyError:
        raise ValueError(f"{opioid.name} is not available by the {route.value} route.") from None


def convert_opioid(
    dose: float,
    source: str,
    source_route: Route | str,
    target: str,
    target_route: Route | str,
) -> OpioidConversion:
    """Equivalent dose of ``target`` by ``target_route`` for ``dose`` mg of ``source``.

    Raises:
        ValueError: If a drug or route is unknown, a drug is not available by
            the requested route, source and target are identical in both drug
            and route, or the dose is not in (0, 10000] mg.
    """
    src = get_opioid(source)
    dst = get_opioid(target)
    src_route = Route(source_route)
    dst_route = Route(target_route)
    if src.slug == dst.slug and src_route is dst_route:
        raise ValueError("Source and target must differ in drug or route.")
    src_data = _route_of(src, src_route)
    dst_data = _route_of(dst, dst_route)
    if not 0 < dose <= OPIOID_DOSE_MAX:
        raise ValueError(f"Dose must be > 0 and <= {OPIOID_DOSE_MAX:g} mg, got {dose}.")

    morphine = dose / src_data.equivalent_dose * MORPHINE_REFERENCE_MG[src_route]
    if src_route is Route.IV and dst_route is Route.ORAL:
        morphine *= ORAL_TO_IV_MORPHINE
    elif src_route is Route.ORAL and dst_route is Route.IV:
        morphine /= ORAL_TO_IV_MORPHINE
    converted = morphine / MORPHINE_REFERENCE_MG[dst_route] * dst_data.equivalent_dose

    notes: list[str] = []
    warnings: list[str] = []
    recommendations: list[str] = []

    if src_route is Route.ORAL and dst_route is Route.IV:
        notes.append("Oral to IV conversion; faster onset of action")
        warnings.append("IV route acts faster; monitor for respiratory depression")
    elif src_route is Route.IV and dst_route is Route.ORAL:
        notes.append("IV to oral conversion; slower onset of action")
        notes.append("Consider overlapping both routes during the transition")

    if src_route is Route.ORAL and dst_route is Route.ORAL:
        src_bio, dst_bio = src_data.bioavailability, dst_data.bioavailability
        if src_bio is not None and dst_bio is not None and abs(src_bio - dst_bio) > 20:
            notes.append(
                f"Large bioavailability difference: {src.name} ({src_bio:g}%) "
                f"-> {dst.name} ({dst_bio:g}%)"
            )

    notes.append(f"Duration: {src.name} ({src_data.duration}) -> {dst.name} ({dst_data.duration})")
    notes.append(f"Onset: {src.name} ({src_data.onset}) -> {dst.name} ({dst_data.onset})")
    notes.extend(dst.considerations)

    if converted < 0.1:
        warnings.append("Very low converted dose; check the calculation and clinical feasibility")
        recommendations.append("Consider the minimum effective dose of the target drug")
    if converted > 100:
        warnings.append("High converted dose; consider an initial 25-50% reduction")
        recommendations.append("Gradual titration recommended")

    if src.slug != "morphine" and dst.slug != "morphine":
        warnings.append("Incomplete cross-tolerance between opioids; reduce the initial dose by 25-50%")

    if dst.slug == "methadone":
        warnings.append("Methadone: complex conversion; consult a pain or palliative care specialist")
        warnings.append("Risk of accumulation due to long and variable half-life")
        recommendations.append("Start low and titrate slowly")
        recommendations.append("Observe for 5-7 days before adjusting")
    if src.slug == "methadone":
        warnings.append("Conversion from methadone is complex; consult a specialist")

    if dst.slug == "fentanyl":
        warnings.append("Fentanyl: high potency, increased overdose risk")
        recommendations.append("Continuous monitoring recommended")

    recommendations.extend(_SAFETY_RECOMMENDATIONS)

    if dst.contraindications:
        warnings.append("Check the specific contraindications of the target drug")

    log.debug(
        "opioid %s %s %s mg -> %s %s %.4g mg",
        src.slug, src_route.value, dose, dst.slug, dst_route.value, converted,
    )
    return OpioidConversion(
        source=src, source_route=src_route, target=dst, target_route=dst_route,
        dose=dose, converted_dose=converted, factor=converted / dose,
        notes=tuple(notes), warnings=tuple(warnings),
        recommendations=tuple(recommendations),
    )
