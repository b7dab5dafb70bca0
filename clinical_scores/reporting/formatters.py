"""
ASCII terminal formatters for CLI commands.

All formatters accept validated models (instruments, results, formula bands)
and return plain multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Points
------
Totals and thresholds are stored as integers in ``1 / point_scale`` units.
Every formatter converts them back to clinical points before display, so a
stored IMPROVE total of 15 prints as ``7.5``.
"""

from __future__ import annotations

from clinical_scores.formulas.conversions import OpioidConversion, SteroidConversion
from clinical_scores.formulas.hepatic import MeldBand
from clinical_scores.formulas.renal import AkiAssessment, GfrStage
from clinical_scores.models.instrument import ScoreInstrument
from clinical_scores.models.result import ScoreResult


def format_points(value: float) -> str:
    """``2.0`` → ``"2"``, ``7.5`` → ``"7.5"``."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def _tier_ranges(instrument: ScoreInstrument) -> list[str]:
    """Human-readable score range for each tier, e.g. ``"2-3"`` or ``">= 5"``."""
    step = 1 / instrument.point_scale
    ranges: list[str] = []
    tiers = instrument.tiers
    for i, tier in enumerate(tiers):
        lo = instrument.to_points(tier.min_score)
        if i + 1 < len(tiers):
            hi = instrument.to_points(tiers[i + 1].min_score) - step
            if hi == lo:
                ranges.append(format_points(lo))
            else:
                ranges.append(f"{format_points(lo)}-{format_points(hi)}")
        else:
            ranges.append(f">= {format_points(lo)}")
    return ranges


# ── Catalog listing ───────────────────────────────────────────────────────────


def format_instrument_list(instruments: list[ScoreInstrument]) -> str:
    """One row per instrument: slug, category, factor count, max score, name."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Scoring Instruments ===")

    if not instruments:
        lines.append("")
        lines.append("  (no instruments match)")
        return "\n".join(lines)

    lines.append("")
    header = (
        f"  {'Slug':<18}  {'Category':<16}  {'Factors':>7}  {'Max':>5}  Name"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) + 20))
    for inst in instruments:
        lines.append(
            f"  {inst.slug:<18}  {inst.category.value:<16}  {len(inst.factors):>7}  "
            f"{format_points(inst.to_points(inst.max_score)):>5}  {inst.name}"
        )
    lines.append("")
    lines.append(f"  {len(instruments)} instrument(s).")
    return "\n".join(lines)


# ── Instrument detail ─────────────────────────────────────────────────────────


def format_instrument_detail(
    instrument: ScoreInstrument,
    show_references: bool = False,
) -> str:
    """Factors (grouped where they are alternatives) and the tier table."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {instrument.name} ({instrument.slug}) ===")
    lines.append(f"  Category:  {instrument.category.value}")
    if instrument.description:
        lines.append(f"  About:     {instrument.description}")
    lines.append(f"  Max score: {format_points(instrument.to_points(instrument.max_score))}")

    ungrouped = [f for f in instrument.factors if f.group is None]
    if ungrouped:
        lines.append("")
        lines.append("  Factors:")
        for f in ungrouped:
            pts = format_points(instrument.to_points(f.points))
            lines.append(f"    [{pts:>4}]  {f.slug:<36}  {f.label}")

    for g in instrument.groups:
        lines.append("")
        flag = "required, choose one" if g.required else "choose at most one"
        lines.append(f"  {g.label} ({g.slug}; {flag}):")
        for slug in instrument.group_members(g.slug):
            f = instrument.factor(slug)
            pts = format_points(instrument.to_points(f.points))
            lines.append(f"    [{pts:>4}]  {f.slug:<36}  {f.label}")

    lines.append("")
    lines.append("  Interpretation:")
    header = f"    {'Score':<10}  {'Level':<10}  {'Estimate':<18}  Tier"
    lines.append(header)
    lines.append("    " + "-" * (len(header) + 16))
    for tier, rng in zip(instrument.tiers, _tier_ranges(instrument)):
        estimate = tier.risk_estimate or "-"
        lines.append(
            f"    {rng:<10}  {tier.risk_level.value:<10}  {estimate[:18]:<18}  {tier.label}"
        )

    if show_references and instrument.references:
        lines.append("")
        lines.append("  References:")
        for ref in instrument.references:
            lines.append(f"    - {ref}")

    return "\n".join(lines)


# ── Score result ──────────────────────────────────────────────────────────────


def format_score_result(
    instrument: ScoreInstrument,
    result: ScoreResult,
    show_considerations: bool = True,
    show_references: bool = False,
) -> str:
    """Total, tier and recommendation for one evaluated selection."""
    tier = result.tier
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {instrument.name} ===")

    if result.selected:
        lines.append("  Selected:")
        for slug in result.selected:
            f = instrument.factor(slug)
            pts = format_points(instrument.to_points(f.points))
            lines.append(f"    +{pts:<4}  {f.label}")
    else:
        lines.append("  Selected: (none)")

    lines.append("")
    lines.append(
        f"  Score:          {format_points(result.display_total)}"
        f" / {format_points(instrument.to_points(instrument.max_score))}"
    )
    lines.append(f"  Tier:           {tier.label} [{tier.risk_level.value}]")
    if tier.risk_estimate:
        lines.append(f"  Risk estimate:  {tier.risk_estimate}")
    lines.append(f"  Recommendation: {tier.recommendation}")

    if show_considerations and tier.considerations:
        lines.append("")
        lines.append("  Considerations:")
        for c in tier.considerations:
            lines.append(f"    - {c}")

    if not result.is_complete:
        lines.append("")
        lines.append(
            "  [INCOMPLETE] Unanswered required items: "
            + ", ".join(result.missing_groups)
        )

    if show_references and instrument.references:
        lines.append("")
        lines.append("  References:")
        for ref in instrument.references:
            lines.append(f"    - {ref}")

    return "\n".join(lines)


# ── Formula calculators ───────────────────────────────────────────────────────


def format_egfr(egfr: float, stage: GfrStage, age: int, sex: str, creatinine: float) -> str:
    lines = [
        "",
        "=== eGFR (CKD-EPI 2021) ===",
        f"  Inputs:   age {age}, {sex}, creatinine {creatinine} mg/dL",
        f"  eGFR:     {egfr:.2f} mL/min/1.73 m2",
        f"  Category: {stage.code} - {stage.label}",
    ]
    return "\n".join(lines)


def format_meld(meld_score: int, meld_na_score: int, band: MeldBand) -> str:
    lines = [
        "",
        "=== MELD / MELD-Na ===",
        f"  MELD:                 {meld_score}",
        f"  MELD-Na:              {meld_na_score}",
        f"  3-month mortality:    {band.mortality_3_month}",
        f"  Transplant priority:  {band.transplant_priority}",
        f"  Interpretation:       {band.interpretation}",
        "",
        "  Recommendations:",
    ]
    lines.extend(f"    - {r}" for r in band.recommendations)
    return "\n".join(lines)


def format_aki(assessment: AkiAssessment) -> str:
    stage = assessment.stage
    baseline = f"{assessment.baseline_creatinine:.2f} mg/dL"
    if assessment.baseline_estimated:
        baseline += " (estimated, MDRD at eGFR 75)"
    lines = [
        "",
        "=== KDIGO AKI staging ===",
        f"  Creatinine:        {assessment.current_creatinine} mg/dL (baseline {baseline})",
        f"  Ratio / rise:      {assessment.creatinine_ratio:.1f}x / {assessment.creatinine_rise:+.2f} mg/dL",
        f"  Creatinine stage:  {assessment.creatinine_stage}",
    ]
    if assessment.urine_rate is None:
        lines.append("  Urine output:      not assessed")
    else:
        lines.append(
            f"  Urine output:      {assessment.urine_rate:.2f} mL/kg/h over {assessment.urine_hours} h"
            f" (stage {assessment.urine_stage})"
        )
    lines.extend([
        "",
        f"  Final stage:       {stage.label} [{stage.risk_level.value}]",
        f"  Prognosis:         {stage.prognosis}",
        "",
        "  Recommendations:",
    ])
    lines.extend(f"    - {r}" for r in stage.recommendations)
    lines.append("")
    lines.append("  Monitoring:")
    lines.extend(f"    - {m}" for m in stage.monitoring)
    return "\n".join(lines)


def _notes_block(title: str, items: tuple[str, ...]) -> list[str]:
    if not items:
        return []
    return ["", f"  {title}:"] + [f"    - {i}" for i in items]


def format_steroid_conversion(conv: SteroidConversion) -> str:
    lines = [
        "",
        "=== Corticosteroid conversion ===",
        f"  {format_points(conv.dose)} mg {conv.source.name}"
        f" = {conv.converted_dose:.2f} mg {conv.target.name}",
        f"  Factor: {conv.factor:.4g}",
    ]
    lines.extend(_notes_block("Notes", conv.notes))
    lines.extend(_notes_block("Warnings", conv.warnings))
    return "\n".join(lines)


def format_opioid_conversion(conv: OpioidConversion) -> str:
    lines = [
        "",
        "=== Opioid conversion ===",
        f"  {format_points(conv.dose)} mg {conv.source.name} {conv.source_route.value.upper()}"
        f" = {conv.converted_dose:.2f} mg {conv.target.name} {conv.target_route.value.upper()}",
        f"  Factor: {conv.factor:.4g}",
    ]
    lines.extend(_notes_block("Notes", conv.notes))
    lines.extend(_notes_block("Warnings", conv.warnings))
    lines.extend(_notes_block("Dosing", conv.recommendations))
    return "\n".join(lines)
