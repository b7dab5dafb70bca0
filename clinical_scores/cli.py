"""
Clinical Score Evaluator — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load the instrument catalog / validate inputs.
  4. Evaluate.
  5. Report result to stdout.

Install and run::

    pip install -e .
    clinical-scores --help
    clinical-scores list-instruments --category thromboembolism
    clinical-scores show cha2ds2_vasc
    clinical-scores score cha2ds2_vasc -f hypertension -f age_75_or_older -f stroke
    clinical-scores egfr --age 60 --sex female --creatinine 1.1
    clinical-scores meld --bilirubin 2.5 --inr 1.8 --creatinine 1.4 --sodium 130
    clinical-scores aki --creatinine 2.4 --baseline 1.0 --urine 300 --weight 70 --hours 12
    clinical-scores convert-steroid --dose 40 --from prednisone --to dexamethasone
    clinical-scores convert-opioid --dose 30 --from morphine --to oxycodone
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="clinical-scores",
    help="Clinical risk score evaluator — weighted factor scores and risk tiers.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from clinical_scores.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from clinical_scores.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_catalog_or_exit(config):
    """Load the configured catalog, exiting with code 1 on a broken table."""
    from clinical_scores.catalog.loader import catalog_from_config
    from clinical_scores.exceptions import CatalogError

    try:
        return catalog_from_config(config)
    except CatalogError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _get_instrument_or_exit(catalog, slug: str):
    from clinical_scores.exceptions import UnknownInstrumentError

    try:
        return catalog.get(slug)
    except UnknownInstrumentError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Catalog dir:      {config.catalog.data_dir or '(shipped tables)'}")
    typer.echo(f"  Strict monotonic: {config.catalog.strict_monotonic}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Considerations:   {config.display.show_considerations}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("list-instruments")
def list_instruments(
    category: Optional[str] = typer.Option(
        None,
        "--category",
        help="Only list instruments of this category (e.g. thromboembolism).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """List every instrument in the catalog."""
    from clinical_scores.reporting.formatters import format_instrument_list
    from clinical_scores.taxonomy.risk_taxonomy import InstrumentCategory

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    catalog = _load_catalog_or_exit(config)

    if category is None:
        instruments = list(catalog)
    else:
        valid = [c.value for c in InstrumentCategory]
        if category not in valid:
            typer.echo(
                f"[ERROR] Unknown category '{category}'. Valid: {', '.join(valid)}",
                err=True,
            )
            raise typer.Exit(code=1)
        instruments = catalog.by_category(category)

    typer.echo(format_instrument_list(instruments))


@app.command("show")
def show(
    instrument_slug: str = typer.Argument(..., help="Instrument slug, e.g. padua."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Show the factors, exclusivity groups and tier table of an instrument."""
    from clinical_scores.reporting.formatters import format_instrument_detail

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    catalog = _load_catalog_or_exit(config)
    instrument = _get_instrument_or_exit(catalog, instrument_slug)

    typer.echo(
        format_instrument_detail(
            instrument, show_references=config.display.show_references
        )
    )


@app.command("score")
def score(
    instrument_slug: str = typer.Argument(..., help="Instrument slug, e.g. cha2ds2_vasc."),
    factors: Optional[list[str]] = typer.Option(
        None,
        "--factor",
        "-f",
        help="Factor slug to toggle. Repeatable; applied in order.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the result as JSON instead of text.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Score an instrument from a list of factor toggles.

    \b
    Each -f toggles one factor, exactly like ticking a checkbox:
      - a grouped factor replaces any other member of its group;
      - naming the same factor twice turns it off again.
    """
    from clinical_scores.exceptions import UnknownFactorError
    from clinical_scores.reporting.formatters import format_score_result
    from clinical_scores.scoring.evaluator import ScoreEvaluator

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    catalog = _load_catalog_or_exit(config)
    instrument = _get_instrument_or_exit(catalog, instrument_slug)

    evaluator = ScoreEvaluator(instrument)
    selection = evaluator.new_selection()
    try:
        for slug in factors or []:
            selection.toggle(slug)
    except UnknownFactorError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        typer.echo(
            f"  Run 'clinical-scores show {instrument.slug}' to list valid factors.",
            err=True,
        )
        raise typer.Exit(code=1)

    result = evaluator.evaluate(selection)

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    typer.echo(
        format_score_result(
            instrument,
            result,
            show_considerations=config.display.show_considerations,
            show_references=config.display.show_references,
        )
    )


@app.command("validate-catalog")
def validate_catalog(
    data_dir: Optional[str] = typer.Option(
        None,
        "--data-dir",
        help="Directory of instrument JSON tables (default: configured catalog).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Load and check every instrument table.

    Exits with code 1 on the first malformed table (bad JSON, schema
    violation, tier gaps or overlaps, duplicate slugs).
    """
    from clinical_scores.catalog.loader import load_catalog
    from clinical_scores.exceptions import CatalogError
    from clinical_scores.reporting.formatters import format_points

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    directory = data_dir or config.catalog.data_dir
    try:
        catalog = load_catalog(
            Path(directory) if directory else None,
            strict_monotonic=config.catalog.strict_monotonic,
        )
    except CatalogError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    for inst in catalog:
        typer.echo(
            f"  {inst.slug:<18} {len(inst.factors):>3} factors  "
            f"{len(inst.tiers):>2} tiers  max {format_points(inst.to_points(inst.max_score))}"
        )
    typer.echo("")
    typer.echo(f"[OK] {len(catalog)} instrument table(s) valid.")


@app.command("egfr")
def egfr(
    age: int = typer.Option(..., "--age", help="Age in years (1-200)."),
    sex: str = typer.Option(..., "--sex", help="female or male."),
    creatinine: float = typer.Option(..., "--creatinine", help="Serum creatinine, mg/dL."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Estimate GFR with the CKD-EPI 2021 equation and stage it (KDIGO)."""
    from clinical_scores.formulas.renal import classify_gfr, egfr_ckd_epi_2021
    from clinical_scores.reporting.formatters import format_egfr

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        value = egfr_ckd_epi_2021(age, sex.lower(), creatinine)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_egfr(value, classify_gfr(value), age, sex.lower(), creatinine))


@app.command("meld")
def meld(
    bilirubin: float = typer.Option(..., "--bilirubin", help="Total bilirubin, mg/dL."),
    inr: float = typer.Option(..., "--inr", help="INR."),
    creatinine: float = typer.Option(..., "--creatinine", help="Serum creatinine, mg/dL."),
    sodium: float = typer.Option(..., "--sodium", help="Serum sodium, mEq/L."),
    dialysis: bool = typer.Option(
        False,
        "--dialysis",
        help="Dialysis at least twice in the past week.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Compute MELD and MELD-Na with 3-month mortality."""
    from clinical_scores.formulas import hepatic
    from clinical_scores.reporting.formatters import format_meld

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        meld_score = hepatic.meld(bilirubin, inr, creatinine, on_dialysis=dialysis)
        meld_na_value = hepatic.meld_na_raw(
            bilirubin, inr, creatinine, sodium, on_dialysis=dialysis
        )
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(
        format_meld(meld_score, round(meld_na_value), hepatic.classify_meld_na(meld_na_value))
    )


@app.command("aki")
def aki(
    creatinine: float = typer.Option(..., "--creatinine", help="Current serum creatinine, mg/dL."),
    baseline: Optional[float] = typer.Option(
        None,
        "--baseline",
        help="Baseline creatinine, mg/dL. Estimated from --age/--sex when omitted.",
    ),
    age: Optional[int] = typer.Option(None, "--age", help="Age in years (baseline estimate)."),
    sex: Optional[str] = typer.Option(None, "--sex", help="female or male (baseline estimate)."),
    black: bool = typer.Option(False, "--black", help="Apply the MDRD race factor."),
    urine: Optional[float] = typer.Option(None, "--urine", help="Urine collected, mL."),
    weight: Optional[float] = typer.Option(None, "--weight", help="Body weight, kg."),
    hours: Optional[int] = typer.Option(None, "--hours", help="Collection period: 6, 12 or 24."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Stage acute kidney injury with the KDIGO creatinine and urine criteria."""
    from clinical_scores.formulas.renal import kdigo_aki_stage
    from clinical_scores.reporting.formatters import format_aki

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        assessment = kdigo_aki_stage(
            creatinine,
            baseline,
            age=age,
            sex=sex.lower() if sex else None,
            black=black,
            urine_output_ml=urine,
            weight_kg=weight,
            urine_hours=hours,
        )
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_aki(assessment))


@app.command("convert-steroid")
def convert_steroid(
    dose: float = typer.Option(..., "--dose", help="Dose to convert, mg."),
    source: str = typer.Option(..., "--from", help="Source corticosteroid, e.g. prednisone."),
    target: str = typer.Option(..., "--to", help="Target corticosteroid, e.g. dexamethasone."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Convert a corticosteroid dose to its equivalent in another corticosteroid."""
    from clinical_scores.formulas.conversions import convert_corticosteroid
    from clinical_scores.reporting.formatters import format_steroid_conversion

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        conversion = convert_corticosteroid(dose, source.lower(), target.lower())
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_steroid_conversion(conversion))


@app.command("convert-opioid")
def convert_opioid(
    dose: float = typer.Option(..., "--dose", help="Dose to convert, mg."),
    source: str = typer.Option(..., "--from", help="Source opioid, e.g. morphine."),
    source_route: str = typer.Option("oral", "--from-route", help="oral or iv."),
    target: str = typer.Option(..., "--to", help="Target opioid, e.g. oxycodone."),
    target_route: str = typer.Option("oral", "--to-route", help="oral or iv."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Convert an opioid dose through oral/IV morphine equivalents."""
    from clinical_scores.formulas.conversions import convert_opioid as _convert
    from clinical_scores.reporting.formatters import format_opioid_conversion

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        conversion = _convert(
            dose, source.lower(), source_route.lower(), target.lower(), target_route.lower()
        )
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_opioid_conversion(conversion))


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
