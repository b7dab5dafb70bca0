"""
Clinical score evaluation: selection → score → risk tier.

Every function here is pure. Given the same instrument and the same
selection state they return equal results, and they never modify their
arguments.

    total = sum(factor.points for factor in instrument.factors
                if selection.is_selected(factor.slug))
    tier  = highest tier with tier.min_score <= total

Usage::

    from clinical_scores.catalog.loader import default_catalog
    from clinical_scores.scoring.evaluator import ScoreEvaluator

    evaluator = ScoreEvaluator(default_catalog().get("cha2ds2_vasc"))
    selection = evaluator.new_selection()
    selection.toggle("hypertension")
    selection.toggle("age_75_or_older")
    result = evaluator.evaluate(selection)
    print(result.total, result.tier.label)
"""

from __future__ import annotations

import logging

from clinical_scores.exceptions import InstrumentMismatchError
from clinical_scores.models.instrument import RiskTier, ScoreInstrument
from clinical_scores.models.result import ScoreResult
from clinical_scores.scoring.selection import FactorSelection
from clinical_scores.scoring.tiers import find_band

log = logging.getLogger(__name__)


def _check_owner(instrument: ScoreInstrument, selection: FactorSelection) -> None:
    # Compare whole tables; a custom catalog may reuse a shipped slug.
    if selection.instrument is instrument:
        return
    if selection.instrument != instrument:
        raise InstrumentMismatchError(instrument.slug, selection.instrument_slug)


def compute_score(instrument: ScoreInstrument, selection: FactorSelection) -> int:
    """Sum the points of every selected factor.

    Visits every factor of the instrument exactly once. Returns 0 for the
    empty selection.

    Raises:
        InstrumentMismatchError: If ``selection`` was built for another instrument.
    """
    _check_owner(instrument, selection)
    state = selection.as_dict()
    total = 0
    for factor in instrument.factors:
        if state[factor.slug]:
            total += factor.points
    return total


def classify(instrument: ScoreInstrument, score: int) -> RiskTier:
    """Return the tier ``score`` falls into.

    Total over ``[0, inf)``: scores above the highest threshold resolve to the
    open-ended top tier.

    Raises:
        ValueError: If ``score`` is negative.
    """
    if score < 0:
        raise ValueError(f"Score must be >= 0, got {score}.")
    return find_band(instrument.tiers, score, lambda t: t.min_score)


def missing_groups(instrument: ScoreInstrument, selection: FactorSelection) -> tuple[str, ...]:
    """Required groups that have no selected member yet."""
    _check_owner(instrument, selection)
    return tuple(
        g.slug for g in instrument.groups
        if g.required and selection.chosen(g.slug) is None
    )


def reset(instrument: ScoreInstrument) -> FactorSelection:
    """Return the initial all-unselected selection for ``instrument``."""
    return FactorSelection(instrument)


def evaluate(instrument: ScoreInstrument, selection: FactorSelection) -> ScoreResult:
    """Compute, classify and check completeness in one call."""
    total = compute_score(instrument, selection)
    tier = classify(instrument, total)
    result = ScoreResult(
        instrument_slug=instrument.slug,
        total=total,
        display_total=instrument.to_points(total),
        tier=tier,
        selected=selection.selected(),
        missing_groups=missing_groups(instrument, selection),
    )
    log.debug(
        "%s: total=%s tier=%r complete=%s",
        instrument.slug, result.display_total, tier.label, result.is_complete,
    )
    return result


class ScoreEvaluator:
    """Evaluator bound to one instrument.

    Holds no state besides the instrument reference. The selection is owned
    by the caller and passed in on every call.
    """

    def __init__(self, instrument: ScoreInstrument) -> None:
        self.instrument = instrument

    @property
    def max_score(self) -> int:
        return self.instrument.max_score

    def new_selection(self) -> FactorSelection:
        return reset(self.instrument)

    def reset(self) -> FactorSelection:
        return reset(self.instrument)

    def toggle(self, selection: FactorSelection, slug: str) -> ScoreResult:
        """Toggle ``slug`` on ``selection`` and return the fresh evaluation."""
        selection.toggle(slug)
        return self.evaluate(selection)

    def compute_score(self, selection: FactorSelection) -> int:
        return compute_score(self.instrument, selection)

    def classify(self, score: int) -> RiskTier:
        return classify(self.instrument, score)

    def evaluate(self, selection: FactorSelection) -> ScoreResult:
        return evaluate(self.instrument, selection)

    def evaluate_slugs(self, slugs: list[str]) -> ScoreResult:
        """Evaluate the selection obtained by turning on ``slugs`` in order."""
        return self.evaluate(FactorSelection.from_slugs(self.instrument, slugs))
