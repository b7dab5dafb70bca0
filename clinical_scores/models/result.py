"""
Evaluation output model.

``ScoreResult`` is built fresh on every evaluation. Inputs are small and
change on every tap, so nothing is cached between calls and two evaluations
of the same selection compare equal.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from clinical_scores.models.instrument import RiskTier


class ScoreResult(BaseModel):
    """Score, interpretation and completeness for one selection.

    Attributes:
        instrument_slug: Instrument that produced the result.
        total: Sum of selected factor points in ``1 / point_scale`` units.
        display_total: ``total`` converted to clinical points.
        tier: Interpretation band the total falls into.
        selected: Selected factor slugs, in instrument declaration order.
        missing_groups: Required groups with no option chosen yet.
    """

    model_config = ConfigDict(frozen=True)

    instrument_slug: str
    total: int
    display_total: float
    tier: RiskTier
    selected: tuple[str, ...] = ()
    missing_groups: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        """True when every required group has an answer."""
        return not self.missing_groups
