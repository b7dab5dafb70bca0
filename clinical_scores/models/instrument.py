"""
Declarative scoring-instrument models.

A ``ScoreInstrument`` is pure data: a closed list of ``RiskFactor`` entries,
optional ``FactorGroup`` declarations for mutually exclusive options, and an
ordered list of ``RiskTier`` interpretation bands. The evaluator in
``clinical_scores.scoring`` holds all of the behaviour; nothing here knows
about selections.

Example: CHA2DS2-VASc declares the two age brackets ("65-74" worth 1 point,
">=75" worth 2 points) as members of the ``age`` group, so a patient can only
ever score one of them.

Points are integers in units of ``1 / point_scale``. Instruments with half
points (IMPROVE, Wells, PPI, PALIAR) declare ``point_scale = 2`` and store
every point value and tier threshold doubled, which keeps arithmetic exact.

All structural problems (duplicate slugs, dangling group references, tier
tables with gaps, overlaps, unreachable tiers or decreasing risk levels) are
rejected at construction time. They are data errors, not runtime conditions.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from clinical_scores.scoring.tiers import check_bounds
from clinical_scores.taxonomy.risk_taxonomy import (
    RISK_LEVEL_RANK,
    InstrumentCategory,
    RiskLevel,
)

_SLUG_RE = re.compile(r"^[a-z0-9]+(_[a-z0-9]+)*$")


def _check_slug(v: str, what: str) -> str:
    if not _SLUG_RE.match(v):
        raise ValueError(
            f"{what} slug '{v}' must be lowercase snake_case (a-z, 0-9, '_')."
        )
    return v


class RiskFactor(BaseModel):
    """One selectable clinical finding and the points it contributes.

    Attributes:
        slug: Identifier unique within the instrument, e.g. ``"hypertension"``.
        label: Short display label.
        description: Optional clarifying text (criteria, time windows).
        points: Contribution in ``1 / point_scale`` units. May be 0 (e.g. the
            "alert" option of an NIHSS item).
        group: Slug of the ``FactorGroup`` this factor is an alternative in,
            or ``None`` for an independent yes/no factor.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    slug: str
    label: str
    description: Optional[str] = None
    points: int
    group: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        return _check_slug(v, "Factor")

    @field_validator("points")
    @classmethod
    def validate_points(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"points must be >= 0, got {v}.")
        return v


class FactorGroup(BaseModel):
    """A set of mutually exclusive factors; at most one may be selected.

    ``required`` marks groups that must be answered for the assessment to be
    complete (every NIHSS item, every Child-Pugh parameter).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    slug: str
    label: str
    required: bool = False

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        return _check_slug(v, "Group")


class RiskTier(BaseModel):
    """One interpretation band of an instrument.

    A tier applies to every score from ``min_score`` up to (but excluding) the
    next tier's ``min_score``; the last tier is open-ended.

    Attributes:
        min_score: Inclusive lower bound in ``1 / point_scale`` units.
        label: Display label, e.g. ``"High risk"``.
        risk_level: Ordered severity used for monotonicity checks.
        recommendation: Free-text headline recommendation.
        considerations: Structured list of follow-up considerations.
        risk_estimate: Published risk figure for this band (annual stroke
            rate, mortality, survival). Kept verbatim, may be non-monotonic.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_score: int
    label: str
    risk_level: RiskLevel
    recommendation: str
    considerations: tuple[str, ...] = ()
    risk_estimate: Optional[str] = None

    @field_validator("min_score")
    @classmethod
    def validate_min_score(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"min_score must be >= 0, got {v}.")
        return v

    @field_validator("label", "recommendation")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Tier label and recommendation must not be empty.")
        return v.strip()


class ScoreInstrument(BaseModel):
    """A complete, validated scoring instrument.

    Attributes:
        slug: Catalog identifier, e.g. ``"cha2ds2_vasc"``.
        name: Display name.
        category: Clinical domain.
        description: What the instrument estimates and for whom.
        point_scale: Divisor turning stored integer points into clinical points.
        groups: Declared mutual-exclusivity groups.
        factors: Every selectable factor, in display order.
        tiers: Interpretation bands sorted by ``min_score``.
        references: Literature citations.
        monotonic_risk: Require ``risk_level`` to never decrease from one tier
            to the next. ``risk_estimate`` strings are never checked.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    slug: str
    name: str
    category: InstrumentCategory
    description: Optional[str] = None
    point_scale: int = 1
    groups: tuple[FactorGroup, ...] = ()
    factors: tuple[RiskFactor, ...]
    tiers: tuple[RiskTier, ...]
    references: tuple[str, ...] = ()
    monotonic_risk: bool = True

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        return _check_slug(v, "Instrument")

    @field_validator("point_scale")
    @classmethod
    def validate_point_scale(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"point_scale must be >= 1, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_structure(self) -> "ScoreInstrument":
        if not self.factors:
            raise ValueError(f"Instrument '{self.slug}' declares no factors.")

        factor_slugs = [f.slug for f in self.factors]
        dupes = sorted({s for s in factor_slugs if factor_slugs.count(s) > 1})
        if dupes:
            raise ValueError(f"Duplicate factor slugs: {dupes}.")

        group_slugs = [g.slug for g in self.groups]
        dupes = sorted({s for s in group_slugs if group_slugs.count(s) > 1})
        if dupes:
            raise ValueError(f"Duplicate group slugs: {dupes}.")

        overlap = sorted(set(group_slugs) & set(factor_slugs))
        if overlap:
            raise ValueError(f"Slugs used for both a group and a factor: {overlap}.")

        declared = set(group_slugs)
        for f in self.factors:
            if f.group is not None and f.group not in declared:
                raise ValueError(
                    f"Factor '{f.slug}' references undeclared group '{f.group}'."
                )
        for g in self.groups:
            members = [f for f in self.factors if f.group == g.slug]
            if len(members) < 2:
                raise ValueError(
                    f"Group '{g.slug}' has {len(members)} member(s); an "
                    "exclusivity group needs at least 2."
                )

        problems = check_bounds([t.min_score for t in self.tiers], start=0)
        if problems:
            raise ValueError(f"Invalid tier table: {'; '.join(problems)}.")

        top = self.max_score
        unreachable = [t.min_score for t in self.tiers if t.min_score > top]
        if unreachable:
            raise ValueError(
                f"Tiers starting at {unreachable} can never be reached "
                f"(maximum attainable score is {top})."
            )

        if self.monotonic_risk:
            for prev, cur in zip(self.tiers, self.tiers[1:]):
                if RISK_LEVEL_RANK[cur.risk_level] < RISK_LEVEL_RANK[prev.risk_level]:
                    raise ValueError(
                        f"Tier '{cur.label}' (from {cur.min_score}) has a lower "
                        f"risk level than '{prev.label}' (from {prev.min_score})."
                    )
        return self

    # ── Derived views ─────────────────────────────────────────────────────────

    @property
    def factor_slugs(self) -> tuple[str, ...]:
        return tuple(f.slug for f in self.factors)

    @property
    def max_score(self) -> int:
        """Highest attainable total, honouring one-per-group exclusivity."""
        total = sum(f.points for f in self.factors if f.group is None)
        for g in self.groups:
            total += max(f.points for f in self.factors if f.group == g.slug)
        return total

    def factor(self, slug: str) -> Optional[RiskFactor]:
        """Return the factor named ``slug``, or ``None`` if not defined."""
        for f in self.factors:
            if f.slug == slug:
                return f
        return None

    def group(self, slug: str) -> Optional[FactorGroup]:
        """Return the group named ``slug``, or ``None`` if not defined."""
        for g in self.groups:
            if g.slug == slug:
                return g
        return None

    def group_members(self, group_slug: str) -> tuple[str, ...]:
        """Slugs of the factors in ``group_slug``, in declaration order."""
        return tuple(f.slug for f in self.factors if f.group == group_slug)

    def to_points(self, total: int) -> float:
        """Convert a stored integer total to clinical points."""
        return total / self.point_scale
