"""
Factor selection state, independent of any UI framework.

A ``FactorSelection`` is the single piece of mutable state a scoring screen
owns: which factors of one instrument are currently ticked. The evaluator
functions only read it.

Group invariant
---------------
At most one factor per ``FactorGroup`` is selected at any time. Turning a
grouped factor on clears its siblings in the same state transition: the next
state is computed as a complete new mapping and swapped in with one
assignment, so no observer ever sees two members of a group selected. The
most recently turned-on member wins.

Unknown slugs raise ``UnknownFactorError``; they are never ignored.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from clinical_scores.exceptions import UnknownFactorError
from clinical_scores.models.instrument import ScoreInstrument

log = logging.getLogger(__name__)


class FactorSelection:
    """Selected/unselected state for every factor of one instrument.

    Create with ``FactorSelection(instrument)`` (all factors off) or
    ``FactorSelection.from_slugs(instrument, slugs)``.
    """

    __slots__ = ("_instrument", "_state")

    def __init__(self, instrument: ScoreInstrument) -> None:
        self._instrument = instrument
        self._state: dict[str, bool] = {slug: False for slug in instrument.factor_slugs}

    @classmethod
    def from_slugs(
        cls,
        instrument: ScoreInstrument,
        slugs: Iterable[str],
    ) -> "FactorSelection":
        """Build a selection by turning on each slug in order.

        Group semantics apply, so a later member of a group replaces an
        earlier one.
        """
        selection = cls(instrument)
        for slug in slugs:
            selection.select(slug)
        return selection

    # ── Read access ───────────────────────────────────────────────────────────

    @property
    def instrument(self) -> ScoreInstrument:
        return self._instrument

    @property
    def instrument_slug(self) -> str:
        return self._instrument.slug

    def is_selected(self, slug: str) -> bool:
        self._require_factor(slug)
        return self._state[slug]

    def selected(self) -> tuple[str, ...]:
        """Selected slugs in instrument declaration order."""
        return tuple(slug for slug, on in self._state.items() if on)

    def chosen(self, group_slug: str) -> str | None:
        """The selected member of ``group_slug``, or ``None``."""
        self._require_group(group_slug)
        for slug in self._instrument.group_members(group_slug):
            if self._state[slug]:
                return slug
        return None

    def as_dict(self) -> dict[str, bool]:
        """Copy of the full slug → selected mapping."""
        return dict(self._state)

    def __iter__(self) -> Iterator[tuple[str, bool]]:
        return iter(list(self._state.items()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FactorSelection):
            return NotImplemented
        return (
            self._instrument.slug == other._instrument.slug
            and self._state == other._state
        )

    def __repr__(self) -> str:
        return f"FactorSelection({self._instrument.slug!r}, selected={list(self.selected())})"

    # ── Transitions ───────────────────────────────────────────────────────────

    def toggle(self, slug: str) -> bool:
        """Flip ``slug`` and return its new state.

        Turning a grouped factor on clears every other member of its group.
        """
        self._require_factor(slug)
        if self._state[slug]:
            self._commit(self._with(slug, False))
            return False
        self._commit(self._with(slug, True))
        return True

    def select(self, slug: str) -> None:
        """Turn ``slug`` on (no-op if already on)."""
        self._require_factor(slug)
        if not self._state[slug]:
            self._commit(self._with(slug, True))

    def deselect(self, slug: str) -> None:
        """Turn ``slug`` off (no-op if already off)."""
        self._require_factor(slug)
        if self._state[slug]:
            self._commit(self._with(slug, False))

    def choose(self, group_slug: str, slug: str) -> None:
        """Pick ``slug`` as the answer of ``group_slug``."""
        self._require_group(group_slug)
        self._require_factor(slug)
        if self._instrument.factor(slug).group != group_slug:
            raise UnknownFactorError(
                self._instrument.slug, f"{group_slug}.{slug}"
            )
        self.select(slug)

    def reset(self) -> None:
        """Clear every factor back to the initial all-unselected state."""
        self._commit({slug: False for slug in self._state})

    # ── Internals ─────────────────────────────────────────────────────────────

    def _with(self, slug: str, on: bool) -> dict[str, bool]:
        """Compute the complete next state for setting ``slug`` to ``on``."""
        nxt = dict(self._state)
        if on:
            group = self._instrument.factor(slug).group
            if group is not None:
                for sibling in self._instrument.group_members(group):
                    nxt[sibling] = False
        nxt[slug] = on
        return nxt

    def _commit(self, nxt: dict[str, bool]) -> None:
        # Single assignment: readers see either the old or the new state.
        self._state = nxt
        log.debug("%s selection -> %s", self._instrument.slug, self.selected())

    def _require_factor(self, slug: str) -> None:
        if slug not in self._state:
            raise UnknownFactorError(self._instrument.slug, slug)

    def _require_group(self, group_slug: str) -> None:
        if self._instrument.group(group_slug) is None:
            raise UnknownFactorError(self._instrument.slug, group_slug)
