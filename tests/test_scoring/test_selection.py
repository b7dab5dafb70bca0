"""Tests for FactorSelection — toggling, exclusivity groups and reset.

Covers:
  - all factors start unselected;
  - toggle flips state and returns the new value;
  - selecting a grouped factor clears its siblings in one transition;
  - choose() only accepts members of the named group;
  - unknown factor or group slugs raise UnknownFactorError;
  - reset() returns to the initial state.
"""

from __future__ import annotations

import pytest

from clinical_scores.exceptions import UnknownFactorError
from clinical_scores.scoring.selection import FactorSelection


class TestInitialState:
    def test_nothing_selected(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        assert sel.selected() == ()
        assert all(not on for _, on in sel)

    def test_state_covers_every_factor(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        assert set(sel.as_dict()) == set(toy_instrument.factor_slugs)

    def test_instrument_accessors(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        assert sel.instrument is toy_instrument
        assert sel.instrument_slug == "toy"


class TestToggle:
    def test_toggle_on_then_off(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        assert sel.toggle("a") is True
        assert sel.is_selected("a")
        assert sel.toggle("a") is False
        assert not sel.is_selected("a")

    def test_toggle_twice_restores_state(self, toy_instrument):
        sel = FactorSelection.from_slugs(toy_instrument, ["b", "age_old"])
        before = sel.as_dict()
        sel.toggle("a")
        sel.toggle("a")
        assert sel.as_dict() == before

    def test_selected_in_declaration_order(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        sel.toggle("age_old")
        sel.toggle("a")
        assert sel.selected() == ("a", "age_old")

    def test_unknown_factor_raises(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        with pytest.raises(UnknownFactorError, match="'nope' is not defined by instrument 'toy'"):
            sel.toggle("nope")

    def test_unknown_factor_leaves_state_untouched(self, toy_instrument):
        sel = FactorSelection.from_slugs(toy_instrument, ["a"])
        with pytest.raises(UnknownFactorError):
            sel.toggle("nope")
        assert sel.selected() == ("a",)

    def test_unknown_factor_is_a_key_error(self, toy_instrument):
        with pytest.raises(KeyError):
            FactorSelection(toy_instrument).select("nope")


class TestExclusivityGroups:
    def test_selecting_sibling_clears_previous(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        sel.toggle("age_young")
        sel.toggle("age_old")
        assert sel.is_selected("age_old")
        assert not sel.is_selected("age_young")
        assert sel.chosen("age") == "age_old"

    def test_at_most_one_per_group_after_any_sequence(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        for slug in ["age_young", "a", "age_old", "age_young", "b", "age_old", "age_old"]:
            sel.toggle(slug)
            members = toy_instrument.group_members("age")
            assert sum(sel.is_selected(m) for m in members) <= 1

    def test_deselect_group_member_leaves_group_empty(self, toy_instrument):
        sel = FactorSelection.from_slugs(toy_instrument, ["age_old"])
        sel.deselect("age_old")
        assert sel.chosen("age") is None

    def test_ungrouped_factors_unaffected(self, toy_instrument):
        sel = FactorSelection.from_slugs(toy_instrument, ["a", "b", "age_young"])
        sel.toggle("age_old")
        assert sel.is_selected("a")
        assert sel.is_selected("b")

    def test_from_slugs_last_group_member_wins(self, toy_instrument):
        sel = FactorSelection.from_slugs(toy_instrument, ["age_old", "age_young"])
        assert sel.chosen("age") == "age_young"

    def test_choose(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        sel.choose("age", "age_old")
        sel.choose("age", "age_young")
        assert sel.selected() == ("age_young",)

    def test_choose_rejects_factor_outside_group(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        with pytest.raises(UnknownFactorError, match="age.a"):
            sel.choose("age", "a")

    def test_choose_rejects_unknown_group(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        with pytest.raises(UnknownFactorError):
            sel.choose("sex", "a")

    def test_chosen_unknown_group_raises(self, toy_instrument):
        with pytest.raises(UnknownFactorError):
            FactorSelection(toy_instrument).chosen("sex")


class TestReset:
    def test_reset_clears_everything(self, toy_instrument):
        sel = FactorSelection.from_slugs(toy_instrument, ["a", "b", "age_old"])
        sel.reset()
        assert sel.selected() == ()
        assert sel == FactorSelection(toy_instrument)

    def test_select_and_deselect_are_idempotent(self, toy_instrument):
        sel = FactorSelection(toy_instrument)
        sel.select("a")
        sel.select("a")
        assert sel.selected() == ("a",)
        sel.deselect("a")
        sel.deselect("a")
        assert sel.selected() == ()
