"""
Shared pytest fixtures for the clinical score evaluator test suite.

Provides:
  - ``catalog``: The shipped instrument catalog, loaded once per session.
  - ``cha2ds2_vasc`` / ``padua`` / ``improve`` / ``child_pugh``: Shipped
    instruments used across several test modules.
  - ``toy_instrument_data``: A small raw instrument dict (one exclusivity
    group, three tiers) for model-validation tests to mutate.
  - ``toy_instrument``: The validated model built from that dict.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from clinical_scores.catalog.loader import InstrumentCatalog, load_catalog
from clinical_scores.models.instrument import ScoreInstrument


# ── Shipped catalog ───────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def catalog() -> InstrumentCatalog:
    """The instrument tables shipped in ``clinical_scores/catalog/data``."""
    return load_catalog()


@pytest.fixture
def cha2ds2_vasc(catalog) -> ScoreInstrument:
    return catalog.get("cha2ds2_vasc")


@pytest.fixture
def padua(catalog) -> ScoreInstrument:
    return catalog.get("padua")


@pytest.fixture
def improve(catalog) -> ScoreInstrument:
    return catalog.get("improve_bleeding")


@pytest.fixture
def child_pugh(catalog) -> ScoreInstrument:
    return catalog.get("child_pugh")


# ── Toy instrument ────────────────────────────────────────────────────────────

_TOY: dict[str, Any] = {
    "slug": "toy",
    "name": "Toy Score",
    "category": "cardiology",
    "groups": [{"slug": "age", "label": "Age"}],
    "factors": [
        {"slug": "a", "label": "A", "points": 1},
        {"slug": "b", "label": "B", "points": 2},
        {"slug": "age_young", "label": "Young", "points": 1, "group": "age"},
        {"slug": "age_old", "label": "Old", "points": 2, "group": "age"},
    ],
    "tiers": [
        {"min_score": 0, "label": "Low", "risk_level": "low", "recommendation": "Nothing"},
        {"min_score": 2, "label": "Moderate", "risk_level": "moderate", "recommendation": "Watch"},
        {"min_score": 4, "label": "High", "risk_level": "high", "recommendation": "Act"},
    ],
}


@pytest.fixture
def toy_instrument_data() -> dict[str, Any]:
    """Fresh deep copy of the toy instrument dict; safe to mutate."""
    return copy.deepcopy(_TOY)


@pytest.fixture
def toy_instrument(toy_instrument_data) -> ScoreInstrument:
    return ScoreInstrument.model_validate(toy_instrument_data)
