"""Tests for the instrument catalog loader and the shipped tables.

Covers:
  - every shipped table loads and is mapped in the taxonomy;
  - literal tier tables (CHA2DS2-VASc per-score risk, Padua, Wells, PALIAR);
  - malformed tables are rejected with CatalogError naming the file;
  - duplicate slugs across files are rejected;
  - catalog lookup, iteration and category filtering.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from clinical_scores.catalog.loader import (
    DATA_DIR,
    InstrumentCatalog,
    default_catalog,
    load_catalog,
    load_instrument,
)
from clinical_scores.exceptions import CatalogError, UnknownInstrumentError
from clinical_scores.taxonomy.risk_taxonomy import InstrumentCategory

SHIPPED = {
    "cha2ds2_vasc", "padua", "caprini", "improve_bleeding", "wells_pe",
    "geneva_revised", "spesi", "nihss", "child_pugh", "rankin", "fast",
    "ppi", "paliar",
}


def _write(directory: Path, name: str, data) -> Path:
    path = directory / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestShippedCatalog:
    def test_all_instruments_load(self, catalog):
        assert set(catalog.slugs()) == SHIPPED
        assert len(catalog) == len(SHIPPED)

    def test_tier_tables_start_at_zero_and_reach_max(self, catalog):
        for inst in catalog:
            assert inst.tiers[0].min_score == 0, inst.slug
            assert inst.tiers[-1].min_score <= inst.max_score, inst.slug

    def test_every_group_offers_alternatives(self, catalog):
        for inst in catalog:
            for g in inst.groups:
                assert len(inst.group_members(g.slug)) >= 2, (inst.slug, g.slug)

    def test_cha2ds2_vasc_risk_table_literal(self, cha2ds2_vasc):
        estimates = [t.risk_estimate for t in cha2ds2_vasc.tiers]
        assert estimates == [
            "0%", "1.3%", "2.2%", "3.2%", "4.0%",
            "6.7%", "9.8%", "9.6%", "6.7%", "15.2%",
        ]
        assert [t.min_score for t in cha2ds2_vasc.tiers] == list(range(10))

    def test_padua_threshold(self, padua):
        assert [(t.min_score, t.label) for t in padua.tiers] == [
            (0, "Low risk"), (4, "High risk"),
        ]

    def test_wells_thresholds_in_half_points(self, catalog):
        wells = catalog.get("wells_pe")
        assert wells.point_scale == 2
        assert [wells.to_points(t.min_score) for t in wells.tiers] == [0, 2, 6.5]

    def test_paliar_thresholds_in_half_points(self, catalog):
        paliar = catalog.get("paliar")
        assert [paliar.to_points(t.min_score) for t in paliar.tiers] == [0, 3, 4, 7.5]

    def test_fast_has_sixteen_stages(self, catalog):
        fast = catalog.get("fast")
        assert len(fast.group_members("stage")) == 16
        assert fast.max_score == 15

    def test_nihss_maximum(self, catalog):
        nihss = catalog.get("nihss")
        assert len(nihss.groups) == 13
        assert nihss.max_score == 34

    def test_by_category(self, catalog):
        slugs = {i.slug for i in catalog.by_category(InstrumentCategory.PALLIATIVE_CARE)}
        assert slugs == {"fast", "ppi", "paliar"}
        assert catalog.by_category("nephrology") == []

    def test_get_unknown_raises(self, catalog):
        with pytest.raises(UnknownInstrumentError, match="Unknown instrument 'hasbled'"):
            catalog.get("hasbled")

    def test_contains_and_iter(self, catalog):
        assert "padua" in catalog
        assert "hasbled" not in catalog
        assert [i.slug for i in catalog] == sorted(SHIPPED)

    def test_default_catalog_is_cached(self):
        assert default_catalog() is default_catalog()


class TestMalformedTables:
    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ not json", encoding="utf-8")
        with pytest.raises(CatalogError, match="invalid JSON"):
            load_instrument(path)

    def test_schema_violation_names_file_and_field(self, tmp_path, toy_instrument_data):
        toy_instrument_data["factors"][0]["points"] = -2
        path = _write(tmp_path, "toy.json", toy_instrument_data)
        with pytest.raises(CatalogError, match="toy.json") as exc_info:
            load_instrument(path)
        assert "factors.0.points" in str(exc_info.value)

    def test_catalog_error_is_value_error(self, tmp_path):
        path = _write(tmp_path, "list.json", [1, 2])
        with pytest.raises(ValueError, match="JSON object"):
            load_instrument(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="cannot read"):
            load_instrument(tmp_path / "absent.json")

    def test_duplicate_slug_across_files(self, tmp_path, toy_instrument_data):
        _write(tmp_path, "one.json", toy_instrument_data)
        _write(tmp_path, "two.json", toy_instrument_data)
        with pytest.raises(CatalogError, match="already defined in one.json"):
            load_catalog(tmp_path)

    def test_empty_directory(self, tmp_path):
        with pytest.raises(CatalogError, match="no instrument tables"):
            load_catalog(tmp_path)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(CatalogError, match="does not exist"):
            load_catalog(tmp_path / "nope")

    def test_non_strict_monotonic_accepts_decreasing_levels(self, tmp_path, toy_instrument_data):
        toy_instrument_data["tiers"][2]["risk_level"] = "low"
        path = _write(tmp_path, "toy.json", toy_instrument_data)
        with pytest.raises(CatalogError, match="lower risk level"):
            load_instrument(path)
        inst = load_instrument(path, strict_monotonic=False)
        assert inst.monotonic_risk is False

    def test_custom_directory(self, tmp_path, toy_instrument_data):
        _write(tmp_path, "toy.json", toy_instrument_data)
        cat = load_catalog(tmp_path)
        assert cat.slugs() == ["toy"]


class TestInstrumentCatalog:
    def test_duplicate_instruments_rejected(self, toy_instrument):
        with pytest.raises(CatalogError, match="duplicate"):
            InstrumentCatalog([toy_instrument, toy_instrument])

    def test_data_dir_ships_json(self):
        assert len(list(DATA_DIR.glob("*.json"))) == len(SHIPPED)
