"""
Instrument catalog loader: JSON tables → validated ``ScoreInstrument`` models.

Responsibilities
----------------
1. Read every ``*.json`` table from ``clinical_scores/catalog/data/`` (or a
   directory given by configuration).
2. Validate each table through the pydantic models. Any schema or structure
   violation is reported as a ``CatalogError`` naming the file.
3. Reject duplicate instrument slugs across files.
4. Serve the result as an immutable ``InstrumentCatalog``.

Tables are data, not code: a broken table fails the load loudly and is never
patched up at runtime.

Usage
-----
    from clinical_scores.catalog.loader import default_catalog

    catalog = default_catalog()
    padua = catalog.get("padua")
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterator, Optional

from pydantic import ValidationError

from clinical_scores.config import AppConfig
from clinical_scores.exceptions import CatalogError, UnknownInstrumentError
from clinical_scores.models.instrument import ScoreInstrument
from clinical_scores.taxonomy.risk_taxonomy import InstrumentCategory

log = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"


class InstrumentCatalog:
    """Read-only mapping of instrument slug → ``ScoreInstrument``.

    Iteration yields instruments sorted by slug.
    """

    def __init__(self, instruments: list[ScoreInstrument]) -> None:
        by_slug: dict[str, ScoreInstrument] = {}
        for inst in instruments:
            if inst.slug in by_slug:
                raise CatalogError(inst.slug, "duplicate instrument slug.")
            by_slug[inst.slug] = inst
        self._by_slug = dict(sorted(by_slug.items()))

    def get(self, slug: str) -> ScoreInstrument:
        try:
            return self._by_slug[slug]
        except KeyError:
            raise UnknownInstrumentError(slug, self.slugs()) from None

    def slugs(self) -> list[str]:
        return list(self._by_slug)

    def by_category(self, category: InstrumentCategory | str) -> list[ScoreInstrument]:
        """Instruments in ``category``, sorted by slug."""
        category = InstrumentCategory(category)
        return [i for i in self._by_slug.values() if i.category == category]

    def __iter__(self) -> Iterator[ScoreInstrument]:
        return iter(self._by_slug.values())

    def __len__(self) -> int:
        return len(self._by_slug)

    def __contains__(self, slug: object) -> bool:
        return slug in self._by_slug

    def __repr__(self) -> str:
        return f"InstrumentCatalog({len(self)} instruments)"


# ── Loading ───────────────────────────────────────────────────────────────────

def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<instrument>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def load_instrument(path: Path, strict_monotonic: bool = True) -> ScoreInstrument:
    """Load and validate a single instrument table.

    Args:
        path:             JSON file holding one instrument object.
        strict_monotonic: When False, tier risk levels are not required to
            be non-decreasing (the table's own ``monotonic_risk`` is ignored).

    Raises:
        CatalogError: If the file cannot be read or parsed, or fails validation.
    """
    path = Path(path)
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CatalogError(str(path), f"cannot read file ({exc}).") from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(
            str(path), f"invalid JSON at line {exc.lineno}: {exc.msg}."
        ) from exc

    if not isinstance(raw, dict):
        raise CatalogError(str(path), "top-level value must be a JSON object.")
    if not strict_monotonic:
        raw["monotonic_risk"] = False

    try:
        instrument = ScoreInstrument.model_validate(raw)
    except ValidationError as exc:
        raise CatalogError(str(path), _format_validation_error(exc)) from exc

    log.debug(
        "Loaded %s: %d factors, %d tiers, max score %s",
        instrument.slug, len(instrument.factors), len(instrument.tiers),
        instrument.to_points(instrument.max_score),
    )
    return instrument


def load_catalog(
    directory: Optional[Path] = None,
    strict_monotonic: bool = True,
) -> InstrumentCatalog:
    """Load every ``*.json`` table in ``directory`` (default: shipped tables).

    Raises:
        CatalogError: If the directory is missing or empty, any table is
            invalid, or two tables declare the same slug.
    """
    directory = Path(directory) if directory is not None else DATA_DIR
    if not directory.is_dir():
        raise CatalogError(str(directory), "catalog directory does not exist.")

    paths = sorted(directory.glob("*.json"))
    if not paths:
        raise CatalogError(str(directory), "no instrument tables (*.json) found.")

    instruments: list[ScoreInstrument] = []
    seen: dict[str, Path] = {}
    for path in paths:
        inst = load_instrument(path, strict_monotonic=strict_monotonic)
        if inst.slug in seen:
            raise CatalogError(
                str(path),
                f"instrument slug '{inst.slug}' already defined in {seen[inst.slug].name}.",
            )
        seen[inst.slug] = path
        instruments.append(inst)

    log.info("Loaded %d instruments from %s", len(instruments), directory)
    return InstrumentCatalog(instruments)


@lru_cache(maxsize=None)
def _cached_catalog(directory: Optional[str], strict_monotonic: bool) -> InstrumentCatalog:
    return load_catalog(
        Path(directory) if directory else None,
        strict_monotonic=strict_monotonic,
    )


def default_catalog(
    directory: Optional[str | Path] = None,
    strict_monotonic: bool = True,
) -> InstrumentCatalog:
    """Return the catalog, loading it on first use and caching it afterwards.

    ``directory`` overrides the shipped tables (``[catalog] data_dir``).
    """
    return _cached_catalog(str(directory) if directory else None, strict_monotonic)


def catalog_from_config(config: AppConfig) -> InstrumentCatalog:
    """Build the catalog described by an ``AppConfig``'s ``[catalog]`` section."""
    cat_cfg = config.catalog
    return default_catalog(cat_cfg.data_dir, strict_monotonic=cat_cfg.strict_monotonic)
