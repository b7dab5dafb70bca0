"""
Exception types raised by the scoring library.

Two families:
  - Configuration errors (``CatalogError``): a malformed instrument table.
    Raised at load time and never corrected silently.
  - Caller misuse (``UnknownFactorError``, ``UnknownInstrumentError``,
    ``InstrumentMismatchError``): a defined, loud failure so the closed factor
    set stays enforceable in tests.

Each class also derives from the closest built-in so callers that only know
``KeyError`` / ``ValueError`` keep working.
"""

from __future__ import annotations


class ClinicalScoreError(Exception):
    """Base class for every error raised by ``clinical_scores``."""


class CatalogError(ClinicalScoreError, ValueError):
    """Raised when an instrument table cannot be loaded or fails validation.

    Attributes:
        source: File path or instrument slug the error refers to.
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"Instrument table '{source}': {message}")


class UnknownInstrumentError(ClinicalScoreError, KeyError):
    """Raised when a catalog lookup names an instrument that is not loaded.

    Attributes:
        slug:  The requested instrument slug.
        known: Slugs available in the catalog.
    """

    def __init__(self, slug: str, known: list[str]) -> None:
        self.slug  = slug
        self.known = known
        super().__init__(slug)

    def __str__(self) -> str:
        return (
            f"Unknown instrument '{self.slug}'. "
            f"Available: {', '.join(self.known) or '(none)'}."
        )


class UnknownFactorError(ClinicalScoreError, KeyError):
    """Raised when a selection is asked to act on a factor it does not define.

    Attributes:
        instrument_slug: Instrument the selection belongs to.
        factor_slug:     The rejected factor (or group) identifier.
    """

    def __init__(self, instrument_slug: str, factor_slug: str) -> None:
        self.instrument_slug = instrument_slug
        self.factor_slug     = factor_slug
        super().__init__(factor_slug)

    def __str__(self) -> str:
        return (
            f"'{self.factor_slug}' is not defined by instrument "
            f"'{self.instrument_slug}'."
        )


class InstrumentMismatchError(ClinicalScoreError, ValueError):
    """Raised when a selection built for one instrument is scored by another.

    Also raised when both tables share a slug but differ in content, e.g. a
    custom catalog directory overriding a shipped table.
    """

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual   = actual
        if expected == actual:
            message = (
                f"Selection was built for a different '{actual}' table "
                f"than the one it is evaluated against."
            )
        else:
            message = (
                f"Selection belongs to instrument '{actual}', "
                f"cannot be evaluated against '{expected}'."
            )
        super().__init__(message)
