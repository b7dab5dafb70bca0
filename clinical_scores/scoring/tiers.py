"""
Ordered-threshold lookup shared by every instrument and formula table.

A threshold table is a sequence of bands sorted by strictly increasing lower
bound, the first bound being the smallest value the table accepts. A value
maps to the band with the highest lower bound that is ``<=`` the value, so
the last band is open-ended: anything above it still resolves to it.

This replaces one if/else ladder per instrument with a single ``bisect``.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")


def find_band(
    bands: Sequence[T],
    value: float,
    lower_bound: Callable[[T], float],
) -> T:
    """Return the band of ``bands`` that ``value`` falls into.

    Args:
        bands:       Bands sorted by strictly increasing ``lower_bound``.
        value:       The score or measurement to classify.
        lower_bound: Accessor returning a band's inclusive lower bound.

    Returns:
        The band with the greatest lower bound ``<= value``.

    Raises:
        ValueError: If ``bands`` is empty or ``value`` is below the first
            band's lower bound.
    """
    if not bands:
        raise ValueError("Threshold table is empty.")
    bounds = [lower_bound(b) for b in bands]
    idx = bisect_right(bounds, value) - 1
    if idx < 0:
        raise ValueError(
            f"Value {value} is below the lowest threshold {bounds[0]}."
        )
    return bands[idx]


def check_bounds(bounds: Sequence[float], start: float | None = 0) -> list[str]:
    """Return a list of problems with a threshold column (empty = valid).

    Checks:
      - at least one band;
      - bounds strictly increasing (no overlaps, no duplicate thresholds);
      - the first bound equals ``start`` when ``start`` is given, so the table
        has no gap at the bottom of its domain.
    """
    problems: list[str] = []
    if not bounds:
        return ["table has no bands"]
    if start is not None and bounds[0] != start:
        problems.append(f"first threshold is {bounds[0]}, expected {start}")
    for prev, cur in zip(bounds, bounds[1:]):
        if cur <= prev:
            problems.append(
                f"thresholds not strictly increasing ({prev} followed by {cur})"
            )
    return problems
