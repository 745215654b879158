from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

PERC_SUFFIX = "_perc"


def filter_by_substring(record: Mapping[str, Any] | None, substring: str) -> list[tuple[str, Any]]:
    """Return ``(key, value)`` pairs whose key contains *substring*, in key order."""
    if not record:
        return []
    return [(key, value) for key, value in record.items() if substring in key]


def _sort_value(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return -math.inf
    return -math.inf if math.isnan(number) else number


def top_n(pairs: Iterable[tuple[str, Any]], n: int = 5) -> list[tuple[str, Any]]:
    """
    Highest *n* pairs by value, labels stripped of ``_perc``.

    Ties keep their input order; missing or non-numeric values rank last.
    The caller's sequence is never reordered.
    """
    ranked = sorted(list(pairs), key=lambda pair: _sort_value(pair[1]), reverse=True)
    return [(key.removesuffix(PERC_SUFFIX), value) for key, value in ranked[:n]]


def percentage_of_max(values: Sequence[float]) -> list[float]:
    """
    Scale each value against the largest one (max -> 100).

    Empty input raises ``ValueError``; a zero maximum yields NaN entries.
    """
    arr = np.asarray(values, dtype=float)
    peak = arr.max()
    with np.errstate(divide="ignore", invalid="ignore"):
        return (arr / peak * 100).tolist()
