"""
WAF Heuristics — Batch helpers.

Input-contract parsing plus the keyword-hit and burst-window rules shared
by the feature extractor and the behavior analyzer.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Hashable, Optional, Sequence, TypeVar

import numpy as np
from pydantic import BaseModel, ValidationError

from waf_heuristics.errors import InputContractError

M = TypeVar("M", bound=BaseModel)


def parse_batch(model: type[M], items: Iterable, kind: str) -> list[M]:
    """Validate every item against ``model``; reject the whole batch on error."""
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        raise InputContractError(f"{kind}s must be a sequence, got {type(items).__name__}")

    parsed: list[M] = []
    for index, item in enumerate(items):
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in exc.errors()
            )
            raise InputContractError(f"{kind} {index}: {problems}", index=index) from exc
    return parsed


def normalize_keywords(static_keywords: Iterable[str]) -> list[str]:
    """Lowercase keywords once per batch; every entry is kept."""
    if isinstance(static_keywords, (str, bytes)) or not isinstance(static_keywords, Iterable):
        raise InputContractError("static_keywords must be a sequence of strings")

    keywords: list[str] = []
    for kw in static_keywords:
        if not isinstance(kw, str):
            raise InputContractError(
                f"static_keywords entries must be strings, got {type(kw).__name__}"
            )
        keywords.append(kw.lower())
    return keywords


def keyword_hits(path_lower: str, keywords: Sequence[str], kw_check: bool) -> int:
    """Keyword substrings found in the path, plus one for the caller's pre-flag."""
    hits = sum(1 for kw in keywords if kw in path_lower)
    return hits + 1 if kw_check else hits


def burst_counts(
    timestamps: Sequence[float],
    window: float,
    groups: Optional[Sequence[Hashable]] = None,
) -> list[int]:
    """
    For each item, count items of the same group whose timestamp lies
    within ``±window`` seconds (inclusive), the item itself included.

    Sorts by (group, timestamp) and sweeps two pointers per group, which
    gives the same counts as comparing every pair.
    """
    n = len(timestamps)
    if n == 0:
        return []

    ts = np.asarray(timestamps, dtype=np.float64)
    if groups is None:
        codes = np.zeros(n, dtype=np.int64)
    else:
        index: dict = {}
        codes = np.array([index.setdefault(g, len(index)) for g in groups], dtype=np.int64)

    order = np.lexsort((ts, codes))
    sorted_ts = ts[order].tolist()
    bounds = np.concatenate((
        [0], np.flatnonzero(np.diff(codes[order])) + 1, [n],
    )).tolist()

    counts = np.zeros(n, dtype=np.int64)
    for start, end in zip(bounds[:-1], bounds[1:]):
        lo = hi = start
        for k in range(start, end):
            t = sorted_ts[k]
            while t - sorted_ts[lo] > window:
                lo += 1
            while hi < end and sorted_ts[hi] - t <= window:
                hi += 1
            counts[order[k]] = hi - lo
    return counts.tolist()
