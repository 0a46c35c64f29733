"""
WAF Heuristics — Feature Extractor.

Turns a batch of raw request records into numeric feature vectors,
one per record and in the same order. The burst count is computed
against the supplied batch only; the caller decides how much history
the batch represents.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from waf_heuristics.config import settings
from waf_heuristics.detection.batch import (
    burst_counts,
    keyword_hits,
    normalize_keywords,
    parse_batch,
)

logger = logging.getLogger("waf_heuristics.detection.features")

# Numeric columns of feature_matrix(), in order
FEATURE_COLUMNS = (
    "path_len", "kw_hits", "resp_time", "status_idx", "burst_count", "total_404",
)


class RequestRecord(BaseModel):
    """One inbound request as reported by the host pipeline."""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    ip: str
    path_lower: str
    path_len: int = Field(ge=0)
    timestamp: float = Field(allow_inf_nan=False)
    response_time: float = Field(allow_inf_nan=False)
    status_idx: int = Field(ge=0)   # encoded status-code bucket
    kw_check: bool                  # caller already saw a keyword
    total_404: int = Field(ge=0)


@dataclass
class FeatureVector:
    ip: str
    path_len: int
    kw_hits: int
    resp_time: float
    status_idx: int
    burst_count: int
    total_404: int

    def as_dict(self) -> dict:
        return asdict(self)


class FeatureExtractor:
    """Stateless batch feature extractor."""

    def __init__(self, burst_window_sec: Optional[float] = None) -> None:
        self.burst_window_sec = (
            settings.burst_window_sec if burst_window_sec is None else burst_window_sec
        )
        if self.burst_window_sec <= 0:
            raise ValueError("burst_window_sec must be positive")

    def extract(
        self,
        records: Iterable,
        static_keywords: Iterable[str],
    ) -> list[FeatureVector]:
        """Return one FeatureVector per record, preserving order."""
        keywords = normalize_keywords(static_keywords)
        batch = parse_batch(RequestRecord, records, "record")

        bursts = burst_counts(
            [r.timestamp for r in batch],
            self.burst_window_sec,
            groups=[r.ip for r in batch],
        )

        vectors = [
            FeatureVector(
                ip=r.ip,
                path_len=r.path_len,
                kw_hits=keyword_hits(r.path_lower, keywords, r.kw_check),
                resp_time=r.response_time,
                status_idx=r.status_idx,
                burst_count=burst,
                total_404=r.total_404,
            )
            for r, burst in zip(batch, bursts)
        ]
        logger.debug(
            "Extracted %d feature vector(s) with %d keyword(s)",
            len(vectors), len(keywords),
        )
        return vectors


def feature_matrix(vectors: Sequence[FeatureVector]) -> np.ndarray:
    """Stack vectors into an (n, len(FEATURE_COLUMNS)) float64 matrix."""
    return np.array(
        [[float(getattr(v, col)) for col in FEATURE_COLUMNS] for v in vectors],
        dtype=np.float64,
    ).reshape(len(vectors), len(FEATURE_COLUMNS))
