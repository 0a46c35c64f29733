"""
WAF Heuristics — Behavioral Analysis Engine.

Summarises the request history of one origin to tell scanners from
ordinary visitors:
  • Keyword density (sensitive words in requested paths)
  • 404 profile (scans for well-known paths vs. ordinary broken links)
  • Burstiness (requests packed into short time windows)

The caller scopes the batch to a single origin; nothing is remembered
between calls.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from waf_heuristics.config import settings
from waf_heuristics.detection.batch import (
    burst_counts,
    keyword_hits,
    normalize_keywords,
    parse_batch,
)
from waf_heuristics.detection.patterns import SCANNING_SIGNATURES

logger = logging.getLogger("waf_heuristics.detection.behavior")

NOT_FOUND = 404


class HistoryEntry(BaseModel):
    """One past request of the origin under analysis."""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    path_lower: str
    timestamp: float = Field(allow_inf_nan=False)
    status: int
    kw_check: bool


@dataclass
class BehaviorAnalysis:
    """Aggregate signals for one origin plus the advisory verdict."""
    avg_kw_hits: float
    max_404s: int
    avg_burst: float
    total_requests: int
    scanning_404s: int
    legitimate_404s: int
    should_block: bool
    block_score: float = 0.0

    def as_dict(self) -> dict:
        return asdict(self)


class BehaviorAnalyzer:
    """
    Aggregates a history batch and produces a block recommendation.

    Score semantics:
        0.0 = nothing scanner-like
        1.0 = every signal saturated
    should_block is ``block_score >= block_threshold``. Every signal is
    non-decreasing in its input and every weight is non-negative, so
    raising one signal never flips a block into a pass.
    """

    def __init__(
        self,
        block_threshold: Optional[float] = None,
        kw_weight: Optional[float] = None,
        scan_weight: Optional[float] = None,
        burst_weight: Optional[float] = None,
        kw_hits_saturation: Optional[float] = None,
        scan_saturation: Optional[int] = None,
        burst_saturation: Optional[float] = None,
        burst_window_sec: Optional[float] = None,
    ) -> None:
        def pick(value, default):
            return default if value is None else value

        self.block_threshold = pick(block_threshold, settings.block_threshold)
        self.kw_weight = pick(kw_weight, settings.kw_weight)
        self.scan_weight = pick(scan_weight, settings.scan_weight)
        self.burst_weight = pick(burst_weight, settings.burst_weight)
        self.kw_hits_saturation = pick(kw_hits_saturation, settings.kw_hits_saturation)
        self.scan_saturation = pick(scan_saturation, settings.scan_saturation)
        self.burst_saturation = pick(burst_saturation, settings.burst_saturation)
        self.burst_window_sec = pick(burst_window_sec, settings.burst_window_sec)

        if min(self.kw_weight, self.scan_weight, self.burst_weight) < 0:
            raise ValueError("signal weights must be non-negative")
        if self.kw_hits_saturation <= 0 or self.scan_saturation <= 0:
            raise ValueError("kw_hits_saturation and scan_saturation must be positive")
        if self.burst_saturation <= 1:
            raise ValueError("burst_saturation must be greater than 1")
        if self.burst_window_sec <= 0:
            raise ValueError("burst_window_sec must be positive")

    def analyze(
        self,
        entries: Iterable,
        static_keywords: Iterable[str],
    ) -> Optional[BehaviorAnalysis]:
        """Summarise ``entries``; None for an empty batch."""
        keywords = normalize_keywords(static_keywords)
        batch = parse_batch(HistoryEntry, entries, "entry")
        if not batch:
            return None

        total = len(batch)
        scanning_404s = 0
        legitimate_404s = 0
        kw_total = 0
        for entry in batch:
            kw_total += keyword_hits(entry.path_lower, keywords, entry.kw_check)
            if entry.status != NOT_FOUND:
                continue
            if SCANNING_SIGNATURES.matches(entry.path_lower):
                scanning_404s += 1
            else:
                legitimate_404s += 1

        bursts = burst_counts([e.timestamp for e in batch], self.burst_window_sec)
        avg_kw_hits = kw_total / total
        avg_burst = sum(bursts) / total

        block_score = self._compute_score(
            avg_kw_hits, scanning_404s, legitimate_404s, avg_burst,
        )
        analysis = BehaviorAnalysis(
            avg_kw_hits=avg_kw_hits,
            # Whole-batch total; the batch is the only window we are given
            max_404s=scanning_404s + legitimate_404s,
            avg_burst=avg_burst,
            total_requests=total,
            scanning_404s=scanning_404s,
            legitimate_404s=legitimate_404s,
            should_block=block_score >= self.block_threshold,
            block_score=block_score,
        )

        if analysis.should_block:
            logger.info(
                "Block recommended — score=%.2f requests=%d scanning_404s=%d avg_burst=%.1f",
                block_score, total, scanning_404s, avg_burst,
            )
        else:
            logger.debug("Behavior score %.2f over %d request(s)", block_score, total)
        return analysis

    # ── Scoring ──────────────────────────────────────────

    def _compute_score(
        self,
        avg_kw_hits: float,
        scanning_404s: int,
        legitimate_404s: int,
        avg_burst: float,
    ) -> float:
        """Combine the behavioral signals into [0, 1]."""
        signals: list[tuple[float, float]] = [  # (value, weight)
            (self._keyword_signal(avg_kw_hits), self.kw_weight),
            (self._scan_signal(scanning_404s, legitimate_404s), self.scan_weight),
            (self._burst_signal(avg_burst), self.burst_weight),
        ]
        composite = sum(v * w for v, w in signals)
        return min(1.0, max(0.0, composite))

    def _keyword_signal(self, avg_kw_hits: float) -> float:
        return min(1.0, avg_kw_hits / self.kw_hits_saturation)

    def _scan_signal(self, scanning: int, legitimate: int) -> float:
        """
        Share of 404s that were scanning hits, damped while that count is
        small so one stray hit on /.env does not saturate the signal.
        """
        if scanning == 0:
            return 0.0
        ratio = scanning / (scanning + legitimate)
        return ratio * min(1.0, scanning / self.scan_saturation)

    def _burst_signal(self, avg_burst: float) -> float:
        # A lone request always has a burst of 1
        ramp = (avg_burst - 1.0) / (self.burst_saturation - 1.0)
        return min(1.0, max(0.0, ramp))
