"""
WAF Heuristics — Detection Engine.

Plain-data entry points for the host pipeline. Composes the header
validator, feature extractor and behavior analyzer; the three are
independent and may be called in any order from any thread.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Iterable, Optional

from waf_heuristics.detection.behavior import BehaviorAnalyzer
from waf_heuristics.detection.features import FeatureExtractor
from waf_heuristics.detection.headers import HeaderValidator, ValidatorConfig

logger = logging.getLogger("waf_heuristics.detection.engine")


class HeuristicsEngine:
    """Central engine that composes validator, extractor and analyzer."""

    def __init__(
        self,
        validator: Optional[HeaderValidator] = None,
        extractor: Optional[FeatureExtractor] = None,
        analyzer: Optional[BehaviorAnalyzer] = None,
    ) -> None:
        self.validator = validator or HeaderValidator()
        self.extractor = extractor or FeatureExtractor()
        self.analyzer = analyzer or BehaviorAnalyzer()

    def validate(self, headers: Mapping) -> Optional[str]:
        """Validate with the default config; None means no objection."""
        return self.validator.validate(headers)

    def validate_with_config(
        self,
        headers: Mapping,
        required_headers: Optional[Iterable[str]] = None,
        min_score: Optional[int] = None,
    ) -> Optional[str]:
        """
        Validate with per-call overrides. ``None`` keeps the default;
        an empty ``required_headers`` or a ``min_score`` <= 0 disables
        that check.
        """
        config = ValidatorConfig.from_overrides(required_headers, min_score)
        return self.validator.validate_with_config(headers, config)

    def extract(self, records: Iterable, static_keywords: Iterable[str]) -> list[dict]:
        """Feature vectors as plain dicts, one per record."""
        return [v.as_dict() for v in self.extractor.extract(records, static_keywords)]

    def analyze(
        self, entries: Iterable, static_keywords: Iterable[str],
    ) -> Optional[dict]:
        """Behavior summary as a plain dict, or None for an empty batch."""
        analysis = self.analyzer.analyze(entries, static_keywords)
        return analysis.as_dict() if analysis is not None else None


# Module-level singleton
heuristics_engine = HeuristicsEngine()

validate = heuristics_engine.validate
validate_with_config = heuristics_engine.validate_with_config
extract = heuristics_engine.extract
analyze = heuristics_engine.analyze
