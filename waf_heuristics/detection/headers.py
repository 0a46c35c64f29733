"""
WAF Heuristics — Header Validator.

Scores a single request's CGI-style header set and raises at most one
objection. Checks run in a fixed order and the first objection wins:

  1. required headers present
  2. user-agent consistency (deny-list, browser signature)
  3. header quality score
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from waf_heuristics.config import settings
from waf_heuristics.detection.patterns import (
    BROWSER_FAMILIES,
    LEGITIMATE_ALLOWLIST,
    SUSPICIOUS_DENYLIST,
)
from waf_heuristics.errors import InputContractError

logger = logging.getLogger("waf_heuristics.detection.headers")

USER_AGENT = "HTTP_USER_AGENT"
ACCEPT = "HTTP_ACCEPT"
ACCEPT_LANGUAGE = "HTTP_ACCEPT_LANGUAGE"
ACCEPT_ENCODING = "HTTP_ACCEPT_ENCODING"
CONNECTION = "HTTP_CONNECTION"
SERVER_PROTOCOL = "SERVER_PROTOCOL"

REASON_MISSING = "missing required header: {name}"
REASON_SUSPICIOUS_UA = "suspicious user agent"
REASON_INCONSISTENT = "inconsistent browser signature"
REASON_LOW_SCORE = "low header quality score"

PRIMARY_POINTS = {USER_AGENT: 2, ACCEPT: 2}
SECONDARY_HEADERS = (ACCEPT_LANGUAGE, ACCEPT_ENCODING, CONNECTION)
BROWSER_COMBINATION = (USER_AGENT, ACCEPT, ACCEPT_LANGUAGE, ACCEPT_ENCODING)

# Headers each browser family sends on every navigation
_FAMILY_HEADERS: dict[str, tuple[str, ...]] = {
    "edge": (ACCEPT_LANGUAGE, ACCEPT_ENCODING),
    "opera": (ACCEPT_LANGUAGE, ACCEPT_ENCODING),
    "chrome": (ACCEPT_LANGUAGE, ACCEPT_ENCODING),
    "firefox": (ACCEPT_LANGUAGE, ACCEPT_ENCODING),
    "safari": (ACCEPT_LANGUAGE,),
}


@dataclass(frozen=True)
class ValidatorConfig:
    """Per-call validation knobs.

    An empty ``required_headers`` disables the required-header check and a
    ``min_score`` of zero or less disables the score check. Defaults live
    in settings; use ``default()`` to get them.
    """
    required_headers: tuple[str, ...]
    min_score: int

    @classmethod
    def default(cls) -> "ValidatorConfig":
        return cls(
            required_headers=tuple(settings.required_headers),
            min_score=settings.min_score,
        )

    @classmethod
    def from_overrides(
        cls,
        required_headers: Optional[Iterable[str]] = None,
        min_score: Optional[int] = None,
    ) -> "ValidatorConfig":
        """Build a config where ``None`` means "use the default"."""
        base = cls.default()
        if isinstance(required_headers, str):
            required_headers = [required_headers]
        if required_headers is not None:
            required_headers = tuple(required_headers)
            if not all(isinstance(name, str) for name in required_headers):
                raise InputContractError("required_headers entries must be strings")
        # bool is an int subclass but never a meaningful score
        if min_score is not None and (
            isinstance(min_score, bool) or not isinstance(min_score, int)
        ):
            raise InputContractError(
                f"min_score must be an integer, got {type(min_score).__name__}"
            )
        return cls(
            required_headers=(
                base.required_headers if required_headers is None else required_headers
            ),
            min_score=base.min_score if min_score is None else min_score,
        )


def header_value(headers: Mapping, name: str) -> Optional[str]:
    """Return the stripped header value, or None when absent or blank."""
    value: Any = headers.get(name)
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("latin-1")
    text = str(value).strip()
    return text or None


class HeaderValidator:
    """Stateless header-quality validator."""

    def __init__(self, browser_combo_bonus: Optional[int] = None) -> None:
        self.browser_combo_bonus = (
            settings.browser_combo_bonus if browser_combo_bonus is None
            else browser_combo_bonus
        )

    def validate(self, headers: Mapping) -> Optional[str]:
        return self.validate_with_config(headers, ValidatorConfig.default())

    def validate_with_config(
        self, headers: Mapping, config: ValidatorConfig,
    ) -> Optional[str]:
        """Return a rejection reason, or None when nothing objects."""
        if not isinstance(headers, Mapping):
            headers = {}

        reason = (
            self._check_required(headers, config.required_headers)
            or self._check_user_agent(headers)
            or self._check_score(headers, config.min_score)
        )
        if reason:
            logger.debug("Header objection: %s", reason)
        return reason

    def score(self, headers: Mapping) -> int:
        """Additive quality score; higher looks more like a real browser."""
        if not isinstance(headers, Mapping):
            return 0
        total = sum(
            points for name, points in PRIMARY_POINTS.items()
            if header_value(headers, name)
        )
        total += sum(1 for name in SECONDARY_HEADERS if header_value(headers, name))
        if all(header_value(headers, name) for name in BROWSER_COMBINATION):
            total += self.browser_combo_bonus
        return total

    @staticmethod
    def missing_headers(headers: Mapping, names: Sequence[str]) -> list[str]:
        return [name for name in names if not header_value(headers, name)]

    # ── Checks ───────────────────────────────────────────

    def _check_required(
        self, headers: Mapping, required: Sequence[str],
    ) -> Optional[str]:
        missing = self.missing_headers(headers, required)
        if missing:
            return REASON_MISSING.format(name=missing[0])
        return None

    @staticmethod
    def _check_user_agent(headers: Mapping) -> Optional[str]:
        ua = header_value(headers, USER_AGENT)
        if ua is None or LEGITIMATE_ALLOWLIST.matches(ua):
            return None

        rule = SUSPICIOUS_DENYLIST.first_match(ua)
        if rule is not None:
            logger.debug("User agent %r hit deny rule %s", ua, rule)
            return REASON_SUSPICIOUS_UA

        family = BROWSER_FAMILIES.first_match(ua)
        if family is None:
            return None
        if any(not header_value(headers, name) for name in _FAMILY_HEADERS[family]):
            return REASON_INCONSISTENT
        # Current browsers never speak HTTP/1.0
        protocol = header_value(headers, SERVER_PROTOCOL)
        if protocol is not None and protocol.upper() == "HTTP/1.0":
            return REASON_INCONSISTENT
        return None

    def _check_score(self, headers: Mapping, min_score: int) -> Optional[str]:
        if min_score <= 0:
            return None
        if self.score(headers) < min_score:
            return REASON_LOW_SCORE
        return None
