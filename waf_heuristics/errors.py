"""
WAF Heuristics — Exceptions.
"""

from __future__ import annotations

from typing import Optional


class HeuristicsError(Exception):
    """Base class for errors raised by this package."""


class InputContractError(HeuristicsError, ValueError):
    """A caller-supplied batch violates the input contract.

    The whole call is rejected; ``index`` points at the offending
    record or entry (``None`` when the problem is not tied to one).
    """

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index
