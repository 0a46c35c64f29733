"""
WAF Heuristics — Configuration via Pydantic Settings.

All tunables are loaded from environment variables or .env file.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class Settings(BaseSettings):
    """Library-wide settings loaded from env / .env."""

    # ── General ──────────────────────────────────────────────
    log_level: str = "info"

    # ── Header validation ────────────────────────────────────
    required_headers: list[str] = Field(
        default_factory=lambda: ["HTTP_USER_AGENT", "HTTP_ACCEPT"],
        description="Headers every request must carry (empty list disables)",
    )
    min_score: int = Field(
        default=3,
        description="Minimum header quality score (<= 0 disables)",
    )
    browser_combo_bonus: int = Field(
        default=2, ge=0,
        description="Bonus when the typical browser header combination is present",
    )

    # ── Windows ──────────────────────────────────────────────
    burst_window_sec: float = Field(
        default=10.0,
        description="Half-width of the symmetric burst window in seconds",
    )

    # ── Block policy ─────────────────────────────────────────
    block_threshold: float = Field(
        default=0.5,
        description="Composite score (0–1) at which should_block turns on",
    )
    kw_weight: float = 0.40
    scan_weight: float = 0.35
    burst_weight: float = 0.25
    kw_hits_saturation: float = Field(
        default=2.0, description="Average keyword hits that max out the keyword signal",
    )
    scan_saturation: int = Field(
        default=3, description="Scanning 404s that max out the scan signal",
    )
    burst_saturation: float = Field(
        default=10.0, description="Average burst that maxes out the burst signal",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"debug", "info", "warning", "error", "critical"}
        if v.lower() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.lower()

    @field_validator("kw_weight", "scan_weight", "burst_weight")
    @classmethod
    def validate_weight(cls, v: float) -> float:
        # Negative weights would break monotonicity of the block verdict
        if v < 0:
            raise ValueError("signal weights must be non-negative")
        return v

    @field_validator("burst_window_sec", "kw_hits_saturation", "scan_saturation")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("burst_saturation")
    @classmethod
    def validate_burst_saturation(cls, v: float) -> float:
        if v <= 1:
            raise ValueError("burst_saturation must be greater than 1")
        return v

    model_config = {
        "env_prefix": "WAF_HEURISTICS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Install the standard log format for hosts and tools that want it."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format=LOG_FORMAT,
        force=True,
    )


# Singleton
settings = Settings()
