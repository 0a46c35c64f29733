"""
WAF Heuristics — Built-in Traffic Simulator.

Generates synthetic request batches for exercising the heuristics engine
offline. Supports: ordinary browsing, vulnerability scanning, HTTP flood.
Batches are reproducible for a given seed; nothing is sent on the network.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from waf_heuristics.detection.engine import HeuristicsEngine, heuristics_engine

logger = logging.getLogger("waf_heuristics.simulator")

# Realistic browser user-agents for legitimate traffic simulation
_REAL_UAS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_3) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:122.0) Gecko/20100101 Firefox/122.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36 Edg/121.0.0.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_3 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1",
]

# Scripting clients used for floods
_BOT_UAS = [
    "python-requests/2.31.0",
    "Go-http-client/1.1",
    "curl/7.88.1",
    "Java/17.0.1",
]

_SCANNER_UAS = [
    "sqlmap/1.7.2#stable (https://sqlmap.org)",
    "Mozilla/5.0 (compatible; Nuclei - Open-source project (github.com/projectdiscovery/nuclei))",
    "gobuster/3.6",
    "Mozilla/5.00 (Nikto/2.5.0) (Evasions:None) (Test:000003)",
]

# Paths for realistic browsing patterns
_LEGIT_PATHS = [
    "/", "/about", "/contact", "/products", "/blog",
    "/blog/post-1", "/blog/post-2", "/faq", "/pricing",
    "/static/css/style.css", "/static/js/app.js",
    "/static/images/logo.png", "/api/products",
]

# Scanner paths; each carries at least one of DEFAULT_KEYWORDS
_SCANNER_PATHS = [
    "/wp-admin/install.php", "/wp-login.php", "/.env", "/.git/config",
    "/phpmyadmin/index.php", "/admin/config.php", "/backup.sql",
    "/../../etc/passwd", "/wp-content/debug.log", "/config/.env",
]

DEFAULT_KEYWORDS = ["admin", ".env", "wp-", "config", "passwd", "backup", ".git"]


class TrafficScenario(str, Enum):
    BROWSING = "browsing"
    SCANNER = "scanner"
    FLOOD = "flood"


def status_bucket(status: int) -> int:
    """Encode a status code as its class: 2xx -> 1, 3xx -> 2, 4xx -> 3, 5xx -> 4."""
    return max(0, status // 100 - 1)


@dataclass
class SimulatorConfig:
    """Configuration for a simulated traffic batch."""
    scenario: TrafficScenario = TrafficScenario.BROWSING
    requests: int = 50
    source_ips: int = 1
    start_time: float = 1_700_000_000.0
    seed: int = 0
    keywords: list[str] = field(default_factory=lambda: list(DEFAULT_KEYWORDS))


@dataclass
class SimulationReport:
    """Engine results for one simulated batch."""
    scenario: str
    total_requests: int = 0
    header_verdict: Optional[str] = None
    max_burst: int = 0
    avg_kw_hits: float = 0.0
    scanning_404s: int = 0
    block_score: float = 0.0
    should_block: bool = False

    def summary(self) -> str:
        return (
            f"\n{'='*55}\n"
            f"   Simulation Report: {self.scenario}\n"
            f"{'='*55}\n"
            f"  Total Requests:  {self.total_requests}\n"
            f"  Header Verdict:  {self.header_verdict or 'ok'}\n"
            f"  Max Burst:       {self.max_burst}\n"
            f"  Avg KW Hits:     {self.avg_kw_hits:.2f}\n"
            f"  Scanning 404s:   {self.scanning_404s}\n"
            f"  Block Score:     {self.block_score:.2f}\n"
            f"  Should Block:    {self.should_block}\n"
            f"{'='*55}\n"
        )


class TrafficSimulator:
    """Generates synthetic traffic batches for one scenario."""

    def __init__(self, config: SimulatorConfig) -> None:
        self.config = config
        self._rng = random.Random(config.seed)
        self._requests = self._generate()

    # ── Batches ──────────────────────────────────────────

    def request_records(self) -> list[dict]:
        seen_404: dict[str, int] = {}
        records = []
        for ip, ts, path, status, flagged in self._requests:
            if status == 404:
                seen_404[ip] = seen_404.get(ip, 0) + 1
            records.append({
                "ip": ip,
                "path_lower": path.lower(),
                "path_len": len(path),
                "timestamp": ts,
                "response_time": round(self._rng.uniform(0.005, 0.25), 4),
                "status_idx": status_bucket(status),
                "kw_check": flagged,
                "total_404": seen_404.get(ip, 0),
            })
        return records

    def history_entries(self, ip: Optional[str] = None) -> list[dict]:
        """History for one origin (the first source IP by default)."""
        origin = ip or self._ip(0)
        return [
            {"path_lower": path.lower(), "timestamp": ts, "status": status, "kw_check": flagged}
            for src, ts, path, status, flagged in self._requests
            if src == origin
        ]

    def headers(self) -> dict[str, str]:
        scenario = self.config.scenario
        if scenario == TrafficScenario.BROWSING:
            return {
                "HTTP_USER_AGENT": self._rng.choice(_REAL_UAS),
                "HTTP_ACCEPT": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "HTTP_ACCEPT_LANGUAGE": "en-US,en;q=0.9",
                "HTTP_ACCEPT_ENCODING": "gzip, deflate, br",
                "HTTP_CONNECTION": "keep-alive",
                "SERVER_PROTOCOL": "HTTP/1.1",
            }
        ua = self._rng.choice(_SCANNER_UAS if scenario == TrafficScenario.SCANNER else _BOT_UAS)
        return {"HTTP_USER_AGENT": ua, "HTTP_ACCEPT": "*/*", "SERVER_PROTOCOL": "HTTP/1.1"}

    # ── Internal ─────────────────────────────────────────

    def _ip(self, n: int) -> str:
        return f"203.0.113.{(n % 250) + 1}"

    def _generate(self) -> list[tuple[str, float, str, int, bool]]:
        cfg = self.config
        rng = self._rng
        clocks = {self._ip(n): cfg.start_time for n in range(max(1, cfg.source_ips))}
        keywords = [kw.lower() for kw in cfg.keywords]

        requests = []
        for i in range(cfg.requests):
            ip = self._ip(i % max(1, cfg.source_ips))
            if cfg.scenario == TrafficScenario.BROWSING:
                gap = rng.uniform(5.0, 60.0)
                path = rng.choice(_LEGIT_PATHS)
                status = 404 if rng.random() < 0.05 else 200
            elif cfg.scenario == TrafficScenario.SCANNER:
                gap = rng.uniform(0.2, 1.0)
                path = rng.choice(_SCANNER_PATHS)
                status = 404
            else:
                gap = rng.uniform(0.01, 0.1)
                path = "/"
                status = 200
            clocks[ip] += gap
            flagged = any(kw in path.lower() for kw in keywords)
            requests.append((ip, round(clocks[ip], 3), path, status, flagged))
        return requests


def run_simulation(
    config: SimulatorConfig,
    engine: Optional[HeuristicsEngine] = None,
) -> SimulationReport:
    """Feed one simulated batch through every engine entry point."""
    engine = engine or heuristics_engine
    sim = TrafficSimulator(config)

    vectors = engine.extract(sim.request_records(), config.keywords)
    analysis = engine.analyze(sim.history_entries(), config.keywords)

    report = SimulationReport(
        scenario=config.scenario.value,
        total_requests=len(vectors),
        header_verdict=engine.validate(sim.headers()),
        max_burst=max((v["burst_count"] for v in vectors), default=0),
    )
    if analysis is not None:
        report.avg_kw_hits = analysis["avg_kw_hits"]
        report.scanning_404s = analysis["scanning_404s"]
        report.block_score = analysis["block_score"]
        report.should_block = analysis["should_block"]

    logger.debug("Simulation %s finished: %d request(s)", report.scenario, report.total_requests)
    return report
