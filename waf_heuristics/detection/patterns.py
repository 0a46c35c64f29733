"""
WAF Heuristics — Pattern Tables.

Static, case-insensitive rule tables shared by the header validator and
the behavior analyzer. Tables are compiled once at import and never
mutated, so they can be read from any thread without locking.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Optional


class PatternTable:
    """Ordered list of named regex rules, evaluated until the first hit."""

    def __init__(self, name: str, rules: Iterable[tuple[str, str]]) -> None:
        self.name = name
        self._rules: tuple[tuple[str, re.Pattern], ...] = tuple(
            (label, re.compile(pattern, re.IGNORECASE)) for label, pattern in rules
        )

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"PatternTable({self.name!r}, rules={len(self._rules)})"

    @property
    def labels(self) -> list[str]:
        return [label for label, _ in self._rules]

    def first_match(self, value: Optional[str]) -> Optional[str]:
        """Return the label of the first rule matching ``value``, if any."""
        if not isinstance(value, str):
            return None
        for label, compiled in self._rules:
            if compiled.search(value):
                return label
        return None

    def matches(self, value: Optional[str]) -> bool:
        return self.first_match(value) is not None


class AgentClass(str, Enum):
    LEGITIMATE = "legitimate"
    SUSPICIOUS = "suspicious"
    UNKNOWN = "unknown"


# ── Known-good automated clients ─────────────────────────────

LEGITIMATE_ALLOWLIST = PatternTable("legitimate_allowlist", [
    ("googlebot", r"googlebot|google-inspectiontool|adsbot-google|mediapartners-google"),
    ("bingbot", r"bingbot|msnbot|bingpreview"),
    ("yahoo", r"yahoo! slurp"),
    ("duckduckbot", r"duckduckbot|duckduckgo-favicons-bot"),
    ("baiduspider", r"baiduspider"),
    ("yandexbot", r"yandex(?:bot|images|mobilebot)"),
    ("applebot", r"applebot"),
    ("facebook", r"facebookexternalhit|facebookcatalog"),
    ("twitterbot", r"twitterbot"),
    ("linkedinbot", r"linkedinbot"),
    ("slackbot", r"slackbot-linkexpanding|slack-imgproxy"),
    ("uptimerobot", r"uptimerobot"),
    ("pingdom", r"pingdom\.com_bot|pingdombot"),
    ("statuscake", r"statuscake"),
    ("site24x7", r"site24x7"),
    ("betteruptime", r"better(?:uptime|stack) bot"),
    ("newrelic", r"newrelicpinger"),
    ("datadog", r"datadog(?:hq)?[ -/]?synthetics|datadogsynthetics"),
])


# ── Scripting clients, scanners and malformed agents ─────────

SUSPICIOUS_DENYLIST = PatternTable("suspicious_denylist", [
    ("curl", r"\bcurl/"),
    ("wget", r"\bwget/"),
    ("python", r"python-requests|python-urllib|python-httpx|\bhttpx/|aiohttp|\burllib3?/"),
    ("go", r"go-http-client"),
    ("java", r"\bjava/|apache-httpclient|okhttp"),
    ("perl", r"libwww-perl|\blwp::"),
    ("node", r"node-fetch|\baxios/|\bundici\b|\bgot \("),
    ("ruby", r"\bruby\b|faraday v"),
    ("php", r"\bphp/|guzzlehttp"),
    ("scrapy", r"\bscrapy/"),
    ("scanner", r"sqlmap|nikto|\bnmap\b|masscan|zgrab|wpscan|dirbuster|gobuster|"
                r"\bffuf\b|nuclei|acunetix|nessus|openvas|\bw3af\b|\bburp"),
    ("headless", r"headlesschrome|phantomjs|\bselenium\b|webdriver|puppeteer|playwright"),
    ("empty", r"^\s*$"),
    ("placeholder", r"^\s*(?:-|none|null|undefined|unknown|test|user-?agent|mozilla)\s*$"),
    ("single_token", r"^\s*[a-z0-9_.-]+\s*$"),
])


# ── Paths requested by vulnerability / content scanners ────────

SCANNING_SIGNATURES = PatternTable("scanning_signatures", [
    ("wordpress", r"wp-admin|wp-login|wp-content|wp-includes|wp-config|xmlrpc\.php"),
    ("cms_admin", r"phpmyadmin|/pma/|adminer|/administrator/|/joomla|/drupal|/typo3|/magento"),
    ("env_file", r"\.env\b"),
    ("vcs", r"/\.git(?:/|$)|/\.svn|/\.hg/|/\.bzr"),
    ("config_file", r"/config\.(?:php|inc|ya?ml|json|bak)|/configuration\.php|/settings\.py"),
    ("server_config", r"\.htaccess|\.htpasswd|web\.config|\.ds_store|/server-status|/server-info"),
    ("traversal", r"\.\./|\.\.\\|%2e%2e|%252e%252e|\.\.%2f|%c0%ae"),
    ("system_file", r"/etc/passwd|/etc/shadow|/proc/self|win\.ini|boot\.ini"),
    ("backup", r"\.(?:bak|old|orig|swp|sql|tar\.gz|tgz)$|/backup\b|/dump\b"),
    ("cgi", r"/cgi-bin/|\.cgi\b"),
    ("exploit_endpoint", r"/vendor/phpunit|eval-stdin\.php|/boaform|/actuator|"
                         r"/solr/admin|/console/|/manager/html|/hnap1|/shell\b"),
])


# ── Browser identity tokens (most specific first) ────────────

BROWSER_FAMILIES = PatternTable("browser_families", [
    ("edge", r"\bedg(?:e|a|ios)?/"),
    ("opera", r"\bopr/|\bopera\b"),
    ("chrome", r"\b(?:chrome|crios|chromium)/"),
    ("firefox", r"\b(?:firefox|fxios)/"),
    ("safari", r"\bversion/[\d.]+.*\bsafari/"),
])


def classify_user_agent(value: Optional[str]) -> AgentClass:
    """Allowlist wins over denylist; anything else is unknown."""
    if LEGITIMATE_ALLOWLIST.matches(value):
        return AgentClass.LEGITIMATE
    if SUSPICIOUS_DENYLIST.matches(value):
        return AgentClass.SUSPICIOUS
    return AgentClass.UNKNOWN
