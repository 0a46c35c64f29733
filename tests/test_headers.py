"""
Tests for the header validator.
"""

import pytest

from waf_heuristics.detection.headers import (
    REASON_INCONSISTENT,
    REASON_LOW_SCORE,
    REASON_SUSPICIOUS_UA,
    HeaderValidator,
    ValidatorConfig,
)
from waf_heuristics.errors import InputContractError

GOOGLEBOT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
GOOGLEBOT_MOBILE = (
    "Mozilla/5.0 (Linux; Android 6.0.1; Nexus 5X Build/MMB29P) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.6167.160 Mobile Safari/537.36 "
    "(compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
)
CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)
DEFAULT = ValidatorConfig(("HTTP_USER_AGENT", "HTTP_ACCEPT"), 3)


def browser_headers(**extra):
    headers = {
        "HTTP_USER_AGENT": CHROME,
        "HTTP_ACCEPT": "text/html,application/xhtml+xml",
        "HTTP_ACCEPT_LANGUAGE": "en-US,en;q=0.9",
        "HTTP_ACCEPT_ENCODING": "gzip, deflate, br",
        "HTTP_CONNECTION": "keep-alive",
    }
    headers.update(extra)
    return headers


@pytest.fixture
def validator():
    return HeaderValidator(browser_combo_bonus=2)


def test_full_browser_passes(validator):
    assert validator.validate_with_config(browser_headers(), DEFAULT) is None


def test_missing_every_required_header(validator):
    """An empty header set names the first missing required header."""
    reason = validator.validate_with_config({}, DEFAULT)
    assert reason == "missing required header: HTTP_USER_AGENT"


def test_required_check_runs_before_user_agent(validator):
    """curl without Accept is reported as missing Accept, not as curl."""
    reason = validator.validate_with_config(
        {"HTTP_USER_AGENT": "curl/7.68.0"},
        ValidatorConfig(("HTTP_USER_AGENT", "HTTP_ACCEPT"), 3),
    )
    assert reason is not None
    assert reason.startswith("missing required header")
    assert "HTTP_ACCEPT" in reason


def test_required_headers_checked_in_order(validator):
    config = ValidatorConfig(("HTTP_X_B", "HTTP_X_A"), 0)
    assert validator.validate_with_config({}, config) == "missing required header: HTTP_X_B"


def test_blank_value_counts_as_missing(validator):
    headers = browser_headers(HTTP_ACCEPT="   ")
    assert validator.validate_with_config(headers, DEFAULT) == (
        "missing required header: HTTP_ACCEPT"
    )


def test_keys_are_case_sensitive(validator):
    headers = {"http_user_agent": CHROME, "HTTP_ACCEPT": "*/*"}
    assert validator.validate_with_config(headers, DEFAULT) == (
        "missing required header: HTTP_USER_AGENT"
    )


def test_allowlisted_bot_with_accept_passes(validator):
    """Allow-listed UA + Accept scores 4 against a minimum of 3."""
    headers = {"HTTP_USER_AGENT": GOOGLEBOT, "HTTP_ACCEPT": "*/*"}
    assert validator.validate_with_config(headers, DEFAULT) is None


def test_allowlisted_bot_skips_browser_consistency(validator):
    headers = {"HTTP_USER_AGENT": GOOGLEBOT_MOBILE, "HTTP_ACCEPT": "*/*"}
    assert validator.validate_with_config(headers, DEFAULT) is None


def test_suspicious_user_agent(validator):
    headers = {"HTTP_USER_AGENT": "python-requests/2.31.0", "HTTP_ACCEPT": "*/*"}
    assert validator.validate_with_config(headers, DEFAULT) == REASON_SUSPICIOUS_UA


def test_browser_without_accept_language_is_inconsistent(validator):
    headers = browser_headers()
    del headers["HTTP_ACCEPT_LANGUAGE"]
    assert validator.validate_with_config(headers, DEFAULT) == REASON_INCONSISTENT


def test_chrome_without_accept_encoding_is_inconsistent(validator):
    headers = browser_headers()
    del headers["HTTP_ACCEPT_ENCODING"]
    assert validator.validate_with_config(headers, DEFAULT) == REASON_INCONSISTENT


def test_browser_over_http10_is_inconsistent(validator):
    headers = browser_headers(SERVER_PROTOCOL="HTTP/1.0")
    assert validator.validate_with_config(headers, DEFAULT) == REASON_INCONSISTENT


def test_generic_mozilla_with_accept_passes_without_required(validator):
    headers = {"HTTP_USER_AGENT": "Mozilla/5.0", "HTTP_ACCEPT": "text/html"}
    assert validator.validate_with_config(headers, ValidatorConfig((), 3)) is None


def test_low_score(validator):
    """Accept alone scores 2, below a minimum of 3."""
    reason = validator.validate_with_config({"HTTP_ACCEPT": "*/*"}, ValidatorConfig((), 3))
    assert reason == REASON_LOW_SCORE


@pytest.mark.parametrize("headers", [
    {},
    {"HTTP_ACCEPT": "*/*"},
    {"HTTP_USER_AGENT": "Mozilla/5.0"},
])
def test_empty_required_list_never_reports_missing(validator, headers):
    reason = validator.validate_with_config(headers, ValidatorConfig((), 3))
    assert reason is None or not reason.startswith("missing required header")


@pytest.mark.parametrize("min_score", [0, -5])
@pytest.mark.parametrize("headers", [{}, {"HTTP_ACCEPT": "*/*"}, {"HTTP_X_OTHER": "1"}])
def test_non_positive_min_score_never_reports_low_score(validator, headers, min_score):
    reason = validator.validate_with_config(headers, ValidatorConfig((), min_score))
    assert reason != REASON_LOW_SCORE
    assert reason is None


def test_score_components(validator):
    assert validator.score({}) == 0
    assert validator.score({"HTTP_USER_AGENT": "x", "HTTP_ACCEPT": "y"}) == 4
    # 2 + 2 + 3 secondary + 2 combination bonus
    assert validator.score(browser_headers()) == 9


def test_combo_bonus_is_tunable():
    assert HeaderValidator(browser_combo_bonus=0).score(browser_headers()) == 7


def test_malformed_input_still_yields_verdict(validator):
    assert validator.validate_with_config(None, DEFAULT) == (
        "missing required header: HTTP_USER_AGENT"
    )
    assert validator.validate_with_config({"HTTP_USER_AGENT": None}, ValidatorConfig((), 0)) is None


def test_missing_headers(validator):
    assert HeaderValidator.missing_headers({"A": "1", "B": ""}, ["A", "B", "C"]) == ["B", "C"]


def test_config_overrides():
    config = ValidatorConfig.from_overrides(None, None)
    assert config.required_headers == ("HTTP_USER_AGENT", "HTTP_ACCEPT")
    assert config.min_score == 3

    config = ValidatorConfig.from_overrides([], 0)
    assert config.required_headers == ()
    assert config.min_score == 0

    assert ValidatorConfig.from_overrides("HTTP_HOST").required_headers == ("HTTP_HOST",)


def test_default_config_tracks_settings(monkeypatch):
    from waf_heuristics.config import settings

    monkeypatch.setattr(settings, "required_headers", ["HTTP_HOST"])
    monkeypatch.setattr(settings, "min_score", 6)
    config = ValidatorConfig.default()
    assert config == ValidatorConfig(("HTTP_HOST",), 6)
    assert ValidatorConfig.from_overrides(None, None) == config


def test_config_has_no_hidden_defaults():
    with pytest.raises(TypeError):
        ValidatorConfig()


@pytest.mark.parametrize("min_score", [2.7, "abc", "3", True])
def test_non_integer_min_score_rejected(min_score):
    with pytest.raises(InputContractError):
        ValidatorConfig.from_overrides([], min_score)


def test_non_string_required_header_rejected():
    with pytest.raises(InputContractError):
        ValidatorConfig.from_overrides([b"HTTP_HOST"], 3)
