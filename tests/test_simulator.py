"""
Tests for the traffic simulator and the engine's behavior on its batches.
"""

import pytest

from simulator.traffic_simulator import (
    SimulationReport,
    SimulatorConfig,
    TrafficScenario,
    TrafficSimulator,
    run_simulation,
    status_bucket,
)


def test_config_defaults():
    """Default config should have sensible values."""
    c = SimulatorConfig()
    assert c.scenario == TrafficScenario.BROWSING
    assert c.requests == 50
    assert c.source_ips == 1
    assert c.seed == 0


def test_scenarios_enum():
    assert TrafficScenario.BROWSING.value == "browsing"
    assert TrafficScenario.SCANNER.value == "scanner"
    assert TrafficScenario.FLOOD.value == "flood"


def test_status_bucket():
    assert status_bucket(200) == 1
    assert status_bucket(302) == 2
    assert status_bucket(404) == 3
    assert status_bucket(503) == 4


def test_batches_are_reproducible():
    config = SimulatorConfig(scenario=TrafficScenario.SCANNER, seed=42)
    assert TrafficSimulator(config).request_records() == TrafficSimulator(config).request_records()


def test_records_split_across_ips():
    sim = TrafficSimulator(SimulatorConfig(requests=30, source_ips=3))
    records = sim.request_records()
    assert len(records) == 30
    assert len({r["ip"] for r in records}) == 3
    assert len(sim.history_entries()) == 10


def test_browsing_is_not_blocked():
    report = run_simulation(SimulatorConfig(scenario=TrafficScenario.BROWSING))
    assert report.header_verdict is None
    assert report.should_block is False
    assert report.total_requests == 50


def test_scanner_is_blocked():
    report = run_simulation(SimulatorConfig(scenario=TrafficScenario.SCANNER, requests=30))
    assert report.header_verdict == "suspicious user agent"
    assert report.scanning_404s == 30
    assert report.avg_kw_hits >= 2.0
    assert report.should_block is True


def test_flood_is_bursty_but_not_blocked_alone():
    report = run_simulation(SimulatorConfig(scenario=TrafficScenario.FLOOD, requests=40))
    assert report.header_verdict == "suspicious user agent"
    assert report.max_burst == 40
    assert report.should_block is False


def test_report_summary():
    """Summary should return a formatted string."""
    r = SimulationReport(scenario="scanner", total_requests=30, should_block=True)
    summary = r.summary()
    assert "scanner" in summary
    assert "30" in summary
    assert "True" in summary


@pytest.mark.parametrize("scenario", list(TrafficScenario))
def test_records_satisfy_contract(scenario):
    from waf_heuristics.detection.features import RequestRecord

    for record in TrafficSimulator(SimulatorConfig(scenario=scenario)).request_records():
        RequestRecord.model_validate(record)
