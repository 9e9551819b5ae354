"""
Tests for the command line entry point and console report.
"""

import json

import pytest

from ticket_harness import main as cli
from ticket_harness.console import render_report
from ticket_harness.core.config import get_settings
from ticket_harness.schemas.report import LatencySummary, OutcomeTally, RunReport
from ticket_harness.schemas.strategy import StrategyIdentifier
from ticket_harness.schemas.ticket import TicketSnapshot
from ticket_harness.services.verifier import verify


def make_report(final=None, warnings=()) -> RunReport:
    baseline = TicketSnapshot(stock=100, reservation_count=0)
    tally = OutcomeTally(accepted=100, business_rejected=900)
    return RunReport(
        run_id="abcd1234",
        strategy=StrategyIdentifier.ROW_LOCK,
        ticket_id=1,
        baseline=baseline,
        final=final,
        tally=tally,
        verification=verify(baseline, final, tally) if final is not None else None,
        warnings=list(warnings),
        load_duration_seconds=2.0,
        settle_seconds=0.0,
        latency=LatencySummary(avg_ms=12.0, p95_ms=40.0, max_ms=80.0),
    )


CONSISTENT = make_report(TicketSnapshot(stock=0, reservation_count=100))
OVERBOOKED = make_report(TicketSnapshot(stock=5, reservation_count=120))
UNVERIFIED = make_report(warnings=["Final read failed, inventory could not be verified"])


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Fresh settings per test, without touching the real log handlers."""
    monkeypatch.setattr(cli, "setup_logging", lambda settings: None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class CannedHarness:
    report = CONSISTENT
    configs = []

    def __init__(self, config):
        self.configs.append(config)

    async def run(self):
        return self.report


@pytest.mark.parametrize(
    "report, code",
    [(CONSISTENT, 0), (OVERBOOKED, 1), (UNVERIFIED, 2)],
)
def test_exit_code(report, code):
    assert cli.exit_code(report) == code


def test_report_properties():
    assert CONSISTENT.throughput == 500.0
    assert CONSISTENT.consistent
    assert not OVERBOOKED.consistent
    assert not UNVERIFIED.consistent


def test_overrides_only_touch_given_flags(make_settings):
    args = cli.build_parser().parse_args(["--lock-type", "pessimistic", "--vus", "10"])
    settings = cli.apply_overrides(make_settings(ITERATIONS=50), args)

    assert settings.LOCK_TYPE == "pessimistic"
    assert settings.VUS == 10
    assert settings.ITERATIONS == 50
    assert settings.RAMP is False


def test_render_consistent_report():
    text = render_report(CONSISTENT)

    assert "ROW-LOCK" in text
    assert "✓ Accepted (200):      100" in text
    assert "✓ PASS: Consistent" in text


def test_render_inconsistent_report():
    text = render_report(OVERBOOKED)

    assert "✗ Overbooking:     True" in text
    assert "✗ FAIL: Overbooking detected" in text


def test_render_unverified_report():
    text = render_report(UNVERIFIED)

    assert "Final stock" not in text
    assert "! Final read failed" in text
    assert "UNVERIFIED" in text


def test_invalid_configuration_exits_2(monkeypatch):
    monkeypatch.setattr(cli, "ConsistencyHarness", CannedHarness)
    assert cli.main(["--profile", "staged", "--stages", "10s"]) == 2


def test_invalid_flag_value_is_a_usage_error():
    with pytest.raises(SystemExit) as exc:
        cli.main(["--preset", "level-9"])
    assert exc.value.code == 2


@pytest.mark.parametrize("report, code", [(CONSISTENT, 0), (OVERBOOKED, 1), (UNVERIFIED, 2)])
def test_main_returns_verdict(monkeypatch, capsys, report, code):
    monkeypatch.setattr(CannedHarness, "report", report)
    monkeypatch.setattr(cli, "ConsistencyHarness", CannedHarness)

    assert cli.main(["--base-url", "http://tickets:8080", "--lock-type", "pessimistic"]) == code

    config = CannedHarness.configs[-1]
    assert config.base_url == "http://tickets:8080"
    assert config.strategy is StrategyIdentifier.ROW_LOCK
    assert "=" * 70 in capsys.readouterr().out


def test_main_json_output_uses_snake_case_keys(monkeypatch, capsys):
    monkeypatch.setattr(cli, "ConsistencyHarness", CannedHarness)

    assert cli.main(["--json"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["run_id"] == "abcd1234"
    assert payload["final"]["reservation_count"] == 100
    assert payload["baseline"] == {"stock": 100, "reservation_count": 0}
    assert "reservationCount" not in json.dumps(payload)
    assert payload["verification"]["overbooked"] is False


def test_main_writes_metrics(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "ConsistencyHarness", CannedHarness)
    path = tmp_path / "harness.prom"

    assert cli.main(["--metrics-file", str(path)]) == 0
    assert "reservation_attempts_total" in path.read_text()
