"""
Ticket Consistency Harness - command line entry point

Runs one verification against a ticket reservation service:
- reads the ticket before load (baseline)
- hammers the reservation endpoint of the selected locking strategy
- reads the ticket again and checks overbooking, race conditions and
  negative stock

Exit status: 0 consistent, 1 invariant violated, 2 unverifiable run or bad
configuration.

Usage:
  ticket-harness --lock-type pessimistic
  ticket-harness --preset level-4 --settle-mode poll
  LOCK_TYPE=optimistic ticket-harness --json
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from ticket_harness.console import render_report
from ticket_harness.core.config import Settings, get_settings
from ticket_harness.core.exceptions import ProfileConfigurationError
from ticket_harness.core.logging import get_logger, setup_logging
from ticket_harness.core.metrics import write_metrics
from ticket_harness.schemas.report import RunReport
from ticket_harness.services.harness import ConsistencyHarness
from ticket_harness.services.run_config import PRESETS, build_run_config

EXIT_CONSISTENT = 0
EXIT_INCONSISTENT = 1
EXIT_UNVERIFIED = 2

# argparse dest -> Settings field
_OVERRIDES = {
    "base_url": "BASE_URL",
    "ticket_id": "TICKET_ID",
    "lock_type": "LOCK_TYPE",
    "preset": "PRESET",
    "profile": "PROFILE",
    "vus": "VUS",
    "iterations": "ITERATIONS",
    "duration": "DURATION",
    "stages": "STAGES",
    "ramp": "RAMP",
    "threshold_p95_ms": "THRESHOLD_P95_MS",
    "threshold_error_rate": "THRESHOLD_ERROR_RATE",
    "timeout": "REQUEST_TIMEOUT_SECONDS",
    "settle_seconds": "SETTLE_SECONDS",
    "settle_mode": "SETTLE_MODE",
    "metrics_file": "METRICS_FILE",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ticket-harness",
        description="Verify inventory consistency of a ticket reservation service under concurrent load.",
    )
    parser.add_argument("--base-url", help="target service, e.g. http://localhost:8080")
    parser.add_argument("--ticket-id", type=int)
    parser.add_argument("--lock-type", help="in-process-lock, row-lock, optimistic-lock, distributed-lock, queued-async, unlocked")
    parser.add_argument("--preset", choices=sorted(PRESETS))
    parser.add_argument("--profile", choices=["constant", "staged"])
    parser.add_argument("--vus", type=int, help="constant profile: concurrent workers")
    parser.add_argument("--iterations", type=int, help="constant profile: total attempts")
    parser.add_argument("--duration", help="constant profile: time bound, e.g. 30s")
    parser.add_argument("--stages", help="staged profile, e.g. 10s:500,20s:2000,10s:0")
    parser.add_argument("--ramp", action="store_true", default=None, help="interpolate targets inside stages")
    parser.add_argument("--threshold-p95-ms", type=float)
    parser.add_argument("--threshold-error-rate", type=float)
    parser.add_argument("--timeout", type=float, help="per-request timeout in seconds")
    parser.add_argument("--settle-seconds", type=float)
    parser.add_argument("--settle-mode", choices=["fixed", "poll"])
    parser.add_argument("--metrics-file", help="write Prometheus metrics here after the run")
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    update = {
        field: getattr(args, dest)
        for dest, field in _OVERRIDES.items()
        if getattr(args, dest, None) is not None
    }
    return settings.model_copy(update=update) if update else settings


def exit_code(report: RunReport) -> int:
    if report.verification is None:
        return EXIT_UNVERIFIED
    if report.verification.is_consistent:
        return EXIT_CONSISTENT
    return EXIT_INCONSISTENT


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = apply_overrides(get_settings(), args)

    setup_logging(settings)
    logger = get_logger(__name__)

    try:
        config = build_run_config(settings)
    except ProfileConfigurationError as e:
        logger.error("invalid_configuration", error=e.message)
        return EXIT_UNVERIFIED

    report = asyncio.run(ConsistencyHarness(config).run())

    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        print(render_report(report, title=settings.APP_NAME.upper()))

    if settings.METRICS_FILE:
        write_metrics(settings.METRICS_FILE)
        logger.info("metrics_written", path=settings.METRICS_FILE)

    return exit_code(report)


if __name__ == "__main__":
    sys.exit(main())
