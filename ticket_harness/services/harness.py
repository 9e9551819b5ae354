"""
Consistency harness: the three-phase run.

  1. Baseline  read the ticket before any load (a failure degrades to a zero
               baseline and a warning, it does not abort the run)
  2. Load      drive reservation workers through the routed endpoint
               according to the load profile
  3. Verify    wait for the target to settle, read the ticket again and
               compare the two snapshots

The harness never mutates the target's inventory except through the
reservation requests it issues.
"""

import asyncio
import time
import uuid
from typing import Optional

import httpx
import structlog

from ticket_harness.core.exceptions import HarnessError
from ticket_harness.core.logging import get_logger
from ticket_harness.core.metrics import record_violation
from ticket_harness.schemas.profile import Thresholds
from ticket_harness.schemas.report import RunReport, ThresholdResult, VerificationReport
from ticket_harness.services.aggregator import OutcomeAggregator
from ticket_harness.services.reservation_worker import ReservationWorker
from ticket_harness.services.run_config import RunConfig
from ticket_harness.services.scheduler import build_scheduler
from ticket_harness.services.settling import Settler, SettleMode, SleepFn
from ticket_harness.services.snapshot_service import TicketSnapshotReader
from ticket_harness.services.verifier import verify

logger = get_logger(__name__)


def build_client(config: RunConfig) -> httpx.AsyncClient:
    """HTTP client whose pool can serve every worker at peak concurrency."""
    peak = config.profile.peak_concurrency
    return httpx.AsyncClient(
        base_url=config.base_url,
        timeout=httpx.Timeout(config.request_timeout),
        limits=httpx.Limits(max_connections=max(peak, 1), max_keepalive_connections=max(peak, 1)),
    )


def evaluate_thresholds(thresholds: Optional[Thresholds], aggregator: OutcomeAggregator) -> list[ThresholdResult]:
    """Pass/fail annotations; a breach never stops or fails the run."""
    if thresholds is None:
        return []

    results = []
    if thresholds.max_p95_latency_ms is not None:
        observed = aggregator.percentile(0.95)
        results.append(ThresholdResult(
            name="p95_latency_ms",
            limit=thresholds.max_p95_latency_ms,
            observed=observed,
            passed=observed < thresholds.max_p95_latency_ms,
        ))
    if thresholds.max_error_rate is not None:
        error_rate = aggregator.error_rate()
        results.append(ThresholdResult(
            name="error_rate",
            limit=thresholds.max_error_rate,
            observed=error_rate,
            passed=error_rate is None or error_rate < thresholds.max_error_rate,
        ))
    return results


class ConsistencyHarness:
    def __init__(
        self,
        config: RunConfig,
        client: Optional[httpx.AsyncClient] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.config = config
        self._client = client
        self._sleep = sleep

    async def run(self) -> RunReport:
        if self._client is not None:
            return await self._run(self._client)
        async with build_client(self.config) as client:
            return await self._run(client)

    async def _run(self, client: httpx.AsyncClient) -> RunReport:
        run_id = str(uuid.uuid4())[:8]

        # Run context for every log call below; the caller's context is restored on exit
        with structlog.contextvars.bound_contextvars(
            run_id=run_id,
            strategy=self.config.strategy.value,
            ticket_id=self.config.ticket_id,
        ):
            return await self._run_phases(client, run_id)

    async def _run_phases(self, client: httpx.AsyncClient, run_id: str) -> RunReport:
        config = self.config
        warnings: list[str] = []

        logger.info("run_started", preset=config.preset, profile=config.profile.kind)

        # Phase 1: baseline
        reader = TicketSnapshotReader(client)
        baseline, baseline_warning = await reader.read_baseline(config.ticket_id)
        if baseline_warning:
            warnings.append(baseline_warning)

        # Phase 2: load
        aggregator = OutcomeAggregator()
        worker = ReservationWorker(
            client,
            config.template,
            config.ticket_id,
            aggregator,
            config.strategy,
            config.lock_timeout_marker,
        )
        start = time.perf_counter()
        await build_scheduler(config.profile).run(worker.attempt)
        load_duration = time.perf_counter() - start
        tally = aggregator.snapshot()
        logger.info("load_phase_completed", attempts=tally.total, accepted=tally.accepted, duration=round(load_duration, 3))

        # Phase 3: settle, final read, verify
        if config.strategy.is_asynchronous and config.settle_mode is SettleMode.FIXED and config.settle_seconds > 0:
            logger.warning("fixed_settle_wait", seconds=config.settle_seconds)
        settler = Settler(config.settle_seconds, config.settle_mode, config.settle_poll_interval, sleep=self._sleep)
        settled = await settler.settle(reader, config.ticket_id)

        final = None
        verification = None
        try:
            final = await reader.read(config.ticket_id, phase="final")
        except HarnessError as e:
            warnings.append(f"Final read failed, inventory could not be verified ({e.message})")
        else:
            verification = verify(baseline, final, tally)
            self._record_verdict(verification)

        report = RunReport(
            run_id=run_id,
            strategy=config.strategy,
            ticket_id=config.ticket_id,
            baseline=baseline,
            final=final,
            tally=tally,
            verification=verification,
            thresholds=evaluate_thresholds(config.profile.thresholds, aggregator),
            warnings=warnings,
            load_duration_seconds=load_duration,
            settle_seconds=settled,
            latency=aggregator.latency_summary(),
        )
        return report

    def _record_verdict(self, verification: VerificationReport) -> None:
        if verification.overbooked:
            record_violation("overbooking")
        if verification.race_condition_detected:
            record_violation("race_condition")
        if verification.negative_stock:
            record_violation("negative_stock")

        if verification.is_consistent:
            logger.info("inventory_consistent", stock_delta=verification.stock_delta)
        else:
            logger.error(
                "inventory_inconsistent",
                overbooked=verification.overbooked,
                race_condition=verification.race_condition_detected,
                negative_stock=verification.negative_stock,
                stock_delta=verification.stock_delta,
                reservation_delta=verification.reservation_delta,
            )
