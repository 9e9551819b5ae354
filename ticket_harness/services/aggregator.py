"""
Outcome aggregator: the only state shared between reservation workers.
"""

import statistics
import threading
from collections import Counter
from typing import Optional

from ticket_harness.schemas.report import AttemptOutcome, LatencySummary, OutcomeTally


class OutcomeAggregator:
    """
    Accumulates attempt outcomes and latencies for one run.

    ``fold`` may be called concurrently from any number of workers, asyncio
    tasks or threads alike. ``snapshot`` is meant to be read once every worker
    has finished; it is consistent at any time but may be partial before then.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: Counter = Counter()
        self._response_times: list[float] = []

    def fold(self, outcome: AttemptOutcome, latency_ms: Optional[float] = None) -> None:
        with self._lock:
            self._counts[outcome] += 1
            if latency_ms is not None:
                self._response_times.append(latency_ms)

    def snapshot(self) -> OutcomeTally:
        with self._lock:
            return OutcomeTally.from_counts(self._counts)

    def _sorted_times(self) -> list[float]:
        with self._lock:
            return sorted(self._response_times)

    def percentile(self, p: float) -> float:
        return _percentile(self._sorted_times(), p)

    def error_rate(self) -> Optional[float]:
        """Share of attempts that were not accepted. None before any attempt."""
        tally = self.snapshot()
        if tally.total == 0:
            return None
        return (tally.total - tally.accepted) / tally.total

    def latency_summary(self) -> LatencySummary:
        times = self._sorted_times()
        if not times:
            return LatencySummary()
        return LatencySummary(
            avg_ms=statistics.fmean(times),
            p50_ms=_percentile(times, 0.50),
            p95_ms=_percentile(times, 0.95),
            p99_ms=_percentile(times, 0.99),
            max_ms=times[-1],
        )


def _percentile(sorted_times: list[float], p: float) -> float:
    """Sorted-index percentile; 0.0 without samples."""
    if not sorted_times:
        return 0.0
    idx = int(len(sorted_times) * p)
    return sorted_times[min(idx, len(sorted_times) - 1)]
