"""
Metrics instrumentation for observability.
Written in the Prometheus text format so a node-exporter textfile
collector can pick up the last run.
"""

from prometheus_client import REGISTRY, Counter, Gauge, Histogram, write_to_textfile

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation attempts issued by the harness',
    ['strategy', 'outcome']  # accepted, business_rejected, lock_timeout_rejected, transport_error
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Reservation request latency',
    ['strategy'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Snapshot metrics
snapshot_reads = Counter(
    'snapshot_reads_total',
    'Ticket snapshot reads',
    ['phase', 'result']  # baseline/settle/final, ok/error
)

# Scheduler metrics
active_workers = Gauge(
    'harness_active_workers',
    'Number of reservation workers currently running'
)

# Verification metrics
invariant_violations = Counter(
    'invariant_violations_total',
    'Inventory invariants found violated',
    ['invariant']  # overbooking, race_condition, negative_stock
)


def write_metrics(path: str) -> None:
    """Write every registered metric to ``path`` in the text exposition format."""
    write_to_textfile(path, REGISTRY)


# Convenience functions for instrumentation
def record_attempt(strategy: str, outcome: str, latency_seconds: float):
    """Record a reservation attempt and its latency."""
    reservation_attempts.labels(strategy=strategy, outcome=outcome).inc()
    reservation_latency.labels(strategy=strategy).observe(latency_seconds)

def record_snapshot_read(phase: str, ok: bool):
    """Record snapshot read. Phase: baseline, settle, final"""
    result = "ok" if ok else "error"
    snapshot_reads.labels(phase=phase, result=result).inc()

def record_violation(invariant: str):
    """Record a violated invariant. Invariant: overbooking, race_condition, negative_stock"""
    invariant_violations.labels(invariant=invariant).inc()
