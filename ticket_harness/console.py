"""
Console rendering of a run report.
"""

from ticket_harness.schemas.report import RunReport

WIDTH = 70


def header(text: str) -> str:
    return f"\n{'=' * WIDTH}\n{text:^{WIDTH}}\n{'=' * WIDTH}\n"


def _mark(ok: bool) -> str:
    return "✓" if ok else "✗"


def render_report(report: RunReport, title: str = "TICKET CONSISTENCY RUN") -> str:
    lines = [header(f"{title} ({report.strategy.value.upper()})")]

    lines.append(f"Run id:                {report.run_id}")
    lines.append(f"Ticket:                {report.ticket_id}")
    lines.append(f"Load duration:         {report.load_duration_seconds:.2f}s")
    lines.append(f"Settle wait:           {report.settle_seconds:.2f}s")
    lines.append(f"Throughput:            {report.throughput:.1f} req/s")
    lines.append("")

    tally = report.tally
    lines.append(f"Attempts:              {tally.total}")
    lines.append(f"✓ Accepted (200):      {tally.accepted}")
    lines.append(f"✗ Rejected (400):      {tally.business_rejected}")
    lines.append(f"✗ Lock timeout (400):  {tally.lock_timeout_rejected}")
    lines.append(f"✗ Transport errors:    {tally.transport_error}")
    lines.append("")

    latency = report.latency
    if tally.total:
        lines.append("Response times:")
        lines.append(f"  Avg:  {latency.avg_ms:>8.1f}ms")
        lines.append(f"  P50:  {latency.p50_ms:>8.1f}ms")
        lines.append(f"  P95:  {latency.p95_ms:>8.1f}ms")
        lines.append(f"  P99:  {latency.p99_ms:>8.1f}ms")
        lines.append(f"  Max:  {latency.max_ms:>8.1f}ms")
        lines.append("")

    baseline, final = report.baseline, report.final
    lines.append(f"Baseline stock:        {baseline.stock}")
    lines.append(f"Baseline reservations: {baseline.reservation_count}")
    if final is not None:
        lines.append(f"Final stock:           {final.stock}")
        lines.append(f"Final reservations:    {final.reservation_count}")

    verification = report.verification
    if verification is not None:
        lines.append(f"Stock decreased:       {verification.stock_delta}")
        lines.append(f"New reservations:      {verification.reservation_delta}")
        lines.append("")
        lines.append("Verification:")
        lines.append(f"  {_mark(not verification.overbooked)} Overbooking:     {verification.overbooked}")
        lines.append(f"  {_mark(not verification.race_condition_detected)} Race condition:  {verification.race_condition_detected}")
        lines.append(f"  {_mark(not verification.negative_stock)} Negative stock:  {verification.negative_stock}")

    if report.thresholds:
        lines.append("")
        lines.append("Thresholds:")
        for result in report.thresholds:
            observed = "n/a" if result.observed is None else f"{result.observed:.3f}"
            lines.append(f"  {_mark(result.passed)} {result.name} < {result.limit:g}: {observed}")

    if report.warnings:
        lines.append("")
        lines.append("Warnings:")
        for warning in report.warnings:
            lines.append(f"  ! {warning}")

    lines.append("")
    lines.append("=" * WIDTH)
    if verification is None:
        lines.append("✗ UNVERIFIED: final inventory state could not be read")
    elif verification.is_consistent:
        lines.append(f"✓ PASS: {verification.summary}")
    else:
        lines.append(f"✗ FAIL: {verification.summary}")
    lines.append("=" * WIDTH)
    return "\n".join(lines)
