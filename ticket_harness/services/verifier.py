"""
Consistency verifier.

VERIFICATION ALGORITHM
======================

Given the baseline snapshot (before load), the final snapshot (after load and
settling) and the outcome tally:

  reservation_delta = final.reservation_count - baseline.reservation_count
  stock_delta       = baseline.stock - final.stock

Three invariants are tested, each independently of the others:

  1. Overbooking:     reservation_delta > baseline.stock
     More reservations were created than there was inventory to sell.
  2. Race condition:  stock_delta != reservation_delta
     Stock did not move one-for-one with reservations, i.e. some decrement
     was lost (or doubled) by a non-atomic read-modify-write in the target.
  3. Negative stock:  final.stock < 0

All three booleans are always computed. Only the summary line is ordered:
overbooking first, then race condition, then negative stock.

The verifier only says *whether* an invariant broke, never *why*. It is a
pure function: the same inputs always give the same report.
"""

from ticket_harness.schemas.report import OutcomeTally, VerificationReport
from ticket_harness.schemas.ticket import TicketSnapshot


def verify(baseline: TicketSnapshot, final: TicketSnapshot, tally: OutcomeTally) -> VerificationReport:
    reservation_delta = final.reservation_count - baseline.reservation_count
    stock_delta = baseline.stock - final.stock

    overbooked = reservation_delta > baseline.stock
    race_condition_detected = stock_delta != reservation_delta
    negative_stock = final.stock < 0

    if overbooked:
        summary = (
            f"Overbooking detected: {reservation_delta - baseline.stock} reservation(s) "
            f"beyond the {baseline.stock} available"
        )
    elif race_condition_detected:
        summary = (
            f"Race condition detected: stock decreased by {stock_delta} "
            f"but {reservation_delta} reservation(s) were created"
        )
    elif negative_stock:
        summary = f"Negative stock detected: final stock is {final.stock}"
    else:
        summary = (
            f"Consistent: stock decreased by {stock_delta} = {reservation_delta} new reservation(s) "
            f"({tally.accepted} accepted of {tally.total} attempts)"
        )

    return VerificationReport(
        overbooked=overbooked,
        race_condition_detected=race_condition_detected,
        negative_stock=negative_stock,
        stock_delta=stock_delta,
        reservation_delta=reservation_delta,
        summary=summary,
    )
