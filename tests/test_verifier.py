"""
Tests for the consistency verifier.
"""

import pytest

from ticket_harness.schemas.report import OutcomeTally
from ticket_harness.schemas.ticket import TicketSnapshot
from ticket_harness.services.verifier import verify


def snapshot(stock: int, reservations: int) -> TicketSnapshot:
    return TicketSnapshot(stock=stock, reservation_count=reservations)


def test_correct_target_is_consistent():
    """100 of 1000 attempts accepted, stock and reservations moved 1:1."""
    tally = OutcomeTally(accepted=100, business_rejected=900)
    report = verify(snapshot(100, 0), snapshot(0, 100), tally)

    assert report.overbooked is False
    assert report.race_condition_detected is False
    assert report.negative_stock is False
    assert report.stock_delta == 100
    assert report.reservation_delta == 100
    assert report.is_consistent
    assert report.summary.startswith("Consistent")
    assert "100 accepted of 1000 attempts" in report.summary


def test_buggy_target_overbooks_and_races():
    """Final {stock: 5, reservationCount: 120} from a baseline of 100."""
    report = verify(snapshot(100, 0), snapshot(5, 120), OutcomeTally(accepted=120))

    assert report.overbooked is True
    assert report.race_condition_detected is True
    assert report.negative_stock is False
    assert report.stock_delta == 95
    assert report.reservation_delta == 120
    assert not report.is_consistent


def test_overbooking_is_reported_before_race_condition():
    report = verify(snapshot(100, 0), snapshot(5, 120), OutcomeTally())
    assert report.summary.startswith("Overbooking detected: 20 reservation(s)")


def test_skewed_decrement_is_a_race_condition():
    """Reservations within inventory, but stock lost decrements."""
    report = verify(snapshot(100, 0), snapshot(60, 50), OutcomeTally(accepted=50))

    assert report.overbooked is False
    assert report.race_condition_detected is True
    assert report.summary.startswith("Race condition detected: stock decreased by 40 but 50")


def test_deltas_are_relative_to_existing_reservations():
    """A ticket that already had reservations is judged on new ones only."""
    report = verify(snapshot(50, 50), snapshot(0, 100), OutcomeTally(accepted=50))

    assert report.reservation_delta == 50
    assert report.stock_delta == 50
    assert report.is_consistent


def test_overbooking_limit_is_inclusive():
    report = verify(snapshot(10, 0), snapshot(0, 10), OutcomeTally(accepted=10))
    assert report.overbooked is False


@pytest.mark.parametrize(
    "final, expected",
    [
        (snapshot(-1, 11), True),   # consistent deltas but overbooked
        (snapshot(-3, 10), True),   # race condition as well
        (snapshot(0, 10), False),
        (snapshot(4, 6), False),
    ],
)
def test_negative_stock_iff_final_stock_below_zero(final, expected):
    report = verify(snapshot(10, 0), final, OutcomeTally())
    assert report.negative_stock is expected


def test_verify_is_idempotent():
    args = (snapshot(100, 0), snapshot(5, 120), OutcomeTally(accepted=120, transport_error=3))
    assert verify(*args) == verify(*args)
