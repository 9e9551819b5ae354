"""
Reservation worker: one synthetic user issuing one reservation attempt.
"""

import time

import httpx

from ticket_harness.core.config import LOCK_TIMEOUT_MARKER
from ticket_harness.core.logging import get_logger
from ticket_harness.core.metrics import record_attempt
from ticket_harness.schemas.report import AttemptOutcome
from ticket_harness.schemas.strategy import RequestTemplate, StrategyIdentifier
from ticket_harness.services.aggregator import OutcomeAggregator

logger = get_logger(__name__)


def classify_response(status_code: int, body: str, lock_timeout_marker: str = LOCK_TIMEOUT_MARKER) -> AttemptOutcome:
    """
    Classify a reservation response.

    200 is an accepted reservation. 400 is a business rejection (sold out,
    duplicate), refined to a lock timeout when the body carries the
    "processing in progress" marker. Anything else counts as a transport error.
    """
    if status_code == 200:
        return AttemptOutcome.ACCEPTED
    if status_code == 400:
        if lock_timeout_marker and lock_timeout_marker in body:
            return AttemptOutcome.LOCK_TIMEOUT_REJECTED
        return AttemptOutcome.BUSINESS_REJECTED
    return AttemptOutcome.TRANSPORT_ERROR


def user_identity(worker_index: int, iteration_index: int) -> str:
    """Deterministic, per-run unique user id for an attempt."""
    return f"user_{worker_index}_{iteration_index}"


class ReservationWorker:
    def __init__(
        self,
        client: httpx.AsyncClient,
        template: RequestTemplate,
        ticket_id: int,
        aggregator: OutcomeAggregator,
        strategy: StrategyIdentifier,
        lock_timeout_marker: str = LOCK_TIMEOUT_MARKER,
    ):
        self.client = client
        self.template = template
        self.ticket_id = ticket_id
        self.aggregator = aggregator
        self.strategy = strategy
        self.lock_timeout_marker = lock_timeout_marker

    async def attempt(self, worker_index: int, iteration_index: int) -> AttemptOutcome:
        """Issue one reservation and fold its outcome into the aggregator."""
        user_id = user_identity(worker_index, iteration_index)
        path, params = self.template.render(self.ticket_id, user_id)
        start = time.perf_counter()

        try:
            response = await self.client.request(self.template.method, path, params=params)
        except httpx.HTTPError as e:
            outcome = AttemptOutcome.TRANSPORT_ERROR
            logger.debug("reservation_transport_error", user_id=user_id, error=str(e) or type(e).__name__)
        else:
            outcome = classify_response(response.status_code, response.text, self.lock_timeout_marker)
            if outcome is AttemptOutcome.TRANSPORT_ERROR:
                logger.debug("reservation_unexpected_status", user_id=user_id, status_code=response.status_code)

        elapsed = time.perf_counter() - start
        self.aggregator.fold(outcome, elapsed * 1000)
        record_attempt(self.strategy.value, outcome.value, elapsed)
        return outcome
