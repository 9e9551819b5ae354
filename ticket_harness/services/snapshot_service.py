"""
Ticket snapshot reader.

Reads the authoritative inventory state (stock, reservation count) from the
target service. Used for the baseline before load and for the final state
after it. There are no retries: one request, one answer.
"""

from typing import Optional

import httpx
from pydantic import ValidationError

from ticket_harness.core.exceptions import HarnessError, MalformedResponse, UnreachableService
from ticket_harness.core.logging import get_logger
from ticket_harness.core.metrics import record_snapshot_read
from ticket_harness.schemas.ticket import TicketSnapshot
from ticket_harness.services.endpoint_router import TICKET_PATH

logger = get_logger(__name__)


class TicketSnapshotReader:
    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def read(self, ticket_id: int, phase: str = "final") -> TicketSnapshot:
        """
        Read the current state of ``ticket_id``.

        Raises:
            UnreachableService: the request did not complete or was not a 200
            MalformedResponse: the body is not a ticket
        """
        path = TICKET_PATH.format(ticket_id=ticket_id)
        try:
            snapshot = await self._fetch(path)
        except HarnessError as e:
            record_snapshot_read(phase, ok=False)
            logger.warning("snapshot_read_failed", phase=phase, path=path, error=e.message)
            raise

        record_snapshot_read(phase, ok=True)
        logger.info(
            "snapshot_read",
            phase=phase,
            stock=snapshot.stock,
            reservation_count=snapshot.reservation_count,
        )
        return snapshot

    async def read_baseline(self, ticket_id: int) -> tuple[TicketSnapshot, Optional[str]]:
        """
        Read the baseline, degrading to a zero baseline on failure.

        Returns the snapshot and, when the read failed, the warning to put in
        the report. The run goes on either way.
        """
        try:
            return await self.read(ticket_id, phase="baseline"), None
        except HarnessError as e:
            warning = f"Baseline read failed, verifying against a zero baseline ({e.message})"
            logger.warning("baseline_degraded_to_zero", error=e.message)
            return TicketSnapshot.zero(), warning

    async def _fetch(self, path: str) -> TicketSnapshot:
        try:
            response = await self.client.get(path)
        except httpx.HTTPError as e:
            raise UnreachableService(path, str(e) or type(e).__name__) from e

        if response.status_code != 200:
            raise UnreachableService(path, response.text[:200], status_code=response.status_code)

        try:
            return TicketSnapshot.model_validate_json(response.content)
        except ValidationError as e:
            raise MalformedResponse(path, f"{e.error_count()} validation error(s)") from e
