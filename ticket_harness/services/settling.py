"""
Settling wait between the end of load and the final snapshot.

Queue-backed targets answer 200 before inventory moves, so the final read has
to wait for their consumers to drain. The default is a fixed sleep. It is a
known source of flakiness: too short and the verdict reads half-drained
state. ``poll`` mode instead re-reads the ticket until two consecutive reads
agree, bounded by the same number of seconds.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from ticket_harness.core.exceptions import HarnessError, ProfileConfigurationError
from ticket_harness.core.logging import get_logger
from ticket_harness.schemas.strategy import StrategyIdentifier
from ticket_harness.schemas.ticket import TicketSnapshot
from ticket_harness.services.snapshot_service import TicketSnapshotReader

logger = get_logger(__name__)

ASYNC_SETTLE_SECONDS = 20.0

SleepFn = Callable[[float], Awaitable[None]]


class SettleMode(str, Enum):
    FIXED = "fixed"
    POLL = "poll"


def default_settle_seconds(strategy: StrategyIdentifier) -> float:
    return ASYNC_SETTLE_SECONDS if strategy.is_asynchronous else 0.0


def parse_settle_mode(raw: str) -> SettleMode:
    try:
        return SettleMode(raw.strip().lower())
    except ValueError:
        raise ProfileConfigurationError(f"SETTLE_MODE must be 'fixed' or 'poll', got {raw!r}") from None


class Settler:
    def __init__(
        self,
        seconds: float,
        mode: SettleMode = SettleMode.FIXED,
        poll_interval: float = 0.5,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.seconds = seconds
        self.mode = mode
        self.poll_interval = poll_interval
        self._sleep = sleep

    async def settle(self, reader: TicketSnapshotReader, ticket_id: int) -> float:
        """Wait for the target to settle. Returns the seconds waited."""
        if self.seconds <= 0:
            return 0.0

        if self.mode is SettleMode.FIXED:
            logger.info("settling", mode=self.mode.value, seconds=self.seconds)
            await self._sleep(self.seconds)
            return self.seconds

        return await self._poll_until_stable(reader, ticket_id)

    async def _poll_until_stable(self, reader: TicketSnapshotReader, ticket_id: int) -> float:
        waited = 0.0
        previous: Optional[TicketSnapshot] = None

        while waited < self.seconds:
            step = min(self.poll_interval, self.seconds - waited)
            await self._sleep(step)
            waited += step

            try:
                current = await reader.read(ticket_id, phase="settle")
            except HarnessError:
                previous = None
                continue

            if previous is not None and _same_inventory(previous, current):
                logger.info("settled", mode=self.mode.value, waited=round(waited, 3))
                return waited
            previous = current

        logger.warning("settle_limit_reached", waited=round(waited, 3))
        return waited


def _same_inventory(a: TicketSnapshot, b: TicketSnapshot) -> bool:
    return a.stock == b.stock and a.reservation_count == b.reservation_count
