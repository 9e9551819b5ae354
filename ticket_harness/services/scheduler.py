"""
Load schedulers: drive reservation workers according to a load profile.

Workers are asyncio tasks. A scheduler never interrupts an attempt in
flight: when time runs out (or a worker is retired) the worker finishes the
attempt it is on and simply does not start another one. The per-request
timeout of the HTTP client bounds how long that can take.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Iterator, Union

from ticket_harness.core.logging import get_logger
from ticket_harness.core.metrics import active_workers
from ticket_harness.schemas.profile import ConstantProfile, StagedProfile

logger = get_logger(__name__)

# (worker_index, iteration_index) -> awaitable outcome
AttemptFn = Callable[[int, int], Awaitable[Any]]


class LoadScheduler(ABC):
    """
    Interface for load shapes.

    Implementations:
    - ConstantScheduler: fixed concurrency, shared attempt budget, time bound
    - StagedScheduler: concurrency target that follows a sequence of stages
    """

    @abstractmethod
    async def run(self, attempt: AttemptFn) -> None:
        """
        Run attempts until the profile is exhausted.

        Returns only once every worker has finished, so the aggregator can be
        read safely afterwards.
        """
        pass


class ConstantScheduler(LoadScheduler):
    """
    ``concurrency`` workers draw from one shared budget of attempts.

    Distribution is greedy: a fast worker simply takes more attempts.
    """

    def __init__(self, profile: ConstantProfile):
        self.profile = profile

    async def run(self, attempt: AttemptFn) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.profile.time_bound
        remaining = self.profile.total_attempts

        async def worker(worker_index: int) -> None:
            nonlocal remaining
            iteration = 0
            active_workers.inc()
            try:
                # Claiming is race-free: no await between the check and the decrement
                while remaining > 0 and loop.time() < deadline:
                    remaining -= 1
                    await attempt(worker_index, iteration)
                    iteration += 1
            finally:
                active_workers.dec()

        logger.info(
            "constant_load_started",
            concurrency=self.profile.concurrency,
            total_attempts=self.profile.total_attempts,
            time_bound=self.profile.time_bound,
        )
        await asyncio.gather(*(worker(i) for i in range(1, self.profile.concurrency + 1)))

        if remaining > 0:
            logger.warning("time_bound_reached", undispatched_attempts=remaining)


class StagedScheduler(LoadScheduler):
    """
    Starts and retires workers to track a changing concurrency target.

    Worker indices are never reused within a run, so user identities stay
    unique even when workers come and go.
    """

    def __init__(self, profile: StagedProfile):
        self.profile = profile

    def checkpoints(self) -> Iterator[float]:
        """Elapsed times at which the concurrency target is re-evaluated."""
        for start, stage in zip(self.profile.boundaries(), self.profile.stages):
            if not self.profile.ramp:
                yield start
                continue
            elapsed = start
            while elapsed < start + stage.duration:
                yield elapsed
                elapsed += self.profile.ramp_interval

    async def run(self, attempt: AttemptFn) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        end = started + self.profile.total_duration

        active: list[tuple[asyncio.Task, asyncio.Event]] = []
        retired: list[asyncio.Task] = []
        next_index = 1

        async def worker(worker_index: int, stop: asyncio.Event) -> None:
            iteration = 0
            active_workers.inc()
            try:
                while not stop.is_set() and loop.time() < end:
                    await attempt(worker_index, iteration)
                    iteration += 1
            finally:
                active_workers.dec()

        for checkpoint in self.checkpoints():
            delay = started + checkpoint - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)

            target = self.profile.target_at(checkpoint)
            while len(active) < target:
                stop = asyncio.Event()
                active.append((asyncio.create_task(worker(next_index, stop)), stop))
                next_index += 1
            while len(active) > target:
                task, stop = active.pop()
                stop.set()
                retired.append(task)
            logger.debug("stage_target_applied", elapsed=round(checkpoint, 3), target=target)

        remaining = end - loop.time()
        if remaining > 0:
            await asyncio.sleep(remaining)

        for _, stop in active:
            stop.set()
        await asyncio.gather(*retired, *(task for task, _ in active))
        logger.info("staged_load_finished", workers_started=next_index - 1)


def build_scheduler(profile: Union[ConstantProfile, StagedProfile]) -> LoadScheduler:
    if isinstance(profile, StagedProfile):
        return StagedScheduler(profile)
    return ConstantScheduler(profile)
