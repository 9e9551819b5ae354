"""
Tests for load profiles and schedulers.
"""

import asyncio

import pytest

from ticket_harness.core.exceptions import ProfileConfigurationError
from ticket_harness.schemas.profile import (
    ConstantProfile, Stage, StagedProfile, parse_duration, parse_stages,
)
from ticket_harness.services.scheduler import ConstantScheduler, StagedScheduler, build_scheduler


class AttemptRecorder:
    """Stand-in for ReservationWorker.attempt that tracks identities and in-flight count."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: list[tuple[int, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, worker_index: int, iteration_index: int) -> None:
        self.calls.append((worker_index, iteration_index))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1


@pytest.mark.parametrize(
    "raw, seconds",
    [("500ms", 0.5), ("30s", 30.0), ("2m", 120.0), ("1h", 3600.0), ("15", 15.0), (7, 7.0)],
)
def test_parse_duration(raw, seconds):
    assert parse_duration(raw) == seconds


@pytest.mark.parametrize("raw", ["", "soon", "10x", "s"])
def test_parse_duration_rejects_garbage(raw):
    with pytest.raises(ProfileConfigurationError):
        parse_duration(raw)


def test_parse_stages():
    assert parse_stages("10s:500, 20s:2000,10s:0") == [
        Stage(duration=10, target=500),
        Stage(duration=20, target=2000),
        Stage(duration=10, target=0),
    ]


@pytest.mark.parametrize("raw", ["", "10s", "10s:many", "10s:-1", "0s:10"])
def test_parse_stages_rejects_garbage(raw):
    with pytest.raises(ProfileConfigurationError):
        parse_stages(raw)


def test_staged_profile_shape():
    profile = StagedProfile(stages=parse_stages("10s:500,20s:2000,20s:2000,10s:0"))

    assert profile.total_duration == 60.0
    assert profile.peak_concurrency == 2000
    assert profile.boundaries() == [0.0, 10.0, 30.0, 50.0]
    assert profile.target_at(5) == 500
    assert profile.target_at(10) == 2000
    assert profile.target_at(55) == 0
    assert profile.target_at(60) == 0


def test_ramped_targets_interpolate():
    profile = StagedProfile(stages=parse_stages("2s:10,2s:0"), ramp=True)

    assert profile.target_at(0) == 0
    assert profile.target_at(1) == 5
    assert profile.target_at(2) == 10
    assert profile.target_at(3) == 5
    assert list(StagedScheduler(profile).checkpoints()) == [0.0, 1.0, 2.0, 3.0]


def test_unramped_checkpoints_are_stage_boundaries():
    profile = StagedProfile(stages=parse_stages("2s:10,2s:0"))
    assert list(StagedScheduler(profile).checkpoints()) == [0.0, 2.0]


def test_build_scheduler_picks_by_profile():
    constant = ConstantProfile(concurrency=1, total_attempts=1, time_bound=1)
    staged = StagedProfile(stages=[Stage(duration=1, target=1)])
    assert isinstance(build_scheduler(constant), ConstantScheduler)
    assert isinstance(build_scheduler(staged), StagedScheduler)


@pytest.mark.asyncio
async def test_constant_runs_exactly_the_budget():
    recorder = AttemptRecorder()
    profile = ConstantProfile(concurrency=5, total_attempts=23, time_bound=30)

    await ConstantScheduler(profile).run(recorder)

    assert len(recorder.calls) == 23
    assert len(set(recorder.calls)) == 23
    assert {worker for worker, _ in recorder.calls} <= set(range(1, 6))


@pytest.mark.asyncio
async def test_constant_respects_concurrency():
    recorder = AttemptRecorder(delay=0.01)
    profile = ConstantProfile(concurrency=4, total_attempts=40, time_bound=30)

    await ConstantScheduler(profile).run(recorder)

    assert len(recorder.calls) == 40
    assert recorder.max_in_flight == 4


@pytest.mark.asyncio
async def test_constant_stops_at_time_bound():
    recorder = AttemptRecorder(delay=0.05)
    profile = ConstantProfile(concurrency=2, total_attempts=1000, time_bound=0.2)

    await ConstantScheduler(profile).run(recorder)

    assert 2 <= len(recorder.calls) < 1000
    assert recorder.in_flight == 0


@pytest.mark.asyncio
async def test_staged_follows_targets_without_reusing_workers():
    recorder = AttemptRecorder(delay=0.01)
    profile = StagedProfile(stages=parse_stages("150ms:2,150ms:1,150ms:3"))

    await StagedScheduler(profile).run(recorder)

    workers = {worker for worker, _ in recorder.calls}
    # 2 started, 1 retired, 2 more started: indices 1..4
    assert workers == {1, 2, 3, 4}
    assert len(set(recorder.calls)) == len(recorder.calls)
    assert recorder.max_in_flight <= 3
    assert recorder.in_flight == 0


@pytest.mark.asyncio
async def test_staged_zero_target_starts_nothing():
    recorder = AttemptRecorder()
    profile = StagedProfile(stages=parse_stages("100ms:0"))

    await StagedScheduler(profile).run(recorder)

    assert recorder.calls == []
