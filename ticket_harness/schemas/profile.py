"""
Load profile schemas: the demand shape a run is driven with.

Durations are plain seconds. ``parse_duration`` and ``parse_stages`` turn the
k6-style strings used in configuration ("30s", "10s:500,20s:2000") into them.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from ticket_harness.core.exceptions import ProfileConfigurationError


class Thresholds(BaseModel):
    """Pass/fail limits evaluated after the run."""

    max_p95_latency_ms: Optional[float] = Field(None, gt=0)
    max_error_rate: Optional[float] = Field(None, ge=0, le=1)

    model_config = {"frozen": True}


class ConstantProfile(BaseModel):
    """Fixed number of workers sharing a total attempt budget."""

    kind: Literal["constant"] = "constant"
    concurrency: int = Field(..., gt=0)
    total_attempts: int = Field(..., gt=0)
    time_bound: float = Field(..., gt=0)
    thresholds: Optional[Thresholds] = None

    model_config = {"frozen": True}

    @property
    def peak_concurrency(self) -> int:
        return self.concurrency


class Stage(BaseModel):
    duration: float = Field(..., gt=0)
    target: int = Field(..., ge=0)

    model_config = {"frozen": True}


class StagedProfile(BaseModel):
    """
    Concurrency target that changes over a sequence of stages.

    Without ``ramp`` the target jumps to each stage's value at the stage
    boundary. With ``ramp`` it moves linearly from the previous stage's target
    (0 before the first stage) to the stage's own target, the way k6 stages do,
    and is re-evaluated every ``ramp_interval`` seconds.
    """

    kind: Literal["staged"] = "staged"
    stages: tuple[Stage, ...] = Field(..., min_length=1)
    ramp: bool = False
    ramp_interval: float = Field(1.0, gt=0)
    thresholds: Optional[Thresholds] = None

    model_config = {"frozen": True}

    @property
    def total_duration(self) -> float:
        return sum(stage.duration for stage in self.stages)

    @property
    def peak_concurrency(self) -> int:
        return max(stage.target for stage in self.stages)

    def boundaries(self) -> list[float]:
        """Elapsed time at which each stage starts."""
        starts = []
        elapsed = 0.0
        for stage in self.stages:
            starts.append(elapsed)
            elapsed += stage.duration
        return starts

    def target_at(self, elapsed: float) -> int:
        """Concurrency target ``elapsed`` seconds into the run."""
        previous = 0
        for start, stage in zip(self.boundaries(), self.stages):
            if elapsed < start + stage.duration:
                if not self.ramp:
                    return stage.target
                progress = max(elapsed - start, 0.0) / stage.duration
                return round(previous + (stage.target - previous) * progress)
            previous = stage.target
        return 0


LoadProfile = Annotated[Union[ConstantProfile, StagedProfile], Field(discriminator="kind")]


_DURATION_UNITS = (("ms", 0.001), ("s", 1.0), ("m", 60.0), ("h", 3600.0))


def parse_duration(value: Union[str, int, float]) -> float:
    """Parse "500ms", "30s", "2m", "1h" or bare seconds."""
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip().lower()
    # "ms" is listed before "s" and "m" so it wins
    for suffix, factor in _DURATION_UNITS:
        if text.endswith(suffix):
            try:
                return float(text[: -len(suffix)]) * factor
            except ValueError:
                break
    else:
        try:
            return float(text)
        except ValueError:
            pass
    raise ProfileConfigurationError(f"Invalid duration: {value!r}")


def parse_stages(value: str) -> list[Stage]:
    """Parse "10s:500,20s:2000,10s:0" into stages."""
    stages = []
    for chunk in value.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        duration, sep, target = chunk.partition(":")
        if not sep:
            raise ProfileConfigurationError(f"Stage {chunk!r} must look like '<duration>:<target>'")
        try:
            stages.append(Stage(duration=parse_duration(duration), target=int(target)))
        except ValueError as e:
            # pydantic.ValidationError is a ValueError too
            raise ProfileConfigurationError(f"Invalid stage {chunk!r}: {e}") from e
    if not stages:
        raise ProfileConfigurationError("At least one stage is required")
    return stages
