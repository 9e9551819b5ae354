"""
Resolves settings (and an optional named preset) into one immutable run configuration.

PRESETS
=======

The presets reproduce the four levels the target service ships in:

  level-1  no lock at all; shows the race condition
  level-2  in-process / row / optimistic lock, picked with LOCK_TYPE
  level-3  distributed lock; short wait for the last commit
  level-4  queue-backed async processing under a staged ramp; long settle

A preset only supplies defaults. Anything set explicitly in the environment,
the .env file or on the command line wins.
"""

from typing import Optional, Union

from pydantic import BaseModel, ValidationError

from ticket_harness.core.config import Settings
from ticket_harness.core.exceptions import ProfileConfigurationError
from ticket_harness.schemas.profile import (
    ConstantProfile, StagedProfile, Thresholds, parse_duration, parse_stages,
)
from ticket_harness.schemas.strategy import RequestTemplate, StrategyIdentifier
from ticket_harness.services.endpoint_router import resolve_strategy, route
from ticket_harness.services.settling import SettleMode, default_settle_seconds, parse_settle_mode


_CONSTANT_1000_TO_100 = {"PROFILE": "constant", "VUS": 100, "ITERATIONS": 1000, "DURATION": "30s"}

PRESETS: dict[str, dict] = {
    "level-1": {**_CONSTANT_1000_TO_100, "LOCK_TYPE": StrategyIdentifier.UNLOCKED.value, "SETTLE_SECONDS": 0.0},
    "level-2": {**_CONSTANT_1000_TO_100, "SETTLE_SECONDS": 0.0},
    "level-3": {**_CONSTANT_1000_TO_100, "LOCK_TYPE": StrategyIdentifier.DISTRIBUTED_LOCK.value, "SETTLE_SECONDS": 2.0},
    "level-4": {
        "LOCK_TYPE": StrategyIdentifier.QUEUED_ASYNC.value,
        "PROFILE": "staged",
        "STAGES": "10s:500,20s:2000,20s:2000,10s:0",
        "RAMP": True,
        "THRESHOLD_P95_MS": 5000.0,
        "THRESHOLD_ERROR_RATE": 0.1,
        "SETTLE_SECONDS": 20.0,
    },
}


class RunConfig(BaseModel):
    base_url: str
    ticket_id: int
    strategy: StrategyIdentifier
    template: RequestTemplate
    profile: Union[ConstantProfile, StagedProfile]
    settle_seconds: float
    settle_mode: SettleMode
    settle_poll_interval: float
    request_timeout: float
    lock_timeout_marker: str
    preset: Optional[str] = None

    model_config = {"frozen": True}


def apply_preset(settings: Settings) -> Settings:
    """Fill every setting the preset knows and the user did not set."""
    if not settings.PRESET:
        return settings

    name = settings.PRESET.strip().lower()
    if name not in PRESETS:
        raise ProfileConfigurationError(
            f"Unknown preset {settings.PRESET!r}; choose one of {', '.join(sorted(PRESETS))}"
        )
    explicit = settings.model_fields_set
    update = {key: value for key, value in PRESETS[name].items() if key not in explicit}
    return settings.model_copy(update={**update, "PRESET": name})


def build_profile(settings: Settings) -> Union[ConstantProfile, StagedProfile]:
    thresholds = None
    if settings.THRESHOLD_P95_MS is not None or settings.THRESHOLD_ERROR_RATE is not None:
        thresholds = Thresholds(
            max_p95_latency_ms=settings.THRESHOLD_P95_MS,
            max_error_rate=settings.THRESHOLD_ERROR_RATE,
        )

    kind = settings.PROFILE.strip().lower()
    if kind == "constant":
        return ConstantProfile(
            concurrency=settings.VUS,
            total_attempts=settings.ITERATIONS,
            time_bound=parse_duration(settings.DURATION),
            thresholds=thresholds,
        )
    if kind == "staged":
        return StagedProfile(
            stages=parse_stages(settings.STAGES),
            ramp=settings.RAMP,
            ramp_interval=settings.RAMP_INTERVAL_SECONDS,
            thresholds=thresholds,
        )
    raise ProfileConfigurationError(f"PROFILE must be 'constant' or 'staged', got {settings.PROFILE!r}")


def build_run_config(settings: Settings) -> RunConfig:
    """Resolve strategy, profile and settling once, before anything runs."""
    settings = apply_preset(settings)
    strategy = resolve_strategy(settings.LOCK_TYPE, settings.DEFAULT_LOCK_TYPE, settings.FALLBACK_LOCK_TYPE)

    settle_seconds = settings.SETTLE_SECONDS
    if settle_seconds is None:
        settle_seconds = default_settle_seconds(strategy)

    try:
        return RunConfig(
            base_url=settings.BASE_URL,
            ticket_id=settings.TICKET_ID,
            strategy=strategy,
            template=route(strategy),
            profile=build_profile(settings),
            settle_seconds=settle_seconds,
            settle_mode=parse_settle_mode(settings.SETTLE_MODE),
            settle_poll_interval=settings.SETTLE_POLL_INTERVAL,
            request_timeout=settings.REQUEST_TIMEOUT_SECONDS,
            lock_timeout_marker=settings.LOCK_TIMEOUT_MARKER,
            preset=settings.PRESET,
        )
    except ValidationError as e:
        raise ProfileConfigurationError(f"Invalid load configuration: {e}") from e
