"""
Endpoint router.
Maps the configured locking strategy to the reservation endpoint that exercises it.
"""

from typing import Optional

from ticket_harness.core.exceptions import ProfileConfigurationError
from ticket_harness.core.logging import get_logger
from ticket_harness.schemas.strategy import RequestTemplate, StrategyIdentifier

logger = get_logger(__name__)

RESERVE_PATH = "/api/tickets/{ticket_id}/reserve"
TICKET_PATH = "/api/tickets/{ticket_id}"

ROUTES: dict[StrategyIdentifier, RequestTemplate] = {
    StrategyIdentifier.IN_PROCESS_LOCK: RequestTemplate(path=f"{RESERVE_PATH}/synchronized"),
    StrategyIdentifier.ROW_LOCK: RequestTemplate(path=f"{RESERVE_PATH}/pessimistic"),
    StrategyIdentifier.OPTIMISTIC_LOCK: RequestTemplate(path=f"{RESERVE_PATH}/optimistic"),
    # One lock per deployment: the target decides, the path is shared
    StrategyIdentifier.DISTRIBUTED_LOCK: RequestTemplate(path=RESERVE_PATH),
    StrategyIdentifier.QUEUED_ASYNC: RequestTemplate(path=RESERVE_PATH),
    StrategyIdentifier.UNLOCKED: RequestTemplate(path=RESERVE_PATH),
}

# Endpoint words the target service and older scripts use
ALIASES: dict[str, StrategyIdentifier] = {
    "synchronized": StrategyIdentifier.IN_PROCESS_LOCK,
    "pessimistic": StrategyIdentifier.ROW_LOCK,
    "optimistic": StrategyIdentifier.OPTIMISTIC_LOCK,
    "redisson": StrategyIdentifier.DISTRIBUTED_LOCK,
    "redis": StrategyIdentifier.DISTRIBUTED_LOCK,
    "kafka": StrategyIdentifier.QUEUED_ASYNC,
    "queue": StrategyIdentifier.QUEUED_ASYNC,
    "none": StrategyIdentifier.UNLOCKED,
}


def route(strategy: StrategyIdentifier) -> RequestTemplate:
    """Request template for ``strategy``."""
    return ROUTES[strategy]


def parse_strategy(raw: str) -> Optional[StrategyIdentifier]:
    """Match an identifier by value, name or alias. None if nothing matches."""
    key = raw.strip().lower()
    for strategy in StrategyIdentifier:
        if key in (strategy.value, strategy.name.lower(), strategy.value.replace("-", "_")):
            return strategy
    return ALIASES.get(key)


def resolve_strategy(
    raw: Optional[str],
    default: str = StrategyIdentifier.OPTIMISTIC_LOCK.value,
    fallback: str = StrategyIdentifier.ROW_LOCK.value,
) -> StrategyIdentifier:
    """
    Resolve the configured strategy once, at configuration time.

    Strategy selection:
    - absent or blank: ``default``
    - unrecognized: ``fallback``, with a warning; the run is not aborted
    """
    if raw is None or not raw.strip():
        return _require(default, "DEFAULT_LOCK_TYPE")

    strategy = parse_strategy(raw)
    if strategy is not None:
        return strategy

    resolved = _require(fallback, "FALLBACK_LOCK_TYPE")
    logger.warning("unknown_lock_type", lock_type=raw, fallback=resolved.value)
    return resolved


def _require(raw: str, setting: str) -> StrategyIdentifier:
    strategy = parse_strategy(raw)
    if strategy is None:
        raise ProfileConfigurationError(f"{setting}={raw!r} is not a known strategy")
    return strategy
