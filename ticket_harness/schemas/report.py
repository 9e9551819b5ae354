"""
Pydantic schemas for per-attempt outcomes and the end-of-run report.
"""

from enum import Enum
from typing import Mapping, Optional

from pydantic import BaseModel

from ticket_harness.schemas.strategy import StrategyIdentifier
from ticket_harness.schemas.ticket import TicketSnapshot


class AttemptOutcome(str, Enum):
    ACCEPTED = "accepted"
    BUSINESS_REJECTED = "business_rejected"
    LOCK_TIMEOUT_REJECTED = "lock_timeout_rejected"
    TRANSPORT_ERROR = "transport_error"


class OutcomeTally(BaseModel):
    """Count of attempts per outcome kind."""

    accepted: int = 0
    business_rejected: int = 0
    lock_timeout_rejected: int = 0
    transport_error: int = 0

    model_config = {"frozen": True}

    @classmethod
    def from_counts(cls, counts: Mapping[AttemptOutcome, int]) -> "OutcomeTally":
        return cls(**{outcome.value: counts.get(outcome, 0) for outcome in AttemptOutcome})

    def __getitem__(self, outcome: AttemptOutcome) -> int:
        return getattr(self, outcome.value)

    @property
    def total(self) -> int:
        return sum(self[outcome] for outcome in AttemptOutcome)

    @property
    def rejected(self) -> int:
        """Business rejections, lock timeouts included."""
        return self.business_rejected + self.lock_timeout_rejected


class VerificationReport(BaseModel):
    overbooked: bool
    race_condition_detected: bool
    negative_stock: bool
    stock_delta: int
    reservation_delta: int
    summary: str

    model_config = {"frozen": True}

    @property
    def is_consistent(self) -> bool:
        return not (self.overbooked or self.race_condition_detected or self.negative_stock)


class ThresholdResult(BaseModel):
    name: str
    limit: float
    observed: Optional[float]
    passed: bool

    model_config = {"frozen": True}


class LatencySummary(BaseModel):
    avg_ms: float = 0.0
    p50_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0
    max_ms: float = 0.0

    model_config = {"frozen": True}


class RunReport(BaseModel):
    run_id: str
    strategy: StrategyIdentifier
    ticket_id: int
    baseline: TicketSnapshot
    final: Optional[TicketSnapshot] = None
    tally: OutcomeTally
    verification: Optional[VerificationReport] = None
    thresholds: list[ThresholdResult] = []
    warnings: list[str] = []
    load_duration_seconds: float
    settle_seconds: float
    latency: LatencySummary

    model_config = {"frozen": True}

    @property
    def throughput(self) -> float:
        if self.load_duration_seconds <= 0:
            return 0.0
        return self.tally.total / self.load_duration_seconds

    @property
    def consistent(self) -> bool:
        return self.verification is not None and self.verification.is_consistent
