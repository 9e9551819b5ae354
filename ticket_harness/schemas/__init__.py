from ticket_harness.schemas.ticket import TicketSnapshot
from ticket_harness.schemas.strategy import StrategyIdentifier, RequestTemplate
from ticket_harness.schemas.profile import (
    ConstantProfile, LoadProfile, Stage, StagedProfile, Thresholds,
)
from ticket_harness.schemas.report import (
    AttemptOutcome, LatencySummary, OutcomeTally, RunReport, ThresholdResult, VerificationReport,
)

__all__ = [
    "TicketSnapshot",
    "StrategyIdentifier", "RequestTemplate",
    "ConstantProfile", "LoadProfile", "Stage", "StagedProfile", "Thresholds",
    "AttemptOutcome", "LatencySummary", "OutcomeTally", "RunReport", "ThresholdResult",
    "VerificationReport",
]
